"""Logging configuration for CallGuard."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

import structlog

from callguard.config import get_settings

# Handlers installed by setup_logging(), replaced on the next call
_installed_handlers: list[logging.Handler] = []


def _formatter(json_output: bool, colors: bool = False) -> structlog.stdlib.ProcessorFormatter:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=colors)
    )
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,  # type: ignore[list-item]
        ]
    )


def setup_logging(stream: TextIO | None = None) -> None:
    """Configure structured logging.

    Args:
        stream: Console stream. Defaults to stdout for the API service;
            the CLI passes stderr so command output stays machine-readable.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    root.setLevel(log_level)

    # Console: colored in dev, JSON in prod
    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        _formatter(json_output=not settings.is_development, colors=True)
    )
    _installed_handlers.append(console_handler)

    if settings.log_to_file:
        try:
            Path(settings.log_directory).mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=settings.log_file_path,
                maxBytes=settings.log_file_max_bytes,
                backupCount=settings.log_file_backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)
        else:
            # File: always JSON for easy parsing
            file_handler.setLevel(log_level)
            file_handler.setFormatter(_formatter(json_output=True))
            _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Reduce noise from third-party packages
    for noisy in ("httpx", "httpcore", "aiohttp.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
