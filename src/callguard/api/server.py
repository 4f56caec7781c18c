"""Analysis API server.

Stateless request/response service exposing the transcript analyzer over
HTTP. Runs as a single aiohttp process.
"""

from __future__ import annotations

import asyncio
from typing import Any

from aiohttp import web

from callguard.analysis.engine import TranscriptAnalyzer, build_analyzer
from callguard.api.middleware import create_cors_middleware, create_error_middleware
from callguard.api.routes.analyze import handle_analyze
from callguard.api.routes.health import handle_health
from callguard.logging import get_logger

log = get_logger("callguard.api.server")


class AnalysisAPIServer:
    """REST API serving one-shot transcript analysis."""

    def __init__(
        self,
        analyzer: TranscriptAnalyzer,
        *,
        host: str = "0.0.0.0",  # nosec B104 - Intentional for Docker container
        port: int = 8080,
        allowed_origins: list[str] | None = None,
        default_language: str = "en",
    ) -> None:
        self._analyzer = analyzer
        self._host = host
        self._port = port
        self._allowed_origins = allowed_origins
        self._default_language = default_language
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

        log.info("analysis_api_initialized", host=host, port=port)

    def create_app(self) -> web.Application:
        """Create and configure the aiohttp application."""
        middlewares: list[Any] = [
            # CORS (outermost), so error responses carry the headers too
            create_cors_middleware(self._allowed_origins),
            create_error_middleware(),
        ]

        app = web.Application(middlewares=middlewares)
        app["analyzer"] = self._analyzer
        app["default_language"] = self._default_language

        app.router.add_get("/health", handle_health)
        app.router.add_post("/analyze", handle_analyze)

        app.on_cleanup.append(self._close_analyzer)

        self._app = app
        return app

    async def _close_analyzer(self, app: web.Application) -> None:
        await self._analyzer.close()

    async def start(self) -> None:
        """Start the server."""
        if self._app is None:
            self.create_app()

        if self._app is None:  # pragma: no cover
            raise RuntimeError("create_app() must be called first")

        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()

        log.info("analysis_api_started", host=self._host, port=self._port)

    async def stop(self) -> None:
        """Stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            log.info("analysis_api_stopped")


async def run_server(
    analyzer: TranscriptAnalyzer,
    host: str = "0.0.0.0",  # nosec B104 - Intentional for Docker container
    port: int = 8080,
    default_language: str = "en",
) -> None:
    """Run the analysis API until cancelled."""
    server = AnalysisAPIServer(
        analyzer,
        host=host,
        port=port,
        default_language=default_language,
    )
    await server.start()

    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await server.stop()


def main(host: str | None = None, port: int | None = None) -> None:
    """Main entry point for the analysis API service."""
    from callguard.config import get_settings
    from callguard.logging import setup_logging

    setup_logging()
    settings = get_settings()
    analyzer = build_analyzer(settings)

    try:
        asyncio.run(
            run_server(
                analyzer,
                host or settings.api_host,
                port or settings.api_port,
                default_language=settings.default_language,
            )
        )
    except KeyboardInterrupt:
        log.info("analysis_api_shutdown")


if __name__ == "__main__":
    main()
