"""Configuration management for CallGuard."""

from __future__ import annotations

from functools import lru_cache
from typing import Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        env_parse_none_str="",
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging Configuration
    log_to_file: bool = Field(default=False, description="Enable file-based logging")
    log_directory: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Max size per log file before rotation",
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of rotated log files to keep"
    )
    log_file_prefix: str = Field(default="callguard", description="Prefix for log file names")

    # AI gateway (optional; rule engine only when no key is set)
    ai_api_key: SecretStr | None = Field(
        default=None,
        description="Bearer key for the OpenAI-compatible completion gateway",
    )
    ai_gateway_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1/chat/completions",
        description="Chat completions endpoint URL",
    )
    ai_model: str = Field(
        default="google/gemini-2.5-flash", description="Model used for scam classification"
    )
    ai_temperature: float = Field(default=0.3, description="Sampling temperature")
    ai_timeout: float = Field(default=30.0, description="Gateway request timeout in seconds")

    # Analysis
    analysis_rule_fallback: bool = Field(
        default=True,
        description="Serve the rule engine result when the AI gateway is unavailable",
    )
    default_language: str = Field(default="en", description="Default guidance language")

    # Live monitoring
    monitor_min_length: int = Field(
        default=15, description="Minimum transcript length before a pass is dispatched"
    )
    monitor_fast_path_min_length: int = Field(
        default=10, description="Transcript length that arms the debounce trigger"
    )
    monitor_warmup_seconds: float = Field(
        default=2.0, description="Delay of the first (single-shot) trigger check"
    )
    monitor_interval_seconds: float = Field(
        default=3.0, description="Period of the recurring trigger check"
    )
    monitor_debounce_seconds: float = Field(
        default=1.0, description="Quiet window collapsing bursts of transcript updates"
    )

    # HTTP API
    api_host: str = Field(
        default="0.0.0.0",  # nosec B104 - Intentional for Docker container
        description="Bind address for the analysis API",
    )
    api_port: int = Field(default=8080, description="Port for the analysis API")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known logging level name."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got: {v}")
        return upper

    @field_validator("ai_temperature")
    @classmethod
    def validate_ai_temperature(cls, v: float) -> float:
        """Validate temperature is between 0 and 2."""
        if not 0 <= v <= 2:
            raise ValueError(f"ai_temperature must be between 0 and 2, got: {v}")
        return v

    @field_validator(
        "ai_timeout",
        "monitor_warmup_seconds",
        "monitor_interval_seconds",
        "monitor_debounce_seconds",
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Validate durations are strictly positive."""
        if v <= 0:
            raise ValueError(f"duration must be positive, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_monitor_thresholds(self) -> Self:
        """The fast-path threshold may not exceed the dispatch threshold."""
        if self.monitor_fast_path_min_length > self.monitor_min_length:
            raise ValueError(
                "monitor_fast_path_min_length must not exceed monitor_min_length"
            )
        return self

    @property
    def ai_enabled(self) -> bool:
        """Whether an AI gateway key is configured."""
        return self.ai_api_key is not None and bool(self.ai_api_key.get_secret_value())

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def log_file_path(self) -> str:
        """Get the full log file path."""
        return f"{self.log_directory}/{self.log_file_prefix}.log"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
