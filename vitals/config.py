"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
"""

import logging
import os
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class AnalysisConfig(BaseModel):
    """Tuning for the insight aggregator."""

    history_window: int = Field(
        default=14, gt=0, description="Most recent readings considered per kind"
    )
    min_readings: int = Field(
        default=3, gt=0, description="Readings required before a kind gets an insight"
    )
    recent_window: int = Field(
        default=7, gt=0, description="Readings averaged as the recent half of the trend"
    )
    trend_delta: float = Field(
        default=5.0, ge=0.0, description="Average shift needed to call a trend"
    )
    min_insights_for_overall: int = Field(
        default=2, gt=0, description="Per-kind insights required for the overall rollup"
    )

    @model_validator(mode="after")
    def windows_fit_history(self) -> "AnalysisConfig":
        if self.recent_window > self.history_window:
            raise ValueError("recent_window cannot exceed history_window")
        if self.min_readings > self.history_window:
            raise ValueError("min_readings cannot exceed history_window")
        return self


class StorageConfig(BaseModel):
    """Flat key-value storage settings."""

    path: str | None = Field(
        default="./data/vitals.json",
        description="JSON file backing the store; None keeps it in memory",
    )
    records_key: str = Field(default="healthMetrics", description="Key holding the record list")
    settings_key: str = Field(
        default="healthSettings", description="Key holding dashboard settings"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _optional_path(val: str | None, default: str) -> str | None:
        if val is None:
            return default
        v = val.strip()
        return None if v.lower() in {"", "memory", ":memory:"} else v

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    analysis_config = AnalysisConfig(
        history_window=int(os.getenv("VITALS_HISTORY_WINDOW", "14")),
        min_readings=int(os.getenv("VITALS_MIN_READINGS", "3")),
        recent_window=int(os.getenv("VITALS_RECENT_WINDOW", "7")),
        trend_delta=float(os.getenv("VITALS_TREND_DELTA", "5.0")),
    )

    storage_config = StorageConfig(
        path=_optional_path(os.getenv("VITALS_STORAGE_PATH"), "./data/vitals.json"),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        analysis=analysis_config,
        storage=storage_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def configure_logging(config: LoggingConfig) -> None:
    """Configure structlog once for the whole process."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
    logging.basicConfig(format="%(message)s", level=getattr(logging, config.level))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
