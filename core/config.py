"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Local-only operation is a valid configuration (empty record store URL)
"""

import os
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

logger = structlog.get_logger(__name__)


class StorageConfig(BaseModel):
    """On-device cache location."""

    data_dir: str = Field(default="./data", description="Directory holding the local cache")
    key_prefix: str = Field(
        default="health_assess", min_length=1, description="Prefix for local cache keys"
    )


class RecordStoreConfig(BaseModel):
    """Remote record store used when no server location was saved on the device."""

    default_endpoint: str = Field(
        default="http://127.0.0.1:8080/api",
        description="Base URL of the record store; empty string means local-only mode",
    )
    timeout_seconds: float = Field(default=10.0, gt=0.0, description="Timeout per remote call")

    @field_validator("default_endpoint")
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("record store endpoint must be an http(s) URL")
        return v.rstrip("/")


class WizardConfig(BaseModel):
    """Assessment wizard behaviour."""

    draft_quiet_seconds: float = Field(
        default=1.0, gt=0.0, description="Quiet period before the draft is written"
    )


class DatabaseConfig(BaseModel):
    """Database backing the record store service."""

    url: str = Field(default="sqlite:///./data/database.sqlite", description="Database URL")


class APIConfig(BaseModel):
    """Record store API server configuration."""

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8080, gt=0, lt=65536, description="API server port")
    reload: bool = Field(default=False, description="Enable auto-reload for development")

    allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed origins for CORS"
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

    storage: StorageConfig = Field(default_factory=StorageConfig)
    record_store: RecordStoreConfig = Field(default_factory=RecordStoreConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: APIConfig = Field(default_factory=APIConfig)
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

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    storage_config = StorageConfig(
        data_dir=os.getenv("DATA_DIR", "./data"),
        key_prefix=os.getenv("STORAGE_KEY_PREFIX", "health_assess"),
    )

    record_store_config = RecordStoreConfig(
        default_endpoint=os.getenv("RECORD_STORE_URL", "http://127.0.0.1:8080/api"),
        timeout_seconds=float(os.getenv("RECORD_STORE_TIMEOUT_SECONDS", "10.0")),
    )

    wizard_config = WizardConfig(
        draft_quiet_seconds=float(os.getenv("DRAFT_QUIET_SECONDS", "1.0")),
    )

    database_config = DatabaseConfig(
        url=os.getenv("DATABASE_URL", "sqlite:///./data/database.sqlite"),
    )

    # PORT is what most hosting platforms inject
    api_config = APIConfig(
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", os.getenv("PORT", "8080"))),
        reload=_parse_bool(os.getenv("API_RELOAD"), debug),
        allowed_origins=os.getenv("API_ALLOWED_ORIGINS", "*").split(","),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        storage=storage_config,
        record_store=record_store_config,
        wizard=wizard_config,
        database=database_config,
        api=api_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> AppConfig:
    """Validate configuration at startup."""
    try:
        config = get_config()
    except Exception as e:
        logger.error("configuration_validation_failed", error=str(e))
        raise

    logger.info(
        "configuration_loaded",
        environment=config.environment,
        record_store=config.record_store.default_endpoint or "local-only",
        data_dir=config.storage.data_dir,
    )
    return config
