"""Pydantic configuration schema for the Zoya assistant.

This module defines the configuration schema that mirrors config.yaml structure.
All configuration is validated against these models on startup.

Usage:
    from zoya.config_schema import AppConfig

    # Validate a config dict
    config = AppConfig(**yaml_data)
"""

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

# Current schema version - increment when adding new required fields
CURRENT_SCHEMA_VERSION = 1


class StorageConfig(BaseModel):
    """Persistence backend configuration.

    The backend is picked once at startup; there is no runtime switch.
    """

    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="'memory' keeps everything in process; 'sqlite' persists tasks and history",
    )
    db_path: str = Field(
        default="data/zoya.db",
        description="Path to the SQLite database file (sqlite backend only)",
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=32,
        description="Maximum number of pooled database connections",
    )
    acquire_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=120,
        description="How long a caller waits for a pooled connection before failing",
    )
    busy_timeout_ms: int = Field(
        default=10000,
        ge=0,
        le=120000,
        description="SQLite busy_timeout applied to every pooled connection",
    )
    seed_sample_data: bool = Field(
        default=True,
        description="Seed the in-memory collections with demo emails, events and tasks",
    )

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: str) -> str:
        """Ensure database path is not empty and doesn't contain traversal."""
        if not v or not v.strip():
            raise ValueError("Database path cannot be empty")
        if ".." in v:
            raise ValueError("Database path cannot contain '..' (path traversal)")
        return v


class ClassifierConfig(BaseModel):
    """Language-understanding provider configuration."""

    enabled: bool = Field(
        default=True,
        description="Disable to run on the local fallback matcher only",
    )
    model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model for command intent classification",
    )
    summary_model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model for email summaries and drafts",
    )
    max_tokens: int = Field(
        default=1024,
        ge=64,
        le=8192,
        description="Maximum tokens in a provider response",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for classification",
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=300,
        description="Upper bound on a single provider call",
    )
    cooldown_seconds: float = Field(
        default=60.0,
        ge=0,
        le=3600,
        description="How long to skip the provider after it was marked unavailable",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="SDK-level retries for transient provider errors",
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Host to bind to")
    port: int = Field(default=8000, ge=1, le=65535, description="Port to bind to")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )
    json_output: bool = Field(
        default=True,
        description="JSON logs for the server; the CLI always logs human-readable",
    )


class AppConfig(BaseModel):
    """Root configuration schema for the Zoya assistant.

    This model validates the entire config.yaml structure. If validation
    fails on startup, the application exits with a clear error.
    """

    schema_version: int = Field(
        default=CURRENT_SCHEMA_VERSION,
        ge=1,
        description="Config schema version for migration tracking",
    )
    timezone: str = Field(
        default="UTC",
        description="Timezone that defines 'today' and the HH:MM shown in responses",
    )
    storage: StorageConfig = Field(default_factory=StorageConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}' (use an IANA name like 'Asia/Karachi')") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """The configured timezone as a tzinfo object."""
        return ZoneInfo(self.timezone)
