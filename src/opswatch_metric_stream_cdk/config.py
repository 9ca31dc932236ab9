"""Configuration management using Pydantic.

This module provides type-safe configuration with validation.
Settings are automatically loaded from .env file without needing load_dotenv().

Two groups of models live here:

- ``Settings`` and its nested ``DeliveryTuning``: how the app itself behaves
  (environment, logging, Firehose buffering, output format, tags).
- ``EndpointConfig`` and ``MetricFilter``: the contents of a parameter file
  for the static-file profile (endpoint URL plus namespace filters).
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .project_settings import DEFAULT_STACK_NAME, PROJECT_NAME

# Find .env file in project root (parent of src/)
_PACKAGE_DIR = Path(__file__).parent
_PROJECT_ROOT = _PACKAGE_DIR.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

_HTTP_URL = TypeAdapter(HttpUrl)


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OutputFormat(str, Enum):
    """Metric stream output formats accepted by CloudWatch."""

    JSON = "json"
    OPENTELEMETRY_0_7 = "opentelemetry0.7"
    OPENTELEMETRY_1_0 = "opentelemetry1.0"


class DeliveryTuning(BaseModel):
    """Firehose buffering and retry configuration.

    The primary hints apply to the HTTP endpoint, the backup hints to the
    error bucket. The backup path only drains failures, so it must buffer at
    least as long and as much as the primary path.
    """

    model_config = ConfigDict(frozen=True)

    interval_seconds: Annotated[int, Field(ge=0, le=900)] = 60
    size_mb: Annotated[int, Field(ge=1, le=64)] = 1
    backup_interval_seconds: Annotated[int, Field(ge=0, le=900)] = 900
    backup_size_mb: Annotated[int, Field(ge=1, le=128)] = 128
    retry_duration_seconds: Annotated[int, Field(ge=0, le=7200)] = 100

    @model_validator(mode="after")
    def check_backup_is_coarser(self) -> "DeliveryTuning":
        """Reject backup hints finer than the primary hints."""
        if self.backup_interval_seconds < self.interval_seconds:
            raise ValueError(
                f"backup_interval_seconds ({self.backup_interval_seconds}) must be >= "
                f"interval_seconds ({self.interval_seconds})"
            )
        if self.backup_size_mb < self.size_mb:
            raise ValueError(
                f"backup_size_mb ({self.backup_size_mb}) must be >= size_mb ({self.size_mb})"
            )
        return self


class MetricFilter(BaseModel):
    """A namespace filter, optionally narrowed to specific metric names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    namespace: Annotated[str, Field(min_length=1)]
    metric_names: list[str] = Field(default_factory=list, alias="metricNames")


class EndpointConfig(BaseModel):
    """Parameter file contents for the static-file profile.

    Filter entries may be given as a bare namespace string or as a mapping
    with ``namespace`` and optional ``metricNames``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    url: str
    include_filters: list[MetricFilter] = Field(default_factory=list, alias="includeFilters")
    exclude_filters: list[MetricFilter] = Field(default_factory=list, alias="excludeFilters")

    @field_validator("url")
    @classmethod
    def require_https(cls, v: str) -> str:
        """Firehose only delivers to HTTPS endpoints.

        The URL is parsed for validation only; the configured string is kept
        as written.
        """
        try:
            parsed = _HTTP_URL.validate_python(v)
        except ValidationError as e:
            raise ValueError(f"invalid endpoint url: {e.errors()[0]['msg']}") from None
        if parsed.scheme != "https":
            raise ValueError(f"endpoint url must use https, got '{parsed.scheme}'")
        return v

    @field_validator("include_filters", "exclude_filters", mode="before")
    @classmethod
    def expand_namespace_strings(cls, v: Any) -> Any:
        """Turn bare namespace strings into filter mappings."""
        if v is None:
            return []
        if isinstance(v, list):
            return [{"namespace": item} if isinstance(item, str) else item for item in v]
        return v

    @model_validator(mode="after")
    def check_filters_exclusive(self) -> "EndpointConfig":
        """CloudWatch rejects include and exclude filters on the same stream."""
        if self.include_filters and self.exclude_filters:
            raise ValueError("includeFilters and excludeFilters cannot both be set")
        return self

    @property
    def endpoint_url(self) -> str:
        """URL as rendered into the delivery stream."""
        return self.url


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in project root (if it exists)
    3. Default values (lowest priority)

    The .env file is located at: <project_root>/.env
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Basic settings
    environment: Environment = Environment.DEVELOPMENT
    log_level: LogLevel = LogLevel.INFO

    # Application metadata
    app_name: str = "Opswatch Metric Stream CDK"
    app_version: str = "0.1.0"

    # Stack
    stack_name: str = DEFAULT_STACK_NAME
    output_format: OutputFormat = OutputFormat.JSON
    delivery: DeliveryTuning = Field(default_factory=DeliveryTuning)
    tags: dict[str, str] = Field(default_factory=lambda: {"Project": f"{PROJECT_NAME}-metric-stream"})

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: Any) -> Environment:
        """Validate and convert environment string."""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator("output_format", mode="before")
    @classmethod
    def validate_output_format(cls, v: Any) -> OutputFormat:
        """Fold case so 'JSON' and 'json' name the same format."""
        if isinstance(v, str):
            return OutputFormat(v.lower())
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION
