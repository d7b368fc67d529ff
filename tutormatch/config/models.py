"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class FlowPolicy(BaseModel):
    """Selection rules applied by the ranking engine for one flow.

    ``threshold`` is inclusive. ``min_results`` triggers the below-threshold
    fallback fill; ``max_results`` caps the returned list (None = no cap).
    """

    threshold: float = Field(..., description="Inclusive qualification threshold")
    min_results: int = Field(0, ge=0, description="Fallback fill target")
    max_results: Optional[int] = Field(None, ge=1, description="Result cap")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_bounds(self):
        if self.max_results is not None and self.min_results > self.max_results:
            raise ValueError(
                f"min_results ({self.min_results}) cannot exceed max_results ({self.max_results})"
            )
        return self


def _default_push_policy() -> FlowPolicy:
    return FlowPolicy(threshold=0.35)


def _default_pull_policy() -> FlowPolicy:
    return FlowPolicy(threshold=0.25, min_results=5, max_results=12)


class MatchingConfig(BaseModel):
    """Per-flow selection policies and run execution limits."""

    push: FlowPolicy = Field(
        default_factory=_default_push_policy,
        description="New course -> tutors notification flow",
    )
    pull: FlowPolicy = Field(
        default_factory=_default_pull_policy,
        description="CV -> course recommendation flow",
    )
    max_workers: int = Field(4, ge=1, le=32, description="Concurrent scoring workers")
    run_timeout_seconds: Optional[float] = Field(
        None, gt=0, description="Wall-clock budget for one run (None = unbounded)"
    )


class ServicesConfig(BaseModel):
    """Language-model and embedding service settings."""

    chat_model: str = Field("gpt-4o-mini", min_length=1)
    embedding_model: str = Field("text-embedding-3-small", min_length=1)
    embedding_dimensions: Optional[int] = Field(
        None, ge=1, description="Expected vector size; learned from first response when unset"
    )
    max_input_chars: int = Field(8000, ge=100, le=100000)
    request_timeout_seconds: float = Field(30.0, gt=0, le=300)
    max_provider_retries: int = Field(2, ge=0, le=10)
    expertise_temperature: float = Field(0.2, ge=0.0, le=2.0)

    @field_validator("chat_model", "embedding_model")
    @classmethod
    def strip_model_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Model name cannot be empty or whitespace-only")
        return stripped


class EmailConfig(BaseModel):
    """Email notification settings."""

    use_tls: bool = Field(True, description="Use TLS/STARTTLS for secure connection")
    max_retries: int = Field(
        3, ge=0, le=10, description="Number of retry attempts for failed email sends"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )
    retry_initial_delay: float = Field(
        5, ge=0, le=60, description="Initial retry delay in seconds"
    )
    min_send_interval_seconds: float = Field(
        1.2, ge=0, le=60, description="Minimum spacing between two SMTP sends"
    )
    smtp_timeout_seconds: float = Field(30.0, gt=0, le=300)
    max_workers: int = Field(4, ge=1, le=32, description="Concurrent email workers")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the tutor/course matcher.

    Every section has defaults, so an empty mapping is a valid configuration.
    """

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    services: ServicesConfig = Field(default_factory=ServicesConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
