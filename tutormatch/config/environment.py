"""Environment variable loading and validation."""

import os
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment-specific settings read from the environment."""

    def __init__(
        self,
        openai_api_key: str,
        smtp_host: str,
        smtp_port: int,
        smtp_user: Optional[str],
        smtp_pass: Optional[str],
        sender_address: str,
        smtp_sender_name: Optional[str] = None,
        openai_base_url: Optional[str] = None,
        app_base_url: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        self.openai_api_key = openai_api_key
        self.openai_base_url = openai_base_url
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.sender_address = sender_address
        self.smtp_sender_name = smtp_sender_name or "EduProject"
        self.app_base_url = (app_base_url or "").rstrip("/") or None
        self.log_level = log_level
        self.database_url = database_url or "sqlite:///./data/tutormatch.db"

    @property
    def implicit_tls(self) -> bool:
        """Port 465 speaks TLS from the first byte (SMTPS)."""
        return self.smtp_port == 465

    def __repr__(self) -> str:
        return (
            f"EnvironmentConfig(smtp_host={self.smtp_host!r}, smtp_port={self.smtp_port}, "
            f"sender_address={self.sender_address!r}, database_url={self.database_url!r})"
        )


def load_environment_config() -> EnvironmentConfig:
    """Load and validate environment variables.

    Required:
    - OPENAI_API_KEY: key for the chat and embedding services
    - SMTP_HOST / SMTP_PORT: outbound mail server

    Optional:
    - OPENAI_BASE_URL: alternative endpoint for an OpenAI-compatible service
    - SMTP_USER / SMTP_PASS: credentials (both or neither)
    - SMTP_FROM_ADDRESS: sender address, defaults to SMTP_USER
    - SMTP_SENDER_NAME: sender display name (default "EduProject")
    - APP_BASE_URL: link target included in notification emails
    - DATABASE_URL: SQLAlchemy URL (default sqlite:///./data/tutormatch.db)
    - LOG_LEVEL: overrides the configured log level

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    openai_api_key = os.getenv("OPENAI_API_KEY")
    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    from_address = os.getenv("SMTP_FROM_ADDRESS") or smtp_user
    log_level = os.getenv("LOG_LEVEL")

    if not openai_api_key:
        errors.append("Missing required environment variable: OPENAI_API_KEY")

    if not smtp_host:
        errors.append("Missing required environment variable: SMTP_HOST")

    smtp_port = None
    if not smtp_port_str:
        errors.append("Missing required environment variable: SMTP_PORT")
    else:
        try:
            smtp_port = int(smtp_port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if smtp_user and not smtp_pass:
        errors.append("SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication.")
    elif smtp_pass and not smtp_user:
        errors.append("SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication.")

    sender_address = None
    if not from_address:
        errors.append("No sender address: set SMTP_FROM_ADDRESS or SMTP_USER")
    else:
        try:
            sender_address = validate_email(
                from_address.strip(), check_deliverability=False
            ).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid sender address '{from_address}': {e}")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Ensure OPENAI_API_KEY, SMTP_HOST and SMTP_PORT are set",
                "Use a full mailbox address for SMTP_FROM_ADDRESS or SMTP_USER",
            ],
        )

    return EnvironmentConfig(
        openai_api_key=openai_api_key,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        sender_address=sender_address,
        smtp_sender_name=os.getenv("SMTP_SENDER_NAME"),
        openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
        app_base_url=os.getenv("APP_BASE_URL"),
        log_level=log_level.upper() if log_level else None,
        database_url=os.getenv("DATABASE_URL"),
    )
