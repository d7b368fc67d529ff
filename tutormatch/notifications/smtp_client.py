"""SMTP client wrapper for email delivery."""

import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from ..config.environment import EnvironmentConfig
from ..logging import get_logger
from .models import DeliveryFailure

logger = get_logger(__name__, component="notification")


class SMTPClient:
    """Thin wrapper around smtplib.

    Port 465 uses implicit TLS (SMTP_SSL); any other port connects in plain
    text and upgrades with STARTTLS when ``use_tls`` is set. Factories are
    injectable so tests never open sockets.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
        timeout: float = 30.0,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL
        self.timeout = timeout

    def send(self, message: EmailMessage, env_config: EnvironmentConfig, use_tls: bool = True) -> None:
        """Deliver one message.

        Args:
            message: Fully built EmailMessage
            env_config: SMTP host, port and credentials
            use_tls: Upgrade with STARTTLS on non-465 ports

        Raises:
            DeliveryFailure: On any SMTP or network error
        """
        smtp = None
        try:
            if env_config.implicit_tls:
                smtp = self.smtp_ssl_factory(
                    env_config.smtp_host,
                    env_config.smtp_port,
                    context=ssl.create_default_context(),
                    timeout=self.timeout,
                )
            else:
                smtp = self.smtp_factory(
                    env_config.smtp_host, env_config.smtp_port, timeout=self.timeout
                )
                if use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if env_config.smtp_user and env_config.smtp_pass:
                smtp.login(env_config.smtp_user, env_config.smtp_pass)

            smtp.send_message(message)
            logger.debug(f"Message sent to {message['To']}")

        except smtplib.SMTPException as e:
            raise DeliveryFailure(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise DeliveryFailure(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def normalize_recipient(address: Optional[str]) -> Optional[str]:
    """Return the normalized address, or None if it is missing or invalid.

    Syntax only; no DNS lookups.
    """
    if not address or not address.strip():
        return None
    try:
        return validate_email(address.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return None


def build_sender_address(env_config: EnvironmentConfig) -> str:
    """Format the From header, e.g. ``"EduProject" <mailer@example.com>``."""
    return formataddr((env_config.smtp_sender_name, env_config.sender_address))
