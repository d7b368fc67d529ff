"""Email delivery of course-match notifications with retry and throttling."""

import time
from email.message import EmailMessage
from typing import Callable, Optional

from ..config.environment import EnvironmentConfig
from ..config.models import EmailConfig
from ..domain.models import CandidateProfile, TargetItem
from ..logging import get_logger
from .models import DeliveryFailure
from .payloads import build_email_context
from .rate_limiter import SendRateLimiter
from .smtp_client import SMTPClient, build_sender_address
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

MAX_RETRY_DELAY = 60.0


class NotificationService:
    """Render and deliver course-match emails.

    Flow for one recipient:
    1. Build the template context and render subject/HTML/text
    2. Assemble a multipart EmailMessage
    3. Send through the shared rate limiter, retrying with exponential
       backoff on delivery failure

    The rate limiter is owned here and shared by every send of the service,
    across threads.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: EmailConfig,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
        rate_limiter: Optional[SendRateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.env_config = env_config
        self.email_config = email_config
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient(timeout=email_config.smtp_timeout_seconds)
        self.rate_limiter = rate_limiter or SendRateLimiter(email_config.min_send_interval_seconds)
        self._sleep = sleep

    def build_message(self, target: TargetItem, candidate: CandidateProfile, to_address: str) -> EmailMessage:
        """Render the course-match email for one tutor.

        Raises:
            NotificationTemplateError: If rendering fails
        """
        context = build_email_context(
            target,
            candidate,
            brand_name=self.env_config.smtp_sender_name,
            app_base_url=self.env_config.app_base_url,
        )
        rendered = self.template_renderer.render(context)

        message = EmailMessage()
        message["Subject"] = rendered["subject"]
        message["From"] = build_sender_address(self.env_config)
        message["To"] = to_address
        message.set_content(rendered["text_body"])
        message.add_alternative(rendered["html_body"], subtype="html")
        return message

    def send_course_match(
        self, target: TargetItem, candidate: CandidateProfile, to_address: str
    ) -> int:
        """Deliver the course-match email to one tutor.

        Args:
            target: Course being announced
            candidate: Tutor receiving the email
            to_address: Validated recipient address

        Returns:
            Number of attempts used

        Raises:
            NotificationTemplateError: If rendering fails (no attempt made)
            DeliveryFailure: If every attempt failed
        """
        message = self.build_message(target, candidate, to_address)
        max_attempts = self.email_config.max_retries + 1
        last_error: Optional[DeliveryFailure] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self._retry_delay(attempt)
                logger.warning(
                    f"Retrying course-match email to {to_address} "
                    f"(attempt {attempt}/{max_attempts}) after {delay:.1f}s",
                    extra={"event": "notification.send.retry", "attempt": attempt},
                )
                self._sleep(delay)

            try:
                with self.rate_limiter:
                    self.smtp_client.send(message, self.env_config, self.email_config.use_tls)
            except DeliveryFailure as e:
                last_error = e
                logger.warning(
                    f"Delivery to {to_address} failed (attempt {attempt}/{max_attempts}): {e}",
                    extra={
                        "event": "notification.send.failure",
                        "attempt": attempt,
                        "retry_remaining": attempt < max_attempts,
                    },
                )
                continue

            logger.info(
                f"Course-match email sent to {to_address} (attempts: {attempt})",
                extra={"event": "notification.send.success", "attempt": attempt},
            )
            return attempt

        raise DeliveryFailure(
            f"Delivery to {to_address} failed after {max_attempts} attempts: {last_error}",
            attempts=max_attempts,
        )

    def _retry_delay(self, attempt: int) -> float:
        delay = self.email_config.retry_initial_delay * (
            self.email_config.retry_backoff_multiplier ** (attempt - 2)
        )
        return min(delay, MAX_RETRY_DELAY)
