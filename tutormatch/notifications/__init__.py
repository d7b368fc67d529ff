"""Course-match notifications: in-app records and rate-limited email.

This module provides:
- FanOutDispatcher: persist-then-email fan-out for a new course
- NotificationService: email rendering and delivery with retry/backoff
- SendRateLimiter: minimum spacing between SMTP sends
- TemplateRenderer / SMTPClient: Jinja2 rendering and smtplib transport
"""

from .dispatcher import FanOutDispatcher
from .models import (
    EMAIL_FAILED,
    EMAIL_SENT,
    EMAIL_SKIPPED,
    DeliveryFailure,
    DispatchAttempt,
    FanOutResult,
    NotificationError,
    NotificationTemplateError,
)
from .payloads import build_course_match_record, build_email_context
from .rate_limiter import SendRateLimiter
from .service import NotificationService
from .smtp_client import SMTPClient, build_sender_address, normalize_recipient
from .templates import TemplateRenderer

__all__ = [
    "FanOutDispatcher",
    "NotificationService",
    "SendRateLimiter",
    "TemplateRenderer",
    "SMTPClient",
    "DispatchAttempt",
    "FanOutResult",
    "NotificationError",
    "NotificationTemplateError",
    "DeliveryFailure",
    "EMAIL_SENT",
    "EMAIL_SKIPPED",
    "EMAIL_FAILED",
    "build_course_match_record",
    "build_email_context",
    "build_sender_address",
    "normalize_recipient",
]
