"""Result types and exceptions for the notification layer."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..domain.models import NotificationRecord

EMAIL_SENT = "sent"
EMAIL_SKIPPED = "skipped"
EMAIL_FAILED = "failed"


class NotificationError(Exception):
    """Base exception for notification-related errors."""


class NotificationTemplateError(NotificationError):
    """Template rendering failed (missing variable or broken template)."""


class DeliveryFailure(NotificationError):
    """An email could not be delivered.

    Raised by the SMTP client for a single attempt and by the notification
    service once retries are exhausted; ``attempts`` then holds the count.
    """

    def __init__(self, message: str, attempts: int = 1):
        self.attempts = attempts
        super().__init__(message)


@dataclass
class DispatchAttempt:
    """Per-recipient outcome of one fan-out.

    Attributes:
        candidate_id: Tutor the notification is about
        recipient_id: Owning user id (None when the tutor has no account)
        notification_persisted: True if an in-app notification was created in
            this run
        email_status: ``sent``, ``skipped`` or ``failed``
        attempts: SMTP attempts made
        error: Last error message, if any
    """

    candidate_id: str
    recipient_id: Optional[str]
    notification_persisted: bool
    email_status: str = EMAIL_SKIPPED
    attempts: int = 0
    error: Optional[str] = None


@dataclass
class FanOutResult:
    """Summary of one fan-out for a course."""

    created: List[NotificationRecord] = field(default_factory=list)
    duplicate_count: int = 0
    skipped_no_recipient: int = 0
    attempts: List[DispatchAttempt] = field(default_factory=list)

    @property
    def notified_count(self) -> int:
        return len(self.created)

    @property
    def emails_sent(self) -> int:
        return sum(1 for attempt in self.attempts if attempt.email_status == EMAIL_SENT)

    @property
    def emails_failed(self) -> int:
        return sum(1 for attempt in self.attempts if attempt.email_status == EMAIL_FAILED)
