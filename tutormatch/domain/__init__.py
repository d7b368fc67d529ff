"""Domain models shared by the matching and notification flows."""

from .models import (
    ALLOWED_TRANSITIONS,
    COURSE_MATCH_KIND,
    ActionStatus,
    CandidateDocument,
    CandidateProfile,
    Expertise,
    InvalidTransitionError,
    NotificationRecord,
    TargetItem,
    can_transition,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "COURSE_MATCH_KIND",
    "ActionStatus",
    "CandidateDocument",
    "CandidateProfile",
    "Expertise",
    "InvalidTransitionError",
    "NotificationRecord",
    "TargetItem",
    "can_transition",
]
