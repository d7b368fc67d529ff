"""Core domain models for tutors, courses, and course-match notifications.

This module defines the data structures shared by every flow:
- Expertise: structured fields/keywords inferred from a tutor CV
- CandidateDocument / CandidateProfile: a tutor and their CV
- TargetItem: a course that tutors are matched against
- NotificationRecord: a persisted in-app course-match notification and its
  action-status state machine
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.timestamps import ensure_utc, utc_now

COURSE_MATCH_KIND = "course_match"


def _clean_terms(values: List[str]) -> List[str]:
    return [value.strip() for value in values if value and value.strip()]


class Expertise(BaseModel):
    """Structured summary of a tutor's area of expertise.

    An empty instance is the degraded form produced when structured extraction
    fails; it contributes nothing to boosts.
    """

    primary_field: str = Field("", description="Main discipline")
    related_fields: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)

    @field_validator("primary_field")
    @classmethod
    def strip_primary(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("related_fields", "keywords")
    @classmethod
    def strip_terms(cls, v: List[str]) -> List[str]:
        return _clean_terms(v)

    @classmethod
    def empty(cls) -> "Expertise":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.primary_field or self.related_fields or self.keywords)

    def field_terms(self) -> List[str]:
        """Primary field followed by related fields, empty entries removed."""
        return _clean_terms([self.primary_field, *self.related_fields])

    def keyword_set(self) -> List[str]:
        """Every term usable for keyword boosts, in declaration order."""
        return _clean_terms([self.primary_field, *self.related_fields, *self.keywords])


class CandidateDocument(BaseModel):
    """Raw CV bytes as stored by the document collaborator."""

    content: bytes = Field(..., description="Document bytes")
    media_type: str = Field("", description="MIME type if known")
    filename: str = Field("", description="Original file name if known")


class CandidateProfile(BaseModel):
    """A tutor as seen by the matching engine.

    ``expertise`` and ``embedding`` may be supplied pre-computed by the
    collaborator, in which case they are reused instead of being derived from
    the CV again.
    """

    candidate_id: str = Field(..., min_length=1, description="Tutor profile id")
    recipient_id: Optional[str] = Field(None, description="Owning user id for notifications")
    display_name: Optional[str] = None
    email: Optional[str] = None
    document: Optional[CandidateDocument] = None
    text: Optional[str] = Field(None, description="Already extracted CV text")
    expertise: Optional[Expertise] = None
    embedding: Optional[List[float]] = None

    @field_validator("candidate_id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("candidate_id cannot be empty or whitespace-only")
        return stripped

    @field_validator("recipient_id", "display_name", "email")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None


class TargetItem(BaseModel):
    """A course that tutors are scored against."""

    target_id: str = Field(..., min_length=1, description="Course id")
    title: str = Field(..., description="Course title")
    description: str = Field("", description="Course description")
    category_name: str = Field("", description="Category display name")
    level: Optional[str] = Field(None, description="Course level, e.g. Beginner")
    embedding: Optional[List[float]] = None

    @field_validator("target_id", "title")
    @classmethod
    def strip_required(cls, v: str) -> str:
        stripped = (v or "").strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("description", "category_name", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else str(v).strip()

    @property
    def composed_text(self) -> str:
        """Text embedded for the course: title, description, category."""
        return f"{self.title} {self.description} {self.category_name}"

    model_config = {"json_schema_extra": {"example": {
        "target_id": "course-42",
        "title": "Intro to Pharmacology",
        "description": "Drug classes, dosage and interactions.",
        "category_name": "Pharmacy",
        "level": "Beginner",
    }}}


class ActionStatus(str, Enum):
    """Lifecycle of a course-match notification."""

    NONE = "none"
    APPLIED = "applied"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DISMISSED = "dismissed"


ALLOWED_TRANSITIONS: Mapping[ActionStatus, FrozenSet[ActionStatus]] = {
    ActionStatus.NONE: frozenset({ActionStatus.APPLIED, ActionStatus.DISMISSED}),
    ActionStatus.APPLIED: frozenset({ActionStatus.ACCEPTED, ActionStatus.REJECTED}),
    ActionStatus.ACCEPTED: frozenset(),
    ActionStatus.REJECTED: frozenset(),
    ActionStatus.DISMISSED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Requested action status change is not allowed from the current state."""

    def __init__(self, current: ActionStatus, requested: ActionStatus):
        self.current = ActionStatus(current)
        self.requested = ActionStatus(requested)
        super().__init__(
            f"Cannot move notification from '{self.current.value}' to '{self.requested.value}'"
        )


def can_transition(current: ActionStatus, requested: ActionStatus) -> bool:
    return ActionStatus(requested) in ALLOWED_TRANSITIONS[ActionStatus(current)]


class NotificationRecord(BaseModel):
    """In-app notification telling a tutor about a matching course."""

    id: Optional[int] = None
    recipient_id: str = Field(..., min_length=1)
    kind: str = Field(COURSE_MATCH_KIND)
    candidate_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    title: str = Field(...)
    message: str = Field(...)
    payload: Dict[str, Any] = Field(default_factory=dict)
    action_status: ActionStatus = Field(ActionStatus.NONE)
    is_read: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", "updated_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_pending(self) -> bool:
        return self.action_status == ActionStatus.NONE

    def with_action(self, requested: ActionStatus, now: Optional[datetime] = None) -> "NotificationRecord":
        """Return a copy moved to ``requested`` and marked read.

        Raises:
            InvalidTransitionError: If the move is not allowed
        """
        requested = ActionStatus(requested)
        if not can_transition(self.action_status, requested):
            raise InvalidTransitionError(self.action_status, requested)
        return self.model_copy(
            update={
                "action_status": requested,
                "is_read": True,
                "updated_at": now or utc_now(),
            }
        )
