"""Builders for the in-app notification and the email template context."""

from typing import Dict, Optional

from ..domain.models import COURSE_MATCH_KIND, CandidateProfile, NotificationRecord, TargetItem
from ..matching.models import MatchScore
from ..matching.utils import build_notification_payload
from ..utils.text import truncate_text

DEFAULT_TUTOR_NAME = "Tutor"
DESCRIPTION_SNIPPET_CHARS = 600


def course_match_title(target: TargetItem) -> str:
    return f"New course: {target.title}"


def course_match_message(target: TargetItem) -> str:
    category = target.category_name or "this category"
    return f'A new course "{target.title}" in {category} matches your CV.'


def build_course_match_record(
    target: TargetItem, candidate: CandidateProfile, score: MatchScore
) -> NotificationRecord:
    """Create the unsaved in-app notification for a qualifying tutor.

    The candidate must have a recipient_id.
    """
    return NotificationRecord(
        recipient_id=candidate.recipient_id,
        kind=COURSE_MATCH_KIND,
        candidate_id=candidate.candidate_id,
        target_id=target.target_id,
        title=course_match_title(target),
        message=course_match_message(target),
        payload=build_notification_payload(target, score),
    )


def build_email_context(
    target: TargetItem,
    candidate: CandidateProfile,
    brand_name: str,
    app_base_url: Optional[str] = None,
) -> Dict:
    """Template variables for the course-match email."""
    return {
        "tutor_name": candidate.display_name or DEFAULT_TUTOR_NAME,
        "course_title": target.title,
        "category_name": target.category_name,
        "level": target.level,
        "description": truncate_text(target.description, DESCRIPTION_SNIPPET_CHARS),
        "brand_name": brand_name,
        "app_url": app_base_url,
    }
