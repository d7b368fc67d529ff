"""Helpers that turn match scores into payloads for storage and display."""

from typing import Dict, Optional

from ..domain.models import TargetItem
from .models import MatchScore

SCORE_PRECISION = 4


def build_notification_payload(target: TargetItem, score: MatchScore) -> Dict:
    """Build the payload stored on a course-match notification.

    Args:
        target: Course that was matched
        score: Score of the tutor against the course

    Returns:
        Dict with course identity and the score components
    """
    return {
        "course_id": target.target_id,
        "course_title": target.title,
        "category_name": target.category_name,
        "similarity": round(score.similarity, SCORE_PRECISION),
        "boost": round(score.boost, SCORE_PRECISION),
        "final_score": round(score.final_score, SCORE_PRECISION),
    }


def build_rationale_dict(score: MatchScore) -> Dict:
    """Lightweight explanation of a score for logs and CLI output."""
    return {
        "similarity": round(score.similarity, SCORE_PRECISION),
        "boost": round(score.boost, SCORE_PRECISION),
        "final_score": round(score.final_score, SCORE_PRECISION),
        "boosts_fired": score.breakdown.fired(),
    }


def serialize_ranked_item(score: MatchScore, target: Optional[TargetItem] = None) -> Dict:
    """Flatten a ranked course for JSON output."""
    item = {
        "course_id": score.target_id,
        **build_rationale_dict(score),
    }
    if target is not None:
        item["title"] = target.title
        item["category_name"] = target.category_name
        item["level"] = target.level
    return item
