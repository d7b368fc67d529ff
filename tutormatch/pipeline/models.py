"""Results returned by the two matching entry points."""

from dataclasses import dataclass, field
from typing import List

from ..domain.models import Expertise
from ..matching.models import RankedResult
from ..notifications.models import DispatchAttempt


@dataclass
class PullResult:
    """Course recommendations for one CV.

    Attributes:
        ranked: Selected courses, best first
        expertise: Expertise inferred from the CV (empty when degraded)
        fallback_used: True if below-threshold courses were added
        partial: True if the run budget expired before every course was scored
        candidate_unreadable: True if no text could be extracted from the CV;
            the ranking is then empty and no service was called
        excluded_count: Courses skipped because they could not be scored
    """

    ranked: RankedResult = field(default_factory=RankedResult)
    expertise: Expertise = field(default_factory=Expertise.empty)
    partial: bool = False
    candidate_unreadable: bool = False
    excluded_count: int = 0

    @property
    def fallback_used(self) -> bool:
        return self.ranked.fallback_used


@dataclass
class PushRunResult:
    """Outcome of notifying tutors about one new course.

    Attributes:
        target_id: Course announced
        notified_count: Notifications newly stored in this run
        qualified_count: Tutors at or above the push threshold
        duplicate_count: Qualified tutors already notified for this course
        excluded_count: Tutors that could not be scored
        skipped_no_recipient: Qualified tutors without a linked account
        emails_sent / emails_failed: Email delivery outcomes
        partial: True if the run budget expired before every tutor was scored
        attempts: Per-recipient dispatch details
    """

    target_id: str
    notified_count: int = 0
    qualified_count: int = 0
    duplicate_count: int = 0
    excluded_count: int = 0
    skipped_no_recipient: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    partial: bool = False
    attempts: List[DispatchAttempt] = field(default_factory=list)
