"""Boundary to the course/tutor collaborator.

Everything the engine knows about courses and tutors arrives through a
CatalogSource, already converted to TargetItem / CandidateProfile.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..domain.models import CandidateProfile, TargetItem


class CatalogError(Exception):
    """The catalog could not be read."""


class CatalogSource(ABC):
    """Read-only access to courses and tutors."""

    @abstractmethod
    def list_candidates(self) -> List[CandidateProfile]:
        """All tutors eligible for course-match notifications."""

    @abstractmethod
    def list_targets(self) -> List[TargetItem]:
        """All courses eligible for CV-based recommendations."""

    def get_target(self, target_id: str) -> Optional[TargetItem]:
        """Look up one course by id; None if unknown."""
        for target in self.list_targets():
            if target.target_id == target_id:
                return target
        return None
