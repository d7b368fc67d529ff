"""Result types produced by the scoring and ranking steps."""

from dataclasses import dataclass, field
from typing import List, Tuple

from ..domain.models import CandidateProfile


@dataclass(frozen=True)
class BoostBreakdown:
    """Which boost rules fired for a pair, and their contributions."""

    category: float = 0.0
    title: float = 0.0
    text: float = 0.0

    @property
    def total(self) -> float:
        return self.category + self.title + self.text

    def fired(self) -> List[str]:
        """Names of the rules that contributed."""
        return [name for name in ("category", "title", "text") if getattr(self, name) > 0]


@dataclass(frozen=True)
class MatchScore:
    """Score of one candidate against one target.

    ``final_score`` is always ``similarity + boost`` and is not clamped, so it
    can exceed 1.0.
    """

    candidate_id: str
    target_id: str
    similarity: float
    boost: float
    final_score: float
    breakdown: BoostBreakdown = field(default_factory=BoostBreakdown)

    @classmethod
    def build(
        cls, candidate_id: str, target_id: str, similarity: float, breakdown: BoostBreakdown
    ) -> "MatchScore":
        boost = breakdown.total
        return cls(
            candidate_id=candidate_id,
            target_id=target_id,
            similarity=similarity,
            boost=boost,
            final_score=similarity + boost,
            breakdown=breakdown,
        )

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.candidate_id, self.target_id)


@dataclass
class RankedResult:
    """Ordered selection returned by the ranking engine.

    Attributes:
        items: Scores in descending ``final_score`` order, ties in input order
        fallback_used: True if at least one below-threshold item was added to
            reach the minimum result count
        qualified_count: Number of items at or above the threshold
        duplicate_count: Input items dropped as repeated pairs
    """

    items: List[MatchScore] = field(default_factory=list)
    fallback_used: bool = False
    qualified_count: int = 0
    duplicate_count: int = 0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class CandidateMatch:
    """A qualifying tutor paired with its score, handed to the fan-out."""

    candidate: CandidateProfile
    score: MatchScore
