"""Ranking engine: threshold selection, fallback fill and result cap.

Steps applied to a batch of scores:
1. Drop repeated (candidate, target) pairs, keeping the first occurrence
2. Keep scores at or above the threshold, highest first
3. If fewer than ``min_results`` qualified, top up from the remainder
4. Cap at ``max_results``

Sorting is stable, so equal scores keep their input order.
"""

from typing import Iterable, List, Set, Tuple

from ..config.models import FlowPolicy
from ..logging import get_logger
from .models import MatchScore, RankedResult

logger = get_logger(__name__, component="matching")


def _by_score_desc(scores: List[MatchScore]) -> List[MatchScore]:
    return sorted(scores, key=lambda score: score.final_score, reverse=True)


class RankingEngine:
    """Select and order match scores under a FlowPolicy."""

    def __init__(self, policy: FlowPolicy):
        self.policy = policy

    def rank(self, scores: Iterable[MatchScore]) -> RankedResult:
        """Rank a batch of scores.

        Args:
            scores: Scores in arrival order

        Returns:
            RankedResult honouring the policy's threshold, minimum and cap
        """
        unique, duplicates = self._deduplicate(scores)

        qualified = []
        rest = []
        for score in unique:
            if score.final_score >= self.policy.threshold:
                qualified.append(score)
            else:
                rest.append(score)

        items = _by_score_desc(qualified)
        fallback_used = False

        shortfall = self.policy.min_results - len(items)
        if shortfall > 0 and rest:
            filler = _by_score_desc(rest)[:shortfall]
            items.extend(filler)
            fallback_used = bool(filler)

        if self.policy.max_results is not None:
            items = items[: self.policy.max_results]

        logger.debug(
            "Scores ranked",
            extra={
                "event": "match.ranked",
                "input_count": len(unique) + duplicates,
                "qualified_count": len(qualified),
                "returned_count": len(items),
                "duplicate_count": duplicates,
                "fallback_used": fallback_used,
                "threshold": self.policy.threshold,
            },
        )

        return RankedResult(
            items=items,
            fallback_used=fallback_used,
            qualified_count=len(qualified),
            duplicate_count=duplicates,
        )

    @staticmethod
    def _deduplicate(scores: Iterable[MatchScore]) -> Tuple[List[MatchScore], int]:
        seen: Set[Tuple[str, str]] = set()
        unique = []
        duplicates = 0
        for score in scores:
            if score.pair in seen:
                duplicates += 1
                continue
            seen.add(score.pair)
            unique.append(score)
        return unique, duplicates
