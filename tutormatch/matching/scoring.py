"""Scoring of one candidate/target pair from precomputed inputs."""

from typing import Optional, Sequence

from ..domain.models import Expertise, TargetItem
from .boosts import compute_boost
from .models import MatchScore
from .similarity import cosine_similarity


def score_pair(
    candidate_id: str,
    candidate_vector: Sequence[float],
    expertise: Optional[Expertise],
    target: TargetItem,
    target_vector: Sequence[float],
) -> MatchScore:
    """Combine cosine similarity and expertise boosts for a pair."""
    similarity = cosine_similarity(candidate_vector, target_vector)
    breakdown = compute_boost(
        target.category_name,
        expertise or Expertise.empty(),
        target.title,
        target.composed_text,
    )
    return MatchScore.build(candidate_id, target.target_id, similarity, breakdown)
