"""Semantic matching: cosine similarity, expertise boosts and ranking.

This module provides:
- cosine_similarity: vector similarity with zero-magnitude handling
- compute_boost: category/title/text boost rules
- RankingEngine: threshold, fallback fill and cap under a FlowPolicy
- MatchScore / RankedResult: result types
"""

from .boosts import CATEGORY_BOOST, TEXT_BOOST, TITLE_BOOST, compute_boost
from .engine import RankingEngine
from .models import BoostBreakdown, CandidateMatch, MatchScore, RankedResult
from .scoring import score_pair
from .similarity import cosine_similarity
from .utils import build_notification_payload, build_rationale_dict, serialize_ranked_item

__all__ = [
    "cosine_similarity",
    "compute_boost",
    "score_pair",
    "CATEGORY_BOOST",
    "TITLE_BOOST",
    "TEXT_BOOST",
    "RankingEngine",
    "BoostBreakdown",
    "CandidateMatch",
    "MatchScore",
    "RankedResult",
    "build_notification_payload",
    "build_rationale_dict",
    "serialize_ranked_item",
]
