"""Matching entry points and run orchestration."""

from .models import PullResult, PushRunResult
from .service import MatchingService, build_matching_service

__all__ = ["MatchingService", "build_matching_service", "PullResult", "PushRunResult"]
