"""Utility functions for hashing, time handling, and text handling."""

from .hashing import compute_text_hash
from .text import clip_for_service, contains_any, truncate_text
from .timestamps import ensure_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    # Hashing
    "compute_text_hash",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
    # Text
    "clip_for_service",
    "contains_any",
    "truncate_text",
]
