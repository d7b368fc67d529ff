"""Test helper utilities for tutor/course matcher tests."""

from .fakes import (
    EMPTY_EXPERTISE_REPLY,
    FakeOpenAI,
    InMemoryCatalog,
    RecordingNotificationService,
    make_candidate,
    make_target,
    vector_with_similarity,
)

__all__ = [
    "EMPTY_EXPERTISE_REPLY",
    "FakeOpenAI",
    "InMemoryCatalog",
    "RecordingNotificationService",
    "make_candidate",
    "make_target",
    "vector_with_similarity",
]
