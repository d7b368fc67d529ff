"""Text embedding client and per-run memo."""

from .cache import MemoizedEmbedder
from .client import EmbeddingClient
from .exceptions import EmbeddingFailure

__all__ = ["EmbeddingClient", "MemoizedEmbedder", "EmbeddingFailure"]
