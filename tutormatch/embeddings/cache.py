"""Per-run embedding memo.

Guarantees one provider call per distinct (clipped) text while the memo is
alive. Threads asking for a text whose call is already in flight block on
that call instead of issuing their own. A failed call is handed to every
waiter and then forgotten, so it is never served as a cached value.
"""

import threading
from concurrent.futures import Future
from typing import Dict, List

from ..logging import get_logger
from ..utils.hashing import compute_text_hash
from .client import EmbeddingClient

logger = get_logger(__name__, component="embeddings")


class MemoizedEmbedder:
    """Thread-safe memoising wrapper around an EmbeddingClient."""

    def __init__(self, client: EmbeddingClient):
        self.client = client
        self._entries: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self.calls = 0

    def embed(self, text: str) -> List[float]:
        """Return the embedding of ``text``, calling the provider at most once.

        Raises:
            EmbeddingFailure: If the provider call for this text failed
        """
        key = compute_text_hash(self.client.prepare_input(text), self.client.model)

        with self._lock:
            entry = self._entries.get(key)
            owner = entry is None
            if owner:
                entry = Future()
                self._entries[key] = entry
                self.calls += 1

        if not owner:
            return list(entry.result())

        try:
            vector = self.client.embed(text)
        except Exception as e:
            with self._lock:
                self._entries.pop(key, None)
            entry.set_exception(e)
            raise

        entry.set_result(vector)
        return list(vector)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.done())
