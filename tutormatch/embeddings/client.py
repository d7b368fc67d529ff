"""Embedding client backed by the OpenAI embeddings endpoint."""

import threading
from typing import List, Optional

import openai

from ..logging import get_logger
from ..utils.text import clip_for_service
from .exceptions import EmbeddingFailure

logger = get_logger(__name__, component="embeddings")


class EmbeddingClient:
    """Turn text into fixed-dimension vectors.

    The expected dimension is either configured up front or learned from the
    first successful response; any later vector of a different size is
    rejected so the scorer only ever compares vectors of one dimension.

    Args:
        client: ``openai.OpenAI`` compatible client (timeouts and transport
            retries are configured on it)
        model: Embedding model name
        dimensions: Expected vector size, or None to learn it
        max_input_chars: Character budget applied before the request
    """

    def __init__(
        self,
        client,
        model: str = "text-embedding-3-small",
        dimensions: Optional[int] = None,
        max_input_chars: int = 8000,
    ):
        self.client = client
        self.model = model
        self.max_input_chars = max_input_chars
        self._dimensions = dimensions
        self._lock = threading.Lock()

    @property
    def dimensions(self) -> Optional[int]:
        return self._dimensions

    def prepare_input(self, text: str) -> str:
        """Exact text that would be sent for ``text``."""
        return clip_for_service(text or "", self.max_input_chars)

    def embed(self, text: str) -> List[float]:
        """Embed one text.

        Args:
            text: Text to embed (clipped to the character budget)

        Returns:
            Embedding vector

        Raises:
            EmbeddingFailure: On provider errors, empty input or responses,
                or a dimension mismatch
        """
        payload = self.prepare_input(text)
        if not payload.strip():
            raise EmbeddingFailure("Cannot embed empty text")

        try:
            response = self.client.embeddings.create(model=self.model, input=payload)
        except openai.APITimeoutError as e:
            raise EmbeddingFailure(f"Embedding request timed out: {e}", cause=e) from e
        except openai.OpenAIError as e:
            raise EmbeddingFailure(f"Embedding request failed: {e}", cause=e) from e

        if not response.data:
            raise EmbeddingFailure("Embedding response contained no data")

        vector = [float(value) for value in response.data[0].embedding]
        if not vector:
            raise EmbeddingFailure("Embedding response contained an empty vector")

        self._check_dimensions(len(vector))
        return vector

    def _check_dimensions(self, size: int) -> None:
        with self._lock:
            if self._dimensions is None:
                self._dimensions = size
                logger.debug(
                    f"Embedding dimension set to {size}",
                    extra={"event": "embedding.dimension.learned", "dimensions": size},
                )
                return
            expected = self._dimensions

        if size != expected:
            raise EmbeddingFailure(
                f"Embedding dimension mismatch: expected {expected}, got {size}"
            )
