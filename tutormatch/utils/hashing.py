"""Hashing utilities for embedding memo keys."""

import hashlib


def compute_text_hash(text: str, model: str = "") -> str:
    """Compute a SHA256 hash identifying a text sent to a model.

    The model name is part of the key so vectors from different embedding
    models never collide.

    Args:
        text: Exact text that is sent to the service (already truncated)
        model: Optional model identifier

    Returns:
        Hexadecimal string representation of SHA256 hash (64 characters)
    """
    composite = f"{model}\n{text}"
    return hashlib.sha256(composite.encode("utf-8")).hexdigest()
