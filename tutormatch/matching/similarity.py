"""Cosine similarity between embedding vectors."""

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Args:
        a: First vector
        b: Second vector, same dimension as ``a``

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero magnitude

    Raises:
        ValueError: If the vectors have different dimensions
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)

    if va.shape != vb.shape:
        raise ValueError(f"Vector dimension mismatch: {va.shape} vs {vb.shape}")

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))
