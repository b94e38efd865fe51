"""Vector similarity math shared by the index and the vector store."""

from collections.abc import Sequence

import numpy as np

from ..domain.exceptions import DimensionMismatchError

VectorLike = Sequence[float] | np.ndarray


def _as_pair(a: VectorLike, b: VectorLike) -> tuple[np.ndarray, np.ndarray]:
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise DimensionMismatchError(
            "Vectors must have same dimensions",
            context={"left": int(va.size), "right": int(vb.size)},
        )
    return va, vb


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    va, vb = _as_pair(a, b)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def euclidean_distance(a: VectorLike, b: VectorLike) -> float:
    """L2 distance between two vectors.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    va, vb = _as_pair(a, b)
    return float(np.linalg.norm(va - vb))
