"""
Vector Math

Dot and cross products over world-space 3-vectors.
"""

from typing import Sequence, Union
import numpy as np


VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(v: VectorLike) -> np.ndarray:
    """Convert a 3-component sequence (or an (..., 3) array) to float64."""
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape[-1] != 3:
        raise ValueError(f"Expected 3-component vector(s), got shape {arr.shape}")
    return arr


def dot(a: VectorLike, b: VectorLike) -> Union[float, np.ndarray]:
    """
    Dot product of 3-vectors.

    Broadcasts over leading dimensions, so an (N, 3) array of points can be
    projected onto a single direction in one call.

    Returns:
        float for single vectors, ndarray for stacks of vectors
    """
    result = np.sum(as_vector(a) * as_vector(b), axis=-1)
    if np.ndim(result) == 0:
        return float(result)
    return result


def cross(a: VectorLike, b: VectorLike) -> np.ndarray:
    """Cross product of 3-vectors."""
    return np.cross(as_vector(a), as_vector(b))
