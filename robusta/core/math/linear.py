"""Linear algebra helpers for minimal-sample solvers."""

from typing import Tuple

import numpy as np
from scipy.linalg import svd


def null_vector(A: np.ndarray, expected_rank: int, tolerance: float = 1e-10) -> np.ndarray:
    """Right singular vector of the smallest singular value of A.

    Args:
        A: Design matrix
        expected_rank: Rank the matrix must reach for a unique solution
        tolerance: Relative tolerance on singular values

    Returns:
        Unit null-space vector

    Raises:
        np.linalg.LinAlgError: if A is rank deficient
    """
    _, s, Vt = svd(A, full_matrices=True)
    rank = int(np.sum(s > tolerance * s[0])) if len(s) > 0 and s[0] > 0 else 0
    if rank < expected_rank:
        raise np.linalg.LinAlgError(f"Design matrix rank {rank} < {expected_rank}")
    return Vt[-1]


def normalize_points(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Hartley normalization: centroid at origin, mean distance sqrt(D).

    Args:
        points: NxD array of inhomogeneous points

    Returns:
        Tuple of (normalized NxD points, (D+1)x(D+1) similarity transform)
    """
    points = np.asarray(points, dtype=float)
    dim = points.shape[1]
    centroid = points.mean(axis=0)
    mean_distance = np.mean(np.linalg.norm(points - centroid, axis=1))
    if mean_distance < 1e-12:
        raise np.linalg.LinAlgError("Points are coincident")

    scale = np.sqrt(dim) / mean_distance
    T = np.eye(dim + 1)
    T[:dim, :dim] *= scale
    T[:dim, dim] = -scale * centroid
    return (points - centroid) * scale, T
