"""Pinhole camera intrinsics helpers."""

import numpy as np


def intrinsics_matrix(fx: float, fy: float, skew: float, cx: float, cy: float) -> np.ndarray:
    """Build the upper triangular intrinsics matrix K."""
    return np.array([
        [fx, skew, cx],
        [0.0, fy, cy],
        [0.0, 0.0, 1.0]
    ])


def intrinsics_parameters(K: np.ndarray) -> np.ndarray:
    """Extract [fx, fy, skew, cx, cy] from K (with K[2, 2] == 1)."""
    if K.shape != (3, 3):
        raise ValueError(f"K must be 3x3 matrix, got shape {K.shape}")
    return np.array([K[0, 0], K[1, 1], K[0, 1], K[0, 2], K[1, 2]])


def aspect_ratio(K: np.ndarray) -> float:
    """Ratio fy / fx of an intrinsics matrix."""
    return float(K[1, 1] / K[0, 0])
