"""Refinement diagnostics: Jacobian rank and parameter covariance."""

import numpy as np
from typing import Dict, Any
from scipy.linalg import svd


def analyze_jacobian_rank(jacobian: np.ndarray, tolerance: float = 1e-10) -> Dict[str, Any]:
    """Analyze Jacobian matrix rank and condition.

    Args:
        jacobian: Jacobian matrix
        tolerance: Numerical tolerance for rank determination

    Returns:
        Dictionary with rank analysis
    """
    if jacobian.size == 0:
        return {
            "rank": 0,
            "full_rank": True,
            "condition_number": 1.0,
            "singular_values": [],
            "nullspace_dimension": 0
        }

    s = svd(jacobian, compute_uv=False)

    # Determine numerical rank
    rank = int(np.sum(s > tolerance * s[0])) if s[0] > 0 else 0
    nullspace_dim = jacobian.shape[1] - rank

    # Condition number
    condition_number = s[0] / s[-1] if s[-1] > 0 else np.inf

    return {
        "rank": rank,
        "full_rank": nullspace_dim == 0,
        "condition_number": float(condition_number),
        "singular_values": s.tolist(),
        "nullspace_dimension": int(nullspace_dim),
        "matrix_shape": jacobian.shape,
    }


def estimate_covariance(jacobian: np.ndarray, tolerance: float = 1e-10) -> np.ndarray:
    """Covariance approximation (J^T J)^-1 of least squares parameters.

    Residuals must already be divided by their standard deviation. Rank
    deficient problems (e.g. scale-free homogeneous parametrizations) fall
    back to the pseudo-inverse, which leaves gauge directions with zero
    variance.

    Args:
        jacobian: Jacobian of the weighted residuals at the solution
        tolerance: Relative tolerance for rank determination

    Returns:
        Parameter covariance matrix
    """
    JtJ = jacobian.T @ jacobian
    analysis = analyze_jacobian_rank(jacobian, tolerance)

    if analysis["full_rank"]:
        try:
            return np.linalg.inv(JtJ)
        except np.linalg.LinAlgError:
            pass

    return np.linalg.pinv(JtJ, rcond=tolerance)
