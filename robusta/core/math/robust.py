"""Robust statistics shared by the consensus scorers."""

import math

import numpy as np

# Consistency constant of the median absolute deviation for Gaussian noise
MAD_TO_SIGMA = 1.4826


def lmeds_scale(median_squared_residual: float, n_samples: int, sample_size: int) -> float:
    """Robust standard deviation derived from a least median of squares fit.

    Uses the finite-sample correction of Rousseeuw:
    1.4826 * (1 + 5 / (n - k)) * sqrt(median r^2).

    Args:
        median_squared_residual: Median of the squared residuals
        n_samples: Total number of correspondences
        sample_size: Minimal sample size of the model

    Returns:
        Estimated standard deviation of inlier residuals
    """
    correction = 1.0 + 5.0 / max(n_samples - sample_size, 1)
    return MAD_TO_SIGMA * correction * math.sqrt(max(median_squared_residual, 0.0))


def truncated_squared_cost(residuals: np.ndarray, threshold: float) -> float:
    """MSAC cost: sum of squared residuals saturated at threshold^2."""
    return float(np.sum(np.minimum(residuals**2, threshold**2)))


def required_iterations(
    confidence: float,
    inlier_ratio: float,
    sample_size: int,
    max_iterations: int
) -> int:
    """Iterations needed to draw an outlier-free sample with given confidence.

    N = log(1 - c) / log(1 - w^k), clamped to [1, max_iterations].

    Args:
        confidence: Desired probability c of one all-inlier sample
        inlier_ratio: Observed inlier ratio w
        sample_size: Minimal sample size k
        max_iterations: Upper bound for the result

    Returns:
        Required number of iterations
    """
    if sample_size <= 0:
        raise ValueError("sample_size must be >= 1")

    w = min(max(inlier_ratio, 0.0), 1.0)
    if w >= 1.0:
        return 1
    if w <= 0.0:
        return max_iterations

    p_good_sample = w**sample_size
    if p_good_sample <= 1e-300:
        return max_iterations

    denominator = math.log1p(-p_good_sample)
    if denominator == 0.0:
        return max_iterations

    n = math.ceil(math.log(1.0 - confidence) / denominator)
    return int(min(max(n, 1), max_iterations))
