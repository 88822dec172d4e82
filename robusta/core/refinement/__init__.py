"""Nonlinear refinement of robustly estimated models."""

from .refiner import (
    ModelRefiner,
    RefinementError,
    RefinementResult,
    RefinerOptions,
    suggestion_weights,
)
from .diagnostics import analyze_jacobian_rank, estimate_covariance

__all__ = [
    "ModelRefiner",
    "RefinementError",
    "RefinementResult",
    "RefinerOptions",
    "suggestion_weights",
    "analyze_jacobian_rank",
    "estimate_covariance",
]
