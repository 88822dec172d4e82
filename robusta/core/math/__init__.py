"""Math primitives for Robusta."""

from .robust import lmeds_scale, truncated_squared_cost, required_iterations
from .rotations import so3_exp, so3_log, skew_symmetric, quat_to_matrix
from .camera import intrinsics_matrix, intrinsics_parameters, aspect_ratio
from .linear import null_vector, normalize_points
from .jacobians import finite_difference_jacobian

__all__ = [
    "lmeds_scale",
    "truncated_squared_cost",
    "required_iterations",
    "so3_exp",
    "so3_log",
    "skew_symmetric",
    "quat_to_matrix",
    "intrinsics_matrix",
    "intrinsics_parameters",
    "aspect_ratio",
    "null_vector",
    "normalize_points",
    "finite_difference_jacobian",
]
