"""Data models for Robusta."""

from .settings import (
    DEFAULT_ROBUST_METHOD,
    DegeneratePolicy,
    EstimatorSettings,
    RobustEstimatorMethod,
)
from .results import ConsensusResult, EstimationOutcome
from .geometry import (
    AffineTransformation2D,
    Circle,
    Conic,
    Line2D,
    PinholeCamera,
    Plane,
    ProjectiveTransformation2D,
    Quadric,
)

__all__ = [
    "DEFAULT_ROBUST_METHOD",
    "DegeneratePolicy",
    "EstimatorSettings",
    "RobustEstimatorMethod",
    "ConsensusResult",
    "EstimationOutcome",
    "AffineTransformation2D",
    "Circle",
    "Conic",
    "Line2D",
    "PinholeCamera",
    "Plane",
    "ProjectiveTransformation2D",
    "Quadric",
]
