"""Robusta - robust geometric model estimation

RANSAC, LMedS, MSAC, PROSAC and PROMedS over one generic engine, with
adapters for circles, conics, quadrics, lines, planes, points, 2D
transformations and pinhole cameras.
"""

__version__ = "0.1.0"

# Errors
from .core.errors import (
    RobustEstimatorError,
    ConfigurationError,
    NotReadyError,
    LockedError,
    EstimationFailure,
    DegenerateSampleError,
)

# Models
from .core.models.settings import DEFAULT_ROBUST_METHOD, EstimatorSettings, RobustEstimatorMethod
from .core.models.results import ConsensusResult, EstimationOutcome

# Estimation
from .core.estimation.engine import RobustEstimator
from .core.estimation.listener import EstimatorListener

# Adapters
from .core.adapters import (
    ModelAdapter,
    CircleAdapter,
    ConicAdapter,
    QuadricAdapter,
    Line2DAdapter,
    PlaneAdapter,
    Point3DAdapter,
    AffineTransformation2DAdapter,
    ProjectiveTransformation2DAdapter,
    PinholeCameraAdapter,
)

# Refinement
from .core.refinement.refiner import ModelRefiner, RefinerOptions

__all__ = [
    # Version
    "__version__",
    # Errors
    "RobustEstimatorError",
    "ConfigurationError",
    "NotReadyError",
    "LockedError",
    "EstimationFailure",
    "DegenerateSampleError",
    # Models
    "DEFAULT_ROBUST_METHOD",
    "EstimatorSettings",
    "RobustEstimatorMethod",
    "ConsensusResult",
    "EstimationOutcome",
    # Estimation
    "RobustEstimator",
    "EstimatorListener",
    # Adapters
    "ModelAdapter",
    "CircleAdapter",
    "ConicAdapter",
    "QuadricAdapter",
    "Line2DAdapter",
    "PlaneAdapter",
    "Point3DAdapter",
    "AffineTransformation2DAdapter",
    "ProjectiveTransformation2DAdapter",
    "PinholeCameraAdapter",
    # Refinement
    "ModelRefiner",
    "RefinerOptions",
]
