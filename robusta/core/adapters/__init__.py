"""Model adapters binding geometric types to the robust estimator."""

from .base import ModelAdapter
from .circle import CircleAdapter
from .conic import ConicAdapter, QuadricAdapter
from .line import Line2DAdapter
from .plane import PlaneAdapter, Point3DAdapter
from .transformations import AffineTransformation2DAdapter, ProjectiveTransformation2DAdapter
from .camera import PinholeCameraAdapter

__all__ = [
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
]
