"""Circle adapter."""

from typing import List

import numpy as np

from ..errors import DegenerateSampleError
from ..math.linear import normalize_points, null_vector
from ..models.geometry import Circle
from .base import ModelAdapter


class CircleAdapter(ModelAdapter):
    """Fit circles to 2D points.

    The circle through three points solves
    A*(x^2 + y^2) + D*x + E*y + F = 0; collinear samples give A = 0.
    """

    sample_size = 3
    dimension = 2

    def fit(self, sample: np.ndarray) -> List[Circle]:
        points, T = normalize_points(sample)
        x, y = points[:, 0], points[:, 1]
        design = np.column_stack([x**2 + y**2, x, y, np.ones(len(points))])
        A, D, E, F = null_vector(design, expected_rank=3)

        if abs(A) < 1e-10:
            raise DegenerateSampleError("Circle sample points are collinear")

        center = np.array([-D / (2 * A), -E / (2 * A)])
        radius_squared = center @ center - F / A
        if radius_squared <= 0:
            raise DegenerateSampleError("Circle sample has no real radius")

        # Back to the original frame
        scale = T[0, 0]
        center = (center - T[:2, 2]) / scale
        return [Circle(center, float(np.sqrt(radius_squared) / scale))]

    def residual(self, model: Circle, correspondence: np.ndarray) -> float:
        return float(abs(model.distance(correspondence)[0]))

    def residuals(self, model: Circle, data: np.ndarray) -> np.ndarray:
        return np.abs(model.distance(data))

    def signed_residuals(self, model: Circle, data: np.ndarray) -> np.ndarray:
        return model.distance(data)

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: Circle) -> np.ndarray:
        return np.array([model.center[0], model.center[1], model.radius])

    def from_parameters(self, parameters: np.ndarray) -> Circle:
        return Circle(np.array(parameters[:2], dtype=float), float(abs(parameters[2])))
