"""2D line adapter."""

from typing import List

import numpy as np

from ..errors import DegenerateSampleError
from ..models.geometry import Line2D
from .base import ModelAdapter


class Line2DAdapter(ModelAdapter):
    """Fit 2D lines to points; the residual is the point-line distance."""

    sample_size = 2
    dimension = 2

    def fit(self, sample: np.ndarray) -> List[Line2D]:
        p, q = np.hstack([sample, np.ones((2, 1))])
        a, b, c = np.cross(p, q)
        try:
            return [Line2D.normalized(a, b, c)]
        except ValueError as e:
            raise DegenerateSampleError("Line sample points coincide") from e

    def residual(self, model: Line2D, correspondence: np.ndarray) -> float:
        return float(abs(model.signed_distance(correspondence)[0]))

    def residuals(self, model: Line2D, data: np.ndarray) -> np.ndarray:
        return np.abs(model.signed_distance(data))

    def signed_residuals(self, model: Line2D, data: np.ndarray) -> np.ndarray:
        return model.signed_distance(data)

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: Line2D) -> np.ndarray:
        return np.array([model.a, model.b, model.c])

    def from_parameters(self, parameters: np.ndarray) -> Line2D:
        return Line2D.normalized(*parameters)
