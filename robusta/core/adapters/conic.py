"""Conic and quadric adapters.

Both fit the implicit equation p^T M p = 0 through homogeneous points
scaled to unit norm. The residual is the algebraic distance of those unit
points, which stays bounded for points far from the origin.
"""

from typing import List

import numpy as np

from ..errors import DegenerateSampleError
from ..math.linear import null_vector
from ..models.geometry import Conic, Quadric, to_homogeneous
from .base import ModelAdapter


def _conic_design(points: np.ndarray) -> np.ndarray:
    x, y, w = to_homogeneous(points).T
    return np.column_stack([x * x, x * y, y * y, x * w, y * w, w * w])


def _quadric_design(points: np.ndarray) -> np.ndarray:
    x, y, z, w = to_homogeneous(points).T
    return np.column_stack([
        x * x, y * y, z * z,
        x * y, x * z, y * z,
        x * w, y * w, z * w,
        w * w
    ])


class ConicAdapter(ModelAdapter):
    """Fit conics to 2D points from five-point samples."""

    sample_size = 5
    dimension = 2

    def fit(self, sample: np.ndarray) -> List[Conic]:
        try:
            coefficients = null_vector(_conic_design(sample), expected_rank=5)
        except np.linalg.LinAlgError as e:
            raise DegenerateSampleError(f"Conic sample is degenerate: {e}") from e
        return [Conic.from_coefficients(coefficients)]

    def residual(self, model: Conic, correspondence: np.ndarray) -> float:
        return float(abs(model.algebraic_distance(correspondence)[0]))

    def residuals(self, model: Conic, data: np.ndarray) -> np.ndarray:
        return np.abs(model.algebraic_distance(data))

    def signed_residuals(self, model: Conic, data: np.ndarray) -> np.ndarray:
        return model.algebraic_distance(data)

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: Conic) -> np.ndarray:
        return model.coefficients()

    def from_parameters(self, parameters: np.ndarray) -> Conic:
        return Conic.from_coefficients(parameters)


class QuadricAdapter(ModelAdapter):
    """Fit quadric surfaces to 3D points from nine-point samples."""

    sample_size = 9
    dimension = 3

    def fit(self, sample: np.ndarray) -> List[Quadric]:
        try:
            coefficients = null_vector(_quadric_design(sample), expected_rank=9)
        except np.linalg.LinAlgError as e:
            raise DegenerateSampleError(f"Quadric sample is degenerate: {e}") from e
        return [Quadric.from_coefficients(coefficients)]

    def residual(self, model: Quadric, correspondence: np.ndarray) -> float:
        return float(abs(model.algebraic_distance(correspondence)[0]))

    def residuals(self, model: Quadric, data: np.ndarray) -> np.ndarray:
        return np.abs(model.algebraic_distance(data))

    def signed_residuals(self, model: Quadric, data: np.ndarray) -> np.ndarray:
        return model.algebraic_distance(data)

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: Quadric) -> np.ndarray:
        return model.coefficients()

    def from_parameters(self, parameters: np.ndarray) -> Quadric:
        return Quadric.from_coefficients(parameters)
