"""Plane and point adapters.

``PlaneAdapter`` fits planes to 3D points. ``Point3DAdapter`` is its dual:
it locates the 3D point common to a set of planes given as (a, b, c, d)
rows.
"""

from typing import List

import numpy as np

from ..errors import DegenerateSampleError
from ..models.geometry import Plane
from .base import ModelAdapter


class PlaneAdapter(ModelAdapter):
    """Fit planes to 3D points; the residual is the point-plane distance."""

    sample_size = 3
    dimension = 3

    def fit(self, sample: np.ndarray) -> List[Plane]:
        normal = np.cross(sample[1] - sample[0], sample[2] - sample[0])
        extent = max(np.linalg.norm(sample[1] - sample[0]), np.linalg.norm(sample[2] - sample[0]))
        if extent == 0 or np.linalg.norm(normal) < 1e-12 * extent**2:
            raise DegenerateSampleError("Plane sample points are collinear")
        return [Plane.normalized(np.append(normal, -normal @ sample[0]))]

    def residual(self, model: Plane, correspondence: np.ndarray) -> float:
        return float(abs(model.signed_distance(correspondence)[0]))

    def residuals(self, model: Plane, data: np.ndarray) -> np.ndarray:
        return np.abs(model.signed_distance(data))

    def signed_residuals(self, model: Plane, data: np.ndarray) -> np.ndarray:
        return model.signed_distance(data)

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: Plane) -> np.ndarray:
        return model.coefficients()

    def from_parameters(self, parameters: np.ndarray) -> Plane:
        return Plane.normalized(parameters)


class Point3DAdapter(ModelAdapter):
    """Locate the point where planes meet.

    Planes are rows (a, b, c, d) and the model is an inhomogeneous 3D point.
    The residual is the distance from the point to each plane.
    """

    sample_size = 3
    dimension = 4

    def prepare(self, correspondences) -> np.ndarray:
        data = super().prepare(correspondences)
        norms = np.linalg.norm(data[:, :3], axis=1)
        if np.any(norms < 1e-12):
            raise ValueError("Plane normals must be non-zero")
        return data / norms[:, np.newaxis]

    def fit(self, sample: np.ndarray) -> List[np.ndarray]:
        normals = sample[:, :3]
        if abs(np.linalg.det(normals)) < 1e-10:
            raise DegenerateSampleError("Sample planes do not meet in a single point")
        return [np.linalg.solve(normals, -sample[:, 3])]

    def residual(self, model: np.ndarray, correspondence: np.ndarray) -> float:
        return float(abs(correspondence[:3] @ model + correspondence[3]))

    def residuals(self, model: np.ndarray, data: np.ndarray) -> np.ndarray:
        return np.abs(self.signed_residuals(model, data))

    def signed_residuals(self, model: np.ndarray, data: np.ndarray) -> np.ndarray:
        return data[:, :3] @ model + data[:, 3]

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: np.ndarray) -> np.ndarray:
        return np.asarray(model, dtype=float)

    def from_parameters(self, parameters: np.ndarray) -> np.ndarray:
        return np.array(parameters, dtype=float)
