"""2D transformation adapters.

Correspondences are rows (x, y, x', y') pairing an input point with its
transformed position. The residual is the transfer error ||T(x, y) - (x', y')||.
"""

from typing import List

import numpy as np

from ..errors import DegenerateSampleError
from ..math.linear import normalize_points, null_vector
from ..models.geometry import AffineTransformation2D, ProjectiveTransformation2D
from .base import ModelAdapter


class _TransferErrorAdapter(ModelAdapter):
    """Shared residuals of point-pair correspondences."""

    dimension = 4

    def residual(self, model, correspondence: np.ndarray) -> float:
        return float(self.residuals(model, correspondence[np.newaxis, :])[0])

    def residuals(self, model, data: np.ndarray) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.linalg.norm(model.transform(data[:, :2]) - data[:, 2:], axis=1)

    def signed_residuals(self, model, data: np.ndarray) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return (model.transform(data[:, :2]) - data[:, 2:]).ravel()

    @property
    def supports_refinement(self) -> bool:
        return True


class AffineTransformation2DAdapter(_TransferErrorAdapter):
    """Fit 2D affine transformations from three point pairs."""

    sample_size = 3

    def fit(self, sample: np.ndarray) -> List[AffineTransformation2D]:
        design = np.column_stack([sample[:, :2], np.ones(len(sample))])
        if abs(np.linalg.det(design)) < 1e-10 * max(1.0, np.max(np.abs(design))) ** 2:
            raise DegenerateSampleError("Affine sample points are collinear")

        # Rows of the linear part and translation, one column per output axis
        solution = np.linalg.solve(design, sample[:, 2:])
        matrix = np.eye(3)
        matrix[:2, :] = solution.T
        return [AffineTransformation2D(matrix)]

    def to_parameters(self, model: AffineTransformation2D) -> np.ndarray:
        return model.matrix[:2, :].ravel()

    def from_parameters(self, parameters: np.ndarray) -> AffineTransformation2D:
        matrix = np.eye(3)
        matrix[:2, :] = np.reshape(parameters, (2, 3))
        return AffineTransformation2D(matrix)


class ProjectiveTransformation2DAdapter(_TransferErrorAdapter):
    """Fit 2D homographies from four point pairs with the normalized DLT."""

    sample_size = 4

    def fit(self, sample: np.ndarray) -> List[ProjectiveTransformation2D]:
        try:
            source, T1 = normalize_points(sample[:, :2])
            target, T2 = normalize_points(sample[:, 2:])
            h = null_vector(self._design(source, target), expected_rank=8)
        except np.linalg.LinAlgError as e:
            raise DegenerateSampleError(f"Homography sample is degenerate: {e}") from e

        H = np.linalg.solve(T2, h.reshape(3, 3) @ T1)
        if abs(np.linalg.det(H)) < 1e-12 * np.linalg.norm(H) ** 3:
            raise DegenerateSampleError("Homography sample gives a singular transformation")
        return [ProjectiveTransformation2D.normalized(H)]

    @staticmethod
    def _design(source: np.ndarray, target: np.ndarray) -> np.ndarray:
        rows = []
        for (x, y), (u, v) in zip(source, target):
            rows.append([-x, -y, -1, 0, 0, 0, u * x, u * y, u])
            rows.append([0, 0, 0, -x, -y, -1, v * x, v * y, v])
        return np.array(rows, dtype=float)

    def to_parameters(self, model: ProjectiveTransformation2D) -> np.ndarray:
        return model.matrix.ravel()

    def from_parameters(self, parameters: np.ndarray) -> ProjectiveTransformation2D:
        return ProjectiveTransformation2D.normalized(np.reshape(parameters, (3, 3)))
