"""Pinhole camera adapter."""

from typing import List, Optional

import numpy as np

from ..errors import DegenerateSampleError
from ..math.camera import aspect_ratio, intrinsics_matrix, intrinsics_parameters
from ..math.linear import normalize_points, null_vector
from ..math.rotations import so3_exp, so3_log
from ..models.geometry import PinholeCamera
from .base import ModelAdapter


class PinholeCameraAdapter(ModelAdapter):
    """Fit pinhole cameras to 3D-2D correspondences with the normalized DLT.

    Correspondences are rows (X, Y, Z, u, v) of a world point and its image
    projection. The residual is the reprojection error in pixels.

    Refinement parametrizes the camera as
    [fx, fy, skew, cx, cy, rx, ry, rz, Cx, Cy, Cz] with an axis-angle
    rotation. Suggested values, when given, are weighted into refinement
    so that the estimated camera is drawn towards them.
    """

    sample_size = 6
    dimension = 5

    def __init__(
        self,
        suggested_skewness: Optional[float] = None,
        suggested_aspect_ratio: Optional[float] = None,
        suggested_principal_point: Optional[np.ndarray] = None,
        suggested_focal_lengths: Optional[np.ndarray] = None,
        suggested_rotation: Optional[np.ndarray] = None,
        suggested_center: Optional[np.ndarray] = None
    ):
        """Initialize adapter.

        Args:
            suggested_skewness: Expected skew of the intrinsics (usually 0)
            suggested_aspect_ratio: Expected fy / fx (usually 1)
            suggested_principal_point: Expected (cx, cy)
            suggested_focal_lengths: Expected (fx, fy)
            suggested_rotation: Expected 3x3 world to camera rotation
            suggested_center: Expected camera center in world coordinates
        """
        self.suggested_skewness = suggested_skewness
        self.suggested_aspect_ratio = suggested_aspect_ratio
        self.suggested_principal_point = self._optional_vector(suggested_principal_point, 2)
        self.suggested_focal_lengths = self._optional_vector(suggested_focal_lengths, 2)
        self.suggested_center = self._optional_vector(suggested_center, 3)

        if suggested_rotation is not None:
            suggested_rotation = np.asarray(suggested_rotation, dtype=float)
            if suggested_rotation.shape != (3, 3):
                raise ValueError(f"Rotation must be 3x3 matrix, got shape {suggested_rotation.shape}")
        self.suggested_rotation = suggested_rotation

    @staticmethod
    def _optional_vector(value, size: int) -> Optional[np.ndarray]:
        if value is None:
            return None
        value = np.asarray(value, dtype=float)
        if value.shape != (size,):
            raise ValueError(f"Expected {size}-element vector, got shape {value.shape}")
        return value

    def fit(self, sample: np.ndarray) -> List[PinholeCamera]:
        try:
            world, T3 = normalize_points(sample[:, :3])
            image, T2 = normalize_points(sample[:, 3:])
            p = null_vector(self._design(world, image), expected_rank=11)
        except np.linalg.LinAlgError as e:
            raise DegenerateSampleError(f"Camera sample is degenerate: {e}") from e

        P = np.linalg.solve(T2, p.reshape(3, 4) @ T3)
        M = P[:, :3]
        if abs(np.linalg.det(M)) < 1e-12 * np.linalg.norm(M) ** 3:
            raise DegenerateSampleError("Camera sample gives a singular projection")
        return [PinholeCamera(P / np.linalg.norm(P))]

    @staticmethod
    def _design(world: np.ndarray, image: np.ndarray) -> np.ndarray:
        rows = []
        for X, (u, v) in zip(np.hstack([world, np.ones((len(world), 1))]), image):
            zeros = np.zeros(4)
            rows.append(np.concatenate([-X, zeros, u * X]))
            rows.append(np.concatenate([zeros, -X, v * X]))
        return np.array(rows)

    def residual(self, model: PinholeCamera, correspondence: np.ndarray) -> float:
        return float(self.residuals(model, correspondence[np.newaxis, :])[0])

    def residuals(self, model: PinholeCamera, data: np.ndarray) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.linalg.norm(model.project(data[:, :3]) - data[:, 3:], axis=1)

    def signed_residuals(self, model: PinholeCamera, data: np.ndarray) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return (model.project(data[:, :3]) - data[:, 3:]).ravel()

    # Refinement

    @property
    def supports_refinement(self) -> bool:
        return True

    def to_parameters(self, model: PinholeCamera) -> np.ndarray:
        K, R, center = model.decompose()
        return np.concatenate([intrinsics_parameters(K), so3_log(R), center])

    def from_parameters(self, parameters: np.ndarray) -> PinholeCamera:
        fx, fy, skew, cx, cy = parameters[:5]
        K = intrinsics_matrix(fx, fy, skew, cx, cy)
        return PinholeCamera.from_decomposition(K, so3_exp(parameters[5:8]), parameters[8:11])

    def has_suggestions(self) -> bool:
        return any(value is not None for value in (
            self.suggested_skewness,
            self.suggested_aspect_ratio,
            self.suggested_principal_point,
            self.suggested_focal_lengths,
            self.suggested_rotation,
            self.suggested_center
        ))

    def suggestion_residuals(self, parameters: np.ndarray) -> np.ndarray:
        K = intrinsics_matrix(*parameters[:5])
        terms = []

        if self.suggested_skewness is not None:
            terms.append([parameters[2] - self.suggested_skewness])
        if self.suggested_aspect_ratio is not None:
            terms.append([aspect_ratio(K) - self.suggested_aspect_ratio])
        if self.suggested_principal_point is not None:
            terms.append(parameters[3:5] - self.suggested_principal_point)
        if self.suggested_focal_lengths is not None:
            terms.append(parameters[:2] - self.suggested_focal_lengths)
        if self.suggested_rotation is not None:
            terms.append(so3_log(self.suggested_rotation.T @ so3_exp(parameters[5:8])))
        if self.suggested_center is not None:
            terms.append(parameters[8:11] - self.suggested_center)

        if not terms:
            return np.zeros(0)
        return np.concatenate([np.asarray(term, dtype=float) for term in terms])
