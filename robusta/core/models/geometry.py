"""Geometric primitives estimated by the model adapters."""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.linalg import rq


def to_homogeneous(points: np.ndarray) -> np.ndarray:
    """Append a unit coordinate and scale each row to unit norm.

    Args:
        points: NxD array of inhomogeneous points

    Returns:
        Nx(D+1) array of normalized homogeneous points
    """
    points = np.atleast_2d(np.asarray(points, dtype=float))
    hom = np.hstack([points, np.ones((points.shape[0], 1))])
    return hom / np.linalg.norm(hom, axis=1, keepdims=True)


@dataclass(frozen=True, eq=False)
class Circle:
    """Circle given by its center and radius."""

    center: np.ndarray
    radius: float

    def distance(self, points: np.ndarray) -> np.ndarray:
        """Signed distance of each point to the circle (positive outside)."""
        points = np.atleast_2d(points)
        return np.linalg.norm(points - self.center, axis=1) - self.radius

    def is_locus(self, point: np.ndarray, threshold: float = 1e-6) -> bool:
        """Check whether a point lies on the circle."""
        return bool(abs(self.distance(point)[0]) <= threshold)


@dataclass(frozen=True, eq=False)
class Conic:
    """Conic a*x^2 + b*x*y + c*y^2 + d*x + e*y + f = 0 as a symmetric 3x3 matrix.

    The matrix is kept with unit Frobenius norm.
    """

    matrix: np.ndarray

    @classmethod
    def from_coefficients(cls, coefficients: np.ndarray) -> "Conic":
        a, b, c, d, e, f = coefficients
        matrix = np.array([
            [a, b / 2, d / 2],
            [b / 2, c, e / 2],
            [d / 2, e / 2, f]
        ], dtype=float)
        return cls(matrix / np.linalg.norm(matrix))

    @classmethod
    def from_circle(cls, circle: Circle) -> "Conic":
        cx, cy = circle.center
        return cls.from_coefficients(np.array([
            1.0, 0.0, 1.0, -2 * cx, -2 * cy, cx**2 + cy**2 - circle.radius**2
        ]))

    def coefficients(self) -> np.ndarray:
        m = self.matrix
        return np.array([m[0, 0], 2 * m[0, 1], m[1, 1], 2 * m[0, 2], 2 * m[1, 2], m[2, 2]])

    def algebraic_distance(self, points: np.ndarray) -> np.ndarray:
        """Evaluate p^T C p for normalized homogeneous points."""
        hom = to_homogeneous(points)
        return np.einsum("ij,jk,ik->i", hom, self.matrix, hom)

    def is_locus(self, point: np.ndarray, threshold: float = 1e-6) -> bool:
        return bool(abs(self.algebraic_distance(point)[0]) <= threshold)


@dataclass(frozen=True, eq=False)
class Quadric:
    """Quadric surface as a symmetric 4x4 matrix with unit Frobenius norm.

    Coefficient order: x^2, y^2, z^2, xy, xz, yz, x, y, z, 1.
    """

    matrix: np.ndarray

    @classmethod
    def from_coefficients(cls, coefficients: np.ndarray) -> "Quadric":
        a, b, c, d, e, f, g, h, i, j = coefficients
        matrix = np.array([
            [a, d / 2, e / 2, g / 2],
            [d / 2, b, f / 2, h / 2],
            [e / 2, f / 2, c, i / 2],
            [g / 2, h / 2, i / 2, j]
        ], dtype=float)
        return cls(matrix / np.linalg.norm(matrix))

    def coefficients(self) -> np.ndarray:
        m = self.matrix
        return np.array([
            m[0, 0], m[1, 1], m[2, 2],
            2 * m[0, 1], 2 * m[0, 2], 2 * m[1, 2],
            2 * m[0, 3], 2 * m[1, 3], 2 * m[2, 3],
            m[3, 3]
        ])

    def algebraic_distance(self, points: np.ndarray) -> np.ndarray:
        hom = to_homogeneous(points)
        return np.einsum("ij,jk,ik->i", hom, self.matrix, hom)

    def is_locus(self, point: np.ndarray, threshold: float = 1e-6) -> bool:
        return bool(abs(self.algebraic_distance(point)[0]) <= threshold)


@dataclass(frozen=True, eq=False)
class Line2D:
    """Line a*x + b*y + c = 0 with a^2 + b^2 = 1."""

    a: float
    b: float
    c: float

    @classmethod
    def normalized(cls, a: float, b: float, c: float) -> "Line2D":
        norm = np.hypot(a, b)
        if norm < 1e-12:
            raise ValueError("Line direction must be non-zero")
        return cls(a / norm, b / norm, c / norm)

    def signed_distance(self, points: np.ndarray) -> np.ndarray:
        points = np.atleast_2d(points)
        return self.a * points[:, 0] + self.b * points[:, 1] + self.c

    def is_locus(self, point: np.ndarray, threshold: float = 1e-6) -> bool:
        return bool(abs(self.signed_distance(point)[0]) <= threshold)


@dataclass(frozen=True, eq=False)
class Plane:
    """Plane a*x + b*y + c*z + d = 0 with a unit normal."""

    normal: np.ndarray
    d: float

    @classmethod
    def normalized(cls, coefficients: np.ndarray) -> "Plane":
        coefficients = np.asarray(coefficients, dtype=float)
        norm = np.linalg.norm(coefficients[:3])
        if norm < 1e-12:
            raise ValueError("Plane normal must be non-zero")
        return cls(coefficients[:3] / norm, float(coefficients[3] / norm))

    def coefficients(self) -> np.ndarray:
        return np.append(self.normal, self.d)

    def signed_distance(self, points: np.ndarray) -> np.ndarray:
        points = np.atleast_2d(points)
        return points @ self.normal + self.d

    def is_locus(self, point: np.ndarray, threshold: float = 1e-6) -> bool:
        return bool(abs(self.signed_distance(point)[0]) <= threshold)


@dataclass(frozen=True, eq=False)
class AffineTransformation2D:
    """2D affine transformation stored as a 3x3 matrix with last row [0, 0, 1]."""

    matrix: np.ndarray

    def transform(self, points: np.ndarray) -> np.ndarray:
        points = np.atleast_2d(points)
        return points @ self.matrix[:2, :2].T + self.matrix[:2, 2]


@dataclass(frozen=True, eq=False)
class ProjectiveTransformation2D:
    """2D homography stored as a 3x3 matrix with unit Frobenius norm."""

    matrix: np.ndarray

    @classmethod
    def normalized(cls, matrix: np.ndarray) -> "ProjectiveTransformation2D":
        matrix = np.asarray(matrix, dtype=float)
        return cls(matrix / np.linalg.norm(matrix))

    def transform(self, points: np.ndarray) -> np.ndarray:
        points = np.atleast_2d(points)
        hom = np.hstack([points, np.ones((points.shape[0], 1))]) @ self.matrix.T
        return hom[:, :2] / hom[:, 2:3]


@dataclass(frozen=True, eq=False)
class PinholeCamera:
    """Pinhole camera P = K R [I | -C] stored as a 3x4 matrix."""

    matrix: np.ndarray

    @classmethod
    def from_decomposition(
        cls,
        intrinsics: np.ndarray,
        rotation: np.ndarray,
        center: np.ndarray
    ) -> "PinholeCamera":
        """Build camera from intrinsics K, rotation R and center C."""
        extrinsic = np.hstack([rotation, -(rotation @ center).reshape(3, 1)])
        return cls(intrinsics @ extrinsic)

    def project(self, points: np.ndarray) -> np.ndarray:
        """Project Nx3 world points to Nx2 image points."""
        points = np.atleast_2d(points)
        hom = np.hstack([points, np.ones((points.shape[0], 1))]) @ self.matrix.T
        return hom[:, :2] / hom[:, 2:3]

    def decompose(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Decompose into intrinsics (K[2, 2] == 1), rotation and center."""
        matrix = self.matrix
        if np.linalg.det(matrix[:, :3]) < 0:
            matrix = -matrix
        K, R = rq(matrix[:, :3])

        # Make the intrinsic diagonal positive
        signs = np.diag(np.sign(np.diag(K)))
        K = K @ signs
        R = signs @ R

        center = -np.linalg.solve(matrix[:, :3], matrix[:, 3])
        return K / K[2, 2], R, center
