"""Synthetic correspondence generation utilities."""

from typing import Optional, Tuple

import numpy as np

from ..math.camera import intrinsics_matrix
from ..math.rotations import so3_exp
from ..models.geometry import (
    AffineTransformation2D,
    Circle,
    Line2D,
    PinholeCamera,
    Plane,
    ProjectiveTransformation2D,
)


class SampleGenerator:
    """Generator for exact and outlier-contaminated correspondences."""

    def __init__(self, seed: Optional[int] = None):
        """Initialize sample generator.

        Args:
            seed: Random seed for reproducible generation
        """
        self.rng = np.random.default_rng(seed)

    # Contamination

    def contaminate(
        self,
        data: np.ndarray,
        outlier_ratio: float = 0.2,
        noise_std: float = 1.0
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Perturb a random subset of rows with Gaussian noise.

        Args:
            data: Exact correspondences
            outlier_ratio: Fraction of rows to perturb
            noise_std: Standard deviation of the perturbation

        Returns:
            Tuple of (contaminated copy, boolean outlier mask)
        """
        n = len(data)
        n_outliers = int(round(outlier_ratio * n))
        outliers = np.zeros(n, dtype=bool)
        outliers[self.rng.choice(n, size=n_outliers, replace=False)] = True

        noisy = np.array(data, dtype=float)
        noisy[outliers] += self.rng.normal(0.0, noise_std, size=(n_outliers, data.shape[1]))
        return noisy, outliers

    def quality_scores(
        self,
        exact: np.ndarray,
        noisy: np.ndarray,
        jitter: float = 0.3
    ) -> np.ndarray:
        """Quality scores decreasing with the perturbation of each row.

        Unperturbed rows score 1, perturbed rows 1 / (1 + error), both with
        uniform jitter so that the ordering is informative but not exact.

        Args:
            exact: Exact correspondences
            noisy: Contaminated correspondences
            jitter: Half width of the uniform jitter

        Returns:
            Quality score per row
        """
        error = np.linalg.norm(noisy - exact, axis=1)
        return 1.0 / (1.0 + error) + self.rng.uniform(-jitter, jitter, size=len(error))

    # Curves and surfaces

    def random_circle(self) -> Circle:
        center = self.rng.uniform(-10.0, 10.0, size=2)
        return Circle(center, float(self.rng.uniform(1.0, 10.0)))

    def circle_points(self, circle: Circle, n_points: int) -> np.ndarray:
        angles = self.rng.uniform(0.0, 2 * np.pi, size=n_points)
        return circle.center + circle.radius * np.column_stack([np.cos(angles), np.sin(angles)])

    def ellipse_points(
        self,
        n_points: int,
        center: Tuple[float, float] = (1.0, -2.0),
        axes: Tuple[float, float] = (4.0, 2.0),
        angle: float = 0.3
    ) -> np.ndarray:
        """Points on a rotated ellipse."""
        t = self.rng.uniform(0.0, 2 * np.pi, size=n_points)
        local = np.column_stack([axes[0] * np.cos(t), axes[1] * np.sin(t)])
        c, s = np.cos(angle), np.sin(angle)
        return local @ np.array([[c, s], [-s, c]]) + np.asarray(center)

    def ellipsoid_points(
        self,
        n_points: int,
        center: Tuple[float, float, float] = (0.5, -1.0, 2.0),
        axes: Tuple[float, float, float] = (3.0, 2.0, 1.5)
    ) -> np.ndarray:
        """Points on an axis-aligned ellipsoid."""
        directions = self.rng.normal(size=(n_points, 3))
        directions /= np.linalg.norm(directions, axis=1, keepdims=True)
        return np.asarray(center) + directions * np.asarray(axes)

    def random_line(self) -> Line2D:
        angle = self.rng.uniform(0.0, np.pi)
        return Line2D.normalized(np.cos(angle), np.sin(angle), self.rng.uniform(-5.0, 5.0))

    def line_points(self, line: Line2D, n_points: int) -> np.ndarray:
        foot = -line.c * np.array([line.a, line.b])
        direction = np.array([-line.b, line.a])
        t = self.rng.uniform(-20.0, 20.0, size=(n_points, 1))
        return foot + t * direction

    def random_plane(self) -> Plane:
        normal = self.rng.normal(size=3)
        return Plane.normalized(np.append(normal, self.rng.uniform(-5.0, 5.0)))

    def plane_points(self, plane: Plane, n_points: int) -> np.ndarray:
        foot = -plane.d * plane.normal
        basis = np.linalg.svd(plane.normal.reshape(1, 3))[2][1:]
        coords = self.rng.uniform(-10.0, 10.0, size=(n_points, 2))
        return foot + coords @ basis

    def planes_through_point(self, point: np.ndarray, n_planes: int) -> np.ndarray:
        """Unit-normal planes (a, b, c, d) containing a point."""
        normals = self.rng.normal(size=(n_planes, 3))
        normals /= np.linalg.norm(normals, axis=1, keepdims=True)
        return np.column_stack([normals, -normals @ point])

    # Transformations

    def random_affine(self) -> AffineTransformation2D:
        matrix = np.eye(3)
        matrix[:2, :2] = np.eye(2) + self.rng.uniform(-0.5, 0.5, size=(2, 2))
        matrix[:2, 2] = self.rng.uniform(-5.0, 5.0, size=2)
        return AffineTransformation2D(matrix)

    def random_homography(self) -> ProjectiveTransformation2D:
        matrix = np.eye(3)
        matrix[:2, :2] += self.rng.uniform(-0.3, 0.3, size=(2, 2))
        matrix[:2, 2] = self.rng.uniform(-5.0, 5.0, size=2)
        matrix[2, :2] = self.rng.uniform(-1e-3, 1e-3, size=2)
        return ProjectiveTransformation2D.normalized(matrix)

    def transformed_points(self, transformation, n_points: int) -> np.ndarray:
        """Rows (x, y, x', y') of points and their images."""
        points = self.rng.uniform(-50.0, 50.0, size=(n_points, 2))
        return np.hstack([points, transformation.transform(points)])

    # Cameras

    def random_camera(self) -> PinholeCamera:
        """Camera looking at the origin from a few units away."""
        K = intrinsics_matrix(800.0, 780.0, 0.0, 320.0, 240.0)
        R = so3_exp(self.rng.uniform(-0.2, 0.2, size=3))
        # Camera sits on the -z axis of its own frame, 10 units from the origin
        center = -R.T @ np.array([0.0, 0.0, 10.0])
        return PinholeCamera.from_decomposition(K, R, center)

    def camera_correspondences(self, camera: PinholeCamera, n_points: int) -> np.ndarray:
        """Rows (X, Y, Z, u, v) of points around the origin and their projections."""
        points = self.rng.uniform(-2.0, 2.0, size=(n_points, 3))
        return np.hstack([points, camera.project(points)])
