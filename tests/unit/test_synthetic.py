"""Tests for synthetic sample generation."""

import numpy as np
import pytest

from robusta.core.synthetic import SampleGenerator


class TestSampleGenerator:
    """Test SampleGenerator class."""

    def test_reproducible(self):
        """Equal seeds generate equal data."""
        first = SampleGenerator(seed=5)
        second = SampleGenerator(seed=5)

        np.testing.assert_array_equal(
            first.circle_points(first.random_circle(), 10),
            second.circle_points(second.random_circle(), 10)
        )

    def test_circle_points_on_circle(self):
        """Generated points lie on the circle."""
        generator = SampleGenerator(seed=1)
        circle = generator.random_circle()
        points = generator.circle_points(circle, 100)

        np.testing.assert_allclose(circle.distance(points), 0.0, atol=1e-12)

    def test_contaminate(self):
        """The requested fraction of rows is perturbed."""
        generator = SampleGenerator(seed=2)
        exact = generator.circle_points(generator.random_circle(), 500)
        noisy, outliers = generator.contaminate(exact, outlier_ratio=0.2, noise_std=1.0)

        assert outliers.sum() == 100
        np.testing.assert_array_equal(noisy[~outliers], exact[~outliers])
        assert np.all(np.linalg.norm(noisy[outliers] - exact[outliers], axis=1) > 0)

    def test_quality_scores_favor_inliers(self):
        """Unperturbed rows have higher quality on average."""
        generator = SampleGenerator(seed=3)
        exact = generator.circle_points(generator.random_circle(), 500)
        noisy, outliers = generator.contaminate(exact)
        scores = generator.quality_scores(exact, noisy)

        assert scores.shape == (500,)
        assert np.all(np.abs(scores[~outliers] - 1.0) <= 0.3)
        assert scores[~outliers].mean() > scores[outliers].mean() + 0.3

    def test_planes_through_point(self):
        """Generated planes contain the point."""
        generator = SampleGenerator(seed=4)
        point = np.array([1.0, 2.0, 3.0])
        planes = generator.planes_through_point(point, 10)

        np.testing.assert_allclose(planes[:, :3] @ point + planes[:, 3], 0.0, atol=1e-12)

    def test_plane_and_line_points(self):
        """Generated points lie on their line or plane."""
        generator = SampleGenerator(seed=6)
        line = generator.random_line()
        plane = generator.random_plane()

        np.testing.assert_allclose(line.signed_distance(generator.line_points(line, 20)), 0.0, atol=1e-10)
        np.testing.assert_allclose(plane.signed_distance(generator.plane_points(plane, 20)), 0.0, atol=1e-10)

    def test_camera_points_in_front(self):
        """Camera correspondences are in front of the camera."""
        generator = SampleGenerator(seed=8)
        camera = generator.random_camera()
        data = generator.camera_correspondences(camera, 30)
        _, R, center = camera.decompose()

        assert data.shape == (30, 5)
        assert np.all(((data[:, :3] - center) @ R.T)[:, 2] > 0)

    @pytest.mark.parametrize("factory", ["random_affine", "random_homography"])
    def test_transformed_points(self, factory):
        """Rows pair points with their transformed positions."""
        generator = SampleGenerator(seed=9)
        transformation = getattr(generator, factory)()
        data = generator.transformed_points(transformation, 15)

        np.testing.assert_allclose(transformation.transform(data[:, :2]), data[:, 2:])
