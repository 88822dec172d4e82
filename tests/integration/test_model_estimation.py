"""End-to-end estimation of every model type and failure handling."""

import numpy as np
import pytest

from robusta import (
    AffineTransformation2DAdapter,
    CircleAdapter,
    ConicAdapter,
    DegenerateSampleError,
    EstimationFailure,
    Line2DAdapter,
    LockedError,
    PinholeCameraAdapter,
    PlaneAdapter,
    Point3DAdapter,
    ProjectiveTransformation2DAdapter,
    QuadricAdapter,
    RobustEstimator,
)
from robusta.core.adapters.base import ModelAdapter
from robusta.core.synthetic import SampleGenerator


def contaminated(generator, exact, noise_std=1.0):
    noisy, outliers = generator.contaminate(exact, outlier_ratio=0.2, noise_std=noise_std)
    return noisy, outliers, generator.quality_scores(exact, noisy)


def estimate(adapter, data, method, scores=None, **settings):
    estimator = RobustEstimator(
        adapter,
        method=method,
        correspondences=data,
        quality_scores=scores,
        seed=0,
        **settings
    )
    return estimator.estimate()


@pytest.mark.parametrize("method", ["ransac", "msac", "prosac", "lmeds", "promeds"])
class TestModelTypes:
    """Every adapter recovers its model from contaminated data."""

    def settings(self, method, threshold):
        if method in ("lmeds", "promeds"):
            return {"stop_threshold": threshold}
        return {"threshold": threshold}

    def test_line(self, method):
        generator = SampleGenerator(seed=10)
        line = generator.random_line()
        exact = generator.line_points(line, 200)
        noisy, outliers, scores = contaminated(generator, exact)

        outcome = estimate(Line2DAdapter(), noisy, method, scores, **self.settings(method, 1e-8))

        distances = outcome.model.signed_distance(exact[~outliers])
        np.testing.assert_allclose(distances, 0.0, atol=1e-7)

    def test_plane(self, method):
        generator = SampleGenerator(seed=11)
        plane = generator.random_plane()
        exact = generator.plane_points(plane, 200)
        noisy, outliers, scores = contaminated(generator, exact)

        outcome = estimate(PlaneAdapter(), noisy, method, scores, **self.settings(method, 1e-8))

        distances = outcome.model.signed_distance(exact[~outliers])
        np.testing.assert_allclose(distances, 0.0, atol=1e-7)

    def test_point_from_planes(self, method):
        generator = SampleGenerator(seed=12)
        point = np.array([0.5, -1.5, 2.0])
        exact = generator.planes_through_point(point, 100)
        noisy, _, scores = contaminated(generator, exact, noise_std=0.5)

        outcome = estimate(Point3DAdapter(), noisy, method, scores, **self.settings(method, 1e-8))

        np.testing.assert_allclose(outcome.model, point, atol=1e-7)

    def test_conic(self, method):
        generator = SampleGenerator(seed=13)
        exact = generator.ellipse_points(200)
        noisy, outliers, scores = contaminated(generator, exact)
        adapter = ConicAdapter()

        outcome = estimate(adapter, noisy, method, scores, **self.settings(method, 1e-9))

        np.testing.assert_allclose(adapter.residuals(outcome.model, exact[~outliers]), 0.0, atol=1e-8)

    def test_quadric(self, method):
        generator = SampleGenerator(seed=14)
        exact = generator.ellipsoid_points(200)
        noisy, outliers, scores = contaminated(generator, exact)
        adapter = QuadricAdapter()

        outcome = estimate(adapter, noisy, method, scores, **self.settings(method, 1e-9))

        np.testing.assert_allclose(adapter.residuals(outcome.model, exact[~outliers]), 0.0, atol=1e-8)

    def test_affine(self, method):
        generator = SampleGenerator(seed=15)
        affine = generator.random_affine()
        exact = generator.transformed_points(affine, 200)
        noisy, _, scores = contaminated(generator, exact)

        outcome = estimate(
            AffineTransformation2DAdapter(), noisy, method, scores, **self.settings(method, 1e-7)
        )

        np.testing.assert_allclose(outcome.model.matrix, affine.matrix, atol=1e-8)

    def test_homography(self, method):
        generator = SampleGenerator(seed=16)
        homography = generator.random_homography()
        exact = generator.transformed_points(homography, 200)
        noisy, _, scores = contaminated(generator, exact)

        outcome = estimate(
            ProjectiveTransformation2DAdapter(), noisy, method, scores, **self.settings(method, 1e-6)
        )

        points = exact[:, :2]
        np.testing.assert_allclose(outcome.model.transform(points), homography.transform(points), atol=1e-5)

    def test_camera(self, method):
        generator = SampleGenerator(seed=17)
        camera = generator.random_camera()
        exact = generator.camera_correspondences(camera, 150)
        noisy, outliers, scores = contaminated(generator, exact)
        adapter = PinholeCameraAdapter()

        outcome = estimate(adapter, noisy, method, scores, **self.settings(method, 1e-5))

        np.testing.assert_allclose(adapter.residuals(outcome.model, exact[~outliers]), 0.0, atol=1e-4)
        K, _, center = outcome.model.decompose()
        K_true, _, center_true = camera.decompose()
        np.testing.assert_allclose(K, K_true, rtol=1e-5, atol=1e-4)
        np.testing.assert_allclose(center, center_true, atol=1e-6)


class AlwaysDegenerateAdapter(ModelAdapter):
    """Adapter that never produces a model."""

    sample_size = 2
    dimension = 2

    def __init__(self):
        self.fits = 0

    def fit(self, sample):
        self.fits += 1
        raise DegenerateSampleError("always degenerate")

    def residual(self, model, correspondence):
        return 0.0


class EmptyFitAdapter(AlwaysDegenerateAdapter):
    """Adapter returning no candidates instead of raising."""

    def fit(self, sample):
        self.fits += 1
        return []


class BrokenRefinementAdapter(CircleAdapter):
    """Circle adapter whose refinement residuals are not finite."""

    def signed_residuals(self, model, data):
        return np.full(len(data), np.nan)


class TestEstimationFailures:
    """Failures end the estimation cleanly."""

    @pytest.mark.parametrize("adapter_class", [AlwaysDegenerateAdapter, EmptyFitAdapter])
    def test_all_degenerate_consumes_iterations(self, adapter_class, quiet_listener):
        """Degenerate samples spend iterations and end in EstimationFailure."""
        adapter = adapter_class()
        estimator = RobustEstimator(
            adapter, method="ransac", correspondences=np.zeros((10, 2)),
            listener=quiet_listener, max_iterations=50
        )

        with pytest.raises(EstimationFailure):
            estimator.estimate()

        assert adapter.fits == 50
        assert quiet_listener.starts == 1
        assert quiet_listener.ends == 1
        assert quiet_listener.iterations == list(range(1, 51))
        assert not estimator.is_locked

    def test_retry_policy_bounded(self, quiet_listener):
        """The retry policy redraws a bounded number of times per iteration."""
        adapter = AlwaysDegenerateAdapter()
        estimator = RobustEstimator(
            adapter, method="lmeds", correspondences=np.zeros((10, 2)),
            listener=quiet_listener, max_iterations=20,
            degenerate_policy="retry", max_degenerate_retries=5
        )

        with pytest.raises(EstimationFailure):
            estimator.estimate()

        assert adapter.fits == 100
        assert len(quiet_listener.iterations) == 20
        assert not estimator.is_locked

    def test_retry_policy_recovers(self, generator):
        """Redrawn samples let the estimator skip coincident points."""
        exact = generator.line_points(generator.random_line(), 40)
        data = np.vstack([exact, np.repeat(exact[:1], 40, axis=0)])

        estimator = RobustEstimator(
            Line2DAdapter(), method="ransac", correspondences=data,
            threshold=1e-8, degenerate_policy="retry", seed=1
        )

        outcome = estimator.estimate()
        np.testing.assert_allclose(outcome.model.signed_distance(exact), 0.0, atol=1e-7)

    def test_refinement_failure(self, circle_scenario, quiet_listener):
        """A refinement that breaks down is an estimation failure."""
        estimator = RobustEstimator(
            BrokenRefinementAdapter(), method="msac",
            correspondences=circle_scenario["noisy"], listener=quiet_listener, threshold=1e-7
        )

        with pytest.raises(EstimationFailure):
            estimator.estimate()

        assert quiet_listener.ends == 1
        assert not estimator.is_locked

    def test_covariance_failure(self, circle_scenario, quiet_listener, monkeypatch):
        """A failing covariance estimate is an estimation failure with one end event."""
        monkeypatch.setattr(
            "robusta.core.refinement.refiner.finite_difference_jacobian",
            lambda fun, x: np.full((3, len(x)), np.nan)
        )
        estimator = RobustEstimator(
            CircleAdapter(), method="msac", correspondences=circle_scenario["noisy"],
            listener=quiet_listener, threshold=1e-7, covariance_kept=True
        )

        with pytest.raises(EstimationFailure):
            estimator.estimate()

        assert quiet_listener.ends == 1
        assert not estimator.is_locked
        assert estimator.covariance is None

    def test_retry_redraws_keep_prosac_schedule(self, quiet_listener):
        """Retried draws do not count towards the sampling window growth."""
        adapter = AlwaysDegenerateAdapter()
        estimator = RobustEstimator(
            adapter, method="prosac", correspondences=np.zeros((50, 2)),
            quality_scores=np.linspace(1.0, 0.0, 50), listener=quiet_listener,
            max_iterations=10, degenerate_policy="retry", max_degenerate_retries=4
        )
        samplers = []
        create_sampler = estimator._create_sampler

        def recording_sampler(rng):
            samplers.append(create_sampler(rng))
            return samplers[-1]

        estimator._create_sampler = recording_sampler

        with pytest.raises(EstimationFailure):
            estimator.estimate()

        assert adapter.fits == 40
        assert samplers[0].draws == 10

    def test_unlocked_after_listener_error(self, circle_scenario):
        """Errors raised by listeners propagate and release the lock."""

        class FailingListener:
            def on_estimate_start(self, estimator):
                raise RuntimeError("listener failed")

        estimator = RobustEstimator(
            CircleAdapter(), method="ransac",
            correspondences=circle_scenario["noisy"], listener=FailingListener()
        )

        with pytest.raises(RuntimeError):
            estimator.estimate()

        assert not estimator.is_locked
        estimator.listener = None
        estimator.threshold = 1e-7
        assert estimator.estimate().model is not None

    def test_mutators_rejected_while_locked(self, circle_scenario, listener):
        """Every mutator raises LockedError inside callbacks."""
        estimator = RobustEstimator(
            CircleAdapter(), method="ransac", correspondences=circle_scenario["noisy"],
            listener=listener, threshold=1e-7
        )

        estimator.estimate()

        assert listener.locked_states and all(listener.locked_states)
        assert listener.accepted_mutations == 0
        assert estimator.threshold == 1e-7
        assert estimator.listener is listener

        with estimator._lock:
            with pytest.raises(LockedError):
                estimator.configure(threshold=1.0)
        assert estimator.threshold == 1e-7


class TestProgressiveSampling:
    """Quality scores steer PROSAC towards good correspondences."""

    def test_prosac_finds_model_in_first_iterations(self, circle_scenario, quiet_listener):
        """Informative quality scores make the first sample all inliers."""
        data = circle_scenario
        scores = np.where(data["outliers"], 0.0, 1.0) + np.linspace(0.0, 1e-3, 800)

        estimator = RobustEstimator(
            CircleAdapter(), method="prosac", correspondences=data["noisy"],
            quality_scores=scores, listener=quiet_listener, threshold=1e-7,
            compute_and_keep_inliers=True
        )

        outcome = estimator.estimate()

        assert outcome.consensus.num_inliers == 640
        assert outcome.iterations <= 10

    def test_promeds_stops_on_first_clean_sample(self, circle_scenario):
        """PROMedS stops at once when the best ranked samples are clean."""
        data = circle_scenario
        scores = np.where(data["outliers"], 0.0, 1.0)

        outcome = estimate(
            CircleAdapter(), data["noisy"], "promeds", scores, stop_threshold=1e-8
        )

        assert outcome.iterations == 1


    @pytest.mark.parametrize("method, settings", [
        ("prosac", {"threshold": 1e-7}),
        ("promeds", {"stop_threshold": 1e-8}),
    ])
    def test_misleading_ranking_recovered(self, method, settings):
        """Outliers ranked first still leave the inliers reachable within the budget."""
        generator = SampleGenerator(seed=21)
        circle = generator.random_circle()
        exact = generator.circle_points(circle, 100)
        noisy = exact.copy()
        noisy[:35] += generator.rng.normal(0.0, 1.0, size=(35, 2))
        scores = np.linspace(1.0, 0.0, 100)

        outcome = estimate(CircleAdapter(), noisy, method, scores, max_iterations=5000, **settings)

        assert outcome.consensus.num_inliers == 65
        assert outcome.iterations < 5000
        np.testing.assert_allclose(outcome.model.center, circle.center, atol=1e-6)

    def test_window_spans_data_within_budget(self, circle_scenario):
        """The sampling window covers every correspondence by the last iteration."""
        estimator = RobustEstimator(
            CircleAdapter(), method="prosac", correspondences=circle_scenario["noisy"],
            quality_scores=circle_scenario["scores"], max_iterations=300
        )
        sampler = estimator._create_sampler(np.random.default_rng(0))

        for _ in range(100):
            sampler.sample()
        assert sampler.window_size < 800
        for _ in range(200):
            sampler.sample()

        assert sampler.growth_limit == estimator.max_iterations
        assert sampler.window_size == 800


class TestOpenCVAgreement:
    """Cross-check fitted models with OpenCV."""

    def test_homography_matches_opencv(self):
        cv2 = pytest.importorskip("cv2")
        generator = SampleGenerator(seed=19)
        data = generator.transformed_points(generator.random_homography(), 4)

        (model,) = ProjectiveTransformation2DAdapter().fit(data)
        expected = cv2.getPerspectiveTransform(
            data[:, :2].astype(np.float32), data[:, 2:].astype(np.float32)
        )

        np.testing.assert_allclose(model.matrix / model.matrix[2, 2], expected / expected[2, 2], rtol=1e-3, atol=1e-5)

    def test_camera_projection_matches_opencv(self):
        cv2 = pytest.importorskip("cv2")
        generator = SampleGenerator(seed=20)
        camera = generator.random_camera()
        K, R, center = camera.decompose()
        points = generator.rng.uniform(-1.0, 1.0, size=(10, 3))

        rvec, _ = cv2.Rodrigues(R)
        projected, _ = cv2.projectPoints(points, rvec, -R @ center, K, np.zeros(5))

        np.testing.assert_allclose(camera.project(points), projected.reshape(-1, 2), atol=1e-6)
