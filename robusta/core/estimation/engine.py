"""Generic robust estimator shared by every model type."""

import logging
from typing import Any, List, Optional, Tuple, Union

import numpy as np
from pydantic import ValidationError

from ..adapters.base import ModelAdapter
from ..errors import (
    ConfigurationError,
    DegenerateSampleError,
    EstimationFailure,
    NotReadyError,
)
from ..models.results import ConsensusResult, EstimationOutcome
from ..models.settings import DEFAULT_ROBUST_METHOD, EstimatorSettings, RobustEstimatorMethod
from ..refinement.refiner import ModelRefiner, RefinementError, RefinerOptions, suggestion_weights
from .iteration import IterationController
from .listener import EstimatorListener, LockGuard
from .samplers import ProsacSampler, Sampler, UniformSampler
from .scoring import LMedSScorer, MsacScorer, RansacScorer, Scorer
from .tracker import BestModelTracker


def _setting(name: str) -> property:
    """Property reading a settings field and assigning it through ``configure``."""

    def getter(self):
        return getattr(self._settings, name)

    def setter(self, value):
        self.configure(**{name: value})

    return property(getter, setter, doc=EstimatorSettings.model_fields[name].description)


def _as_method(method: Union[str, RobustEstimatorMethod]) -> RobustEstimatorMethod:
    try:
        return RobustEstimatorMethod(method)
    except ValueError as e:
        raise ConfigurationError(f"Unknown robust estimator method: {method!r}") from e


class RobustEstimator:
    """Fit a model to outlier-contaminated correspondences.

    The estimator draws minimal samples, fits candidate models through the
    adapter, scores them against all correspondences and keeps the best one.
    The selected method decides how samples are drawn (uniformly or guided
    by quality scores) and how candidates are scored (inlier count,
    truncated squared error or median squared residual).

    Data and settings can only be changed while the estimator is idle;
    during ``estimate()`` every mutator raises ``LockedError``.
    """

    threshold = _setting("threshold")
    stop_threshold = _setting("stop_threshold")
    inlier_factor = _setting("inlier_factor")
    confidence = _setting("confidence")
    max_iterations = _setting("max_iterations")
    progress_delta = _setting("progress_delta")
    result_refined = _setting("result_refined")
    covariance_kept = _setting("covariance_kept")
    compute_and_keep_inliers = _setting("compute_and_keep_inliers")
    compute_and_keep_residuals = _setting("compute_and_keep_residuals")
    refinement_weighted_by_quality = _setting("refinement_weighted_by_quality")
    min_suggestion_weight = _setting("min_suggestion_weight")
    max_suggestion_weight = _setting("max_suggestion_weight")
    suggestion_weight_step = _setting("suggestion_weight_step")
    degenerate_policy = _setting("degenerate_policy")
    max_degenerate_retries = _setting("max_degenerate_retries")
    seed = _setting("seed")

    def __init__(
        self,
        adapter: ModelAdapter,
        method: Union[str, RobustEstimatorMethod] = DEFAULT_ROBUST_METHOD,
        correspondences=None,
        quality_scores=None,
        listener: Optional[EstimatorListener] = None,
        refiner_options: Optional[RefinerOptions] = None,
        **settings
    ):
        """Initialize estimator.

        Args:
            adapter: Adapter of the model type to estimate
            method: Robust estimation method
            correspondences: Optional initial correspondences
            quality_scores: Optional quality score per correspondence
            listener: Optional receiver of estimation events
            refiner_options: Options of the refinement solver
            **settings: ``EstimatorSettings`` fields

        Raises:
            ConfigurationError: if any argument is invalid
        """
        self.logger = logging.getLogger(__name__)
        self._adapter = adapter
        self._method = _as_method(method)
        self._lock = LockGuard()
        self._settings = self._validated(settings)
        self._refiner = ModelRefiner(refiner_options)

        self._listener = listener
        self._correspondences: Optional[np.ndarray] = None
        self._quality_scores: Optional[np.ndarray] = None
        self._consensus: Optional[ConsensusResult] = None
        self._covariance: Optional[np.ndarray] = None

        if correspondences is not None or quality_scores is not None:
            self.set_data(correspondences, quality_scores)

    @classmethod
    def create(
        cls,
        adapter: ModelAdapter,
        correspondences=None,
        quality_scores=None,
        method: Union[str, RobustEstimatorMethod] = DEFAULT_ROBUST_METHOD,
        **kwargs
    ) -> "RobustEstimator":
        """Create an estimator for a method, PROMedS by default."""
        return cls(
            adapter,
            method=method,
            correspondences=correspondences,
            quality_scores=quality_scores,
            **kwargs
        )

    # Configuration

    @property
    def adapter(self) -> ModelAdapter:
        return self._adapter

    @property
    def method(self) -> RobustEstimatorMethod:
        return self._method

    @property
    def settings(self) -> EstimatorSettings:
        """Copy of the current settings."""
        return self._settings.model_copy()

    def configure(self, **changes) -> None:
        """Change several settings at once.

        All changes are validated together; on error nothing is applied.

        Raises:
            LockedError: while estimating
            ConfigurationError: if a value is invalid
        """
        self._lock.check()
        self._settings = self._validated({**self._settings.model_dump(), **changes})

    @staticmethod
    def _validated(values: dict) -> EstimatorSettings:
        try:
            return EstimatorSettings.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    @property
    def listener(self) -> Optional[EstimatorListener]:
        return self._listener

    @listener.setter
    def listener(self, listener: Optional[EstimatorListener]) -> None:
        self._lock.check()
        self._listener = listener

    # Correspondence store

    @property
    def correspondences(self) -> Optional[np.ndarray]:
        return self._correspondences

    @correspondences.setter
    def correspondences(self, correspondences) -> None:
        self._lock.check()
        self._correspondences = self._prepare_correspondences(correspondences)

    @property
    def quality_scores(self) -> Optional[np.ndarray]:
        return self._quality_scores

    @quality_scores.setter
    def quality_scores(self, quality_scores) -> None:
        self._lock.check()
        expected = None if self._correspondences is None else len(self._correspondences)
        self._quality_scores = self._prepare_quality_scores(quality_scores, expected)

    def set_data(self, correspondences, quality_scores=None) -> None:
        """Replace correspondences and quality scores together.

        Raises:
            LockedError: while estimating
            ConfigurationError: if the data is invalid or lengths differ
        """
        self._lock.check()
        data = self._prepare_correspondences(correspondences)
        scores = self._prepare_quality_scores(quality_scores, len(data))
        self._correspondences = data
        self._quality_scores = scores

    def _prepare_correspondences(self, correspondences) -> np.ndarray:
        if correspondences is None:
            raise ConfigurationError("Correspondences must not be None")
        try:
            data = self._adapter.prepare(correspondences)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if len(data) < self._adapter.sample_size:
            raise ConfigurationError(
                f"Need at least {self._adapter.sample_size} correspondences, got {len(data)}"
            )
        return data

    def _prepare_quality_scores(self, quality_scores, expected: Optional[int]) -> Optional[np.ndarray]:
        if quality_scores is None:
            return None

        scores = np.asarray(quality_scores, dtype=float)
        if scores.ndim != 1:
            raise ConfigurationError(f"Quality scores must be 1D, got shape {scores.shape}")
        if len(scores) < self._adapter.sample_size:
            raise ConfigurationError(
                f"Need at least {self._adapter.sample_size} quality scores, got {len(scores)}"
            )
        if expected is not None and len(scores) != expected:
            raise ConfigurationError(
                f"Got {len(scores)} quality scores for {expected} correspondences"
            )
        if not np.all(np.isfinite(scores)):
            raise ConfigurationError("Quality scores must be finite")
        return scores

    # State

    @property
    def is_locked(self) -> bool:
        return self._lock.locked

    @property
    def is_ready(self) -> bool:
        """Whether ``estimate()`` has all the data the method needs."""
        if self._correspondences is None:
            return False
        if self._quality_scores is not None:
            if len(self._quality_scores) != len(self._correspondences):
                return False
        elif self._method.uses_quality_scores:
            return False
        return True

    @property
    def consensus(self) -> Optional[ConsensusResult]:
        """Consensus of the last estimated model."""
        return self._consensus

    @property
    def covariance(self) -> Optional[np.ndarray]:
        """Covariance of the last refined model, when kept."""
        return self._covariance

    # Estimation

    def estimate(self) -> EstimationOutcome:
        """Robustly estimate a model from the stored correspondences.

        Returns:
            Estimated model with its consensus and optional covariance

        Raises:
            LockedError: if an estimation is already running
            NotReadyError: if correspondences or required quality scores
                are missing or inconsistent
            EstimationFailure: if no valid model was found or refinement failed
        """
        self._lock.check()
        if not self.is_ready:
            raise NotReadyError(
                f"{self._method.value} estimator needs correspondences"
                + (" and quality scores" if self._method.uses_quality_scores else "")
            )

        with self._lock:
            self._consensus = None
            self._covariance = None
            self.logger.info(
                f"Starting {self._method.value} estimation on {len(self._correspondences)} "
                f"correspondences"
            )
            self._notify("on_estimate_start")

            try:
                tracker, iterations = self._search()
                outcome = self._finish(tracker, iterations)
            except EstimationFailure:
                self._notify("on_estimate_end")
                raise

            self.logger.info(
                f"Finished after {iterations} iterations with "
                f"{tracker.consensus.num_inliers} inliers (refined: {outcome.refined})"
            )
            self._notify("on_estimate_end")
            return outcome

    def _notify(self, event: str, *args) -> None:
        if self._listener is not None:
            getattr(self._listener, event)(self, *args)

    def _create_sampler(self, rng: np.random.Generator) -> Sampler:
        sample_size = self._adapter.sample_size
        if self._method.uses_quality_scores:
            return ProsacSampler(
                self._quality_scores, sample_size, rng, growth_limit=self._settings.max_iterations
            )
        return UniformSampler(len(self._correspondences), sample_size, rng)

    def _create_scorer(self) -> Scorer:
        settings = self._settings
        if self._method.uses_median:
            return LMedSScorer(
                settings.stop_threshold, self._adapter.sample_size, settings.inlier_factor
            )
        if self._method is RobustEstimatorMethod.MSAC:
            return MsacScorer(settings.threshold)
        return RansacScorer(settings.threshold)

    def _search(self) -> Tuple[BestModelTracker, int]:
        """Sample, fit and score candidates until the iteration bound."""
        settings = self._settings
        data = self._correspondences
        sampler = self._create_sampler(np.random.default_rng(settings.seed))
        scorer = self._create_scorer()
        controller = IterationController(
            settings.max_iterations,
            settings.confidence,
            self._adapter.sample_size,
            settings.progress_delta,
            adaptive=scorer.adaptive
        )
        tracker = BestModelTracker()

        while controller.should_continue():
            for model in self._draw_candidates(sampler, data):
                residuals = self._residuals(model, data)
                consensus = scorer.evaluate(residuals)
                if tracker.offer(model, consensus, residuals, controller.iteration + 1):
                    required = controller.update_inlier_ratio(tracker.inlier_ratio())
                    self.logger.debug(
                        f"Iteration {controller.iteration + 1}: score {consensus.score:.6g}, "
                        f"{consensus.num_inliers} inliers, {required} iterations required"
                    )
                    if scorer.should_stop(consensus):
                        controller.stop()

            iteration = controller.advance()
            self._notify("on_estimate_next_iteration", iteration)
            progress = controller.pending_progress()
            if progress is not None:
                self._notify("on_estimate_progress_change", progress)

        if not tracker.has_model:
            raise EstimationFailure(
                f"No valid model found after {controller.iteration} iterations"
            )
        self.logger.debug(
            f"Best model found at iteration {tracker.iteration} after "
            f"{tracker.improvements} improvements"
        )
        return tracker, controller.iteration

    def _draw_candidates(self, sampler: Sampler, data: np.ndarray) -> List[Any]:
        """Candidate models of one iteration.

        Degenerate samples yield no candidate. Under the "retry" policy new
        samples are drawn until one fits or the retry budget is spent; those
        redraws do not advance the PROSAC growth schedule.
        """
        settings = self._settings
        attempts = 0
        indices = sampler.sample()
        while True:
            try:
                models = self._adapter.fit(data[indices])
            except (DegenerateSampleError, np.linalg.LinAlgError) as e:
                self.logger.debug(f"Degenerate sample {indices.tolist()}: {e}")
                models = []

            if models:
                return models

            attempts += 1
            if settings.degenerate_policy == "consume" or attempts >= settings.max_degenerate_retries:
                return []
            indices = sampler.redraw()

    def _residuals(self, model: Any, data: np.ndarray) -> np.ndarray:
        residuals = np.asarray(self._adapter.residuals(model, data), dtype=float)
        return np.where(np.isfinite(residuals), residuals, np.inf)

    def _finish(self, tracker: BestModelTracker, iterations: int) -> EstimationOutcome:
        """Refine the best model and assemble the outcome."""
        settings = self._settings
        best = tracker.consensus
        model = tracker.model
        refined = False

        if settings.result_refined:
            model, refined = self._refine(model, best)

        self._consensus = ConsensusResult(
            score=best.score,
            inliers=best.inliers if settings.compute_and_keep_inliers else None,
            num_inliers=best.num_inliers,
            residuals=tracker.residuals if settings.compute_and_keep_residuals else None,
            inlier_threshold=best.inlier_threshold
        )

        return EstimationOutcome(
            model=model,
            method=self._method,
            iterations=iterations,
            consensus=self._consensus,
            covariance=self._covariance,
            refined=refined
        )

    def _refine(self, model: Any, best) -> Tuple[Any, bool]:
        settings = self._settings
        if not self._adapter.supports_refinement:
            self.logger.warning(f"{type(self._adapter).__name__} does not support refinement")
            return model, False
        if best.num_inliers == 0:
            self.logger.warning("Best model has no inliers, refinement skipped")
            return model, False

        inliers = best.inliers
        weights = None
        if settings.refinement_weighted_by_quality and self._quality_scores is not None:
            weights = self._quality_weights(self._quality_scores[inliers])

        schedule = None
        if self._adapter.has_suggestions():
            schedule = suggestion_weights(
                settings.min_suggestion_weight,
                settings.max_suggestion_weight,
                settings.suggestion_weight_step
            )

        try:
            result = self._refiner.refine(
                self._adapter,
                model,
                self._correspondences[inliers],
                standard_deviation=best.inlier_threshold,
                weights=weights,
                keep_covariance=settings.covariance_kept,
                suggestion_schedule=schedule
            )
        except RefinementError as e:
            raise EstimationFailure(f"Refinement failed: {e}") from e

        self.logger.debug(
            f"Refinement {result.convergence_reason.lower()}: cost {result.initial_cost:.6e} -> "
            f"{result.final_cost:.6e} in {result.evaluations} evaluations"
        )
        if not result.improved:
            self.logger.warning("Refinement did not improve the best model")
        self._covariance = result.covariance
        return result.model, result.improved

    def _quality_weights(self, scores: np.ndarray) -> Optional[np.ndarray]:
        """Refinement weights proportional to quality, with unit mean."""
        if np.any(scores <= 0):
            self.logger.warning("Non-positive quality scores, refinement left unweighted")
            return None
        return scores / np.mean(scores)
