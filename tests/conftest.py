"""Shared fixtures for robusta tests."""

import numpy as np
import pytest

from robusta import EstimatorListener, LockedError
from robusta.core.synthetic import SampleGenerator


class RecordingListener(EstimatorListener):
    """Listener recording events and checking the estimator while locked."""

    def __init__(self, try_mutations: bool = True):
        self.try_mutations = try_mutations
        self.events = []
        self.iterations = []
        self.progress = []
        self.progress_iterations = []
        self.locked_states = []
        self.accepted_mutations = 0

    @property
    def starts(self) -> int:
        return self.events.count("start")

    @property
    def ends(self) -> int:
        return self.events.count("end")

    def _inspect(self, estimator):
        self.locked_states.append(estimator.is_locked)
        if not self.try_mutations:
            return

        mutations = [
            lambda: setattr(estimator, "threshold", 0.5),
            lambda: setattr(estimator, "max_iterations", 10),
            lambda: setattr(estimator, "correspondences", estimator.correspondences),
            lambda: setattr(estimator, "listener", None),
            lambda: estimator.configure(confidence=0.5),
            estimator.estimate,
        ]
        for mutate in mutations:
            try:
                mutate()
            except LockedError:
                continue
            self.accepted_mutations += 1

    def on_estimate_start(self, estimator):
        self.events.append("start")
        self._inspect(estimator)

    def on_estimate_end(self, estimator):
        self.events.append("end")
        self._inspect(estimator)

    def on_estimate_next_iteration(self, estimator, iteration):
        self.events.append("iteration")
        self.iterations.append(iteration)
        self._inspect(estimator)

    def on_estimate_progress_change(self, estimator, progress):
        self.events.append("progress")
        self.progress.append(progress)
        self.progress_iterations.append(self.iterations[-1] if self.iterations else 0)
        self._inspect(estimator)


@pytest.fixture
def listener():
    """Recording listener checking lock state in every callback."""
    return RecordingListener()


@pytest.fixture
def generator():
    """Seeded sample generator."""
    return SampleGenerator(seed=42)


@pytest.fixture
def circle_scenario(generator):
    """Circle points with 20% Gaussian outliers and quality scores."""
    circle = generator.random_circle()
    exact = generator.circle_points(circle, 800)
    noisy, outliers = generator.contaminate(exact, outlier_ratio=0.2, noise_std=1.0)
    scores = generator.quality_scores(exact, noisy)
    return {
        "circle": circle,
        "exact": exact,
        "noisy": noisy,
        "outliers": outliers,
        "scores": scores,
    }


@pytest.fixture
def quiet_listener():
    """Recording listener that only records events."""
    return RecordingListener(try_mutations=False)
