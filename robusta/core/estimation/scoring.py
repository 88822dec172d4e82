"""Consensus scoring strategies.

Every scorer turns the residuals of a candidate model into a ``Consensus``
whose ``rank`` tuple orders candidates: a lower rank is a better model.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..math.robust import lmeds_scale, truncated_squared_cost


@dataclass(frozen=True, eq=False)
class Consensus:
    """Score of a candidate model over all correspondences."""

    score: float
    rank: Tuple[float, ...]
    inliers: np.ndarray
    inlier_threshold: float

    @property
    def num_inliers(self) -> int:
        return int(np.count_nonzero(self.inliers))

    def is_better_than(self, other: "Consensus") -> bool:
        """Strict improvement; equal ranks keep the incumbent."""
        return self.rank < other.rank


class Scorer(ABC):
    """Base class for consensus scorers."""

    @abstractmethod
    def evaluate(self, residuals: np.ndarray) -> Consensus:
        """Score a candidate model from its residuals."""
        pass

    def should_stop(self, consensus: Consensus) -> bool:
        """Whether the best consensus so far allows early termination."""
        return False

    @property
    def adaptive(self) -> bool:
        """Whether the iteration bound follows the observed inlier ratio."""
        return True


class RansacScorer(Scorer):
    """Maximize the number of residuals below threshold.

    Ties are broken by the lowest sum of inlier residuals.
    """

    def __init__(self, threshold: float):
        self.threshold = threshold

    def evaluate(self, residuals: np.ndarray) -> Consensus:
        inliers = residuals < self.threshold
        count = int(np.count_nonzero(inliers))
        residual_sum = float(np.sum(residuals[inliers]))
        return Consensus(
            score=float(count),
            rank=(-count, residual_sum),
            inliers=inliers,
            inlier_threshold=self.threshold
        )


class MsacScorer(Scorer):
    """Minimize the sum of squared residuals truncated at threshold^2."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def evaluate(self, residuals: np.ndarray) -> Consensus:
        cost = truncated_squared_cost(residuals, self.threshold)
        return Consensus(
            score=cost,
            rank=(cost,),
            inliers=residuals < self.threshold,
            inlier_threshold=self.threshold
        )


class LMedSScorer(Scorer):
    """Minimize the median of squared residuals.

    Inliers are classified afterwards with a robust scale derived from the
    median, floored at the stop threshold so that exact fits still keep
    their inliers.
    """

    def __init__(self, stop_threshold: float, sample_size: int, inlier_factor: float = 1.5):
        self.stop_threshold = stop_threshold
        self.sample_size = sample_size
        self.inlier_factor = inlier_factor

    def evaluate(self, residuals: np.ndarray) -> Consensus:
        median = float(np.median(residuals**2))
        scale = lmeds_scale(median, len(residuals), self.sample_size)
        threshold = max(self.inlier_factor * scale, self.stop_threshold)
        return Consensus(
            score=median,
            rank=(median,),
            inliers=residuals <= threshold,
            inlier_threshold=threshold
        )

    def should_stop(self, consensus: Consensus) -> bool:
        return np.sqrt(consensus.score) < self.stop_threshold

    @property
    def adaptive(self) -> bool:
        return False
