"""Best candidate bookkeeping."""

from typing import Any, Optional

import numpy as np

from .scoring import Consensus


class BestModelTracker:
    """Keep the best model found so far and its consensus."""

    def __init__(self):
        self.model: Optional[Any] = None
        self.consensus: Optional[Consensus] = None
        self.residuals: Optional[np.ndarray] = None
        self.iteration: int = 0
        self.improvements: int = 0

    @property
    def has_model(self) -> bool:
        return self.model is not None

    def offer(self, model: Any, consensus: Consensus, residuals: np.ndarray, iteration: int) -> bool:
        """Offer a candidate.

        The candidate replaces the incumbent only on a strict improvement,
        so among equally scored candidates the first one found is kept.

        Returns:
            True if the candidate became the new best model
        """
        if self.consensus is not None and not consensus.is_better_than(self.consensus):
            return False

        self.model = model
        self.consensus = consensus
        self.residuals = residuals
        self.iteration = iteration
        self.improvements += 1
        return True

    def inlier_ratio(self) -> float:
        if self.consensus is None or len(self.consensus.inliers) == 0:
            return 0.0
        return self.consensus.num_inliers / len(self.consensus.inliers)
