"""Iteration bookkeeping and progress throttling."""

from typing import Optional

from ..math.robust import required_iterations


class IterationController:
    """Track iterations, the adaptive iteration bound and reported progress.

    The adaptive bound starts at ``max_iterations`` and is lowered each time
    a better model raises the observed inlier ratio.
    """

    def __init__(
        self,
        max_iterations: int,
        confidence: float,
        sample_size: int,
        progress_delta: float,
        adaptive: bool = True
    ):
        """Initialize controller.

        Args:
            max_iterations: Hard iteration limit
            confidence: Desired probability of an outlier-free sample
            sample_size: Minimal sample size of the model
            progress_delta: Minimum progress change between notifications
            adaptive: Whether the bound follows the inlier ratio
        """
        self.max_iterations = max_iterations
        self.confidence = confidence
        self.sample_size = sample_size
        self.progress_delta = progress_delta
        self.adaptive = adaptive

        self.iteration = 0
        self.required = max_iterations
        self.stopped = False
        self._last_progress = 0.0

    @property
    def progress(self) -> float:
        """Fraction of the current iteration bound already spent."""
        return min(1.0, self.iteration / self.required)

    def should_continue(self) -> bool:
        return (
            not self.stopped
            and self.iteration < self.required
            and self.iteration < self.max_iterations
        )

    def update_inlier_ratio(self, inlier_ratio: float) -> int:
        """Recompute the iteration bound for a new best inlier ratio.

        Returns:
            The updated iteration bound
        """
        if self.adaptive:
            needed = required_iterations(
                self.confidence, inlier_ratio, self.sample_size, self.max_iterations
            )
            # Never below the iterations already run
            self.required = min(self.required, max(needed, self.iteration))
        return self.required

    def stop(self) -> None:
        """Request termination after the current iteration."""
        self.stopped = True

    def advance(self) -> int:
        """Mark one more iteration as completed.

        Returns:
            1-based index of the completed iteration
        """
        self.iteration += 1
        return self.iteration

    def pending_progress(self) -> Optional[float]:
        """Progress to notify, or None if it moved less than progress_delta."""
        progress = self.progress
        # Tolerance absorbs rounding of i / N
        if progress - self._last_progress >= self.progress_delta - 1e-12:
            self._last_progress = progress
            return progress
        return None
