"""Estimation events and the estimator lock."""

from enum import Enum

from ..errors import LockedError


class EstimatorListener:
    """Receiver of estimation events.

    Subclass and override the events of interest; the default
    implementations ignore them. Events are delivered synchronously on the
    thread running ``estimate()``, while the estimator is locked.
    """

    def on_estimate_start(self, estimator) -> None:
        """Called once before the first sample is drawn."""

    def on_estimate_end(self, estimator) -> None:
        """Called once after refinement, or right before an estimation failure."""

    def on_estimate_next_iteration(self, estimator, iteration: int) -> None:
        """Called after each completed iteration with its 1-based index."""

    def on_estimate_progress_change(self, estimator, progress: float) -> None:
        """Called when progress advanced by at least the progress delta."""


class EstimatorPhase(str, Enum):
    """Lifecycle phase of an estimator."""

    IDLE = "idle"
    LOCKED = "locked"


class LockGuard:
    """Context manager holding an estimator in the locked phase.

    Entering fails with ``LockedError`` if the estimator is already locked.
    Exiting always restores the idle phase, including when the body raises.
    """

    def __init__(self):
        self.phase = EstimatorPhase.IDLE

    @property
    def locked(self) -> bool:
        return self.phase is EstimatorPhase.LOCKED

    def check(self) -> None:
        """Raise ``LockedError`` while locked."""
        if self.locked:
            raise LockedError("Estimator is locked while estimating")

    def __enter__(self) -> "LockGuard":
        self.check()
        self.phase = EstimatorPhase.LOCKED
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.phase = EstimatorPhase.IDLE
        return False
