"""Model adapter contract consumed by the robust estimator."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

import numpy as np


class ModelAdapter(ABC):
    """Binds a geometric model type to the generic estimation engine.

    An adapter knows how to fit candidate models from a minimal sample and
    how far a correspondence lies from a model. Adapters that also map models
    to a parameter vector can be refined with Levenberg-Marquardt.

    Correspondences are rows of a float array with ``dimension`` columns.
    """

    #: Number of correspondences in a minimal sample
    sample_size: int = 0

    #: Number of values describing one correspondence
    dimension: Optional[int] = None

    def prepare(self, correspondences) -> np.ndarray:
        """Convert correspondences to the array layout used by the adapter.

        Raises:
            ValueError: if the layout does not match the adapter
        """
        data = np.asarray(correspondences, dtype=float)
        if data.ndim != 2:
            raise ValueError(f"Correspondences must be a 2D array, got shape {data.shape}")
        if self.dimension is not None and data.shape[1] != self.dimension:
            raise ValueError(
                f"Correspondences must have {self.dimension} columns, got {data.shape[1]}"
            )
        if not np.all(np.isfinite(data)):
            raise ValueError("Correspondences must be finite")
        return data

    @abstractmethod
    def fit(self, sample: np.ndarray) -> List[Any]:
        """Fit candidate models from a minimal sample.

        Returns:
            Zero or more candidate models. Degenerate samples return an empty
            list or raise ``DegenerateSampleError``.
        """
        pass

    @abstractmethod
    def residual(self, model: Any, correspondence: np.ndarray) -> float:
        """Non-negative residual of one correspondence."""
        pass

    def residuals(self, model: Any, data: np.ndarray) -> np.ndarray:
        """Residuals of all correspondences."""
        return np.array([self.residual(model, row) for row in data], dtype=float)

    def signed_residuals(self, model: Any, data: np.ndarray) -> np.ndarray:
        """Residuals minimized during refinement (signed when meaningful).

        A correspondence may contribute several components, which must be
        laid out consecutively (e.g. x and y transfer errors).
        """
        return self.residuals(model, data)

    # Refinement hooks

    @property
    def supports_refinement(self) -> bool:
        return False

    def to_parameters(self, model: Any) -> np.ndarray:
        """Parameter vector of a model."""
        raise NotImplementedError(f"{type(self).__name__} does not support refinement")

    def from_parameters(self, parameters: np.ndarray) -> Any:
        """Model described by a parameter vector."""
        raise NotImplementedError(f"{type(self).__name__} does not support refinement")

    def has_suggestions(self) -> bool:
        """Whether refinement should draw parameters towards suggested values."""
        return False

    def suggestion_residuals(self, parameters: np.ndarray) -> np.ndarray:
        """Deviation of the parameters from the suggested values."""
        return np.zeros(0)
