"""Minimal sample selection strategies."""

import math
from abc import ABC, abstractmethod

import numpy as np


class Sampler(ABC):
    """Base class for minimal sample selectors."""

    def __init__(self, n_samples: int, sample_size: int, rng: np.random.Generator):
        """Initialize sampler.

        Args:
            n_samples: Number of correspondences
            sample_size: Minimal sample size
            rng: Random generator used for every draw
        """
        if sample_size < 1:
            raise ValueError("sample_size must be >= 1")
        if n_samples < sample_size:
            raise ValueError(f"Need at least {sample_size} correspondences, got {n_samples}")

        self.n_samples = n_samples
        self.sample_size = sample_size
        self.rng = rng

    @abstractmethod
    def sample(self) -> np.ndarray:
        """Draw the indices of one minimal sample (no repeated index)."""
        pass

    def redraw(self) -> np.ndarray:
        """Draw a replacement for a degenerate sample within the same iteration."""
        return self.sample()


class UniformSampler(Sampler):
    """Uniform sampling without replacement, used by RANSAC, MSAC and LMedS."""

    def sample(self) -> np.ndarray:
        return self.rng.choice(self.n_samples, size=self.sample_size, replace=False)


class ProsacSampler(Sampler):
    """Progressive sampling over correspondences ranked by quality.

    Correspondences are sorted once by decreasing quality. Draw t takes its
    sample from the best n(t) correspondences, where n(t) grows from the
    minimal sample size to the full set following the PROSAC growth function
    (Chum & Matas, 2005). After ``growth_limit`` draws the window covers all
    correspondences and sampling degenerates to uniform sampling.
    The engine sets ``growth_limit`` to its iteration budget, so the window
    spans every correspondence by the last iteration.
    """

    def __init__(
        self,
        quality_scores: np.ndarray,
        sample_size: int,
        rng: np.random.Generator,
        growth_limit: int = 200000
    ):
        """Initialize PROSAC sampler.

        Args:
            quality_scores: Quality of each correspondence (higher is better)
            sample_size: Minimal sample size
            rng: Random generator used for every draw
            growth_limit: Number of draws after which the window spans all
                data and sampling is uniform (T_N of the growth function)
        """
        quality_scores = np.asarray(quality_scores, dtype=float)
        super().__init__(len(quality_scores), sample_size, rng)

        self.sorted_indices = np.argsort(-quality_scores, kind="stable")
        self.growth_limit = max(int(growth_limit), 1)

        # T_n: expected number of samples drawn only from the best n
        # correspondences among growth_limit draws
        t_n = float(self.growth_limit)
        for i in range(sample_size):
            t_n *= (sample_size - i) / (self.n_samples - i)

        self._t_n = t_n
        self._t_n_prime = 1
        self._window = sample_size
        self._draws = 0

    @property
    def window_size(self) -> int:
        """Current size of the sampling window."""
        return self._window

    @property
    def draws(self) -> int:
        """Number of draws that advanced the growth schedule."""
        return self._draws

    def sample(self) -> np.ndarray:
        self._draws += 1
        k = self.sample_size

        if self._draws >= self.growth_limit:
            # Growth schedule exhausted
            self._window = self.n_samples
            return self.sorted_indices[self.rng.choice(self.n_samples, size=k, replace=False)]

        if self._draws >= self._t_n_prime and self._window < self.n_samples:
            t_n_next = self._t_n * (self._window + 1) / (self._window + 1 - k)
            self._t_n_prime += max(1, math.ceil(t_n_next - self._t_n))
            self._t_n = t_n_next
            self._window += 1

        n = self._window
        if self._t_n_prime < self._draws or n == k:
            positions = self.rng.choice(n, size=k, replace=False)
        else:
            # Newest correspondence of the window is always part of the sample
            positions = np.append(self.rng.choice(n - 1, size=k - 1, replace=False), n - 1)

        return self.sorted_indices[positions]

    def redraw(self) -> np.ndarray:
        """Draw again from the current window without advancing the growth schedule."""
        positions = self.rng.choice(self._window, size=self.sample_size, replace=False)
        return self.sorted_indices[positions]
