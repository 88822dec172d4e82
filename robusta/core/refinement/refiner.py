"""Levenberg-Marquardt refinement of a robustly estimated model."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

from ..adapters.base import ModelAdapter
from ..errors import RobustEstimatorError
from ..math.jacobians import finite_difference_jacobian
from .diagnostics import analyze_jacobian_rank, estimate_covariance


class RefinementError(RobustEstimatorError):
    """The nonlinear solver could not produce a valid model."""


@dataclass
class RefinerOptions:
    """Options for the refinement solver."""

    method: str = "lm"  # "lm", "trf", "dogbox"
    max_iterations: int = 100
    tolerance: float = 1e-12
    gradient_tolerance: float = 1e-12
    parameter_tolerance: float = 1e-12
    loss: str = "linear"  # Robust losses require "trf" or "dogbox"


@dataclass
class RefinementResult:
    """Outcome of a refinement."""

    model: Any
    improved: bool
    initial_cost: float
    final_cost: float
    evaluations: int
    convergence_reason: str
    covariance: Optional[np.ndarray] = None


def suggestion_weights(min_weight: float, max_weight: float, step: float) -> List[float]:
    """Weights applied to suggestion residuals on successive refinements.

    The first weight is always used; later ones while below ``max_weight``.
    """
    if step <= 0:
        raise ValueError("step must be positive")

    weights = [min_weight]
    i = 1
    # Multiples of step avoid drift from repeated addition
    while min_weight + i * step < max_weight - 1e-12:
        weights.append(min_weight + i * step)
        i += 1
    return weights


class ModelRefiner:
    """Refine a model on its inliers with ``scipy.optimize.least_squares``."""

    def __init__(self, options: Optional[RefinerOptions] = None):
        """Initialize refiner.

        Args:
            options: Solver options
        """
        self.options = options or RefinerOptions()
        self.logger = logging.getLogger(__name__)

    def refine(
        self,
        adapter: ModelAdapter,
        model: Any,
        data: np.ndarray,
        standard_deviation: float = 1.0,
        weights: Optional[np.ndarray] = None,
        keep_covariance: bool = False,
        suggestion_schedule: Optional[Sequence[float]] = None
    ) -> RefinementResult:
        """Refine a model over the given correspondences.

        Args:
            adapter: Adapter of the model type
            model: Initial model
            data: Correspondences used for refinement (usually inliers)
            standard_deviation: Expected residual standard deviation
            weights: Optional positive weight per correspondence
            keep_covariance: Whether to estimate the parameter covariance
            suggestion_schedule: Weights of suggestion residuals, used only
                when the adapter has suggestions

        Returns:
            Refinement result; the input model is kept when not improved

        Raises:
            RefinementError: if the solver or the covariance estimate fails
        """
        if standard_deviation <= 0:
            raise ValueError("standard_deviation must be positive")

        scale = np.full(len(data), 1.0 / standard_deviation)
        if weights is not None:
            scale *= np.sqrt(weights)

        def residual_function(x: np.ndarray) -> np.ndarray:
            # Correspondences may contribute several residual components
            residuals = np.asarray(adapter.signed_residuals(adapter.from_parameters(x), data))
            return (residuals.reshape(len(data), -1) * scale[:, np.newaxis]).ravel()

        x0 = np.asarray(adapter.to_parameters(model), dtype=float)

        initial_cost = self._cost(residual_function, x0)

        if suggestion_schedule and adapter.has_suggestions():
            x, evaluations, improved = self._refine_with_suggestions(
                adapter, residual_function, x0, suggestion_schedule
            )
        else:
            x, evaluations = self._solve(residual_function, x0)
            improved = self._cost(residual_function, x) < initial_cost

        if not improved:
            self.logger.debug(f"Refinement did not improve cost {initial_cost:.6e}")
            x = x0
        final_cost = self._cost(residual_function, x)

        covariance = None
        if keep_covariance:
            covariance = self._covariance(residual_function, x)

        return RefinementResult(
            model=adapter.from_parameters(x) if improved else model,
            improved=improved,
            initial_cost=initial_cost,
            final_cost=final_cost,
            evaluations=evaluations,
            convergence_reason="Improved" if improved else "No improvement",
            covariance=covariance
        )

    def _refine_with_suggestions(
        self,
        adapter: ModelAdapter,
        residual_function: Callable[[np.ndarray], np.ndarray],
        x0: np.ndarray,
        schedule: Sequence[float]
    ):
        """Minimize residuals plus weighted suggestion terms.

        The weight grows along the schedule while each step keeps improving
        the combined cost, slowly drawing parameters to the suggested values.
        """
        x = x0
        evaluations = 0
        improved = False

        for weight in schedule:
            root_weight = np.sqrt(weight)

            def suggested_function(p: np.ndarray, root_weight=root_weight) -> np.ndarray:
                return np.concatenate([
                    residual_function(p),
                    root_weight * adapter.suggestion_residuals(p)
                ])

            start_cost = self._cost(suggested_function, x)
            candidate, nfev = self._solve(suggested_function, x)
            evaluations += nfev
            candidate_cost = self._cost(suggested_function, candidate)
            self.logger.debug(
                f"Suggestion weight {weight:.3f}: cost {start_cost:.6e} -> {candidate_cost:.6e}"
            )

            if candidate_cost >= start_cost:
                break

            x = candidate
            improved = True

        return x, evaluations, improved

    def _solve(self, fun: Callable[[np.ndarray], np.ndarray], x0: np.ndarray):
        n_params = len(x0)
        try:
            n_residuals = len(fun(x0))
        except (ValueError, np.linalg.LinAlgError) as e:
            raise RefinementError(f"Cannot evaluate residuals: {e}") from e

        method = self.options.method
        if method == "lm" and (n_residuals < n_params or self.options.loss != "linear"):
            method = "trf"

        try:
            result = least_squares(
                fun=fun,
                x0=x0,
                method=method,
                loss=self.options.loss,
                ftol=self.options.tolerance,
                xtol=self.options.parameter_tolerance,
                gtol=self.options.gradient_tolerance,
                max_nfev=self.options.max_iterations * (n_params + 1),
            )
        except (ValueError, np.linalg.LinAlgError) as e:
            raise RefinementError(f"Solver error: {e}") from e

        if not np.all(np.isfinite(result.x)):
            raise RefinementError("Solver produced non-finite parameters")
        if result.status <= 0:
            self.logger.debug(f"Refinement stopped early: {result.message}")

        return result.x, int(result.nfev)

    def _covariance(self, fun: Callable[[np.ndarray], np.ndarray], x: np.ndarray) -> np.ndarray:
        try:
            jacobian = finite_difference_jacobian(fun, x)
            if not np.all(np.isfinite(jacobian)):
                raise RefinementError("Jacobian is not finite at the refined parameters")

            rank = analyze_jacobian_rank(jacobian)
            if not rank["full_rank"]:
                self.logger.debug(
                    f"Refinement Jacobian has {rank['nullspace_dimension']} unconstrained directions"
                )
            return estimate_covariance(jacobian)
        except (ValueError, np.linalg.LinAlgError) as e:
            raise RefinementError(f"Covariance estimation failed: {e}") from e

    @staticmethod
    def _cost(fun: Callable[[np.ndarray], np.ndarray], x: np.ndarray) -> float:
        try:
            residuals = fun(x)
        except (ValueError, np.linalg.LinAlgError) as e:
            raise RefinementError(f"Cannot evaluate residuals: {e}") from e
        cost = 0.5 * float(np.sum(residuals**2))
        return cost if np.isfinite(cost) else np.inf
