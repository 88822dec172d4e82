"""Estimation results."""

import math
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .settings import RobustEstimatorMethod


class ConsensusResult(BaseModel):
    """Consensus of a model over the whole correspondence set."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    score: float = Field(description="Method-specific score of the model")
    inliers: Optional[np.ndarray] = Field(
        default=None,
        description="Boolean inlier mask, one entry per correspondence"
    )
    num_inliers: int = Field(default=0, ge=0, description="Number of inliers")
    residuals: Optional[np.ndarray] = Field(
        default=None,
        description="Residual of every correspondence"
    )
    inlier_threshold: float = Field(description="Residual threshold used to classify inliers")

    @field_validator("score")
    @classmethod
    def validate_score(cls, v):
        """Scores must be comparable."""
        if math.isnan(v):
            raise ValueError("score must not be NaN")
        return v

    def inlier_indices(self) -> np.ndarray:
        """Indices of inlier correspondences."""
        if self.inliers is None:
            return np.zeros(0, dtype=int)
        return np.flatnonzero(self.inliers)


class EstimationOutcome(BaseModel):
    """Result of a robust estimation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    model: Any = Field(description="Estimated model")
    method: RobustEstimatorMethod = Field(description="Method used for estimation")
    iterations: int = Field(ge=0, description="Number of iterations performed")
    consensus: Optional[ConsensusResult] = Field(
        default=None,
        description="Inliers and residuals, kept when requested"
    )
    covariance: Optional[np.ndarray] = Field(
        default=None,
        description="Covariance of the refined model parameters"
    )
    refined: bool = Field(default=False, description="Whether refinement improved the model")
