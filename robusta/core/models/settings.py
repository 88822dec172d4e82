"""Estimator configuration settings."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RobustEstimatorMethod(str, Enum):
    """Robust estimation algorithms supported by the engine."""

    RANSAC = "ransac"
    LMEDS = "lmeds"
    MSAC = "msac"
    PROSAC = "prosac"
    PROMEDS = "promeds"

    @property
    def uses_quality_scores(self) -> bool:
        """Whether the method samples guided by quality scores."""
        return self in (RobustEstimatorMethod.PROSAC, RobustEstimatorMethod.PROMEDS)

    @property
    def uses_median(self) -> bool:
        """Whether the method scores models by their median residual."""
        return self in (RobustEstimatorMethod.LMEDS, RobustEstimatorMethod.PROMEDS)


DEFAULT_ROBUST_METHOD = RobustEstimatorMethod.PROMEDS

DegeneratePolicy = Literal["consume", "retry"]


class EstimatorSettings(BaseModel):
    """Robust estimator configuration.

    Only the fields relevant to the selected method are used: ``threshold``
    by RANSAC, MSAC and PROSAC, ``stop_threshold`` and ``inlier_factor`` by
    LMedS and PROMedS.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    threshold: float = Field(default=1.0, gt=0, description="Inlier residual threshold")
    stop_threshold: float = Field(
        default=1e-3,
        gt=0,
        description="Median residual below which median-based methods stop"
    )
    inlier_factor: float = Field(
        default=1.5,
        gt=0,
        description="Multiplier of the robust scale used to classify LMedS inliers"
    )
    confidence: float = Field(
        default=0.99,
        gt=0,
        lt=1,
        description="Probability of drawing at least one outlier-free sample"
    )
    max_iterations: int = Field(default=5000, ge=1, description="Maximum number of iterations")
    progress_delta: float = Field(
        default=0.05,
        ge=0,
        le=1,
        description="Minimum progress change between progress notifications"
    )
    result_refined: bool = Field(default=True, description="Refine the best model on its inliers")
    covariance_kept: bool = Field(default=False, description="Keep covariance of the refined model")
    compute_and_keep_inliers: bool = Field(default=False, description="Keep the inlier mask")
    compute_and_keep_residuals: bool = Field(default=False, description="Keep per-correspondence residuals")
    refinement_weighted_by_quality: bool = Field(
        default=False,
        description="Weight refinement residuals by quality scores"
    )
    min_suggestion_weight: float = Field(default=0.1, ge=0, description="Initial suggestion weight")
    max_suggestion_weight: float = Field(default=2.0, ge=0, description="Final suggestion weight")
    suggestion_weight_step: float = Field(default=0.475, gt=0, description="Suggestion weight increment")
    degenerate_policy: DegeneratePolicy = Field(
        default="consume",
        description="Whether a degenerate sample spends an iteration or is redrawn"
    )
    max_degenerate_retries: int = Field(
        default=100,
        ge=1,
        description="Redraws allowed per iteration under the 'retry' policy"
    )
    seed: Optional[int] = Field(default=None, description="Seed for the sample selector")

    @model_validator(mode="after")
    def validate_suggestion_weights(self):
        if self.min_suggestion_weight > self.max_suggestion_weight:
            raise ValueError("min_suggestion_weight must not exceed max_suggestion_weight")
        return self
