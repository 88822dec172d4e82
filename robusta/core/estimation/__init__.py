"""Robust estimation engine."""

from .engine import RobustEstimator
from .iteration import IterationController
from .listener import EstimatorListener, EstimatorPhase, LockGuard
from .samplers import ProsacSampler, Sampler, UniformSampler
from .scoring import Consensus, LMedSScorer, MsacScorer, RansacScorer, Scorer
from .tracker import BestModelTracker

__all__ = [
    "RobustEstimator",
    "IterationController",
    "EstimatorListener",
    "EstimatorPhase",
    "LockGuard",
    "ProsacSampler",
    "Sampler",
    "UniformSampler",
    "Consensus",
    "LMedSScorer",
    "MsacScorer",
    "RansacScorer",
    "Scorer",
    "BestModelTracker",
]
