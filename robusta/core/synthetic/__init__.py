"""Synthetic data generation for testing and validation."""

from .data_gen import SampleGenerator

__all__ = ["SampleGenerator"]
