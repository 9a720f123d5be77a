"""Utilities module."""

from .config import SeedingConfig, STRATEGIES
from .rng import RandomSource

__all__ = ["SeedingConfig", "STRATEGIES", "RandomSource"]
