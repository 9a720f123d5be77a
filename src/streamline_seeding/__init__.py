"""Seed point generation for streamline tractography."""

from .exceptions import SeedingError, ConfigurationError, DataError
from .image.volume import Volume, load_volume
from .seeding import (
    SeedStrategy,
    Sphere,
    SeedMask,
    RandomPerVoxel,
    GridPerVoxel,
    Rejection,
    DensityLookup,
    create_strategy,
)
from .utils.config import SeedingConfig
from .utils.rng import RandomSource
from .pipeline import draw_seeds

__version__ = "0.1.0"
__all__ = [
    "SeedingError",
    "ConfigurationError",
    "DataError",
    "Volume",
    "load_volume",
    "SeedStrategy",
    "Sphere",
    "SeedMask",
    "RandomPerVoxel",
    "GridPerVoxel",
    "Rejection",
    "DensityLookup",
    "create_strategy",
    "SeedingConfig",
    "RandomSource",
    "draw_seeds",
]
