"""Build a seeding strategy from configuration."""

from typing import Optional

from ..utils.config import SeedingConfig
from ..utils.rng import RandomSource
from .base import SeedStrategy
from .basic import Sphere, SeedMask
from .traversal import RandomPerVoxel, GridPerVoxel
from .rejection import Rejection, DensityLookup


def create_strategy(config: SeedingConfig, rng: Optional[RandomSource] = None) -> SeedStrategy:
    """Instantiate the strategy described by ``config``.

    Args:
        config: Validated seeding configuration
        rng: Random source; a new one seeded with ``config.rng_seed`` if omitted

    Returns:
        The configured strategy
    """
    if rng is None:
        rng = RandomSource(config.rng_seed)

    if config.strategy == "sphere":
        return Sphere(config.center, config.radius, rng=rng)
    if config.strategy == "mask":
        return SeedMask(config.image, rng=rng)
    if config.strategy == "random_per_voxel":
        return RandomPerVoxel(config.image, num=config.per_voxel, rng=rng)
    if config.strategy == "grid_per_voxel":
        return GridPerVoxel(config.image, os=config.oversample, rng=rng)

    lookup = DensityLookup.LINEAR if config.interpolate else DensityLookup.NEAREST
    return Rejection(config.image, lookup=lookup, rng=rng)
