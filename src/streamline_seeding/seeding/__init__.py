"""Seeding strategies for streamline tracking.

Main Components:
    Sphere: Uniform seeding inside a sphere
    SeedMask: Uniform random seeding within a mask
    RandomPerVoxel: Fixed number of random seeds per mask voxel (exhaustible)
    GridPerVoxel: Regular sub-voxel lattice per mask voxel (exhaustible)
    Rejection: Seeding proportional to a density image

Example:
    >>> import numpy as np
    >>> from streamline_seeding.seeding import RandomPerVoxel
    >>>
    >>> mask = np.zeros((3, 3, 1), dtype=bool)
    >>> mask[1, 1, 0] = True
    >>> seeder = RandomPerVoxel(mask, num=5)
    >>> len(list(seeder))
    5
"""

from .base import SeedStrategy, MAX_ATTEMPTS_RANDOM, MAX_ATTEMPTS_FIXED
from .basic import Sphere, SeedMask, load_mask
from .traversal import RandomPerVoxel, GridPerVoxel, MaskCursor
from .rejection import (
    Rejection,
    DensityLookup,
    RejectionWorkingVolume,
    precompute_rejection,
    LOW_ACCEPTANCE_WARNING,
)
from .factory import create_strategy

__all__ = [
    # Interface
    "SeedStrategy",
    "MAX_ATTEMPTS_RANDOM",
    "MAX_ATTEMPTS_FIXED",

    # Strategies
    "Sphere",
    "SeedMask",
    "RandomPerVoxel",
    "GridPerVoxel",
    "Rejection",

    # Helpers
    "DensityLookup",
    "RejectionWorkingVolume",
    "precompute_rejection",
    "load_mask",
    "MaskCursor",
    "create_strategy",
    "LOW_ACCEPTANCE_WARNING",
]
