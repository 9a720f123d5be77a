"""Inexhaustible seeding in a sphere or within a mask image."""

import numpy as np
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from ..exceptions import ConfigurationError
from ..image.volume import Volume, as_volume
from ..utils.rng import RandomSource
from .base import SeedStrategy, MAX_ATTEMPTS_RANDOM


ImageLike = Union[Volume, Path, str, np.ndarray]


def load_mask(image: ImageLike) -> Tuple[Volume, np.ndarray]:
    """Open a seed mask and binarise it.

    Any non-zero voxel is part of the mask; NaN counts as zero.

    Args:
        image: Mask volume, path or array

    Returns:
        Tuple of (volume, boolean mask of the volume's shape)

    Raises:
        ConfigurationError: If the mask holds no non-zero voxel
    """
    volume = as_volume(image)
    mask = np.nan_to_num(volume.data.astype(np.float64, copy=False), nan=0.0) != 0
    if not mask.any():
        raise ConfigurationError(f"Seed mask {volume.name} contains no non-zero voxels")
    return volume, np.ascontiguousarray(mask)


class Sphere(SeedStrategy):
    """Uniform seeding inside a sphere.

    Points are drawn uniformly in the unit ball by rejection from the cube
    ``[-1, 1)^3`` (about 52% of draws are kept), then scaled and shifted.
    ``volume`` is the sphere volume.
    """

    name = "sphere"

    def __init__(
        self,
        center: Sequence[float],
        radius: float,
        rng: Optional[RandomSource] = None
    ):
        """Initialize the sphere.

        Args:
            center: Sphere centre in scanner space
            radius: Sphere radius in scanner units

        Raises:
            ConfigurationError: If the centre or radius is invalid
        """
        center = np.asarray(center, dtype=np.float64)
        if center.shape != (3,) or not np.all(np.isfinite(center)):
            raise ConfigurationError(f"Sphere centre must be a finite 3-vector, got {center.tolist()}")
        if not np.isfinite(radius) or radius <= 0:
            raise ConfigurationError(f"Sphere radius must be positive, got {radius}")

        super().__init__(
            source=f"{center[0]},{center[1]},{center[2]},{radius}",
            max_attempts=MAX_ATTEMPTS_RANDOM,
            rng=rng
        )
        self.center = center
        self.radius = float(radius)
        self.volume = 4.0 * np.pi * self.radius ** 3 / 3.0

    def get_seed(self) -> np.ndarray:
        while True:
            p = self.rng.uniform(-1.0, 1.0, 3)
            if p @ p <= 1.0:
                return self.center + self.radius * p


class SeedMask(SeedStrategy):
    """Uniform random seeding within a binary mask image.

    ``volume`` is the masked volume in scanner units.
    """

    name = "random seeding mask"

    def __init__(self, image: ImageLike, rng: Optional[RandomSource] = None):
        """Initialize from a mask image.

        Args:
            image: Mask volume, path or array

        Raises:
            ConfigurationError: If the mask is empty or unreadable
        """
        volume, mask = load_mask(image)
        super().__init__(source=volume.name, max_attempts=MAX_ATTEMPTS_RANDOM, rng=rng)
        self.image = volume
        self.mask = mask
        self.num_voxels = int(mask.sum())
        self.volume = self.num_voxels * volume.voxel_volume

    def get_seed(self) -> np.ndarray:
        shape = self.mask.shape
        while True:
            i, j, k = self.rng.integers(shape)
            if self.mask[i, j, k]:
                break
        p = np.array([i, j, k], dtype=np.float64) + self.rng.uniform(-0.5, 0.5, 3)
        return self.image.voxel_to_scanner(p)
