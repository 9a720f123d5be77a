"""Exhaustive per-voxel seeding driven by a shared raster cursor.

Both strategies here walk every non-zero mask voxel exactly once, in raster
order with the last axis varying fastest, no matter how many threads call
``get_seed``. The cursor and its counters are only touched under the
strategy's lock; the lock is released before the seed is placed and
transformed to scanner space.
"""

import threading
from typing import Optional, Tuple

import numpy as np
from numba import njit

from ..exceptions import ConfigurationError
from ..utils.rng import RandomSource
from .base import SeedStrategy, MAX_ATTEMPTS_RANDOM, MAX_ATTEMPTS_FIXED
from .basic import ImageLike, load_mask


@njit(cache=True)
def _next_masked_voxel(mask: np.ndarray, i: int, j: int, k: int) -> Tuple[int, int, int]:
    """Step from (i, j, k) to the next non-zero voxel in raster order.

    Returns (mask.shape[0], 0, 0) once the grid is exhausted.
    """
    nx, ny, nz = mask.shape
    while True:
        k += 1
        if k == nz:
            k = 0
            j += 1
            if j == ny:
                j = 0
                i += 1
        if i == nx:
            return nx, 0, 0
        if mask[i, j, k]:
            return i, j, k


class MaskCursor:
    """Raster-order position over the non-zero voxels of a mask.

    Starts just before the first voxel. Not thread-safe on its own; owners
    guard it with their lock.
    """

    def __init__(self, mask: np.ndarray):
        self.mask = mask
        self.index = (0, 0, -1)

    @property
    def exhausted(self) -> bool:
        return self.index[0] >= self.mask.shape[0]

    def advance(self) -> bool:
        """Move to the next non-zero voxel.

        Returns:
            False once the outermost axis has been run past
        """
        if self.exhausted:
            return False
        self.index = _next_masked_voxel(self.mask, *self.index)
        return not self.exhausted


class _PerVoxelStrategy(SeedStrategy):
    """Shared construction for the exhaustible mask strategies."""

    is_finite = True

    def __init__(self, image: ImageLike, max_attempts: int, rng: Optional[RandomSource] = None):
        volume, mask = load_mask(image)
        super().__init__(source=volume.name, max_attempts=max_attempts, rng=rng)
        self.image = volume
        self.mask = mask
        self.num_voxels = int(mask.sum())

        self._cursor = MaskCursor(mask)
        self._lock = threading.Lock()
        self._expired = False

    @property
    def expired(self) -> bool:
        """True once the strategy has permanently run out of seeds."""
        return self._expired


class RandomPerVoxel(_PerVoxelStrategy):
    """A fixed number of randomly placed seeds in every mask voxel.

    ``volume`` is the total number of seeds, ``num * num_voxels``.
    """

    name = "random per voxel"

    def __init__(self, image: ImageLike, num: int, rng: Optional[RandomSource] = None):
        """Initialize the strategy.

        Args:
            image: Mask volume, path or array
            num: Seeds per masked voxel

        Raises:
            ConfigurationError: If ``num`` < 1 or the mask is empty
        """
        if isinstance(num, bool) or int(num) != num or num < 1:
            raise ConfigurationError(f"Number of seeds per voxel must be a positive integer, got {num}")

        super().__init__(image, max_attempts=MAX_ATTEMPTS_RANDOM, rng=rng)
        self.num = int(num)
        self.volume = float(self.count)
        self._remaining = 0

    @property
    def count(self) -> int:
        return self.num * self.num_voxels

    def get_seed(self) -> Optional[np.ndarray]:
        if self._expired:
            return None

        with self._lock:
            if self._expired:
                return None
            if self._remaining == 0:
                if not self._cursor.advance():
                    self._expired = True
                    return None
                self._remaining = self.num
            self._remaining -= 1
            voxel = self._cursor.index

        p = np.array(voxel, dtype=np.float64) + self.rng.uniform(-0.5, 0.5, 3)
        return self.image.voxel_to_scanner(p)


class GridPerVoxel(_PerVoxelStrategy):
    """A regular ``os x os x os`` lattice of seeds in every mask voxel.

    Placement is deterministic: lattice points sit at
    ``offset + pos * step`` within each voxel, so the lattice of a voxel
    tiles it symmetrically. ``volume`` is the total number of seeds.
    """

    name = "grid per voxel"

    def __init__(self, image: ImageLike, os: int, rng: Optional[RandomSource] = None):
        """Initialize the strategy.

        Args:
            image: Mask volume, path or array
            os: Oversampling factor along each axis

        Raises:
            ConfigurationError: If ``os`` < 1 or the mask is empty
        """
        if isinstance(os, bool) or int(os) != os or os < 1:
            raise ConfigurationError(f"Grid oversampling factor must be a positive integer, got {os}")

        super().__init__(image, max_attempts=MAX_ATTEMPTS_FIXED, rng=rng)
        self.os = int(os)
        self.step = 1.0 / self.os
        self.offset = -0.5 + 1.0 / (2 * self.os)
        self.volume = float(self.count)

        # Start on the last lattice point so the first call wraps onto the
        # first masked voxel.
        self._pos = [self.os - 1] * 3

    @property
    def count(self) -> int:
        return self.os ** 3 * self.num_voxels

    def get_seed(self) -> Optional[np.ndarray]:
        if self._expired:
            return None

        with self._lock:
            if self._expired:
                return None
            pos = self._pos
            pos[2] += 1
            if pos[2] >= self.os:
                pos[2] = 0
                pos[1] += 1
                if pos[1] >= self.os:
                    pos[1] = 0
                    pos[0] += 1
                    if pos[0] >= self.os:
                        pos[0] = 0
                        if not self._cursor.advance():
                            self._expired = True
                            return None
            voxel = self._cursor.index
            lattice = tuple(pos)

        p = np.array(voxel, dtype=np.float64) + self.offset + np.array(lattice) * self.step
        return self.image.voxel_to_scanner(p)
