"""Density-weighted seeding by acceptance-rejection sampling.

A candidate voxel (or continuous position) is drawn uniformly over the
density image and kept when its density reaches a threshold drawn uniformly
in ``[0, max)``. The image is cropped to the bounding box of its positive
voxels first, so that empty margins don't waste draws.

The sampling loop has no iteration cap. Its expected number of draws per
seed is ``1 / acceptance_rate``, which gets arbitrarily large for a
density concentrated in a single spike; construction warns when the rate
falls below ``LOW_ACCEPTANCE_WARNING``.
"""

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np
from numba import njit
from scipy import ndimage

from ..exceptions import ConfigurationError, DataError
from ..image.volume import Volume, as_volume
from ..utils.rng import RandomSource
from .base import SeedStrategy, MAX_ATTEMPTS_RANDOM
from .basic import ImageLike


LOW_ACCEPTANCE_WARNING = 1e-3


class DensityLookup(Enum):
    """How the density is read at a candidate position."""

    NEAREST = "nearest"  # whole voxels, uniform sub-voxel jitter on acceptance
    LINEAR = "linear"    # trilinear interpolation at a continuous position


@dataclass
class RejectionWorkingVolume:
    """Cropped density image and the constants sampling needs.

    Attributes:
        image: Owned float64 copy of the density, cropped to its support
        maximum: Largest density value
        total: Sum of all density values
        integral: ``total`` rescaled by the cropped voxel count
    """

    image: Volume
    maximum: float
    total: float
    integral: float

    @property
    def acceptance_rate(self) -> float:
        """Expected fraction of candidates that are accepted."""
        return self.total / (self.image.data.size * self.maximum)


def precompute_rejection(image: ImageLike) -> RejectionWorkingVolume:
    """Validate a density image and crop it for rejection sampling.

    The crop keeps the bounding box of positive voxels, extended by one
    voxel on the lower side along each axis where the image allows it.

    Args:
        image: Density volume, path or array

    Returns:
        Working volume for :class:`Rejection`

    Raises:
        DataError: If the image has non-finite or negative values, or no
            positive value at all
    """
    volume = as_volume(image)
    data = np.asarray(volume.data, dtype=np.float64)

    non_finite = ~np.isfinite(data)
    if non_finite.any():
        first = tuple(int(v) for v in np.argwhere(non_finite)[0])
        raise DataError(
            f"Cannot have non-finite values in an image used for rejection sampling: "
            f"{volume.name} has {int(non_finite.sum())} such voxel(s), first at {first}"
        )

    negative = data < 0
    if negative.any():
        first = tuple(int(v) for v in np.argwhere(negative)[0])
        raise DataError(
            f"Cannot have negative values in an image used for rejection sampling: "
            f"{volume.name} has {int(negative.sum())} negative voxel(s), first at {first}"
        )

    positive = data > 0
    if not positive.any():
        raise DataError(f"Cannot use image {volume.name} for rejection sampling - image is empty")

    box = ndimage.find_objects(positive.astype(np.int8))[0]
    lower = [max(s.start - 1, 0) for s in box]
    upper = [s.stop for s in box]

    cropped = Volume(data=data, affine=volume.affine, source=volume.source).crop(lower, upper)

    total = float(cropped.data.sum())
    return RejectionWorkingVolume(
        image=cropped,
        maximum=float(cropped.data.max()),
        total=total,
        integral=total * cropped.data.size,
    )


@njit(cache=True)
def _trilinear(data: np.ndarray, x: float, y: float, z: float) -> float:
    """Trilinearly interpolate ``data`` at a position inside its index range."""
    nx, ny, nz = data.shape
    x0 = min(int(x), nx - 1)
    y0 = min(int(y), ny - 1)
    z0 = min(int(z), nz - 1)
    x1 = min(x0 + 1, nx - 1)
    y1 = min(y0 + 1, ny - 1)
    z1 = min(z0 + 1, nz - 1)
    fx = x - x0
    fy = y - y0
    fz = z - z0

    c00 = data[x0, y0, z0] * (1.0 - fx) + data[x1, y0, z0] * fx
    c10 = data[x0, y1, z0] * (1.0 - fx) + data[x1, y1, z0] * fx
    c01 = data[x0, y0, z1] * (1.0 - fx) + data[x1, y0, z1] * fx
    c11 = data[x0, y1, z1] * (1.0 - fx) + data[x1, y1, z1] * fx

    c0 = c00 * (1.0 - fy) + c10 * fy
    c1 = c01 * (1.0 - fy) + c11 * fy

    return c0 * (1.0 - fz) + c1 * fz


class Rejection(SeedStrategy):
    """Seeding with density proportional to a non-negative scalar image.

    ``volume`` is the rescaled density integral of the working volume; it
    is reported to drivers and plays no part in sampling.
    """

    name = "rejection sampling"

    def __init__(
        self,
        image: ImageLike,
        lookup: Union[DensityLookup, str] = DensityLookup.NEAREST,
        rng: Optional[RandomSource] = None
    ):
        """Initialize from a density image.

        Args:
            image: Density volume, path or array
            lookup: Density lookup mode (``"nearest"`` or ``"linear"``)

        Raises:
            ConfigurationError: If ``lookup`` is unknown
            DataError: If the density cannot be sampled
        """
        try:
            lookup = DensityLookup(lookup)
        except ValueError as e:
            raise ConfigurationError(f"Unknown density lookup mode: {lookup!r}") from e

        working = precompute_rejection(image)
        super().__init__(source=working.image.name, max_attempts=MAX_ATTEMPTS_RANDOM, rng=rng)

        self.lookup = lookup
        self.working = working
        self.maximum = working.maximum
        self.volume = working.integral

        if working.acceptance_rate < LOW_ACCEPTANCE_WARNING:
            warnings.warn(
                f"Density image {self.source} has an expected acceptance rate of "
                f"{working.acceptance_rate:.2e}; rejection sampling will be slow",
                RuntimeWarning,
                stacklevel=2,
            )

    def get_seed(self) -> np.ndarray:
        if self.lookup is DensityLookup.LINEAR:
            return self._get_seed_linear()
        return self._get_seed_nearest()

    def _get_seed_nearest(self) -> np.ndarray:
        image = self.working.image
        data = image.data
        while True:
            i, j, k = self.rng.integers(data.shape)
            if data[i, j, k] >= self.rng.uniform() * self.maximum:
                break
        p = np.array([i, j, k], dtype=np.float64) + self.rng.uniform(-0.5, 0.5, 3)
        return image.voxel_to_scanner(p)

    def _get_seed_linear(self) -> np.ndarray:
        image = self.working.image
        data = image.data
        extent = np.array(data.shape, dtype=np.float64) - 1.0
        while True:
            pos = self.rng.uniform(0.0, 1.0, 3) * extent
            if _trilinear(data, pos[0], pos[1], pos[2]) >= self.rng.uniform() * self.maximum:
                break
        return image.voxel_to_scanner(pos)
