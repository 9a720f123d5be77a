"""Shared fixtures for seeding tests."""

import numpy as np
import pytest

from streamline_seeding.image.volume import Volume
from streamline_seeding.utils.rng import RandomSource


def _containing_voxel(volume: Volume, seeds: np.ndarray) -> np.ndarray:
    return np.floor(volume.scanner_to_voxel(seeds) + 0.5).astype(int)


@pytest.fixture
def voxel_of():
    """Map scanner-space seeds to the integer voxel index containing each."""
    return _containing_voxel


@pytest.fixture
def rng():
    return RandomSource(seed=1234)


@pytest.fixture
def scaled_affine():
    """2mm isotropic voxels shifted away from the origin."""
    affine = np.diag([2.0, 2.0, 2.0, 1.0])
    affine[:3, 3] = [-10.0, 4.0, 6.0]
    return affine


@pytest.fixture
def sparse_mask(scaled_affine):
    """5x4x3 mask with four scattered voxels set."""
    data = np.zeros((5, 4, 3), dtype=np.uint8)
    data[0, 0, 1] = 1
    data[1, 3, 2] = 1
    data[3, 1, 0] = 7
    data[4, 3, 2] = 1
    return Volume(data=data, affine=scaled_affine, source="sparse_mask")
