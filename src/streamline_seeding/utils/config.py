"""Configuration management for seed generation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from ..exceptions import ConfigurationError


STRATEGIES = ("sphere", "mask", "random_per_voxel", "grid_per_voxel", "rejection")
IMAGE_STRATEGIES = ("mask", "random_per_voxel", "grid_per_voxel", "rejection")


@dataclass
class SeedingConfig:
    """Configuration for building a seeding strategy.

    Attributes:
        strategy: One of ``STRATEGIES``
        center: Sphere centre in scanner space (``sphere`` only)
        radius: Sphere radius (``sphere`` only)
        image: Mask or density image path (image strategies)
        per_voxel: Seeds per masked voxel (``random_per_voxel``)
        oversample: Lattice points per axis per voxel (``grid_per_voxel``)
        interpolate: Trilinear density lookup (``rejection``)
        rng_seed: Root random seed, None for fresh entropy
        num_seeds: Number of seeds to draw; required for inexhaustible strategies
        num_workers: Number of worker threads drawing seeds
    """

    strategy: str = "sphere"
    center: Optional[Tuple[float, float, float]] = None
    radius: Optional[float] = None
    image: Optional[Union[Path, str]] = None
    per_voxel: int = 1
    oversample: int = 1
    interpolate: bool = False
    rng_seed: Optional[int] = None
    num_seeds: Optional[int] = None
    num_workers: int = 1

    def __post_init__(self):
        """Validate the combination of options."""
        if self.strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown seeding strategy {self.strategy!r} (expected one of {', '.join(STRATEGIES)})"
            )

        if self.strategy == "sphere":
            if self.center is None or self.radius is None:
                raise ConfigurationError("Sphere seeding requires both a centre and a radius")
            if len(self.center) != 3:
                raise ConfigurationError(f"Sphere centre must have 3 coordinates, got {len(self.center)}")
            self.center = tuple(float(c) for c in self.center)
            self.radius = float(self.radius)

        if self.strategy in IMAGE_STRATEGIES:
            if self.image is None:
                raise ConfigurationError(f"Seeding strategy {self.strategy!r} requires an image")
            self.image = Path(self.image)

        if self.per_voxel < 1:
            raise ConfigurationError(f"per_voxel must be >= 1, got {self.per_voxel}")
        if self.oversample < 1:
            raise ConfigurationError(f"oversample must be >= 1, got {self.oversample}")
        if self.num_workers < 1:
            raise ConfigurationError(f"num_workers must be >= 1, got {self.num_workers}")

        if self.num_seeds is not None and self.num_seeds < 0:
            raise ConfigurationError(f"num_seeds must be non-negative, got {self.num_seeds}")
        if self.num_seeds is None and not self.is_finite:
            raise ConfigurationError(
                f"Seeding strategy {self.strategy!r} never runs out of seeds; num_seeds is required"
            )

    @property
    def is_finite(self) -> bool:
        """Whether the configured strategy runs out of seeds by itself."""
        return self.strategy in ("random_per_voxel", "grid_per_voxel")
