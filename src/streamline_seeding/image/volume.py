"""Voxel grids with a voxel-to-scanner transform."""

import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import nibabel as nib
import numpy as np

from ..exceptions import ConfigurationError


NIBABEL_SUFFIXES = (".nii", ".nii.gz", ".mgh", ".mgz")
NUMPY_SUFFIXES = (".npz", ".npy")
SUPPORTED_SUFFIXES = NIBABEL_SUFFIXES + NUMPY_SUFFIXES


@dataclass
class Volume:
    """A 3D scalar image and its voxel-to-scanner affine.

    Voxel centres sit at integer indices, so voxel ``(i, j, k)`` covers
    ``[i - 0.5, i + 0.5)`` along each axis in index space.

    Attributes:
        data: Voxel values, at least 3D. Trailing axes beyond the third are
            reduced to the first 3D volume.
        affine: 4x4 homogeneous voxel-to-scanner transform
        source: Description of where the data came from (file path, ...)
    """

    data: np.ndarray
    affine: np.ndarray = field(default_factory=lambda: np.eye(4))
    source: Optional[str] = None

    def __post_init__(self):
        """Validate the grid and the transform."""
        self.data = np.asarray(self.data)
        self.affine = np.asarray(self.affine, dtype=np.float64)

        if self.data.ndim < 3:
            raise ConfigurationError(
                f"Image {self.name} must have at least 3 dimensions, got shape {self.data.shape}"
            )
        if self.data.ndim > 3:
            warnings.warn(
                f"Image {self.name} has shape {self.data.shape}; using the first 3D volume only",
                stacklevel=2,
            )
            self.data = self.data.reshape(self.data.shape[:3] + (-1,))[..., 0]

        if 0 in self.data.shape:
            raise ConfigurationError(f"Image {self.name} has an empty axis: shape {self.data.shape}")

        if self.affine.shape != (4, 4):
            raise ConfigurationError(f"Affine must be 4x4, got shape {self.affine.shape}")
        if not np.all(np.isfinite(self.affine)):
            raise ConfigurationError(f"Affine of image {self.name} contains non-finite values")

    @property
    def name(self) -> str:
        """Name used when reporting problems with this image."""
        return self.source if self.source else "<in-memory>"

    @property
    def shape(self) -> Tuple[int, int, int]:
        return tuple(int(n) for n in self.data.shape)

    def size(self, axis: int) -> int:
        """Number of voxels along ``axis``."""
        return int(self.data.shape[axis])

    @property
    def voxel_volume(self) -> float:
        """Volume of a single voxel in scanner units (mm^3 for NIfTI)."""
        return float(abs(np.linalg.det(self.affine[:3, :3])))

    def voxel_to_scanner(self, points: np.ndarray) -> np.ndarray:
        """Map voxel-space point(s) to scanner space.

        Args:
            points: A 3-vector or an Nx3 array of voxel coordinates

        Returns:
            Array of the same shape in scanner coordinates
        """
        points = np.asarray(points, dtype=np.float64)
        return points @ self.affine[:3, :3].T + self.affine[:3, 3]

    def scanner_to_voxel(self, points: np.ndarray) -> np.ndarray:
        """Map scanner-space point(s) back to voxel space."""
        points = np.asarray(points, dtype=np.float64)
        inverse = np.linalg.inv(self.affine)
        return points @ inverse[:3, :3].T + inverse[:3, 3]

    def crop(self, lower: Sequence[int], upper: Sequence[int]) -> "Volume":
        """Copy the half-open index box ``[lower, upper)`` into a new volume.

        The returned volume owns its data, and its affine is translated so
        that cropped index 0 lands on the scanner position of ``lower``.

        Args:
            lower: Inclusive lower index per axis
            upper: Exclusive upper index per axis

        Returns:
            Cropped volume

        Raises:
            ConfigurationError: If the box is empty or outside the grid
        """
        lower = np.asarray(lower, dtype=np.int64)
        upper = np.asarray(upper, dtype=np.int64)
        if lower.shape != (3,) or upper.shape != (3,):
            raise ConfigurationError("Crop bounds must have exactly 3 components")
        if np.any(lower < 0) or np.any(upper > self.shape) or np.any(upper <= lower):
            raise ConfigurationError(
                f"Invalid crop box {lower.tolist()}..{upper.tolist()} for shape {self.shape}"
            )

        data = self.data[lower[0]:upper[0], lower[1]:upper[1], lower[2]:upper[2]].copy()

        affine = self.affine.copy()
        affine[:3, 3] = self.voxel_to_scanner(lower)

        return Volume(data=data, affine=affine, source=self.source)


def load_volume(path: Union[Path, str]) -> Volume:
    """Load a 3D image from disk.

    NIfTI and MGH files are read with nibabel. ``.npz`` archives store the
    grid under the ``voxels`` key and may carry an ``affine`` entry; plain
    ``.npy`` files get an identity affine.

    Args:
        path: Image file path

    Returns:
        Loaded volume

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file cannot be read as an image
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    name = path.name.lower()
    if name.endswith(NIBABEL_SUFFIXES):
        try:
            img = nib.load(str(path))
            data = np.asanyarray(img.dataobj)
            affine = img.affine
        except Exception as e:
            raise ConfigurationError(f"Failed to load image from {path}: {e}") from e
        return Volume(data=data, affine=affine, source=str(path))

    if name.endswith(".npz"):
        with np.load(path) as archive:
            if "voxels" not in archive:
                raise ConfigurationError(f"No 'voxels' array in {path}")
            data = archive["voxels"]
            affine = archive["affine"] if "affine" in archive else np.eye(4)
        return Volume(data=data, affine=affine, source=str(path))

    if name.endswith(".npy"):
        return Volume(data=np.load(path), source=str(path))

    raise ConfigurationError(
        f"Unsupported image format for {path} (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
    )


def as_volume(image: Union[Volume, Path, str, np.ndarray]) -> Volume:
    """Coerce a volume, a file path or a bare array into a :class:`Volume`."""
    if isinstance(image, Volume):
        return image
    if isinstance(image, (str, Path)):
        return load_volume(image)
    return Volume(data=np.asarray(image))
