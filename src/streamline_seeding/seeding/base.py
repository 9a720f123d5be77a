"""Common interface for seeding strategies."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

import numpy as np

from ..utils.rng import RandomSource


# Number of tracking attempts a driver should make from one seed before
# giving up on it. Randomised strategies can be retried with a new seed;
# a grid seed is only worth one try.
MAX_ATTEMPTS_RANDOM = 1000
MAX_ATTEMPTS_FIXED = 1


class SeedStrategy(ABC):
    """A source of scanner-space seed points.

    One instance may be shared by several worker threads, all calling
    :meth:`get_seed` concurrently.

    Attributes:
        name: Human-readable strategy name
        source: Description of the defining region or input image
        max_attempts: Suggested tracking attempts per seed
        volume: Size of the seeding region (see each strategy)
        rng: Random source the strategy draws from
    """

    name = "seeding strategy"
    is_finite = False

    def __init__(self, source: str, max_attempts: int, rng: Optional[RandomSource] = None):
        self.source = source
        self.max_attempts = max_attempts
        self.volume = 0.0
        self.rng = rng if rng is not None else RandomSource()

    @abstractmethod
    def get_seed(self) -> Optional[np.ndarray]:
        """Draw the next seed.

        Returns:
            Float64 array of shape (3,) in scanner space, or ``None`` once an
            exhaustible strategy has produced all of its seeds. ``None`` is
            permanent: every later call returns ``None`` as well.
        """

    @property
    def count(self) -> Optional[int]:
        """Total number of seeds an exhaustible strategy yields, else ``None``."""
        return None

    def __iter__(self) -> Iterator[np.ndarray]:
        while True:
            seed = self.get_seed()
            if seed is None:
                return
            yield seed

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source={self.source!r})"
