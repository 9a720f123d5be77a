"""Exception hierarchy for seed generation."""


class SeedingError(Exception):
    """Base class for all errors raised while building a seeding strategy."""


class ConfigurationError(SeedingError, ValueError):
    """Invalid construction parameters (bad region, degenerate mask, ...)."""


class DataError(SeedingError, ValueError):
    """Input image content that cannot be used for seeding.

    Raised for density images holding negative or non-finite values, or
    holding no positive value at all.
    """
