"""Volumetric image access."""

from .volume import Volume, load_volume, as_volume, SUPPORTED_SUFFIXES

__all__ = ["Volume", "load_volume", "as_volume", "SUPPORTED_SUFFIXES"]
