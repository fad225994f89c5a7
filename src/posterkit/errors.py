"""
Error kinds raised by the poster conversion engine.
"""

from typing import Optional, Tuple


class PosterError(Exception):
    """Base class for every poster conversion failure."""


class InvalidDimensions(PosterError, ValueError):
    """Image or tile geometry is not a positive multiple of the tile size."""


class QuantizationFailure(PosterError, RuntimeError):
    """A tile failed to quantize. Fatal to the whole conversion."""

    def __init__(self, message: str, tile: Optional[Tuple[int, int]] = None):
        super().__init__(message)
        self.tile = tile


class UnsupportedMultiPage(PosterError, ValueError):
    """The single-page format was asked to hold more than one page."""


class MalformedPersistedData(PosterError, ValueError):
    """Persisted poster data is structurally invalid."""
