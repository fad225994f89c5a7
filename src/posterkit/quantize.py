"""
Per-pixel quantization of poster tiles to a fixed palette.
"""

from enum import Enum

import numpy as np

from .dither import DitherEngine
from .errors import InvalidDimensions
from .grid import TILE_SIZE, validate_dimensions
from .palette import Palette


class QuantizationMode(str, Enum):
    """How much of the image a quantization decision may look at."""
    WHOLE_IMAGE = "whole-image"
    PER_POSTER = "per-poster"

    @classmethod
    def from_flag(cls, per_poster: bool) -> "QuantizationMode":
        return cls.PER_POSTER if per_poster else cls.WHOLE_IMAGE


class QuantizationEngine:
    """Maps pixels to palette indices, one tile or one whole image at a time."""

    def __init__(self, palette: Palette, dither: str = "none", strength: float = 1.0):
        """Initialize engine with a shared, read-only palette."""
        self.palette = palette
        self.dither = DitherEngine(palette, dither, strength)

    def quantize_tile(self, pixels: np.ndarray) -> np.ndarray:
        """
        Quantize a single tile using only its own pixels.

        Args:
            pixels: (128, 128, 3|4) uint8 block

        Returns:
            (128, 128) uint8 palette index grid
        """
        if pixels.ndim != 3 or pixels.shape[:2] != (TILE_SIZE, TILE_SIZE):
            raise InvalidDimensions(
                f"Tiles must be {TILE_SIZE}x{TILE_SIZE} pixels, got shape {pixels.shape}"
            )
        return self.dither.map_pixels(pixels)

    def quantize_image(self, pixels: np.ndarray) -> np.ndarray:
        """Quantize the full image in one pass; the caller slices the result per tile."""
        if pixels.ndim != 3:
            raise InvalidDimensions(f"Expected an (H, W, C) pixel array, got shape {pixels.shape}")
        validate_dimensions(pixels.shape[1], pixels.shape[0])
        print(f"Quantizing {pixels.shape[1]}x{pixels.shape[0]} image in one pass "
              f"({self.dither.mode} dithering)...")
        return self.dither.map_pixels(pixels)

    def needs_global_pass(self, mode: QuantizationMode) -> bool:
        """
        Whether whole-image mode must quantize the image as a unit.

        Position-based dithering gives identical results tile by tile, so only
        error diffusion under whole-image mode needs the full image at once.
        """
        return mode == QuantizationMode.WHOLE_IMAGE and not self.dither.is_position_based
