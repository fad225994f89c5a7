"""
Dithering engine producing palette index maps.
Bayer ordered dithering and Floyd-Steinberg error diffusion over a fixed palette.
"""

from typing import Dict, Tuple

import numpy as np

from .palette import Palette

DITHER_MODES = ("none", "ordered", "fs")


class DitherEngine:
    """Maps RGB(A) pixels to palette indices with optional dithering.

    Every mode is deterministic for a fixed input. ``ordered`` depends only
    on pixel position, so quantizing a tile on its own gives the same result
    as quantizing the full image and slicing. ``fs`` carries error between
    neighbouring pixels, so its result depends on the extent it runs over.
    """

    # Bayer 8x8 matrix for ordered dithering
    BAYER_MATRIX_8x8 = np.array([
        [0, 48, 12, 60, 3, 51, 15, 63],
        [32, 16, 44, 28, 35, 19, 47, 31],
        [8, 56, 4, 52, 11, 59, 7, 55],
        [40, 24, 36, 20, 43, 27, 39, 23],
        [2, 50, 14, 62, 1, 49, 13, 61],
        [34, 18, 46, 30, 33, 17, 45, 29],
        [10, 58, 6, 54, 9, 57, 5, 53],
        [42, 26, 38, 22, 41, 25, 37, 21]
    ], dtype=np.float64) / 64.0

    def __init__(self, palette: Palette, mode: str = "none", strength: float = 1.0):
        """Initialize dither engine for one palette."""
        if mode not in DITHER_MODES:
            raise ValueError(f"Unknown dither mode '{mode}'. Available: {list(DITHER_MODES)}")
        if not 0.0 <= strength <= 1.0:
            raise ValueError("Dither strength must be between 0 and 1")
        self.palette = palette
        self.mode = mode
        self.strength = strength

    @property
    def is_position_based(self) -> bool:
        """True when a pixel's result never depends on its neighbours."""
        return self.mode in ("none", "ordered")

    def map_pixels(self, pixels: np.ndarray) -> np.ndarray:
        """
        Map an (H, W, 3|4) block to palette indices.

        Args:
            pixels: uint8 RGB or RGBA pixels; alpha is ignored

        Returns:
            (H, W) uint8 index map
        """
        if self.mode == "none" or self.strength == 0.0:
            return self.palette.nearest_indices(pixels)
        if self.mode == "ordered":
            return self._apply_ordered_dithering(pixels)
        return self._apply_floyd_steinberg(pixels)

    def _ordered_spread(self) -> float:
        """Offset amplitude, roughly the gap between neighbouring palette levels."""
        levels = max(2.0, np.cbrt(len(self.palette)))
        return self.strength * 255.0 / levels

    def _apply_ordered_dithering(self, pixels: np.ndarray) -> np.ndarray:
        """Add a Bayer threshold offset, then match each pixel independently."""
        h, w = pixels.shape[:2]
        bayer_tiled = np.tile(self.BAYER_MATRIX_8x8, (h // 8 + 1, w // 8 + 1))[:h, :w]
        offset = (bayer_tiled - 0.5) * self._ordered_spread()

        rgb = pixels[..., :3].astype(np.float64) + offset[:, :, None]
        rgb = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
        return self.palette.nearest_indices(rgb)

    def _apply_floyd_steinberg(self, pixels: np.ndarray) -> np.ndarray:
        """Floyd-Steinberg error diffusion, left to right, top to bottom."""
        h, w = pixels.shape[:2]
        work = pixels[..., :3].astype(np.float64)
        out = np.empty((h, w), dtype=np.uint8)
        palette_rgb = self.palette.rgb_array.astype(np.float64)
        strength = self.strength
        cache: Dict[Tuple[int, int, int], int] = {}

        for y in range(h):
            for x in range(w):
                old = np.clip(work[y, x], 0.0, 255.0)
                key = (int(round(old[0])), int(round(old[1])), int(round(old[2])))
                idx = cache.get(key)
                if idx is None:
                    idx = self.palette.nearest(key)
                    cache[key] = idx
                out[y, x] = idx

                error = (old - palette_rgb[idx]) * strength
                if x < w - 1:
                    work[y, x + 1] += error * 7 / 16
                if y < h - 1:
                    if x > 0:
                        work[y + 1, x - 1] += error * 3 / 16
                    work[y + 1, x] += error * 5 / 16
                    if x < w - 1:
                        work[y + 1, x + 1] += error * 1 / 16

        return out

    def get_dithering_info(self) -> dict:
        """Get information about the current dithering configuration."""
        return {
            'mode': self.mode,
            'strength': self.strength,
            'position_based': self.is_position_based,
            'description': self._get_dither_description()
        }

    def _get_dither_description(self) -> str:
        """Get human-readable description of dithering mode."""
        if self.mode == "none":
            return "No dithering - pure nearest-color mapping"
        elif self.mode == "ordered":
            return f"Ordered dithering (Bayer 8x8) with {self.strength:.0%} strength"
        return f"Floyd-Steinberg error diffusion with {self.strength:.0%} strength"
