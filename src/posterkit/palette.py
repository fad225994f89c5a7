"""
Fixed renderable palette with nearest-color and reverse lookup.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .color_math import rgb_to_lab

RGB = Tuple[int, int, int]

MAX_PALETTE_SIZE = 256
METRICS = ("rgb", "lab")

# Pixels matched per chunk; keeps the (pixels x palette) distance table small.
_CHUNK_PIXELS = 1 << 16


@dataclass(frozen=True)
class Palette:
    """Ordered, immutable set of renderable colors.

    Indices into the palette are stored as 8-bit values, so a palette holds
    at most 256 entries. Equality compares colors only, not the name.
    """
    colors: Tuple[RGB, ...]
    name: str = field(default="", compare=False)
    metric: str = field(default="rgb", compare=False)

    def __post_init__(self):
        colors = tuple(tuple(int(c) for c in color[:3]) for color in self.colors)
        if not colors:
            raise ValueError("Palette must contain at least one color")
        if len(colors) > MAX_PALETTE_SIZE:
            raise ValueError(f"Palette can hold at most {MAX_PALETTE_SIZE} colors, got {len(colors)}")
        for idx, color in enumerate(colors):
            if len(color) != 3 or any(c < 0 or c > 255 for c in color):
                raise ValueError(f"Palette entry {idx} must be three channels in 0-255, got {color}")
        if self.metric not in METRICS:
            raise ValueError(f"Unknown color metric '{self.metric}'. Available: {list(METRICS)}")

        object.__setattr__(self, "colors", colors)
        rgb = np.array(colors, dtype=np.int64)
        object.__setattr__(self, "_rgb", rgb)
        object.__setattr__(self, "_lab", rgb_to_lab(rgb) if self.metric == "lab" else None)

    def __len__(self) -> int:
        return len(self.colors)

    def with_metric(self, metric: str) -> "Palette":
        """Same colors, different distance metric."""
        return Palette(self.colors, name=self.name, metric=metric)

    @property
    def rgb_array(self) -> np.ndarray:
        """Palette as an (N, 3) uint8 array, row i is entry i."""
        return self._rgb.astype(np.uint8)

    def nearest(self, color: Sequence[int]) -> int:
        """Index of the entry closest to an RGB(A) color. Ties go to the lowest index."""
        pixel = np.asarray(color, dtype=np.int64).reshape(1, -1)
        return int(self.nearest_indices(pixel)[0])

    def nearest_indices(self, pixels: np.ndarray) -> np.ndarray:
        """
        Vectorised nearest lookup.

        Args:
            pixels: Array of shape (..., 3) or (..., 4); alpha is ignored

        Returns:
            uint8 array of palette indices with the leading shape of ``pixels``
        """
        pixels = np.asarray(pixels)
        if pixels.shape[-1] not in (3, 4):
            raise ValueError(f"Pixels must have 3 or 4 channels, got shape {pixels.shape}")

        lead_shape = pixels.shape[:-1]
        flat = pixels[..., :3].reshape(-1, 3)
        out = np.empty(flat.shape[0], dtype=np.uint8)

        for start in range(0, flat.shape[0], _CHUNK_PIXELS):
            chunk = flat[start:start + _CHUNK_PIXELS]
            out[start:start + len(chunk)] = np.argmin(self._distances(chunk), axis=1)

        return out.reshape(lead_shape)

    def _distances(self, chunk: np.ndarray) -> np.ndarray:
        if self.metric == "lab":
            lab = rgb_to_lab(chunk)
            diff = lab[:, None, :] - self._lab[None, :, :]
            return np.einsum("ijk,ijk->ij", diff, diff)

        # int64 keeps 255^2 * 3 well clear of overflow
        diff = chunk.astype(np.int64)[:, None, :] - self._rgb[None, :, :]
        return np.einsum("ijk,ijk->ij", diff, diff)

    def color(self, index: int) -> RGB:
        """Reverse lookup: index -> RGB color."""
        if not 0 <= index < len(self.colors):
            raise IndexError(f"Palette index {index} outside 0..{len(self.colors) - 1}")
        return self.colors[index]

    def colors_for(self, indices: np.ndarray) -> np.ndarray:
        """Reverse lookup for an index grid; returns uint8 RGB with a trailing axis."""
        indices = np.asarray(indices)
        if indices.size and (indices.min() < 0 or indices.max() >= len(self.colors)):
            raise IndexError(f"Palette indices must be within 0..{len(self.colors) - 1}")
        return self.rgb_array[indices]

    def to_packed(self) -> List[int]:
        """Colors as 24-bit 0xRRGGBB integers."""
        return [(r << 16) | (g << 8) | b for r, g, b in self.colors]

    @classmethod
    def from_packed(cls, values: Iterable[int], name: str = "") -> "Palette":
        """Build a palette from 24-bit 0xRRGGBB integers."""
        colors = []
        for value in values:
            value = int(value)
            if not 0 <= value <= 0xFFFFFF:
                raise ValueError(f"Packed color {value} outside 0x000000..0xFFFFFF")
            colors.append(((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF))
        return cls(tuple(colors), name=name)

    @classmethod
    def from_hex(cls, hex_colors: Iterable[str], name: str = "") -> "Palette":
        """Build a palette from '#rrggbb' strings."""
        return cls.from_packed((int(h.lstrip("#"), 16) for h in hex_colors), name=name)
