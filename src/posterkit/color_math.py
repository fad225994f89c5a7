"""
sRGB -> CIELAB conversion for the perceptual palette metric.

Functions accept NumPy arrays with a trailing channel axis so whole tiles
can be converted at once; plain tuples work for single colors.
"""

from __future__ import annotations

import numpy as np

SRGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)

D65_WHITE = np.array([0.95047, 1.0, 1.08883], dtype=np.float64)
DELTA = 6 / 29


def _rgb_channels(color) -> np.ndarray:
    arr = np.asarray(color, dtype=np.float64)
    if arr.shape[-1] == 4:
        arr = arr[..., :3]
    if arr.shape[-1] != 3:
        raise ValueError("Input color must have three or four channels")
    return arr


def srgb_to_linear(rgb) -> np.ndarray:
    """Convert 8-bit sRGB (0-255) to linear RGB in 0-1."""
    rgb = _rgb_channels(rgb) / 255.0
    return np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)


def rgb_to_xyz(rgb) -> np.ndarray:
    """Convert 8-bit sRGB to CIE XYZ (D65)."""
    linear = srgb_to_linear(rgb)
    xyz = linear.reshape(-1, 3) @ SRGB_TO_XYZ.T
    return xyz.reshape(linear.shape)


def xyz_to_lab(xyz) -> np.ndarray:
    """Convert XYZ to Lab (D65)."""
    xyz = np.asarray(xyz, dtype=np.float64) / D65_WHITE
    f = np.where(xyz > DELTA**3, np.cbrt(xyz), xyz / (3 * DELTA**2) + 4 / 29)

    L = 116 * f[..., 1] - 16
    a = 500 * (f[..., 0] - f[..., 1])
    b = 200 * (f[..., 1] - f[..., 2])
    return np.stack([L, a, b], axis=-1)


def rgb_to_lab(rgb) -> np.ndarray:
    """Convenience helper for 8-bit sRGB -> Lab. Alpha, if present, is dropped."""
    return xyz_to_lab(rgb_to_xyz(rgb))
