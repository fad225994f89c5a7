"""
Image loading, saving and pre-resizing for poster conversion.
"""

import os
from typing import Tuple

import numpy as np
from PIL import Image, ImageOps

from .grid import TILE_SIZE

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp")

RESIZE_ALGORITHMS = {
    "nearest": Image.Resampling.NEAREST,
    "triangle": Image.Resampling.BILINEAR,
    "catmull-rom": Image.Resampling.BICUBIC,
    "gaussian": Image.Resampling.BOX,
    "lanczos3": Image.Resampling.LANCZOS,
}
DEFAULT_RESIZE_ALGORITHM = "catmull-rom"

# Lift Pillow's decompression-bomb guard; posters are routinely huge.
Image.MAX_IMAGE_PIXELS = None


def is_image_path(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in IMAGE_EXTENSIONS


def load_image(image_path: str) -> np.ndarray:
    """
    Load an image as RGBA pixels.

    Args:
        image_path: Path to a Pillow-readable image

    Returns:
        (H, W, 4) uint8 array
    """
    print(f"Loading image: {image_path}")

    if not os.path.exists(image_path):
        raise FileNotFoundError(f"Image not found: {image_path}")

    with Image.open(image_path) as pil_image:
        # Auto-orient image based on EXIF
        pil_image = ImageOps.exif_transpose(pil_image)
        if pil_image.mode != 'RGBA':
            pil_image = pil_image.convert('RGBA')
        pixels = np.array(pil_image)

    print(f"Image loaded: {pixels.shape[1]}x{pixels.shape[0]} pixels")
    return pixels


def save_image(pixels: np.ndarray, image_path: str) -> str:
    """Save RGB(A) pixels; JPEG output drops alpha."""
    pil_image = Image.fromarray(np.ascontiguousarray(pixels))
    ext = os.path.splitext(image_path)[1].lower()
    if ext in (".jpg", ".jpeg", ".bmp") and pil_image.mode == 'RGBA':
        pil_image = pil_image.convert('RGB')
    pil_image.save(image_path)
    print(f"  Image: {os.path.basename(image_path)} ({pil_image.width}x{pil_image.height})")
    return image_path


def autoscale_dimensions(width: int, height: int, scale: float) -> Tuple[int, int]:
    """
    Scale both sides, then round each to the nearest multiple of the tile size.

    Sides are rounded independently, so the aspect ratio may drift. A side
    never drops below one tile.
    """
    if scale <= 0:
        raise ValueError(f"Autoscale factor must be positive, got {scale}")

    def snap(side: int) -> int:
        side = int(side * scale)
        remainder = side % TILE_SIZE
        snapped = side + (TILE_SIZE - remainder) if remainder >= TILE_SIZE // 2 else side - remainder
        return snapped or TILE_SIZE

    return snap(width), snap(height)


def resize_image(pixels: np.ndarray, width: int, height: int,
                 algorithm: str = DEFAULT_RESIZE_ALGORITHM) -> np.ndarray:
    """Resize to exactly (width, height) with the named resampling filter."""
    if algorithm not in RESIZE_ALGORITHMS:
        raise ValueError(f"Unknown resize algorithm '{algorithm}'. Available: {list(RESIZE_ALGORITHMS)}")
    if width < 1 or height < 1:
        raise ValueError(f"Can't resize to x:{width} y:{height}")

    print(f"Resizing image to x:{width} y:{height} (from x:{pixels.shape[1]} y:{pixels.shape[0]})")
    pil_image = Image.fromarray(np.ascontiguousarray(pixels))
    resized = pil_image.resize((width, height), RESIZE_ALGORITHMS[algorithm])
    return np.array(resized)
