import numpy as np
import pytest
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from posterkit.dither import DitherEngine
from posterkit.errors import InvalidDimensions
from posterkit.fixed_palettes import get_palette
from posterkit.quantize import QuantizationEngine, QuantizationMode


def _gradient(width: int, height: int) -> np.ndarray:
    """Deterministic RGBA gradient."""
    xs = np.linspace(0, 255, num=width, dtype=np.float64)
    ys = np.linspace(0, 255, num=height, dtype=np.float64)
    r = np.tile(xs, (height, 1))
    g = np.tile(ys[:, None], (1, width))
    b = np.full((height, width), 120.0)
    a = np.full((height, width), 255.0)
    return np.stack([r, g, b, a], axis=2).astype(np.uint8)


def test_plain_tile_quantization_is_nearest_color():
    palette = get_palette("COMPUTERCRAFT")
    engine = QuantizationEngine(palette)
    tile = _gradient(128, 128)
    indices = engine.quantize_tile(tile)
    assert indices.shape == (128, 128)
    assert indices.dtype == np.uint8
    assert np.array_equal(indices, palette.nearest_indices(tile))


def test_tile_must_be_128_square():
    engine = QuantizationEngine(get_palette())
    with pytest.raises(InvalidDimensions):
        engine.quantize_tile(np.zeros((64, 128, 3), dtype=np.uint8))
    with pytest.raises(InvalidDimensions):
        engine.quantize_image(np.zeros((128, 200, 3), dtype=np.uint8))


@pytest.mark.parametrize("mode", ["none", "ordered", "fs"])
def test_dither_modes_are_deterministic(mode):
    palette = get_palette("GRAYSCALE")
    engine = DitherEngine(palette, mode, strength=0.8)
    tile = _gradient(128, 128)
    first = engine.map_pixels(tile)
    second = engine.map_pixels(tile)
    assert np.array_equal(first, second)
    assert first.max() < len(palette)


def test_ordered_dithering_matches_whole_image_when_sliced():
    engine = QuantizationEngine(get_palette("PICO8"), dither="ordered")
    image = _gradient(256, 128)
    whole = engine.quantize_image(image)
    assert np.array_equal(whole[:, :128], engine.quantize_tile(image[:, :128]))
    assert np.array_equal(whole[:, 128:], engine.quantize_tile(image[:, 128:]))


def test_dithering_breaks_up_flat_midtones():
    palette = get_palette("MONOCHROME")
    flat = np.full((128, 128, 3), 128, dtype=np.uint8)
    plain = DitherEngine(palette, "none").map_pixels(flat)
    assert len(np.unique(plain)) == 1
    for mode in ("ordered", "fs"):
        dithered = DitherEngine(palette, mode).map_pixels(flat)
        share_white = dithered.mean()
        assert 0.3 < share_white < 0.7


def test_global_pass_only_for_error_diffusion_in_whole_image_mode():
    palette = get_palette()
    assert QuantizationEngine(palette, "fs").needs_global_pass(QuantizationMode.WHOLE_IMAGE)
    assert not QuantizationEngine(palette, "fs").needs_global_pass(QuantizationMode.PER_POSTER)
    assert not QuantizationEngine(palette, "ordered").needs_global_pass(QuantizationMode.WHOLE_IMAGE)
    assert not QuantizationEngine(palette).needs_global_pass(QuantizationMode.WHOLE_IMAGE)


def test_invalid_dither_settings():
    palette = get_palette()
    with pytest.raises(ValueError):
        DitherEngine(palette, "random")
    with pytest.raises(ValueError):
        DitherEngine(palette, "fs", strength=1.5)
    info = DitherEngine(palette, "ordered", strength=0.5).get_dithering_info()
    assert info["position_based"] is True
    assert "50%" in info["description"]


def test_mode_from_flag():
    assert QuantizationMode.from_flag(True) is QuantizationMode.PER_POSTER
    assert QuantizationMode.from_flag(False) is QuantizationMode.WHOLE_IMAGE
