"""
Image to Poster Converter

Splits raster images into 128x128 pages quantized to a fixed palette,
persists them as poster files, and paints poster files back into images.
"""

__version__ = "1.0.0"

from .errors import (
    PosterError,
    InvalidDimensions,
    QuantizationFailure,
    UnsupportedMultiPage,
    MalformedPersistedData,
)
from .palette import Palette
from .fixed_palettes import get_palette, list_palettes
from .grid import TILE_SIZE, GridExtent, TileCoordinate, TilingGrid
from .quantize import QuantizationEngine, QuantizationMode
from .labels import TextGenerator, PosterLabelGenerator, PosterTooltipGenerator
from .pipeline import PosterConverter, convert
from .poster import Page, PosterArray, reconstruct
from .export import serialize_array, deserialize_array, serialize_page, deserialize_page
from .config import Config
from . import cli

__all__ = [
    "PosterError",
    "InvalidDimensions",
    "QuantizationFailure",
    "UnsupportedMultiPage",
    "MalformedPersistedData",
    "Palette",
    "get_palette",
    "list_palettes",
    "TILE_SIZE",
    "GridExtent",
    "TileCoordinate",
    "TilingGrid",
    "QuantizationEngine",
    "QuantizationMode",
    "TextGenerator",
    "PosterLabelGenerator",
    "PosterTooltipGenerator",
    "PosterConverter",
    "convert",
    "Page",
    "PosterArray",
    "reconstruct",
    "serialize_array",
    "deserialize_array",
    "serialize_page",
    "deserialize_page",
    "Config",
    "cli",
]
