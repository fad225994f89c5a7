"""
Poster array model: quantized pages plus grid metadata, and reconstruction
back into a full pixel image.
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

from .errors import InvalidDimensions
from .grid import TILE_SIZE, GridExtent, TileCoordinate, pixel_region, tile_at
from .palette import Palette

DEFAULT_TITLE = "untitled"


@dataclass(frozen=True, eq=False)
class Page:
    """One tile's quantized result. Immutable once built."""
    pixels: np.ndarray  # (128, 128) uint8 palette indices
    palette: Palette
    label: str = ""
    tooltip: str = ""

    def __post_init__(self):
        pixels = np.array(self.pixels, dtype=np.uint8)
        if pixels.shape != (TILE_SIZE, TILE_SIZE):
            raise InvalidDimensions(
                f"Page pixels must be {TILE_SIZE}x{TILE_SIZE}, got shape {pixels.shape}"
            )
        if pixels.size and int(pixels.max()) >= len(self.palette):
            raise ValueError(
                f"Page uses index {int(pixels.max())} but palette has {len(self.palette)} colors"
            )
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    def __eq__(self, other):
        if not isinstance(other, Page):
            return NotImplemented
        return (self.label == other.label
                and self.tooltip == other.tooltip
                and self.palette == other.palette
                and np.array_equal(self.pixels, other.pixels))

    __hash__ = None

    def to_rgb(self) -> np.ndarray:
        """Page painted through its palette, (128, 128, 3) uint8."""
        return self.palette.colors_for(self.pixels)


@dataclass
class PosterArray:
    """The complete multi-page artifact.

    Pages are kept in row-major tile order, so a page's coordinate is implied
    by its position. A finished conversion holds width * height pages.
    """
    pages: List[Page] = field(default_factory=list)
    width: int = 1
    height: int = 1
    title: str = DEFAULT_TITLE

    @property
    def extent(self) -> GridExtent:
        return GridExtent(self.width, self.height)

    @property
    def is_complete(self) -> bool:
        return len(self.pages) == self.width * self.height

    def coordinate_of(self, index: int) -> TileCoordinate:
        """Tile coordinate of the page at ``index``."""
        return tile_at(index, self.extent)

    def page_at(self, column: int, row: int) -> Page:
        """Page for a tile coordinate."""
        if not (0 <= column < self.width and 0 <= row < self.height):
            raise IndexError(f"Coordinates ({column}, {row}) outside grid bounds")
        return self.pages[row * self.width + column]


def reconstruct(poster: PosterArray) -> np.ndarray:
    """
    Paint every page into its region of a full image.

    Args:
        poster: Poster array; missing trailing pages leave their region black

    Returns:
        (height * 128, width * 128, 3) uint8 RGB image
    """
    if poster.width < 1 or poster.height < 1:
        raise InvalidDimensions(f"Grid extent must be positive, got {poster.width}x{poster.height}")
    if len(poster.pages) > poster.width * poster.height:
        raise InvalidDimensions(
            f"{len(poster.pages)} pages don't fit a {poster.width}x{poster.height} grid"
        )

    width, height = poster.extent.pixel_size
    image = np.zeros((height, width, 3), dtype=np.uint8)

    for index, page in enumerate(poster.pages):
        region = pixel_region(poster.coordinate_of(index))
        image[region.y:region.y + region.height, region.x:region.x + region.width] = page.to_rgb()

    return image
