"""
Tiling grid: splits a poster image into fixed-size pages.
"""

from typing import Iterator, List, NamedTuple, Tuple

import numpy as np

from .errors import InvalidDimensions

# Edge length of one poster page in pixels; a hard property of the target medium.
TILE_SIZE = 128


class TileCoordinate(NamedTuple):
    """Position of a tile within the grid, in tiles."""
    column: int
    row: int


class GridExtent(NamedTuple):
    """Grid size measured in tiles, not pixels."""
    width: int
    height: int

    @property
    def tile_count(self) -> int:
        return self.width * self.height

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """(width, height) of the full image in pixels."""
        return self.width * TILE_SIZE, self.height * TILE_SIZE


class PixelRegion(NamedTuple):
    """Rectangle of an image covered by one tile."""
    x: int
    y: int
    width: int
    height: int


def validate_dimensions(image_width: int, image_height: int) -> None:
    """Raise InvalidDimensions unless both sides are positive multiples of the tile size."""
    if image_width < TILE_SIZE or image_height < TILE_SIZE \
            or image_width % TILE_SIZE or image_height % TILE_SIZE:
        raise InvalidDimensions(
            f"Image resolutions have to be multiples of {TILE_SIZE} "
            f"(currently x:{image_width} y:{image_height})"
        )


def grid_extent(image_width: int, image_height: int) -> GridExtent:
    """Grid extent for an image of the given pixel size."""
    validate_dimensions(image_width, image_height)
    return GridExtent(image_width // TILE_SIZE, image_height // TILE_SIZE)


def enumerate_tiles(image_width: int, image_height: int) -> List[TileCoordinate]:
    """Tile coordinates in row-major order: row 0 left to right, then row 1, ..."""
    extent = grid_extent(image_width, image_height)
    return [TileCoordinate(column, row)
            for row in range(extent.height)
            for column in range(extent.width)]


def tile_index(coord: TileCoordinate, extent: GridExtent) -> int:
    """Linear row-major index of a tile."""
    return coord.row * extent.width + coord.column


def tile_at(index: int, extent: GridExtent) -> TileCoordinate:
    """Inverse of tile_index."""
    if not 0 <= index < extent.tile_count:
        raise IndexError(f"Tile index {index} outside grid {extent.width}x{extent.height}")
    return TileCoordinate(index % extent.width, index // extent.width)


def pixel_region(coord: TileCoordinate) -> PixelRegion:
    """Pixel rectangle covered by a tile."""
    return PixelRegion(coord.column * TILE_SIZE, coord.row * TILE_SIZE, TILE_SIZE, TILE_SIZE)


class TilingGrid:
    """Grid over an image whose dimensions are exact multiples of TILE_SIZE."""

    def __init__(self, image_width: int, image_height: int):
        """Initialize grid; raises InvalidDimensions for unusable geometry."""
        self.extent = grid_extent(image_width, image_height)
        self.image_width = image_width
        self.image_height = image_height

    @classmethod
    def for_image(cls, pixels: np.ndarray) -> "TilingGrid":
        """Grid for an (H, W, C) pixel array."""
        if pixels.ndim != 3:
            raise InvalidDimensions(f"Expected an (H, W, C) pixel array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        return cls(width, height)

    def __len__(self) -> int:
        return self.extent.tile_count

    def __iter__(self) -> Iterator[TileCoordinate]:
        return iter(self.tiles())

    def tiles(self) -> List[TileCoordinate]:
        return enumerate_tiles(self.image_width, self.image_height)

    def slice(self, pixels: np.ndarray, coord: TileCoordinate) -> np.ndarray:
        """View of the tile's pixels (or indices) within a full-image array."""
        region = pixel_region(coord)
        return pixels[region.y:region.y + region.height, region.x:region.x + region.width]
