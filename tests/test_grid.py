import numpy as np
import pytest
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from posterkit.errors import InvalidDimensions
from posterkit.grid import (
    TILE_SIZE,
    GridExtent,
    TileCoordinate,
    TilingGrid,
    enumerate_tiles,
    grid_extent,
    pixel_region,
    tile_at,
    tile_index,
)


def test_extent_is_measured_in_tiles():
    assert grid_extent(256, 384) == GridExtent(2, 3)
    assert GridExtent(2, 3).tile_count == 6
    assert GridExtent(2, 3).pixel_size == (256, 384)


def test_enumeration_is_row_major():
    tiles = enumerate_tiles(3 * TILE_SIZE, 2 * TILE_SIZE)
    assert tiles == [
        TileCoordinate(0, 0), TileCoordinate(1, 0), TileCoordinate(2, 0),
        TileCoordinate(0, 1), TileCoordinate(1, 1), TileCoordinate(2, 1),
    ]
    extent = GridExtent(3, 2)
    for index, coord in enumerate(tiles):
        assert tile_index(coord, extent) == index
        assert tile_at(index, extent) == coord


def test_pixel_region_is_tile_aligned():
    assert pixel_region(TileCoordinate(2, 1)) == (256, 128, 128, 128)
    assert pixel_region(TileCoordinate(0, 0)) == (0, 0, 128, 128)


@pytest.mark.parametrize("width,height", [(0, 128), (128, 0), (100, 128), (128, 200), (129, 256), (64, 64)])
def test_invalid_dimensions_are_rejected(width, height):
    with pytest.raises(InvalidDimensions):
        grid_extent(width, height)


def test_grid_slices_tiles_from_image():
    image = np.zeros((256, 384, 4), dtype=np.uint8)
    image[128:256, 256:384] = 200
    grid = TilingGrid.for_image(image)
    assert len(grid) == 6
    assert list(grid) == grid.tiles()
    assert (grid.slice(image, TileCoordinate(2, 1)) == 200).all()
    assert (grid.slice(image, TileCoordinate(1, 1)) == 0).all()

    with pytest.raises(InvalidDimensions):
        TilingGrid.for_image(np.zeros((128, 128), dtype=np.uint8))
    with pytest.raises(IndexError):
        tile_at(6, grid.extent)
