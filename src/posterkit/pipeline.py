"""
Parallel conversion pipeline: image -> poster array.

Tiles are the unit of work. Each worker writes its finished page into a
pre-sized slot at the tile's row-major index, so completion order never
affects page order.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from .errors import QuantizationFailure
from .grid import GridExtent, TileCoordinate, TilingGrid, tile_index
from .labels import TextGenerator, TextSource, as_generator
from .palette import Palette
from .poster import DEFAULT_TITLE, Page, PosterArray
from .quantize import QuantizationEngine, QuantizationMode


class PosterConverter:
    """Converts a decoded image into a poster array."""

    def __init__(self, palette: Palette, mode: QuantizationMode = QuantizationMode.WHOLE_IMAGE,
                 workers: int = 1, dither: str = "none", dither_strength: float = 1.0):
        """
        Initialize converter.

        Args:
            palette: Fixed palette shared read-only by every worker
            mode: Whole-image (default) or per-poster quantization
            workers: Worker thread count, 1 means strictly sequential
            dither: Dither mode passed to the quantization engine
            dither_strength: Dither strength in [0, 1]
        """
        if workers < 1:
            raise ValueError(f"Worker count must be at least 1, got {workers}")
        self.palette = palette
        self.mode = QuantizationMode(mode)
        self.workers = workers
        self.engine = QuantizationEngine(palette, dither, dither_strength)

    def convert(self, image: np.ndarray, label_fn: TextSource, tooltip_fn: TextSource,
                title: str = DEFAULT_TITLE) -> PosterArray:
        """
        Tile, quantize and label an image.

        Args:
            image: (H, W, 3|4) uint8 pixels, both sides multiples of 128
            label_fn: Label generator or ``(column, row, w, h) -> str`` callable
            tooltip_fn: Tooltip generator or callable of the same shape
            title: Free-text title of the array

        Returns:
            PosterArray with pages in row-major order
        """
        image = np.asarray(image)
        grid = TilingGrid.for_image(image)
        extent = grid.extent
        labeler = as_generator(label_fn)
        tooltipper = as_generator(tooltip_fn)

        print(f"Converting {grid.image_width}x{grid.image_height} image into "
              f"{extent.width}x{extent.height} posters ({self.mode.value} quantization, "
              f"{self.workers} worker{'s' if self.workers != 1 else ''})...")

        index_map: Optional[np.ndarray] = None
        if self.engine.needs_global_pass(self.mode):
            try:
                index_map = self.engine.quantize_image(image)
            except Exception as exc:
                raise QuantizationFailure(f"Whole-image quantization failed: {exc}") from exc

        slots: List[Optional[Page]] = [None] * extent.tile_count

        def run_one(coord: TileCoordinate) -> None:
            if index_map is not None:
                indices = grid.slice(index_map, coord)
            else:
                indices = self.engine.quantize_tile(grid.slice(image, coord))
            slots[tile_index(coord, extent)] = self._make_page(
                indices, coord, extent, labeler, tooltipper
            )

        tiles = grid.tiles()
        if self.workers == 1:
            for coord in tiles:
                self._run_guarded(run_one, coord)
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as ex:
                futures = [(coord, ex.submit(run_one, coord)) for coord in tiles]
                for coord, future in futures:
                    exc = future.exception()
                    if exc is not None:
                        for _, pending in futures:
                            pending.cancel()
                        raise QuantizationFailure(
                            f"Tile ({coord.column}, {coord.row}) failed: {exc}", tile=coord
                        ) from exc

        print(f"Conversion complete. {len(slots)} poster pages.")
        return PosterArray(pages=slots, width=extent.width, height=extent.height, title=title)

    @staticmethod
    def _run_guarded(run_one, coord: TileCoordinate) -> None:
        try:
            run_one(coord)
        except Exception as exc:
            raise QuantizationFailure(
                f"Tile ({coord.column}, {coord.row}) failed: {exc}", tile=coord
            ) from exc

    def _make_page(self, indices: np.ndarray, coord: TileCoordinate, extent: GridExtent,
                   labeler: TextGenerator, tooltipper: TextGenerator) -> Page:
        return Page(
            pixels=indices,
            palette=self.palette,
            label=labeler.generate(coord, extent),
            tooltip=tooltipper.generate(coord, extent),
        )


def convert(image: np.ndarray, label_fn: TextSource, tooltip_fn: TextSource,
            palette: Palette, per_poster: bool = False, workers: int = 1,
            dither: str = "none", dither_strength: float = 1.0,
            title: str = DEFAULT_TITLE) -> PosterArray:
    """Convenience wrapper around PosterConverter."""
    converter = PosterConverter(
        palette,
        mode=QuantizationMode.from_flag(per_poster),
        workers=workers,
        dither=dither,
        dither_strength=dither_strength,
    )
    return converter.convert(image, label_fn, tooltip_fn, title=title)
