"""
Label and tooltip generators for poster pages.

The pipeline calls a generator once per tile with the tile's coordinate and
the grid extent. Generators may run on worker threads, so they only read
state set up at construction time.
"""

import json
import random
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Callable, Optional, Union

from .grid import GridExtent, TileCoordinate

DEFAULT_LABEL = "posterkit"
DEFAULT_INFO = "Generated by posterkit"

# Limits are in UTF-8 bytes
MAX_LABEL_LENGTH = 23
MAX_FORCED_LABEL_LENGTH = 48
MAX_TOOLTIP_LENGTH = 256


def text_length(text: str) -> int:
    """Encoded size of a label or tooltip in UTF-8 bytes."""
    return len(text.encode("utf-8"))


class TextGenerator(ABC):
    """Produces the label or tooltip text for one page."""

    @abstractmethod
    def generate(self, coord: TileCoordinate, extent: GridExtent) -> str:
        """Text for the page at ``coord`` in a grid of size ``extent``."""


class FunctionTextGenerator(TextGenerator):
    """Adapts a plain ``(column, row, grid_width, grid_height) -> str`` callable."""

    def __init__(self, fn: Callable[[int, int, int, int], str]):
        self.fn = fn

    def generate(self, coord: TileCoordinate, extent: GridExtent) -> str:
        return self.fn(coord.column, coord.row, extent.width, extent.height)


TextSource = Union[TextGenerator, Callable[[int, int, int, int], str]]


def as_generator(source: TextSource) -> TextGenerator:
    """Wrap plain callables; generators pass through unchanged."""
    if isinstance(source, TextGenerator):
        return source
    if callable(source):
        return FunctionTextGenerator(source)
    raise TypeError(f"Expected a TextGenerator or callable, got {type(source).__name__}")


class PosterLabelGenerator(TextGenerator):
    """Labels pages as ``"<label>: (x,y)/(WxH)"`` with 1-based positions."""

    def __init__(self, label: str = DEFAULT_LABEL, forced: bool = False):
        limit = MAX_FORCED_LABEL_LENGTH if forced else MAX_LABEL_LENGTH
        if text_length(label) > limit:
            kind = "Forced label" if forced else "Label"
            raise ValueError(f"{kind} can't be longer than {limit} bytes, currently {text_length(label)}")
        self.label = label
        self.forced = forced

    def generate(self, coord: TileCoordinate, extent: GridExtent) -> str:
        if self.forced:
            return self.label
        return f"{self.label}: ({coord.column + 1},{coord.row + 1})/({extent.width}x{extent.height})"


@dataclass
class PosterTooltip:
    """Structured tooltip payload stored on each page as JSON."""
    print_id: str
    print_name: str
    total_width: int
    total_height: int
    pos_x: int
    pos_y: int
    info: str = DEFAULT_INFO

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str) -> "PosterTooltip":
        return cls(**json.loads(text))


class PosterTooltipGenerator(TextGenerator):
    """Serializes a PosterTooltip per page, or returns a forced tooltip verbatim."""

    def __init__(self, print_id: str, print_name: str = DEFAULT_LABEL,
                 forced_tooltip: Optional[str] = None, info: str = DEFAULT_INFO):
        if forced_tooltip is not None and text_length(forced_tooltip) > MAX_TOOLTIP_LENGTH:
            raise ValueError(
                f"Forced tooltip can't be longer than {MAX_TOOLTIP_LENGTH} bytes, "
                f"currently {text_length(forced_tooltip)}"
            )
        self.print_id = print_id
        self.print_name = print_name
        self.forced_tooltip = forced_tooltip
        self.info = info

    def generate(self, coord: TileCoordinate, extent: GridExtent) -> str:
        if self.forced_tooltip is not None:
            return self.forced_tooltip
        return PosterTooltip(
            print_id=self.print_id,
            print_name=self.print_name,
            total_width=extent.width,
            total_height=extent.height,
            pos_x=coord.column,
            pos_y=coord.row,
            info=self.info,
        ).to_json()


def new_print_id(rng: Optional[random.Random] = None) -> str:
    """Random six-digit, zero-padded identifier for one conversion run."""
    rng = rng or random.Random()
    return f"{rng.randrange(0, 999999):06d}"
