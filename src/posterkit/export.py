"""
Persisted poster formats.

``.2dj``  - one page: {"label", "tooltip", "palette", "pixels"}
``.2dja`` - page array: {"pages": [...], "width", "height", "title"}

Palettes are stored as 24-bit 0xRRGGBB integers and pixels as a flat
row-major list of palette indices.
"""

import json
import os
from typing import Any, Dict

import numpy as np

from .errors import InvalidDimensions, MalformedPersistedData, UnsupportedMultiPage
from .grid import TILE_SIZE
from .palette import Palette
from .poster import DEFAULT_TITLE, Page, PosterArray

PAGE_EXTENSION = ".2dj"
ARRAY_EXTENSION = ".2dja"
POSTER_EXTENSIONS = (PAGE_EXTENSION, ARRAY_EXTENSION)

_PAGE_PIXELS = TILE_SIZE * TILE_SIZE

# Largest grid a persisted array may declare (a 128x128 wall of pages)
MAX_GRID_PAGES = 16384


def page_to_dict(page: Page) -> Dict[str, Any]:
    """Plain-data form of one page."""
    return {
        'label': page.label,
        'tooltip': page.tooltip,
        'palette': page.palette.to_packed(),
        'pixels': page.pixels.reshape(-1).tolist(),
    }


def array_to_dict(poster: PosterArray) -> Dict[str, Any]:
    """Plain-data form of a poster array."""
    return {
        'pages': [page_to_dict(page) for page in poster.pages],
        'width': poster.width,
        'height': poster.height,
        'title': poster.title,
    }


def _require(data: Dict[str, Any], key: str, kind, what: str):
    if key not in data:
        raise MalformedPersistedData(f"{what} is missing '{key}'")
    value = data[key]
    # bool is an int subclass but never a valid count or index
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedPersistedData(f"{what} field '{key}' has the wrong type")
    return value


def page_from_dict(data: Any, where: str = "page") -> Page:
    """Rebuild a page, validating structure."""
    if not isinstance(data, dict):
        raise MalformedPersistedData(f"{where} must be an object")

    label = _require(data, 'label', str, where)
    tooltip = _require(data, 'tooltip', str, where)
    packed = _require(data, 'palette', list, where)
    pixels = _require(data, 'pixels', list, where)

    if not all(isinstance(v, int) and not isinstance(v, bool) for v in packed):
        raise MalformedPersistedData(f"{where} palette must be a list of integers")
    try:
        palette = Palette.from_packed(packed)
    except ValueError as exc:
        raise MalformedPersistedData(f"{where} palette is invalid: {exc}") from exc

    if len(pixels) != _PAGE_PIXELS:
        raise MalformedPersistedData(
            f"{where} must have {_PAGE_PIXELS} pixels, got {len(pixels)}"
        )
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in pixels):
        raise MalformedPersistedData(f"{where} pixels must be integers")
    if not all(0 <= v < len(palette) for v in pixels):
        raise MalformedPersistedData(
            f"{where} pixel indices must be within 0..{len(palette) - 1}"
        )

    return Page(
        pixels=np.array(pixels, dtype=np.uint8).reshape(TILE_SIZE, TILE_SIZE),
        palette=palette,
        label=label,
        tooltip=tooltip,
    )


def array_from_dict(data: Any) -> PosterArray:
    """Rebuild a poster array, validating structure."""
    if not isinstance(data, dict):
        raise MalformedPersistedData("poster array must be an object")

    pages = _require(data, 'pages', list, "poster array")
    width = _require(data, 'width', int, "poster array")
    height = _require(data, 'height', int, "poster array")
    title = _require(data, 'title', str, "poster array")

    if width < 1 or height < 1:
        raise MalformedPersistedData(f"grid extent must be positive, got {width}x{height}")
    if width * height > MAX_GRID_PAGES:
        raise MalformedPersistedData(
            f"grid extent {width}x{height} exceeds {MAX_GRID_PAGES} pages"
        )
    if len(pages) > width * height:
        raise MalformedPersistedData(
            f"{len(pages)} pages don't fit a {width}x{height} grid"
        )

    return PosterArray(
        pages=[page_from_dict(page, f"page {i}") for i, page in enumerate(pages)],
        width=width,
        height=height,
        title=title,
    )


def _loads(data) -> Any:
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise MalformedPersistedData(f"poster data is not UTF-8: {exc}") from exc
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise MalformedPersistedData(f"poster data is not valid JSON: {exc}") from exc


def serialize_array(poster: PosterArray) -> bytes:
    """Encode a poster array of any length."""
    if poster.width * poster.height > MAX_GRID_PAGES:
        raise InvalidDimensions(
            f"grid extent {poster.width}x{poster.height} exceeds {MAX_GRID_PAGES} pages"
        )
    return json.dumps(array_to_dict(poster), separators=(',', ':')).encode('utf-8')


def deserialize_array(data) -> PosterArray:
    """Decode a poster array."""
    return array_from_dict(_loads(data))


def serialize_page(poster: PosterArray) -> bytes:
    """Encode a one-page poster array as a bare page (no grid or title)."""
    if len(poster.pages) > 1:
        raise UnsupportedMultiPage(
            f"Format {PAGE_EXTENSION} doesn't support multi poster images "
            f"({len(poster.pages)} pages)"
        )
    if poster.width * poster.height != 1:
        raise UnsupportedMultiPage(
            f"Format {PAGE_EXTENSION} doesn't support multi poster images "
            f"(grid {poster.width}x{poster.height})"
        )
    if not poster.pages:
        raise InvalidDimensions(f"Format {PAGE_EXTENSION} needs exactly one page, got none")
    return json.dumps(page_to_dict(poster.pages[0]), separators=(',', ':')).encode('utf-8')


def deserialize_page(data) -> PosterArray:
    """Decode a bare page into a 1x1 poster array."""
    page = page_from_dict(_loads(data))
    return PosterArray(pages=[page], width=1, height=1, title=DEFAULT_TITLE)


def poster_extension(path: str) -> str:
    """Lower-case poster extension of a path; ValueError when not a poster file."""
    ext = os.path.splitext(path)[1].lower()
    if ext not in POSTER_EXTENSIONS:
        raise ValueError(f"Unsupported poster format: {ext or '(none)'}")
    return ext


def save_poster(poster: PosterArray, path: str) -> str:
    """Write a poster file, choosing the encoding from the extension."""
    ext = poster_extension(path)
    payload = serialize_page(poster) if ext == PAGE_EXTENSION else serialize_array(poster)

    with open(path, 'wb') as f:
        f.write(payload)

    print(f"  Poster: {os.path.basename(path)} ({len(poster.pages)} page"
          f"{'s' if len(poster.pages) != 1 else ''})")
    return path


def load_poster(path: str) -> PosterArray:
    """Read a poster file, choosing the decoder from the extension."""
    ext = poster_extension(path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Poster file not found: {path}")

    with open(path, 'rb') as f:
        data = f.read()

    return deserialize_page(data) if ext == PAGE_EXTENSION else deserialize_array(data)
