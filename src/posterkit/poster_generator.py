"""
End-to-end poster generation: file in, file out.
Ties image I/O, resizing, conversion and the persisted formats together.
"""

import os
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .config import Config
from .export import POSTER_EXTENSIONS, load_poster, save_poster
from .fixed_palettes import get_palette
from .grid import validate_dimensions
from .image_io import autoscale_dimensions, is_image_path, load_image, resize_image, save_image
from .labels import PosterLabelGenerator, PosterTooltipGenerator, new_print_id
from .pipeline import PosterConverter
from .poster import DEFAULT_TITLE, PosterArray, reconstruct
from .quantize import QuantizationMode

IMAGE_FORMAT = "image"
POSTER_FORMAT = "poster"


def detect_format(path: str) -> str:
    """Classify a path as image or poster by extension."""
    ext = os.path.splitext(path)[1].lower()
    if ext in POSTER_EXTENSIONS:
        return POSTER_FORMAT
    if is_image_path(path):
        return IMAGE_FORMAT
    raise ValueError(f"Unsupported format: {ext or '(no extension)'}")


def target_size(width: int, height: int, config: Config) -> Optional[Tuple[int, int]]:
    """Size to resize to before tiling, or None when the image is used as is."""
    resize = config.resize
    target = (resize.scale_x or width, resize.scale_y or height)
    if resize.autoscale is not None:
        target = autoscale_dimensions(width, height, resize.autoscale)
    if target == (width, height):
        return None
    return target


def build_text_generators(config: Config, print_id: Optional[str] = None
                          ) -> Tuple[PosterLabelGenerator, PosterTooltipGenerator]:
    """Label and tooltip generators for one conversion run."""
    labels = config.labels
    if labels.forced_label is not None:
        labeler = PosterLabelGenerator(labels.forced_label, forced=True)
    else:
        labeler = PosterLabelGenerator(labels.label)

    tooltipper = PosterTooltipGenerator(
        print_id=print_id or new_print_id(),
        print_name=labels.forced_label if labels.forced_label is not None else labels.label,
        forced_tooltip=labels.forced_tooltip,
    )
    return labeler, tooltipper


def image_to_posters(pixels: np.ndarray, config: Config,
                     print_id: Optional[str] = None) -> PosterArray:
    """Resize (when configured) and convert decoded pixels into a poster array."""
    height, width = pixels.shape[:2]
    size = target_size(width, height, config)
    if size is not None:
        pixels = resize_image(pixels, size[0], size[1], config.resize.algorithm)
    validate_dimensions(pixels.shape[1], pixels.shape[0])

    conv = config.conversion
    converter = PosterConverter(
        get_palette(conv.palette, conv.metric),
        mode=QuantizationMode.from_flag(conv.per_poster_quantization),
        workers=conv.jobs,
        dither=conv.dither,
        dither_strength=conv.dither_strength,
    )
    labeler, tooltipper = build_text_generators(config, print_id)
    return converter.convert(pixels, labeler, tooltipper, title=config.labels.title or DEFAULT_TITLE)


def generate_posters(input_path: str, output_path: str, config: Optional[Config] = None,
                     preview_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Convert between images and poster files.

    Args:
        input_path: Image (.png/.jpg/.jpeg/.bmp) or poster (.2dj/.2dja) file
        output_path: Image or poster file to write
        config: Conversion configuration (defaults when omitted)
        preview_path: Optional image file for a reconstruction preview

    Returns:
        Summary with the grid extent, page count and written files
    """
    config = config or Config()
    input_format = detect_format(input_path)
    output_format = detect_format(output_path)
    if preview_path is not None and detect_format(preview_path) != IMAGE_FORMAT:
        raise ValueError(f"Unsupported preview format: {os.path.splitext(preview_path)[1]}")

    if input_format == IMAGE_FORMAT:
        poster = image_to_posters(load_image(input_path), config)
    else:
        poster = load_poster(input_path)
        if config.labels.title is not None:
            poster.title = config.labels.title

    print("Done, saving to file")
    outputs = {}
    if output_format == POSTER_FORMAT:
        outputs['poster'] = save_poster(poster, output_path)
        if preview_path is not None:
            print("Generating preview...")
            outputs['preview'] = save_image(reconstruct(poster), preview_path)
    else:
        outputs['image'] = save_image(reconstruct(poster), output_path)

    return {
        'grid': (poster.width, poster.height),
        'pages': len(poster.pages),
        'title': poster.title,
        'outputs': outputs,
    }
