"""
Command-line interface for the poster converter.
"""

import os
import sys

import click

from . import __version__
from .config import Config
from .dither import DITHER_MODES
from .fixed_palettes import get_palette_info, list_palettes
from .image_io import RESIZE_ALGORITHMS
from .poster_generator import POSTER_FORMAT, detect_format, generate_posters

# Options that only make sense when the input is an image
IMAGE_ONLY_OPTIONS = {
    'per_poster_quantization': 'per-poster-quantization flag',
    'label': 'label arg',
    'forced_label': 'force-label arg',
    'forced_tooltip': 'force-tooltip arg',
    'scale_x': 'scale-x arg',
    'scale_y': 'scale-y arg',
    'autoscale': 'autoscale arg',
}


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Image <-> Poster Converter

    Split an image into 128x128 palette-quantized poster pages, or paint
    poster files back into an image.
    """
    pass


def _check_paths(input_path, output_path, preview):
    if os.path.isdir(output_path):
        raise click.UsageError("Output can't be a directory.")
    for what, path in (("Output", output_path), ("Preview", preview)):
        if path is None:
            continue
        parent = os.path.dirname(os.path.abspath(path))
        if not os.path.isdir(parent):
            raise click.UsageError(f"{what} file parent directory doesn't exist.")


@cli.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
@click.option('--preview', '-p', type=click.Path(dir_okay=False), help='Preview image to write next to a poster output')
@click.option('--scale-x', '-x', type=int, help='Resize width in pixels (multiple of 128)')
@click.option('--scale-y', '-y', type=int, help='Resize height in pixels (multiple of 128)')
@click.option('--resize-algorithm', '-r', type=click.Choice(list(RESIZE_ALGORITHMS)),
              help='Resampling filter for resizing, defaults to catmull-rom')
@click.option('--autoscale', '-a', type=float, help='Scale factor, rounded to the nearest multiple of 128')
@click.option('--label', '-l', help='Label prefix, at most 23 bytes of UTF-8')
@click.option('--forcelabel', '-L', 'forced_label', help='Use this label verbatim on every page')
@click.option('--forcetooltip', '-T', 'forced_tooltip', help='Use this tooltip verbatim on every page')
@click.option('--per-poster-quantization', '-Q', is_flag=True, help='Quantize each poster independently')
@click.option('--jobs', '-j', type=int, help='Number of worker threads')
@click.option('--palette', type=click.Choice(list_palettes(), case_sensitive=False), help='Fixed output palette')
@click.option('--dither', type=click.Choice(list(DITHER_MODES)), help='Dithering mode')
@click.option('--title', help='Title stored in .2dja files')
@click.option('--config', '-c', 'config_path', default='posterkit.yaml', help='Configuration file path')
def convert(input_path, output_path, preview, scale_x, scale_y, resize_algorithm, autoscale,
            label, forced_label, forced_tooltip, per_poster_quantization, jobs, palette,
            dither, title, config_path):
    """Convert an image to posters, posters to an image, or between poster formats."""
    try:
        _check_paths(input_path, output_path, preview)

        image_only = {
            'per_poster_quantization': per_poster_quantization or None,
            'label': label,
            'forced_label': forced_label,
            'forced_tooltip': forced_tooltip,
            'scale_x': scale_x,
            'scale_y': scale_y,
            'autoscale': autoscale,
        }
        if detect_format(input_path) == POSTER_FORMAT:
            rejected = [IMAGE_ONLY_OPTIONS[k] for k, v in image_only.items() if v is not None]
            if rejected:
                raise click.UsageError(
                    "; ".join(f"{name} only allowed with input format: Image" for name in rejected)
                )

        config = Config.from_yaml(
            config_path,
            algorithm=resize_algorithm,
            jobs=jobs,
            palette=palette,
            dither=dither,
            title=title,
            **image_only
        )

        click.echo(f"[poster] {input_path} -> {output_path}")
        result = generate_posters(input_path, output_path, config, preview_path=preview)

        width, height = result['grid']
        click.echo(f"[OK] {result['pages']} page(s), grid {width}x{height}")
        for name, path in result['outputs'].items():
            click.echo(f"  [{name}] {path}")

    except click.UsageError:
        raise
    except Exception as e:
        click.echo(f"[X] Error: {e}", err=True)
        sys.exit(1)


@cli.command()
def palettes():
    """List the registered palettes."""
    for name in list_palettes():
        info = get_palette_info(name)
        click.echo(f"{name} ({info['size']} colors): {info['description']}")
        click.echo("  " + " ".join(color['hex'] for color in info['colors']))


@cli.command()
@click.option('--output', '-o', default='posterkit.yaml', help='Output configuration file path')
def init_config(output):
    """Create a default configuration file."""
    try:
        if os.path.exists(output) and not click.confirm(f"Configuration file '{output}' already exists. Overwrite?"):
            click.echo("Configuration creation cancelled.")
            return

        Config().save_yaml(output)
        click.echo(f"[OK] Default configuration created: {output}")

    except Exception as e:
        click.echo(f"[X] Error creating configuration: {e}", err=True)
        sys.exit(1)


def main():
    """Console script entry point."""
    cli()


if __name__ == '__main__':
    main()
