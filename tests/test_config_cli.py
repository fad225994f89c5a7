import json

import numpy as np
import pytest
import yaml
from click.testing import CliRunner
from PIL import Image
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from posterkit.cli import cli
from posterkit.config import Config
from posterkit.export import load_poster
from posterkit.fixed_palettes import get_palette
from posterkit.image_io import autoscale_dimensions, load_image, resize_image
from posterkit.poster_generator import build_text_generators, generate_posters, target_size


def _create_demo_image(tmp_path: Path, size=(256, 128), name="demo_input.png") -> Path:
    """Create a small gradient image for deterministic testing."""
    width, height = size
    gradient = np.linspace(0, 255, num=width * height, dtype=np.uint8).reshape(height, width)
    rgb = np.stack([gradient, np.flipud(gradient), np.full_like(gradient, 180)], axis=2)
    image_path = tmp_path / name
    Image.fromarray(rgb).save(image_path)
    return image_path


def test_missing_config_file_yields_defaults(tmp_path):
    config = Config.from_yaml(str(tmp_path / "absent.yaml"))
    assert config.conversion.jobs == 1
    assert config.conversion.per_poster_quantization is False
    assert config.conversion.palette == "COMPUTERCRAFT"
    assert config.resize.algorithm == "catmull-rom"


def test_yaml_round_trip_and_overrides(tmp_path):
    path = tmp_path / "posterkit.yaml"
    config = Config()
    config.conversion.jobs = 4
    config.labels.title = "Lobby"
    config.save_yaml(str(path))

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["conversion"]["jobs"] == 4

    loaded = Config.from_yaml(str(path), dither="ordered", jobs=None)
    assert loaded.conversion.jobs == 4
    assert loaded.conversion.dither == "ordered"
    assert loaded.labels.title == "Lobby"


@pytest.mark.parametrize("overrides", [
    {"jobs": 0},
    {"palette": "RAINBOW"},
    {"dither": "random"},
    {"dither_strength": 2.0},
    {"label": "x" * 24},
    {"forced_label": "x" * 49},
    {"forced_tooltip": "x" * 257},
    {"label": "é" * 12},
    {"forced_label": "é" * 25},
    {"forced_tooltip": "ü" * 129},
    {"algorithm": "bogus"},
    {"autoscale": 1.0, "scale_x": 256},
    {"autoscale": -1.0},
    {"scale_x": 200},
])
def test_invalid_configuration_is_rejected(tmp_path, overrides):
    with pytest.raises(ValueError):
        Config.from_yaml(str(tmp_path / "absent.yaml"), **overrides)


def test_autoscale_rounds_to_nearest_tile_multiple():
    assert autoscale_dimensions(300, 100, 1.0) == (256, 128)
    assert autoscale_dimensions(200, 500, 1.0) == (256, 512)
    assert autoscale_dimensions(10, 10, 1.0) == (128, 128)
    assert autoscale_dimensions(640, 480, 0.5) == (384, 256)


def test_target_size_and_resize():
    config = Config()
    assert target_size(256, 128, config) is None
    config.resize.scale_x = 384
    assert target_size(256, 128, config) == (384, 128)

    pixels = np.zeros((100, 150, 4), dtype=np.uint8)
    resized = resize_image(pixels, 256, 128, "lanczos3")
    assert resized.shape == (128, 256, 4)


def test_text_generators_follow_label_config():
    config = Config()
    config.labels.label = "lobby"
    labeler, tooltipper = build_text_generators(config, print_id="123456")
    assert labeler.label == "lobby" and not labeler.forced
    assert tooltipper.print_id == "123456"

    config.labels.forced_label = "exact text"
    labeler, tooltipper = build_text_generators(config)
    assert labeler.forced
    assert len(tooltipper.print_id) == 6


def test_generate_posters_image_to_array_and_back(tmp_path):
    image_path = _create_demo_image(tmp_path)
    poster_path = tmp_path / "out.2dja"
    preview_path = tmp_path / "preview.png"
    config = Config()
    config.conversion.jobs = 2

    result = generate_posters(str(image_path), str(poster_path), config, preview_path=str(preview_path))
    assert result["grid"] == (2, 1)
    assert result["pages"] == 2
    assert poster_path.exists() and preview_path.exists()

    poster = load_poster(str(poster_path))
    assert poster.pages[0].label == "posterkit: (1,1)/(2x1)"

    rebuilt_path = tmp_path / "rebuilt.png"
    generate_posters(str(poster_path), str(rebuilt_path))
    rebuilt = load_image(str(rebuilt_path))
    assert rebuilt.shape == (128, 256, 4)
    palette_colors = {tuple(c) for c in get_palette().colors}
    assert {tuple(p) for p in rebuilt[..., :3].reshape(-1, 3)} <= palette_colors


def test_title_override_applies_to_poster_input(tmp_path):
    image_path = _create_demo_image(tmp_path)
    poster_path = tmp_path / "in.2dja"
    config = Config()
    config.labels.title = "Original"
    generate_posters(str(image_path), str(poster_path), config)

    kept_path = tmp_path / "kept.2dja"
    generate_posters(str(poster_path), str(kept_path))
    assert load_poster(str(kept_path)).title == "Original"

    runner = CliRunner()
    renamed_path = tmp_path / "renamed.2dja"
    result = runner.invoke(cli, ["convert", str(poster_path), str(renamed_path), "--title", "Renamed",
                                 "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 0, result.output
    assert load_poster(str(renamed_path)).title == "Renamed"
    assert load_poster(str(renamed_path)).pages == load_poster(str(poster_path)).pages


def test_cli_convert_image_to_single_page(tmp_path):
    image_path = _create_demo_image(tmp_path, size=(128, 128))
    output = tmp_path / "page.2dj"
    runner = CliRunner()
    result = runner.invoke(cli, [
        "convert", str(image_path), str(output),
        "-L", "Forced Title", "-j", "2", "--config", str(tmp_path / "none.yaml"),
    ])
    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["label"] == "Forced Title"
    assert json.loads(data["tooltip"])["print_name"] == "Forced Title"


def test_cli_reports_errors(tmp_path):
    runner = CliRunner()
    image_path = _create_demo_image(tmp_path, size=(200, 128))
    result = runner.invoke(cli, ["convert", str(image_path), str(tmp_path / "out.2dja"),
                                 "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 1
    assert "multiples of 128" in result.output

    wide = _create_demo_image(tmp_path, size=(256, 128), name="wide.png")
    result = runner.invoke(cli, ["convert", str(wide), str(tmp_path / "multi.2dj"),
                                 "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 1
    assert "multi poster" in result.output


def test_cli_rejects_image_options_for_poster_input(tmp_path):
    image_path = _create_demo_image(tmp_path)
    poster_path = tmp_path / "in.2dja"
    generate_posters(str(image_path), str(poster_path))

    runner = CliRunner()
    result = runner.invoke(cli, ["convert", str(poster_path), str(tmp_path / "out.png"), "-Q"])
    assert result.exit_code != 0
    assert "only allowed with input format: Image" in result.output


def test_cli_lists_palettes_and_writes_config(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["palettes"])
    assert result.exit_code == 0
    assert "COMPUTERCRAFT" in result.output

    output = tmp_path / "cfg.yaml"
    result = runner.invoke(cli, ["init-config", "--output", str(output)])
    assert result.exit_code == 0
    assert Config.from_yaml(str(output)).conversion.palette == "COMPUTERCRAFT"
