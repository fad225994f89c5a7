"""
Configuration management for poster conversion.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional

from .dither import DITHER_MODES
from .fixed_palettes import DEFAULT_PALETTE, list_palettes
from .grid import TILE_SIZE
from .image_io import DEFAULT_RESIZE_ALGORITHM, RESIZE_ALGORITHMS
from .labels import (DEFAULT_LABEL, MAX_FORCED_LABEL_LENGTH, MAX_LABEL_LENGTH, MAX_TOOLTIP_LENGTH,
                     text_length)
from .palette import METRICS


@dataclass
class ConversionConfig:
    """Quantization and parallelism settings."""
    per_poster_quantization: bool = False
    jobs: int = 1
    palette: str = DEFAULT_PALETTE
    metric: str = "rgb"
    dither: str = "none"
    dither_strength: float = 1.0


@dataclass
class LabelConfig:
    """Page label, tooltip and title settings."""
    label: str = DEFAULT_LABEL
    forced_label: Optional[str] = None
    forced_tooltip: Optional[str] = None
    title: Optional[str] = None


@dataclass
class ResizeConfig:
    """Pre-resize settings applied before tiling."""
    scale_x: Optional[int] = None
    scale_y: Optional[int] = None
    autoscale: Optional[float] = None
    algorithm: str = DEFAULT_RESIZE_ALGORITHM

    @property
    def requested(self) -> bool:
        return self.scale_x is not None or self.scale_y is not None or self.autoscale is not None


@dataclass
class Config:
    """Main configuration class."""
    config_file: Optional[str] = None

    # Component configurations
    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    labels: LabelConfig = field(default_factory=LabelConfig)
    resize: ResizeConfig = field(default_factory=ResizeConfig)

    @classmethod
    def from_yaml(cls, config_path: str, **overrides) -> "Config":
        """Load configuration from YAML file with optional overrides."""
        data = {}
        if os.path.exists(config_path):
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Configuration file {config_path} must contain a mapping")

        config = cls(
            config_file=config_path,
            conversion=ConversionConfig(**(data.get('conversion') or {})),
            labels=LabelConfig(**(data.get('labels') or {})),
            resize=ResizeConfig(**(data.get('resize') or {})),
        )

        config.apply_overrides(**overrides)
        config.validate()

        return config

    def apply_overrides(self, **overrides):
        """Apply CLI overrides; None means 'not given' and leaves the value alone."""
        for key, value in overrides.items():
            if value is None:
                continue
            for section in (self.conversion, self.labels, self.resize):
                if hasattr(section, key):
                    setattr(section, key, value)
                    break
            else:
                raise ValueError(f"Unknown configuration option '{key}'")

    def validate(self):
        """Validate configuration parameters."""
        conv = self.conversion
        if conv.jobs < 1:
            raise ValueError("Jobs must be at least 1")

        if conv.palette.upper() not in list_palettes():
            raise ValueError(f"Unknown palette '{conv.palette}'. Available: {list_palettes()}")

        if conv.metric not in METRICS:
            raise ValueError(f"Unknown color metric '{conv.metric}'. Available: {list(METRICS)}")

        if conv.dither not in DITHER_MODES:
            raise ValueError(f"Unknown dither mode '{conv.dither}'. Available: {list(DITHER_MODES)}")

        if not (0 <= conv.dither_strength <= 1):
            raise ValueError("Dither strength must be between 0 and 1")

        labels = self.labels
        if labels.forced_label is not None and text_length(labels.forced_label) > MAX_FORCED_LABEL_LENGTH:
            raise ValueError(f"Forced label can't be longer than {MAX_FORCED_LABEL_LENGTH} bytes, "
                             f"currently {text_length(labels.forced_label)}")
        if text_length(labels.label) > MAX_LABEL_LENGTH:
            raise ValueError(f"Label can't be longer than {MAX_LABEL_LENGTH} bytes, "
                             f"currently {text_length(labels.label)}")
        if labels.forced_tooltip is not None and text_length(labels.forced_tooltip) > MAX_TOOLTIP_LENGTH:
            raise ValueError(f"Forced tooltip can't be longer than {MAX_TOOLTIP_LENGTH} bytes, "
                             f"currently {text_length(labels.forced_tooltip)}")

        resize = self.resize
        if resize.algorithm not in RESIZE_ALGORITHMS:
            raise ValueError(f"Unknown resize algorithm '{resize.algorithm}'. "
                             f"Available: {list(RESIZE_ALGORITHMS)}")

        if resize.autoscale is not None:
            if resize.scale_x is not None or resize.scale_y is not None:
                raise ValueError("scale-x/scale-y not allowed with autoscale")
            if resize.autoscale <= 0:
                raise ValueError("Autoscale factor must be positive")

        for name, value in (("scale-x", resize.scale_x), ("scale-y", resize.scale_y)):
            if value is not None and (value < TILE_SIZE or value % TILE_SIZE):
                raise ValueError(f"{name} has to be a positive multiple of {TILE_SIZE}, got {value}")

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            'conversion': {
                'per_poster_quantization': self.conversion.per_poster_quantization,
                'jobs': self.conversion.jobs,
                'palette': self.conversion.palette,
                'metric': self.conversion.metric,
                'dither': self.conversion.dither,
                'dither_strength': self.conversion.dither_strength
            },
            'labels': {
                'label': self.labels.label,
                'forced_label': self.labels.forced_label,
                'forced_tooltip': self.labels.forced_tooltip,
                'title': self.labels.title
            },
            'resize': {
                'scale_x': self.resize.scale_x,
                'scale_y': self.resize.scale_y,
                'autoscale': self.resize.autoscale,
                'algorithm': self.resize.algorithm
            }
        }

    def save_yaml(self, path: Optional[str] = None):
        """Save configuration to YAML file."""
        if path is None:
            path = self.config_file or "posterkit.yaml"

        # Ensure directory exists
        dir_path = os.path.dirname(path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)
