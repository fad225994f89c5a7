"""
Named fixed palettes for poster output.
Each palette is static for the lifetime of the process and shared read-only.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass

from .palette import Palette

DEFAULT_PALETTE = "COMPUTERCRAFT"


@dataclass
class FixedPalette:
    """Represents a named palette definition."""
    name: str
    description: str
    hex_colors: List[str]

    def __post_init__(self):
        """Validate the hex color list."""
        if not self.hex_colors:
            raise ValueError(f"Palette {self.name} must have at least one color")
        for hex_color in self.hex_colors:
            if len(hex_color.lstrip("#")) != 6:
                raise ValueError(f"Palette {self.name} has malformed color '{hex_color}'")

    def to_palette(self, metric: str = "rgb") -> Palette:
        """Build the immutable Palette for this definition."""
        return Palette.from_hex(self.hex_colors, name=self.name).with_metric(metric)


class FixedPaletteManager:
    """Manages the registered palettes."""

    def __init__(self):
        """Initialize with the built-in palettes."""
        self.palettes = self._create_palettes()
        self._cache: Dict[tuple, Palette] = {}

    def _create_palettes(self) -> Dict[str, FixedPalette]:
        """Create the built-in palettes."""
        return {
            "COMPUTERCRAFT": FixedPalette(
                name="COMPUTERCRAFT",
                description="Default 16-color terminal palette",
                hex_colors=[
                    "#f0f0f0", "#f2b233", "#e57fd8", "#99b2f2",
                    "#dede6c", "#7fcc19", "#f2b2cc", "#4c4c4c",
                    "#999999", "#4c99b2", "#b266e5", "#3366cc",
                    "#7f664c", "#57a64e", "#cc4c4c", "#111111",
                ]
            ),

            "PICO8": FixedPalette(
                name="PICO8",
                description="16-color fantasy console palette",
                hex_colors=[
                    "#000000", "#1d2b53", "#7e2553", "#008751",
                    "#ab5236", "#5f574f", "#c2c3c7", "#fff1e8",
                    "#ff004d", "#ffa300", "#ffec27", "#00e436",
                    "#29adff", "#83769c", "#ff77a8", "#ffccaa",
                ]
            ),

            "GRAYSCALE": FixedPalette(
                name="GRAYSCALE",
                description="Eight evenly spaced greys",
                hex_colors=[
                    "#000000", "#242424", "#494949", "#6d6d6d",
                    "#929292", "#b6b6b6", "#dbdbdb", "#ffffff",
                ]
            ),

            "MONOCHROME": FixedPalette(
                name="MONOCHROME",
                description="Black and white only",
                hex_colors=["#000000", "#ffffff"]
            ),
        }

    def get_palette(self, name: str, metric: str = "rgb") -> Palette:
        """Get a palette by name (case-insensitive)."""
        key = name.upper()
        if key not in self.palettes:
            raise ValueError(f"Unknown palette '{name}'. Available: {self.list_palettes()}")
        if (key, metric) not in self._cache:
            self._cache[(key, metric)] = self.palettes[key].to_palette(metric)
        return self._cache[(key, metric)]

    def list_palettes(self) -> List[str]:
        """Get list of registered palette names."""
        return list(self.palettes.keys())

    def get_palette_info(self, name: str) -> Dict:
        """Get detailed information about one palette."""
        palette = self.get_palette(name)
        definition = self.palettes[name.upper()]
        return {
            "name": definition.name,
            "description": definition.description,
            "size": len(palette),
            "colors": [
                {"index": i, "hex": hex_color.lower(), "rgb": rgb}
                for i, (hex_color, rgb) in enumerate(zip(definition.hex_colors, palette.colors))
            ]
        }


# Global instance
_fixed_palette_manager: Optional[FixedPaletteManager] = None


def get_fixed_palette_manager() -> FixedPaletteManager:
    """Get global palette manager instance."""
    global _fixed_palette_manager
    if _fixed_palette_manager is None:
        _fixed_palette_manager = FixedPaletteManager()
    return _fixed_palette_manager


def get_palette(name: str = DEFAULT_PALETTE, metric: str = "rgb") -> Palette:
    """Get a registered palette."""
    return get_fixed_palette_manager().get_palette(name, metric)


def list_palettes() -> List[str]:
    """Get list of registered palette names."""
    return get_fixed_palette_manager().list_palettes()


def get_palette_info(name: str) -> Dict:
    """Get detailed information about a registered palette."""
    return get_fixed_palette_manager().get_palette_info(name)
