from __future__ import annotations

import colorsys
import re
from collections.abc import Sequence
from dataclasses import dataclass

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
# Lightness shift applied per extra palette cycle; odd cycles lighten, even cycles darken.
SHADE_STEP = 0.12


@dataclass(frozen=True)
class ColorPalette:
    palette_id: str
    name: str
    colors: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.colors:
            raise ValueError(f"palette `{self.palette_id}` must define at least one color")
        for color in self.colors:
            if not _HEX_COLOR.match(color):
                raise ValueError(f"palette `{self.palette_id}` has invalid color {color!r}")


PALETTES: tuple[ColorPalette, ...] = (
    ColorPalette(
        "default",
        "Default",
        (
            "#0052FF", "#00A6FF", "#A855F7", "#FF006B", "#FF5722", "#FF9800",
            "#FFC107", "#00BFA5", "#4CAF50", "#F44336", "#9E9E9E", "#424242",
            "#3F51B5", "#CDDC39", "#8BC34A", "#795548", "#607D8B", "#00BCD4",
            "#673AB7", "#FFEB3B", "#E91E63", "#9C27B0", "#3F51B5", "#2196F3",
            "#03A9F4", "#00BCD4", "#009688", "#8BC34A", "#CDDC39", "#FFC107",
        ),
    ),
    ColorPalette(
        "corporate",
        "Corporate",
        (
            "#1A237E", "#0D47A1", "#01579B", "#006064", "#263238",
            "#37474F", "#455A64", "#546E7A", "#1565C0", "#283593",
        ),
    ),
    ColorPalette(
        "warm",
        "Warm",
        (
            "#B71C1C", "#C62828", "#D32F2F", "#E64A19", "#F57C00",
            "#FFA000", "#FFB300", "#FFCA28", "#FF7043", "#FF5252",
        ),
    ),
    ColorPalette(
        "pastel",
        "Pastel",
        ("#B4D7FF", "#FFDCE5", "#FFF4CC", "#D4F4DD", "#E5D4FF", "#FFE4CC", "#D4F1F4", "#FFD4D4"),
    ),
    ColorPalette(
        "vibrant",
        "Vibrant",
        ("#FF0080", "#7928CA", "#0070F3", "#50E3C2", "#F5A623", "#D0021B", "#4A90E2", "#BD10E0"),
    ),
    ColorPalette(
        "earth",
        "Earth Tones",
        ("#8B4513", "#A0522D", "#CD853F", "#DEB887", "#D2691E", "#BC8F8F", "#F4A460", "#DAA520"),
    ),
    ColorPalette(
        "ocean",
        "Ocean",
        ("#006994", "#0081A7", "#00AFB9", "#FDFCDC", "#FED9B7", "#F07167", "#00B4D8", "#90E0EF"),
    ),
    ColorPalette(
        "monochrome",
        "Monochrome",
        ("#000000", "#1A1A1A", "#333333", "#4D4D4D", "#666666", "#808080", "#999999", "#B3B3B3", "#CCCCCC", "#E6E6E6"),
    ),
    ColorPalette(
        "neon",
        "Neon",
        ("#39FF14", "#FF073A", "#FE019A", "#0FF0FC", "#F5F500", "#FF6EC7", "#16F529"),
    ),
    ColorPalette(
        "sunset",
        "Sunset",
        ("#FF4500", "#FF6A00", "#FF8C00", "#FFA500", "#FFC04D", "#FFD280", "#FFE5B4", "#FFF2D5"),
    ),
    ColorPalette(
        "forest",
        "Forest",
        ("#0B3D0B", "#145214", "#1E6821", "#2E8B57", "#3CB371", "#6DBE83", "#98D7A0", "#C1EBD0"),
    ),
    ColorPalette(
        "cool",
        "Cool Blues",
        ("#001F3F", "#003566", "#0353A4", "#0466C8", "#4EA8DE", "#89C2D9", "#ADE8F4", "#CAF0F8"),
    ),
    ColorPalette(
        "rainbow",
        "Rainbow",
        ("#FF0000", "#FF7F00", "#FFFF00", "#00FF00", "#0000FF", "#4B0082", "#8B00FF"),
    ),
    ColorPalette(
        "gold",
        "Gold & Luxury",
        ("#3C2F2F", "#4F3C3C", "#705A36", "#8B6F47", "#B08D57", "#D4AF37", "#FFD700", "#FFE7A9"),
    ),
    ColorPalette(
        "retro",
        "Retro 80s",
        ("#FF6EC7", "#FFB86C", "#F1FA8C", "#50FA7B", "#8BE9FD", "#BD93F9", "#FF79C6", "#FF5555"),
    ),
)

_PALETTE_LOOKUP: dict[str, ColorPalette] = {p.palette_id: p for p in PALETTES}


def get_palette(palette_id: str) -> ColorPalette:
    """Look up a palette by id; unknown ids resolve to the default palette."""

    return _PALETTE_LOOKUP.get(palette_id, PALETTES[0])


def palette_ids() -> list[str]:
    return [p.palette_id for p in PALETTES]


def assign_colors(labels: Sequence[str], colors: Sequence[str], *, extend: bool = False) -> dict[str, str]:
    if not colors:
        raise ValueError("colors must not be empty")
    out: dict[str, str] = {}
    n = len(colors)
    for label in labels:
        if label in out:
            continue
        i = len(out)
        base = colors[i % n]
        cycle = i // n
        out[label] = shade(base, cycle) if extend and cycle > 0 else base
    return out


def shade(color: str, cycle: int) -> str:
    r, g, b = hex_to_rgb(color)
    h, lightness, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    magnitude = SHADE_STEP * ((cycle + 1) // 2)
    shift = magnitude if cycle % 2 == 1 else -magnitude
    lightness = min(0.95, max(0.05, lightness + shift))
    nr, ng, nb = colorsys.hls_to_rgb(h, lightness, s)
    return rgb_to_hex((int(round(nr * 255)), int(round(ng * 255)), int(round(nb * 255))))


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    if not _HEX_COLOR.match(color):
        raise ValueError(f"expected #RRGGBB color, got {color!r}")
    return (int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16))


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    r, g, b = (max(0, min(255, int(c))) for c in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"
