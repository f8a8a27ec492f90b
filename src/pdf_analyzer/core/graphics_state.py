from __future__ import annotations

import dataclasses
from dataclasses import dataclass

DEFAULT_COLOR = "Gray(0)"
DEFAULT_COLOR_SPACE = "DeviceGray"

RGB_COLOR_SPACES = frozenset({"DeviceRGB", "srgb", "CalRGB"})
GRAY_COLOR_SPACES = frozenset({"DeviceGray", "d65gray", "CalGray"})


def _channel(value: float) -> int:
    """Scale a 0..1 component to 0..255, truncating and saturating."""
    scaled = value * 255.0
    if scaled != scaled:  # NaN
        return 0
    return int(max(0.0, min(255.0, scaled)))


def rgb_tag(r: float, g: float, b: float) -> str:
    return f"RGB({_channel(r)}, {_channel(g)}, {_channel(b)})"


def gray_tag(value: float) -> str:
    return f"Gray({_channel(value)})"


def format_color(color: str, color_space: str) -> str:
    return f"{color} ({color_space})"


@dataclass
class GraphicsState:
    stroke_color: str = DEFAULT_COLOR
    fill_color: str = DEFAULT_COLOR
    stroke_color_space: str = DEFAULT_COLOR_SPACE
    fill_color_space: str = DEFAULT_COLOR_SPACE
    line_width: float = 1.0
    border_width: float = 1.0
    current_point: tuple[float, float] = (0.0, 0.0)
    current_font: bytes | None = None

    def clone(self) -> GraphicsState:
        return dataclasses.replace(self)

    @property
    def font_name(self) -> str | None:
        if self.current_font is None:
            return None
        return self.current_font.decode("utf-8", errors="replace")

    def formatted_fill(self) -> str:
        return format_color(self.fill_color, self.fill_color_space)

    def formatted_stroke(self) -> str:
        return format_color(self.stroke_color, self.stroke_color_space)
