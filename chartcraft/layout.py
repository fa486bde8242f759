from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from chartcraft.config import AxisConfig, LegendConfig, resolve_breakpoint
from chartcraft.primitives import Rect

LOGGER = logging.getLogger(__name__)

EDGES: tuple[str, ...] = ("top", "right", "bottom", "left")
# Space kept free on the legend's edge when the legend is hidden but axes are drawn,
# so the outermost tick label is not clipped by the canvas.
MIN_AXIS_ALLOWANCE: dict[str, float] = {"top": 20.0, "right": 40.0, "bottom": 40.0, "left": 50.0}
CHAR_WIDTH_RATIO = 0.6
DEFAULT_EDGE_PADDING = 0.0


@dataclass(frozen=True)
class AxisBand:
    tick_end: float
    label_offset: float
    label_extent: float
    title_offset: float
    total: float


@dataclass(frozen=True)
class LayoutBox:
    width: float
    height: float
    top: float
    right: float
    bottom: float
    left: float
    inner_width: float
    inner_height: float
    breakpoint: str
    legend_region: Rect | None = None

    @property
    def inner_rect(self) -> Rect:
        return Rect(x=self.left, y=self.top, width=self.inner_width, height=self.inner_height)


def estimate_text_width(text: str, font_size: float) -> float:
    return len(text) * font_size * CHAR_WIDTH_RATIO


def axis_label_font_size(axis: AxisConfig, canvas_width: float) -> float:
    return axis.label_size.for_width(canvas_width)


def axis_label_extent(axis: AxisConfig, font_size: float) -> float:
    """Extent of tick labels measured perpendicular to the axis line."""

    text_h = font_size * axis.label_line_height
    text_w = axis.label_chars * font_size * CHAR_WIDTH_RATIO
    theta = math.radians(axis.label_angle)
    if axis.is_horizontal:
        return abs(math.sin(theta)) * text_w + abs(math.cos(theta)) * text_h
    return abs(math.cos(theta)) * text_w + abs(math.sin(theta)) * text_h


def axis_band(axis: AxisConfig, canvas_width: float) -> AxisBand:
    font_size = axis_label_font_size(axis, canvas_width)
    tick_end = axis.tick_length
    label_offset = tick_end + axis.tick_padding
    extent = axis_label_extent(axis, font_size)
    title_offset = label_offset + extent + axis.label_spacing + axis.title_padding
    return AxisBand(
        tick_end=tick_end,
        label_offset=label_offset,
        label_extent=extent,
        title_offset=title_offset,
        total=title_offset + axis.title_size,
    )


def compute_layout(
    canvas_size: tuple[float, float],
    legend: LegendConfig,
    axes: Iterable[AxisConfig],
    *,
    edge_padding: float = DEFAULT_EDGE_PADDING,
) -> LayoutBox:
    width = max(0.0, float(canvas_size[0]))
    height = max(0.0, float(canvas_size[1]))
    margins = {edge: 0.0 for edge in EDGES}
    shown = [axis for axis in axes if axis.is_shown]

    if legend.visible:
        margins[legend.placement] += legend.space
    elif shown:
        margins[legend.placement] += MIN_AXIS_ALLOWANCE[legend.placement]

    for axis in shown:
        margins[axis.placement] += axis_band(axis, width).total

    margins["top"] += edge_padding
    margins["bottom"] += edge_padding

    raw_w = width - margins["left"] - margins["right"]
    raw_h = height - margins["top"] - margins["bottom"]
    if raw_w < 0 or raw_h < 0:
        LOGGER.debug("layout margins exceed canvas %.1fx%.1f; clamping plot area", width, height)
    inner_w = max(0.0, raw_w)
    inner_h = max(0.0, raw_h)

    box = LayoutBox(
        width=width,
        height=height,
        top=margins["top"],
        right=margins["right"],
        bottom=margins["bottom"],
        left=margins["left"],
        inner_width=inner_w,
        inner_height=inner_h,
        breakpoint=resolve_breakpoint(width),
    )
    if not legend.visible:
        return box
    return dataclasses.replace(box, legend_region=_legend_region(box, legend, edge_padding))


def _legend_region(box: LayoutBox, legend: LegendConfig, edge_padding: float) -> Rect:
    space = legend.space
    if legend.placement == "right":
        x = max(0.0, box.width - space)
        return Rect(x=x, y=box.top, width=box.width - x, height=box.inner_height)
    if legend.placement == "left":
        return Rect(x=0.0, y=box.top, width=min(space, box.width), height=box.inner_height)
    if legend.placement == "top":
        y = min(edge_padding, box.height)
        return Rect(x=box.left, y=y, width=box.inner_width, height=max(0.0, min(space, box.height - y)))
    y = max(0.0, box.height - edge_padding - space)
    return Rect(x=box.left, y=y, width=box.inner_width, height=max(0.0, min(space, box.height - edge_padding - y)))
