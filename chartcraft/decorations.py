from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from chartcraft.config import AxisConfig, LegendConfig
from chartcraft.layout import LayoutBox, axis_band, estimate_text_width
from chartcraft.primitives import LineSegment, Rect, RectMark, TextPrimitive
from chartcraft.scales import Scale, ScaleTick
from chartcraft.ticks import format_tick

LOGGER = logging.getLogger(__name__)

GRID_COLOR = "#E5E7EB"
DOMAIN_COLOR = "#9CA3AF"
LEGEND_TEXT_COLOR = "#374151"
SWATCH_TEXT_GAP = 5.0
LEGEND_LINE_HEIGHT = 1.2
MIN_TICK_COUNT = 2
# Minimum free space between neighbouring tick labels, as a fraction of the font size.
LABEL_GAP_RATIO = 0.2
_ALIGN_FRACTION = {"start": 0.0, "center": 0.5, "end": 1.0}


@dataclass(frozen=True)
class AxisGeometry:
    orientation: str
    placement: str
    domain_line: LineSegment | None
    ticks: tuple[LineSegment, ...]
    labels: tuple[TextPrimitive, ...]
    grid: tuple[LineSegment, ...]
    title: TextPrimitive | None
    tick_values: tuple[ScaleTick, ...]


@dataclass(frozen=True)
class LegendEntry:
    label: str
    color: str
    value: float | None = None


@dataclass(frozen=True)
class LegendGeometry:
    region: Rect | None
    swatches: tuple[RectMark, ...]
    texts: tuple[TextPrimitive, ...]
    hidden_count: int = 0


def resolve_tick_count(axis: AxisConfig, axis_length: float) -> int:
    if axis.tick_mode == "count":
        return axis.tick_count
    return max(MIN_TICK_COUNT, int(axis_length // axis.tick_spacing_px))


def label_stride(labels: Sequence[str], spacing: float, font_size: float, angle_deg: float = 0.0) -> int:
    """Show every n-th label so rotated or long labels do not collide."""

    if not labels or spacing <= 0:
        return 1
    widest = max(estimate_text_width(lbl, font_size) for lbl in labels)
    theta = math.radians(angle_deg)
    footprint = abs(math.cos(theta)) * widest + abs(math.sin(theta)) * font_size
    gap = max(2.0, font_size * LABEL_GAP_RATIO)
    return max(1, int(math.ceil((footprint + gap) / spacing)))


def build_axis(axis: AxisConfig, scale: Scale, layout: LayoutBox) -> AxisGeometry | None:
    """Axis line, ticks, labels, grid and title positioned from ``scale``.

    Returns ``None`` for hidden axes. Tick positions use band centres for
    ordinal scales so labels line up with the marks.
    """

    if not axis.is_shown:
        return None
    inner = layout.inner_rect
    horizontal = axis.is_horizontal
    length = inner.width if horizontal else inner.height
    font = axis.label_size.for_width(layout.width)
    band = axis_band(axis, layout.width)

    ticks = scale.ticks(resolve_tick_count(axis, length))
    positioned: list[tuple[ScaleTick, float]] = []
    lo, hi = (inner.x, inner.right) if horizontal else (inner.y, inner.bottom)
    eps = 1e-6
    for tick in ticks:
        pos = scale.center(tick.value)
        if pos is None or pos < lo - eps or pos > hi + eps:
            continue
        positioned.append((tick, pos))
    if horizontal and scale.is_ordinal and positioned:
        stride = label_stride([t.label for t, _ in positioned], scale.step, font, axis.label_angle)
    else:
        stride = 1

    if horizontal:
        sign = 1.0 if axis.placement == "bottom" else -1.0
        base = inner.bottom if axis.placement == "bottom" else inner.y
    else:
        sign = -1.0 if axis.placement == "left" else 1.0
        base = inner.x if axis.placement == "left" else inner.right

    tick_lines: list[LineSegment] = []
    labels: list[TextPrimitive] = []
    grid: list[LineSegment] = []
    for i, (tick, pos) in enumerate(positioned):
        if horizontal:
            tick_lines.append(LineSegment(pos, base, pos, base + sign * band.tick_end, DOMAIN_COLOR))
            if axis.show_grid:
                grid.append(LineSegment(pos, inner.y, pos, inner.bottom, GRID_COLOR))
        else:
            tick_lines.append(LineSegment(base, pos, base + sign * band.tick_end, pos, DOMAIN_COLOR))
            if axis.show_grid:
                grid.append(LineSegment(inner.x, pos, inner.right, pos, GRID_COLOR))
        if i % stride:
            continue
        labels.append(_tick_label(axis, tick.label, pos, base + sign * band.label_offset, font, sign))

    if axis.show_domain:
        if horizontal:
            domain_line = LineSegment(inner.x, base, inner.right, base, DOMAIN_COLOR)
        else:
            domain_line = LineSegment(base, inner.y, base, inner.bottom, DOMAIN_COLOR)
    else:
        domain_line = None

    return AxisGeometry(
        orientation=axis.orientation,
        placement=axis.placement,
        domain_line=domain_line,
        ticks=tuple(tick_lines),
        labels=tuple(labels),
        grid=tuple(grid),
        title=_axis_title(axis, inner, base + sign * band.title_offset, sign),
        tick_values=tuple(t for t, _ in positioned),
    )


def _tick_label(axis: AxisConfig, text: str, pos: float, offset: float, font: float, sign: float) -> TextPrimitive:
    bold = axis.label_weight == "bold"
    if axis.is_horizontal:
        rotated = axis.label_angle != 0
        return TextPrimitive(
            x=pos,
            y=offset,
            text=text,
            font_size=font,
            color=axis.label_color,
            anchor=("end" if sign > 0 else "start") if rotated else "middle",
            baseline="hanging" if sign > 0 else "alphabetic",
            rotate_deg=axis.label_angle,
            bold=bold,
        )
    return TextPrimitive(
        x=offset,
        y=pos,
        text=text,
        font_size=font,
        color=axis.label_color,
        anchor="end" if sign < 0 else "start",
        baseline="middle",
        rotate_deg=axis.label_angle,
        bold=bold,
    )


def _axis_title(axis: AxisConfig, inner: Rect, offset: float, sign: float) -> TextPrimitive | None:
    if not axis.title:
        return None
    bold = axis.title_weight == "bold"
    if axis.is_horizontal:
        return TextPrimitive(
            x=inner.x + inner.width / 2.0,
            y=offset,
            text=axis.title,
            font_size=axis.title_size,
            color=axis.title_color,
            baseline="hanging" if sign > 0 else "alphabetic",
            bold=bold,
        )
    return TextPrimitive(
        x=offset,
        y=inner.y + inner.height / 2.0,
        text=axis.title,
        font_size=axis.title_size,
        color=axis.title_color,
        rotate_deg=-90.0 if sign < 0 else 90.0,
        bold=bold,
    )


def legend_text(entry: LegendEntry, show_values: bool) -> str:
    if show_values and entry.value is not None:
        return f"{entry.label}: {format_tick(entry.value)}"
    return entry.label


def build_legend(layout: LayoutBox, legend: LegendConfig, entries: Sequence[LegendEntry]) -> LegendGeometry:
    """Swatches and labels inside the reserved legend region.

    Left/right legends stack entries vertically; top/bottom legends wrap
    entries into rows. Entries that do not fit are dropped and counted in
    ``hidden_count``.
    """

    region = layout.legend_region
    if not legend.visible or region is None:
        return LegendGeometry(region=None, swatches=(), texts=())
    content = region.inset(legend.padding_top, legend.padding_right, legend.padding_bottom, legend.padding_left)
    font = legend.font_size(layout.width)
    item_h = max(legend.swatch_size, font * LEGEND_LINE_HEIGHT)
    items = [(entry, legend_text(entry, legend.show_values)) for entry in entries]
    align = _ALIGN_FRACTION[legend.alignment]

    if legend.placement in ("left", "right"):
        placed = _stack_vertical(items, content, item_h, legend.gap / 2.0, align)
    else:
        placed = _wrap_rows(items, content, item_h, font, legend, align)

    swatches: list[RectMark] = []
    texts: list[TextPrimitive] = []
    for entry, text, x, y in placed:
        swatches.append(
            RectMark(
                rect=Rect(x=x, y=y + (item_h - legend.swatch_size) / 2.0, width=legend.swatch_size, height=legend.swatch_size),
                label=entry.label,
                series=entry.label,
                value=entry.value if entry.value is not None else 0.0,
                color=entry.color,
            )
        )
        texts.append(
            TextPrimitive(
                x=x + legend.swatch_size + SWATCH_TEXT_GAP,
                y=y + item_h / 2.0,
                text=text,
                font_size=font,
                color=LEGEND_TEXT_COLOR,
                anchor="start",
            )
        )
    hidden = len(entries) - len(placed)
    if hidden:
        LOGGER.debug("legend region %.1fx%.1f fits %d of %d entries", region.width, region.height, len(placed), len(entries))
    return LegendGeometry(region=region, swatches=tuple(swatches), texts=tuple(texts), hidden_count=hidden)


def _stack_vertical(
    items: list[tuple[LegendEntry, str]],
    content: Rect,
    item_h: float,
    spacing: float,
    align: float,
) -> list[tuple[LegendEntry, str, float, float]]:
    fit = 0
    used = 0.0
    for _ in items:
        need = item_h if fit == 0 else item_h + spacing
        if used + need > content.height + 1e-9:
            break
        used += need
        fit += 1
    y = content.y + (content.height - used) * align
    out = []
    for entry, text in items[:fit]:
        out.append((entry, text, content.x, y))
        y += item_h + spacing
    return out


def _wrap_rows(
    items: list[tuple[LegendEntry, str]],
    content: Rect,
    item_h: float,
    font: float,
    legend: LegendConfig,
    align: float,
) -> list[tuple[LegendEntry, str, float, float]]:
    rows: list[list[tuple[LegendEntry, str, float]]] = [[]]
    row_w = 0.0
    for entry, text in items:
        w = legend.swatch_size + SWATCH_TEXT_GAP + estimate_text_width(text, font)
        step = w if not rows[-1] else legend.gap + w
        if rows[-1] and row_w + step > content.width:
            rows.append([])
            row_w, step = 0.0, w
        rows[-1].append((entry, text, w))
        row_w += step

    row_gap = legend.gap / 4.0
    out: list[tuple[LegendEntry, str, float, float]] = []
    y = content.y
    for row in rows:
        if not row or y + item_h > content.bottom + 1e-9:
            break
        total = sum(w for _, _, w in row) + legend.gap * (len(row) - 1)
        x = content.x + max(0.0, content.width - total) * align
        for entry, text, w in row:
            if x + w > content.right + 1e-9:
                break
            out.append((entry, text, x, y))
            x += w + legend.gap
        y += item_h + row_gap
    return out
