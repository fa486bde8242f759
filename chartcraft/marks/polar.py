from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence

from chartcraft.primitives import ArcMark, AreaMark, PointMark, Rect, polar_to_cartesian
from chartcraft.rows import FieldSelection, Row, coerce_number
from chartcraft.scales import BandScale, LinearScale, SqrtScale, category_key

LOGGER = logging.getLogger(__name__)

TAU = 2.0 * math.pi
DEFAULT_COLOR = "#000000"
# Space kept between the outermost ring and the plot edge for outside labels.
POLAR_LABEL_MARGIN = 40.0
RADAR_LABEL_MARGIN = 60.0


def pad_segment(start: float, end: float, pad_angle: float) -> tuple[float, float]:
    """Shrink ``[start, end]`` by ``pad_angle / 2`` on each side, collapsing to the midpoint if too narrow."""

    span = end - start
    if pad_angle <= 0:
        return start, end
    if span <= pad_angle:
        mid = (start + end) / 2.0
        return mid, mid
    half = pad_angle / 2.0
    return start + half, end - half


def _center_and_radius(inner: Rect, margin: float = 0.0) -> tuple[float, float, float]:
    cx = inner.x + inner.width / 2.0
    cy = inner.y + inner.height / 2.0
    radius = max(0.0, min(inner.width, inner.height) / 2.0 - margin)
    return cx, cy, radius


def position_pie(
    rows: Sequence[Row],
    fields: FieldSelection,
    inner: Rect,
    colors: Mapping[str, str],
    *,
    inner_radius_ratio: float = 0.0,
    pad_angle: float = 0.0,
) -> list[ArcMark]:
    """Pie (or donut when ``inner_radius_ratio > 0``) over the primary value field.

    Negative and non-numeric values contribute no angle. An all-zero series
    yields no arcs.
    """

    cx, cy, outer = _center_and_radius(inner)
    series = fields.primary_value_field
    labels = [category_key(row.get(fields.label_field)) for row in rows]
    values = [max(0.0, coerce_number(row.get(series)) or 0.0) for row in rows]
    total = sum(values)
    if total <= 0:
        LOGGER.debug("pie total is zero across %d row(s); no arcs produced", len(rows))
        return []

    marks: list[ArcMark] = []
    angle = 0.0
    for i, (label, value) in enumerate(zip(labels, values)):
        span = TAU * value / total
        start, end = pad_segment(angle, angle + span, pad_angle)
        angle += span
        if value == 0:
            continue
        marks.append(
            ArcMark(
                cx=cx,
                cy=cy,
                start_angle=start,
                end_angle=end,
                inner_radius=outer * inner_radius_ratio,
                outer_radius=outer,
                label=label,
                series=series,
                value=value,
                color=colors.get(label, DEFAULT_COLOR),
                row_index=i,
            )
        )
    return marks


def position_polar_area(
    rows: Sequence[Row],
    fields: FieldSelection,
    inner: Rect,
    colors: Mapping[str, str],
    *,
    pad_angle: float = 0.02,
) -> list[ArcMark]:
    cx, cy, radius = _center_and_radius(inner, POLAR_LABEL_MARGIN)
    series = fields.primary_value_field
    values = [max(0.0, coerce_number(row.get(series)) or 0.0) for row in rows]
    n = len(values)
    if n == 0:
        return []
    radius_scale = SqrtScale(domain=(0.0, max(values) or 1.0), range=(0.0, radius))
    angle_scale = LinearScale(domain=(0.0, float(n)), range=(0.0, TAU))

    marks: list[ArcMark] = []
    for i, (row, value) in enumerate(zip(rows, values)):
        label = category_key(row.get(fields.label_field))
        start, end = pad_segment(angle_scale(i) or 0.0, angle_scale(i + 1) or 0.0, pad_angle)
        marks.append(
            ArcMark(
                cx=cx,
                cy=cy,
                start_angle=start,
                end_angle=end,
                inner_radius=0.0,
                outer_radius=radius_scale(value) or 0.0,
                label=label,
                series=series,
                value=value,
                color=colors.get(label, DEFAULT_COLOR),
                row_index=i,
            )
        )
    return marks


def position_radial_bars(
    rows: Sequence[Row],
    fields: FieldSelection,
    inner: Rect,
    colors: Mapping[str, str],
    *,
    inner_ratio: float = 0.25,
    pad_angle: float = 0.01,
) -> list[ArcMark]:
    """One angular band per category, value fields stacked outward from an inner ring."""

    cx, cy, half = _center_and_radius(inner)
    inner_radius = half * inner_ratio
    outer_radius = max(inner_radius, half - POLAR_LABEL_MARGIN)
    angle = BandScale(
        domain=tuple(dict.fromkeys(category_key(row.get(fields.label_field)) for row in rows)),
        range=(0.0, TAU),
        align=0.0,
    )
    totals = [sum(coerce_number(row.get(name)) or 0.0 for name in fields.value_fields) for row in rows]
    radius = LinearScale(domain=(0.0, max(totals, default=0.0) or 1.0), range=(inner_radius, outer_radius))

    marks: list[ArcMark] = []
    for i, row in enumerate(rows):
        label = category_key(row.get(fields.label_field))
        a0 = angle(label)
        if a0 is None:
            continue
        start, end = pad_segment(a0, a0 + angle.bandwidth, pad_angle)
        acc = 0.0
        for series in fields.value_fields:
            value = coerce_number(row.get(series)) or 0.0
            r0 = radius(acc) or inner_radius
            acc += value
            r1 = radius(acc) or inner_radius
            marks.append(
                ArcMark(
                    cx=cx,
                    cy=cy,
                    start_angle=start,
                    end_angle=end,
                    inner_radius=min(r0, r1),
                    outer_radius=max(r0, r1),
                    label=label,
                    series=series,
                    value=value,
                    color=colors.get(series, DEFAULT_COLOR),
                    row_index=i,
                )
            )
    return marks


def position_radar(
    rows: Sequence[Row],
    fields: FieldSelection,
    inner: Rect,
    colors: Mapping[str, str],
    *,
    radius_scale_max: float | None = None,
) -> tuple[list[AreaMark], list[PointMark]]:
    """Closed polygon per value field with one spoke per row label."""

    cx, cy, radius = _center_and_radius(inner, RADAR_LABEL_MARGIN)
    labels = tuple(dict.fromkeys(category_key(row.get(fields.label_field)) for row in rows))
    if not labels:
        return [], []
    spokes = BandScale(domain=labels, range=(0.0, TAU), align=0.0)
    peak = radius_scale_max
    if peak is None:
        peak = max(
            (coerce_number(row.get(name)) or 0.0 for row in rows for name in fields.value_fields),
            default=0.0,
        )
    radial = LinearScale(domain=(0.0, peak or 1.0), range=(0.0, radius))

    areas: list[AreaMark] = []
    points: list[PointMark] = []
    for series in fields.value_fields:
        color = colors.get(series, DEFAULT_COLOR)
        polygon: list[tuple[float, float]] = []
        for i, row in enumerate(rows):
            label = category_key(row.get(fields.label_field))
            theta = spokes(label)
            value = max(0.0, coerce_number(row.get(series)) or 0.0)
            r = radial(value)
            if theta is None or r is None:
                continue
            x, y = polar_to_cartesian(cx, cy, r, theta)
            polygon.append((x, y))
            points.append(PointMark(x=x, y=y, label=label, series=series, value=value, color=color, row_index=i))
        if polygon:
            areas.append(AreaMark(points=tuple(polygon), series=series, color=color, opacity=0.3))
    return areas, points
