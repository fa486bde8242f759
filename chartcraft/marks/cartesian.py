from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np

from chartcraft.primitives import AreaMark, LineMark, PointMark, Rect, RectMark
from chartcraft.rows import FieldSelection, Row, coerce_number
from chartcraft.scales import BandScale, Scale, category_key

LOGGER = logging.getLogger(__name__)

DEFAULT_COLOR = "#000000"
SUB_BAND_PADDING = 0.05


def value_domain(
    rows: Sequence[Row],
    value_fields: Sequence[str],
    *,
    force_zero: bool = True,
    stacked: bool = False,
) -> tuple[float, float]:
    """Extent of the value fields, summed per row and sign when ``stacked``."""

    if stacked:
        pos = np.zeros(len(rows), dtype=np.float64)
        neg = np.zeros(len(rows), dtype=np.float64)
        for i, row in enumerate(rows):
            for name in value_fields:
                v = coerce_number(row.get(name))
                if v is None:
                    continue
                if v >= 0:
                    pos[i] += v
                else:
                    neg[i] += v
        arr = np.concatenate([pos, neg]) if rows else np.zeros(0, dtype=np.float64)
    else:
        vals = [coerce_number(row.get(name)) for row in rows for name in value_fields]
        arr = np.asarray([v for v in vals if v is not None], dtype=np.float64)

    if arr.size == 0:
        return (0.0, 1.0)
    lo, hi = float(np.min(arr)), float(np.max(arr))
    if force_zero:
        lo, hi = min(lo, 0.0), max(hi, 0.0)
    return lo, hi


def baseline_value(scale: Scale) -> float:
    """Zero clamped into the scale's domain; bars grow from here."""

    lo, hi = sorted(float(v) for v in scale.domain)
    return min(max(0.0, lo), hi)


def position_points(
    rows: Sequence[Row],
    fields: FieldSelection,
    x_scale: Scale,
    y_scale: Scale,
    colors: Mapping[str, str],
    *,
    radius: float = 3.0,
) -> list[PointMark]:
    marks: list[PointMark] = []
    skipped = 0
    for i, row in enumerate(rows):
        label = row.get(fields.label_field)
        x = x_scale.center(label)
        for series in fields.value_fields:
            raw = row.get(series)
            y = y_scale.center(raw)
            if x is None or y is None:
                skipped += 1
                continue
            marks.append(
                PointMark(
                    x=x,
                    y=y,
                    label=category_key(label),
                    series=series,
                    value=coerce_number(raw) or 0.0,
                    color=colors.get(series, DEFAULT_COLOR),
                    radius=radius,
                    row_index=i,
                )
            )
    if skipped:
        LOGGER.debug("skipped %d unmappable point(s)", skipped)
    return marks


def position_lines(
    rows: Sequence[Row],
    fields: FieldSelection,
    x_scale: Scale,
    y_scale: Scale,
    colors: Mapping[str, str],
    *,
    width: float = 2.0,
) -> list[LineMark]:
    marks: list[LineMark] = []
    for series in fields.value_fields:
        points = _series_points(rows, fields.label_field, series, x_scale, y_scale)
        if not points:
            continue
        marks.append(LineMark(points=tuple(points), series=series, color=colors.get(series, DEFAULT_COLOR), width=width))
    return marks


def position_areas(
    rows: Sequence[Row],
    fields: FieldSelection,
    x_scale: Scale,
    y_scale: Scale,
    colors: Mapping[str, str],
    *,
    opacity: float = 0.6,
) -> list[AreaMark]:
    base_y = y_scale(baseline_value(y_scale))
    marks: list[AreaMark] = []
    for series in fields.value_fields:
        top = _series_points(rows, fields.label_field, series, x_scale, y_scale)
        if not top or base_y is None:
            continue
        polygon = top + [(x, base_y) for x, _ in reversed(top)]
        marks.append(
            AreaMark(points=tuple(polygon), series=series, color=colors.get(series, DEFAULT_COLOR), opacity=opacity)
        )
    return marks


def position_bars(
    rows: Sequence[Row],
    fields: FieldSelection,
    category_scale: BandScale,
    value_scale: Scale,
    colors: Mapping[str, str],
    *,
    horizontal: bool = False,
    stacked: bool = False,
) -> list[RectMark]:
    """Bars per row and value field.

    Vertical bars take the category on x and the value on y; ``horizontal``
    swaps the two. Grouped bars split each band into one sub-band per value
    field, stacked bars share the band and accumulate positive and negative
    values separately from the baseline.
    """

    base = baseline_value(value_scale)
    n_series = len(fields.value_fields)
    if stacked or n_series == 1:
        sub = None
    else:
        sub = BandScale(
            domain=tuple(fields.value_fields),
            range=(0.0, category_scale.bandwidth),
            padding_inner=SUB_BAND_PADDING,
        )

    marks: list[RectMark] = []
    for i, row in enumerate(rows):
        label = row.get(fields.label_field)
        band_start = category_scale(label)
        if band_start is None:
            continue
        pos_acc = base
        neg_acc = base
        for series in fields.value_fields:
            v = coerce_number(row.get(series))
            if v is None:
                continue
            if stacked:
                if v >= 0:
                    lo_v, hi_v = pos_acc, pos_acc + v
                    pos_acc = hi_v
                else:
                    lo_v, hi_v = neg_acc + v, neg_acc
                    neg_acc = lo_v
                offset, thickness = 0.0, category_scale.bandwidth
            else:
                lo_v, hi_v = min(base, v), max(base, v)
                if sub is None:
                    offset, thickness = 0.0, category_scale.bandwidth
                else:
                    offset, thickness = sub(series) or 0.0, sub.bandwidth
            p0 = value_scale(lo_v)
            p1 = value_scale(hi_v)
            if p0 is None or p1 is None:
                continue
            along = band_start + offset
            extent_lo, extent = min(p0, p1), abs(p1 - p0)
            if horizontal:
                rect = Rect(x=extent_lo, y=along, width=extent, height=thickness)
            else:
                rect = Rect(x=along, y=extent_lo, width=thickness, height=extent)
            marks.append(
                RectMark(
                    rect=rect,
                    label=category_key(label),
                    series=series,
                    value=v,
                    color=colors.get(series, DEFAULT_COLOR),
                    row_index=i,
                )
            )
    return marks


def _series_points(
    rows: Sequence[Row],
    label_field: str,
    series: str,
    x_scale: Scale,
    y_scale: Scale,
) -> list[tuple[float, float]]:
    out: list[tuple[float, float]] = []
    for row in rows:
        x = x_scale.center(row.get(label_field))
        y = y_scale.center(row.get(series))
        if x is None or y is None:
            continue
        out.append((x, y))
    return out
