from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

from chartcraft.config import AxisConfig, ChartDocument
from chartcraft.decorations import AxisGeometry, LegendEntry, LegendGeometry, build_axis, build_legend
from chartcraft.errors import UnknownChartTypeError
from chartcraft.layout import LayoutBox, compute_layout
from chartcraft.marks import (
    build_hierarchy,
    diverging_items,
    layout_treemap,
    position_areas,
    position_bars,
    position_diverging,
    position_lines,
    position_pie,
    position_points,
    position_polar_area,
    position_radar,
    position_radial_bars,
    sort_diverging,
    value_domain,
)
from chartcraft.marks.diverging import NEGATIVE_COLOR, POSITIVE_COLOR
from chartcraft.palettes import assign_colors, get_palette
from chartcraft.primitives import Mark
from chartcraft.rows import Row, column, infer_scale_kind, normalize_rows
from chartcraft.scales import Scale, ScaleOptions, create_scale, unique_categories

LOGGER = logging.getLogger(__name__)

DONUT_INNER_RATIO = 0.6


@dataclass(frozen=True)
class ChartScene:
    chart_type: str
    width: float
    height: float
    layout: LayoutBox
    marks: tuple[Mark, ...]
    axes: tuple[AxisGeometry, ...] = ()
    legend: LegendGeometry = field(default_factory=lambda: LegendGeometry(region=None, swatches=(), texts=()))
    colors: Mapping[str, str] = field(default_factory=dict)
    title: str = ""
    x_scale: Scale | None = None
    y_scale: Scale | None = None


Renderer = Callable[[Sequence[Row], ChartDocument], ChartScene]


def render_chart(rows: Any, document: ChartDocument) -> ChartScene:
    """Turn rows plus a chart document into positioned marks, axes and legend."""

    renderer = CHART_RENDERERS.get(document.chart_type)
    if renderer is None:
        raise UnknownChartTypeError(f"unknown chart type: {document.chart_type!r}")
    normalized = normalize_rows(rows)
    LOGGER.debug("rendering %s chart over %d row(s)", document.chart_type, len(normalized))
    return renderer(normalized, document)


def chart_types() -> list[str]:
    return sorted(CHART_RENDERERS)


def _palette_colors(document: ChartDocument, keys: Sequence[str]) -> dict[str, str]:
    return assign_colors(keys, get_palette(document.palette_id).colors, extend=document.palette_extend)


def _scale_options(axis: AxisConfig, **overrides: Any) -> ScaleOptions:
    base = dict(nice=axis.nice, flip=axis.flip, domain_min=axis.domain_min, domain_max=axis.domain_max)
    base.update(overrides)
    return ScaleOptions(**base)


def _legend(document: ChartDocument, layout: LayoutBox, entries: Sequence[LegendEntry]) -> LegendGeometry:
    return build_legend(layout, document.legend, entries)


def _axes(pairs: Sequence[tuple[AxisConfig, Scale]], layout: LayoutBox) -> tuple[AxisGeometry, ...]:
    out = []
    for axis, scale in pairs:
        geometry = build_axis(axis, scale, layout)
        if geometry is not None:
            out.append(geometry)
    return tuple(out)


def _cartesian_layout(document: ChartDocument) -> LayoutBox:
    return compute_layout(
        (document.width, document.height),
        document.legend,
        (document.x_axis, document.y_axis),
        edge_padding=document.options.edge_padding,
    )


def _polar_layout(document: ChartDocument) -> LayoutBox:
    return compute_layout(
        (document.width, document.height),
        document.legend,
        (),
        edge_padding=document.options.edge_padding,
    )


def _value_scale(rows: Sequence[Row], document: ChartDocument, axis: AxisConfig, rng: tuple[float, float], *, stacked: bool) -> Scale:
    kind = axis.scale_kind
    if kind in ("band", "point"):
        LOGGER.debug("%s scale on a value axis; using linear", kind)
        kind = "linear"
    elif kind == "auto":
        kind = "linear"
    fields = document.fields.value_fields
    if kind == "linear":
        values: list[Any] = list(value_domain(rows, fields, force_zero=axis.force_zero, stacked=stacked))
    else:
        values = [row.get(name) for row in rows for name in fields]
    scale = create_scale(kind, values, rng, _scale_options(axis))
    if scale.is_ordinal:
        # time falls back to points when nothing parses as a date
        LOGGER.debug("%s value axis resolved to %s scale; using linear", kind, scale.kind)
        values = list(value_domain(rows, fields, force_zero=axis.force_zero, stacked=stacked))
        scale = create_scale("linear", values, rng, _scale_options(axis))
    return scale


def _label_scale(rows: Sequence[Row], document: ChartDocument, axis: AxisConfig, rng: tuple[float, float]) -> Scale:
    labels = column(rows, document.fields.label_field)
    kind = infer_scale_kind(labels) if axis.scale_kind == "auto" else axis.scale_kind
    return create_scale(kind, labels, rng, _scale_options(axis))


def _series_legend(colors: Mapping[str, str], series: Sequence[str]) -> list[LegendEntry]:
    return [LegendEntry(label=name, color=colors[name]) for name in series]


def _render_xy(kind: str) -> Renderer:
    def render(rows: Sequence[Row], document: ChartDocument) -> ChartScene:
        layout = _cartesian_layout(document)
        inner = layout.inner_rect
        x_scale = _label_scale(rows, document, document.x_axis, (inner.x, inner.right))
        y_scale = _value_scale(rows, document, document.y_axis, (inner.bottom, inner.y), stacked=False)
        series = document.fields.value_fields
        colors = _palette_colors(document, series)
        marks: list[Mark]
        if kind == "line":
            marks = list(position_lines(rows, document.fields, x_scale, y_scale, colors))
        elif kind == "area":
            marks = list(position_areas(rows, document.fields, x_scale, y_scale, colors))
        else:
            marks = list(
                position_points(rows, document.fields, x_scale, y_scale, colors, radius=document.options.point_radius)
            )
        return ChartScene(
            chart_type=document.chart_type,
            width=layout.width,
            height=layout.height,
            layout=layout,
            marks=tuple(marks),
            axes=_axes(((document.x_axis, x_scale), (document.y_axis, y_scale)), layout),
            legend=_legend(document, layout, _series_legend(colors, series)),
            colors=colors,
            title=document.title,
            x_scale=x_scale,
            y_scale=y_scale,
        )

    return render


def _render_bars(horizontal: bool) -> Renderer:
    def render(rows: Sequence[Row], document: ChartDocument) -> ChartScene:
        layout = _cartesian_layout(document)
        inner = layout.inner_rect
        opts = document.options
        stacked = opts.bar_mode == "stacked"
        labels = column(rows, document.fields.label_field)
        if horizontal:
            category_axis, value_axis = document.y_axis, document.x_axis
            category_range, value_range = (inner.y, inner.bottom), (inner.x, inner.right)
        else:
            category_axis, value_axis = document.x_axis, document.y_axis
            category_range, value_range = (inner.x, inner.right), (inner.bottom, inner.y)
        category_scale = create_scale("band", labels, category_range, _scale_options(category_axis, padding=opts.bar_padding))
        value_scale = _value_scale(rows, document, value_axis, value_range, stacked=stacked)
        series = document.fields.value_fields
        colors = _palette_colors(document, series)
        marks = position_bars(
            rows,
            document.fields,
            category_scale,
            value_scale,
            colors,
            horizontal=horizontal,
            stacked=stacked,
        )
        x_scale, y_scale = (value_scale, category_scale) if horizontal else (category_scale, value_scale)
        return ChartScene(
            chart_type=document.chart_type,
            width=layout.width,
            height=layout.height,
            layout=layout,
            marks=tuple(marks),
            axes=_axes(((document.x_axis, x_scale), (document.y_axis, y_scale)), layout),
            legend=_legend(document, layout, _series_legend(colors, series)),
            colors=colors,
            title=document.title,
            x_scale=x_scale,
            y_scale=y_scale,
        )

    return render


def _render_diverging(rows: Sequence[Row], document: ChartDocument) -> ChartScene:
    layout = _cartesian_layout(document)
    items = sort_diverging(diverging_items(rows, document.fields), document.options.sort_mode)
    marks, x_scale, y_scale = position_diverging(items, layout.inner_rect, bar_padding=document.options.bar_padding)
    colors = {"positive": POSITIVE_COLOR, "negative": NEGATIVE_COLOR}
    entries = [LegendEntry(label="positive", color=POSITIVE_COLOR), LegendEntry(label="negative", color=NEGATIVE_COLOR)]
    return ChartScene(
        chart_type=document.chart_type,
        width=layout.width,
        height=layout.height,
        layout=layout,
        marks=tuple(marks),
        axes=_axes(((document.x_axis, x_scale), (document.y_axis, y_scale)), layout),
        legend=_legend(document, layout, entries),
        colors=colors,
        title=document.title,
        x_scale=x_scale,
        y_scale=y_scale,
    )


def _render_polar(kind: str) -> Renderer:
    def render(rows: Sequence[Row], document: ChartDocument) -> ChartScene:
        layout = _polar_layout(document)
        inner = layout.inner_rect
        opts = document.options
        fields = document.fields
        by_label = kind in ("pie", "donut", "polar-area")
        if by_label:
            keys = list(unique_categories(column(rows, fields.label_field)))
        else:
            keys = list(fields.value_fields)
        colors = _palette_colors(document, keys)

        marks: list[Mark]
        if kind in ("pie", "donut"):
            ratio = opts.inner_radius_ratio
            if kind == "donut" and ratio == 0:
                ratio = DONUT_INNER_RATIO
            marks = list(position_pie(rows, fields, inner, colors, inner_radius_ratio=ratio, pad_angle=opts.pad_angle))
        elif kind == "polar-area":
            marks = list(position_polar_area(rows, fields, inner, colors, pad_angle=opts.pad_angle))
        elif kind == "radial-bar":
            marks = list(
                position_radial_bars(
                    rows,
                    fields,
                    inner,
                    colors,
                    inner_ratio=opts.radial_inner_ratio,
                    pad_angle=opts.pad_angle / 2.0,
                )
            )
        else:
            areas, points = position_radar(rows, fields, inner, colors)
            marks = [*areas, *points]

        entries = [LegendEntry(label=k, color=colors[k]) for k in keys]
        if by_label and document.legend.show_values:
            totals: dict[str, float] = {}
            for mark in marks:
                totals[mark.label] = totals.get(mark.label, 0.0) + mark.value  # type: ignore[union-attr]
            entries = [LegendEntry(label=e.label, color=e.color, value=totals.get(e.label)) for e in entries]
        return ChartScene(
            chart_type=document.chart_type,
            width=layout.width,
            height=layout.height,
            layout=layout,
            marks=tuple(marks),
            legend=_legend(document, layout, entries),
            colors=colors,
            title=document.title,
        )

    return render


def _render_treemap(rows: Sequence[Row], document: ChartDocument) -> ChartScene:
    layout = _polar_layout(document)
    root = build_hierarchy(rows, document.fields)
    keys = [child.name for child in root.children]
    colors = _palette_colors(document, keys)
    cells = layout_treemap(
        root,
        layout.inner_rect,
        colors,
        method=document.options.tiling_method,
        padding=document.options.treemap_padding,
    )
    entries = [
        LegendEntry(label=child.name, color=colors[child.name], value=child.value if document.legend.show_values else None)
        for child in root.children
    ]
    return ChartScene(
        chart_type=document.chart_type,
        width=layout.width,
        height=layout.height,
        layout=layout,
        marks=tuple(cells),
        legend=_legend(document, layout, entries),
        colors=colors,
        title=document.title,
    )


CHART_RENDERERS: dict[str, Renderer] = {
    "line": _render_xy("line"),
    "area": _render_xy("area"),
    "scatter": _render_xy("scatter"),
    "bar": _render_bars(horizontal=False),
    "bar-horizontal": _render_bars(horizontal=True),
    "diverging-bar": _render_diverging,
    "pie": _render_polar("pie"),
    "donut": _render_polar("donut"),
    "polar-area": _render_polar("polar-area"),
    "radial-bar": _render_polar("radial-bar"),
    "radar": _render_polar("radar"),
    "treemap": _render_treemap,
}
