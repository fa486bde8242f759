from __future__ import annotations

from pathlib import Path
from typing import Iterable
import xml.etree.ElementTree as ET

from chartcraft.decorations import AxisGeometry, LegendGeometry
from chartcraft.pipeline import ChartScene
from chartcraft.primitives import (
    ArcMark,
    AreaMark,
    CellMark,
    LineMark,
    LineSegment,
    Mark,
    PointMark,
    RectMark,
    TextPrimitive,
)

SVG_NS = "http://www.w3.org/2000/svg"
BACKGROUND = "#FFFFFF"
CELL_STROKE = "#FFFFFF"
TITLE_SIZE = 16.0
# Treemap leaves narrower or shorter than this get no text.
MIN_CELL_LABEL_PX = 24.0
_BASELINES = {"hanging": "hanging", "middle": "middle", "alphabetic": "alphabetic"}


def scene_to_svg(scene: ChartScene) -> str:
    """Serialize a rendered scene as standalone SVG markup."""

    root = ET.Element(
        "svg",
        {
            "xmlns": SVG_NS,
            "width": _num(scene.width),
            "height": _num(scene.height),
            "viewBox": f"0 0 {_num(scene.width)} {_num(scene.height)}",
        },
    )
    ET.SubElement(root, "rect", {"x": "0", "y": "0", "width": "100%", "height": "100%", "fill": BACKGROUND})

    grid = ET.SubElement(root, "g", {"class": "grid"})
    for axis in scene.axes:
        for seg in axis.grid:
            _line(grid, seg)

    marks = ET.SubElement(root, "g", {"class": "marks"})
    for mark in scene.marks:
        _mark(marks, mark)

    axes = ET.SubElement(root, "g", {"class": "axes"})
    for axis in scene.axes:
        _axis(axes, axis)

    _legend(root, scene.legend)

    if scene.title:
        _text(
            root,
            TextPrimitive(
                x=scene.width / 2.0,
                y=max(TITLE_SIZE, scene.layout.top / 2.0),
                text=scene.title,
                font_size=TITLE_SIZE,
                color="#111827",
                bold=True,
            ),
        )
    return ET.tostring(root, encoding="unicode")


def export_svg(scene: ChartScene, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(scene_to_svg(scene) + "\n", encoding="utf-8")
    return out


def _mark(parent: ET.Element, mark: Mark) -> None:
    if isinstance(mark, RectMark):
        r = mark.rect
        ET.SubElement(
            parent,
            "rect",
            {"x": _num(r.x), "y": _num(r.y), "width": _num(r.width), "height": _num(r.height), "fill": mark.color},
        )
    elif isinstance(mark, PointMark):
        ET.SubElement(parent, "circle", {"cx": _num(mark.x), "cy": _num(mark.y), "r": _num(mark.radius), "fill": mark.color})
    elif isinstance(mark, ArcMark):
        ET.SubElement(parent, "polygon", {"points": _points(mark.outline()), "fill": mark.color})
    elif isinstance(mark, LineMark):
        ET.SubElement(
            parent,
            "polyline",
            {"points": _points(mark.points), "fill": "none", "stroke": mark.color, "stroke-width": _num(mark.width)},
        )
    elif isinstance(mark, AreaMark):
        ET.SubElement(
            parent,
            "polygon",
            {"points": _points(mark.points), "fill": mark.color, "fill-opacity": _num(mark.opacity)},
        )
    elif isinstance(mark, CellMark):
        _cell(parent, mark)


def _cell(parent: ET.Element, cell: CellMark) -> None:
    r = cell.rect
    ET.SubElement(
        parent,
        "rect",
        {
            "x": _num(r.x),
            "y": _num(r.y),
            "width": _num(r.width),
            "height": _num(r.height),
            "fill": cell.color,
            "stroke": CELL_STROKE,
            "stroke-width": "1",
        },
    )
    if cell.is_leaf and r.width >= MIN_CELL_LABEL_PX and r.height >= MIN_CELL_LABEL_PX:
        _text(
            parent,
            TextPrimitive(x=r.x + 4.0, y=r.y + 4.0, text=cell.label, font_size=11.0, color="#FFFFFF", anchor="start", baseline="hanging"),
        )


def _axis(parent: ET.Element, axis: AxisGeometry) -> None:
    group = ET.SubElement(parent, "g", {"class": f"axis axis-{axis.orientation}"})
    if axis.domain_line is not None:
        _line(group, axis.domain_line)
    for seg in axis.ticks:
        _line(group, seg)
    for label in axis.labels:
        _text(group, label)
    if axis.title is not None:
        _text(group, axis.title)


def _legend(parent: ET.Element, legend: LegendGeometry) -> None:
    if legend.region is None:
        return
    group = ET.SubElement(parent, "g", {"class": "legend"})
    for swatch in legend.swatches:
        _mark(group, swatch)
    for text in legend.texts:
        _text(group, text)


def _line(parent: ET.Element, seg: LineSegment) -> None:
    ET.SubElement(
        parent,
        "line",
        {
            "x1": _num(seg.x1),
            "y1": _num(seg.y1),
            "x2": _num(seg.x2),
            "y2": _num(seg.y2),
            "stroke": seg.color,
            "stroke-width": _num(seg.width),
        },
    )


def _text(parent: ET.Element, text: TextPrimitive) -> None:
    attrs = {
        "x": _num(text.x),
        "y": _num(text.y),
        "font-size": _num(text.font_size),
        "fill": text.color,
        "text-anchor": text.anchor,
        "dominant-baseline": _BASELINES.get(text.baseline, "middle"),
    }
    if text.bold:
        attrs["font-weight"] = "bold"
    if text.rotate_deg:
        attrs["transform"] = f"rotate({_num(text.rotate_deg)} {_num(text.x)} {_num(text.y)})"
    elem = ET.SubElement(parent, "text", attrs)
    elem.text = text.text


def _points(points: Iterable[tuple[float, float]]) -> str:
    return " ".join(f"{_num(x)},{_num(y)}" for x, y in points)


def _num(value: float) -> str:
    out = f"{float(value):.2f}".rstrip("0").rstrip(".")
    return "0" if out in ("-0", "") else out
