from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from chartcraft.palettes import hex_to_rgb
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

Color = tuple[int, int, int, int]

BACKGROUND: Color = (255, 255, 255, 255)
CELL_STROKE: Color = (255, 255, 255, 255)
TITLE_SIZE = 16.0


def scene_to_image(scene: ChartScene) -> Image.Image:
    width = max(1, int(round(scene.width)))
    height = max(1, int(round(scene.height)))
    image = Image.new("RGBA", (width, height), color=BACKGROUND)
    draw = ImageDraw.Draw(image, "RGBA")

    for axis in scene.axes:
        for seg in axis.grid:
            _line(draw, seg)
    for mark in scene.marks:
        _mark(draw, mark)
    for axis in scene.axes:
        if axis.domain_line is not None:
            _line(draw, axis.domain_line)
        for seg in axis.ticks:
            _line(draw, seg)
        for label in axis.labels:
            _text(image, draw, label)
        if axis.title is not None:
            _text(image, draw, axis.title)
    if scene.legend.region is not None:
        for swatch in scene.legend.swatches:
            _mark(draw, swatch)
        for text in scene.legend.texts:
            _text(image, draw, text)
    if scene.title:
        title = TextPrimitive(
            x=scene.width / 2.0,
            y=max(TITLE_SIZE, scene.layout.top / 2.0),
            text=scene.title,
            font_size=TITLE_SIZE,
            color="#111827",
            bold=True,
        )
        _text(image, draw, title)
    return image


def export_png(scene: ChartScene, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    scene_to_image(scene).save(out, format="PNG")
    return out


def _rgba(color: str, opacity: float = 1.0) -> Color:
    r, g, b = hex_to_rgb(color)
    return (r, g, b, int(round(max(0.0, min(1.0, opacity)) * 255)))


def _mark(draw: ImageDraw.ImageDraw, mark: Mark) -> None:
    if isinstance(mark, (RectMark, CellMark)):
        r = mark.rect
        if r.width <= 0 or r.height <= 0:
            return
        outline = CELL_STROKE if isinstance(mark, CellMark) else None
        draw.rectangle([r.x, r.y, r.right, r.bottom], fill=_rgba(mark.color), outline=outline)
    elif isinstance(mark, PointMark):
        rad = mark.radius
        draw.ellipse([mark.x - rad, mark.y - rad, mark.x + rad, mark.y + rad], fill=_rgba(mark.color))
    elif isinstance(mark, ArcMark):
        outline_pts = mark.outline()
        if len(outline_pts) >= 3:
            draw.polygon(list(outline_pts), fill=_rgba(mark.color))
    elif isinstance(mark, LineMark):
        if len(mark.points) >= 2:
            draw.line(list(mark.points), fill=_rgba(mark.color), width=max(1, int(round(mark.width))))
    elif isinstance(mark, AreaMark):
        if len(mark.points) >= 3:
            draw.polygon(list(mark.points), fill=_rgba(mark.color, mark.opacity))


def _line(draw: ImageDraw.ImageDraw, seg: LineSegment) -> None:
    draw.line([(seg.x1, seg.y1), (seg.x2, seg.y2)], fill=_rgba(seg.color), width=max(1, int(round(seg.width))))


@lru_cache(maxsize=32)
def _load_font(size_px: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    return ImageFont.load_default(size=size_px)


def _text(image: Image.Image, draw: ImageDraw.ImageDraw, text: TextPrimitive) -> None:
    if not text.text:
        return
    font = _load_font(max(1, int(round(text.font_size))))
    x0, y0, x1, y1 = draw.textbbox((0, 0), text.text, font=font)
    w, h = x1 - x0, y1 - y0
    fill = _rgba(text.color)

    if not text.rotate_deg:
        dx = {"start": 0.0, "middle": -w / 2.0, "end": -w}.get(text.anchor, -w / 2.0)
        dy = {"hanging": 0.0, "middle": -h / 2.0, "alphabetic": -h}.get(text.baseline, -h / 2.0)
        draw.text((text.x + dx - x0, text.y + dy - y0), text.text, fill=fill, font=font)
        return

    patch = Image.new("RGBA", (max(1, w), max(1, h)), (0, 0, 0, 0))
    ImageDraw.Draw(patch).text((-x0, -y0), text.text, fill=fill, font=font)
    # PIL rotates counter-clockwise; rotate_deg is clockwise on screen
    rotated = patch.rotate(-text.rotate_deg, expand=True)
    px = int(round(text.x - rotated.width / 2.0))
    py = int(round(text.y - rotated.height / 2.0))
    image.alpha_composite(rotated, dest=(max(0, px), max(0, py)))
