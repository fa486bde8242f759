from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def inset(self, top: float, right: float, bottom: float, left: float) -> "Rect":
        return Rect(
            x=self.x + min(left, self.width),
            y=self.y + min(top, self.height),
            width=max(0.0, self.width - left - right),
            height=max(0.0, self.height - top - bottom),
        )

    def overlaps(self, other: "Rect") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def contains(self, other: "Rect", eps: float = 1e-9) -> bool:
        return (
            other.x >= self.x - eps
            and other.y >= self.y - eps
            and other.right <= self.right + eps
            and other.bottom <= self.bottom + eps
        )


@dataclass(frozen=True)
class RectMark:
    rect: Rect
    label: str
    series: str
    value: float
    color: str = "#000000"
    row_index: int = -1


@dataclass(frozen=True)
class PointMark:
    x: float
    y: float
    label: str
    series: str
    value: float
    color: str = "#000000"
    radius: float = 3.0
    row_index: int = -1


@dataclass(frozen=True)
class ArcMark:
    """Annular sector centred on (cx, cy); angles in radians, clockwise from 12 o'clock."""

    cx: float
    cy: float
    start_angle: float
    end_angle: float
    inner_radius: float
    outer_radius: float
    label: str
    series: str
    value: float
    color: str = "#000000"
    row_index: int = -1

    @property
    def span(self) -> float:
        return self.end_angle - self.start_angle

    def outline(self, segments_per_radian: float = 24.0) -> tuple[tuple[float, float], ...]:
        steps = max(1, int(math.ceil(abs(self.span) * segments_per_radian)))
        outer = [
            polar_to_cartesian(self.cx, self.cy, self.outer_radius, self.start_angle + self.span * i / steps)
            for i in range(steps + 1)
        ]
        if self.inner_radius <= 0:
            return tuple([(self.cx, self.cy)] + outer)
        inner = [
            polar_to_cartesian(self.cx, self.cy, self.inner_radius, self.end_angle - self.span * i / steps)
            for i in range(steps + 1)
        ]
        return tuple(outer + inner)


@dataclass(frozen=True)
class LineMark:
    points: tuple[tuple[float, float], ...]
    series: str
    color: str = "#000000"
    width: float = 2.0


@dataclass(frozen=True)
class AreaMark:
    points: tuple[tuple[float, float], ...]
    series: str
    color: str = "#000000"
    opacity: float = 0.6


@dataclass(frozen=True)
class CellMark:
    rect: Rect
    slot: Rect
    label: str
    path: tuple[str, ...]
    depth: int
    value: float
    is_leaf: bool
    color: str = "#000000"


@dataclass(frozen=True)
class LineSegment:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = "#666666"
    width: float = 1.0


@dataclass(frozen=True)
class TextPrimitive:
    x: float
    y: float
    text: str
    font_size: float
    color: str = "#666666"
    anchor: str = "middle"
    baseline: str = "middle"
    rotate_deg: float = 0.0
    bold: bool = False


Mark = Union[RectMark, PointMark, ArcMark, LineMark, AreaMark, CellMark]


def polar_to_cartesian(cx: float, cy: float, radius: float, angle: float) -> tuple[float, float]:
    return (cx + radius * math.sin(angle), cy - radius * math.cos(angle))
