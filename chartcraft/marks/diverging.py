from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from chartcraft.primitives import Rect, RectMark
from chartcraft.rows import FieldSelection, Row, coerce_number
from chartcraft.scales import BandScale, LinearScale, category_key

SORT_MODES: tuple[str, ...] = ("none", "ascending", "descending", "value", "label")
POSITIVE_COLOR = "#3B82F6"
NEGATIVE_COLOR = "#EF4444"
# Headroom applied to the largest magnitude on each side of zero.
DOMAIN_HEADROOM = 1.1


@dataclass(frozen=True)
class DivergingItem:
    label: str
    value: float
    row_index: int


def diverging_value(row: Row, fields: FieldSelection) -> float:
    """Single value field as-is, or second minus first when two are selected."""

    if len(fields.value_fields) >= 2:
        first = coerce_number(row.get(fields.value_fields[0])) or 0.0
        second = coerce_number(row.get(fields.value_fields[1])) or 0.0
        return second - first
    return coerce_number(row.get(fields.primary_value_field)) or 0.0


def diverging_items(rows: Sequence[Row], fields: FieldSelection) -> list[DivergingItem]:
    return [
        DivergingItem(label=category_key(row.get(fields.label_field)), value=diverging_value(row, fields), row_index=i)
        for i, row in enumerate(rows)
    ]


def sort_diverging(items: Sequence[DivergingItem], mode: str) -> list[DivergingItem]:
    """Return a new list ordered by ``mode``; ties keep their original index order."""

    if mode not in SORT_MODES:
        raise ValueError(f"Unsupported sort mode: {mode}")
    ordered = list(items)
    if mode == "none":
        return ordered
    if mode == "ascending":
        return sorted(ordered, key=lambda it: (it.value, it.row_index))
    if mode == "descending":
        return sorted(ordered, key=lambda it: (-it.value, it.row_index))
    if mode == "value":
        return sorted(ordered, key=lambda it: (abs(it.value), it.row_index))
    return sorted(ordered, key=lambda it: (it.label.casefold(), it.row_index))


def symmetric_domain(items: Sequence[DivergingItem]) -> tuple[float, float]:
    max_abs = max((abs(it.value) for it in items), default=0.0)
    if max_abs == 0:
        return (-1.0, 1.0)
    padded = max_abs * DOMAIN_HEADROOM
    return (-padded, padded)


def position_diverging(
    items: Sequence[DivergingItem],
    inner: Rect,
    *,
    bar_padding: float = 0.2,
    positive_color: str = POSITIVE_COLOR,
    negative_color: str = NEGATIVE_COLOR,
) -> tuple[list[RectMark], LinearScale, BandScale]:
    """Horizontal bars growing left or right from a centred zero line.

    Returns the marks together with the value (x) and category (y) scales so
    axes can be drawn from the same instances.
    """

    x = LinearScale(domain=symmetric_domain(items), range=(inner.x, inner.right))
    y = BandScale(
        domain=tuple(dict.fromkeys(it.label for it in items)),
        range=(inner.y, inner.bottom),
        padding_inner=bar_padding,
        padding_outer=bar_padding,
    )
    zero = x(0.0)
    marks: list[RectMark] = []
    for it in items:
        top = y(it.label)
        end = x(it.value)
        if top is None or end is None or zero is None:
            continue
        marks.append(
            RectMark(
                rect=Rect(x=min(zero, end), y=top, width=abs(end - zero), height=y.bandwidth),
                label=it.label,
                series="positive" if it.value >= 0 else "negative",
                value=it.value,
                color=positive_color if it.value >= 0 else negative_color,
                row_index=it.row_index,
            )
        )
    return marks, x, y
