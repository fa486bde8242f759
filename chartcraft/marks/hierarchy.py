from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Callable

import numpy as np

from chartcraft.errors import UnknownTilingMethodError
from chartcraft.primitives import CellMark, Rect
from chartcraft.rows import FieldSelection, Row, coerce_number
from chartcraft.scales import category_key

LOGGER = logging.getLogger(__name__)

TILING_METHODS: tuple[str, ...] = ("binary", "squarify", "resquarify", "slice", "dice", "slice-dice")
GOLDEN_RATIO = (1.0 + math.sqrt(5.0)) / 2.0
DEFAULT_COLOR = "#000000"

_Box = tuple[float, float, float, float]


@dataclass(frozen=True)
class HierarchyNode:
    name: str
    value: float
    children: tuple["HierarchyNode", ...] = ()
    row_index: int = -1

    @property
    def is_leaf(self) -> bool:
        return not self.children


def build_hierarchy(rows: Sequence[Row], fields: FieldSelection) -> HierarchyNode:
    """Group rows by ``fields.group_fields`` (outermost first) into a tree of summed values.

    Leaves are rows labelled by ``fields.label_field``; negative and
    non-numeric values count as zero. Children are ordered by descending
    value, ties keeping first-seen order.
    """

    leaves = [
        HierarchyNode(
            name=category_key(row.get(fields.label_field)),
            value=max(0.0, coerce_number(row.get(fields.primary_value_field)) or 0.0),
            row_index=i,
        )
        for i, row in enumerate(rows)
    ]
    children = _group(list(zip(rows, leaves)), tuple(fields.group_fields))
    return HierarchyNode(name="root", value=sum(c.value for c in children), children=children)


def _group(items: list[tuple[Row, HierarchyNode]], levels: tuple[str, ...]) -> tuple[HierarchyNode, ...]:
    if not levels:
        return _sorted_desc([leaf for _, leaf in items])
    buckets: dict[str, list[tuple[Row, HierarchyNode]]] = {}
    for row, leaf in items:
        buckets.setdefault(category_key(row.get(levels[0])), []).append((row, leaf))
    nodes = []
    for name, members in buckets.items():
        kids = _group(members, levels[1:])
        nodes.append(HierarchyNode(name=name, value=sum(k.value for k in kids), children=kids))
    return _sorted_desc(nodes)


def _sorted_desc(nodes: list[HierarchyNode]) -> tuple[HierarchyNode, ...]:
    return tuple(sorted(nodes, key=lambda n: -n.value))


def tile(method: str, rect: Rect, weights: Sequence[float], depth: int = 0) -> list[Rect]:
    """Partition ``rect`` among ``weights``; the i-th rectangle belongs to the i-th weight.

    Rectangles never overlap, their areas are proportional to the weights
    and together they cover ``rect``. All-zero weights are split equally.
    """

    tiler = _TILERS.get(method)
    if tiler is None:
        raise UnknownTilingMethodError(f"unknown tiling method: {method!r}")
    if not weights:
        return []
    w = np.clip(np.asarray([float(v) for v in weights], dtype=np.float64), 0.0, None)
    w[~np.isfinite(w)] = 0.0
    if float(w.sum()) <= 0.0:
        LOGGER.debug("all %d tiling weight(s) are zero; splitting equally", w.size)
        w = np.ones_like(w)
    box = (rect.x, rect.y, rect.right, rect.bottom)
    return [Rect(x=x0, y=y0, width=x1 - x0, height=y1 - y0) for x0, y0, x1, y1 in tiler(box, w, depth)]


def _dice(box: _Box, w: np.ndarray, depth: int = 0) -> list[_Box]:
    x0, y0, x1, y1 = box
    edges = _edges(x0, x1, w)
    return [(edges[i], y0, edges[i + 1], y1) for i in range(w.size)]


def _slice(box: _Box, w: np.ndarray, depth: int = 0) -> list[_Box]:
    x0, y0, x1, y1 = box
    edges = _edges(y0, y1, w)
    return [(x0, edges[i], x1, edges[i + 1]) for i in range(w.size)]


def _slice_dice(box: _Box, w: np.ndarray, depth: int = 0) -> list[_Box]:
    return _slice(box, w) if depth % 2 == 1 else _dice(box, w)


def _edges(start: float, stop: float, w: np.ndarray) -> list[float]:
    total = float(w.sum())
    if total <= 0:
        frac = np.linspace(0.0, 1.0, w.size + 1)
    else:
        frac = np.concatenate([[0.0], np.cumsum(w) / total])
    out = (start + (stop - start) * frac).tolist()
    out[0], out[-1] = start, stop
    return out


def _binary(box: _Box, w: np.ndarray, depth: int = 0) -> list[_Box]:
    sums = np.concatenate([[0.0], np.cumsum(w)])
    out: list[_Box | None] = [None] * w.size

    def partition(i: int, j: int, value: float, x0: float, y0: float, x1: float, y1: float) -> None:
        if i >= j - 1:
            out[i] = (x0, y0, x1, y1)
            return
        offset = sums[i]
        target = value / 2.0 + offset
        k, hi = i + 1, j - 1
        while k < hi:
            mid = (k + hi) >> 1
            if sums[mid] < target:
                k = mid + 1
            else:
                hi = mid
        if (target - sums[k - 1]) < (sums[k] - target) and i + 1 < k:
            k -= 1
        left = float(sums[k] - offset)
        right = value - left
        if (x1 - x0) > (y1 - y0):
            xk = (x0 * right + x1 * left) / value if value else x1
            partition(i, k, left, x0, y0, xk, y1)
            partition(k, j, right, xk, y0, x1, y1)
        else:
            yk = (y0 * right + y1 * left) / value if value else y1
            partition(i, k, left, x0, y0, x1, yk)
            partition(k, j, right, x0, yk, x1, y1)

    partition(0, w.size, float(sums[-1]), *box)
    return [b for b in out if b is not None]


def _squarify(box: _Box, w: np.ndarray, depth: int = 0, ratio: float = GOLDEN_RATIO) -> list[_Box]:
    """Rows of cells laid along the shorter side, grown while the worst aspect ratio improves."""

    x0, y0, x1, y1 = box
    out: list[_Box] = []
    n = w.size
    remaining = float(w.sum())
    i0 = i1 = 0
    while i0 < n:
        dx, dy = x1 - x0, y1 - y0
        row_sum = float(w[i1])
        i1 += 1
        while not row_sum and i1 < n:
            row_sum = float(w[i1])
            i1 += 1
        if remaining <= 0 or not row_sum:
            # only zero weights left; they get empty boxes on the final edge
            out.extend((x1, y1, x1, y1) for _ in range(n - i0))
            break
        lo = hi = row_sum
        alpha = _safe_div(max(_safe_div(dy, dx), _safe_div(dx, dy)), remaining * ratio)
        beta = row_sum * row_sum * alpha
        worst = max(_safe_div(hi, beta), _safe_div(beta, lo))
        while i1 < n:
            v = float(w[i1])
            trial = row_sum + v
            lo_t, hi_t = min(lo, v), max(hi, v)
            beta = trial * trial * alpha
            ratio_t = max(_safe_div(hi_t, beta), _safe_div(beta, lo_t))
            if ratio_t > worst:
                break
            row_sum, lo, hi, worst = trial, lo_t, hi_t, ratio_t
            i1 += 1
        row = w[i0:i1]
        last = i1 >= n
        if dx < dy:
            cut = y1 if last else y0 + dy * row_sum / remaining
            out.extend(_dice((x0, y0, x1, cut), row))
            y0 = cut
        else:
            cut = x1 if last else x0 + dx * row_sum / remaining
            out.extend(_slice((x0, y0, cut, y1), row))
            x0 = cut
        remaining -= row_sum
        i0 = i1
    return out


def _safe_div(a: float, b: float) -> float:
    if b == 0:
        return math.inf
    return a / b


_TILERS: dict[str, Callable[[_Box, np.ndarray, int], list[_Box]]] = {
    "binary": _binary,
    "squarify": _squarify,
    "resquarify": _squarify,
    "slice": _slice,
    "dice": _dice,
    "slice-dice": _slice_dice,
}


def layout_treemap(
    root: HierarchyNode,
    inner: Rect,
    colors: Mapping[str, str],
    *,
    method: str = "squarify",
    padding: float = 0.0,
) -> list[CellMark]:
    """Cells for every node below ``root``, parents before their children.

    ``slot`` is the exact partition rectangle; ``rect`` is the slot inset by
    half the padding on each side. Colors are keyed by the top-level group.
    """

    if method not in _TILERS:
        raise UnknownTilingMethodError(f"unknown tiling method: {method!r}")
    half = padding / 2.0
    cells: list[CellMark] = []

    def visit(node: HierarchyNode, slot: Rect, path: tuple[str, ...], depth: int) -> None:
        if not node.children:
            return
        slots = tile(method, slot, [c.value for c in node.children], depth)
        for child, child_slot in zip(node.children, slots):
            child_path = path + (child.name,)
            cells.append(
                CellMark(
                    rect=child_slot.inset(half, half, half, half),
                    slot=child_slot,
                    label=child.name,
                    path=child_path,
                    depth=depth + 1,
                    value=child.value,
                    is_leaf=child.is_leaf,
                    color=colors.get(child_path[0], DEFAULT_COLOR),
                )
            )
            visit(child, child_slot, child_path, depth + 1)

    visit(root, inner, (), 0)
    return cells
