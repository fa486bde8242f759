from __future__ import annotations

import datetime as dt
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Union

import numpy as np

from chartcraft.errors import UnknownScaleKindError
from chartcraft.rows import from_epoch_ms, numeric_values, to_epoch_ms
from chartcraft.ticks import (
    format_ticks_for_axis,
    format_time_tick,
    generate_nice_ticks,
    log_ticks,
    nice_extent,
    nice_time_extent,
    time_ticks,
)

LOGGER = logging.getLogger(__name__)

SCALE_KINDS: tuple[str, ...] = ("linear", "log", "time", "band", "point", "sqrt")

DEFAULT_NICE_COUNT = 10


@dataclass(frozen=True)
class ScaleOptions:
    nice: bool = False
    padding: float = 0.0
    flip: bool = False
    domain_min: float | None = None
    domain_max: float | None = None
    clamp: bool = False
    nice_count: int = DEFAULT_NICE_COUNT

    def __post_init__(self) -> None:
        if not 0.0 <= self.padding <= 1.0:
            raise ValueError("ScaleOptions.padding must be within [0, 1]")
        if self.nice_count <= 0:
            raise ValueError("ScaleOptions.nice_count must be > 0")


@dataclass(frozen=True)
class ScaleTick:
    value: Any
    label: str


@dataclass(frozen=True)
class _ContinuousScale:
    domain: tuple[float, float]
    range: tuple[float, float]
    clamp: bool = False

    kind: ClassVar[str] = "continuous"
    is_ordinal: ClassVar[bool] = False

    def __call__(self, value: Any) -> float | None:
        v = self._coerce(value)
        if v is None:
            return None
        t = self._forward(v)
        if t is None:
            return None
        d0 = self._forward(self.domain[0])
        d1 = self._forward(self.domain[1])
        r0, r1 = self.range
        if d0 is None or d1 is None or d0 == d1:
            return (r0 + r1) / 2.0
        frac = (t - d0) / (d1 - d0)
        if self.clamp:
            frac = min(1.0, max(0.0, frac))
        return r0 + frac * (r1 - r0)

    def center(self, value: Any) -> float | None:
        return self(value)

    @property
    def bandwidth(self) -> float:
        return 0.0

    def invert(self, pixel: float) -> Any:
        r0, r1 = self.range
        d0 = self._forward(self.domain[0])
        d1 = self._forward(self.domain[1])
        if d0 is None or d1 is None or r0 == r1:
            return self.domain[0]
        frac = (float(pixel) - r0) / (r1 - r0)
        if self.clamp:
            frac = min(1.0, max(0.0, frac))
        return self._backward(d0 + frac * (d1 - d0))

    def ticks(self, count: int = 10) -> tuple[ScaleTick, ...]:
        lo, hi = self.domain
        values = generate_nice_ticks(lo, hi, max(1, count))
        labels = format_ticks_for_axis(values)
        return tuple(ScaleTick(value=float(v), label=label) for v, label in zip(values.tolist(), labels))

    def _coerce(self, value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            out = float(value)
        except (TypeError, ValueError):
            return None
        return out if math.isfinite(out) else None

    def _forward(self, value: float) -> float | None:
        return value

    def _backward(self, value: float) -> Any:
        return value


@dataclass(frozen=True)
class LinearScale(_ContinuousScale):
    kind: ClassVar[str] = "linear"


@dataclass(frozen=True)
class SqrtScale(_ContinuousScale):
    kind: ClassVar[str] = "sqrt"

    def _forward(self, value: float) -> float | None:
        return math.copysign(math.sqrt(abs(value)), value)

    def _backward(self, value: float) -> Any:
        return math.copysign(value * value, value)


@dataclass(frozen=True)
class LogScale(_ContinuousScale):
    kind: ClassVar[str] = "log"

    def _forward(self, value: float) -> float | None:
        if value <= 0:
            return None
        return math.log10(value)

    def _backward(self, value: float) -> Any:
        return 10.0**value

    def ticks(self, count: int = 10) -> tuple[ScaleTick, ...]:
        values = log_ticks(self.domain[0], self.domain[1], max(1, count))
        labels = [_format_log_tick(v) for v in values.tolist()]
        return tuple(ScaleTick(value=float(v), label=label) for v, label in zip(values.tolist(), labels))


@dataclass(frozen=True)
class TimeScale(_ContinuousScale):
    """Continuous scale over UTC timestamps; the domain is stored as epoch milliseconds."""

    kind: ClassVar[str] = "time"

    def _coerce(self, value: Any) -> float | None:
        return to_epoch_ms(value)

    def _backward(self, value: float) -> Any:
        return from_epoch_ms(value)

    def ticks(self, count: int = 10) -> tuple[ScaleTick, ...]:
        values, unit = time_ticks(self.domain[0], self.domain[1], max(1, count))
        return tuple(ScaleTick(value=float(v), label=format_time_tick(v, unit)) for v in values.tolist())


@dataclass(frozen=True)
class BandScale:
    domain: tuple[str, ...]
    range: tuple[float, float]
    padding_inner: float = 0.0
    padding_outer: float = 0.0
    align: float = 0.5

    kind: ClassVar[str] = "band"
    is_ordinal: ClassVar[bool] = True

    def _layout(self) -> tuple[float, float, float, bool]:
        n = len(self.domain)
        r0, r1 = self.range
        reverse = r1 < r0
        start, stop = (r1, r0) if reverse else (r0, r1)
        step = (stop - start) / max(1.0, n - self.padding_inner + self.padding_outer * 2.0)
        start += (stop - start - step * (n - self.padding_inner)) * self.align
        bandwidth = step * (1.0 - self.padding_inner)
        return start, step, bandwidth, reverse

    @property
    def step(self) -> float:
        return self._layout()[1]

    @property
    def bandwidth(self) -> float:
        return self._layout()[2]

    def index_of(self, value: Any) -> int | None:
        key = category_key(value)
        try:
            return self.domain.index(key)
        except ValueError:
            return None

    def __call__(self, value: Any) -> float | None:
        i = self.index_of(value)
        if i is None:
            return None
        start, step, _, reverse = self._layout()
        slot = (len(self.domain) - 1 - i) if reverse else i
        return start + step * slot

    def center(self, value: Any) -> float | None:
        pos = self(value)
        if pos is None:
            return None
        return pos + self.bandwidth / 2.0

    def invert(self, pixel: float) -> str | None:
        if not self.domain:
            return None
        centers = [self.center(v) for v in self.domain]
        distances = [abs(float(pixel) - c) for c in centers if c is not None]
        return self.domain[int(np.argmin(distances))]

    def ticks(self, count: int = 10) -> tuple[ScaleTick, ...]:
        return tuple(ScaleTick(value=v, label=v) for v in self.domain)


@dataclass(frozen=True)
class PointScale(BandScale):
    kind: ClassVar[str] = "point"


Scale = Union[LinearScale, SqrtScale, LogScale, TimeScale, BandScale, PointScale]


def create_scale(
    kind: str,
    domain_values: Sequence[Any],
    pixel_range: tuple[float, float],
    options: ScaleOptions | None = None,
) -> Scale:
    opts = options or ScaleOptions()
    r0, r1 = float(pixel_range[0]), float(pixel_range[1])
    rng = (r1, r0) if opts.flip else (r0, r1)
    values = list(domain_values)

    if kind == "linear":
        return _linear_scale(values, rng, opts)
    if kind == "sqrt":
        lo, hi = _numeric_extent(numeric_values(values), opts)
        return SqrtScale(domain=(lo, hi), range=rng, clamp=opts.clamp)
    if kind == "log":
        return _log_scale(values, rng, opts)
    if kind == "time":
        return _time_scale(values, rng, opts)
    if kind == "band":
        return BandScale(
            domain=unique_categories(values),
            range=rng,
            padding_inner=opts.padding,
            padding_outer=opts.padding,
        )
    if kind == "point":
        return _point_scale(values, rng, opts)
    raise UnknownScaleKindError(f"unknown scale kind: {kind!r} (expected one of: {', '.join(SCALE_KINDS)})")


def category_key(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    return str(value)


def unique_categories(values: Sequence[Any]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(category_key(value), None)
    return tuple(seen)


def _point_scale(values: Sequence[Any], rng: tuple[float, float], opts: ScaleOptions) -> PointScale:
    return PointScale(domain=unique_categories(values), range=rng, padding_inner=1.0, padding_outer=opts.padding)


def _linear_scale(values: Sequence[Any], rng: tuple[float, float], opts: ScaleOptions) -> LinearScale:
    lo, hi = _numeric_extent(numeric_values(values), opts)
    return LinearScale(domain=(lo, hi), range=rng, clamp=opts.clamp)


def _numeric_extent(arr: np.ndarray, opts: ScaleOptions) -> tuple[float, float]:
    if arr.size == 0:
        lo, hi = 0.0, 1.0
    else:
        lo, hi = float(np.min(arr)), float(np.max(arr))
    if opts.nice and lo != hi:
        lo, hi = nice_extent(lo, hi, opts.nice_count)
    if opts.domain_min is not None:
        lo = float(opts.domain_min)
    if opts.domain_max is not None:
        hi = float(opts.domain_max)
    return lo, hi


def _log_scale(values: Sequence[Any], rng: tuple[float, float], opts: ScaleOptions) -> Scale:
    arr = numeric_values(values)
    positive = arr[arr > 0]
    if np.unique(positive).size < 2:
        LOGGER.debug(
            "log domain has %d distinct positive value(s); falling back to linear scale",
            int(np.unique(positive).size),
        )
        fallback = ScaleOptions(
            nice=opts.nice,
            clamp=opts.clamp,
            nice_count=opts.nice_count,
            domain_min=opts.domain_min,
            domain_max=opts.domain_max,
        )
        return _linear_scale(values, rng, fallback)
    lo, hi = float(np.min(positive)), float(np.max(positive))
    if opts.nice:
        lo = 10.0 ** math.floor(math.log10(lo))
        hi = 10.0 ** math.ceil(math.log10(hi))
    if opts.domain_min is not None and opts.domain_min > 0:
        lo = float(opts.domain_min)
    if opts.domain_max is not None and opts.domain_max > 0:
        hi = float(opts.domain_max)
    return LogScale(domain=(lo, hi), range=rng, clamp=opts.clamp)


def _time_scale(values: Sequence[Any], rng: tuple[float, float], opts: ScaleOptions) -> Scale:
    stamps = [to_epoch_ms(v) for v in values]
    valid = [s for s in stamps if s is not None]
    if not valid:
        LOGGER.debug("no parseable dates in %d value(s); falling back to point scale", len(stamps))
        return _point_scale(values, rng, opts)
    if len(valid) < len(stamps):
        LOGGER.debug("dropped %d unparseable date value(s)", len(stamps) - len(valid))
    lo, hi = min(valid), max(valid)
    if opts.nice and lo != hi:
        lo, hi = nice_time_extent(lo, hi, opts.nice_count)
    if opts.domain_min is not None:
        lo = float(opts.domain_min)
    if opts.domain_max is not None:
        hi = float(opts.domain_max)
    return TimeScale(domain=(lo, hi), range=rng, clamp=opts.clamp)


def _format_log_tick(value: float) -> str:
    exp = math.log10(value)
    if abs(exp - round(exp)) < 1e-9 and (exp >= 6 or exp <= -4):
        return f"1e{int(round(exp))}"
    return format_ticks_for_axis(np.asarray([value], dtype=np.float64))[0]
