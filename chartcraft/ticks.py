from __future__ import annotations

import datetime as dt
import math
from decimal import Decimal, InvalidOperation

import numpy as np

from chartcraft.rows import from_epoch_ms

_E10 = math.sqrt(50.0)
_E5 = math.sqrt(10.0)
_E2 = math.sqrt(2.0)

_SECOND_MS = 1000.0
_MINUTE_MS = 60.0 * _SECOND_MS
_HOUR_MS = 60.0 * _MINUTE_MS
_DAY_MS = 24.0 * _HOUR_MS
_WEEK_MS = 7.0 * _DAY_MS
_MONTH_MS = 30.0 * _DAY_MS
_YEAR_MS = 365.0 * _DAY_MS

# (unit, step, approximate duration in ms), ascending.
TIME_INTERVALS: tuple[tuple[str, int, float], ...] = (
    ("second", 1, _SECOND_MS),
    ("second", 5, 5 * _SECOND_MS),
    ("second", 15, 15 * _SECOND_MS),
    ("second", 30, 30 * _SECOND_MS),
    ("minute", 1, _MINUTE_MS),
    ("minute", 5, 5 * _MINUTE_MS),
    ("minute", 15, 15 * _MINUTE_MS),
    ("minute", 30, 30 * _MINUTE_MS),
    ("hour", 1, _HOUR_MS),
    ("hour", 3, 3 * _HOUR_MS),
    ("hour", 6, 6 * _HOUR_MS),
    ("hour", 12, 12 * _HOUR_MS),
    ("day", 1, _DAY_MS),
    ("day", 2, 2 * _DAY_MS),
    ("week", 1, _WEEK_MS),
    ("month", 1, _MONTH_MS),
    ("month", 3, 3 * _MONTH_MS),
    ("year", 1, _YEAR_MS),
)

_UNIT_MS = {"second": _SECOND_MS, "minute": _MINUTE_MS, "hour": _HOUR_MS, "day": _DAY_MS}
_TIME_FORMATS = {
    "second": "%H:%M:%S",
    "minute": "%H:%M",
    "hour": "%H:%M",
    "day": "%b %d",
    "week": "%b %d",
    "month": "%b %Y",
    "year": "%Y",
}


def tick_increment(start: float, stop: float, count: int) -> float:
    span = abs(stop - start)
    if count <= 0 or span == 0 or not math.isfinite(span):
        return 0.0
    step = span / count
    power = math.floor(math.log10(step))
    error = step / (10.0**power)
    if error >= _E10:
        factor = 10.0
    elif error >= _E5:
        factor = 5.0
    elif error >= _E2:
        factor = 2.0
    else:
        factor = 1.0
    return factor * (10.0**power)


def nice_extent(vmin: float, vmax: float, count: int = 10) -> tuple[float, float]:
    lo, hi = (vmin, vmax) if vmin <= vmax else (vmax, vmin)
    prestep: float | None = None
    for _ in range(10):
        step = tick_increment(lo, hi, count)
        if step <= 0 or step == prestep:
            break
        lo = math.floor(lo / step) * step
        hi = math.ceil(hi / step) * step
        prestep = step
    return (lo, hi) if vmin <= vmax else (hi, lo)


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    lo, hi = min(vmin, vmax), max(vmin, vmax)
    if lo == hi:
        return np.asarray([lo], dtype=np.float64)
    step = tick_increment(lo, hi, target)
    if step <= 0:
        return np.asarray([lo, hi], dtype=np.float64)
    tick_min = math.ceil(lo / step - 1e-9) * step
    tick_max = math.floor(hi / step + 1e-9) * step
    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Snap floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def log_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    lo, hi = min(vmin, vmax), max(vmin, vmax)
    if lo <= 0:
        return np.asarray([], dtype=np.float64)
    first = math.floor(math.log10(lo))
    last = math.ceil(math.log10(hi))
    decades = max(1, last - first)
    if decades * 3 <= target:
        multiples: tuple[float, ...] = (1.0, 2.0, 5.0)
    else:
        multiples = (1.0,)
    if decades * 2 < target and decades <= 2:
        multiples = tuple(float(m) for m in range(1, 10))
    out = [m * 10.0**exp for exp in range(first, last + 1) for m in multiples]
    eps = hi * 1e-12
    kept = [v for v in out if lo - eps <= v <= hi + eps]
    return np.asarray(kept, dtype=np.float64)


def choose_time_interval(vmin_ms: float, vmax_ms: float, target: int) -> tuple[str, int]:
    span = abs(vmax_ms - vmin_ms)
    wanted = span / max(1, target)
    for unit, step, duration in TIME_INTERVALS:
        if duration >= wanted:
            return unit, step
    years = tick_increment(0.0, span / _YEAR_MS, target)
    return "year", max(1, int(round(years)))


def floor_time(ms: float, unit: str, step: int) -> dt.datetime:
    value = from_epoch_ms(ms)
    if unit in _UNIT_MS:
        size = _UNIT_MS[unit] * step
        return from_epoch_ms(math.floor(ms / size) * size)
    if unit == "week":
        day = value.replace(hour=0, minute=0, second=0, microsecond=0)
        # Weeks start on Sunday.
        return day - dt.timedelta(days=(day.weekday() + 1) % 7)
    if unit == "month":
        month0 = (value.month - 1) // step * step
        return value.replace(month=month0 + 1, day=1, hour=0, minute=0, second=0, microsecond=0)
    if unit == "year":
        year = value.year // step * step
        return value.replace(year=max(1, year), month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    raise ValueError(f"unsupported time unit: {unit}")


def offset_time(value: dt.datetime, unit: str, step: int) -> dt.datetime:
    if unit in _UNIT_MS:
        return value + dt.timedelta(milliseconds=_UNIT_MS[unit] * step)
    if unit == "week":
        return value + dt.timedelta(days=7 * step)
    if unit == "month":
        months = value.year * 12 + (value.month - 1) + step
        return value.replace(year=months // 12, month=months % 12 + 1)
    if unit == "year":
        return value.replace(year=value.year + step)
    raise ValueError(f"unsupported time unit: {unit}")


def time_ticks(vmin_ms: float, vmax_ms: float, target: int) -> tuple[np.ndarray, str]:
    lo, hi = min(vmin_ms, vmax_ms), max(vmin_ms, vmax_ms)
    unit, step = choose_time_interval(lo, hi, target)
    if lo == hi:
        return np.asarray([lo], dtype=np.float64), unit
    epoch = from_epoch_ms(0.0)
    current = floor_time(lo, unit, step)
    out: list[float] = []
    while True:
        ms = (current - epoch).total_seconds() * 1000.0
        if ms > hi:
            break
        if ms >= lo:
            out.append(ms)
        current = offset_time(current, unit, step)
    return np.asarray(out, dtype=np.float64), unit


def nice_time_extent(vmin_ms: float, vmax_ms: float, target: int = 10) -> tuple[float, float]:
    lo, hi = min(vmin_ms, vmax_ms), max(vmin_ms, vmax_ms)
    if lo == hi:
        return vmin_ms, vmax_ms
    unit, step = choose_time_interval(lo, hi, target)
    epoch = from_epoch_ms(0.0)
    start = floor_time(lo, unit, step)
    stop = floor_time(hi, unit, step)
    if (stop - epoch).total_seconds() * 1000.0 < hi:
        stop = offset_time(stop, unit, step)
    nice_lo = (start - epoch).total_seconds() * 1000.0
    nice_hi = (stop - epoch).total_seconds() * 1000.0
    return (nice_lo, nice_hi) if vmin_ms <= vmax_ms else (nice_hi, nice_lo)


def format_time_tick(ms: float, unit: str) -> str:
    return from_epoch_ms(ms).strftime(_TIME_FORMATS.get(unit, "%Y-%m-%d"))


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e9 or (step is not None and abs(step) < 1e-6) or abs_v < 1e-6):
        return f"{value:.3e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    # Trim trailing zeros of fractional parts only, so 30 stays 30.
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(np.min(np.abs(np.diff(ticks))))
    return [format_tick(float(v), step=step if step > 0 else None) for v in ticks]


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(repr(step)).normalize()
    exp = d.as_tuple().exponent
    if not isinstance(exp, int):
        return 6
    return min(12, max(0, -exp))
