from __future__ import annotations

import datetime as dt
import logging
import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import numpy as np

from chartcraft.errors import ChartEngineError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


LOGGER = logging.getLogger(__name__)

Row = Mapping[str, Any]

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
_YEAR_LIKE = re.compile(r"\d{4}")
_DATE_SEPARATOR = re.compile(r"[-/]")
_INFER_SAMPLE_SIZE = 10


@dataclass(frozen=True)
class FieldSelection:
    label_field: str
    value_fields: tuple[str, ...]
    group_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.label_field.strip():
            raise ValueError("FieldSelection.label_field must be non-empty")
        if not self.value_fields:
            raise ValueError("FieldSelection.value_fields must not be empty")
        if self.label_field in self.value_fields:
            raise ValueError(f"label field `{self.label_field}` cannot also be a value field")
        if len(set(self.value_fields)) != len(self.value_fields):
            raise ValueError("FieldSelection.value_fields must be unique")

    @property
    def primary_value_field(self) -> str:
        return self.value_fields[0]


def normalize_rows(data: Any) -> tuple[dict[str, Any], ...]:
    """Return rows that all share one field set, filling gaps with ``None``.

    Accepts a sequence of mappings or, when pandas is installed, a DataFrame.
    Field order follows first appearance across the input.
    """

    if pd is not None and isinstance(data, pd.DataFrame):
        records = data.to_dict(orient="records")
        return normalize_rows([{str(k): _from_pandas_scalar(v) for k, v in rec.items()} for rec in records])

    if isinstance(data, Mapping) or not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        raise ChartEngineError(f"rows must be a sequence of mappings, got {type(data)!r}")

    fields: dict[str, None] = {}
    for i, row in enumerate(data):
        if not isinstance(row, Mapping):
            raise ChartEngineError(f"row {i} is not a mapping: {row!r}")
        for key in row.keys():
            fields.setdefault(str(key), None)

    out: list[dict[str, Any]] = []
    for row in data:
        out.append({name: row.get(name) for name in fields})
    return tuple(out)


def coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal, np.integer, np.floating)):
        out = float(value)
        return out if math.isfinite(out) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            out = float(text)
        except ValueError:
            return None
        return out if math.isfinite(out) else None
    return None


def numeric_values(values: Sequence[Any]) -> np.ndarray:
    coerced = [coerce_number(v) for v in values]
    kept = [v for v in coerced if v is not None]
    dropped = len(coerced) - len(kept)
    if dropped:
        LOGGER.debug("dropped %d non-numeric value(s) before extent computation", dropped)
    return np.asarray(kept, dtype=np.float64)


def parse_date(value: Any) -> dt.datetime | None:
    """Parse a date by instance passthrough, then epoch milliseconds, then ISO-8601."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dt.datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=dt.timezone.utc)
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
    if isinstance(value, (int, float, np.integer, np.floating)):
        ms = float(value)
        if not math.isfinite(ms):
            return None
        try:
            return _EPOCH + dt.timedelta(milliseconds=ms)
        except OverflowError:
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=dt.timezone.utc)
    return None


def to_epoch_ms(value: Any) -> float | None:
    parsed = parse_date(value)
    if parsed is None:
        return None
    return (parsed - _EPOCH).total_seconds() * 1000.0


def from_epoch_ms(ms: float) -> dt.datetime:
    return _EPOCH + dt.timedelta(milliseconds=float(ms))


def infer_scale_kind(values: Sequence[Any]) -> str:
    samples = [v for v in values if v is not None][:_INFER_SAMPLE_SIZE]
    if not samples:
        return "point"
    if all(_looks_like_date(v) for v in samples):
        return "time"
    if all(coerce_number(v) is not None for v in samples):
        return "linear"
    return "point"


def column(rows: Sequence[Row], field: str) -> list[Any]:
    return [row.get(field) for row in rows]


def _looks_like_date(value: Any) -> bool:
    if isinstance(value, (dt.datetime, dt.date)):
        return True
    if not isinstance(value, str):
        return False
    if parse_date(value) is None:
        return False
    return bool(_YEAR_LIKE.search(value) or _DATE_SEPARATOR.search(value))


def _from_pandas_scalar(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if pd is not None and value is pd.NaT:
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value
