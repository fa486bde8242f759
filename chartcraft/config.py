from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal, Mapping

from chartcraft.errors import ChartDocumentError
from chartcraft.rows import FieldSelection

DOCUMENT_VERSION = 1

Breakpoint = Literal["mobile", "tablet", "desktop"]
BREAKPOINTS: tuple[str, ...] = ("mobile", "tablet", "desktop")
MOBILE_MAX_WIDTH = 768.0
TABLET_MAX_WIDTH = 1024.0

X_PLACEMENTS: tuple[str, ...] = ("bottom", "top", "hidden")
Y_PLACEMENTS: tuple[str, ...] = ("left", "right", "hidden")
LEGEND_PLACEMENTS: tuple[str, ...] = ("top", "right", "bottom", "left")
ALIGNMENTS: tuple[str, ...] = ("start", "center", "end")
TICK_MODES: tuple[str, ...] = ("auto", "count", "density")
FONT_WEIGHTS: tuple[str, ...] = ("regular", "bold")
AXIS_SCALE_KINDS: tuple[str, ...] = ("auto", "linear", "log", "time", "band", "point")
BAR_MODES: tuple[str, ...] = ("grouped", "stacked")


def resolve_breakpoint(width: float) -> str:
    if width < MOBILE_MAX_WIDTH:
        return "mobile"
    if width <= TABLET_MAX_WIDTH:
        return "tablet"
    return "desktop"


@dataclass(frozen=True)
class FontSizes:
    mobile: float = 12.0
    tablet: float = 12.0
    desktop: float = 12.0

    def __post_init__(self) -> None:
        for name in BREAKPOINTS:
            if getattr(self, name) < 0:
                raise ValueError(f"FontSizes.{name} must be >= 0")

    @classmethod
    def uniform(cls, size: float) -> "FontSizes":
        return cls(mobile=size, tablet=size, desktop=size)

    def for_breakpoint(self, breakpoint: str) -> float:
        if breakpoint not in BREAKPOINTS:
            raise ValueError(f"unknown breakpoint: {breakpoint}")
        return float(getattr(self, breakpoint))

    def for_width(self, width: float) -> float:
        return self.for_breakpoint(resolve_breakpoint(width))


@dataclass(frozen=True)
class AxisConfig:
    orientation: Literal["x", "y"]
    placement: str
    visible: bool = True
    scale_kind: str = "auto"
    domain_min: float | None = None
    domain_max: float | None = None
    nice: bool = True
    flip: bool = False
    force_zero: bool = True
    tick_mode: str = "auto"
    tick_count: int = 5
    tick_spacing_px: float = 80.0
    tick_length: float = 6.0
    tick_padding: float = 8.0
    label_size: FontSizes = field(default_factory=FontSizes)
    label_weight: str = "regular"
    label_color: str = "#666666"
    label_angle: float = 0.0
    label_line_height: float = 1.2
    label_chars: int = 7
    label_spacing: float = 4.0
    title: str = ""
    title_size: float = 12.0
    title_weight: str = "regular"
    title_color: str = "#666666"
    title_padding: float = 40.0
    show_grid: bool = True
    show_domain: bool = True

    def __post_init__(self) -> None:
        if self.orientation not in ("x", "y"):
            raise ValueError(f"AxisConfig.orientation must be 'x' or 'y', got {self.orientation!r}")
        allowed = X_PLACEMENTS if self.orientation == "x" else Y_PLACEMENTS
        if self.placement not in allowed:
            raise ValueError(f"Unsupported {self.orientation} axis placement: {self.placement}")
        if self.scale_kind not in AXIS_SCALE_KINDS:
            raise ValueError(f"Unsupported axis scale kind: {self.scale_kind}")
        if self.tick_mode not in TICK_MODES:
            raise ValueError(f"Unsupported tick mode: {self.tick_mode}")
        if self.tick_count < 1:
            raise ValueError("AxisConfig.tick_count must be >= 1")
        if self.tick_spacing_px <= 0:
            raise ValueError("AxisConfig.tick_spacing_px must be > 0")
        if self.label_weight not in FONT_WEIGHTS or self.title_weight not in FONT_WEIGHTS:
            raise ValueError("font weights must be 'regular' or 'bold'")
        if self.label_chars < 0:
            raise ValueError("AxisConfig.label_chars must be >= 0")

    @property
    def is_horizontal(self) -> bool:
        return self.orientation == "x"

    @property
    def is_shown(self) -> bool:
        return self.visible and self.placement != "hidden"


DEFAULT_X_AXIS = AxisConfig(orientation="x", placement="bottom", label_spacing=3.0, title_padding=35.0)
DEFAULT_Y_AXIS = AxisConfig(orientation="y", placement="left")


@dataclass(frozen=True)
class LegendConfig:
    visible: bool = True
    placement: str = "right"
    alignment: str = "start"
    base_font_size: FontSizes = field(default_factory=lambda: FontSizes(mobile=12.0, tablet=14.0, desktop=16.0))
    size_multiplier: float = 1.0
    gap: float = 20.0
    padding_top: float = 0.0
    padding_right: float = 0.0
    padding_bottom: float = 0.0
    padding_left: float = 0.0
    show_values: bool = False
    space: float = 120.0
    swatch_size: float = 15.0

    def __post_init__(self) -> None:
        if self.placement not in LEGEND_PLACEMENTS:
            raise ValueError(f"Unsupported legend placement: {self.placement}")
        if self.alignment not in ALIGNMENTS:
            raise ValueError(f"Unsupported legend alignment: {self.alignment}")
        if not 0.1 <= self.size_multiplier <= 10.0:
            raise ValueError("LegendConfig.size_multiplier must be within [0.1, 10.0]")
        if self.space < 0 or self.gap < 0 or self.swatch_size < 0:
            raise ValueError("legend distances must be >= 0")

    def font_size(self, canvas_width: float) -> float:
        return self.base_font_size.for_width(canvas_width) * self.size_multiplier


DEFAULT_LEGEND = LegendConfig()


@dataclass(frozen=True)
class ChartOptions:
    sort_mode: str = "none"
    tiling_method: str = "squarify"
    treemap_padding: float = 0.0
    bar_padding: float = 0.2
    bar_mode: str = "grouped"
    inner_radius_ratio: float = 0.0
    radial_inner_ratio: float = 0.25
    pad_angle: float = 0.02
    edge_padding: float = 0.0
    point_radius: float = 3.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.bar_padding <= 1.0:
            raise ValueError("ChartOptions.bar_padding must be within [0, 1]")
        if self.bar_mode not in BAR_MODES:
            raise ValueError(f"Unsupported bar mode: {self.bar_mode}")
        if not 0.0 <= self.inner_radius_ratio < 1.0 or not 0.0 <= self.radial_inner_ratio < 1.0:
            raise ValueError("radius ratios must be within [0, 1)")
        if self.pad_angle < 0 or self.treemap_padding < 0 or self.edge_padding < 0:
            raise ValueError("paddings must be >= 0")


@dataclass(frozen=True)
class ChartDocument:
    chart_type: str
    fields: FieldSelection
    width: float = 800.0
    height: float = 600.0
    title: str = ""
    x_axis: AxisConfig = DEFAULT_X_AXIS
    y_axis: AxisConfig = DEFAULT_Y_AXIS
    legend: LegendConfig = DEFAULT_LEGEND
    palette_id: str = "default"
    palette_extend: bool = False
    options: ChartOptions = field(default_factory=ChartOptions)

    def __post_init__(self) -> None:
        if not self.chart_type.strip():
            raise ValueError("ChartDocument.chart_type must be non-empty")
        if self.width < 0 or self.height < 0:
            raise ValueError("ChartDocument width/height must be >= 0")
        if self.x_axis.orientation != "x" or self.y_axis.orientation != "y":
            raise ValueError("ChartDocument axes must be oriented x and y respectively")


def document_to_dict(doc: ChartDocument) -> dict[str, Any]:
    payload = dataclasses.asdict(doc)
    payload["fields"] = {
        "label_field": doc.fields.label_field,
        "value_fields": list(doc.fields.value_fields),
        "group_fields": list(doc.fields.group_fields),
    }
    payload["version"] = DOCUMENT_VERSION
    return payload


def document_from_dict(payload: Mapping[str, Any]) -> ChartDocument:
    try:
        version = int(payload.get("version", DOCUMENT_VERSION))
        if version > DOCUMENT_VERSION:
            raise ChartDocumentError(f"unsupported document version: {version}")
        raw_fields = payload["fields"]
        if not isinstance(raw_fields, Mapping):
            raise ChartDocumentError("`fields` must be a mapping")
        fields_sel = FieldSelection(
            label_field=str(raw_fields["label_field"]),
            value_fields=_string_tuple(raw_fields.get("value_fields")),
            group_fields=_string_tuple(raw_fields.get("group_fields")),
        )
        return ChartDocument(
            chart_type=str(payload["chart_type"]),
            fields=fields_sel,
            width=float(payload.get("width", 800.0)),
            height=float(payload.get("height", 600.0)),
            title=str(payload.get("title", "")),
            x_axis=axis_from_dict(payload.get("x_axis"), DEFAULT_X_AXIS),
            y_axis=axis_from_dict(payload.get("y_axis"), DEFAULT_Y_AXIS),
            legend=legend_from_dict(payload.get("legend")),
            palette_id=str(payload.get("palette_id", "default")),
            palette_extend=bool(payload.get("palette_extend", False)),
            options=options_from_dict(payload.get("options")),
        )
    except ChartDocumentError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise ChartDocumentError(f"invalid chart document: {exc}") from exc


def axis_from_dict(raw: Any, base: AxisConfig) -> AxisConfig:
    return _merge(
        base,
        raw,
        {
            "domain_min": _optional_float,
            "domain_max": _optional_float,
            "label_size": lambda value: _font_sizes(value, base.label_size),
        },
    )


def legend_from_dict(raw: Any) -> LegendConfig:
    return _merge(DEFAULT_LEGEND, raw, {"base_font_size": lambda value: _font_sizes(value, DEFAULT_LEGEND.base_font_size)})


def options_from_dict(raw: Any) -> ChartOptions:
    return _merge(ChartOptions(), raw, {})


def load_document(path: str | Path) -> ChartDocument:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise ChartDocumentError("chart document must be a JSON object")
    return document_from_dict(payload)


def save_document(doc: ChartDocument, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(document_to_dict(doc), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return out


def _merge(base: Any, raw: Any, converters: Mapping[str, Callable[[Any], Any]]) -> Any:
    if raw is None:
        return base
    if not isinstance(raw, Mapping):
        raise ChartDocumentError(f"expected a mapping for {type(base).__name__}, got {type(raw)!r}")
    updates: dict[str, Any] = {}
    for f in dataclasses.fields(base):
        if f.name not in raw:
            continue
        convert = converters.get(f.name) or _converter_for(getattr(base, f.name))
        updates[f.name] = convert(raw[f.name])
    return dataclasses.replace(base, **updates)


def _converter_for(default: Any) -> Callable[[Any], Any]:
    if isinstance(default, bool):
        return _strict_bool
    if isinstance(default, int):
        return int
    if isinstance(default, float):
        return float
    return str


def _strict_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    raise ChartDocumentError(f"expected a boolean, got {raw!r}")


def _optional_float(raw: Any) -> float | None:
    if raw is None:
        return None
    return float(raw)


def _font_sizes(raw: Any, base: FontSizes) -> FontSizes:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return FontSizes.uniform(float(raw))
    return _merge(base, raw, {})


def _string_tuple(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        text = raw.strip()
        return (text,) if text else ()
    return tuple(str(item) for item in raw if str(item).strip())
