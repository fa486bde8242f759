from chartcraft.config import (
    AxisConfig,
    ChartDocument,
    ChartOptions,
    FontSizes,
    LegendConfig,
    document_from_dict,
    document_to_dict,
    load_document,
    save_document,
)
from chartcraft.errors import (
    ChartDocumentError,
    ChartEngineError,
    UnknownChartTypeError,
    UnknownScaleKindError,
    UnknownTilingMethodError,
)
from chartcraft.layout import LayoutBox, compute_layout
from chartcraft.pipeline import ChartScene, render_chart
from chartcraft.rows import FieldSelection, infer_scale_kind, normalize_rows
from chartcraft.scales import ScaleOptions, create_scale

__all__ = [
    "AxisConfig",
    "ChartDocument",
    "ChartDocumentError",
    "ChartEngineError",
    "ChartOptions",
    "ChartScene",
    "FieldSelection",
    "FontSizes",
    "LayoutBox",
    "LegendConfig",
    "ScaleOptions",
    "UnknownChartTypeError",
    "UnknownScaleKindError",
    "UnknownTilingMethodError",
    "compute_layout",
    "create_scale",
    "document_from_dict",
    "document_to_dict",
    "infer_scale_kind",
    "load_document",
    "normalize_rows",
    "render_chart",
    "save_document",
]
