from __future__ import annotations


class ChartEngineError(ValueError):
    pass


class UnknownScaleKindError(ChartEngineError):
    pass


class UnknownTilingMethodError(ChartEngineError):
    pass


class UnknownChartTypeError(ChartEngineError):
    pass


class ChartDocumentError(ChartEngineError):
    pass
