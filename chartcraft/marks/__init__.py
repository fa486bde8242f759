from chartcraft.marks.cartesian import position_areas, position_bars, position_lines, position_points, value_domain
from chartcraft.marks.diverging import (
    SORT_MODES,
    DivergingItem,
    diverging_items,
    diverging_value,
    position_diverging,
    sort_diverging,
)
from chartcraft.marks.hierarchy import TILING_METHODS, HierarchyNode, build_hierarchy, layout_treemap, tile
from chartcraft.marks.polar import position_pie, position_polar_area, position_radar, position_radial_bars

__all__ = [
    "SORT_MODES",
    "TILING_METHODS",
    "DivergingItem",
    "HierarchyNode",
    "build_hierarchy",
    "diverging_items",
    "diverging_value",
    "layout_treemap",
    "position_areas",
    "position_bars",
    "position_diverging",
    "position_lines",
    "position_pie",
    "position_points",
    "position_polar_area",
    "position_radar",
    "position_radial_bars",
    "sort_diverging",
    "tile",
    "value_domain",
]
