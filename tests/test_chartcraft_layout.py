from __future__ import annotations

import dataclasses
import unittest

from chartcraft.config import DEFAULT_LEGEND, DEFAULT_X_AXIS, DEFAULT_Y_AXIS, AxisConfig, FontSizes, LegendConfig
from chartcraft.layout import MIN_AXIS_ALLOWANCE, axis_band, compute_layout


HIDDEN_X = AxisConfig(orientation="x", placement="hidden")
HIDDEN_Y = AxisConfig(orientation="y", placement="hidden")


class LayoutTests(unittest.TestCase):
    def test_hidden_legend_and_axes_collapse_to_edge_padding(self) -> None:
        legend = LegendConfig(visible=False)
        box = compute_layout((800, 600), legend, (HIDDEN_X, HIDDEN_Y), edge_padding=10.0)
        self.assertAlmostEqual(box.inner_width, 800.0)
        self.assertAlmostEqual(box.inner_height, 580.0)
        self.assertEqual((box.left, box.right), (0.0, 0.0))
        self.assertEqual((box.top, box.bottom), (10.0, 10.0))

    def test_default_edge_padding_is_zero(self) -> None:
        box = compute_layout((800, 600), LegendConfig(visible=False), (HIDDEN_X, HIDDEN_Y))
        self.assertEqual((box.inner_width, box.inner_height), (800.0, 600.0))

    def test_invisible_axis_reserves_nothing(self) -> None:
        axis = dataclasses.replace(DEFAULT_X_AXIS, visible=False)
        box = compute_layout((800, 600), LegendConfig(visible=False), (axis,))
        self.assertEqual(box.bottom, 0.0)

    def test_inner_extents_never_negative(self) -> None:
        for size in ((0, 0), (10, 10), (50, 40), (120, 900), (900, 30)):
            box = compute_layout(size, DEFAULT_LEGEND, (DEFAULT_X_AXIS, DEFAULT_Y_AXIS), edge_padding=25.0)
            self.assertGreaterEqual(box.inner_width, 0.0, size)
            self.assertGreaterEqual(box.inner_height, 0.0, size)

    def test_x_axis_band_sums_tick_label_and_title_distances(self) -> None:
        band = axis_band(DEFAULT_X_AXIS, 800)
        # 6 tick + 8 padding + 12 * 1.2 label + 3 spacing + 35 title padding + 12 title
        self.assertAlmostEqual(band.total, 78.4)

    def test_rotated_labels_need_more_room(self) -> None:
        flat = axis_band(DEFAULT_X_AXIS, 800)
        rotated = axis_band(dataclasses.replace(DEFAULT_X_AXIS, label_angle=-45.0), 800)
        self.assertGreater(rotated.label_extent, flat.label_extent)

    def test_vertical_axis_uses_character_count_heuristic(self) -> None:
        narrow = axis_band(dataclasses.replace(DEFAULT_Y_AXIS, label_chars=3), 800)
        wide = axis_band(dataclasses.replace(DEFAULT_Y_AXIS, label_chars=10), 800)
        self.assertAlmostEqual(wide.label_extent - narrow.label_extent, 7 * 12 * 0.6)

    def test_legend_and_axis_on_same_edge_are_additive(self) -> None:
        y_right = AxisConfig(orientation="y", placement="right")
        box = compute_layout((800, 600), DEFAULT_LEGEND, (DEFAULT_X_AXIS, y_right))
        self.assertAlmostEqual(box.right, DEFAULT_LEGEND.space + axis_band(y_right, 800).total)

    def test_hidden_legend_edge_keeps_minimum_axis_allowance(self) -> None:
        legend = LegendConfig(visible=False, placement="right")
        box = compute_layout((800, 600), legend, (DEFAULT_X_AXIS, DEFAULT_Y_AXIS))
        self.assertAlmostEqual(box.right, MIN_AXIS_ALLOWANCE["right"])

    def test_legend_region_never_overlaps_plot_or_axis_band(self) -> None:
        for placement in ("top", "right", "bottom", "left"):
            legend = LegendConfig(placement=placement)
            x_axis = AxisConfig(orientation="x", placement="top" if placement == "top" else "bottom")
            y_axis = AxisConfig(orientation="y", placement="left" if placement == "left" else "right")
            box = compute_layout((1000, 700), legend, (x_axis, y_axis), edge_padding=5.0)
            region = box.legend_region
            self.assertIsNotNone(region)
            self.assertFalse(region.overlaps(box.inner_rect), placement)
            if placement == "right":
                self.assertGreaterEqual(region.x, box.inner_rect.right + axis_band(y_axis, 1000).total - 1e-9)
            if placement == "bottom":
                self.assertGreaterEqual(region.y, box.inner_rect.bottom + axis_band(x_axis, 1000).total - 1e-9)

    def test_hidden_legend_has_no_region(self) -> None:
        box = compute_layout((800, 600), LegendConfig(visible=False), ())
        self.assertIsNone(box.legend_region)

    def test_breakpoint_follows_canvas_width(self) -> None:
        legend = LegendConfig(visible=False)
        self.assertEqual(compute_layout((500, 400), legend, ()).breakpoint, "mobile")
        self.assertEqual(compute_layout((900, 400), legend, ()).breakpoint, "tablet")
        self.assertEqual(compute_layout((1200, 400), legend, ()).breakpoint, "desktop")

    def test_label_font_size_is_resolved_per_breakpoint(self) -> None:
        axis = dataclasses.replace(DEFAULT_X_AXIS, label_size=FontSizes(mobile=10.0, tablet=12.0, desktop=20.0))
        self.assertLess(axis_band(axis, 500).total, axis_band(axis, 1400).total)


if __name__ == "__main__":
    unittest.main()
