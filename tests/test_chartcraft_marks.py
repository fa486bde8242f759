from __future__ import annotations

import unittest

from chartcraft.marks import position_areas, position_bars, position_lines, position_points, value_domain
from chartcraft.rows import FieldSelection
from chartcraft.scales import BandScale, LinearScale, create_scale


COLORS = {"v": "#111111", "p": "#222222", "q": "#333333"}


class ValueDomainTests(unittest.TestCase):
    def test_zero_is_forced_into_domain_by_default(self) -> None:
        rows = [{"v": 2}, {"v": 8}]
        self.assertEqual(value_domain(rows, ["v"]), (0.0, 8.0))
        self.assertEqual(value_domain(rows, ["v"], force_zero=False), (2.0, 8.0))

    def test_stacked_domain_sums_each_sign_separately(self) -> None:
        rows = [{"p": 2, "q": -1, "r": 3}, {"p": 1, "q": None, "r": "x"}]
        self.assertEqual(value_domain(rows, ["p", "q", "r"], stacked=True), (-1.0, 5.0))

    def test_empty_rows_give_unit_domain(self) -> None:
        self.assertEqual(value_domain([], ["v"]), (0.0, 1.0))


class PointAndLineTests(unittest.TestCase):
    def test_temporal_points_order_by_date_and_invert_y(self) -> None:
        rows = [{"date": "2020-01-01", "v": 3}, {"date": "2020-02-01", "v": 5}]
        fields = FieldSelection(label_field="date", value_fields=("v",))
        x = create_scale("time", [r["date"] for r in rows], (0.0, 400.0))
        y = LinearScale(domain=value_domain(rows, ["v"]), range=(300.0, 0.0))
        marks = position_points(rows, fields, x, y, COLORS)
        self.assertEqual(len(marks), 2)
        first, second = marks
        self.assertLess(first.x, second.x)
        self.assertGreater(first.y, second.y)
        self.assertEqual(first.color, "#111111")
        self.assertEqual((first.row_index, second.row_index), (0, 1))

    def test_points_on_band_scale_sit_at_band_centres(self) -> None:
        rows = [{"k": "a", "v": 1}, {"k": "b", "v": 2}]
        fields = FieldSelection(label_field="k", value_fields=("v",))
        x = BandScale(domain=("a", "b"), range=(0.0, 200.0))
        y = LinearScale(domain=(0.0, 2.0), range=(100.0, 0.0))
        marks = position_points(rows, fields, x, y, COLORS)
        self.assertEqual([m.x for m in marks], [50.0, 150.0])

    def test_points_and_lines_on_band_y_scale_sit_at_band_centres(self) -> None:
        rows = [{"k": "a", "v": "lo"}, {"k": "b", "v": "hi"}]
        fields = FieldSelection(label_field="k", value_fields=("v",))
        x = BandScale(domain=("a", "b"), range=(0.0, 200.0))
        y = BandScale(domain=("lo", "hi"), range=(0.0, 200.0))
        marks = position_points(rows, fields, x, y, COLORS)
        self.assertEqual([(m.x, m.y) for m in marks], [(50.0, 50.0), (150.0, 150.0)])
        lines = position_lines(rows, fields, x, y, COLORS)
        self.assertEqual(lines[0].points, ((50.0, 50.0), (150.0, 150.0)))

    def test_lines_skip_unmappable_values(self) -> None:
        rows = [{"k": 1, "v": 1}, {"k": 2, "v": None}, {"k": 3, "v": 2}]
        fields = FieldSelection(label_field="k", value_fields=("v",))
        x = LinearScale(domain=(1.0, 3.0), range=(0.0, 100.0))
        y = LinearScale(domain=(0.0, 2.0), range=(100.0, 0.0))
        lines = position_lines(rows, fields, x, y, COLORS)
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].points, ((0.0, 50.0), (100.0, 0.0)))

    def test_area_closes_back_along_the_baseline(self) -> None:
        rows = [{"k": 0, "v": 4}, {"k": 1, "v": 6}, {"k": 2, "v": 2}]
        fields = FieldSelection(label_field="k", value_fields=("v",))
        x = LinearScale(domain=(0.0, 2.0), range=(0.0, 200.0))
        y = LinearScale(domain=(0.0, 10.0), range=(100.0, 0.0))
        (area,) = position_areas(rows, fields, x, y, COLORS)
        self.assertEqual(len(area.points), 6)
        self.assertEqual(area.points[3:], ((200.0, 100.0), (100.0, 100.0), (0.0, 100.0)))


class BarTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fields = FieldSelection(label_field="k", value_fields=("v",))

    def test_bars_grow_from_zero_baseline_in_both_directions(self) -> None:
        rows = [{"k": "a", "v": 5}, {"k": "b", "v": -3}]
        cat = BandScale(domain=("a", "b"), range=(0.0, 200.0))
        val = LinearScale(domain=value_domain(rows, ["v"]), range=(300.0, 0.0))
        self.assertAlmostEqual(val(0.0), 187.5)
        up, down = position_bars(rows, self.fields, cat, val, COLORS)
        self.assertAlmostEqual(up.rect.y, 0.0)
        self.assertAlmostEqual(up.rect.bottom, 187.5)
        self.assertAlmostEqual(down.rect.y, 187.5)
        self.assertAlmostEqual(down.rect.bottom, 300.0)
        self.assertEqual(down.value, -3.0)

    def test_baseline_is_clamped_into_domain(self) -> None:
        rows = [{"k": "a", "v": 50}]
        cat = BandScale(domain=("a",), range=(0.0, 100.0))
        val = LinearScale(domain=(20.0, 60.0), range=(100.0, 0.0))
        (bar,) = position_bars(rows, self.fields, cat, val, COLORS)
        self.assertAlmostEqual(bar.rect.bottom, 100.0)
        self.assertAlmostEqual(bar.rect.y, 25.0)

    def test_grouped_bars_split_band_into_sub_bands(self) -> None:
        rows = [{"k": "a", "p": 1, "q": 2}, {"k": "b", "p": 3, "q": 4}]
        fields = FieldSelection(label_field="k", value_fields=("p", "q"))
        cat = BandScale(domain=("a", "b"), range=(0.0, 200.0))
        val = LinearScale(domain=(0.0, 4.0), range=(100.0, 0.0))
        marks = position_bars(rows, fields, cat, val, COLORS)
        self.assertEqual(len(marks), 4)
        p_a, q_a = marks[0], marks[1]
        self.assertAlmostEqual(p_a.rect.width, q_a.rect.width)
        self.assertLess(p_a.rect.width, 50.0)
        self.assertLessEqual(p_a.rect.right, q_a.rect.x)
        self.assertGreaterEqual(p_a.rect.x, 0.0)
        self.assertLessEqual(q_a.rect.right, 100.0 + 1e-9)
        self.assertEqual((p_a.color, q_a.color), ("#222222", "#333333"))

    def test_stacked_bars_are_contiguous(self) -> None:
        rows = [{"k": "a", "p": 2, "q": 3}]
        fields = FieldSelection(label_field="k", value_fields=("p", "q"))
        cat = BandScale(domain=("a",), range=(0.0, 50.0))
        val = LinearScale(domain=(0.0, 5.0), range=(100.0, 0.0))
        p, q = position_bars(rows, fields, cat, val, COLORS, stacked=True)
        self.assertAlmostEqual(p.rect.bottom, 100.0)
        self.assertAlmostEqual(p.rect.y, q.rect.bottom)
        self.assertAlmostEqual(q.rect.y, 0.0)
        self.assertEqual(p.rect.width, 50.0)

    def test_horizontal_bars_extend_along_x(self) -> None:
        rows = [{"k": "a", "v": 5}, {"k": "b", "v": 10}]
        cat = BandScale(domain=("a", "b"), range=(0.0, 100.0), padding_inner=0.2, padding_outer=0.2)
        val = LinearScale(domain=(0.0, 10.0), range=(0.0, 200.0))
        a, b = position_bars(rows, self.fields, cat, val, COLORS, horizontal=True)
        self.assertAlmostEqual(a.rect.x, 0.0)
        self.assertAlmostEqual(a.rect.width, 100.0)
        self.assertAlmostEqual(b.rect.width, 200.0)
        self.assertAlmostEqual(a.rect.height, cat.bandwidth)
        self.assertLess(a.rect.y, b.rect.y)

    def test_unknown_category_and_missing_values_are_skipped(self) -> None:
        rows = [{"k": "a", "v": None}, {"k": "zzz", "v": 1}]
        cat = BandScale(domain=("a",), range=(0.0, 100.0))
        val = LinearScale(domain=(0.0, 1.0), range=(100.0, 0.0))
        self.assertEqual(position_bars(rows, self.fields, cat, val, COLORS), [])


if __name__ == "__main__":
    unittest.main()
