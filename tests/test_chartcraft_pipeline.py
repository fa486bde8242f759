from __future__ import annotations

import contextlib
import dataclasses
import io
import json
import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path

from PIL import Image

from chartcraft import ChartDocument, FieldSelection, render_chart
from chartcraft.cli import load_rows, main
from chartcraft.config import AXIS_SCALE_KINDS, DEFAULT_X_AXIS, DEFAULT_Y_AXIS, AxisConfig, ChartOptions, LegendConfig, save_document
from chartcraft.errors import ChartEngineError, UnknownChartTypeError
from chartcraft.export import export_png, export_svg, scene_to_image, scene_to_svg
from chartcraft.pipeline import chart_types
from chartcraft.primitives import ArcMark, CellMark, RectMark
from chartcraft.rows import pd
from chartcraft.scales import BandScale, LinearScale, LogScale

SVG = "{http://www.w3.org/2000/svg}"

ROWS = [
    {"month": "Jan", "sales": 120, "costs": 80, "region": "north"},
    {"month": "Feb", "sales": 90, "costs": 110, "region": "south"},
    {"month": "Mar", "sales": 150, "costs": 95, "region": "north"},
    {"month": "Apr", "sales": 60, "costs": None, "region": "east"},
]

FIELDS = FieldSelection(label_field="month", value_fields=("sales", "costs"), group_fields=("region",))


def _document(chart_type: str, **changes: object) -> ChartDocument:
    return dataclasses.replace(ChartDocument(chart_type=chart_type, fields=FIELDS), **changes)


class RenderChartTests(unittest.TestCase):
    def test_every_chart_type_renders(self) -> None:
        for chart_type in chart_types():
            with self.subTest(chart_type=chart_type):
                scene = render_chart(ROWS, _document(chart_type))
                self.assertEqual(scene.chart_type, chart_type)
                self.assertGreater(len(scene.marks), 0)
                self.assertEqual((scene.width, scene.height), (800.0, 600.0))

    def test_every_chart_type_handles_empty_rows(self) -> None:
        for chart_type in chart_types():
            with self.subTest(chart_type=chart_type):
                scene = render_chart([], _document(chart_type))
                self.assertEqual(scene.marks, ())

    def test_unknown_chart_type_raises(self) -> None:
        with self.assertRaises(UnknownChartTypeError):
            render_chart(ROWS, _document("gantt"))

    def test_rows_must_be_mappings(self) -> None:
        with self.assertRaises(ChartEngineError):
            render_chart({"month": "Jan"}, _document("bar"))
        with self.assertRaises(ChartEngineError):
            render_chart([1, 2], _document("bar"))

    def test_vertical_bars_stay_inside_plot_area(self) -> None:
        scene = render_chart(ROWS, _document("bar"))
        inner = scene.layout.inner_rect
        bars = [m for m in scene.marks if isinstance(m, RectMark)]
        self.assertEqual(len(bars), 7)
        for bar in bars:
            self.assertTrue(inner.contains(bar.rect, eps=1e-6), bar)
        self.assertIsInstance(scene.x_scale, BandScale)
        self.assertEqual(len(scene.axes), 2)

    def test_horizontal_bars_swap_axes(self) -> None:
        scene = render_chart(ROWS, _document("bar-horizontal"))
        self.assertIsInstance(scene.x_scale, LinearScale)
        self.assertIsInstance(scene.y_scale, BandScale)

    def test_stacked_bars_share_the_band(self) -> None:
        scene = render_chart(ROWS, _document("bar", options=ChartOptions(bar_mode="stacked")))
        jan = [m for m in scene.marks if m.label == "Jan"]
        self.assertEqual(len(jan), 2)
        self.assertAlmostEqual(jan[0].rect.x, jan[1].rect.x)
        self.assertAlmostEqual(jan[0].rect.y, jan[1].rect.bottom)

    def test_hidden_decorations_leave_only_edge_padding(self) -> None:
        doc = _document(
            "line",
            legend=LegendConfig(visible=False),
            x_axis=AxisConfig(orientation="x", placement="hidden"),
            y_axis=AxisConfig(orientation="y", placement="hidden"),
            options=ChartOptions(edge_padding=10.0),
        )
        scene = render_chart(ROWS, doc)
        self.assertAlmostEqual(scene.layout.inner_width, 800.0)
        self.assertAlmostEqual(scene.layout.inner_height, 580.0)
        self.assertEqual(scene.axes, ())
        self.assertIsNone(scene.legend.region)

    def test_log_axis_is_honoured(self) -> None:
        doc = _document("scatter", y_axis=AxisConfig(orientation="y", placement="left", scale_kind="log"))
        scene = render_chart(ROWS, doc)
        self.assertIsInstance(scene.y_scale, LogScale)

    def test_value_axis_accepts_every_scale_kind(self) -> None:
        for chart_type in ("bar", "bar-horizontal", "area", "line", "scatter"):
            for kind in AXIS_SCALE_KINDS:
                with self.subTest(chart_type=chart_type, kind=kind):
                    if chart_type == "bar-horizontal":
                        doc = _document(chart_type, x_axis=dataclasses.replace(DEFAULT_X_AXIS, scale_kind=kind))
                    else:
                        doc = _document(chart_type, y_axis=dataclasses.replace(DEFAULT_Y_AXIS, scale_kind=kind))
                    scene = render_chart(ROWS, doc)
                    value_scale = scene.x_scale if chart_type == "bar-horizontal" else scene.y_scale
                    self.assertFalse(value_scale.is_ordinal)
                    self.assertGreater(len(scene.marks), 0)

    def test_ordinal_value_axis_renders_like_linear(self) -> None:
        linear = render_chart(ROWS, _document("bar"))
        for kind in ("band", "point"):
            with self.subTest(kind=kind):
                scene = render_chart(ROWS, _document("bar", y_axis=dataclasses.replace(DEFAULT_Y_AXIS, scale_kind=kind)))
                self.assertIsInstance(scene.y_scale, LinearScale)
                self.assertEqual(scene.marks, linear.marks)

    def test_palette_assigns_series_colors(self) -> None:
        scene = render_chart(ROWS, _document("line", palette_id="ocean"))
        self.assertEqual(scene.colors, {"sales": "#006994", "costs": "#0081A7"})
        self.assertEqual([t.text for t in scene.legend.texts], ["sales", "costs"])

    def test_diverging_sort_orders_bars_top_to_bottom(self) -> None:
        doc = _document("diverging-bar", options=ChartOptions(sort_mode="descending"))
        scene = render_chart(ROWS, doc)
        ordered = sorted(scene.marks, key=lambda m: m.rect.y)
        # costs minus sales per month
        self.assertEqual([m.label for m in ordered], ["Feb", "Jan", "Mar", "Apr"])
        self.assertEqual(ordered[0].series, "positive")

    def test_donut_uses_default_inner_ratio(self) -> None:
        scene = render_chart(ROWS, _document("donut"))
        arcs = [m for m in scene.marks if isinstance(m, ArcMark)]
        self.assertTrue(all(abs(a.inner_radius - 0.6 * a.outer_radius) < 1e-9 for a in arcs))
        pie = render_chart(ROWS, _document("pie"))
        self.assertTrue(all(a.inner_radius == 0.0 for a in pie.marks))

    def test_pie_legend_can_show_values(self) -> None:
        doc = _document("pie", legend=LegendConfig(show_values=True))
        scene = render_chart(ROWS, doc)
        self.assertIn("Jan: 120", [t.text for t in scene.legend.texts])

    def test_treemap_groups_by_region(self) -> None:
        scene = render_chart(ROWS, _document("treemap"))
        top = [m for m in scene.marks if isinstance(m, CellMark) and m.depth == 1]
        self.assertEqual([c.label for c in top], ["north", "south", "east"])
        self.assertEqual(set(scene.colors), {"north", "south", "east"})

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_dataframe_rows_are_accepted(self) -> None:
        frame = pd.DataFrame(ROWS)
        from_frame = render_chart(frame, _document("bar"))
        from_list = render_chart(ROWS, _document("bar"))
        self.assertEqual(len(from_frame.marks), len(from_list.marks))


class ExportTests(unittest.TestCase):
    def test_svg_is_well_formed(self) -> None:
        scene = render_chart(ROWS, _document("bar", title="Sales"))
        root = ET.fromstring(scene_to_svg(scene))
        self.assertEqual(root.tag, f"{SVG}svg")
        self.assertEqual(root.get("width"), "800")
        marks = root.find(f"{SVG}g[@class='marks']")
        self.assertIsNotNone(marks)
        self.assertEqual(len(marks.findall(f"{SVG}rect")), len(scene.marks))
        texts = [t.text for t in root.iter(f"{SVG}text")]
        self.assertIn("Sales", texts)
        self.assertIn("Jan", texts)

    def test_polar_and_treemap_scenes_serialize(self) -> None:
        for chart_type in ("pie", "radar", "treemap", "area"):
            with self.subTest(chart_type=chart_type):
                ET.fromstring(scene_to_svg(render_chart(ROWS, _document(chart_type))))

    def test_png_matches_canvas_size(self) -> None:
        doc = _document("line", width=640.0, height=360.0, x_axis=AxisConfig(orientation="x", placement="bottom", label_angle=-45.0))
        image = scene_to_image(render_chart(ROWS, doc))
        self.assertEqual(image.size, (640, 360))
        self.assertEqual(image.mode, "RGBA")

    def test_export_writes_files(self) -> None:
        scene = render_chart(ROWS, _document("pie"))
        with tempfile.TemporaryDirectory() as tmp:
            svg_path = export_svg(scene, Path(tmp) / "out" / "chart.svg")
            png_path = export_png(scene, Path(tmp) / "out" / "chart.png")
            self.assertTrue(svg_path.read_text(encoding="utf-8").startswith("<svg"))
            with Image.open(png_path) as image:
                self.assertEqual(image.size, (800, 600))


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.document_path = save_document(_document("bar"), self.tmp / "chart.json")
        self.rows_path = self.tmp / "rows.json"
        self.rows_path.write_text(json.dumps({"rows": ROWS}), encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *argv: str) -> str:
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            main(list(argv))
        return buf.getvalue()

    def test_layout_prints_json(self) -> None:
        payload = json.loads(self._run("layout", "--document", str(self.document_path)))
        self.assertEqual(payload["width"], 800.0)
        self.assertEqual(payload["breakpoint"], "tablet")
        self.assertGreater(payload["left"], 0.0)
        self.assertIn("legend_region", payload)

    def test_render_writes_svg(self) -> None:
        out = self.tmp / "chart.svg"
        stdout = self._run("render", "--document", str(self.document_path), "--rows", str(self.rows_path), "--out", str(out))
        self.assertTrue(out.exists())
        self.assertIn("wrote", stdout)

    def test_render_rejects_unknown_extension(self) -> None:
        with self.assertRaises(RuntimeError):
            self._run(
                "render",
                "--document",
                str(self.document_path),
                "--rows",
                str(self.rows_path),
                "--out",
                str(self.tmp / "chart.gif"),
            )

    def test_types_lists_chart_types(self) -> None:
        self.assertEqual(self._run("types").split(), chart_types())

    def test_load_rows_accepts_bare_list(self) -> None:
        path = self.tmp / "bare.json"
        path.write_text(json.dumps(ROWS), encoding="utf-8")
        self.assertEqual(load_rows(path), ROWS)


if __name__ == "__main__":
    unittest.main()
