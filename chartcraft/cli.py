from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from chartcraft.config import load_document
from chartcraft.export import export_png, export_svg
from chartcraft.layout import compute_layout
from chartcraft.pipeline import CHART_RENDERERS, render_chart
from chartcraft.rows import pd

LOGGER = logging.getLogger(__name__)

_AXISLESS_TYPES = frozenset({"pie", "donut", "polar-area", "radial-bar", "radar", "treemap"})


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="chartcraft")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render rows with a chart document to SVG or PNG.")
    render.add_argument("--document", type=Path, required=True)
    render.add_argument("--rows", type=Path, required=True, help="JSON array of row objects (or CSV with pandas).")
    render.add_argument("--out", type=Path, required=True, help="Output path; .svg or .png")

    layout = sub.add_parser("layout", help="Print the computed layout box for a chart document as JSON.")
    layout.add_argument("--document", type=Path, required=True)

    sub.add_parser("types", help="List supported chart types.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "render":
        document = load_document(args.document)
        rows = load_rows(args.rows)
        scene = render_chart(rows, document)
        suffix = args.out.suffix.lower()
        if suffix == ".svg":
            out = export_svg(scene, args.out)
        elif suffix == ".png":
            out = export_png(scene, args.out)
        else:
            raise RuntimeError(f"unsupported output format: {args.out.suffix or '<none>'} (use .svg or .png)")
        print(f"wrote {out} marks={len(scene.marks)} hidden_legend_entries={scene.legend.hidden_count}")
        return

    if args.command == "layout":
        document = load_document(args.document)
        axes = () if document.chart_type in _AXISLESS_TYPES else (document.x_axis, document.y_axis)
        box = compute_layout(
            (document.width, document.height),
            document.legend,
            axes,
            edge_padding=document.options.edge_padding,
        )
        print(json.dumps(dataclasses.asdict(box), indent=2, sort_keys=True))
        return

    if args.command == "types":
        for name in sorted(CHART_RENDERERS):
            print(name)
        return

    raise RuntimeError(f"unsupported command: {args.command}")


def load_rows(path: Path) -> Any:
    if path.suffix.lower() == ".csv":
        if pd is None:
            raise RuntimeError("reading CSV rows requires pandas (pip install chartcraft[pandas])")
        return pd.read_csv(path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict) and "rows" in payload:
        payload = payload["rows"]
    LOGGER.debug("loaded %d row(s) from %s", len(payload) if isinstance(payload, list) else -1, path)
    return payload


if __name__ == "__main__":
    main()
