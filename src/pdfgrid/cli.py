"""Command-line interface for rendering grids to PDF."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .config import RenderConfig, load_config
from .datasource import ColumnSpec, grid_from_records, grid_from_rows
from .demo import build_demo_grid
from .exceptions import ConfigError
from .grid import Grid
from .layout_export import clear_layout, write_layout
from .surface import ReportLabSurface


def load_table(path: Path, config: RenderConfig, width: float) -> Grid:
    """Build a grid from a YAML or JSON table file.

    The file holds ``columns`` (name, key, width_ratio, alignment, total)
    and either ``rows`` (lists of values) or ``records`` (mappings), plus an
    optional ``totals`` flag.
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError("Invalid table file", f"{path}: {e}") from e
    if not isinstance(data, dict) or "columns" not in data:
        raise ConfigError("Table file needs a 'columns' list", str(path))

    try:
        columns = [ColumnSpec(**spec) if isinstance(spec, dict) else ColumnSpec(str(spec))
                   for spec in data["columns"]]
    except TypeError as e:
        raise ConfigError("Invalid column specification", str(e)) from e

    totals = bool(data.get("totals", False))
    try:
        if "records" in data:
            grid = grid_from_records(columns, data["records"] or [], total_width=width,
                                     include_totals=totals)
        else:
            grid = grid_from_rows(columns, data.get("rows") or [], total_width=width,
                                  include_totals=totals)
    except ValueError as e:
        raise ConfigError("Invalid table data", str(e)) from e
    config.apply(grid)
    return grid


def render_grid(
    grid: Grid,
    config: RenderConfig,
    pdf_path: Path,
    layout_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Draw a grid into a new PDF and optionally export its placements.

    Returns summary statistics.
    """
    layout = config.page_layout()
    pdf_path = Path(pdf_path)
    pdf_path.parent.mkdir(parents=True, exist_ok=True)
    surface = ReportLabSurface.create(str(pdf_path), layout)

    result = grid.draw(surface)
    surface.save()

    stats = {
        "pdf_path": str(pdf_path),
        "pages": result.page_count,
        "rows": sum(len(p.rows) for p in result.pages),
        "split_rows": sum(1 for p in result.pages for r in p.rows if r.is_split),
        "finished": result.finished,
    }
    if layout_dir is not None:
        clear_layout(layout_dir)
        counts = write_layout(result, layout_dir, pdf_path.stem, layout)
        stats["cells"] = counts["cells"]
    return stats


def print_summary(stats: Dict[str, Any]) -> None:
    print("\nRendering complete!")
    print(f"  PDF: {stats['pdf_path']}")
    print(f"  Pages: {stats['pages']}")
    print(f"  Row placements: {stats['rows']}")
    print(f"  Split rows: {stats['split_rows']}")
    if "cells" in stats:
        print(f"  Cell placements: {stats['cells']}")
    if not stats["finished"]:
        print("  Warning: layout stopped before the grid was finished")


def run(argv=None):
    """Parse arguments, render the grid and return the layout stats."""
    parser = argparse.ArgumentParser(
        prog="pdfgrid",
        description="Paginated PDF grid renderer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--layout-dir",
        type=Path,
        help="Also write row/cell placements as JSONL under this directory",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log layout decisions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render a YAML/JSON table file")
    render.add_argument("table", type=Path, help="Table file")
    render.add_argument("--out", type=Path, help="Output PDF path (default: <out_dir>/<table name>.pdf)")

    demo = subparsers.add_parser("demo", help="Render a generated ledger")
    demo.add_argument("--out", type=Path, help="Output PDF path (default: <out_dir>/demo.pdf)")
    demo.add_argument("--rows", type=int, help="Number of ledger rows (overrides config)")
    demo.add_argument("--seed", type=int, help="Random seed (overrides config)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Load config
    try:
        config = load_config(args.config)
        if args.command == "demo":
            # Override with CLI args
            if args.rows is not None:
                config.demo_rows = args.rows
            if args.seed is not None:
                config.seed = args.seed
            config.validate()
        width = config.page_layout().content_width
        if args.command == "render":
            grid = load_table(args.table, config, width)
        else:
            grid = build_demo_grid(config, width)
    except ConfigError as e:
        parser.error(str(e))

    out = args.out
    if out is None:
        name = args.table.stem if args.command == "render" else "demo"
        out = config.out_dir / f"{name}.pdf"

    stats = render_grid(grid, config, out, args.layout_dir)
    print_summary(stats)
    return stats


def main(argv=None):
    """Main entry point for CLI."""
    run(argv)
    return 0


if __name__ == "__main__":
    sys.exit(main())
