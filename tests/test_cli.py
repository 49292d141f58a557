"""Tests for the demo data and the command-line interface."""

import json

import pytest

from pdfgrid.cli import load_table, main, run
from pdfgrid.config import RenderConfig
from pdfgrid.demo import LEDGER_COLUMNS, build_demo_grid, summarize_by_vendor
from pdfgrid.exceptions import ConfigError


TABLE_YAML = """\
columns:
  - {name: Item, width_ratio: 0.5}
  - {name: Qty, alignment: right, total: true}
rows:
  - [Widget, 3]
  - [Gadget, 4]
totals: true
"""


class TestDemoGrid:
    """Test suite for the generated ledger."""

    def test_structure(self):
        grid = build_demo_grid(RenderConfig(demo_rows=10), 540)

        assert len(grid.columns) == len(LEDGER_COLUMNS)
        assert len(grid.headers) == 1
        assert len(grid.rows) == 12  # records, totals, vendor summary
        assert grid.rows[10].cells[0].value == "TOTAL"
        holder = grid.rows[11].cells[1]
        assert holder.is_nested_grid
        assert holder.column_span == len(LEDGER_COLUMNS) - 1
        assert not holder.value.repeat_header

    def test_same_seed_same_data(self):
        first = build_demo_grid(RenderConfig(demo_rows=8, seed=3), 540)
        second = build_demo_grid(RenderConfig(demo_rows=8, seed=3), 540)

        def values(grid):
            return [[c.value for c in row.cells] for row in list(grid.rows)[:9]]

        assert values(first) == values(second)

    def test_summarize_by_vendor(self):
        records = [
            {"vendor": "A", "amount": 10.0},
            {"vendor": "B", "amount": 50.0},
            {"vendor": "A", "amount": 15.0},
        ]

        summary = summarize_by_vendor(records, top=1)

        assert summary == [{"vendor": "B", "count": 1, "total": 50.0}]


class TestLoadTable:
    def test_yaml_table(self, tmp_path):
        path = tmp_path / "table.yaml"
        path.write_text(TABLE_YAML)

        grid = load_table(path, RenderConfig(), 400)

        assert grid.columns[0].width == 200.0
        assert [c.value for c in grid.rows[2].cells] == ["TOTAL", "7.00"]

    def test_json_records(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text(json.dumps({
            "columns": ["Name", {"name": "Score", "alignment": "right"}],
            "records": [{"name": "a", "score": 1}, {"name": "b", "score": 2}],
        }))

        grid = load_table(path, RenderConfig(), 400)

        assert [c.value for c in grid.rows[1].cells] == ["b", "2"]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "table.yaml"
        path.write_text("rows: []\n")

        with pytest.raises(ConfigError):
            load_table(path, RenderConfig(), 400)

    def test_bad_column_spec(self, tmp_path):
        path = tmp_path / "table.yaml"
        path.write_text("columns:\n  - {title: Item}\n")

        with pytest.raises(ConfigError):
            load_table(path, RenderConfig(), 400)


class TestMain:
    """Test suite for the pdfgrid command."""

    def test_render_table(self, tmp_path, capsys):
        table = tmp_path / "table.yaml"
        table.write_text(TABLE_YAML)
        out = tmp_path / "pdf" / "table.pdf"

        stats = run(["--layout-dir", str(tmp_path / "labels"), "render", str(table), "--out", str(out)])

        assert out.exists()
        assert stats["pages"] == 1
        assert stats["rows"] == 4
        assert stats["cells"] == 8
        assert stats["finished"]
        assert (tmp_path / "labels" / "layout" / "cells.jsonl").exists()
        assert "Rendering complete!" in capsys.readouterr().out

    def test_demo(self, tmp_path):
        out = tmp_path / "demo.pdf"

        stats = run(["demo", "--out", str(out), "--rows", "5", "--seed", "11"])

        assert out.read_bytes().startswith(b"%PDF")
        assert stats["finished"]
        assert stats["pages"] >= 1

    def test_long_demo_spans_pages(self, tmp_path):
        out = tmp_path / "demo.pdf"

        stats = run(["demo", "--out", str(out), "--rows", "120"])

        assert stats["finished"]
        assert stats["pages"] > 1

    def test_default_output_paths_under_out_dir(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(f"out_dir: {tmp_path / 'pdfs'}\n")
        table = tmp_path / "prices.yaml"
        table.write_text(TABLE_YAML)

        demo_stats = run(["--config", str(config), "demo", "--rows", "3"])
        table_stats = run(["--config", str(config), "render", str(table)])

        assert demo_stats["pdf_path"] == str(tmp_path / "pdfs" / "demo.pdf")
        assert table_stats["pdf_path"] == str(tmp_path / "pdfs" / "prices.pdf")
        assert (tmp_path / "pdfs" / "prices.pdf").exists()

    def test_wrong_type_in_config_exits(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text('margin: "x"\n')

        with pytest.raises(SystemExit):
            run(["--config", str(config), "demo", "--out", str(tmp_path / "x.pdf")])

    def test_invalid_config_exits(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("page_size: tabloid\n")

        with pytest.raises(SystemExit):
            main(["--config", str(config), "demo", "--out", str(tmp_path / "x.pdf")])

    def test_main_returns_exit_status(self, tmp_path):
        assert main(["demo", "--out", str(tmp_path / "demo.pdf"), "--rows", "3"]) == 0
