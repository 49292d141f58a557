"""Tests for row and column spans."""

import pytest

from pdfgrid.exceptions import InvalidSpanError
from pdfgrid.geometry import Rect

from conftest import RecordingSurface, lines, make_grid, plain_style


class TestSpanValidation:
    """Test suite for span setters."""

    def test_span_below_one(self):
        grid = make_grid(columns=2, rows=1)
        cell = grid.rows[0].cells[0]

        with pytest.raises(InvalidSpanError):
            cell.row_span = 0
        with pytest.raises(InvalidSpanError):
            cell.column_span = 0

    def test_invalid_span_is_value_error(self):
        grid = make_grid(columns=2, rows=1)

        with pytest.raises(ValueError):
            grid.rows[0].cells[0].column_span = -1

    def test_row_span_past_last_row(self):
        grid = make_grid(columns=2, rows=2)

        with pytest.raises(InvalidSpanError) as exc_info:
            grid.rows[1].cells[0].row_span = 2

        assert "last row" in str(exc_info.value)

    def test_column_span_past_last_column(self):
        grid = make_grid(columns=3, rows=1)

        with pytest.raises(InvalidSpanError):
            grid.rows[0].cells[2].column_span = 2

    def test_valid_spans_set_flags(self):
        grid = make_grid(columns=3, rows=3)
        grid.rows.set_span(0, 0, 2, 2)

        cell = grid.rows[0].cells[0]
        assert cell.row_span == 2
        assert cell.column_span == 2
        assert grid.has_row_span
        assert grid.has_column_span
        assert grid.rows[0].row_span_exists
        assert grid.rows[0].maximum_row_span == 2

    def test_span_growing_after_rows_removed_is_caught_at_layout(self):
        grid = make_grid(columns=2, rows=2)
        grid.rows[0].cells[0].row_span = 2
        grid.rows._rows.pop()

        with pytest.raises(InvalidSpanError):
            grid._prepare_layout(200, RecordingSurface())


class TestMergeSlots:
    """Test suite for slots covered by spanning cells."""

    def test_covered_slots_flagged(self):
        grid = make_grid(widths=[50, 50, 50], rows=3)
        grid.rows.set_span(0, 0, 2, 2)
        grid._prepare_layout(150, RecordingSurface())

        assert grid.rows[0].cells[1].is_cell_merge_continue
        assert grid.rows[1].cells[0].is_row_merge_continue
        assert grid.rows[1].cells[1].is_row_merge_continue
        assert grid.rows[1].cells[1].is_cell_merge_continue
        assert not grid.rows[1].cells[2].is_row_merge_continue
        assert not grid.rows[2].cells[0].is_row_merge_continue

    def test_spanning_cell_width(self):
        grid = make_grid(widths=[100, 150, 120], rows=1, style=plain_style(cell_spacing=4))
        cell = grid.rows[0].cells[0]
        cell.column_span = 2

        assert cell.width == 246
        grid._prepare_layout(500, RecordingSurface())
        assert cell.width == 246
        assert grid.rows[0].cells[2].width == 116


class TestRowSpanHeights:
    """Test suite for distributing a row-spanning cell's height."""

    def _grid(self):
        grid = make_grid(widths=[100, 100], rows=3)
        for row in grid.rows:
            row.cells[1].value = lines(2)  # 20pt
        tall = grid.rows[0].cells[0]
        tall.value = lines(8)  # 80pt
        tall.row_span = 3
        return grid

    def test_deficit_added_to_last_row(self):
        grid = self._grid()
        grid._prepare_layout(200, RecordingSurface())

        assert [row.height for row in grid.rows] == [20, 20, 40]
        assert grid.rows[2].base_height == 20
        assert grid.rows[2].cells[0].row_span_remaining_height == 20

    def test_resolution_is_idempotent(self):
        grid = self._grid()
        grid._prepare_layout(200, RecordingSurface())
        before = [row.height for row in grid.rows]

        grid._resolve_row_span_heights(list(grid.rows))

        assert [row.height for row in grid.rows] == before

    def test_no_deficit_when_rows_are_tall_enough(self):
        grid = self._grid()
        grid.rows[0].cells[0].value = lines(4)
        grid._prepare_layout(200, RecordingSurface())

        assert [row.height for row in grid.rows] == [20, 20, 20]

    def test_row_made_only_of_spanning_cells(self):
        grid = make_grid(widths=[100], rows=2)
        grid.rows[0].cells[0].value = lines(3)
        grid.rows[0].cells[0].row_span = 2
        grid._prepare_layout(100, RecordingSurface())

        assert grid.rows[0].height == 30
        assert grid.rows[1].height == 0

    def test_span_group_drawn_as_one_cell(self):
        grid = self._grid()
        surface = RecordingSurface()
        result = grid.draw(surface)

        assert result.page_count == 1
        placements = result.cell_placements(0, 0)
        assert len(placements) == 1
        assert placements[0].bounds == Rect(0, 0, 100, 80)
        assert placements[0].finished
        assert len(surface.texts_on(0)) == 8 + 3 * 2

    def test_span_group_moves_to_next_page(self):
        grid = make_grid(widths=[100, 100], rows=18)
        for i in range(15):
            grid.rows[i].cells[0].value = lines(1)
        for i in range(15, 18):
            grid.rows[i].cells[1].value = lines(2)
        grid.rows[15].cells[0].value = lines(8)
        grid.rows[15].cells[0].row_span = 3

        result = grid.draw(RecordingSurface(height=200))

        assert result.page_count == 2
        assert [r.row_index for r in result.pages[0].rows] == list(range(15))
        assert result.pages[0].state.value == "page_complete"
        assert [r.row_index for r in result.pages[1].rows] == [15, 16, 17]
        assert result.cell_placements(15, 0)[0].bounds.y == 0

    def _tall_span(self, value):
        """Twenty rows whose first cell spans them all; 250pt on a 200pt page."""
        grid = make_grid(widths=[100, 100], rows=20)
        for i, row in enumerate(grid.rows):
            row.cells[1].value = f"r{i}"
        grid.rows[0].cells[0].value = value
        grid.rows[0].cells[0].row_span = 20
        return grid

    def test_span_group_taller_than_page_placed_row_by_row(self):
        text = lines(25, prefix="span")
        grid = self._tall_span(text)

        result = grid.draw(RecordingSurface(height=200))

        assert result.finished
        assert result.page_count == 2
        spanning = result.cell_placements(0, 0)
        assert [p.finished for p in spanning] == [False, True]
        assert spanning[0].bounds == Rect(0, 0, 100, 200)
        assert "".join(p.text or "" for p in spanning) == text
        for i in range(20):
            drawn = "".join(p.text or "" for p in result.cell_placements(i, 1))
            assert drawn == f"r{i}"
        assert result.pages[0].rows[-1].row_index == 19
        assert result.pages[0].rows[-1].is_split

    def test_nested_grid_in_tall_span_group_continues(self):
        child = make_grid(columns=1, rows=25)
        for i, row in enumerate(child.rows):
            row.cells[0].value = f"c{i:02d}"
        grid = self._tall_span(child)
        surface = RecordingSurface(height=200)

        result = grid.draw(surface)

        assert result.finished
        assert result.page_count == 2
        assert surface.clip_stack == []
        child_texts = [[t for t in surface.texts_on(i) if t.startswith("c")] for i in range(2)]
        assert child_texts == [[f"c{i:02d}" for i in range(20)], [f"c{i:02d}" for i in range(20, 25)]]
        assert [t for t in surface.texts_on(0) if t.startswith("r")] == [f"r{i}" for i in range(20)]
