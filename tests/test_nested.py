"""Tests for grids nested inside cells."""

from pdfgrid.geometry import Point
from pdfgrid.styles import StringFormat, TextAlignment

from conftest import RecordingSurface, make_grid


def _outer_with_child(child_rows: int = 1, child_columns: int = 2):
    outer = make_grid(widths=[200, 300], rows=1)
    outer.rows[0].cells[0].value = "left"
    child = make_grid(columns=child_columns, rows=child_rows)
    for i, row in enumerate(child.rows):
        for j, cell in enumerate(row.cells):
            cell.value = f"n{i}.{j}"
    outer.rows[0].cells[1].value = child
    return outer, child


class TestNestedLayout:
    """Test suite for drawing nested grids."""

    def test_child_drawn_inside_parent_cell(self):
        outer, child = _outer_with_child()
        surface = RecordingSurface()

        result = outer.draw(surface)

        assert result.page_count == 1
        assert result.pages[0].rows[0].row_height == 10
        origins = {text: origin for _, text, origin in surface.texts}
        assert origins["left"] == Point(0, 0)
        assert origins["n0.0"] == Point(200, 0)
        assert origins["n0.1"] == Point(350, 0)

    def test_clip_pushed_and_popped(self):
        outer, _ = _outer_with_child()
        surface = RecordingSurface()

        outer.draw(surface)

        assert surface.clips_pushed == 1
        assert surface.clip_stack == []

    def test_nested_cell_height_from_child(self):
        outer, child = _outer_with_child(child_rows=3)
        outer._prepare_layout(500, RecordingSurface())

        assert child.size().height == 30
        assert outer.rows[0].height == 30
        assert outer.rows[0].cells[1].is_nested_grid
        assert outer.rows[0].cells[1].text is None

    def test_narrow_child_aligned_right(self):
        outer = make_grid(widths=[300], rows=1)
        child = make_grid(widths=[100], rows=1)
        child.rows[0].cells[0].value = "x"
        holder = outer.rows[0].cells[0]
        holder.value = child
        holder.string_format = StringFormat(alignment=TextAlignment.RIGHT)
        surface = RecordingSurface()

        outer.draw(surface)

        assert surface.texts[0][2] == Point(200, 0)

    def test_child_split_across_pages(self):
        outer, child = _outer_with_child(child_rows=30, child_columns=1)
        surface = RecordingSurface(height=200)

        result = outer.draw(surface)

        assert result.page_count == 2
        assert result.finished
        assert surface.texts_on(0)[0] == "left"
        assert surface.texts_on(0)[1:] == [f"n{i}.0" for i in range(20)]
        assert surface.texts_on(1) == [f"n{i}.0" for i in range(20, 30)]
        assert result.pages[0].rows[0].is_split
        assert result.pages[1].rows[0].row_height == 100
        assert surface.clip_stack == []

    def test_child_header_repeat_inside_parent(self):
        outer = make_grid(widths=[200], rows=1)
        child = make_grid(columns=1, rows=25, headers=1)
        child.repeat_header = True
        child.headers[0].cells[0].value = "child head"
        for i, row in enumerate(child.rows):
            row.cells[0].value = f"c{i}"
        outer.rows[0].cells[0].value = child
        surface = RecordingSurface(height=200)

        result = outer.draw(surface)

        assert result.finished
        assert surface.texts_on(0)[0] == "child head"
        assert surface.texts_on(1)[0] == "child head"
        body = [t for t in surface.texts_on(0) + surface.texts_on(1) if t != "child head"]
        assert body == [f"c{i}" for i in range(25)]

    def test_redraw_after_reset(self):
        outer, _ = _outer_with_child(child_rows=30, child_columns=1)

        first, second = RecordingSurface(height=200), RecordingSurface(height=200)
        outer.draw(first)
        outer.draw(second)

        assert first.texts == second.texts

    def test_doubly_nested_width(self):
        outer = make_grid(widths=[400], rows=1)
        middle = make_grid(columns=2, rows=1)
        inner = make_grid(columns=2, rows=1)
        inner.rows[0].cells[1].value = "deep"
        middle.rows[0].cells[0].value = inner
        outer.rows[0].cells[0].value = middle
        surface = RecordingSurface()

        outer.draw(surface)

        assert middle.columns.widths == [200.0, 200.0]
        assert inner.columns.widths == [100.0, 100.0]
        assert surface.texts[0][1:] == ("deep", Point(100, 0))
