"""Tests for drawing surfaces and page layout."""

from unittest.mock import Mock

import pytest
from reportlab.lib.colors import red
from reportlab.pdfgen.canvas import Canvas

from pdfgrid.exceptions import GridLayoutError
from pdfgrid.geometry import Point, Rect, Size
from pdfgrid.styles import Brush, Font, Pen, StringFormat, TextAlignment, VerticalAlignment
from pdfgrid.surface import PageLayout, ReportLabSurface, StandardFontMetrics
from pdfgrid.text_layout import LayoutLine

from conftest import RecordingSurface


FONT = Font("Helvetica", 10)


class TestPageLayout:
    def test_portrait(self):
        layout = PageLayout.portrait(36)

        assert layout.page_size == (612, 792)
        assert layout.content_width == 540
        assert layout.content_height == 720
        assert layout.content_start_y == 756
        assert layout.client_size == Size(540, 720)

    def test_landscape(self):
        layout = PageLayout.landscape(50)

        assert layout.orientation == "landscape"
        assert layout.content_width == 692
        assert layout.content_height == 512


class TestStandardFontMetrics:
    def test_courier_width(self):
        metrics = StandardFontMetrics()

        assert metrics.string_width("abc", Font("Courier", 10)) == pytest.approx(18.0)
        assert metrics.line_height(Font("Courier", 10)) == pytest.approx(12.0)

    def test_measure_wrapped(self):
        size = StandardFontMetrics().measure_text("aaa bbb", Font("Courier", 10), max_width=30)

        assert size.height == pytest.approx(24.0)
        assert size.width == pytest.approx(18.0)


class TestDrawText:
    """Test suite for aligned multi-line text drawing."""

    def test_left_top(self):
        surface = RecordingSurface()

        remainder = surface.draw_text("ab\ncd", FONT, None, Brush(), Rect(10, 20, 100, 50))

        assert remainder is None
        assert [(t, o) for _, t, o in surface.texts] == [("ab", Point(10, 20)), ("cd", Point(10, 30))]

    def test_right_aligned(self):
        surface = RecordingSurface()
        fmt = StringFormat(alignment=TextAlignment.RIGHT)

        surface.draw_text("ab", FONT, None, Brush(), Rect(0, 0, 100, 50), fmt)

        assert surface.texts[0][2] == Point(90, 0)

    def test_centered_vertically_and_horizontally(self):
        surface = RecordingSurface()
        fmt = StringFormat(alignment=TextAlignment.CENTER, line_alignment=VerticalAlignment.MIDDLE)

        surface.draw_text("ab", FONT, None, Brush(), Rect(0, 0, 100, 50), fmt)

        assert surface.texts[0][2] == Point(45, 20)

    def test_bottom_aligned(self):
        surface = RecordingSurface()
        fmt = StringFormat(line_alignment=VerticalAlignment.BOTTOM)

        surface.draw_text("ab", FONT, None, Brush(), Rect(0, 0, 100, 50), fmt)

        assert surface.texts[0][2] == Point(0, 40)

    def test_returns_undrawn_tail(self):
        surface = RecordingSurface()

        remainder = surface.draw_text("a\nb\nc", FONT, None, Brush(), Rect(0, 0, 100, 25))

        assert remainder == "c"
        assert len(surface.texts) == 2


@pytest.fixture
def canvas_mock():
    c = Mock(spec=Canvas)
    c.stringWidth.return_value = 12.0
    return c


class TestReportLabSurface:
    """Test suite for ReportLabSurface coordinate conversion."""

    def test_rect_converted_to_pdf_coordinates(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock, PageLayout.portrait(36))

        surface.draw_rect(Rect(10, 20, 100, 50), brush=Brush(red))

        canvas_mock.rect.assert_called_once_with(46, 686, 100, 50, fill=True, stroke=False)
        canvas_mock.setFillColor.assert_called_once_with(red)
        canvas_mock.saveState.assert_called_once()
        canvas_mock.restoreState.assert_called_once()

    def test_empty_rect_not_drawn(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock, PageLayout.portrait(36))

        surface.draw_rect(Rect(0, 0, 10, 10))

        canvas_mock.rect.assert_not_called()

    def test_line_uses_pen(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock, PageLayout.portrait(36))

        surface.draw_line(Pen(red, 0.5, dash=(2, 1)), Point(0, 0), Point(100, 0))

        canvas_mock.setLineWidth.assert_called_once_with(0.5)
        canvas_mock.setDash.assert_called_once_with([2, 1])
        canvas_mock.line.assert_called_once_with(36, 756, 136, 756)

    def test_text_line_baseline(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock, PageLayout.portrait(36))
        line = LayoutLine(text="hello", width=20.0, start=0, end=5)

        surface.draw_text_line(line, FONT, None, Brush(), Point(10, 20))

        canvas_mock.beginText.assert_called_once_with(46, 726)
        text_obj = canvas_mock.beginText.return_value
        text_obj.setFont.assert_called_once_with("Helvetica", 10)
        text_obj.setTextRenderMode.assert_called_once_with(0)
        text_obj.textOut.assert_called_once_with("hello")
        canvas_mock.drawText.assert_called_once_with(text_obj)

    def test_justified_line_spreads_words(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock, PageLayout.portrait(36))
        line = LayoutLine(text="a b c", width=40.0, start=0, end=5)

        surface.draw_text_line(line, FONT, None, Brush(), Point(0, 0), justify_width=100.0)

        canvas_mock.beginText.return_value.setWordSpace.assert_called_once_with(30.0)

    def test_measurement_uses_canvas(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock)

        assert surface.string_width("abc", FONT) == 12.0
        canvas_mock.stringWidth.assert_called_once_with("abc", "Helvetica", 10)
        assert surface.line_height(FONT) == pytest.approx(12.0)

    def test_new_page(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock)

        page = surface.new_page()

        canvas_mock.showPage.assert_called_once()
        assert page.index == 1
        assert surface.current_page is page
        assert surface.page_count == 2

    def test_new_page_inside_clip_rejected(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock)
        surface.push_clip(Rect(0, 0, 10, 10))

        with pytest.raises(GridLayoutError):
            surface.new_page()

        surface.pop_clip()
        surface.new_page()

    def test_unbalanced_pop_clip(self, canvas_mock):
        surface = ReportLabSurface(canvas_mock)

        with pytest.raises(GridLayoutError):
            surface.pop_clip()

    def test_create_writes_pdf(self, tmp_path):
        pdf_path = tmp_path / "grid.pdf"
        surface = ReportLabSurface.create(str(pdf_path), PageLayout.landscape())

        surface.draw_text("hello", FONT, None, Brush(), Rect(0, 0, 200, 50))
        surface.save()

        assert pdf_path.exists()
        assert pdf_path.read_bytes().startswith(b"%PDF")
