"""
Pytest configuration for pdfgrid
"""

import logging
import sys
from typing import List, Optional

import pytest

from pdfgrid.geometry import Point, Rect, Size
from pdfgrid.grid import Grid
from pdfgrid.styles import Borders, Font, GridStyle, Paddings
from pdfgrid.surface import DrawingSurface, Page


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid file handler issues."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Only show warnings and errors during tests
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


class RecordingSurface(DrawingSurface):
    """In-memory drawing surface with monospace metrics.

    Every glyph is half the font size wide and a line is exactly the font
    size tall, so layouts can be checked with exact numbers.
    """

    def __init__(self, width: float = 500.0, height: float = 200.0):
        self.size = Size(width, height)
        self._page = Page(0, self.size)
        self.page_indexes: List[int] = [0]
        self.texts = []    # (page index, text, origin)
        self.rects = []    # (page index, bounds, brush, pen)
        self.lines = []    # (page index, pen, p1, p2)
        self.images = []   # (page index, image, bounds)
        self.clip_stack: List[Rect] = []
        self.clips_pushed = 0

    def string_width(self, text: str, font: Font) -> float:
        return len(text) * font.size * 0.5

    def line_height(self, font: Font) -> float:
        return font.size

    @property
    def current_page(self) -> Page:
        return self._page

    def client_size(self, page: Optional[Page] = None) -> Size:
        return self.size

    def new_page(self) -> Page:
        assert not self.clip_stack, "new page requested inside a clip"
        self._page = Page(self._page.index + 1, self.size)
        self.page_indexes.append(self._page.index)
        return self._page

    def draw_rect(self, bounds, brush=None, pen=None):
        self.rects.append((self._page.index, bounds, brush, pen))

    def draw_line(self, pen, p1: Point, p2: Point):
        self.lines.append((self._page.index, pen, p1, p2))

    def draw_image(self, image, bounds):
        self.images.append((self._page.index, image, bounds))

    def push_clip(self, bounds):
        self.clip_stack.append(bounds)
        self.clips_pushed += 1

    def pop_clip(self):
        self.clip_stack.pop()

    def draw_text_line(self, line, font, pen, brush, origin, justify_width=None):
        self.texts.append((self._page.index, line.text, origin))

    @property
    def page_count(self) -> int:
        return len(self.page_indexes)

    def texts_on(self, page_index: int) -> List[str]:
        return [text for index, text, _ in self.texts if index == page_index]


def plain_style(font_size: float = 10.0, **kwargs) -> GridStyle:
    """Grid style without borders or padding, for exact geometry."""
    return GridStyle(
        font=Font("Helvetica", font_size),
        borders=Borders.none(),
        cell_padding=Paddings(),
        **kwargs,
    )


def make_grid(widths=None, columns: int = 1, rows: int = 0, headers: int = 0,
              style: Optional[GridStyle] = None) -> Grid:
    """Grid with the given columns and empty header/body rows."""
    grid = Grid(style or plain_style())
    if widths:
        grid.columns.add(len(widths))
        for column, width in zip(grid.columns, widths):
            if width is not None:
                column.width = width
    else:
        grid.columns.add(columns)
    if headers:
        grid.headers.add(headers)
    for _ in range(rows):
        grid.rows.add()
    return grid


def lines(count: int, prefix: str = "line") -> str:
    """``count`` newline-separated lines, ten points tall at the default test font."""
    return "\n".join(f"{prefix} {i:02d}" for i in range(count))


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def grid_factory():
    return make_grid
