"""Drawing surface contract and its ReportLab implementation.

The layout engine only talks to a ``DrawingSurface``: it measures text,
draws primitives in engine coordinates (top-left origin of the page's client
area, y growing downward, points) and asks for new pages.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from reportlab.lib.colors import black
from reportlab.lib.pagesizes import LETTER, landscape
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .exceptions import GridLayoutError, MeasurementError
from .geometry import Point, Rect, Size
from .styles import (
    Brush, Font, Pen, StringFormat, TextAlignment, VerticalAlignment,
    DEFAULT_STRING_FORMAT,
)
from .text_layout import LayoutLine, TextLayouter, TextLayoutResult


logger = logging.getLogger(__name__)


# Page dimensions
PORTRAIT_SIZE = LETTER  # 612 x 792 points
LANDSCAPE_SIZE = landscape(LETTER)  # 792 x 612 points
DEFAULT_MARGIN = 36  # 0.5 inch margins
LINE_HEIGHT_FACTOR = 1.2


@dataclass
class PageLayout:
    """Defines the layout parameters for a page."""
    page_width: float = PORTRAIT_SIZE[0]
    page_height: float = PORTRAIT_SIZE[1]
    margin_left: float = DEFAULT_MARGIN
    margin_right: float = DEFAULT_MARGIN
    margin_top: float = DEFAULT_MARGIN
    margin_bottom: float = DEFAULT_MARGIN
    orientation: str = "portrait"  # "portrait" or "landscape"

    @classmethod
    def portrait(cls, margin: float = DEFAULT_MARGIN) -> "PageLayout":
        return cls(
            page_width=PORTRAIT_SIZE[0],
            page_height=PORTRAIT_SIZE[1],
            margin_left=margin,
            margin_right=margin,
            margin_top=margin,
            margin_bottom=margin,
            orientation="portrait",
        )

    @classmethod
    def landscape(cls, margin: float = DEFAULT_MARGIN) -> "PageLayout":
        return cls(
            page_width=LANDSCAPE_SIZE[0],
            page_height=LANDSCAPE_SIZE[1],
            margin_left=margin,
            margin_right=margin,
            margin_top=margin,
            margin_bottom=margin,
            orientation="landscape",
        )

    @property
    def page_size(self):
        return (self.page_width, self.page_height)

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def content_height(self) -> float:
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def content_start_x(self) -> float:
        return self.margin_left

    @property
    def content_start_y(self) -> float:
        """Top of content area (PDF coordinates start at bottom)."""
        return self.page_height - self.margin_top

    @property
    def client_size(self) -> Size:
        return Size(self.content_width, self.content_height)


@dataclass(frozen=True)
class Page:
    """Handle for one page of the surface."""
    index: int
    size: Size


class TextMeasurer(ABC):
    """Text metrics used for layout."""

    _layouter: Optional[TextLayouter] = None

    @abstractmethod
    def string_width(self, text: str, font: Font) -> float:
        ...

    @abstractmethod
    def line_height(self, font: Font) -> float:
        ...

    def _checked_width(self, text: str, font: Font) -> float:
        width = self.string_width(text, font)
        if not math.isfinite(width) or width < 0:
            raise MeasurementError(
                "Invalid text width",
                f"{width!r} for {text[:20]!r} in {font.name} {font.size}",
            )
        return width

    def _checked_line_height(self, font: Font) -> float:
        height = self.line_height(font)
        if not math.isfinite(height) or height <= 0:
            raise MeasurementError(
                "Invalid line height", f"{height!r} for {font.name} {font.size}"
            )
        return height

    @property
    def text_layouter(self) -> TextLayouter:
        if self._layouter is None:
            self._layouter = TextLayouter(self._checked_width, self._checked_line_height)
        return self._layouter

    def layout_text(
        self,
        text: str,
        font: Font,
        fmt: Optional[StringFormat] = None,
        max_width: Optional[float] = None,
        max_height: Optional[float] = None,
        force_first_line: bool = False,
    ) -> TextLayoutResult:
        return self.text_layouter.layout(
            text, font, fmt, max_width, max_height, force_first_line
        )

    def measure_text(
        self,
        text: str,
        font: Font,
        fmt: Optional[StringFormat] = None,
        max_width: Optional[float] = None,
    ) -> Size:
        """Size needed by ``text`` when wrapped at ``max_width`` (None = no cap)."""
        return self.layout_text(text, font, fmt, max_width).size

    def font_height(self, font: Font) -> float:
        return self._checked_line_height(font)


class StandardFontMetrics(TextMeasurer):
    """Metrics for the standard PDF fonts, taken from ReportLab's AFM tables."""

    def string_width(self, text: str, font: Font) -> float:
        return stringWidth(text, font.name, font.size)

    def line_height(self, font: Font) -> float:
        return font.size * LINE_HEIGHT_FACTOR


class DrawingSurface(TextMeasurer):
    """Page-based drawing target used by the grid layouter."""

    @property
    @abstractmethod
    def current_page(self) -> Page:
        ...

    @abstractmethod
    def client_size(self, page: Optional[Page] = None) -> Size:
        """Drawable content area of ``page`` (default: current page)."""

    @abstractmethod
    def new_page(self) -> Page:
        """Allocate a new page and make it current."""

    @abstractmethod
    def draw_rect(self, bounds: Rect, brush: Optional[Brush] = None, pen: Optional[Pen] = None):
        ...

    @abstractmethod
    def draw_line(self, pen: Pen, p1: Point, p2: Point):
        ...

    @abstractmethod
    def draw_image(self, image, bounds: Rect):
        ...

    @abstractmethod
    def push_clip(self, bounds: Rect):
        ...

    @abstractmethod
    def pop_clip(self):
        ...

    @abstractmethod
    def draw_text_line(
        self,
        line: LayoutLine,
        font: Font,
        pen: Optional[Pen],
        brush: Optional[Brush],
        origin: Point,
        justify_width: Optional[float] = None,
    ):
        """Draw one laid-out line with its top-left corner at ``origin``."""

    def draw_text(
        self,
        text: str,
        font: Font,
        pen: Optional[Pen],
        brush: Optional[Brush],
        bounds: Rect,
        fmt: Optional[StringFormat] = None,
    ) -> Optional[str]:
        """Draw as much of ``text`` as fits ``bounds``.

        Returns:
            The undrawn tail of ``text``, or None when everything was drawn
        """
        fmt = fmt or DEFAULT_STRING_FORMAT
        result = self.layout_text(text, font, fmt, bounds.width, bounds.height)
        if not result.lines:
            return result.remainder

        y = bounds.y
        if fmt.line_alignment == VerticalAlignment.MIDDLE:
            y += max(0.0, (bounds.height - result.size.height) / 2)
        elif fmt.line_alignment == VerticalAlignment.BOTTOM:
            y += max(0.0, bounds.height - result.size.height)

        step = self.font_height(font) + fmt.line_spacing
        for line in result.lines:
            x = bounds.x
            justify_width = None
            if fmt.alignment == TextAlignment.CENTER:
                x += (bounds.width - line.width) / 2
            elif fmt.alignment == TextAlignment.RIGHT:
                x += bounds.width - line.width
            elif fmt.alignment == TextAlignment.JUSTIFY and not line.paragraph_end:
                justify_width = bounds.width
            if line.text:
                self.draw_text_line(line, font, pen, brush, Point(x, y), justify_width)
            y += step
        return result.remainder


class ReportLabSurface(DrawingSurface):
    """Drawing surface backed by a ReportLab canvas.

    Engine coordinates are converted to PDF coordinates (bottom-left origin)
    using the page layout margins.
    """

    def __init__(self, c: canvas.Canvas, layout: Optional[PageLayout] = None):
        self.canvas = c
        self.layout = layout or PageLayout()
        self._page = Page(0, self.layout.client_size)
        self._clip_depth = 0

    @classmethod
    def create(cls, pdf_path: str, layout: Optional[PageLayout] = None) -> "ReportLabSurface":
        layout = layout or PageLayout()
        c = canvas.Canvas(str(pdf_path), pagesize=layout.page_size)
        return cls(c, layout)

    def _pdf_x(self, x: float) -> float:
        return self.layout.content_start_x + x

    def _pdf_y(self, y: float) -> float:
        return self.layout.content_start_y - y

    @property
    def current_page(self) -> Page:
        return self._page

    @property
    def page_count(self) -> int:
        return self._page.index + 1

    def client_size(self, page: Optional[Page] = None) -> Size:
        return self.layout.client_size

    def string_width(self, text: str, font: Font) -> float:
        return self.canvas.stringWidth(text, font.name, font.size)

    def line_height(self, font: Font) -> float:
        return font.size * LINE_HEIGHT_FACTOR

    def new_page(self) -> Page:
        if self._clip_depth:
            raise GridLayoutError("Cannot start a new page inside a clip region",
                                  f"{self._clip_depth} clip(s) still pushed")
        self.canvas.showPage()
        self._page = Page(self._page.index + 1, self.layout.client_size)
        logger.debug("Started page %d", self._page.index)
        return self._page

    def _apply_pen(self, pen: Pen):
        self.canvas.setStrokeColor(pen.color)
        self.canvas.setLineWidth(pen.width)
        if pen.dash:
            self.canvas.setDash(list(pen.dash))

    def draw_rect(self, bounds: Rect, brush: Optional[Brush] = None, pen: Optional[Pen] = None):
        if brush is None and pen is None:
            return
        c = self.canvas
        c.saveState()
        if brush is not None:
            c.setFillColor(brush.color)
        if pen is not None:
            self._apply_pen(pen)
        c.rect(
            self._pdf_x(bounds.x),
            self._pdf_y(bounds.bottom),
            bounds.width,
            bounds.height,
            fill=brush is not None,
            stroke=pen is not None,
        )
        c.restoreState()

    def draw_line(self, pen: Pen, p1: Point, p2: Point):
        c = self.canvas
        c.saveState()
        self._apply_pen(pen)
        c.line(self._pdf_x(p1.x), self._pdf_y(p1.y), self._pdf_x(p2.x), self._pdf_y(p2.y))
        c.restoreState()

    def draw_image(self, image, bounds: Rect):
        self.canvas.drawImage(
            image.source,
            self._pdf_x(bounds.x),
            self._pdf_y(bounds.bottom),
            width=bounds.width,
            height=bounds.height,
            mask="auto",
        )

    def push_clip(self, bounds: Rect):
        c = self.canvas
        c.saveState()
        path = c.beginPath()
        path.rect(self._pdf_x(bounds.x), self._pdf_y(bounds.bottom), bounds.width, bounds.height)
        c.clipPath(path, stroke=0, fill=0)
        self._clip_depth += 1

    def pop_clip(self):
        if not self._clip_depth:
            raise GridLayoutError("pop_clip called without a matching push_clip")
        self.canvas.restoreState()
        self._clip_depth -= 1

    def draw_text_line(
        self,
        line: LayoutLine,
        font: Font,
        pen: Optional[Pen],
        brush: Optional[Brush],
        origin: Point,
        justify_width: Optional[float] = None,
    ):
        c = self.canvas
        c.saveState()
        c.setFillColor(brush.color if brush is not None else black)
        # Fill (0), stroke (1) or fill and stroke (2)
        mode = 0
        if pen is not None:
            self._apply_pen(pen)
            mode = 2 if brush is not None else 1

        baseline = self._pdf_y(origin.y + font.size)
        text_obj = c.beginText(self._pdf_x(origin.x), baseline)
        text_obj.setFont(font.name, font.size)
        text_obj.setTextRenderMode(mode)
        spaces = line.text.count(" ")
        if justify_width is not None and spaces:
            text_obj.setWordSpace((justify_width - line.width) / spaces)
        text_obj.textOut(line.text)
        c.drawText(text_obj)
        c.restoreState()

    def save(self):
        self.canvas.save()
