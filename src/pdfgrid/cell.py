"""Grid cells: value, spans, resolved style and measurement."""

import logging
import weakref
from typing import Iterator, List, Optional, Tuple

from .exceptions import GridIndexError, InvalidSpanError
from .geometry import Size
from .styles import (
    BorderOverlapStyle, Borders, Brush, CellStyle, Font, ImagePosition,
    Paddings, Pen, StretchOption, StringFormat, resolve_style_value,
    DEFAULT_BORDERS, DEFAULT_FONT, DEFAULT_STRING_FORMAT, DEFAULT_TEXT_BRUSH,
)
from .values import GridImage, TextElement


logger = logging.getLogger(__name__)

# Nested grids deeper than this are treated as a broken parent chain
MAX_NESTING_DEPTH = 64


class Cell:
    """One cell of a row.

    ``value`` is a string, a :class:`TextElement`, a :class:`GridImage` or a
    nested :class:`~pdfgrid.grid.Grid`. The remaining attributes below the
    span properties are layout state owned by the paginator.
    """

    def __init__(self, row=None, value=None, style: Optional[CellStyle] = None,
                 string_format: Optional[StringFormat] = None):
        self._row_ref = weakref.ref(row) if row is not None else None
        self._value = None
        self._row_span = 1
        self._column_span = 1
        self.style = style
        self.string_format = string_format
        self.image_position = ImagePosition.STRETCH
        self.stretch_option = StretchOption.NONE

        # Layout state
        self.remaining_text: Optional[str] = None
        self.finished = True
        self.row_span_remaining_height = 0.0
        self.is_cell_merge_continue = False
        self.is_row_merge_continue = False
        self._outer_width: Optional[float] = None
        self._child_size: Optional[Size] = None
        self._child_layouter = None

        self.value = value

    def __repr__(self) -> str:
        return f"Cell(value={self._value!r}, row_span={self._row_span}, column_span={self._column_span})"

    # -- ownership -------------------------------------------------------

    @property
    def row(self):
        return self._row_ref() if self._row_ref is not None else None

    @property
    def grid(self):
        row = self.row
        return row.grid if row is not None else None

    @property
    def column_index(self) -> int:
        row = self.row
        if row is None:
            raise GridIndexError("Cell is not attached to a row")
        return row.cells.index(self)

    @property
    def parent(self) -> Optional["Cell"]:
        """Enclosing cell of the grid this cell belongs to, if nested."""
        grid = self.grid
        return grid.parent_cell if grid is not None else None

    # -- value -----------------------------------------------------------

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        from .grid import Grid

        if isinstance(self._value, Grid) and self._value is not value:
            self._value._detach()
        self._value = value
        if isinstance(value, Grid):
            value._attach_to(self)
        self._child_size = None
        self._invalidate_row()

    @property
    def is_nested_grid(self) -> bool:
        from .grid import Grid

        return isinstance(self._value, Grid)

    @property
    def text(self) -> Optional[str]:
        """Full text of a text value, None for images and grids."""
        if isinstance(self._value, TextElement):
            return self._value.text
        if isinstance(self._value, str):
            return self._value
        if self._value is None or self.is_nested_grid or isinstance(self._value, GridImage):
            return None
        return str(self._value)

    # -- spans -----------------------------------------------------------

    @property
    def row_span(self) -> int:
        return self._row_span

    @row_span.setter
    def row_span(self, value: int):
        if value < 1:
            raise InvalidSpanError("Row span must be at least 1", f"got {value}")
        row = self.row
        if value > 1 and row is not None:
            collection = row.collection
            if collection is not None:
                index = collection.index(row)
                if index + value > len(collection):
                    raise InvalidSpanError(
                        "Row span runs past the last row",
                        f"row {index} + span {value} > {len(collection)} rows",
                    )
            row.row_span_exists = True
            row.maximum_row_span = max(row.maximum_row_span, value)
            grid = row.grid
            if grid is not None:
                grid.has_row_span = True
        self._row_span = value
        self._invalidate_row()

    @property
    def column_span(self) -> int:
        return self._column_span

    @column_span.setter
    def column_span(self, value: int):
        if value < 1:
            raise InvalidSpanError("Column span must be at least 1", f"got {value}")
        row = self.row
        if value > 1 and row is not None:
            grid = row.grid
            if grid is not None:
                start = row.cells.index(self)
                if start + value > len(grid.columns):
                    raise InvalidSpanError(
                        "Column span runs past the last column",
                        f"column {start} + span {value} > {len(grid.columns)} columns",
                    )
                grid.has_column_span = True
        self._column_span = value
        self._invalidate_row()

    def _invalidate_row(self):
        row = self.row
        if row is not None:
            row.invalidate_height()

    # -- resolved style --------------------------------------------------

    def _style_chain(self) -> Tuple:
        row = self.row
        grid = self.grid
        return (
            self.style,
            row.style if row is not None else None,
            grid.style if grid is not None else None,
        )

    @property
    def font(self) -> Font:
        own = self._value.font if isinstance(self._value, TextElement) else None
        return own or resolve_style_value("font", *self._style_chain(), default=DEFAULT_FONT)

    @property
    def text_brush(self) -> Optional[Brush]:
        own = self._value.brush if isinstance(self._value, TextElement) else None
        return own or resolve_style_value("text_brush", *self._style_chain(), default=DEFAULT_TEXT_BRUSH)

    @property
    def text_pen(self) -> Optional[Pen]:
        own = self._value.pen if isinstance(self._value, TextElement) else None
        return own or resolve_style_value("text_pen", *self._style_chain())

    @property
    def background_brush(self) -> Optional[Brush]:
        return resolve_style_value("background_brush", *self._style_chain())

    @property
    def background_image(self) -> Optional[GridImage]:
        return resolve_style_value("background_image", self.style)

    @property
    def borders(self) -> Borders:
        return resolve_style_value("borders", *self._style_chain(), default=DEFAULT_BORDERS)

    @property
    def cell_padding(self) -> Paddings:
        return resolve_style_value("cell_padding", *self._style_chain(), default=Paddings())

    @property
    def resolved_string_format(self) -> StringFormat:
        own = self._value.string_format if isinstance(self._value, TextElement) else None
        return (
            self.string_format
            or own
            or resolve_style_value("string_format", self.style, default=DEFAULT_STRING_FORMAT)
        )

    @property
    def _cell_spacing(self) -> float:
        grid = self.grid
        return grid.style.cell_spacing if grid is not None else 0.0

    def content_insets(self) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) between the cell bounds and its content."""
        padding = self.cell_padding
        left, top, right, bottom = padding.left, padding.top, padding.right, padding.bottom
        grid = self.grid
        if grid is not None and grid.style.border_overlap_style == BorderOverlapStyle.INSIDE:
            borders = self.borders
            left += borders.width_of("left")
            top += borders.width_of("top")
            right += borders.width_of("right")
            bottom += borders.width_of("bottom")
        return left, top, right, bottom

    # -- measurement -----------------------------------------------------

    def _measurer(self):
        grid = self.grid
        if grid is None:
            from .surface import StandardFontMetrics

            return StandardFontMetrics()
        return grid.measurer

    @property
    def width(self) -> float:
        """Outer width: spanned column widths minus cell spacing.

        Falls back to the natural content width before the grid's columns
        have been resolved.
        """
        if self._outer_width is not None:
            return self._outer_width
        grid = self.grid
        if grid is not None and grid.columns.is_resolved and self.row is not None:
            start = self.column_index
            return grid.columns.span_width(start, self._column_span) - self._cell_spacing
        return self.natural_width()

    def natural_width(self) -> float:
        """Column width the content needs, capped by any enclosing cell's width."""
        left, _, right, _ = self.content_insets()
        cap = self._find_available_width()
        value = self._value
        if self.is_nested_grid:
            size = self._child_size or value.size()
            content = size.width
        elif isinstance(value, GridImage):
            content = value.physical_width
        else:
            text = self.text
            if not text:
                content = 0.0
            else:
                inner_cap = None if cap is None else max(cap - left - right, 0.0)
                content = self._measurer().measure_text(
                    text, self.font, self.resolved_string_format, inner_cap
                ).width
        return content + left + right + self._cell_spacing

    def _find_available_width(self) -> Optional[float]:
        """Walk up through enclosing cells until one has a known width.

        The width found is divided by the number of columns of every grid
        passed on the way down. Returns None when nothing constrains the
        width.
        """
        if self._outer_width is not None:
            return self._outer_width
        grid = self.grid
        divisor = 1
        depth = 0
        while grid is not None:
            assert depth < MAX_NESTING_DEPTH, "nested grid chain exceeds maximum depth"
            parent = grid.parent_cell
            if parent is None:
                if grid.is_child_grid:
                    logger.warning("Enclosing cell of a nested grid no longer exists")
                return None
            divisor *= max(len(grid.columns), 1)
            if parent._outer_width is not None:
                left, _, right, _ = parent.content_insets()
                return max(parent._outer_width - left - right, 0.0) / divisor
            grid = parent.grid
            depth += 1
        return None

    def _content_width(self) -> float:
        left, _, right, _ = self.content_insets()
        return max(self.width - left - right, 0.0)

    def _text_to_measure(self) -> Optional[str]:
        if self.remaining_text is not None:
            return self.remaining_text
        return self.text

    @property
    def is_continuing(self) -> bool:
        """True while the owning row is split across pages."""
        row = self.row
        return row is not None and row.row_break_height > 0

    @property
    def height(self) -> float:
        """Outer height needed by the remaining content of the cell."""
        _, top, _, bottom = self.content_insets()
        spacing = self._cell_spacing
        if self.is_continuing and self.finished:
            return top + bottom + spacing
        return self.content_height() + top + bottom + spacing

    def content_height(self) -> float:
        value = self._value
        if self.is_nested_grid:
            if self._child_layouter is not None and self._child_layouter.is_started:
                return self._child_layouter.remaining_height()
            size = self._child_size or value.size()
            return size.height
        if isinstance(value, GridImage):
            return value.physical_height
        text = self._text_to_measure()
        if not text:
            return 0.0
        return self._measurer().measure_text(
            text, self.font, self.resolved_string_format, self._content_width()
        ).height

    def min_progress_height(self) -> float:
        """Smallest outer height in which this cell can draw something."""
        if self.is_continuing and self.finished:
            return 0.0
        _, top, _, bottom = self.content_insets()
        base = top + bottom + self._cell_spacing
        if self.is_nested_grid:
            if self._child_layouter is not None:
                return base + self._child_layouter.min_progress_height()
            return base + self._value.min_progress_height()
        if isinstance(self._value, GridImage) or not self._text_to_measure():
            return base
        return base + self._measurer().font_height(self.font)

    def reset_pagination_state(self):
        """Forget carried-over content, keeping resolved widths and spans."""
        self.remaining_text = None
        self.finished = True
        self._child_layouter = None
        if self.is_nested_grid:
            self._value.reset_pagination_state()

    def reset_layout_state(self):
        self.reset_pagination_state()
        self.row_span_remaining_height = 0.0
        self.is_cell_merge_continue = False
        self.is_row_merge_continue = False
        self._outer_width = None
        self._child_size = None
        if self.is_nested_grid:
            self._value.reset_layout_state()


class CellCollection:
    """Cell slots of a row, one per grid column."""

    def __init__(self, row):
        self._row_ref = weakref.ref(row)
        self._cells: List[Cell] = []

    def add(self, value=None) -> Cell:
        cell = Cell(self._row_ref(), value)
        self._cells.append(cell)
        return cell

    def index(self, cell: Cell) -> int:
        for i, c in enumerate(self._cells):
            if c is cell:
                return i
        raise GridIndexError("Cell does not belong to this row")

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __getitem__(self, index: int) -> Cell:
        if not 0 <= index < len(self._cells):
            raise GridIndexError("Cell index out of range",
                                 f"{index} not in [0, {len(self._cells)})")
        return self._cells[index]
