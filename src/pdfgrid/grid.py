"""The grid: columns, header and body rows, style, and layout preparation."""

import logging
import weakref
from typing import Callable, List, Optional, Tuple

from .columns import ColumnCollection
from .exceptions import GridLayoutError, InvalidSpanError
from .geometry import Rect, Size
from .row import HeaderCollection, Row, RowCollection
from .styles import GridStyle
from .surface import StandardFontMetrics, TextMeasurer


logger = logging.getLogger(__name__)

EPSILON = 1e-6


class Grid:
    """A table of rows and columns laid out across pages.

    Build the grid by adding columns, then header and body rows, then set
    cell values and spans. ``draw`` lays it out on a drawing surface.
    """

    def __init__(self, style: Optional[GridStyle] = None):
        self.columns = ColumnCollection(self)
        self.headers = HeaderCollection(self)
        self.rows = RowCollection(self)
        self.style = style or GridStyle()
        self.has_row_span = False
        self.has_column_span = False
        self.is_child_grid = False
        self.repeat_header = False
        self.allow_row_breaking_across_pages = True
        self.measurer: TextMeasurer = StandardFontMetrics()

        # Layout events
        self.begin_cell_layout: Optional[Callable] = None
        self.end_page_layout: Optional[Callable] = None

        self._parent_cell_ref = None
        self._prepared = False
        self._column_ranges: List[Tuple[int, int]] = []

    def __repr__(self) -> str:
        return f"Grid(columns={len(self.columns)}, headers={len(self.headers)}, rows={len(self.rows)})"

    # -- structure -------------------------------------------------------

    @property
    def parent_cell(self):
        """Cell holding this grid as its value, if it is nested."""
        if self._parent_cell_ref is None:
            return None
        return self._parent_cell_ref()

    def _attach_to(self, cell):
        self._parent_cell_ref = weakref.ref(cell)
        self.is_child_grid = True

    def _detach(self):
        self._parent_cell_ref = None
        self.is_child_grid = False

    def _on_columns_changed(self):
        for row in self.all_rows():
            row._ensure_cells(len(self.columns))
        self._prepared = False

    def all_rows(self) -> List[Row]:
        """Header rows followed by body rows."""
        return list(self.headers) + list(self.rows)

    @property
    def is_single_grid(self) -> bool:
        """True when no cell holds a nested grid."""
        return not any(cell.is_nested_grid for row in self.all_rows() for cell in row.cells)

    def iter_nested_grids(self):
        for row in self.all_rows():
            for cell in row.cells:
                if cell.is_nested_grid:
                    yield cell, cell.value

    # -- layout preparation ----------------------------------------------

    def _resolve_spans(self):
        """Flag the slots covered by spanning cells."""
        n_cols = len(self.columns)
        for collection in (self.headers, self.rows):
            rows = list(collection)
            for row in rows:
                row.maximum_row_span = 1
                for cell in row.cells:
                    cell.is_cell_merge_continue = False
                    cell.is_row_merge_continue = False
            for r, row in enumerate(rows):
                for c, cell in enumerate(row.cells):
                    if cell.is_cell_merge_continue or cell.is_row_merge_continue:
                        continue
                    if cell.column_span > 1 or cell.row_span > 1:
                        if c + cell.column_span > n_cols:
                            raise InvalidSpanError(
                                "Column span runs past the last column",
                                f"row {r} column {c} span {cell.column_span} > {n_cols} columns",
                            )
                        if r + cell.row_span > len(rows):
                            raise InvalidSpanError(
                                "Row span runs past the last row",
                                f"row {r} span {cell.row_span} > {len(rows)} rows",
                            )
                    for k in range(1, cell.column_span):
                        row.cells[c + k].is_cell_merge_continue = True
                    if cell.column_span > 1:
                        self.has_column_span = True
                    if cell.row_span > 1:
                        self.has_row_span = True
                        row.row_span_exists = True
                        row.maximum_row_span = max(row.maximum_row_span, cell.row_span)
                        for below in rows[r + 1:r + cell.row_span]:
                            for k in range(cell.column_span):
                                slot = below.cells[c + k]
                                slot.is_row_merge_continue = True
                                slot.is_cell_merge_continue = k > 0

    def _natural_column_widths(self) -> List[float]:
        widths = [0.0] * len(self.columns)
        for row in self.all_rows():
            for c, cell in enumerate(row.cells):
                if cell.is_cell_merge_continue or cell.is_row_merge_continue:
                    continue
                if cell.column_span == 1:
                    widths[c] = max(widths[c], cell.natural_width())
        return widths

    def _prepare_layout(self, available_width: Optional[float], measurer: Optional[TextMeasurer] = None,
                        page_width: Optional[float] = None):
        """Resolve spans, column widths, nested grid sizes and row heights.

        ``available_width`` of None leaves unset columns at their content
        width. ``page_width`` is the room between the grid's left edge and
        the right edge of the page; column spans are cut there when
        horizontal overflow is not allowed. It defaults to
        ``available_width``.
        """
        if not len(self.columns):
            raise GridLayoutError("Grid has no columns")
        if measurer is not None:
            self.measurer = measurer

        self._resolve_spans()
        self.columns.clear_resolved()
        if not self.columns.is_resolved:
            naturals = self._natural_column_widths() if available_width is None else []
            self.columns.resolve(available_width, naturals)

        spacing = self.style.cell_spacing
        offsets = self.columns.offsets()
        self._column_ranges = self.column_ranges(available_width)
        edge = None
        if not self.style.allow_horizontal_overflow:
            edge = page_width if page_width is not None else available_width
        for row in self.all_rows():
            for c, cell in enumerate(row.cells):
                cell._outer_width = self._layout_span_width(c, cell.column_span, offsets, edge) - spacing
                cell.row_span_remaining_height = 0.0
            row.invalidate_height()

        for cell, child in self.iter_nested_grids():
            left, _, right, _ = cell.content_insets()
            child.measurer = self.measurer
            child._prepare_layout(max(cell._outer_width - left - right, 0.0), self.measurer)
            cell._child_size = child.size()

        for collection in (self.headers, self.rows):
            self._resolve_row_span_heights(list(collection))

        self._prepared = True
        logger.debug("Prepared %r: column offsets %s", self, offsets)

    def column_ranges(self, width: Optional[float]) -> List[Tuple[int, int]]:
        """Column index ranges laid out one after another, each at most ``width`` wide.

        A single range unless horizontal overflow is allowed and the
        columns are wider than ``width``.
        """
        widths = [c.width or 0.0 for c in self.columns]
        n = len(widths)
        if width is None or not self.style.allow_horizontal_overflow or sum(widths) <= width + EPSILON:
            return [(0, n)]
        ranges = []
        start = 0
        used = 0.0
        for i, w in enumerate(widths):
            if i > start and used + w > width + EPSILON:
                ranges.append((start, i))
                start = i
                used = 0.0
            used += w
        ranges.append((start, n))
        return ranges

    def _layout_span_width(self, col: int, span: int, offsets: List[float], edge: Optional[float]) -> float:
        """Width of ``span`` columns from ``col`` as they are drawn.

        Cut at the end of the column range holding ``col``, and at ``edge``
        (measured from the grid's left) when that is given.
        """
        start, end = next(r for r in self._column_ranges if r[0] <= col < r[1])
        x = offsets[col] - offsets[start]
        widths = [c.width or 0.0 for c in self.columns]
        width = widths[col]
        for k in range(col + 1, min(col + span, end)):
            if edge is not None and x + width + widths[k] > edge + EPSILON:
                logger.debug("Column span at column %d clamped to %d column(s)", col, k - col)
                break
            width += widths[k]
        return width

    def _resolve_row_span_heights(self, rows: List[Row]):
        """Record the extra height owed by row-spanning cells on their last row.

        Repeats until no row height changes; bounded by the row count.
        """
        for _ in range(len(rows) + 1):
            changed = False
            for r, row in enumerate(rows):
                for c, cell in enumerate(row.cells):
                    if cell.row_span <= 1 or cell.is_cell_merge_continue or cell.is_row_merge_continue:
                        continue
                    terminal = rows[r + cell.row_span - 1]
                    covered = sum(rows[i].height for i in range(r, r + cell.row_span - 1))
                    covered += terminal.base_height
                    deficit = max(cell.height - covered, 0.0)
                    slot = terminal.cells[c]
                    if abs(slot.row_span_remaining_height - deficit) > EPSILON:
                        slot.row_span_remaining_height = deficit
                        terminal.invalidate_height()
                        changed = True
            if not changed:
                return
        logger.warning("Row span heights did not settle after %d passes", len(rows) + 1)

    # -- measurement -----------------------------------------------------

    def size(self) -> Size:
        """Total width and height, preparing the layout if needed."""
        if not self._prepared:
            self._prepare_layout(self._available_width_hint())
        width = self.columns.total_width
        height = sum(row.height for row in self.all_rows())
        return Size(width, height)

    def _available_width_hint(self) -> Optional[float]:
        parent = self.parent_cell
        if parent is not None and parent._outer_width is not None:
            left, _, right, _ = parent.content_insets()
            return max(parent._outer_width - left - right, 0.0)
        return None

    def min_progress_height(self) -> float:
        rows = self.all_rows()
        if not rows:
            return 0.0
        return rows[0].min_progress_height()

    def reset_pagination_state(self):
        for row in self.all_rows():
            row.reset_pagination_state()

    def reset_layout_state(self):
        """Clear all pagination state left by a previous draw."""
        for row in self.all_rows():
            row.reset_layout_state()
        self.columns.clear_resolved()
        self._prepared = False

    # -- drawing ---------------------------------------------------------

    def draw(self, surface, bounds: Optional[Rect] = None, layout_format=None):
        """Lay out and draw the grid, adding pages as needed.

        Args:
            surface: DrawingSurface to draw on, starting on its current page
            bounds: Area of the current page to start in (default: client area)
            layout_format: LayoutFormat controlling pagination

        Returns:
            GridLayoutResult with the placements of every page
        """
        from .paginator import GridLayouter

        self.reset_layout_state()
        layouter = GridLayouter(self, surface, layout_format)
        return layouter.layout(bounds)
