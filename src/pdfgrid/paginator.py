"""Grid layouter: places rows on pages and carries split content over.

One call to :meth:`GridLayouter.layout_page` is one pass over the current
page. :meth:`GridLayouter.paginate` drives passes, asking the surface for a
new page in between, until every header and body row has been drawn.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .exceptions import GridLayoutError
from .geometry import Rect
from .renderer import CellRenderer
from .styles import TextAlignment
from .surface import Page
from .values import GridImage


logger = logging.getLogger(__name__)

EPSILON = 1e-6


class PaginationState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ROW_BREAK = "row_break"          # A row was split at the page bottom
    PAGE_COMPLETE = "page_complete"  # The page ended at a row boundary
    FINISHED = "finished"


class LayoutType(Enum):
    PAGINATE = "paginate"  # Add pages until the grid is finished
    ONE_PAGE = "one_page"  # Lay out the current page only


@dataclass
class LayoutFormat:
    """Pagination options.

    ``paginate_bounds`` is the area used on continuation pages; the whole
    client area when None.
    """
    layout_type: LayoutType = LayoutType.PAGINATE
    paginate_bounds: Optional[Rect] = None


@dataclass
class CellPlacement:
    """Describes where a cell is placed on one page."""
    row_index: int
    col_index: int
    bounds: Rect
    is_header: bool = False
    text: Optional[str] = None  # Text fragment drawn on this page
    finished: bool = True
    skipped: bool = False
    clipped: bool = False  # Content cut off by a fixed row height


@dataclass
class RowPlacement:
    """Describes where a row (or part of it) is placed on one page."""
    row_index: int
    is_header: bool
    y_top: float
    y_bottom: float
    row_height: float
    is_split: bool = False   # The row continues on the next page
    is_repeat: bool = False  # Header row repeated on a continuation page
    cells: List[CellPlacement] = field(default_factory=list)


@dataclass
class PagePlacement:
    """Everything one pass placed on one page."""
    page_index: int
    bounds: Rect
    state: PaginationState
    column_range: Tuple[int, int]
    rows: List[RowPlacement] = field(default_factory=list)

    @property
    def used_height(self) -> float:
        return self.bounds.height


@dataclass
class GridLayoutResult:
    pages: List[PagePlacement]
    last_page: Optional[Page]
    bounds: Rect  # Area used on the last page
    finished: bool

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def cell_placements(self, row_index: int, col_index: int, is_header: bool = False) -> List[CellPlacement]:
        """Every placement of one cell, in draw order."""
        found = []
        for page in self.pages:
            for row in page.rows:
                for cell in row.cells:
                    if (cell.row_index == row_index and cell.col_index == col_index
                            and cell.is_header == is_header):
                        found.append(cell)
        return found


@dataclass
class CellLayoutEvent:
    """Passed to ``Grid.begin_cell_layout``; set ``skip`` to leave the cell empty."""
    row_index: int
    cell_index: int
    cell: object
    bounds: Rect
    is_header: bool
    skip: bool = False


@dataclass
class PageLayoutEvent:
    """Passed to ``Grid.end_page_layout``; set ``cancel`` to stop paginating."""
    page: Page
    placement: PagePlacement
    cancel: bool = False


@dataclass
class _PendingSpan:
    """A row-spanning cell whose rows are still being placed."""
    cell: object
    origin: int        # Sequence index of the row holding the cell
    end: int           # Sequence index after the last spanned row
    col: int
    x: float
    width: float
    start_y: float     # Top of the span's area on the current page
    row_placement: Optional[RowPlacement] = None
    started: bool = False


class GridLayouter:
    """Lays out one grid on a drawing surface, one page per pass."""

    def __init__(self, grid, surface, layout_format: Optional[LayoutFormat] = None):
        self.grid = grid
        self.surface = surface
        self.format = layout_format or LayoutFormat()
        self.renderer = CellRenderer(surface)
        self.state = PaginationState.NOT_STARTED
        self.pages: List[PagePlacement] = []

        self._seq = []
        self._header_count = 0
        self._cursor = 0
        self._column_ranges: List[Tuple[int, int]] = []
        self._range_index = 0
        self._pending: Dict[int, _PendingSpan] = {}
        self._cancelled = False
        self._offsets: List[float] = []
        self._fresh_top: Optional[float] = None
        self._origin_x = 0.0
        self._right_edge = 0.0

    # -- state -----------------------------------------------------------

    @property
    def is_started(self) -> bool:
        return self.state != PaginationState.NOT_STARTED

    @property
    def is_finished(self) -> bool:
        return self.state == PaginationState.FINISHED

    def remaining_height(self) -> float:
        """Height still needed by the rows not yet drawn.

        Includes the header rows when they will be repeated on the next pass.
        """
        if self.is_finished:
            return 0.0
        height = sum(row.height for row in self._seq[self._cursor:])
        if self.grid.repeat_header and self.pages and self._cursor >= self._header_count:
            height += sum(row.height for row in self._seq[:self._header_count])
        return height

    def min_progress_height(self) -> float:
        if self.is_finished or self._cursor >= len(self._seq):
            return 0.0
        return self._seq[self._cursor].min_progress_height()

    def _client_rect(self) -> Rect:
        size = self.surface.client_size()
        return Rect(0.0, 0.0, size.width, size.height)

    def _start(self, bounds: Rect):
        grid = self.grid
        if not len(grid.columns):
            raise GridLayoutError("Grid has no columns")
        if not grid.is_child_grid:
            grid._prepare_layout(bounds.width, self.surface, self._client_rect().right - bounds.x)
        elif not grid._prepared:
            grid._prepare_layout(bounds.width, self.surface)
        self._seq = grid.all_rows()
        self._header_count = len(grid.headers)
        self._cursor = 0
        self._offsets = grid.columns.offsets()
        self._column_ranges = list(grid._column_ranges)
        self._range_index = 0
        if len(self._column_ranges) > 1:
            logger.debug("Grid split into column ranges %s", self._column_ranges)

    def _row_number(self, index: int) -> int:
        return index if index < self._header_count else index - self._header_count

    # -- driving ---------------------------------------------------------

    def paginate(self, bounds: Optional[Rect] = None) -> Iterator[PagePlacement]:
        """Yield one page placement per pass, adding pages in between."""
        page_bounds = bounds
        while True:
            placement = self.layout_page(page_bounds)
            yield placement
            if self.is_finished or self._cancelled:
                return
            if self.format.layout_type == LayoutType.ONE_PAGE:
                return
            self.surface.new_page()
            page_bounds = self.format.paginate_bounds

    def layout(self, bounds: Optional[Rect] = None) -> GridLayoutResult:
        for _ in self.paginate(bounds):
            pass
        return self.result()

    def result(self) -> GridLayoutResult:
        last_bounds = self.pages[-1].bounds if self.pages else Rect(0.0, 0.0, 0.0, 0.0)
        return GridLayoutResult(
            pages=list(self.pages),
            last_page=self.surface.current_page,
            bounds=last_bounds,
            finished=self.is_finished,
        )

    def layout_page(self, bounds: Optional[Rect] = None, force: Optional[bool] = None) -> PagePlacement:
        """Lay out as many rows as fit ``bounds`` on the current page.

        Args:
            bounds: Area to use; the whole client area when None
            force: Whether something must be drawn even if nothing fits.
                Defaults to True when ``bounds`` starts at the top of the page.

        Returns:
            PagePlacement for this pass
        """
        if self.is_finished:
            raise GridLayoutError("Grid layout is already finished")
        bounds = bounds or self._client_rect()
        if self.state == PaginationState.NOT_STARTED:
            self._start(bounds)
        fresh = force if force is not None else (bounds.y <= EPSILON or bool(self.pages))
        self.state = PaginationState.IN_PROGRESS

        page = self.surface.current_page
        column_range = self._column_ranges[self._range_index]
        placement = PagePlacement(page.index, bounds, self.state, column_range)
        self._origin_x = bounds.x
        self._right_edge = bounds.right if self.grid.is_child_grid else self._client_rect().right
        y = bounds.y
        bottom = bounds.bottom

        y = self._repeat_headers(placement, y, bottom)
        self._fresh_top = y if fresh else None
        for pend in self._pending.values():
            pend.start_y = y
            pend.row_placement = None

        bottoms: Dict[int, float] = {}
        state = None
        while self._cursor < len(self._seq):
            index = self._cursor
            row = self._seq[index]
            available = bottom - y

            group_end = self._group_end(index)
            if group_end > index + 1 and row.row_break_height == 0 and not self._pending:
                group_height = sum(r.height for r in self._seq[index:group_end])
                if group_height <= available + EPSILON:
                    for i in range(index, group_end):
                        height = self._seq[i].height
                        placement.rows.append(self._draw_row(i, y, height, force=True))
                        y += height
                        bottoms[i] = y
                        self._complete_row(i)
                    self._flush_spans(lambda p: p.end - 1 in bottoms, bottoms, force=True)
                    self._cursor = group_end
                    fresh = False
                    continue
                if not fresh:
                    state = PaginationState.PAGE_COMPLETE
                    break
                logger.debug("Row span group %d-%d taller than the page; placing row by row",
                             index, group_end - 1)

            height = self._effective_height(index, y)
            if height <= available + EPSILON:
                row_placement = self._draw_row(index, y, height, force=True)
                placement.rows.append(row_placement)
                y += height
                if not row.is_finished and row.is_height_set:
                    self._clip_row(index, row_placement)
                elif not row.is_finished:
                    # A nested grid needed more than it measured; continue the row
                    row.row_break_height += height
                    row.invalidate_height()
                    row_placement.is_split = True
                    state = PaginationState.ROW_BREAK
                    logger.debug("Row %d did not finish in its measured height", index)
                    break
                bottoms[index] = y
                self._complete_row(index)
                self._flush_spans(lambda p: p.end - 1 == index, bottoms, force=True)
                self._cursor += 1
                fresh = False
                continue

            if not fresh and (
                not self.grid.allow_row_breaking_across_pages
                or available < self._min_progress(index) - EPSILON
            ):
                state = PaginationState.PAGE_COMPLETE
                break

            if fresh and available < self._min_progress(index) - EPSILON:
                logger.warning("Row %d cannot fit one line on a fresh page; forcing progress", index)
            row_placement = self._draw_row(index, y, max(available, 0.0), force=fresh, split=True)
            placement.rows.append(row_placement)
            y = bottom
            if row.is_finished and not self._spans_unfinished_at(index):
                self._complete_row(index)
                bottoms[index] = y
                self._flush_spans(lambda p: p.end - 1 == index, bottoms, force=True)
                self._cursor += 1
                state = PaginationState.PAGE_COMPLETE
            else:
                row.row_break_height += max(available, 0.0)
                row.invalidate_height()
                row_placement.is_split = True
                state = PaginationState.ROW_BREAK
                logger.debug("Row %d split at %.1fpt (consumed %.1fpt)",
                             index, available, row.row_break_height)
            break

        if self._pending:
            self._flush_spans(lambda p: True, None, force=False, page_end=y)

        if self._cursor >= len(self._seq):
            if self._range_index + 1 < len(self._column_ranges):
                self._range_index += 1
                self._cursor = 0
                self.grid.reset_pagination_state()
                state = PaginationState.PAGE_COMPLETE
            else:
                state = PaginationState.FINISHED

        self.state = state or PaginationState.PAGE_COMPLETE
        placement.state = self.state
        placement.bounds = Rect(bounds.x, bounds.y, bounds.width, max(y - bounds.y, 0.0))
        self.pages.append(placement)
        logger.debug("Page %d pass ended %s at row %d/%d",
                     page.index, self.state.value, self._cursor, len(self._seq))

        if self.grid.end_page_layout is not None and not self.grid.is_child_grid:
            event = PageLayoutEvent(page, placement)
            self.grid.end_page_layout(event)
            if event.cancel:
                logger.info("Pagination cancelled after page %d", page.index)
                self._cancelled = True
        return placement

    # -- row placement ---------------------------------------------------

    def _group_end(self, index: int) -> int:
        """Sequence index after the last row tied to ``index`` by row spans."""
        end = index + 1
        i = index
        while i < end:
            for cell in self._seq[i].cells:
                if not (cell.is_cell_merge_continue or cell.is_row_merge_continue):
                    end = max(end, i + cell.row_span)
            i += 1
        return end

    def _effective_height(self, index: int, y: float) -> float:
        """Row height, grown to fit what spans ending on this row still need."""
        height = self._seq[index].height
        for pend in self._pending.values():
            if pend.end - 1 == index and not (pend.started and pend.cell.finished):
                height = max(height, pend.cell.height - (y - pend.start_y))
        return height

    def _min_progress(self, index: int) -> float:
        result = self._seq[index].min_progress_height()
        for pend in self._pending.values():
            if pend.end - 1 == index and not (pend.started and pend.cell.finished):
                result = max(result, pend.cell.min_progress_height())
        return result

    def _spans_unfinished_at(self, index: int) -> bool:
        return any(
            pend.end - 1 == index and (not pend.started or not pend.cell.finished)
            for pend in self._pending.values()
        )

    def _clip_row(self, index: int, row_placement: RowPlacement):
        """Finish the cells of a fixed-height row whose content did not fit."""
        row = self._seq[index]
        for cell_placement in row_placement.cells:
            if cell_placement.finished or cell_placement.row_index != row_placement.row_index:
                continue
            if cell_placement.is_header != row_placement.is_header:
                continue
            cell = row.cells[cell_placement.col_index]
            cell.remaining_text = None
            cell.finished = True
            cell_placement.finished = True
            cell_placement.clipped = True
            logger.warning("Row %d column %d clipped to its fixed height of %.1fpt",
                           row_placement.row_index, cell_placement.col_index, row.height)

    def _complete_row(self, index: int):
        row = self._seq[index]
        row.is_row_finished = True
        row.row_break_height = 0.0
        row.invalidate_height()

    def _repeat_headers(self, placement: PagePlacement, y: float, bottom: float) -> float:
        if not self.grid.repeat_header or not self._header_count:
            return y
        if self._cursor < self._header_count or not self.pages:
            return y
        if self.pages[-1].column_range != placement.column_range:
            return y
        headers = self._seq[:self._header_count]
        header_height = sum(r.height for r in headers)
        if header_height + self._min_progress(self._cursor) > bottom - y + EPSILON:
            logger.warning("Not enough room to repeat %d header row(s) on page %d",
                           self._header_count, placement.page_index)
            return y
        for i in range(self._header_count):
            height = self._seq[i].height
            placement.rows.append(self._draw_row(i, y, height, force=True, repeat=True))
            y += height
        return y

    def _draw_row(self, index: int, y: float, height: float, force: bool,
                  split: bool = False, repeat: bool = False) -> RowPlacement:
        row = self._seq[index]
        is_header = index < self._header_count
        placement = RowPlacement(
            row_index=self._row_number(index),
            is_header=is_header,
            y_top=y,
            y_bottom=y + height,
            row_height=height,
            is_split=split,
            is_repeat=repeat,
        )
        for pend in self._pending.values():
            if pend.row_placement is None:
                pend.row_placement = placement

        start, end = self._column_ranges[self._range_index]
        spacing = self.grid.style.cell_spacing
        resume = row.row_break_height > 0
        if resume:
            # Only the cells drawn before the page break continue
            end = min(end, row.row_overflow_index + 1)
        last = start
        for c in range(start, end):
            cell = row.cells[c]
            if cell.is_cell_merge_continue or cell.is_row_merge_continue:
                continue
            x = self._origin_x + self._offsets[c] - self._offsets[start]
            if x >= self._right_edge - EPSILON and not self.grid.style.allow_horizontal_overflow:
                logger.warning("Column %d starts beyond the page edge; cell skipped", c)
                continue
            last = c + cell.column_span - 1
            width = cell.width

            if cell.row_span > 1:
                if repeat:
                    span_height = sum(r.height for r in self._seq[index:index + cell.row_span])
                    bounds = Rect(x + spacing, y + spacing, width, span_height - spacing)
                    placement.cells.append(
                        self._draw_cell(index, c, cell, bounds, force=True, resume=False, repeat=True))
                elif c not in self._pending:
                    self._pending[c] = _PendingSpan(
                        cell=cell, origin=index, end=index + cell.row_span, col=c,
                        x=x, width=width, start_y=y, row_placement=placement,
                    )
                continue

            bounds = Rect(x + spacing, y + spacing, width, max(height - spacing, 0.0))
            placement.cells.append(
                self._draw_cell(index, c, cell, bounds, force=force, resume=resume, repeat=repeat))
        row.row_overflow_index = last
        return placement

    def _flush_spans(self, predicate, bottoms: Optional[Dict[int, float]], force: bool,
                     page_end: Optional[float] = None):
        """Draw pending row-spanning cells selected by ``predicate``.

        Spans whose last row has been placed are drawn down to that row's
        bottom and dropped. At the end of a page (``page_end``) the remaining
        spans are drawn down to it and carried to the next page.
        """
        spacing = self.grid.style.cell_spacing
        for col in sorted(self._pending):
            pend = self._pending[col]
            if not predicate(pend):
                continue
            complete = bottoms is not None and (pend.end - 1) in bottoms
            y_end = bottoms[pend.end - 1] if complete else page_end
            if y_end is None:
                continue
            bounds = Rect(pend.x + spacing, pend.start_y + spacing, pend.width,
                          max(y_end - pend.start_y - spacing, 0.0))
            force_span = force or (
                self._fresh_top is not None and pend.start_y <= self._fresh_top + EPSILON
            )
            cell_placement = self._draw_cell(
                pend.origin, col, pend.cell, bounds,
                force=force_span, resume=pend.started, repeat=False,
            )
            pend.started = True
            if pend.row_placement is not None:
                pend.row_placement.cells.append(cell_placement)
            if complete:
                if not pend.cell.finished:
                    logger.warning("Row-spanning cell at row %d column %d did not fit its rows",
                                   pend.origin, col)
                del self._pending[col]

    # -- cells -----------------------------------------------------------

    def _draw_cell(self, index: int, col: int, cell, bounds: Rect, force: bool,
                   resume: bool, repeat: bool) -> CellPlacement:
        is_header = index < self._header_count
        placement = CellPlacement(
            row_index=self._row_number(index),
            col_index=col,
            bounds=bounds,
            is_header=is_header,
        )
        if self.grid.begin_cell_layout is not None and not repeat:
            event = CellLayoutEvent(self._row_number(index), col, cell, bounds, is_header)
            self.grid.begin_cell_layout(event)
            if event.skip:
                cell.remaining_text = None
                cell.finished = True
                placement.skipped = True
                return placement

        self.renderer.draw_background(cell, bounds)
        if not (resume and cell.finished):
            content = self.renderer.content_bounds(cell, bounds)
            value = cell.value
            if cell.is_nested_grid:
                self._draw_nested(cell, content, force, repeat)
            elif isinstance(value, GridImage):
                self.renderer.draw_image(cell, value, content)
            else:
                placement.text = self.renderer.draw_text(cell, content, force)
        self.renderer.draw_borders(cell, bounds)
        placement.finished = cell.finished
        return placement

    def _draw_nested(self, cell, content: Rect, force: bool, repeat: bool):
        child = cell.value
        if repeat:
            child.reset_pagination_state()
            cell._child_layouter = None
        layouter = cell._child_layouter
        if layouter is None:
            layouter = GridLayouter(child, self.surface, LayoutFormat(LayoutType.ONE_PAGE))
            cell._child_layouter = layouter
        if layouter.is_finished:
            cell.finished = True
            return

        size = cell._child_size
        fmt = cell.resolved_string_format
        if size is not None and size.width < content.width:
            if fmt.alignment == TextAlignment.CENTER:
                content = Rect(content.x + (content.width - size.width) / 2, content.y,
                               size.width, content.height)
            elif fmt.alignment == TextAlignment.RIGHT:
                content = Rect(content.right - size.width, content.y, size.width, content.height)

        self.surface.push_clip(content)
        try:
            layouter.layout_page(content, force=force)
        finally:
            self.surface.pop_clip()
        cell.finished = layouter.is_finished
