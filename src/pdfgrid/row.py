"""Grid rows and the header/body row collections."""

import weakref
from typing import Iterator, List, Optional, Union

from .cell import Cell, CellCollection
from .exceptions import GridIndexError
from .styles import CellStyle, GridStyle, RowStyle


class Row:
    """An ordered sequence of cells, one slot per grid column.

    ``height`` is measured lazily from the cells and cached until the row is
    invalidated. Setting it fixes the row height.
    """

    def __init__(self, grid=None, style: Optional[RowStyle] = None):
        self._grid_ref = weakref.ref(grid) if grid is not None else None
        self._collection_ref = None
        self.cells = CellCollection(self)
        self.style = style
        self._explicit_height: Optional[float] = None
        self._height_cache: Optional[float] = None
        self.is_header = False

        # Pagination bookkeeping
        self.row_break_height = 0.0
        self.row_overflow_index = 0
        self.is_row_finished = False
        self.maximum_row_span = 1
        self.row_span_exists = False

        if grid is not None:
            for _ in range(len(grid.columns)):
                self.cells.add()

    @property
    def grid(self):
        return self._grid_ref() if self._grid_ref is not None else None

    @property
    def collection(self):
        return self._collection_ref() if self._collection_ref is not None else None

    @property
    def index(self) -> int:
        collection = self.collection
        if collection is None:
            raise GridIndexError("Row is not attached to a grid")
        return collection.index(self)

    def _ensure_cells(self, count: int):
        while len(self.cells) < count:
            self.cells.add()

    @property
    def height(self) -> float:
        if self._height_cache is None:
            self._height_cache = self._measure_height(include_deficit=True)
        return self._height_cache

    @height.setter
    def height(self, value: Optional[float]):
        if value is not None and value < 0:
            raise ValueError(f"Row height must not be negative, got {value!r}")
        self._explicit_height = value
        self._height_cache = None

    @property
    def is_height_set(self) -> bool:
        return self._explicit_height is not None

    @property
    def base_height(self) -> float:
        """Height without the extra height owed to row-spanning cells."""
        return self._measure_height(include_deficit=False)

    def invalidate_height(self):
        self._height_cache = None

    def _measure_height(self, include_deficit: bool) -> float:
        continuing = self.row_break_height > 0
        measured = 0.0
        deficit = 0.0
        spanning: List[Cell] = []
        has_plain = False
        for cell in self.cells:
            deficit = max(deficit, cell.row_span_remaining_height)
            if cell.is_cell_merge_continue or cell.is_row_merge_continue:
                continue
            if cell.row_span > 1:
                spanning.append(cell)
                continue
            has_plain = True
            measured = max(measured, cell.height)

        if spanning and (not has_plain or self.is_header):
            measured = max(measured, max(cell.height for cell in spanning))

        if self._explicit_height is not None:
            if continuing:
                return max(self._explicit_height - self.row_break_height, measured)
            return self._explicit_height
        if include_deficit and not continuing:
            measured += deficit
        return measured

    def min_progress_height(self) -> float:
        """Smallest height in which every unfinished cell can draw something."""
        result = 0.0
        for cell in self.cells:
            if cell.is_cell_merge_continue or cell.is_row_merge_continue or cell.row_span > 1:
                continue
            result = max(result, cell.min_progress_height())
        return result

    @property
    def is_finished(self) -> bool:
        return all(
            cell.finished
            for cell in self.cells
            if not (cell.is_cell_merge_continue or cell.is_row_merge_continue)
        )

    def apply_style(self, style: Union[CellStyle, RowStyle]):
        """Apply a cell style to every cell, or set the row style."""
        if isinstance(style, CellStyle):
            for cell in self.cells:
                cell.style = style
        elif isinstance(style, RowStyle):
            self.style = style
        else:
            raise TypeError(f"Cannot apply {type(style).__name__} to a row")
        self.invalidate_height()

    def reset_pagination_state(self):
        self.row_break_height = 0.0
        self.is_row_finished = False
        self._height_cache = None
        for cell in self.cells:
            cell.reset_pagination_state()

    def reset_layout_state(self):
        self.reset_pagination_state()
        self.row_overflow_index = 0
        for cell in self.cells:
            cell.reset_layout_state()


class RowCollection:
    """Body rows of a grid."""

    is_header = False

    def __init__(self, grid):
        self._grid_ref = weakref.ref(grid)
        self._rows: List[Row] = []

    @property
    def grid(self):
        return self._grid_ref()

    def add(self, row: Optional[Row] = None) -> Row:
        """Append a new row (or ``row``) and return it."""
        grid = self.grid
        if row is None:
            row = Row(grid)
        else:
            row._grid_ref = weakref.ref(grid)
            row._ensure_cells(len(grid.columns))
        row._collection_ref = weakref.ref(self)
        row.is_header = self.is_header
        self._rows.append(row)
        return row

    def index(self, row: Row) -> int:
        for i, r in enumerate(self._rows):
            if r is row:
                return i
        raise GridIndexError("Row does not belong to this collection")

    def set_span(self, row_index: int, cell_index: int, row_span: int, column_span: int):
        """Set both spans of the cell at (``row_index``, ``cell_index``)."""
        cell = self[row_index].cells[cell_index]
        cell.row_span = row_span
        cell.column_span = column_span

    def apply_style(self, style: Union[CellStyle, RowStyle, GridStyle]):
        """Apply a style to every row, or set the grid style."""
        if isinstance(style, GridStyle):
            self.grid.style = style
            return
        for row in self._rows:
            row.apply_style(style)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> Row:
        if not 0 <= index < len(self._rows):
            raise GridIndexError("Row index out of range",
                                 f"{index} not in [0, {len(self._rows)})")
        return self._rows[index]


class HeaderCollection(RowCollection):
    """Header rows, laid out before the body rows."""

    is_header = True

    def add(self, count: int = 1) -> Row:
        """Append ``count`` header rows and return the last one added."""
        if count < 1:
            raise ValueError(f"Header row count must be at least 1, got {count}")
        row = None
        for _ in range(count):
            row = super().add()
        return row

    def clear(self):
        self._rows.clear()
