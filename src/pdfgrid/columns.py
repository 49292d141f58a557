"""Grid columns and width lookups."""

from typing import Iterator, List, Optional

import numpy as np

from .exceptions import GridIndexError


class Column:
    """A grid column. ``width`` is None until set or resolved by layout."""

    def __init__(self, width: Optional[float] = None):
        self._width: Optional[float] = None
        self._resolved: Optional[float] = None
        if width is not None:
            self.width = width

    @property
    def width(self) -> Optional[float]:
        if self._width is not None:
            return self._width
        return self._resolved

    @width.setter
    def width(self, value: Optional[float]):
        if value is not None and not value > 0:
            raise ValueError(f"Column width must be positive, got {value!r}")
        self._width = value
        self._resolved = None

    @property
    def is_width_set(self) -> bool:
        return self._width is not None


class ColumnCollection:
    """Ordered columns of a grid; the index is the column index."""

    def __init__(self, grid=None):
        self._columns: List[Column] = []
        self._grid = grid

    def add(self, count: int = 1) -> Column:
        """Append ``count`` columns and return the last one added."""
        if count < 1:
            raise ValueError(f"Column count must be at least 1, got {count}")
        column = None
        for _ in range(count):
            column = Column()
            self._columns.append(column)
        if self._grid is not None:
            self._grid._on_columns_changed()
        return column

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __getitem__(self, index: int) -> Column:
        if not 0 <= index < len(self._columns):
            raise GridIndexError("Column index out of range",
                                 f"{index} not in [0, {len(self._columns)})")
        return self._columns[index]

    @property
    def widths(self) -> List[Optional[float]]:
        return [c.width for c in self._columns]

    @property
    def is_resolved(self) -> bool:
        return all(c.width is not None for c in self._columns)

    def _resolved_widths(self) -> np.ndarray:
        return np.array([c.width or 0.0 for c in self._columns], dtype=float)

    @property
    def total_width(self) -> float:
        return float(self._resolved_widths().sum())

    def offsets(self) -> List[float]:
        """Left edge of every column relative to the grid's left edge."""
        widths = self._resolved_widths()
        if not len(widths):
            return []
        return [0.0] + np.cumsum(widths)[:-1].tolist()

    def span_width(self, start: int, count: int) -> float:
        """Sum of the widths of ``count`` columns starting at ``start``."""
        return float(self._resolved_widths()[start:start + count].sum())

    def resolve(self, available_width: Optional[float], natural_widths: List[float]) -> List[float]:
        """Assign widths to the columns that have none.

        Columns with an explicit width keep it. The rest share whatever the
        explicit ones leave of ``available_width``; with no available width
        they take their natural (content) width.
        """
        unset = [i for i, c in enumerate(self._columns) if not c.is_width_set]
        if unset:
            fixed = sum(c._width for c in self._columns if c.is_width_set)
            if available_width is not None and available_width - fixed > 0:
                share = (available_width - fixed) / len(unset)
                for i in unset:
                    self._columns[i]._resolved = share
            else:
                for i in unset:
                    natural = natural_widths[i] if i < len(natural_widths) else 0.0
                    self._columns[i]._resolved = max(natural, 1.0)
        return [c.width for c in self._columns]

    def clear_resolved(self):
        for column in self._columns:
            column._resolved = None
