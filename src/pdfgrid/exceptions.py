"""Exceptions raised by the grid layout engine."""

from typing import Optional


class GridError(Exception):
    """Base exception for grid layout errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class InvalidSpanError(GridError, ValueError):
    """A row or column span is below 1 or runs past the last row/column."""

    pass


class MeasurementError(GridError):
    """The text measurer returned a size layout cannot reason about."""

    pass


class GridIndexError(GridError, IndexError):
    """Row, cell or column lookup by an index that does not exist."""

    pass


class GridLayoutError(GridError):
    """The layouter was driven in a way it does not support."""

    pass


class ConfigError(GridError):
    """Invalid render configuration."""

    pass
