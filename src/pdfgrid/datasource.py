"""Build grids from tabular data: lists of rows or lists of records."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .grid import Grid
from .styles import GridStyle, StringFormat, TextAlignment


@dataclass
class ColumnSpec:
    """Specification for a grid column."""
    name: str  # Header label
    key: Optional[str] = None  # Record key, derived from the name when None
    width_ratio: Optional[float] = None  # Relative width; None shares what is left
    alignment: str = "left"  # "left", "center", "right", "justify"
    total: bool = False  # Sum this column in a totals row

    @property
    def record_key(self) -> str:
        return self.key or self.name.lower().replace(" ", "_")

    @property
    def string_format(self) -> StringFormat:
        return StringFormat(alignment=TextAlignment(self.alignment))


def format_value(value: Any) -> str:
    """Format a cell value for display."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return f"{value:,.2f}"
    if hasattr(value, "strftime"):  # date object
        return value.strftime("%m/%d/%y")
    return str(value)


def compute_column_widths(columns: Sequence[ColumnSpec], total_width: float) -> List[Optional[float]]:
    """Compute absolute column widths from ratios; unset ratios stay None."""
    return [
        spec.width_ratio * total_width if spec.width_ratio else None
        for spec in columns
    ]


def _totals_row(columns: Sequence[ColumnSpec], rows: Sequence[Sequence[Any]]) -> List[str]:
    totals = []
    label_placed = False
    for i, spec in enumerate(columns):
        if spec.total:
            total = sum(r[i] for r in rows if i < len(r) and isinstance(r[i], (int, float))
                        and not isinstance(r[i], bool))
            totals.append(format_value(float(total)))
        elif not label_placed:
            totals.append("TOTAL")
            label_placed = True
        else:
            totals.append("")
    return totals


def grid_from_rows(
    columns: Sequence[ColumnSpec],
    rows: Sequence[Sequence[Any]],
    total_width: Optional[float] = None,
    style: Optional[GridStyle] = None,
    include_header: bool = True,
    include_totals: bool = False,
) -> Grid:
    """Create a grid with one header row and one body row per data row.

    Args:
        columns: Column specifications, in order
        rows: Data rows; missing trailing values are left empty
        total_width: Width the ratios are taken of; ratios are ignored when None
        style: Grid style
        include_header: Whether to add a header row with the column names
        include_totals: Whether to append a totals row

    Returns:
        Populated Grid
    """
    if not columns:
        raise ValueError("At least one column is required")
    grid = Grid(style)
    grid.columns.add(len(columns))
    if total_width is not None:
        for column, width in zip(grid.columns, compute_column_widths(columns, total_width)):
            if width is not None:
                column.width = width

    formats = [spec.string_format for spec in columns]
    if include_header:
        header = grid.headers.add()
        for cell, spec in zip(header.cells, columns):
            cell.value = spec.name
            cell.string_format = spec.string_format

    data_rows = [list(r) for r in rows]
    if include_totals:
        data_rows.append(_totals_row(columns, rows))

    for values in data_rows:
        if len(values) > len(columns):
            raise ValueError(f"Row has {len(values)} values for {len(columns)} columns")
        row = grid.rows.add()
        for i, value in enumerate(values):
            row.cells[i].value = format_value(value)
            row.cells[i].string_format = formats[i]
    return grid


def grid_from_records(
    columns: Sequence[ColumnSpec],
    records: Sequence[Dict[str, Any]],
    total_width: Optional[float] = None,
    style: Optional[GridStyle] = None,
    include_header: bool = True,
    include_totals: bool = False,
) -> Grid:
    """Create a grid from dict records, mapping each column to its record key."""
    rows = [[record.get(spec.record_key) for spec in columns] for record in records]
    return grid_from_rows(
        columns,
        rows,
        total_width=total_width,
        style=style,
        include_header=include_header,
        include_totals=include_totals,
    )
