"""Write grid placements to JSONL files for inspection."""

import json
from pathlib import Path
from typing import Any, Dict, Tuple

from .geometry import Rect
from .paginator import CellPlacement, GridLayoutResult, RowPlacement
from .surface import PageLayout


MIN_BBOX_WIDTH = 1.0
MIN_BBOX_HEIGHT = 1.0


def to_reportlab_bbox(rect: Rect, layout: PageLayout) -> Tuple[float, float, float, float]:
    """
    Convert an engine rectangle to a ReportLab bbox.

    Engine: origin at the TOP-LEFT of the client area, y increases DOWNWARD
    ReportLab: origin at BOTTOM-LEFT of the page, y increases UPWARD
               bbox = [x0, y0, x1, y1] where y0 is bottom, y1 is top
    """
    x0 = layout.content_start_x + rect.x
    x1 = x0 + rect.width
    y1 = layout.content_start_y - rect.y
    y0 = y1 - rect.height
    return (x0, y0, x1, y1)


def to_pdfplumber_bbox(
    bbox_rl: Tuple[float, float, float, float],
    page_height: float
) -> Tuple[float, float, float, float]:
    """
    Convert ReportLab bbox to pdfplumber coordinates.

    pdfplumber: origin at TOP-LEFT, y increases DOWNWARD
                bbox = [x0, top, x1, bottom] where top < bottom
    """
    x0, y0, x1, y1 = bbox_rl
    top = page_height - y1
    bottom = page_height - y0
    return (x0, top, x1, bottom)


def _bbox_fields(rect: Rect, layout: PageLayout) -> Dict[str, Any]:
    bbox_rl = to_reportlab_bbox(rect, layout)
    bbox_pl = to_pdfplumber_bbox(bbox_rl, layout.page_height)
    return {
        "bbox": [round(v, 2) for v in bbox_pl],
        "bbox_reportlab": [round(v, 2) for v in bbox_rl],
        "degenerate": rect.width < MIN_BBOX_WIDTH or rect.height < MIN_BBOX_HEIGHT,
    }


def row_to_label(row: RowPlacement, page_index: int, width: float, x: float,
                 layout: PageLayout, doc_id: str) -> Dict[str, Any]:
    label = {
        "doc_id": doc_id,
        "page_index": page_index,
        "row_index": row.row_index,
        "is_header": row.is_header,
        "is_split": row.is_split,
        "is_repeat": row.is_repeat,
        "height": round(row.row_height, 2),
    }
    label.update(_bbox_fields(Rect(x, row.y_top, width, row.row_height), layout))
    return label


def cell_to_label(cell: CellPlacement, page_index: int, layout: PageLayout, doc_id: str) -> Dict[str, Any]:
    label = {
        "doc_id": doc_id,
        "page_index": page_index,
        "row_index": cell.row_index,
        "col_index": cell.col_index,
        "is_header": cell.is_header,
        "text": cell.text,
        "finished": cell.finished,
        "skipped": cell.skipped,
        "clipped": cell.clipped,
    }
    label.update(_bbox_fields(cell.bounds, layout))
    return label


def write_layout(
    result: GridLayoutResult,
    out_dir: Path,
    doc_id: str,
    layout: PageLayout,
) -> Dict[str, int]:
    """
    Write row and cell placements of a layout result to JSONL files.

    Creates/appends to:
    - layout/rows.jsonl (one record per row placement)
    - layout/cells.jsonl (one record per cell placement)

    Returns dict with counts of each record type written.
    """
    layout_dir = Path(out_dir) / "layout"
    layout_dir.mkdir(parents=True, exist_ok=True)

    counts = {"pages": 0, "rows": 0, "cells": 0, "cells_degenerate": 0}

    with open(layout_dir / "rows.jsonl", "a") as f_rows, \
         open(layout_dir / "cells.jsonl", "a") as f_cells:
        for page in result.pages:
            counts["pages"] += 1
            for row in page.rows:
                f_rows.write(json.dumps(
                    row_to_label(row, page.page_index, page.bounds.width, page.bounds.x, layout, doc_id)
                ) + "\n")
                counts["rows"] += 1
                for cell in row.cells:
                    label = cell_to_label(cell, page.page_index, layout, doc_id)
                    if label["degenerate"]:
                        counts["cells_degenerate"] += 1
                    f_cells.write(json.dumps(label) + "\n")
                    counts["cells"] += 1

    return counts


def clear_layout(out_dir: Path) -> None:
    """Clear existing layout files (for a fresh export)."""
    layout_dir = Path(out_dir) / "layout"
    if layout_dir.exists():
        for path in layout_dir.glob("*.jsonl"):
            path.unlink()
