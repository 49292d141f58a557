"""Sample data for demonstrating grid pagination."""

from datetime import date, timedelta
from typing import Dict, List

import numpy as np
from faker import Faker

from .config import RenderConfig
from .datasource import ColumnSpec, grid_from_records
from .grid import Grid
from .styles import StringFormat, TextAlignment


LEDGER_COLUMNS = [
    ColumnSpec("Date", width_ratio=0.11),
    ColumnSpec("Vendor", width_ratio=0.22),
    ColumnSpec("Description", width_ratio=0.37),
    ColumnSpec("Invoice #", key="invoice_num", width_ratio=0.13, alignment="center"),
    ColumnSpec("Amount", width_ratio=0.17, alignment="right", total=True),
]

SUMMARY_COLUMNS = [
    ColumnSpec("Vendor"),
    ColumnSpec("Invoices", key="count", alignment="right"),
    ColumnSpec("Total", alignment="right", total=True),
]


def generate_ledger_records(
    rng: np.random.Generator,
    fake: Faker,
    period_start: date,
    num_rows: int = 60,
) -> List[dict]:
    """Generate disbursement ledger records.

    Roughly one description in five is a long paragraph, so that some rows
    wrap onto several lines and occasionally across a page break.
    """
    vendors = [fake.company() for _ in range(max(3, num_rows // 6))]
    rows = []
    for _ in range(num_rows):
        if rng.random() < 0.2:
            description = fake.paragraph(nb_sentences=int(rng.integers(3, 8)))
        else:
            description = fake.sentence(nb_words=int(rng.integers(3, 8)))
        rows.append({
            "date": period_start + timedelta(days=int(rng.integers(0, 28))),
            "vendor": str(rng.choice(vendors)),
            "description": description,
            "invoice_num": f"INV-{int(rng.integers(10000, 99999))}",
            "amount": float(rng.uniform(50, 25000)),
        })
    rows.sort(key=lambda r: r["date"])
    return rows


def summarize_by_vendor(records: List[dict], top: int = 5) -> List[dict]:
    totals: Dict[str, List[float]] = {}
    for record in records:
        totals.setdefault(record["vendor"], []).append(record["amount"])
    ranked = sorted(totals.items(), key=lambda kv: -sum(kv[1]))[:top]
    return [
        {"vendor": vendor, "count": len(amounts), "total": float(sum(amounts))}
        for vendor, amounts in ranked
    ]


def build_demo_grid(config: RenderConfig, width: float, period_start: date = date(2025, 1, 1)) -> Grid:
    """Build a ledger grid with a totals row and a nested vendor summary."""
    rng = np.random.default_rng(config.seed)
    fake = Faker()
    fake.seed_instance(int(rng.integers(0, 2**31)))

    records = generate_ledger_records(rng, fake, period_start, config.demo_rows)
    grid = grid_from_records(LEDGER_COLUMNS, records, total_width=width, include_totals=True)

    summary = grid_from_records(SUMMARY_COLUMNS, summarize_by_vendor(records))
    row = grid.rows.add()
    label = row.cells[0]
    label.value = "Top vendors"
    holder = row.cells[1]
    holder.column_span = len(LEDGER_COLUMNS) - 1
    holder.value = summary
    holder.string_format = StringFormat(alignment=TextAlignment.LEFT)

    config.apply(grid)
    config.apply(summary)
    summary.repeat_header = False
    return grid
