"""
Output Formatting

Persists the unified dataset:
- unified.json, the lossless JSON-native form (read back as a dict)
- unified.xlsx, a workbook for troop leaders:
  Summary, Scouts, Transfers and Warnings sheets
"""
from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .cookies import display_name
from .models import UnifiedDataset

logger = logging.getLogger(__name__)


# =============================================================================
# Style Constants
# =============================================================================

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")

GREEN_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
RED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")

THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)

CURRENCY_FORMAT = '_("$"* #,##0.00_);_("$"* (#,##0.00);_("$"* "-"??_);_(@_)'
PERCENT_FORMAT = '0.00%'


# =============================================================================
# JSON
# =============================================================================

def write_unified_json(dataset: UnifiedDataset, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dataset.to_dict(), f, indent=2)
    logger.info("Wrote: %s", path)
    return path


def read_unified_json(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a unified.json written by write_unified_json (equal to dataset.to_dict())"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# Frames
# =============================================================================

def scouts_frame(dataset: UnifiedDataset) -> pd.DataFrame:
    """One row per real scout (the site pseudo-scout is left out)"""
    rows: List[Dict[str, Any]] = []
    for scout in sorted(dataset.scouts.values(), key=lambda s: s.name.lower()):
        if scout.is_site_order:
            continue
        t = scout.totals
        rows.append({
            "Scout": scout.name,
            "Girl ID": scout.girl_id,
            "Orders": t.orders,
            "Delivered": t.delivered,
            "Shipped": t.shipped,
            "Donations": t.donations,
            "Credited": t.credited,
            "Total Sold": t.total_sold,
            "Received": t.received,
            "Inventory": t.inventory,
            "Cash Owed": t.financials.cash_owed,
            "Negative Inventory": ", ".join(
                f"{display_name(i.variety)} (-{i.shortfall})" for i in scout.negative_inventory
            ),
        })
    return pd.DataFrame(rows)


def transfers_frame(dataset: UnifiedDataset) -> pd.DataFrame:
    breakdowns = dataset.transfer_breakdowns
    rows: List[Dict[str, Any]] = []
    for bucket, transfers in (
        ("C2T", breakdowns.c2t),
        ("T2T Out", breakdowns.t2t_out),
        ("T2G", breakdowns.t2g),
        ("G2T", breakdowns.g2t),
    ):
        for t in transfers:
            rows.append({
                "Bucket": bucket,
                "Type": t.type,
                "Category": t.category.value,
                "Date": t.date,
                "Order": t.order_number,
                "From": t.from_,
                "To": t.to,
                "Physical Packages": t.physical_packages,
                "Amount": t.amount,
                "Pending": t.is_pending,
            })
    return pd.DataFrame(rows)


def warnings_frame(dataset: UnifiedDataset) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Type": w.type.value,
                "Message": w.message,
                "Record": w.record_id,
                "Value": w.raw_value,
                "Scout": w.scout,
                "Source": w.source,
            }
            for w in dataset.warnings
        ],
        columns=["Type", "Message", "Record", "Value", "Scout", "Source"],
    )


# =============================================================================
# Workbook
# =============================================================================

def write_unified_xlsx(output: Union[io.BytesIO, Path, str], dataset: UnifiedDataset) -> None:
    """
    Write the season ledger to Excel.

    Sheets:
    - Summary: troop totals, proceeds and health check counters
    - Scouts: per-scout totals
    - Transfers: the four troop buckets, newest first
    - Warnings: every anomaly with its record id
    """
    wb = Workbook()
    wb.remove(wb.active)

    _create_summary_sheet(wb, dataset)
    _create_table_sheet(wb, "Scouts", scouts_frame(dataset), currency_columns={"Cash Owed"})
    _create_table_sheet(wb, "Transfers", transfers_frame(dataset), currency_columns={"Amount"})
    _create_table_sheet(wb, "Warnings", warnings_frame(dataset), empty_message="No warnings")

    if isinstance(output, io.BytesIO):
        wb.save(output)
        output.seek(0)
    else:
        wb.save(str(output))
        logger.info("Wrote: %s", output)


def _create_summary_sheet(wb: Workbook, dataset: UnifiedDataset):
    ws = wb.create_sheet("Summary")
    totals = dataset.troop_totals
    meta = dataset.metadata

    ws["A1"] = "Troop Cookie Sale Summary"
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"] = f"Built: {meta.unified_build_time}"

    row = 4
    ws[f"A{row}"] = "Troop Totals"
    ws[f"A{row}"].font = Font(bold=True)
    row += 1

    lines = [
        ("Packages Credited", totals.packages_credited, None),
        ("Per Girl Average", totals.per_girl_average, "0.0"),
        ("Proceeds Rate", totals.proceeds_rate, PERCENT_FORMAT),
        ("Gross Proceeds", totals.gross_proceeds, CURRENCY_FORMAT),
        ("Exempt Packages", totals.proceeds_exempt_packages, None),
        ("Proceeds Deduction", totals.proceeds_deduction, CURRENCY_FORMAT),
        ("Troop Proceeds", totals.troop_proceeds, CURRENCY_FORMAT),
        ("Troop Inventory", totals.inventory, None),
        ("Girl Inventory", totals.girl_inventory, None),
        ("Pending Pickup", totals.pending_pickup, None),
        ("Donations", totals.donations, None),
        ("Direct Ship", totals.direct_ship, None),
        ("Booth Sales", totals.booth_sales_packages, None),
        ("Active Scouts", totals.scouts.active, None),
    ]
    for label, value, fmt in lines:
        ws.cell(row=row, column=1, value=label)
        cell = ws.cell(row=row, column=2, value=value)
        if fmt:
            cell.number_format = fmt
        row += 1

    row += 1
    ws[f"A{row}"] = "Health Checks"
    ws[f"A{row}"].font = Font(bold=True)
    row += 1
    for label, count in meta.health_checks.to_dict().items():
        ws.cell(row=row, column=1, value=label)
        cell = ws.cell(row=row, column=2, value=count)
        cell.fill = RED_FILL if count else GREEN_FILL
        row += 1

    _auto_width(ws)


def _create_table_sheet(
    wb: Workbook,
    title: str,
    df: pd.DataFrame,
    currency_columns=frozenset(),
    empty_message: str = "No rows",
):
    ws = wb.create_sheet(title)
    for col, header in enumerate(df.columns, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER

    if df.empty:
        ws.cell(row=2, column=1, value=empty_message)
    else:
        for row, record in enumerate(df.itertuples(index=False), 2):
            for col, (header, value) in enumerate(zip(df.columns, record), 1):
                cell = ws.cell(row=row, column=col, value=_cell_value(value))
                cell.border = THIN_BORDER
                if header in currency_columns:
                    cell.number_format = CURRENCY_FORMAT

    _auto_width(ws)


# =============================================================================
# Helpers
# =============================================================================

def _cell_value(value: Any) -> Any:
    if isinstance(value, float) and pd.isna(value):
        return None
    if hasattr(value, "item"):
        return value.item()
    return value


def _auto_width(ws):
    """Auto-adjust column widths"""
    for column in ws.columns:
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        ws.column_dimensions[get_column_letter(column[0].column)].width = min(max_length + 2, 50)
