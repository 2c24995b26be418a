import io
import logging
from datetime import date
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from . import metrics, utils
from .decoder import CSV, SUPPORTED_FORMATS, XLSX
from .errors import NothingToExportError, UnsupportedFormatError
from .schemas import ExportPayload, InventoryRecord, SaleRecord
from .settings import AppConfig

logger = logging.getLogger(__name__)

REPORT_TYPES = ("inventory", "sales", "summary")

MEDIA_TYPES = {
    CSV: "text/csv",
    XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

FILENAME_BASES = {
    "inventory": "inventory",
    "sales": "sales",
    "summary": "summary_report",
}

SHEET_NAME = "Data"


def serialize(rows: Iterable[Mapping[str, Any]], fmt: str) -> bytes:
    """
    Writes flat rows to CSV or XLSX bytes. Columns follow first-seen key order.
    This is the inverse of decoder.decode.
    """
    fmt = fmt.strip().lower()
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(f"Cannot export to '{fmt}'. Use csv or xlsx.")

    rows = [dict(row) for row in rows]
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    df = pd.DataFrame(rows, columns=columns)

    if fmt == CSV:
        return df.to_csv(index=False).encode("utf-8")

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
    return buffer.getvalue()


# --- Report projections ---


def inventory_rows(records: Iterable[InventoryRecord]) -> list[dict[str, Any]]:
    """Inventory rows keyed by their export labels (the schema aliases)."""
    return [r.model_dump(mode="json", by_alias=True) for r in records]


def sales_rows(records: Iterable[SaleRecord]) -> list[dict[str, Any]]:
    return [r.model_dump(mode="json", by_alias=True) for r in records]


def _money(amount: float, config: AppConfig) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{config.currency_symbol}{abs(amount):.2f}"


def summary_rows(
    inventory: Iterable[InventoryRecord],
    sales: Iterable[SaleRecord],
    config: Optional[AppConfig] = None,
) -> list[dict[str, Any]]:
    """Key business metrics as Metric / Value rows."""
    config = config or AppConfig()
    sales = list(sales)
    totals = metrics.inventory_totals(inventory)
    revenue = metrics.sales_summary(sales).total_revenue

    summary = [
        ("Total SKUs", totals.sku_count),
        ("Total Stock Units", totals.total_units),
        ("Low Stock Items", totals.low_stock_count),
        ("Out of Stock Items", totals.out_of_stock_count),
        ("Total Inventory Cost", _money(totals.total_cost, config)),
        ("Total Inventory Value", _money(totals.total_value, config)),
        ("Potential Profit", _money(totals.potential_profit, config)),
        ("Profit Margin", f"{totals.margin_pct:.1f}%"),
        ("Total Sales Records", len(sales)),
        ("Total Revenue", _money(revenue, config)),
    ]
    return [{"Metric": name, "Value": value} for name, value in summary]


def build_export(
    report_type: str,
    fmt: str,
    inventory: Iterable[InventoryRecord] = (),
    sales: Iterable[SaleRecord] = (),
    config: Optional[AppConfig] = None,
    today: Optional[date] = None,
) -> ExportPayload:
    """Builds the bytes and suggested filename for a named report."""
    fmt = fmt.strip().lower()
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(f"Cannot export to '{fmt}'. Use csv or xlsx.")

    inventory = list(inventory)
    sales = list(sales)
    if report_type == "inventory":
        rows = inventory_rows(inventory)
    elif report_type == "sales":
        rows = sales_rows(sales)
    elif report_type == "summary":
        rows = summary_rows(inventory, sales, config) if (inventory or sales) else []
    else:
        raise ValueError(f"Unknown report type '{report_type}'. Use one of {REPORT_TYPES}.")

    if not rows:
        raise NothingToExportError(f"No data to export for the {report_type} report.")

    filename = f"{FILENAME_BASES[report_type]}_{utils.get_date_suffix_for_filename(today)}.{fmt}"
    logger.info(f"Exporting {len(rows)} {report_type} rows to {filename}")
    return ExportPayload(
        content=serialize(rows, fmt), filename=filename, media_type=MEDIA_TYPES[fmt]
    )
