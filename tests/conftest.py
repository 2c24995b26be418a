import io
from datetime import date

import pytest
from openpyxl import Workbook

from stockpulse import settings
from stockpulse.schemas import InventoryRecord, SaleRecord, StockStatus

TODAY = date(2025, 1, 20)


def make_xlsx(rows: list[list], extra_sheet: list[list] | None = None) -> bytes:
    """Builds an XLSX workbook in memory; the first list is the header row."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Inventory"
    for row in rows:
        ws.append(row)
    if extra_sheet is not None:
        other = wb.create_sheet("Other")
        for row in extra_sheet:
            other.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def inv(sku, quantity, cost, price, status=None, name=None, asin=""):
    """Shorthand for a canonical inventory record (status defaults to threshold 10)."""
    if status is None:
        status = "Out" if quantity == 0 else "Low" if quantity <= 10 else "OK"
    return InventoryRecord(
        sku=sku,
        asin=asin,
        product_name=name or f"Product {sku}",
        quantity=quantity,
        cost=cost,
        price=price,
        status=StockStatus(status),
    )


def sale(sku, on, quantity_sold, revenue, name=None):
    return SaleRecord(
        date=on,
        sku=sku,
        product_name=name or f"Product {sku}",
        quantity_sold=quantity_sold,
        revenue=revenue,
    )


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def inventory_records():
    return [
        inv("AMZ-001", 150, 45.00, 89.99, name="Premium Wireless Headphones", asin="B08X6H9R2L"),
        inv("AMZ-002", 8, 120.00, 249.99, name="Smart Watch Pro"),
        inv("AMZ-003", 500, 3.50, 12.99, name="USB-C Cable 6ft"),
        inv("AMZ-005", 0, 22.00, 49.99, name="Portable Charger 20000mAh"),
    ]


@pytest.fixture
def sales_records():
    return [
        sale("AMZ-001", date(2025, 1, 15), 12, 1079.88),
        sale("AMZ-003", date(2025, 1, 14), 45, 584.55),
        sale("AMZ-001", date(2025, 1, 15), 3, 269.97),
        sale("AMZ-002", date(2024, 12, 1), 5, 1249.95),
    ]


@pytest.fixture
def no_side_effects(monkeypatch, tmp_path):
    """Points file output at tmp_path and disables the webhook."""
    monkeypatch.setattr(settings, "OUTPUT_DIR", tmp_path)
    monkeypatch.setattr(settings, "WEBHOOK_URL", None)
    monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", False)
    return tmp_path
