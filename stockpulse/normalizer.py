"""
Coerces validated rows into canonical InventoryRecord / SaleRecord models.

This is the only place that assigns the inventory `status` field. Callers must
run the validator first; anything that still fails to coerce here is raised as
CoercionError because it means the two stages disagree.

Design decision: integer fields (quantity, quantity_sold) truncate fractional
input toward zero ("7.9" -> 7) rather than rounding, so stock is never overstated.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .errors import CoercionError
from .schemas import InventoryRecord, SaleRecord, Schema, StockStatus
from .settings import AppConfig
from .utils import is_blank, parse_date, to_decimal

logger = logging.getLogger(__name__)


def classify_status(quantity: int, threshold: int) -> StockStatus:
    """Out at zero, Low up to and including the threshold, OK above it."""
    if quantity == 0:
        return StockStatus.OUT
    if quantity <= threshold:
        return StockStatus.LOW
    return StockStatus.OK


def _text(value: Any) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def _decimal(value: Any, field: str) -> Decimal:
    number = to_decimal(value)
    if number is None:
        raise ValueError(f"{field} is not a number: {value!r}")
    return number


def _integer(value: Any, field: str, row_index: int) -> int:
    number = _decimal(value, field)
    whole = int(number)  # truncates toward zero
    if whole != number:
        logger.warning(f"Row {row_index}: {field} {value!r} truncated to {whole}.")
    return whole


def _normalize_inventory(row: Mapping[str, Any], row_index: int, threshold: int) -> InventoryRecord:
    quantity = _integer(row.get("quantity"), "quantity", row_index)
    return InventoryRecord(
        sku=_text(row.get("sku")),
        asin=_text(row.get("asin")),
        product_name=_text(row.get("product_name")),
        quantity=quantity,
        cost=float(_decimal(row.get("cost"), "cost")),
        price=float(_decimal(row.get("price"), "price")),
        status=classify_status(quantity, threshold),
    )


def _normalize_sale(row: Mapping[str, Any], row_index: int, today: date) -> SaleRecord:
    raw_date = row.get("date")
    if is_blank(raw_date):
        sale_date = today
    else:
        sale_date = parse_date(raw_date)
        if sale_date is None:
            raise ValueError(f"date is not a valid date: {raw_date!r}")

    return SaleRecord(
        date=sale_date,
        sku=_text(row.get("sku")),
        product_name=_text(row.get("product_name")),
        quantity_sold=_integer(row.get("quantity_sold"), "quantity_sold", row_index),
        revenue=float(_decimal(row.get("revenue"), "revenue")),
    )


def normalize(
    mapped_rows: list[Mapping[str, Any]],
    schema: Schema,
    config: Optional[AppConfig] = None,
    today: Optional[date] = None,
) -> list[Union[InventoryRecord, SaleRecord]]:
    """
    Converts a validated batch into canonical records, preserving order.
    `today` is the processing date used for sale rows without a date.
    """
    schema = Schema(schema)
    config = config or AppConfig()
    today = today or date.today()

    records = []
    for index, row in enumerate(mapped_rows, start=1):
        try:
            if schema is Schema.INVENTORY:
                record = _normalize_inventory(row, index, config.low_stock_threshold)
            else:
                record = _normalize_sale(row, index, today)
        except (ValueError, ValidationError) as e:
            raise CoercionError(f"Row {index}: could not normalize {schema.value} row: {e}") from e
        records.append(record)

    logger.info(f"Normalized {len(records)} {schema.value} records.")
    return records


def apply_threshold(records: list[InventoryRecord], config: AppConfig) -> list[InventoryRecord]:
    """Returns copies of the records with status recomputed for the configured threshold."""
    return [
        record.model_copy(
            update={"status": classify_status(record.quantity, config.low_stock_threshold)}
        )
        for record in records
    ]
