"""
Inventory health and sales metrics.

Computes:
- Stock classification (in stock / low / out)
- Cost, value, profit and margin, per item and in aggregate
- Trailing-window sales totals and a daily revenue series
- Top-N rankings by inventory value and by profit

Every function is pure: inputs are treated as read-only snapshots and each call
returns new objects. Empty input produces zero values, never an error.
"""

import logging
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Union

import pandas as pd

from .schemas import (
    DashboardMetrics,
    InventoryRecord,
    InventoryTotals,
    ItemProfit,
    RankedItem,
    SaleRecord,
    SalesSummary,
    SeriesPoint,
    StockClassification,
    StockStatus,
)
from .settings import AppConfig

logger = logging.getLogger(__name__)

Window = Union[int, str, None]

NUMERIC_SORT_KEYS = {"quantity", "cost", "price"}
TEXT_SORT_KEYS = {"sku", "asin", "product_name", "status"}


def _margin(profit: float, value: float) -> float:
    return profit / value * 100 if value > 0 else 0.0


# --- Stock health ---


def classify_stock(records: Iterable[InventoryRecord]) -> StockClassification:
    """
    Partitions records by their stored status. The normalizer already applied the
    threshold, so this never recomputes it; dashboard and detail views always agree.
    """
    result = StockClassification()
    buckets = {
        StockStatus.OK: result.in_stock,
        StockStatus.LOW: result.low_stock,
        StockStatus.OUT: result.out_of_stock,
    }
    for record in records:
        buckets[record.status].append(record)
    return result


def inventory_totals(records: Iterable[InventoryRecord]) -> InventoryTotals:
    records = list(records)
    total_cost = sum(r.cost * r.quantity for r in records)
    total_value = sum(r.price * r.quantity for r in records)
    potential_profit = total_value - total_cost
    classification = classify_stock(records)

    return InventoryTotals(
        sku_count=len(records),
        total_units=sum(r.quantity for r in records),
        total_cost=total_cost,
        total_value=total_value,
        potential_profit=potential_profit,
        margin_pct=_margin(potential_profit, total_value),
        low_stock_count=len(classification.low_stock),
        out_of_stock_count=len(classification.out_of_stock),
    )


def item_profit(record: InventoryRecord) -> ItemProfit:
    total_cost = record.cost * record.quantity
    total_value = record.price * record.quantity
    unit_profit = record.price - record.cost
    return ItemProfit(
        sku=record.sku,
        product_name=record.product_name,
        quantity=record.quantity,
        unit_profit=unit_profit,
        margin_pct=_margin(unit_profit, record.price),
        total_cost=total_cost,
        total_value=total_value,
        profit=total_value - total_cost,
    )


def item_profits(records: Iterable[InventoryRecord]) -> list[ItemProfit]:
    return [item_profit(r) for r in records]


# --- Rankings ---


def _top(records: Iterable[InventoryRecord], key, n: int) -> list[RankedItem]:
    # sorted() is stable with reverse=True, so ties keep input order.
    ranked = sorted(records, key=key, reverse=True)[: max(n, 0)]
    return [RankedItem(sku=r.sku, product_name=r.product_name, value=key(r)) for r in ranked]


def top_by_value(records: Iterable[InventoryRecord], n: int = 5) -> list[RankedItem]:
    """Top-N by inventory value (quantity x price)."""
    return _top(records, lambda r: r.quantity * r.price, n)


def top_by_profit(records: Iterable[InventoryRecord], n: int = 10) -> list[RankedItem]:
    """Top-N by potential profit held in stock ((price - cost) x quantity)."""
    return _top(records, lambda r: (r.price - r.cost) * r.quantity, n)


# --- Sales ---


def parse_window(value: Window) -> Optional[int]:
    """
    Accepts 7 / "30" / "all" / None. Returns the day count, or None for all time.
    Anything that is not a positive whole number of days falls back to all time.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if not text or text == "all":
            return None
        try:
            value = int(text)
        except ValueError:
            logger.warning(f"Unrecognized sales window {text!r}; using all time.")
            return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning(
            f"Sales window must be a positive number of days, got {value!r}; using all time."
        )
        return None
    return value


def filter_sales_window(
    sales: Iterable[SaleRecord], window_days: Window, today: Optional[date] = None
) -> list[SaleRecord]:
    """Keeps sales dated on or after today - window_days."""
    days = parse_window(window_days)
    sales = list(sales)
    if days is None:
        return sales
    cutoff = (today or date.today()) - timedelta(days=days)
    return [s for s in sales if s.date >= cutoff]


def sales_summary(
    sales: Iterable[SaleRecord], window_days: Window = None, today: Optional[date] = None
) -> SalesSummary:
    days = parse_window(window_days)
    recent = filter_sales_window(sales, days, today)
    total_revenue = sum(s.revenue for s in recent)
    return SalesSummary(
        window_days=days,
        order_count=len(recent),
        total_units=sum(s.quantity_sold for s in recent),
        total_revenue=total_revenue,
        average_order_value=total_revenue / len(recent) if recent else 0.0,
    )


def sales_series(
    sales: Iterable[SaleRecord],
    window_days: Window = None,
    today: Optional[date] = None,
    limit: Optional[int] = None,
) -> list[SeriesPoint]:
    """
    Daily revenue/units points in ascending date order, one point per day.
    `limit` keeps only the most recent N days.
    """
    recent = filter_sales_window(sales, window_days, today)
    if not recent:
        return []

    df = pd.DataFrame(
        {
            "date": [s.date for s in recent],
            "revenue": [s.revenue for s in recent],
            "units": [s.quantity_sold for s in recent],
        }
    )
    daily = df.groupby("date", sort=True)[["revenue", "units"]].sum().reset_index()
    if limit is not None:
        daily = daily.tail(max(limit, 0))

    return [
        SeriesPoint(date=row["date"], revenue=float(row["revenue"]), units=int(row["units"]))
        for row in daily.to_dict("records")
    ]


# --- Inventory table view ---


def search_inventory(records: Iterable[InventoryRecord], term: str) -> list[InventoryRecord]:
    """Case-insensitive substring match over SKU, product name and ASIN."""
    records = list(records)
    needle = (term or "").strip().lower()
    if not needle:
        return records
    return [
        r
        for r in records
        if needle in r.sku.lower()
        or needle in r.product_name.lower()
        or (r.asin and needle in r.asin.lower())
    ]


def sort_inventory(
    records: Iterable[InventoryRecord], key: str = "sku", descending: bool = False
) -> list[InventoryRecord]:
    if key in NUMERIC_SORT_KEYS:
        sort_key: Any = lambda r: getattr(r, key)
    elif key in TEXT_SORT_KEYS:
        sort_key = lambda r: str(getattr(r, key) or "").lower()
    else:
        raise ValueError(f"Cannot sort inventory by '{key}'")
    return sorted(records, key=sort_key, reverse=descending)


# --- Dashboard ---


def dashboard(
    inventory: Iterable[InventoryRecord],
    sales: Iterable[SaleRecord],
    config: Optional[AppConfig] = None,
    today: Optional[date] = None,
) -> DashboardMetrics:
    """Bundles every derived view the dashboard needs from one snapshot."""
    config = config or AppConfig()
    inventory = list(inventory)
    sales = list(sales)
    return DashboardMetrics(
        currency=config.currency,
        totals=inventory_totals(inventory),
        classification=classify_stock(inventory),
        sales=sales_summary(sales, config.date_window_days, today),
        series=sales_series(sales, config.date_window_days, today),
        top_by_value=top_by_value(inventory, 5),
        top_by_profit=top_by_profit(inventory, 10),
        item_profits=item_profits(inventory),
    )
