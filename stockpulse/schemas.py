import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Schema(str, Enum):
    """Target record type for an upload."""

    INVENTORY = "inventory"
    SALES = "sales"


class StockStatus(str, Enum):
    OK = "OK"
    LOW = "Low"
    OUT = "Out"


class InventoryRecord(BaseModel):
    """
    Defines the data contract for a single, normalized inventory row.
    Aliases double as the human-readable column labels used in exported files.
    """

    # Lets us build models from field names, while exports use the friendly aliases.
    model_config = ConfigDict(populate_by_name=True, frozen=True, allow_inf_nan=False)

    sku: str = Field(..., min_length=1, alias="SKU")
    asin: str = Field(default="", alias="ASIN")
    product_name: str = Field(..., min_length=1, alias="Product Name")
    quantity: int = Field(..., ge=0, alias="Quantity")
    cost: float = Field(..., ge=0, alias="Cost")
    price: float = Field(..., ge=0, alias="Price")
    # Derived by the normalizer from quantity and the configured threshold.
    status: StockStatus = Field(..., alias="Status")


class SaleRecord(BaseModel):
    """Defines the data contract for a single, normalized sales row."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, allow_inf_nan=False)

    date: datetime.date = Field(..., alias="Date")
    sku: str = Field(..., min_length=1, alias="SKU")
    product_name: str = Field(..., min_length=1, alias="Product Name")
    quantity_sold: int = Field(..., ge=0, alias="Quantity Sold")
    revenue: float = Field(..., ge=0, alias="Revenue")


CanonicalRecord = Union[InventoryRecord, SaleRecord]


class RowError(BaseModel):
    """A single problem found in an uploaded batch. row_index is 1-based; 0 means the whole file."""

    model_config = ConfigDict(frozen=True)

    row_index: int = Field(..., ge=0)
    field: str
    message: str

    def __str__(self) -> str:
        if self.row_index == 0:
            return self.message
        return f"Row {self.row_index}: {self.message}"


class UploadResult(BaseModel):
    success: bool
    records: list[CanonicalRecord] = Field(default_factory=list)
    row_count: int = 0
    errors: list[RowError] = Field(default_factory=list)


# --- Derived metrics ---


class StockClassification(BaseModel):
    in_stock: list[InventoryRecord] = Field(default_factory=list)
    low_stock: list[InventoryRecord] = Field(default_factory=list)
    out_of_stock: list[InventoryRecord] = Field(default_factory=list)


class InventoryTotals(BaseModel):
    sku_count: int = 0
    total_units: int = 0
    total_cost: float = 0.0
    total_value: float = 0.0
    potential_profit: float = 0.0
    margin_pct: float = 0.0
    low_stock_count: int = 0
    out_of_stock_count: int = 0


class ItemProfit(BaseModel):
    sku: str
    product_name: str
    quantity: int
    unit_profit: float
    margin_pct: float
    total_cost: float
    total_value: float
    profit: float


class RankedItem(BaseModel):
    sku: str
    product_name: str
    value: float


class SalesSummary(BaseModel):
    window_days: Optional[int] = None
    order_count: int = 0
    total_units: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0


class SeriesPoint(BaseModel):
    date: datetime.date
    revenue: float
    units: int


class DashboardMetrics(BaseModel):
    currency: str
    totals: InventoryTotals
    classification: StockClassification
    sales: SalesSummary
    series: list[SeriesPoint] = Field(default_factory=list)
    top_by_value: list[RankedItem] = Field(default_factory=list)
    top_by_profit: list[RankedItem] = Field(default_factory=list)
    item_profits: list[ItemProfit] = Field(default_factory=list)


class ExportPayload(BaseModel):
    content: bytes
    filename: str
    media_type: str
