from typing import Any, Mapping

from .schemas import Schema

# --- Header Alias Tables ---
# The single source of truth for accepted column headers.
# For each canonical field, headers are tried in order (case-sensitive); first present wins.
# The export labels ("Product Name", "Quantity Sold", ...) are included so exported
# files can be uploaded again unchanged.
FIELD_ALIASES: dict[Schema, dict[str, tuple[str, ...]]] = {
    Schema.INVENTORY: {
        "sku": ("sku", "SKU"),
        "asin": ("asin", "ASIN"),
        "product_name": ("product_name", "Product Name", "name"),
        "quantity": ("quantity", "Quantity"),
        "cost": ("cost", "Cost"),
        "price": ("price", "Price"),
    },
    Schema.SALES: {
        "sku": ("sku", "SKU"),
        "product_name": ("product_name", "Product Name", "name"),
        "date": ("date", "Date"),
        "quantity_sold": ("quantity_sold", "Quantity Sold", "quantity"),
        "revenue": ("revenue", "Revenue"),
    },
}


def map_row(raw_row: Mapping[str, Any], schema: Schema) -> dict[str, Any]:
    """
    Renames a raw row's columns to canonical field names.
    Unknown columns are dropped and unmatched fields are left out; the validator
    reports them as missing.
    """
    mapped = {}
    for field, aliases in FIELD_ALIASES[Schema(schema)].items():
        for header in aliases:
            if header in raw_row:
                mapped[field] = raw_row[header]
                break
    return mapped


def map_rows(raw_rows: list[Mapping[str, Any]], schema: Schema) -> list[dict[str, Any]]:
    return [map_row(row, schema) for row in raw_rows]
