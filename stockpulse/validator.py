"""
Batch validation gate.

Checks every mapped row against the required-field and type rules for its
schema and collects all problems in one pass. Nothing here mutates the rows
or raises for bad data: an empty result is the only signal that a batch may
be normalized.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from .errors import BatchValidationError
from .schemas import RowError, Schema
from .settings import AppConfig
from .utils import is_blank, parse_date, to_decimal

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[Schema, tuple[str, ...]] = {
    Schema.INVENTORY: ("sku", "product_name", "quantity", "cost", "price"),
    Schema.SALES: ("sku", "product_name", "date", "quantity_sold", "revenue"),
}

NUMERIC_FIELDS = ("quantity", "cost", "price", "quantity_sold", "revenue")

DATE_FIELDS = ("date",)


def _check_row(
    row: Mapping[str, Any], row_index: int, required: tuple[str, ...], fields: tuple[str, ...]
) -> list[RowError]:
    errors = []
    for field in fields:
        value = row.get(field)
        if is_blank(value):
            if field in required:
                errors.append(RowError(row_index=row_index, field=field, message=f"Missing {field}"))
            continue

        if field in NUMERIC_FIELDS:
            number = to_decimal(value)
            if number is None:
                errors.append(
                    RowError(row_index=row_index, field=field, message=f"{field} must be a number")
                )
            elif number < 0:
                errors.append(
                    RowError(
                        row_index=row_index, field=field, message=f"{field} must not be negative"
                    )
                )
        elif field in DATE_FIELDS and parse_date(value) is None:
            errors.append(
                RowError(row_index=row_index, field=field, message=f"{field} must be a valid date")
            )
    return errors


def validate(
    mapped_rows: list[Mapping[str, Any]],
    schema: Schema,
    config: Optional[AppConfig] = None,
) -> list[RowError]:
    """
    Returns every validation problem in the batch, ordered by row and then by field.
    Row indexes are 1-based positions in the decoded sequence.
    """
    schema = Schema(schema)
    config = config or AppConfig()

    # Field order drives error order; the date check runs even when it is optional.
    fields = REQUIRED_FIELDS[schema]
    required = fields
    if schema is Schema.SALES and not config.require_sale_date:
        required = tuple(f for f in fields if f != "date")

    errors: list[RowError] = []
    row_count = 0
    for index, row in enumerate(mapped_rows, start=1):
        row_count = index
        if not isinstance(row, Mapping):
            errors.append(RowError(row_index=index, field="row", message="Row is not a record"))
            continue
        errors.extend(_check_row(row, index, required, fields))

    if errors:
        logger.warning(
            f"Validation found {len(errors)} problem(s) across {row_count} {schema.value} rows."
        )
    return errors


def raise_for_errors(errors: list[RowError]) -> None:
    """Raises BatchValidationError when the batch has any problem."""
    if errors:
        raise BatchValidationError(errors)
