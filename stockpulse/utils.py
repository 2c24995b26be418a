import math
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import pandas as pd

# Date formats seen in marketplace and spreadsheet exports, ordered by specificity.
DATE_FORMATS = [
    "%Y-%m-%d",  # ISO: 2025-01-15
    "%Y/%m/%d",  # ISO slash: 2025/01/15
    "%m/%d/%Y",  # US: 01/15/2025
    "%m/%d/%y",  # US short: 01/15/25
    "%d-%m-%Y",  # EU: 15-01-2025
    "%d.%m.%Y",  # EU dotted: 15.01.2025
    "%b %d, %Y",  # Jan 15, 2025
    "%d %b %Y",  # 15 Jan 2025
]

# Day zero of the spreadsheet serial date system.
EXCEL_EPOCH = date(1899, 12, 30)
# Serial for 9999-12-31, the last date Python can represent.
MAX_SERIAL_DATE = 2958465


def get_date_suffix_for_filename(today: Optional[date] = None) -> str:
    """Returns the date as a YYYY-MM-DD string for filenames."""
    return (today or date.today()).strftime("%Y-%m-%d")


def is_blank(value: Any) -> bool:
    """True for None, NaN and strings that are empty once stripped. Zero is not blank."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parses a raw cell into a finite Decimal, or returns None when it is not a number.
    Booleans are rejected even though Python treats them as ints.
    """
    if isinstance(value, bool) or is_blank(value):
        return None
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    # Values like 1e400 are finite decimals but overflow to inf as floats.
    if not result.is_finite() or not math.isfinite(float(result)):
        return None
    return result


def parse_date(value: Any) -> Optional[date]:
    """Parses a raw cell into a calendar date, trying the known formats in order."""
    if isinstance(value, bool) or is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        # Spreadsheet serial number (days since 1899-12-30)
        if not math.isfinite(value) or not 0 < value <= MAX_SERIAL_DATE:
            return None
        return EXCEL_EPOCH + timedelta(days=int(value))

    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Last resort: ISO timestamps such as 2025-01-15T10:30:00Z
    parsed = pd.to_datetime(text, errors="coerce", utc=True, format="ISO8601")
    if pd.isna(parsed):
        return None
    return parsed.date()
