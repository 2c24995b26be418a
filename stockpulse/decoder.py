"""
Decodes uploaded CSV / XLSX buffers into loosely-typed row dicts.

Every cell leaving this module is a str, int or float so the mapper and
validator never branch on spreadsheet-specific types (Timestamps, numpy
scalars, NaN).
"""

import io
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional
from zipfile import BadZipFile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .errors import EmptyFileError, MalformedFileError, UnsupportedFormatError

logger = logging.getLogger(__name__)

CSV = "csv"
XLSX = "xlsx"
SUPPORTED_FORMATS = (CSV, XLSX)

EXTENSION_FORMATS = {".csv": CSV, ".xlsx": XLSX}

MIME_FORMATS = {
    "text/csv": CSV,
    "application/csv": CSV,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": XLSX,
}

RawRow = dict[str, Any]


def resolve_format(filename: Optional[str] = None, mime: Optional[str] = None) -> str:
    """
    Infers 'csv' or 'xlsx' from a filename extension or MIME type.
    The extension wins when both are given. A bare 'csv' / 'xlsx' token is accepted too.
    """
    if filename:
        token = filename.strip().lower()
        if token in SUPPORTED_FORMATS:
            return token
        suffix = Path(token).suffix
        if suffix:
            if suffix in EXTENSION_FORMATS:
                return EXTENSION_FORMATS[suffix]
            raise UnsupportedFormatError(
                f"Unsupported file type '{suffix}'. Please upload CSV or XLSX files."
            )

    if mime:
        media_type = mime.split(";", 1)[0].strip().lower()
        if media_type in MIME_FORMATS:
            return MIME_FORMATS[media_type]

    raise UnsupportedFormatError(
        f"Unsupported file type ({filename or mime or 'unknown'}). "
        "Please upload CSV or XLSX files."
    )


def _raw_cell(value: Any) -> Any:
    """Collapses a decoded cell into the uniform raw representation (str, int or float)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (pd.Timestamp, datetime, date)):
        if pd.isna(value):
            return None
        return value.strftime("%Y-%m-%d")
    if hasattr(value, "item"):
        # numpy scalar -> python scalar
        value = value.item()
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, int):
        return value
    return str(value)


def _read_csv(data: bytes) -> pd.DataFrame:
    # Everything is read as text: "0" stays "0" and "NA" is not turned into a missing value.
    read_options = dict(
        dtype=str, keep_default_na=False, skip_blank_lines=True, sep=","
    )
    try:
        return pd.read_csv(io.BytesIO(data), encoding="utf-8-sig", **read_options)
    except UnicodeDecodeError:
        logger.info("UTF-8 decoding failed. Retrying with 'latin-1'.")
        return pd.read_csv(io.BytesIO(data), encoding="latin-1", **read_options)


def _read_xlsx(data: bytes) -> pd.DataFrame:
    # First worksheet only; the first row is the header.
    df = pd.read_excel(io.BytesIO(data), sheet_name=0, engine="openpyxl")
    df.columns = [str(col) for col in df.columns]
    return df


def _to_rows(df: pd.DataFrame, drop_empty_cells: bool) -> list[RawRow]:
    rows = []
    for record in df.to_dict("records"):
        row = {}
        for key, value in record.items():
            cell = _raw_cell(value)
            if drop_empty_cells and cell is None:
                continue
            row[str(key)] = cell
        # A row with only blank cells is a blank line, not data.
        if all(
            cell is None or (isinstance(cell, str) and not cell.strip())
            for cell in row.values()
        ):
            continue
        rows.append(row)
    return rows


def decode(data: bytes, declared_format: str) -> list[RawRow]:
    """
    Decodes a raw file buffer into an ordered list of row dicts keyed by the
    header text found in the source.

    Raises UnsupportedFormatError, MalformedFileError or EmptyFileError.
    """
    fmt = declared_format.strip().lower().lstrip(".")
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            f"Unsupported file type '{declared_format}'. Please upload CSV or XLSX files."
        )

    if not data or not data.strip():
        raise EmptyFileError("File is empty or invalid format")

    try:
        if fmt == CSV:
            df = _read_csv(data)
        else:
            df = _read_xlsx(data)
    except pd.errors.EmptyDataError as e:
        raise EmptyFileError("File is empty or invalid format") from e
    except (
        pd.errors.ParserError,
        UnicodeDecodeError,
        ValueError,
        KeyError,
        OSError,
        BadZipFile,
        InvalidFileException,
    ) as e:
        raise MalformedFileError(f"Unable to read the {fmt.upper()} file: {e}") from e

    rows = _to_rows(df, drop_empty_cells=(fmt == XLSX))
    if not rows:
        raise EmptyFileError("File is empty or invalid format")

    logger.info(f"Decoded {len(rows)} rows from {fmt.upper()} input.")
    return rows


def decode_file(path: Path) -> list[RawRow]:
    """Reads a file from disk and decodes it using its suffix to pick the format."""
    path = Path(path)
    return decode(path.read_bytes(), resolve_format(path.name))
