"""Exception types raised across the ingestion and export pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schemas import RowError


class StockPulseError(Exception):
    """Base class for every error this package raises on purpose."""


class UnsupportedFormatError(StockPulseError):
    """The upload is neither CSV nor XLSX."""


class EmptyFileError(StockPulseError):
    """The file decoded to zero data rows."""


class MalformedFileError(StockPulseError):
    """The bytes could not be parsed as the declared format."""


class BatchValidationError(StockPulseError):
    """A batch failed validation. Carries every row-level problem found."""

    def __init__(self, errors: list[RowError]):
        self.errors = list(errors)
        preview = "; ".join(str(e) for e in self.errors[:3])
        more = "..." if len(self.errors) > 3 else ""
        super().__init__(f"{len(self.errors)} validation error(s): {preview}{more}")


class CoercionError(StockPulseError):
    """
    A value could not be coerced after a clean validation pass.
    This is an internal contract violation, not a user error.
    """


class NothingToExportError(StockPulseError):
    """An export was requested for an empty record set."""
