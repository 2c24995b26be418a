import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Optional

from . import data_handler, decoder, mapper, normalizer, validator
from .errors import EmptyFileError, MalformedFileError, UnsupportedFormatError
from .schemas import CanonicalRecord, RowError, Schema, UploadResult
from .settings import AppConfig

logger = logging.getLogger(__name__)


class UploadPipeline(ABC):
    """
    Abstract base class for upload pipelines (Inventory, Sales).
    Follows an Extract -> Transform -> Load (ETL) pattern over one uploaded file.

    One instance handles one upload; nothing is shared between runs. A batch
    with any validation error is rejected whole and never reaches load().
    """

    schema: Schema

    def __init__(self, config: Optional[AppConfig] = None, test_mode: bool = False):
        self.config = config or AppConfig()
        self.test_mode = test_mode
        self.report_type = self.schema.value

    def run(
        self,
        data: bytes,
        filename: Optional[str] = None,
        mime: Optional[str] = None,
        today: Optional[date] = None,
    ) -> UploadResult:
        """Orchestrates the pipeline execution for one uploaded buffer."""
        logger.info(f"🚀 STEP: {self.report_type.upper()} UPLOAD ({filename or mime or 'buffer'})")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        try:
            raw_rows = self.extract(data, filename, mime)
        except (UnsupportedFormatError, EmptyFileError, MalformedFileError) as e:
            logger.error(f"❌ Could not read upload: {e}")
            return UploadResult(
                success=False, errors=[RowError(row_index=0, field="file", message=str(e))]
            )

        # --- 2. TRANSFORM ---
        records, errors = self.transform(raw_rows, today)
        if errors:
            logger.error(f"❌ Upload rejected with {len(errors)} validation error(s).")
            for error in errors[:10]:
                logger.error(f"  > {error}")
            return UploadResult(success=False, row_count=len(raw_rows), errors=errors)

        self.summarize(records)

        # --- 3. LOAD ---
        self.load(records, filename)

        logger.info(f"✅ {self.report_type.capitalize()} upload accepted ({len(records)} rows).\n")
        logger.info("=" * 60)
        return UploadResult(success=True, records=records, row_count=len(records))

    def extract(
        self, data: bytes, filename: Optional[str], mime: Optional[str]
    ) -> list[dict[str, Any]]:
        """Resolves the file format and decodes the buffer into raw rows."""
        fmt = decoder.resolve_format(filename, mime)
        return decoder.decode(data, fmt)

    def transform(
        self, raw_rows: list[dict[str, Any]], today: Optional[date] = None
    ) -> tuple[list[CanonicalRecord], list[RowError]]:
        """
        Maps headers, validates the whole batch, then normalizes it.
        Returns (records, []) on success or ([], errors) on rejection.
        """
        mapped_rows = mapper.map_rows(raw_rows, self.schema)

        logger.info("Validating data against schema...")
        errors = validator.validate(mapped_rows, self.schema, self.config)
        if errors:
            return [], errors
        logger.info("✅ Data validation successful.")

        return normalizer.normalize(mapped_rows, self.schema, self.config, today), []

    @abstractmethod
    def summarize(self, records: list[CanonicalRecord]) -> None:
        """Logs a short, schema-specific summary of an accepted batch."""
        pass

    def load(self, records: list[CanonicalRecord], filename: Optional[str] = None):
        """Hands the accepted batch to storage: saves it to disk and posts it to the webhook."""
        if self.test_mode:
            logger.info("🧪 Test Mode: Skipping save and webhook post.")
            return

        data_handler.save_outputs(records, f"{self.report_type}_report")
        data_handler.post_to_webhook(
            records,
            metadata={
                "filename": filename,
                "uploadDate": datetime.now(timezone.utc).isoformat(),
                "rowsProcessed": len(records),
                "status": "Success",
            },
            report_type=self.report_type,
        )
