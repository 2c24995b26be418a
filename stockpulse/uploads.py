import logging
from datetime import date
from pathlib import Path
from typing import Optional

from stockpulse import decoder, mapper, normalizer, validator
from stockpulse.pipeline import UploadPipeline
from stockpulse.pipelines.inventory import InventoryUploadPipeline
from stockpulse.pipelines.sales import SalesUploadPipeline
from stockpulse.schemas import CanonicalRecord, Schema, UploadResult
from stockpulse.settings import AppConfig

logger = logging.getLogger(__name__)

# --- Pipeline Registry ---
# To support a new upload type, add its schema and pipeline here.
PIPELINE_REGISTRY: dict[Schema, type[UploadPipeline]] = {
    Schema.INVENTORY: InventoryUploadPipeline,
    Schema.SALES: SalesUploadPipeline,
}


def ingest(
    data: bytes,
    schema: Schema,
    filename: Optional[str] = None,
    mime: Optional[str] = None,
    config: Optional[AppConfig] = None,
    test_mode: bool = False,
    today: Optional[date] = None,
) -> UploadResult:
    """Runs one uploaded file through a fresh pipeline for its schema."""
    pipeline = PIPELINE_REGISTRY[Schema(schema)](config=config, test_mode=test_mode)
    return pipeline.run(data, filename=filename, mime=mime, today=today)


def load_records(
    path: Path, schema: Schema, config: Optional[AppConfig] = None
) -> list[CanonicalRecord]:
    """
    Reads a previously saved or exported report back into canonical records.
    The file goes through the same map -> validate -> normalize chain as an upload,
    so inventory status reflects the current threshold.
    """
    path = Path(path)
    schema = Schema(schema)
    logger.info(f"Loading {schema.value} records from {path.name}")

    mapped_rows = mapper.map_rows(decoder.decode_file(path), schema)
    validator.raise_for_errors(validator.validate(mapped_rows, schema, config))
    return normalizer.normalize(mapped_rows, schema, config)
