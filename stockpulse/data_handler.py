import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import requests

from . import exporter, settings, utils
from .schemas import CanonicalRecord

logger = logging.getLogger(__name__)


def save_outputs(
    records: Sequence[CanonicalRecord],
    report_name: str,
    output_dir: Optional[Path] = None,
) -> Path:
    """Saves accepted records to a dated CSV (export labels) and conditionally to JSON."""
    output_dir = Path(output_dir or settings.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = output_dir / f"{report_name}_{date_suffix}.csv"
    json_path = output_dir / f"{report_name}_{date_suffix}.json"

    rows = [item.model_dump(mode="json", by_alias=True) for item in records]
    csv_path.write_bytes(exporter.serialize(rows, exporter.CSV))
    logger.info(f"✅ Normalized report saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, default=str)
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return csv_path


def post_to_webhook(
    records: Sequence[CanonicalRecord],
    metadata: dict[str, Any],
    report_type: str,
) -> bool:
    """
    Posts the accepted records and upload metadata to the webhook.
    Returns True when the post succeeded; transport errors are logged, not raised.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting {report_type} data to webhook: {settings.WEBHOOK_URL}")

    payload = {
        "reportType": report_type,
        "metadata": metadata,
        "reportData": [item.model_dump(mode="json", by_alias=True) for item in records],
    }

    try:
        response = requests.post(
            settings.WEBHOOK_URL, json=payload, timeout=settings.WEBHOOK_TIMEOUT
        )
        response.raise_for_status()
        logger.info("✅ Data successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
