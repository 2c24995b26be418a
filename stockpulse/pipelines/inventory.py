import logging

from stockpulse import metrics
from stockpulse.pipeline import UploadPipeline
from stockpulse.schemas import InventoryRecord, Schema

logger = logging.getLogger(__name__)


class InventoryUploadPipeline(UploadPipeline):
    schema = Schema.INVENTORY

    def summarize(self, records: list[InventoryRecord]) -> None:
        totals = metrics.inventory_totals(records)
        logger.info("  > 📊 Stats for inventory upload:")
        logger.info(f"    - SKUs: {totals.sku_count}")
        logger.info(f"    - Units in stock: {totals.total_units}")
        logger.info(
            f"    - Low stock (<= {self.config.low_stock_threshold}): {totals.low_stock_count}"
        )
        logger.info(f"    - Out of stock: {totals.out_of_stock_count}")

        seen = set()
        duplicates = []
        for record in records:
            if record.sku in seen and record.sku not in duplicates:
                duplicates.append(record.sku)
            seen.add(record.sku)
        if duplicates:
            logger.warning(
                f"    - ⚠️  Duplicate SKUs in batch ({len(duplicates)}): {', '.join(duplicates)}"
            )
