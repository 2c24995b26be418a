import logging
from datetime import date

from stockpulse.pipeline import UploadPipeline
from stockpulse.schemas import SaleRecord, Schema

logger = logging.getLogger(__name__)


class SalesUploadPipeline(UploadPipeline):
    schema = Schema.SALES

    def summarize(self, records: list[SaleRecord]) -> None:
        dates = [r.date for r in records]
        logger.info("  > 📊 Stats for sales upload:")
        logger.info(f"    - Rows: {len(records)}")
        logger.info(f"    - Units sold: {sum(r.quantity_sold for r in records)}")
        logger.info(f"    - Revenue: {sum(r.revenue for r in records):.2f}")
        if dates:
            logger.info(f"    - Date range: {min(dates).isoformat()} to {max(dates).isoformat()}")

        future = [d for d in dates if d > date.today()]
        if future:
            logger.warning(f"    - ⚠️  {len(future)} sale(s) dated in the future.")
