import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from stockpulse import exporter, metrics, settings
from stockpulse.errors import StockPulseError
from stockpulse.logger import setup_logger
from stockpulse.schemas import Schema
from stockpulse.uploads import ingest, load_records

logger = logging.getLogger("stockpulse")


def _config_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if getattr(args, "threshold", None) is not None:
        overrides["low_stock_threshold"] = args.threshold
    if getattr(args, "window", None) is not None:
        overrides["date_window_days"] = args.window
    if getattr(args, "currency", None) is not None:
        overrides["currency"] = args.currency
    return overrides


def _window_arg(value: str) -> str:
    text = value.strip().lower()
    if text == "all" or (text.isdigit() and int(text) > 0):
        return text
    raise argparse.ArgumentTypeError(
        f"expected a positive number of days or 'all', got {value!r}"
    )


def run_upload(args: argparse.Namespace) -> int:
    config = settings.load_config(_config_overrides(args))
    path = Path(args.file)
    result = ingest(
        path.read_bytes(),
        Schema(args.type),
        filename=path.name,
        config=config,
        test_mode=args.dry_run,
    )
    if not result.success:
        print(f"Upload rejected ({len(result.errors)} problem(s)):")
        for error in result.errors:
            print(f"  {error}")
        return 1
    print(f"Successfully uploaded {result.row_count} rows!")
    return 0


def run_metrics(args: argparse.Namespace) -> int:
    config = settings.load_config(_config_overrides(args))
    inventory = load_records(Path(args.inventory), Schema.INVENTORY, config)
    sales = load_records(Path(args.sales), Schema.SALES, config) if args.sales else []
    report = metrics.dashboard(inventory, sales, config)
    symbol = config.currency_symbol
    window = f"last {report.sales.window_days} days" if report.sales.window_days else "all time"

    logger.info("\n--- Inventory ---")
    logger.info(f"Total SKUs: {report.totals.sku_count}")
    logger.info(f"Total Stock Units: {report.totals.total_units}")
    logger.info(f"Low Stock Items: {report.totals.low_stock_count}")
    logger.info(f"Out of Stock Items: {report.totals.out_of_stock_count}")
    logger.info(f"Total Inventory Cost: {symbol}{report.totals.total_cost:,.2f}")
    logger.info(f"Total Inventory Value: {symbol}{report.totals.total_value:,.2f}")
    logger.info(
        f"Potential Profit: {symbol}{report.totals.potential_profit:,.2f} "
        f"({report.totals.margin_pct:.1f}% margin)"
    )

    logger.info(f"\n--- Sales ({window}) ---")
    logger.info(f"Units Sold: {report.sales.total_units}")
    logger.info(f"Revenue: {symbol}{report.sales.total_revenue:,.2f}")
    logger.info(f"Average Order Value: {symbol}{report.sales.average_order_value:,.2f}")

    logger.info("\n--- Top Products by Value ---")
    for item in report.top_by_value:
        logger.info(f"{item.sku}  {item.product_name}: {symbol}{item.value:,.2f}")
    return 0


def run_export(args: argparse.Namespace) -> int:
    config = settings.load_config(_config_overrides(args))
    inventory = (
        load_records(Path(args.inventory), Schema.INVENTORY, config) if args.inventory else []
    )
    sales = load_records(Path(args.sales), Schema.SALES, config) if args.sales else []
    payload = exporter.build_export(args.report, args.format, inventory, sales, config)

    out_dir = Path(args.out) if args.out else settings.OUTPUT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / payload.filename
    target.write_bytes(payload.content)
    print(f"✅ Export saved to: {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockpulse", description="Seller inventory and sales reporting."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Validate and ingest a CSV/XLSX file")
    upload.add_argument("file")
    upload.add_argument("--type", choices=[s.value for s in Schema], default="inventory")
    upload.add_argument("--threshold", type=int)
    upload.add_argument("--dry-run", action="store_true", help="Skip saving and webhook post")
    upload.set_defaults(func=run_upload)

    report = sub.add_parser("metrics", help="Print dashboard metrics")
    report.add_argument("--inventory", required=True)
    report.add_argument("--sales")
    report.add_argument("--window", type=_window_arg, help="Days (e.g. 7, 30, 90) or 'all'")
    report.add_argument("--threshold", type=int)
    report.add_argument("--currency")
    report.set_defaults(func=run_metrics)

    export = sub.add_parser("export", help="Export a report as CSV or XLSX")
    export.add_argument("--report", choices=exporter.REPORT_TYPES, required=True)
    export.add_argument("--format", choices=["csv", "xlsx"], default="csv")
    export.add_argument("--inventory")
    export.add_argument("--sales")
    export.add_argument("--threshold", type=int)
    export.add_argument("--currency")
    export.add_argument("--out")
    export.set_defaults(func=run_export)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger("stockpulse", logging.DEBUG if args.verbose else None)
    try:
        return args.func(args)
    except StockPulseError as e:
        logger.error(f"❌ {e}")
        return 1
    except ValidationError as e:
        logger.error(f"❌ Invalid configuration: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
