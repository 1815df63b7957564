"""
Square Orders API import runner
Usage:
    DRY_RUN=true python run_square_import.py         # preview only, no writes
    python run_square_import.py                      # full import
    SKIP_RECOMPUTE=true python run_square_import.py  # import without recomputing customer stats
"""
import asyncio
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from app import models, models_catalog, models_cms, models_marketing, models_messaging, models_sales  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.domain.migration.orders import run_orders_import
from app.services.square_service import SquareAPIError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

DRY_RUN = os.getenv("DRY_RUN") == "true"
SKIP_RECOMPUTE = os.getenv("SKIP_RECOMPUTE") == "true"


def print_report(report: dict):
    summary = report["summary"]
    logger.info("──────────────── IMPORT SUMMARY ────────────────")
    logger.info(f"  Total Square orders fetched:     {summary['fetched']}")
    logger.info(f"  Already imported (skipped):      {summary['skipped_duplicates']}")
    logger.info(f"  No line items (skipped):         {summary['skipped_no_line_items']}")
    logger.info(f"  Ready to import:                 {summary['ready']}")
    logger.info(f"  Orders with Square customer:     {summary['with_square_customer']}")
    logger.info(f"  Mapped to local customer:        {summary['with_mapped_customer']}")
    logger.info(f"  Service items:                   {summary['service_items']}")
    logger.info(f"  Product items:                   {summary['product_items']}")
    logger.info(f"  Total revenue to import:         ${summary['revenue']:,.2f}")

    if report["dry_run"]:
        for order in report["sample"]:
            txn = order["transaction"]
            items = ", ".join(f"{i['item_name']} [{i['item_type']}]" for i in order["items"])
            logger.info(
                f"  {txn['transaction_date']:%Y-%m-%d} | ${txn['total_amount']:>8.2f} | "
                f"{txn['payment_method']:<6} | customer: {'✓' if txn['customer_id'] else '✗'} | items: {items}"
            )
        return

    result = report["result"]
    logger.info("──────────────── INSERT RESULTS ────────────────")
    logger.info(f"  Transactions inserted:       {result['inserted']}")
    logger.info(f"  Transaction items inserted:  {result['items_inserted']}")
    logger.info(f"  Failed:                      {result['errors']}")
    logger.info(f"  No customer linked:          {result['no_customer']}")
    logger.info(f"  Customers recomputed:        {report['customers_recomputed']}")


async def main():
    logger.info(f"🚀 Square transaction import ({'DRY RUN' if DRY_RUN else 'LIVE IMPORT'})")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        report = await run_orders_import(db, dry_run=DRY_RUN, skip_recompute=SKIP_RECOMPUTE)
    finally:
        db.close()
    print_report(report)
    logger.info("✅ Import complete.")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except SquareAPIError as e:
        logger.error(f"❌ Square import failed: {e}")
        sys.exit(1)
