"""
Square CSV export import runner
Usage: python import_square_data.py <export_dir>

Expected layout under <export_dir>:
    Customers/*.csv
    Products/*.csv
    Transactions/<year>/transactions-*.csv and items-*.csv
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from app import models, models_catalog, models_cms, models_marketing, models_messaging, models_sales  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.domain.migration.csv_import import TransactionFiles, run_csv_import

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def find_single(directory: Path) -> Path:
    files = sorted(directory.glob("*.csv"))
    if not files:
        raise FileNotFoundError(f"No CSV export found in {directory}")
    return files[-1]


def find_transaction_files(directory: Path) -> list[TransactionFiles]:
    pairs = []
    for year_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
        transactions = sorted(year_dir.glob("transactions-*.csv"))
        items = sorted(year_dir.glob("items-*.csv"))
        if transactions and items:
            pairs.append(TransactionFiles(transactions=transactions[0], items=items[0]))
        else:
            logger.warning(f"⚠️ Skipping {year_dir}: missing transactions or items export")
    return pairs


def main(export_dir: Path):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        summary = run_csv_import(
            db,
            customers_csv=find_single(export_dir / "Customers"),
            products_csv=find_single(export_dir / "Products"),
            transaction_files=find_transaction_files(export_dir / "Transactions"),
        )
    finally:
        db.close()

    logger.info("============================")
    logger.info("✅ Import Complete!")
    logger.info(f"  Customers: {summary.customers}")
    logger.info(f"  Products: {summary.products}")
    logger.info(f"  Transactions: {summary.transactions}")
    logger.info(f"  Line Items: {summary.line_items}")
    logger.info(f"  Vehicles (inferred): {summary.vehicles}")
    logger.info(f"  Loyalty (customers): {summary.loyalty_customers}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        logger.error("Usage: python import_square_data.py <export_dir>")
        sys.exit(1)

    try:
        main(Path(sys.argv[1]))
    except Exception as e:
        logger.error(f"❌ Import failed: {e}")
        sys.exit(1)
