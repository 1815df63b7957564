"""
Square Orders API import.

Pulls every completed Square order and writes it as a completed transaction with
line items. Orders already imported (matched on square_transaction_id) and orders
without line items are skipped. Customer visit stats are recomputed afterwards
from all completed transactions.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Customer
from ...models_sales import Transaction, TransactionItem
from ...services import square_service
from ...shared.formatting import cents_to_dollars, round_money
from .classification import classify_item_type

logger = logging.getLogger(__name__)

BATCH_SIZE = 100

TENDER_METHODS = {
    "CARD": "card",
    "CASH": "cash",
    "SQUARE_GIFT_CARD": "gift_card",
    "WALLET": "digital_wallet",
}


def map_payment_method(tenders: Optional[List[dict]]) -> str:
    """The first tender decides; unknown tender types count as card"""
    if not tenders:
        return "card"
    return TENDER_METHODS.get(tenders[0].get("type"), "card")


def money(amount: Optional[dict]) -> float:
    """Square money object ({"amount": cents, "currency": ...}) to dollars"""
    if not amount or not isinstance(amount.get("amount"), int):
        return 0.0
    return cents_to_dollars(amount["amount"])


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """RFC 3339 timestamp to a naive UTC datetime"""
    if not value:
        return None
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _quantity(raw: Any) -> int:
    try:
        quantity = int(float(raw))
    except (TypeError, ValueError):
        return 1
    return quantity or 1


def transform_order(order: dict, customer_mapping: Dict[str, int]) -> dict:
    """Map one Square order to transaction column values plus line item rows"""
    square_customer_id = order.get("customer_id")
    line_items = order.get("line_items") or []

    subtotal_cents = sum((li.get("gross_sales_money") or {}).get("amount", 0) for li in line_items)
    created_at = parse_timestamp(order.get("created_at"))

    transaction = {
        "square_transaction_id": order["id"],
        "customer_id": customer_mapping.get(square_customer_id) if square_customer_id else None,
        "status": "completed",
        "subtotal": cents_to_dollars(subtotal_cents),
        "tax_amount": money(order.get("total_tax_money")),
        "tip_amount": money(order.get("total_tip_money")),
        "discount_amount": money(order.get("total_discount_money")),
        "total_amount": money(order.get("total_money")),
        "payment_method": map_payment_method(order.get("tenders")),
        "transaction_date": parse_timestamp(order.get("closed_at")) or created_at,
        "created_at": created_at,
        "updated_at": parse_timestamp(order.get("updated_at")) or created_at,
    }

    items = []
    for li in line_items:
        name = li.get("name") or "Unknown Item"
        variation = li.get("variation_name")
        items.append(
            {
                "item_type": classify_item_type(name),
                "item_name": name,
                "quantity": _quantity(li.get("quantity")),
                "unit_price": money(li.get("base_price_money")),
                "total_price": money(li.get("total_money")),
                "tax_amount": money(li.get("total_tax_money")),
                "is_taxable": (li.get("total_tax_money") or {}).get("amount", 0) > 0,
                "notes": variation if variation and variation != "Regular" else None,
            }
        )

    return {"transaction": transaction, "items": items, "square_customer_id": square_customer_id}


# ============================================================================
# LOOKUPS
# ============================================================================


def load_customer_mapping(db: Session) -> Dict[str, int]:
    rows = db.query(Customer.square_customer_id, Customer.id).filter(Customer.square_customer_id.isnot(None)).all()
    mapping = {square_id: customer_id for square_id, customer_id in rows}
    logger.info(f"✅ Loaded {len(mapping)} customer mappings")
    return mapping


def load_existing_transaction_ids(db: Session) -> set:
    rows = db.query(Transaction.square_transaction_id).filter(Transaction.square_transaction_id.isnot(None)).all()
    existing = {row[0] for row in rows}
    logger.info(f"✅ Found {len(existing)} existing transactions to skip")
    return existing


def prepare_orders(orders: List[dict], customer_mapping: Dict[str, int], existing_ids: set) -> tuple[list, dict]:
    """Transform and deduplicate; returns (rows to insert, summary counts)"""
    to_insert = []
    summary = {
        "fetched": len(orders),
        "skipped_duplicates": 0,
        "skipped_no_line_items": 0,
        "with_square_customer": 0,
        "with_mapped_customer": 0,
        "service_items": 0,
        "product_items": 0,
    }

    for order in orders:
        if order.get("id") in existing_ids:
            summary["skipped_duplicates"] += 1
            continue
        # Refunds and voids come through without line items
        if not order.get("line_items"):
            summary["skipped_no_line_items"] += 1
            continue

        transformed = transform_order(order, customer_mapping)
        to_insert.append(transformed)

        if order.get("customer_id"):
            summary["with_square_customer"] += 1
            if transformed["transaction"]["customer_id"]:
                summary["with_mapped_customer"] += 1
        for item in transformed["items"]:
            if item["item_type"] == "service":
                summary["service_items"] += 1
            else:
                summary["product_items"] += 1

    summary["ready"] = len(to_insert)
    summary["revenue"] = round_money(sum(o["transaction"]["total_amount"] for o in to_insert))
    return to_insert, summary


# ============================================================================
# WRITES
# ============================================================================


def insert_transactions(db: Session, transformed_orders: list, batch_size: int = BATCH_SIZE) -> dict:
    """Insert in batches; a failed batch is rolled back and counted, later batches still run"""
    logger.info(f"📥 Inserting {len(transformed_orders)} transactions...")
    result = {"inserted": 0, "items_inserted": 0, "errors": 0, "no_customer": 0}

    for start in range(0, len(transformed_orders), batch_size):
        batch = transformed_orders[start : start + batch_size]
        batch_number = start // batch_size + 1
        try:
            item_count = 0
            for order in batch:
                transaction = Transaction(**order["transaction"])
                db.add(transaction)
                db.flush()
                for item in order["items"]:
                    db.add(TransactionItem(transaction_id=transaction.id, **item))
                    item_count += 1
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Batch {batch_number} insert failed: {e}")
            result["errors"] += len(batch)
            continue

        result["inserted"] += len(batch)
        result["items_inserted"] += item_count
        result["no_customer"] += sum(1 for o in batch if not o["transaction"]["customer_id"])

        if (start + batch_size) % 500 == 0 or start + batch_size >= len(transformed_orders):
            logger.info(
                f"  Progress: {result['inserted']}/{len(transformed_orders)} transactions, "
                f"{result['items_inserted']} items"
            )

    return result


def recompute_customer_stats(db: Session) -> int:
    """Visit count, lifetime spend and last visit date from completed transactions"""
    logger.info("🔄 Recomputing customer stats from transaction data...")
    rows = (
        db.query(
            Transaction.customer_id,
            func.count(Transaction.id),
            func.coalesce(func.sum(Transaction.total_amount), 0.0),
            func.max(Transaction.transaction_date),
        )
        .filter(Transaction.customer_id.isnot(None), Transaction.status == "completed")
        .group_by(Transaction.customer_id)
        .all()
    )

    updated = 0
    for customer_id, visit_count, spend, last_visit in rows:
        customer = db.get(Customer, customer_id)
        if not customer:
            continue
        customer.visit_count = visit_count
        customer.lifetime_spend = round_money(spend)
        if last_visit is not None:
            customer.last_visit_date = last_visit.date() if isinstance(last_visit, datetime) else last_visit
        updated += 1
    db.commit()

    logger.info(f"✅ Updated stats for {updated} customers")
    return updated


async def run_orders_import(
    db: Session,
    dry_run: bool = False,
    skip_recompute: bool = False,
    orders: Optional[List[dict]] = None,
) -> dict:
    """
    Full import. Orders are fetched from Square unless passed in.

    Returns the pre-insert summary, plus insert results and the number of
    customers whose stats were recomputed when not a dry run.
    """
    customer_mapping = load_customer_mapping(db)
    existing_ids = load_existing_transaction_ids(db)
    if orders is None:
        orders = await square_service.fetch_completed_orders()

    to_insert, summary = prepare_orders(orders, customer_mapping, existing_ids)
    logger.info(
        f"📊 {summary['fetched']} fetched, {summary['skipped_duplicates']} already imported, "
        f"{summary['skipped_no_line_items']} without line items, {summary['ready']} ready "
        f"(${summary['revenue']:,.2f})"
    )

    report = {"dry_run": dry_run, "summary": summary, "sample": to_insert[:5]}
    if dry_run:
        logger.info("🔍 DRY RUN complete. No data was written.")
        return report

    report["result"] = insert_transactions(db, to_insert)
    report["customers_recomputed"] = 0
    if skip_recompute:
        logger.info("⏭️ Skipping customer stats recomputation")
    elif report["result"]["inserted"] > 0:
        report["customers_recomputed"] = recompute_customer_stats(db)
    return report
