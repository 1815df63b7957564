"""
Square CSV export import.

Steps run in foreign-key order:
    1. Customers (tiers 1-3; tier 4 and junk rows are skipped)
    2. Vendors + products
    3. Transactions + line items + payments
    4. Vehicles inferred from service price points
    5. Loyalty welcome bonus from eligible historical spend
"""

import csv
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from dateutil import parser as date_parser
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...constants import WATER_SKU
from ...models import Customer, Employee, Vehicle
from ...models_catalog import Product, ProductCategory, Vendor
from ...models_marketing import LoyaltyLedger
from ...models_sales import Payment, Transaction, TransactionItem
from ...shared.formatting import round_money, slugify
from ...shared.validators import normalize_phone

logger = logging.getLogger(__name__)

CC_FEE_SKU = "305152J"
JUNK_FIRST_NAMES = {".", "7/11"}

CATEGORY_MAP = {
    "Accessories": "accessories",
    "Paint Correction": "paint-correction",
    "Brushes": "brushes",
    "Microfibers": "microfibers",
    "Paint Protection": "paint-protection",
    "All Purpose Cleaners": "cleaners",
    "Cleaners": "cleaners",
    "Tires & Trims": "tires-trims",
    "Interior Care": "interior-care",
    "Scents & Deodorizers": "scents-deodorizers",
    "Soaps & Shampoos": "soaps-shampoos",
    "Tools": "tools",
    "Water": "water",
}

# Square price point name -> vehicle size class
SIZE_MAP = {
    "vehicle size - small": "sedan",
    "car": "sedan",
    "car/truck": "sedan",
    "regular": "sedan",
    "vehicle size - medium": "truck_suv_2row",
    "suv": "truck_suv_2row",
    "suv and van": "truck_suv_2row",
    "truck": "truck_suv_2row",
    "vehicle size - large": "suv_3row_van",
    "van": "suv_3row_van",
}

WATER_NAMES = {"water", "ro water"}


class TransactionFiles(BaseModel):
    """One year of Square exports: the transactions file and its item details file"""

    transactions: Path
    items: Path


class ImportSummary(BaseModel):
    customers: int = 0
    products: int = 0
    transactions: int = 0
    line_items: int = 0
    vehicles: int = 0
    loyalty_customers: int = 0


# ============================================================================
# PARSING HELPERS
# ============================================================================


def read_csv(path: Union[str, Path]) -> list[dict]:
    """Rows as dicts with trimmed values; handles the BOM Square puts on exports"""
    with open(path, newline="", encoding="utf-8-sig") as f:
        return [
            {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            for row in csv.DictReader(f)
            if any((v or "").strip() for v in row.values())
        ]


def parse_dollar(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        return float(str(value).replace("$", "").replace(",", "").strip())
    except ValueError:
        return 0.0


def parse_int(value: Optional[str]) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        return None


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def map_size_class(price_point_name: Optional[str]) -> Optional[str]:
    if not price_point_name:
        return None
    return SIZE_MAP.get(price_point_name.lower().strip())


def _column_starting_with(row: dict, prefix: str) -> Optional[str]:
    """Some export headers carry the location name, e.g. 'Current Quantity Smart Detail'"""
    return next((key for key in row if key.startswith(prefix)), None)


# ============================================================================
# STEP 1: CUSTOMERS
# ============================================================================


def customer_tier(phone: Optional[str], email: Optional[str], transaction_count: int) -> int:
    """
    1: phone + purchases, 2: phone only (prospect),
    3: email only (incomplete profile), 4: unreachable, not imported
    """
    if phone and transaction_count > 0:
        return 1
    if phone:
        return 2
    if email:
        return 3
    return 4


def customer_from_row(row: dict) -> Optional[dict]:
    """Column values for a Customer, or None when the row is skipped"""
    first_name = row.get("First Name", "")
    if first_name in JUNK_FIRST_NAMES:
        return None

    phone = normalize_phone(row.get("Phone Number"))
    email = row.get("Email Address", "").lower() or None
    transaction_count = parse_int(row.get("Transaction Count"))

    tier = customer_tier(phone, email, transaction_count)
    if tier == 4:
        return None

    tags = []
    if row.get("Company Name"):
        tags.append(f"company:{row['Company Name']}")
    if row.get("Creation Source"):
        tags.append(f"source:{row['Creation Source'].lower()}")
    if row.get("Instant Profile") == "Yes":
        tags.append("instant_profile")
    if tier == 2:
        tags.append("prospect")
    if tier == 3:
        tags.append("incomplete_profile")

    return {
        "square_reference_id": row.get("Reference ID") or None,
        "square_customer_id": row.get("Square Customer ID") or None,
        "first_name": first_name or "Unknown",
        "last_name": row.get("Last Name", ""),
        "phone": phone,
        "email": email,
        "birthday": parse_date(row.get("Birthday")),
        "address_line_1": row.get("Street Address 1") or None,
        "address_line_2": row.get("Street Address 2") or None,
        "city": row.get("City") or None,
        "state": row.get("State") or None,
        "zip": row.get("Postal Code") or None,
        "notes": row.get("Memo") or None,
        "tags": tags,
        # Consent is never carried over; customers opt in again
        "sms_consent": False,
        "email_consent": False,
        "visit_count": transaction_count,
        "lifetime_spend": parse_dollar(row.get("Lifetime Spend")),
        "first_visit_date": parse_date(row.get("First Visit")),
        "last_visit_date": parse_date(row.get("Last Visit")),
        "loyalty_points_balance": 0,
    }


def import_customers(db: Session, rows: list[dict]) -> int:
    """Existing customers (same phone or Square id) are left untouched"""
    logger.info(f"📥 Importing customers from {len(rows)} rows")
    tiers = {1: 0, 2: 0, 3: 0, 4: 0}
    imported = 0

    existing_phones = {p for (p,) in db.query(Customer.phone).filter(Customer.phone.isnot(None))}
    existing_square_ids = {
        s for (s,) in db.query(Customer.square_customer_id).filter(Customer.square_customer_id.isnot(None))
    }

    for row in rows:
        values = customer_from_row(row)
        if values is None:
            tiers[4] += 1
            continue
        tiers[customer_tier(values["phone"], values["email"], values["visit_count"])] += 1

        if values["phone"] and values["phone"] in existing_phones:
            continue
        if values["square_customer_id"] and values["square_customer_id"] in existing_square_ids:
            continue

        db.add(Customer(**values))
        if values["phone"]:
            existing_phones.add(values["phone"])
        if values["square_customer_id"]:
            existing_square_ids.add(values["square_customer_id"])
        imported += 1

    db.commit()
    logger.info(f"  Tiers: T1={tiers[1]}, T2={tiers[2]}, T3={tiers[3]}, T4={tiers[4]} (skipped)")
    logger.info(f"✅ Customers imported: {imported}")
    return imported


# ============================================================================
# STEP 2: VENDORS + PRODUCTS
# ============================================================================


def resolve_vendors(db: Session, rows: list[dict]) -> dict[str, int]:
    names = sorted({row.get("Default Vendor Name", "") for row in rows} - {""})
    vendor_map = {}
    for name in names:
        vendor = db.query(Vendor).filter(Vendor.name == name).first()
        if not vendor:
            vendor = Vendor(name=name, is_active=True)
            db.add(vendor)
            db.flush()
        vendor_map[name] = vendor.id
    db.commit()
    logger.info(f"  Vendors created/resolved: {len(vendor_map)}")
    return vendor_map


def unique_slug(name: str, used: set) -> str:
    base = slugify(name) or "product"
    slug = base
    counter = 1
    while slug in used:
        counter += 1
        slug = f"{base}-{counter}"
    used.add(slug)
    return slug


def product_from_row(row: dict, category_map: dict[str, int], vendor_map: dict[str, int]) -> Optional[dict]:
    name = row.get("Item Name", "")
    sku = row.get("SKU", "")
    if sku == CC_FEE_SKU or name.lower() == "custom amount":
        return None

    square_category = row.get("Categories") or row.get("Reporting Category") or ""
    category_slug = CATEGORY_MAP.get(square_category, "uncategorized")
    vendor_name = row.get("Default Vendor Name", "")

    quantity_key = _column_starting_with(row, "Current Quantity")
    alert_key = _column_starting_with(row, "Stock Alert Count")
    tax_key = _column_starting_with(row, "Tax -")

    return {
        "square_item_id": row.get("Token") or None,
        "sku": sku or None,
        "name": name,
        "description": row.get("Description") or None,
        "category_id": category_map.get(category_slug),
        "vendor_id": vendor_map.get(vendor_name) if vendor_name else None,
        "cost_price": parse_dollar(row.get("Default Unit Cost")),
        "retail_price": parse_dollar(row.get("Price")),
        "quantity_on_hand": parse_int(row.get(quantity_key)) if quantity_key else 0,
        "reorder_threshold": (parse_int(row.get(alert_key)) or None) if alert_key else None,
        "is_taxable": row.get(tax_key) == "Y" if tax_key else True,
        "is_loyalty_eligible": True,
        "barcode": row.get("GTIN") or None,
        "is_active": row.get("Archived") != "Y",
    }


def import_products(db: Session, rows: list[dict]) -> int:
    """
    Re-runs update products matched on square_item_id. The slug is never
    changed on update and a cost price already set by hand is kept.
    """
    logger.info(f"📥 Importing products from {len(rows)} rows")
    vendor_map = resolve_vendors(db, rows)
    category_map = {slug: cid for cid, slug in db.query(ProductCategory.id, ProductCategory.slug)}
    used_slugs = {slug for (slug,) in db.query(Product.slug)}

    inserted = updated = 0
    for row in rows:
        values = product_from_row(row, category_map, vendor_map)
        if values is None:
            continue

        existing = None
        if values["square_item_id"]:
            existing = db.query(Product).filter(Product.square_item_id == values["square_item_id"]).first()

        if existing:
            values.pop("square_item_id")
            if existing.cost_price and existing.cost_price > 0:
                values.pop("cost_price")
            for key, value in values.items():
                setattr(existing, key, value)
            updated += 1
        else:
            db.add(Product(slug=unique_slug(values["name"], used_slugs), **values))
            inserted += 1

    db.commit()
    logger.info(f"✅ Products: {inserted} inserted, {updated} updated")
    return inserted + updated


# ============================================================================
# STEP 3: TRANSACTIONS
# ============================================================================


def payment_method_from_amounts(card_amount: float, cash_amount: float) -> Optional[str]:
    if card_amount > 0 and cash_amount > 0:
        return "split"
    if card_amount > 0:
        return "card"
    if cash_amount > 0:
        return "cash"
    return None


def line_item_from_row(item: dict) -> Optional[dict]:
    """CC fee lines and $0 lines are dropped"""
    if item.get("SKU") == CC_FEE_SKU:
        return None
    gross = parse_dollar(item.get("Gross Sales"))
    net = parse_dollar(item.get("Net Sales"))
    if net == 0 and gross == 0:
        return None

    quantity = parse_dollar(item.get("Qty")) or 1
    tax = parse_dollar(item.get("Tax"))
    itemization_type = item.get("Itemization Type", "")
    return {
        "item_type": "service" if itemization_type in ("Service", "Appointments") else "product",
        "item_name": item.get("Item", "") or "Unknown Item",
        "quantity": quantity,
        "unit_price": round_money(net / quantity) if quantity > 0 else net,
        "total_price": net,
        "tax_amount": tax,
        "is_taxable": tax > 0,
        "tier_name": item.get("Price Point Name") or None,
        "notes": itemization_type or None,
    }


def import_transactions(db: Session, transaction_rows: list[dict], item_rows: list[dict]) -> tuple[int, int]:
    """Only completed Payment events are imported; returns (transactions, line items)"""
    customers_by_square_id = {}
    customers_by_ref_id = {}
    for customer_id, square_id, ref_id in db.query(
        Customer.id, Customer.square_customer_id, Customer.square_reference_id
    ):
        if square_id:
            customers_by_square_id[square_id] = customer_id
        if ref_id:
            customers_by_ref_id[ref_id] = customer_id

    employees = {f"{e.first_name} {e.last_name or ''}".strip(): e.id for e in db.query(Employee).all()}
    existing_ids = {
        s for (s,) in db.query(Transaction.square_transaction_id).filter(Transaction.square_transaction_id.isnot(None))
    }

    items_by_transaction: dict[str, list[dict]] = {}
    for item in item_rows:
        if item.get("Transaction ID"):
            items_by_transaction.setdefault(item["Transaction ID"], []).append(item)

    transactions = line_items = 0
    for row in transaction_rows:
        if row.get("Event Type") != "Payment":
            continue
        if row.get("Transaction Status") not in ("Complete", "Completed"):
            continue
        square_id = row.get("Transaction ID")
        if not square_id or square_id in existing_ids:
            continue

        customer_id = customers_by_square_id.get(row.get("Customer ID")) or customers_by_ref_id.get(
            row.get("Customer Reference ID")
        )
        staff_name = row.get("Staff Name", "")
        tip = parse_dollar(row.get("Tip"))
        total_collected = parse_dollar(row.get("Total Collected"))
        method = payment_method_from_amounts(parse_dollar(row.get("Card")), parse_dollar(row.get("Cash")))
        transaction_date = parse_datetime(" ".join(filter(None, [row.get("Date"), row.get("Time")])))

        transaction = Transaction(
            square_transaction_id=square_id,
            customer_id=customer_id,
            employee_id=employees.get(staff_name) if staff_name else None,
            status="completed",
            subtotal=parse_dollar(row.get("Net Sales")),
            tax_amount=parse_dollar(row.get("Tax")),
            tip_amount=tip,
            discount_amount=parse_dollar(row.get("Discounts")),
            total_amount=total_collected,
            payment_method=method,
            loyalty_points_earned=0,
            loyalty_points_redeemed=0,
            loyalty_discount=0.0,
        )
        if transaction_date:
            transaction.transaction_date = transaction_date
        db.add(transaction)
        db.flush()
        existing_ids.add(square_id)
        transactions += 1

        for item in items_by_transaction.get(square_id, []):
            values = line_item_from_row(item)
            if values:
                db.add(TransactionItem(transaction_id=transaction.id, **values))
                line_items += 1

        if method:
            db.add(
                Payment(
                    transaction_id=transaction.id,
                    method="card" if method == "split" else method,
                    amount=round_money(total_collected - tip),
                    tip_amount=tip,
                    tip_net=tip,
                    card_brand=row.get("Card Brand") or None,
                    card_last_four=(row.get("PAN Suffix") or None),
                )
            )

    db.commit()
    logger.info(f"✅ Transactions imported: {transactions}, line items: {line_items}")
    return transactions, line_items


# ============================================================================
# STEP 4: VEHICLES
# ============================================================================


def infer_vehicles(db: Session) -> int:
    """One incomplete vehicle per customer and size class seen on service line items"""
    rows = (
        db.query(Transaction.customer_id, TransactionItem.tier_name)
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
        .filter(
            TransactionItem.item_type == "service",
            TransactionItem.tier_name.isnot(None),
            Transaction.customer_id.isnot(None),
        )
        .all()
    )

    counts: dict[tuple[int, str], int] = {}
    for customer_id, tier_name in rows:
        size_class = map_size_class(tier_name)
        if size_class:
            counts[(customer_id, size_class)] = counts.get((customer_id, size_class), 0) + 1

    created = 0
    for (customer_id, size_class), count in counts.items():
        exists = (
            db.query(Vehicle.id)
            .filter(Vehicle.customer_id == customer_id, Vehicle.size_class == size_class)
            .first()
        )
        if exists:
            continue
        db.add(
            Vehicle(
                customer_id=customer_id,
                vehicle_type="standard",
                size_class=size_class,
                is_incomplete=True,
                notes=(
                    f"Inferred from Square transaction history ({count} service{'s' if count > 1 else ''}). "
                    "Details to be captured on next visit."
                ),
            )
        )
        created += 1

    db.commit()
    logger.info(f"✅ Vehicles created: {created}")
    return created


# ============================================================================
# STEP 5: LOYALTY
# ============================================================================


def is_water_item(item_name: Optional[str], water_names: set) -> bool:
    name = (item_name or "").lower().strip()
    return name in water_names or "water" in name


def calculate_loyalty(db: Session) -> int:
    """
    Welcome bonus of one point per eligible dollar of past spend.
    The balance is set, not added to, so a re-run does not double the bonus
    balance; it does append another ledger row.
    """
    water_names = set(WATER_NAMES)
    water_names.update(name.lower().strip() for (name,) in db.query(Product.name).filter(Product.sku == WATER_SKU))

    customers = (
        db.query(Customer).filter((Customer.visit_count > 0) | (Customer.lifetime_spend > 0)).all()
    )
    updated = total_points = 0
    for customer in customers:
        items = (
            db.query(TransactionItem.item_name, TransactionItem.total_price)
            .join(Transaction, TransactionItem.transaction_id == Transaction.id)
            .filter(Transaction.customer_id == customer.id, Transaction.status == "completed")
            .all()
        )
        spend = sum(max(0.0, price or 0.0) for name, price in items if not is_water_item(name, water_names))
        points = math.floor(spend)
        if points <= 0:
            continue

        customer.loyalty_points_balance = points
        db.add(
            LoyaltyLedger(
                customer_id=customer.id,
                action="welcome_bonus",
                points_change=points,
                points_balance=points,
                description=(
                    f"Migration welcome bonus: {points} points from ${spend:.2f} "
                    "eligible spend (water purchases excluded)"
                ),
            )
        )
        updated += 1
        total_points += points

    db.commit()
    logger.info(f"✅ Loyalty: {updated} customers, {total_points:,} points awarded")
    return updated


def run_csv_import(
    db: Session,
    customers_csv: Path,
    products_csv: Path,
    transaction_files: list[TransactionFiles],
) -> ImportSummary:
    summary = ImportSummary()
    summary.customers = import_customers(db, read_csv(customers_csv))
    summary.products = import_products(db, read_csv(products_csv))
    for files in transaction_files:
        logger.info(f"📥 Processing {files.transactions.name}")
        count, items = import_transactions(db, read_csv(files.transactions), read_csv(files.items))
        summary.transactions += count
        summary.line_items += items
    summary.vehicles = infer_vehicles(db)
    summary.loyalty_customers = calculate_loyalty(db)
    return summary
