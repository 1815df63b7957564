import asyncio
import csv
from datetime import date, datetime

from app.domain.migration.classification import classify_item_type
from app.domain.migration.csv_import import (
    CC_FEE_SKU,
    TransactionFiles,
    customer_from_row,
    customer_tier,
    line_item_from_row,
    map_size_class,
    parse_dollar,
    parse_int,
    run_csv_import,
)
from app.domain.migration.orders import (
    map_payment_method,
    money,
    parse_timestamp,
    prepare_orders,
    run_orders_import,
    transform_order,
)
from app.models import Customer, Vehicle
from app.models_catalog import Product
from app.models_marketing import LoyaltyLedger
from app.models_sales import Payment, Transaction


def _order(order_id="ORD1", customer_id="SQC1", line_items=None):
    if line_items is None:
        line_items = [
            {
                "name": "Express Wash",
                "quantity": "1",
                "variation_name": "Regular",
                "gross_sales_money": {"amount": 5000},
                "base_price_money": {"amount": 5000},
                "total_money": {"amount": 5000},
            },
            {
                "name": "Tire Shine 16oz",
                "quantity": "2",
                "variation_name": "Large",
                "gross_sales_money": {"amount": 2400},
                "base_price_money": {"amount": 1200},
                "total_money": {"amount": 2640},
                "total_tax_money": {"amount": 240},
            },
        ]
    return {
        "id": order_id,
        "customer_id": customer_id,
        "line_items": line_items,
        "total_money": {"amount": 8140},
        "total_tax_money": {"amount": 240},
        "total_tip_money": {"amount": 500},
        "tenders": [{"type": "CASH"}],
        "created_at": "2024-03-01T18:00:00Z",
        "closed_at": "2024-03-01T18:30:00Z",
    }


def _write_csv(path, rows, encoding="utf-8"):
    with open(path, "w", newline="", encoding=encoding) as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0]))
        writer.writeheader()
        writer.writerows(rows)
    return path


# ============================================================================
# CLASSIFICATION
# ============================================================================


def test_classify_item_type():
    assert classify_item_type("Pro Detail") == "service"
    assert classify_item_type("Ceramic Coating 5 Year") == "service"
    assert classify_item_type("Full Service Wash") == "service"
    # Listed retail items win even though they mention detailing
    assert classify_item_type("Sonax Ceramic Ultra Slick Detailer") == "product"
    assert classify_item_type("Gyeon Q2 Mohs 50ml") == "product"
    assert classify_item_type("Nylon Detail Brush") == "product"
    assert classify_item_type("Air Freshener") == "product"
    assert classify_item_type(None) == "product"


# ============================================================================
# ORDERS API
# ============================================================================


def test_order_value_helpers():
    assert map_payment_method(None) == "card"
    assert map_payment_method([{"type": "CASH"}, {"type": "CARD"}]) == "cash"
    assert map_payment_method([{"type": "WALLET"}]) == "digital_wallet"
    assert map_payment_method([{"type": "BANK_ACCOUNT"}]) == "card"

    assert money({"amount": 1234, "currency": "USD"}) == 12.34
    assert money({"amount": "12"}) == 0.0
    assert money(None) == 0.0

    assert parse_timestamp("2024-03-01T10:30:00-08:00") == datetime(2024, 3, 1, 18, 30)
    assert parse_timestamp(None) is None


def test_transform_order():
    result = transform_order(_order(), {"SQC1": 7})
    txn = result["transaction"]
    assert txn["square_transaction_id"] == "ORD1"
    assert txn["customer_id"] == 7
    assert txn["subtotal"] == 74.0
    assert txn["total_amount"] == 81.4
    assert txn["tip_amount"] == 5.0
    assert txn["payment_method"] == "cash"
    assert txn["transaction_date"] == datetime(2024, 3, 1, 18, 30)

    wash, shine = result["items"]
    assert (wash["item_type"], wash["notes"], wash["is_taxable"]) == ("service", None, False)
    assert (shine["item_type"], shine["quantity"], shine["unit_price"]) == ("product", 2, 12.0)
    assert shine["notes"] == "Large"
    assert shine["is_taxable"] is True


def test_prepare_orders_skips_duplicates_and_empty_orders():
    orders = [_order("DUP"), _order("EMPTY", line_items=[]), _order("NEW", customer_id="UNKNOWN")]
    to_insert, summary = prepare_orders(orders, {"SQC1": 7}, existing_ids={"DUP"})

    assert [o["transaction"]["square_transaction_id"] for o in to_insert] == ["NEW"]
    assert summary["fetched"] == 3
    assert summary["skipped_duplicates"] == 1
    assert summary["skipped_no_line_items"] == 1
    assert summary["ready"] == 1
    assert summary["with_square_customer"] == 1
    assert summary["with_mapped_customer"] == 0
    assert (summary["service_items"], summary["product_items"]) == (1, 1)
    assert summary["revenue"] == 81.4


def test_run_orders_import(db, make_customer):
    customer = make_customer(square_customer_id="SQC1")

    dry = asyncio.run(run_orders_import(db, dry_run=True, orders=[_order()]))
    assert dry["summary"]["ready"] == 1
    assert db.query(Transaction).count() == 0

    report = asyncio.run(run_orders_import(db, orders=[_order()]))
    assert report["result"]["inserted"] == 1
    assert report["result"]["items_inserted"] == 2
    assert report["customers_recomputed"] == 1

    db.refresh(customer)
    assert customer.visit_count == 1
    assert customer.lifetime_spend == 81.4
    assert customer.last_visit_date == date(2024, 3, 1)

    again = asyncio.run(run_orders_import(db, orders=[_order()]))
    assert again["summary"]["skipped_duplicates"] == 1
    assert again["result"]["inserted"] == 0


# ============================================================================
# CSV EXPORTS
# ============================================================================


def test_csv_value_helpers():
    assert parse_dollar("$1,234.50") == 1234.5
    assert parse_dollar("n/a") == 0.0
    assert parse_int("3.0") == 3
    assert parse_int("") == 0
    assert map_size_class(" Vehicle Size - Large ") == "suv_3row_van"
    assert map_size_class("Regular") == "sedan"
    assert map_size_class(None) is None


def test_customer_tiers():
    assert customer_tier("+13105550100", None, 2) == 1
    assert customer_tier("+13105550100", None, 0) == 2
    assert customer_tier(None, "a@example.com", 5) == 3
    assert customer_tier(None, None, 5) == 4


def test_customer_from_row():
    values = customer_from_row(
        {
            "First Name": "Ana",
            "Phone Number": "(310) 555-0199",
            "Email Address": "Ana@Example.com",
            "Transaction Count": "3",
            "Lifetime Spend": "$1,200.00",
            "Company Name": "Acme",
            "Creation Source": "Directory",
            "Instant Profile": "Yes",
        }
    )
    assert values["phone"] == "+13105550199"
    assert values["email"] == "ana@example.com"
    assert values["tags"] == ["company:Acme", "source:directory", "instant_profile"]
    assert values["visit_count"] == 3
    assert values["lifetime_spend"] == 1200.0
    assert values["sms_consent"] is False

    assert customer_from_row({"First Name": "Bo", "Email Address": "bo@example.com"})["tags"] == ["incomplete_profile"]
    assert customer_from_row({"First Name": "Cy", "Phone Number": "3105550100"})["tags"] == ["prospect"]
    assert customer_from_row({"First Name": ".", "Phone Number": "3105550100"}) is None
    assert customer_from_row({"First Name": "Nobody"}) is None


def test_line_item_from_row():
    assert line_item_from_row({"SKU": CC_FEE_SKU, "Net Sales": "$3.00"}) is None
    assert line_item_from_row({"Item": "Free", "Gross Sales": "$0.00", "Net Sales": "$0.00"}) is None

    item = line_item_from_row(
        {
            "Item": "Pro Detail",
            "Qty": "2",
            "Gross Sales": "$300.00",
            "Net Sales": "$250.00",
            "Tax": "$0.00",
            "Itemization Type": "Service",
            "Price Point Name": "SUV",
        }
    )
    assert item["item_type"] == "service"
    assert item["unit_price"] == 125.0
    assert item["is_taxable"] is False
    assert item["tier_name"] == "SUV"


def test_run_csv_import(db, tmp_path):
    customers_csv = _write_csv(
        tmp_path / "customers.csv",
        [
            {"Square Customer ID": "SQ1", "First Name": "Ana", "Last Name": "Lopez", "Phone Number": "3105550101",
             "Email Address": "", "Transaction Count": "2", "Lifetime Spend": "$97.00"},
            {"Square Customer ID": "SQ2", "First Name": ".", "Last Name": "", "Phone Number": "3105550102",
             "Email Address": "", "Transaction Count": "1", "Lifetime Spend": "$5.00"},
            {"Square Customer ID": "SQ3", "First Name": "Ghost", "Last Name": "", "Phone Number": "",
             "Email Address": "", "Transaction Count": "0", "Lifetime Spend": ""},
        ],
        encoding="utf-8-sig",
    )
    products_csv = _write_csv(
        tmp_path / "products.csv",
        [
            {"Token": "T1", "Item Name": "Tire Shine", "SKU": "TS1", "Categories": "Tires & Trims", "Price": "$18.00",
             "Default Unit Cost": "$7.00", "Default Vendor Name": "P&S", "Current Quantity Smart Detail": "12",
             "Tax - Sales Tax": "Y"},
            {"Token": "T2", "Item Name": "Water", "SKU": "0000001", "Categories": "Water", "Price": "$2.00",
             "Default Unit Cost": "$0.50", "Default Vendor Name": "", "Current Quantity Smart Detail": "40",
             "Tax - Sales Tax": "N"},
            {"Token": "T3", "Item Name": "Custom Amount", "SKU": "", "Categories": "", "Price": "",
             "Default Unit Cost": "", "Default Vendor Name": "", "Current Quantity Smart Detail": "",
             "Tax - Sales Tax": ""},
        ],
    )
    transactions_csv = _write_csv(
        tmp_path / "transactions-2024.csv",
        [
            {"Date": "2024-01-05", "Time": "10:30:00", "Transaction ID": "TX1", "Event Type": "Payment",
             "Transaction Status": "Complete", "Customer ID": "SQ1", "Net Sales": "$97.00", "Tax": "$0.00",
             "Tip": "$10.00", "Discounts": "$0.00", "Total Collected": "$107.00", "Card": "$107.00", "Cash": "$0.00"},
            {"Date": "2024-01-06", "Time": "09:00:00", "Transaction ID": "TX2", "Event Type": "Refund",
             "Transaction Status": "Complete", "Customer ID": "SQ1", "Net Sales": "-$97.00", "Tax": "$0.00",
             "Tip": "$0.00", "Discounts": "$0.00", "Total Collected": "-$97.00", "Card": "-$97.00", "Cash": "$0.00"},
        ],
    )
    items_csv = _write_csv(
        tmp_path / "items-2024.csv",
        [
            {"Transaction ID": "TX1", "Item": "Pro Detail", "SKU": "", "Qty": "1", "Gross Sales": "$95.00",
             "Net Sales": "$95.00", "Tax": "$0.00", "Itemization Type": "Service", "Price Point Name": "SUV"},
            {"Transaction ID": "TX1", "Item": "Water", "SKU": "0000001", "Qty": "1", "Gross Sales": "$2.00",
             "Net Sales": "$2.00", "Tax": "$0.00", "Itemization Type": "Physical Item", "Price Point Name": ""},
            {"Transaction ID": "TX1", "Item": "CC Fee", "SKU": CC_FEE_SKU, "Qty": "1", "Gross Sales": "$3.00",
             "Net Sales": "$3.00", "Tax": "$0.00", "Itemization Type": "Physical Item", "Price Point Name": ""},
        ],
    )
    files = [TransactionFiles(transactions=transactions_csv, items=items_csv)]

    summary = run_csv_import(db, customers_csv, products_csv, files)
    assert summary.customers == 1
    assert summary.products == 2
    assert (summary.transactions, summary.line_items) == (1, 2)
    assert summary.vehicles == 1
    assert summary.loyalty_customers == 1

    customer = db.query(Customer).filter(Customer.square_customer_id == "SQ1").one()
    assert customer.loyalty_points_balance == 95
    vehicle = db.query(Vehicle).filter(Vehicle.customer_id == customer.id).one()
    assert (vehicle.size_class, vehicle.is_incomplete) == ("truck_suv_2row", True)

    shine = db.query(Product).filter(Product.square_item_id == "T1").one()
    assert (shine.slug, shine.quantity_on_hand, shine.is_taxable) == ("tire-shine", 12, True)

    payment = db.query(Payment).one()
    assert (payment.method, payment.amount, payment.tip_amount) == ("card", 97.0, 10.0)

    # A second run adds nothing new and leaves the bonus balance as it was
    rerun = run_csv_import(db, customers_csv, products_csv, files)
    assert (rerun.customers, rerun.transactions, rerun.vehicles) == (0, 0, 0)
    db.refresh(customer)
    assert customer.loyalty_points_balance == 95
    assert db.query(LoyaltyLedger).filter(LoyaltyLedger.customer_id == customer.id).count() == 2
