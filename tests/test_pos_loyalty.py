from app.domain.loyalty.service import eligible_spend, points_for_spend, redemption_value
from app.domain.pos.repository import TransactionRepository
from app.domain.pos.schemas import TransactionItemInput
from app.models import Customer
from app.models_catalog import Product
from app.models_marketing import Campaign, Coupon, LoyaltyLedger
from app.models_sales import Refund, Transaction


def _checkout(client, headers, customer=None, items=None, **fields):
    items = items if items is not None else []
    subtotal = sum(item["total_price"] for item in items)
    payload = {
        "customer_id": customer.id if customer else None,
        "subtotal": subtotal,
        "total_amount": subtotal,
        "payment_method": "card",
        "items": items,
        "payments": [{"method": "card", "amount": subtotal, "tip_amount": 10.0}],
    }
    payload.update(fields)
    response = client.post("/api/pos/transactions", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# LOYALTY RULES
# ============================================================================


def test_water_never_earns_points():
    items = [
        TransactionItemInput(item_type="product", product_id=1, item_name="Water", total_price=2.0),
        TransactionItemInput(item_type="service", service_id=3, item_name="Wash", total_price=40.5),
    ]
    assert eligible_spend(items, water_product_id=1) == 40.5
    assert points_for_spend(40.5) == 40
    assert redemption_value(100) == 5.0


def test_redeem_requires_minimum(client, owner_headers, make_customer):
    customer = make_customer(loyalty_points_balance=500)

    response = client.post("/api/loyalty/redeem", json={"customer_id": customer.id, "points": 50}, headers=owner_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "A minimum of 100 points is required to redeem"


def test_redeem_insufficient_balance(client, owner_headers, make_customer):
    customer = make_customer(loyalty_points_balance=120)

    response = client.post("/api/loyalty/redeem", json={"customer_id": customer.id, "points": 200}, headers=owner_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Insufficient loyalty points", "balance": 120}


def test_redeem_and_ledger(client, owner_headers, make_customer):
    customer = make_customer(loyalty_points_balance=250)

    response = client.post("/api/loyalty/redeem", json={"customer_id": customer.id, "points": 200}, headers=owner_headers)
    assert response.json() == {"points_redeemed": 200, "discount": 10.0, "new_balance": 50}

    ledger = client.get(f"/api/loyalty/customers/{customer.id}", headers=owner_headers).json()
    assert ledger["balance"] == 50
    assert ledger["entries"][0]["action"] == "redeemed"
    assert ledger["entries"][0]["points_change"] == -200


def test_adjust_cannot_go_negative(client, owner_headers, make_customer):
    customer = make_customer(loyalty_points_balance=10)

    bad = client.post(
        f"/api/loyalty/customers/{customer.id}/adjust",
        json={"points_change": -20, "description": "Correction"},
        headers=owner_headers,
    )
    assert bad.status_code == 400

    ok = client.post(
        f"/api/loyalty/customers/{customer.id}/adjust",
        json={"points_change": 15, "description": "Goodwill"},
        headers=owner_headers,
    )
    assert ok.json() == {"points_change": 15, "new_balance": 25}


# ============================================================================
# CHECKOUT
# ============================================================================


def test_checkout_updates_stock_stats_and_points(client, db, cashier, auth_headers, make_customer, make_product):
    customer = make_customer()
    product = make_product(quantity_on_hand=5)
    water = make_product(name="Water", sku="0000001", retail_price=2.0)

    txn = _checkout(
        client,
        auth_headers(cashier),
        customer,
        items=[
            {"item_type": "product", "product_id": product.id, "item_name": product.name, "quantity": 2, "unit_price": 20.0, "total_price": 40.0},
            {"item_type": "product", "product_id": water.id, "item_name": "Water", "quantity": 1, "unit_price": 2.0, "total_price": 2.0},
            {"item_type": "service", "item_name": "Express Wash", "unit_price": 35.0, "total_price": 35.0},
        ],
    )

    assert txn["status"] == "completed"
    assert txn["receipt_number"].startswith("SD-")
    assert txn["receipt_number"].endswith(f"-{txn['id']}")
    assert txn["employee_id"] == cashier.id
    assert txn["loyalty_points_earned"] == 75
    # Card tips are paid out net of the processing fee
    assert txn["payments"][0]["tip_net"] == 9.5

    db.expire_all()
    db.refresh(product)
    db.refresh(customer)
    assert product.quantity_on_hand == 3
    assert customer.visit_count == 1
    assert customer.lifetime_spend == 77.0
    assert customer.loyalty_points_balance == 75
    assert customer.first_visit_date == customer.last_visit_date


def test_checkout_with_redemption_orders_ledger(client, db, owner_headers, make_customer):
    customer = make_customer(loyalty_points_balance=150)

    _checkout(
        client,
        owner_headers,
        customer,
        items=[{"item_type": "service", "item_name": "Interior", "unit_price": 80.0, "total_price": 80.0}],
        loyalty_points_redeemed=100,
        loyalty_discount=5.0,
    )

    entries = (
        db.query(LoyaltyLedger)
        .filter(LoyaltyLedger.customer_id == customer.id)
        .order_by(LoyaltyLedger.id)
        .all()
    )
    assert [(e.action, e.points_change, e.points_balance) for e in entries] == [
        ("redeemed", -100, 50),
        ("earned", 80, 130),
    ]


def test_redemption_needs_customer(client, owner_headers):
    response = client.post(
        "/api/pos/transactions",
        json={"subtotal": 10, "total_amount": 10, "payment_method": "cash", "loyalty_points_redeemed": 100},
        headers=owner_headers,
    )
    assert response.status_code == 400


def test_coupon_use_is_attributed_to_campaign(client, db, owner_headers):
    campaign = Campaign(name="Spring", channel="sms", sms_template="Hi", status="sent")
    db.add(campaign)
    db.flush()
    coupon = Coupon(code="SPRING", status="active", campaign_id=campaign.id)
    db.add(coupon)
    db.commit()

    _checkout(
        client,
        owner_headers,
        items=[{"item_type": "service", "item_name": "Wash", "unit_price": 50.0, "total_price": 50.0}],
        coupon_id=coupon.id,
    )

    db.expire_all()
    assert db.get(Coupon, coupon.id).use_count == 1
    refreshed = db.get(Campaign, campaign.id)
    assert refreshed.redeemed_count == 1
    assert refreshed.revenue_attributed == 50.0


def test_void_transaction(client, owner_headers, cashier, auth_headers):
    txn = _checkout(
        client,
        owner_headers,
        items=[{"item_type": "custom", "item_name": "Gift wrap", "unit_price": 5.0, "total_price": 5.0}],
    )

    # Cashiers cannot void by default
    denied = client.post(f"/api/pos/transactions/{txn['id']}/void", headers=auth_headers(cashier))
    assert denied.status_code == 403

    voided = client.post(f"/api/pos/transactions/{txn['id']}/void", json={"reason": "Rang twice"}, headers=owner_headers)
    assert voided.status_code == 200
    assert voided.json()["status"] == "voided"
    assert voided.json()["notes"] == "Voided: Rang twice"

    again = client.post(f"/api/pos/transactions/{txn['id']}/void", headers=owner_headers)
    assert again.status_code == 400
    assert again.json()["error"] == "Transaction is already voided"


def test_checkout_removed_when_items_fail(client, db, owner_headers, monkeypatch):
    def broken_children(*args, **kwargs):
        raise RuntimeError("item insert failed")

    monkeypatch.setattr(TransactionRepository, "add_children", broken_children)
    response = client.post(
        "/api/pos/transactions",
        json={
            "subtotal": 5.0,
            "total_amount": 5.0,
            "payment_method": "cash",
            "items": [{"item_type": "custom", "item_name": "Gift wrap", "unit_price": 5.0, "total_price": 5.0}],
        },
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save transaction items"}
    assert db.query(Transaction).count() == 0


# ============================================================================
# REFUNDS
# ============================================================================


def _line_id(txn, name):
    return next(item["id"] for item in txn["items"] if item["item_name"] == name)


def test_full_refund_restocks_and_reverses_points(client, db, cashier, auth_headers, make_customer, make_product):
    customer = make_customer()
    product = make_product(name="Ceramic Spray", quantity_on_hand=5)
    txn = _checkout(
        client,
        auth_headers(cashier),
        customer,
        items=[{"item_type": "product", "product_id": product.id, "item_name": "Ceramic Spray", "quantity": 2, "unit_price": 20.0, "total_price": 40.0}],
    )
    assert txn["loyalty_points_earned"] == 40

    response = client.post(
        f"/api/pos/transactions/{txn['id']}/refunds",
        json={
            "reason": "Wrong product",
            "items": [{"transaction_item_id": _line_id(txn, "Ceramic Spray"), "quantity": 2, "amount": 40.0, "restock": True}],
        },
        headers=auth_headers(cashier),
    )
    assert response.status_code == 201
    refund = response.json()
    assert refund["status"] == "processed"
    assert refund["amount"] == 40.0
    assert refund["processed_by"] == cashier.id
    assert len(refund["items"]) == 1

    db.expire_all()
    assert db.get(Transaction, txn["id"]).status == "refunded"
    assert db.get(Product, product.id).quantity_on_hand == 5
    assert db.get(Customer, customer.id).loyalty_points_balance == 0

    latest = (
        db.query(LoyaltyLedger)
        .filter(LoyaltyLedger.customer_id == customer.id)
        .order_by(LoyaltyLedger.id.desc())
        .first()
    )
    assert (latest.action, latest.points_change, latest.points_balance) == ("adjusted", -40, 0)
    assert latest.description == "Adjusted for refund of $40.00"


def test_partial_refunds_until_fully_refunded(client, db, owner_headers, make_customer, make_product):
    customer = make_customer()
    product = make_product(name="Towel", quantity_on_hand=5)
    txn = _checkout(
        client,
        owner_headers,
        customer,
        items=[
            {"item_type": "product", "product_id": product.id, "item_name": "Towel", "quantity": 2, "unit_price": 20.0, "total_price": 40.0},
            {"item_type": "service", "item_name": "Interior", "unit_price": 60.0, "total_price": 60.0},
        ],
    )
    url = f"/api/pos/transactions/{txn['id']}/refunds"

    first = client.post(
        url, json={"items": [{"transaction_item_id": _line_id(txn, "Interior"), "amount": 30.0}]}, headers=owner_headers
    )
    assert first.status_code == 201
    db.expire_all()
    assert db.get(Transaction, txn["id"]).status == "partial_refund"
    assert db.get(Customer, customer.id).loyalty_points_balance == 70
    # Towels were not restocked
    assert db.get(Product, product.id).quantity_on_hand == 3

    too_much = client.post(
        url, json={"items": [{"transaction_item_id": _line_id(txn, "Towel"), "amount": 80.0}]}, headers=owner_headers
    )
    assert too_much.status_code == 400
    assert too_much.json() == {"error": "Refund exceeds the $70.00 remaining on this transaction"}

    rest = client.post(
        url,
        json={
            "items": [
                {"transaction_item_id": _line_id(txn, "Towel"), "quantity": 2, "amount": 40.0},
                {"transaction_item_id": _line_id(txn, "Interior"), "amount": 30.0},
            ]
        },
        headers=owner_headers,
    )
    assert rest.status_code == 201
    db.expire_all()
    assert db.get(Transaction, txn["id"]).status == "refunded"
    assert db.get(Customer, customer.id).loyalty_points_balance == 0

    closed = client.post(
        url, json={"items": [{"transaction_item_id": _line_id(txn, "Towel"), "amount": 1.0}]}, headers=owner_headers
    )
    assert closed.status_code == 400
    assert closed.json() == {"error": "Transaction cannot be refunded (status: refunded)"}


def test_refund_rejects_voided_and_foreign_items(client, owner_headers):
    txn = _checkout(
        client,
        owner_headers,
        items=[{"item_type": "custom", "item_name": "Gift wrap", "unit_price": 5.0, "total_price": 5.0}],
    )
    other = _checkout(
        client,
        owner_headers,
        items=[{"item_type": "custom", "item_name": "Air freshener", "unit_price": 4.0, "total_price": 4.0}],
    )
    url = f"/api/pos/transactions/{txn['id']}/refunds"

    foreign = client.post(
        url, json={"items": [{"transaction_item_id": _line_id(other, "Air freshener"), "amount": 4.0}]}, headers=owner_headers
    )
    assert foreign.status_code == 400

    zero = client.post(
        url, json={"items": [{"transaction_item_id": _line_id(txn, "Gift wrap"), "amount": 0}]}, headers=owner_headers
    )
    assert zero.json() == {"error": "Refund amount must be greater than zero"}

    client.post(f"/api/pos/transactions/{txn['id']}/void", headers=owner_headers)
    voided = client.post(
        url, json={"items": [{"transaction_item_id": _line_id(txn, "Gift wrap"), "amount": 5.0}]}, headers=owner_headers
    )
    assert voided.status_code == 400
    assert voided.json() == {"error": "Transaction cannot be refunded (status: voided)"}


def test_refund_removed_when_items_fail(client, db, owner_headers, monkeypatch):
    txn = _checkout(
        client,
        owner_headers,
        items=[{"item_type": "custom", "item_name": "Gift wrap", "unit_price": 5.0, "total_price": 5.0}],
    )

    def broken_items(*args, **kwargs):
        raise RuntimeError("refund item insert failed")

    monkeypatch.setattr(TransactionRepository, "add_refund_items", broken_items)
    response = client.post(
        f"/api/pos/transactions/{txn['id']}/refunds",
        json={"items": [{"transaction_item_id": _line_id(txn, "Gift wrap"), "amount": 5.0}]},
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save refund items"}
    assert db.query(Refund).count() == 0
    db.expire_all()
    assert db.get(Transaction, txn["id"]).status == "completed"
