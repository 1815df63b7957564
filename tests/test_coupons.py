from datetime import datetime, timedelta
from types import SimpleNamespace

from app.domain.coupons.engine import (
    calculate_coupon_discount,
    check_conditions,
    check_customer_targeting,
    format_reward_line,
)
from app.domain.coupons.repository import CouponRepository
from app.domain.coupons.schemas import CartItem
from app.models_marketing import Coupon


def _coupon(**fields):
    values = {
        "customer_id": None,
        "customer_tags": None,
        "tag_match_mode": "any",
        "target_customer_type": None,
        "condition_logic": "and",
        "requires_product_ids": None,
        "requires_service_ids": None,
        "requires_product_category_ids": None,
        "requires_service_category_ids": None,
        "min_purchase": None,
        "max_customer_visits": None,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def _reward(**fields):
    values = {
        "applies_to": "order",
        "discount_type": "percentage",
        "discount_value": 10.0,
        "max_discount": None,
        "target_product_id": None,
        "target_service_id": None,
        "target_product_category_id": None,
        "target_service_category_id": None,
    }
    values.update(fields)
    return SimpleNamespace(**values)


# ============================================================================
# ENGINE
# ============================================================================


def test_percentage_reward_respects_cap():
    items = [CartItem(item_type="service", service_id=1, item_name="Full Detail", unit_price=300.0)]
    reward = _reward(discount_value=20.0, max_discount=50.0)
    assert calculate_coupon_discount([reward], items, 300.0) == 50.0


def test_discount_never_exceeds_subtotal():
    items = [CartItem(item_type="product", product_id=1, item_name="Wax", unit_price=15.0)]
    rewards = [_reward(discount_type="flat", discount_value=10.0), _reward(discount_type="flat", discount_value=10.0)]
    assert calculate_coupon_discount(rewards, items, 15.0) == 15.0


def test_free_targeted_service():
    items = [
        CartItem(item_type="service", service_id=7, item_name="Engine Bay", unit_price=45.0),
        CartItem(item_type="product", product_id=3, item_name="Towel", unit_price=5.0, quantity=2),
    ]
    reward = _reward(applies_to="service", discount_type="free", target_service_id=7)
    assert calculate_coupon_discount([reward], items, 55.0) == 45.0


def test_conditions_and_or_logic():
    items = [CartItem(item_type="product", product_id=5, item_name="Spray", unit_price=10.0)]

    strict = _coupon(requires_service_ids=[9], min_purchase=5.0)
    result = check_conditions(strict, items, 10.0)
    assert not result.passed
    assert result.failed_conditions == ["required service"]
    assert result.missing == ["service"]

    lenient = _coupon(requires_service_ids=[9], min_purchase=5.0, condition_logic="or")
    assert check_conditions(lenient, items, 10.0).passed


def test_visit_limit_without_customer():
    coupon = _coupon(max_customer_visits=0)
    at_register = check_conditions(coupon, [], 0.0, None)
    assert not at_register.passed
    assert at_register.failed_conditions == ["visit count limit"]
    assert check_conditions(coupon, [], 0.0, None, unknown_customer_is_new=True).passed
    regular = SimpleNamespace(visit_count=4)
    assert not check_conditions(coupon, [], 0.0, regular).passed


def test_customer_type_soft_and_hard_enforcement():
    coupon = _coupon(target_customer_type="professional")
    customer = SimpleNamespace(id=1, tags=[], customer_type="enthusiast")

    soft = check_customer_targeting(coupon, customer, "soft")
    assert soft.passed
    assert soft.warning == "This coupon is intended for Professional customers"

    hard = check_customer_targeting(coupon, customer, "hard")
    assert not hard.passed


def test_tag_targeting_all_mode():
    coupon = _coupon(customer_tags=["vip", "fleet"], tag_match_mode="all")
    assert not check_customer_targeting(coupon, SimpleNamespace(id=1, tags=["vip"], customer_type=None)).passed
    assert check_customer_targeting(coupon, SimpleNamespace(id=1, tags=["fleet", "vip"], customer_type=None)).passed


def test_format_reward_line():
    assert format_reward_line(_reward(discount_value=20.0, max_discount=50.0)) == "20% off entire order (max $50.00)"
    assert (
        format_reward_line(_reward(applies_to="product", discount_type="free", target_product_id=2), {("product", 2): "Tire Shine"})
        == "Free Tire Shine"
    )
    assert format_reward_line(_reward(applies_to="service", discount_type="flat", discount_value=5.0)) == "$5.00 off any service"


# ============================================================================
# API
# ============================================================================


def _create(client, headers, **fields):
    payload = {
        "name": "Ten off",
        "code": "save 10",
        "min_purchase": 50.0,
        "rewards": [{"applies_to": "order", "discount_type": "percentage", "discount_value": 10}],
    }
    payload.update(fields)
    response = client.post("/api/coupons", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_normalizes_code_and_rejects_duplicates(client, owner_headers):
    coupon = _create(client, owner_headers)
    assert coupon["code"] == "SAVE10"
    assert coupon["status"] == "active"
    assert len(coupon["rewards"]) == 1

    duplicate = client.post("/api/coupons", json={"code": "save10"}, headers=owner_headers)
    assert duplicate.status_code == 409


def test_generated_code_when_none_given(client, owner_headers):
    coupon = _create(client, owner_headers, code=None)
    assert len(coupon["code"]) == 8


def test_validate_coupon(client, owner_headers):
    _create(client, owner_headers)

    too_small = client.post("/api/coupons/validate", json={"code": "save10", "subtotal": 30.0})
    assert too_small.status_code == 400
    assert too_small.json()["error"] == "Coupon requires minimum purchase of $50.00"

    ok = client.post("/api/coupons/validate", json={"code": "SAVE10", "subtotal": 120.0})
    assert ok.status_code == 200
    body = ok.json()
    assert body["total_discount"] == 12.0
    assert body["description"] == "Order $12.00 off"


def test_validate_unknown_and_expired(client, owner_headers):
    assert client.post("/api/coupons/validate", json={"code": "NOPE"}).status_code == 404

    past = (datetime.utcnow() - timedelta(days=1)).isoformat()
    _create(client, owner_headers, code="OLD", expires_at=past)
    response = client.post("/api/coupons/validate", json={"code": "OLD", "subtotal": 100.0})
    assert response.status_code == 400
    assert response.json()["error"] == "Coupon has expired"


def test_enable_disable_transitions(client, owner_headers):
    coupon = _create(client, owner_headers)

    assert client.post(f"/api/coupons/{coupon['id']}/enable", headers=owner_headers).status_code == 400

    disabled = client.post(f"/api/coupons/{coupon['id']}/disable", headers=owner_headers)
    assert disabled.json()["status"] == "disabled"

    rejected = client.post("/api/coupons/validate", json={"code": "SAVE10", "subtotal": 100.0})
    assert rejected.json()["error"] == "Coupon is disabled"

    enabled = client.post(f"/api/coupons/{coupon['id']}/enable", headers=owner_headers)
    assert enabled.json()["status"] == "active"


def test_delete_only_disables(client, owner_headers):
    coupon = _create(client, owner_headers)
    assert client.delete(f"/api/coupons/{coupon['id']}", headers=owner_headers).json() == {"success": True}
    assert client.get(f"/api/coupons/{coupon['id']}", headers=owner_headers).json()["status"] == "disabled"


def test_coupon_admin_is_limited_to_admins(client, cashier, admin, auth_headers):
    assert client.get("/api/coupons", headers=auth_headers(cashier)).status_code == 403
    assert client.get("/api/coupons", headers=auth_headers(admin)).status_code == 200


def test_available_promotions_groups(client, owner_headers, cashier, auth_headers, make_customer):
    customer = make_customer()
    _create(client, owner_headers, code="BIG", min_purchase=200.0)
    _create(client, owner_headers, code="MINE", min_purchase=None, customer_id=customer.id)

    response = client.post(
        "/api/coupons/available",
        json={
            "customer_id": customer.id,
            "subtotal": 100.0,
            "items": [{"item_type": "service", "service_id": 1, "item_name": "Wash", "unit_price": 100.0}],
        },
        headers=auth_headers(cashier),
    )
    assert response.status_code == 200
    body = response.json()
    assert [p["code"] for p in body["for_you"]] == ["MINE"]
    assert [p["code"] for p in body["upsell"]] == ["BIG"]
    assert body["upsell"][0]["missing_items"] == ["min_purchase:200"]
    assert body["eligible"] == []


def test_new_customer_coupon_at_register_needs_a_customer(client, owner_headers, cashier, auth_headers):
    _create(client, owner_headers, code="FIRST", min_purchase=None, max_customer_visits=0)
    cart = {"subtotal": 100.0, "items": [{"item_type": "service", "item_name": "Wash", "unit_price": 100.0}]}

    walk_in = client.post("/api/coupons/available", json=cart, headers=auth_headers(cashier)).json()
    assert walk_in["eligible"] == []
    assert [p["code"] for p in walk_in["upsell"]] == ["FIRST"]

    online = client.post("/api/coupons/validate", json={"code": "FIRST", "phone": "3105559999", **cart})
    assert online.status_code == 200


def test_coupon_removed_when_rewards_fail(client, db, owner_headers, monkeypatch):
    def broken_rewards(*args, **kwargs):
        raise RuntimeError("reward insert failed")

    monkeypatch.setattr(CouponRepository, "replace_rewards", broken_rewards)
    response = client.post(
        "/api/coupons",
        json={"code": "BROKEN", "rewards": [{"applies_to": "order", "discount_type": "flat", "discount_value": 5}]},
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create coupon rewards"}
    assert db.query(Coupon).count() == 0
