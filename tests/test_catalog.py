from types import SimpleNamespace

from app.domain.catalog.pricing import CONTACT_FOR_PRICING, format_service_price, resolve_tier_price


def _service(pricing_model, pricing=None, **fields):
    values = {
        "pricing_model": pricing_model,
        "pricing": pricing or [],
        "flat_price": None,
        "custom_starting_price": None,
        "per_unit_price": None,
        "per_unit_label": None,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def _tier(price=0.0, sedan=None, truck=None, van=None, size_aware=False):
    return SimpleNamespace(
        price=price,
        is_vehicle_size_aware=size_aware,
        vehicle_size_sedan_price=sedan,
        vehicle_size_truck_suv_price=truck,
        vehicle_size_suv_van_price=van,
    )


def test_display_prices():
    assert format_service_price(_service("flat", flat_price=49.0)) == "$49.00"
    assert format_service_price(_service("flat")) == CONTACT_FOR_PRICING
    assert format_service_price(_service("custom", custom_starting_price=1200.0)) == "From $1,200.00"
    assert format_service_price(_service("per_unit", per_unit_price=15.0, per_unit_label="panel")) == "$15.00/panel"
    assert format_service_price(_service("per_unit", per_unit_price=15.0)) == "$15.00/unit"
    assert format_service_price(_service("scope", [_tier(300.0), _tier(150.0)])) == "From $150.00"
    assert format_service_price(_service("vehicle_size", [_tier(99.0, sedan=120.0, truck=150.0, van=180.0)])) == "From $120.00"
    assert format_service_price(_service("vehicle_size", [_tier(99.0)])) == "From $99.00"
    assert format_service_price(_service("vehicle_size")) == CONTACT_FOR_PRICING
    assert format_service_price(_service("mystery")) == CONTACT_FOR_PRICING


def test_resolve_tier_price():
    tier = _tier(100.0, sedan=120.0, truck=150.0, size_aware=True)
    assert resolve_tier_price(tier, "sedan") == 120.0
    assert resolve_tier_price(tier, "truck_suv_2row") == 150.0
    # No van price set, so the base price applies
    assert resolve_tier_price(tier, "suv_3row_van") == 100.0
    assert resolve_tier_price(tier, None) == 100.0
    assert resolve_tier_price(_tier(100.0, sedan=120.0), "sedan") == 100.0


def test_public_menu_shows_display_price(client, make_service):
    make_service(name="Express Wash", flat_price=35.0)
    make_service(name="Hidden", is_active=False)

    menu = client.get("/api/catalog/services").json()
    assert [s["name"] for s in menu] == ["Express Wash"]
    assert menu[0]["display_price"] == "$35.00"


def test_create_service_with_tiers(client, owner_headers):
    response = client.post(
        "/api/catalog/services",
        json={
            "name": "Paint Correction & Polish",
            "pricing_model": "scope",
            "pricing": [
                {"tier_name": "one_step", "price": 400.0, "display_order": 1},
                {"tier_name": "two_step", "price": 700.0, "display_order": 2},
            ],
        },
        headers=owner_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "paint-correction-and-polish"
    assert [t["tier_name"] for t in body["pricing"]] == ["one_step", "two_step"]
    assert body["display_price"] == "From $400.00"


def test_product_slugs_are_unique(client, owner_headers):
    first = client.post("/api/catalog/products", json={"name": "Tire Shine"}, headers=owner_headers).json()
    second = client.post("/api/catalog/products", json={"name": "Tire  Shine!"}, headers=owner_headers).json()
    assert first["slug"] == "tire-shine"
    assert second["slug"] == "tire-shine-2"


def test_name_needs_letters(client, owner_headers):
    response = client.post("/api/catalog/products", json={"name": "!!!"}, headers=owner_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Name must contain letters or numbers"}


def test_delete_deactivates(client, owner_headers, make_product):
    product = make_product()
    assert client.delete(f"/api/catalog/products/{product.id}", headers=owner_headers).json() == {"success": True}
    assert client.get(f"/api/catalog/products/{product.id}", headers=owner_headers).json()["is_active"] is False


def test_catalog_changes_need_permission(client, cashier, auth_headers):
    response = client.post("/api/catalog/products", json={"name": "Wax"}, headers=auth_headers(cashier))
    assert response.status_code == 403
