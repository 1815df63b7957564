from app.database import contains_pattern
from app.models_sales import Transaction


def test_create_normalizes_contact_details(client, owner_headers):
    response = client.post(
        "/api/customers",
        json={"first_name": " Maria ", "phone": "(310) 555-0142", "email": "Maria@Example.COM"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["first_name"] == "Maria"
    assert body["phone"] == "+13105550142"
    assert body["email"] == "maria@example.com"
    assert body["tags"] == []
    assert body["loyalty_points_balance"] == 0


def test_invalid_phone_is_rejected(client, owner_headers):
    response = client.post("/api/customers", json={"first_name": "A", "phone": "555-01"}, headers=owner_headers)
    assert response.status_code == 400
    assert "Phone number must be 10 digits" in response.json()["error"]


def test_duplicate_phone_conflicts(client, owner_headers, make_customer):
    existing = make_customer()
    response = client.post(
        "/api/customers", json={"first_name": "Copy", "phone": existing.phone}, headers=owner_headers
    )
    assert response.status_code == 409
    assert response.json() == {"error": "A customer with this phone number already exists"}


def test_search_and_pagination(client, owner_headers, make_customer):
    make_customer(first_name="Ana", last_name="Lopez")
    make_customer(first_name="Ben", last_name="Ng")
    make_customer(first_name="Ana", last_name="Silva")

    body = client.get("/api/customers", params={"search": "ana s"}, headers=owner_headers).json()
    assert body["total"] == 1
    assert body["customers"][0]["last_name"] == "Silva"

    page = client.get("/api/customers", params={"limit": 2, "page": 2}, headers=owner_headers).json()
    assert page["total"] == 3
    assert len(page["customers"]) == 1
    assert (page["page"], page["limit"]) == (2, 2)


def test_search_treats_wildcards_literally(client, owner_headers, make_customer):
    make_customer(first_name="Ana", last_name="Lopez")
    make_customer(first_name="Ben", last_name="50%_Off")

    assert client.get("/api/customers", params={"search": "%"}, headers=owner_headers).json()["total"] == 1
    assert client.get("/api/customers", params={"search": "_"}, headers=owner_headers).json()["total"] == 1
    assert contains_pattern(" 50%_Off ") == "%50\\%\\_off%"


def test_update_rules(client, owner_headers, make_customer):
    customer = make_customer()
    other = make_customer()

    blank = client.patch(f"/api/customers/{customer.id}", json={"first_name": "  "}, headers=owner_headers)
    assert blank.json() == {"error": "First name is required"}

    taken = client.patch(f"/api/customers/{customer.id}", json={"phone": other.phone}, headers=owner_headers)
    assert taken.status_code == 409

    ok = client.patch(f"/api/customers/{customer.id}", json={"tags": ["vip"], "sms_consent": True}, headers=owner_headers)
    assert ok.json()["tags"] == ["vip"]
    assert ok.json()["sms_consent"] is True


def test_delete_blocked_by_history(client, db, owner_headers, make_customer):
    kept = make_customer()
    db.add(Transaction(customer_id=kept.id, total_amount=10.0))
    db.commit()

    blocked = client.delete(f"/api/customers/{kept.id}", headers=owner_headers)
    assert blocked.status_code == 400

    gone = make_customer()
    assert client.delete(f"/api/customers/{gone.id}", headers=owner_headers).json() == {"success": True}
    assert client.get(f"/api/customers/{gone.id}", headers=owner_headers).status_code == 404


def test_delete_needs_permission(client, cashier, auth_headers, make_customer):
    response = client.delete(f"/api/customers/{make_customer().id}", headers=auth_headers(cashier))
    assert response.status_code == 403


def test_vehicles(client, owner_headers, make_customer):
    customer = make_customer()

    created = client.post(
        f"/api/customers/{customer.id}/vehicles",
        json={"size_class": "sedan", "year": 2021, "make": "Honda", "model": "Civic"},
        headers=owner_headers,
    )
    assert created.status_code == 201
    vehicle = created.json()
    assert vehicle["vehicle_type"] == "standard"

    bad = client.post(f"/api/customers/{customer.id}/vehicles", json={"size_class": "bus"}, headers=owner_headers)
    assert bad.status_code == 400

    updated = client.patch(
        f"/api/customers/{customer.id}/vehicles/{vehicle['id']}", json={"color": "Blue"}, headers=owner_headers
    )
    assert updated.json()["color"] == "Blue"
    assert updated.json()["is_incomplete"] is False

    listed = client.get(f"/api/customers/{customer.id}/vehicles", headers=owner_headers).json()
    assert [v["make"] for v in listed] == ["Honda"]

    assert client.delete(
        f"/api/customers/{customer.id}/vehicles/{vehicle['id']}", headers=owner_headers
    ).json() == {"success": True}


def test_vehicle_belongs_to_customer(client, owner_headers, make_customer, make_vehicle):
    owner_a = make_customer()
    owner_b = make_customer()
    vehicle = make_vehicle(owner_a)

    response = client.patch(
        f"/api/customers/{owner_b.id}/vehicles/{vehicle.id}", json={"color": "Red"}, headers=owner_headers
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Vehicle not found"}
