from app.constants import ROLE_CASHIER, ROLE_DETAILER


def test_login_success(client, make_employee):
    employee = make_employee(email="owner@example.com", password="s3cret-pass")

    response = client.post("/api/auth/login", json={"email": " Owner@Example.com ", "password": "s3cret-pass"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["employee"]["id"] == employee.id
    assert body["employee"]["is_super"] is True

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"


def test_login_wrong_password(client, make_employee):
    make_employee(email="owner@example.com", password="right-password")

    response = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_inactive_employee_cannot_login(client, make_employee):
    make_employee(email="gone@example.com", password="password123", status="inactive")

    response = client.post("/api/auth/login", json={"email": "gone@example.com", "password": "password123"})
    assert response.status_code == 401


def test_pin_login(client, make_employee):
    cashier = make_employee(ROLE_CASHIER, pin="4321")

    response = client.post("/api/auth/pin-login", json={"pin": "4321"})
    assert response.status_code == 200
    assert response.json()["employee"]["id"] == cashier.id
    assert response.json()["employee"]["can_access_pos"] is True

    assert client.post("/api/auth/pin-login", json={"pin": "0000"}).json() == {"error": "Invalid PIN"}


def test_pin_login_without_pos_access(client, make_employee):
    make_employee(ROLE_DETAILER, pin="1111")

    response = client.post("/api/auth/pin-login", json={"pin": "1111"})
    assert response.status_code == 403


def test_pin_must_be_four_to_six_digits(client):
    response = client.post("/api/auth/pin-login", json={"pin": "12"})
    assert response.status_code == 400
    assert "details" in response.json()


def test_pin_login_is_rate_limited(client):
    for _ in range(10):
        assert client.post("/api/auth/pin-login", json={"pin": "9999"}).status_code == 401

    blocked = client.post("/api/auth/pin-login", json={"pin": "9999"})
    assert blocked.status_code == 429
    assert "Retry-After" in blocked.headers
    assert blocked.json()["error"].startswith("Too many attempts")


def test_invalid_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
