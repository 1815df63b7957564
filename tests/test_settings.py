from app.constants import DEFAULT_BUSINESS_HOURS

MONDAY = "2030-06-03"


def test_defaults(client, owner_headers):
    body = client.get("/api/settings", headers=owner_headers).json()
    assert body["business_hours"] == DEFAULT_BUSINESS_HOURS
    assert body["booking_config"] == {"slot_interval_minutes": 30}
    assert body["coupon_type_enforcement"] == "soft"


def test_business_hours_drive_slots(client, owner_headers):
    hours = dict(DEFAULT_BUSINESS_HOURS, monday={"open": "10:00", "close": "12:00"})
    response = client.put("/api/settings/business_hours", json={"value": hours}, headers=owner_headers)
    assert response.status_code == 200

    slots = client.get("/api/appointments/slots", params={"date": MONDAY, "duration": "30"}).json()["slots"]
    assert slots == ["10:00", "10:30", "11:00"]

    client.put("/api/settings/booking_config", json={"value": {"slot_interval_minutes": 60}}, headers=owner_headers)
    slots = client.get("/api/appointments/slots", params={"date": MONDAY, "duration": "30"}).json()["slots"]
    assert slots == ["10:00", "11:00"]


def test_closed_day(client, owner_headers):
    hours = dict(DEFAULT_BUSINESS_HOURS, monday=None)
    client.put("/api/settings/business_hours", json={"value": hours}, headers=owner_headers)

    assert client.get("/api/appointments/slots", params={"date": MONDAY, "duration": "30"}).json() == {"slots": []}


def test_business_hours_validation(client, owner_headers):
    bad_time = client.put(
        "/api/settings/business_hours",
        json={"value": {"monday": {"open": "8am", "close": "18:00"}}},
        headers=owner_headers,
    )
    assert bad_time.status_code == 400
    assert bad_time.json() == {"error": "monday: Time must be in HH:MM format"}

    backwards = client.put(
        "/api/settings/business_hours",
        json={"value": {"tuesday": {"open": "18:00", "close": "08:00"}}},
        headers=owner_headers,
    )
    assert backwards.json() == {"error": "tuesday: open must be before close"}

    missing = client.put(
        "/api/settings/business_hours", json={"value": {"friday": {"open": "08:00"}}}, headers=owner_headers
    )
    assert missing.json() == {"error": "friday needs open and close times"}


def test_other_settings_validation(client, owner_headers):
    assert client.put(
        "/api/settings/booking_config", json={"value": {"slot_interval_minutes": 0}}, headers=owner_headers
    ).status_code == 400
    assert client.put("/api/settings/coupon_type_enforcement", json={"value": "strict"}, headers=owner_headers).status_code == 400
    assert client.put("/api/settings/theme", json={"value": "dark"}, headers=owner_headers).json() == {
        "error": "Unknown setting: theme"
    }

    ok = client.put("/api/settings/coupon_type_enforcement", json={"value": "hard"}, headers=owner_headers)
    assert ok.json() == {"key": "coupon_type_enforcement", "value": "hard"}


def test_settings_need_permission(client, cashier, auth_headers):
    headers = auth_headers(cashier)
    assert client.get("/api/settings", headers=headers).status_code == 200
    assert client.put("/api/settings/coupon_type_enforcement", json={"value": "hard"}, headers=headers).status_code == 403
