from datetime import date

from app.constants import ROLE_DETAILER
from app.domain.appointments.repository import AppointmentRepository
from app.domain.appointments.scheduling import (
    add_minutes_to_time,
    find_available_detailer,
    minutes_to_time,
    sunday_based_weekday,
    time_to_minutes,
)
from app.domain.appointments.service import format_date_label, format_time_label
from app.models import EmployeeSchedule
from app.models_sales import Appointment

MONDAY = date(2030, 6, 3)
SUNDAY = date(2030, 6, 2)


def _book(client, headers, customer, service, start="10:00", **fields):
    payload = {
        "customer_id": customer.id,
        "scheduled_date": MONDAY.isoformat(),
        "scheduled_start_time": start,
        "services": [{"service_id": service.id}],
    }
    payload.update(fields)
    response = client.post("/api/appointments", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_time_helpers():
    assert time_to_minutes("08:30") == 510
    assert minutes_to_time(510) == "08:30"
    assert add_minutes_to_time("23:30", 60) == "00:30"
    assert sunday_based_weekday(SUNDAY) == 0
    assert sunday_based_weekday(MONDAY) == 1


def test_labels():
    assert format_time_label("14:30") == "2:30 PM"
    assert format_time_label("00:05") == "12:05 AM"
    assert format_date_label(MONDAY) == "Monday, June 3"


def test_slots_for_open_day(client):
    response = client.get("/api/appointments/slots", params={"date": MONDAY.isoformat(), "duration": "60"})
    slots = response.json()["slots"]
    # 60 minutes of work plus the 30 minute turnover must end by 18:00
    assert slots[0] == "08:00"
    assert slots[-1] == "16:30"
    assert len(slots) == 18


def test_slots_closed_day(client):
    response = client.get("/api/appointments/slots", params={"date": SUNDAY.isoformat(), "duration": "60"})
    assert response.json() == {"slots": []}


def test_slots_bad_parameters(client):
    assert client.get("/api/appointments/slots", params={"date": MONDAY.isoformat()}).status_code == 400
    assert client.get("/api/appointments/slots", params={"date": "June 3", "duration": "60"}).json() == {
        "error": "Invalid date format"
    }
    assert client.get("/api/appointments/slots", params={"date": MONDAY.isoformat(), "duration": "0"}).json() == {
        "error": "Invalid duration"
    }


def test_booked_time_is_removed_from_slots(client, owner_headers, make_customer, make_service):
    _book(client, owner_headers, make_customer(), make_service(base_duration_minutes=60))

    slots = client.get("/api/appointments/slots", params={"date": MONDAY.isoformat(), "duration": "60"}).json()["slots"]
    for taken in ("09:00", "09:30", "10:00", "10:30"):
        assert taken not in slots
    assert "08:30" in slots
    assert "11:00" in slots


def test_booking_prices_and_duration(client, owner_headers, make_customer, make_service):
    customer = make_customer()
    wash = make_service(flat_price=80.0, base_duration_minutes=90)
    wax = make_service(flat_price=40.0, base_duration_minutes=30)

    appointment = _book(
        client,
        owner_headers,
        customer,
        wash,
        start="09:00",
        services=[{"service_id": wash.id}, {"service_id": wax.id, "price": 35.0}],
    )
    assert appointment["scheduled_end_time"] == "11:00"
    assert appointment["subtotal"] == 115.0
    assert appointment["tax_amount"] == 0.0
    assert appointment["total_amount"] == 115.0
    assert appointment["status"] == "confirmed"


def test_mobile_surcharge_only_when_mobile(client, owner_headers, make_customer, make_service):
    service = make_service(flat_price=100.0)
    mobile = _book(client, owner_headers, make_customer(), service, is_mobile=True, mobile_surcharge=25.0, mobile_address="1 Main St")
    shop = _book(client, owner_headers, make_customer(), service, start="13:00", mobile_surcharge=25.0)

    assert mobile["total_amount"] == 125.0
    assert shop["total_amount"] == 100.0
    assert shop["mobile_surcharge"] == 0.0


def test_unknown_service_is_rejected(client, owner_headers, make_customer):
    response = client.post(
        "/api/appointments",
        json={
            "customer_id": make_customer().id,
            "scheduled_date": MONDAY.isoformat(),
            "scheduled_start_time": "10:00",
            "services": [{"service_id": 404}],
        },
        headers=owner_headers,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Service 404 not found"}


def test_auto_assign_skips_busy_detailer(client, owner_headers, make_employee, make_customer, make_service):
    first = make_employee(ROLE_DETAILER)
    second = make_employee(ROLE_DETAILER)
    service = make_service()

    a = _book(client, owner_headers, make_customer(), service)
    b = _book(client, owner_headers, make_customer(), service)
    assert a["employee_id"] == first.id
    assert b["employee_id"] == second.id


def test_auto_assign_honours_schedules(db, make_employee):
    morning = make_employee(ROLE_DETAILER)
    evening = make_employee(ROLE_DETAILER)
    db.add_all(
        [
            EmployeeSchedule(employee_id=morning.id, day_of_week=1, start_time="07:00", end_time="12:00", is_available=True),
            EmployeeSchedule(employee_id=evening.id, day_of_week=1, start_time="12:00", end_time="20:00", is_available=True),
        ]
    )
    db.commit()

    assert find_available_detailer(db, MONDAY, "13:00", "15:00") == evening.id
    assert find_available_detailer(db, MONDAY, "08:00", "10:00") == morning.id


def test_no_detailers_falls_back_to_owner(db, owner):
    assert find_available_detailer(db, MONDAY, "10:00", "11:00") == owner.id


def test_cancel_and_closed_edits(client, owner_headers, make_customer, make_service):
    appointment = _book(client, owner_headers, make_customer(), make_service())

    cancelled = client.post(
        f"/api/appointments/{appointment['id']}/cancel", json={"reason": "Rain"}, headers=owner_headers
    ).json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "Rain"

    edit = client.patch(f"/api/appointments/{appointment['id']}", json={"job_notes": "x"}, headers=owner_headers)
    assert edit.status_code == 400
    assert edit.json()["error"] == "Cannot edit a cancelled appointment"


def test_status_change(client, owner_headers, make_customer, make_service):
    appointment = _book(client, owner_headers, make_customer(), make_service())
    response = client.patch(
        f"/api/appointments/{appointment['id']}/status", json={"status": "in_progress"}, headers=owner_headers
    )
    assert response.json()["status"] == "in_progress"


def test_notify_customer(client, owner_headers, make_customer, make_service, sent_messages):
    appointment = _book(client, owner_headers, make_customer(email=None), make_service())

    response = client.post(
        f"/api/appointments/{appointment['id']}/notify", json={"method": "both"}, headers=owner_headers
    )
    assert response.json() == {
        "success": True,
        "sent_via": ["sms"],
        "errors": ["Customer has no email address"],
    }
    assert [m["type"] for m in sent_messages] == ["appointment"]


def test_detailer_can_view_but_not_book(client, detailer, auth_headers, make_customer, make_service):
    headers = auth_headers(detailer)
    assert client.get("/api/appointments", headers=headers).status_code == 200
    response = client.post(
        "/api/appointments",
        json={
            "customer_id": make_customer().id,
            "scheduled_date": MONDAY.isoformat(),
            "scheduled_start_time": "10:00",
            "services": [{"service_id": make_service().id}],
        },
        headers=headers,
    )
    assert response.status_code == 403


def test_appointment_removed_when_services_fail(
    client, db, owner_headers, make_customer, make_service, monkeypatch
):
    def broken_services(*args, **kwargs):
        raise RuntimeError("service insert failed")

    monkeypatch.setattr(AppointmentRepository, "add_services", broken_services)
    response = client.post(
        "/api/appointments",
        json={
            "customer_id": make_customer().id,
            "scheduled_date": MONDAY.isoformat(),
            "scheduled_start_time": "10:00",
            "services": [{"service_id": make_service().id}],
        },
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save appointment services"}
    assert db.query(Appointment).count() == 0
