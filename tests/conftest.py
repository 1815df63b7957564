import os

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient

from app import rate_limiter
from app.auth import create_access_token, hash_secret
from app.constants import ROLE_ADMIN, ROLE_CASHIER, ROLE_DETAILER, ROLE_SUPER_ADMIN
from app.database import Base, SessionLocal, engine, get_db
from app.domain.staff.defaults import seed_roles_and_permissions
from app.main import app
from app.models import Customer, Employee, Role, Vehicle
from app.models_catalog import Product, Service, ServicePricing


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_roles_and_permissions(session)
    rate_limiter.memory_cache.clear()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sent_messages(monkeypatch):
    """Replaces Twilio and Resend in every domain that sends, recording what would go out"""
    outbox = []

    async def fake_email(db, to_email, subject, mjml_content, message_type, **kwargs):
        outbox.append({"channel": "email", "to": to_email, "subject": subject, "type": message_type})
        return True, None

    async def fake_quote_sms(db, customer_id, phone, first_name, quote_id, total, link):
        outbox.append({"channel": "sms", "to": phone, "type": "quote"})
        return True, None

    async def fake_appointment_sms(*args, **kwargs):
        outbox.append({"channel": "sms", "type": "appointment"})
        return True, None

    async def fake_campaign_sms(db, customer_id, phone, message, campaign_id):
        outbox.append({"channel": "sms", "to": phone, "body": message, "type": "campaign"})
        return True, None

    monkeypatch.setattr("app.domain.quotes.service.send_customer_email", fake_email)
    monkeypatch.setattr("app.domain.quotes.service.send_quote_sms", fake_quote_sms)
    monkeypatch.setattr("app.domain.appointments.service.send_customer_email", fake_email)
    monkeypatch.setattr("app.domain.appointments.service.send_appointment_confirmation_sms", fake_appointment_sms)
    monkeypatch.setattr("app.domain.marketing.service.send_customer_email", fake_email)
    monkeypatch.setattr("app.domain.marketing.service.send_campaign_sms", fake_campaign_sms)
    return outbox


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_employee(db):
    counter = {"n": 0}

    def _make(role_name=ROLE_SUPER_ADMIN, password="password123", pin=None, **fields):
        counter["n"] += 1
        role = db.query(Role).filter(Role.name == role_name).first()
        employee = Employee(
            first_name=fields.pop("first_name", f"Staff{counter['n']}"),
            last_name=fields.pop("last_name", "Test"),
            email=fields.pop("email", f"staff{counter['n']}@example.com"),
            role_id=role.id,
            status=fields.pop("status", "active"),
            password_hash=hash_secret(password) if password else None,
            pin_hash=hash_secret(pin) if pin else None,
            **fields,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def auth_headers():
    def _headers(employee):
        return {"Authorization": f"Bearer {create_access_token(employee)}"}

    return _headers


@pytest.fixture
def owner(make_employee):
    return make_employee(ROLE_SUPER_ADMIN, first_name="Owner")


@pytest.fixture
def admin(make_employee):
    return make_employee(ROLE_ADMIN, first_name="Admin")


@pytest.fixture
def cashier(make_employee):
    return make_employee(ROLE_CASHIER, first_name="Casey")


@pytest.fixture
def detailer(make_employee):
    return make_employee(ROLE_DETAILER, first_name="Dana")


@pytest.fixture
def owner_headers(owner, auth_headers):
    return auth_headers(owner)


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        values = {
            "first_name": f"Customer{counter['n']}",
            "last_name": "Test",
            "phone": f"+1310555{counter['n']:04d}",
            "email": f"customer{counter['n']}@example.com",
            "tags": [],
        }
        values.update(fields)
        customer = Customer(**values)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_vehicle(db):
    def _make(customer, **fields):
        vehicle = Vehicle(customer_id=customer.id, vehicle_type=fields.pop("vehicle_type", "standard"), **fields)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        values = {
            "name": f"Product {counter['n']}",
            "slug": f"product-{counter['n']}",
            "retail_price": 20.0,
            "cost_price": 8.0,
            "quantity_on_hand": 10,
            "is_taxable": True,
            "is_active": True,
        }
        values.update(fields)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_service(db):
    counter = {"n": 0}

    def _make(pricing=None, **fields):
        counter["n"] += 1
        values = {
            "name": f"Service {counter['n']}",
            "slug": f"service-{counter['n']}",
            "pricing_model": "flat",
            "flat_price": 100.0,
            "base_duration_minutes": 60,
            "is_active": True,
        }
        values.update(fields)
        service = Service(**values)
        db.add(service)
        db.flush()
        for tier in pricing or []:
            db.add(ServicePricing(service_id=service.id, **tier))
        db.commit()
        db.refresh(service)
        return service

    return _make
