"""
Campaign audience selection.
Filters narrow the customer table; consent for the campaign channel is applied last.
"""

from datetime import date, timedelta
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import Customer, Vehicle
from ...models_sales import Transaction, TransactionItem


def _consent_clause(channel: str):
    sms_ok = and_(Customer.sms_consent.is_(True), Customer.phone.isnot(None))
    email_ok = and_(Customer.email_consent.is_(True), Customer.email.isnot(None))
    if channel == "sms":
        return sms_ok
    if channel == "email":
        return email_ok
    return or_(sms_ok, email_ok)


def filter_customers(db: Session, filters: Optional[dict], today: Optional[date] = None):
    """Query of customers matching the audience filters, before consent"""
    filters = filters or {}
    today = today or date.today()
    query = db.query(Customer)

    if filters.get("days_since_visit_min") is not None:
        query = query.filter(Customer.last_visit_date <= today - timedelta(days=int(filters["days_since_visit_min"])))
    if filters.get("days_since_visit_max") is not None:
        query = query.filter(Customer.last_visit_date >= today - timedelta(days=int(filters["days_since_visit_max"])))
    if filters.get("min_spend") is not None:
        query = query.filter(Customer.lifetime_spend >= float(filters["min_spend"]))
    if filters.get("has_email"):
        query = query.filter(Customer.email.isnot(None))
    if filters.get("has_phone"):
        query = query.filter(Customer.phone.isnot(None))

    if filters.get("last_service"):
        served = (
            db.query(Transaction.customer_id)
            .join(TransactionItem, TransactionItem.transaction_id == Transaction.id)
            .filter(TransactionItem.service_id == int(filters["last_service"]))
        )
        query = query.filter(Customer.id.in_(served))
    if filters.get("vehicle_type"):
        owners = db.query(Vehicle.customer_id).filter(Vehicle.vehicle_type == filters["vehicle_type"])
        query = query.filter(Customer.id.in_(owners))

    return query


def _has_tags(customer: Customer, tags: list[str]) -> bool:
    customer_tags = customer.tags or []
    return all(tag in customer_tags for tag in tags)


def build_audience(db: Session, filters: Optional[dict], channel: str) -> list[Customer]:
    """Customers who match the filters and consented to the channel"""
    customers = filter_customers(db, filters).filter(_consent_clause(channel)).order_by(Customer.id).all()
    tags = (filters or {}).get("tags") or []
    if tags:
        # JSON containment differs across databases, so tags are matched in Python
        customers = [c for c in customers if _has_tags(c, tags)]
    return customers


def preview_audience(db: Session, filters: Optional[dict], channel: str, sample_size: int = 5) -> dict:
    matching = filter_customers(db, filters).order_by(Customer.id).all()
    tags = (filters or {}).get("tags") or []
    if tags:
        matching = [c for c in matching if _has_tags(c, tags)]
    eligible = build_audience(db, filters, channel)
    return {
        "total_match": len(matching),
        "consent_eligible": len(eligible),
        "sample": [
            {"id": c.id, "first_name": c.first_name, "last_name": c.last_name}
            for c in eligible[:sample_size]
        ],
    }
