"""Quote service - Business logic for estimates"""

import logging
import string
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import APP_URL
from ...constants import APPOINTMENT_BUFFER_MINUTES, BUSINESS_NAME
from ...email_service import send_customer_email
from ...email_templates import quote_estimate_template
from ...errors import (
    NotFoundError,
    PersistenceError,
    QuoteDraftOnlyError,
    QuoteNotConvertibleError,
    QuoteNotFoundError,
    ValidationFailed,
)
from ...models import Customer
from ...models_messaging import TwilioSMSLog
from ...models_sales import Quote
from ...services.twilio_service import send_quote_reminder_sms, send_quote_sms
from ...shared.formatting import generate_code
from ..appointments.scheduling import add_minutes_to_time, find_available_detailer
from ..appointments.service import AppointmentService
from .calculations import calculate_totals, line_total
from .repository import QuoteRepository
from .schemas import QuoteConvertRequest, QuoteCreate, QuoteItemInput, QuoteResponse, QuoteUpdate

logger = logging.getLogger(__name__)

ACCESS_TOKEN_ALPHABET = string.ascii_letters + string.digits
ACCESS_TOKEN_LENGTH = 6
REMINDER_AFTER = timedelta(hours=24)


def _item_rows(items: list[QuoteItemInput]) -> list[dict]:
    return [
        {
            "service_id": item.service_id,
            "product_id": item.product_id,
            "item_name": item.item_name,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "total_price": line_total(item.quantity, item.unit_price),
            "tier_name": item.tier_name,
            "notes": item.notes,
        }
        for item in items
    ]


def quote_link(quote: Quote) -> str:
    return f"{APP_URL.rstrip('/')}/quote/{quote.access_token}"


def expire_stale_quotes(db: Session, today: Optional[date] = None) -> int:
    """Sent or viewed quotes past valid_until become expired"""
    today = today or date.today()
    stale = (
        db.query(Quote)
        .filter(
            Quote.deleted_at.is_(None),
            Quote.status.in_(["sent", "viewed"]),
            Quote.valid_until.isnot(None),
            Quote.valid_until < today,
        )
        .all()
    )
    for quote in stale:
        quote.status = "expired"
    db.commit()
    if stale:
        logger.info(f"🔄 Expired {len(stale)} stale quotes")
    return len(stale)


async def remind_unviewed_quotes(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Text a single reminder for quotes sent over a day ago that were never opened.

    A quote counts as reminded once an SMS log row of type quote_reminder exists for it,
    whether or not Twilio accepted the message.
    """
    now = now or datetime.utcnow()
    due = (
        db.query(Quote)
        .join(Customer, Quote.customer_id == Customer.id)
        .filter(
            Quote.deleted_at.is_(None),
            Quote.status == "sent",
            Quote.viewed_at.is_(None),
            Quote.sent_at < now - REMINDER_AFTER,
            Quote.access_token.isnot(None),
            Customer.phone.isnot(None),
        )
        .all()
    )
    if not due:
        return {"sent": 0, "errors": 0}

    reminded = {
        row.entity_id
        for row in db.query(TwilioSMSLog.entity_id).filter(
            TwilioSMSLog.entity_type == "Quote",
            TwilioSMSLog.message_type == "quote_reminder",
            TwilioSMSLog.entity_id.in_([quote.id for quote in due]),
        )
    }

    sent = 0
    errors = 0
    for quote in due:
        if quote.id in reminded:
            continue
        customer = quote.customer
        success, error = await send_quote_reminder_sms(
            db,
            customer_id=customer.id,
            phone=customer.phone,
            first_name=customer.first_name,
            quote_id=quote.id,
            link=quote_link(quote),
        )
        if success:
            sent += 1
        else:
            errors += 1
            logger.warning(f"⚠️ Reminder for quote {quote.quote_number} failed: {error}")

    if sent or errors:
        logger.info(f"📱 Quote reminders: {sent} sent, {errors} failed")
    return {"sent": sent, "errors": errors}


class QuoteService:
    """Service layer for quote operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()

    def list_quotes(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> dict:
        quotes, total = self.repo.list_quotes(self.db, page, limit, status, customer_id, search)
        return {"quotes": quotes, "total": total, "page": page, "limit": limit}

    def get_quote(self, quote_id: int) -> Quote:
        quote = self.repo.get_quote(self.db, quote_id)
        if not quote:
            raise QuoteNotFoundError()
        return quote

    def _new_access_token(self) -> str:
        while True:
            token = generate_code(ACCESS_TOKEN_LENGTH, ACCESS_TOKEN_ALPHABET)
            if not self.repo.access_token_exists(self.db, token):
                return token

    def create_quote(self, data: QuoteCreate, created_by: Optional[int] = None) -> Quote:
        if not self.db.get(Customer, data.customer_id):
            raise NotFoundError("Customer not found")

        totals = calculate_totals(data.items)
        quote_number = self.repo.next_quote_number(self.db)

        logger.info(f"📥 Creating quote {quote_number} for customer {data.customer_id}")
        quote = self.repo.create_quote(
            self.db,
            quote_number=quote_number,
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            created_by=created_by,
            status="draft",
            notes=data.notes,
            valid_until=data.valid_until,
            access_token=self._new_access_token(),
            **totals,
        )

        try:
            self.repo.add_items(self.db, quote, _item_rows(data.items))
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error creating quote items for {quote_number}: {e}")
            self.repo.delete_quote(self.db, quote)
            raise PersistenceError("Failed to create quote items") from e

        logger.info(f"✅ Quote {quote_number} created: total ${totals['total_amount']:.2f}")
        return self.get_quote(quote.id)

    def update_quote(self, quote_id: int, data: QuoteUpdate) -> Quote:
        quote = self.get_quote(quote_id)

        updates = data.model_dump(exclude_unset=True, exclude={"items"})
        if updates.get("customer_id") is None:
            updates.pop("customer_id", None)
        if updates.get("status") is None:
            updates.pop("status", None)
        for key, value in updates.items():
            setattr(quote, key, value)

        if data.items:
            for key, value in calculate_totals(data.items).items():
                setattr(quote, key, value)
            self.repo.replace_items(self.db, quote, _item_rows(data.items))

        self.db.commit()
        self.db.expire_all()
        return self.get_quote(quote_id)

    def delete_quote(self, quote_id: int) -> dict:
        quote = self.get_quote(quote_id)
        if quote.status != "draft":
            raise QuoteDraftOnlyError()

        quote.deleted_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"🗑️ Quote {quote.quote_number} deleted")
        return {"success": True}

    # ========================================================================
    # DELIVERY
    # ========================================================================

    async def send_quote(self, quote_id: int, method: str = "both") -> dict:
        quote = self.get_quote(quote_id)
        if not quote.access_token:
            raise ValidationFailed("Quote has no access token")

        customer = quote.customer
        link = quote_link(quote)
        sent_via: list[str] = []
        errors: list[str] = []

        if method in ("email", "both"):
            if not customer or not customer.email:
                errors.append("Customer has no email address")
            else:
                mjml = quote_estimate_template(
                    customer_name=customer.full_name,
                    quote_number=quote.quote_number,
                    items=[
                        {
                            "item_name": item.item_name,
                            "tier_name": item.tier_name,
                            "quantity": item.quantity,
                            "total_price": item.total_price,
                        }
                        for item in quote.items
                    ],
                    subtotal=quote.subtotal,
                    tax_amount=quote.tax_amount,
                    total_amount=quote.total_amount,
                    link=link,
                )
                success, error = await send_customer_email(
                    self.db,
                    to_email=customer.email,
                    subject=f"Estimate {quote.quote_number} from {BUSINESS_NAME}",
                    mjml_content=mjml,
                    message_type="quote",
                    customer_id=customer.id,
                    entity_type="Quote",
                    entity_id=quote.id,
                )
                if success:
                    sent_via.append("email")
                else:
                    errors.append(error or "Failed to send email")

        if method in ("sms", "both"):
            if not customer or not customer.phone:
                errors.append("Customer has no phone number")
            else:
                success, error = await send_quote_sms(
                    self.db,
                    customer_id=customer.id,
                    phone=customer.phone,
                    first_name=customer.first_name,
                    quote_id=quote.id,
                    total=quote.total_amount,
                    link=link,
                )
                if success:
                    sent_via.append("sms")
                else:
                    errors.append(error or "Failed to send SMS")

        if not sent_via:
            logger.warning(f"⚠️ Quote {quote.quote_number} was not sent: {errors}")
            raise ValidationFailed("Quote could not be sent", errors=errors, link=link)

        quote.sent_at = datetime.utcnow()
        if quote.status == "draft":
            quote.status = "sent"
        self.db.commit()
        logger.info(f"✅ Quote {quote.quote_number} sent via {', '.join(sent_via)}")

        result = {
            "success": True,
            "link": link,
            "sent_via": sent_via,
            "quote": QuoteResponse.model_validate(self.get_quote(quote.id)),
        }
        if errors:
            result["errors"] = errors
        return result

    # ========================================================================
    # PUBLIC LINK
    # ========================================================================

    def _public_quote(self, token: str) -> Quote:
        quote = self.repo.get_by_access_token(self.db, token)
        if not quote:
            raise QuoteNotFoundError()
        return quote

    def view_public(self, token: str) -> Quote:
        quote = self._public_quote(token)
        if quote.viewed_at is None:
            quote.viewed_at = datetime.utcnow()
        if quote.status == "sent":
            quote.status = "viewed"
        self.db.commit()
        return quote

    def accept_public(self, token: str) -> Quote:
        quote = self._public_quote(token)
        if quote.status in ("expired", "converted"):
            raise ValidationFailed("This estimate can no longer be accepted")
        if quote.valid_until and quote.valid_until < date.today():
            raise ValidationFailed("This estimate has expired")

        if quote.status != "accepted":
            quote.status = "accepted"
            quote.accepted_at = datetime.utcnow()
            self.db.commit()
            logger.info(f"✅ Quote {quote.quote_number} accepted by customer")
        return quote

    # ========================================================================
    # CONVERSION
    # ========================================================================

    def convert_quote(self, quote_id: int, data: QuoteConvertRequest):
        quote = self.get_quote(quote_id)
        if quote.status in ("expired", "converted"):
            raise QuoteNotConvertibleError()

        end_time = add_minutes_to_time(data.time, data.duration_minutes)
        employee_id = data.employee_id or find_available_detailer(
            self.db,
            data.date,
            data.time,
            add_minutes_to_time(data.time, data.duration_minutes + APPOINTMENT_BUFFER_MINUTES),
        )

        booked = [
            {"service_id": item.service_id, "price_at_booking": item.unit_price, "tier_name": item.tier_name}
            for item in quote.items
            if item.service_id
        ]

        appointment = AppointmentService(self.db).book(
            {
                "customer_id": quote.customer_id,
                "vehicle_id": quote.vehicle_id,
                "employee_id": employee_id,
                "status": "confirmed",
                "channel": "phone",
                "scheduled_date": data.date,
                "scheduled_start_time": data.time,
                "scheduled_end_time": end_time,
                "is_mobile": False,
                "mobile_surcharge": 0.0,
                "payment_status": "pending",
                "subtotal": quote.subtotal,
                "tax_amount": quote.tax_amount,
                "discount_amount": 0.0,
                "total_amount": quote.total_amount,
                "job_notes": quote.notes,
            },
            booked,
        )

        quote.status = "converted"
        quote.converted_appointment_id = appointment.id
        self.db.commit()
        logger.info(f"✅ Quote {quote.quote_number} converted to appointment {appointment.id}")
        return appointment
