"""Appointment service - Business logic for bookings"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import APPOINTMENT_BUFFER_MINUTES, CANCELLATION_WINDOW_HOURS
from ...email_service import send_customer_email
from ...email_templates import appointment_confirmation_template
from ...errors import NotFoundError, PersistenceError, ValidationFailed
from ...models import Customer
from ...models_catalog import Service
from ...models_sales import Appointment
from ...services.twilio_service import send_appointment_confirmation_sms
from ...shared.formatting import round_money
from .repository import AppointmentRepository
from .scheduling import add_minutes_to_time, find_available_detailer, get_available_slots
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)

CLOSED_STATUSES = ("completed", "cancelled", "no_show")


def format_time_label(value: str) -> str:
    """'14:30' -> '2:30 PM'"""
    hours, minutes = (int(part) for part in value.split(":"))
    suffix = "AM" if hours < 12 else "PM"
    return f"{hours % 12 or 12}:{minutes:02d} {suffix}"


def format_date_label(day: date) -> str:
    return f"{day.strftime('%A, %B')} {day.day}"


class AppointmentService:
    """Service layer for appointment operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    def available_slots(self, date_str: Optional[str], duration_str: Optional[str]) -> dict:
        if not date_str or not duration_str:
            raise ValidationFailed("Missing date or duration parameter")
        try:
            duration = int(duration_str)
        except ValueError:
            duration = 0
        if duration < 1:
            raise ValidationFailed("Invalid duration")
        try:
            day = date.fromisoformat(date_str)
        except ValueError as e:
            raise ValidationFailed("Invalid date format") from e

        return {"slots": get_available_slots(self.db, day, duration)}

    def list_appointments(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> list[Appointment]:
        return self.repo.get_appointments(self.db, date_from, date_to, status, employee_id)

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def book(self, data: dict, services: list[dict]) -> Appointment:
        """
        Insert an appointment and its booked services.
        The appointment is removed again when the services cannot be saved.
        """
        appointment = self.repo.create_appointment(self.db, **data)
        if services:
            try:
                self.repo.add_services(self.db, appointment, services)
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Failed to save services for appointment {appointment.id}: {e}, removing it")
                self.repo.delete_appointment(self.db, appointment)
                raise PersistenceError("Failed to save appointment services") from e
        logger.info(f"✅ Appointment {appointment.id} booked for {data['scheduled_date']}")
        return appointment

    def create_appointment(self, data: AppointmentCreate) -> Appointment:
        if not self.db.get(Customer, data.customer_id):
            raise NotFoundError("Customer not found")

        booked = []
        duration = 0
        for item in data.services:
            service = self.db.get(Service, item.service_id)
            if not service:
                raise NotFoundError(f"Service {item.service_id} not found")
            price = item.price if item.price is not None else (service.flat_price or 0.0)
            booked.append(
                {"service_id": service.id, "price_at_booking": price, "tier_name": item.tier_name}
            )
            duration += service.base_duration_minutes or 0

        duration = data.duration_minutes or duration or 60
        start = data.scheduled_start_time
        end = add_minutes_to_time(start, duration)

        employee_id = data.employee_id
        if not employee_id:
            employee_id = find_available_detailer(
                self.db,
                data.scheduled_date,
                start,
                add_minutes_to_time(start, duration + APPOINTMENT_BUFFER_MINUTES),
            )

        subtotal = round_money(sum(b["price_at_booking"] for b in booked))
        surcharge = data.mobile_surcharge if data.is_mobile else 0.0

        logger.info(f"📥 Booking appointment for customer {data.customer_id} on {data.scheduled_date}")
        return self.book(
            {
                "customer_id": data.customer_id,
                "vehicle_id": data.vehicle_id,
                "employee_id": employee_id,
                "status": "confirmed",
                "channel": data.channel,
                "scheduled_date": data.scheduled_date,
                "scheduled_start_time": start,
                "scheduled_end_time": end,
                "is_mobile": data.is_mobile,
                "mobile_address": data.mobile_address if data.is_mobile else None,
                "mobile_surcharge": surcharge,
                "payment_status": "pending",
                "subtotal": subtotal,
                "tax_amount": 0.0,
                "discount_amount": 0.0,
                "total_amount": round_money(subtotal + surcharge),
                "job_notes": data.job_notes,
            },
            booked,
        )

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.status in CLOSED_STATUSES:
            raise ValidationFailed(f"Cannot edit a {appointment.status} appointment")

        updates = data.model_dump(exclude_unset=True)
        for required in ("scheduled_date", "scheduled_start_time", "scheduled_end_time", "is_mobile"):
            if required in updates and updates[required] is None:
                updates.pop(required)

        start = updates.get("scheduled_start_time", appointment.scheduled_start_time)
        end = updates.get("scheduled_end_time", appointment.scheduled_end_time)
        if start >= end:
            raise ValidationFailed("Start time must be before end time")

        return self.repo.update_appointment(self.db, appointment, **updates)

    def update_status(self, appointment_id: int, status: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if status == "cancelled":
            return self.cancel_appointment(appointment_id)
        logger.info(f"🔄 Appointment {appointment_id}: {appointment.status} -> {status}")
        return self.repo.update_appointment(self.db, appointment, status=status)

    def cancel_appointment(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.status in CLOSED_STATUSES:
            raise ValidationFailed(f"Cannot cancel a {appointment.status} appointment")

        now = datetime.utcnow()
        starts_at = datetime.combine(
            appointment.scheduled_date, datetime.strptime(appointment.scheduled_start_time, "%H:%M").time()
        )
        if starts_at - now < timedelta(hours=CANCELLATION_WINDOW_HOURS):
            logger.warning(f"⚠️ Appointment {appointment_id} cancelled inside the {CANCELLATION_WINDOW_HOURS}h window")

        return self.repo.update_appointment(
            self.db,
            appointment,
            status="cancelled",
            cancellation_reason=reason,
            cancelled_at=now,
        )

    async def send_confirmation(self, appointment_id: int, method: str = "both") -> dict:
        """Email and/or text the customer their booking details"""
        appointment = self.get_appointment(appointment_id)
        customer = appointment.customer
        date_label = format_date_label(appointment.scheduled_date)
        time_label = format_time_label(appointment.scheduled_start_time)

        sent_via: list[str] = []
        errors: list[str] = []

        if method in ("email", "both"):
            if not customer.email:
                errors.append("Customer has no email address")
            else:
                names = [booked.service.name for booked in appointment.services if booked.service]
                success, error = await send_customer_email(
                    self.db,
                    to_email=customer.email,
                    subject="Your appointment is confirmed",
                    mjml_content=appointment_confirmation_template(
                        customer.first_name, date_label, time_label, names
                    ),
                    message_type="appointment_confirmation",
                    customer_id=customer.id,
                    entity_type="Appointment",
                    entity_id=appointment.id,
                )
                if success:
                    sent_via.append("email")
                else:
                    errors.append(error or "Failed to send email")

        if method in ("sms", "both"):
            if not customer.phone:
                errors.append("Customer has no phone number")
            else:
                success, error = await send_appointment_confirmation_sms(
                    self.db,
                    customer_id=customer.id,
                    phone=customer.phone,
                    first_name=customer.first_name,
                    appointment_id=appointment.id,
                    date_label=date_label,
                    time_label=time_label,
                )
                if success:
                    sent_via.append("sms")
                else:
                    errors.append(error or "Failed to send SMS")

        result = {"success": bool(sent_via), "sent_via": sent_via}
        if errors:
            result["errors"] = errors
        return result
