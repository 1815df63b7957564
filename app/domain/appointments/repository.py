"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models_sales import Appointment, AppointmentService


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(
        db: Session,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).options(selectinload(Appointment.services))
        if date_from:
            query = query.filter(Appointment.scheduled_date >= date_from)
        if date_to:
            query = query.filter(Appointment.scheduled_date <= date_to)
        if status:
            query = query.filter(Appointment.status == status)
        if employee_id:
            query = query.filter(Appointment.employee_id == employee_id)
        return query.order_by(Appointment.scheduled_date, Appointment.scheduled_start_time).all()

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(selectinload(Appointment.services))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def create_appointment(db: Session, **data) -> Appointment:
        appointment = Appointment(**data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def add_services(db: Session, appointment: Appointment, services: list[dict]) -> None:
        for service in services:
            db.add(AppointmentService(appointment_id=appointment.id, **service))
        db.commit()
        db.refresh(appointment)

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)
        db.commit()
        db.refresh(appointment)
        return appointment
