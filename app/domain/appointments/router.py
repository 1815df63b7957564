"""Appointment router - availability, bookings and status changes"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    CancelRequest,
    NotifyRequest,
    StatusUpdate,
)
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.get("/slots")
async def get_slots(
    date: Optional[str] = Query(None),
    duration: Optional[str] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    Public booking availability.
    Returns {"slots": ["08:00", ...]}; empty on closed days.
    """
    return service.available_slots(date, duration)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    status: Optional[str] = Query(None),
    employee_id: Optional[int] = Query(None),
    _: Employee = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_appointments(date_from, date_to, status, employee_id)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    _: Employee = Depends(require_permission("appointments.manage")),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Detailer is auto-assigned when employee_id is omitted"""
    return service.create_appointment(data)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    _: Employee = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment(appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    _: Employee = Depends(require_permission("appointments.manage")),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.update_appointment(appointment_id, data)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_status(
    appointment_id: int,
    data: StatusUpdate,
    _: Employee = Depends(require_permission("appointments.manage")),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.update_status(appointment_id, data.status)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    data: CancelRequest,
    _: Employee = Depends(require_permission("appointments.manage")),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.cancel_appointment(appointment_id, data.reason)


@router.post("/{appointment_id}/notify")
async def notify_customer(
    appointment_id: int,
    data: NotifyRequest,
    _: Employee = Depends(require_permission("appointments.manage")),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Send the booking confirmation by email, SMS or both"""
    return await service.send_confirmation(appointment_id, data.method)


__all__ = ["router"]
