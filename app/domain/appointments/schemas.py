"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import APPOINTMENT_STATUSES
from ...shared.validators import validate_time_string


class AppointmentServiceInput(BaseModel):
    service_id: int
    tier_name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class AppointmentCreate(BaseModel):
    customer_id: int
    vehicle_id: Optional[int] = None
    employee_id: Optional[int] = None
    scheduled_date: date
    scheduled_start_time: str
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    channel: str = "phone"
    is_mobile: bool = False
    mobile_address: Optional[str] = None
    mobile_surcharge: float = Field(default=0.0, ge=0)
    job_notes: Optional[str] = None
    services: list[AppointmentServiceInput] = []

    @field_validator("scheduled_start_time")
    @classmethod
    def validate_start(cls, v):
        return validate_time_string(v)

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        if v not in ("online", "phone", "walk_in", "portal"):
            raise ValueError("channel must be online, phone, walk_in or portal")
        return v


class AppointmentUpdate(BaseModel):
    employee_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    scheduled_date: Optional[date] = None
    scheduled_start_time: Optional[str] = None
    scheduled_end_time: Optional[str] = None
    is_mobile: Optional[bool] = None
    mobile_address: Optional[str] = None
    job_notes: Optional[str] = None

    @field_validator("scheduled_start_time", "scheduled_end_time")
    @classmethod
    def validate_times(cls, v):
        return validate_time_string(v)


class StatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(APPOINTMENT_STATUSES)}")
        return v


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class NotifyRequest(BaseModel):
    method: str = "both"

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        if v not in ("email", "sms", "both"):
            raise ValueError("method must be email, sms or both")
        return v


class BookedServiceResponse(BaseModel):
    id: int
    service_id: int
    price_at_booking: float
    tier_name: Optional[str] = None

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    customer_id: int
    vehicle_id: Optional[int] = None
    employee_id: Optional[int] = None
    status: str
    channel: str
    scheduled_date: date
    scheduled_start_time: str
    scheduled_end_time: str
    is_mobile: bool
    mobile_address: Optional[str] = None
    mobile_surcharge: float
    payment_status: str
    subtotal: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    job_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    services: list[BookedServiceResponse] = []

    class Config:
        from_attributes = True
