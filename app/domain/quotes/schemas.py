"""Quote domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import QUOTE_STATUSES
from ...shared.validators import validate_time_string


class QuoteItemInput(BaseModel):
    service_id: Optional[int] = None
    product_id: Optional[int] = None
    item_name: str = Field(min_length=1, max_length=255)
    quantity: float = Field(default=1, gt=0)
    unit_price: float = Field(ge=0)
    tier_name: Optional[str] = None
    notes: Optional[str] = None


class QuoteCreate(BaseModel):
    customer_id: int
    vehicle_id: Optional[int] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    items: list[QuoteItemInput] = Field(min_length=1)


class QuoteUpdate(BaseModel):
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    status: Optional[str] = None
    items: Optional[list[QuoteItemInput]] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in QUOTE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(QUOTE_STATUSES)}")
        return v


class QuoteSendRequest(BaseModel):
    method: str = "both"

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        if v not in ("email", "sms", "both"):
            raise ValueError("method must be email, sms or both")
        return v


class QuoteConvertRequest(BaseModel):
    date: date
    time: str
    duration_minutes: int = Field(gt=0)
    employee_id: Optional[int] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)


class QuoteItemResponse(BaseModel):
    id: int
    service_id: Optional[int] = None
    product_id: Optional[int] = None
    item_name: str
    quantity: float
    unit_price: float
    total_price: float
    tier_name: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class QuoteCustomer(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


class QuoteVehicle(BaseModel):
    id: int
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    size_class: Optional[str] = None

    class Config:
        from_attributes = True


class QuoteResponse(BaseModel):
    id: int
    quote_number: str
    customer_id: int
    vehicle_id: Optional[int] = None
    status: str
    subtotal: float
    tax_amount: float
    total_amount: float
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    access_token: Optional[str] = None
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    converted_appointment_id: Optional[int] = None
    created_at: Optional[datetime] = None
    customer: Optional[QuoteCustomer] = None
    vehicle: Optional[QuoteVehicle] = None
    items: list[QuoteItemResponse] = []

    class Config:
        from_attributes = True


class QuoteListResponse(BaseModel):
    quotes: list[QuoteResponse]
    total: int
    page: int
    limit: int


class PublicQuoteResponse(BaseModel):
    """What the customer sees behind the public link"""

    quote_number: str
    status: str
    subtotal: float
    tax_amount: float
    total_amount: float
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    created_at: Optional[datetime] = None
    customer_first_name: Optional[str] = None
    items: list[QuoteItemResponse] = []
