"""Customer domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import VEHICLE_SIZE_CLASSES, VEHICLE_TYPES
from ...shared.validators import validate_email, validate_us_phone


class CustomerBase(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    birthday: Optional[date] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    customer_type: Optional[str] = None
    sms_consent: Optional[bool] = None
    email_consent: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("customer_type")
    @classmethod
    def validate_customer_type(cls, v):
        if v is not None and v not in ("enthusiast", "professional"):
            raise ValueError("customer_type must be enthusiast or professional")
        return v


class CustomerCreate(CustomerBase):
    first_name: str = Field(min_length=1)
    sms_consent: bool = False
    email_consent: bool = False


class CustomerUpdate(CustomerBase):
    pass


class VehicleBase(BaseModel):
    vehicle_type: Optional[str] = None
    size_class: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    vin: Optional[str] = Field(default=None, max_length=17)
    license_plate: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("vehicle_type")
    @classmethod
    def validate_vehicle_type(cls, v):
        if v is not None and v not in VEHICLE_TYPES:
            raise ValueError(f"vehicle_type must be one of {', '.join(VEHICLE_TYPES)}")
        return v

    @field_validator("size_class")
    @classmethod
    def validate_size_class(cls, v):
        if v is not None and v not in VEHICLE_SIZE_CLASSES:
            raise ValueError(f"size_class must be one of {', '.join(VEHICLE_SIZE_CLASSES)}")
        return v


class VehicleCreate(VehicleBase):
    vehicle_type: str = "standard"


class VehicleUpdate(VehicleBase):
    pass


class VehicleResponse(BaseModel):
    id: int
    customer_id: int
    vehicle_type: str
    size_class: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    notes: Optional[str] = None
    is_incomplete: bool = False

    class Config:
        from_attributes = True


class CustomerResponse(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    birthday: Optional[date] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = []
    customer_type: Optional[str] = None
    sms_consent: bool
    email_consent: bool
    visit_count: int
    lifetime_spend: float
    last_visit_date: Optional[date] = None
    loyalty_points_balance: int
    created_at: Optional[datetime] = None
    vehicles: list[VehicleResponse] = []

    class Config:
        from_attributes = True

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        return v or []


class CustomerListResponse(BaseModel):
    customers: list[CustomerResponse]
    total: int
    page: int
    limit: int
