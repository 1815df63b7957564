"""Staff domain schemas - roles, permissions, employees and schedules"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_time_string, validate_us_phone


class RoleCreate(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    can_access_pos: bool = True
    # Values are stored as granted only when they are literally true
    permissions: Optional[dict[str, Any]] = None


class RoleUpdate(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    can_access_pos: Optional[bool] = None
    permissions: Optional[dict[str, Any]] = None


class PermissionDefinitionResponse(BaseModel):
    key: str
    name: str
    description: Optional[str] = None
    category: str
    sort_order: int

    class Config:
        from_attributes = True


class RoleResponse(BaseModel):
    id: int
    name: str
    display_name: str
    description: Optional[str] = None
    is_system: bool
    is_super: bool
    can_access_pos: bool
    permissions: dict[str, bool] = {}
    employee_count: int = 0


class RoleListResponse(BaseModel):
    roles: list[RoleResponse]
    permission_definitions: list[PermissionDefinitionResponse]


class ScheduleEntry(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)


class EmployeeCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role_id: int
    password: Optional[str] = Field(default=None, min_length=8)
    pin: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    bookable_for_appointments: bool = True

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

    @field_validator("pin")
    @classmethod
    def validate_pin(cls, v):
        if v is not None and not (v.isdigit() and 4 <= len(v) <= 6):
            raise ValueError("PIN must be 4-6 digits")
        return v


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role_id: Optional[int] = None
    status: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)
    pin: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    bookable_for_appointments: Optional[bool] = None

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

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in ("active", "inactive", "terminated"):
            raise ValueError("Status must be active, inactive or terminated")
        return v

    @field_validator("pin")
    @classmethod
    def validate_pin(cls, v):
        if v is not None and not (v.isdigit() and 4 <= len(v) <= 6):
            raise ValueError("PIN must be 4-6 digits")
        return v


class EmployeeResponse(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role_id: int
    role_name: Optional[str] = None
    role_display_name: Optional[str] = None
    status: str
    hourly_rate: Optional[float] = None
    bookable_for_appointments: bool
    schedules: list[ScheduleEntry] = []
    created_at: Optional[datetime] = None
