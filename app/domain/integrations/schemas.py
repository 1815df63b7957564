"""Integration schemas - Twilio credentials, settings and logs"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_us_phone


class TwilioStatusResponse(BaseModel):
    connected: bool
    sms_enabled: Optional[bool] = None
    phone_number: Optional[str] = None
    is_verified: Optional[bool] = None
    send_quotes: Optional[bool] = None
    send_appointment_confirmation: Optional[bool] = None
    send_campaigns: Optional[bool] = None
    last_test_at: Optional[datetime] = None


class TwilioCredentials(BaseModel):
    account_sid: str
    auth_token: str
    messaging_service_sid: Optional[str] = None
    phone_number: Optional[str] = None

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return validate_us_phone(v)


class TwilioSettings(BaseModel):
    sms_enabled: bool
    send_quotes: bool
    send_appointment_confirmation: bool
    send_campaigns: bool


class TestSMSRequest(BaseModel):
    phone_number: str

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return validate_us_phone(v)


class SMSLogResponse(BaseModel):
    id: int
    customer_id: Optional[int] = None
    to_phone: str
    message_type: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmailLogResponse(BaseModel):
    id: int
    customer_id: Optional[int] = None
    to_email: str
    subject: str
    message_type: str
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
