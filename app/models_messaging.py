"""
Messaging Models
Twilio credentials for the shop plus delivery logs for every SMS and email sent
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class TwilioIntegration(Base):
    """Store Twilio credentials and configuration (one row for the shop)"""

    __tablename__ = "twilio_integrations"

    id = Column(Integer, primary_key=True, index=True)

    # Twilio credentials (encrypted)
    account_sid = Column(Text, nullable=False)
    auth_token = Column(Text, nullable=False)
    messaging_service_sid = Column(Text, nullable=True)
    phone_number = Column(String(20), nullable=True)

    # Settings
    sms_enabled = Column(Boolean, default=True)
    send_quotes = Column(Boolean, default=True)
    send_appointment_confirmation = Column(Boolean, default=True)
    send_campaigns = Column(Boolean, default=True)

    # Status
    is_verified = Column(Boolean, default=False)
    last_test_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class TwilioSMSLog(Base):
    """Track SMS messages sent via Twilio"""

    __tablename__ = "twilio_sms_logs"

    id = Column(Integer, primary_key=True, index=True)
    integration_id = Column(Integer, ForeignKey("twilio_integrations.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)

    # Message details
    to_phone = Column(String(20), nullable=False)
    message_body = Column(Text, nullable=False)
    message_type = Column(String(50), nullable=False)  # quote, quote_reminder, campaign, appointment_confirmation
    entity_type = Column(String(50), nullable=True)  # Quote, Campaign, Appointment
    entity_id = Column(Integer, nullable=True)

    # Twilio response
    twilio_message_sid = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    integration = relationship("TwilioIntegration")


class EmailLog(Base):
    """Track emails sent via Resend"""

    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    to_email = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=False)
    message_type = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    resend_id = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False)  # sent, failed
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
