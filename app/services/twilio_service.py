"""
Twilio SMS Service
Sends quote links, appointment confirmations and campaign messages to customers
"""

import base64
import hashlib
import logging
from typing import Optional

import httpx
from cryptography.fernet import Fernet
from sqlalchemy.orm import Session

from ..config import SECRET_KEY
from ..constants import BUSINESS_NAME
from ..models_messaging import TwilioIntegration, TwilioSMSLog

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"

# Encryption for credentials (Fernet needs a 32-byte urlsafe key)
cipher_suite = Fernet(base64.urlsafe_b64encode(hashlib.sha256(SECRET_KEY.encode()).digest()))


def encrypt_credential(credential: str) -> str:
    """Encrypt a credential for storage"""
    return cipher_suite.encrypt(credential.encode()).decode()


def decrypt_credential(encrypted_credential: str) -> str:
    """Decrypt a stored credential"""
    return cipher_suite.decrypt(encrypted_credential.encode()).decode()


def get_integration(db: Session) -> Optional[TwilioIntegration]:
    return db.query(TwilioIntegration).order_by(TwilioIntegration.id).first()


async def verify_twilio_credentials(
    account_sid: str, auth_token: str
) -> tuple[bool, Optional[str]]:
    """Verify Twilio credentials by making a test API call"""
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{TWILIO_API_BASE}/Accounts/{account_sid}.json",
                auth=(account_sid, auth_token),
                timeout=10.0,
            )

            if response.status_code == 200:
                return True, None
            elif response.status_code == 401:
                return False, "Invalid Account SID or Auth Token"
            else:
                return False, f"Verification failed: {response.status_code}"
    except httpx.HTTPError as e:
        logger.error(f"Twilio verification error: {str(e)}")
        return False, f"Connection error: {str(e)}"


def _log_sms(db: Session, integration: Optional[TwilioIntegration], **fields) -> None:
    db.add(TwilioSMSLog(integration_id=integration.id if integration else None, **fields))
    db.commit()


async def send_sms(
    db: Session,
    to_phone: str,
    message_body: str,
    message_type: str,
    customer_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        db: Database session
        to_phone: Recipient phone number (should be in E.164 format)
        message_body: SMS message content
        message_type: quote, quote_reminder, appointment_confirmation, campaign
        customer_id: Optional recipient customer
        entity_type: Optional entity type (Quote, Campaign, Appointment)
        entity_id: Optional entity ID

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not to_phone:
        return False, "No phone number provided"

    # Ensure phone number is in E.164 format
    if not to_phone.startswith("+"):
        logger.warning(f"Phone number not in E.164 format: {to_phone}")
        return False, "Phone number must be in E.164 format (e.g., +1234567890)"

    integration = get_integration(db)
    if not integration:
        logger.debug("No Twilio integration configured")
        return False, "SMS is not configured"

    if not integration.sms_enabled:
        return False, "SMS disabled"

    if not integration.is_verified:
        logger.warning("Twilio integration not verified")
        return False, "Integration not verified"

    message_type_settings = {
        "quote": integration.send_quotes,
        "quote_reminder": integration.send_quotes,
        "appointment_confirmation": integration.send_appointment_confirmation,
        "campaign": integration.send_campaigns,
    }
    if message_type in message_type_settings and not message_type_settings[message_type]:
        logger.debug(f"Message type {message_type} disabled")
        return False, f"Message type {message_type} disabled"

    try:
        account_sid = decrypt_credential(integration.account_sid)
        auth_token = decrypt_credential(integration.auth_token)
    except Exception as e:
        logger.error(f"Failed to decrypt Twilio credentials: {str(e)}")
        return False, "Failed to decrypt credentials"

    log_fields = {
        "customer_id": customer_id,
        "to_phone": to_phone,
        "message_body": message_body,
        "message_type": message_type,
        "entity_type": entity_type,
        "entity_id": entity_id,
    }

    data = {"To": to_phone, "Body": message_body}
    if integration.messaging_service_sid:
        data["MessagingServiceSid"] = decrypt_credential(integration.messaging_service_sid)
    else:
        data["From"] = integration.phone_number

    try:
        logger.info(f"📱 Sending SMS: type={message_type}, to={to_phone}")
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json",
                auth=(account_sid, auth_token),
                data=data,
                timeout=10.0,
            )

        if response.status_code in [200, 201]:
            message_sid = response.json().get("sid")
            _log_sms(db, integration, twilio_message_sid=message_sid, status="sent", **log_fields)
            logger.info(f"✅ SMS sent: {message_type} to {to_phone} (SID: {message_sid})")
            return True, None

        error_data = response.json()
        error_message = error_data.get("message", "Unknown error")
        error_code = error_data.get("code")
        _log_sms(
            db,
            integration,
            status="failed",
            error_message=f"[{error_code}] {error_message}" if error_code else error_message,
            **log_fields,
        )
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return False, error_message

    except httpx.HTTPError as e:
        logger.error(f"Twilio API error: {str(e)}")
        _log_sms(db, integration, status="failed", error_message=str(e), **log_fields)
        return False, str(e)


# SMS Template Functions
async def send_quote_sms(
    db: Session, customer_id: int, phone: str, first_name: str, quote_id: int, total: float, link: str
):
    """Text the customer a link to their estimate"""
    message = (
        f"Hi {first_name}, your estimate from {BUSINESS_NAME} is ready: ${total:.2f}. "
        f"View it here: {link}"
    )
    return await send_sms(
        db=db,
        to_phone=phone,
        message_body=message,
        message_type="quote",
        customer_id=customer_id,
        entity_type="Quote",
        entity_id=quote_id,
    )


async def send_quote_reminder_sms(
    db: Session, customer_id: int, phone: str, first_name: Optional[str], quote_id: int, link: str
):
    """One-time nudge for an estimate that was sent but never opened"""
    message = f"Hey {first_name or 'there'}! Just checking if you had a chance to look at your estimate: {link}"
    return await send_sms(
        db=db,
        to_phone=phone,
        message_body=message,
        message_type="quote_reminder",
        customer_id=customer_id,
        entity_type="Quote",
        entity_id=quote_id,
    )


async def send_appointment_confirmation_sms(
    db: Session,
    customer_id: int,
    phone: str,
    first_name: str,
    appointment_id: int,
    date_label: str,
    time_label: str,
):
    """Send SMS when an appointment is booked"""
    message = (
        f"Hi {first_name}! Your detail at {BUSINESS_NAME} is confirmed for {date_label} at "
        f"{time_label}. Reply STOP to opt out."
    )
    return await send_sms(
        db=db,
        to_phone=phone,
        message_body=message,
        message_type="appointment_confirmation",
        customer_id=customer_id,
        entity_type="Appointment",
        entity_id=appointment_id,
    )


async def send_campaign_sms(db: Session, customer_id: int, phone: str, message: str, campaign_id: int):
    """Marketing text; the body is already rendered"""
    return await send_sms(
        db=db,
        to_phone=phone,
        message_body=message,
        message_type="campaign",
        customer_id=customer_id,
        entity_type="Campaign",
        entity_id=campaign_id,
    )
