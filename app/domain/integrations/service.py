"""Integration service - connect, configure and test the shop's Twilio account"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationFailed
from ...models_messaging import EmailLog, TwilioIntegration, TwilioSMSLog
from ...services.twilio_service import encrypt_credential, get_integration, send_sms, verify_twilio_credentials
from .schemas import TwilioCredentials, TwilioSettings, TwilioStatusResponse

logger = logging.getLogger(__name__)

TEST_MESSAGE = "Test message from Smart Detail! Your SMS notifications are working correctly."


class IntegrationService:
    def __init__(self, db: Session):
        self.db = db

    def _require_integration(self) -> TwilioIntegration:
        integration = get_integration(self.db)
        if not integration:
            raise NotFoundError("Twilio integration not found")
        return integration

    def twilio_status(self) -> TwilioStatusResponse:
        integration = get_integration(self.db)
        if not integration:
            return TwilioStatusResponse(connected=False)

        # Mask phone number for display
        phone_display = f"***-***-{integration.phone_number[-4:]}" if integration.phone_number else None
        return TwilioStatusResponse(
            connected=True,
            sms_enabled=integration.sms_enabled,
            phone_number=phone_display,
            is_verified=integration.is_verified,
            send_quotes=integration.send_quotes,
            send_appointment_confirmation=integration.send_appointment_confirmation,
            send_campaigns=integration.send_campaigns,
            last_test_at=integration.last_test_at,
        )

    async def connect_twilio(self, credentials: TwilioCredentials) -> dict:
        if not credentials.messaging_service_sid and not credentials.phone_number:
            raise ValidationFailed("Either Messaging Service SID or Phone Number must be provided")

        is_valid, error_message = await verify_twilio_credentials(credentials.account_sid, credentials.auth_token)
        if not is_valid:
            raise ValidationFailed(error_message or "Invalid credentials")

        integration = get_integration(self.db)
        if not integration:
            integration = TwilioIntegration(sms_enabled=True)
            self.db.add(integration)

        integration.account_sid = encrypt_credential(credentials.account_sid)
        integration.auth_token = encrypt_credential(credentials.auth_token)
        integration.messaging_service_sid = (
            encrypt_credential(credentials.messaging_service_sid) if credentials.messaging_service_sid else None
        )
        integration.phone_number = credentials.phone_number
        integration.is_verified = True
        self.db.commit()

        logger.info("✅ Twilio integration connected")
        return {"message": "Twilio connected successfully", "verified": True}

    def disconnect_twilio(self) -> dict:
        integration = self._require_integration()
        # Keep the delivery history after the credentials are gone
        self.db.query(TwilioSMSLog).filter(TwilioSMSLog.integration_id == integration.id).update(
            {TwilioSMSLog.integration_id: None}
        )
        self.db.delete(integration)
        self.db.commit()
        logger.info("🗑️ Twilio integration disconnected")
        return {"message": "Twilio disconnected successfully"}

    def update_settings(self, settings: TwilioSettings) -> dict:
        integration = self._require_integration()
        for key, value in settings.model_dump().items():
            setattr(integration, key, value)
        self.db.commit()
        logger.info("✅ Twilio settings updated")
        return {"message": "Settings updated successfully"}

    async def send_test_sms(self, phone_number: str) -> dict:
        integration = self._require_integration()
        if not integration.is_verified:
            raise ValidationFailed("Twilio integration not verified")

        success, error = await send_sms(self.db, phone_number, TEST_MESSAGE, "test")
        if not success:
            raise ValidationFailed(f"Failed to send SMS: {error}")

        integration.last_test_at = datetime.utcnow()
        self.db.commit()
        return {"message": "Test SMS sent successfully"}

    def sms_logs(self, limit: int = 50) -> list[TwilioSMSLog]:
        return self.db.query(TwilioSMSLog).order_by(TwilioSMSLog.created_at.desc(), TwilioSMSLog.id.desc()).limit(limit).all()

    def email_logs(self, limit: int = 50) -> list[EmailLog]:
        return self.db.query(EmailLog).order_by(EmailLog.created_at.desc(), EmailLog.id.desc()).limit(limit).all()
