"""Integration router - Twilio credential management and message logs"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    EmailLogResponse,
    SMSLogResponse,
    TestSMSRequest,
    TwilioCredentials,
    TwilioSettings,
    TwilioStatusResponse,
)
from .service import IntegrationService

router = APIRouter(prefix="/integrations", tags=["Integrations"])

require_integrations = require_permission("settings.integrations")


def get_integration_service(db: Session = Depends(get_db)) -> IntegrationService:
    """Dependency injection for IntegrationService"""
    return IntegrationService(db)


@router.get("/twilio/status", response_model=TwilioStatusResponse)
async def get_twilio_status(
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    return service.twilio_status()


@router.post("/twilio/connect")
async def connect_twilio(
    credentials: TwilioCredentials,
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    """Verify the credentials against Twilio, then store them encrypted"""
    return await service.connect_twilio(credentials)


@router.post("/twilio/disconnect")
async def disconnect_twilio(
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    return service.disconnect_twilio()


@router.put("/twilio/settings")
async def update_twilio_settings(
    settings: TwilioSettings,
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    return service.update_settings(settings)


@router.post("/twilio/test-sms")
async def send_test_sms(
    request: TestSMSRequest,
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    return await service.send_test_sms(request.phone_number)


@router.get("/twilio/logs", response_model=list[SMSLogResponse])
async def get_sms_logs(
    limit: int = Query(50, ge=1, le=500),
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    return service.sms_logs(limit)


@router.get("/email/logs", response_model=list[EmailLogResponse])
async def get_email_logs(
    limit: int = Query(50, ge=1, le=500),
    _: Employee = Depends(require_integrations),
    service: IntegrationService = Depends(get_integration_service),
):
    return service.email_logs(limit)


__all__ = ["router"]
