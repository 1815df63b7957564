"""Settings router - business hours, booking and coupon settings"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_employee, require_permission
from ...database import get_db
from ...models import Employee
from .service import SettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    """Dependency injection for SettingsService"""
    return SettingsService(db)


@router.get("")
async def get_settings(
    _: Employee = Depends(get_current_employee),
    service: SettingsService = Depends(get_settings_service),
):
    return service.get_all()


@router.put("/{key}")
async def put_setting(
    key: str,
    value: Any = Body(..., embed=True),
    _: Employee = Depends(require_permission("settings.business")),
    service: SettingsService = Depends(get_settings_service),
):
    """Body: {"value": ...}"""
    return service.put(key, value)


__all__ = ["router"]
