"""Business settings - small key/value documents edited from the admin"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...constants import DAY_NAMES, DEFAULT_BUSINESS_HOURS, DEFAULT_SLOT_INTERVAL_MINUTES
from ...errors import ValidationFailed
from ...models import BusinessSetting
from ...shared.validators import validate_time_string

logger = logging.getLogger(__name__)

SETTING_DEFAULTS: dict[str, Any] = {
    "business_hours": DEFAULT_BUSINESS_HOURS,
    "booking_config": {"slot_interval_minutes": DEFAULT_SLOT_INTERVAL_MINUTES},
    "coupon_type_enforcement": "soft",
}


def get_setting(db: Session, key: str, default: Optional[Any] = None) -> Any:
    row = db.query(BusinessSetting).filter(BusinessSetting.key == key).first()
    if row is None or row.value is None:
        return default if default is not None else SETTING_DEFAULTS.get(key)
    return row.value


def validate_business_hours(value: Any) -> dict:
    if not isinstance(value, dict):
        raise ValidationFailed("business_hours must be an object keyed by day")
    hours = {}
    for day in DAY_NAMES:
        entry = value.get(day)
        if entry is None:
            hours[day] = None
            continue
        if not isinstance(entry, dict) or "open" not in entry or "close" not in entry:
            raise ValidationFailed(f"{day} needs open and close times")
        try:
            validate_time_string(entry["open"])
            validate_time_string(entry["close"])
        except ValueError as e:
            raise ValidationFailed(f"{day}: {e}") from e
        if entry["open"] >= entry["close"]:
            raise ValidationFailed(f"{day}: open must be before close")
        hours[day] = {"open": entry["open"], "close": entry["close"]}
    return hours


def validate_setting(key: str, value: Any) -> Any:
    if key == "business_hours":
        return validate_business_hours(value)
    if key == "booking_config":
        interval = value.get("slot_interval_minutes") if isinstance(value, dict) else None
        if not isinstance(interval, int) or interval <= 0:
            raise ValidationFailed("slot_interval_minutes must be a positive integer")
        return value
    if key == "coupon_type_enforcement":
        if value not in ("soft", "hard"):
            raise ValidationFailed("coupon_type_enforcement must be soft or hard")
        return value
    raise ValidationFailed(f"Unknown setting: {key}")


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> dict:
        return {key: get_setting(self.db, key) for key in SETTING_DEFAULTS}

    def put(self, key: str, value: Any) -> dict:
        value = validate_setting(key, value)
        row = self.db.query(BusinessSetting).filter(BusinessSetting.key == key).first()
        if row:
            row.value = value
        else:
            self.db.add(BusinessSetting(key=key, value=value))
        self.db.commit()
        logger.info(f"✅ Setting {key} updated")
        return {"key": key, "value": value}
