"""Marketing domain schemas - Pydantic models for campaigns"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...constants import CAMPAIGN_CHANNELS, VEHICLE_TYPES


class AudienceFilters(BaseModel):
    days_since_visit_min: Optional[int] = Field(default=None, ge=0)
    days_since_visit_max: Optional[int] = Field(default=None, ge=0)
    min_spend: Optional[float] = Field(default=None, ge=0)
    tags: Optional[list[str]] = None
    has_email: Optional[bool] = None
    has_phone: Optional[bool] = None
    last_service: Optional[int] = None
    vehicle_type: Optional[str] = None

    @field_validator("vehicle_type")
    @classmethod
    def validate_vehicle_type(cls, v):
        if v is not None and v not in VEHICLE_TYPES:
            raise ValueError(f"vehicle_type must be one of {', '.join(VEHICLE_TYPES)}")
        return v


class VariantInput(BaseModel):
    variant_label: str = Field(..., min_length=1, max_length=10)
    sms_template: Optional[str] = None
    email_subject: Optional[str] = Field(default=None, max_length=255)
    email_template: Optional[str] = None
    split_percentage: int = Field(default=50, ge=1, le=100)


def _check_variants(variants: Optional[list[VariantInput]]) -> None:
    if variants:
        if len(variants) < 2:
            raise ValueError("A/B tests need at least two variants")
        if sum(v.split_percentage for v in variants) != 100:
            raise ValueError("Variant split percentages must add up to 100")


class CampaignBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    channel: str = "sms"
    audience_filters: AudienceFilters = AudienceFilters()
    sms_template: Optional[str] = None
    email_subject: Optional[str] = Field(default=None, max_length=255)
    email_template: Optional[str] = None
    coupon_id: Optional[int] = None

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        if v not in CAMPAIGN_CHANNELS:
            raise ValueError(f"channel must be one of {', '.join(CAMPAIGN_CHANNELS)}")
        return v


class CampaignCreate(CampaignBase):
    variants: list[VariantInput] = []

    @model_validator(mode="after")
    def validate_variants(self):
        _check_variants(self.variants)
        return self


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    channel: Optional[str] = None
    audience_filters: Optional[AudienceFilters] = None
    sms_template: Optional[str] = None
    email_subject: Optional[str] = Field(default=None, max_length=255)
    email_template: Optional[str] = None
    coupon_id: Optional[int] = None
    variants: Optional[list[VariantInput]] = None

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        if v is not None and v not in CAMPAIGN_CHANNELS:
            raise ValueError(f"channel must be one of {', '.join(CAMPAIGN_CHANNELS)}")
        return v

    @model_validator(mode="after")
    def validate_variants(self):
        _check_variants(self.variants)
        return self


class AudiencePreviewRequest(BaseModel):
    channel: str = "sms"
    audience_filters: AudienceFilters = AudienceFilters()


class SendCampaignRequest(BaseModel):
    schedule_at: Optional[datetime] = None


class VariantResponse(VariantInput):
    id: int
    is_winner: bool

    class Config:
        from_attributes = True


class CampaignResponse(BaseModel):
    id: int
    name: str
    channel: str
    status: str
    audience_filters: Optional[dict] = None
    sms_template: Optional[str] = None
    email_subject: Optional[str] = None
    email_template: Optional[str] = None
    coupon_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    recipient_count: int
    delivered_count: int
    redeemed_count: int
    revenue_attributed: float
    created_at: Optional[datetime] = None
    variants: list[VariantResponse] = []

    class Config:
        from_attributes = True


class CampaignListResponse(BaseModel):
    campaigns: list[CampaignResponse]
    total: int
    page: int
    limit: int
