"""CMS domain schemas - SEO entries and ads"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.sanitization import clean_text, clean_url

PAGE_TYPES = (
    "homepage",
    "service_category",
    "service_detail",
    "product_category",
    "gallery",
    "booking",
    "custom",
)
DEVICES = ("all", "desktop", "mobile")


# ============================================================================
# SEO
# ============================================================================


class SeoFields(BaseModel):
    seo_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = None
    focus_keyword: Optional[str] = Field(default=None, max_length=255)
    og_image_url: Optional[str] = Field(default=None, max_length=500)
    canonical_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("seo_title", "focus_keyword")
    @classmethod
    def clean_short_text(cls, v):
        return clean_text(v, max_length=255)

    @field_validator("meta_description")
    @classmethod
    def clean_description(cls, v):
        return clean_text(v, max_length=500)

    @field_validator("og_image_url", "canonical_url")
    @classmethod
    def validate_urls(cls, v):
        return clean_url(v)


class PageSeoCreate(SeoFields):
    page_path: str = Field(..., min_length=1, max_length=500)
    page_type: str = "custom"

    @field_validator("page_path")
    @classmethod
    def validate_path(cls, v):
        v = v.strip()
        if not v.startswith("/"):
            raise ValueError("page_path must start with /")
        return v

    @field_validator("page_type")
    @classmethod
    def validate_page_type(cls, v):
        if v not in PAGE_TYPES:
            raise ValueError(f"page_type must be one of {', '.join(PAGE_TYPES)}")
        return v


class PageSeoUpdate(SeoFields):
    page_type: Optional[str] = None

    @field_validator("page_type")
    @classmethod
    def validate_page_type(cls, v):
        if v is not None and v not in PAGE_TYPES:
            raise ValueError(f"page_type must be one of {', '.join(PAGE_TYPES)}")
        return v


class PageSeoResponse(BaseModel):
    id: int
    page_path: str
    page_type: str
    seo_title: Optional[str] = None
    meta_description: Optional[str] = None
    focus_keyword: Optional[str] = None
    og_image_url: Optional[str] = None
    canonical_url: Optional[str] = None
    is_auto_generated: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# ADS
# ============================================================================


class AdCreativeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    image_url: str = Field(..., min_length=1, max_length=500)
    link_url: Optional[str] = Field(default=None, max_length=500)
    alt_text: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True

    @field_validator("image_url", "link_url")
    @classmethod
    def validate_urls(cls, v):
        return clean_url(v)

    @field_validator("alt_text")
    @classmethod
    def clean_alt(cls, v):
        return clean_text(v, max_length=255)


class AdCreativeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    image_url: Optional[str] = Field(default=None, max_length=500)
    link_url: Optional[str] = Field(default=None, max_length=500)
    alt_text: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None

    @field_validator("image_url", "link_url")
    @classmethod
    def validate_urls(cls, v):
        return clean_url(v)

    @field_validator("alt_text")
    @classmethod
    def clean_alt(cls, v):
        return clean_text(v, max_length=255)


class AdCreativeResponse(BaseModel):
    id: int
    name: str
    image_url: str
    link_url: Optional[str] = None
    alt_text: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdPlacementCreate(BaseModel):
    ad_creative_id: int
    page_path: str = Field(..., min_length=1, max_length=500)
    zone_id: str = Field(..., min_length=1, max_length=100)
    device: str = "all"
    priority: int = 0
    is_active: bool = True

    @field_validator("device")
    @classmethod
    def validate_device(cls, v):
        if v not in DEVICES:
            raise ValueError("device must be all, desktop or mobile")
        return v


class AdPlacementResponse(BaseModel):
    id: int
    ad_creative_id: int
    page_path: str
    zone_id: str
    device: str
    priority: int
    is_active: bool
    creative: Optional[AdCreativeResponse] = None

    class Config:
        from_attributes = True
