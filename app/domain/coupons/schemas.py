"""Coupon domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...constants import DISCOUNT_TYPES, REWARD_APPLIES_TO


class RewardInput(BaseModel):
    applies_to: str
    discount_type: str
    discount_value: float = Field(default=0.0, ge=0)
    max_discount: Optional[float] = Field(default=None, ge=0)
    target_product_id: Optional[int] = None
    target_service_id: Optional[int] = None
    target_product_category_id: Optional[int] = None
    target_service_category_id: Optional[int] = None

    @field_validator("applies_to")
    @classmethod
    def validate_applies_to(cls, v):
        if v not in REWARD_APPLIES_TO:
            raise ValueError(f"applies_to must be one of {', '.join(REWARD_APPLIES_TO)}")
        return v

    @field_validator("discount_type")
    @classmethod
    def validate_discount_type(cls, v):
        if v not in DISCOUNT_TYPES:
            raise ValueError(f"discount_type must be one of {', '.join(DISCOUNT_TYPES)}")
        return v

    @model_validator(mode="after")
    def validate_percentage(self):
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discounts cannot exceed 100")
        return self


class CouponFields(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    code: Optional[str] = Field(default=None, max_length=50)
    status: Optional[str] = None
    auto_apply: Optional[bool] = None
    customer_id: Optional[int] = None
    customer_tags: Optional[list[str]] = None
    tag_match_mode: Optional[str] = None
    target_customer_type: Optional[str] = None
    condition_logic: Optional[str] = None
    requires_product_ids: Optional[list[int]] = None
    requires_service_ids: Optional[list[int]] = None
    requires_product_category_ids: Optional[list[int]] = None
    requires_service_category_ids: Optional[list[int]] = None
    min_purchase: Optional[float] = Field(default=None, ge=0)
    max_customer_visits: Optional[int] = Field(default=None, ge=0)
    is_single_use: Optional[bool] = None
    max_uses: Optional[int] = Field(default=None, gt=0)
    expires_at: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in ("draft", "active", "disabled"):
            raise ValueError("status must be draft, active or disabled")
        return v

    @field_validator("tag_match_mode")
    @classmethod
    def validate_tag_mode(cls, v):
        if v is not None and v not in ("any", "all"):
            raise ValueError("tag_match_mode must be any or all")
        return v

    @field_validator("condition_logic")
    @classmethod
    def validate_logic(cls, v):
        if v is not None and v not in ("and", "or"):
            raise ValueError("condition_logic must be and or or")
        return v

    @field_validator("target_customer_type")
    @classmethod
    def validate_customer_type(cls, v):
        if v is not None and v not in ("enthusiast", "professional"):
            raise ValueError("target_customer_type must be enthusiast or professional")
        return v


class CouponCreate(CouponFields):
    rewards: list[RewardInput] = []


class CouponUpdate(CouponFields):
    rewards: Optional[list[RewardInput]] = None


class RewardResponse(RewardInput):
    id: int

    class Config:
        from_attributes = True


class CouponResponse(BaseModel):
    id: int
    code: Optional[str] = None
    name: Optional[str] = None
    status: str
    auto_apply: bool
    customer_id: Optional[int] = None
    customer_tags: Optional[list[str]] = None
    tag_match_mode: str
    target_customer_type: Optional[str] = None
    condition_logic: str
    requires_product_ids: Optional[list[int]] = None
    requires_service_ids: Optional[list[int]] = None
    requires_product_category_ids: Optional[list[int]] = None
    requires_service_category_ids: Optional[list[int]] = None
    min_purchase: Optional[float] = None
    max_customer_visits: Optional[int] = None
    is_single_use: bool
    use_count: int
    max_uses: Optional[int] = None
    expires_at: Optional[datetime] = None
    campaign_id: Optional[int] = None
    created_at: Optional[datetime] = None
    rewards: list[RewardResponse] = []

    class Config:
        from_attributes = True


class CouponListResponse(BaseModel):
    coupons: list[CouponResponse]
    total: int
    page: int
    limit: int


# ============================================================================
# CART EVALUATION
# ============================================================================


class CartItem(BaseModel):
    item_type: str
    product_id: Optional[int] = None
    service_id: Optional[int] = None
    category_id: Optional[int] = None
    item_name: str = ""
    unit_price: float = Field(default=0.0, ge=0)
    quantity: float = Field(default=1, gt=0)

    @field_validator("item_type")
    @classmethod
    def validate_item_type(cls, v):
        if v not in ("product", "service"):
            raise ValueError("item_type must be product or service")
        return v


class ValidateCouponRequest(BaseModel):
    code: str = ""
    customer_id: Optional[int] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    items: list[CartItem] = []
    subtotal: float = Field(default=0.0, ge=0)


class AvailablePromotionsRequest(BaseModel):
    customer_id: Optional[int] = None
    items: list[CartItem] = []
    subtotal: float = Field(default=0.0, ge=0)
