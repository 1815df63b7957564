"""Catalog domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import PRICING_MODELS, SERVICE_CLASSIFICATIONS, VEHICLE_TYPES


# ============================================================================
# CATEGORIES & VENDORS
# ============================================================================


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    display_order: int
    is_active: bool

    class Config:
        from_attributes = True


class VendorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    lead_time_days: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    is_active: bool = True


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    lead_time_days: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class VendorResponse(VendorCreate):
    id: int

    class Config:
        from_attributes = True


# ============================================================================
# PRODUCTS
# ============================================================================


class ProductBase(BaseModel):
    sku: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    vendor_id: Optional[int] = None
    cost_price: Optional[float] = Field(default=None, ge=0)
    retail_price: Optional[float] = Field(default=None, ge=0)
    quantity_on_hand: Optional[int] = None
    reorder_threshold: Optional[int] = Field(default=None, ge=0)
    is_taxable: Optional[bool] = None
    is_loyalty_eligible: Optional[bool] = None
    barcode: Optional[str] = None
    is_active: Optional[bool] = None


class ProductCreate(ProductBase):
    name: str = Field(min_length=1, max_length=255)
    cost_price: float = Field(default=0.0, ge=0)
    retail_price: float = Field(default=0.0, ge=0)
    quantity_on_hand: int = 0
    is_taxable: bool = True
    is_loyalty_eligible: bool = True
    is_active: bool = True


class ProductUpdate(ProductBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ProductResponse(BaseModel):
    id: int
    name: str
    slug: str
    sku: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    vendor_id: Optional[int] = None
    cost_price: float
    retail_price: float
    quantity_on_hand: int
    reorder_threshold: Optional[int] = None
    is_taxable: bool
    is_loyalty_eligible: bool
    barcode: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    total: int
    page: int
    limit: int


# ============================================================================
# SERVICES
# ============================================================================


class PricingTier(BaseModel):
    tier_name: str = Field(min_length=1, max_length=100)
    tier_label: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    display_order: int = 0
    is_vehicle_size_aware: bool = False
    vehicle_size_sedan_price: Optional[float] = Field(default=None, ge=0)
    vehicle_size_truck_suv_price: Optional[float] = Field(default=None, ge=0)
    vehicle_size_suv_van_price: Optional[float] = Field(default=None, ge=0)


class PricingTierResponse(PricingTier):
    id: int

    class Config:
        from_attributes = True


class ServiceBase(BaseModel):
    description: Optional[str] = None
    category_id: Optional[int] = None
    pricing_model: Optional[str] = None
    classification: Optional[str] = None
    base_duration_minutes: Optional[int] = Field(default=None, gt=0)
    flat_price: Optional[float] = Field(default=None, ge=0)
    custom_starting_price: Optional[float] = Field(default=None, ge=0)
    per_unit_price: Optional[float] = Field(default=None, ge=0)
    per_unit_max: Optional[int] = Field(default=None, gt=0)
    per_unit_label: Optional[str] = None
    mobile_eligible: Optional[bool] = None
    online_bookable: Optional[bool] = None
    staff_assessed: Optional[bool] = None
    is_taxable: Optional[bool] = None
    vehicle_compatibility: Optional[list[str]] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    pricing: Optional[list[PricingTier]] = None

    @field_validator("pricing_model")
    @classmethod
    def validate_pricing_model(cls, v):
        if v is not None and v not in PRICING_MODELS:
            raise ValueError(f"pricing_model must be one of {', '.join(PRICING_MODELS)}")
        return v

    @field_validator("classification")
    @classmethod
    def validate_classification(cls, v):
        if v is not None and v not in SERVICE_CLASSIFICATIONS:
            raise ValueError(f"classification must be one of {', '.join(SERVICE_CLASSIFICATIONS)}")
        return v

    @field_validator("vehicle_compatibility")
    @classmethod
    def validate_compatibility(cls, v):
        if v is not None:
            invalid = [t for t in v if t not in VEHICLE_TYPES]
            if invalid:
                raise ValueError(f"Unknown vehicle types: {', '.join(invalid)}")
        return v


class ServiceCreate(ServiceBase):
    name: str = Field(min_length=1, max_length=255)
    pricing_model: str = "flat"
    classification: str = "primary"
    base_duration_minutes: int = Field(default=60, gt=0)


class ServiceUpdate(ServiceBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ServiceResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    pricing_model: str
    classification: str
    base_duration_minutes: int
    flat_price: Optional[float] = None
    custom_starting_price: Optional[float] = None
    per_unit_price: Optional[float] = None
    per_unit_max: Optional[int] = None
    per_unit_label: Optional[str] = None
    mobile_eligible: bool
    online_bookable: bool
    staff_assessed: bool
    is_taxable: bool
    vehicle_compatibility: list[str] = []
    display_order: int
    is_active: bool
    pricing: list[PricingTierResponse] = []
    display_price: str

    class Config:
        from_attributes = True
