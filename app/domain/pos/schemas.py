"""POS domain schemas - Pydantic models for checkout"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import PAYMENT_METHODS


class TransactionItemInput(BaseModel):
    item_type: str
    product_id: Optional[int] = None
    service_id: Optional[int] = None
    item_name: str = Field(..., min_length=1, max_length=255)
    quantity: float = Field(default=1, gt=0)
    unit_price: float = Field(default=0.0, ge=0)
    total_price: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    is_taxable: bool = False
    tier_name: Optional[str] = None
    vehicle_size_class: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("item_type")
    @classmethod
    def validate_item_type(cls, v):
        if v not in ("product", "service", "custom"):
            raise ValueError("item_type must be product, service or custom")
        return v


class PaymentInput(BaseModel):
    method: str
    amount: float = Field(..., ge=0)
    tip_amount: float = Field(default=0.0, ge=0)
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = Field(default=None, max_length=4)

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        if v not in PAYMENT_METHODS:
            raise ValueError(f"method must be one of {', '.join(PAYMENT_METHODS)}")
        return v


class TransactionCreate(BaseModel):
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    appointment_id: Optional[int] = None
    subtotal: float = Field(..., ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    tip_amount: float = Field(default=0.0, ge=0)
    discount_amount: float = Field(default=0.0, ge=0)
    total_amount: float = Field(..., ge=0)
    payment_method: str
    coupon_id: Optional[int] = None
    loyalty_points_redeemed: int = Field(default=0, ge=0)
    loyalty_discount: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None
    items: list[TransactionItemInput] = []
    payments: list[PaymentInput] = []

    @field_validator("payment_method")
    @classmethod
    def validate_payment_method(cls, v):
        if v not in PAYMENT_METHODS:
            raise ValueError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")
        return v


class VoidRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class RefundItemInput(BaseModel):
    transaction_item_id: int
    quantity: float = Field(default=1, gt=0)
    amount: float = Field(..., ge=0)
    restock: bool = False


class RefundCreate(BaseModel):
    items: list[RefundItemInput] = Field(..., min_length=1)
    reason: Optional[str] = Field(default=None, max_length=500)


class TransactionItemResponse(TransactionItemInput):
    id: int

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: int
    method: str
    amount: float
    tip_amount: float
    tip_net: float
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = None

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    id: int
    receipt_number: Optional[str] = None
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    employee_id: Optional[int] = None
    appointment_id: Optional[int] = None
    status: str
    subtotal: float
    tax_amount: float
    tip_amount: float
    discount_amount: float
    total_amount: float
    payment_method: Optional[str] = None
    coupon_id: Optional[int] = None
    loyalty_points_earned: int
    loyalty_points_redeemed: int
    loyalty_discount: float
    notes: Optional[str] = None
    transaction_date: Optional[datetime] = None
    items: list[TransactionItemResponse] = []
    payments: list[PaymentResponse] = []

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
    page: int
    limit: int


class RefundItemResponse(RefundItemInput):
    id: int

    class Config:
        from_attributes = True


class RefundResponse(BaseModel):
    id: int
    transaction_id: int
    status: str
    amount: float
    reason: Optional[str] = None
    processed_by: Optional[int] = None
    created_at: Optional[datetime] = None
    items: list[RefundItemResponse] = []

    class Config:
        from_attributes = True
