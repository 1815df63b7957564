"""Loyalty domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EarnRequest(BaseModel):
    transaction_id: int
    customer_id: int


class RedeemRequest(BaseModel):
    customer_id: int
    points: int = Field(..., gt=0)
    transaction_id: Optional[int] = None


class AdjustRequest(BaseModel):
    points_change: int
    description: str = Field(..., min_length=1, max_length=500)


class LedgerEntryResponse(BaseModel):
    id: int
    customer_id: int
    transaction_id: Optional[int] = None
    action: str
    points_change: int
    points_balance: int
    description: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LedgerResponse(BaseModel):
    customer_id: int
    balance: int
    entries: list[LedgerEntryResponse]
    total: int
    page: int
    limit: int
