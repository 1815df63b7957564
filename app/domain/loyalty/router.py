"""Loyalty router - POS earn/redeem and admin adjustments"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import AdjustRequest, EarnRequest, LedgerResponse, RedeemRequest
from .service import LoyaltyService

router = APIRouter(prefix="/loyalty", tags=["Loyalty"])


def get_loyalty_service(db: Session = Depends(get_db)) -> LoyaltyService:
    """Dependency injection for LoyaltyService"""
    return LoyaltyService(db)


@router.post("/earn")
async def earn_points(
    data: EarnRequest,
    _: Employee = Depends(require_permission("pos.access")),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Award points for a completed transaction; water is excluded"""
    return service.earn_points(data.transaction_id, data.customer_id)


@router.post("/redeem")
async def redeem_points(
    data: RedeemRequest,
    _: Employee = Depends(require_permission("pos.access")),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.redeem_points(data.customer_id, data.points, data.transaction_id)


@router.get("/customers/{customer_id}", response_model=LedgerResponse)
async def get_ledger(
    customer_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    _: Employee = Depends(require_permission("customers.view")),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.get_ledger(customer_id, page, limit)


@router.post("/customers/{customer_id}/adjust")
async def adjust_points(
    customer_id: int,
    data: AdjustRequest,
    employee: Employee = Depends(require_permission("loyalty.adjust")),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Manual correction; positive or negative"""
    return service.adjust_points(customer_id, data.points_change, data.description, employee.id)


__all__ = ["router"]
