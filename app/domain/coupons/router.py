"""Coupon router - admin CRUD, public code validation and POS promotions"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission, require_roles
from ...constants import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ...database import get_db
from ...models import Employee
from .schemas import (
    AvailablePromotionsRequest,
    CouponCreate,
    CouponListResponse,
    CouponResponse,
    CouponUpdate,
    ValidateCouponRequest,
)
from .service import CouponService

router = APIRouter(prefix="/coupons", tags=["Coupons"])

require_coupon_admin = require_roles(ROLE_SUPER_ADMIN, ROLE_ADMIN)


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    """Dependency injection for CouponService"""
    return CouponService(db)


# ============================================================================
# PUBLIC / POS
# ============================================================================


@router.post("/validate")
async def validate_coupon(data: ValidateCouponRequest, service: CouponService = Depends(get_coupon_service)):
    """Check a code against a cart; used by online booking and the POS"""
    return service.validate_coupon(data)


@router.post("/available")
async def available_promotions(
    data: AvailablePromotionsRequest,
    _: Employee = Depends(require_permission("pos.access")),
    service: CouponService = Depends(get_coupon_service),
):
    """Promotions grouped into for_you, eligible and upsell for the POS panel"""
    return service.available_promotions(data)


# ============================================================================
# ADMIN
# ============================================================================


@router.get("", response_model=CouponListResponse)
async def list_coupons(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return service.list_coupons(page, limit, search, status)


@router.post("", response_model=CouponResponse, status_code=201)
async def create_coupon(
    data: CouponCreate,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    """A code is generated when none is given"""
    return service.create_coupon(data)


@router.get("/{coupon_id}", response_model=CouponResponse)
async def get_coupon(
    coupon_id: int,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return service.get_coupon(coupon_id)


@router.get("/{coupon_id}/summary")
async def coupon_summary(
    coupon_id: int,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    """Human readable reward lines"""
    return service.reward_lines(coupon_id)


@router.patch("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return service.update_coupon(coupon_id, data)


@router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: int,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return service.delete_coupon(coupon_id)


@router.post("/{coupon_id}/enable", response_model=CouponResponse)
async def enable_coupon(
    coupon_id: int,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return service.enable_coupon(coupon_id)


@router.post("/{coupon_id}/disable", response_model=CouponResponse)
async def disable_coupon(
    coupon_id: int,
    _: Employee = Depends(require_coupon_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return service.disable_coupon(coupon_id)


__all__ = ["router"]
