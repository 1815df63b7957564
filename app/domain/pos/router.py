"""POS router - checkout, transaction history, voids and refunds"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    RefundCreate,
    RefundResponse,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    VoidRequest,
)
from .service import POSService

router = APIRouter(prefix="/pos", tags=["POS"])


def get_pos_service(db: Session = Depends(get_db)) -> POSService:
    """Dependency injection for POSService"""
    return POSService(db)


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    data: TransactionCreate,
    employee: Employee = Depends(require_permission("pos.access")),
    service: POSService = Depends(get_pos_service),
):
    """Complete a sale: items, payments, stock, customer stats, loyalty and coupon use"""
    return service.create_transaction(data, employee.id)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    _: Employee = Depends(require_permission("pos.access")),
    service: POSService = Depends(get_pos_service),
):
    return service.list_transactions(page, limit, status, customer_id, date_from, date_to)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    _: Employee = Depends(require_permission("pos.access")),
    service: POSService = Depends(get_pos_service),
):
    return service.get_transaction(transaction_id)


@router.post("/transactions/{transaction_id}/void", response_model=TransactionResponse)
async def void_transaction(
    transaction_id: int,
    data: Optional[VoidRequest] = None,
    _: Employee = Depends(require_permission("pos.void_transactions")),
    service: POSService = Depends(get_pos_service),
):
    return service.void_transaction(transaction_id, data.reason if data else None)


@router.post("/transactions/{transaction_id}/refunds", response_model=RefundResponse, status_code=201)
async def refund_transaction(
    transaction_id: int,
    data: RefundCreate,
    employee: Employee = Depends(require_permission("pos.access")),
    service: POSService = Depends(get_pos_service),
):
    """Refund some or all lines of a completed sale"""
    return service.refund_transaction(transaction_id, data, employee.id)


__all__ = ["router"]
