"""Quote router - estimates, delivery, public link and conversion"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from ..appointments.schemas import AppointmentResponse
from .schemas import (
    PublicQuoteResponse,
    QuoteConvertRequest,
    QuoteCreate,
    QuoteListResponse,
    QuoteResponse,
    QuoteSendRequest,
    QuoteUpdate,
)
from .service import QuoteService

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


def _public_response(quote) -> PublicQuoteResponse:
    return PublicQuoteResponse(
        quote_number=quote.quote_number,
        status=quote.status,
        subtotal=quote.subtotal,
        tax_amount=quote.tax_amount,
        total_amount=quote.total_amount,
        notes=quote.notes,
        valid_until=quote.valid_until,
        created_at=quote.created_at,
        customer_first_name=quote.customer.first_name if quote.customer else None,
        items=quote.items,
    )


# ============================================================================
# PUBLIC LINK (no auth, token in path)
# ============================================================================


@router.get("/public/{token}", response_model=PublicQuoteResponse)
async def view_public_quote(token: str, service: QuoteService = Depends(get_quote_service)):
    return _public_response(service.view_public(token))


@router.post("/public/{token}/accept", response_model=PublicQuoteResponse)
async def accept_public_quote(token: str, service: QuoteService = Depends(get_quote_service)):
    return _public_response(service.accept_public(token))


# ============================================================================
# STAFF ENDPOINTS
# ============================================================================


@router.get("", response_model=QuoteListResponse)
async def list_quotes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    _: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    """Search matches quote number, customer name or phone"""
    return service.list_quotes(page, limit, status, customer_id, search)


@router.post("", response_model=QuoteResponse, status_code=201)
async def create_quote(
    data: QuoteCreate,
    employee: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    return service.create_quote(data, created_by=employee.id)


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: int,
    _: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    return service.get_quote(quote_id)


@router.patch("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    _: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    """A non-empty items list replaces all items and recalculates totals"""
    return service.update_quote(quote_id, data)


@router.delete("/{quote_id}")
async def delete_quote(
    quote_id: int,
    _: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    """Soft delete; drafts only"""
    return service.delete_quote(quote_id)


@router.post("/{quote_id}/send")
async def send_quote(
    quote_id: int,
    data: QuoteSendRequest,
    _: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    return await service.send_quote(quote_id, data.method)


@router.post("/{quote_id}/convert", response_model=AppointmentResponse, status_code=201)
async def convert_quote(
    quote_id: int,
    data: QuoteConvertRequest,
    _: Employee = Depends(require_permission("quotes.manage")),
    service: QuoteService = Depends(get_quote_service),
):
    """Book the quoted services as a confirmed appointment"""
    return service.convert_quote(quote_id, data)


__all__ = ["router"]
