"""Customer router - CRM endpoints for customers and their vehicles"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdate,
    VehicleCreate,
    VehicleResponse,
    VehicleUpdate,
)
from .service import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


# ============================================================================
# CUSTOMERS
# ============================================================================


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: Employee = Depends(require_permission("customers.view")),
    service: CustomerService = Depends(get_customer_service),
):
    """Search across name, phone and email"""
    return service.list_customers(search, page, limit)


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    _: Employee = Depends(require_permission("customers.manage")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.create_customer(data)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    _: Employee = Depends(require_permission("customers.view")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.get_customer(customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    _: Employee = Depends(require_permission("customers.manage")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.update_customer(customer_id, data)


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    _: Employee = Depends(require_permission("customers.delete")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.delete_customer(customer_id)


# ============================================================================
# VEHICLES
# ============================================================================


@router.get("/{customer_id}/vehicles", response_model=list[VehicleResponse])
async def list_vehicles(
    customer_id: int,
    _: Employee = Depends(require_permission("customers.view")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.list_vehicles(customer_id)


@router.post("/{customer_id}/vehicles", response_model=VehicleResponse, status_code=201)
async def create_vehicle(
    customer_id: int,
    data: VehicleCreate,
    _: Employee = Depends(require_permission("customers.manage")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.create_vehicle(customer_id, data)


@router.patch("/{customer_id}/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    customer_id: int,
    vehicle_id: int,
    data: VehicleUpdate,
    _: Employee = Depends(require_permission("customers.manage")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.update_vehicle(customer_id, vehicle_id, data)


@router.delete("/{customer_id}/vehicles/{vehicle_id}")
async def delete_vehicle(
    customer_id: int,
    vehicle_id: int,
    _: Employee = Depends(require_permission("customers.manage")),
    service: CustomerService = Depends(get_customer_service),
):
    return service.delete_vehicle(customer_id, vehicle_id)


__all__ = ["router"]
