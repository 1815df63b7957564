"""Catalog router - categories, vendors, products and services"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_employee, require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    VendorCreate,
    VendorResponse,
    VendorUpdate,
)
from .service import CatalogService, service_payload

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories/{kind}", response_model=list[CategoryResponse])
async def list_categories(
    kind: str,
    service: CatalogService = Depends(get_catalog_service),
):
    """Active categories; kind is 'product' or 'service'"""
    return service.list_categories(kind)


@router.post("/categories/{kind}", response_model=CategoryResponse, status_code=201)
async def create_category(
    kind: str,
    data: CategoryCreate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_category(kind, data)


@router.patch("/categories/{kind}/{category_id}", response_model=CategoryResponse)
async def update_category(
    kind: str,
    category_id: int,
    data: CategoryUpdate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_category(kind, category_id, data)


# ============================================================================
# VENDORS
# ============================================================================


@router.get("/vendors", response_model=list[VendorResponse])
async def list_vendors(
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_vendors()


@router.post("/vendors", response_model=VendorResponse, status_code=201)
async def create_vendor(
    data: VendorCreate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_vendor(data)


@router.patch("/vendors/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: int,
    data: VendorUpdate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_vendor(vendor_id, data)


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    low_stock: bool = Query(False),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    _: Employee = Depends(get_current_employee),
    service: CatalogService = Depends(get_catalog_service),
):
    """Search by name, SKU or barcode"""
    return service.list_products(search, category_id, low_stock, include_inactive, page, limit)


@router.post("/products", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_product(data)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    _: Employee = Depends(get_current_employee),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.get_product(product_id)


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_product(product_id, data)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    """Soft delete: the product stays on historical transactions"""
    return service.deactivate_product(product_id)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    category_id: Optional[int] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
):
    """Public service menu with display prices"""
    return service.list_services(category_id)


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data)


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    service: CatalogService = Depends(get_catalog_service),
):
    return service_payload(service.get_service(service_id))


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    """A pricing list replaces every tier of the service"""
    return service.update_service(service_id, data)


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: int,
    _: Employee = Depends(require_permission("catalog.manage")),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_service(service_id)


__all__ = ["router"]
