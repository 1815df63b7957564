"""Catalog service - Business logic for categories, vendors, products and services"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError, PersistenceError, ValidationFailed
from ...models_catalog import Product, Service, Vendor
from ...shared.formatting import slugify
from .pricing import format_service_price
from .repository import CATEGORY_MODELS, CatalogRepository
from .schemas import (
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductUpdate,
    ServiceCreate,
    ServiceUpdate,
    VendorCreate,
    VendorUpdate,
)

logger = logging.getLogger(__name__)

PRODUCT_NULLABLE = {"sku", "description", "category_id", "vendor_id", "reorder_threshold", "barcode"}
VENDOR_NULLABLE = {"contact_name", "email", "phone", "website", "lead_time_days", "notes"}
SERVICE_NULLABLE = {
    "description",
    "category_id",
    "flat_price",
    "custom_starting_price",
    "per_unit_price",
    "per_unit_max",
    "per_unit_label",
}


def _drop_required_nulls(updates: dict, nullable: set) -> dict:
    """Explicit nulls only clear columns that may be empty"""
    return {k: v for k, v in updates.items() if v is not None or k in nullable}


def service_payload(service: Service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "slug": service.slug,
        "description": service.description,
        "category_id": service.category_id,
        "pricing_model": service.pricing_model,
        "classification": service.classification,
        "base_duration_minutes": service.base_duration_minutes,
        "flat_price": service.flat_price,
        "custom_starting_price": service.custom_starting_price,
        "per_unit_price": service.per_unit_price,
        "per_unit_max": service.per_unit_max,
        "per_unit_label": service.per_unit_label,
        "mobile_eligible": service.mobile_eligible,
        "online_bookable": service.online_bookable,
        "staff_assessed": service.staff_assessed,
        "is_taxable": service.is_taxable,
        "vehicle_compatibility": service.vehicle_compatibility or [],
        "display_order": service.display_order,
        "is_active": service.is_active,
        "pricing": service.pricing,
        "display_price": format_service_price(service),
    }


class CatalogService:
    """Service layer for the product and service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def _unique_slug(self, model, name: str, exclude_id: Optional[int] = None) -> str:
        base = slugify(name)
        if not base:
            raise ValidationFailed("Name must contain letters or numbers")
        slug = base
        suffix = 2
        while self.repo.slug_exists(self.db, model, slug, exclude_id):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    # ========================================================================
    # CATEGORIES
    # ========================================================================

    def _category_model(self, kind: str):
        model = CATEGORY_MODELS.get(kind)
        if model is None:
            raise NotFoundError("Unknown category type")
        return model

    def list_categories(self, kind: str, include_inactive: bool = False) -> list:
        return self.repo.get_categories(self.db, self._category_model(kind), include_inactive)

    def create_category(self, kind: str, data: CategoryCreate):
        model = self._category_model(kind)
        category = model(
            name=data.name.strip(),
            slug=self._unique_slug(model, data.name),
            description=data.description,
            display_order=data.display_order,
            is_active=data.is_active,
        )
        return self.repo.save(self.db, category)

    def update_category(self, kind: str, category_id: int, data: CategoryUpdate):
        model = self._category_model(kind)
        category = self.repo.get_by_id(self.db, model, category_id)
        if not category:
            raise NotFoundError("Category not found")

        updates = _drop_required_nulls(data.model_dump(exclude_unset=True), {"description"})
        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            updates["slug"] = self._unique_slug(model, updates["name"], exclude_id=category.id)
        return self.repo.apply_updates(self.db, category, **updates)

    # ========================================================================
    # VENDORS
    # ========================================================================

    def list_vendors(self) -> list[Vendor]:
        return self.repo.get_vendors(self.db)

    def create_vendor(self, data: VendorCreate) -> Vendor:
        if self.repo.get_vendor_by_name(self.db, data.name):
            raise ConflictError("A vendor with this name already exists")
        vendor = Vendor(**{**data.model_dump(), "name": data.name.strip()})
        return self.repo.save(self.db, vendor)

    def update_vendor(self, vendor_id: int, data: VendorUpdate) -> Vendor:
        vendor = self.repo.get_by_id(self.db, Vendor, vendor_id)
        if not vendor:
            raise NotFoundError("Vendor not found")
        updates = _drop_required_nulls(data.model_dump(exclude_unset=True), VENDOR_NULLABLE)
        if updates.get("name"):
            existing = self.repo.get_vendor_by_name(self.db, updates["name"])
            if existing and existing.id != vendor.id:
                raise ConflictError("A vendor with this name already exists")
        return self.repo.apply_updates(self.db, vendor, **updates)

    # ========================================================================
    # PRODUCTS
    # ========================================================================

    def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        low_stock: bool = False,
        include_inactive: bool = False,
        page: int = 1,
        limit: int = 50,
    ) -> dict:
        products, total = self.repo.search_products(
            self.db, search, category_id, low_stock, include_inactive, page, limit
        )
        return {"products": products, "total": total, "page": page, "limit": limit}

    def get_product(self, product_id: int) -> Product:
        product = self.repo.get_by_id(self.db, Product, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, data: ProductCreate) -> Product:
        payload = data.model_dump()
        payload["name"] = data.name.strip()
        payload["slug"] = self._unique_slug(Product, payload["name"])
        logger.info(f"📥 Creating product {payload['name']}")
        return self.repo.save(self.db, Product(**payload))

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        updates = _drop_required_nulls(data.model_dump(exclude_unset=True), PRODUCT_NULLABLE)
        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            updates["slug"] = self._unique_slug(Product, updates["name"], exclude_id=product.id)
        return self.repo.apply_updates(self.db, product, **updates)

    def deactivate_product(self, product_id: int) -> dict:
        product = self.get_product(product_id)
        self.repo.apply_updates(self.db, product, is_active=False)
        logger.info(f"🗑️ Product {product_id} deactivated")
        return {"success": True}

    # ========================================================================
    # SERVICES
    # ========================================================================

    def list_services(self, category_id: Optional[int] = None, include_inactive: bool = False) -> list[dict]:
        services = self.repo.get_services(self.db, category_id, include_inactive)
        return [service_payload(s) for s in services]

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> dict:
        payload = data.model_dump(exclude={"pricing"}, exclude_none=True)
        payload["name"] = data.name.strip()
        payload["slug"] = self._unique_slug(Service, payload["name"])

        logger.info(f"📥 Creating service {payload['name']}")
        service = self.repo.save(self.db, Service(**payload))

        if data.pricing:
            try:
                self.repo.replace_pricing(self.db, service, [t.model_dump() for t in data.pricing])
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Failed to create pricing tiers for service {service.id}: {e}, removing service")
                self.db.delete(service)
                self.db.commit()
                raise PersistenceError("Failed to create pricing tiers") from e

        return service_payload(service)

    def update_service(self, service_id: int, data: ServiceUpdate) -> dict:
        service = self.get_service(service_id)
        updates = _drop_required_nulls(
            data.model_dump(exclude_unset=True, exclude={"pricing"}), SERVICE_NULLABLE
        )
        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            updates["slug"] = self._unique_slug(Service, updates["name"], exclude_id=service.id)
        self.repo.apply_updates(self.db, service, **updates)

        if data.pricing is not None:
            self.repo.replace_pricing(self.db, service, [t.model_dump() for t in data.pricing])

        return service_payload(service)

    def deactivate_service(self, service_id: int) -> dict:
        service = self.get_service(service_id)
        self.repo.apply_updates(self.db, service, is_active=False)
        logger.info(f"🗑️ Service {service_id} deactivated")
        return {"success": True}
