"""Catalog repository - Database operations for products and services"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...database import LIKE_ESCAPE, contains_pattern
from ...models_catalog import (
    Product,
    ProductCategory,
    Service,
    ServiceCategory,
    ServicePricing,
    Vendor,
)


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def slug_exists(db: Session, model, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(model.id).filter(model.slug == slug)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def save(db: Session, row):
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def apply_updates(db: Session, row, **updates):
        for key, value in updates.items():
            if hasattr(row, key):
                setattr(row, key, value)
        db.commit()
        db.refresh(row)
        return row

    # ------------------------------------------------------------- categories

    @staticmethod
    def get_categories(db: Session, model, include_inactive: bool = False) -> list:
        query = db.query(model)
        if not include_inactive:
            query = query.filter(model.is_active.is_(True))
        return query.order_by(model.display_order, model.name).all()

    @staticmethod
    def get_by_id(db: Session, model, row_id: int):
        return db.query(model).filter(model.id == row_id).first()

    # ---------------------------------------------------------------- vendors

    @staticmethod
    def get_vendors(db: Session) -> list[Vendor]:
        return db.query(Vendor).order_by(Vendor.name).all()

    @staticmethod
    def get_vendor_by_name(db: Session, name: str) -> Optional[Vendor]:
        return db.query(Vendor).filter(func.lower(Vendor.name) == name.strip().lower()).first()

    # --------------------------------------------------------------- products

    @staticmethod
    def search_products(
        db: Session,
        search: Optional[str],
        category_id: Optional[int],
        low_stock: bool,
        include_inactive: bool,
        page: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        query = db.query(Product)
        if not include_inactive:
            query = query.filter(Product.is_active.is_(True))
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if low_stock:
            query = query.filter(
                Product.reorder_threshold.isnot(None),
                Product.quantity_on_hand <= Product.reorder_threshold,
            )
        if search:
            term = contains_pattern(search)
            query = query.filter(
                or_(
                    func.lower(Product.name).like(term, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(Product.sku, "")).like(term, escape=LIKE_ESCAPE),
                    func.coalesce(Product.barcode, "").like(term, escape=LIKE_ESCAPE),
                )
            )

        total = query.count()
        products = query.order_by(Product.name).offset((page - 1) * limit).limit(limit).all()
        return products, total

    # --------------------------------------------------------------- services

    @staticmethod
    def get_services(
        db: Session, category_id: Optional[int] = None, include_inactive: bool = False
    ) -> list[Service]:
        query = db.query(Service).options(selectinload(Service.pricing))
        if not include_inactive:
            query = query.filter(Service.is_active.is_(True))
        if category_id is not None:
            query = query.filter(Service.category_id == category_id)
        return query.order_by(Service.display_order, Service.name).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .options(selectinload(Service.pricing))
            .filter(Service.id == service_id)
            .first()
        )

    @staticmethod
    def replace_pricing(db: Session, service: Service, tiers: list[dict]) -> None:
        db.query(ServicePricing).filter(ServicePricing.service_id == service.id).delete()
        for tier in tiers:
            db.add(ServicePricing(service_id=service.id, **tier))
        db.commit()
        db.refresh(service)


CATEGORY_MODELS = {"product": ProductCategory, "service": ServiceCategory}
