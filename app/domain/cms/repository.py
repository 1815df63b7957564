"""CMS repository - Database operations for SEO entries and ads"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models_catalog import ProductCategory, Service, ServiceCategory
from ...models_cms import AdCreative, AdPlacement, PageSeo


class CmsRepository:
    """Repository for CMS database operations"""

    @staticmethod
    def list_seo(db: Session, page_type: Optional[str] = None, has_focus_keyword: Optional[bool] = None) -> list[PageSeo]:
        query = db.query(PageSeo)
        if page_type:
            query = query.filter(PageSeo.page_type == page_type)
        if has_focus_keyword is True:
            query = query.filter(PageSeo.focus_keyword.isnot(None), PageSeo.focus_keyword != "")
        elif has_focus_keyword is False:
            query = query.filter(or_(PageSeo.focus_keyword.is_(None), PageSeo.focus_keyword == ""))
        return query.order_by(PageSeo.page_path).all()

    @staticmethod
    def get_seo(db: Session, seo_id: int) -> Optional[PageSeo]:
        return db.get(PageSeo, seo_id)

    @staticmethod
    def get_seo_by_path(db: Session, page_path: str) -> Optional[PageSeo]:
        return db.query(PageSeo).filter(PageSeo.page_path == page_path).first()

    @staticmethod
    def existing_paths(db: Session) -> set[str]:
        return {path for (path,) in db.query(PageSeo.page_path).all()}

    @staticmethod
    def catalog_pages(db: Session) -> tuple[list[ServiceCategory], list[Service], list[ProductCategory]]:
        service_categories = db.query(ServiceCategory).filter(ServiceCategory.is_active.is_(True)).all()
        services = db.query(Service).filter(Service.is_active.is_(True)).all()
        product_categories = db.query(ProductCategory).filter(ProductCategory.is_active.is_(True)).all()
        return service_categories, services, product_categories

    @staticmethod
    def save(db: Session, row):
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def delete(db: Session, row) -> None:
        db.delete(row)
        db.commit()

    @staticmethod
    def list_creatives(db: Session) -> list[AdCreative]:
        return db.query(AdCreative).order_by(AdCreative.created_at.desc(), AdCreative.id.desc()).all()

    @staticmethod
    def list_placements(db: Session, page_path: Optional[str] = None) -> list[AdPlacement]:
        query = db.query(AdPlacement).options(joinedload(AdPlacement.creative))
        if page_path:
            query = query.filter(AdPlacement.page_path == page_path)
        return query.order_by(AdPlacement.page_path, AdPlacement.priority.desc(), AdPlacement.id).all()

    @staticmethod
    def active_placements(db: Session, page_path: str, device: Optional[str] = None) -> list[AdPlacement]:
        query = (
            db.query(AdPlacement)
            .join(AdCreative, AdCreative.id == AdPlacement.ad_creative_id)
            .options(joinedload(AdPlacement.creative))
            .filter(
                AdPlacement.page_path == page_path,
                AdPlacement.is_active.is_(True),
                AdCreative.is_active.is_(True),
            )
        )
        if device:
            query = query.filter(AdPlacement.device.in_(("all", device)))
        return query.order_by(AdPlacement.zone_id, AdPlacement.priority.desc(), AdPlacement.id).all()
