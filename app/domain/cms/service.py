"""CMS service - page SEO entries and ad creatives/placements"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...constants import BUSINESS_NAME
from ...errors import ConflictError, NotFoundError, ValidationFailed
from ...models_cms import AdCreative, AdPlacement, PageSeo
from .repository import CmsRepository
from .schemas import (
    DEVICES,
    AdCreativeCreate,
    AdCreativeUpdate,
    AdPlacementCreate,
    PageSeoCreate,
    PageSeoUpdate,
)

logger = logging.getLogger(__name__)

STATIC_PAGES = [
    ("/", "homepage", BUSINESS_NAME),
    ("/services", "custom", "Services"),
    ("/products", "custom", "Products"),
    ("/gallery", "gallery", "Gallery"),
    ("/booking", "booking", "Book an Appointment"),
]

PLACEMENT_FIELDS = ("ad_creative_id", "page_path", "zone_id", "device", "priority", "is_active")


class CmsService:
    """Service layer for the website CMS"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CmsRepository()

    # ========================================================================
    # SEO
    # ========================================================================

    def known_pages(self) -> list[tuple[str, str, str]]:
        """(path, page_type, title) for every public page the site renders"""
        pages = list(STATIC_PAGES)
        service_categories, services, product_categories = self.repo.catalog_pages(self.db)
        category_slugs = {c.id: c.slug for c in service_categories}

        for category in service_categories:
            pages.append((f"/services/{category.slug}", "service_category", category.name))
        for service in services:
            category_slug = category_slugs.get(service.category_id)
            if category_slug:
                pages.append((f"/services/{category_slug}/{service.slug}", "service_detail", service.name))
        for category in product_categories:
            pages.append((f"/products/{category.slug}", "product_category", category.name))
        return pages

    def list_seo(self, page_type: Optional[str] = None, has_focus_keyword: Optional[bool] = None) -> list[PageSeo]:
        return self.repo.list_seo(self.db, page_type, has_focus_keyword)

    def get_seo(self, seo_id: int) -> PageSeo:
        entry = self.repo.get_seo(self.db, seo_id)
        if not entry:
            raise NotFoundError("SEO entry not found")
        return entry

    def create_seo(self, data: PageSeoCreate) -> PageSeo:
        if self.repo.get_seo_by_path(self.db, data.page_path):
            raise ConflictError("An SEO entry for this page already exists")
        entry = PageSeo(**data.model_dump(), is_auto_generated=False)
        logger.info(f"📥 Creating SEO entry for {data.page_path}")
        return self.repo.save(self.db, entry)

    def auto_populate_seo(self) -> dict:
        existing = self.repo.existing_paths(self.db)
        missing = [page for page in self.known_pages() if page[0] not in existing]
        if not missing:
            return {"created": [], "message": "All pages already have SEO entries"}

        created = []
        for path, page_type, title in missing:
            entry = PageSeo(page_path=path, page_type=page_type, seo_title=title, is_auto_generated=True)
            self.db.add(entry)
            created.append(entry)
        self.db.commit()
        for entry in created:
            self.db.refresh(entry)

        logger.info(f"✅ Created {len(created)} SEO entries")
        return {"created": created, "message": f"Created {len(created)} SEO entries"}

    def update_seo(self, seo_id: int, data: PageSeoUpdate) -> PageSeo:
        entry = self.get_seo(seo_id)
        updates = data.model_dump(exclude_unset=True)
        if "page_type" in updates and updates["page_type"] is None:
            updates.pop("page_type")
        for key, value in updates.items():
            setattr(entry, key, value)
        entry.is_auto_generated = False
        return self.repo.save(self.db, entry)

    def delete_seo(self, seo_id: int) -> dict:
        self.repo.delete(self.db, self.get_seo(seo_id))
        logger.info(f"🗑️ SEO entry {seo_id} deleted")
        return {"success": True}

    # ========================================================================
    # AD CREATIVES
    # ========================================================================

    def list_creatives(self) -> list[AdCreative]:
        return self.repo.list_creatives(self.db)

    def get_creative(self, creative_id: int) -> AdCreative:
        creative = self.db.get(AdCreative, creative_id)
        if not creative:
            raise NotFoundError("Ad creative not found")
        return creative

    def create_creative(self, data: AdCreativeCreate) -> AdCreative:
        return self.repo.save(self.db, AdCreative(**data.model_dump()))

    def update_creative(self, creative_id: int, data: AdCreativeUpdate) -> AdCreative:
        creative = self.get_creative(creative_id)
        updates = data.model_dump(exclude_unset=True)
        for required in ("name", "image_url", "is_active"):
            if required in updates and updates[required] is None:
                updates.pop(required)
        for key, value in updates.items():
            setattr(creative, key, value)
        return self.repo.save(self.db, creative)

    def delete_creative(self, creative_id: int) -> dict:
        self.repo.delete(self.db, self.get_creative(creative_id))
        logger.info(f"🗑️ Ad creative {creative_id} deleted with its placements")
        return {"success": True}

    # ========================================================================
    # AD PLACEMENTS
    # ========================================================================

    def list_placements(self, page_path: Optional[str] = None) -> list[AdPlacement]:
        return self.repo.list_placements(self.db, page_path)

    def get_placement(self, placement_id: int) -> AdPlacement:
        placement = self.db.get(AdPlacement, placement_id)
        if not placement:
            raise NotFoundError("Not found")
        return placement

    def create_placement(self, data: AdPlacementCreate) -> AdPlacement:
        self.get_creative(data.ad_creative_id)
        return self.repo.save(self.db, AdPlacement(**data.model_dump()))

    def update_placement(self, placement_id: int, body: Any) -> AdPlacement:
        """Only the allowed fields present in the body are applied"""
        placement = self.get_placement(placement_id)
        body = body if isinstance(body, dict) else {}
        updates = {field: body[field] for field in PLACEMENT_FIELDS if field in body}
        if not updates:
            raise ValidationFailed("No fields to update")

        if "ad_creative_id" in updates:
            self.get_creative(updates["ad_creative_id"])
        if "device" in updates and updates["device"] not in DEVICES:
            raise ValidationFailed("device must be all, desktop or mobile")
        for field in ("page_path", "zone_id"):
            if field in updates and not updates[field]:
                raise ValidationFailed(f"{field} is required")

        for key, value in updates.items():
            setattr(placement, key, value)
        return self.repo.save(self.db, placement)

    def delete_placement(self, placement_id: int) -> dict:
        self.repo.delete(self.db, self.get_placement(placement_id))
        return {"success": True}

    def page_ads(self, page_path: str, device: Optional[str] = None) -> dict:
        """Active placements for a public page grouped by zone"""
        zones: dict[str, list[dict]] = {}
        for placement in self.repo.active_placements(self.db, page_path, device):
            creative = placement.creative
            zones.setdefault(placement.zone_id, []).append(
                {
                    "placement_id": placement.id,
                    "image_url": creative.image_url,
                    "link_url": creative.link_url,
                    "alt_text": creative.alt_text,
                    "priority": placement.priority,
                }
            )
        return {"page_path": page_path, "zones": zones}
