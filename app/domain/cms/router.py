"""CMS router - page SEO entries, ad creatives and placements"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    AdCreativeCreate,
    AdCreativeResponse,
    AdCreativeUpdate,
    AdPlacementCreate,
    AdPlacementResponse,
    PageSeoCreate,
    PageSeoResponse,
    PageSeoUpdate,
)
from .service import CmsService

router = APIRouter(prefix="/cms", tags=["CMS"])

require_seo = require_permission("cms.seo.manage")
require_ads = require_permission("cms.ads.manage")


def get_cms_service(db: Session = Depends(get_db)) -> CmsService:
    """Dependency injection for CmsService"""
    return CmsService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/public/ads")
async def page_ads(
    page_path: str = Query(..., min_length=1),
    device: Optional[str] = Query(None),
    service: CmsService = Depends(get_cms_service),
):
    """Active ads for a page, grouped by zone"""
    return service.page_ads(page_path, device)


# ============================================================================
# SEO
# ============================================================================


@router.get("/seo", response_model=list[PageSeoResponse])
async def list_seo(
    page_type: Optional[str] = Query(None),
    has_focus_keyword: Optional[bool] = Query(None),
    _: Employee = Depends(require_seo),
    service: CmsService = Depends(get_cms_service),
):
    return service.list_seo(page_type, has_focus_keyword)


@router.post("/seo", response_model=PageSeoResponse, status_code=201)
async def create_seo(
    data: PageSeoCreate,
    _: Employee = Depends(require_seo),
    service: CmsService = Depends(get_cms_service),
):
    return service.create_seo(data)


@router.post("/seo/auto-populate", status_code=201)
async def auto_populate_seo(
    _: Employee = Depends(require_seo),
    service: CmsService = Depends(get_cms_service),
):
    """Create SEO rows for every known page that has none"""
    result = service.auto_populate_seo()
    return {
        "created": [PageSeoResponse.model_validate(entry) for entry in result["created"]],
        "message": result["message"],
    }


@router.patch("/seo/{seo_id}", response_model=PageSeoResponse)
async def update_seo(
    seo_id: int,
    data: PageSeoUpdate,
    _: Employee = Depends(require_seo),
    service: CmsService = Depends(get_cms_service),
):
    return service.update_seo(seo_id, data)


@router.delete("/seo/{seo_id}")
async def delete_seo(
    seo_id: int,
    _: Employee = Depends(require_seo),
    service: CmsService = Depends(get_cms_service),
):
    return service.delete_seo(seo_id)


# ============================================================================
# AD CREATIVES
# ============================================================================


@router.get("/ads/creatives", response_model=list[AdCreativeResponse])
async def list_creatives(_: Employee = Depends(require_ads), service: CmsService = Depends(get_cms_service)):
    return service.list_creatives()


@router.post("/ads/creatives", response_model=AdCreativeResponse, status_code=201)
async def create_creative(
    data: AdCreativeCreate,
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.create_creative(data)


@router.patch("/ads/creatives/{creative_id}", response_model=AdCreativeResponse)
async def update_creative(
    creative_id: int,
    data: AdCreativeUpdate,
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.update_creative(creative_id, data)


@router.delete("/ads/creatives/{creative_id}")
async def delete_creative(
    creative_id: int,
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.delete_creative(creative_id)


# ============================================================================
# AD PLACEMENTS
# ============================================================================


@router.get("/ads/placements", response_model=list[AdPlacementResponse])
async def list_placements(
    page_path: Optional[str] = Query(None),
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.list_placements(page_path)


@router.post("/ads/placements", response_model=AdPlacementResponse, status_code=201)
async def create_placement(
    data: AdPlacementCreate,
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.create_placement(data)


@router.get("/ads/placements/{placement_id}", response_model=AdPlacementResponse)
async def get_placement(
    placement_id: int,
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.get_placement(placement_id)


@router.patch("/ads/placements/{placement_id}", response_model=AdPlacementResponse)
async def update_placement(
    placement_id: int,
    body: Any = Body(...),
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    """Allowed fields: ad_creative_id, page_path, zone_id, device, priority, is_active"""
    return service.update_placement(placement_id, body)


@router.delete("/ads/placements/{placement_id}")
async def delete_placement(
    placement_id: int,
    _: Employee = Depends(require_ads),
    service: CmsService = Depends(get_cms_service),
):
    return service.delete_placement(placement_id)


__all__ = ["router"]
