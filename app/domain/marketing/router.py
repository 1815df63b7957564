"""Marketing router - campaigns, audience preview, delivery and A/B results"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_permission
from ...database import get_db
from ...models import Employee
from .schemas import (
    AudiencePreviewRequest,
    CampaignCreate,
    CampaignListResponse,
    CampaignResponse,
    CampaignUpdate,
    SendCampaignRequest,
)
from .service import CampaignService

router = APIRouter(prefix="/marketing/campaigns", tags=["Marketing"])

require_campaigns = require_permission("marketing.campaigns.manage")


def get_campaign_service(db: Session = Depends(get_db)) -> CampaignService:
    """Dependency injection for CampaignService"""
    return CampaignService(db)


@router.get("", response_model=CampaignListResponse)
async def list_campaigns(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.list_campaigns(page, limit, status)


@router.post("", response_model=CampaignResponse, status_code=201)
async def create_campaign(
    data: CampaignCreate,
    employee: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.create_campaign(data, employee.id)


@router.post("/audience-preview")
async def audience_preview(
    data: AudiencePreviewRequest,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    """Matching customers and how many consented to the channel"""
    return service.preview_audience(data)


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: int,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.get_campaign(campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    campaign_id: int,
    data: CampaignUpdate,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.update_campaign(campaign_id, data)


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: int,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.delete_campaign(campaign_id)


@router.post("/{campaign_id}/cancel", response_model=CampaignResponse)
async def cancel_campaign(
    campaign_id: int,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.cancel_campaign(campaign_id)


@router.post("/{campaign_id}/send")
async def send_campaign(
    campaign_id: int,
    data: Optional[SendCampaignRequest] = None,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    """Send now, or schedule when schedule_at is given"""
    return await service.send_campaign(campaign_id, data.schedule_at if data else None)


@router.get("/{campaign_id}/variants")
async def variant_stats(
    campaign_id: int,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return [
        {**stat.model_dump(), "click_through_rate": stat.click_through_rate, "delivery_rate": stat.delivery_rate}
        for stat in service.variant_stats(campaign_id)
    ]


@router.post("/{campaign_id}/determine-winner")
async def determine_winner(
    campaign_id: int,
    _: Employee = Depends(require_campaigns),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.pick_winner(campaign_id)


__all__ = ["router"]
