"""Marketing repository - Database operations for campaigns, variants and recipients"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, selectinload

from ...models_marketing import Campaign, CampaignRecipient, CampaignVariant


class CampaignRepository:
    """Repository for campaign database operations"""

    @staticmethod
    def list_campaigns(
        db: Session, page: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[Campaign], int]:
        query = db.query(Campaign)
        if status:
            query = query.filter(Campaign.status == status)
        total = query.count()
        campaigns = (
            query.options(selectinload(Campaign.variants))
            .order_by(Campaign.created_at.desc(), Campaign.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return campaigns, total

    @staticmethod
    def get_campaign(db: Session, campaign_id: int) -> Optional[Campaign]:
        return (
            db.query(Campaign)
            .options(selectinload(Campaign.variants))
            .filter(Campaign.id == campaign_id)
            .first()
        )

    @staticmethod
    def get_due_campaigns(db: Session, now: datetime) -> list[Campaign]:
        return (
            db.query(Campaign)
            .filter(Campaign.status == "scheduled", Campaign.scheduled_at <= now)
            .order_by(Campaign.scheduled_at)
            .all()
        )

    @staticmethod
    def create_campaign(db: Session, **data) -> Campaign:
        campaign = Campaign(**data)
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
        return campaign

    @staticmethod
    def replace_variants(db: Session, campaign: Campaign, variants: list[dict]) -> None:
        db.query(CampaignVariant).filter(CampaignVariant.campaign_id == campaign.id).delete()
        for variant in variants:
            db.add(CampaignVariant(campaign_id=campaign.id, **variant))
        db.commit()
        db.refresh(campaign)

    @staticmethod
    def delete_campaign(db: Session, campaign: Campaign) -> None:
        db.delete(campaign)
        db.commit()

    @staticmethod
    def add_recipient(db: Session, **data) -> CampaignRecipient:
        recipient = CampaignRecipient(**data)
        db.add(recipient)
        return recipient

    @staticmethod
    def variant_counts(db: Session, campaign_id: int) -> dict[int, tuple[int, int, int]]:
        """variant_id -> (sent, delivered, clicked)"""
        rows = (
            db.query(
                CampaignRecipient.variant_id,
                func.count(CampaignRecipient.id),
                func.sum(case((CampaignRecipient.delivered.is_(True), 1), else_=0)),
                func.count(CampaignRecipient.clicked_at),
            )
            .filter(CampaignRecipient.campaign_id == campaign_id, CampaignRecipient.variant_id.isnot(None))
            .group_by(CampaignRecipient.variant_id)
            .all()
        )
        return {variant_id: (sent, int(delivered or 0), clicked) for variant_id, sent, delivered, clicked in rows}
