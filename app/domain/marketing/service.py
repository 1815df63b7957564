"""Marketing service - Business logic for campaigns and their delivery"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import APP_URL
from ...constants import BUSINESS_NAME
from ...email_service import send_customer_email
from ...email_templates import campaign_email_template
from ...errors import NotFoundError, PersistenceError, ValidationFailed
from ...models import Customer
from ...models_marketing import Campaign, Coupon, CouponReward
from ...services.twilio_service import send_campaign_sms
from ..coupons.service import generate_coupon_code
from .ab_testing import VariantStats, determine_winner, split_recipients
from .audience import build_audience, preview_audience
from .repository import CampaignRepository
from .schemas import AudiencePreviewRequest, CampaignCreate, CampaignUpdate

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = ("draft", "scheduled")
REWARD_FIELDS = (
    "applies_to",
    "discount_type",
    "discount_value",
    "max_discount",
    "target_product_id",
    "target_service_id",
    "target_product_category_id",
    "target_service_category_id",
)


def render_template(template: Optional[str], variables: dict[str, str]) -> str:
    """Replace {name} placeholders; unknown placeholders are left as written"""
    rendered = template or ""
    for key, value in variables.items():
        rendered = rendered.replace("{" + key + "}", value or "")
    return rendered


def booking_url() -> str:
    return f"{APP_URL}/booking"


class CampaignService:
    """Service layer for marketing campaigns"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CampaignRepository()

    # ========================================================================
    # CRUD
    # ========================================================================

    def list_campaigns(self, page: int = 1, limit: int = 20, status: Optional[str] = None) -> dict:
        campaigns, total = self.repo.list_campaigns(self.db, page, limit, status)
        return {"campaigns": campaigns, "total": total, "page": page, "limit": limit}

    def get_campaign(self, campaign_id: int) -> Campaign:
        campaign = self.repo.get_campaign(self.db, campaign_id)
        if not campaign:
            raise NotFoundError("Campaign not found")
        return campaign

    def _check_coupon(self, coupon_id: Optional[int]) -> None:
        if coupon_id and not self.db.get(Coupon, coupon_id):
            raise NotFoundError("Coupon not found")

    def create_campaign(self, data: CampaignCreate, employee_id: Optional[int]) -> Campaign:
        self._check_coupon(data.coupon_id)
        logger.info(f"📥 Creating campaign {data.name} ({data.channel})")
        campaign = self.repo.create_campaign(
            self.db,
            name=data.name.strip(),
            channel=data.channel,
            status="draft",
            audience_filters=data.audience_filters.model_dump(exclude_none=True),
            sms_template=data.sms_template,
            email_subject=data.email_subject,
            email_template=data.email_template,
            coupon_id=data.coupon_id,
            created_by=employee_id,
        )

        if data.variants:
            try:
                self.repo.replace_variants(self.db, campaign, [v.model_dump() for v in data.variants])
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Failed to save variants for campaign {campaign.id}: {e}, removing campaign")
                self.repo.delete_campaign(self.db, campaign)
                raise PersistenceError("Failed to create campaign variants") from e

        return self.get_campaign(campaign.id)

    def update_campaign(self, campaign_id: int, data: CampaignUpdate) -> Campaign:
        campaign = self.get_campaign(campaign_id)
        if campaign.status not in EDITABLE_STATUSES:
            raise ValidationFailed("Can only edit draft or scheduled campaigns")

        updates = data.model_dump(exclude_unset=True, exclude={"variants", "audience_filters"})
        if "coupon_id" in updates:
            self._check_coupon(updates["coupon_id"])
        if updates.get("name"):
            updates["name"] = updates["name"].strip()
        elif "name" in updates:
            updates.pop("name")
        if "channel" in updates and updates["channel"] is None:
            updates.pop("channel")
        if data.audience_filters is not None:
            updates["audience_filters"] = data.audience_filters.model_dump(exclude_none=True)

        for key, value in updates.items():
            setattr(campaign, key, value)
        self.db.commit()

        if data.variants is not None:
            self.repo.replace_variants(self.db, campaign, [v.model_dump() for v in data.variants])

        return self.get_campaign(campaign_id)

    def delete_campaign(self, campaign_id: int) -> dict:
        campaign = self.get_campaign(campaign_id)
        if campaign.status != "draft":
            raise ValidationFailed("Can only delete draft campaigns")
        self.repo.delete_campaign(self.db, campaign)
        logger.info(f"🗑️ Campaign {campaign_id} deleted")
        return {"success": True}

    def cancel_campaign(self, campaign_id: int) -> Campaign:
        campaign = self.get_campaign(campaign_id)
        if campaign.status not in EDITABLE_STATUSES:
            raise ValidationFailed("Only draft or scheduled campaigns can be cancelled")
        campaign.status = "cancelled"
        self.db.commit()
        logger.info(f"🔄 Campaign {campaign.id} cancelled")
        return campaign

    def preview_audience(self, data: AudiencePreviewRequest) -> dict:
        return preview_audience(self.db, data.audience_filters.model_dump(exclude_none=True), data.channel)

    # ========================================================================
    # DELIVERY
    # ========================================================================

    def _clone_coupon(self, template: Coupon, campaign_id: int, customer_id: int) -> str:
        """Single-use copy of the template coupon locked to one customer"""
        code = generate_coupon_code()
        coupon = Coupon(
            code=code,
            name=template.name,
            status="active",
            auto_apply=False,
            min_purchase=template.min_purchase,
            is_single_use=True,
            max_uses=1,
            expires_at=template.expires_at,
            campaign_id=campaign_id,
            customer_id=customer_id,
        )
        self.db.add(coupon)
        self.db.flush()
        for reward in template.rewards:
            self.db.add(CouponReward(coupon_id=coupon.id, **{f: getattr(reward, f) for f in REWARD_FIELDS}))
        self.db.commit()
        return code

    async def _deliver(
        self, campaign: Campaign, customer: Customer, sms_template, email_subject, email_template, variables
    ) -> bool:
        sms_delivered = False
        email_delivered = False

        if campaign.channel in ("sms", "both") and customer.sms_consent and customer.phone and sms_template:
            sms_delivered, error = await send_campaign_sms(
                self.db, customer.id, customer.phone, render_template(sms_template, variables), campaign.id
            )
            if error:
                logger.warning(f"⚠️ Campaign {campaign.id} SMS to customer {customer.id} failed: {error}")

        if (
            campaign.channel in ("email", "both")
            and customer.email_consent
            and customer.email
            and email_subject
            and email_template
        ):
            subject = render_template(email_subject, variables)
            email_delivered, error = await send_customer_email(
                self.db,
                to_email=customer.email,
                subject=subject,
                mjml_content=campaign_email_template(subject, render_template(email_template, variables), booking_url()),
                message_type="campaign",
                customer_id=customer.id,
                entity_type="Campaign",
                entity_id=campaign.id,
            )
            if error:
                logger.warning(f"⚠️ Campaign {campaign.id} email to customer {customer.id} failed: {error}")

        return sms_delivered or email_delivered

    async def send_campaign(self, campaign_id: int, schedule_at: Optional[datetime] = None) -> dict:
        campaign = self.get_campaign(campaign_id)
        if campaign.status not in EDITABLE_STATUSES:
            raise ValidationFailed("Campaign has already been sent or cancelled")

        if schedule_at:
            campaign.status = "scheduled"
            campaign.scheduled_at = schedule_at
            self.db.commit()
            logger.info(f"🔄 Campaign {campaign.id} scheduled for {schedule_at}")
            return {"status": "scheduled", "scheduled_at": schedule_at}

        campaign.status = "sending"
        self.db.commit()

        customers = build_audience(self.db, campaign.audience_filters, campaign.channel)
        logger.info(f"📥 Sending campaign {campaign.id} to {len(customers)} customers")

        template_coupon = self.db.get(Coupon, campaign.coupon_id) if campaign.coupon_id else None
        variants = {v.id: v for v in campaign.variants}
        assignment: dict[int, int] = {}
        if variants:
            groups = split_recipients([c.id for c in customers], [(v.id, v.split_percentage) for v in campaign.variants])
            assignment = {customer_id: variant_id for variant_id, ids in groups.items() for customer_id in ids}

        delivered_count = 0
        try:
            for customer in customers:
                coupon_code = (
                    self._clone_coupon(template_coupon, campaign.id, customer.id) if template_coupon else ""
                )
                variables = {
                    "first_name": customer.first_name,
                    "last_name": customer.last_name or "",
                    "coupon_code": coupon_code,
                    "business_name": BUSINESS_NAME,
                    "booking_url": booking_url(),
                }

                variant = variants.get(assignment.get(customer.id))
                source = variant or campaign
                delivered = await self._deliver(
                    campaign,
                    customer,
                    source.sms_template,
                    source.email_subject,
                    source.email_template,
                    variables,
                )
                if delivered:
                    delivered_count += 1

                self.repo.add_recipient(
                    self.db,
                    campaign_id=campaign.id,
                    customer_id=customer.id,
                    variant_id=variant.id if variant else None,
                    channel=campaign.channel,
                    coupon_code=coupon_code or None,
                    delivered=delivered,
                    sent_at=datetime.utcnow(),
                )
                self.db.commit()
        except Exception as e:
            self.db.rollback()
            campaign.status = "failed"
            campaign.recipient_count = len(customers)
            campaign.delivered_count = delivered_count
            self.db.commit()
            logger.error(f"❌ Campaign {campaign.id} failed after {delivered_count} deliveries: {str(e)}")
            raise

        campaign.status = "sent"
        campaign.sent_at = datetime.utcnow()
        campaign.recipient_count = len(customers)
        campaign.delivered_count = delivered_count
        self.db.commit()

        logger.info(f"✅ Campaign {campaign.id} sent: {delivered_count}/{len(customers)} delivered")
        return {"status": "sent", "recipient_count": len(customers), "delivered_count": delivered_count}

    async def dispatch_scheduled(self, now: Optional[datetime] = None) -> int:
        """Send every scheduled campaign whose time has come; returns how many were sent"""
        sent = 0
        for campaign in self.repo.get_due_campaigns(self.db, now or datetime.utcnow()):
            try:
                await self.send_campaign(campaign.id)
                sent += 1
            except ValidationFailed as e:
                logger.warning(f"⚠️ Scheduled campaign {campaign.id} skipped: {e.message}")
        return sent

    # ========================================================================
    # A/B RESULTS
    # ========================================================================

    def variant_stats(self, campaign_id: int) -> list[VariantStats]:
        campaign = self.get_campaign(campaign_id)
        counts = self.repo.variant_counts(self.db, campaign.id)
        stats = []
        for variant in campaign.variants:
            sent, delivered, clicked = counts.get(variant.id, (0, 0, 0))
            stats.append(
                VariantStats(
                    variant_id=variant.id,
                    label=variant.variant_label,
                    sent=sent,
                    delivered=delivered,
                    clicked=clicked,
                    is_winner=variant.is_winner,
                )
            )
        return stats

    def pick_winner(self, campaign_id: int) -> dict:
        campaign = self.get_campaign(campaign_id)
        if not campaign.variants:
            raise ValidationFailed("Campaign has no A/B variants")

        winner_id = determine_winner(self.variant_stats(campaign_id))
        for variant in campaign.variants:
            variant.is_winner = variant.id == winner_id
        self.db.commit()

        if winner_id:
            logger.info(f"✅ Campaign {campaign.id} winner: variant {winner_id}")
        return {"winner_variant_id": winner_id}
