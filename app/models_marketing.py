"""
Marketing Models
Coupons with their rewards, the loyalty ledger and SMS/email campaigns
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), index=True, nullable=True)  # drafts may not have a code yet
    name = Column(String(255), nullable=True)
    status = Column(String(20), default="active", nullable=False)  # draft, active, disabled
    auto_apply = Column(Boolean, default=False, nullable=False)

    # Targeting
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    customer_tags = Column(JSON, nullable=True)
    tag_match_mode = Column(String(10), default="any", nullable=False)  # any, all
    target_customer_type = Column(String(20), nullable=True)  # enthusiast, professional

    # Conditions
    condition_logic = Column(String(5), default="and", nullable=False)  # and, or
    requires_product_ids = Column(JSON, nullable=True)
    requires_service_ids = Column(JSON, nullable=True)
    requires_product_category_ids = Column(JSON, nullable=True)
    requires_service_category_ids = Column(JSON, nullable=True)
    min_purchase = Column(Float, nullable=True)
    max_customer_visits = Column(Integer, nullable=True)

    # Usage
    is_single_use = Column(Boolean, default=False, nullable=False)
    use_count = Column(Integer, default=0, nullable=False)
    max_uses = Column(Integer, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    rewards = relationship(
        "CouponReward", back_populates="coupon", cascade="all, delete-orphan", order_by="CouponReward.id"
    )


class CouponReward(Base):
    __tablename__ = "coupon_rewards"

    id = Column(Integer, primary_key=True, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=False, index=True)
    applies_to = Column(String(20), nullable=False)  # order, product, service
    discount_type = Column(String(20), nullable=False)  # percentage, flat, free
    discount_value = Column(Float, default=0.0, nullable=False)
    max_discount = Column(Float, nullable=True)
    target_product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    target_service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    target_product_category_id = Column(Integer, ForeignKey("product_categories.id"), nullable=True)
    target_service_category_id = Column(Integer, ForeignKey("service_categories.id"), nullable=True)

    coupon = relationship("Coupon", back_populates="rewards")


class LoyaltyLedger(Base):
    """Append-only; rows are never updated or deleted"""

    __tablename__ = "loyalty_ledger"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    action = Column(String(20), nullable=False)  # earned, redeemed, adjusted, welcome_bonus, expired
    points_change = Column(Integer, nullable=False)
    points_balance = Column(Integer, nullable=False)  # balance after this entry
    description = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    channel = Column(String(10), default="sms", nullable=False)  # sms, email, both
    # draft, scheduled, sending, sent, failed, paused, cancelled
    status = Column(String(20), default="draft", nullable=False)
    audience_filters = Column(JSON, default=dict)
    sms_template = Column(Text, nullable=True)
    email_subject = Column(String(255), nullable=True)
    email_template = Column(Text, nullable=True)
    coupon_id = Column(
        Integer, ForeignKey("coupons.id", use_alter=True, name="fk_campaigns_coupon_id"), nullable=True
    )  # template coupon
    scheduled_at = Column(DateTime, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    recipient_count = Column(Integer, default=0, nullable=False)
    delivered_count = Column(Integer, default=0, nullable=False)
    redeemed_count = Column(Integer, default=0, nullable=False)
    revenue_attributed = Column(Float, default=0.0, nullable=False)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    variants = relationship(
        "CampaignVariant", back_populates="campaign", cascade="all, delete-orphan", order_by="CampaignVariant.id"
    )


class CampaignVariant(Base):
    """A/B test variant of a campaign message"""

    __tablename__ = "campaign_variants"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False, index=True)
    variant_label = Column(String(10), nullable=False)  # A, B, C
    sms_template = Column(Text, nullable=True)
    email_subject = Column(String(255), nullable=True)
    email_template = Column(Text, nullable=True)
    split_percentage = Column(Integer, default=50, nullable=False)
    is_winner = Column(Boolean, default=False, nullable=False)

    campaign = relationship("Campaign", back_populates="variants")


class CampaignRecipient(Base):
    __tablename__ = "campaign_recipients"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("campaign_variants.id"), nullable=True)
    channel = Column(String(10), nullable=False)
    coupon_code = Column(String(50), nullable=True)
    delivered = Column(Boolean, default=False, nullable=False)
    clicked_at = Column(DateTime, nullable=True)
    sent_at = Column(DateTime, nullable=True)
