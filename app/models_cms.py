"""
Website CMS Models
Per-page SEO overrides and ad creatives placed into page zones
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class PageSeo(Base):
    __tablename__ = "page_seo"

    id = Column(Integer, primary_key=True, index=True)
    page_path = Column(String(500), unique=True, index=True, nullable=False)
    # homepage, service_category, service_detail, product_category, gallery, booking, custom
    page_type = Column(String(50), nullable=False)
    seo_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    focus_keyword = Column(String(255), nullable=True)
    og_image_url = Column(String(500), nullable=True)
    canonical_url = Column(String(500), nullable=True)
    is_auto_generated = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class AdCreative(Base):
    __tablename__ = "ad_creatives"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    image_url = Column(String(500), nullable=False)
    link_url = Column(String(500), nullable=True)
    alt_text = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    placements = relationship("AdPlacement", back_populates="creative", cascade="all, delete-orphan")


class AdPlacement(Base):
    __tablename__ = "ad_placements"

    id = Column(Integer, primary_key=True, index=True)
    ad_creative_id = Column(Integer, ForeignKey("ad_creatives.id"), nullable=False, index=True)
    page_path = Column(String(500), index=True, nullable=False)
    zone_id = Column(String(100), nullable=False)  # "hero_below", "sidebar"
    device = Column(String(10), default="all", nullable=False)  # all, desktop, mobile
    priority = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    creative = relationship("AdCreative", back_populates="placements")
