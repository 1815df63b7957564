"""
Catalog Models
Products, services, their categories, vendors and service pricing tiers
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", back_populates="category")


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    services = relationship("Service", back_populates="category")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    website = Column(String(500), nullable=True)
    lead_time_days = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    square_item_id = Column(String(100), unique=True, index=True, nullable=True)
    sku = Column(String(100), index=True, nullable=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("product_categories.id"), nullable=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True)
    cost_price = Column(Float, default=0.0, nullable=False)
    retail_price = Column(Float, default=0.0, nullable=False)
    quantity_on_hand = Column(Integer, default=0, nullable=False)
    reorder_threshold = Column(Integer, nullable=True)
    is_taxable = Column(Boolean, default=True, nullable=False)
    is_loyalty_eligible = Column(Boolean, default=True, nullable=False)
    barcode = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category = relationship("ProductCategory", back_populates="products")
    vendor = relationship("Vendor")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("service_categories.id"), nullable=True)
    # vehicle_size, scope, per_unit, specialty, flat, custom
    pricing_model = Column(String(20), default="flat", nullable=False)
    classification = Column(String(20), default="primary", nullable=False)  # primary, addon_only, both
    base_duration_minutes = Column(Integer, default=60, nullable=False)
    flat_price = Column(Float, nullable=True)
    custom_starting_price = Column(Float, nullable=True)
    per_unit_price = Column(Float, nullable=True)
    per_unit_max = Column(Integer, nullable=True)
    per_unit_label = Column(String(50), nullable=True)  # "panel", "seat"
    mobile_eligible = Column(Boolean, default=False, nullable=False)
    online_bookable = Column(Boolean, default=True, nullable=False)
    staff_assessed = Column(Boolean, default=False, nullable=False)
    is_taxable = Column(Boolean, default=False, nullable=False)
    vehicle_compatibility = Column(JSON, default=lambda: ["standard"])
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category = relationship("ServiceCategory", back_populates="services")
    pricing = relationship(
        "ServicePricing",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="ServicePricing.display_order",
    )


class ServicePricing(Base):
    """One price tier of a service: a vehicle-size tier or a named scope tier"""

    __tablename__ = "service_pricing"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    tier_name = Column(String(100), nullable=False)
    tier_label = Column(String(255), nullable=True)
    price = Column(Float, default=0.0, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    is_vehicle_size_aware = Column(Boolean, default=False, nullable=False)
    vehicle_size_sedan_price = Column(Float, nullable=True)
    vehicle_size_truck_suv_price = Column(Float, nullable=True)
    vehicle_size_suv_van_price = Column(Float, nullable=True)

    service = relationship("Service", back_populates="pricing")
