from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# ============================================================================
# STAFF, ROLES & PERMISSIONS
# ============================================================================


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)  # slug, e.g. "cashier"
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)  # built-in roles cannot be deleted
    is_super = Column(Boolean, default=False, nullable=False)  # bypasses all permission checks
    can_access_pos = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    employees = relationship("Employee", back_populates="role")


class PermissionDefinition(Base):
    """Catalog of every permission key the application checks"""

    __tablename__ = "permission_definitions"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, index=True, nullable=False)  # e.g. "cms.seo.manage"
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)


class Permission(Base):
    """
    Granted/denied flag for one permission key.
    Rows with role_id set are role defaults; rows with employee_id set are
    per-employee overrides that win over the role default.
    """

    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    permission_key = Column(String(100), index=True, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    granted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(20), nullable=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, inactive, terminated
    password_hash = Column(String(255), nullable=True)
    pin_hash = Column(String(255), nullable=True)  # 4-6 digit POS PIN
    hourly_rate = Column(Float, nullable=True)
    bookable_for_appointments = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    role = relationship("Role", back_populates="employees")
    schedules = relationship(
        "EmployeeSchedule", back_populates="employee", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in [self.first_name, self.last_name] if part)


class EmployeeSchedule(Base):
    __tablename__ = "employee_schedules"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    employee = relationship("Employee", back_populates="schedules")


# ============================================================================
# CUSTOMERS & VEHICLES
# ============================================================================


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(20), unique=True, index=True, nullable=True)  # E.164
    email = Column(String(255), index=True, nullable=True)
    birthday = Column(Date, nullable=True)
    address_line_1 = Column(String(255), nullable=True)
    address_line_2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, default=list)  # ["vip", "fleet", "source:square"]
    customer_type = Column(String(20), nullable=True)  # enthusiast, professional
    sms_consent = Column(Boolean, default=False, nullable=False)
    email_consent = Column(Boolean, default=False, nullable=False)
    visit_count = Column(Integer, default=0, nullable=False)
    lifetime_spend = Column(Float, default=0.0, nullable=False)
    first_visit_date = Column(Date, nullable=True)
    last_visit_date = Column(Date, nullable=True)
    loyalty_points_balance = Column(Integer, default=0, nullable=False)
    square_customer_id = Column(String(100), unique=True, index=True, nullable=True)
    square_reference_id = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    vehicles = relationship("Vehicle", back_populates="customer", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in [self.first_name, self.last_name] if part)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_type = Column(String(20), default="standard", nullable=False)
    size_class = Column(String(20), nullable=True)  # sedan, truck_suv_2row, suv_3row_van
    year = Column(Integer, nullable=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    color = Column(String(50), nullable=True)
    vin = Column(String(17), nullable=True)
    license_plate = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    is_incomplete = Column(Boolean, default=False, nullable=False)  # created from import data
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="vehicles")


# ============================================================================
# SETTINGS
# ============================================================================


class BusinessSetting(Base):
    """Key/value settings: business_hours, booking_config, coupon_type_enforcement"""

    __tablename__ = "business_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
