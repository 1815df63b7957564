"""
Sales Models
Quotes, appointments, jobs and POS transactions
"""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String(20), unique=True, index=True, nullable=False)  # Q-0001
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    status = Column(String(20), default="draft", nullable=False)
    subtotal = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, default=0.0, nullable=False)
    notes = Column(Text, nullable=True)
    valid_until = Column(Date, nullable=True)
    access_token = Column(String(20), unique=True, index=True, nullable=True)  # public link token
    sent_at = Column(DateTime, nullable=True)
    viewed_at = Column(DateTime, nullable=True)
    accepted_at = Column(DateTime, nullable=True)
    converted_appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    vehicle = relationship("Vehicle")
    items = relationship(
        "QuoteItem", back_populates="quote", cascade="all, delete-orphan", order_by="QuoteItem.id"
    )


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Float, default=1, nullable=False)
    unit_price = Column(Float, default=0.0, nullable=False)
    total_price = Column(Float, default=0.0, nullable=False)
    tier_name = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    quote = relationship("Quote", back_populates="items")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    # pending, confirmed, in_progress, completed, cancelled, no_show
    status = Column(String(20), default="pending", nullable=False)
    channel = Column(String(20), default="online", nullable=False)  # online, phone, walk_in, portal
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_start_time = Column(String(5), nullable=False)  # "HH:MM"
    scheduled_end_time = Column(String(5), nullable=False)
    is_mobile = Column(Boolean, default=False, nullable=False)
    mobile_address = Column(String(500), nullable=True)
    mobile_surcharge = Column(Float, default=0.0, nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    subtotal = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0, nullable=False)
    discount_amount = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, default=0.0, nullable=False)
    job_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    vehicle = relationship("Vehicle")
    employee = relationship("Employee")
    services = relationship(
        "AppointmentService", back_populates="appointment", cascade="all, delete-orphan"
    )


class AppointmentService(Base):
    __tablename__ = "appointment_services"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price_at_booking = Column(Float, default=0.0, nullable=False)
    tier_name = Column(String(100), nullable=True)

    appointment = relationship("Appointment", back_populates="services")
    service = relationship("Service")


class Job(Base):
    """Work in the bay; walk-ins have no appointment"""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    assigned_staff_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    status = Column(String(20), default="intake", nullable=False)  # intake, in_progress, completed, cancelled
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    receipt_number = Column(String(50), unique=True, index=True, nullable=True)
    square_transaction_id = Column(String(100), unique=True, index=True, nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    # open, completed, voided, refunded, partial_refund
    status = Column(String(20), default="completed", nullable=False)
    subtotal = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0, nullable=False)
    tip_amount = Column(Float, default=0.0, nullable=False)
    discount_amount = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, default=0.0, nullable=False)
    payment_method = Column(String(20), nullable=True)  # cash, card, split, gift_card, ...
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=True)
    loyalty_points_earned = Column(Integer, default=0, nullable=False)
    loyalty_points_redeemed = Column(Integer, default=0, nullable=False)
    loyalty_discount = Column(Float, default=0.0, nullable=False)
    notes = Column(Text, nullable=True)
    transaction_date = Column(DateTime, server_default=func.now(), index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    items = relationship(
        "TransactionItem", back_populates="transaction", cascade="all, delete-orphan"
    )
    payments = relationship("Payment", back_populates="transaction", cascade="all, delete-orphan")
    refunds = relationship("Refund", back_populates="transaction", cascade="all, delete-orphan")


class TransactionItem(Base):
    __tablename__ = "transaction_items"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, index=True)
    item_type = Column(String(20), nullable=False)  # product, service, custom
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Float, default=1, nullable=False)
    unit_price = Column(Float, default=0.0, nullable=False)
    total_price = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0, nullable=False)
    is_taxable = Column(Boolean, default=False, nullable=False)
    tier_name = Column(String(100), nullable=True)
    vehicle_size_class = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    transaction = relationship("Transaction", back_populates="items")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, index=True)
    method = Column(String(20), nullable=False)
    amount = Column(Float, default=0.0, nullable=False)
    tip_amount = Column(Float, default=0.0, nullable=False)
    tip_net = Column(Float, default=0.0, nullable=False)  # card tips minus processing fee
    card_brand = Column(String(50), nullable=True)
    card_last_four = Column(String(4), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    transaction = relationship("Transaction", back_populates="payments")


class Refund(Base):
    __tablename__ = "refunds"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, index=True)
    status = Column(String(20), default="processed", nullable=False)  # pending, processed, failed
    amount = Column(Float, default=0.0, nullable=False)
    reason = Column(Text, nullable=True)
    processed_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    transaction = relationship("Transaction", back_populates="refunds")
    items = relationship("RefundItem", back_populates="refund", cascade="all, delete-orphan")


class RefundItem(Base):
    __tablename__ = "refund_items"

    id = Column(Integer, primary_key=True, index=True)
    refund_id = Column(Integer, ForeignKey("refunds.id"), nullable=False, index=True)
    transaction_item_id = Column(Integer, ForeignKey("transaction_items.id"), nullable=False)
    quantity = Column(Float, default=1, nullable=False)
    amount = Column(Float, default=0.0, nullable=False)
    restock = Column(Boolean, default=False, nullable=False)

    refund = relationship("Refund", back_populates="items")
