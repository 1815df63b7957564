"""Customer repository - Database operations for customers and vehicles"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...database import LIKE_ESCAPE, contains_pattern
from ...models import Customer, Vehicle
from ...models_sales import Transaction


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def search_customers(
        db: Session, search: Optional[str], page: int, limit: int
    ) -> tuple[list[Customer], int]:
        query = db.query(Customer)

        if search:
            term = contains_pattern(search)
            full_name = func.lower(
                func.coalesce(Customer.first_name, "") + " " + func.coalesce(Customer.last_name, "")
            )
            query = query.filter(
                or_(
                    full_name.like(term, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(Customer.email, "")).like(term, escape=LIKE_ESCAPE),
                    func.coalesce(Customer.phone, "").like(term, escape=LIKE_ESCAPE),
                )
            )

        total = query.count()
        customers = (
            query.options(selectinload(Customer.vehicles))
            .order_by(Customer.created_at.desc(), Customer.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return customers, total

    @staticmethod
    def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .options(selectinload(Customer.vehicles))
            .filter(Customer.id == customer_id)
            .first()
        )

    @staticmethod
    def get_customer_by_phone(db: Session, phone: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.phone == phone).first()

    @staticmethod
    def create_customer(db: Session, **data) -> Customer:
        customer = Customer(**data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        for key, value in updates.items():
            if hasattr(customer, key):
                setattr(customer, key, value)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def delete_customer(db: Session, customer: Customer) -> None:
        db.delete(customer)
        db.commit()

    @staticmethod
    def transaction_count(db: Session, customer_id: int) -> int:
        return db.query(Transaction).filter(Transaction.customer_id == customer_id).count()

    # --------------------------------------------------------------- vehicles

    @staticmethod
    def get_vehicles(db: Session, customer_id: int) -> list[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.customer_id == customer_id)
            .order_by(Vehicle.created_at, Vehicle.id)
            .all()
        )

    @staticmethod
    def get_vehicle(db: Session, customer_id: int, vehicle_id: int) -> Optional[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.customer_id == customer_id)
            .first()
        )

    @staticmethod
    def create_vehicle(db: Session, customer_id: int, **data) -> Vehicle:
        vehicle = Vehicle(customer_id=customer_id, **data)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def update_vehicle(db: Session, vehicle: Vehicle, **updates) -> Vehicle:
        for key, value in updates.items():
            if hasattr(vehicle, key):
                setattr(vehicle, key, value)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def delete_vehicle(db: Session, vehicle: Vehicle) -> None:
        db.delete(vehicle)
        db.commit()
