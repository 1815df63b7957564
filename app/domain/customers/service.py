"""Customer service - Business logic for the customer and vehicle CRM"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError, ValidationFailed
from ...models import Customer, Vehicle
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerUpdate, VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)


class CustomerService:
    """Service layer for customer operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def list_customers(self, search: Optional[str] = None, page: int = 1, limit: int = 20) -> dict:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        customers, total = self.repo.search_customers(self.db, search, page, limit)
        return {"customers": customers, "total": total, "page": page, "limit": limit}

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.repo.get_customer(self.db, customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    def create_customer(self, data: CustomerCreate) -> Customer:
        if data.phone and self.repo.get_customer_by_phone(self.db, data.phone):
            raise ConflictError("A customer with this phone number already exists")

        payload = data.model_dump()
        payload["first_name"] = data.first_name.strip()
        payload["tags"] = data.tags or []
        if payload.get("customer_type") is None:
            payload.pop("customer_type")

        logger.info(f"📥 Creating customer {payload['first_name']}")
        customer = self.repo.create_customer(self.db, **payload)
        logger.info(f"✅ Customer {customer.id} created")
        return customer

    def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        customer = self.get_customer(customer_id)
        updates = data.model_dump(exclude_unset=True)

        if "first_name" in updates and not (updates["first_name"] or "").strip():
            raise ValidationFailed("First name is required")
        if updates.get("phone") and updates["phone"] != customer.phone:
            existing = self.repo.get_customer_by_phone(self.db, updates["phone"])
            if existing and existing.id != customer.id:
                raise ConflictError("A customer with this phone number already exists")
        if "tags" in updates and updates["tags"] is None:
            updates["tags"] = []

        return self.repo.update_customer(self.db, customer, **updates)

    def delete_customer(self, customer_id: int) -> dict:
        customer = self.get_customer(customer_id)
        if self.repo.transaction_count(self.db, customer.id) > 0:
            raise ValidationFailed("Customers with transaction history cannot be deleted")

        self.repo.delete_customer(self.db, customer)
        logger.info(f"🗑️ Customer {customer_id} deleted")
        return {"success": True}

    # ========================================================================
    # VEHICLES
    # ========================================================================

    def list_vehicles(self, customer_id: int) -> list[Vehicle]:
        self.get_customer(customer_id)
        return self.repo.get_vehicles(self.db, customer_id)

    def get_vehicle(self, customer_id: int, vehicle_id: int) -> Vehicle:
        vehicle = self.repo.get_vehicle(self.db, customer_id, vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found")
        return vehicle

    def create_vehicle(self, customer_id: int, data: VehicleCreate) -> Vehicle:
        self.get_customer(customer_id)
        return self.repo.create_vehicle(self.db, customer_id, **data.model_dump())

    def update_vehicle(self, customer_id: int, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
        vehicle = self.get_vehicle(customer_id, vehicle_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("vehicle_type") is None:
            updates.pop("vehicle_type", None)
        # Editing a vehicle confirms its details
        updates["is_incomplete"] = False
        return self.repo.update_vehicle(self.db, vehicle, **updates)

    def delete_vehicle(self, customer_id: int, vehicle_id: int) -> dict:
        vehicle = self.get_vehicle(customer_id, vehicle_id)
        self.repo.delete_vehicle(self.db, vehicle)
        logger.info(f"🗑️ Vehicle {vehicle_id} deleted")
        return {"success": True}
