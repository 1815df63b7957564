"""Loyalty service - earn, redeem and adjust points against the ledger"""

import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import LOYALTY_EARN_RATE, LOYALTY_REDEEM_MINIMUM, LOYALTY_REDEEM_RATE
from ...errors import NotFoundError, ValidationFailed
from ...models import Customer
from ...models_sales import Transaction, TransactionItem
from ...shared.formatting import round_money
from .repository import LoyaltyRepository

logger = logging.getLogger(__name__)


def eligible_spend(items: list, water_product_id: Optional[int]) -> float:
    """Spend that earns points; bottled water never does"""
    total = 0.0
    for item in items:
        if item.item_type == "product" and water_product_id and item.product_id == water_product_id:
            continue
        total += item.total_price or 0.0
    return total


def points_for_spend(spend: float) -> int:
    return max(0, math.floor(spend * LOYALTY_EARN_RATE))


def redemption_value(points: int) -> float:
    return round_money(points * LOYALTY_REDEEM_RATE)


class LoyaltyService:
    """Service layer for loyalty points"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LoyaltyRepository()

    def _customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    # ========================================================================
    # EARN / REDEEM
    # ========================================================================

    def award_points(self, customer: Customer, transaction: Transaction, items: list, description: str) -> int:
        """Adds earned points without committing; returns the points earned"""
        points = points_for_spend(eligible_spend(items, self.repo.water_product_id(self.db)))
        if points <= 0:
            return 0

        customer.loyalty_points_balance = (customer.loyalty_points_balance or 0) + points
        transaction.loyalty_points_earned = points
        self.repo.add_entry(
            self.db,
            customer_id=customer.id,
            transaction_id=transaction.id,
            action="earned",
            points_change=points,
            points_balance=customer.loyalty_points_balance,
            description=description,
        )
        return points

    def deduct_points(self, customer: Customer, points: int, transaction_id: Optional[int], description: str) -> int:
        """Removes redeemed points without committing; the balance never drops below zero"""
        customer.loyalty_points_balance = max(0, (customer.loyalty_points_balance or 0) - points)
        self.repo.add_entry(
            self.db,
            customer_id=customer.id,
            transaction_id=transaction_id,
            action="redeemed",
            points_change=-points,
            points_balance=customer.loyalty_points_balance,
            description=description,
        )
        return customer.loyalty_points_balance

    def reverse_points(
        self, customer: Customer, points: int, transaction_id: int, description: str, employee_id: Optional[int]
    ) -> int:
        """Takes back points earned on a refunded sale without committing; the balance never drops below zero"""
        customer.loyalty_points_balance = max(0, (customer.loyalty_points_balance or 0) - points)
        self.repo.add_entry(
            self.db,
            customer_id=customer.id,
            transaction_id=transaction_id,
            action="adjusted",
            points_change=-points,
            points_balance=customer.loyalty_points_balance,
            description=description,
            created_by=employee_id,
        )
        return customer.loyalty_points_balance

    def earn_points(self, transaction_id: int, customer_id: int) -> dict:
        transaction = self.db.get(Transaction, transaction_id)
        if not transaction:
            raise NotFoundError("Transaction not found")
        customer = self._customer(customer_id)

        items = self.db.query(TransactionItem).filter(TransactionItem.transaction_id == transaction_id).all()
        points = points_for_spend(eligible_spend(items, self.repo.water_product_id(self.db)))
        if points <= 0:
            return {"points_earned": 0, "new_balance": customer.loyalty_points_balance or 0}

        self.award_points(customer, transaction, items, f"Earned {points} points from purchase")
        self.db.commit()
        logger.info(f"✅ Customer {customer.id} earned {points} points on transaction {transaction_id}")
        return {"points_earned": points, "new_balance": customer.loyalty_points_balance}

    def redeem_points(self, customer_id: int, points: int, transaction_id: Optional[int] = None) -> dict:
        customer = self._customer(customer_id)
        balance = customer.loyalty_points_balance or 0

        if points < LOYALTY_REDEEM_MINIMUM:
            raise ValidationFailed(f"A minimum of {LOYALTY_REDEEM_MINIMUM} points is required to redeem")
        if points > balance:
            raise ValidationFailed("Insufficient loyalty points", balance=balance)

        discount = redemption_value(points)
        new_balance = self.deduct_points(customer, points, transaction_id, f"Redeemed for -${discount:.2f} discount")
        self.db.commit()
        logger.info(f"✅ Customer {customer.id} redeemed {points} points for ${discount:.2f}")
        return {"points_redeemed": points, "discount": discount, "new_balance": new_balance}

    # ========================================================================
    # ADMIN
    # ========================================================================

    def adjust_points(self, customer_id: int, points_change: int, description: str, employee_id: int) -> dict:
        if points_change == 0:
            raise ValidationFailed("Adjustment cannot be zero")
        customer = self._customer(customer_id)
        new_balance = (customer.loyalty_points_balance or 0) + points_change
        if new_balance < 0:
            raise ValidationFailed("Adjustment would make the balance negative")

        customer.loyalty_points_balance = new_balance
        self.repo.add_entry(
            self.db,
            customer_id=customer.id,
            action="adjusted",
            points_change=points_change,
            points_balance=new_balance,
            description=description.strip(),
            created_by=employee_id,
        )
        self.db.commit()
        logger.info(f"🔄 Loyalty adjusted for customer {customer.id}: {points_change:+d} by employee {employee_id}")
        return {"points_change": points_change, "new_balance": new_balance}

    def get_ledger(self, customer_id: int, page: int = 1, limit: int = 50) -> dict:
        customer = self._customer(customer_id)
        entries, total = self.repo.get_entries(self.db, customer.id, page, limit)
        return {
            "customer_id": customer.id,
            "balance": customer.loyalty_points_balance or 0,
            "entries": entries,
            "total": total,
            "page": page,
            "limit": limit,
        }
