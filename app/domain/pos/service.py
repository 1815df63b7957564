"""POS service - checkout side effects: stock, customer stats, loyalty and coupon attribution"""

import logging
import math
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import CC_FEE_RATE
from ...errors import NotFoundError, PersistenceError, ValidationFailed
from ...models import Customer
from ...models_marketing import Campaign, Coupon
from ...models_sales import Refund, Transaction
from ...shared.formatting import round_money
from ..loyalty.service import LoyaltyService
from .repository import TransactionRepository
from .schemas import RefundCreate, TransactionCreate

logger = logging.getLogger(__name__)

REFUNDABLE_STATUSES = ("completed", "partial_refund")


def receipt_number(transaction: Transaction) -> str:
    """SD-20250114-42"""
    stamp = (transaction.transaction_date or datetime.utcnow()).strftime("%Y%m%d")
    return f"SD-{stamp}-{transaction.id}"


def tip_net(method: str, tip_amount: float) -> float:
    """Card tips are paid out minus the processing fee"""
    if method == "card":
        return round_money(tip_amount * (1 - CC_FEE_RATE))
    return tip_amount


class POSService:
    """Service layer for POS transactions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TransactionRepository()

    def list_transactions(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> dict:
        transactions, total = self.repo.list_transactions(
            self.db, page, limit, status, customer_id, date_from, date_to
        )
        return {"transactions": transactions, "total": total, "page": page, "limit": limit}

    def get_transaction(self, transaction_id: int) -> Transaction:
        transaction = self.repo.get_transaction(self.db, transaction_id)
        if not transaction:
            raise NotFoundError("Transaction not found")
        return transaction

    # ========================================================================
    # CHECKOUT
    # ========================================================================

    def create_transaction(self, data: TransactionCreate, employee_id: Optional[int]) -> Transaction:
        customer = None
        if data.customer_id:
            customer = self.db.get(Customer, data.customer_id)
            if not customer:
                raise NotFoundError("Customer not found")
        if data.loyalty_points_redeemed and not customer:
            raise ValidationFailed("Loyalty points can only be redeemed for a customer")

        logger.info(f"📥 Checkout by employee {employee_id}: ${data.total_amount:.2f} via {data.payment_method}")
        transaction = self.repo.create_transaction(
            self.db,
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            employee_id=employee_id,
            appointment_id=data.appointment_id,
            status="completed",
            subtotal=data.subtotal,
            tax_amount=data.tax_amount,
            tip_amount=data.tip_amount,
            discount_amount=data.discount_amount,
            total_amount=data.total_amount,
            payment_method=data.payment_method,
            coupon_id=data.coupon_id,
            loyalty_points_earned=0,
            loyalty_points_redeemed=data.loyalty_points_redeemed,
            loyalty_discount=data.loyalty_discount,
            notes=data.notes,
            transaction_date=datetime.utcnow(),
        )

        items = [item.model_dump() for item in data.items]
        payments = [
            {**payment.model_dump(), "tip_net": tip_net(payment.method, payment.tip_amount)}
            for payment in data.payments
        ]
        try:
            transaction.receipt_number = receipt_number(transaction)
            self.repo.add_children(self.db, transaction, items, payments)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save items or payments for transaction {transaction.id}: {e}, removing it")
            self.repo.delete_transaction(self.db, transaction)
            raise PersistenceError("Failed to save transaction items") from e

        for item in data.items:
            if item.item_type == "product" and item.product_id:
                self.repo.decrement_stock(self.db, item.product_id, item.quantity)

        if customer:
            self._update_customer(customer, transaction, data)
        if data.coupon_id:
            self._attribute_coupon(data.coupon_id, data.total_amount)

        self.db.commit()
        logger.info(f"✅ Transaction {transaction.receipt_number} completed")
        return self.get_transaction(transaction.id)

    def _update_customer(self, customer: Customer, transaction: Transaction, data: TransactionCreate) -> None:
        customer.visit_count = (customer.visit_count or 0) + 1
        customer.lifetime_spend = round_money((customer.lifetime_spend or 0) + data.total_amount)
        customer.last_visit_date = date.today()
        if not customer.first_visit_date:
            customer.first_visit_date = customer.last_visit_date

        loyalty = LoyaltyService(self.db)
        # Redemption is recorded before earning so the ledger balances read in order
        if data.loyalty_points_redeemed > 0:
            loyalty.deduct_points(
                customer,
                data.loyalty_points_redeemed,
                transaction.id,
                f"Redeemed for -${data.loyalty_discount:.2f} discount",
            )
        loyalty.award_points(
            customer,
            transaction,
            data.items,
            f"Earned from transaction #{transaction.receipt_number}",
        )

    def _attribute_coupon(self, coupon_id: int, total_amount: float) -> None:
        coupon = self.db.get(Coupon, coupon_id)
        if not coupon:
            logger.warning(f"⚠️ Transaction references missing coupon {coupon_id}")
            return
        coupon.use_count = (coupon.use_count or 0) + 1
        if coupon.campaign_id:
            campaign = self.db.get(Campaign, coupon.campaign_id)
            if campaign:
                campaign.redeemed_count = (campaign.redeemed_count or 0) + 1
                campaign.revenue_attributed = round_money((campaign.revenue_attributed or 0) + total_amount)

    # ========================================================================
    # VOID
    # ========================================================================

    def void_transaction(self, transaction_id: int, reason: Optional[str] = None) -> Transaction:
        transaction = self.get_transaction(transaction_id)
        if transaction.status == "voided":
            raise ValidationFailed("Transaction is already voided")
        if transaction.status != "completed":
            raise ValidationFailed(f"Cannot void a {transaction.status} transaction")

        transaction.status = "voided"
        if reason:
            transaction.notes = f"{transaction.notes}\nVoided: {reason}" if transaction.notes else f"Voided: {reason}"
        self.db.commit()
        logger.info(f"🗑️ Transaction {transaction.receipt_number or transaction.id} voided")
        return transaction

    # ========================================================================
    # REFUND
    # ========================================================================

    def refund_transaction(self, transaction_id: int, data: RefundCreate, employee_id: Optional[int]) -> Refund:
        """
        Refund some or all of a completed sale.

        Restocks product lines flagged for restock and takes back loyalty points
        in proportion to the refunded amount. The sale becomes refunded once
        everything paid has been returned, partial_refund before that.
        """
        transaction = self.get_transaction(transaction_id)
        if transaction.status not in REFUNDABLE_STATUSES:
            raise ValidationFailed(f"Transaction cannot be refunded (status: {transaction.status})")

        lines = {item.id: item for item in transaction.items}
        for item in data.items:
            line = lines.get(item.transaction_item_id)
            if not line:
                raise ValidationFailed(f"Item {item.transaction_item_id} is not part of this transaction")
            if item.quantity > line.quantity:
                raise ValidationFailed(f"Cannot refund more than {line.quantity:g} of {line.item_name}")

        amount = round_money(sum(item.amount for item in data.items))
        if amount <= 0:
            raise ValidationFailed("Refund amount must be greater than zero")

        already_refunded = self.repo.refunded_total(self.db, transaction.id)
        remaining = round_money(transaction.total_amount - already_refunded)
        if amount > remaining:
            raise ValidationFailed(f"Refund exceeds the ${remaining:.2f} remaining on this transaction")

        logger.info(f"📥 Refunding ${amount:.2f} on transaction {transaction.id} by employee {employee_id}")
        refund = self.repo.create_refund(
            self.db,
            transaction_id=transaction.id,
            status="processed",
            amount=amount,
            reason=data.reason,
            processed_by=employee_id,
        )
        try:
            self.repo.add_refund_items(self.db, refund, [item.model_dump() for item in data.items])
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save items for refund {refund.id}: {e}, removing it")
            self.repo.delete_refund(self.db, refund)
            raise PersistenceError("Failed to save refund items") from e

        for item in data.items:
            line = lines[item.transaction_item_id]
            if item.restock and line.item_type == "product" and line.product_id:
                self.repo.increment_stock(self.db, line.product_id, item.quantity)

        if transaction.customer_id and transaction.loyalty_points_earned > 0 and transaction.total_amount > 0:
            points = math.floor(transaction.loyalty_points_earned * (amount / transaction.total_amount))
            customer = self.db.get(Customer, transaction.customer_id)
            if points > 0 and customer:
                LoyaltyService(self.db).reverse_points(
                    customer, points, transaction.id, f"Adjusted for refund of ${amount:.2f}", employee_id
                )

        fully_refunded = round_money(already_refunded + amount) >= round_money(transaction.total_amount)
        transaction.status = "refunded" if fully_refunded else "partial_refund"
        self.db.commit()
        logger.info(f"✅ Refund {refund.id} processed: transaction {transaction.id} is now {transaction.status}")
        return self.repo.get_refund(self.db, refund.id)
