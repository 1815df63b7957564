"""POS repository - Database operations for transactions"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ...models_catalog import Product
from ...models_sales import Payment, Refund, RefundItem, Transaction, TransactionItem


class TransactionRepository:
    """Repository for transaction database operations"""

    @staticmethod
    def list_transactions(
        db: Session,
        page: int,
        limit: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> tuple[list[Transaction], int]:
        query = db.query(Transaction)
        if status:
            query = query.filter(Transaction.status == status)
        if customer_id:
            query = query.filter(Transaction.customer_id == customer_id)
        if date_from:
            query = query.filter(Transaction.transaction_date >= datetime.combine(date_from, time.min))
        if date_to:
            query = query.filter(Transaction.transaction_date <= datetime.combine(date_to, time.max))

        total = query.count()
        transactions = (
            query.options(selectinload(Transaction.items), selectinload(Transaction.payments))
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return transactions, total

    @staticmethod
    def get_transaction(db: Session, transaction_id: int) -> Optional[Transaction]:
        return (
            db.query(Transaction)
            .options(selectinload(Transaction.items), selectinload(Transaction.payments))
            .filter(Transaction.id == transaction_id)
            .first()
        )

    @staticmethod
    def create_transaction(db: Session, **data) -> Transaction:
        transaction = Transaction(**data)
        db.add(transaction)
        db.commit()
        db.refresh(transaction)
        return transaction

    @staticmethod
    def add_children(db: Session, transaction: Transaction, items: list[dict], payments: list[dict]) -> None:
        for item in items:
            db.add(TransactionItem(transaction_id=transaction.id, **item))
        for payment in payments:
            db.add(Payment(transaction_id=transaction.id, **payment))
        db.commit()

    @staticmethod
    def delete_transaction(db: Session, transaction: Transaction) -> None:
        db.delete(transaction)
        db.commit()

    @staticmethod
    def decrement_stock(db: Session, product_id: int, quantity: float) -> None:
        product = db.get(Product, product_id)
        if product:
            product.quantity_on_hand = max(0, int((product.quantity_on_hand or 0) - quantity))

    @staticmethod
    def increment_stock(db: Session, product_id: int, quantity: float) -> None:
        product = db.get(Product, product_id)
        if product:
            product.quantity_on_hand = int((product.quantity_on_hand or 0) + quantity)

    # ========================================================================
    # REFUNDS
    # ========================================================================

    @staticmethod
    def refunded_total(db: Session, transaction_id: int) -> float:
        total = (
            db.query(func.coalesce(func.sum(Refund.amount), 0.0))
            .filter(Refund.transaction_id == transaction_id, Refund.status == "processed")
            .scalar()
        )
        return float(total or 0.0)

    @staticmethod
    def create_refund(db: Session, **data) -> Refund:
        refund = Refund(**data)
        db.add(refund)
        db.commit()
        db.refresh(refund)
        return refund

    @staticmethod
    def add_refund_items(db: Session, refund: Refund, items: list[dict]) -> None:
        for item in items:
            db.add(RefundItem(refund_id=refund.id, **item))
        db.commit()

    @staticmethod
    def delete_refund(db: Session, refund: Refund) -> None:
        db.delete(refund)
        db.commit()

    @staticmethod
    def get_refund(db: Session, refund_id: int) -> Optional[Refund]:
        return db.query(Refund).options(selectinload(Refund.items)).filter(Refund.id == refund_id).first()
