"""Loyalty repository - ledger rows and balance lookups"""

from typing import Optional

from sqlalchemy.orm import Session

from ...constants import WATER_SKU
from ...models_catalog import Product
from ...models_marketing import LoyaltyLedger


class LoyaltyRepository:
    """Repository for loyalty ledger operations"""

    @staticmethod
    def add_entry(db: Session, **data) -> LoyaltyLedger:
        """Ledger rows are only ever inserted; the caller commits"""
        entry = LoyaltyLedger(**data)
        db.add(entry)
        return entry

    @staticmethod
    def get_entries(db: Session, customer_id: int, page: int, limit: int) -> tuple[list[LoyaltyLedger], int]:
        query = db.query(LoyaltyLedger).filter(LoyaltyLedger.customer_id == customer_id)
        total = query.count()
        entries = (
            query.order_by(LoyaltyLedger.created_at.desc(), LoyaltyLedger.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return entries, total

    @staticmethod
    def water_product_id(db: Session) -> Optional[int]:
        row = db.query(Product.id).filter(Product.sku == WATER_SKU).first()
        return row[0] if row else None
