"""Quote repository - Database operations for quotes"""

import re
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ...database import LIKE_ESCAPE, contains_pattern
from ...models import Customer
from ...models_sales import Quote, QuoteItem


class QuoteRepository:
    """Repository for quote database operations"""

    @staticmethod
    def list_quotes(
        db: Session,
        page: int,
        limit: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Quote], int]:
        query = (
            db.query(Quote)
            .outerjoin(Customer, Quote.customer_id == Customer.id)
            .filter(Quote.deleted_at.is_(None))
        )
        if status:
            query = query.filter(Quote.status == status)
        if customer_id:
            query = query.filter(Quote.customer_id == customer_id)
        if search:
            term = contains_pattern(search)
            full_name = func.lower(
                func.coalesce(Customer.first_name, "") + " " + func.coalesce(Customer.last_name, "")
            )
            query = query.filter(
                or_(
                    func.lower(Quote.quote_number).like(term, escape=LIKE_ESCAPE),
                    full_name.like(term, escape=LIKE_ESCAPE),
                    func.coalesce(Customer.phone, "").like(term, escape=LIKE_ESCAPE),
                )
            )

        total = query.count()
        quotes = (
            query.options(
                joinedload(Quote.customer), joinedload(Quote.vehicle), selectinload(Quote.items)
            )
            .order_by(Quote.created_at.desc(), Quote.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return quotes, total

    @staticmethod
    def get_quote(db: Session, quote_id: int) -> Optional[Quote]:
        return (
            db.query(Quote)
            .options(joinedload(Quote.customer), joinedload(Quote.vehicle), selectinload(Quote.items))
            .filter(Quote.id == quote_id, Quote.deleted_at.is_(None))
            .first()
        )

    @staticmethod
    def get_by_access_token(db: Session, token: str) -> Optional[Quote]:
        return (
            db.query(Quote)
            .options(joinedload(Quote.customer), selectinload(Quote.items))
            .filter(Quote.access_token == token, Quote.deleted_at.is_(None))
            .first()
        )

    @staticmethod
    def access_token_exists(db: Session, token: str) -> bool:
        return db.query(Quote.id).filter(Quote.access_token == token).first() is not None

    @staticmethod
    def next_quote_number(db: Session) -> str:
        """Q-0001, Q-0002, ... continuing from the highest number issued"""
        highest = 0
        for (number,) in db.query(Quote.quote_number).all():
            match = re.match(r"^Q-(\d+)$", number or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"Q-{highest + 1:04d}"

    @staticmethod
    def create_quote(db: Session, **data) -> Quote:
        quote = Quote(**data)
        db.add(quote)
        db.commit()
        db.refresh(quote)
        return quote

    @staticmethod
    def add_items(db: Session, quote: Quote, items: list[dict]) -> None:
        for item in items:
            db.add(QuoteItem(quote_id=quote.id, **item))
        db.commit()
        db.refresh(quote)

    @staticmethod
    def replace_items(db: Session, quote: Quote, items: list[dict]) -> None:
        db.query(QuoteItem).filter(QuoteItem.quote_id == quote.id).delete()
        for item in items:
            db.add(QuoteItem(quote_id=quote.id, **item))

    @staticmethod
    def delete_quote(db: Session, quote: Quote) -> None:
        db.delete(quote)
        db.commit()
