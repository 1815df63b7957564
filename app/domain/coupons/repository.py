"""Coupon repository - Database operations for coupons and rewards"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...database import LIKE_ESCAPE, contains_pattern
from ...models_catalog import Product, ProductCategory, Service, ServiceCategory
from ...models_marketing import Coupon, CouponReward
from ...models_sales import Transaction


class CouponRepository:
    """Repository for coupon database operations"""

    @staticmethod
    def list_coupons(
        db: Session, page: int, limit: int, search: Optional[str] = None, status: Optional[str] = None
    ) -> tuple[list[Coupon], int]:
        query = db.query(Coupon)
        if search:
            term = contains_pattern(search)
            query = query.filter(
                or_(
                    func.lower(func.coalesce(Coupon.name, "")).like(term, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(Coupon.code, "")).like(term, escape=LIKE_ESCAPE),
                )
            )
        if status:
            query = query.filter(Coupon.status == status)

        total = query.count()
        coupons = (
            query.options(selectinload(Coupon.rewards))
            .order_by(Coupon.created_at.desc(), Coupon.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return coupons, total

    @staticmethod
    def get_coupon(db: Session, coupon_id: int) -> Optional[Coupon]:
        return (
            db.query(Coupon)
            .options(selectinload(Coupon.rewards))
            .filter(Coupon.id == coupon_id)
            .first()
        )

    @staticmethod
    def get_by_code(db: Session, code: str, exclude_id: Optional[int] = None) -> Optional[Coupon]:
        query = (
            db.query(Coupon)
            .options(selectinload(Coupon.rewards))
            .filter(func.upper(Coupon.code) == code.upper())
        )
        if exclude_id is not None:
            query = query.filter(Coupon.id != exclude_id)
        return query.order_by(Coupon.id.desc()).first()

    @staticmethod
    def get_active_coupons(db: Session, now: datetime) -> list[Coupon]:
        return (
            db.query(Coupon)
            .options(selectinload(Coupon.rewards))
            .filter(
                Coupon.status == "active",
                or_(Coupon.expires_at.is_(None), Coupon.expires_at > now),
            )
            .all()
        )

    @staticmethod
    def create_coupon(db: Session, **data) -> Coupon:
        coupon = Coupon(**data)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    @staticmethod
    def replace_rewards(db: Session, coupon: Coupon, rewards: list[dict]) -> None:
        db.query(CouponReward).filter(CouponReward.coupon_id == coupon.id).delete()
        for reward in rewards:
            db.add(CouponReward(coupon_id=coupon.id, **reward))
        db.commit()
        db.refresh(coupon)

    @staticmethod
    def delete_coupon(db: Session, coupon: Coupon) -> None:
        db.delete(coupon)
        db.commit()

    @staticmethod
    def customer_has_used(db: Session, coupon_id: int, customer_id: int) -> bool:
        return (
            db.query(Transaction.id)
            .filter(Transaction.coupon_id == coupon_id, Transaction.customer_id == customer_id)
            .first()
            is not None
        )

    @staticmethod
    def names_for(db: Session, model, ids: list[int]) -> list[str]:
        if not ids:
            return []
        return [name for (name,) in db.query(model.name).filter(model.id.in_(ids)).all()]

    @staticmethod
    def reward_target_names(db: Session, rewards: list[CouponReward]) -> dict:
        lookups = {
            "product": (Product, "target_product_id"),
            "service": (Service, "target_service_id"),
            "product_category": (ProductCategory, "target_product_category_id"),
            "service_category": (ServiceCategory, "target_service_category_id"),
        }
        names = {}
        for kind, (model, attr) in lookups.items():
            ids = [getattr(r, attr) for r in rewards if getattr(r, attr)]
            if ids:
                for row_id, name in db.query(model.id, model.name).filter(model.id.in_(ids)).all():
                    names[(kind, row_id)] = name
        return names
