"""Coupon service - Business logic for coupon admin, validation and POS promotions"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import COUPON_CODE_ALPHABET
from ...errors import ConflictError, CouponInvalidError, NotFoundError, PersistenceError, ValidationFailed
from ...models import Customer
from ...models_catalog import Product, Service
from ...models_marketing import Coupon
from ...shared.formatting import generate_code, round_money
from ...shared.validators import normalize_phone
from ..settings.service import get_setting
from .engine import (
    calculate_coupon_discount,
    check_conditions,
    check_customer_targeting,
    evaluate_reward,
    format_reward_line,
    short_reward_label,
)
from .repository import CouponRepository
from .schemas import AvailablePromotionsRequest, CouponCreate, CouponUpdate, ValidateCouponRequest

logger = logging.getLogger(__name__)

COUPON_CODE_LENGTH = 8
UPSELL_MAX_FAILED_CONDITIONS = 4


def normalize_code(code: str) -> str:
    return "".join(code.split()).upper()


def generate_coupon_code() -> str:
    return generate_code(COUPON_CODE_LENGTH, COUPON_CODE_ALPHABET)


class CouponService:
    """Service layer for coupon operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CouponRepository()

    # ========================================================================
    # ADMIN
    # ========================================================================

    def list_coupons(
        self, page: int = 1, limit: int = 20, search: Optional[str] = None, status: Optional[str] = None
    ) -> dict:
        coupons, total = self.repo.list_coupons(self.db, page, limit, search, status)
        return {"coupons": coupons, "total": total, "page": page, "limit": limit}

    def get_coupon(self, coupon_id: int) -> Coupon:
        coupon = self.repo.get_coupon(self.db, coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    def create_coupon(self, data: CouponCreate) -> Coupon:
        code = normalize_code(data.code) if data.code else generate_coupon_code()
        status = "draft" if data.status == "draft" else "active"

        if status != "draft" and self.repo.get_by_code(self.db, code):
            raise ConflictError("Coupon code already exists")

        fields = data.model_dump(exclude={"rewards", "code", "status"}, exclude_none=True)
        logger.info(f"📥 Creating coupon {code} ({status})")
        coupon = self.repo.create_coupon(self.db, code=code, status=status, **fields)

        if data.rewards:
            try:
                self.repo.replace_rewards(self.db, coupon, [r.model_dump() for r in data.rewards])
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Failed to save rewards for coupon {code}: {e}, removing coupon")
                self.repo.delete_coupon(self.db, coupon)
                raise PersistenceError("Failed to create coupon rewards") from e

        return self.get_coupon(coupon.id)

    def update_coupon(self, coupon_id: int, data: CouponUpdate) -> Coupon:
        coupon = self.get_coupon(coupon_id)
        updates = data.model_dump(exclude_unset=True, exclude={"rewards"})

        if isinstance(updates.get("code"), str):
            updates["code"] = normalize_code(updates["code"])
            if not updates["code"]:
                raise ValidationFailed("Coupon code cannot be empty")
            if self.repo.get_by_code(self.db, updates["code"], exclude_id=coupon.id):
                raise ConflictError("Coupon code already exists")

        for required in ("status", "auto_apply", "tag_match_mode", "condition_logic", "is_single_use"):
            if required in updates and updates[required] is None:
                updates.pop(required)

        for key, value in updates.items():
            setattr(coupon, key, value)
        self.db.commit()

        if data.rewards is not None:
            self.repo.replace_rewards(self.db, coupon, [r.model_dump() for r in data.rewards])

        self.db.expire_all()
        return self.get_coupon(coupon_id)

    def delete_coupon(self, coupon_id: int) -> dict:
        """Coupons stay on past transactions, so delete only disables"""
        coupon = self.get_coupon(coupon_id)
        coupon.status = "disabled"
        self.db.commit()
        logger.info(f"🗑️ Coupon {coupon.code} disabled")
        return {"success": True}

    def enable_coupon(self, coupon_id: int) -> Coupon:
        coupon = self.get_coupon(coupon_id)
        if coupon.status != "disabled":
            raise ValidationFailed("Only disabled coupons can be enabled")
        coupon.status = "active"
        self.db.commit()
        logger.info(f"🔄 Coupon {coupon.code} enabled")
        return coupon

    def disable_coupon(self, coupon_id: int) -> Coupon:
        coupon = self.get_coupon(coupon_id)
        if coupon.status != "active":
            raise ValidationFailed("Only active coupons can be disabled")
        coupon.status = "disabled"
        self.db.commit()
        logger.info(f"🔄 Coupon {coupon.code} disabled")
        return coupon

    def reward_lines(self, coupon_id: int) -> dict:
        coupon = self.get_coupon(coupon_id)
        names = self.repo.reward_target_names(self.db, coupon.rewards)
        return {"id": coupon.id, "lines": [format_reward_line(r, names) for r in coupon.rewards]}

    # ========================================================================
    # VALIDATION
    # ========================================================================

    def _find_customer(
        self, customer_id: Optional[int], phone: Optional[str], email: Optional[str]
    ) -> Optional[Customer]:
        if customer_id:
            return self.db.get(Customer, customer_id)
        e164 = normalize_phone(phone)
        if e164:
            customer = self.db.query(Customer).filter(Customer.phone == e164).first()
            if customer:
                return customer
        if email:
            return self.db.query(Customer).filter(Customer.email == email.strip().lower()).first()
        return None

    def _requirement_message(self, coupon: Coupon, subtotal: float, customer: Optional[Customer], failed: list[str]) -> str:
        parts = []
        if coupon.min_purchase is not None and subtotal < coupon.min_purchase:
            parts.append(f"minimum purchase of ${coupon.min_purchase:.2f}")

        if coupon.max_customer_visits is not None:
            visits = (customer.visit_count or 0) if customer else 0
            if coupon.max_customer_visits == 0 and visits > 0:
                parts.append("new customers only (no previous visits)")
            elif visits > coupon.max_customer_visits:
                parts.append(f"customers with {coupon.max_customer_visits} or fewer visits")

        for desc, model, ids, fallback in (
            ("required product", Product, coupon.requires_product_ids, "a specific product"),
            ("required service", Service, coupon.requires_service_ids, "a specific service"),
        ):
            if desc in failed:
                names = self.repo.names_for(self.db, model, ids or [])
                if len(names) > 1:
                    parts.append(f"purchase of one of: {', '.join(names)}")
                else:
                    parts.append(f"purchase of {names[0] if names else fallback}")

        if "product from required category" in failed:
            parts.append("a product from a required category")
        if "service from required category" in failed:
            parts.append("a service from a required category")

        joiner = " and " if (coupon.condition_logic or "and") == "and" else " or "
        return f"Coupon requires {joiner.join(parts or failed)}"

    def validate_coupon(self, data: ValidateCouponRequest) -> dict:
        """Checks run in a fixed order; the first failure is returned to the customer"""
        code = normalize_code(data.code or "")
        if not code:
            raise CouponInvalidError("Coupon code is required")

        coupon = self.repo.get_by_code(self.db, code)
        if not coupon:
            raise CouponInvalidError("Invalid coupon code", status_code=404)
        if coupon.status != "active":
            raise CouponInvalidError(f"Coupon is {coupon.status}")
        if coupon.expires_at and coupon.expires_at < datetime.utcnow():
            raise CouponInvalidError("Coupon has expired")
        if coupon.max_uses and coupon.use_count >= coupon.max_uses:
            raise CouponInvalidError("Coupon usage limit reached")

        customer = self._find_customer(data.customer_id, data.phone, data.email)

        if coupon.is_single_use and customer and self.repo.customer_has_used(self.db, coupon.id, customer.id):
            raise CouponInvalidError("You have already used this coupon")

        enforcement = get_setting(self.db, "coupon_type_enforcement") or "soft"
        targeting = check_customer_targeting(coupon, customer, enforcement)
        if not targeting.passed:
            raise CouponInvalidError(targeting.reason or "You are not eligible for this coupon")

        # Online bookings from someone not on file count as a first visit
        conditions = check_conditions(coupon, data.items, data.subtotal, customer, unknown_customer_is_new=True)
        if not conditions.passed:
            raise CouponInvalidError(
                self._requirement_message(coupon, data.subtotal, customer, conditions.failed_conditions)
            )

        rewards = []
        for reward in coupon.rewards:
            amount, target_name = evaluate_reward(reward, data.items, data.subtotal)
            if amount > 0:
                rewards.append(
                    {
                        "applies_to": reward.applies_to,
                        "discount_type": reward.discount_type,
                        "target_name": target_name,
                        "discount_amount": amount,
                    }
                )

        total_discount = round_money(min(sum(r["discount_amount"] for r in rewards), data.subtotal))
        description = " + ".join(
            f"Free {r['target_name']}"
            if r["discount_type"] == "free"
            else f"{r['target_name']} ${r['discount_amount']:.2f} off"
            for r in rewards
        ) or "Coupon applied"

        result = {
            "id": coupon.id,
            "code": coupon.code,
            "name": coupon.name,
            "rewards": rewards,
            "total_discount": total_discount,
            "description": description,
        }
        if targeting.warning:
            result["warning"] = targeting.warning
        logger.info(f"✅ Coupon {coupon.code} validated: -${total_discount:.2f}")
        return result

    # ========================================================================
    # POS PROMOTIONS
    # ========================================================================

    def available_promotions(self, data: AvailablePromotionsRequest) -> dict:
        customer = self.db.get(Customer, data.customer_id) if data.customer_id else None
        enforcement = get_setting(self.db, "coupon_type_enforcement")
        if enforcement not in ("soft", "hard"):
            enforcement = "soft"

        for_you, eligible, upsell = [], [], []

        for coupon in self.repo.get_active_coupons(self.db, datetime.utcnow()):
            if not coupon.rewards:
                continue
            if coupon.max_uses and coupon.use_count >= coupon.max_uses:
                continue

            targeting = check_customer_targeting(coupon, customer, enforcement)
            if not targeting.passed:
                continue

            conditions = check_conditions(coupon, data.items, data.subtotal, customer)
            promotion = {
                "id": coupon.id,
                "code": coupon.code,
                "name": coupon.name,
                "discount_amount": calculate_coupon_discount(coupon.rewards, data.items, data.subtotal),
                "description": " + ".join(short_reward_label(r) for r in coupon.rewards),
                "expires_at": coupon.expires_at,
                "target_customer_type": coupon.target_customer_type,
                "auto_apply": coupon.auto_apply,
            }
            if targeting.warning:
                promotion["warning"] = targeting.warning

            if customer and coupon.customer_id == customer.id:
                if not conditions.passed:
                    promotion["missing_items"] = conditions.missing
                for_you.append(promotion)
            elif conditions.passed:
                eligible.append(promotion)
            elif len(conditions.failed_conditions) < UPSELL_MAX_FAILED_CONDITIONS:
                promotion["missing_items"] = conditions.missing
                upsell.append(promotion)

        def by_discount(promotions: list[dict]) -> list[dict]:
            return sorted(promotions, key=lambda p: p["discount_amount"], reverse=True)

        return {"for_you": by_discount(for_you), "eligible": by_discount(eligible), "upsell": by_discount(upsell)}
