"""
Coupon evaluation shared by the booking validator and the POS promotions panel.

Every check is a fixed-order chain over the coupon's string fields; anything
unrecognised falls through to the safe answer (no discount, not eligible).
"""

from typing import Optional

from pydantic import BaseModel

from ...models import Customer
from ...models_marketing import Coupon, CouponReward
from ...shared.formatting import format_money, round_money

CUSTOMER_TYPE_LABELS = {"enthusiast": "Enthusiast", "professional": "Professional"}


class TargetingResult(BaseModel):
    passed: bool
    warning: Optional[str] = None
    reason: Optional[str] = None


class ConditionsResult(BaseModel):
    passed: bool
    failed_conditions: list[str] = []
    missing: list[str] = []


# ============================================================================
# TARGETING
# ============================================================================


def check_customer_targeting(
    coupon: Coupon, customer: Optional[Customer], enforcement: str = "soft"
) -> TargetingResult:
    if coupon.customer_id:
        if not customer or coupon.customer_id != customer.id:
            return TargetingResult(passed=False, reason="This coupon is assigned to a different customer")

    required_tags = coupon.customer_tags or []
    if required_tags:
        if not customer:
            return TargetingResult(passed=False, reason="A customer account is required to use this coupon")
        customer_tags = customer.tags or []
        if (coupon.tag_match_mode or "any") == "all":
            matched = all(tag in customer_tags for tag in required_tags)
        else:
            matched = any(tag in customer_tags for tag in required_tags)
        if not matched:
            return TargetingResult(passed=False, reason="You are not eligible for this coupon")

    if coupon.target_customer_type:
        if not customer:
            return TargetingResult(passed=False, reason="A customer account is required to use this coupon")
        if customer.customer_type != coupon.target_customer_type:
            label = CUSTOMER_TYPE_LABELS.get(coupon.target_customer_type, "Professional")
            if enforcement == "hard":
                return TargetingResult(passed=False, reason=f"This coupon is only for {label} customers")
            return TargetingResult(passed=True, warning=f"This coupon is intended for {label} customers")

    return TargetingResult(passed=True)


# ============================================================================
# CONDITIONS
# ============================================================================


def _cart_has(items: list, item_type: str, attr: str, wanted: list) -> bool:
    return any(
        item.item_type == item_type and getattr(item, attr) is not None and getattr(item, attr) in wanted
        for item in items
    )


def check_conditions(
    coupon: Coupon,
    items: list,
    subtotal: float,
    customer: Optional[Customer] = None,
    unknown_customer_is_new: bool = False,
) -> ConditionsResult:
    """
    Evaluate purchase requirements.

    missing holds codes the POS can act on: product, service, product_category,
    service_category and min_purchase:<amount>.
    With no customer the visit limit only passes when unknown_customer_is_new is set.
    """
    conditions: list[tuple[bool, str, Optional[str]]] = []

    if coupon.requires_product_ids:
        met = _cart_has(items, "product", "product_id", coupon.requires_product_ids)
        conditions.append((met, "required product", "product"))

    if coupon.requires_service_ids:
        met = _cart_has(items, "service", "service_id", coupon.requires_service_ids)
        conditions.append((met, "required service", "service"))

    if coupon.requires_product_category_ids:
        met = _cart_has(items, "product", "category_id", coupon.requires_product_category_ids)
        conditions.append((met, "product from required category", "product_category"))

    if coupon.requires_service_category_ids:
        met = _cart_has(items, "service", "category_id", coupon.requires_service_category_ids)
        conditions.append((met, "service from required category", "service_category"))

    if coupon.min_purchase is not None:
        met = subtotal >= coupon.min_purchase
        conditions.append(
            (met, f"minimum purchase of ${coupon.min_purchase:.2f}", f"min_purchase:{coupon.min_purchase:g}")
        )

    if coupon.max_customer_visits is not None:
        if customer is not None:
            met = (customer.visit_count or 0) <= coupon.max_customer_visits
        else:
            met = unknown_customer_is_new
        conditions.append((met, "visit count limit", None))

    if not conditions:
        return ConditionsResult(passed=True)

    if (coupon.condition_logic or "and") == "and":
        passed = all(met for met, _, _ in conditions)
    else:
        passed = any(met for met, _, _ in conditions)

    return ConditionsResult(
        passed=passed,
        failed_conditions=[desc for met, desc, _ in conditions if not met],
        missing=[code for met, _, code in conditions if not met and code],
    )


# ============================================================================
# DISCOUNTS
# ============================================================================


def reward_amount(reward: CouponReward, applicable_price: float) -> float:
    if reward.discount_type == "percentage":
        discount = round_money(applicable_price * (reward.discount_value / 100))
        if reward.max_discount is not None:
            discount = min(discount, reward.max_discount)
        return discount
    if reward.discount_type == "flat":
        return min(reward.discount_value, applicable_price)
    if reward.discount_type == "free":
        return applicable_price
    return 0.0


def matching_items(
    items: list, item_type: str, target_id: Optional[int], target_category_id: Optional[int]
) -> list:
    id_attr = "product_id" if item_type == "product" else "service_id"
    matched = []
    for item in items:
        if item.item_type != item_type:
            continue
        if target_id:
            if getattr(item, id_attr) == target_id:
                matched.append(item)
        elif target_category_id:
            if item.category_id == target_category_id:
                matched.append(item)
        else:
            matched.append(item)
    return matched


def evaluate_reward(reward: CouponReward, items: list, subtotal: float) -> tuple[float, str]:
    """Discount for one reward and the name of what it discounts"""
    if reward.applies_to == "order":
        return round_money(reward_amount(reward, subtotal)), "Order"

    if reward.applies_to == "product":
        matched = matching_items(
            items, "product", reward.target_product_id, reward.target_product_category_id
        )
        fallback = "Products"
        target_id = reward.target_product_id
    elif reward.applies_to == "service":
        matched = matching_items(
            items, "service", reward.target_service_id, reward.target_service_category_id
        )
        fallback = "Services"
        target_id = reward.target_service_id
    else:
        return 0.0, "Order"

    if not matched:
        return 0.0, fallback
    price = sum(item.unit_price * item.quantity for item in matched)
    target_name = matched[0].item_name if target_id else fallback
    return round_money(reward_amount(reward, price)), target_name


def calculate_coupon_discount(rewards: list[CouponReward], items: list, subtotal: float) -> float:
    """Sum of reward discounts, never more than the subtotal"""
    total = sum(evaluate_reward(reward, items, subtotal)[0] for reward in rewards)
    return round_money(min(total, subtotal))


# ============================================================================
# LABELS
# ============================================================================


def format_reward_line(reward: CouponReward, target_names: Optional[dict] = None) -> str:
    """
    Admin summary of a reward, e.g. "20% off entire order (max $50.00)".

    target_names maps ("product"|"service"|"product_category"|"service_category", id) to a name.
    """
    names = target_names or {}

    if reward.discount_type == "free":
        prefix = "Free"
    elif reward.discount_type == "percentage":
        prefix = f"{reward.discount_value:g}% off"
    else:
        prefix = f"{format_money(reward.discount_value)} off"

    if reward.applies_to == "order":
        target = "entire order"
    elif reward.applies_to == "product":
        if reward.target_product_id:
            target = names.get(("product", reward.target_product_id), "product")
        elif reward.target_product_category_id:
            target = names.get(("product_category", reward.target_product_category_id), "category") + " products"
        else:
            target = "any product"
    else:
        if reward.target_service_id:
            target = names.get(("service", reward.target_service_id), "service")
        elif reward.target_service_category_id:
            target = names.get(("service_category", reward.target_service_category_id), "category") + " services"
        else:
            target = "any service"

    line = f"Free {target}" if reward.discount_type == "free" else f"{prefix} {target}"
    if reward.max_discount:
        line += f" (max {format_money(reward.max_discount)})"
    return line


def short_reward_label(reward: CouponReward) -> str:
    """Compact POS label: "Free item", "15% off", "$5 off" """
    if reward.discount_type == "free":
        return "Free item"
    if reward.discount_type == "percentage":
        return f"{reward.discount_value:g}% off"
    return f"${reward.discount_value:g} off"
