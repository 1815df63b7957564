"""Service price display and tier resolution"""

from typing import Optional

from ...models_catalog import Service, ServicePricing
from ...shared.formatting import format_money

CONTACT_FOR_PRICING = "Contact for pricing"


def _size_prices(tier: ServicePricing) -> list[float]:
    prices = [
        tier.vehicle_size_sedan_price,
        tier.vehicle_size_truck_suv_price,
        tier.vehicle_size_suv_van_price,
    ]
    return [p for p in prices if p is not None]


def format_service_price(service: Service) -> str:
    """Starting price label shown on menus and the public site"""
    pricing = list(service.pricing or [])
    model = service.pricing_model

    if model == "vehicle_size":
        if not pricing:
            return CONTACT_FOR_PRICING
        tier = pricing[0]
        prices = _size_prices(tier)
        if prices:
            return f"From {format_money(min(prices))}"
        return f"From {format_money(tier.price)}"

    if model in ("scope", "specialty"):
        if not pricing:
            return CONTACT_FOR_PRICING
        return f"From {format_money(min(t.price for t in pricing))}"

    if model == "per_unit":
        if service.per_unit_price is None:
            return CONTACT_FOR_PRICING
        return f"{format_money(service.per_unit_price)}/{service.per_unit_label or 'unit'}"

    if model == "flat":
        if service.flat_price is None:
            return CONTACT_FOR_PRICING
        return format_money(service.flat_price)

    if model == "custom":
        if service.custom_starting_price is None:
            return CONTACT_FOR_PRICING
        return f"From {format_money(service.custom_starting_price)}"

    return CONTACT_FOR_PRICING


def resolve_tier_price(tier: ServicePricing, size_class: Optional[str]) -> float:
    """Price of a tier for a vehicle size; falls back to the tier price"""
    if tier.is_vehicle_size_aware and size_class:
        size_price = {
            "sedan": tier.vehicle_size_sedan_price,
            "truck_suv_2row": tier.vehicle_size_truck_suv_price,
            "suv_3row_van": tier.vehicle_size_suv_van_price,
        }.get(size_class)
        if size_price is not None:
            return size_price
    return tier.price
