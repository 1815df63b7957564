"""Money, slug and code helpers"""

import re
import secrets
import string
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

Number = Union[int, float, Decimal]


def round_money(value: Optional[Number]) -> float:
    """Round to cents, halves away from zero (1.005 -> 1.01)"""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def cents_to_dollars(cents: Optional[int]) -> float:
    if not cents:
        return 0.0
    return round_money(Decimal(cents) / 100)


def format_money(value: Optional[Number]) -> str:
    return f"${round_money(value):,.2f}"


def slugify(value: str) -> str:
    """Lowercase, '&' -> 'and', runs of non-alphanumerics -> '-'"""
    slug = value.lower().replace("&", "and")
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return slug.strip("-")


def role_slug(value: str) -> str:
    """Role names: lowercase, whitespace -> '_', only [a-z0-9_] kept"""
    slug = re.sub(r"\s+", "_", value.strip().lower())
    return re.sub(r"[^a-z0-9_]", "", slug)


def generate_code(length: int, alphabet: str = string.ascii_letters + string.digits) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))
