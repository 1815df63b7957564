"""Quote arithmetic"""

from typing import Iterable

from ...constants import TAX_RATE
from ...shared.formatting import round_money


def calculate_totals(items: Iterable) -> dict:
    """
    Subtotal of every line; tax only on product lines.

    Items need quantity, unit_price and product_id attributes.
    total_amount always equals subtotal + tax_amount.
    """
    items = list(items)
    subtotal = round_money(sum(item.quantity * item.unit_price for item in items))
    taxable = sum(item.quantity * item.unit_price for item in items if item.product_id)
    tax_amount = round_money(taxable * TAX_RATE)
    return {
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total_amount": round_money(subtotal + tax_amount),
    }


def line_total(quantity: float, unit_price: float) -> float:
    return round_money(quantity * unit_price)
