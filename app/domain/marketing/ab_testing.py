"""A/B variant assignment and winner selection"""

import random
from typing import Optional

from pydantic import BaseModel


class VariantStats(BaseModel):
    variant_id: int
    label: str
    sent: int = 0
    delivered: int = 0
    clicked: int = 0
    is_winner: bool = False

    @property
    def click_through_rate(self) -> float:
        return self.clicked / self.delivered if self.delivered else 0.0

    @property
    def delivery_rate(self) -> float:
        return self.delivered / self.sent if self.sent else 0.0


def split_recipients(
    customer_ids: list[int], variants: list[tuple[int, int]], rng: Optional[random.Random] = None
) -> dict[int, list[int]]:
    """
    Assign recipients to variants by split percentage.

    variants is a list of (variant_id, split_percentage). Recipients are shuffled, then
    each one's position (as a percentage of the list) is compared to the cumulative
    split thresholds. Positions past the last threshold go to the last variant.
    """
    result: dict[int, list[int]] = {variant_id: [] for variant_id, _ in variants}
    if not variants:
        return result

    shuffled = list(customer_ids)
    (rng or random).shuffle(shuffled)

    thresholds = []
    cumulative = 0
    for variant_id, percentage in variants:
        cumulative += percentage
        thresholds.append((variant_id, cumulative))

    for index, customer_id in enumerate(shuffled):
        position = (index + 1) / len(shuffled) * 100
        assigned = thresholds[-1][0]
        for variant_id, threshold in thresholds:
            if position <= threshold:
                assigned = variant_id
                break
        result[assigned].append(customer_id)

    return result


def determine_winner(stats: list[VariantStats]) -> Optional[int]:
    """Highest click-through rate wins; ties go to the better delivery rate"""
    best_id = None
    best_ctr = -1.0
    best_delivery = -1.0
    for stat in stats:
        if stat.sent == 0:
            continue
        ctr = stat.click_through_rate
        delivery = stat.delivery_rate
        if ctr > best_ctr or (ctr == best_ctr and delivery > best_delivery):
            best_id = stat.variant_id
            best_ctr = ctr
            best_delivery = delivery
    return best_id
