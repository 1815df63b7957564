"""
Classifies imported Square line items as services or retail products.

Square exports do not reliably say which line items were detailing services, so
the item name decides. Checks run in a fixed order:
exclusions -> exact service names -> product indicators -> brand prefixes ->
service keywords -> product.
"""

import re
from typing import Optional

# Retail items whose names look like services ("detailer", "detail brush")
PRODUCT_EXCLUSIONS = frozenset(
    {
        "smart details small  spray bottle",
        "smart details 32oz spray bottle",
        "smart details spray bottle",
        "smart detail large gray microfiber towel",
        "professional detail brush set / 3pk",
        "sonax ceramic ultra slick detailer / 750ml",
        "sonax ceramic ultra slick detailer",
        "maxshine vent detailer soft brush set",
        "classic detailing brush / l",
        "classic detailing brush / m",
        "classic detailing brush / s",
        "detailing clay mitt",
        "smart details large gray and brown microfiber towel",
        "16oz supreme seal instant detailer",
        "maxshine clay bar towel cloth for car detailing, red",
        "detailing swabs",
        "detailing swabs 10pc",
        "p & s professional detail products - swift clean & shine",
        "quick detailer / 500ml",
        "smart details shirt",
        "soft detailing brush /m",
        "soft detailing brush / s",
        "nylon detail brush",
        "ceramic applicator auto detail sponges",
        "1gal supreme seal instant detailer",
        "32oz supreme seal instant detailer medium",
        "double pile detailing towel  / 2 pack",
        "smart details bucket",
        "smart details hat",
        "maxshine detail bag",
        "p&s off road detail kit / 5pcs",
        "single small detail brush",
        "smart detail auto spa t-shirt / xxlarge",
        "smart details auto spa t-shirt / large & xlarge",
        "smart details hand sanitizer",
    }
)

SERVICE_EXACT_NAMES = frozenset(
    {
        "pro detail",
        "detail",
        "express detail",
        "standard detail",
        "custom",
        "custom service",
        "express wash",
        "express exterior wash",
        "express interior clean",
        "plus wash",
        "booster wash",
        "booster detail for coated vehicle",
        "ceramic coating",
        "paint correction",
        "3-stage paint correction",
        "paint restoration color correct",
        "headlight restoration",
        "engine bay steam cleaned",
        "undercarriage steam cleaning",
        "hot shampoo extraction / 2 seats",
        "hot shampoo extraction",
        "hot shampoo services",
        "clay-bar treatment w/ ceramic wax",
        "clay-bar treatment",
        "interior extra care",
        "medium depth scratch removal",
        "scratch repair",
        "floor mats- scrub & shampoo (set of 4)",
        "flood damage / mold extraction",
        "motorcycle detail",
        "organic fluid clean up",
        "ozone treatment",
        "leather conditioning",
        "uv dressing treatment",
        "uv dressing treatment interior",
        "water mark removal",
        "boat exterior wash",
        "rv interior clean",
        "rvs detail",
        "signature complete detail (pro detail)",
    }
)

# Sizes, volumes and pack counts only appear on retail items
PRODUCT_INDICATOR_PATTERNS = [
    re.compile(r"\b\d+\s*oz\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*ml\b", re.IGNORECASE),
    re.compile(r"\bgallon\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*gal\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*liter\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*pk\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*pcs\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*pack\b", re.IGNORECASE),
]

PRODUCT_BRAND_PREFIXES = (
    "p&s ",
    "p & s ",
    "sonax ",
    "maxshine ",
    "meguiar",
    "chemical guys ",
    "adam's ",
    "griots ",
    "mothers ",
    "turtle wax ",
    "3d ",
    "carpro ",
    "gyeon ",
    "koch ",
    "rupes ",
    "flex ",
    "torq ",
)

SERVICE_KEYWORD_PATTERNS = [
    re.compile(r"\bpro detail\b", re.IGNORECASE),
    re.compile(
        r"\bdetail\b(?!.*(?:brush|towel|bag|sponge|swab|shirt|hat|bucket|hand sanitizer"
        r"|spray|kit|t-shirt|cleaner|product))",
        re.IGNORECASE,
    ),
    re.compile(r"\bceramic coat", re.IGNORECASE),
    re.compile(r"\bpaint correct", re.IGNORECASE),
    re.compile(r"\bpaint restor", re.IGNORECASE),
    re.compile(r"\bheadlight restor\b(?!.*(?:system|kit))", re.IGNORECASE),
    re.compile(r"\bscratch (removal|repair)\b", re.IGNORECASE),
    re.compile(r"\bsteam clean", re.IGNORECASE),
    re.compile(r"\bshampoo (extraction|services)\b", re.IGNORECASE),
    re.compile(r"\bclay.?bar treat", re.IGNORECASE),
    re.compile(r"\binterior extra care", re.IGNORECASE),
    re.compile(r"\bengine bay", re.IGNORECASE),
    re.compile(r"\bundercarriage", re.IGNORECASE),
    re.compile(r"\bflood damage", re.IGNORECASE),
    re.compile(r"\bmold extraction", re.IGNORECASE),
    re.compile(r"\bozone treat", re.IGNORECASE),
    re.compile(r"\bleather condition", re.IGNORECASE),
    re.compile(r"\buv dressing", re.IGNORECASE),
    re.compile(r"\bwater.?mark removal", re.IGNORECASE),
    re.compile(r"\bboat.*wash", re.IGNORECASE),
    re.compile(r"\brv\b.*\b(detail|clean)", re.IGNORECASE),
    re.compile(r"\bmotorcycle detail", re.IGNORECASE),
    re.compile(r"\bbooster (wash|detail)", re.IGNORECASE),
    re.compile(r"\bexpress (wash|exterior)\b(?!.*(?:cleaner|product))", re.IGNORECASE),
    re.compile(r"\bfull service", re.IGNORECASE),
    re.compile(r"\bcustom service", re.IGNORECASE),
]


def classify_item_type(item_name: Optional[str]) -> str:
    """Return 'service' or 'product' for a Square line item name"""
    if not item_name:
        return "product"

    name = item_name.lower().strip()

    if name in PRODUCT_EXCLUSIONS:
        return "product"
    if name in SERVICE_EXACT_NAMES:
        return "service"
    if any(pattern.search(name) for pattern in PRODUCT_INDICATOR_PATTERNS):
        return "product"
    if name.startswith(PRODUCT_BRAND_PREFIXES):
        return "product"
    if any(pattern.search(name) for pattern in SERVICE_KEYWORD_PATTERNS):
        return "service"

    return "product"
