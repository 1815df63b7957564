"""Built-in roles and the permission catalog, seeded at startup"""

import logging

from sqlalchemy.orm import Session

from ...constants import ROLE_ADMIN, ROLE_CASHIER, ROLE_DETAILER, ROLE_LABELS, ROLE_SUPER_ADMIN
from ...models import Permission, PermissionDefinition, Role

logger = logging.getLogger(__name__)

# (key, name, category, description)
PERMISSION_DEFINITIONS = [
    ("pos.access", "Use the POS", "POS", "Ring up sales at the register"),
    ("pos.void_transactions", "Void transactions", "POS", "Void completed sales"),
    ("pos.apply_discounts", "Apply discounts", "POS", "Apply coupons and manual discounts"),
    ("customers.view", "View customers", "Customers", None),
    ("customers.manage", "Manage customers", "Customers", "Create and edit customers and vehicles"),
    ("customers.delete", "Delete customers", "Customers", None),
    ("appointments.view", "View appointments", "Appointments", None),
    ("appointments.manage", "Manage appointments", "Appointments", "Book, reschedule and cancel"),
    ("quotes.manage", "Manage quotes", "Quotes", "Create, send and convert estimates"),
    ("catalog.manage", "Manage catalog", "Catalog", "Edit products, services and pricing"),
    ("loyalty.adjust", "Adjust loyalty points", "Marketing", None),
    ("marketing.coupons.manage", "Manage coupons", "Marketing", None),
    ("marketing.campaigns.manage", "Manage campaigns", "Marketing", None),
    ("staff.manage", "Manage staff", "Staff", "Add employees and edit schedules"),
    ("settings.business", "Business settings", "Settings", "Hours, booking and coupon settings"),
    ("settings.roles_permissions", "Roles & permissions", "Settings", "Edit role and employee permissions"),
    ("settings.integrations", "Integrations", "Settings", "Connect SMS and other providers"),
    ("cms.seo.manage", "Manage SEO", "Website", "Edit page titles and meta descriptions"),
    ("cms.ads.manage", "Manage ads", "Website", "Edit ad creatives and placements"),
]

PERMISSION_KEYS = [definition[0] for definition in PERMISSION_DEFINITIONS]

# Keys not listed default to False
ROLE_PERMISSION_DEFAULTS: dict[str, dict[str, bool]] = {
    ROLE_ADMIN: {key: True for key in PERMISSION_KEYS if key != "settings.roles_permissions"},
    ROLE_CASHIER: {
        "pos.access": True,
        "pos.apply_discounts": True,
        "customers.view": True,
        "customers.manage": True,
        "appointments.view": True,
        "appointments.manage": True,
        "quotes.manage": True,
    },
    ROLE_DETAILER: {
        "customers.view": True,
        "appointments.view": True,
    },
}

SYSTEM_ROLES = [
    {"name": ROLE_SUPER_ADMIN, "is_super": True, "can_access_pos": True},
    {"name": ROLE_ADMIN, "is_super": False, "can_access_pos": True},
    {"name": ROLE_CASHIER, "is_super": False, "can_access_pos": True},
    {"name": ROLE_DETAILER, "is_super": False, "can_access_pos": False},
]


def seed_roles_and_permissions(db: Session) -> None:
    """Insert missing permission definitions and system roles. Safe to run repeatedly."""
    existing_keys = {key for (key,) in db.query(PermissionDefinition.key).all()}
    for sort_order, (key, name, category, description) in enumerate(PERMISSION_DEFINITIONS):
        if key not in existing_keys:
            db.add(
                PermissionDefinition(
                    key=key,
                    name=name,
                    category=category,
                    description=description,
                    sort_order=sort_order,
                )
            )

    for role_def in SYSTEM_ROLES:
        role = db.query(Role).filter(Role.name == role_def["name"]).first()
        if role:
            continue
        role = Role(
            name=role_def["name"],
            display_name=ROLE_LABELS[role_def["name"]],
            is_system=True,
            is_super=role_def["is_super"],
            can_access_pos=role_def["can_access_pos"],
        )
        db.add(role)
        db.flush()
        if not role.is_super:
            defaults = ROLE_PERMISSION_DEFAULTS.get(role.name, {})
            for key in PERMISSION_KEYS:
                db.add(Permission(permission_key=key, role_id=role.id, granted=defaults.get(key, False)))
        logger.info(f"✅ Seeded system role {role.name}")

    db.commit()
