"""Business constants shared across the shop domains"""

# ============================================================================
# TAX & FEES
# ============================================================================

TAX_RATE = 0.1025
# Services are not taxed, only physical products
TAX_PRODUCTS_ONLY = True
# Bottled water is excluded from loyalty earn
WATER_SKU = "0000001"
# Card processing fee deducted from card tips before payout
CC_FEE_RATE = 0.05

# ============================================================================
# LOYALTY
# ============================================================================

LOYALTY_EARN_RATE = 1  # points per eligible dollar
LOYALTY_REDEEM_RATE = 0.05  # dollars per point
LOYALTY_REDEEM_MINIMUM = 100

# ============================================================================
# APPOINTMENTS
# ============================================================================

APPOINTMENT_BUFFER_MINUTES = 30
CANCELLATION_WINDOW_HOURS = 24
DEFAULT_SLOT_INTERVAL_MINUTES = 30

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

DEFAULT_BUSINESS_HOURS = {
    "monday": {"open": "08:00", "close": "18:00"},
    "tuesday": {"open": "08:00", "close": "18:00"},
    "wednesday": {"open": "08:00", "close": "18:00"},
    "thursday": {"open": "08:00", "close": "18:00"},
    "friday": {"open": "08:00", "close": "18:00"},
    "saturday": {"open": "08:00", "close": "18:00"},
    "sunday": None,
}

# ============================================================================
# BUSINESS
# ============================================================================

BUSINESS_NAME = "Smart Detail Auto Spa & Supplies"
BUSINESS_ADDRESS = "2021 Lomita Blvd, Lomita, CA 90717"
BUSINESS_PHONE = "+13109990000"

QUOTE_VALIDITY_DAYS = 10

# ============================================================================
# STATUSES
# ============================================================================

QUOTE_STATUSES = ("draft", "sent", "viewed", "accepted", "expired", "converted")
APPOINTMENT_STATUSES = ("pending", "confirmed", "in_progress", "completed", "cancelled", "no_show")
TRANSACTION_STATUSES = ("open", "completed", "voided", "refunded", "partial_refund")
COUPON_STATUSES = ("draft", "active", "disabled")
CAMPAIGN_STATUSES = ("draft", "scheduled", "sending", "sent", "failed", "paused", "cancelled")
EMPLOYEE_STATUSES = ("active", "inactive", "terminated")
JOB_ACTIVE_STATUSES = ("intake", "in_progress")

QUOTE_STATUS_LABELS = {
    "draft": "Draft",
    "sent": "Sent",
    "viewed": "Viewed",
    "accepted": "Accepted",
    "expired": "Expired",
    "converted": "Converted",
}

APPOINTMENT_STATUS_LABELS = {
    "pending": "Pending",
    "confirmed": "Confirmed",
    "in_progress": "In Progress",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "no_show": "No Show",
}

# ============================================================================
# ROLES
# ============================================================================

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_CASHIER = "cashier"
ROLE_DETAILER = "detailer"

ROLE_LABELS = {
    ROLE_SUPER_ADMIN: "Super Admin",
    ROLE_ADMIN: "Admin",
    ROLE_CASHIER: "Cashier",
    ROLE_DETAILER: "Detailer",
}

# ============================================================================
# CATALOG
# ============================================================================

PRICING_MODELS = ("vehicle_size", "scope", "per_unit", "specialty", "flat", "custom")
SERVICE_CLASSIFICATIONS = ("primary", "addon_only", "both")
VEHICLE_TYPES = ("standard", "motorcycle", "rv", "boat", "aircraft")
VEHICLE_SIZE_CLASSES = ("sedan", "truck_suv_2row", "suv_3row_van")

VEHICLE_SIZE_LABELS = {
    "sedan": "Sedan",
    "truck_suv_2row": "Truck/SUV (2-Row)",
    "suv_3row_van": "SUV (3-Row)/Van",
}

# ============================================================================
# PAYMENTS & COUPONS
# ============================================================================

PAYMENT_METHODS = ("cash", "card", "split", "gift_card", "digital_wallet", "check")
REWARD_APPLIES_TO = ("order", "product", "service")
DISCOUNT_TYPES = ("percentage", "flat", "free")
COUPON_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CAMPAIGN_CHANNELS = ("sms", "email", "both")
