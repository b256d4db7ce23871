"""Access to the SCHOOLRIDE settings dict with defaults."""

from django.conf import settings

DEFAULTS = {
    # Pricing
    "BASE_RATE_PER_KM": 25,
    "AVAILABILITY_MULTIPLIER": "0.20",
    # Payments (percentages)
    "UPFRONT_PERCENTAGE": "25",
    "PAYHERE_FEE_PERCENTAGE": "3.3",
    "SYSTEM_COMMISSION_PERCENTAGE": "15",
    "BALANCE_DUE_DAYS_BEFORE_END": 2,
    "REMINDER_DAYS": (3, 1),
    # Route matching
    "ROUTE_COMPATIBILITY_RULE": "tiered",  # or "legs"
    "ROUTE_LEG_LIMIT_KM": 20,
    # External providers
    "MAPS_API_KEY": "",
    "MAPS_BASE_URL": "https://maps.googleapis.com/maps/api",
    "PAYMENT_GATEWAY": {
        "PROVIDER": "mock",
        "MERCHANT_ID": "",
        "MERCHANT_SECRET": "",
        "ENDPOINT": "https://sandbox.payhere.lk/pay/checkout",
        "CURRENCY": "LKR",
        "MINIMUM_AMOUNT": 100,
        "MAXIMUM_AMOUNT": 100000,
    },
}


def get_setting(name: str):
    """Return SCHOOLRIDE[name] from settings, falling back to DEFAULTS."""
    overrides = getattr(settings, "SCHOOLRIDE", {}) or {}
    if name in overrides:
        value = overrides[name]
        default = DEFAULTS.get(name)
        if isinstance(default, dict) and isinstance(value, dict):
            return {**default, **value}
        return value
    return DEFAULTS[name]
