"""
Domain constants used across services/routers.
"""
from decimal import Decimal

# Shipping rule applied when the fulfillment order is placed
FREE_SHIPPING_THRESHOLD = Decimal("100.00")
FLAT_SHIPPING_FEE = Decimal("10.00")

DEFAULT_COUNTRY_CODE = "US"

# The checkout form collects free-text country names; gateways need ISO codes.
COUNTRY_CODES = {
    "United States": "US",
    "Canada": "CA",
    "United Kingdom": "GB",
    "Australia": "AU",
    "Germany": "DE",
    "France": "FR",
    "Japan": "JP",
    "Norway": "NO",
    "Sweden": "SE",
    "Denmark": "DK",
    "Finland": "FI",
    "Netherlands": "NL",
    "Spain": "ES",
    "Italy": "IT",
}

# Printful product categories, matched against product names
CATEGORY_KEYWORDS = [
    ("hoodies", ("hoodie", "sweatshirt", "pullover")),
    ("accessories", ("hat", "cap", "bag", "mug", "sticker", "accessory")),
]
DEFAULT_CATEGORY = "tshirts"

PAYMENT_REQUEST_ID_PREFIX = "order-"
PLACEHOLDER_REF_PREFIX = "placeholder-"
