"""
Country name → ISO 3166-1 alpha-2 mapping for gateway payloads.

The checkout form collects the country as free text; PayPal and Printful
both need a code.
"""
from domain.constants import COUNTRY_CODES, DEFAULT_COUNTRY_CODE

_ISO_CODES = set(COUNTRY_CODES.values())
_COUNTRY_LOOKUP = {name.lower(): code for name, code in COUNTRY_CODES.items()}


def get_country_code(country_name: str | None) -> str:
    """
    Map a free-text country name to its ISO code.

    Matching ignores case and surrounding whitespace, and a known ISO code is
    accepted as-is. Anything else falls back to US rather than failing.
    """
    if not country_name:
        return DEFAULT_COUNTRY_CODE
    cleaned = country_name.strip()
    if cleaned.upper() in _ISO_CODES:
        return cleaned.upper()
    return _COUNTRY_LOOKUP.get(cleaned.lower(), DEFAULT_COUNTRY_CODE)
