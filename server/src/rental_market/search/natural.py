"""Natural-language search phrases to listing filters.

Matches a free-text phrase such as "2-bedroom in Bole under 20K ETB"
against a fixed vocabulary. No parsing beyond a few regular expressions.
"""

import logging
import re

from rental_market.models.listing import PropertyType, SearchFilters

logger = logging.getLogger(__name__)

# Addis Ababa sub-cities and neighbourhoods recognised in phrases
LOCATIONS = (
    "bole",
    "yeka",
    "kirkos",
    "kolfe",
    "gulele",
    "arada",
    "addis ketema",
    "akaky",
    "nifas silk",
    "lideta",
)

# Checked in order; a later match overrides an earlier one
PROPERTY_KEYWORDS = (
    ("apartment", PropertyType.APARTMENT),
    ("house", PropertyType.HOUSE),
    ("villa", PropertyType.VILLA),
    ("condo", PropertyType.CONDOMINIUM),
)

EXAMPLE_QUERIES = (
    "2-bedroom in Bole under 20K ETB",
    "Apartment near CMC",
    "3-bedroom house in Yeka",
    "Villa in Gulele",
)

_BEDROOMS = re.compile(r"(\d+)[\s-]*(bedroom|br|bed)", re.IGNORECASE)
_PRICE = re.compile(r"(\d+)\s*(k|thousand|etb|birr)\b", re.IGNORECASE)
_PRICE_CEILING = re.compile(
    r"(?:under|below|less than)\s*(\d+)\s*(k|thousand|etb|birr)\b", re.IGNORECASE
)


def _amount(number: str, unit: str) -> float:
    multiplier = 1000 if unit.lower() in ("k", "thousand") else 1
    return float(int(number) * multiplier)


def parse_search_query(text: str) -> SearchFilters:
    """Extract listing filters from a search phrase.

    Args:
        text: What the user typed

    Returns:
        SearchFilters with whatever could be recognised (possibly empty)
    """
    if not text or not text.strip():
        return SearchFilters()

    lowered = text.lower()
    filters: dict = {}

    location = next((loc for loc in LOCATIONS if loc in lowered), None)
    if location:
        filters["location"] = location

    bedrooms = _BEDROOMS.search(text)
    if bedrooms:
        filters["bedrooms"] = int(bedrooms.group(1))

    ceiling = _PRICE_CEILING.search(text) or _PRICE.search(text)
    if ceiling:
        filters["max_price"] = _amount(ceiling.group(1), ceiling.group(2))

    for keyword, property_type in PROPERTY_KEYWORDS:
        if keyword in lowered:
            filters["property_type"] = property_type

    result = SearchFilters(**filters)
    if result.is_empty():
        logger.debug(f"Nothing recognised in search {text!r}")
    else:
        logger.debug(f"Parsed search {text!r} -> {filters}")
    return result
