"""Tests for natural-language search phrases."""

import pytest

from rental_market.models.listing import PropertyType, SearchFilters
from rental_market.search.natural import EXAMPLE_QUERIES, parse_search_query


def test_full_phrase():
    filters = parse_search_query("2-bedroom in Bole under 20K ETB")

    assert filters == SearchFilters(location="bole", bedrooms=2, max_price=20000)


@pytest.mark.parametrize("text,bedrooms", [
    ("3 bedroom house", 3),
    ("4br flat", 4),
    ("1 bed studio", 1),
    ("nice place", None),
])
def test_bedrooms(text, bedrooms):
    assert parse_search_query(text).bedrooms == bedrooms


@pytest.mark.parametrize("text,max_price", [
    ("flat for 15000 birr", 15000),
    ("around 30 thousand", 30000),
    ("below 12k", 12000),
    ("less than 9000 etb in yeka", 9000),
])
def test_max_price(text, max_price):
    assert parse_search_query(text).max_price == max_price


def test_ceiling_phrase_wins_over_plain_amount():
    filters = parse_search_query("2 bedroom 50k deposit, rent under 25k")

    assert filters.max_price == 25000


def test_location_needs_vocabulary_word():
    assert parse_search_query("Apartment near CMC").location is None
    assert parse_search_query("Flat in NIFAS SILK").location == "nifas silk"


def test_unit_must_end_the_number():
    """'5 kirkos' is a location, not 5000."""
    filters = parse_search_query("5 kirkos")

    assert filters.max_price is None
    assert filters.location == "kirkos"


@pytest.mark.parametrize("text,property_type", [
    ("Villa in Gulele", PropertyType.VILLA),
    ("3-bedroom house in Yeka", PropertyType.HOUSE),
    ("condo near Meskel square", PropertyType.CONDOMINIUM),
    ("apartment or house", PropertyType.HOUSE),
])
def test_property_type(text, property_type):
    assert parse_search_query(text).property_type == property_type


@pytest.mark.parametrize("text", ["", "   "])
def test_blank_phrase(text):
    assert parse_search_query(text).is_empty()


def test_examples_all_yield_something():
    for example in EXAMPLE_QUERIES:
        assert not parse_search_query(example).is_empty()
