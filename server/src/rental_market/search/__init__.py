"""Listing search helpers."""

from rental_market.search.natural import EXAMPLE_QUERIES, LOCATIONS, parse_search_query

__all__ = ["EXAMPLE_QUERIES", "LOCATIONS", "parse_search_query"]
