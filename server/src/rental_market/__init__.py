"""Rental Market - session and listings backend for a rental marketplace."""

__version__ = "0.1.0"

from rental_market.exceptions import RentalMarketError
from rental_market.session.manager import SessionManager

__all__ = ["__version__", "RentalMarketError", "SessionManager"]
