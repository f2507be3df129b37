"""FastAPI routes for Rental Market."""

from rental_market.api.errors import install_error_handlers
from rental_market.api.routes import router

__all__ = ["install_error_handlers", "router"]
