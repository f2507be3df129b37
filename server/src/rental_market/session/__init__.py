"""Session state management."""

from rental_market.session.events import SnapshotBus
from rental_market.session.manager import SessionManager, validate_input

__all__ = ["SessionManager", "SnapshotBus", "validate_input"]
