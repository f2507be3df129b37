"""FastAPI routes for session, listings and the agent dashboard."""

import asyncio
import logging
from typing import Annotated, Any, AsyncIterator

from fastapi import APIRouter, Body, Header, HTTPException, Query, Request, status
from pydantic import BaseModel
from starlette.responses import StreamingResponse

from rental_market import __version__
from rental_market.api.deps import Agent, Listings, Manager, Renter, User
from rental_market.config import get_settings
from rental_market.exceptions import ValidationError
from rental_market.media.photos import add_photos, encode_photo
from rental_market.models.identity import Profile
from rental_market.models.listing import (
    Dashboard,
    Listing,
    ListingCreate,
    PropertyType,
    SearchFilters,
)
from rental_market.models.session import SessionSnapshot
from rental_market.search.natural import EXAMPLE_QUERIES, parse_search_query

logger = logging.getLogger(__name__)

router = APIRouter()


class SignInBody(BaseModel):
    """Sign-in form."""

    email: str
    password: str


class SignUpBody(BaseModel):
    """Sign-up form. Checked by the session manager, not here."""

    email: str
    password: str
    name: str
    phone: str
    role: str


class PhotoUploadResponse(BaseModel):
    url: str


@router.get("/health")
async def health(manager: Manager) -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
        "session": manager.snapshot.status.value,
    }


# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------


@router.get("/session", response_model=SessionSnapshot)
async def get_session(manager: Manager) -> SessionSnapshot:
    """Current session snapshot."""
    return manager.snapshot


@router.get("/session/stream")
async def stream_session(manager: Manager) -> StreamingResponse:
    """Stream session snapshots via Server-Sent Events.

    The current snapshot is sent first, then every change. The stream ends
    when the session manager shuts down.
    """
    queue = manager.subscribe()

    async def event_generator() -> AsyncIterator[str]:
        try:
            while True:
                try:
                    snapshot = await asyncio.wait_for(queue.get(), timeout=30.0)
                    if snapshot is None:
                        break
                    yield f"data: {snapshot.model_dump_json()}\n\n"
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            manager.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/auth/signin", response_model=SessionSnapshot)
async def sign_in(body: SignInBody, manager: Manager) -> SessionSnapshot:
    """Sign in with email and password."""
    return await manager.sign_in(body.email, body.password)


@router.post("/auth/signup", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def sign_up(body: SignUpBody, manager: Manager) -> SessionSnapshot:
    """Create an account and its profile."""
    return await manager.sign_up(
        email=body.email,
        password=body.password,
        name=body.name,
        phone=body.phone,
        role=body.role,
    )


@router.post("/auth/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(manager: Manager) -> None:
    """Sign out. Local state is cleared even when the remote call fails."""
    await manager.sign_out()


@router.get("/profile", response_model=Profile)
async def get_profile(user: User) -> Profile:
    """Profile of the signed-in user."""
    return user.profile


@router.patch("/profile", response_model=Profile)
async def update_profile(
    manager: Manager,
    updates: Annotated[dict[str, Any], Body()],
) -> Profile:
    """Update name, phone or photo of the signed-in user."""
    return await manager.update_profile(updates)


# -----------------------------------------------------------------------------
# Listings
# -----------------------------------------------------------------------------


@router.get("/listings", response_model=list[Listing])
async def search_listings(
    store: Listings,
    q: str | None = None,
    location: str | None = None,
    min_price: Annotated[float | None, Query(ge=0)] = None,
    max_price: Annotated[float | None, Query(ge=0)] = None,
    bedrooms: Annotated[int | None, Query(ge=0)] = None,
    property_type: PropertyType | None = None,
) -> list[Listing]:
    """Search listings.

    ``q`` is a natural-language phrase ("2-bedroom in Bole under 20K ETB");
    explicit query parameters override whatever it yields.
    """
    parsed = parse_search_query(q) if q else SearchFilters()
    explicit = {
        "location": location,
        "min_price": min_price,
        "max_price": max_price,
        "bedrooms": bedrooms,
        "property_type": property_type,
    }
    filters = parsed.model_copy(
        update={key: value for key, value in explicit.items() if value is not None}
    )
    return await store.search_listings(filters)


@router.get("/listings/examples")
async def search_examples() -> list[str]:
    """Example phrases for the search bar."""
    return list(EXAMPLE_QUERIES)


@router.post("/listings", response_model=Listing, status_code=status.HTTP_201_CREATED)
async def create_listing(data: ListingCreate, agent: Agent, store: Listings) -> Listing:
    """Create a listing (agents only)."""
    add_photos([], data.photos, max_photos=get_settings().max_listing_photos)
    return await store.create_listing(agent.user_id, data)


@router.post("/listings/photos", response_model=PhotoUploadResponse)
async def upload_photo(
    request: Request,
    agent: Agent,
    content_type: Annotated[str | None, Header()] = None,
) -> PhotoUploadResponse:
    """Turn a raw image body into a data URL for the listing wizard."""
    if not content_type:
        raise ValidationError("Missing Content-Type header", field="photos")
    data = await request.body()
    return PhotoUploadResponse(url=encode_photo(data, content_type.split(";")[0].strip()))


@router.get("/listings/saved")
async def saved_listings(renter: Renter, store: Listings) -> list[str]:
    """IDs of the listings the renter has saved."""
    return sorted(await store.saved_listing_ids(renter.user_id))


@router.get("/listings/{listing_id}", response_model=Listing)
async def get_listing(listing_id: str, store: Listings) -> Listing:
    """Get a single listing."""
    listing = await store.get_listing(listing_id)
    if listing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Listing {listing_id} not found",
        )
    return listing


@router.post("/listings/{listing_id}/save", status_code=status.HTTP_204_NO_CONTENT)
async def save_listing(listing_id: str, renter: Renter, store: Listings) -> None:
    """Save a listing (renters only)."""
    await store.save_listing(renter.user_id, listing_id)


@router.delete("/listings/{listing_id}/save", status_code=status.HTTP_204_NO_CONTENT)
async def unsave_listing(listing_id: str, renter: Renter, store: Listings) -> None:
    """Remove a saved listing (renters only)."""
    await store.unsave_listing(renter.user_id, listing_id)


# -----------------------------------------------------------------------------
# Dashboard
# -----------------------------------------------------------------------------


@router.get("/dashboard", response_model=Dashboard)
async def dashboard(agent: Agent, store: Listings) -> Dashboard:
    """Agent dashboard: own listings and counters."""
    return await store.get_dashboard(agent.user_id)
