"""Tests for session and form models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from rental_market.exceptions import ValidationError
from rental_market.models.identity import (
    Identity,
    Profile,
    ProfileUpdate,
    Role,
    SignUpRequest,
)
from rental_market.models.listing import ListingCreate, SearchFilters
from rental_market.models.session import SessionSnapshot, SessionStatus
from rental_market.session.manager import validate_input


@pytest.fixture
def identity() -> Identity:
    return Identity(id="u1", email="u1@x.com", access_token="secret-token")


@pytest.fixture
def profile() -> Profile:
    return Profile(id="u1", role=Role.AGENT, name="Sara", phone="+251922222222")


class TestSessionSnapshot:
    """The snapshot enforces authenticated <=> identity and profile."""

    def test_authenticated_needs_both(self, identity):
        with pytest.raises(PydanticValidationError):
            SessionSnapshot(identity=identity, status=SessionStatus.AUTHENTICATED)

    def test_anonymous_cannot_carry_user(self, identity, profile):
        with pytest.raises(PydanticValidationError):
            SessionSnapshot(identity=identity, profile=profile, status=SessionStatus.ANONYMOUS)

    def test_profile_must_match_identity(self, identity):
        other = Profile(id="u2", role=Role.RENTER, name="X", phone="1")
        with pytest.raises(PydanticValidationError):
            SessionSnapshot.authenticated(identity, other)

    def test_snapshot_is_immutable(self, identity, profile):
        snapshot = SessionSnapshot.authenticated(identity, profile)
        with pytest.raises(PydanticValidationError):
            snapshot.status = SessionStatus.ANONYMOUS

    def test_access_token_not_serialized(self, identity, profile):
        snapshot = SessionSnapshot.authenticated(identity, profile)
        data = snapshot.model_dump()

        assert "access_token" not in data["identity"]
        assert data["status"] == "authenticated"
        assert snapshot.user_id == "u1"


class TestForms:
    """Form models and the ValidationError conversion."""

    def test_sign_up_metadata(self):
        request = SignUpRequest(
            email=" jo@x.com ",
            password="abcdef",
            name=" Jo ",
            phone="+251911000000",
            role="agent",
        )

        assert request.email == "jo@x.com"
        assert request.metadata() == {"name": "Jo", "phone": "+251911000000", "role": "agent"}

    def test_validate_input_reports_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(
                SignUpRequest,
                email="jo@x.com",
                password="12345",
                name="Jo",
                phone="1",
                role="renter",
            )

        assert exc_info.value.field == "password"
        assert exc_info.value.message.startswith("Invalid password")

    def test_profile_update_only_tracks_given_fields(self):
        update = ProfileUpdate(photo_url=None)

        assert update.model_dump(exclude_unset=True) == {"photo_url": None}

    def test_profile_update_rejects_unknown_fields(self):
        with pytest.raises(PydanticValidationError):
            ProfileUpdate(role="agent")


class TestListingModels:

    def test_listing_create_requires_positive_price(self):
        with pytest.raises(PydanticValidationError):
            ListingCreate(title="Flat", location="Bole", price=0, bedrooms=2)

    def test_empty_filters(self):
        assert SearchFilters().is_empty()
        assert not SearchFilters(bedrooms=2).is_empty()
