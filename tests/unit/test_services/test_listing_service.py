"""Tests for listing CRUD service."""

import pytest
from unittest.mock import AsyncMock
from src.services.listing_service import ListingService, missing_required_fields
from src.services.listing_store import FailureKind, RetrievalResult
from src.utils.errors import ListingNotFoundError, ListingValidationError, StoreError
from tests.utils.factories import create_listing_payload


@pytest.mark.unit
def test_missing_required_fields_complete_payload():
    """Test that a full payload has nothing missing."""
    assert missing_required_fields(create_listing_payload()) == []


@pytest.mark.unit
def test_missing_required_fields_reports_blank_and_zero():
    """Test that absent, blank and zero required fields are reported."""
    payload = create_listing_payload()
    del payload["mlsId"]
    payload["city"] = ""
    payload["listPrice"] = 0

    assert missing_required_fields(payload) == ["mls_id", "list_price", "city"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamps(listing_service, freeze_time_fixture):
    """Test creating a listing from a camelCase payload."""
    listing = await listing_service.create(create_listing_payload(city="Anytown"))

    assert listing.is_persisted
    assert listing.city == "Anytown"
    assert listing.created_at == "2024-12-09T12:00:00+00:00"
    assert listing.updated_at == listing.created_at


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_rejects_missing_fields(listing_service):
    """Test that creation validates required fields."""
    with pytest.raises(ListingValidationError) as exc_info:
        await listing_service.create({"city": "Anytown"})

    assert "listing_id" in exc_info.value.missing_fields
    assert "city" not in exc_info.value.missing_fields


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_rejects_bad_types(listing_service):
    """Test that type errors surface as validation errors."""
    payload = create_listing_payload(listing_status="Archived")

    with pytest.raises(ListingValidationError):
        await listing_service.create(payload)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_round_trip(listing_service):
    """Test fetching a created listing by ID."""
    created = await listing_service.create(create_listing_payload())

    fetched = await listing_service.get(created.id)

    assert fetched == created


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_missing_returns_none(listing_service):
    """Test that absence is None, not an error."""
    assert await listing_service.get("missing") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_raises_on_store_failure():
    """Test that non-absence failures raise on the CRUD path."""
    store = AsyncMock()
    store.fetch_one.return_value = RetrievalResult.failed(FailureKind.UNAVAILABLE, "down")

    with pytest.raises(StoreError):
        await ListingService(store).get("a1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_is_partial(listing_service, freeze_time_fixture):
    """Test that only supplied fields change and updated_at moves."""
    created = await listing_service.create(create_listing_payload(list_price=400000, city="Anytown"))
    freeze_time_fixture.tick(60)

    updated = await listing_service.update(created.id, {"listPrice": 425000, "id": "ignored"})

    assert updated.id == created.id
    assert updated.list_price == 425000
    assert updated.city == "Anytown"
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_missing_raises(listing_service):
    """Test updating an unknown listing."""
    with pytest.raises(ListingNotFoundError):
        await listing_service.update("missing", {"listPrice": 1})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_returns_previous_listing(listing_service):
    """Test that delete returns the listing and removes it."""
    created = await listing_service.create(create_listing_payload())

    deleted = await listing_service.delete(created.id)

    assert deleted == created
    assert await listing_service.get(created.id) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_missing_raises(listing_service):
    """Test deleting an unknown listing."""
    with pytest.raises(ListingNotFoundError):
        await listing_service.delete("missing")
