"""Listing service - create, read, update and delete single listings."""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from src.models.listing import Listing, SERVER_FIELDS
from src.services.listing_store import FailureKind, ListingStore
from src.utils.errors import ListingNotFoundError, ListingValidationError, StoreError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

REQUIRED_FIELDS = (
    "listing_id",
    "mls_id",
    "listing_status",
    "list_price",
    "property_type",
    "description",
    "bedrooms",
    "bathrooms",
    "square_feet",
    "street_address",
    "city",
    "state",
)


def _parse(payload: Mapping[str, Any]) -> Listing:
    try:
        return Listing.model_validate(dict(payload))
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ListingValidationError(f"Invalid listing fields: {', '.join(fields)}") from e


def missing_required_fields(payload: Mapping[str, Any]) -> list[str]:
    """Required fields absent or blank/zero in a creation payload (snake_case names)."""
    listing = _parse(payload)
    provided = listing.model_fields_set
    missing = []
    for name in REQUIRED_FIELDS:
        value = getattr(listing, name)
        if name not in provided or value in (None, "", 0):
            missing.append(name)
    return missing


class ListingService:
    """CRUD operations over a listing store."""

    def __init__(self, store: ListingStore):
        self.store = store

    async def create(self, payload: Mapping[str, Any]) -> Listing:
        missing = missing_required_fields(payload)
        if missing:
            raise ListingValidationError("Missing required fields", missing_fields=missing)

        listing = _parse(payload)
        record_id, data = await self.store.create(listing.to_record())
        return Listing.from_record(record_id, data)

    async def get(self, listing_id: str) -> Optional[Listing]:
        """Fetch one listing, or None if it doesn't exist."""
        result = await self.store.fetch_one(listing_id)
        if not result.ok:
            if result.failure.kind == FailureKind.NOT_FOUND:
                return None
            raise StoreError(f"Failed to get listing {listing_id}: {result.failure.message}")
        record_id, data = result.records[0]
        return Listing.from_record(record_id, data)

    async def update(self, listing_id: str, payload: Mapping[str, Any]) -> Listing:
        """Apply a partial update; only fields present in the payload change."""
        if await self.get(listing_id) is None:
            raise ListingNotFoundError(listing_id)

        changes = _parse(payload).model_dump(exclude_unset=True, exclude=set(SERVER_FIELDS))
        record = await self.store.update(listing_id, changes)
        if record is None:
            raise ListingNotFoundError(listing_id)
        return Listing.from_record(*record)

    async def delete(self, listing_id: str) -> Listing:
        """Delete a listing and return it as it was before deletion."""
        existing = await self.get(listing_id)
        if existing is None:
            raise ListingNotFoundError(listing_id)

        record = await self.store.delete(listing_id)
        if record is None:
            raise ListingNotFoundError(listing_id)
        logger.info("Listing deleted", listing_id=listing_id)
        return existing
