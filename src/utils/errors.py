"""Error handling utilities."""

from typing import Optional


class ListingManagerError(Exception):
    """Base exception for the listing manager backend."""
    pass


class ConfigurationError(ListingManagerError):
    """Required configuration is missing or invalid."""
    pass


class StoreError(ListingManagerError):
    """Listing store (Supabase) operation error."""
    pass


class ListingNotFoundError(ListingManagerError):
    """No listing exists with the requested ID."""

    def __init__(self, listing_id: str):
        super().__init__(f"Listing not found: {listing_id}")
        self.listing_id = listing_id


class ListingValidationError(ListingManagerError):
    """Listing payload failed validation."""

    def __init__(self, message: str, missing_fields: Optional[list[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []
