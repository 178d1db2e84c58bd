"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src.models.listing import SearchCriteria  # noqa: E402
from src.services.listing_service import ListingService  # noqa: E402
from src.services.search_executor import ListingSearchService  # noqa: E402
from tests.fixtures.listings import anytown_listings, mixed_city_listings  # noqa: E402
from tests.utils.memory_store import InMemoryListingStore  # noqa: E402


@pytest.fixture
def anytown_store():
    """In-memory store holding the five Anytown listings."""
    return InMemoryListingStore(anytown_listings())


@pytest.fixture
def mixed_store():
    """In-memory store with listings in Springfield and Shelbyville."""
    return InMemoryListingStore(mixed_city_listings())


@pytest.fixture
def empty_store():
    return InMemoryListingStore()


@pytest.fixture
def search_service(anytown_store):
    return ListingSearchService(anytown_store)


@pytest.fixture
def listing_service(empty_store):
    return ListingService(empty_store)


@pytest.fixture
def anytown_criteria():
    """City + price range + bedroom minimum, empty property type."""
    return SearchCriteria(
        city="Anytown",
        min_price=400000,
        max_price=500000,
        min_bedrooms=3,
        property_type="",
    )


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder chains back onto itself."""
    client = MagicMock()
    builder = MagicMock()
    for method in ("select", "eq", "gte", "lte", "order", "limit", "insert", "update", "delete"):
        getattr(builder, method).return_value = builder
    builder.execute.return_value = MagicMock(data=[])
    client.table.return_value = builder
    client.builder = builder
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
