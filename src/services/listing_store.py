"""Listing store - retrieval and persistence over the Supabase `listings` table."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ConfigDict
from supabase import Client
from ulid import ULID

from src.models.query_plan import RemoteQuery, SortDirection, validate_query_shape
from src.utils.errors import StoreError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# (id, data) as returned by the store
RawRecord = tuple[str, dict[str, Any]]

# PostgREST / Postgres codes for queries the table can't serve as written:
# malformed filter, unknown column, no such operator, statement timeout
# (an unindexed filter/sort combination on a large table).
UNSUPPORTED_QUERY_CODES = frozenset({"PGRST100", "42703", "42883", "57014"})


class FailureKind(str, Enum):
    """Why a retrieval failed."""
    UNSUPPORTED_QUERY = "unsupported_query"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


class RetrievalFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str


class RetrievalResult(BaseModel):
    """Outcome of a retrieval: the records, or a typed failure."""
    model_config = ConfigDict(frozen=True)

    records: tuple[RawRecord, ...] = ()
    failure: Optional[RetrievalFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, records: list[RawRecord]) -> "RetrievalResult":
        return cls(records=tuple(records))

    @classmethod
    def failed(cls, kind: FailureKind, message: str) -> "RetrievalResult":
        return cls(failure=RetrievalFailure(kind=kind, message=message))


class ListingStore(Protocol):
    """Retrieval and persistence capability for listings."""

    async def query(self, remote_query: RemoteQuery) -> RetrievalResult: ...

    async def fetch_all(self) -> RetrievalResult: ...

    async def fetch_one(self, listing_id: str) -> RetrievalResult: ...

    async def create(self, data: dict[str, Any]) -> RawRecord: ...

    async def update(self, listing_id: str, changes: dict[str, Any]) -> Optional[RawRecord]: ...

    async def delete(self, listing_id: str) -> Optional[RawRecord]: ...


def generate_listing_id() -> str:
    """Generate a document ID (ULID format)."""
    return str(ULID())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def classify_error(error: Exception) -> FailureKind:
    """Map a client exception onto a failure kind."""
    if isinstance(error, APIError) and error.code in UNSUPPORTED_QUERY_CODES:
        return FailureKind.UNSUPPORTED_QUERY
    return FailureKind.UNAVAILABLE


def _to_record(row: dict[str, Any]) -> RawRecord:
    data = dict(row)
    return str(data.pop("id")), data


class SupabaseListingStore:
    """ListingStore backed by a Supabase table.

    The client is created and owned by the caller.
    """

    def __init__(self, client: Client, table: str = "listings"):
        self.client = client
        self.table = table

    async def query(self, remote_query: RemoteQuery) -> RetrievalResult:
        """Run an equality/range/order/limit query."""
        shape_error = validate_query_shape(remote_query)
        if shape_error:
            return RetrievalResult.failed(FailureKind.UNSUPPORTED_QUERY, shape_error)

        try:
            builder = self.client.table(self.table).select("*")
            for clause in remote_query.equality:
                builder = builder.eq(clause.field, clause.value)
            if remote_query.range is not None:
                for op, value in remote_query.range.bounds():
                    if op == ">=":
                        builder = builder.gte(remote_query.range.field, value)
                    else:
                        builder = builder.lte(remote_query.range.field, value)
            builder = builder.order(
                remote_query.sort_by,
                desc=remote_query.sort_direction == SortDirection.DESC,
            ).limit(remote_query.limit)

            result = builder.execute()
            return RetrievalResult.success([_to_record(row) for row in result.data or []])
        except (APIError, httpx.HTTPError) as e:
            return RetrievalResult.failed(classify_error(e), str(e))

    async def fetch_all(self) -> RetrievalResult:
        """Every listing, in the table's natural order."""
        try:
            result = self.client.table(self.table).select("*").execute()
            return RetrievalResult.success([_to_record(row) for row in result.data or []])
        except (APIError, httpx.HTTPError) as e:
            return RetrievalResult.failed(classify_error(e), str(e))

    async def fetch_one(self, listing_id: str) -> RetrievalResult:
        try:
            result = self.client.table(self.table).select("*").eq("id", listing_id).execute()
        except (APIError, httpx.HTTPError) as e:
            return RetrievalResult.failed(classify_error(e), str(e))

        if not result.data:
            return RetrievalResult.failed(FailureKind.NOT_FOUND, f"Listing not found: {listing_id}")
        return RetrievalResult.success([_to_record(result.data[0])])

    async def create(self, data: dict[str, Any]) -> RawRecord:
        """Insert a listing; the store assigns its ID and timestamps."""
        timestamp = utc_now_iso()
        row = {
            **data,
            "id": generate_listing_id(),
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            result = self.client.table(self.table).insert(row).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"Failed to create listing: {e}") from e

        if result.data and len(result.data) > 0:
            logger.info("Listing created", listing_id=row["id"])
            return _to_record(result.data[0])
        raise StoreError("Failed to create listing: no data returned")

    async def update(self, listing_id: str, changes: dict[str, Any]) -> Optional[RawRecord]:
        """Apply changes and refresh updated_at. Returns None if the listing doesn't exist."""
        updates = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
        updates["updated_at"] = utc_now_iso()
        try:
            result = self.client.table(self.table).update(updates).eq("id", listing_id).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"Failed to update listing {listing_id}: {e}") from e

        if result.data and len(result.data) > 0:
            return _to_record(result.data[0])
        return None

    async def delete(self, listing_id: str) -> Optional[RawRecord]:
        """Delete a listing. Returns the deleted record, or None if it didn't exist."""
        try:
            result = self.client.table(self.table).delete().eq("id", listing_id).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"Failed to delete listing {listing_id}: {e}") from e

        if result.data and len(result.data) > 0:
            return _to_record(result.data[0])
        return None
