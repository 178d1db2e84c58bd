"""Query plan models: the split between remote query clauses and client-side predicates."""

from enum import Enum
from typing import Any, Iterator, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.listing import Listing
from src.utils.config import Settings


PRICE_FIELD = "list_price"
BEDROOMS_FIELD = "bedrooms"
DEFAULT_SORT_FIELD = Settings.DEFAULT_SORT_FIELD
DEFAULT_LIMIT = Settings.DEFAULT_RESULTS_LIMIT


class SortDirection(str, Enum):
    """Sort direction values."""
    ASC = "asc"
    DESC = "desc"


class EqualityClause(BaseModel):
    """Server-side exact-match filter."""
    model_config = ConfigDict(frozen=True)

    field: str
    value: Union[str, float, int, bool]


class RangeClause(BaseModel):
    """Server-side range filter on a single field.

    Holds up to two bounds: ``field >= lower`` and ``field <= upper``.
    """
    model_config = ConfigDict(frozen=True)

    field: str
    lower: Optional[float] = None
    upper: Optional[float] = None

    @model_validator(mode="after")
    def _require_bound(self) -> "RangeClause":
        if self.lower is None and self.upper is None:
            raise ValueError("RangeClause needs a lower or an upper bound")
        return self

    @property
    def is_two_sided(self) -> bool:
        return self.lower is not None and self.upper is not None

    def bounds(self) -> Iterator[tuple[str, float]]:
        """Yield (operator, value) pairs, lower bound first."""
        if self.lower is not None:
            yield ">=", self.lower
        if self.upper is not None:
            yield "<=", self.upper


class ClientPredicate(BaseModel):
    """Post-retrieval test of one numeric listing field against optional bounds."""
    model_config = ConfigDict(frozen=True)

    name: str
    field: str
    lower: Optional[float] = None
    upper: Optional[float] = None

    def __call__(self, listing: Listing) -> bool:
        value = getattr(listing, self.field, None)
        if value is None:
            return False
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True


class RemoteQuery(BaseModel):
    """Query descriptor submitted to the listing store."""
    model_config = ConfigDict(frozen=True)

    equality: tuple[EqualityClause, ...] = ()
    range: Optional[RangeClause] = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = SortDirection.DESC
    limit: int = Field(DEFAULT_LIMIT, gt=0)


class QueryPlan(BaseModel):
    """Immutable output of the filter planner."""
    model_config = ConfigDict(frozen=True)

    equality: tuple[EqualityClause, ...] = ()
    range: Optional[RangeClause] = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = SortDirection.DESC
    limit: int = Field(DEFAULT_LIMIT, gt=0)
    client_predicates: tuple[ClientPredicate, ...] = ()

    @property
    def remote_query(self) -> RemoteQuery:
        return RemoteQuery(
            equality=self.equality,
            range=self.range,
            sort_by=self.sort_by,
            sort_direction=self.sort_direction,
            limit=self.limit,
        )

    def predicate(self, name: str) -> Optional[ClientPredicate]:
        for predicate in self.client_predicates:
            if predicate.name == name:
                return predicate
        return None

    def matches(self, listing: Listing) -> bool:
        """True when the listing passes every client-side predicate."""
        return all(predicate(listing) for predicate in self.client_predicates)

    def describe(self) -> dict[str, Any]:
        """Compact summary for log records."""
        return {
            "equality_fields": [clause.field for clause in self.equality],
            "range_field": self.range.field if self.range else None,
            "sort_by": self.sort_by,
            "sort_direction": self.sort_direction.value,
            "limit": self.limit,
            "client_predicates": [predicate.name for predicate in self.client_predicates],
        }


def validate_query_shape(query: RemoteQuery) -> Optional[str]:
    """Check a query against the remote engine's rules.

    Equality clauses are unrestricted. Only one field may carry a range
    filter, and a range with both bounds must be on the sort field (anything
    else needs a composite index the collection does not have).

    Returns an error message, or ``None`` when the shape is supported.
    """
    if query.range is None:
        return None
    if query.range.is_two_sided and query.range.field != query.sort_by:
        return (
            f"Range filter on '{query.range.field}' with two bounds requires "
            f"a composite index when ordering by '{query.sort_by}'"
        )
    return None
