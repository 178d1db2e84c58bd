"""Filter planner - split search criteria between the remote query and client-side predicates.

The listing store accepts any number of equality filters but only one
range-filtered field per query, and a range with both bounds only on the
field being ordered by. The planner pushes down what the store can serve
and turns everything else into predicates evaluated after retrieval, so it
never builds a query the store would reject.
"""

from typing import Optional, Union

from src.models.listing import Listing, SearchCriteria
from src.models.query_plan import (
    BEDROOMS_FIELD,
    DEFAULT_LIMIT,
    DEFAULT_SORT_FIELD,
    PRICE_FIELD,
    ClientPredicate,
    EqualityClause,
    QueryPlan,
    RangeClause,
    SortDirection,
)
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def plan_search(
    criteria: SearchCriteria,
    sort_by: str = DEFAULT_SORT_FIELD,
    sort_direction: Union[SortDirection, str] = SortDirection.DESC,
    limit: int = DEFAULT_LIMIT,
) -> QueryPlan:
    """Build the query plan for a search. Never raises for any combination of criteria.

    ``sort_by`` may be a snake_case field name or its camelCase alias.
    """
    sort_by = (Listing.field_name(sort_by) or sort_by) if sort_by else DEFAULT_SORT_FIELD
    direction = _normalize_direction(sort_direction)
    if not limit or limit <= 0:
        limit = DEFAULT_LIMIT

    equality: list[EqualityClause] = []
    range_clause: Optional[RangeClause] = None
    predicates: list[ClientPredicate] = []

    # Equality filters don't count against the range-field limit
    if criteria.has_city:
        equality.append(EqualityClause(field="city", value=criteria.city))
    if criteria.has_property_type:
        equality.append(EqualityClause(field="property_type", value=criteria.property_type))

    min_price = criteria.min_price if criteria.has_min_price else None
    max_price = criteria.max_price if criteria.has_max_price else None

    if sort_by == PRICE_FIELD:
        # Ordering by price, so both bounds can go to the store
        if min_price is not None or max_price is not None:
            range_clause = RangeClause(field=PRICE_FIELD, lower=min_price, upper=max_price)
    elif min_price is not None and max_price is not None:
        predicates.append(
            ClientPredicate(name="price_range", field=PRICE_FIELD, lower=min_price, upper=max_price)
        )
    elif min_price is not None:
        range_clause = RangeClause(field=PRICE_FIELD, lower=min_price)
    elif max_price is not None:
        range_clause = RangeClause(field=PRICE_FIELD, upper=max_price)

    # Bedrooms would be a second range field in either branch
    if criteria.has_min_bedrooms:
        predicates.append(
            ClientPredicate(name="min_bedrooms", field=BEDROOMS_FIELD, lower=criteria.min_bedrooms)
        )

    plan = QueryPlan(
        equality=tuple(equality),
        range=range_clause,
        sort_by=sort_by,
        sort_direction=direction,
        limit=limit,
        client_predicates=tuple(predicates),
    )

    logger.debug("Search planned", **plan.describe())
    return plan


def _normalize_direction(sort_direction: Union[SortDirection, str, None]) -> SortDirection:
    if isinstance(sort_direction, SortDirection):
        return sort_direction
    try:
        return SortDirection(str(sort_direction).lower())
    except ValueError:
        logger.warning("Unknown sort direction, using descending", sort_direction=str(sort_direction))
        return SortDirection.DESC
