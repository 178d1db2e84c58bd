"""Tests for query plan value objects."""

import pytest
from pydantic import ValidationError
from src.models.listing import Listing
from src.models.query_plan import (
    ClientPredicate,
    EqualityClause,
    QueryPlan,
    RangeClause,
    RemoteQuery,
    SortDirection,
    validate_query_shape,
)


@pytest.mark.unit
def test_range_clause_requires_a_bound():
    """Test that an unbounded range clause is rejected."""
    with pytest.raises(ValidationError):
        RangeClause(field="list_price")


@pytest.mark.unit
def test_range_clause_bounds_order():
    """Test that the lower bound is always yielded first."""
    clause = RangeClause(field="list_price", lower=100, upper=200)

    assert list(clause.bounds()) == [(">=", 100), ("<=", 200)]
    assert clause.is_two_sided is True
    assert list(RangeClause(field="list_price", upper=5).bounds()) == [("<=", 5)]


@pytest.mark.unit
def test_client_predicate_bounds_are_inclusive():
    """Test inclusive lower and upper bounds."""
    predicate = ClientPredicate(name="price_range", field="list_price", lower=100, upper=200)

    assert predicate(Listing(list_price=100)) is True
    assert predicate(Listing(list_price=200)) is True
    assert predicate(Listing(list_price=99)) is False
    assert predicate(Listing(list_price=201)) is False


@pytest.mark.unit
def test_query_plan_is_immutable():
    """Test that a plan can't be modified after planning."""
    plan = QueryPlan()

    with pytest.raises(ValidationError):
        plan.limit = 5


@pytest.mark.unit
def test_query_plan_matches_requires_every_predicate():
    """Test AND composition of client predicates."""
    plan = QueryPlan(client_predicates=(
        ClientPredicate(name="price_range", field="list_price", lower=100, upper=200),
        ClientPredicate(name="min_bedrooms", field="bedrooms", lower=3),
    ))

    assert plan.matches(Listing(list_price=150, bedrooms=3)) is True
    assert plan.matches(Listing(list_price=150, bedrooms=2)) is False
    assert plan.matches(Listing(list_price=250, bedrooms=4)) is False


@pytest.mark.unit
def test_query_plan_remote_query_drops_predicates():
    """Test that only server-side parts reach the remote query."""
    plan = QueryPlan(
        equality=(EqualityClause(field="city", value="Anytown"),),
        range=RangeClause(field="list_price", lower=1),
        sort_by="listing_date",
        sort_direction=SortDirection.ASC,
        limit=5,
        client_predicates=(ClientPredicate(name="min_bedrooms", field="bedrooms", lower=3),),
    )
    remote = plan.remote_query

    assert remote.equality == plan.equality
    assert remote.range == plan.range
    assert remote.sort_direction == SortDirection.ASC
    assert remote.limit == 5
    assert not hasattr(remote, "client_predicates")


@pytest.mark.unit
def test_validate_query_shape_two_bounds_off_sort_field():
    """Test that both bounds on a non-sort field are unsupported."""
    query = RemoteQuery(range=RangeClause(field="list_price", lower=1, upper=2), sort_by="listing_date")

    assert "composite index" in validate_query_shape(query)


@pytest.mark.unit
@pytest.mark.parametrize("query", [
    RemoteQuery(),
    RemoteQuery(range=RangeClause(field="list_price", lower=1), sort_by="listing_date"),
    RemoteQuery(range=RangeClause(field="list_price", lower=1, upper=2), sort_by="list_price"),
    RemoteQuery(equality=(EqualityClause(field="city", value="A"), EqualityClause(field="property_type", value="B"))),
])
def test_validate_query_shape_supported(query):
    """Test shapes the listing store can serve."""
    assert validate_query_shape(query) is None
