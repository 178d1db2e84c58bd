"""Search executor - run a query plan against the listing store and post-filter the results."""

from typing import Optional, Union

from pydantic import ValidationError

from src.models.listing import Listing, SearchCriteria
from src.models.query_plan import DEFAULT_LIMIT, DEFAULT_SORT_FIELD, QueryPlan, SortDirection
from src.services.filter_planner import plan_search
from src.services.listing_store import FailureKind, ListingStore, RetrievalResult
from src.utils.logging import get_structured_logger, log_timing, mask_sensitive_data

logger = get_structured_logger(__name__)


class ListingSearchService:
    """Search and browse listings.

    ``search`` and ``get_all`` never raise: a failed retrieval is logged and
    reported to the caller as an empty result.
    """

    def __init__(self, store: ListingStore):
        self.store = store

    async def search(
        self,
        criteria: Optional[SearchCriteria] = None,
        sort_by: str = DEFAULT_SORT_FIELD,
        sort_direction: Union[SortDirection, str] = SortDirection.DESC,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Listing]:
        """Search listings; with no criteria at all this is ``get_all``."""
        if criteria is None or criteria.is_empty():
            return await self.get_all()

        plan = plan_search(criteria, sort_by=sort_by, sort_direction=sort_direction, limit=limit)
        return await self.execute(plan)

    async def execute(self, plan: QueryPlan) -> list[Listing]:
        """Run the plan's remote query, then keep records passing every client predicate."""
        with log_timing("listing_search", logger=logger, **plan.describe()) as outcome:
            try:
                result = await self.store.query(plan.remote_query)
            except Exception as e:
                logger.error("Listing search failed", error=mask_sensitive_data(str(e)), exc_info=True)
                outcome["failed"] = True
                return []

            if not result.ok:
                self._log_failure("search", result)
                outcome["failed"] = True
                return []

            listings = self._to_listings(result)
            matched = [listing for listing in listings if plan.matches(listing)]
            outcome.update(retrieved=len(listings), returned=len(matched))

        return matched

    async def get_all(self) -> list[Listing]:
        """All listings in the store's natural order."""
        try:
            result = await self.store.fetch_all()
        except Exception as e:
            logger.error("Fetching all listings failed", error=mask_sensitive_data(str(e)), exc_info=True)
            return []

        if not result.ok:
            self._log_failure("get_all", result)
            return []

        return self._to_listings(result)

    def _to_listings(self, result: RetrievalResult) -> list[Listing]:
        listings = []
        for record_id, data in result.records:
            try:
                listings.append(Listing.from_record(record_id, data))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed listing record",
                    listing_id=record_id,
                    error_count=e.error_count(),
                )
        return listings

    def _log_failure(self, operation: str, result: RetrievalResult) -> None:
        failure = result.failure
        if failure.kind == FailureKind.UNSUPPORTED_QUERY:
            logger.error(
                "Listing query needs an index the listings table does not have",
                operation=operation,
                failure_kind=failure.kind.value,
                error=mask_sensitive_data(failure.message),
            )
        else:
            logger.error(
                "Listing retrieval failed",
                operation=operation,
                failure_kind=failure.kind.value,
                error=mask_sensitive_data(failure.message),
            )
