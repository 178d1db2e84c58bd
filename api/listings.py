"""Listings REST endpoint for Vercel.

Routes (all require the X-API-Key header):
    GET    /api/listings            all listings, or a search when filter params are given
    GET    /api/listings/{id}       one listing
    POST   /api/listings            create
    PUT    /api/listings/{id}       partial update
    DELETE /api/listings/{id}       delete
"""

from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit
import asyncio
import hmac
import json

from pydantic import ValidationError

from src.models.listing import Listing, SearchCriteria
from src.models.query_plan import DEFAULT_LIMIT, DEFAULT_SORT_FIELD, SortDirection
from src.services.listing_service import ListingService
from src.services.listing_store import SupabaseListingStore
from src.services.search_executor import ListingSearchService
from src.services.supabase_client import create_supabase_client
from src.utils.config import Settings
from src.utils.errors import ListingNotFoundError, ListingValidationError
from src.utils.logging import correlation_context, get_structured_logger, mask_sensitive_data, setup_logging
from src.utils.logging_config import LoggingConfig

setup_logging()
logger = get_structured_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-API-Key, X-Correlation-ID",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Content-Type": "application/json",
}

SEARCH_PARAMS = ("city", "minPrice", "maxPrice", "minBedrooms", "propertyType", "sortBy", "sortDirection", "limit")

# Services are built on first use and reused while the function instance stays warm
_listing_service: Optional[ListingService] = None
_search_service: Optional[ListingSearchService] = None


def _load_services() -> tuple[ListingService, ListingSearchService]:
    global _listing_service, _search_service

    if _listing_service is None or _search_service is None:
        store = SupabaseListingStore(create_supabase_client(), table=Settings.LISTINGS_TABLE)
        _listing_service = ListingService(store)
        _search_service = ListingSearchService(store)
    return _listing_service, _search_service


def _response(status_code: int, body: Any = None) -> dict:
    headers = dict(CORS_HEADERS)
    response = {"statusCode": status_code, "headers": headers}
    if body is not None:
        response["body"] = json.dumps(body)
    return response


def _listing_id_from_path(path: str) -> Optional[str]:
    """ID segment following `listings` in the path, if any."""
    segments = [s for s in urlsplit(path).path.split("/") if s]
    if "listings" not in segments:
        return None
    index = segments.index("listings")
    if index + 1 < len(segments):
        return segments[index + 1]
    return None


def _is_authorized(headers: dict) -> bool:
    expected = Settings.api_key()
    provided = headers.get("x-api-key", "")
    if not expected or not provided:
        return False
    # compare_digest only takes str when both are ASCII
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _sort_field(value: Optional[str]) -> str:
    """Resolve a sortBy param (camelCase alias or snake_case name) to a listing field."""
    if not value:
        return DEFAULT_SORT_FIELD
    name = Listing.field_name(value)
    if name is None:
        raise ValueError(f"Unknown sort field: {value}")
    return name


def _wire_name(field_name: str) -> str:
    return Listing.model_fields[field_name].alias or field_name


def _parse_body(body: Any) -> dict:
    if isinstance(body, dict):
        return body
    data = json.loads(body or "")
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


async def _get(listing_id, query, listing_service, search_service) -> dict:
    if listing_id:
        listing = await listing_service.get(listing_id)
        if listing is None:
            return _response(404, {"error": "Listing not found"})
        return _response(200, listing.to_api())

    if not any(name in query for name in SEARCH_PARAMS):
        listings = await search_service.get_all()
        return _response(200, [listing.to_api() for listing in listings])

    try:
        criteria = SearchCriteria.from_query_params(query)
        sort_by = _sort_field(_first(query.get("sortBy")))
        sort_direction = SortDirection(_first(query.get("sortDirection")) or SortDirection.DESC.value)
        limit = int(_first(query.get("limit")) or DEFAULT_LIMIT)
    except (ValidationError, ValueError) as e:
        return _response(400, {"error": "Invalid search parameters", "message": str(e)})

    listings = await search_service.search(criteria, sort_by=sort_by, sort_direction=sort_direction, limit=limit)
    return _response(200, [listing.to_api() for listing in listings])


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


async def dispatch(
    request: dict,
    listing_service: Optional[ListingService] = None,
    search_service: Optional[ListingSearchService] = None,
) -> dict:
    """Route a request dict (method, path, headers, body, query) to the listing services."""
    method = (request.get("method") or "GET").upper()
    headers = {k.lower(): v for k, v in (request.get("headers") or {}).items()}
    query = request.get("query") or {}
    path = request.get("path") or ""

    if method == "OPTIONS":
        return _response(204)

    if not _is_authorized(headers):
        logger.warning("Rejected request with invalid API key", method=method, path=path)
        return _response(401, {"error": "Unauthorized: Invalid API key"})

    listing_id = _listing_id_from_path(path)

    try:
        if listing_service is None or search_service is None:
            listing_service, search_service = _load_services()

        if method == "GET":
            return await _get(listing_id, query, listing_service, search_service)

        if method == "POST":
            try:
                data = _parse_body(request.get("body"))
            except ValueError as e:
                return _response(400, {"error": "Invalid request body", "message": str(e)})
            try:
                listing = await listing_service.create(data)
            except ListingValidationError as e:
                if e.missing_fields:
                    return _response(400, {"error": "Missing required fields", "missingFields": [_wire_name(name) for name in e.missing_fields]})
                return _response(400, {"error": "Invalid request body", "message": str(e)})
            return _response(201, listing.to_api())

        if method == "PUT":
            if not listing_id:
                return _response(400, {"error": "Listing ID is required"})
            try:
                data = _parse_body(request.get("body"))
                listing = await listing_service.update(listing_id, data)
            except ListingNotFoundError:
                return _response(404, {"error": "Listing not found"})
            except (ValueError, ListingValidationError) as e:
                return _response(400, {"error": "Invalid request body", "message": str(e)})
            return _response(200, listing.to_api())

        if method == "DELETE":
            if not listing_id:
                return _response(400, {"error": "Listing ID is required"})
            try:
                listing = await listing_service.delete(listing_id)
            except ListingNotFoundError:
                return _response(404, {"error": "Listing not found"})
            return _response(200, {"message": "Listing deleted successfully", "listing": listing.to_api()})

        return _response(405, {"error": "Method not allowed"})

    except Exception as e:
        logger.error(
            "Error processing listings request",
            method=method,
            path=path,
            error=mask_sensitive_data(str(e)),
            exc_info=True,
        )
        return _response(500, {"error": "Server error", "message": str(e)})


def handle_request(
    request: dict,
    listing_service: Optional[ListingService] = None,
    search_service: Optional[ListingSearchService] = None,
) -> dict:
    """Synchronous entry point: run dispatch inside a correlation context."""
    headers = {k.lower(): v for k, v in (request.get("headers") or {}).items()}
    correlation_id = headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER.lower())

    with correlation_context(correlation_id) as cid:
        response = asyncio.run(dispatch(request, listing_service, search_service))
        response["headers"][LoggingConfig.LOG_CORRELATION_ID_HEADER] = cid
        return response


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the listings resource."""

    def _handle(self, method: str):
        try:
            content_length = int(self.headers.get('Content-Length', 0))
            raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

            request = {
                "method": method,
                "path": self.path,
                "headers": dict(self.headers),
                "body": raw_body,
                "query": parse_qs(urlsplit(self.path).query),
            }
            response = handle_request(request)
        except Exception as e:
            logger.error("Unhandled error in listings handler", error=str(e), exc_info=True)
            response = _response(500, {"error": "Server error", "message": str(e)})

        self.send_response(response["statusCode"])
        for name, value in response["headers"].items():
            self.send_header(name, value)
        self.end_headers()
        if "body" in response:
            self.wfile.write(response["body"].encode('utf-8'))

    def do_GET(self):
        self._handle("GET")

    def do_POST(self):
        self._handle("POST")

    def do_PUT(self):
        self._handle("PUT")

    def do_DELETE(self):
        self._handle("DELETE")

    def do_OPTIONS(self):
        self._handle("OPTIONS")

    def do_PATCH(self):
        self._handle("PATCH")
