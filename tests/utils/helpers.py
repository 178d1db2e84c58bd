"""Test helper functions."""

import json
from typing import Any, Dict, Optional


TEST_API_KEY = "test-api-key"


def create_api_request(
    method: str = "GET",
    path: str = "/api/listings",
    body: Any = None,
    query: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    api_key: Optional[str] = TEST_API_KEY,
) -> Dict[str, Any]:
    """Create a serverless request dict for the listings endpoint."""
    if headers is None:
        headers = {"content-type": "application/json"}
    if api_key is not None:
        headers = {**headers, "X-API-Key": api_key}

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, (dict, list)) else body,
        "query": query or {},
    }


def response_json(response: Dict[str, Any]) -> Any:
    """Decode the JSON body of a handler response."""
    return json.loads(response["body"])


def listing_prices(listings) -> list:
    return [listing.list_price for listing in listings]
