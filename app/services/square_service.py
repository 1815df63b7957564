"""
Square Orders Service
Reads historical orders from the Square Orders API for the one-time data import
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import SQUARE_ACCESS_TOKEN, SQUARE_API_VERSION, SQUARE_ENVIRONMENT, SQUARE_LOCATION_IDS

logger = logging.getLogger(__name__)

# Square Configuration
if SQUARE_ENVIRONMENT == "production":
    SQUARE_API_URL = "https://connect.squareup.com/v2"
else:
    SQUARE_API_URL = "https://connect.squareupsandbox.com/v2"

ORDERS_PER_PAGE = 1000  # Square max
PAGE_PAUSE_SECONDS = 0.1


class SquareAPIError(Exception):
    """Raised when the Square API answers with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _headers(access_token: str) -> Dict[str, str]:
    return {
        "Square-Version": SQUARE_API_VERSION,
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }


def build_search_body(location_ids: List[str], cursor: Optional[str] = None) -> Dict[str, Any]:
    """Search body for COMPLETED orders, oldest first"""
    body: Dict[str, Any] = {
        "location_ids": location_ids,
        "query": {
            "filter": {"state_filter": {"states": ["COMPLETED"]}},
            "sort": {"sort_field": "CREATED_AT", "sort_order": "ASC"},
        },
        "limit": ORDERS_PER_PAGE,
        "return_entries": False,
    }
    if cursor:
        body["cursor"] = cursor
    return body


async def fetch_completed_orders(
    access_token: Optional[str] = None,
    location_ids: Optional[List[str]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch every completed order for the configured locations.

    Follows the response cursor until Square stops returning one, pausing
    briefly between pages to stay under the rate limit.

    Raises:
        SquareAPIError: missing credentials or a non-200 response on any page
    """
    access_token = access_token or SQUARE_ACCESS_TOKEN
    location_ids = location_ids or SQUARE_LOCATION_IDS
    if not access_token:
        raise SquareAPIError("SQUARE_ACCESS_TOKEN is not configured")
    if not location_ids:
        raise SquareAPIError("SQUARE_LOCATION_IDS is not configured")

    logger.info("📥 Fetching all completed orders from Square...")
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=60.0)

    orders: List[Dict[str, Any]] = []
    cursor = None
    page = 0
    try:
        while True:
            page += 1
            response = await client.post(
                f"{SQUARE_API_URL}/orders/search",
                json=build_search_body(location_ids, cursor),
                headers=_headers(access_token),
            )
            if response.status_code != 200:
                logger.error(f"❌ Square API error on page {page}: {response.text}")
                raise SquareAPIError(
                    f"Square API error (page {page}): {response.status_code} - {response.text}",
                    status_code=response.status_code,
                )

            data = response.json()
            page_orders = data.get("orders") or []
            orders.extend(page_orders)
            logger.info(f"  Page {page}: {len(page_orders)} orders (total: {len(orders)})")

            cursor = data.get("cursor")
            if not cursor:
                break
            await asyncio.sleep(PAGE_PAUSE_SECONDS)
    finally:
        if owns_client:
            await client.aclose()

    logger.info(f"✅ Fetched {len(orders)} total orders from Square")
    return orders
