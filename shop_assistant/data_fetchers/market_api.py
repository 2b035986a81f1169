# shop_assistant/data_fetchers/market_api.py
"""
Market API Fetcher
──────────────────
Read-only access to the storefront REST API:
• active product catalog (one page, loaded once per snapshot)
• latest reviews for a product
• aggregate rating stats for a product

Network and payload errors are logged and turned into empty results (None for
a failed review or stats request, so callers can tell it from "no data");
nothing here raises into the conversation core.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import get_config
from ..enums import BackendFunction
from ..models import Product, RatingStats, Review
from . import register_fetcher

log = logging.getLogger(__name__)
Cfg = get_config()


def _page_content(payload: Any) -> List[Dict[str, Any]]:
    """Spring page objects carry rows in `content`; bare lists are accepted too."""
    if isinstance(payload, dict):
        payload = payload.get("content") or []
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


class MarketApiClient:
    """Blocking HTTP client; async handlers run it in the default executor."""

    def __init__(self, base_url: str | None = None, timeout: int | None = None,
                 session: requests.Session | None = None):
        self.base_url = (base_url or Cfg.MARKET_API_BASE).rstrip("/")
        self.timeout = timeout or Cfg.MARKET_API_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            log.warning(f"MARKET_API_TIMEOUT | url={url}")
        except requests.exceptions.RequestException as e:
            log.warning(f"MARKET_API_REQUEST_FAILED | url={url} | error={e}")
        except ValueError as e:
            log.warning(f"MARKET_API_BAD_JSON | url={url} | error={e}")
        return None

    def get_active_products(self, page: int = 0, size: int | None = None) -> List[Product]:
        params = {
            "page": page,
            "size": size or Cfg.CATALOG_PAGE_SIZE,
            "sortField": "id",
            "sortDirection": "asc",
        }
        rows = _page_content(self._get_json("/products/active", params))
        products: List[Product] = []
        for row in rows:
            try:
                products.append(Product.from_dict(row))
            except (KeyError, TypeError) as e:
                log.warning(f"CATALOG_ROW_SKIPPED | id={row.get('id')} | error={e}")
        log.info(f"CATALOG_FETCHED | rows={len(rows)} | products={len(products)}")
        return products

    def get_product_reviews(self, product_id: str, page: int = 0,
                            size: int | None = None) -> Optional[List[Review]]:
        """Latest reviews; None when the request itself failed."""
        params = {"page": page, "size": size or Cfg.REVIEW_PAGE_SIZE}
        payload = self._get_json(f"/reviews/product/{product_id}", params)
        if payload is None:
            return None
        return [Review.from_dict(row) for row in _page_content(payload)]

    def get_rating_stats(self, product_id: str) -> Optional[RatingStats]:
        data = self._get_json(f"/reviews/product/{product_id}/stats")
        if not isinstance(data, dict):
            return None
        return RatingStats.from_dict(data)


_client: Optional[MarketApiClient] = None


def get_market_client() -> MarketApiClient:
    """Get singleton market API client"""
    global _client
    if _client is None:
        _client = MarketApiClient()
    return _client


# Async handlers; run the blocking client in a thread
async def fetch_catalog_handler() -> List[Product]:
    client = get_market_client()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, client.get_active_products)


async def fetch_product_reviews_handler(product_id: str) -> Optional[List[Review]]:
    client = get_market_client()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: client.get_product_reviews(product_id))


async def fetch_rating_stats_handler(product_id: str) -> Optional[RatingStats]:
    client = get_market_client()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: client.get_rating_stats(product_id))


register_fetcher(BackendFunction.FETCH_CATALOG, fetch_catalog_handler)
register_fetcher(BackendFunction.FETCH_PRODUCT_REVIEWS, fetch_product_reviews_handler)
register_fetcher(BackendFunction.FETCH_RATING_STATS, fetch_rating_stats_handler)
