# product_catalog/api_client.py

"""
HTTP client for the Catalog Service, used by the client catalog state.

Every call returns an ApiResult instead of raising, so the caller decides
what a failed request means for its local state.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

API_BASE = os.getenv("CATALOG_API_BASE", "/api/products")
CONFIG_URL = os.getenv("CATALOG_CONFIG_URL", "/config.json")

NO_STORE = {"Cache-Control": "no-store"}


@dataclass
class ApiResult:
    ok: bool
    status_code: Optional[int] = None
    data: Any = None
    error: Optional[str] = None


class CatalogApi:
    def __init__(
        self,
        client: httpx.Client,
        api_base: str = API_BASE,
        config_url: str = CONFIG_URL,
    ):
        self.client = client
        self.api_base = api_base
        self.config_url = config_url

    def _call(self, method: str, url: str, payload: Any = None) -> ApiResult:
        try:
            response = self.client.request(method, url, json=payload, headers=NO_STORE)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"{method} {url} failed: {e}")
            return ApiResult(False, error=str(e) or e.__class__.__name__)

        if not response.is_success:
            logger.warning(f"{method} {url} returned HTTP {response.status_code}")
            return ApiResult(False, response.status_code, error=f"HTTP {response.status_code}")
        try:
            data = response.json() if response.content else None
        except ValueError as e:
            logger.warning(f"{method} {url} returned invalid JSON: {e}")
            return ApiResult(False, response.status_code, error="invalid JSON")
        return ApiResult(True, response.status_code, data)

    def fetch_config(self) -> ApiResult:
        return self._call("GET", self.config_url)

    def fetch_products(self) -> ApiResult:
        return self._call("GET", self.api_base)

    def create_product(self, data: dict) -> ApiResult:
        return self._call("POST", self.api_base, data)

    def update_product(self, product_id: str, updates: dict) -> ApiResult:
        return self._call("PUT", self.api_base, {"id": product_id, "updates": updates})

    def delete_product(self, product_id: str) -> ApiResult:
        return self._call("DELETE", self.api_base, {"id": product_id})
