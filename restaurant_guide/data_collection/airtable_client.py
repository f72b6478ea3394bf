"""
Airtable REST API client.
Lists records page by page and fetches single records by ID.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from restaurant_guide.data_collection.data_validator import DataValidator
from restaurant_guide.data_collection.fetch_result import FetchErrorKind, FetchResult
from restaurant_guide.utils.config import Settings, get_settings
from restaurant_guide.utils.logger import app_logger


@dataclass(frozen=True)
class RecordPage:
    """One page of a list response."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    offset: str = ""

    @property
    def has_more(self) -> bool:
        return bool(self.offset)


class AirtableClient:
    """Async client for the Airtable REST API."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.base_url = f"{self.settings.airtable_api_url.rstrip('/')}/v0/{self.settings.airtable_base_id}"
        self.headers = {
            "Authorization": f"Bearer {self.settings.airtable_api_key}",
            "Accept": "application/json",
        }
        self.validator = DataValidator()

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.settings.request_timeout)

        self.api_calls = 0
        self.start_time = time.time()

    def build_list_params(self, cursor: Optional[str] = None) -> Dict[str, str]:
        """Build query parameters for listing the restaurants table."""
        params = {"limit": str(self.settings.page_size)}
        if self.settings.view_name:
            params["view"] = self.settings.view_name
        if self.settings.sort_field:
            params["sortField"] = self.settings.sort_field
            params["sortDirection"] = self.settings.sort_direction
        if cursor:
            params["offset"] = cursor
        return params

    def table_url(self, table: str, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/{quote(table, safe='')}"
        if record_id is not None:
            url = f"{url}/{quote(record_id, safe='')}"
        return url

    async def list_records(self, table: str, cursor: Optional[str] = None) -> FetchResult:
        """Fetch one page of records. On success `data` is a RecordPage."""
        result = await self._get_json(self.table_url(table), params=self.build_list_params(cursor))
        if not result.ok:
            return result

        is_valid, errors = self.validator.validate_page(result.data)
        if not is_valid:
            app_logger.error(f"Unexpected list response from {table}: {'; '.join(errors)}")
            return FetchResult.failure(FetchErrorKind.SHAPE, "; ".join(errors), status_code=result.status_code)

        page = RecordPage(records=list(result.data["records"]), offset=result.data.get("offset") or "")
        return FetchResult.success(page, status_code=result.status_code)

    async def get_record(self, table: str, record_id: str) -> FetchResult:
        """Fetch a single record. On success `data` is the record payload."""
        result = await self._get_json(self.table_url(table, record_id))
        if not result.ok:
            return result

        is_valid, errors = self.validator.validate_single_record(result.data)
        if not is_valid:
            app_logger.error(f"Unexpected record response from {table}/{record_id}: {'; '.join(errors)}")
            return FetchResult.failure(FetchErrorKind.SHAPE, "; ".join(errors), status_code=result.status_code)

        return result

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> FetchResult:
        """GET a URL and decode a JSON object body."""
        try:
            response = await self._client.get(url, headers=self.headers, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            app_logger.error(f"Airtable request error for {url}: {e!r}")
            return FetchResult.failure(FetchErrorKind.TRANSPORT, str(e) or type(e).__name__)
        finally:
            self._track_api_call()

        if response.status_code != 200:
            app_logger.error(f"Airtable HTTP error: {response.status_code} - {response.text[:200]}")
            return FetchResult.failure(
                FetchErrorKind.HTTP_STATUS,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            app_logger.error(f"No data was found in the response from {url}")
            return FetchResult.failure(FetchErrorKind.EMPTY_BODY, "Empty response body", status_code=200)

        try:
            payload = response.json()
        except ValueError as e:
            app_logger.error(f"Unable to decode JSON from {url}: {e}")
            return FetchResult.failure(FetchErrorKind.SHAPE, f"Invalid JSON: {e}", status_code=200)

        if not isinstance(payload, dict):
            return FetchResult.failure(FetchErrorKind.SHAPE, "Response body is not a JSON object", status_code=200)

        return FetchResult.success(payload, status_code=200)

    def _track_api_call(self):
        """Track API call for monitoring."""
        self.api_calls += 1
        if self.api_calls % 10 == 0:
            elapsed = time.time() - self.start_time
            rate = self.api_calls / elapsed if elapsed > 0 else 0
            app_logger.info(f"Airtable API calls: {self.api_calls} (rate: {rate:.2f}/sec)")

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
            app_logger.info("Airtable HTTP client closed")
