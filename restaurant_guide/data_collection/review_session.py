"""
Session object owning the state of one restaurant browsing session.
"""
from typing import Optional

import httpx
from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_exponential

from restaurant_guide.data_collection.airtable_client import AirtableClient
from restaurant_guide.data_collection.fetch_result import FetchResult
from restaurant_guide.data_collection.record_fetcher import RecordFetcher
from restaurant_guide.data_collection.reference_resolver import ReferenceKind, ReferenceResolver
from restaurant_guide.utils.config import Settings, get_settings
from restaurant_guide.utils.logger import app_logger


class ReviewSession:
    """Owns the Airtable client, the restaurant list and the reference caches.

    Usage:
        async with ReviewSession() as session:
            await session.restaurants.load_initial()
            record = session.restaurants.record_at(0)
            district = session.references.display_field(record["fields"], ReferenceKind.DISTRICT)
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.airtable = AirtableClient(self.settings, client=client)
        self.restaurants = RecordFetcher(self.airtable, self.settings)
        self.references = ReferenceResolver(self.airtable, self.settings)
        self.closed = False

    async def __aenter__(self) -> "ReviewSession":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_retries),
            wait=wait_exponential(multiplier=self.settings.retry_delay, max=10),
            retry=retry_if_result(lambda result: result.retryable),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before_sleep=self._log_retry,
        )

    @staticmethod
    def _log_retry(retry_state):
        result = retry_state.outcome.result()
        app_logger.warning(
            f"Retrying after {result.error_kind.value} failure "
            f"(attempt {retry_state.attempt_number}): {result.error}"
        )

    async def fetch_page_with_retry(self, cursor: Optional[str] = None) -> FetchResult:
        """Fetch a page, retrying transport errors, rate limiting and server errors."""
        return await self._retrying()(self.restaurants.fetch_page, cursor)

    async def refresh_with_retry(self) -> FetchResult:
        """Refresh the list, retrying the first page on retryable failures."""
        return await self._retrying()(self.restaurants.refresh)

    async def resolve_with_retry(self, kind: ReferenceKind, reference_id: str) -> FetchResult:
        return await self._retrying()(self.references.resolve, kind, reference_id)

    async def wait_idle(self):
        """Wait for every outstanding page fetch and reference resolution."""
        await self.restaurants.wait_idle()
        await self.references.wait_idle()

    async def close(self):
        """Detach listeners and release the HTTP client. Late completions are ignored."""
        if self.closed:
            return
        self.closed = True
        self.restaurants.close()
        self.references.close()
        await self.airtable.close()
        app_logger.info("Review session closed")
