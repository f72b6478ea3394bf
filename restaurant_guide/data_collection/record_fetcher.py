"""
Incremental, paginated loading of restaurant records.

Records are accumulated in backend order. Pages are fetched one at a time so
the accumulated list never holds a page twice or out of order; the next page
is requested automatically when a reader gets close to the end of what has
been loaded.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

from restaurant_guide.data_collection.airtable_client import AirtableClient, RecordPage
from restaurant_guide.data_collection.fetch_result import FetchResult
from restaurant_guide.data_collection.single_flight import SingleFlight
from restaurant_guide.utils.config import Settings
from restaurant_guide.utils.logger import app_logger


class RecordIndexError(IndexError):
    """Raised when a row index is outside the loaded records."""

    def __init__(self, index: int, loaded: int):
        super().__init__(f"Record index {index} out of range ({loaded} loaded)")
        self.index = index
        self.loaded = loaded


class RecordFetcher:
    """Loads pages of a table into an ordered in-memory list."""

    def __init__(self, client: AirtableClient, settings: Optional[Settings] = None, table: Optional[str] = None):
        self.client = client
        self.settings = settings or client.settings
        self.table = table or self.settings.restaurants_table
        self.read_ahead_threshold = self.settings.read_ahead_threshold

        self._records: List[Dict[str, Any]] = []
        self._next_cursor = ""
        self._loaded = False
        self._generation = 0
        self._closed = False

        self._flight = SingleFlight()
        self._listeners: List[Callable[["RecordFetcher"], None]] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> List[Dict[str, Any]]:
        """A copy of the records loaded so far."""
        return list(self._records)

    @property
    def next_cursor(self) -> str:
        """Cursor for the next page; empty when there are no more pages."""
        return self._next_cursor

    @property
    def has_more(self) -> bool:
        return bool(self._next_cursor)

    @property
    def is_loading(self) -> bool:
        return len(self._flight) > 0

    @property
    def loaded(self) -> bool:
        """True once the first page has been applied."""
        return self._loaded

    def add_listener(self, callback: Callable[["RecordFetcher"], None]) -> Callable[[], None]:
        """Register a callback run after every applied page or refresh. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def fetch_page(self, cursor: Optional[str] = None) -> FetchResult:
        """Fetch one page and append it to the loaded records.

        A call for the cursor that is already being fetched shares that fetch.
        Any other call made while a page is in flight is skipped, as are calls
        for a cursor that is no longer current.
        """
        key = cursor or ""

        if self._closed:
            return FetchResult.skipped("fetcher is closed")

        running = self._flight.get(key)
        if running is not None:
            return await asyncio.shield(running)

        if self.is_loading:
            app_logger.debug(f"Page fetch for {self.table} already in progress, skipping cursor {key!r}")
            return FetchResult.skipped("page fetch already in progress")

        if key != self._next_cursor or (not key and self._loaded):
            app_logger.debug(f"Cursor {key!r} is not the next page of {self.table}, skipping")
            return FetchResult.skipped("cursor is not the next page")

        task = self._flight.start(key, self._fetch_and_apply(key, self._generation))
        return await asyncio.shield(task)

    async def load_initial(self) -> FetchResult:
        """Load the first page unless it is already loaded."""
        return await self.fetch_page(None)

    async def refresh(self) -> FetchResult:
        """Drop everything loaded so far and load the first page again.

        A refresh made while the first page is already being loaded from
        scratch joins that load instead of starting another one.
        """
        running = self._flight.get("")
        if running is not None and not self._loaded:
            app_logger.debug(f"Refresh of {self.table} already in progress, joining it")
            return await asyncio.shield(running)

        self._generation += 1
        self._records = []
        self._next_cursor = ""
        self._loaded = False
        # A fetch that started before the refresh finishes on its own and is discarded
        self._flight.forget()
        app_logger.info(f"Refreshing {self.table}")
        self._notify()
        return await self.fetch_page(None)

    def record_at(self, index: int) -> Dict[str, Any]:
        """Return the record at `index`, loading the next page in the background when near the end."""
        self.maybe_read_ahead(index)
        if index < 0 or index >= len(self._records):
            raise RecordIndexError(index, len(self._records))
        return self._records[index]

    def maybe_read_ahead(self, index: int) -> bool:
        """Schedule the next page if `index` is within the read-ahead threshold of the end."""
        if self._closed or not self._next_cursor:
            return False
        if index < len(self._records) - self.read_ahead_threshold:
            return False
        if self._flight.get(self._next_cursor) is not None:
            return True
        self._flight.spawn(self.fetch_page(self._next_cursor))
        return True

    async def wait_idle(self):
        """Wait for all page fetches, including read-ahead, to finish."""
        await self._flight.wait_idle()

    def close(self):
        """Stop applying results and notifying listeners."""
        self._closed = True
        self._listeners.clear()

    async def _fetch_and_apply(self, cursor: str, generation: int) -> FetchResult:
        app_logger.info(f"Fetching {self.table} page (cursor={cursor or 'start'})")
        result = await self.client.list_records(self.table, cursor=cursor or None)

        if self._closed or generation != self._generation:
            app_logger.info(f"Discarding {self.table} page fetched before a refresh or close")
            return FetchResult.skipped("page discarded")

        if not result.ok:
            app_logger.warning(
                f"{self.table} page not loaded (cursor={cursor or 'start'}): "
                f"{result.error_kind.value} - {result.error}"
            )
            return result

        page: RecordPage = result.data
        self._records.extend(page.records)
        self._next_cursor = page.offset
        self._loaded = True
        app_logger.info(
            f"Loaded {len(page.records)} {self.table} records "
            f"(total {len(self._records)}, more pages: {page.has_more})"
        )
        self._notify()
        return result

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                app_logger.error(f"Record listener failed: {e}", exc_info=True)
