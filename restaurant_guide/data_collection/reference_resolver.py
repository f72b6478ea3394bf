"""
Resolution of linked-record IDs (districts, cuisines) to display names.

Names are fetched on demand from the referenced table and cached for the
lifetime of the session. Concurrent requests for the same ID share one call.
"""
import asyncio
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from restaurant_guide.data_collection.airtable_client import AirtableClient
from restaurant_guide.data_collection.cache_manager import ReferenceCache
from restaurant_guide.data_collection.fetch_result import FetchErrorKind, FetchResult
from restaurant_guide.data_collection.single_flight import SingleFlight
from restaurant_guide.utils.config import Settings
from restaurant_guide.utils.logger import app_logger

LOADING_PLACEHOLDER = "Loading..."
NOT_AVAILABLE = "Not Available"


class ReferenceKind(str, Enum):
    DISTRICT = "district"
    CUISINE = "cuisine"


# Restaurant field holding the linked record IDs for each kind
REFERENCE_FIELDS = {
    ReferenceKind.DISTRICT: "District",
    ReferenceKind.CUISINE: "Cuisine",
}

ResolvedListener = Callable[[ReferenceKind, str, str], None]


def first_reference_id(fields: Mapping[str, Any], field_name: str) -> Optional[str]:
    """Return the first linked record ID in a field, or None when there is none."""
    value = fields.get(field_name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, str) and value:
        return value
    return None


class ReferenceResolver:
    """Resolves reference IDs to names through a per-kind cache."""

    def __init__(
        self,
        client: AirtableClient,
        settings: Optional[Settings] = None,
        cache: Optional[ReferenceCache] = None,
    ):
        self.client = client
        self.settings = settings or client.settings
        self.tables = {
            ReferenceKind.DISTRICT: self.settings.districts_table,
            ReferenceKind.CUISINE: self.settings.cuisines_table,
        }
        self.name_field = self.settings.reference_name_field
        self.cache = cache or ReferenceCache(max_entries=self.settings.reference_cache_max_entries)

        self._flight = SingleFlight()
        self._failures: Dict[Tuple[ReferenceKind, str], FetchResult] = {}
        self._listeners: List[ResolvedListener] = []
        self._closed = False

    def add_listener(self, callback: ResolvedListener) -> Callable[[], None]:
        """Register a callback run with (kind, reference_id, name) after each resolution."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def cached_name(self, kind: ReferenceKind, reference_id: str) -> Optional[str]:
        return self.cache.get(ReferenceKind(kind).value, reference_id)

    def last_failure(self, kind: ReferenceKind, reference_id: str) -> Optional[FetchResult]:
        """The most recent failed resolution of an ID that is still unresolved."""
        return self._failures.get((ReferenceKind(kind), reference_id))

    def is_pending(self, kind: ReferenceKind, reference_id: str) -> bool:
        return self._flight.get((ReferenceKind(kind), reference_id)) is not None

    def display_name(self, kind: ReferenceKind, reference_id: str) -> str:
        """Return the cached name, or a placeholder while the name is fetched in the background."""
        kind = ReferenceKind(kind)
        name = self.cache.get(kind.value, reference_id)
        if name is not None:
            return name

        if not self._closed and not self.is_pending(kind, reference_id):
            self._flight.spawn(self.resolve(kind, reference_id))
        return LOADING_PLACEHOLDER

    def display_field(self, fields: Mapping[str, Any], kind: ReferenceKind) -> str:
        """Display text for a restaurant's linked field."""
        kind = ReferenceKind(kind)
        reference_id = first_reference_id(fields, REFERENCE_FIELDS[kind])
        if reference_id is None:
            return NOT_AVAILABLE
        return self.display_name(kind, reference_id)

    async def resolve(self, kind: ReferenceKind, reference_id: str) -> FetchResult:
        """Resolve an ID to its name. On success `data` is the name."""
        kind = ReferenceKind(kind)
        name = self.cache.get(kind.value, reference_id)
        if name is not None:
            return FetchResult.success(name, status_code=None)

        if self._closed:
            return FetchResult.skipped("resolver is closed")

        key = (kind, reference_id)
        task = self._flight.get(key)
        if task is None:
            task = self._flight.start(key, self._fetch_and_store(kind, reference_id))
        return await asyncio.shield(task)

    async def resolve_field(self, fields: Mapping[str, Any], kind: ReferenceKind) -> Optional[FetchResult]:
        """Resolve a restaurant's linked field; None when the field is empty."""
        kind = ReferenceKind(kind)
        reference_id = first_reference_id(fields, REFERENCE_FIELDS[kind])
        if reference_id is None:
            return None
        return await self.resolve(kind, reference_id)

    async def wait_idle(self):
        await self._flight.wait_idle()

    def close(self):
        """Stop notifying listeners; names fetched afterwards are still cached."""
        self._closed = True
        self._listeners.clear()

    async def _fetch_and_store(self, kind: ReferenceKind, reference_id: str) -> FetchResult:
        table = self.tables[kind]
        result = await self.client.get_record(table, reference_id)

        if result.ok:
            name = result.data["fields"].get(self.name_field)
            if not isinstance(name, str) or not name:
                app_logger.error(f"No name received for {table}/{reference_id}")
                result = FetchResult.failure(
                    FetchErrorKind.SHAPE,
                    f"Missing required field: {self.name_field}",
                    status_code=result.status_code,
                )

        if not result.ok:
            self._failures[(kind, reference_id)] = result
            app_logger.warning(
                f"Could not resolve {kind.value} {reference_id}: {result.error_kind.value} - {result.error}"
            )
            return result

        self.cache.set(kind.value, reference_id, name)
        self._failures.pop((kind, reference_id), None)
        app_logger.debug(f"Resolved {kind.value} {reference_id} -> {name}")

        if not self._closed:
            self._notify(kind, reference_id, name)
        return FetchResult.success(name, status_code=result.status_code)

    def _notify(self, kind: ReferenceKind, reference_id: str, name: str):
        for listener in list(self._listeners):
            try:
                listener(kind, reference_id, name)
            except Exception as e:
                app_logger.error(f"Reference listener failed: {e}", exc_info=True)
