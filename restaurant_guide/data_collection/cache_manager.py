"""
In-memory cache for resolved reference names.
"""
from collections import OrderedDict
from typing import Dict, Optional

from restaurant_guide.utils.logger import app_logger


class ReferenceCache:
    """Session-scoped, write-once cache of display names, one namespace per reference kind.

    Entries are never invalidated: referenced records are assumed not to change
    while a session is alive. When `max_entries` is set, each namespace keeps at
    most that many names and drops the oldest first.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._namespaces: Dict[str, "OrderedDict[str, str]"] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, namespace: str, key: str) -> Optional[str]:
        """Get a cached name."""
        value = self._namespaces.get(namespace, {}).get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def set(self, namespace: str, key: str, value: str) -> bool:
        """Store a name. Returns False if the key was already cached."""
        entries = self._namespaces.setdefault(namespace, OrderedDict())
        if key in entries:
            return False

        entries[key] = value
        if self.max_entries is not None and len(entries) > self.max_entries:
            evicted, _ = entries.popitem(last=False)
            self.evictions += 1
            app_logger.debug(f"Evicted {namespace}:{evicted} from reference cache")
        return True

    def exists(self, namespace: str, key: str) -> bool:
        """Check if key exists in cache."""
        return key in self._namespaces.get(namespace, {})

    def size(self, namespace: Optional[str] = None) -> int:
        if namespace is not None:
            return len(self._namespaces.get(namespace, {}))
        return sum(len(entries) for entries in self._namespaces.values())

    def get_stats(self) -> dict:
        """Get cache statistics."""
        lookups = self.hits + self.misses
        return {
            "entries": {namespace: len(entries) for namespace, entries in self._namespaces.items()},
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / lookups if lookups else 0.0,
            "evictions": self.evictions,
            "max_entries": self.max_entries,
        }
