"""Per-connection cache of resource list queries.

Fetching ``JSSResource/<type>`` returns a lightweight summary (at least id
and name) of every object of that type. Those lists are cached by the
type's list key, and id -> field maps derived from them are cached under
``<list_key>_map_<field>``. Nothing expires by time; entries are dropped by
``flush()`` or replaced when a caller asks for a refresh.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from .connection_protocol import ResourceType
from .exceptions import InvalidDataError

logger = logging.getLogger(__name__)

CacheKey = Union[str, ResourceType, type]


def _list_key(key: CacheKey) -> str:
    return key if isinstance(key, str) else key.RSRC_LIST_KEY


class ObjectCache:
    """Memoizes list queries for one connection.

    All access goes through one re-entrant lock, and a missing list is
    fetched while holding it, so concurrent readers of the same connection
    trigger at most one fetch per empty entry.
    """

    MAP_INFIX = "_map_"

    def __init__(self, fetch: Callable[[str], Any]):
        """Initialize an empty cache.

        Args:
            fetch: Callable taking a resource path and returning parsed JSON
        """
        self._fetch = fetch
        self._entries: Dict[str, Any] = {}
        self._lock = threading.RLock()

    @classmethod
    def map_key(cls, key: CacheKey, field: str) -> str:
        return f"{_list_key(key)}{cls.MAP_INFIX}{field}"

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return _list_key(key) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def list(self, resource_type: ResourceType, refresh: bool = False) -> List[Dict[str, Any]]:
        """Return the summary list for a resource type.

        Args:
            resource_type: Resource class (or descriptor) to list
            refresh: Re-fetch even if a cached list exists

        Returns:
            The cached list of summary dicts, in server order

        Raises:
            InvalidDataError: If the response does not contain the list key
        """
        key = resource_type.RSRC_LIST_KEY
        with self._lock:
            if refresh:
                self.flush(key)
            elif key in self._entries:
                logger.debug(f"List of {key} retrieved from cache")
                return self._entries[key]

            data = self._fetch(resource_type.RSRC_BASE)
            if not isinstance(data, dict) or not isinstance(data.get(key), list):
                raise InvalidDataError(
                    f"Response for {resource_type.RSRC_BASE} has no '{key}' list"
                )
            self._entries[key] = data[key]
            logger.debug(f"Cached {len(data[key])} {key}")
            return self._entries[key]

    def ids_of(self, resource_type: ResourceType, refresh: bool = False) -> List[Any]:
        return [item.get("id") for item in self.list(resource_type, refresh)]

    def names_of(self, resource_type: ResourceType, refresh: bool = False) -> List[Any]:
        return [item.get("name") for item in self.list(resource_type, refresh)]

    def map(
        self, resource_type: ResourceType, other_field: str, refresh: bool = False
    ) -> Dict[Any, Any]:
        """Map every id of a resource type to another field of its summary.

        Summaries lacking the field map to None. Invert the result to map the
        other field to ids.
        """
        map_key = self.map_key(resource_type, other_field)
        with self._lock:
            items = self.list(resource_type, refresh)
            if map_key not in self._entries:
                self._entries[map_key] = {item.get("id"): item.get(other_field) for item in items}
            return self._entries[map_key]

    def flush(self, key: Optional[CacheKey] = None) -> None:
        """Drop one type's list and derived maps, or everything when key is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
                return

            list_key = _list_key(key)
            prefix = f"{list_key}{self.MAP_INFIX}"
            for cache_key in [k for k in self._entries if k == list_key or k.startswith(prefix)]:
                del self._entries[cache_key]
