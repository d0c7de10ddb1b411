import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

from colored_logger import get_colored_logger
from .errors import CacheCorruptionError

logger = get_colored_logger(__name__)

DEFAULT_TTL_SECONDS = 600

SEARCH = "search"
CATEGORY = "category"
ENTRY = "entry"
NAMESPACES = (SEARCH, CATEGORY, ENTRY)


@dataclass(frozen=True)
class CacheRecord:
    value: Any
    inserted_at: float
    from_list: bool = False

    def load(self) -> Any:
        # Lists are stored as tuples so callers never share the cached payload
        if self.from_list:
            return list(self.value)
        return self.value


class LoreCache:
    """
    Memoizes search results, category listings and single entries.

    All three maps share one expiry clock: once more than ``ttl_seconds`` have
    passed since the last reset, the next lookup clears everything and starts
    a new epoch. Empty results are never stored.

    Not thread-safe; give each thread of callers its own instance.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = (
            ttl_seconds
            if isinstance(ttl_seconds, (int, float))
            and not isinstance(ttl_seconds, bool)
            and ttl_seconds > 0
            else DEFAULT_TTL_SECONDS
        )
        self._clock = clock
        self._stores: Dict[str, Dict[Hashable, Any]] = {name: {} for name in NAMESPACES}
        self._last_reset = clock()

    @staticmethod
    def normalize_key(key: Any) -> str:
        return str(key).strip().lower()

    def _make_key(self, key: Any, namespace: str) -> Hashable:
        # Entry slugs are case-sensitive and tuple keys are taken as given
        if namespace == ENTRY or isinstance(key, tuple):
            return key
        return self.normalize_key(key)

    def get_or_compute(
        self, key: Hashable, compute: Callable[[], Any], namespace: str = SEARCH
    ) -> Any:
        """
        Return the cached value for ``key`` or compute and store it.

        String keys of the search and category namespaces are trimmed and
        lowercased. Entry keys and tuple keys are matched exactly.

        Args:
            key: Query text, category name or entry key
            compute: Called on a miss
            namespace: One of "search", "category", "entry"

        Returns:
            The cached or freshly computed value
        """
        cached = self.get(key, namespace)
        if cached is not None:
            logger.trace("Cache hit for %s %r", namespace, key)
            return cached

        value = compute()
        self.set(key, value, namespace)
        return value

    def get(self, key: Hashable, namespace: str = SEARCH) -> Optional[Any]:
        self._expire_if_needed()
        store = self._store(namespace)
        normalized = self._make_key(key, namespace)

        if normalized not in store:
            return None

        try:
            return self._read(store[normalized])
        except CacheCorruptionError as e:
            logger.warning("Dropping corrupted %s cache key %r: %s", namespace, normalized, e)
            del store[normalized]
            return None

    def set(self, key: Hashable, value: Any, namespace: str = SEARCH) -> None:
        if _is_empty(value):
            return

        from_list = isinstance(value, list)
        if from_list:
            value = tuple(value)

        self._store(namespace)[self._make_key(key, namespace)] = CacheRecord(
            value=value, inserted_at=self._clock(), from_list=from_list
        )

    # Per-namespace helpers

    def get_or_compute_search(self, query: Hashable, compute: Callable[[], Any]) -> Any:
        return self.get_or_compute(query, compute, SEARCH)

    def get_or_compute_category(self, category: str, compute: Callable[[], Any]) -> Any:
        return self.get_or_compute(category, compute, CATEGORY)

    def get_or_compute_entry(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        return self.get_or_compute(key, compute, ENTRY)

    def get_search_results(self, query: str) -> Optional[Any]:
        return self.get(query, SEARCH)

    def set_search_results(self, query: str, results: Any) -> None:
        self.set(query, results, SEARCH)

    def get_category_entries(self, category: str) -> Optional[Any]:
        return self.get(category, CATEGORY)

    def set_category_entries(self, category: str, entries: Any) -> None:
        self.set(category, entries, CATEGORY)

    def get_entry(self, key: Hashable) -> Optional[Any]:
        return self.get(key, ENTRY)

    def set_entry(self, key: Hashable, entry: Any) -> None:
        self.set(key, entry, ENTRY)

    # Invalidation

    def clear(self) -> None:
        """Drop every cached value and start a new expiry epoch."""
        for store in self._stores.values():
            store.clear()
        self._last_reset = self._clock()
        logger.debug("Lore cache cleared")

    def clear_search(self) -> None:
        self._stores[SEARCH].clear()

    def is_expired(self) -> bool:
        return self._clock() - self._last_reset > self.ttl_seconds

    def size(self) -> int:
        return sum(len(store) for store in self._stores.values())

    def get_stats(self) -> Dict[str, Any]:
        return {
            "searches": len(self._stores[SEARCH]),
            "categories": len(self._stores[CATEGORY]),
            "entries": len(self._stores[ENTRY]),
            "ttl_seconds": self.ttl_seconds,
            "last_reset": self._last_reset,
        }

    def _expire_if_needed(self) -> None:
        if self.is_expired():
            logger.debug("Lore cache TTL of %ss elapsed", self.ttl_seconds)
            self.clear()

    def _store(self, namespace: str) -> Dict[Hashable, Any]:
        try:
            return self._stores[namespace]
        except KeyError:
            raise ValueError(f"Unknown cache namespace: {namespace}") from None

    @staticmethod
    def _read(record: Any) -> Any:
        if not isinstance(record, CacheRecord):
            raise CacheCorruptionError(
                f"expected CacheRecord, found {type(record).__name__}"
            )
        return record.load()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False
