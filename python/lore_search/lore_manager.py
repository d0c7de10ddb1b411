import random
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import psutil

from colored_logger import get_colored_logger
from lore_core.cache import LoreCache
from lore_core.errors import IndexBuildError
from settings import Settings
from .entry import Category, Entry
from .indexer import InvertedIndex, build_index
from .partitioner import CategoryPartitioner
from .search_engine import (
    DEFAULT_LIMIT,
    MIN_QUERY_LENGTH,
    SearchResult,
    linear_scan_search,
    normalize_query,
    search_index,
)

logger = get_colored_logger(__name__)


class LoreManager:
    """
    Search and listing front end over one lore corpus.

    Lifecycle:
    - initialize(entries) snapshots the corpus and partitions it by category
    - ensure_indexed() builds the inverted index; it may run right away or later
    - search() uses the index once it is ready and a linear scan until then

    Each manager owns its cache and index, so separate corpora (or tests) use
    separate managers. Not thread-safe.
    """

    def __init__(
        self,
        cache: Optional[LoreCache] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the lore manager.

        Args:
            cache: LoreCache instance. If None, creates one with the settings' TTL.
            settings: Settings instance. If None, uses defaults without reading files.
            rng: Random source for get_random/get_random_n.
        """
        self.settings = settings or Settings(env_file=None)
        self.cache = cache or LoreCache(ttl_seconds=self.settings.cache_ttl_seconds)
        self.rng = rng or random.Random()

        self._entries: Tuple[Entry, ...] = ()
        self._by_key: Dict[Tuple[Category, str], Entry] = {}
        self._partitioner = CategoryPartitioner()
        self._index: Optional[InvertedIndex] = None
        self._index_failed = False

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    @property
    def is_indexed(self) -> bool:
        return self._index is not None

    def initialize(self, entries: Sequence[Entry]) -> None:
        """
        Load a corpus, replacing any previous one.

        Partitions the entries and clears all caches. The index is dropped and
        only rebuilt by ensure_indexed(), unless the settings ask for indexing
        on initialize.
        """
        self._entries = tuple(entries or ())
        self._partitioner.partition(self._entries)
        self._by_key = {}
        for entry in self._entries:
            key = _entry_key(entry)
            if key is not None and key not in self._by_key:
                self._by_key[key] = entry

        self._index = None
        self._index_failed = False
        self.cache.clear()

        logger.info("Lore corpus initialized with %d entries", len(self._entries))

        if self.settings.index_on_initialize:
            self.ensure_indexed()

    def ensure_indexed(self) -> bool:
        """
        Build the inverted index if it is not built yet.

        Returns:
            True when the index is ready. False if building failed; search then
            keeps using the linear scan until the next initialize().
        """
        if self._index is not None:
            return True
        if self._index_failed:
            return False

        try:
            self._index = build_index(self._entries)
        except IndexBuildError as e:
            self._index_failed = True
            logger.warning("Index build failed, using linear scan search: %s", e)
            return False

        # Results cached from the linear scan are re-ranked through the index
        self.cache.clear_search()
        return True

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchResult]:
        """
        Ranked search over titles, tags and metadata.

        Args:
            query: Search text; fewer than two characters gives no results
            limit: Maximum results (default from settings)

        Returns:
            List of SearchResult, best first. Never raises.
        """
        try:
            normalized = normalize_query(query)
            if len(normalized) < MIN_QUERY_LENGTH:
                return []

            default_limit = self.settings.search_limit or DEFAULT_LIMIT
            if limit is None:
                limit = default_limit

            cache_key = normalized if limit == default_limit else (normalized, limit)
            return self.cache.get_or_compute_search(
                cache_key, lambda: self._rank(normalized, limit)
            )
        except Exception as e:
            logger.error("Search failed for %r: %s", query, e)
            return []

    def _rank(self, query: str, limit: int) -> List[SearchResult]:
        if self._index is not None:
            try:
                return search_index(query, self._index, self._entries, limit)
            except Exception as e:
                logger.warning("Indexed search failed, falling back to scan: %s", e)

        return linear_scan_search(query, self._entries, limit)

    def get_by_category(self, category: Union[Category, str]) -> List[Entry]:
        """Entries of a category in corpus order; unknown categories give []."""
        parsed = Category.parse(category)
        if parsed is None:
            logger.debug("Unknown category requested: %r", category)
            return []

        return self.cache.get_or_compute_category(
            parsed.value, lambda: self._partitioner.get_by_category(parsed)
        )

    def get_entry(self, category: Union[Category, str], slug: str) -> Optional[Entry]:
        """Look up a single entry by category and slug."""
        parsed = Category.parse(category)
        if parsed is None or not slug:
            return None

        return self.cache.get_or_compute_entry(
            (parsed.value, slug), lambda: self._by_key.get((parsed, slug))
        )

    def get_random(self) -> Optional[Entry]:
        if not self._entries:
            return None
        return self.rng.choice(self._entries)

    def get_random_n(self, count: int) -> List[Entry]:
        """
        Pick ``count`` distinct entries uniformly at random.

        ``count`` is clamped to the corpus size; zero or negative gives [].
        """
        count = max(0, min(int(count), len(self._entries)))
        if count == 0:
            return []

        shuffled = list(self._entries)
        self.rng.shuffle(shuffled)
        return shuffled[:count]

    def get_stats(self) -> Dict[str, Any]:
        """Corpus, index and cache statistics for diagnostics."""
        token_counts = (
            self._index.token_counts()
            if self._index is not None
            else {"title": 0, "tag": 0, "metadata": 0}
        )
        return {
            "total_entries": len(self._entries),
            "category_counts": self._partitioner.counts(),
            "indexed": self._index is not None,
            "index_failed": self._index_failed,
            "index_token_counts": token_counts,
            "cache": self.cache.get_stats(),
            "memory_rss_mb": psutil.Process().memory_info().rss / (1024**2),
        }


def _entry_key(entry: Any) -> Optional[Tuple[Category, str]]:
    category = Category.parse(getattr(entry, "category", None))
    slug = getattr(entry, "slug", None)
    if category is None or not isinstance(slug, str):
        return None
    return (category, slug)
