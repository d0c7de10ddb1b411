from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from colored_logger import get_colored_logger
from .entry import Entry
from .indexer import InvertedIndex, tokenize

logger = get_colored_logger(__name__)

DEFAULT_LIMIT = 20
MIN_QUERY_LENGTH = 2

# Indexed path: per query word
TITLE_TOKEN_SCORE = 50
TAG_TOKEN_SCORE = 30
METADATA_TOKEN_SCORE = 20
TITLE_PREFIX_SCORE = 25

# Indexed path: whole query against the title
EXACT_TITLE_BONUS = 100
TITLE_PREFIX_BONUS = 50
MULTI_WORD_BONUS = 10

# Linear scan
SCAN_EXACT_TITLE = 100
SCAN_TITLE_CONTAINS = 50
SCAN_TITLE_STARTS = 25
SCAN_TITLE_WORD = 15
SCAN_TAG_EXACT = 30
SCAN_TAG_CONTAINS = 15
SCAN_FACTION_CONTAINS = 20
SCAN_TYPE_CONTAINS = 15
SCAN_STATUS_CONTAINS = 15


@dataclass(frozen=True)
class SearchResult:
    """A ranked entry. The score only means something within one query."""

    entry: Entry
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"entry": self.entry.to_dict(), "score": self.score}


def normalize_query(query: str) -> str:
    """Trimmed, lowercased query text; empty for non-string input."""
    if not isinstance(query, str):
        return ""
    return query.strip().lower()


def search_index(
    query: str,
    index: InvertedIndex,
    entries: Sequence[Entry],
    limit: int = DEFAULT_LIMIT,
) -> List[SearchResult]:
    """
    Rank entries for a query using the inverted index.

    Args:
        query: Raw query text
        index: Index built from ``entries``
        entries: The corpus the index positions refer to
        limit: Maximum number of results

    Returns:
        Results ordered by descending score, ties in corpus order
    """
    normalized = normalize_query(query)
    if len(normalized) < MIN_QUERY_LENGTH:
        return []

    query_words = tokenize(normalized)
    if not query_words:
        return []

    scores: Dict[int, int] = defaultdict(int)

    for word in query_words:
        for position in index.title_index.get(word, ()):
            scores[position] += TITLE_TOKEN_SCORE

        for position in index.tag_index.get(word, ()):
            scores[position] += TAG_TOKEN_SCORE

        for position in index.metadata_index.get(word, ()):
            scores[position] += METADATA_TOKEN_SCORE

        for token in index.title_tokens_with_prefix(word):
            if token == word:
                continue
            for position in index.title_index[token]:
                scores[position] += TITLE_PREFIX_SCORE

    logger.trace("Query %r matched %d candidates", normalized, len(scores))

    ranked = []
    for position, running_score in scores.items():
        entry = entries[position]
        score = running_score + _title_bonus(normalized, query_words, entry)
        if score > 0:
            ranked.append((position, score, entry))

    return _finalize(ranked, limit)


def _title_bonus(normalized: str, query_words: List[str], entry: Entry) -> int:
    title = (entry.title or "").lower()
    bonus = 0

    if title == normalized:
        bonus += EXACT_TITLE_BONUS
    elif title.startswith(normalized):
        bonus += TITLE_PREFIX_BONUS

    if len(query_words) > 1:
        tags = [tag.lower() for tag in entry.tags or ()]
        for word in query_words:
            if word in title or any(word in tag for tag in tags):
                bonus += MULTI_WORD_BONUS

    return bonus


def linear_scan_search(
    query: str, entries: Sequence[Entry], limit: int = DEFAULT_LIMIT
) -> List[SearchResult]:
    """
    Rank entries by scanning every title, tag and metadata field.

    Used when no index is available. Scores follow a simpler scale than
    search_index but keep the same ordering guarantees: exact titles first,
    title matches above tag-only matches, ties in corpus order.
    """
    normalized = normalize_query(query)
    if len(normalized) < MIN_QUERY_LENGTH:
        return []

    query_words = tokenize(normalized)
    if not query_words:
        return []

    ranked = []
    for position, entry in enumerate(entries):
        try:
            score = _scan_score(normalized, query_words, entry)
        except (AttributeError, TypeError) as e:
            logger.debug("Skipping unreadable entry at position %d: %s", position, e)
            continue
        if score > 0:
            ranked.append((position, score, entry))

    return _finalize(ranked, limit)


def _scan_score(normalized: str, query_words: List[str], entry: Entry) -> int:
    score = 0
    title = (entry.title or "").lower()

    if title == normalized:
        score += SCAN_EXACT_TITLE
    elif normalized in title:
        score += SCAN_TITLE_CONTAINS
        if title.startswith(normalized):
            score += SCAN_TITLE_STARTS

    if len(query_words) > 1:
        score += SCAN_TITLE_WORD * sum(1 for word in query_words if word in title)

    for tag in entry.tags or ():
        tag_lower = tag.lower()
        if tag_lower == normalized:
            score += SCAN_TAG_EXACT
        elif normalized in tag_lower:
            score += SCAN_TAG_CONTAINS

    if entry.faction and normalized in entry.faction.lower():
        score += SCAN_FACTION_CONTAINS
    if entry.type and normalized in entry.type.lower():
        score += SCAN_TYPE_CONTAINS
    if entry.status and normalized in entry.status.lower():
        score += SCAN_STATUS_CONTAINS

    return score


def _finalize(ranked: List[tuple], limit: int) -> List[SearchResult]:
    # Explicit position key keeps ties in corpus order
    ranked.sort(key=lambda item: (-item[1], item[0]))
    if limit is None or limit < 0:
        limit = DEFAULT_LIMIT
    return [SearchResult(entry=entry, score=score) for _, score, entry in ranked[:limit]]
