import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from colored_logger import get_colored_logger
from lore_core.errors import IndexBuildError
from .entry import Entry

logger = get_colored_logger(__name__)

MIN_TOKEN_LENGTH = 2


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split text into lowercase whitespace-separated tokens.

    Tokens shorter than two characters are dropped. Order and duplicates are
    preserved.
    """
    if not text:
        return []
    return [word for word in text.lower().split() if len(word) >= MIN_TOKEN_LENGTH]


@dataclass
class InvertedIndex:
    """
    Token to entry-position mappings for titles, tags and metadata.

    Positions refer to the entry sequence the index was built from.
    """

    title_index: Dict[str, Set[int]] = field(default_factory=dict)
    tag_index: Dict[str, Set[int]] = field(default_factory=dict)
    metadata_index: Dict[str, Set[int]] = field(default_factory=dict)
    size: int = 0
    built_at: float = 0.0

    def token_counts(self) -> Dict[str, int]:
        return {
            "title": len(self.title_index),
            "tag": len(self.tag_index),
            "metadata": len(self.metadata_index),
        }

    def title_tokens_with_prefix(self, prefix: str) -> Iterable[str]:
        """Indexed title tokens that start with ``prefix`` (including itself)."""
        return (token for token in self.title_index if token.startswith(prefix))


def build_index(entries: Sequence[Entry]) -> InvertedIndex:
    """
    Build the title, tag and metadata inverted indexes for a corpus.

    Args:
        entries: The full entry sequence; positions in it become index values

    Returns:
        A new InvertedIndex

    Raises:
        IndexBuildError: If an entry does not have the expected shape
    """
    start_time = time.time()

    title_index: Dict[str, Set[int]] = defaultdict(set)
    tag_index: Dict[str, Set[int]] = defaultdict(set)
    metadata_index: Dict[str, Set[int]] = defaultdict(set)

    position = -1
    try:
        for position, entry in enumerate(entries):
            for token in tokenize(entry.title):
                title_index[token].add(position)

            for tag in entry.tags or ():
                for token in tokenize(tag):
                    tag_index[token].add(position)

            for value in entry.metadata_values():
                for token in tokenize(value):
                    metadata_index[token].add(position)
    except (AttributeError, TypeError) as e:
        raise IndexBuildError(
            f"Cannot index entry at position {position}: {e}"
        ) from e

    index = InvertedIndex(
        title_index=dict(title_index),
        tag_index=dict(tag_index),
        metadata_index=dict(metadata_index),
        size=position + 1,
        built_at=time.time(),
    )

    counts = index.token_counts()
    logger.info(
        "Indexed %d entries (%d title, %d tag, %d metadata tokens) in %.3fs",
        index.size,
        counts["title"],
        counts["tag"],
        counts["metadata"],
        index.built_at - start_time,
    )
    return index
