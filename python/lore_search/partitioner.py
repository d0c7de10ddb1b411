from typing import Dict, List, Sequence, Union

from colored_logger import get_colored_logger
from .entry import CATEGORIES, Category, Entry

logger = get_colored_logger(__name__)


class CategoryPartitioner:
    """
    Groups a corpus by category once so listings need no rescans.

    Entry order within a category follows corpus order.
    """

    def __init__(self, entries: Sequence[Entry] = ()):
        self._partitions: Dict[Category, tuple] = {}
        self.partition(entries)

    def partition(self, entries: Sequence[Entry]) -> Dict[Category, List[Entry]]:
        """
        Rebuild the partitions from ``entries``.

        Returns:
            Mapping of every category to its entries (empty lists included)
        """
        groups: Dict[Category, List[Entry]] = {category: [] for category in CATEGORIES}
        skipped = 0

        for entry in entries:
            category = Category.parse(getattr(entry, "category", None))
            if category is None:
                skipped += 1
                continue
            groups[category].append(entry)

        if skipped:
            logger.warning("Skipped %d entries without a known category", skipped)

        self._partitions = {category: tuple(items) for category, items in groups.items()}
        return {category: list(items) for category, items in groups.items()}

    def get_by_category(self, category: Union[Category, str]) -> List[Entry]:
        """Entries of a category; an unknown category gives an empty list."""
        parsed = Category.parse(category)
        if parsed is None:
            return []
        return list(self._partitions.get(parsed, ()))

    def counts(self) -> Dict[str, int]:
        return {category.value: len(self._partitions.get(category, ())) for category in CATEGORIES}

    def __len__(self) -> int:
        return sum(len(items) for items in self._partitions.values())
