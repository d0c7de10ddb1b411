from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from lore_core.errors import InvalidEntryError

DEFAULT_TITLE = "Untitled"
METADATA_FIELDS = ("faction", "type", "status")


class Category(str, Enum):
    """Fixed set of lore categories, in listing order."""

    CHARACTERS = "characters"
    LOCATIONS = "locations"
    FACTIONS = "factions"
    ARTIFACTS = "artifacts"
    CONCEPTS = "concepts"
    CREATURES = "creatures"

    @classmethod
    def parse(cls, value: Union["Category", str, None]) -> Optional["Category"]:
        """
        Resolve a category from an enum member or a name.

        Names are matched case-insensitively after trimming. Returns None for
        anything that is not one of the fixed categories.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


CATEGORIES: Tuple[Category, ...] = tuple(Category)


@dataclass(frozen=True)
class CategoryInfo:
    """Display information for a category."""

    single: str
    plural: str
    description: str


CATEGORY_INFO: Dict[Category, CategoryInfo] = {
    Category.CHARACTERS: CategoryInfo(
        "Character", "Characters", "Influential figures of the world"
    ),
    Category.LOCATIONS: CategoryInfo(
        "Location", "Locations", "Cities, fortresses and mysterious places"
    ),
    Category.FACTIONS: CategoryInfo(
        "Faction", "Factions", "States, organizations and alliances"
    ),
    Category.ARTIFACTS: CategoryInfo(
        "Artifact", "Artifacts", "Magical items and relics"
    ),
    Category.CONCEPTS: CategoryInfo(
        "Concept", "Concepts", "Philosophies and principles of the world"
    ),
    Category.CREATURES: CategoryInfo(
        "Creature", "Creatures", "Monsters, demons and fantastic beings"
    ),
}


def get_category_name(category: Union[Category, str], form: str = "plural") -> str:
    """Display name of a category; unknown categories are returned as given."""
    parsed = Category.parse(category)
    if parsed is None:
        return str(category)
    info = CATEGORY_INFO[parsed]
    return info.single if form == "single" else info.plural


@dataclass(frozen=True)
class Entry:
    """
    A single lore entry as supplied by the corpus provider.

    Only title, tags and the faction/type/status metadata are searchable.
    Everything else from the source record is kept in ``extra``.
    """

    title: Optional[str]
    slug: str
    category: Category
    tags: Tuple[str, ...] = ()
    faction: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> Tuple[Category, str]:
        """Identity of the entry within a store."""
        return (self.category, self.slug)

    @property
    def url(self) -> str:
        return f"/{self.category.value}/{self.slug}"

    def metadata_values(self) -> Iterable[str]:
        """Non-empty faction/type/status values, in that order."""
        for name in METADATA_FIELDS:
            value = getattr(self, name)
            if value:
                yield value

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], category: Union[Category, str, None] = None
    ) -> "Entry":
        """
        Build an entry from a loosely typed record (frontmatter or JSON).

        Args:
            data: Record with at least a slug and a category
            category: Overrides the record's own category when given

        Raises:
            InvalidEntryError: If the record has no slug or an unknown category
        """
        if not isinstance(data, dict):
            raise InvalidEntryError(f"Entry record must be a mapping, got {type(data).__name__}")

        raw_category = category if category is not None else data.get("category")
        parsed_category = Category.parse(raw_category)
        if parsed_category is None:
            raise InvalidEntryError(f"Unknown category: {raw_category!r}")

        slug = data.get("slug")
        if not slug or not isinstance(slug, str):
            raise InvalidEntryError("Entry record has no slug")

        title = data.get("title")
        title = str(title) if title else DEFAULT_TITLE

        extra = {
            key: value
            for key, value in data.items()
            if key not in ("title", "slug", "category", "tags") + METADATA_FIELDS
        }

        return cls(
            title=title,
            slug=slug,
            category=parsed_category,
            tags=_normalize_tags(data.get("tags")),
            faction=_optional_text(data.get("faction")),
            type=_optional_text(data.get("type")),
            status=_optional_text(data.get("status")),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "title": self.title,
                "slug": self.slug,
                "category": self.category.value,
                "tags": list(self.tags),
            }
        )
        for name in METADATA_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


def _normalize_tags(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(tag) for tag in value if tag is not None and str(tag).strip())
    return (str(value),)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
