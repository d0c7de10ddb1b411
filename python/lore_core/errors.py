class LoreSearchError(Exception):
    """Base class for errors raised by the lore search modules."""

    pass


class IndexBuildError(LoreSearchError):
    """Raised when the inverted index cannot be built from the given entries."""

    pass


class InvalidEntryError(LoreSearchError):
    """Raised when a record cannot be turned into an Entry."""

    pass


class CacheCorruptionError(LoreSearchError):
    """Raised when a stored cache record cannot be read back."""

    pass
