"""
Shared infrastructure for the lore search modules: the result cache and the
error hierarchy.
"""

from .cache import LoreCache, CacheRecord
from .errors import (
    LoreSearchError,
    IndexBuildError,
    InvalidEntryError,
    CacheCorruptionError,
)

__all__ = [
    "LoreCache",
    "CacheRecord",
    "LoreSearchError",
    "IndexBuildError",
    "InvalidEntryError",
    "CacheCorruptionError",
]
