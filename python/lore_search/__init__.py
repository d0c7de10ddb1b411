"""
Lore Search Module

Provides in-memory full-text search, category listings and random picks over a
corpus of lore wiki entries.

Key Components:
- Entry / Category: read-only entry records and the fixed category set
- MetadataExtractor: Reads YAML frontmatter from lore markdown files
- build_index / InvertedIndex: Token indexes over titles, tags and metadata
- search_index / linear_scan_search: Ranking with and without the index
- CategoryPartitioner: Per-category listings computed once per corpus
- LoreManager: Owns index, cache and partitions for one corpus
"""

from .entry import Category, CATEGORIES, CATEGORY_INFO, Entry, get_category_name
from .metadata_extractor import MetadataExtractor
from .corpus_provider import (
    entries_from_records,
    load_entries_from_directory,
    load_entries_from_url,
)
from .indexer import InvertedIndex, build_index, tokenize
from .search_engine import SearchResult, search_index, linear_scan_search
from .partitioner import CategoryPartitioner
from .lore_manager import LoreManager

__all__ = [
    "Category",
    "CATEGORIES",
    "CATEGORY_INFO",
    "Entry",
    "get_category_name",
    "MetadataExtractor",
    "entries_from_records",
    "load_entries_from_directory",
    "load_entries_from_url",
    "InvertedIndex",
    "build_index",
    "tokenize",
    "SearchResult",
    "search_index",
    "linear_scan_search",
    "CategoryPartitioner",
    "LoreManager",
]
