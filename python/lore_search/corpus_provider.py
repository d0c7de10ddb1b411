import json
import os
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import requests

from colored_logger import get_colored_logger
from lore_core.errors import InvalidEntryError
from .entry import CATEGORIES, Entry
from .metadata_extractor import MetadataExtractor

logger = get_colored_logger(__name__)

USER_AGENT = "LoreSearch/1.0"


def entries_from_records(records: Iterable[Any]) -> List[Entry]:
    """
    Convert entry records (dicts) to entries, skipping invalid ones.

    Duplicate (category, slug) pairs keep their first occurrence.
    """
    entries: List[Entry] = []
    seen = set()

    for position, record in enumerate(records):
        try:
            entry = Entry.from_dict(record)
        except InvalidEntryError as e:
            logger.warning("Skipping record %d: %s", position, e)
            continue

        if entry.key in seen:
            logger.warning("Skipping duplicate entry %s", entry.url)
            continue

        seen.add(entry.key)
        entries.append(entry)

    return entries


def load_entries_from_directory(
    content_dir: Union[str, Path], extractor: Optional[MetadataExtractor] = None
) -> List[Entry]:
    """
    Load every lore entry from ``<content_dir>/<category>/*.md``.

    Categories are read in their fixed order and files sorted by name, so the
    resulting corpus order is stable between runs.

    Args:
        content_dir: Root directory holding one sub-directory per category
        extractor: MetadataExtractor instance. If None, creates default instance.

    Returns:
        List of entries; empty if the directory does not exist
    """
    extractor = extractor or MetadataExtractor()
    content_dir = Path(content_dir)

    if not content_dir.is_dir():
        logger.error("Content directory does not exist: %s", content_dir)
        return []

    entries: List[Entry] = []
    for category in CATEGORIES:
        category_dir = content_dir / category.value
        if not category_dir.is_dir():
            logger.debug("No directory for category %s", category.value)
            continue

        file_names = sorted(
            name for name in os.listdir(category_dir) if name.endswith(".md")
        )
        for name in file_names:
            entry = extractor.extract_from_file(category_dir / name, category)
            if entry is not None:
                entries.append(entry)

    logger.success("Loaded %d entries from %s", len(entries), content_dir)
    return entries


def load_entries_from_url(
    url: str, timeout: int = 30, max_retries: int = 3
) -> List[Entry]:
    """
    Fetch a JSON array of entry records from a URL.

    Timeouts are retried with exponential backoff; other request failures and
    malformed payloads give an empty list.

    Args:
        url: Address of the exported entry list
        timeout: Per-request timeout in seconds
        max_retries: Number of attempts for timeouts

    Returns:
        List of entries (possibly empty)
    """
    if not url or not isinstance(url, str):
        logger.error("Invalid corpus URL provided: %s", url)
        return []

    headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}

    for attempt in range(max_retries):
        try:
            res = requests.get(url, headers=headers, timeout=timeout)
            res.raise_for_status()
            payload = res.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error("JSON decode error for %s: %s", url, e)
            return []
        except requests.exceptions.Timeout:
            logger.warning(
                "Timeout on attempt %d/%d for %s", attempt + 1, max_retries, url
            )
            if attempt < max_retries - 1:
                time.sleep(2**attempt)
            continue
        except requests.exceptions.RequestException as e:
            logger.error("Request failed for %s. Reason: %s", url, e)
            return []

        if isinstance(payload, dict):
            payload = payload.get("entries", [])
        if not isinstance(payload, list):
            logger.error("Expected a list of entries from %s", url)
            return []

        entries = entries_from_records(payload)
        logger.success("Loaded %d entries from %s", len(entries), url)
        return entries

    logger.error("Failed to load entries from %s after %d attempts", url, max_retries)
    return []
