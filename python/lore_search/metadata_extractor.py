import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from colored_logger import get_colored_logger
from lore_core.errors import InvalidEntryError
from .entry import DEFAULT_TITLE, Category, Entry

logger = get_colored_logger(__name__)


class MetadataExtractor:
    """
    Reads lore markdown files and turns their YAML frontmatter into entries.

    A lore file looks like::

        ---
        title: Ironclad Watch
        type: Fortress
        tags: [fortress, north]
        ---
        Body text...

    The slug is the file name without extension; the category comes from the
    directory the file was found in.
    """

    def __init__(self):
        self.patterns = {
            "frontmatter": re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)$", re.DOTALL),
        }

    def parse_frontmatter(self, content: str) -> Tuple[Dict[str, Any], str]:
        """
        Split markdown content into frontmatter and body.

        Args:
            content: Raw markdown file content

        Returns:
            (frontmatter dict, body). Without valid frontmatter the dict only
            holds the default title and the body is the whole content.
        """
        match = self.patterns["frontmatter"].match(content)
        if not match:
            return {"title": DEFAULT_TITLE}, content

        try:
            frontmatter = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            logger.error("Error parsing frontmatter: %s", e)
            return {"title": DEFAULT_TITLE}, content

        if not isinstance(frontmatter, dict):
            logger.warning("Frontmatter is not a mapping, ignoring it")
            return {"title": DEFAULT_TITLE}, content

        # YAML keys may come back as non-strings (e.g. `1: value`)
        frontmatter = {str(key): value for key, value in frontmatter.items()}
        frontmatter["title"] = frontmatter.get("title") or DEFAULT_TITLE
        return frontmatter, match.group(2)

    def extract_from_file(
        self, file_path: Union[str, Path], category: Union[Category, str]
    ) -> Optional[Entry]:
        """
        Build an entry from a lore markdown file.

        Args:
            file_path: Path to the .md file
            category: Category of the directory holding the file

        Returns:
            The entry, or None if the file is missing, unreadable or invalid
        """
        if not os.path.exists(file_path):
            logger.warning("File does not exist: %s", file_path)
            return None

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except (IOError, OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read %s: %s", file_path, e)
            return None

        frontmatter, _ = self.parse_frontmatter(content)
        frontmatter["slug"] = Path(file_path).stem

        try:
            entry = Entry.from_dict(frontmatter, category=category)
        except InvalidEntryError as e:
            logger.warning("Skipping %s: %s", file_path, e)
            return None

        logger.trace("Extracted entry %s from %s", entry.url, file_path)
        return entry
