import json
import logging
import os
import sys
from typing import Any, Optional

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_CACHE_TTL_SECONDS = 600
DEFAULT_SEARCH_LIMIT = 20
DEFAULT_CONTENT_DIR = "lore-content"


def _load_env_file(env_path: str) -> None:
    """
    Simple .env file parser that doesn't require external dependencies.
    Loads key=value pairs from .env file into os.environ.
    """
    if not env_path or not os.path.isfile(env_path):
        return

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()

                # Skip empty lines and comments
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)  # Split on first = only
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or (
                    value.startswith("'") and value.endswith("'")
                ):
                    value = value[1:-1]

                if key:
                    os.environ[key] = value

        logger.info(".env file loaded from '%s'", env_path)

    except (IOError, OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to load .env file: %s", e)


def _positive_int(value: Any, default: int, name: str) -> int:
    """Coerce a setting to a positive int, falling back to the default."""
    if isinstance(value, bool):
        value = None
    try:
        number = int(value)
    except (TypeError, ValueError):
        if value is not None:
            logger.warning("Invalid %s %r, using %d", name, value, default)
        return default
    if number <= 0:
        logger.warning("Invalid %s %r, using %d", name, value, default)
        return default
    return number


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class Settings:
    """
    Search settings from an optional JSON file, overridden by LORE_* environment
    variables (which a local .env file may provide).

    Recognized JSON layout::

        {
            "content_dir": "lore-content",
            "corpus_url": "",
            "log_level": "INFO",
            "search": {"limit": 20, "index_on_initialize": false},
            "cache": {"ttl_seconds": 600}
        }
    """

    def __init__(
        self, settings_file: Optional[str] = None, env_file: Optional[str] = ".env"
    ) -> None:
        """
        :param settings_file: Path to a JSON settings file. None means defaults only.
            An explicit path that does not exist ends the program.
        :param env_file: Path to a .env file loaded into os.environ first.
        """
        _load_env_file(env_file)

        self.raw = {}
        if settings_file is not None:
            if not os.path.isfile(settings_file):
                logger.critical(
                    "Settings file not found at '%s'. Exiting...", settings_file
                )
                sys.exit(1)
            self.raw = self._load_json(settings_file) or {}
            if not isinstance(self.raw, dict):
                logger.error("Settings file '%s' must hold a JSON object", settings_file)
                self.raw = {}

        search_settings = self.raw.get("search", {}) or {}
        cache_settings = self.raw.get("cache", {}) or {}

        self.cache_ttl_seconds: int = _positive_int(
            os.environ.get("LORE_CACHE_TTL_SECONDS", cache_settings.get("ttl_seconds")),
            DEFAULT_CACHE_TTL_SECONDS,
            "cache TTL",
        )
        self.search_limit: int = _positive_int(
            os.environ.get("LORE_SEARCH_LIMIT", search_settings.get("limit")),
            DEFAULT_SEARCH_LIMIT,
            "search limit",
        )
        self.index_on_initialize: bool = _as_bool(
            search_settings.get("index_on_initialize", False)
        )
        self.content_dir: str = os.environ.get(
            "LORE_CONTENT_DIR", self.raw.get("content_dir", DEFAULT_CONTENT_DIR)
        )
        self.corpus_url: str = os.environ.get(
            "LORE_CORPUS_URL", self.raw.get("corpus_url", "")
        )
        self.log_level: str = str(
            os.environ.get("LORE_LOG_LEVEL", self.raw.get("log_level", "INFO"))
        ).upper()

        if settings_file is not None:
            logger.info("Settings loaded from '%s'.", settings_file)

    def _load_json(self, path: str) -> Any:
        """
        Loads JSON from the given file path.

        :param path: The path to the JSON file.
        :return: The parsed JSON if valid, otherwise None.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError, OSError) as e:
            logger.error("Error loading JSON file '%s': %s", path, e)
            return None
