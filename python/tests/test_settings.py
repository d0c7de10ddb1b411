import json
import os
import unittest
from unittest.mock import patch

import settings as settings_module
from settings import Settings

from .test_utils import TempDirTestCase

LORE_ENV_KEYS = (
    "LORE_CACHE_TTL_SECONDS",
    "LORE_SEARCH_LIMIT",
    "LORE_CONTENT_DIR",
    "LORE_CORPUS_URL",
    "LORE_LOG_LEVEL",
)


class TestSettings(TempDirTestCase):
    """Test cases for Settings."""

    def setUp(self):
        super().setUp()
        env = {key: value for key, value in os.environ.items() if key not in LORE_ENV_KEYS}
        self.env_patcher = patch.dict(os.environ, env, clear=True)
        self.env_patcher.start()

    def tearDown(self):
        self.env_patcher.stop()
        super().tearDown()

    def write_json(self, data, name="settings.json"):
        path = os.path.join(self.temp_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)
        return path

    def test_defaults_without_file(self):
        settings = Settings(env_file=None)

        self.assertEqual(settings.cache_ttl_seconds, 600)
        self.assertEqual(settings.search_limit, 20)
        self.assertFalse(settings.index_on_initialize)
        self.assertEqual(settings.content_dir, "lore-content")
        self.assertEqual(settings.corpus_url, "")
        self.assertEqual(settings.log_level, "INFO")

    def test_values_from_json_file(self):
        path = self.write_json(
            {
                "content_dir": "/srv/lore",
                "corpus_url": "https://lore.example.com/entries.json",
                "log_level": "debug",
                "search": {"limit": 10, "index_on_initialize": True},
                "cache": {"ttl_seconds": 120},
            }
        )

        settings = Settings(settings_file=path, env_file=None)

        self.assertEqual(settings.cache_ttl_seconds, 120)
        self.assertEqual(settings.search_limit, 10)
        self.assertTrue(settings.index_on_initialize)
        self.assertEqual(settings.content_dir, "/srv/lore")
        self.assertEqual(settings.corpus_url, "https://lore.example.com/entries.json")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_environment_overrides_file(self):
        path = self.write_json({"cache": {"ttl_seconds": 120}, "content_dir": "/srv/lore"})
        os.environ["LORE_CACHE_TTL_SECONDS"] = "30"
        os.environ["LORE_CONTENT_DIR"] = "/tmp/lore"

        settings = Settings(settings_file=path, env_file=None)

        self.assertEqual(settings.cache_ttl_seconds, 30)
        self.assertEqual(settings.content_dir, "/tmp/lore")

    def test_env_file_is_loaded(self):
        env_path = os.path.join(self.temp_dir, ".env")
        with open(env_path, "w", encoding="utf-8") as f:
            f.write("# lore settings\n")
            f.write('LORE_SEARCH_LIMIT="5"\n')
            f.write("LORE_CORPUS_URL=https://lore.example.com/a=b\n")
            f.write("not a pair\n")

        settings = Settings(env_file=env_path)

        self.assertEqual(settings.search_limit, 5)
        self.assertEqual(settings.corpus_url, "https://lore.example.com/a=b")

    def test_invalid_numbers_fall_back_to_defaults(self):
        path = self.write_json({"search": {"limit": "many"}, "cache": {"ttl_seconds": -1}})

        settings = Settings(settings_file=path, env_file=None)

        self.assertEqual(settings.search_limit, 20)
        self.assertEqual(settings.cache_ttl_seconds, 600)

    def test_invalid_json_uses_defaults(self):
        path = self.write_json("{not json")

        settings = Settings(settings_file=path, env_file=None)

        self.assertEqual(settings.search_limit, 20)

    def test_non_object_json_uses_defaults(self):
        path = self.write_json([1, 2, 3])

        settings = Settings(settings_file=path, env_file=None)

        self.assertEqual(settings.cache_ttl_seconds, 600)

    def test_missing_explicit_file_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            Settings(settings_file=os.path.join(self.temp_dir, "missing.json"), env_file=None)

        self.assertEqual(ctx.exception.code, 1)

    def test_as_bool(self):
        self.assertTrue(settings_module._as_bool("yes"))
        self.assertTrue(settings_module._as_bool(True))
        self.assertFalse(settings_module._as_bool("off"))
        self.assertFalse(settings_module._as_bool(0))


if __name__ == "__main__":
    unittest.main()
