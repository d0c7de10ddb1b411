import json
import unittest
from unittest.mock import patch

import requests

from lore_search.corpus_provider import (
    entries_from_records,
    load_entries_from_directory,
    load_entries_from_url,
)
from lore_search.entry import Category

from .test_utils import SAMPLE_RECORDS, BaseTestCase, MockFactory, TempDirTestCase


class TestEntriesFromRecords(BaseTestCase):
    """Test cases for entries_from_records()."""

    def test_converts_valid_records(self):
        entries = entries_from_records(SAMPLE_RECORDS)

        self.assertEqual([e.slug for e in entries], [r["slug"] for r in SAMPLE_RECORDS])

    def test_skips_invalid_and_duplicate_records(self):
        records = [
            {"title": "Dragon", "slug": "dragon", "category": "creatures"},
            {"title": "No Slug", "category": "creatures"},
            {"title": "Fireball", "slug": "fireball", "category": "spells"},
            "not a record",
            {"title": "Dragon Again", "slug": "dragon", "category": "creatures"},
            {"title": "Dragon", "slug": "dragon", "category": "concepts"},
        ]

        entries = entries_from_records(records)

        self.assertEqual(
            [(e.category, e.title) for e in entries],
            [(Category.CREATURES, "Dragon"), (Category.CONCEPTS, "Dragon")],
        )


class TestLoadEntriesFromDirectory(TempDirTestCase):
    """Test cases for load_entries_from_directory()."""

    def test_loads_categories_in_fixed_order_and_files_by_name(self):
        self.write_lore_file("creatures", "dragon.md", "---\ntitle: Dragon\n---\n")
        self.write_lore_file("characters", "zed.md", "---\ntitle: Zed\n---\n")
        self.write_lore_file("characters", "ember-knight.md", "---\ntitle: Ember Knight\n---\n")
        self.write_lore_file("characters", "notes.txt", "ignored")

        entries = load_entries_from_directory(self.temp_dir)

        self.assertEqual([e.title for e in entries], ["Ember Knight", "Zed", "Dragon"])
        self.assertEqual(entries[0].url, "/characters/ember-knight")

    def test_unknown_category_directories_are_ignored(self):
        self.write_lore_file("spells", "fireball.md", "---\ntitle: Fireball\n---\n")

        self.assertEqual(load_entries_from_directory(self.temp_dir), [])

    def test_missing_directory_returns_empty(self):
        self.assertEqual(load_entries_from_directory(self.temp_dir + "/missing"), [])


class TestLoadEntriesFromUrl(BaseTestCase):
    """Test cases for load_entries_from_url()."""

    url = "https://lore.example.com/entries.json"

    @patch("lore_search.corpus_provider.requests.get")
    def test_loads_entry_list(self, mock_get):
        mock_get.return_value = MockFactory.create_http_response(json_data=SAMPLE_RECORDS)

        entries = load_entries_from_url(self.url)

        self.assertEqual(len(entries), len(SAMPLE_RECORDS))
        mock_get.assert_called_once()
        self.assertEqual(mock_get.call_args[0][0], self.url)
        self.assertEqual(mock_get.call_args[1]["timeout"], 30)

    @patch("lore_search.corpus_provider.requests.get")
    def test_accepts_wrapped_entry_list(self, mock_get):
        mock_get.return_value = MockFactory.create_http_response(
            json_data={"entries": SAMPLE_RECORDS[:2]}
        )

        self.assertEqual(len(load_entries_from_url(self.url)), 2)

    @patch("lore_search.corpus_provider.time.sleep")
    @patch("lore_search.corpus_provider.requests.get")
    def test_retries_timeouts_with_backoff(self, mock_get, mock_sleep):
        mock_get.side_effect = [
            requests.exceptions.Timeout(),
            requests.exceptions.Timeout(),
            MockFactory.create_http_response(json_data=SAMPLE_RECORDS),
        ]

        entries = load_entries_from_url(self.url)

        self.assertEqual(len(entries), len(SAMPLE_RECORDS))
        self.assertEqual(mock_get.call_count, 3)
        self.assertEqual([c[0][0] for c in mock_sleep.call_args_list], [1, 2])

    @patch("lore_search.corpus_provider.time.sleep")
    @patch("lore_search.corpus_provider.requests.get")
    def test_gives_up_after_max_retries(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.exceptions.Timeout()

        self.assertEqual(load_entries_from_url(self.url, max_retries=3), [])
        self.assertEqual(mock_get.call_count, 3)
        self.assertEqual(mock_sleep.call_count, 2)

    @patch("lore_search.corpus_provider.requests.get")
    def test_http_error_returns_empty(self, mock_get):
        mock_get.return_value = MockFactory.create_http_response(
            raise_for_status=requests.exceptions.HTTPError("404"), status_code=404
        )

        self.assertEqual(load_entries_from_url(self.url), [])
        mock_get.assert_called_once()

    @patch("lore_search.corpus_provider.requests.get")
    def test_invalid_json_returns_empty(self, mock_get):
        response = MockFactory.create_http_response()
        response.json.side_effect = json.JSONDecodeError("Expecting value", "", 0)
        mock_get.return_value = response

        self.assertEqual(load_entries_from_url(self.url), [])

    @patch("lore_search.corpus_provider.requests.get")
    def test_unexpected_payload_returns_empty(self, mock_get):
        mock_get.return_value = MockFactory.create_http_response(json_data="entries")

        self.assertEqual(load_entries_from_url(self.url), [])

    def test_invalid_url_returns_empty(self):
        self.assertEqual(load_entries_from_url(""), [])
        self.assertEqual(load_entries_from_url(None), [])


if __name__ == "__main__":
    unittest.main()
