#!/usr/bin/env python3

import argparse
import json
import sys
from typing import List, Optional

from colored_logger import setup_colored_logging, get_colored_logger
from lore_core.cache import LoreCache
from settings import Settings
from lore_search import (
    CATEGORIES,
    CATEGORY_INFO,
    Category,
    LoreManager,
    get_category_name,
    load_entries_from_directory,
    load_entries_from_url,
)

logger = get_colored_logger(__name__)


class SearchCLI:
    """
    Command-line interface for searching a lore corpus.

    Provides commands for:
    - Ranked search over titles, tags and metadata
    - Listing a category or all categories
    - Showing a single entry or random entries
    - Viewing corpus, index and cache statistics
    """

    def __init__(self, manager: Optional[LoreManager] = None):
        """
        Initialize the search CLI.

        Args:
            manager: LoreManager to use. If None, one is built from the settings.
        """
        self.manager = manager

    def run(self, args: List[str] = None) -> int:
        """
        Run the search CLI with the given arguments.

        Args:
            args: Command line arguments. If None, uses sys.argv.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            parser = self._create_parser()
            parsed_args = parser.parse_args(args)

            if not hasattr(parsed_args, "func"):
                parser.print_help()
                return 1

            settings = Settings(settings_file=parsed_args.settings)
            setup_colored_logging(
                level="DEBUG" if parsed_args.verbose else settings.log_level
            )

            if self.manager is None:
                self.manager = LoreManager(
                    cache=LoreCache(ttl_seconds=settings.cache_ttl_seconds),
                    settings=settings,
                )
                entries = self._load_entries(parsed_args, settings)
                if not entries:
                    print("No entries loaded.")
                    return 1
                self.manager.initialize(entries)
                self.manager.ensure_indexed()

            return parsed_args.func(parsed_args)

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 1
        except Exception as e:
            logger.error("Unexpected error: %s", e)
            return 1

    def _load_entries(self, args, settings: Settings):
        url = args.url or (None if args.content_dir else settings.corpus_url)
        if url:
            return load_entries_from_url(url)
        return load_entries_from_directory(args.content_dir or settings.content_dir)

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser with all subcommands."""
        parser = argparse.ArgumentParser(
            prog="lore-search",
            description="Search lore wiki entries",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s search "iron watch"                  # Ranked search
  %(prog)s --content-dir ./lore search dragon  # Search a specific content directory
  %(prog)s category factions                    # List all factions
  %(prog)s entry locations ironclad-watch       # Show one entry
  %(prog)s random -n 3                          # Three random entries
  %(prog)s stats                                # Corpus and index statistics
            """,
        )

        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Enable verbose logging"
        )
        parser.add_argument("--settings", help="Path to a JSON settings file")

        source = parser.add_mutually_exclusive_group()
        source.add_argument(
            "--content-dir", help="Directory with one sub-directory per category"
        )
        source.add_argument("--url", help="URL of a JSON export of all entries")

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        search_parser = subparsers.add_parser("search", help="Search entries")
        search_parser.add_argument("query", help="Search text")
        search_parser.add_argument(
            "-l", "--limit", type=int, default=None, help="Maximum results to show"
        )
        self._add_format_argument(search_parser)
        search_parser.set_defaults(func=self._cmd_search)

        category_parser = subparsers.add_parser(
            "category", help="List the entries of a category"
        )
        category_parser.add_argument("name", help="Category name")
        self._add_format_argument(category_parser)
        category_parser.set_defaults(func=self._cmd_category)

        categories_parser = subparsers.add_parser(
            "categories", help="List categories with entry counts"
        )
        categories_parser.set_defaults(func=self._cmd_categories)

        entry_parser = subparsers.add_parser("entry", help="Show a single entry")
        entry_parser.add_argument("category", help="Category name")
        entry_parser.add_argument("slug", help="Entry slug")
        entry_parser.set_defaults(func=self._cmd_entry)

        random_parser = subparsers.add_parser("random", help="Show random entries")
        random_parser.add_argument(
            "-n", "--count", type=int, default=1, help="Number of entries (default: 1)"
        )
        self._add_format_argument(random_parser)
        random_parser.set_defaults(func=self._cmd_random)

        stats_parser = subparsers.add_parser(
            "stats", help="Show corpus, index and cache statistics"
        )
        stats_parser.set_defaults(func=self._cmd_stats)

        return parser

    @staticmethod
    def _add_format_argument(subparser) -> None:
        subparser.add_argument(
            "--format",
            choices=["table", "list", "json"],
            default="table",
            help="Output format (default: table)",
        )

    # Command implementations
    def _cmd_search(self, args) -> int:
        """Handle search command."""
        results = self.manager.search(args.query, limit=args.limit)

        if not results:
            print("No results found.")
            return 0

        self._display_entries(
            [result.entry for result in results],
            args.format,
            scores=[result.score for result in results],
        )
        return 0

    def _cmd_category(self, args) -> int:
        """Handle category command."""
        if Category.parse(args.name) is None:
            names = ", ".join(category.value for category in CATEGORIES)
            print(f"Unknown category: {args.name} (choose from {names})")
            return 1

        entries = self.manager.get_by_category(args.name)
        if not entries:
            print(f"No entries in {get_category_name(args.name)}.")
            return 0

        self._display_entries(entries, args.format)
        return 0

    def _cmd_categories(self, args) -> int:
        """Handle categories command."""
        counts = self.manager.get_stats()["category_counts"]

        print(f"{'Category':<12} {'Entries':<8} {'Description':<45}")
        print("-" * 67)
        for category in CATEGORIES:
            info = CATEGORY_INFO[category]
            print(f"{info.plural:<12} {counts.get(category.value, 0):<8} {info.description:<45}")
        return 0

    def _cmd_entry(self, args) -> int:
        """Handle entry command."""
        entry = self.manager.get_entry(args.category, args.slug)
        if entry is None:
            print(f"Entry not found: {args.category}/{args.slug}")
            return 1

        print(json.dumps(entry.to_dict(), indent=2, ensure_ascii=False, default=str))
        return 0

    def _cmd_random(self, args) -> int:
        """Handle random command."""
        entries = self.manager.get_random_n(args.count)
        if not entries:
            print("No entries available.")
            return 0

        self._display_entries(entries, args.format)
        return 0

    def _cmd_stats(self, args) -> int:
        """Handle stats command."""
        stats = self.manager.get_stats()
        counts = stats["index_token_counts"]

        print("\nLore Search Statistics:")
        print(f"  Total entries: {stats['total_entries']:,}")
        for name, count in stats["category_counts"].items():
            print(f"    {get_category_name(name)}: {count:,}")
        print(f"  Indexed: {'yes' if stats['indexed'] else 'no'}")
        if stats["index_failed"]:
            print("  ⚠️  Index build failed, using linear scan")
        print(
            f"  Index tokens: {counts['title']:,} title, {counts['tag']:,} tag, "
            f"{counts['metadata']:,} metadata"
        )
        print(
            f"  Cached: {stats['cache']['searches']} searches, "
            f"{stats['cache']['categories']} categories, {stats['cache']['entries']} entries"
        )
        print(f"  Memory: {stats['memory_rss_mb']:.1f} MB")
        return 0

    def _display_entries(self, entries, format_type: str, scores=None) -> None:
        """Display entries in the specified format."""
        if format_type == "json":
            output = []
            for i, entry in enumerate(entries):
                item = entry.to_dict()
                if scores is not None:
                    item["score"] = scores[i]
                output.append(item)
            print(json.dumps(output, indent=2, ensure_ascii=False, default=str))

        elif format_type == "list":
            for i, entry in enumerate(entries, 1):
                print(f"{i}. {entry.title}")
                details = [get_category_name(entry.category, "single")]
                details.extend(entry.metadata_values())
                print(f"   {' | '.join(details)}")
                if entry.tags:
                    print(f"   Tags: {', '.join(entry.tags)}")
                print(f"   Page: {entry.url}")
                print()

        else:  # table format
            print(f"\nFound {len(entries)} result(s):")
            print(f"{'#':<3} {'Title':<40} {'Category':<12} {'Score':<6}")
            print("-" * 63)

            for i, entry in enumerate(entries, 1):
                title = entry.title or ""
                title = title[:37] + "..." if len(title) > 40 else title
                score = scores[i - 1] if scores is not None else ""
                print(f"{i:<3} {title:<40} {entry.category.value:<12} {score:<6}")


def main():
    """Main entry point for the lore search CLI."""
    cli = SearchCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
