"""CLI entry point for the lost & found matcher."""

import argparse
import asyncio
import json
import logging
import sys

from lostfound.core.config import Settings
from lostfound.core.db import all_items, init_db, insert_item, mark_resolved
from lostfound.core.schemas import ItemBatch, ItemStatus
from lostfound.pipeline.explain import explain_matches
from lostfound.pipeline.match_cache import MatchCache
from lostfound.pipeline.orchestrator import (
    build_query_item,
    export_matches_json,
    find_similar_items,
    get_user_matches,
)
from lostfound.pipeline.search import search_items
from lostfound.pipeline.sweeper import MatchSweeper


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Lost & found matcher - pair lost and found reports",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- import subcommand ---
    import_parser = subparsers.add_parser("import", help="Load item reports from a YAML/JSON file")
    import_parser.add_argument("--file", required=True, help="Path to items file")
    _add_common(import_parser)

    # --- match subcommand ---
    match_parser = subparsers.add_parser("match", help="Show ranked matches for a user")
    match_parser.add_argument("--user", required=True, help="User id whose reports to match")
    match_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore the match cache and recompute",
    )
    match_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export results to format (json)",
    )
    _add_common(match_parser)

    # --- similar subcommand ---
    similar_parser = subparsers.add_parser(
        "similar",
        help="Find items similar to a free-text description",
    )
    similar_parser.add_argument("--user", required=True, help="User id running the query")
    similar_parser.add_argument("--query", required=True, help="Description of the item")
    similar_parser.add_argument(
        "--status",
        choices=[s.value for s in ItemStatus],
        default=ItemStatus.LOST.value,
        help="Whether the described item was lost or found (default: lost)",
    )
    similar_parser.add_argument("--category", default="", help="Item category")
    similar_parser.add_argument("--location", default="", help="Where it was lost or found")
    _add_common(similar_parser)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Free-text search over all reports")
    search_parser.add_argument("--query", required=True, help="Search text")
    _add_common(search_parser)

    # --- resolve subcommand ---
    resolve_parser = subparsers.add_parser("resolve", help="Close a report so it stops matching")
    resolve_parser.add_argument("--item", required=True, help="Item id to close")
    _add_common(resolve_parser)

    # --- sweep subcommand ---
    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Recompute and cache matches for every user with open reports",
    )
    sweep_parser.add_argument(
        "--loop",
        action="store_true",
        help="Keep sweeping on the configured interval",
    )
    _add_common(sweep_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def cmd_import(args: argparse.Namespace, settings: Settings) -> None:
    """Handle import subcommand."""
    batch = ItemBatch.from_file(args.file)
    conn = init_db(settings.database.path)
    new_count = sum(1 for item in batch.items if insert_item(conn, item))
    conn.close()
    print(f"Imported {new_count} new items ({len(batch.items) - new_count} duplicates skipped).")


def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    """Handle match subcommand."""
    conn = init_db(settings.database.path)
    cache = None if args.no_cache else MatchCache(conn, settings.cache)
    matches = get_user_matches(conn, args.user, settings, cache)
    conn.close()

    if args.export == "json":
        print(export_matches_json(matches))
        return

    print(f"{len(matches)} matches for user '{args.user}':")
    for m in matches:
        print(f"  [{m.score:>3}] {m.item.status.value:<5} {m.item.title} @ {m.item.location}")


def cmd_similar(args: argparse.Namespace, settings: Settings) -> None:
    """Handle similar subcommand."""
    reference = build_query_item(
        args.query,
        ItemStatus(args.status),
        args.user,
        category=args.category,
        location=args.location,
    )
    conn = init_db(settings.database.path)
    matches = find_similar_items(conn, reference, settings)
    conn.close()
    print(json.dumps(explain_matches(reference, matches, settings.scoring), indent=2))


def cmd_search(args: argparse.Namespace, settings: Settings) -> None:
    """Handle search subcommand."""
    conn = init_db(settings.database.path)
    items = all_items(conn)
    conn.close()

    hits = search_items(args.query, items, limit=settings.matching.search_limit)
    print(f"{len(hits)} results for '{args.query}':")
    for h in hits:
        print(f"  [{h.score:>3}] {h.item.status.value:<5} {h.item.title} @ {h.item.location}")


def cmd_resolve(args: argparse.Namespace, settings: Settings) -> None:
    """Handle resolve subcommand."""
    conn = init_db(settings.database.path)
    found = mark_resolved(conn, args.item)
    conn.close()
    if not found:
        msg = f"no item with id '{args.item}'"
        raise ValueError(msg)
    print(f"Resolved {args.item}.")


def cmd_sweep(args: argparse.Namespace, settings: Settings) -> None:
    """Handle sweep subcommand."""
    sweeper = MatchSweeper(settings)
    if args.loop:
        try:
            asyncio.run(sweeper.run_forever())
        except KeyboardInterrupt:
            print("Sweeper stopped.")
        return
    result = sweeper.sweep_once()
    print(f"Sweep complete: {result.users} users, {result.matches} matches cached.")


_COMMANDS = {
    "import": cmd_import,
    "match": cmd_match,
    "similar": cmd_similar,
    "search": cmd_search,
    "resolve": cmd_resolve,
    "sweep": cmd_sweep,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        _COMMANDS[args.command](args, settings)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
