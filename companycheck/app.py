import argparse
import json
from typing import List, Optional

from . import __version__
from .cache import SearchCache
from .client import RecordSourceClient
from .config import ConfigurationError, Settings, load_env, load_settings
from .database import SqliteStorage
from .logger import get_logger
from .records import MatchRecord, has_cross_reference
from .search import CompanySearch, SearchTimeoutError
from .sources import SOURCES, Tier
from .storage import DurableStorage, JsonFileStorage

BADGES = {
    Tier.DELISTED: "[DELISTED]",
    Tier.TARGET_MARKET: "[TML]",
    Tier.GOOD_STANDING: "[GOOD]",
}


def build_storage(settings: Settings) -> Optional[DurableStorage]:
    if settings.cache_backend == "none":
        return None
    if settings.cache_backend == "json":
        return JsonFileStorage(settings.cache_path)
    return SqliteStorage(settings.cache_path)


def build_cache(settings: Settings) -> SearchCache:
    return SearchCache(
        storage=build_storage(settings),
        default_ttl=settings.cache_ttl,
        storage_ttl=settings.storage_ttl,
    )


def build_search(settings: Settings) -> CompanySearch:
    return CompanySearch(
        RecordSourceClient.from_settings(settings),
        build_cache(settings),
        row_limit=settings.row_limit,
        max_results=settings.max_results,
        request_timeout=settings.request_timeout,
        search_timeout=settings.search_timeout,
    )


def format_record(record: MatchRecord) -> List[str]:
    lines = [
        f"{BADGES[record.tier]} {record.display_name}",
        f"    {record.label} ({record.source_id}, score {record.match_score:.0f})",
    ]
    for name, value in record.detail_fields().items():
        lines.append(f"    {name.replace('_', ' ').title()}: {value}")
    return lines


def cmd_search(args: argparse.Namespace, settings: Settings) -> None:
    engine = build_search(settings)
    try:
        results = engine.search_sync(args.query, force_refresh=args.refresh)
    except (ConfigurationError, SearchTimeoutError) as e:
        raise SystemExit(str(e))
    finally:
        engine.logger.log_metrics_summary()

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
        return

    if not results:
        print(f"Not listed: no match for '{args.query}' in any monitored list.")
        return

    print(f"{len(results)} {'match' if len(results) == 1 else 'matches'} found:")
    for r in results:
        for line in format_record(r):
            print(line)
    if has_cross_reference(results):
        print()
        print("Note: this name appears under more than one classification. "
              "Review every entry before deciding.")


def cmd_sources(args: argparse.Namespace, settings: Settings) -> None:
    for s in SOURCES:
        print(f"{s.priority:>2}  {BADGES[s.tier]:<10} {s.source_id:<22} {s.column:<14} {s.label}")


def cmd_cache_stats(args: argparse.Namespace, settings: Settings) -> None:
    stats = build_cache(settings).stats()
    print(f"Backend: {settings.cache_backend} ({settings.cache_path})")
    print(f"Durable entries: {stats['storage_entries']}")


def cmd_cache_clear(args: argparse.Namespace, settings: Settings) -> None:
    build_cache(settings).clear()
    print("Cache cleared")


def main(argv: Optional[List[str]] = None):
    load_env()
    parser = argparse.ArgumentParser(
        prog="companycheck",
        description="Check a company name against the delisted, TML and good-standing lists",
    )
    parser.add_argument("--version", action="store_true", help="Show version")
    subparsers = parser.add_subparsers(dest="command")

    srch = subparsers.add_parser("search", help="Search all lists for a company name")
    srch.add_argument("query", help="Company name (free text)")
    srch.add_argument("--refresh", action="store_true", help="Bypass the cache and query every list again")
    srch.add_argument("--json", action="store_true", help="Print results as JSON")
    srch.set_defaults(func=cmd_search)

    src = subparsers.add_parser("sources", help="List the monitored lists in priority order")
    src.set_defaults(func=cmd_sources)

    stats = subparsers.add_parser("cache-stats", help="Show durable cache statistics")
    stats.set_defaults(func=cmd_cache_stats)

    clr = subparsers.add_parser("cache-clear", help="Remove all cached search results")
    clr.set_defaults(func=cmd_cache_clear)

    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return
    if not getattr(args, "func", None):
        parser.print_help()
        return

    try:
        settings = load_settings()
    except ConfigurationError as e:
        raise SystemExit(str(e))
    get_logger(level=settings.log_level, log_dir=settings.log_dir)
    args.func(args, settings)


if __name__ == "__main__":
    main()
