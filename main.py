"""CLI entry point for the Guidepost search pipeline."""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from guidepost.core.config import SearchFilter, Settings
from guidepost.core.db import (
    init_db,
    list_profiles,
    load_active_profiles,
    load_search_filter,
    record_pipeline_run,
    save_profile,
    save_search_filter,
)
from guidepost.core.errors import ConfigurationError, ProfileLoadError
from guidepost.core.log_storage import LocalLogStorage
from guidepost.llm import available_providers, get_provider
from guidepost.pipeline.orchestrator import PipelineResult, export_results_json, run_pipeline
from guidepost.pipeline.query_builder import build_search_params, build_search_queries
from guidepost.pipeline.run_logger import prune_old_reports
from guidepost.platforms.serpapi.client import SerpApiClient
from guidepost.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Guidepost - search job listings for stored profiles and score them",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- search subcommand (default) ---
    search_parser = subparsers.add_parser("search", help="Run the search pipeline")
    _add_common(search_parser)
    search_parser.add_argument(
        "--profile-id",
        help="Only search this profile (default: all active profiles)",
    )
    search_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the queries that would run without calling any service",
    )
    search_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export results to format (json)",
    )

    # --- add-profile subcommand ---
    add_parser = subparsers.add_parser("add-profile", help="Store a profile (and filters) from YAML")
    _add_common(add_parser)
    add_parser.add_argument("--profile", required=True, help="Path to profile YAML")
    add_parser.add_argument("--filters", help="Path to search filter YAML (default: permissive)")
    add_parser.add_argument("--label", default="", help="Human-readable label")
    add_parser.add_argument(
        "--inactive",
        action="store_true",
        help="Store the profile without including it in searches",
    )

    # --- list-profiles subcommand ---
    list_parser = subparsers.add_parser("list-profiles", help="List stored profiles")
    _add_common(list_parser)

    # --- prune-logs subcommand ---
    prune_parser = subparsers.add_parser("prune-logs", help="Delete run reports past retention")
    _add_common(prune_parser)

    # --- backward compat: bare invocation runs search ---
    parser.add_argument("--config", default="config/settings.yaml", help=argparse.SUPPRESS)
    parser.add_argument("--profile-id", help=argparse.SUPPRESS)
    parser.add_argument("--dry-run", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--export", choices=["json"], help=argparse.SUPPRESS)
    parser.add_argument("--verbose", "-v", action="store_true", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    # Default to search when no subcommand given
    if args.command is None:
        args.command = "search"

    return args


def _add_common(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    subparser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request URL at INFO, including the API key param
    logging.getLogger("httpx").setLevel(logging.WARNING)


def dry_run(settings: Settings, profile_id: str | None) -> None:
    """Print the queries and search parameters without calling any service."""
    conn = init_db(settings.database.path)
    profiles = load_active_profiles(conn, profile_id)

    print(f"[DRY RUN] {len(profiles)} active profile(s)")
    for pid, profile in profiles:
        filters = load_search_filter(conn, pid) or SearchFilter()
        queries = build_search_queries(profile, filters)
        print(f"[DRY RUN] Profile {pid[:8]}: {len(queries)} queries")
        for query in queries:
            params = build_search_params(query, filters, engine=settings.search.engine)
            print(f"  {params}")
        print(f"  Remote preference: {filters.remote_preference}")
        print(f"  Excluded companies: {filters.excluded_companies}")

    print(f"[DRY RUN] Would score with '{settings.scoring.provider}' "
          f"in batches of {settings.scoring.batch_size}")
    conn.close()


async def run(settings: Settings, profile_id: str | None) -> PipelineResult:
    """Run the full pipeline against the live services."""
    scoring = settings.scoring
    provider = get_provider(
        scoring.provider,
        timeout_seconds=max(scoring.single_timeout_seconds, scoring.batch_timeout_seconds),
    )

    conn = init_db(settings.database.path)
    try:
        async with SerpApiClient(
            base_url=settings.search.base_url,
            engine=settings.search.engine,
            max_pages=settings.search.max_pages,
            timeout_seconds=settings.search.timeout_seconds,
            api_key_env=settings.search.api_key_env,
        ) as client:
            result = await run_pipeline(
                conn, client, provider, settings, profile_id=profile_id,
            )
        record_pipeline_run(conn, result.summary)
    finally:
        conn.close()
    return result


def persist_run_log(result: PipelineResult, settings: Settings) -> None:
    """Write the run report; a storage failure does not fail the run."""
    storage = LocalLogStorage(settings.logs.directory)
    try:
        name = result.run_log.persist(storage)
    except OSError:
        logger.warning("Failed to persist run report", exc_info=True)
        return
    if name:
        print(f"Run report written to {storage.directory / name}")


def cmd_search(args: argparse.Namespace, settings: Settings) -> None:
    """Handle search subcommand."""
    if args.dry_run:
        dry_run(settings, args.profile_id)
        return

    result = asyncio.run(run(settings, args.profile_id))
    persist_run_log(result, settings)

    totals = result.summary.totals()
    print(f"\nSearch complete: {result.new_listings_found} new listings across "
          f"{result.profiles_searched} profile(s).")
    print(f"  {totals['queries_built']} queries, {totals['listings_returned']} results, "
          f"{totals['candidates_after_filtering']} candidates scored, "
          f"{totals['insert_errors']} insert errors")

    for p in result.summary.profiles:
        print(f"  {p.profile_id[:8]}: {p.listings_returned} results, {p.candidates} candidates, "
              f"{p.inserted} new")

    if args.export == "json":
        print(f"\n{export_results_json(result)}")


def cmd_add_profile(args: argparse.Namespace, settings: Settings) -> None:
    """Handle add-profile subcommand."""
    profile = CandidateProfile.from_yaml(args.profile)
    filters = SearchFilter.from_yaml(args.filters) if args.filters else None

    conn = init_db(settings.database.path)
    try:
        pid = save_profile(conn, profile, label=args.label, is_active=not args.inactive)
        if filters is not None:
            save_search_filter(conn, pid, filters)
    finally:
        conn.close()

    print(f"Profile stored with id {pid}")
    print(f"  Titles: {profile.job_titles}")
    print(f"  Skills: {profile.skills}")
    if filters is None:
        print("  No filters given: the default filter set will be used")


def cmd_list_profiles(settings: Settings) -> None:
    """Handle list-profiles subcommand."""
    conn = init_db(settings.database.path)
    try:
        rows = list_profiles(conn)
    finally:
        conn.close()

    if not rows:
        print("No profiles stored. Add one with: python main.py add-profile --profile <yaml>")
        return
    for row in rows:
        status = "active" if row["is_active"] else "inactive"
        print(f"{row['id']}  {status:8}  {row['label'] or '-'}  (added {row['created_at']})")


def cmd_prune_logs(settings: Settings) -> None:
    """Handle prune-logs subcommand."""
    storage = LocalLogStorage(settings.logs.directory)
    deleted = prune_old_reports(storage, settings.logs.retention_days)
    print(f"Pruned {len(deleted)} report(s) older than {settings.logs.retention_days} days")


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if settings.scoring.provider not in available_providers():
        print(f"Error: unknown scoring provider '{settings.scoring.provider}'", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "add-profile":
            cmd_add_profile(args, settings)
        elif args.command == "list-profiles":
            cmd_list_profiles(settings)
        elif args.command == "prune-logs":
            cmd_prune_logs(settings)
        else:
            cmd_search(args, settings)
    except (ConfigurationError, ProfileLoadError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
