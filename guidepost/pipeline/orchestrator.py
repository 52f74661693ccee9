"""Orchestrator: wires profiles, query builder, search client, filter chain, scorer and DB.

Data flow per profile:
  1. Load filter set (default when absent)
  2. Build queries
  3. Search client -> raw listings per query (per-query failures are logged and skipped)
  4. Normalize + batched known-URL lookup + filter chain, accumulated across queries
  5. Batch-score the survivors
  6. Insert each scored listing (insert failures are logged and counted)

Only a failure to load profiles (or missing credentials) aborts the run.
"""

import asyncio
import json
import logging
import math
import sqlite3

from pydantic import ValidationError

from guidepost.core.config import SearchFilter, Settings
from guidepost.core.db import (
    find_existing_urls,
    insert_listing,
    load_active_profiles,
    load_search_filter,
)
from guidepost.core.errors import ConfigurationError, InsertError, ProfileLoadError, SearchError
from guidepost.core.schemas import (
    NormalizedListing,
    PipelineRunSummary,
    ProfileRunSummary,
    ScoredListing,
    SearchResults,
)
from guidepost.llm.base import LLMProvider
from guidepost.pipeline.llm_scorer import score_listings
from guidepost.pipeline.matcher import KnownUrlFilter, build_filters, run_filter_chain
from guidepost.pipeline.query_builder import build_search_queries
from guidepost.pipeline.run_logger import RunLogger
from guidepost.platforms.base import SearchClient
from guidepost.platforms.serpapi.parser import normalize_listings
from guidepost.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)


class PipelineResult:
    """What a pipeline invocation hands back to its trigger."""

    def __init__(
        self,
        summary: PipelineRunSummary,
        run_log: RunLogger,
        scored: list[ScoredListing],
    ) -> None:
        self.summary = summary
        self.run_log = run_log
        self.scored = scored

    @property
    def new_listings_found(self) -> int:
        return self.summary.new_listings

    @property
    def profiles_searched(self) -> int:
        return len(self.summary.profiles)

    def ranked(self) -> list[ScoredListing]:
        """Newly inserted listings, best match first."""
        return sorted(self.scored, key=lambda s: s.match.score, reverse=True)


async def run_pipeline(
    conn: sqlite3.Connection,
    search_client: SearchClient,
    provider: LLMProvider,
    settings: Settings,
    *,
    profile_id: str | None = None,
    run_logger: RunLogger | None = None,
) -> PipelineResult:
    """Run the search pipeline for every active profile (or just ``profile_id``).

    Raises:
        ProfileLoadError: Profiles could not be loaded.
        ConfigurationError: Search or scoring credentials are missing.
    """
    run_log = run_logger or RunLogger()
    summary = PipelineRunSummary(started_at=run_log.started_at)
    scored: list[ScoredListing] = []

    if not provider.is_configured:
        msg = f"{provider.env_var} is not configured"
        run_log.error("setup", msg)
        raise ConfigurationError(msg)

    try:
        profiles = load_active_profiles(conn, profile_id)
    except ProfileLoadError as e:
        run_log.error("setup", str(e))
        raise

    if not profiles:
        run_log.info("setup", "No active profiles with parsed data found")
        summary.finish()
        return PipelineResult(summary, run_log, scored)

    run_log.info("setup", f"Found {len(profiles)} active profile(s) to search")

    for pid, profile in profiles:
        try:
            profile_summary, inserted = await search_profile(
                conn, pid, profile, search_client, provider, settings, run_log,
            )
        except ConfigurationError as e:
            run_log.error("setup", str(e))
            raise
        summary.profiles.append(profile_summary)
        scored.extend(inserted)

    summary.finish()
    run_log.info(
        "summary",
        f"Search complete: {summary.new_listings} new listings found "
        f"across {len(profiles)} profile(s)",
    )
    return PipelineResult(summary, run_log, scored)


async def search_profile(
    conn: sqlite3.Connection,
    profile_id: str,
    profile: CandidateProfile,
    search_client: SearchClient,
    provider: LLMProvider,
    settings: Settings,
    run_log: RunLogger,
) -> tuple[ProfileRunSummary, list[ScoredListing]]:
    """Search, filter, score and store listings for one profile."""
    short_id = profile_id[:8]
    filters = _load_filters(conn, profile_id, run_log)

    queries = build_search_queries(profile, filters)
    summary = ProfileRunSummary(profile_id=profile_id, queries=queries)
    run_log.info("queries", f"Profile {short_id}: {len(queries)} queries built")
    for i, query in enumerate(queries, start=1):
        run_log.info("queries", f"  Query {i}: \"{query}\"")

    # Accumulate survivors across all queries, then score once.
    known = KnownUrlFilter()
    chain = build_filters(filters, known)
    candidates: list[NormalizedListing] = []

    outcomes = await _search_all(
        search_client, queries, filters, parallel=settings.search.parallel_queries,
    )
    for query, outcome in zip(queries, outcomes):
        if isinstance(outcome, SearchError):
            summary.query_errors += 1
            run_log.error("search", f"Search error for query \"{query}\": {outcome}")
            continue

        summary.listings_returned += len(outcome.listings)
        run_log.info("search", f"Query \"{query}\": {len(outcome.listings)} results")
        if outcome.skipped_malformed:
            summary.skipped_malformed += outcome.skipped_malformed
            run_log.warn(
                "search",
                f"Query \"{query}\": skipped {outcome.skipped_malformed} malformed result(s)",
            )

        normalized = normalize_listings(outcome.listings, profile_id, search_client.source_id)
        _add_persisted_urls(conn, known, normalized, run_log)
        candidates.extend(run_filter_chain(normalized, chain, on_accept=known.remember))

    removed = {f.name: f.removed for f in chain}
    summary.skipped_excluded = removed["excluded"]
    summary.skipped_no_url = removed["no_url"]
    summary.skipped_duplicate = removed["duplicate"]
    summary.skipped_remote = removed["remote"]
    summary.candidates = len(candidates)
    _log_filtering(summary, run_log)

    if not candidates:
        return summary, []

    batch_count = math.ceil(len(candidates) / settings.scoring.batch_size)
    run_log.info(
        "scoring",
        f"Scoring {len(candidates)} candidates in {batch_count} batch(es)",
    )
    matches = await score_listings(
        candidates,
        profile,
        filters.target_seniority,
        provider,
        settings.scoring,
        run_log,
    )
    summary.scores = [m.score for m in matches]
    summary.scoring_fallbacks = sum(1 for m in matches if m.defaulted)
    dist = summary.distribution
    run_log.info(
        "scoring",
        f"Score distribution: avg={dist.average}, high(80+)={dist.high}, low(<40)={dist.low}",
    )
    if summary.scoring_fallbacks:
        run_log.warn(
            "scoring",
            f"{summary.scoring_fallbacks} listing(s) received the fallback score",
        )

    inserted: list[ScoredListing] = []
    for listing, match in zip(candidates, matches):
        scored = ScoredListing(listing=listing, match=match)
        try:
            insert_listing(conn, scored)
        except InsertError as e:
            summary.insert_errors += 1
            run_log.error("insert", str(e))
            continue
        summary.inserted += 1
        inserted.append(scored)

    run_log.info(
        "insert",
        f"Inserted {summary.inserted} new listings ({summary.insert_errors} errors)",
    )
    return summary, inserted


async def _search_all(
    search_client: SearchClient,
    queries: list[str],
    filters: SearchFilter,
    *,
    parallel: bool = False,
) -> list[SearchResults | SearchError]:
    """Fetch every query, returning one outcome per query in query order.

    SearchError is returned in place of results; anything else (notably
    ConfigurationError) propagates. In parallel mode all fetches complete
    before any dedup decision is made.
    """
    outcomes: list[SearchResults | SearchError] = []

    if not parallel:
        for query in queries:
            try:
                outcomes.append(await search_client.search(query, filters))
            except SearchError as e:
                outcomes.append(e)
        return outcomes

    gathered = await asyncio.gather(
        *(search_client.search(query, filters) for query in queries),
        return_exceptions=True,
    )
    for outcome in gathered:
        if isinstance(outcome, BaseException) and not isinstance(outcome, SearchError):
            raise outcome
        outcomes.append(outcome)
    return outcomes


def _load_filters(conn: sqlite3.Connection, profile_id: str, run_log: RunLogger) -> SearchFilter:
    try:
        filters = load_search_filter(conn, profile_id)
    except (sqlite3.Error, ValidationError) as e:
        run_log.warn("setup", f"Could not load filters for {profile_id[:8]}, using defaults: {e}")
        return SearchFilter()
    return filters if filters is not None else SearchFilter()


def _add_persisted_urls(
    conn: sqlite3.Connection,
    known: KnownUrlFilter,
    listings: list[NormalizedListing],
    run_log: RunLogger,
) -> None:
    """One batched existence check for a query's results."""
    urls = [listing.url for listing in listings if listing.url is not None]
    if not urls:
        return
    try:
        known.add_known(find_existing_urls(conn, urls))
    except sqlite3.Error as e:
        run_log.warn("filtering", f"Existing-URL lookup failed, using in-run dedup only: {e}")


def _log_filtering(summary: ProfileRunSummary, run_log: RunLogger) -> None:
    run_log.info("filtering", f"Search service returned {summary.listings_returned} total results")
    if summary.skipped_duplicate:
        run_log.info("filtering", f"Skipped {summary.skipped_duplicate} duplicate URLs")
    if summary.skipped_excluded:
        run_log.info("filtering", f"Skipped {summary.skipped_excluded} excluded companies")
    if summary.skipped_no_url:
        run_log.warn("filtering", f"Skipped {summary.skipped_no_url} listings with no URL")
    if summary.skipped_remote:
        run_log.info(
            "filtering",
            f"Skipped {summary.skipped_remote} non-remote listings (remote preference)",
        )
    run_log.info("filtering", f"{summary.candidates} new candidates to score")


def export_results_json(result: PipelineResult) -> str:
    """Export the run totals and ranked new listings as a JSON string."""
    data = {
        "new_listings_found": result.new_listings_found,
        "profiles_searched": result.profiles_searched,
        "totals": result.summary.totals(),
        "listings": [
            {
                "profile_id": s.listing.profile_id,
                "title": s.listing.title,
                "company": s.listing.company,
                "location": s.listing.location,
                "url": s.listing.url,
                "is_remote": s.listing.is_remote,
                "salary_info": s.listing.salary_info,
                "score": s.match.score,
                "reasoning": s.match.reasoning,
                "defaulted": s.match.defaulted,
            }
            for s in result.ranked()
        ],
    }
    return json.dumps(data, indent=2)
