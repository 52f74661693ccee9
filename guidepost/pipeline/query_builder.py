"""Search query builder and SerpAPI parameter helpers.

Pure functions, no network. Queries stay focused (one title or skill each,
plus a seniority qualifier): Google Jobs ranks those better than
keyword-stuffed queries, and skill matching is left to the AI scorer.
"""

import logging

from guidepost.core.config import SearchFilter
from guidepost.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)

MAX_TITLE_QUERIES = 4
MAX_SKILL_QUERIES = 3
FALLBACK_QUERY = "software developer"

SENIORITY_QUALIFIERS: dict[str, str] = {
    "entry": "entry level OR junior",
    "mid": "mid level",
    "senior": "senior",
}

# Age buckets (days) supported by the Google Jobs ``chips`` parameter.
AGE_CHIPS: dict[int, str] = {
    1: "date_posted:today",
    3: "date_posted:3days",
    7: "date_posted:week",
    14: "date_posted:month",
    30: "date_posted:month",
}


def build_search_queries(profile: CandidateProfile, filters: SearchFilter) -> list[str]:
    """Build 1-4 query strings for a profile.

    Titles first (up to 4), else ``"<skill> jobs"`` for the top 3 skills,
    else the single fallback query. The seniority qualifier is appended to
    every query unless the target seniority is ``any``. ``filters.keywords``
    is deliberately not used here.
    """
    queries = list(profile.job_titles[:MAX_TITLE_QUERIES])

    if not queries:
        queries = [f"{skill} jobs" for skill in profile.skills[:MAX_SKILL_QUERIES]]
    if not queries:
        queries = [FALLBACK_QUERY]

    queries = [append_seniority(q, filters.target_seniority) for q in queries]

    logger.debug("Built %d queries: %s", len(queries), queries)
    return queries


def append_seniority(query: str, seniority: str) -> str:
    """Append the fixed qualifier for ``seniority`` (no-op for ``any``)."""
    qualifier = SENIORITY_QUALIFIERS.get(seniority)
    if not qualifier:
        return query
    return f"{query} {qualifier}"


def age_chip(max_listing_age_days: int) -> str:
    """Pick the chip for the smallest bucket >= the requested age.

    Falls back to the largest bucket when the request exceeds all of them.
    """
    buckets = sorted(AGE_CHIPS)
    bucket = next((b for b in buckets if b >= max_listing_age_days), buckets[-1])
    return AGE_CHIPS[bucket]


def build_search_params(
    query: str,
    filters: SearchFilter,
    engine: str = "google_jobs",
) -> dict[str, str]:
    """Build the search-service parameters for one query (without API key or page token)."""
    params: dict[str, str] = {
        "engine": engine,
        "q": query,
    }

    if filters.location:
        params["location"] = filters.location

    params["chips"] = age_chip(filters.max_listing_age_days)
    return params
