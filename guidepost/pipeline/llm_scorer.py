"""AI match scoring for normalized listings.

Two entry points: ``score_listing`` (one listing, one call) and
``score_listings`` (chunks of ``batch_size`` per call, run sequentially with a
fixed delay between chunks). Every failure (provider error, deadline expiry,
malformed JSON, batch length mismatch) resolves to the fallback score; a
listing is never dropped because scoring failed. Missing credentials are
not a scoring failure: ConfigurationError aborts the run.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import TYPE_CHECKING, Any

from guidepost.core.config import ScoringConfig
from guidepost.core.errors import (
    ConfigurationError,
    ScoringApiError,
    ScoringError,
    ScoringParseError,
    ScoringShapeMismatch,
    ScoringTimeout,
)
from guidepost.core.schemas import MatchResult, NormalizedListing
from guidepost.llm.base import LLMProvider, load_json_response
from guidepost.profile.schema import CandidateProfile

if TYPE_CHECKING:
    from guidepost.pipeline.run_logger import RunLogger

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description available"

SENIORITY_LABELS: dict[str, str] = {
    "entry": "Entry Level / Junior",
    "mid": "Mid Level",
    "senior": "Senior",
    "any": "Any level",
}

_RUBRIC = (
    "Score from 0 to 100 based on:\n"
    "  - Skills overlap (40% weight)\n"
    "  - Role/title alignment (20% weight)\n"
    "  - Seniority/experience level match (30% weight)\n"
    "  - Industry relevance (10% weight)\n\n"
    "Seniority matching rules:\n"
    '  - If the candidate targets "entry" level roles and the job requires '
    'senior-level experience (e.g. 5+ years, "lead", "architect", "principal", '
    '"staff"), reduce the score significantly (below 30).\n'
    '  - If the candidate targets "senior" roles and the job is clearly '
    "entry/junior level, reduce the score.\n"
    '  - If the target seniority is "any", treat experience level as a minor factor.\n'
)

SINGLE_SYSTEM_PROMPT = (
    "You are a job matching expert. Score how well a job listing matches a "
    "candidate's resume.\n\n"
    + _RUBRIC
    + "\nReturn ONLY a JSON object (no markdown, no code blocks):\n"
    '{"score": <integer 0-100>, "reasoning": "<2-sentence explanation>"}'
)

BATCH_SYSTEM_PROMPT = (
    "You are a job matching expert. Score how well EACH job listing matches a "
    "candidate's resume.\n\n"
    + _RUBRIC
    + "\nReturn ONLY a JSON array (no markdown, no code blocks) with one element "
    "per job, in the same order as the jobs are numbered:\n"
    '[{"score": <integer 0-100>, "reasoning": "<2-sentence explanation>"}, ...]'
)


def fallback_result(config: ScoringConfig) -> MatchResult:
    """The neutral result used whenever scoring cannot be trusted."""
    return MatchResult(
        score=config.fallback_score,
        reasoning=f"Could not generate match score, defaulted to {config.fallback_score}.",
        defaulted=True,
    )


def clamp_score(value: Any) -> int:
    """Round half-up to an int and clamp to 0-100.

    Raises ScoringParseError for non-numeric or non-finite values.
    """
    if isinstance(value, bool):
        msg = f"Score must be a number, got {value!r}"
        raise ScoringParseError(msg)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        msg = f"Score must be a number, got {value!r}"
        raise ScoringParseError(msg) from e
    if not math.isfinite(number):
        msg = f"Score must be finite, got {value!r}"
        raise ScoringParseError(msg)
    return max(0, min(100, math.floor(number + 0.5)))


# --- Prompt building ---


def _profile_section(profile: CandidateProfile, seniority: str) -> str:
    return (
        "Candidate Profile:\n"
        f"- Job Titles: {', '.join(profile.job_titles) or 'not specified'}\n"
        f"- Skills: {', '.join(profile.skills) or 'not specified'}\n"
        f"- Years of Experience: {profile.years_of_experience}\n"
        f"- Industries: {', '.join(profile.industries) or 'not specified'}\n"
        f"- Target Seniority: {SENIORITY_LABELS.get(seniority, 'Any level')}\n"
    )


def _truncate(description: str | None, limit: int) -> str:
    return (description or NO_DESCRIPTION)[:limit]


def build_single_prompt(
    listing: NormalizedListing,
    profile: CandidateProfile,
    seniority: str,
    description_limit: int = 2000,
) -> str:
    """User prompt for scoring one listing."""
    return (
        f"{_profile_section(profile, seniority)}\n"
        "Job Listing:\n"
        f"Title: {listing.title}\n"
        f"Company: {listing.company}\n"
        f"Description: {_truncate(listing.description, description_limit)}\n"
    )


def build_batch_prompt(
    listings: list[NormalizedListing],
    profile: CandidateProfile,
    seniority: str,
    description_limit: int = 1500,
) -> str:
    """User prompt for scoring several listings in one call."""
    jobs = "\n\n".join(
        f"--- Job {i} ---\n"
        f"Title: {listing.title}\n"
        f"Company: {listing.company}\n"
        f"Description: {_truncate(listing.description, description_limit)}"
        for i, listing in enumerate(listings, start=1)
    )
    return f"{_profile_section(profile, seniority)}\n{jobs}\n"


# --- Response parsing ---


def _load(raw_text: str) -> Any:
    try:
        return load_json_response(raw_text)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse match score response as JSON: {e}"
        raise ScoringParseError(msg) from e


def _to_result(data: Any) -> MatchResult:
    if not isinstance(data, dict) or "score" not in data:
        msg = "Match score response missing 'score' field"
        raise ScoringParseError(msg)
    reasoning = data.get("reasoning")
    return MatchResult(
        score=clamp_score(data["score"]),
        reasoning="" if reasoning is None else str(reasoning),
    )


def parse_single_response(raw_text: str) -> MatchResult:
    """Parse ``{score, reasoning}``. Raises ScoringParseError when malformed."""
    return _to_result(_load(raw_text))


def parse_batch_response(raw_text: str, expected: int) -> list[MatchResult]:
    """Parse an array of ``{score, reasoning}`` aligned with the submitted listings.

    Raises:
        ScoringParseError: Not JSON, or not an array.
        ScoringShapeMismatch: Array length differs from ``expected``; carries
            the positionally usable entries in ``partial``.
    """
    data = _load(raw_text)
    if not isinstance(data, list):
        msg = f"Expected a JSON array of {expected} results, got {type(data).__name__}"
        raise ScoringParseError(msg)

    results: list[MatchResult | None] = []
    for i in range(expected):
        try:
            results.append(_to_result(data[i]) if i < len(data) else None)
        except ScoringParseError:
            logger.debug("Batch entry %d is malformed", i, exc_info=True)
            results.append(None)

    if len(data) != expected or any(r is None for r in results):
        raise ScoringShapeMismatch(expected, len(data), results)
    return [r for r in results if r is not None]


# --- Provider call under a deadline ---


async def complete_with_deadline(
    provider: LLMProvider,
    prompt: str,
    *,
    system: str,
    model: str | None,
    timeout_seconds: float,
) -> str:
    """Run the blocking provider call on a worker thread, bounded by a deadline.

    On expiry we stop waiting and raise ScoringTimeout; the in-flight request
    is not cancelled. Missing credentials propagate as ConfigurationError.
    Any other provider failure becomes ScoringApiError.
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(provider.complete, prompt, model, system=system),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        raise ScoringTimeout(timeout_seconds) from None
    except (ConfigurationError, ScoringError):
        raise
    except Exception as e:
        msg = f"{type(e).__name__}: {e}"
        raise ScoringApiError(msg) from e


# --- Public API ---


async def score_listing(
    listing: NormalizedListing,
    profile: CandidateProfile,
    seniority: str,
    provider: LLMProvider,
    config: ScoringConfig,
    run_logger: RunLogger | None = None,
) -> MatchResult:
    """Score one listing. Scoring failures return the fallback; ConfigurationError propagates."""
    prompt = build_single_prompt(listing, profile, seniority, config.single_description_limit)
    try:
        raw = await complete_with_deadline(
            provider,
            prompt,
            system=SINGLE_SYSTEM_PROMPT,
            model=config.model,
            timeout_seconds=config.single_timeout_seconds,
        )
        return parse_single_response(raw)
    except ScoringError as e:
        _report(run_logger, f"Scoring failed for \"{listing.title}\": {e}")
        return fallback_result(config)


async def _score_chunk(
    listings: list[NormalizedListing],
    profile: CandidateProfile,
    seniority: str,
    provider: LLMProvider,
    config: ScoringConfig,
    run_logger: RunLogger | None,
) -> list[MatchResult]:
    prompt = build_batch_prompt(listings, profile, seniority, config.batch_description_limit)
    try:
        raw = await complete_with_deadline(
            provider,
            prompt,
            system=BATCH_SYSTEM_PROMPT,
            model=config.model,
            timeout_seconds=config.batch_timeout_seconds,
        )
        return parse_batch_response(raw, len(listings))
    except ScoringShapeMismatch as e:
        _report(run_logger, f"Batch scoring shape mismatch: {e}")
        return [r if r is not None else fallback_result(config) for r in e.partial]
    except ScoringError as e:
        _report(run_logger, f"Batch scoring failed: {e}")
        return [fallback_result(config) for _ in listings]


async def score_listings(
    listings: list[NormalizedListing],
    profile: CandidateProfile,
    seniority: str,
    provider: LLMProvider,
    config: ScoringConfig,
    run_logger: RunLogger | None = None,
) -> list[MatchResult]:
    """Score listings in sequential chunks, returning results in input order.

    A chunk of exactly one listing uses the single-listing path instead of
    a one-element batch. Empty input makes no calls.
    """
    if not listings:
        return []

    chunks = [
        listings[i:i + config.batch_size]
        for i in range(0, len(listings), config.batch_size)
    ]
    results: list[MatchResult] = []

    for batch_num, chunk in enumerate(chunks, start=1):
        if run_logger is not None:
            run_logger.info(
                "scoring",
                f"Batch {batch_num}/{len(chunks)}: scoring {len(chunk)} listing(s)",
            )
        if len(chunk) == 1:
            results.append(
                await score_listing(chunk[0], profile, seniority, provider, config, run_logger)
            )
        else:
            results.extend(
                await _score_chunk(chunk, profile, seniority, provider, config, run_logger)
            )

        # Rate limit between upstream calls
        if batch_num < len(chunks) and config.batch_delay_seconds > 0:
            await asyncio.sleep(config.batch_delay_seconds)

    return results


def _report(run_logger: RunLogger | None, message: str) -> None:
    if run_logger is not None:
        run_logger.error("scoring", message)
    else:
        logger.warning("%s", message)
