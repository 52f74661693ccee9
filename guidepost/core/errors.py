"""Error taxonomy for the search pipeline.

Fatal (abort the run):
  ConfigurationError, ProfileLoadError
Scoped to one query (logged, query skipped):
  UpstreamHttpError, UpstreamApiError
Scoped to one candidate or batch (resolved with the fallback score):
  ScoringTimeout, ScoringApiError, ScoringParseError, ScoringShapeMismatch
Scoped to one candidate (logged, counted):
  InsertError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from guidepost.core.schemas import MatchResult


class GuidepostError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(GuidepostError):
    """Required credentials or settings are missing."""


class ProfileLoadError(GuidepostError):
    """The set of profiles to search could not be loaded."""


class SearchError(GuidepostError):
    """The external search service failed for one query."""


class UpstreamHttpError(SearchError):
    """Non-success HTTP status (or transport failure) from the search service."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamApiError(SearchError):
    """The search service answered with an explicit ``error`` field."""


class ScoringError(GuidepostError):
    """The AI scoring service could not produce a trustworthy result."""


class ScoringTimeout(ScoringError):
    """The scoring call did not finish before its deadline."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"AI scoring timed out after {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds


class ScoringApiError(ScoringError):
    """The AI provider raised while completing the prompt."""


class ScoringParseError(ScoringError):
    """The AI response was not the expected JSON."""


class ScoringShapeMismatch(ScoringError):
    """A batch response array does not line up with the submitted candidates.

    ``partial`` holds one entry per candidate: the positionally matching
    well-formed result, or None where nothing usable was returned.
    """

    def __init__(
        self,
        expected: int,
        received: int,
        partial: list[MatchResult | None],
    ) -> None:
        usable = sum(1 for r in partial if r is not None)
        super().__init__(f"Expected {expected} results, got {received} ({usable} usable)")
        self.expected = expected
        self.received = received
        self.partial = partial


class InsertError(GuidepostError):
    """A scored listing could not be written to storage."""
