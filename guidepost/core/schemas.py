"""Core data models for the search pipeline."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApplyOption(BaseModel):
    """One application link offered by the search service."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    link: str = ""


class DetectedExtensions(BaseModel):
    """Structured extras the search service extracts from a listing."""

    model_config = ConfigDict(extra="ignore")

    posted_at: str | None = None
    salary: str | None = None
    schedule_type: str | None = None
    work_from_home: bool = False

    @field_validator("work_from_home", mode="before")
    @classmethod
    def null_is_false(cls, v: Any) -> Any:
        return False if v is None else v


class RawListing(BaseModel):
    """A listing exactly as the search service returns it."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    company_name: str = ""
    location: str = ""
    description: str = ""
    detected_extensions: DetectedExtensions | None = None
    job_id: str | None = None
    share_link: str | None = None
    apply_options: list[ApplyOption] = Field(default_factory=list)

    @field_validator("title", "company_name", "location", "description", mode="before")
    @classmethod
    def null_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("apply_options", mode="before")
    @classmethod
    def null_is_no_options(cls, v: Any) -> Any:
        return [] if v is None else v


class SearchResults(BaseModel):
    """Listings fetched for one query.

    ``skipped_malformed`` counts result items that could not be read as a
    listing at all.
    """

    listings: list[RawListing] = Field(default_factory=list)
    skipped_malformed: int = 0


class NormalizedListing(BaseModel):
    """Canonical listing shape written downstream.

    ``url`` is the dedup key; a listing without one never reaches the scorer.
    ``posted_at`` stays None: the service only gives relative dates.
    """

    model_config = ConfigDict(frozen=True)

    profile_id: str
    title: str
    company: str
    location: str | None = None
    description: str | None = None
    url: str | None = None
    source: str = "google_jobs"
    posted_at: datetime | None = None
    is_remote: bool = False
    salary_info: str | None = None


class MatchResult(BaseModel):
    """Score and reasoning for one listing. Score is always an int in 0-100."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    reasoning: str = ""
    defaulted: bool = False


class ScoredListing(BaseModel):
    """Pairs a frozen NormalizedListing with its MatchResult."""

    model_config = ConfigDict(frozen=True)

    listing: NormalizedListing
    match: MatchResult


class ScoreDistribution(BaseModel):
    """Average plus high (80+) and low (<40) counts over a set of scores."""

    count: int = 0
    average: int = 0
    high: int = 0
    low: int = 0

    @classmethod
    def from_scores(cls, scores: list[int]) -> "ScoreDistribution":
        if not scores:
            return cls()
        return cls(
            count=len(scores),
            average=int(sum(scores) / len(scores) + 0.5),
            high=sum(1 for s in scores if s >= 80),
            low=sum(1 for s in scores if s < 40),
        )


class ProfileRunSummary(BaseModel):
    """Counters for one profile within a run."""

    profile_id: str
    queries: list[str] = Field(default_factory=list)
    listings_returned: int = 0
    query_errors: int = 0
    skipped_malformed: int = 0
    skipped_excluded: int = 0
    skipped_no_url: int = 0
    skipped_duplicate: int = 0
    skipped_remote: int = 0
    candidates: int = 0
    scoring_fallbacks: int = 0
    inserted: int = 0
    insert_errors: int = 0
    scores: list[int] = Field(default_factory=list)

    @property
    def distribution(self) -> ScoreDistribution:
        return ScoreDistribution.from_scores(self.scores)


class PipelineRunSummary(BaseModel):
    """Summary of a whole run, appended to per profile and finalized once."""

    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None
    profiles: list[ProfileRunSummary] = Field(default_factory=list)

    @property
    def queries_built(self) -> int:
        return sum(len(p.queries) for p in self.profiles)

    @property
    def listings_returned(self) -> int:
        return sum(p.listings_returned for p in self.profiles)

    @property
    def candidates_after_filtering(self) -> int:
        return sum(p.candidates for p in self.profiles)

    @property
    def new_listings(self) -> int:
        return sum(p.inserted for p in self.profiles)

    @property
    def insert_errors(self) -> int:
        return sum(p.insert_errors for p in self.profiles)

    @property
    def query_errors(self) -> int:
        return sum(p.query_errors for p in self.profiles)

    @property
    def skipped_malformed(self) -> int:
        return sum(p.skipped_malformed for p in self.profiles)

    @property
    def scoring_fallbacks(self) -> int:
        return sum(p.scoring_fallbacks for p in self.profiles)

    @property
    def distribution(self) -> ScoreDistribution:
        return ScoreDistribution.from_scores([s for p in self.profiles for s in p.scores])

    def finish(self) -> None:
        """Stamp the end time. Later calls keep the first timestamp."""
        if self.finished_at is None:
            self.finished_at = datetime.now()

    def totals(self) -> dict[str, int]:
        """Aggregate counters as a flat dict (for export and persistence)."""
        dist = self.distribution
        return {
            "profiles_searched": len(self.profiles),
            "queries_built": self.queries_built,
            "listings_returned": self.listings_returned,
            "candidates_after_filtering": self.candidates_after_filtering,
            "new_listings": self.new_listings,
            "insert_errors": self.insert_errors,
            "query_errors": self.query_errors,
            "skipped_malformed": self.skipped_malformed,
            "scoring_fallbacks": self.scoring_fallbacks,
            "score_average": dist.average,
            "score_high": dist.high,
            "score_low": dist.low,
        }
