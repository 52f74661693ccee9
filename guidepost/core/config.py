"""Configuration models and YAML loader for the search pipeline."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

RemotePreference = Literal["remote", "hybrid", "onsite", "any"]
TargetSeniority = Literal["entry", "mid", "senior", "any"]


class SearchFilter(BaseModel):
    """Per-profile search filters.

    ``SearchFilter()`` is the default used when a profile has no stored filter:
    everything permissive, 7-day listing age, any seniority.
    """

    keywords: list[str] = Field(default_factory=list)
    location: str | None = None
    remote_preference: RemotePreference = "any"
    target_seniority: TargetSeniority = "any"
    min_salary: int | None = Field(default=None, ge=0)
    max_listing_age_days: int = Field(default=7, ge=1)
    excluded_companies: list[str] = Field(default_factory=list)

    @field_validator("location")
    @classmethod
    def blank_location_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("excluded_companies")
    @classmethod
    def drop_blank_companies(cls, v: list[str]) -> list[str]:
        return [c.strip() for c in v if c.strip()]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SearchFilter":
        """Load a filter set from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Filter file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/guidepost.db"


class SearchServiceConfig(BaseModel):
    """External job-search service (SerpAPI Google Jobs)."""

    base_url: str = "https://serpapi.com/search.json"
    engine: str = "google_jobs"
    max_pages: int = Field(default=3, ge=1, le=10)
    timeout_seconds: float = Field(default=30.0, gt=0)
    api_key_env: str = "SERPAPI_API_KEY"
    parallel_queries: bool = False


class ScoringConfig(BaseModel):
    """AI match scoring: provider, batching, deadlines and fallback."""

    provider: str = "gemini"
    model: str | None = None
    batch_size: int = Field(default=5, ge=2)
    single_timeout_seconds: float = Field(default=15.0, gt=0)
    batch_timeout_seconds: float = Field(default=30.0, gt=0)
    batch_delay_seconds: float = Field(default=1.0, ge=0)
    single_description_limit: int = Field(default=2000, ge=1)
    batch_description_limit: int = Field(default=1500, ge=1)
    fallback_score: int = Field(default=50, ge=0, le=100)


class LogsConfig(BaseModel):
    """Run report storage."""

    directory: str = "data/pipeline-logs"
    retention_days: int = Field(default=14, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    search: SearchServiceConfig = Field(default_factory=SearchServiceConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logs: LogsConfig = Field(default_factory=LogsConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
