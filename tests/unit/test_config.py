"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from guidepost.core.config import (
    DatabaseConfig,
    LogsConfig,
    ScoringConfig,
    SearchFilter,
    SearchServiceConfig,
    Settings,
)


class TestSearchFilter:
    def test_defaults(self) -> None:
        f = SearchFilter()
        assert f.keywords == []
        assert f.location is None
        assert f.remote_preference == "any"
        assert f.target_seniority == "any"
        assert f.min_salary is None
        assert f.max_listing_age_days == 7
        assert f.excluded_companies == []

    def test_blank_location_becomes_none(self) -> None:
        assert SearchFilter(location="  ").location is None

    def test_location_stripped(self) -> None:
        assert SearchFilter(location=" Lisbon ").location == "Lisbon"

    def test_blank_companies_dropped(self) -> None:
        f = SearchFilter(excluded_companies=["Acme", " ", ""])
        assert f.excluded_companies == ["Acme"]

    def test_invalid_remote_preference(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilter(remote_preference="sometimes")  # type: ignore[arg-type]

    def test_invalid_seniority(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilter(target_seniority="principal")  # type: ignore[arg-type]

    def test_age_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilter(max_listing_age_days=0)

    def test_from_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "filters.yaml"
        p.write_text(dedent("""\
            remote_preference: remote
            target_seniority: senior
            excluded_companies: [Acme]
        """))
        f = SearchFilter.from_yaml(p)
        assert f.remote_preference == "remote"
        assert f.target_seniority == "senior"
        assert f.excluded_companies == ["Acme"]

    def test_from_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Filter file not found"):
            SearchFilter.from_yaml(tmp_path / "nope.yaml")


class TestSearchServiceConfig:
    def test_defaults(self) -> None:
        c = SearchServiceConfig()
        assert c.engine == "google_jobs"
        assert c.max_pages == 3
        assert c.api_key_env == "SERPAPI_API_KEY"
        assert c.parallel_queries is False

    def test_max_pages_bounds(self) -> None:
        with pytest.raises(ValidationError):
            SearchServiceConfig(max_pages=0)
        with pytest.raises(ValidationError):
            SearchServiceConfig(max_pages=11)


class TestScoringConfig:
    def test_defaults(self) -> None:
        c = ScoringConfig()
        assert c.provider == "gemini"
        assert c.batch_size == 5
        assert c.single_timeout_seconds == 15
        assert c.batch_timeout_seconds == 30
        assert c.batch_delay_seconds == 1.0
        assert c.fallback_score == 50

    def test_batch_size_at_least_two(self) -> None:
        with pytest.raises(ValidationError):
            ScoringConfig(batch_size=1)

    def test_fallback_score_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ScoringConfig(fallback_score=101)


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.database == DatabaseConfig()
        assert s.logs == LogsConfig()
        assert s.logs.retention_days == 14

    def test_from_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "settings.yaml"
        p.write_text(dedent("""\
            database:
              path: /tmp/x.db
            search:
              max_pages: 2
            scoring:
              provider: anthropic
              batch_size: 3
            logs:
              directory: /tmp/logs
        """))
        s = Settings.from_yaml(p)
        assert s.database.path == "/tmp/x.db"
        assert s.search.max_pages == 2
        assert s.scoring.provider == "anthropic"
        assert s.scoring.batch_size == 3
        assert s.logs.directory == "/tmp/logs"

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        p = tmp_path / "settings.yaml"
        p.write_text("")
        assert Settings.from_yaml(p) == Settings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        p = tmp_path / "settings.yaml"
        p.write_text("scoring:\n  batch_size: 0\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(p)

    def test_example_settings_load(self) -> None:
        example = Path(__file__).parents[2] / "config" / "settings.example.yaml"
        s = Settings.from_yaml(example)
        assert s.scoring.provider == "gemini"
