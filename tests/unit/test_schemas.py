"""Tests for core data models and run summaries."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from guidepost.core.schemas import (
    MatchResult,
    NormalizedListing,
    PipelineRunSummary,
    ProfileRunSummary,
    RawListing,
    ScoreDistribution,
)


class TestRawListing:
    def test_unknown_fields_ignored(self) -> None:
        raw = RawListing.model_validate({
            "title": "Dev",
            "company_name": "Acme",
            "thumbnail": "https://img",
            "detected_extensions": {"work_from_home": True, "qualifications": "x"},
            "apply_options": [{"title": "Site", "link": "https://a"}],
        })
        assert raw.title == "Dev"
        assert raw.detected_extensions is not None
        assert raw.detected_extensions.work_from_home is True
        assert raw.apply_options[0].link == "https://a"

    def test_everything_optional(self) -> None:
        raw = RawListing.model_validate({})
        assert raw.title == ""
        assert raw.apply_options == []
        assert raw.share_link is None

    def test_null_fields_become_defaults(self) -> None:
        raw = RawListing.model_validate({
            "title": None,
            "company_name": None,
            "description": None,
            "detected_extensions": {"work_from_home": None},
            "apply_options": None,
            "share_link": "https://share/1",
        })
        assert raw.title == ""
        assert raw.company_name == ""
        assert raw.description == ""
        assert raw.detected_extensions is not None
        assert raw.detected_extensions.work_from_home is False
        assert raw.apply_options == []

    def test_wrong_type_still_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RawListing.model_validate({"title": 5})


class TestMatchResult:
    def test_bounds(self) -> None:
        with pytest.raises(ValidationError):
            MatchResult(score=101)
        with pytest.raises(ValidationError):
            MatchResult(score=-1)

    def test_defaulted_false(self) -> None:
        assert MatchResult(score=70, reasoning="ok").defaulted is False


class TestNormalizedListing:
    def test_frozen(self) -> None:
        listing = NormalizedListing(profile_id="p", title="Dev", company="Acme")
        with pytest.raises(ValidationError):
            listing.title = "Other"  # type: ignore[misc]

    def test_defaults(self) -> None:
        listing = NormalizedListing(profile_id="p", title="Dev", company="Acme")
        assert listing.source == "google_jobs"
        assert listing.posted_at is None
        assert listing.is_remote is False


class TestScoreDistribution:
    def test_empty(self) -> None:
        assert ScoreDistribution.from_scores([]) == ScoreDistribution()

    def test_counts(self) -> None:
        dist = ScoreDistribution.from_scores([90, 80, 50, 39, 10])
        assert dist.count == 5
        assert dist.high == 2
        assert dist.low == 2
        assert dist.average == 54  # 269 / 5 = 53.8

    def test_average_rounds_half_up(self) -> None:
        assert ScoreDistribution.from_scores([50, 51]).average == 51


class TestPipelineRunSummary:
    def _summary(self) -> PipelineRunSummary:
        return PipelineRunSummary(
            started_at=datetime(2026, 3, 1, 6, 0),
            profiles=[
                ProfileRunSummary(
                    profile_id="a",
                    queries=["q1", "q2"],
                    listings_returned=20,
                    candidates=4,
                    inserted=3,
                    insert_errors=1,
                    scores=[90, 60, 30, 50],
                    scoring_fallbacks=1,
                ),
                ProfileRunSummary(
                    profile_id="b",
                    queries=["q3"],
                    listings_returned=5,
                    query_errors=1,
                    skipped_malformed=3,
                    candidates=1,
                    inserted=1,
                    scores=[85],
                ),
            ],
        )

    def test_aggregates(self) -> None:
        s = self._summary()
        assert s.queries_built == 3
        assert s.listings_returned == 25
        assert s.candidates_after_filtering == 5
        assert s.new_listings == 4
        assert s.insert_errors == 1
        assert s.query_errors == 1
        assert s.scoring_fallbacks == 1
        assert s.skipped_malformed == 3

    def test_totals(self) -> None:
        totals = self._summary().totals()
        assert totals["profiles_searched"] == 2
        assert totals["new_listings"] == 4
        assert totals["score_high"] == 2
        assert totals["score_low"] == 1
        assert totals["score_average"] == 63  # 315 / 5
        assert totals["skipped_malformed"] == 3

    def test_finish_only_once(self) -> None:
        s = self._summary()
        s.finish()
        first = s.finished_at
        assert first is not None
        s.finish()
        assert s.finished_at == first

    def test_empty_run(self) -> None:
        s = PipelineRunSummary()
        assert s.new_listings == 0
        assert s.totals()["profiles_searched"] == 0
