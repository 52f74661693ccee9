"""Tests for search query building and search parameters."""

from guidepost.core.config import SearchFilter
from guidepost.pipeline.query_builder import (
    FALLBACK_QUERY,
    age_chip,
    append_seniority,
    build_search_params,
    build_search_queries,
)
from guidepost.profile.schema import CandidateProfile


def _profile(**overrides: object) -> CandidateProfile:
    defaults: dict[str, object] = {
        "job_titles": ["Data Engineer"],
        "skills": ["Python", "SQL"],
        "years_of_experience": 3,
    }
    defaults.update(overrides)
    return CandidateProfile(**defaults)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# build_search_queries
# ---------------------------------------------------------------------------


class TestBuildSearchQueries:
    def test_titles_with_seniority(self) -> None:
        profile = _profile(job_titles=["Data Engineer", "ML Engineer"])
        queries = build_search_queries(profile, SearchFilter(target_seniority="mid"))
        assert queries == ["Data Engineer mid level", "ML Engineer mid level"]

    def test_titles_capped_at_four(self) -> None:
        profile = _profile(job_titles=["A", "B", "C", "D", "E", "F"])
        queries = build_search_queries(profile, SearchFilter())
        assert queries == ["A", "B", "C", "D"]

    def test_skills_when_no_titles(self) -> None:
        profile = _profile(job_titles=[], skills=["Python", "SQL", "Go", "Rust"])
        queries = build_search_queries(profile, SearchFilter())
        assert queries == ["Python jobs", "SQL jobs", "Go jobs"]

    def test_skills_get_seniority_qualifier(self) -> None:
        profile = _profile(job_titles=[], skills=["Python"])
        queries = build_search_queries(profile, SearchFilter(target_seniority="senior"))
        assert queries == ["Python jobs senior"]

    def test_fallback_when_no_titles_or_skills(self) -> None:
        profile = _profile(job_titles=[], skills=[])
        queries = build_search_queries(profile, SearchFilter(target_seniority="entry"))
        assert queries == [f"{FALLBACK_QUERY} entry level OR junior"]

    def test_any_seniority_adds_nothing(self) -> None:
        profile = _profile(job_titles=[], skills=[])
        assert build_search_queries(profile, SearchFilter()) == [FALLBACK_QUERY]

    def test_blank_titles_ignored(self) -> None:
        profile = _profile(job_titles=["  ", ""], skills=["Go"])
        assert build_search_queries(profile, SearchFilter()) == ["Go jobs"]

    def test_keywords_not_used(self) -> None:
        filters = SearchFilter(keywords=["kubernetes"])
        queries = build_search_queries(_profile(), filters)
        assert all("kubernetes" not in q for q in queries)

    def test_always_between_one_and_four(self) -> None:
        for titles in ([], ["A"], ["A"] * 10):
            queries = build_search_queries(_profile(job_titles=titles), SearchFilter())
            assert 1 <= len(queries) <= 4


class TestAppendSeniority:
    def test_entry(self) -> None:
        assert append_seniority("Dev", "entry") == "Dev entry level OR junior"

    def test_unknown_is_noop(self) -> None:
        assert append_seniority("Dev", "principal") == "Dev"


# ---------------------------------------------------------------------------
# age_chip / build_search_params
# ---------------------------------------------------------------------------


class TestAgeChip:
    def test_exact_buckets(self) -> None:
        assert age_chip(1) == "date_posted:today"
        assert age_chip(3) == "date_posted:3days"
        assert age_chip(7) == "date_posted:week"
        assert age_chip(14) == "date_posted:month"
        assert age_chip(30) == "date_posted:month"

    def test_rounds_up_to_next_bucket(self) -> None:
        assert age_chip(2) == "date_posted:3days"
        assert age_chip(5) == "date_posted:week"
        assert age_chip(10) == "date_posted:month"
        assert age_chip(20) == "date_posted:month"

    def test_larger_than_all_buckets(self) -> None:
        assert age_chip(90) == "date_posted:month"


class TestBuildSearchParams:
    def test_defaults(self) -> None:
        params = build_search_params("Data Engineer", SearchFilter())
        assert params == {
            "engine": "google_jobs",
            "q": "Data Engineer",
            "chips": "date_posted:week",
        }

    def test_location_included(self) -> None:
        params = build_search_params("Dev", SearchFilter(location="Berlin"))
        assert params["location"] == "Berlin"

    def test_blank_location_omitted(self) -> None:
        params = build_search_params("Dev", SearchFilter(location="   "))
        assert "location" not in params

    def test_age_maps_to_chip(self) -> None:
        params = build_search_params("Dev", SearchFilter(max_listing_age_days=1))
        assert params["chips"] == "date_posted:today"

    def test_custom_engine(self) -> None:
        params = build_search_params("Dev", SearchFilter(), engine="google_jobs_listing")
        assert params["engine"] == "google_jobs_listing"
