"""Tests for normalizing raw Google Jobs results."""

from guidepost.core.schemas import RawListing
from guidepost.platforms.serpapi import dedup_url, normalize_listing, normalize_listings


def _raw(**overrides: object) -> RawListing:
    data: dict[str, object] = {
        "title": "Backend Engineer",
        "company_name": "Acme",
        "location": "Berlin",
        "description": "Python and Postgres",
        "share_link": "https://share/1",
        "apply_options": [
            {"title": "Acme Careers", "link": "https://acme.example/jobs/1"},
            {"title": "LinkedIn", "link": "https://linkedin.example/1"},
        ],
        "detected_extensions": {"work_from_home": True, "salary": "60K-80K a year"},
    }
    data.update(overrides)
    return RawListing.model_validate(data)


class TestDedupUrl:
    def test_first_apply_option(self) -> None:
        assert dedup_url(_raw()) == "https://acme.example/jobs/1"

    def test_share_link_when_no_apply_options(self) -> None:
        assert dedup_url(_raw(apply_options=[])) == "https://share/1"

    def test_share_link_when_first_option_has_no_link(self) -> None:
        raw = _raw(apply_options=[{"title": "Broken"}])
        assert dedup_url(raw) == "https://share/1"

    def test_none_when_nothing(self) -> None:
        assert dedup_url(_raw(apply_options=[], share_link=None)) is None

    def test_empty_share_link_is_none(self) -> None:
        assert dedup_url(_raw(apply_options=[], share_link="")) is None


class TestNormalizeListing:
    def test_full_mapping(self) -> None:
        listing = normalize_listing(_raw(), "profile-1")
        assert listing.profile_id == "profile-1"
        assert listing.title == "Backend Engineer"
        assert listing.company == "Acme"
        assert listing.location == "Berlin"
        assert listing.description == "Python and Postgres"
        assert listing.url == "https://acme.example/jobs/1"
        assert listing.source == "google_jobs"
        assert listing.posted_at is None
        assert listing.is_remote is True
        assert listing.salary_info == "60K-80K a year"

    def test_empty_fields_become_none(self) -> None:
        listing = normalize_listing(_raw(location="", description="", detected_extensions=None), "p")
        assert listing.location is None
        assert listing.description is None
        assert listing.salary_info is None
        assert listing.is_remote is False

    def test_posted_at_never_parsed(self) -> None:
        raw = _raw(detected_extensions={"posted_at": "3 days ago"})
        assert normalize_listing(raw, "p").posted_at is None

    def test_custom_source(self) -> None:
        assert normalize_listing(_raw(), "p", source="other").source == "other"

    def test_normalize_many_keeps_order(self) -> None:
        raws = [_raw(title="A"), _raw(title="B")]
        assert [item.title for item in normalize_listings(raws, "p")] == ["A", "B"]
