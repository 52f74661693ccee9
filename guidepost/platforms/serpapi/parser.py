"""SerpAPI result parser: RawListing -> NormalizedListing.

Rules:
  - Dedup URL is the first apply-option link, else the share link, else None.
  - Empty location/description/salary become None.
  - posted_at is never parsed (the service only says "3 days ago").
"""

from guidepost.core.schemas import NormalizedListing, RawListing


def dedup_url(raw: RawListing) -> str | None:
    """Pick the canonical application link used as the dedup key."""
    if raw.apply_options and raw.apply_options[0].link:
        return raw.apply_options[0].link
    return raw.share_link or None


def normalize_listing(
    raw: RawListing,
    profile_id: str,
    source: str = "google_jobs",
) -> NormalizedListing:
    """Map a raw search result into the canonical listing shape."""
    extensions = raw.detected_extensions
    return NormalizedListing(
        profile_id=profile_id,
        title=raw.title,
        company=raw.company_name,
        location=raw.location or None,
        description=raw.description or None,
        url=dedup_url(raw),
        source=source,
        posted_at=None,
        is_remote=bool(extensions and extensions.work_from_home),
        salary_info=(extensions.salary or None) if extensions else None,
    )


def normalize_listings(
    raws: list[RawListing],
    profile_id: str,
    source: str = "google_jobs",
) -> list[NormalizedListing]:
    return [normalize_listing(r, profile_id, source) for r in raws]
