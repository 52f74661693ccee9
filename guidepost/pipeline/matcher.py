"""Filter chain for normalized candidates.

Filter order (applied per candidate, first rejection wins):
  1. ExcludedCompanyFilter: case-insensitive substring on company name
  2. MissingUrlFilter: listings without a dedup URL
  3. KnownUrlFilter: persisted URLs plus URLs accepted earlier this run
  4. RemotePreferenceFilter: only when the preference is "remote"
"""

import logging
from collections.abc import Callable, Iterable

from guidepost.core.config import SearchFilter
from guidepost.core.schemas import NormalizedListing

logger = logging.getLogger(__name__)


class ListingFilter:
    """Predicate over one listing that counts what it rejects."""

    name = "filter"

    def __init__(self) -> None:
        self.removed = 0

    def __call__(self, listing: NormalizedListing) -> bool:
        if self.accepts(listing):
            return True
        self.removed += 1
        return False

    def accepts(self, listing: NormalizedListing) -> bool:
        raise NotImplementedError


class ExcludedCompanyFilter(ListingFilter):
    """Reject listings whose company contains any excluded fragment (case-insensitive)."""

    name = "excluded"

    def __init__(self, excluded_companies: list[str]) -> None:
        super().__init__()
        self._fragments = [c.lower().strip() for c in excluded_companies if c.strip()]

    def accepts(self, listing: NormalizedListing) -> bool:
        company = listing.company.lower()
        return not any(fragment in company for fragment in self._fragments)


class MissingUrlFilter(ListingFilter):
    """Reject listings without a dedup URL."""

    name = "no_url"

    def accepts(self, listing: NormalizedListing) -> bool:
        return listing.url is not None


class KnownUrlFilter(ListingFilter):
    """Reject listings whose URL is already known.

    Stateful: the known set is the union of URLs found in storage (added via
    ``add_known``) and URLs accepted earlier in the same run (``remember``).
    One instance is shared across all queries of a profile.
    """

    name = "duplicate"

    def __init__(self, known_urls: Iterable[str] = ()) -> None:
        super().__init__()
        self._known: set[str] = set(known_urls)

    def add_known(self, urls: Iterable[str]) -> None:
        self._known.update(urls)

    def remember(self, listing: NormalizedListing) -> None:
        if listing.url is not None:
            self._known.add(listing.url)

    def accepts(self, listing: NormalizedListing) -> bool:
        return listing.url is not None and listing.url not in self._known


class RemotePreferenceFilter(ListingFilter):
    """Reject non-remote listings when the profile insists on remote work.

    Hybrid and onsite preferences are left to the scorer.
    """

    name = "remote"

    def __init__(self, remote_preference: str) -> None:
        super().__init__()
        self._remote_only = remote_preference == "remote"

    def accepts(self, listing: NormalizedListing) -> bool:
        return not self._remote_only or listing.is_remote


def build_filters(filters: SearchFilter, known: KnownUrlFilter) -> list[ListingFilter]:
    """Build the filter chain for one profile's filter set."""
    return [
        ExcludedCompanyFilter(filters.excluded_companies),
        MissingUrlFilter(),
        known,
        RemotePreferenceFilter(filters.remote_preference),
    ]


def run_filter_chain(
    listings: list[NormalizedListing],
    filters: list[ListingFilter],
    on_accept: Callable[[NormalizedListing], None] | None = None,
) -> list[NormalizedListing]:
    """Apply filters to each listing in order, returning the survivors.

    ``on_accept`` runs for each survivor before the next listing is checked,
    so duplicates inside one batch are caught by a stateful filter.
    """
    result: list[NormalizedListing] = []
    for listing in listings:
        if all(f(listing) for f in filters):
            if on_accept is not None:
                on_accept(listing)
            result.append(listing)
    removed = len(listings) - len(result)
    if removed:
        logger.debug(
            "Filter chain removed %d of %d listings (%s)",
            removed,
            len(listings),
            ", ".join(f"{f.name}={f.removed}" for f in filters),
        )
    return result
