"""Abstract base class for external job-search clients."""

from abc import ABC, abstractmethod

from guidepost.core.config import SearchFilter
from guidepost.core.schemas import SearchResults


class SearchClient(ABC):
    """Base class that every search-service client must implement."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Source tag stamped on normalized listings (e.g. 'google_jobs')."""

    @abstractmethod
    async def search(self, query: str, filters: SearchFilter) -> SearchResults:
        """Fetch raw listings for one query, flattened across pages.

        Result items that cannot be read as a listing are counted in
        ``skipped_malformed`` rather than returned.

        Raises:
            ConfigurationError: Credentials are missing (fatal).
            SearchError: The service failed for this query (non-fatal).
        """
