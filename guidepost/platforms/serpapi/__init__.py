"""SerpAPI Google Jobs search client and result parser."""

from guidepost.platforms.serpapi.client import SerpApiClient
from guidepost.platforms.serpapi.parser import dedup_url, normalize_listing, normalize_listings

__all__ = ["SerpApiClient", "dedup_url", "normalize_listing", "normalize_listings"]
