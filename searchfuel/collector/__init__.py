"""
Search-results data collection.

Thin async wrapper around the DataForSEO SERP API.
"""

from .client import (
    DataForSEOClient,
    DataForSEOError,
    create_client,
    location_for_language,
    safe_get_result,
)

__all__ = [
    "DataForSEOClient",
    "DataForSEOError",
    "create_client",
    "location_for_language",
    "safe_get_result",
]
