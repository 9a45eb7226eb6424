"""
Competitor Discovery Errors

Only InvalidURL and FetchError on the target site abort a pipeline run.
Every other failure (one SERP query, one candidate homepage, one AI call)
is absorbed by the stage that hit it.
"""

from typing import Optional


class CompetitorDiscoveryError(Exception):
    """Base class for errors that abort a discovery run."""

    user_message = "Competitor discovery failed"


class InvalidURL(CompetitorDiscoveryError):
    """URL is malformed, uses a disallowed scheme, or points at a private host."""

    user_message = "Invalid URL provided"

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchError(CompetitorDiscoveryError):
    """A page could not be fetched (non-2xx, timeout, or transport failure)."""

    user_message = "Could not reach the provided URL"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        timed_out: bool = False,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.timed_out = timed_out
