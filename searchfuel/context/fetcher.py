"""
Page Fetcher

Single-shot HTML fetcher used for the target homepage, satellite pages
and candidate competitor homepages. Every URL goes through the SSRF
guard first, and redirects are re-checked so a public page cannot
bounce the fetcher onto an internal address.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from searchfuel.errors import FetchError
from searchfuel.utils.url_guard import Resolver, resolves_to_private, validate_url

logger = logging.getLogger(__name__)


BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36 (compatible; SearchFuel/1.0; +https://searchfuel.app)"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

MAX_REDIRECTS = 5


@dataclass
class FetchedPage:
    """A successfully fetched page."""
    url: str  # Final URL after redirects
    status_code: int
    html: str = field(repr=False)


class PageFetcher:
    """
    Fetches pages with a browser-like user agent.

    One GET per call, no retries. Non-2xx, timeouts and transport errors
    all raise FetchError; disallowed URLs raise InvalidURL.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        resolver: Optional[Resolver] = None,
    ):
        self.timeout = timeout
        self.resolver = resolver
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            headers=BROWSER_HEADERS,
            transport=transport,
            event_hooks={"request": [self._guard_request]},
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _guard_request(self, request: httpx.Request):
        # Runs for the first request and for every redirect hop
        if await resolves_to_private(request.url.host, resolver=self.resolver):
            raise FetchError(
                f"Blocked request to private address: {request.url.host}",
                url=str(request.url),
            )

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchedPage:
        """
        Fetch a page.

        Args:
            url: Page URL (bare domains get https://)
            timeout: Per-request timeout override in seconds

        Returns:
            FetchedPage with final URL, status and HTML

        Raises:
            InvalidURL: URL fails the SSRF guard
            FetchError: Non-2xx response, timeout, or transport failure
        """
        target = validate_url(url)

        try:
            response = await self.client.get(
                target,
                timeout=httpx.Timeout(self.timeout if timeout is None else timeout),
            )
        except httpx.TimeoutException as e:
            raise FetchError(f"Timed out fetching {target}: {e}", url=target, timed_out=True)
        except httpx.HTTPError as e:
            raise FetchError(f"Request error fetching {target}: {e}", url=target)

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} fetching {target}",
                url=target,
                status_code=response.status_code,
            )

        logger.debug(f"Fetched {response.url} ({len(response.text)} chars)")

        return FetchedPage(
            url=str(response.url),
            status_code=response.status_code,
            html=response.text,
        )
