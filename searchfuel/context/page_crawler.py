"""
Satellite Page Crawler

Fetches a few about / services / blog pages next to the homepage for
extra signal. Links found on the homepage are preferred over guessed
conventional paths. Failures are expected and simply dropped.
"""

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse, urlunparse

from searchfuel.errors import CompetitorDiscoveryError
from searchfuel.utils.html_text import extract_text

from .deadline import Deadline
from .fetcher import PageFetcher
from .models import PageType, SatellitePage

logger = logging.getLogger(__name__)


# =============================================================================
# CANDIDATE PATHS
# =============================================================================


MAX_DISCOVERED_LINKS = 3
MAX_SATELLITE_PAGES = 5

PAGE_TYPE_KEYWORDS = [
    (PageType.ABOUT, ("about",)),
    (PageType.SERVICES, ("service", "product")),
    (PageType.BLOG, ("blog", "news", "article")),
]

CONVENTIONAL_PATHS = [
    ("/about", PageType.ABOUT),
    ("/about-us", PageType.ABOUT),
    ("/services", PageType.SERVICES),
    ("/service", PageType.SERVICES),
    ("/blog", PageType.BLOG),
    ("/news", PageType.BLOG),
]

_HREF_RE = re.compile(r'<a\b[^>]*\bhref\s*=\s*["\']([^"\'#]+)', re.IGNORECASE)


def _host(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def _canonical(url: str) -> str:
    """Drop query, fragment and trailing slash so duplicates compare equal."""
    parsed = urlparse(url)
    path = parsed.path.rstrip("/") or "/"
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), path, "", "", ""))


def classify_path(path: str) -> Optional[PageType]:
    lowered = path.lower()
    for page_type, keywords in PAGE_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return page_type
    return None


def discover_links(base_url: str, html: str, limit: int = MAX_DISCOVERED_LINKS) -> List[Tuple[str, PageType]]:
    """Same-host links whose path looks like an about/services/blog page."""
    base_host = _host(base_url)
    found: List[Tuple[str, PageType]] = []
    seen = set()

    for href in _HREF_RE.findall(html or ""):
        href = href.strip()
        if href.lower().startswith(("mailto:", "tel:", "javascript:")):
            continue

        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https") or _host(absolute) != base_host:
            continue

        page_type = classify_path(parsed.path)
        canonical = _canonical(absolute)
        if page_type is None or canonical in seen:
            continue

        seen.add(canonical)
        found.append((canonical, page_type))
        if len(found) >= limit:
            break

    return found


def candidate_pages(base_url: str, html: str, limit: int = MAX_SATELLITE_PAGES) -> List[Tuple[str, PageType]]:
    """
    Ordered, deduplicated satellite candidates (homepage excluded).

    Discovered links come first, then conventional paths.
    """
    homepage = _canonical(base_url)
    root = f"{urlparse(base_url).scheme}://{urlparse(base_url).netloc}"

    candidates = discover_links(base_url, html) + [
        (_canonical(root + path), page_type) for path, page_type in CONVENTIONAL_PATHS
    ]

    selected: List[Tuple[str, PageType]] = []
    seen = {homepage}
    for url, page_type in candidates:
        if url in seen:
            continue
        seen.add(url)
        selected.append((url, page_type))
        if len(selected) >= limit:
            break

    return selected


def first_page_text(pages: List[SatellitePage], page_type: PageType, limit: int = 3000) -> str:
    """Readable text of the first fetched page of the given type, or ""."""
    for page in pages:
        if page.page_type == page_type:
            return extract_text(page.html, limit=limit)
    return ""


# =============================================================================
# CRAWLER
# =============================================================================


class PageCrawler:
    """Fetches satellite pages concurrently with a short per-page timeout."""

    def __init__(
        self,
        fetcher: PageFetcher,
        timeout: float = 5.0,
        max_pages: int = MAX_SATELLITE_PAGES,
    ):
        self.fetcher = fetcher
        self.timeout = timeout
        self.max_pages = max_pages

    async def crawl(
        self,
        base_url: str,
        html: str,
        deadline: Optional[Deadline] = None,
    ) -> List[SatellitePage]:
        """
        Fetch satellite pages for a homepage.

        Args:
            base_url: Final homepage URL
            html: Homepage HTML (for link discovery)
            deadline: Run deadline; unfinished fetches are dropped

        Returns:
            Successfully fetched pages, in candidate order
        """
        deadline = deadline or Deadline()
        candidates = candidate_pages(base_url, html, limit=self.max_pages)
        if not candidates:
            return []

        results = await deadline.gather_partial([
            self._fetch(url, page_type, deadline) for url, page_type in candidates
        ])
        pages = [page for page in results if page is not None]

        logger.info(f"Satellite pages: {len(pages)}/{len(candidates)} fetched")
        return pages

    async def _fetch(self, url: str, page_type: PageType, deadline: Deadline) -> Optional[SatellitePage]:
        try:
            page = await self.fetcher.fetch(url, timeout=deadline.clamp(self.timeout))
        except CompetitorDiscoveryError as e:
            logger.debug(f"Satellite page skipped {url}: {e}")
            return None

        return SatellitePage(url=url, page_type=page_type, html=page.html)
