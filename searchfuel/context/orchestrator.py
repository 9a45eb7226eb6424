"""
Competitor Discovery Orchestrator

Runs the discovery pipeline for one website:
1. Fetch homepage (SSRF-guarded)
2. Structured data, business profile and content analysis
3. Satellite pages (about / services / blog)
4. AI context enhancement
5. Offerings and search queries
6. Parallel SERP search and merge
7. AI validation and ranking

Only an invalid or unreachable target URL aborts a run. Every later
stage degrades to a heuristic or an empty result when its external
service is missing, slow or broken.
"""

import asyncio
import logging
import time
from typing import List, Optional, TYPE_CHECKING

from searchfuel.analyzer.client import create_claude_client
from searchfuel.collector.client import create_client
from searchfuel.scoring.competitor_scoring import (
    LOW_CONFIDENCE_THRESHOLD,
    rank_competitors,
    rank_unvalidated,
)
from searchfuel.utils.config import Settings, get_settings
from searchfuel.utils.domain_filter import normalize_domain
from searchfuel.utils.url_guard import validate_url

from .business_profiler import extract_business_profile
from .competitor_validator import CompetitorValidator
from .content_analyzer import analyze_content
from .context_enhancer import BusinessContextEnhancer
from .deadline import Deadline
from .fetcher import PageFetcher
from .models import CompetitorDiscoveryResult, DiscoveryMode, Offering, PageType
from .offering_extractor import OfferingExtractor
from .page_crawler import PageCrawler, first_page_text
from .query_generator import QueryGenerator, basic_queries
from .search_aggregator import SearchAggregator
from .structured_data import extract_structured_data

if TYPE_CHECKING:
    from searchfuel.analyzer.client import ClaudeClient
    from searchfuel.collector.client import DataForSEOClient

logger = logging.getLogger(__name__)


# =============================================================================
# PIPELINE
# =============================================================================


class CompetitorDiscoveryPipeline:
    """
    Orchestrates one competitor discovery run per call to discover().

    Clients are optional: without Claude the AI stages fall back to
    heuristics (and validated mode returns no competitors); without
    DataForSEO no SERP candidates are found.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        claude_client: Optional["ClaudeClient"] = None,
        dataforseo_client: Optional["DataForSEOClient"] = None,
        fetcher: Optional[PageFetcher] = None,
        mode: Optional[DiscoveryMode] = None,
    ):
        self.settings = settings or get_settings()
        self.mode = DiscoveryMode(mode or self.settings.COMPETITOR_DISCOVERY_MODE)
        self.claude_client = claude_client
        self.dataforseo_client = dataforseo_client
        self.fetcher = fetcher or PageFetcher(timeout=self.settings.FETCH_TIMEOUT)

        # Initialize stages
        self.crawler = PageCrawler(self.fetcher, timeout=self.settings.SATELLITE_TIMEOUT)
        self.enhancer = BusinessContextEnhancer(
            claude_client, refined=self.mode == DiscoveryMode.VALIDATED
        )
        self.offering_extractor = OfferingExtractor(claude_client)
        self.query_generator = QueryGenerator(claude_client)
        self.aggregator = SearchAggregator(
            dataforseo_client,
            location_code=self.settings.DEFAULT_LOCATION_CODE,
            depth=self.settings.SERP_DEPTH,
            timeout=self.settings.SERP_TIMEOUT,
        )
        self.validator = CompetitorValidator(
            claude_client,
            self.fetcher,
            fetch_timeout=self.settings.VALIDATION_FETCH_TIMEOUT,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        mode: Optional[DiscoveryMode] = None,
    ) -> "CompetitorDiscoveryPipeline":
        """Build a pipeline with clients for whichever credentials are configured."""
        settings = settings or get_settings()
        return cls(
            settings=settings,
            claude_client=create_claude_client(
                settings.ANTHROPIC_API_KEY,
                model=settings.CLAUDE_MODEL,
                timeout=settings.AI_TIMEOUT,
            ),
            dataforseo_client=create_client(
                settings.DATAFORSEO_LOGIN,
                settings.DATAFORSEO_PASSWORD,
                timeout=settings.SERP_TIMEOUT,
            ),
            mode=mode,
        )

    async def close(self):
        """Close HTTP clients owned by the pipeline."""
        await self.fetcher.close()
        if self.dataforseo_client:
            await self.dataforseo_client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def discover(
        self,
        url: str,
        deadline: Optional[Deadline] = None,
    ) -> CompetitorDiscoveryResult:
        """
        Run competitor discovery for a website.

        Args:
            url: Website URL (bare domains accepted)
            deadline: Overall deadline / cancel signal; fan-out stages
                return partial results when it hits

        Returns:
            CompetitorDiscoveryResult

        Raises:
            InvalidURL: URL is malformed or targets a private address
            FetchError: Homepage could not be fetched
        """
        start_time = time.time()
        deadline = deadline or Deadline(self.settings.PIPELINE_DEADLINE)
        warnings: List[str] = []

        target = validate_url(url)
        own_domain = normalize_domain(target)
        logger.info(f"Starting competitor discovery for: {own_domain} (mode={self.mode.value})")

        # Step 1: Homepage
        page = await self.fetcher.fetch(target, timeout=self.settings.FETCH_TIMEOUT)
        html = page.html

        # Step 2: Homepage extraction
        structured_data = extract_structured_data(html)
        base_profile = extract_business_profile(html, page.url, structured_data)
        content = analyze_content(html)

        # Step 3: Satellite pages
        pages = await self.crawler.crawl(page.url, html, deadline)
        about_text = first_page_text(pages, PageType.ABOUT)
        services_text = first_page_text(pages, PageType.SERVICES)

        # Step 4: AI context
        if not self.claude_client:
            warnings.append("AI analysis unavailable - heuristic profile only")
        enhancement = await self.enhancer.enhance(
            base_profile, content, structured_data, about_text, deadline
        )
        profile = base_profile.with_enhancements(enhancement)

        if not self.dataforseo_client:
            warnings.append("Search API unavailable - no competitor candidates")

        # Steps 5-7: Competitors
        if self.mode == DiscoveryMode.BASIC:
            offering = Offering()
            queries = basic_queries(profile)
            candidates = await self.aggregator.aggregate(queries, base_profile, own_domain, deadline)
            competitors = rank_unvalidated(candidates, own_domain)
        else:
            offering = await self.offering_extractor.extract(
                profile, enhancement, content, services_text, deadline
            )
            queries = await self.query_generator.generate(profile, enhancement, offering, deadline)
            candidates = await self.aggregator.aggregate(queries, base_profile, own_domain, deadline)
            validated = await self.validator.validate(candidates, profile, offering, deadline)
            competitors = rank_competitors(validated, own_domain)

        if deadline.expired:
            warnings.append("Deadline reached - results may be partial")
        if len(competitors) < LOW_CONFIDENCE_THRESHOLD:
            warnings.append(f"Low confidence: only {len(competitors)} competitors found")

        result = CompetitorDiscoveryResult(
            url=page.url,
            domain=own_domain,
            profile=profile,
            content_analysis=content,
            structured_data=structured_data,
            additional_pages=pages,
            offering=offering,
            queries=queries,
            competitors=competitors,
            mode=self.mode,
            warnings=warnings,
            execution_time_seconds=time.time() - start_time,
        )

        logger.info(
            f"Competitor discovery complete for {own_domain}: {len(competitors)} competitors "
            f"in {result.execution_time_seconds:.1f}s"
        )
        if self.claude_client:
            logger.info(f"Claude usage: {self.claude_client.get_usage_summary()}")

        return result


# =============================================================================
# FACTORY FUNCTION
# =============================================================================


async def discover_competitors(
    url: str,
    mode: Optional[DiscoveryMode] = None,
    deadline_seconds: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
    settings: Optional[Settings] = None,
) -> CompetitorDiscoveryResult:
    """
    Convenience function to run competitor discovery once.

    Args:
        url: Website URL
        mode: "basic" or "validated" (defaults to COMPETITOR_DISCOVERY_MODE)
        deadline_seconds: Overall deadline (defaults to PIPELINE_DEADLINE)
        cancel_event: Set to cancel the run; partial results are returned
        settings: Settings override

    Returns:
        CompetitorDiscoveryResult
    """
    settings = settings or get_settings()
    deadline = Deadline(
        deadline_seconds if deadline_seconds is not None else settings.PIPELINE_DEADLINE,
        cancel_event=cancel_event,
    )

    async with CompetitorDiscoveryPipeline.from_settings(settings, mode=mode) as pipeline:
        return await pipeline.discover(url, deadline=deadline)
