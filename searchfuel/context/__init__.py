"""
Competitor Discovery Package

Homepage-level stages of the discovery pipeline:
- Page fetching behind the SSRF guard
- JSON-LD structured data and business profile extraction
- Content analysis and satellite page crawling
- AI context enhancement, offering extraction and query generation

The SERP aggregator, validator and orchestrator build on
searchfuel.scoring and are imported from their own modules:

Usage:
    from searchfuel.context.orchestrator import discover_competitors

    result = await discover_competitors("https://example.com", deadline_seconds=60)
    print(result.to_response()["competitors"])
"""

from .models import (
    MAX_COMPETITORS,
    MAX_HEADINGS,
    MAX_OFFERINGS,
    MAX_QUERIES,
    MAX_TOPICS,
    MIN_RELEVANCE_SCORE,
    BusinessEnhancement,
    BusinessProfile,
    CandidateCompetitor,
    CompetitorDiscoveryResult,
    ContentAnalysis,
    ContentStructure,
    DiscoveryMode,
    Heading,
    Offering,
    PageType,
    SatellitePage,
    SerpSighting,
    StructuredData,
    ValidatedCompetitor,
)
from .deadline import Deadline
from .fetcher import FetchedPage, PageFetcher
from .structured_data import extract_structured_data
from .business_profiler import extract_business_profile
from .content_analyzer import analyze_content
from .page_crawler import PageCrawler
from .context_enhancer import BusinessContextEnhancer
from .offering_extractor import OfferingExtractor
from .query_generator import QueryGenerator

__all__ = [
    # Caps
    "MAX_COMPETITORS",
    "MAX_HEADINGS",
    "MAX_OFFERINGS",
    "MAX_QUERIES",
    "MAX_TOPICS",
    "MIN_RELEVANCE_SCORE",
    # Models
    "BusinessEnhancement",
    "BusinessProfile",
    "CandidateCompetitor",
    "CompetitorDiscoveryResult",
    "ContentAnalysis",
    "ContentStructure",
    "DiscoveryMode",
    "Heading",
    "Offering",
    "PageType",
    "SatellitePage",
    "SerpSighting",
    "StructuredData",
    "ValidatedCompetitor",
    # Stages
    "Deadline",
    "FetchedPage",
    "PageFetcher",
    "extract_structured_data",
    "extract_business_profile",
    "analyze_content",
    "PageCrawler",
    "BusinessContextEnhancer",
    "OfferingExtractor",
    "QueryGenerator",
]
