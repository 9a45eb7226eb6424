"""
Pytest Configuration and Shared Fixtures

Provides HTML pages, a routed httpx MockTransport standing in for the
web and DataForSEO, and a scripted Claude client.
"""

import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from searchfuel.collector.client import DataForSEOClient
from searchfuel.context.competitor_validator import VALIDATION_SYSTEM_PROMPT
from searchfuel.context.context_enhancer import ENHANCER_SYSTEM_PROMPT
from searchfuel.context.fetcher import PageFetcher
from searchfuel.context.models import BusinessProfile
from searchfuel.context.offering_extractor import OFFERING_SYSTEM_PROMPT
from searchfuel.context.query_generator import QUERY_SYSTEM_PROMPT
from searchfuel.utils import url_guard
from searchfuel.utils.config import Settings


# ============================================================================
# HTML Fixtures
# ============================================================================

SAAS_HOMEPAGE = """<!DOCTYPE html>
<html lang="en-US">
<head>
    <title>Acme CRM &mdash; Home</title>
    <meta name="description" content="Acme CRM is customer relationship management software for small sales teams.">
    <meta property="og:description" content="The simple CRM software for small sales teams &amp; founders.">
    <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "WebSite", "name": "Acme CRM", "url": "https://acme-crm.com"}
    </script>
    <style>h2 { color: red; }</style>
</head>
<body>
    <nav>
        <a href="/about">About us</a>
        <a href="/product/pipeline">Pipeline</a>
        <a href="https://twitter.com/acmecrm">Twitter</a>
        <a href="/blog/">Blog</a>
        <a href="#top">Top</a>
    </nav>
    <main>
        <h1>Close more deals with Acme CRM</h1>
        <h2>Pipeline management</h2>
        <p>See every deal in your pipeline and know exactly what to do next.</p>
        <h2>Email tracking</h2>
        <p>Know when prospects open your emails and follow up at the right moment.</p>
        <h3>Pipeline management</h3>
        <h2>Reporting</h2>
        <p>Forecast revenue with reports your whole team understands.</p>
    </main>
    <script>var template = "<h2>Not a heading</h2>";</script>
</body>
</html>
"""

ABOUT_PAGE = """<html><head><title>About Acme CRM</title></head>
<body><main><h1>About us</h1>
<p>Acme builds CRM software for sales teams of 2 to 50 people in agencies and consultancies.</p>
</main></body></html>
"""

MINIMAL_PAGE = """<html><head><title>Welcome</title></head><body><div>Hi</div></body></html>"""

MALFORMED_JSON_LD_PAGE = """<html lang="sv">
<head>
    <title>Bygg &amp; Co | Startsida</title>
    <script type="application/ld+json">{"@type": "Organization", "name": "Broken" </script>
    <script type='application/ld+json'>
    {"@context": "https://schema.org", "@graph": [
        {"@type": ["Organization", "LocalBusiness"], "name": "Bygg & Co AB",
         "description": "Byggfirma i Stockholm som renoverar kök och badrum."},
        {"@type": "WebSite", "name": "Bygg & Co"}
    ]}
    </script>
</head>
<body><h1>Bygg &amp; Co</h1></body>
</html>
"""


def competitor_page(title: str, description: str) -> str:
    return (
        f"<html><head><title>{title}</title>"
        f'<meta name="description" content="{description}"></head>'
        f"<body><h1>{title}</h1><p>{description}</p></body></html>"
    )


# ============================================================================
# SERP Fixtures
# ============================================================================

def organic_item(rank: int, domain: str, url: str, title: str, description: str = "") -> Dict[str, Any]:
    return {
        "type": "organic",
        "rank_absolute": rank,
        "domain": domain,
        "url": url,
        "title": title,
        "description": description,
    }


DEFAULT_SERP_ITEMS = [
    organic_item(1, "www.pipedrive.com", "https://www.pipedrive.com/en", "Pipedrive | Sales CRM", "Sales CRM for small businesses."),
    organic_item(2, "www.g2.com", "https://www.g2.com/categories/crm", "Best CRM Software", "Compare CRM tools."),
    organic_item(3, "acme-crm.com", "https://acme-crm.com/", "Acme CRM", "Our own site."),
    organic_item(4, "www.hubspot.com", "https://www.hubspot.com/products/crm", "HubSpot CRM - Free forever", "Free CRM software."),
    organic_item(5, "salesblog.io", "https://salesblog.io/best-crms", "The 10 best CRMs of the year", "We reviewed 10 CRMs."),
    organic_item(6, "acmereviews.net", "https://acmereviews.net/acme", "Acme reviews", "Reviews of Acme."),
    {"type": "people_also_ask", "rank_absolute": 7},
]


def serp_response(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "status_code": 20000,
        "status_message": "Ok.",
        "tasks": [{
            "status_code": 20000,
            "status_message": "Ok.",
            "result": [{"keyword": "test", "items": items}],
        }],
    }


# ============================================================================
# Routed MockTransport
# ============================================================================

class FakeWeb:
    """
    Routes httpx requests to canned responses.

    pages maps "host/path" (host without www.) to HTML; anything else is 404.
    SERP requests get serp_items (or serp_items_by_keyword[keyword]).
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        serp_items: Optional[List[Dict[str, Any]]] = None,
        serp_items_by_keyword: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        errors: Optional[Dict[str, Callable[[httpx.Request], httpx.Response]]] = None,
    ):
        self.pages = pages or {}
        self.serp_items = serp_items if serp_items is not None else DEFAULT_SERP_ITEMS
        self.serp_items_by_keyword = serp_items_by_keyword or {}
        self.errors = errors or {}
        self.requests: List[httpx.Request] = []
        self.serp_keywords: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host.startswith("www."):
            host = host[4:]

        if host == "api.dataforseo.com":
            keyword = json.loads(request.content)[0]["keyword"]
            self.serp_keywords.append(keyword)
            items = self.serp_items_by_keyword.get(keyword, self.serp_items)
            return httpx.Response(200, json=serp_response(items))

        key = f"{host}{request.url.path.rstrip('/') or '/'}"
        if key in self.errors:
            return self.errors[key](request)
        if key in self.pages:
            return httpx.Response(200, text=self.pages[key], headers={"Content-Type": "text/html"})
        return httpx.Response(404, text="Not found")

    def fetched_paths(self, host: str) -> List[str]:
        return [r.url.path for r in self.requests if r.url.host.replace("www.", "") == host]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


PUBLIC_TEST_ADDRESS = "93.184.216.34"


@pytest.fixture(autouse=True)
def public_dns(monkeypatch):
    """Every hostname resolves to a public address; no real DNS in tests."""
    async def resolve(hostname):
        return [PUBLIC_TEST_ADDRESS]

    monkeypatch.setattr(url_guard, "resolve_addresses", resolve)


@pytest.fixture
def fake_web() -> FakeWeb:
    """Acme CRM site plus three candidate competitor homepages."""
    return FakeWeb(pages={
        "acme-crm.com/": SAAS_HOMEPAGE,
        "acme-crm.com/about": ABOUT_PAGE,
        "pipedrive.com/": competitor_page("Pipedrive | Sales CRM", "The CRM built for small sales teams."),
        "hubspot.com/": competitor_page("HubSpot | Software & Tools", "Free CRM, marketing and sales software."),
        "salesblog.io/": competitor_page("Sales Blog", "Tips and reviews for salespeople."),
    })


@pytest.fixture
def fetcher(fake_web) -> PageFetcher:
    return PageFetcher(transport=fake_web.transport)


@pytest.fixture
def dataforseo_client(fake_web) -> DataForSEOClient:
    return DataForSEOClient(login="test@example.com", password="secret", transport=fake_web.transport)


# ============================================================================
# Claude Fixtures
# ============================================================================

VALIDATION_VERDICTS = {
    "pipedrive.com": {"isCompetitor": True, "relevanceScore": 88, "reason": "CRM for small sales teams"},
    "hubspot.com": {"isCompetitor": True, "relevanceScore": 72, "reason": "CRM with a free tier"},
    "salesblog.io": {"isCompetitor": False, "relevanceScore": 10, "reason": "Review blog"},
}


def scripted_claude(
    enhancement: Optional[Dict[str, Any]] = None,
    offering: Optional[Dict[str, Any]] = None,
    queries: Optional[Any] = None,
    verdicts: Optional[Dict[str, Any]] = None,
) -> MagicMock:
    """A ClaudeClient stand-in answering by system prompt."""
    enhancement = enhancement if enhancement is not None else {
        "enhanced_industry": "CRM software",
        "enhanced_description": "Acme CRM sells pipeline-focused CRM software to small B2B sales teams.",
        "target_audience": "Small B2B sales teams",
        "business_type": "B2B SaaS",
        "value_proposition": "The simplest way to close more deals",
    }
    offering = offering if offering is not None else {
        "services": ["sales pipeline management software", "email tracking for sales"],
        "products": ["Acme CRM mobile app"],
    }
    queries = queries if queries is not None else {
        "queries": ["small business crm alternatives", "pipeline crm software", "sales crm competitors"],
    }
    verdicts = verdicts if verdicts is not None else VALIDATION_VERDICTS

    async def analyze_json(prompt: str, system: Optional[str] = None, **kwargs):
        if system == ENHANCER_SYSTEM_PROMPT:
            return enhancement
        if system == OFFERING_SYSTEM_PROMPT:
            return offering
        if system == QUERY_SYSTEM_PROMPT:
            return queries
        if system == VALIDATION_SYSTEM_PROMPT:
            for domain, verdict in verdicts.items():
                if f"## Candidate Website: {domain}\n" in prompt:
                    return verdict
            return None
        return None

    client = MagicMock()
    client.analyze_json = AsyncMock(side_effect=analyze_json)
    client.get_usage_summary = MagicMock(return_value={"total_calls": 0})
    return client


@pytest.fixture
def mock_claude() -> MagicMock:
    return scripted_claude()


# ============================================================================
# Profile / Settings Fixtures
# ============================================================================

@pytest.fixture
def acme_profile() -> BusinessProfile:
    return BusinessProfile(
        company_name="Acme CRM",
        description="Acme CRM is customer relationship management software for small sales teams.",
        industry="SaaS",
        language="en",
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        DATAFORSEO_LOGIN=None,
        DATAFORSEO_PASSWORD=None,
        ANTHROPIC_API_KEY=None,
        COMPETITOR_DISCOVERY_MODE="validated",
        PIPELINE_DEADLINE=None,
    )
