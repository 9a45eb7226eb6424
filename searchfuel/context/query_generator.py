"""
Query Generator

Turns offerings into search queries whose results list direct
competitors: "<offering> alternatives", "<offering> competitors" and
the like. AI-written when possible, template-based otherwise.
"""

import logging
from typing import Any, List, Optional, TYPE_CHECKING

from .deadline import Deadline
from .models import MAX_QUERIES, BusinessEnhancement, BusinessProfile, Offering

if TYPE_CHECKING:
    from searchfuel.analyzer.client import ClaudeClient

logger = logging.getLogger(__name__)


# =============================================================================
# SYSTEM PROMPTS
# =============================================================================


QUERY_SYSTEM_PROMPT = """You are an SEO strategist who finds a company's direct competitors through Google searches.

Write searches whose top results are other companies selling the same thing, not review sites or news.
Prefer specific offering-based searches ("invoice automation software alternatives") over brand or category searches.
Respond with a single JSON object and nothing else."""


QUERY_USER_PROMPT = """Write 5-7 Google searches that surface direct competitors of this company.

## Company: {company_name}
## Industry: {industry}
## Description: {description}
## Business type: {business_type}
## Target audience: {target_audience}
## Value proposition: {value_proposition}
## Services: {services}
## Products: {products}
## Language: {language}

Write the searches in the company's language.

---

Return a JSON object with this EXACT structure:
```json
{{
    "queries": ["offering alternatives", "offering competitors"]
}}
```"""


MIN_FALLBACK_QUERIES = 3


def clean_queries(values: Any, limit: int = MAX_QUERIES) -> List[str]:
    """Strip, collapse whitespace, drop duplicates (case-insensitive), cap."""
    if not isinstance(values, list):
        return []
    queries: List[str] = []
    seen = set()
    for value in values:
        if not isinstance(value, str):
            continue
        query = " ".join(value.split())
        if not query or query.lower() in seen:
            continue
        seen.add(query.lower())
        queries.append(query)
        if len(queries) >= limit:
            break
    return queries


def heuristic_queries(profile: BusinessProfile, offering: Optional[Offering] = None) -> List[str]:
    """Template queries from offerings, then company name, then industry."""
    offering = offering or Offering()
    queries: List[str] = []

    for service in offering.services[:3]:
        queries.append(f"{service} alternatives")
        queries.append(f"{service} competitors")
    for product in offering.products[:2]:
        queries.append(f"{product} alternatives")

    queries.append(f"{profile.company_name} competitors")
    queries.append(f"alternatives to {profile.company_name}")

    if len(queries) < MIN_FALLBACK_QUERIES and profile.industry:
        queries.append(" ".join(filter(None, [
            profile.industry,
            profile.business_type,
            "companies",
        ])))

    return clean_queries(queries)


def basic_queries(profile: BusinessProfile) -> List[str]:
    """The single query used in basic discovery mode."""
    return [f"{profile.company_name} competitors"]


class QueryGenerator:
    """Generates competitor-discovery search queries."""

    def __init__(self, claude_client: Optional["ClaudeClient"] = None):
        self.claude_client = claude_client

    async def generate(
        self,
        profile: BusinessProfile,
        enhancement: Optional[BusinessEnhancement] = None,
        offering: Optional[Offering] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[str]:
        """
        Generate up to MAX_QUERIES search queries.

        Returns:
            Non-empty list of distinct queries
        """
        enriched = profile.with_enhancements(enhancement)
        offering = offering or Offering()

        if self.claude_client:
            prompt = QUERY_USER_PROMPT.format(
                company_name=enriched.company_name,
                industry=enriched.industry or "Unknown",
                description=enriched.description or "Not available",
                business_type=enriched.business_type or "Unknown",
                target_audience=enriched.target_audience or "Unknown",
                value_proposition=enriched.value_proposition or "Unknown",
                services=", ".join(offering.services) or "Unknown",
                products=", ".join(offering.products) or "Unknown",
                language=enriched.language,
            )
            deadline = deadline or Deadline()
            data = await deadline.run(
                self.claude_client.analyze_json(prompt, system=QUERY_SYSTEM_PROMPT, max_tokens=400)
            )
            raw = data.get("queries") if isinstance(data, dict) else data
            queries = clean_queries(raw)
            if queries:
                logger.info(f"Generated {len(queries)} queries (AI): {queries}")
                return queries
            logger.warning("Query generation unavailable - using templates")

        queries = heuristic_queries(enriched, offering)
        logger.info(f"Generated {len(queries)} queries (templates): {queries}")
        return queries
