"""
Search Aggregator

Runs the competitor queries against Google organic results (DataForSEO)
concurrently and folds every surviving result into one candidate per
domain. A failed or slow query just contributes nothing.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set, TYPE_CHECKING

from searchfuel.collector.client import location_for_language
from searchfuel.scoring.competitor_scoring import merge_candidates, score_sighting
from searchfuel.utils.domain_filter import get_exclusion_reason, normalize_domain

from .business_profiler import clean_company_name
from .deadline import Deadline
from .models import MAX_EXECUTED_QUERIES, BusinessProfile, CandidateCompetitor, SerpSighting

if TYPE_CHECKING:
    from searchfuel.collector.client import DataForSEOClient

logger = logging.getLogger(__name__)


# Words too generic to identify a company by
NAME_STOPWORDS = {
    "the", "and", "inc", "ltd", "llc", "gmbh", "group", "company", "corp",
}


def significant_name_words(company_name: str) -> Set[str]:
    """Lowercase words of the company name longer than 2 characters."""
    words = re.findall(r"[a-z0-9]+", (company_name or "").lower())
    return {w for w in words if len(w) > 2 and w not in NAME_STOPWORDS}


def is_self_match(domain: str, own_domain: str, name_words: Set[str]) -> bool:
    """True if the domain is the business itself (same site, subdomain, or its name)."""
    own = normalize_domain(own_domain)
    if own and (domain == own or domain.endswith("." + own)):
        return True
    return any(word in domain for word in name_words)


class SearchAggregator:
    """
    Fans out SERP queries and merges the results into candidates.

    Usage:
        aggregator = SearchAggregator(dataforseo_client)
        candidates = await aggregator.aggregate(queries, profile, "acme.com")
    """

    def __init__(
        self,
        dataforseo_client: Optional["DataForSEOClient"] = None,
        location_code: int = 2840,
        depth: int = 50,
        timeout: float = 15.0,
        max_queries: int = MAX_EXECUTED_QUERIES,
    ):
        self.client = dataforseo_client
        self.location_code = location_code
        self.depth = depth
        self.timeout = timeout
        self.max_queries = max_queries

    async def aggregate(
        self,
        queries: List[str],
        profile: BusinessProfile,
        own_domain: str,
        deadline: Optional[Deadline] = None,
    ) -> List[CandidateCompetitor]:
        """
        Run up to max_queries searches concurrently and merge the results.

        Args:
            queries: Search queries (only the first max_queries are executed)
            profile: Business profile (industry bonus, self-match by name)
            own_domain: The business's own domain, never a candidate
            deadline: Run deadline; unfinished queries are dropped

        Returns:
            Merged candidates, best SERP score first
        """
        if not self.client:
            logger.warning("No DataForSEO client - skipping SERP competitor search")
            return []

        executed = queries[:self.max_queries]
        if not executed:
            return []

        deadline = deadline or Deadline()
        location_code = location_for_language(profile.language, default=self.location_code)
        name_words = significant_name_words(profile.company_name)

        results = await deadline.gather_partial([
            self._run_query(index, query, profile, own_domain, name_words, location_code, deadline)
            for index, query in enumerate(executed)
        ])

        sightings: List[SerpSighting] = []
        answered = 0
        for query_sightings in results:
            if query_sightings is not None:
                answered += 1
                sightings.extend(query_sightings)

        candidates = merge_candidates(sightings)
        logger.info(
            f"SERP search: {answered}/{len(executed)} queries answered, "
            f"{len(sightings)} sightings, {len(candidates)} candidates"
        )
        return candidates

    async def _run_query(
        self,
        index: int,
        query: str,
        profile: BusinessProfile,
        own_domain: str,
        name_words: Set[str],
        location_code: int,
        deadline: Deadline,
    ) -> List[SerpSighting]:
        items = await self.client.get_organic_items(
            query,
            location_code=location_code,
            language_code=profile.language or "en",
            depth=self.depth,
            timeout=deadline.clamp(self.timeout),
        )
        return self.sightings_from_items(index, items, profile, own_domain, name_words)

    def sightings_from_items(
        self,
        query_index: int,
        items: List[Dict[str, Any]],
        profile: BusinessProfile,
        own_domain: str,
        name_words: Optional[Set[str]] = None,
    ) -> List[SerpSighting]:
        """Filter and score one query's organic items (best sighting per domain)."""
        if name_words is None:
            name_words = significant_name_words(profile.company_name)

        best: Dict[str, SerpSighting] = {}
        for item in items:
            domain = normalize_domain(item.get("domain") or item.get("url"))
            if not domain:
                continue

            reason = get_exclusion_reason(domain)
            if reason:
                logger.debug(f"Excluded {domain}: {reason}")
                continue
            if is_self_match(domain, own_domain, name_words):
                logger.debug(f"Excluded {domain}: matches the business itself")
                continue

            title = item.get("title") or ""
            sighting = SerpSighting(
                query_index=query_index,
                domain=domain,
                url=item.get("url") or f"https://{domain}",
                title=clean_company_name(title) or title,
                snippet=item.get("description") or "",
                score=score_sighting(item.get("rank_absolute"), title, domain, profile.industry),
            )

            current = best.get(domain)
            if current is None or sighting.score > current.score:
                best[domain] = sighting

        return list(best.values())
