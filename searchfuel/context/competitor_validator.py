"""
Competitor Validator

SERP results mix real competitors with publishers, suppliers and
customers. Each top candidate's homepage is fetched and shown to the
model together with the business's own offerings; only candidates
judged to be direct competitors with relevance >= 40 survive.

Candidates are validated concurrently. A homepage that cannot be
fetched drops the candidate; an unusable model reply counts as
"not a competitor".
"""

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from searchfuel.errors import CompetitorDiscoveryError
from searchfuel.scoring.competitor_scoring import select_for_validation
from searchfuel.utils.html_text import extract_text, find_meta, find_title

from .business_profiler import clean_company_name
from .deadline import Deadline
from .fetcher import PageFetcher
from .models import (
    MAX_VALIDATION_CANDIDATES,
    BusinessProfile,
    CandidateCompetitor,
    Offering,
    ValidatedCompetitor,
)

if TYPE_CHECKING:
    from searchfuel.analyzer.client import ClaudeClient

logger = logging.getLogger(__name__)


# =============================================================================
# SYSTEM PROMPTS
# =============================================================================


VALIDATION_SYSTEM_PROMPT = """You are an expert competitive analyst. You decide whether a website belongs to a DIRECT competitor of a target business.

A direct competitor sells the same kind of product or service to the same kind of customer, so a buyer would choose between them.
NOT direct competitors: review sites, directories, blogs and media, agencies writing about the topic, suppliers, customers, and companies in a different market.

Respond with a single JSON object and nothing else."""


VALIDATION_USER_PROMPT = """Is this website a direct competitor of the target business?

## Target Business:
- Company: {company_name}
- Industry: {industry}
- Business type: {business_type}
- Target audience: {target_audience}
- Description: {description}
- Services: {services}
- Products: {products}

## Candidate Website: {domain}
- Title: {title}
- Meta description: {meta_description}
- Search snippet: {snippet}
- Page preview:
{preview}

---

Return a JSON object with this EXACT structure:
```json
{{
    "isCompetitor": true,
    "relevanceScore": 0,
    "reason": "One sentence explaining the judgement"
}}
```

relevanceScore is 0-100: how directly this company competes for the same customers."""


PREVIEW_CHARS = 500


def parse_verdict(data: Any) -> Dict[str, Any]:
    """
    Normalize a validation reply.

    Anything missing or malformed defaults to not-a-competitor with score 0.
    """
    if not isinstance(data, dict):
        return {"is_competitor": False, "relevance_score": 0, "reason": "No usable validation response"}

    is_competitor = data.get("isCompetitor") is True

    raw_score = data.get("relevanceScore")
    try:
        score = int(float(raw_score)) if not isinstance(raw_score, bool) else 0
    except (TypeError, ValueError):
        score = 0
    score = max(0, min(100, score))

    reason = data.get("reason")
    return {
        "is_competitor": is_competitor,
        "relevance_score": score,
        "reason": reason.strip() if isinstance(reason, str) else "",
    }


class CompetitorValidator:
    """Judges SERP candidates with one homepage fetch and one inference call each."""

    def __init__(
        self,
        claude_client: Optional["ClaudeClient"],
        fetcher: PageFetcher,
        fetch_timeout: float = 3.0,
        max_candidates: int = MAX_VALIDATION_CANDIDATES,
    ):
        self.claude_client = claude_client
        self.fetcher = fetcher
        self.fetch_timeout = fetch_timeout
        self.max_candidates = max_candidates

    async def validate(
        self,
        candidates: List[CandidateCompetitor],
        profile: BusinessProfile,
        offering: Optional[Offering] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[ValidatedCompetitor]:
        """
        Validate the top candidates concurrently.

        Args:
            candidates: Merged SERP candidates
            profile: Business profile (enhanced where available)
            offering: The business's own offerings
            deadline: Run deadline; unfinished validations are dropped

        Returns:
            Survivors only (is_competitor and relevance_score >= 40)
        """
        if not self.claude_client:
            logger.warning("No Claude client - competitor validation unavailable, no competitors returned")
            return []

        selected = select_for_validation(candidates, limit=self.max_candidates)
        if not selected:
            return []

        deadline = deadline or Deadline()
        offering = offering or Offering()

        results = await deadline.gather_partial([
            self._validate_one(candidate, profile, offering, deadline)
            for candidate in selected
        ])
        judged = [r for r in results if r is not None]
        survivors = [c for c in judged if c.survives]

        logger.info(
            f"Validation: {len(judged)}/{len(selected)} judged, {len(survivors)} direct competitors"
        )
        return survivors

    async def _validate_one(
        self,
        candidate: CandidateCompetitor,
        profile: BusinessProfile,
        offering: Offering,
        deadline: Deadline,
    ) -> Optional[ValidatedCompetitor]:
        homepage = f"https://{candidate.domain}"
        try:
            page = await self.fetcher.fetch(homepage, timeout=deadline.clamp(self.fetch_timeout))
        except CompetitorDiscoveryError as e:
            logger.debug(f"Dropping candidate {candidate.domain}: {e}")
            return None

        title = find_title(page.html)
        prompt = VALIDATION_USER_PROMPT.format(
            company_name=profile.company_name,
            industry=profile.industry or "Unknown",
            business_type=profile.business_type or "Unknown",
            target_audience=profile.target_audience or "Unknown",
            description=profile.description or "Not available",
            services=", ".join(offering.services) or "Unknown",
            products=", ".join(offering.products) or "Unknown",
            domain=candidate.domain,
            title=title or "None",
            meta_description=find_meta(page.html, "description") or find_meta(page.html, "og:description") or "None",
            snippet=candidate.snippet or "None",
            preview=extract_text(page.html, limit=PREVIEW_CHARS) or "None",
        )

        data = await self.claude_client.analyze_json(
            prompt, system=VALIDATION_SYSTEM_PROMPT, max_tokens=300
        )
        verdict = parse_verdict(data)

        logger.debug(
            f"Validated {candidate.domain}: competitor={verdict['is_competitor']}, "
            f"relevance={verdict['relevance_score']}"
        )

        return ValidatedCompetitor.from_candidate(
            candidate,
            is_competitor=verdict["is_competitor"],
            relevance_score=verdict["relevance_score"],
            validation_reason=verdict["reason"],
            display_name=clean_company_name(title) or None,
        )
