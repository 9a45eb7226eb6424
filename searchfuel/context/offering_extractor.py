"""
Offering Extractor

Works out the concrete services and products a business sells. These
phrases drive both query generation and competitor validation, so
vague category words are worth less than "invoice automation software".

AI first; when the model is unavailable or returns nothing usable, a
keyword scan of the description takes over. Never fails.
"""

import logging
import re
from typing import Any, List, Optional, TYPE_CHECKING

from .deadline import Deadline
from .models import (
    MAX_OFFERINGS,
    BusinessEnhancement,
    BusinessProfile,
    ContentAnalysis,
    Offering,
)

if TYPE_CHECKING:
    from searchfuel.analyzer.client import ClaudeClient

logger = logging.getLogger(__name__)


# =============================================================================
# SYSTEM PROMPTS
# =============================================================================


OFFERING_SYSTEM_PROMPT = """You are an expert at identifying what companies actually sell.

List concrete offerings a customer could search for and buy, e.g. "payroll software for restaurants" or "commercial roof repair".
Never list generic categories like "solutions", "services" or "technology" on their own.
Respond with a single JSON object and nothing else."""


OFFERING_USER_PROMPT = """Identify the services and products this company sells.

## Company: {company_name}
## Industry: {industry}
## Business type: {business_type}
## Description:
{description}

## Page topics:
{topics}

## Services page excerpt:
{services_text}

---

Return a JSON object with this EXACT structure (at most {limit} items per list):
```json
{{
    "services": ["concrete service 1", "concrete service 2"],
    "products": ["concrete product 1"]
}}
```"""


# =============================================================================
# HEURISTIC FALLBACK
# =============================================================================


OFFERING_KEYWORD_RE = re.compile(
    r"^(software|platforms?|tools?|services?|solutions?|apps?|systems?)$", re.IGNORECASE
)
_WORD_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9&+'-]*")
MAX_HEURISTIC_OFFERINGS = 5


def heuristic_offerings(text: str, limit: int = MAX_HEURISTIC_OFFERINGS) -> List[str]:
    """
    Three-word phrases ending at an offering keyword.

    "Acme is an invoice automation platform for agencies" -> ["invoice automation platform"]
    """
    words = _WORD_RE.findall(text or "")
    phrases: List[str] = []
    for i, word in enumerate(words):
        if not OFFERING_KEYWORD_RE.match(word):
            continue
        phrase = " ".join(words[max(0, i - 2):i + 1]).lower()
        if phrase not in phrases:
            phrases.append(phrase)
        if len(phrases) >= limit:
            break
    return phrases


def clean_offering_list(values: Any, limit: int = MAX_OFFERINGS) -> List[str]:
    """Strings only, stripped, deduplicated case-insensitively, capped."""
    if not isinstance(values, list):
        return []
    cleaned: List[str] = []
    seen = set()
    for value in values:
        if not isinstance(value, str):
            continue
        value = " ".join(value.split())
        if not value or value.lower() in seen:
            continue
        seen.add(value.lower())
        cleaned.append(value)
        if len(cleaned) >= limit:
            break
    return cleaned


# =============================================================================
# EXTRACTOR
# =============================================================================


class OfferingExtractor:
    """Extracts services and products, with a heuristic fallback."""

    def __init__(self, claude_client: Optional["ClaudeClient"] = None):
        self.claude_client = claude_client

    async def extract(
        self,
        profile: BusinessProfile,
        enhancement: Optional[BusinessEnhancement] = None,
        content: Optional[ContentAnalysis] = None,
        services_text: str = "",
        deadline: Optional[Deadline] = None,
    ) -> Offering:
        """
        Extract the business's offerings.

        Returns:
            Offering with up to MAX_OFFERINGS services and products
        """
        offering = await self._extract_with_ai(profile, enhancement, content, services_text, deadline)
        if offering and not offering.is_empty:
            logger.info(
                f"Offerings (AI): {len(offering.services)} services, {len(offering.products)} products"
            )
            return offering

        description = " ".join(filter(None, [
            enhancement.description if enhancement else None,
            profile.description,
        ]))
        offering = Offering(services=heuristic_offerings(description))
        logger.info(f"Offerings (heuristic): {offering.services}")
        return offering

    async def _extract_with_ai(
        self,
        profile: BusinessProfile,
        enhancement: Optional[BusinessEnhancement],
        content: Optional[ContentAnalysis],
        services_text: str,
        deadline: Optional[Deadline],
    ) -> Optional[Offering]:
        if not self.claude_client:
            return None

        enriched = profile.with_enhancements(enhancement)
        prompt = OFFERING_USER_PROMPT.format(
            company_name=enriched.company_name,
            industry=enriched.industry or "Unknown",
            business_type=enriched.business_type or "Unknown",
            description=enriched.description or "Not available",
            topics=", ".join(content.topics) if content and content.topics else "None",
            services_text=(services_text or "Not available")[:2000],
            limit=MAX_OFFERINGS,
        )

        deadline = deadline or Deadline()
        data = await deadline.run(
            self.claude_client.analyze_json(prompt, system=OFFERING_SYSTEM_PROMPT, max_tokens=600)
        )
        if not isinstance(data, dict):
            logger.warning("Offering extraction unavailable - falling back to description keywords")
            return None

        return Offering(
            services=clean_offering_list(data.get("services")),
            products=clean_offering_list(data.get("products")),
        )
