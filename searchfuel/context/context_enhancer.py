"""
Business Context Enhancer

One AI call that refines the heuristic profile: a more precise industry,
target audience, business type and value proposition (plus a rewritten
description in validated mode). Returns None whenever the model is
unavailable or its reply is unusable; the pipeline then carries on with
the heuristic profile.
"""

import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

from .deadline import Deadline
from .models import BusinessEnhancement, BusinessProfile, ContentAnalysis, StructuredData

if TYPE_CHECKING:
    from searchfuel.analyzer.client import ClaudeClient

logger = logging.getLogger(__name__)


# =============================================================================
# SYSTEM PROMPTS
# =============================================================================


ENHANCER_SYSTEM_PROMPT = """You are an expert business analyst. Given a company's website signals, you describe precisely what the business does and who it serves.

Be specific and evidence-based. "Project management software for construction firms" is useful; "Technology" is not.
Only report what the content supports. Respond with a single JSON object and nothing else."""


ENHANCER_USER_PROMPT = """Refine the business context for this company.

## Company: {company_name}
## Detected industry: {industry}
## Description:
{description}

## Main headings:
{headings}

## Topics:
{topics}

## Structured data:
{structured_data}

## About page excerpt:
{about_text}

---

Return a JSON object with this EXACT structure:
```json
{schema}
```"""


REFINED_SCHEMA = """{
    "enhanced_industry": "Specific industry or niche",
    "enhanced_description": "Two sentences on what the company sells and to whom",
    "target_audience": "Primary customer type",
    "business_type": "B2B SaaS|B2C ecommerce|agency|local service|marketplace|...",
    "value_proposition": "One sentence describing their core value"
}"""

BASIC_SCHEMA = """{
    "enhanced_industry": "Specific industry or niche",
    "target_audience": "Primary customer type",
    "business_type": "B2B SaaS|B2C ecommerce|agency|local service|marketplace|...",
    "value_proposition": "One sentence describing their core value"
}"""

# Headings sent with the enhancement prompt
MAX_PROMPT_HEADINGS = 5

_PLACEHOLDERS = {"", "unknown", "n/a", "none", "null"}


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return None if value.lower() in _PLACEHOLDERS else value


def _structured_data_summary(structured_data: Optional[StructuredData]) -> str:
    if not structured_data or not structured_data.found:
        return "None"
    parts = []
    for label, node in (
        ("Organization", structured_data.organization),
        ("Business", structured_data.business),
        ("WebSite", structured_data.website),
    ):
        if node:
            parts.append(f"- {label}: {node.get('name', '')} {node.get('description', '')}".strip())
    return "\n".join(parts)


class BusinessContextEnhancer:
    """
    Refines a BusinessProfile with one inference call.

    refined=True asks for a rewritten description as well; the basic
    pipeline mode uses the shorter schema without it.
    """

    def __init__(self, claude_client: Optional["ClaudeClient"] = None, refined: bool = True):
        self.claude_client = claude_client
        self.refined = refined

    async def enhance(
        self,
        profile: BusinessProfile,
        content: Optional[ContentAnalysis] = None,
        structured_data: Optional[StructuredData] = None,
        about_text: str = "",
        deadline: Optional[Deadline] = None,
    ) -> Optional[BusinessEnhancement]:
        """
        Ask the model for profile refinements.

        Returns:
            BusinessEnhancement, or None when AI is unavailable or the reply is unusable
        """
        if not self.claude_client:
            logger.info("No Claude client - skipping business context enhancement")
            return None

        content = content or ContentAnalysis()
        prompt = ENHANCER_USER_PROMPT.format(
            company_name=profile.company_name,
            industry=profile.industry or "Unknown",
            description=profile.description or "Not available",
            headings="\n".join(f"- H{h.level}: {h.text}" for h in content.headings[:MAX_PROMPT_HEADINGS]) or "None",
            topics=", ".join(content.topics) or "None",
            structured_data=_structured_data_summary(structured_data),
            about_text=(about_text or "Not available")[:2000],
            schema=REFINED_SCHEMA if self.refined else BASIC_SCHEMA,
        )

        deadline = deadline or Deadline()
        data = await deadline.run(
            self.claude_client.analyze_json(prompt, system=ENHANCER_SYSTEM_PROMPT, max_tokens=800)
        )
        if not isinstance(data, dict):
            logger.warning("Business context enhancement unavailable - using heuristic profile")
            return None

        return self._to_enhancement(data)

    def _to_enhancement(self, data: Dict[str, Any]) -> Optional[BusinessEnhancement]:
        enhancement = BusinessEnhancement(
            industry=_clean(data.get("enhanced_industry")),
            description=_clean(data.get("enhanced_description")) if self.refined else None,
            target_audience=_clean(data.get("target_audience")),
            business_type=_clean(data.get("business_type")),
            value_proposition=_clean(data.get("value_proposition")),
        )

        if not any((
            enhancement.industry,
            enhancement.description,
            enhancement.target_audience,
            enhancement.business_type,
            enhancement.value_proposition,
        )):
            logger.warning("Business context enhancement returned no usable fields")
            return None

        logger.info(
            f"Enhanced context: industry='{enhancement.industry}', "
            f"business_type='{enhancement.business_type}'"
        )
        return enhancement
