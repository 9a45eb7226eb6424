"""
Structured Data Extractor

Pulls schema.org Organization / LocalBusiness / WebSite objects out of
JSON-LD script blocks. Each block is parsed on its own, so one broken
block never hides the others.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, Set

from .models import StructuredData

logger = logging.getLogger(__name__)


JSON_LD_PATTERN = re.compile(
    r'<script[^>]*type=["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    re.IGNORECASE | re.DOTALL,
)

ORGANIZATION_TYPES = {"Organization", "Corporation", "LocalBusiness"}
BUSINESS_TYPES = {"LocalBusiness", "ProfessionalService"}
WEBSITE_TYPES = {"WebSite"}


def _iter_nodes(data: Any) -> Iterator[Dict[str, Any]]:
    """Yield every typed object in a JSON-LD document (arrays and @graph flattened)."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_nodes(item)
    elif isinstance(data, dict):
        if "@type" in data:
            yield data
        if "@graph" in data:
            yield from _iter_nodes(data["@graph"])


def _schema_types(node: Dict[str, Any]) -> Set[str]:
    raw = node.get("@type")
    values = raw if isinstance(raw, list) else [raw]
    # "schema:Organization" and "https://schema.org/Organization" both count
    return {
        value.rsplit("/", 1)[-1].rsplit(":", 1)[-1]
        for value in values
        if isinstance(value, str)
    }


def extract_structured_data(html: str) -> StructuredData:
    """
    Extract schema.org objects from every JSON-LD block in a page.

    Later blocks overwrite earlier ones of the same kind. A LocalBusiness
    fills both the organization and the business slot.

    Args:
        html: Raw page HTML

    Returns:
        StructuredData (all slots None when nothing usable was found)
    """
    result = StructuredData()
    if not html:
        return result

    for index, match in enumerate(JSON_LD_PATTERN.finditer(html)):
        raw = match.group(1).strip()
        if not raw:
            continue

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block #{index}: {e}")
            continue

        for node in _iter_nodes(data):
            types = _schema_types(node)
            if types & ORGANIZATION_TYPES:
                result.organization = node
            if types & BUSINESS_TYPES:
                result.business = node
            if types & WEBSITE_TYPES:
                result.website = node

    if result.found:
        logger.debug(
            f"Structured data: organization={result.organization is not None}, "
            f"business={result.business is not None}, website={result.website is not None}"
        )

    return result
