"""
Business Profile Extractor

Derives company name, description, industry and language from the
homepage HTML plus any JSON-LD structured data. Purely heuristic: it
never fails and always yields a non-empty company name.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from searchfuel.utils.html_text import (
    extract_text,
    find_elements,
    find_language,
    find_meta,
    find_title,
    strip_scripts,
)

from .models import BusinessProfile, StructuredData

logger = logging.getLogger(__name__)


# =============================================================================
# INDUSTRY KEYWORDS
# =============================================================================


# Checked in order; the first industry with a matching keyword wins
INDUSTRY_KEYWORDS = {
    "SaaS": ["saas", "software", "platform", "app", "tool", "dashboard"],
    "E-commerce": ["shop", "store", "buy", "cart", "product", "ecommerce"],
    "Healthcare": ["health", "medical", "doctor", "clinic", "hospital", "patient"],
    "Technology": ["tech", "technology", "digital", "innovation", "software"],
    "Marketing": ["marketing", "advertising", "brand", "campaign", "seo"],
    "Education": ["education", "learn", "course", "training", "school", "university"],
    "Finance": ["finance", "financial", "bank", "investment", "money", "accounting"],
    "Real Estate": ["real estate", "property", "home", "house", "realty"],
    "Legal": ["law", "legal", "attorney", "lawyer", "legal services"],
    "Consulting": ["consulting", "consultant", "advisory", "strategy"],
}

_INDUSTRY_PATTERNS = [
    (industry, [re.compile(rf"\b{re.escape(keyword)}") for keyword in keywords])
    for industry, keywords in INDUSTRY_KEYWORDS.items()
]


# =============================================================================
# NAME / DESCRIPTION HEURISTICS
# =============================================================================


# "Acme | Home", "Acme - CRM for teams", "Acme — Home", "Acme · Blog"
_TITLE_SEPARATOR_RE = re.compile(r"\s+[-–—·:]\s+|\s*\|\s*")
_FILLER_SEGMENTS = {"home", "homepage", "home page", "welcome", "official site", "official website", "start"}
_WELCOME_PREFIX_RE = re.compile(r"^welcome\s+to\s+", re.IGNORECASE)

MAX_NAME_LENGTH = 50
MAX_NAME_WORDS = 5

MIN_PARAGRAPH_CHARS = 50
MAX_PARAGRAPHS = 3
MIN_DIV_CHARS = 100
MAX_DESCRIPTION_CHARS = 500

_HERO_RE = re.compile(
    r'<(section|div|header)\b[^>]*class=["\'][^"\']*\bhero\b[^"\']*["\'][^>]*>(.*?)</\1>',
    re.DOTALL | re.IGNORECASE,
)


def clean_company_name(title: str) -> str:
    """
    Strip site-title suffixes like "| Home" or "- Tagline" from a title.

    Args:
        title: Page or og:title text

    Returns:
        Cleaned name (may be "" if the title was only filler)
    """
    segments = [s.strip() for s in _TITLE_SEPARATOR_RE.split(title or "") if s.strip()]
    segments = [s for s in segments if s.lower() not in _FILLER_SEGMENTS]
    if not segments:
        return ""

    name = _WELCOME_PREFIX_RE.sub("", segments[0]).strip()

    if len(name) > MAX_NAME_LENGTH:
        name = " ".join(name.split()[:MAX_NAME_WORDS])

    return name


def name_from_domain(url: str) -> str:
    """Capitalized first label of the host ("acme-crm.io" -> "Acme-crm")."""
    host = (urlparse(url if "://" in url else f"https://{url}").hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    label = host.split(".")[0] if host else ""
    return label[:1].upper() + label[1:] if label else "Company"


def _sd_value(structured_data: Optional[StructuredData], key: str) -> str:
    if not structured_data:
        return ""
    for node in (structured_data.organization, structured_data.business, structured_data.website):
        if not node:
            continue
        value = node.get(key)
        if isinstance(value, dict):
            value = value.get("description") or value.get("name")
        if isinstance(value, str) and value.strip():
            return extract_text(value)
    return ""


def _paragraph_description(html: str) -> str:
    """2-3 substantial paragraphs from the main/hero/article region."""
    regions: List[str] = []
    regions.extend(find_elements(html, "main"))
    regions.extend(match[1] for match in _HERO_RE.findall(html))
    regions.extend(find_elements(html, "article"))
    if not regions:
        regions = [html]

    paragraphs: List[str] = []
    for region in regions:
        for paragraph in find_elements(region, "p"):
            text = extract_text(paragraph)
            if len(text) > MIN_PARAGRAPH_CHARS and text not in paragraphs:
                paragraphs.append(text)
            if len(paragraphs) >= MAX_PARAGRAPHS:
                return " ".join(paragraphs)

    return " ".join(paragraphs)


def _div_description(html: str) -> str:
    for block in find_elements(html, "div"):
        text = extract_text(block)
        if len(text) > MIN_DIV_CHARS:
            return text
    return ""


def extract_description(html: str, structured_data: Optional[StructuredData] = None) -> str:
    """
    Find the best available description of the business.

    Order: structured data description/about, og:description, meta
    description, substantial paragraphs, first large text block.
    """
    description = (
        _sd_value(structured_data, "description")
        or _sd_value(structured_data, "about")
        or find_meta(html, "og:description")
        or find_meta(html, "description")
    )
    if not description:
        body = strip_scripts(html)
        description = _paragraph_description(body) or _div_description(body)

    if len(description) > MAX_DESCRIPTION_CHARS:
        description = description[:MAX_DESCRIPTION_CHARS].rsplit(" ", 1)[0]

    return description


def detect_industry(text: str) -> str:
    """First industry with a keyword at the start of a word in text, or "".

    Prefix matching lets plurals and compounds count ("tools", "apps",
    "products") while "app" still does not match inside "roadmapping".
    """
    haystack = (text or "").lower()
    for industry, patterns in _INDUSTRY_PATTERNS:
        if any(pattern.search(haystack) for pattern in patterns):
            return industry
    return ""


# =============================================================================
# EXTRACTOR
# =============================================================================


def extract_business_profile(
    html: str,
    url: str,
    structured_data: Optional[StructuredData] = None,
) -> BusinessProfile:
    """
    Build a BusinessProfile from homepage HTML.

    Args:
        html: Homepage HTML
        url: Homepage URL (used for the domain-name fallback)
        structured_data: JSON-LD extraction result, if any

    Returns:
        BusinessProfile with a non-empty company_name
    """
    html = html or ""
    title = find_title(html)
    og_title = find_meta(html, "og:title")

    company_name = (
        _sd_value(structured_data, "name")
        or clean_company_name(og_title)
        or clean_company_name(title)
        or name_from_domain(url)
    )

    description = extract_description(html, structured_data)
    industry = detect_industry(f"{title or og_title} {description}")
    language = find_language(html) or "en"

    profile = BusinessProfile(
        company_name=company_name,
        description=description,
        industry=industry,
        language=language,
    )

    logger.info(
        f"Business profile: name='{profile.company_name}', "
        f"industry='{profile.industry or 'unknown'}', language={profile.language}"
    )

    return profile
