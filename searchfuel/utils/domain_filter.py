"""
Domain Filtering Utilities

Shared exclusion logic for every domain that surfaces as a competitor
candidate, whether it came from a SERP result or from validation.

Platforms like Facebook, YouTube, Wikipedia, marketplaces, site builders
and review directories rank for almost every commercial query but are
never a business's direct competitor.
"""

from typing import Optional, Set
from urllib.parse import urlparse


# =============================================================================
# EXCLUDED DOMAINS
# =============================================================================

# Social Media Platforms
SOCIAL_MEDIA = {
    "facebook.com", "fb.com", "fb.me",
    "twitter.com", "x.com", "t.co",
    "instagram.com",
    "linkedin.com", "lnkd.in",
    "tiktok.com",
    "pinterest.com", "pin.it",
    "reddit.com", "redd.it",
    "tumblr.com",
    "snapchat.com",
    "threads.net",
    "discord.com", "discord.gg",
    "whatsapp.com",
    "telegram.org", "t.me",
}

# Video & Media Platforms
VIDEO_PLATFORMS = {
    "youtube.com", "youtu.be",
    "vimeo.com",
    "dailymotion.com",
    "twitch.tv",
    "rumble.com",
}

# Reference & Q&A Sites
REFERENCE_SITES = {
    "wikipedia.org", "wikimedia.org", "wiktionary.org", "wikihow.com",
    "britannica.com",
    "investopedia.com",
    "quora.com",
    "stackoverflow.com", "stackexchange.com",
    "github.com", "gitlab.com",
    "medium.com",
    "substack.com",
    "forbes.com",
    "techcrunch.com",
}

# E-commerce Marketplaces (generic, not niche competitors)
MARKETPLACES = {
    "amazon.com", "amazon.co.uk", "amazon.de", "amazon.se",
    "ebay.com", "ebay.co.uk", "ebay.de",
    "etsy.com",
    "aliexpress.com", "alibaba.com",
    "walmart.com",
    "target.com",
    "bestbuy.com",
    "apps.apple.com", "play.google.com",
}

# Website Builders & Hosted Blog Platforms
SITE_BUILDERS = {
    "wix.com", "wixsite.com",
    "squarespace.com",
    "wordpress.com", "wordpress.org",
    "weebly.com",
    "webflow.io",
    "godaddy.com",
    "blogspot.com", "blogger.com",
    "shopify.com", "myshopify.com",
    "carrd.co",
}

# Review Sites, Directories & Listing Aggregators
DIRECTORIES = {
    "yelp.com",
    "tripadvisor.com",
    "trustpilot.com",
    "g2.com", "g2crowd.com",
    "capterra.com",
    "getapp.com",
    "softwareadvice.com",
    "trustradius.com",
    "alternativeto.net",
    "slant.co",
    "saasworthy.com",
    "sourceforge.net",
    "producthunt.com",
    "crunchbase.com",
    "glassdoor.com",
    "indeed.com",
    "yellowpages.com",
    "bbb.org",
    "clutch.co",
    "goodfirms.co",
    "upcity.com",
    "expertise.com",
    "thumbtack.com",
    "angi.com",
    "houzz.com",
    "zoominfo.com",
}

# Generic search & tech giant services
TECH_GIANTS = {
    "google.com", "bing.com", "yahoo.com", "duckduckgo.com",
    "microsoft.com", "apple.com",
}

# Government & educational patterns (substring match)
GOVERNMENT_PATTERNS = {
    ".gov",
    ".edu",
    ".mil",
}

# Platform names that exclude a domain wherever they appear in it
# (catches regional variants like facebook.de or amazon.fr)
PLATFORM_INDICATORS = {
    "facebook", "youtube", "twitter", "instagram", "linkedin",
    "tiktok", "pinterest", "reddit", "wikipedia", "amazon",
    "yelp", "tripadvisor", "trustpilot", "capterra", "alternativeto",
}

_CATEGORY_REASONS = [
    (SOCIAL_MEDIA, "Social media platform"),
    (VIDEO_PLATFORMS, "Video/media platform"),
    (REFERENCE_SITES, "Reference/educational site"),
    (MARKETPLACES, "E-commerce marketplace"),
    (SITE_BUILDERS, "Website builder/hosting platform"),
    (DIRECTORIES, "Review/directory site"),
    (TECH_GIANTS, "Technology platform"),
]


def normalize_domain(value: Optional[str]) -> str:
    """
    Normalize a URL or hostname to a bare lowercase domain without "www.".

    Args:
        value: A URL ("https://www.example.com/page") or hostname ("Example.com")

    Returns:
        Bare domain ("example.com"), or "" if nothing usable was given
    """
    if not value:
        return ""

    candidate = value.strip().lower()
    if "://" in candidate:
        candidate = urlparse(candidate).hostname or ""
    else:
        candidate = candidate.split("/")[0].split(":")[0]

    if candidate.startswith("www."):
        candidate = candidate[4:]

    return candidate.strip(".")


def _matches_set(domain: str, domains: Set[str]) -> bool:
    return domain in domains or any(domain.endswith("." + d) for d in domains)


def get_exclusion_reason(domain: Optional[str]) -> Optional[str]:
    """
    Get the reason why a domain is excluded from competitor analysis.

    Uses multiple matching strategies:
    1. Exact match against known domains
    2. Subdomain matching (business.facebook.com -> facebook.com)
    3. Government/educational TLD patterns
    4. Platform names anywhere in the domain

    Args:
        domain: Domain or URL to check

    Returns:
        Reason string if excluded, None if valid competitor
    """
    domain_lower = normalize_domain(domain)
    if not domain_lower:
        return "Empty domain"

    for domains, reason in _CATEGORY_REASONS:
        if _matches_set(domain_lower, domains):
            return reason

    for pattern in GOVERNMENT_PATTERNS:
        if pattern in domain_lower:
            return "Government/educational site"

    for indicator in PLATFORM_INDICATORS:
        if indicator in domain_lower:
            return f"Platform domain ({indicator})"

    return None
