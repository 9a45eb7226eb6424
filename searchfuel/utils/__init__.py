"""Utility modules for SearchFuel competitor discovery."""

from .config import Settings, get_settings
from .domain_filter import get_exclusion_reason, normalize_domain
from .url_guard import is_private_host, resolves_to_private, validate_url

__all__ = [
    "Settings",
    "get_settings",
    # Domain filtering
    "get_exclusion_reason",
    "normalize_domain",
    # SSRF guard
    "is_private_host",
    "resolves_to_private",
    "validate_url",
]
