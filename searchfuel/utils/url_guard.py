"""
URL Guard

Blocks server-side request forgery: the pipeline fetches arbitrary
user-supplied URLs, so loopback, private-range, link-local and cloud
metadata hosts are refused before any request is made.

`validate_url` checks how the host is written, including decimal, hex and
octal spellings of an address. `resolves_to_private` then resolves names
and refuses the request if any returned address is internal.
"""

import asyncio
import ipaddress
import logging
import re
import socket
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlparse

from searchfuel.errors import InvalidURL

logger = logging.getLogger(__name__)


ALLOWED_SCHEMES = ("http", "https")

LOCALHOST_NAMES = {
    "localhost",
    "localhost.localdomain",
    "ip6-localhost",
    "ip6-loopback",
}

PRIVATE_HOST_PATTERNS = [
    re.compile(r"^127\."),                        # Loopback
    re.compile(r"^10\."),                         # 10.0.0.0/8
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\."),  # 172.16.0.0/12
    re.compile(r"^192\.168\."),                   # 192.168.0.0/16
    re.compile(r"^169\.254\."),                   # Link-local / metadata
    re.compile(r"^0\.0\.0\.0$"),
    re.compile(r"\.localhost$"),
    re.compile(r"\.local$"),
    re.compile(r"\.internal$"),
    re.compile(r"\.lan$"),
]

METADATA_HOSTS = {
    "169.254.169.254",
    "169.254.170.2",
    "100.100.100.200",
    "metadata.google.internal",
    "metadata.azure.com",
}

# Decimal, hex and octal address forms ("2130706433", "0x7f000001",
# "0177.0.0.1") that ipaddress rejects but resolvers still accept
NUMERIC_HOST_PATTERN = re.compile(r"^(0x[0-9a-f]*|\d+)(\.(0x[0-9a-f]*|\d+)){0,3}$")

Resolver = Callable[[str], Awaitable[List[str]]]


def _is_internal_ip(ip) -> bool:
    return (
        ip.is_loopback
        or ip.is_private
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


def is_private_host(hostname: Optional[str]) -> bool:
    """
    Check whether a hostname points at a loopback/private/reserved target.

    Args:
        hostname: Bare hostname or IP literal (IPv6 with or without brackets)

    Returns:
        True if the host must not be fetched
    """
    if not hostname:
        return True

    host = hostname.strip().lower().strip("[]").rstrip(".")

    if host in LOCALHOST_NAMES or host in METADATA_HOSTS:
        return True

    if any(pattern.search(host) for pattern in PRIVATE_HOST_PATTERNS):
        return True

    # Percent-encoded hosts and IPv6 zone ids
    if "%" in host:
        return True

    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return bool(NUMERIC_HOST_PATTERN.match(host))

    return _is_internal_ip(ip)


def validate_url(url: Optional[str]) -> str:
    """
    Validate a user-supplied URL before fetching it.

    Accepts bare domains ("example.com") by assuming https.

    Args:
        url: URL to validate

    Returns:
        Normalized URL string

    Raises:
        InvalidURL: On malformed URLs, non-HTTP schemes, embedded
            credentials, or private/loopback hosts
    """
    if not url or not isinstance(url, str) or not url.strip():
        raise InvalidURL("URL is required", url=url)

    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
        parsed.port  # raises ValueError on garbage ports
    except ValueError as e:
        raise InvalidURL(f"Invalid URL format: {e}", url=url)

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURL("Only HTTP and HTTPS protocols are allowed", url=url)

    if not hostname:
        raise InvalidURL("URL must include a hostname", url=url)

    if parsed.username or parsed.password:
        raise InvalidURL("URLs with embedded credentials are not allowed", url=url)

    if is_private_host(hostname):
        logger.warning(f"Blocked private/loopback URL: {url}")
        raise InvalidURL("Private or internal network addresses are not allowed", url=url)

    return candidate


def is_private_address(address: str) -> bool:
    """Check a resolved IP address string; unparseable addresses count as private."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return True
    return _is_internal_ip(ip)


async def resolve_addresses(hostname: str) -> List[str]:
    """Resolve a hostname to the IP addresses a connection could use."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


async def resolves_to_private(hostname: Optional[str], resolver: Optional[Resolver] = None) -> bool:
    """
    Check a host by what it resolves to, not only by how it is written.

    A public-looking name whose DNS points at 10.x or 127.x is refused.
    Names that do not resolve are allowed through; the connection fails
    on its own.

    Args:
        hostname: Host from the request URL
        resolver: Async callable returning IP strings (defaults to
            resolve_addresses)

    Returns:
        True if the host or any of its addresses is internal
    """
    if is_private_host(hostname):
        return True

    host = hostname.strip().lower().strip("[]").rstrip(".")
    try:
        ipaddress.ip_address(host)
        return False
    except ValueError:
        pass

    try:
        addresses = await (resolver or resolve_addresses)(host)
    except OSError as e:
        logger.debug(f"Could not resolve {host}: {e}")
        return False

    blocked = [address for address in addresses if is_private_address(address)]
    if blocked:
        logger.warning(f"Host {host} resolves to internal address(es): {blocked}")
        return True
    return False
