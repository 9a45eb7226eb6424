"""
DataForSEO API Client

Async HTTP client for the SERP endpoint used by competitor discovery:
- Basic auth from a login/password pair
- Connection pooling shared across concurrent queries
- Per-request timeout, no automatic retry (callers degrade instead)
- Graceful error handling
"""

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


SERP_ENDPOINT = "serp/google/organic/live/regular"

# Two-letter language code -> DataForSEO location code for the main market
LANGUAGE_LOCATIONS = {
    "en": 2840,  # United States
    "sv": 2752,  # Sweden
    "de": 2276,  # Germany
    "fr": 2250,  # France
    "no": 2578,  # Norway
    "nb": 2578,
    "da": 2208,  # Denmark
    "fi": 2246,  # Finland
    "nl": 2528,  # Netherlands
    "es": 2724,  # Spain
    "it": 2380,  # Italy
}


def safe_get_result(response: Dict, get_items: bool = True) -> Any:
    """
    Safely extract result data from DataForSEO API response.

    Handles cases where result is None, empty, or malformed.

    Args:
        response: Raw API response dict
        get_items: If True, returns items list. If False, returns first result object.

    Returns:
        List of items, result dict, or empty list/dict on failure
    """
    try:
        tasks = response.get("tasks")
        if not tasks or not isinstance(tasks, list):
            return [] if get_items else {}

        task = tasks[0] if tasks else {}
        result = task.get("result")

        if not result or not isinstance(result, list):
            return [] if get_items else {}

        first_result = result[0] if result else {}
        if not first_result or not isinstance(first_result, dict):
            return [] if get_items else {}

        if get_items:
            items = first_result.get("items")
            return items if items and isinstance(items, list) else []
        else:
            return first_result
    except (TypeError, IndexError, KeyError, AttributeError) as e:
        logger.debug(f"Safe result extraction failed: {e}")
        return [] if get_items else {}


def location_for_language(language: Optional[str], default: int = 2840) -> int:
    """Map a profile language to the DataForSEO location of its main market."""
    return LANGUAGE_LOCATIONS.get((language or "").lower(), default)


class DataForSEOError(Exception):
    """Custom exception for DataForSEO API errors."""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[dict] = None,
        timed_out: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.timed_out = timed_out


class DataForSEOClient:
    """
    Async client for DataForSEO API.

    Usage:
        client = DataForSEOClient(login="your_login", password="your_password")

        serp = await client.get_serp_results("crm software alternatives")
        items = serp.get("items", []) if serp else []

        await client.close()
    """

    BASE_URL = "https://api.dataforseo.com/v3"

    def __init__(
        self,
        login: str,
        password: str,
        max_connections: int = 20,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize DataForSEO client.

        Args:
            login: DataForSEO login email
            password: DataForSEO API password
            max_connections: Maximum concurrent connections
            timeout: Default request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.login = login
        self.password = password
        self.timeout = timeout

        # Create auth header
        credentials = f"{login}:{password}"
        auth_token = base64.b64encode(credentials.encode()).decode()

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Authorization": f"Basic {auth_token}",
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections // 2,
            ),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

        self._closed = False

    async def post(
        self,
        endpoint: str,
        data: List[Dict[str, Any]],
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Make a single POST request to DataForSEO API.

        Args:
            endpoint: API endpoint path (e.g., "serp/google/organic/live/regular")
            data: Request payload (list of task objects)
            timeout: Request timeout override in seconds

        Returns:
            API response as dictionary

        Raises:
            DataForSEOError: On HTTP, transport, timeout or API-level error
        """
        if self._closed:
            raise DataForSEOError("Client is closed")

        url = f"/{endpoint}"
        logger.debug(f"POST {url}")

        try:
            response = await self._client.post(
                url,
                json=data,
                timeout=httpx.Timeout(self.timeout if timeout is None else timeout),
            )
        except httpx.TimeoutException as e:
            raise DataForSEOError(f"Request timed out: {e}", timed_out=True)
        except httpx.HTTPError as e:
            raise DataForSEOError(f"HTTP error: {e}")

        if response.status_code != 200:
            raise DataForSEOError(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError:
            raise DataForSEOError("Malformed JSON in API response", status_code=response.status_code)

        if not isinstance(result, dict):
            raise DataForSEOError("Unexpected API response shape")

        # Check for API-level errors
        if result.get("status_code") != 20000:
            error_msg = result.get("status_message", "Unknown error")
            raise DataForSEOError(
                f"API error: {error_msg}",
                status_code=result.get("status_code"),
                response=result,
            )

        # Task-level errors leave the result empty; log them clearly
        for task in result.get("tasks") or []:
            task_status = task.get("status_code")
            if task_status not in [20000, 20100]:
                logger.error(
                    f"DataForSEO task error in {url}: {task.get('status_message', 'Task error')} "
                    f"(status: {task_status})"
                )

        return result

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========================================================================
    # COMPETITOR DISCOVERY HELPERS
    # ========================================================================

    async def get_serp_results(
        self,
        keyword: str,
        location_code: int = 2840,
        language_code: str = "en",
        depth: int = 50,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get organic SERP results for a keyword.

        Args:
            keyword: Search query
            location_code: DataForSEO location code (default: 2840 = US)
            language_code: Language code (default: "en")
            depth: Number of results to return (default: 50, about five pages)
            timeout: Request timeout override in seconds

        Returns:
            First result object with its items list, or None on error
        """
        try:
            result = await self.post(
                SERP_ENDPOINT,
                [{
                    "keyword": keyword,
                    "location_code": location_code,
                    "language_code": language_code,
                    "depth": depth,
                }],
                timeout=timeout,
            )
        except DataForSEOError as e:
            logger.warning(f"SERP query failed for '{keyword}': {e}")
            return None

        task_result = safe_get_result(result, get_items=False)
        return task_result or None

    async def get_organic_items(
        self,
        keyword: str,
        location_code: int = 2840,
        language_code: str = "en",
        depth: int = 50,
        timeout: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get only the organic items of a SERP, ordered by absolute rank.

        Returns:
            List of organic item dicts (empty on any failure)
        """
        serp = await self.get_serp_results(
            keyword,
            location_code=location_code,
            language_code=language_code,
            depth=depth,
            timeout=timeout,
        )
        if not serp:
            return []

        items = serp.get("items") or []
        organic = [
            item for item in items
            if isinstance(item, dict) and item.get("type", "organic") == "organic"
        ]
        return sorted(organic, key=lambda item: item.get("rank_absolute") or float("inf"))


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def create_client(
    login: Optional[str],
    password: Optional[str],
    timeout: float = 15.0,
) -> Optional[DataForSEOClient]:
    """Create a DataForSEO client, or None when credentials are missing."""
    if not login or not password:
        logger.warning("DataForSEO credentials not configured - SERP discovery disabled")
        return None
    return DataForSEOClient(login=login, password=password, timeout=timeout)
