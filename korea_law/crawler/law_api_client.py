"""
law.go.kr DRF Open API Client.
Handles communication with the National Law Information Center API with
retry logic.

Endpoints:
- lawSearch.do  (target=law)  statute search and catalog paging
- lawService.do (target=law)  statute detail with articles and addenda
- lawSearch.do  (target=prec) precedent search
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import requests

from korea_law.core.config import (
    LAW_API_BASE_URL,
    LAW_API_KEY,
    LAW_API_MAX_RETRIES,
    LAW_API_TIMEOUT,
    RETRYABLE_STATUS_CODES,
    SYNC_PAGE_SIZE,
)
from korea_law.core.exceptions import (
    ConfigurationError,
    PermanentUpstreamError,
    TransientUpstreamError,
)
from korea_law.crawler.payload import (
    PrecedentItem,
    StatuteDetail,
    StatuteListItem,
    format_api_date,
    parse_precedent_search,
    parse_statute_search,
)
from korea_law.utils.retry import fetch_with_retry

logger = logging.getLogger(__name__)


class LawApiClient:
    """
    Client for the law.go.kr DRF API.

    Raises TransientUpstreamError for faults worth retrying (timeouts,
    connection resets, 408/429/5xx) and PermanentUpstreamError for the rest.
    Retries happen inside the client; callers see the final outcome.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the API client.

        Args:
            api_key: DRF "OC" key (defaults to KOREA_LAW_API_KEY)
            base_url: API base URL (defaults to config)
            timeout: Request timeout in seconds (defaults to config)
            max_retries: Maximum attempts per request (defaults to config)
            session: Pre-built requests session (tests)

        Raises:
            ConfigurationError: If no API key is configured
        """
        self.api_key = api_key or LAW_API_KEY
        if not self.api_key:
            raise ConfigurationError(
                "law.go.kr API key is not configured",
                config_key="KOREA_LAW_API_KEY",
            )
        self.base_url = (base_url or LAW_API_BASE_URL).rstrip("/")
        self.timeout = timeout or LAW_API_TIMEOUT
        self.max_retries = max_retries or LAW_API_MAX_RETRIES
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "korea-law/0.1.0", "Accept": "application/json"})

    def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make a GET request to the API with retry logic.

        Args:
            endpoint: API endpoint (e.g., "lawSearch.do")
            params: Query parameters (OC and type are added)

        Returns:
            JSON response as dictionary

        Raises:
            TransientUpstreamError: If retryable faults persist past the ceiling
            PermanentUpstreamError: On a non-retryable fault
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = {"OC": self.api_key, "type": "JSON", **params}

        def fetch_fn() -> Dict[str, Any]:
            try:
                response = self.session.get(url, params=query, timeout=self.timeout)
            except (requests.Timeout, requests.ConnectionError) as e:
                raise TransientUpstreamError(f"Request failed: {e}", url=url) from e
            except requests.RequestException as e:
                raise PermanentUpstreamError(f"Request failed: {e}", url=url) from e

            if response.status_code in RETRYABLE_STATUS_CODES:
                raise TransientUpstreamError(
                    f"Registry returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    url=url,
                )
            if response.status_code >= 400:
                raise PermanentUpstreamError(
                    f"Registry returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    url=url,
                )

            try:
                return response.json()
            except ValueError as e:
                # The registry answers errors with an HTML page
                raise PermanentUpstreamError(
                    "Registry returned a non-JSON response",
                    details={"snippet": response.text[:120]},
                    status_code=response.status_code,
                    url=url,
                ) from e

        return fetch_with_retry(
            fetch_fn,
            max_retries=self.max_retries,
            operation_name=f"GET {endpoint}",
        )

    def search_statutes(self, name: str, display: int = 100) -> List[StatuteListItem]:
        """
        Search statutes by name.

        Args:
            name: Statute name or part of it
            display: Maximum number of results

        Returns:
            List of matching statutes

        Example:
            >>> client = LawApiClient(api_key="...")
            >>> for item in client.search_statutes("근로기준법"):
            ...     print(item.law_id, item.name)
        """
        logger.debug(f"Searching statutes: {name}")
        payload = self._make_request(
            "lawSearch.do",
            {"target": "law", "query": name, "display": display, "sort": "efdes"},
        )
        items, _ = parse_statute_search(payload)
        return items

    def search_statutes_page(
        self, page: int = 1, page_size: int = SYNC_PAGE_SIZE
    ) -> Tuple[List[StatuteListItem], int]:
        """
        Get one page of the full statute catalog.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page

        Returns:
            Tuple of (items, total count reported by the registry)
        """
        logger.debug(f"Fetching catalog page {page} (page_size={page_size})")
        payload = self._make_request(
            "lawSearch.do",
            {"target": "law", "display": page_size, "page": page, "sort": "lasc"},
        )
        return parse_statute_search(payload)

    def get_recently_amended(
        self, days: int = 7, today: Optional[date] = None
    ) -> List[StatuteListItem]:
        """
        Statutes whose enforcement date falls within the last N days.

        Args:
            days: Size of the look-back window
            today: End of the window (defaults to today)
        """
        end = today or date.today()
        start = end - timedelta(days=days)
        logger.debug(f"Fetching statutes amended between {start} and {end}")
        payload = self._make_request(
            "lawSearch.do",
            {
                "target": "law",
                "display": 100,
                "sort": "efdes",
                "efYd": f"{format_api_date(start)}~{format_api_date(end)}",
            },
        )
        items, _ = parse_statute_search(payload)
        return items

    def get_statute_detail(self, law_id: str) -> StatuteDetail:
        """
        Get full statute detail: basic information, articles, addenda.

        Args:
            law_id: Registry statute id (법령ID)

        Raises:
            PermanentUpstreamError: If the payload is not a statute
        """
        logger.debug(f"Fetching statute detail: {law_id}")
        payload = self._make_request("lawService.do", {"target": "law", "ID": law_id})
        return StatuteDetail.from_response(payload)

    def search_precedents(self, query: str, display: int = 100) -> List[PrecedentItem]:
        """
        Search court precedents by keyword or case number.

        Args:
            query: Keyword or case number ("2023다12345")
            display: Maximum number of results
        """
        logger.debug(f"Searching precedents: {query}")
        payload = self._make_request(
            "lawSearch.do",
            {"target": "prec", "query": query, "display": display},
        )
        items, _ = parse_precedent_search(payload)
        return items

    def close(self):
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
