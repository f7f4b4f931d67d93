"""
Pricing catalog client.
Reads the public calculator price files (no authentication required):
one aggregation document per region listing valid configurations, and one
price index per fully-specified configuration.
"""
from typing import Dict, Any, List, Optional
from urllib.parse import quote
import logging

import httpx

from workspaces_pricing.core.config import config
from workspaces_pricing.resilience.circuit_breaker import CircuitBreaker, get_circuit_breaker


logger = logging.getLogger(__name__)


class CatalogUnavailableError(Exception):
    """Raised when the pricing catalog cannot be reached or returns unusable data."""
    pass


class PricingCatalogClient:
    """Client for the calculator pricing catalog."""

    SERVICE_PATH = "workspaces/USD/current"
    AGGREGATIONS_FILE = "primary-selector-aggregations.json"
    PRICE_INDEX_FILE = "index.json"

    REQUEST_HEADERS = {
        "User-Agent": "workspaces-pricing-estimator",
        "Accept": "application/json",
        "Referer": "https://calculator.aws/",
    }

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        circuit_breaker: Optional[CircuitBreaker] = None
    ):
        """
        Initialize pricing catalog client.

        Args:
            http_client: Shared AsyncClient (a short-lived one is opened per read if None)
            base_url: Catalog base URL (defaults to PRICING_CATALOG_BASE_URL)
            timeout: Per-read timeout in seconds
            max_retries: Extra attempts per read after the first failure
            circuit_breaker: Breaker guarding the catalog (process-wide one if None)
        """
        self.http_client = http_client
        self.base_url = (base_url or config.PRICING_CATALOG_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.PRICING_CATALOG_TIMEOUT_SECONDS
        self.max_retries = max_retries if max_retries is not None else config.PRICING_CATALOG_MAX_RETRIES
        self.circuit_breaker = circuit_breaker or get_circuit_breaker("pricing_catalog")

    def aggregations_url(self, calculator: str, location_name: str) -> str:
        return "/".join([
            self.base_url,
            self.SERVICE_PATH,
            calculator,
            quote(location_name, safe=""),
            self.AGGREGATIONS_FILE,
        ])

    def price_index_url(self, calculator: str, location_name: str, path: List[str]) -> str:
        segments = [quote(location_name, safe="")] + [quote(segment, safe="") for segment in path]
        return "/".join([self.base_url, self.SERVICE_PATH, calculator] + segments + [self.PRICE_INDEX_FILE])

    async def get_aggregations(self, calculator: str, location_name: str) -> Dict[str, Any]:
        """
        Fetch the set of valid configuration tuples for a region.

        Args:
            calculator: Calculator name (e.g., 'workspaces-core-calc')
            location_name: Catalog location name (e.g., 'US East (N. Virginia)')

        Returns:
            Parsed aggregation document ({"aggregations": [...]})

        Raises:
            CatalogUnavailableError: If the catalog cannot be read or the document has no aggregations
        """
        data = await self._get_json(self.aggregations_url(calculator, location_name))
        if not isinstance(data.get("aggregations"), list):
            raise CatalogUnavailableError(
                f"Aggregation document for {location_name} has no aggregations"
            )
        return data

    async def get_price_index(
        self,
        calculator: str,
        location_name: str,
        path: List[str]
    ) -> Dict[str, Any]:
        """
        Fetch the price index of one fully-specified configuration.

        Args:
            calculator: Calculator name
            location_name: Catalog location name
            path: Ordered selector values identifying the configuration

        Returns:
            Parsed price index ({"regions": {location: {line: {...}}}})

        Raises:
            CatalogUnavailableError: If the catalog cannot be read
        """
        return await self._get_json(self.price_index_url(calculator, location_name, path))

    async def _get_json(self, url: str) -> Dict[str, Any]:
        """GET a catalog document, retrying transport errors and 5xx responses."""
        if not self.circuit_breaker.allow_request():
            raise CatalogUnavailableError(
                "Pricing catalog temporarily unavailable (circuit breaker open)"
            )

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                data = await self._fetch(url)
                self.circuit_breaker.record_success()
                return data
            except httpx.HTTPStatusError as error:
                last_error = error
                status = error.response.status_code
                logger.warning("Pricing catalog HTTP %s for %s (attempt %d)", status, url, attempt + 1)
                if status < 500:
                    # Missing price file: the catalog is up, so not a breaker failure
                    self.circuit_breaker.record_success()
                    raise CatalogUnavailableError(
                        f"Pricing catalog has no document at {url} (HTTP {status})"
                    ) from error
            except httpx.RequestError as error:
                last_error = error
                logger.warning("Pricing catalog request error for %s (attempt %d): %s", url, attempt + 1, error)
            except ValueError as error:
                last_error = error
                logger.error("Error parsing pricing catalog response from %s: %s", url, error)
                break

        self.circuit_breaker.record_failure()
        raise CatalogUnavailableError(f"Failed to read pricing catalog: {last_error}") from last_error

    async def _fetch(self, url: str) -> Dict[str, Any]:
        if self.http_client is not None:
            response = await self.http_client.get(url, headers=self.REQUEST_HEADERS, timeout=self.timeout)
            response.raise_for_status()
            return self._parse(response)

        async with httpx.AsyncClient() as client:
            response = await client.get(url, headers=self.REQUEST_HEADERS, timeout=self.timeout)
            response.raise_for_status()
            return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> Dict[str, Any]:
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Pricing catalog response is not a JSON object")
        return data
