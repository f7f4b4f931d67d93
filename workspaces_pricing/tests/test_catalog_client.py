"""
Tests for the pricing catalog client and its circuit breaker.
"""

from datetime import datetime, timedelta
import httpx
import pytest
from workspaces_pricing.pricing.catalog_client import CatalogUnavailableError, PricingCatalogClient
from workspaces_pricing.pricing.region_map import get_location_name, get_region_code
from workspaces_pricing.resilience.circuit_breaker import CircuitBreaker, CircuitState


BASE_URL = "https://calculator.example/pricing/2.0/meteredUnitMaps"
US_EAST = "US East (N. Virginia)"


def make_client(handler, breaker=None, max_retries=1):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PricingCatalogClient(
        http_client=http_client,
        base_url=BASE_URL,
        timeout=1,
        max_retries=max_retries,
        circuit_breaker=breaker or CircuitBreaker("test_catalog"),
    )


def test_urls_encode_location_and_selectors():
    client = PricingCatalogClient(base_url=BASE_URL + "/", circuit_breaker=CircuitBreaker("test_catalog"))

    assert client.aggregations_url("workspaces-core-calc", US_EAST) == (
        BASE_URL + "/workspaces/USD/current/workspaces-core-calc/"
        "US%20East%20%28N.%20Virginia%29/primary-selector-aggregations.json"
    )
    assert client.price_index_url("workspaces-core-calc", US_EAST, ["Value (1 vCPU, 2GB RAM)", "80 GB"]) == (
        BASE_URL + "/workspaces/USD/current/workspaces-core-calc/"
        "US%20East%20%28N.%20Virginia%29/Value%20%281%20vCPU%2C%202GB%20RAM%29/80%20GB/index.json"
    )


@pytest.mark.asyncio
async def test_get_aggregations_reads_document(core_aggregations):
    requested = []

    def handler(request):
        requested.append(request.url.path)
        return httpx.Response(200, json=core_aggregations)

    data = await make_client(handler).get_aggregations("workspaces-core-calc", US_EAST)

    assert data == core_aggregations
    assert requested[0].endswith("/workspaces-core-calc/US East (N. Virginia)/primary-selector-aggregations.json")


@pytest.mark.asyncio
async def test_server_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"regions": {}})

    breaker = CircuitBreaker("test_catalog")
    data = await make_client(handler, breaker).get_price_index("workspaces-core-calc", US_EAST, ["x"])

    assert data == {"regions": {}}
    assert len(calls) == 2
    assert breaker.failure_count == 0


@pytest.mark.asyncio
async def test_missing_document_is_not_retried():
    """A 404 means the catalog has no such configuration, not that it is down."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    breaker = CircuitBreaker("test_catalog")
    with pytest.raises(CatalogUnavailableError):
        await make_client(handler, breaker).get_price_index("workspaces-core-calc", US_EAST, ["x"])

    assert len(calls) == 1
    assert breaker.failure_count == 0


@pytest.mark.asyncio
async def test_transport_errors_exhaust_retries_and_record_failure():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    breaker = CircuitBreaker("test_catalog")
    with pytest.raises(CatalogUnavailableError):
        await make_client(handler, breaker, max_retries=2).get_aggregations("workspaces-core-calc", US_EAST)

    assert len(calls) == 3
    assert breaker.failure_count == 1


@pytest.mark.asyncio
async def test_invalid_json_is_unavailable():
    def handler(request):
        return httpx.Response(200, content=b"<html>maintenance</html>")

    with pytest.raises(CatalogUnavailableError):
        await make_client(handler).get_aggregations("workspaces-core-calc", US_EAST)


@pytest.mark.asyncio
async def test_aggregation_document_without_aggregations_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"items": []})

    with pytest.raises(CatalogUnavailableError):
        await make_client(handler).get_aggregations("workspaces-core-calc", US_EAST)


@pytest.mark.asyncio
async def test_open_breaker_skips_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"aggregations": []})

    breaker = CircuitBreaker("test_catalog", failure_threshold=1)
    breaker.record_failure()

    with pytest.raises(CatalogUnavailableError):
        await make_client(handler, breaker).get_aggregations("workspaces-core-calc", US_EAST)

    assert calls == []


def test_breaker_opens_after_threshold():
    breaker = CircuitBreaker("test_catalog", failure_threshold=3)

    breaker.record_failure()
    breaker.record_failure()
    assert breaker.allow_request() is True

    breaker.record_failure()
    assert breaker.current_state() is CircuitState.OPEN
    assert breaker.allow_request() is False

    breaker.reset()
    assert breaker.allow_request() is True


def test_breaker_half_opens_and_recovers():
    breaker = CircuitBreaker("test_catalog", failure_threshold=1, open_duration=60)
    breaker.record_failure()
    breaker.opened_at = datetime.now() - timedelta(seconds=61)

    assert breaker.allow_request() is True
    assert breaker.current_state() is CircuitState.HALF_OPEN
    assert breaker.allow_request() is False

    breaker.record_success()
    assert breaker.current_state() is CircuitState.CLOSED


def test_breaker_reopens_on_half_open_failure():
    breaker = CircuitBreaker("test_catalog", failure_threshold=1, open_duration=60)
    breaker.record_failure()
    breaker.opened_at = datetime.now() - timedelta(seconds=61)
    breaker.allow_request()

    breaker.record_failure()

    assert breaker.current_state() is CircuitState.OPEN


def test_region_names_round_trip():
    assert get_location_name("us-east-1") == US_EAST
    assert get_location_name("xx-unknown-1") == "xx-unknown-1"
    assert get_region_code("us east (n. virginia)") == "us-east-1"
    assert get_region_code("EU (Ireland)") == "eu-west-1"
    assert get_region_code("AWS GovCloud (US)") == "us-gov-west-1"
    assert get_region_code("us-west-2") == "us-west-2"
