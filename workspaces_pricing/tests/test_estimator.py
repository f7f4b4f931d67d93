"""
Tests for end-to-end estimate orchestration.
"""

from dataclasses import replace
import pytest
from unittest.mock import AsyncMock
from workspaces_pricing.domain.pricing_models import (
    Configuration,
    InstanceFunction,
    InvalidConfigurationError,
    InvalidUsagePatternError,
    OperatingSystem,
    PricingSource,
    Product,
    RunningMode,
    UsagePattern,
)
from workspaces_pricing.pricing.catalog_client import CatalogUnavailableError
from workspaces_pricing.services.estimator import PricingEstimator


US_EAST = "US East (N. Virginia)"
PERFORMANCE = "Performance (2 vCPU, 8GB RAM)"


@pytest.mark.asyncio
async def test_catalog_estimate_for_core_bundle(fake_catalog_client, core_configuration):
    """A matched bundle is priced from the catalog with its own volumes."""
    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(core_configuration)

    assert estimate.product is Product.WORKSPACES_CORE
    assert estimate.pricing_source is PricingSource.CATALOG
    assert estimate.bundle_name == PERFORMANCE
    assert estimate.total_monthly_cost == pytest.approx(50.0)
    assert estimate.volume_selection_honored is True
    assert estimate.bundle_spec.vcpu == 2
    fake_catalog_client.get_aggregations.assert_awaited_once_with("workspaces-core-calc", US_EAST)


@pytest.mark.asyncio
async def test_estimate_is_idempotent(fake_catalog_client, core_configuration):
    """Identical inputs and a stable catalog give identical output."""
    estimator = PricingEstimator(catalog_client=fake_catalog_client)

    first = await estimator.estimate(core_configuration)
    second = await estimator.estimate(core_configuration)

    assert first.to_dict() == second.to_dict()


@pytest.mark.asyncio
async def test_unavailable_catalog_falls_back(fake_catalog_client, core_configuration):
    """A failed aggregation read still yields a complete estimate from static prices."""
    fake_catalog_client.get_aggregations = AsyncMock(side_effect=CatalogUnavailableError("connection refused"))

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(core_configuration)

    assert estimate.pricing_source is PricingSource.FALLBACK
    assert estimate.total_monthly_cost == pytest.approx(60.0)
    assert estimate.bundle_name == "Performance"
    assert any("catalog unavailable" in note for note in estimate.assumptions)
    fake_catalog_client.get_price_index.assert_not_called()


@pytest.mark.asyncio
async def test_malformed_catalog_falls_back(fake_catalog_client, core_configuration):
    """Aggregation items with non-object selectors degrade to static prices."""
    fake_catalog_client.get_aggregations = AsyncMock(return_value={"aggregations": [{"selectors": "oops"}]})

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(core_configuration)

    assert estimate.pricing_source is PricingSource.FALLBACK
    assert estimate.total_monthly_cost == pytest.approx(60.0)
    fake_catalog_client.get_price_index.assert_not_called()


@pytest.mark.asyncio
async def test_unoffered_volume_is_adjusted(fake_catalog_client, core_configuration):
    """A 60 GB root request is priced at 80 GB and flagged as not honored."""
    configuration = replace(core_configuration, root_volume_gib=60, user_volume_gib=100)

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration)
    result = estimate.to_dict()

    assert result["root_volume"] == 80
    assert result["requested_volumes"]["root_volume"] == 60
    assert result["volume_selection_honored"] is False
    assert result["pricing_source"] == "catalog"


@pytest.mark.asyncio
async def test_unmatched_bundle_uses_fallback(fake_catalog_client, core_configuration):
    configuration = replace(core_configuration, bundle_id="graphicspro")

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration)

    assert estimate.pricing_source is PricingSource.FALLBACK
    assert estimate.total_monthly_cost == pytest.approx(350.0)
    assert any("No catalog bundle matches" in note for note in estimate.assumptions)


@pytest.mark.asyncio
async def test_auto_stop_without_pattern_uses_default_hours(fake_catalog_client, hourly_price_index, core_configuration):
    """AutoStop prices the AutoStop price file for 160 hours per WorkSpace."""
    fake_catalog_client.get_price_index = AsyncMock(return_value=hourly_price_index)
    configuration = replace(core_configuration, running_mode=RunningMode.AUTO_STOP, number_of_units=2)

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration)

    path = fake_catalog_client.get_price_index.await_args.args[2]
    assert path[5] == "AutoStop"
    assert estimate.instance_hours.utilized == 320
    assert estimate.total_monthly_cost == pytest.approx(0.30 * 320)
    assert estimate.cost_per_unit == pytest.approx(0.30 * 160)


@pytest.mark.asyncio
async def test_pool_estimate_uses_pool_calculator(fake_catalog_client, pool_aggregations, hourly_price_index):
    """Pool configurations read the pools calculator and apply the default pattern."""
    fake_catalog_client.get_aggregations = AsyncMock(return_value=pool_aggregations)
    fake_catalog_client.get_price_index = AsyncMock(return_value=hourly_price_index)
    configuration = Configuration(
        region="us-east-1",
        bundle_id="standard",
        operating_system=OperatingSystem.WINDOWS,
        running_mode=RunningMode.POOL,
        user_count=10,
    )

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration)

    assert estimate.product is Product.WORKSPACES_POOLS
    fake_catalog_client.get_aggregations.assert_awaited_once_with("workspaces-pools-calc", US_EAST)
    assert fake_catalog_client.get_price_index.await_args.args[2] == [
        "Standard", "2", "200 GB", "4 GB", "Windows", "Included", "Pool", "WorkSpaces Pools",
    ]
    assert estimate.instance_hours.utilized > 0
    assert estimate.instance_hours.buffer > 0
    assert "Default usage pattern applied" in estimate.assumptions
    assert estimate.breakdown.user_license_cost == pytest.approx(41.9)


@pytest.mark.asyncio
async def test_appstream_skips_catalog(fake_catalog_client):
    """AppStream fleets are priced from the static hourly table."""
    configuration = Configuration(
        region="us-east-1",
        bundle_id="stream.standard.medium",
        operating_system=OperatingSystem.AMAZON_LINUX,
        instance_function=InstanceFunction.FLEET,
        user_count=1,
    )

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration)

    fake_catalog_client.get_aggregations.assert_not_called()
    assert estimate.product is Product.APPSTREAM
    assert estimate.bundle_name == "stream.standard.medium"
    assert estimate.to_dict()["total_monthly_cost"] == 73.00


@pytest.mark.asyncio
async def test_appstream_pattern_drives_hours(fake_catalog_client):
    configuration = Configuration(
        region="us-east-1",
        bundle_id="stream.standard.medium",
        operating_system=OperatingSystem.AMAZON_LINUX,
        instance_function=InstanceFunction.FLEET,
        running_mode=RunningMode.CUSTOM,
        user_count=100,
    )
    pattern = UsagePattern(
        weekday_days_count=5,
        weekday_peak_hours_per_day=8,
        weekday_peak_concurrent_users=80,
        weekday_off_peak_concurrent_users=10,
        weekend_days_count=0,
        weekend_peak_hours_per_day=0,
        weekend_peak_concurrent_users=0,
        weekend_off_peak_concurrent_users=0,
        buffer_factor=0.1,
    )

    estimate = await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration, pattern)

    assert estimate.instance_hours.total == pytest.approx(19140)
    assert estimate.total_monthly_cost == pytest.approx(1914.0)


@pytest.mark.asyncio
async def test_missing_fields_are_listed(fake_catalog_client):
    configuration = Configuration(region="us-east-1", bundle_id=None, operating_system=None)

    with pytest.raises(InvalidConfigurationError) as error:
        await PricingEstimator(catalog_client=fake_catalog_client).estimate(configuration)

    assert error.value.missing_fields == ["bundle_id", "operating_system"]
    fake_catalog_client.get_aggregations.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_pattern_is_rejected(fake_catalog_client, core_configuration):
    pattern = UsagePattern(weekday_days_count=6, weekend_days_count=2)

    with pytest.raises(InvalidUsagePatternError):
        await PricingEstimator(catalog_client=fake_catalog_client).estimate(core_configuration, pattern)
