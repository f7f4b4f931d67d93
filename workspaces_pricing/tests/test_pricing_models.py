"""
Tests for pricing domain models.
"""

import pytest
from workspaces_pricing.domain.estimate_models import (
    CostBreakdown,
    EstimateBuilder,
    InstanceHours,
    VolumeResolution,
)
from workspaces_pricing.domain.pricing_models import (
    BundleSpec,
    CatalogEntry,
    Configuration,
    GraphicsClass,
    InstanceFunction,
    InvalidConfigurationError,
    InvalidUsagePatternError,
    LicenseType,
    OperatingSystem,
    PriceQuote,
    PriceUnit,
    PricingSource,
    Product,
    RunningMode,
    UsagePattern,
    format_gib,
    parse_gib,
)


def test_bundle_spec_parses_gpu_description():
    spec = BundleSpec.from_description("Graphics.g4dn (4 vCPU, 16GB RAM, 1 GPU, 16GB Video Memory)")

    assert spec.vcpu == 4
    assert spec.memory_gib == 16
    assert spec.gpu_count == 1
    assert spec.video_memory_gib == 16
    assert spec.graphics_class is GraphicsClass.HIGH_PERFORMANCE
    assert spec.to_dict()["graphics"] == "High Performance"


def test_bundle_spec_defaults_for_unparseable_description():
    spec = BundleSpec.from_description("Something custom")

    assert (spec.vcpu, spec.memory_gib, spec.storage_gib) == (2, 8, 80)
    assert spec.graphics_class is GraphicsClass.STANDARD
    assert "gpu_count" not in spec.to_dict()


def test_bundle_spec_from_pool_selectors():
    spec = BundleSpec.from_selectors({"Bundle": "Graphics.g4dn", "vCPU": "4", "Memory": "16 GB", "rootVolume": "200 GB"})

    assert spec.vcpu == 4
    assert spec.memory_gib == 16
    assert spec.storage_gib == 200
    assert spec.has_gpu


def test_gib_parsing():
    assert parse_gib("80 GB") == 80
    assert parse_gib("175GB") == 175
    assert parse_gib(None) is None
    assert parse_gib("n/a") is None
    assert format_gib(80) == "80 GB"


def test_product_selection():
    base = dict(region="us-east-1", bundle_id="standard", operating_system=OperatingSystem.WINDOWS)

    assert Configuration(**base).product is Product.WORKSPACES_CORE
    assert Configuration(**base, running_mode=RunningMode.POOL).product is Product.WORKSPACES_POOLS
    assert Configuration(**base, instance_function=InstanceFunction.FLEET).product is Product.APPSTREAM
    assert Product.APPSTREAM.calculator is None


def test_catalog_values():
    assert LicenseType.BYOL.catalog_value == "Bring Your Own License"
    assert RunningMode.AUTO_STOP.catalog_value == "AutoStop"
    linux = Configuration(region="us-east-1", bundle_id="value", operating_system=OperatingSystem.UBUNTU)
    assert linux.catalog_operating_system == "Any"


def test_configuration_lists_every_missing_field():
    configuration = Configuration(region="", bundle_id=None, operating_system=None)

    with pytest.raises(InvalidConfigurationError) as error:
        configuration.validate()

    assert error.value.missing_fields == ["region", "bundle_id", "operating_system"]


@pytest.mark.parametrize("overrides", [
    {"number_of_units": 0},
    {"users_per_instance": 0},
    {"user_count": -1},
    {"root_volume_gib": 0},
    {"usage_hours_per_month": 800},
])
def test_configuration_rejects_bad_values(overrides):
    configuration = Configuration(
        region="us-east-1", bundle_id="standard", operating_system=OperatingSystem.WINDOWS, **overrides
    )

    with pytest.raises(InvalidConfigurationError) as error:
        configuration.validate()

    assert error.value.missing_fields == []


@pytest.mark.parametrize("overrides", [
    {"weekday_days_count": 8},
    {"weekday_days_count": 6, "weekend_days_count": 2},
    {"weekend_peak_hours_per_day": 25},
    {"weekday_peak_concurrent_users": 120},
    {"weekend_off_peak_concurrent_users": -5},
])
def test_usage_pattern_rejects_out_of_range_values(overrides):
    with pytest.raises(InvalidUsagePatternError):
        UsagePattern(**overrides).validate()


def test_usage_pattern_clamps_buffer_factor():
    UsagePattern(buffer_factor=3).validate()

    assert UsagePattern(buffer_factor=3).clamped_buffer_factor == 1.0
    assert UsagePattern(buffer_factor=-1).clamped_buffer_factor == 0.0


def test_usage_pattern_periods_cover_the_day():
    periods = UsagePattern().periods()

    assert [label for label, _, _, _ in periods] == [
        "weekday_peak", "weekday_off_peak", "weekend_peak", "weekend_off_peak",
    ]
    assert periods[0][2] + periods[1][2] == 24


def test_catalog_entry_from_selectors():
    entry = CatalogEntry.from_selectors({
        "Bundle Description": "Value (1 vCPU, 2GB RAM)",
        "rootVolume": "80 GB",
        "userVolume": "10 GB",
        "Operating System": "Windows",
        "License": "Included",
        "Running Mode": "AlwaysOn",
        "Product Family": "WorkSpaces Core",
    })

    assert entry.root_volume_gib == 80
    assert entry.user_volume_gib == 10
    assert entry.bundle_spec().vcpu == 1
    assert CatalogEntry.from_selectors({"rootVolume": "80 GB"}) is None


def test_builder_requires_every_piece():
    builder = EstimateBuilder(Product.WORKSPACES_CORE, "us-east-1").with_bundle("Value", None)

    with pytest.raises(ValueError, match="missing"):
        builder.build()


def test_builder_produces_frozen_estimate():
    quote = PriceQuote(21.0, PriceUnit.MONTH, PricingSource.FALLBACK, "Static monthly rate")
    estimate = (
        EstimateBuilder(Product.WORKSPACES_CORE, "us-east-1")
        .with_bundle("Value", None)
        .with_volumes(VolumeResolution(80, 80, True), VolumeResolution(10, 10, True))
        .with_selection("included", "windows", "always-on", "monthly")
        .with_costs(quote, InstanceHours(730, 0), CostBreakdown(21.0, "month"), 21.0, 21.0)
        .assume("Static price used")
        .build()
    )

    assert estimate.assumptions == ("Static price used",)
    assert estimate.to_dict()["bundle_specs"] is None
    assert estimate.to_dict()["unit_price"]["source"] == "fallback"
    with pytest.raises(AttributeError):
        estimate.total_monthly_cost = 0
