"""
Cost aggregator service.
Turns a unit price and instance-hours into a complete PricingEstimate.

Dedicated capacity (WorkSpaces Core, AppStream):
    adjusted = (unit price + OS addition) x function x region x multi-session
    instance cost = adjusted x (units if priced per month, else instance-hours)

Pooled capacity (WorkSpaces Pools):
    total = user licenses + utilized hours x adjusted + buffer hours x stopped rate
"""
from typing import Dict, List, Optional
from dataclasses import replace
import logging

from workspaces_pricing.core.config import config
from workspaces_pricing.domain.estimate_models import (
    CostBreakdown,
    EstimateBuilder,
    InstanceHours,
    PricingEstimate,
    VolumeResolution,
)
from workspaces_pricing.domain.pricing_models import (
    BundleSpec,
    Configuration,
    InstanceFunction,
    LicenseType,
    OperatingSystem,
    PriceQuote,
    PriceUnit,
    PricingSource,
    Product,
)
from workspaces_pricing.pricing.fallback_prices import region_multiplier


logger = logging.getLogger(__name__)


USER_LICENSE_FEE_PER_MONTH = 4.19  # USD per user, Windows license-included
STOPPED_INSTANCE_RATE = 0.025  # USD per hour for pool buffer capacity
MULTI_SESSION_MULTIPLIER = 0.8

OS_HOURLY_ADDITIONS: Dict[OperatingSystem, float] = {
    OperatingSystem.RHEL: 0.10,
}

FUNCTION_MULTIPLIERS: Dict[InstanceFunction, float] = {
    InstanceFunction.FLEET: 1.0,
    InstanceFunction.IMAGE_BUILDER: 1.0,
    InstanceFunction.ELASTIC_FLEET: 0.9,
}


class CostAggregator:
    """Aggregates prices and hours into cost estimates."""

    def aggregate(
        self,
        quote: PriceQuote,
        hours: InstanceHours,
        configuration: Configuration,
        root_volume: VolumeResolution,
        user_volume: VolumeResolution,
        bundle_name: str,
        bundle_spec: Optional[BundleSpec] = None,
        assumptions: Optional[List[str]] = None
    ) -> PricingEstimate:
        """
        Build the estimate for a priced configuration.

        Args:
            quote: Resolved unit price
            hours: Monthly instance-hours
            configuration: Pricing request
            root_volume: Root volume resolution
            user_volume: User volume resolution
            bundle_name: Display name of the priced bundle
            bundle_spec: Hardware profile of the bundle
            assumptions: Notes collected while resolving the request

        Returns:
            PricingEstimate with full-precision amounts
        """
        if configuration.product is Product.WORKSPACES_POOLS:
            breakdown, total = self._pooled(quote, hours, configuration)
            billed_units = configuration.user_count
        else:
            breakdown, total = self._dedicated(quote, hours, configuration)
            billed_units = (
                configuration.user_count
                if configuration.product is Product.APPSTREAM
                else configuration.number_of_units
            )

        cost_per_unit = total / billed_units if billed_units > 0 else 0.0
        logger.debug(
            "Aggregated %s: total %.4f, per unit %.4f",
            configuration.product.value,
            total,
            cost_per_unit
        )

        return (
            EstimateBuilder(configuration.product, configuration.region)
            .with_bundle(bundle_name, bundle_spec)
            .with_volumes(root_volume, user_volume)
            .with_selection(
                license=configuration.license.value,
                operating_system=configuration.operating_system.value,
                running_mode=configuration.running_mode.value,
                billing_model="monthly" if quote.unit is PriceUnit.MONTH else "hourly"
            )
            .with_costs(quote, hours, breakdown, total, cost_per_unit)
            .assume_all(assumptions or [])
            .build()
        )

    def adjusted_unit_price(self, quote: PriceQuote, configuration: Configuration) -> CostBreakdown:
        """Apply OS, function, region and multi-session adjustments to a unit price."""
        os_addition = 0.0
        if quote.unit is PriceUnit.HOUR:
            os_addition = OS_HOURLY_ADDITIONS.get(configuration.operating_system, 0.0)

        function_multiplier = 1.0
        if configuration.instance_function is not None:
            function_multiplier = FUNCTION_MULTIPLIERS[configuration.instance_function]

        # Catalog prices are already regional
        regional = 1.0
        if quote.source is PricingSource.FALLBACK:
            regional = region_multiplier(configuration.region)

        multi_session = MULTI_SESSION_MULTIPLIER if configuration.multi_session else 1.0

        adjusted = (quote.unit_price + os_addition) * function_multiplier * regional * multi_session
        return CostBreakdown(
            base_unit_price=quote.unit_price,
            unit=quote.unit.value,
            os_addition=os_addition,
            function_multiplier=function_multiplier,
            region_multiplier=regional,
            multi_session_multiplier=multi_session,
            adjusted_unit_price=adjusted,
        )

    def _dedicated(self, quote: PriceQuote, hours: InstanceHours, configuration: Configuration):
        breakdown = self.adjusted_unit_price(quote, configuration)
        if quote.unit is PriceUnit.MONTH:
            billed_quantity = float(configuration.number_of_units)
        else:
            billed_quantity = hours.total
        instance_cost = breakdown.adjusted_unit_price * billed_quantity

        user_license_cost = 0.0
        if (
            configuration.product is Product.APPSTREAM
            and configuration.operating_system is OperatingSystem.WINDOWS
            and configuration.license is LicenseType.INCLUDED
        ):
            user_license_cost = USER_LICENSE_FEE_PER_MONTH * configuration.user_count

        total = instance_cost + user_license_cost
        return self._with_costs(
            breakdown,
            billed_quantity=billed_quantity,
            instance_cost=instance_cost,
            user_license_cost=user_license_cost,
        ), total

    def _pooled(self, quote: PriceQuote, hours: InstanceHours, configuration: Configuration):
        breakdown = self.adjusted_unit_price(quote, configuration)
        hourly_rate = breakdown.adjusted_unit_price
        if quote.unit is PriceUnit.MONTH:
            logger.warning("Pool price quoted per month, converting to hourly")
            hourly_rate = hourly_rate / config.HOURS_PER_MONTH

        user_license_cost = 0.0
        if configuration.license is LicenseType.INCLUDED:
            user_license_cost = USER_LICENSE_FEE_PER_MONTH * configuration.user_count

        active_streaming_cost = hours.utilized * hourly_rate
        stopped_instance_cost = hours.buffer * STOPPED_INSTANCE_RATE
        total = user_license_cost + active_streaming_cost + stopped_instance_cost
        return self._with_costs(
            breakdown,
            billed_quantity=hours.total,
            instance_cost=active_streaming_cost + stopped_instance_cost,
            user_license_cost=user_license_cost,
            active_streaming_cost=active_streaming_cost,
            stopped_instance_cost=stopped_instance_cost,
            stopped_instance_rate=STOPPED_INSTANCE_RATE,
        ), total

    @staticmethod
    def _with_costs(breakdown: CostBreakdown, **amounts) -> CostBreakdown:
        return replace(breakdown, **amounts)
