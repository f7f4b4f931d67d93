"""
Pricing estimator service.
Orchestrates a single estimate: catalog lookup, bundle matching, volume
reconciliation, usage hours, price resolution and cost aggregation.

Every call builds its own intermediate state; nothing is cached between requests.
"""
from typing import List, Optional, Tuple
from dataclasses import replace
import logging

from workspaces_pricing.core.config import config
from workspaces_pricing.domain.estimate_models import InstanceHours, PricingEstimate, VolumeResolution
from workspaces_pricing.domain.pricing_models import (
    BundleSpec,
    CatalogEntry,
    Configuration,
    PricingSource,
    Product,
    RunningMode,
    UsagePattern,
)
from workspaces_pricing.pricing.bundle_classes import display_name
from workspaces_pricing.pricing.catalog_client import CatalogUnavailableError, PricingCatalogClient
from workspaces_pricing.pricing.fallback_prices import region_multiplier
from workspaces_pricing.pricing.region_map import get_location_name
from workspaces_pricing.services.catalog_matcher import CatalogMatch, CatalogMatcher, parse_catalog
from workspaces_pricing.services.cost_aggregator import CostAggregator
from workspaces_pricing.services.price_resolver import PriceResolver
from workspaces_pricing.services.usage_hours import UsageHoursCalculator
from workspaces_pricing.services.volume_reconciler import VolumeReconciler


logger = logging.getLogger(__name__)


class PricingEstimator:
    """Estimates monthly costs for WorkSpaces and AppStream configurations."""

    def __init__(
        self,
        catalog_client: Optional[PricingCatalogClient] = None,
        matcher: Optional[CatalogMatcher] = None,
        reconciler: Optional[VolumeReconciler] = None,
        hours_calculator: Optional[UsageHoursCalculator] = None,
        price_resolver: Optional[PriceResolver] = None,
        aggregator: Optional[CostAggregator] = None
    ):
        """
        Initialize pricing estimator.

        Args:
            catalog_client: Pricing catalog client (default client if None)
            matcher: Catalog matcher
            reconciler: Volume reconciler
            hours_calculator: Usage hours calculator
            price_resolver: Price resolver (built on catalog_client if None)
            aggregator: Cost aggregator
        """
        self.catalog_client = catalog_client or PricingCatalogClient()
        self.matcher = matcher or CatalogMatcher()
        self.reconciler = reconciler or VolumeReconciler()
        self.hours_calculator = hours_calculator or UsageHoursCalculator()
        self.price_resolver = price_resolver or PriceResolver(self.catalog_client)
        self.aggregator = aggregator or CostAggregator()

    async def estimate(
        self,
        configuration: Configuration,
        usage_pattern: Optional[UsagePattern] = None
    ) -> PricingEstimate:
        """
        Estimate the monthly cost of a configuration.

        Args:
            configuration: Pricing request
            usage_pattern: Weekly usage pattern (optional)

        Returns:
            Complete PricingEstimate; catalog problems degrade to fallback prices

        Raises:
            InvalidConfigurationError: If required fields are missing or invalid
            InvalidUsagePatternError: If the usage pattern violates its bounds
        """
        configuration.validate()
        if usage_pattern is not None:
            usage_pattern.validate()

        product = configuration.product
        location_name = get_location_name(configuration.region)
        assumptions: List[str] = []
        logger.info(
            "Estimating %s %s in %s (%s)",
            product.value,
            configuration.bundle_id,
            configuration.region,
            configuration.running_mode.value
        )

        requested_root = configuration.root_volume_gib or config.DEFAULT_ROOT_VOLUME_GIB
        requested_user = configuration.user_volume_gib or config.DEFAULT_USER_VOLUME_GIB

        catalog = await self._load_catalog(product, location_name, assumptions)
        match, root_volume, user_volume = self._match(
            configuration, catalog, requested_root, requested_user, assumptions
        )

        entry: Optional[CatalogEntry] = None
        bundle_spec: Optional[BundleSpec] = None
        if match is not None:
            entry = self._with_running_mode(match.entry, configuration)
            bundle_name = entry.bundle_description
            bundle_spec = entry.bundle_spec()
        elif product is Product.APPSTREAM:
            bundle_name = configuration.bundle_id
        else:
            bundle_name = display_name(configuration.bundle_id)

        hours = self._hours(configuration, usage_pattern, assumptions)
        quote = await self.price_resolver.resolve(entry, configuration, location_name, bundle_spec)

        if quote.source is PricingSource.FALLBACK:
            multiplier = region_multiplier(configuration.region)
            assumptions.append(f"Static price used: {quote.description}")
            if multiplier != 1.0:
                assumptions.append(
                    f"Static prices scaled by {multiplier:.2f} for region {configuration.region}"
                )

        return self.aggregator.aggregate(
            quote,
            hours,
            configuration,
            root_volume,
            user_volume,
            bundle_name,
            bundle_spec,
            assumptions
        )

    async def _load_catalog(
        self,
        product: Product,
        location_name: str,
        assumptions: List[str]
    ) -> List[CatalogEntry]:
        """Fetch and parse the region's aggregation catalog; empty when unavailable."""
        if product.calculator is None:
            return []
        try:
            data = await self.catalog_client.get_aggregations(product.calculator, location_name)
        except CatalogUnavailableError as e:
            logger.warning("Aggregation catalog unavailable for %s: %s", location_name, e)
            assumptions.append("Pricing catalog unavailable; static prices used")
            return []
        return parse_catalog(data)

    def _match(
        self,
        configuration: Configuration,
        catalog: List[CatalogEntry],
        requested_root: int,
        requested_user: int,
        assumptions: List[str]
    ) -> Tuple[Optional[CatalogMatch], VolumeResolution, VolumeResolution]:
        """Match the bundle and reconcile its volumes against what the catalog offers."""
        kept = (
            VolumeResolution(requested_root, requested_root, honored=True),
            VolumeResolution(requested_user, requested_user, honored=True),
        )
        if not catalog:
            return None, kept[0], kept[1]

        candidates = self.matcher.candidates(configuration.bundle_id, catalog)
        if not candidates:
            assumptions.append(
                f"No catalog bundle matches '{configuration.bundle_id}'; priced from static table"
            )
            return None, kept[0], kept[1]

        offered_roots, offered_users = self.matcher.offered_volumes(candidates)
        root = self.reconciler.reconcile(requested_root, offered_roots)
        user = self.reconciler.reconcile(requested_user, offered_users)

        match = self.matcher.match(
            configuration.bundle_id,
            catalog,
            configuration.catalog_operating_system,
            configuration.license.catalog_value,
            root.resolved_gib,
            user.resolved_gib
        )
        if match is None:
            return None, kept[0], kept[1]

        # The priced volumes are the matched entry's
        root = self._priced_volume(requested_root, root, match.entry.root_volume_gib)
        user = self._priced_volume(requested_user, user, match.entry.user_volume_gib)
        if not (root.honored and user.honored):
            assumptions.append(
                f"Requested volumes {requested_root}/{requested_user} GB not offered; "
                f"priced with {root.resolved_gib}/{user.resolved_gib} GB"
            )
        if not match.is_exact:
            assumptions.append(
                f"Closest catalog configuration used for {match.entry.bundle_description} "
                f"(match tier {match.tier})"
            )
        return match, root, user

    @staticmethod
    def _priced_volume(requested: int, reconciled: VolumeResolution, entry_gib: Optional[int]) -> VolumeResolution:
        if entry_gib is None:
            return reconciled
        return VolumeResolution(requested, entry_gib, honored=entry_gib == requested)

    @staticmethod
    def _with_running_mode(entry: CatalogEntry, configuration: Configuration) -> CatalogEntry:
        """Point a core entry at the price file of the requested running mode."""
        if configuration.product is not Product.WORKSPACES_CORE or not entry.running_mode:
            return entry
        if configuration.running_mode is RunningMode.AUTO_STOP:
            return replace(entry, running_mode=RunningMode.AUTO_STOP.catalog_value)
        return replace(entry, running_mode=RunningMode.ALWAYS_ON.catalog_value)

    def _hours(
        self,
        configuration: Configuration,
        usage_pattern: Optional[UsagePattern],
        assumptions: List[str]
    ) -> InstanceHours:
        """Monthly instance-hours for the configuration's running mode."""
        product = configuration.product
        mode = configuration.running_mode
        if product is Product.WORKSPACES_CORE:
            units = configuration.number_of_units
        else:
            units = configuration.user_count

        if mode is RunningMode.ALWAYS_ON:
            if product is Product.APPSTREAM:
                return self.hours_calculator.always_on_hours(
                    configuration.user_count, configuration.peak_user_cap
                )
            return self.hours_calculator.flat_hours(config.HOURS_PER_MONTH, units)

        if usage_pattern is not None:
            return self.hours_calculator.compute_hours(
                usage_pattern,
                units,
                instance_function=configuration.instance_function,
                users_per_instance=configuration.users_per_instance,
                multi_session=configuration.multi_session
            )

        if mode is RunningMode.AUTO_STOP:
            assumptions.append(
                f"AutoStop usage assumed at {config.AUTOSTOP_HOURS_PER_MONTH} hours per month"
            )
            return self.hours_calculator.flat_hours(config.AUTOSTOP_HOURS_PER_MONTH, units)

        if mode is RunningMode.CUSTOM:
            hours_per_month = configuration.usage_hours_per_month
            if hours_per_month is None:
                hours_per_month = config.HOURS_PER_MONTH
                assumptions.append(f"Custom usage assumed at {hours_per_month} hours per month")
            return self.hours_calculator.flat_hours(hours_per_month, units)

        assumptions.append("Default usage pattern applied")
        return self.hours_calculator.compute_hours(
            UsagePattern(),
            units,
            instance_function=configuration.instance_function,
            users_per_instance=configuration.users_per_instance,
            multi_session=configuration.multi_session
        )
