"""
Price resolver service.
Resolves a unit price for a matched catalog entry, falling back to the
static price tables whenever the live catalog cannot supply one.
"""
from typing import Dict, Any, List, Optional
import logging
import math

from workspaces_pricing.core.config import config
from workspaces_pricing.domain.pricing_models import (
    BundleSpec,
    CatalogEntry,
    Configuration,
    PriceQuote,
    PriceUnit,
    PricingSource,
    RunningMode,
)
from workspaces_pricing.pricing.catalog_client import CatalogUnavailableError, PricingCatalogClient
from workspaces_pricing.pricing.fallback_prices import fallback_quote


logger = logging.getLogger(__name__)


class PriceUnavailableError(Exception):
    """Raised internally when a price index exists but holds no usable price."""
    pass


class PriceResolver:
    """Resolves unit prices: live catalog first, static fallback second."""

    def __init__(self, catalog_client: PricingCatalogClient):
        self.catalog_client = catalog_client

    async def resolve(
        self,
        entry: Optional[CatalogEntry],
        configuration: Configuration,
        location_name: str,
        bundle_spec: Optional[BundleSpec] = None
    ) -> PriceQuote:
        """
        Resolve the unit price for a configuration.

        Args:
            entry: Matched catalog entry (None when nothing matched)
            configuration: Pricing request
            location_name: Catalog location name of the region
            bundle_spec: Hardware profile, used by the fallback tier

        Returns:
            PriceQuote from the catalog, or from the fallback tables. Never raises
            for catalog problems.
        """
        calculator = configuration.product.calculator
        if entry is not None and calculator is not None:
            try:
                quote = await self._resolve_live(entry, configuration, calculator, location_name)
                logger.info(
                    "Catalog price for %s in %s: %.4f per %s",
                    entry.bundle_description,
                    location_name,
                    quote.unit_price,
                    quote.unit.value
                )
                return quote
            except CatalogUnavailableError as e:
                logger.warning("Pricing catalog unavailable for %s: %s", entry.bundle_description, e)
            except PriceUnavailableError as e:
                logger.warning("No usable catalog price for %s: %s", entry.bundle_description, e)

        quote = fallback_quote(
            configuration.product,
            configuration.bundle_id,
            configuration.license,
            configuration.running_mode,
            bundle_spec
        )
        logger.warning(
            "Using fallback price for %s (%s): %.4f per %s",
            configuration.bundle_id,
            configuration.product.value,
            quote.unit_price,
            quote.unit.value
        )
        return quote

    async def _resolve_live(
        self,
        entry: CatalogEntry,
        configuration: Configuration,
        calculator: str,
        location_name: str
    ) -> PriceQuote:
        index = await self.catalog_client.get_price_index(
            calculator,
            location_name,
            entry.price_path(configuration.product)
        )

        regions = index.get("regions")
        if not isinstance(regions, dict) or not isinstance(regions.get(location_name), dict):
            raise PriceUnavailableError(f"price index has no data for {location_name}")

        lines = [line for line in regions[location_name].values() if isinstance(line, dict)]
        if not lines:
            raise PriceUnavailableError(f"price index for {location_name} has no price lines")

        mode = configuration.running_mode
        if mode in (RunningMode.AUTO_STOP, RunningMode.POOL):
            hourly = self._parse_price(self._hourly_line(lines))
            if hourly <= 0:
                raise PriceUnavailableError(f"hourly price for {location_name} is zero")
            return PriceQuote(
                hourly,
                PriceUnit.HOUR,
                PricingSource.CATALOG,
                f"{entry.bundle_description} hourly rate"
            )

        monthly = sum(self._parse_price(line) for line in lines)
        if monthly <= 0:
            raise PriceUnavailableError(f"price lines for {location_name} sum to zero")
        if mode is RunningMode.CUSTOM:
            return PriceQuote(
                monthly / config.HOURS_PER_MONTH,
                PriceUnit.HOUR,
                PricingSource.CATALOG,
                f"{entry.bundle_description} monthly rate, billed hourly"
            )
        return PriceQuote(monthly, PriceUnit.MONTH, PricingSource.CATALOG,
                          f"{entry.bundle_description} monthly rate")

    @staticmethod
    def _hourly_line(lines: List[Dict[str, Any]]) -> Dict[str, Any]:
        for line in lines:
            if str(line.get("Unit", "")).lower() == "hour":
                return line
        return lines[0]

    @staticmethod
    def _parse_price(line: Dict[str, Any]) -> float:
        try:
            price = float(line["price"])
        except (KeyError, TypeError, ValueError) as e:
            raise PriceUnavailableError(f"unparsable price line {line}") from e
        if not math.isfinite(price) or price < 0:
            raise PriceUnavailableError(f"invalid price {line['price']}")
        return price
