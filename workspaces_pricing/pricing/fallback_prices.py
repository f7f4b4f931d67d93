"""
Static fallback prices.
Used when the pricing catalog is unavailable or has no entry for a configuration,
so estimates still show non-zero, plausible costs. Prices are US East (N. Virginia).
"""
from typing import Dict, Optional
import logging

from workspaces_pricing.core.config import config
from workspaces_pricing.domain.pricing_models import (
    BundleSpec,
    LicenseType,
    PriceQuote,
    PriceUnit,
    PricingSource,
    Product,
    RunningMode,
)
from workspaces_pricing.pricing.bundle_classes import resolve_bundle_class


logger = logging.getLogger(__name__)


BYOL_DISCOUNT_MULTIPLIER = 0.85  # BYOL is roughly 15% cheaper than license-included
DEFAULT_BUNDLE_CLASS = "standard"

# WorkSpaces Core, AlwaysOn, USD per month
CORE_MONTHLY_PRICES: Dict[str, Dict[LicenseType, float]] = {
    "value": {LicenseType.INCLUDED: 21.00, LicenseType.BYOL: 17.85},
    "standard": {LicenseType.INCLUDED: 35.00, LicenseType.BYOL: 29.75},
    "performance": {LicenseType.INCLUDED: 60.00, LicenseType.BYOL: 51.00},
    "power": {LicenseType.INCLUDED: 80.00, LicenseType.BYOL: 68.00},
    "powerpro": {LicenseType.INCLUDED: 124.00, LicenseType.BYOL: 105.40},
    "graphics": {LicenseType.INCLUDED: 220.00},
    "graphicspro": {LicenseType.INCLUDED: 350.00},
    "graphics-g4dn": {LicenseType.INCLUDED: 220.00},
    "graphicspro-g4dn": {LicenseType.INCLUDED: 350.00},
    "general-16": {LicenseType.INCLUDED: 250.00},
    "general-32": {LicenseType.INCLUDED: 500.00},
}

# WorkSpaces Core, AutoStop, USD per hour
CORE_AUTOSTOP_HOURLY_PRICES: Dict[str, float] = {
    "value": 0.26,
    "standard": 0.43,
    "performance": 0.57,
    "power": 0.82,
    "powerpro": 1.53,
    "graphics": 1.14,
    "graphicspro": 2.30,
    "graphics-g4dn": 0.90,
    "graphicspro-g4dn": 1.75,
}
CORE_AUTOSTOP_DEFAULT_HOURLY = 0.50

# WorkSpaces Pools, license included, USD per month (billed hourly: / 730)
POOL_MONTHLY_PRICES: Dict[str, float] = {
    "value": 54.75,  # 0.075/hr
    "standard": 87.60,  # 0.12/hr
    "performance": 131.40,  # 0.18/hr
    "power": 182.50,  # 0.25/hr
    "powerpro": 255.50,  # 0.35/hr
    "graphics": 300.00,
    "graphicspro": 450.00,
}
_POOL_CLASS_ALIASES = {
    "graphics-g4dn": "graphics",
    "graphicspro-g4dn": "graphicspro",
    "general-16": "powerpro",
    "general-32": "powerpro",
}

# AppStream streaming instances, USD per hour
APPSTREAM_HOURLY_PRICES: Dict[str, Dict[str, float]] = {
    "general-purpose": {
        "stream.standard.small": 0.10,
        "stream.standard.medium": 0.10,
        "stream.standard.large": 0.25,
        "stream.standard.xlarge": 0.34,
        "stream.standard.2xlarge": 0.68,
    },
    "compute-optimized": {
        "stream.compute.large": 0.29,
        "stream.compute.xlarge": 0.58,
        "stream.compute.2xlarge": 1.16,
        "stream.compute.4xlarge": 2.32,
        "stream.compute.8xlarge": 4.64,
    },
    "memory-optimized": {
        "stream.memory.large": 0.27,
        "stream.memory.xlarge": 0.54,
        "stream.memory.2xlarge": 1.08,
        "stream.memory.4xlarge": 2.16,
        "stream.memory.8xlarge": 4.32,
        "stream.memory.z1d.large": 0.30,
        "stream.memory.z1d.xlarge": 0.60,
        "stream.memory.z1d.2xlarge": 1.20,
        "stream.memory.z1d.3xlarge": 1.80,
        "stream.memory.z1d.6xlarge": 3.60,
        "stream.memory.z1d.12xlarge": 7.20,
    },
    "graphics": {
        "stream.graphics.g4dn.xlarge": 0.65,
        "stream.graphics.g4dn.2xlarge": 0.94,
        "stream.graphics.g4dn.4xlarge": 1.88,
        "stream.graphics.g4dn.8xlarge": 3.43,
        "stream.graphics.g4dn.12xlarge": 5.37,
        "stream.graphics.g4dn.16xlarge": 6.85,
    },
    "graphics-g5": {
        "stream.graphics.g5.xlarge": 0.75,
        "stream.graphics.g5.2xlarge": 1.06,
        "stream.graphics.g5.4xlarge": 2.12,
        "stream.graphics.g5.8xlarge": 3.78,
        "stream.graphics.g5.12xlarge": 5.89,
        "stream.graphics.g5.16xlarge": 7.46,
        "stream.graphics.g5.24xlarge": 11.78,
    },
    "graphics-pro": {
        "stream.graphics-pro.4xlarge": 3.40,
        "stream.graphics-pro.8xlarge": 6.87,
        "stream.graphics-pro.16xlarge": 13.10,
    },
    "graphics-design": {
        "stream.graphics-design.large": 0.42,
        "stream.graphics-design.xlarge": 0.83,
        "stream.graphics-design.2xlarge": 1.35,
        "stream.graphics-design.4xlarge": 2.75,
    },
}
APPSTREAM_DEFAULT_INSTANCE_TYPE = "stream.standard.medium"

# Static prices are US East; other regions are scaled by these factors
REGION_PRICE_MULTIPLIERS: Dict[str, float] = {
    "us-east-1": 1.0,
    "us-east-2": 1.0,
    "us-west-2": 1.05,
    "ca-central-1": 1.10,
    "eu-central-1": 1.15,
    "eu-west-1": 1.15,
    "eu-west-2": 1.15,
    "ap-northeast-1": 1.25,
    "ap-northeast-2": 1.25,
    "ap-southeast-1": 1.25,
    "ap-southeast-2": 1.25,
    "ap-south-1": 1.25,
    "sa-east-1": 1.30,
    "us-gov-west-1": 1.25,
    "us-gov-east-1": 1.25,
}


def region_multiplier(region: str) -> float:
    """Scaling factor for static prices in a region (1.0 when unknown)."""
    return REGION_PRICE_MULTIPLIERS.get(region, 1.0)


def apply_license(prices: Dict[LicenseType, float], license: LicenseType) -> float:
    """
    Pick the price for a license type.

    Classes with only a license-included price get the fixed BYOL discount.
    """
    if license in prices:
        return prices[license]
    included = prices[LicenseType.INCLUDED]
    if license is LicenseType.BYOL:
        return included * BYOL_DISCOUNT_MULTIPLIER
    return included


def pool_class_for_spec(spec: BundleSpec) -> str:
    """Derive a pool bundle class from hardware when the id names none."""
    if spec.has_gpu:
        return "graphicspro" if spec.vcpu >= 16 else "graphics"
    if spec.vcpu <= 1:
        return "value"
    if spec.vcpu <= 2 and spec.memory_gib <= 4:
        return "standard"
    if spec.vcpu <= 2:
        return "performance"
    if spec.vcpu <= 4:
        return "power"
    return "powerpro"


def appstream_hourly_price(instance_type: str) -> float:
    """
    Hourly AppStream price for an instance type.

    Unknown types in a known family get that family's cheapest rate;
    anything else is priced as the default standard instance.
    """
    normalized = instance_type.strip().lower()
    for family_prices in APPSTREAM_HOURLY_PRICES.values():
        if normalized in family_prices:
            return family_prices[normalized]

    family_prefix = ".".join(normalized.split(".")[:2])
    candidates = [
        price
        for family_prices in APPSTREAM_HOURLY_PRICES.values()
        for name, price in family_prices.items()
        if name.startswith(family_prefix + ".")
    ]
    if candidates:
        return min(candidates)
    return APPSTREAM_HOURLY_PRICES["general-purpose"][APPSTREAM_DEFAULT_INSTANCE_TYPE]


def fallback_quote(
    product: Product,
    bundle_id: str,
    license: LicenseType,
    running_mode: RunningMode,
    bundle_spec: Optional[BundleSpec] = None
) -> PriceQuote:
    """
    Static price for a configuration.

    Args:
        product: Priced product
        bundle_id: Client bundle id (instance type for AppStream)
        license: License type
        running_mode: Running mode (selects monthly vs hourly billing for Core)
        bundle_spec: Hardware profile, used when a pool id names no class

    Returns:
        PriceQuote tagged source=fallback; always finite and positive
    """
    if product is Product.APPSTREAM:
        hourly = appstream_hourly_price(bundle_id)
        if license is LicenseType.BYOL:
            hourly *= BYOL_DISCOUNT_MULTIPLIER
        return PriceQuote(hourly, PriceUnit.HOUR, PricingSource.FALLBACK,
                          f"Static AppStream rate for {bundle_id}")

    bundle_class = resolve_bundle_class(bundle_id)

    if product is Product.WORKSPACES_POOLS:
        pool_class = _POOL_CLASS_ALIASES.get(bundle_class, bundle_class)
        if pool_class not in POOL_MONTHLY_PRICES:
            pool_class = pool_class_for_spec(bundle_spec) if bundle_spec else DEFAULT_BUNDLE_CLASS
        monthly = apply_license({LicenseType.INCLUDED: POOL_MONTHLY_PRICES[pool_class]}, license)
        return PriceQuote(monthly / config.HOURS_PER_MONTH, PriceUnit.HOUR, PricingSource.FALLBACK,
                          f"Static pool rate for bundle class {pool_class}")

    if bundle_class is None:
        logger.warning("Bundle id '%s' names no known bundle class, pricing as %s",
                       bundle_id, DEFAULT_BUNDLE_CLASS)
        bundle_class = DEFAULT_BUNDLE_CLASS

    if running_mode is RunningMode.AUTO_STOP:
        hourly = CORE_AUTOSTOP_HOURLY_PRICES.get(bundle_class, CORE_AUTOSTOP_DEFAULT_HOURLY)
        if license is LicenseType.BYOL:
            hourly *= BYOL_DISCOUNT_MULTIPLIER
        return PriceQuote(hourly, PriceUnit.HOUR, PricingSource.FALLBACK,
                          f"Static AutoStop rate for bundle class {bundle_class}")

    monthly = apply_license(CORE_MONTHLY_PRICES[bundle_class], license)
    if running_mode is RunningMode.CUSTOM:
        return PriceQuote(monthly / config.HOURS_PER_MONTH, PriceUnit.HOUR, PricingSource.FALLBACK,
                          f"Static monthly rate for bundle class {bundle_class}, billed hourly")
    return PriceQuote(monthly, PriceUnit.MONTH, PricingSource.FALLBACK,
                      f"Static monthly rate for bundle class {bundle_class}")
