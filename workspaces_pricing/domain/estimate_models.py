"""
Domain models for cost estimates.
Defines instance-hour totals, volume resolutions and the final estimate.
Currency values keep full precision until to_dict().
"""
from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field

from workspaces_pricing.domain.pricing_models import (
    BundleSpec,
    PriceQuote,
    PricingSource,
    Product,
)


@dataclass(frozen=True)
class InstanceHours:
    """Monthly instance-hours split into utilized and buffer (idle) capacity."""
    utilized: float
    buffer: float

    @property
    def total(self) -> float:
        return self.utilized + self.buffer

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "utilized": round(self.utilized, 2),
            "buffer": round(self.buffer, 2),
            "total": round(self.total, 2),
        }


@dataclass(frozen=True)
class VolumeResolution:
    """Outcome of matching a requested volume size against offered sizes."""
    requested_gib: int
    resolved_gib: int
    honored: bool


@dataclass(frozen=True)
class CostBreakdown:
    """Every intermediate amount of a cost aggregation."""
    base_unit_price: float
    unit: str
    os_addition: float = 0.0
    function_multiplier: float = 1.0
    region_multiplier: float = 1.0
    multi_session_multiplier: float = 1.0
    adjusted_unit_price: float = 0.0
    billed_quantity: float = 0.0
    instance_cost: float = 0.0
    user_license_cost: float = 0.0
    active_streaming_cost: float = 0.0
    stopped_instance_cost: float = 0.0
    stopped_instance_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "base_unit_price": round(self.base_unit_price, 4),
            "unit": self.unit,
            "os_addition": self.os_addition,
            "function_multiplier": self.function_multiplier,
            "region_multiplier": self.region_multiplier,
            "multi_session_multiplier": self.multi_session_multiplier,
            "adjusted_unit_price": round(self.adjusted_unit_price, 4),
            "billed_quantity": round(self.billed_quantity, 2),
            "instance_cost": round(self.instance_cost, 2),
            "user_license_cost": round(self.user_license_cost, 2),
            "active_streaming_cost": round(self.active_streaming_cost, 2),
            "stopped_instance_cost": round(self.stopped_instance_cost, 2),
        }
        if self.stopped_instance_rate is not None:
            result["stopped_instance_rate"] = self.stopped_instance_rate
        return result


@dataclass(frozen=True)
class PricingEstimate:
    """Represents a complete monthly cost estimate for one configuration."""
    product: Product
    region: str
    bundle_name: str
    bundle_spec: Optional[BundleSpec]
    quote: PriceQuote
    instance_hours: InstanceHours
    breakdown: CostBreakdown
    cost_per_unit: float
    total_monthly_cost: float
    root_volume: VolumeResolution
    user_volume: VolumeResolution
    license: str
    operating_system: str
    running_mode: str
    billing_model: str
    assumptions: Tuple[str, ...] = field(default_factory=tuple)

    RESERVED_ONE_YEAR_RATIO = 0.75
    RESERVED_THREE_YEAR_RATIO = 0.60

    @property
    def annual_estimate(self) -> float:
        return self.total_monthly_cost * 12

    @property
    def one_year_reserved_cost(self) -> float:
        return self.annual_estimate * self.RESERVED_ONE_YEAR_RATIO

    @property
    def three_year_reserved_cost(self) -> float:
        return self.annual_estimate * self.RESERVED_THREE_YEAR_RATIO

    @property
    def pricing_source(self) -> PricingSource:
        return self.quote.source

    @property
    def volume_selection_honored(self) -> bool:
        return self.root_volume.honored and self.user_volume.honored

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "currency": "USD",
            "product": self.product.value,
            "region": self.region,
            "bundle_name": self.bundle_name,
            "bundle_specs": self.bundle_spec.to_dict() if self.bundle_spec else None,
            "cost_per_unit": round(self.cost_per_unit, 2),
            "total_monthly_cost": round(self.total_monthly_cost, 2),
            "annual_estimate": round(self.annual_estimate, 2),
            "one_year_reserved_cost": round(self.one_year_reserved_cost, 2),
            "three_year_reserved_cost": round(self.three_year_reserved_cost, 2),
            "instance_hours": self.instance_hours.to_dict(),
            "breakdown": self.breakdown.to_dict(),
            "unit_price": self.quote.to_dict(),
            "pricing_source": self.pricing_source.value,
            "volume_selection_honored": self.volume_selection_honored,
            "root_volume": self.root_volume.resolved_gib,
            "user_volume": self.user_volume.resolved_gib,
            "requested_volumes": {
                "root_volume": self.root_volume.requested_gib,
                "user_volume": self.user_volume.requested_gib,
            },
            "storage": self.root_volume.resolved_gib + self.user_volume.resolved_gib,
            "license": self.license,
            "operating_system": self.operating_system,
            "running_mode": self.running_mode,
            "billing_model": self.billing_model,
            "assumptions": list(self.assumptions),
        }


class EstimateBuilder:
    """
    Collects the pieces of an estimate and produces a frozen PricingEstimate.

    Each setter returns the builder; nothing is shared between builders.
    """

    def __init__(self, product: Product, region: str):
        self._product = product
        self._region = region
        self._values: Dict[str, Any] = {}
        self._assumptions: List[str] = []

    def assume(self, assumption: str) -> "EstimateBuilder":
        self._assumptions.append(assumption)
        return self

    def assume_all(self, assumptions: List[str]) -> "EstimateBuilder":
        self._assumptions.extend(assumptions)
        return self

    def with_bundle(self, name: str, spec: Optional[BundleSpec]) -> "EstimateBuilder":
        self._values["bundle_name"] = name
        self._values["bundle_spec"] = spec
        return self

    def with_volumes(self, root: VolumeResolution, user: VolumeResolution) -> "EstimateBuilder":
        self._values["root_volume"] = root
        self._values["user_volume"] = user
        return self

    def with_selection(
        self,
        license: str,
        operating_system: str,
        running_mode: str,
        billing_model: str
    ) -> "EstimateBuilder":
        self._values["license"] = license
        self._values["operating_system"] = operating_system
        self._values["running_mode"] = running_mode
        self._values["billing_model"] = billing_model
        return self

    def with_costs(
        self,
        quote: PriceQuote,
        hours: InstanceHours,
        breakdown: CostBreakdown,
        total_monthly_cost: float,
        cost_per_unit: float
    ) -> "EstimateBuilder":
        self._values["quote"] = quote
        self._values["instance_hours"] = hours
        self._values["breakdown"] = breakdown
        self._values["total_monthly_cost"] = total_monthly_cost
        self._values["cost_per_unit"] = cost_per_unit
        return self

    def build(self) -> PricingEstimate:
        """
        Produce the estimate.

        Raises:
            ValueError: If a required piece was never supplied
        """
        required = (
            "bundle_name", "quote", "instance_hours", "breakdown", "total_monthly_cost",
            "cost_per_unit", "root_volume", "user_volume", "license", "operating_system",
            "running_mode", "billing_model",
        )
        missing = [name for name in required if name not in self._values]
        if missing:
            raise ValueError(f"Estimate is incomplete, missing: {', '.join(missing)}")

        return PricingEstimate(
            product=self._product,
            region=self._region,
            bundle_spec=self._values.get("bundle_spec"),
            assumptions=tuple(self._assumptions),
            **{name: self._values[name] for name in required},
        )
