"""
Domain models for pricing requests.
Defines configurations, usage patterns, bundle specs and catalog entries.
"""
from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass
from enum import Enum
import re

from workspaces_pricing.core.config import config


class InvalidConfigurationError(Exception):
    """Raised when a pricing request is missing required fields or has unusable values."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class InvalidUsagePatternError(Exception):
    """Raised when a usage pattern violates its bounds."""
    pass


class Product(Enum):
    """Priced product; each maps to one calculator in the pricing catalog."""
    WORKSPACES_CORE = "workspaces-core"
    WORKSPACES_POOLS = "workspaces-pools"
    APPSTREAM = "appstream"

    @property
    def calculator(self) -> Optional[str]:
        """Catalog calculator name, or None when the product is priced from static tables only."""
        return {
            Product.WORKSPACES_CORE: "workspaces-core-calc",
            Product.WORKSPACES_POOLS: "workspaces-pools-calc",
        }.get(self)


class OperatingSystem(Enum):
    WINDOWS = "windows"
    AMAZON_LINUX = "amazon-linux"
    UBUNTU = "ubuntu"
    RHEL = "rhel"
    ROCKY_LINUX = "rocky-linux"
    ANY = "any"  # BYOL images


class LicenseType(Enum):
    INCLUDED = "included"
    BYOL = "bring-your-own-license"

    @property
    def catalog_value(self) -> str:
        return "Bring Your Own License" if self is LicenseType.BYOL else "Included"


class RunningMode(Enum):
    ALWAYS_ON = "always-on"
    AUTO_STOP = "auto-stop"
    POOL = "pool"
    CUSTOM = "custom"

    @property
    def catalog_value(self) -> str:
        return {
            RunningMode.ALWAYS_ON: "AlwaysOn",
            RunningMode.AUTO_STOP: "AutoStop",
            RunningMode.POOL: "Pool",
            RunningMode.CUSTOM: "Custom",
        }[self]


class InstanceFunction(Enum):
    FLEET = "fleet"
    IMAGE_BUILDER = "imagebuilder"
    ELASTIC_FLEET = "elasticfleet"


class GraphicsClass(Enum):
    STANDARD = "Standard"
    HIGH_PERFORMANCE = "High Performance"


class PriceUnit(Enum):
    HOUR = "hour"
    MONTH = "month"


class PricingSource(Enum):
    CATALOG = "catalog"
    FALLBACK = "fallback"


_BUNDLE_DESCRIPTION_PATTERN = re.compile(
    r"^([\w.]+) \((\d+) vCPU, (\d+)GB RAM(?:, (\d+) GPU, (\d+)GB Video Memory)?\)$"
)
_GIB_PATTERN = re.compile(r"(\d+)\s*GB", re.IGNORECASE)


def parse_gib(value: Optional[str]) -> Optional[int]:
    """Parse a catalog size string such as '80 GB' into GiB."""
    if not value:
        return None
    match = _GIB_PATTERN.search(str(value))
    if match:
        return int(match.group(1))
    digits = re.search(r"\d+", str(value))
    return int(digits.group(0)) if digits else None


def format_gib(size_gib: int) -> str:
    """Format GiB the way catalog selectors spell volumes."""
    return f"{size_gib} GB"


@dataclass(frozen=True)
class BundleSpec:
    """Hardware profile of a bundle."""
    vcpu: int
    memory_gib: float
    storage_gib: int
    graphics_class: GraphicsClass
    gpu_count: Optional[int] = None
    video_memory_gib: Optional[int] = None

    @property
    def has_gpu(self) -> bool:
        return self.graphics_class is GraphicsClass.HIGH_PERFORMANCE

    @classmethod
    def from_description(cls, description: str) -> "BundleSpec":
        """
        Parse a catalog bundle description.

        Example: 'Graphics.g4dn (4 vCPU, 16GB RAM, 1 GPU, 16GB Video Memory)'.
        Descriptions that do not follow the catalog format yield a 2 vCPU / 8 GiB standard profile.
        """
        match = _BUNDLE_DESCRIPTION_PATTERN.match(description.strip())
        if not match:
            return cls(vcpu=2, memory_gib=8, storage_gib=config.DEFAULT_ROOT_VOLUME_GIB,
                       graphics_class=GraphicsClass.STANDARD)

        has_gpu = match.group(4) is not None
        return cls(
            vcpu=int(match.group(2)),
            memory_gib=int(match.group(3)),
            storage_gib=config.DEFAULT_ROOT_VOLUME_GIB,
            graphics_class=GraphicsClass.HIGH_PERFORMANCE if has_gpu else GraphicsClass.STANDARD,
            gpu_count=int(match.group(4)) if has_gpu else None,
            video_memory_gib=int(match.group(5)) if has_gpu else None,
        )

    @classmethod
    def from_selectors(cls, selectors: Dict[str, Any]) -> "BundleSpec":
        """Build a spec from pool catalog selectors (Bundle, vCPU, Memory, rootVolume)."""
        bundle = str(selectors.get("Bundle") or selectors.get("Bundle Description") or "")
        is_graphics = "Graphics" in bundle
        return cls(
            vcpu=int(selectors.get("vCPU") or 0),
            memory_gib=parse_gib(selectors.get("Memory")) or 0,
            storage_gib=parse_gib(selectors.get("rootVolume")) or config.DEFAULT_ROOT_VOLUME_GIB,
            graphics_class=GraphicsClass.HIGH_PERFORMANCE if is_graphics else GraphicsClass.STANDARD,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "vcpu": self.vcpu,
            "memory_gib": self.memory_gib,
            "storage_gib": self.storage_gib,
            "graphics": self.graphics_class.value,
        }
        if self.gpu_count is not None:
            result["gpu_count"] = self.gpu_count
            result["video_memory_gib"] = self.video_memory_gib
        return result


@dataclass(frozen=True)
class Configuration:
    """A pricing request: what to price and for how many units."""
    region: Optional[str]
    bundle_id: Optional[str]
    operating_system: Optional[OperatingSystem]
    license: LicenseType = LicenseType.INCLUDED
    running_mode: RunningMode = RunningMode.ALWAYS_ON
    root_volume_gib: Optional[int] = None
    user_volume_gib: Optional[int] = None
    multi_session: bool = False
    instance_function: Optional[InstanceFunction] = None
    number_of_units: int = 1
    user_count: int = 1
    users_per_instance: int = 1
    usage_hours_per_month: Optional[float] = None
    peak_user_cap: Optional[int] = None

    @property
    def product(self) -> Product:
        if self.instance_function is not None:
            return Product.APPSTREAM
        if self.running_mode is RunningMode.POOL:
            return Product.WORKSPACES_POOLS
        return Product.WORKSPACES_CORE

    @property
    def catalog_operating_system(self) -> str:
        """Operating system as spelled in the catalog; everything but Windows is 'Any'."""
        return "Windows" if self.operating_system is OperatingSystem.WINDOWS else "Any"

    def validate(self) -> None:
        """
        Validate required fields and numeric bounds.

        Raises:
            InvalidConfigurationError: Listing every missing required field, or the first bad value
        """
        missing = [
            name for name in ("region", "bundle_id", "operating_system")
            if getattr(self, name) in (None, "")
        ]
        if missing:
            raise InvalidConfigurationError(
                f"Missing required fields: {', '.join(missing)}",
                missing_fields=missing
            )

        if self.number_of_units < 1:
            raise InvalidConfigurationError("number_of_units must be at least 1")
        if self.users_per_instance < 1:
            raise InvalidConfigurationError("users_per_instance must be at least 1")
        if self.user_count < 0:
            raise InvalidConfigurationError("user_count must not be negative")
        for name in ("root_volume_gib", "user_volume_gib"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise InvalidConfigurationError(f"{name} must be positive")
        if self.usage_hours_per_month is not None and not 0 <= self.usage_hours_per_month <= config.HOURS_PER_MONTH:
            raise InvalidConfigurationError(
                f"usage_hours_per_month must be between 0 and {config.HOURS_PER_MONTH}"
            )


@dataclass(frozen=True)
class UsagePattern:
    """
    Weekly usage pattern.

    Concurrent-user fields are percentages (0-100) of the total user count.
    Off-peak hours per day are whatever remains of 24 after peak hours.
    """
    weekday_days_count: int = 5
    weekday_peak_hours_per_day: int = 8
    weekday_peak_concurrent_users: float = 80
    weekday_off_peak_concurrent_users: float = 10
    weekend_days_count: int = 2
    weekend_peak_hours_per_day: int = 4
    weekend_peak_concurrent_users: float = 40
    weekend_off_peak_concurrent_users: float = 5
    buffer_factor: float = 0.1

    @property
    def clamped_buffer_factor(self) -> float:
        return min(max(self.buffer_factor, 0.0), 1.0)

    @property
    def is_degenerate(self) -> bool:
        """True when no day of the week is in use."""
        return self.weekday_days_count == 0 and self.weekend_days_count == 0

    def periods(self) -> List[Tuple[str, int, int, float]]:
        """
        Expand into (label, days, hours_per_day, concurrent_percent) periods.

        Four periods: weekday/weekend crossed with peak/off-peak.
        """
        return [
            ("weekday_peak", self.weekday_days_count, self.weekday_peak_hours_per_day,
             self.weekday_peak_concurrent_users),
            ("weekday_off_peak", self.weekday_days_count, 24 - self.weekday_peak_hours_per_day,
             self.weekday_off_peak_concurrent_users),
            ("weekend_peak", self.weekend_days_count, self.weekend_peak_hours_per_day,
             self.weekend_peak_concurrent_users),
            ("weekend_off_peak", self.weekend_days_count, 24 - self.weekend_peak_hours_per_day,
             self.weekend_off_peak_concurrent_users),
        ]

    def validate(self) -> None:
        """
        Validate day, hour and percentage bounds.

        Raises:
            InvalidUsagePatternError: If any bound is violated
        """
        for name in ("weekday_days_count", "weekend_days_count"):
            value = getattr(self, name)
            if not 0 <= value <= 7:
                raise InvalidUsagePatternError(f"{name} must be between 0 and 7 (got {value})")
        total_days = self.weekday_days_count + self.weekend_days_count
        if total_days > 7:
            raise InvalidUsagePatternError(
                f"weekday_days_count + weekend_days_count must not exceed 7 (got {total_days})"
            )

        for name in ("weekday_peak_hours_per_day", "weekend_peak_hours_per_day"):
            value = getattr(self, name)
            if not 0 <= value <= 24:
                raise InvalidUsagePatternError(f"{name} must be between 0 and 24 (got {value})")

        for name in (
            "weekday_peak_concurrent_users",
            "weekday_off_peak_concurrent_users",
            "weekend_peak_concurrent_users",
            "weekend_off_peak_concurrent_users",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise InvalidUsagePatternError(
                    f"{name} is a percentage of total users and must be between 0 and 100 (got {value})"
                )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "weekday_days_count": self.weekday_days_count,
            "weekday_peak_hours_per_day": self.weekday_peak_hours_per_day,
            "weekday_peak_concurrent_users": self.weekday_peak_concurrent_users,
            "weekday_off_peak_concurrent_users": self.weekday_off_peak_concurrent_users,
            "weekend_days_count": self.weekend_days_count,
            "weekend_peak_hours_per_day": self.weekend_peak_hours_per_day,
            "weekend_peak_concurrent_users": self.weekend_peak_concurrent_users,
            "weekend_off_peak_concurrent_users": self.weekend_off_peak_concurrent_users,
            "buffer_factor": self.clamped_buffer_factor,
        }


@dataclass(frozen=True)
class CatalogEntry:
    """A concrete configuration tuple known to the pricing catalog for a region."""
    bundle_description: str
    root_volume: Optional[str]
    user_volume: Optional[str]
    operating_system: str
    license: str
    running_mode: str
    product_family: str
    vcpu: Optional[str] = None
    memory: Optional[str] = None

    @property
    def root_volume_gib(self) -> Optional[int]:
        return parse_gib(self.root_volume)

    @property
    def user_volume_gib(self) -> Optional[int]:
        return parse_gib(self.user_volume)

    @classmethod
    def from_selectors(cls, selectors: Dict[str, Any]) -> Optional["CatalogEntry"]:
        """Build an entry from aggregation selectors; None when there is no bundle name."""
        description = selectors.get("Bundle Description") or selectors.get("Bundle")
        if not description:
            return None
        return cls(
            bundle_description=str(description),
            root_volume=selectors.get("rootVolume"),
            user_volume=selectors.get("userVolume"),
            operating_system=str(selectors.get("Operating System", "")),
            license=str(selectors.get("License", "")),
            running_mode=str(selectors.get("Running Mode", "")),
            product_family=str(selectors.get("Product Family", "")),
            vcpu=str(selectors["vCPU"]) if selectors.get("vCPU") is not None else None,
            memory=selectors.get("Memory"),
        )

    def price_path(self, product: Product) -> List[str]:
        """
        Ordered URL segments identifying this entry's price index (region excluded).

        Pools price files are keyed by bundle, vCPU, root volume and memory;
        core price files by description and both volumes.
        """
        if product is Product.WORKSPACES_POOLS:
            return [
                self.bundle_description,
                self.vcpu or "",
                self.root_volume or "",
                self.memory or "",
                self.operating_system,
                self.license,
                self.running_mode,
                self.product_family,
            ]
        return [
            self.bundle_description,
            self.root_volume or "",
            self.user_volume or "",
            self.operating_system,
            self.license,
            self.running_mode,
            self.product_family,
        ]

    def bundle_spec(self) -> BundleSpec:
        if self.vcpu is not None:
            return BundleSpec.from_selectors({
                "Bundle": self.bundle_description,
                "vCPU": self.vcpu,
                "Memory": self.memory,
                "rootVolume": self.root_volume,
            })
        return BundleSpec.from_description(self.bundle_description)


@dataclass(frozen=True)
class PriceQuote:
    """A unit price and where it came from."""
    unit_price: float
    unit: PriceUnit
    source: PricingSource
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "unit_price": round(self.unit_price, 4),
            "unit": self.unit.value,
            "source": self.source.value,
            "description": self.description,
        }
