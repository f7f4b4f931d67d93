"""
API routes for pricing estimates.
"""
from typing import Dict, Any, Optional, Type
from enum import Enum
from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import logging

from workspaces_pricing.domain.pricing_models import (
    Configuration,
    InstanceFunction,
    InvalidConfigurationError,
    InvalidUsagePatternError,
    LicenseType,
    OperatingSystem,
    RunningMode,
    UsagePattern,
)
from workspaces_pricing.pricing.region_map import get_region_code
from workspaces_pricing.services.estimator import PricingEstimator


logger = logging.getLogger(__name__)
router = APIRouter()


class UsagePatternRequest(BaseModel):
    """Weekly usage pattern. Concurrent users are percentages (0-100) of user_count."""
    weekday_days_count: int = Field(default=5, description="Weekdays in use per week")
    weekday_peak_hours_per_day: int = Field(default=8, description="Peak hours per weekday")
    weekday_peak_concurrent_users: float = Field(default=80, description="Weekday peak concurrency (%)")
    weekday_off_peak_concurrent_users: float = Field(default=10, description="Weekday off-peak concurrency (%)")
    weekend_days_count: int = Field(default=2, description="Weekend days in use per week")
    weekend_peak_hours_per_day: int = Field(default=4, description="Peak hours per weekend day")
    weekend_peak_concurrent_users: float = Field(default=40, description="Weekend peak concurrency (%)")
    weekend_off_peak_concurrent_users: float = Field(default=5, description="Weekend off-peak concurrency (%)")
    buffer_factor: float = Field(default=0.1, description="Spare capacity factor, clamped to [0, 1]")


class EstimateRequest(BaseModel):
    """Request model for a pricing estimate."""
    region: Optional[str] = Field(None, description="Region code (e.g., us-east-1) or catalog location name")
    bundle_id: Optional[str] = Field(None, description="Bundle id (e.g., performance) or AppStream instance type")
    operating_system: Optional[str] = Field(None, description="windows, amazon-linux, ubuntu, rhel, rocky-linux or any")
    license: str = Field(default="included", description="included or bring-your-own-license")
    running_mode: str = Field(default="always-on", description="always-on, auto-stop, pool or custom")
    root_volume: Optional[int] = Field(None, description="Requested root volume in GB")
    user_volume: Optional[int] = Field(None, description="Requested user volume in GB")
    multi_session: bool = Field(default=False, description="Whether users share streaming instances")
    instance_function: Optional[str] = Field(None, description="AppStream function: fleet, imagebuilder or elasticfleet")
    number_of_units: int = Field(default=1, description="Number of WorkSpaces")
    user_count: int = Field(default=1, description="Number of users")
    users_per_instance: int = Field(default=1, description="Sessions per instance when multi-session")
    usage_hours_per_month: Optional[float] = Field(None, description="Monthly hours for custom running mode")
    peak_user_cap: Optional[int] = Field(None, description="Cap on concurrently running AppStream instances")
    usage_pattern: Optional[UsagePatternRequest] = Field(None, description="Optional weekly usage pattern")


def _parse_enum(enum_type: Type[Enum], value: Optional[str], field_name: str) -> Optional[Enum]:
    """Parse a request string into an enum member; empty values stay None."""
    if value is None or not value.strip():
        return None
    try:
        return enum_type(value.strip().lower())
    except ValueError as error:
        allowed = ", ".join(member.value for member in enum_type)
        raise InvalidConfigurationError(
            f"Unsupported {field_name} '{value}' (expected one of: {allowed})"
        ) from error


def build_configuration(request: EstimateRequest) -> Configuration:
    """
    Convert a request body into a Configuration.

    A region given as a catalog location name (e.g. 'EU (Ireland)') is
    normalized to its region code.

    Raises:
        InvalidConfigurationError: If an enum-valued field holds an unsupported value
    """
    region = (request.region or "").strip()
    return Configuration(
        region=get_region_code(region) if region else None,
        bundle_id=(request.bundle_id or "").strip() or None,
        operating_system=_parse_enum(OperatingSystem, request.operating_system, "operating_system"),
        license=_parse_enum(LicenseType, request.license, "license") or LicenseType.INCLUDED,
        running_mode=_parse_enum(RunningMode, request.running_mode, "running_mode") or RunningMode.ALWAYS_ON,
        root_volume_gib=request.root_volume,
        user_volume_gib=request.user_volume,
        multi_session=request.multi_session,
        instance_function=_parse_enum(InstanceFunction, request.instance_function, "instance_function"),
        number_of_units=request.number_of_units,
        user_count=request.user_count,
        users_per_instance=request.users_per_instance,
        usage_hours_per_month=request.usage_hours_per_month,
        peak_user_cap=request.peak_user_cap,
    )


def build_usage_pattern(request: EstimateRequest) -> Optional[UsagePattern]:
    if request.usage_pattern is None:
        return None
    pattern = request.usage_pattern
    return UsagePattern(
        weekday_days_count=pattern.weekday_days_count,
        weekday_peak_hours_per_day=pattern.weekday_peak_hours_per_day,
        weekday_peak_concurrent_users=pattern.weekday_peak_concurrent_users,
        weekday_off_peak_concurrent_users=pattern.weekday_off_peak_concurrent_users,
        weekend_days_count=pattern.weekend_days_count,
        weekend_peak_hours_per_day=pattern.weekend_peak_hours_per_day,
        weekend_peak_concurrent_users=pattern.weekend_peak_concurrent_users,
        weekend_off_peak_concurrent_users=pattern.weekend_off_peak_concurrent_users,
        buffer_factor=pattern.buffer_factor,
    )


@router.post("/api/pricing/estimate")
async def estimate_pricing(estimate_request: EstimateRequest) -> Dict[str, Any]:
    """
    Estimate the monthly cost of a WorkSpaces or AppStream configuration.

    The product is chosen from the request: AppStream when instance_function
    is set, WorkSpaces Pools for the pool running mode, WorkSpaces Core otherwise.

    Args:
        estimate_request: Configuration fields plus an optional usage pattern

    Returns:
        JSON estimate with costs, instance hours, breakdown and pricing source

    Raises:
        HTTPException: If estimation fails unexpectedly
    """
    try:
        configuration = build_configuration(estimate_request)
        usage_pattern = build_usage_pattern(estimate_request)

        estimator = PricingEstimator()
        estimate = await estimator.estimate(configuration, usage_pattern)

        logger.info(
            "Estimate for %s %s in %s: %.2f/month (%s)",
            estimate.product.value,
            estimate.bundle_name,
            estimate.region,
            estimate.total_monthly_cost,
            estimate.pricing_source.value
        )
        return estimate.to_dict()

    except InvalidConfigurationError as error:
        return JSONResponse(
            status_code=400,
            content={
                "error": "invalid_configuration",
                "message": str(error),
                "missing_fields": error.missing_fields,
            }
        )
    except InvalidUsagePatternError as error:
        return JSONResponse(
            status_code=400,
            content={
                "error": "invalid_usage_pattern",
                "message": str(error),
            }
        )
    except HTTPException:
        # Re-raise HTTP exceptions as-is
        raise
    except Exception as error:
        logger.error("Unexpected error during pricing estimate: %s", error, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to estimate pricing"
        ) from error


@router.get("/health")
async def health() -> Dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}
