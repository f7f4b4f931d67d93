"""
Usage hours calculator.
Converts a weekly usage pattern into monthly instance-hours.

For each of weekday/weekend crossed with peak/off-peak:
    period hours   = days x hours per day x WEEKS_PER_MONTH
    instances      = concurrent users (or sessions packed per instance)
    utilized      += instances x period hours
    buffer        += ceil(instances x buffer factor) x period hours
"""
from typing import Optional
import logging
import math

from workspaces_pricing.core.config import config
from workspaces_pricing.domain.estimate_models import InstanceHours
from workspaces_pricing.domain.pricing_models import InstanceFunction, UsagePattern


logger = logging.getLogger(__name__)


class UsageHoursCalculator:
    """Computes utilized and buffer instance-hours per month."""

    def __init__(self, weeks_per_month: float = config.WEEKS_PER_MONTH,
                 hours_per_month: int = config.HOURS_PER_MONTH):
        self.weeks_per_month = weeks_per_month
        self.hours_per_month = hours_per_month

    def concurrent_users(self, percent: float, total_users: int) -> int:
        """Users active in a period: at least one whenever there are users at all."""
        if total_users <= 0:
            return 0
        return max(1, math.floor(percent * total_users / 100))

    def instances_for(self, users: int, users_per_instance: int = 1, multi_session: bool = False) -> int:
        if multi_session and users_per_instance > 1:
            return math.ceil(users / users_per_instance)
        return users

    def buffer_instances(self, instances: int, buffer_factor: float,
                         instance_function: Optional[InstanceFunction] = None) -> int:
        # ElasticFleet absorbs its own scaling margin
        if instance_function is InstanceFunction.ELASTIC_FLEET:
            return 0
        # Rounded first so float noise (30 x 0.1 = 3.0000000000000004) does not add an instance
        return math.ceil(round(instances * buffer_factor, 9))

    def compute_hours(
        self,
        pattern: UsagePattern,
        total_users: int,
        instance_function: Optional[InstanceFunction] = None,
        users_per_instance: int = 1,
        multi_session: bool = False
    ) -> InstanceHours:
        """
        Compute monthly instance-hours for a usage pattern.

        Args:
            pattern: Weekly usage pattern (concurrent users as percentages)
            total_users: Total number of users
            instance_function: AppStream instance function, if any
            users_per_instance: Sessions per instance when multi-session
            multi_session: Whether users share instances

        Returns:
            InstanceHours with utilized and buffer hours
        """
        buffer_factor = pattern.clamped_buffer_factor
        utilized = 0.0
        buffer = 0.0

        for label, days, hours_per_day, percent in pattern.periods():
            if days <= 0 or hours_per_day <= 0:
                continue
            period_hours = days * hours_per_day * self.weeks_per_month
            users = self.concurrent_users(percent, total_users)
            instances = self.instances_for(users, users_per_instance, multi_session)
            spare = self.buffer_instances(instances, buffer_factor, instance_function)

            utilized += instances * period_hours
            buffer += spare * period_hours
            logger.debug(
                "%s: %.2f hours x %d instances (+%d buffer)",
                label, period_hours, instances, spare
            )

        if utilized == 0 and self._expects_usage(pattern, total_users):
            logger.error(
                "Calculation inconsistency: zero utilized hours for non-degenerate pattern %s "
                "with %d users; recomputing",
                pattern.to_dict(),
                total_users
            )
            return self._recompute(pattern, total_users, instance_function, users_per_instance, multi_session)

        return InstanceHours(utilized=utilized, buffer=buffer)

    def always_on_hours(self, requested_users: int, peak_user_cap: Optional[int] = None) -> InstanceHours:
        """Flat 730 hours/month for every instance up to the peak-user cap; no buffer."""
        instances = requested_users if peak_user_cap is None else min(requested_users, peak_user_cap)
        return InstanceHours(utilized=self.hours_per_month * max(instances, 0), buffer=0.0)

    def flat_hours(self, hours_per_month: float, instances: int) -> InstanceHours:
        """User-specified monthly hours for a fixed number of instances; no buffer."""
        return InstanceHours(utilized=hours_per_month * max(instances, 0), buffer=0.0)

    @staticmethod
    def _expects_usage(pattern: UsagePattern, total_users: int) -> bool:
        return total_users > 0 and not pattern.is_degenerate

    def _recompute(
        self,
        pattern: UsagePattern,
        total_users: int,
        instance_function: Optional[InstanceFunction],
        users_per_instance: int,
        multi_session: bool
    ) -> InstanceHours:
        """
        Day-class-at-a-time recomputation used when the period sum is inconsistent.

        Validated patterns with users always give at least one instance per
        period, so this only runs if the period loop above regresses.
        """
        buffer_factor = pattern.clamped_buffer_factor
        utilized = 0.0
        buffer = 0.0
        day_classes = (
            (pattern.weekday_days_count, pattern.weekday_peak_hours_per_day,
             pattern.weekday_peak_concurrent_users, pattern.weekday_off_peak_concurrent_users),
            (pattern.weekend_days_count, pattern.weekend_peak_hours_per_day,
             pattern.weekend_peak_concurrent_users, pattern.weekend_off_peak_concurrent_users),
        )
        for days, peak_hours, peak_percent, off_peak_percent in day_classes:
            peak = self.instances_for(self.concurrent_users(peak_percent, total_users),
                                      users_per_instance, multi_session)
            off_peak = self.instances_for(self.concurrent_users(off_peak_percent, total_users),
                                          users_per_instance, multi_session)
            monthly_days = days * self.weeks_per_month
            utilized += monthly_days * (peak_hours * peak + (24 - peak_hours) * off_peak)
            buffer += monthly_days * (
                peak_hours * self.buffer_instances(peak, buffer_factor, instance_function)
                + (24 - peak_hours) * self.buffer_instances(off_peak, buffer_factor, instance_function)
            )
        return InstanceHours(utilized=utilized, buffer=buffer)
