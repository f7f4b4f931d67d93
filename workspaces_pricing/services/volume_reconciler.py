"""
Volume reconciler service.
Rounds requested storage up to the nearest size the catalog offers.
"""
from typing import List
import logging

from workspaces_pricing.domain.estimate_models import VolumeResolution


logger = logging.getLogger(__name__)


class VolumeReconciler:
    """Reconciles requested volume sizes with offered sizes."""

    def reconcile(self, requested_gib: int, offered_sizes_gib: List[int]) -> VolumeResolution:
        """
        Resolve a requested volume size.

        Args:
            requested_gib: Requested size in GiB
            offered_sizes_gib: Sizes offered for the matched bundle

        Returns:
            VolumeResolution; honored is False whenever the size was adjusted.
            With nothing offered the request is kept as-is.
        """
        if not offered_sizes_gib or requested_gib in offered_sizes_gib:
            return VolumeResolution(requested_gib, requested_gib, honored=True)

        offered = sorted(offered_sizes_gib)
        resolved = next((size for size in offered if size >= requested_gib), offered[-1])
        logger.info(
            "Requested volume %dGB not offered (offered: %s), using %dGB",
            requested_gib,
            offered,
            resolved
        )
        return VolumeResolution(requested_gib, resolved, honored=False)
