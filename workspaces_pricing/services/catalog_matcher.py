"""
Catalog matcher service.
Finds the catalog entry that best fits a requested bundle.

Catalogs are populated irregularly per region, so matching relaxes in tiers:
exact OS/license/volumes, then OS/license, then any entry of the bundle.
"""
from typing import Dict, Any, List, Optional, Tuple
from dataclasses import dataclass, replace
import logging

from workspaces_pricing.domain.pricing_models import CatalogEntry
from workspaces_pricing.pricing.bundle_classes import resolve_name_prefix


logger = logging.getLogger(__name__)


TIER_EXACT = 1
TIER_OS_LICENSE = 2
TIER_BUNDLE_ONLY = 3


@dataclass(frozen=True)
class CatalogMatch:
    """A matched catalog entry and the tier that produced it."""
    entry: CatalogEntry
    tier: int

    @property
    def is_exact(self) -> bool:
        return self.tier == TIER_EXACT


def parse_catalog(aggregation_data: Dict[str, Any]) -> List[CatalogEntry]:
    """
    Convert an aggregation document into catalog entries.

    Items without selector objects or without a bundle name are skipped.
    """
    entries = []
    for item in aggregation_data.get("aggregations", []):
        selectors = item.get("selectors") if isinstance(item, dict) else None
        if not selectors or not isinstance(selectors, dict):
            if selectors:
                logger.debug("Skipping aggregation item with malformed selectors: %r", selectors)
            continue
        entry = CatalogEntry.from_selectors(selectors)
        if entry is not None:
            entries.append(entry)
    return entries


def names_bundle(description: str, prefix: str) -> bool:
    """
    Whether a catalog description names the bundle with this prefix.

    The prefix must end at a word boundary, so 'Power' names
    'Power (4 vCPU, 16GB RAM)' but not 'PowerPro (...)' or 'Graphics.g4dn (...)'
    for 'Graphics'.
    """
    if not description.startswith(prefix):
        return False
    return len(description) == len(prefix) or description[len(prefix)] in " (,)"


class CatalogMatcher:
    """Matches requested bundles against a region's catalog entries."""

    def candidates(self, requested_bundle_id: str, catalog: List[CatalogEntry]) -> List[CatalogEntry]:
        """
        Entries of the bundle named by the request.

        The first entry whose description names the bundle fixes it;
        only entries with that exact description are returned.
        """
        prefix = resolve_name_prefix(requested_bundle_id)
        bundle_description = None
        for entry in catalog:
            if names_bundle(entry.bundle_description, prefix):
                bundle_description = entry.bundle_description
                break

        if bundle_description is None:
            return []
        return [entry for entry in catalog if entry.bundle_description == bundle_description]

    def offered_volumes(self, candidates: List[CatalogEntry]) -> Tuple[List[int], List[int]]:
        """
        Sorted distinct root and user volume sizes (GiB) offered by the candidates.

        Returns:
            Tuple of (root_sizes, user_sizes)
        """
        root_sizes = {entry.root_volume_gib for entry in candidates if entry.root_volume_gib is not None}
        user_sizes = {entry.user_volume_gib for entry in candidates if entry.user_volume_gib is not None}
        return sorted(root_sizes), sorted(user_sizes)

    def match(
        self,
        requested_bundle_id: str,
        catalog: List[CatalogEntry],
        operating_system: str,
        license: str,
        root_volume_gib: Optional[int] = None,
        user_volume_gib: Optional[int] = None
    ) -> Optional[CatalogMatch]:
        """
        Find the best catalog entry for a request.

        Args:
            requested_bundle_id: Client bundle id (e.g., 'performance')
            catalog: Entries valid for the region
            operating_system: Catalog OS value ('Windows' or 'Any')
            license: Catalog license value ('Included' or 'Bring Your Own License')
            root_volume_gib: Requested root volume, compared only when both volumes are given
            user_volume_gib: Requested user volume

        Returns:
            CatalogMatch, or None if no entry belongs to the requested bundle
        """
        candidates = self.candidates(requested_bundle_id, catalog)
        if not candidates:
            logger.info("No catalog bundle matches '%s'", requested_bundle_id)
            return None

        def os_and_license(entry: CatalogEntry) -> bool:
            return entry.operating_system == operating_system and entry.license == license

        def volumes(entry: CatalogEntry) -> bool:
            # Pool entries carry no user volume
            return entry.root_volume_gib == root_volume_gib and (
                entry.user_volume is None or entry.user_volume_gib == user_volume_gib
            )

        if root_volume_gib is not None and user_volume_gib is not None:
            for entry in candidates:
                if os_and_license(entry) and volumes(entry):
                    logger.debug("Exact catalog match: %s", entry)
                    return CatalogMatch(entry, TIER_EXACT)

        for entry in candidates:
            if os_and_license(entry):
                logger.debug("OS/license catalog match with catalog volumes: %s", entry)
                return CatalogMatch(entry, TIER_OS_LICENSE)

        # Price the requested OS and license on whatever tuple the bundle offers
        entry = replace(candidates[0], operating_system=operating_system, license=license)
        logger.info(
            "No OS/license match for %s, using first available configuration",
            entry.bundle_description
        )
        return CatalogMatch(entry, TIER_BUNDLE_ONLY)
