"""
Bundle class normalization.
Maps the short bundle ids used by clients (e.g. 'powerpro', 'pool-graphics-g4dn')
to bundle classes and to the name prefixes used by catalog descriptions.
"""
from typing import Dict, Optional


# Bundle class -> catalog description prefix
BUNDLE_NAME_PREFIXES: Dict[str, str] = {
    "value": "Value",
    "standard": "Standard",
    "performance": "Performance",
    "power": "Power",
    "powerpro": "PowerPro",
    "graphics": "Graphics",
    "graphicspro": "GraphicsPro",
    "graphics-g4dn": "Graphics.g4dn",
    "graphicspro-g4dn": "GraphicsPro.g4dn",
    "general-16": "General Purpose (16 vCPU",
    "general-32": "General Purpose (32 vCPU",
}

# Longest keys first so 'powerpro' is never read as 'power'
_CLASSES_BY_SPECIFICITY = sorted(BUNDLE_NAME_PREFIXES, key=len, reverse=True)


def resolve_bundle_class(bundle_id: str) -> Optional[str]:
    """
    Find the bundle class named by a bundle id.

    Args:
        bundle_id: Client bundle id (case-insensitive, dots treated as dashes)

    Returns:
        Bundle class key, or None if the id names no known class
    """
    normalized = bundle_id.strip().lower().replace(".", "-")
    for bundle_class in _CLASSES_BY_SPECIFICITY:
        if bundle_class in normalized:
            return bundle_class
    return None


def resolve_name_prefix(bundle_id: str) -> str:
    """Catalog description prefix for a bundle id; unknown ids are used as-is."""
    bundle_class = resolve_bundle_class(bundle_id)
    if bundle_class is None:
        return bundle_id
    return BUNDLE_NAME_PREFIXES[bundle_class]


def display_name(bundle_id: str) -> str:
    """Human-readable bundle name used when no catalog description is available."""
    bundle_class = resolve_bundle_class(bundle_id)
    if bundle_class is None:
        return "Custom Bundle"
    prefix = BUNDLE_NAME_PREFIXES[bundle_class]
    return f"{prefix})" if prefix.endswith("vCPU") else prefix
