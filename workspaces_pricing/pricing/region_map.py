"""
Region code to pricing catalog location name mapping.
The calculator price files are keyed by human-readable location names, not region codes.
"""
from typing import Dict


# Region code to catalog location name mapping
# Based on the location values used in the calculator price files
REGION_TO_LOCATION: Dict[str, str] = {
    # US
    "us-east-1": "US East (N. Virginia)",
    "us-east-2": "US East (Ohio)",
    "us-west-1": "US West (N. California)",
    "us-west-2": "US West (Oregon)",

    # Africa
    "af-south-1": "Africa (Cape Town)",

    # Asia Pacific
    "ap-east-1": "Asia Pacific (Hong Kong)",
    "ap-south-1": "Asia Pacific (Mumbai)",
    "ap-northeast-3": "Asia Pacific (Osaka)",
    "ap-northeast-2": "Asia Pacific (Seoul)",
    "ap-southeast-1": "Asia Pacific (Singapore)",
    "ap-southeast-2": "Asia Pacific (Sydney)",
    "ap-northeast-1": "Asia Pacific (Tokyo)",

    # Canada
    "ca-central-1": "Canada (Central)",

    # Europe
    "eu-central-1": "Europe (Frankfurt)",
    "eu-west-1": "Europe (Ireland)",
    "eu-west-2": "Europe (London)",
    "eu-south-1": "Europe (Milan)",
    "eu-west-3": "Europe (Paris)",
    "eu-north-1": "Europe (Stockholm)",

    # Middle East
    "me-south-1": "Middle East (Bahrain)",
    "il-central-1": "Israel (Tel Aviv)",

    # South America
    "sa-east-1": "South America (Sao Paulo)",

    # GovCloud
    "us-gov-east-1": "AWS GovCloud (US-East)",
    "us-gov-west-1": "AWS GovCloud (US)",
}

# Older location names still found in some price files
_LEGACY_LOCATIONS: Dict[str, str] = {
    "EU (Ireland)": "eu-west-1",
    "EU (London)": "eu-west-2",
    "EU (Paris)": "eu-west-3",
    "EU (Frankfurt)": "eu-central-1",
    "South America (São Paulo)": "sa-east-1",
}


def get_location_name(region_code: str) -> str:
    """
    Get catalog location name from region code.

    Args:
        region_code: Region code (e.g., 'ap-south-1')

    Returns:
        Catalog location name (e.g., 'Asia Pacific (Mumbai)'), or the input unchanged if not known
    """
    return REGION_TO_LOCATION.get(region_code.strip().lower(), region_code)


def get_region_code(location_name: str) -> str:
    """
    Get region code from a catalog location name.

    Matching is case-insensitive; unknown names are returned unchanged.
    """
    lowered = location_name.strip().lower()
    for code, name in REGION_TO_LOCATION.items():
        if name.lower() == lowered:
            return code
    for name, code in _LEGACY_LOCATIONS.items():
        if name.lower() == lowered:
            return code
    return location_name
