"""
Shared pytest fixtures for pricing tests.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import Mock, AsyncMock
from fastapi.testclient import TestClient
from workspaces_pricing.main import app
from workspaces_pricing.domain.pricing_models import (
    Configuration,
    LicenseType,
    OperatingSystem,
    RunningMode,
)


US_EAST = "US East (N. Virginia)"
PERFORMANCE = "Performance (2 vCPU, 8GB RAM)"


def core_item(description, root, user, os_name="Windows", license="Included", mode="AlwaysOn"):
    """One aggregation item of the core calculator."""
    return {
        "selectors": {
            "Bundle Description": description,
            "rootVolume": root,
            "userVolume": user,
            "Operating System": os_name,
            "License": license,
            "Running Mode": mode,
            "Product Family": "WorkSpaces Core",
        }
    }


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def core_aggregations():
    """Aggregation document of the core calculator for US East."""
    return {
        "aggregations": [
            core_item("Value (1 vCPU, 2GB RAM)", "80 GB", "10 GB"),
            core_item(PERFORMANCE, "80 GB", "100 GB"),
            core_item(PERFORMANCE, "175 GB", "100 GB"),
            core_item(PERFORMANCE, "80 GB", "100 GB", os_name="Any", license="Bring Your Own License"),
            core_item(PERFORMANCE, "80 GB", "100 GB", mode="AutoStop"),
            core_item("Power (4 vCPU, 16GB RAM)", "175 GB", "100 GB"),
            core_item("PowerPro (8 vCPU, 32GB RAM)", "175 GB", "100 GB"),
            core_item("Graphics.g4dn (4 vCPU, 16GB RAM, 1 GPU, 16GB Video Memory)", "100 GB", "100 GB"),
            {"selectors": {}},
            {"count": 3},
        ]
    }


@pytest.fixture
def pool_aggregations():
    """Aggregation document of the pools calculator for US East."""
    return {
        "aggregations": [
            {
                "selectors": {
                    "Bundle": "Standard",
                    "vCPU": "2",
                    "Memory": "4 GB",
                    "rootVolume": "200 GB",
                    "Operating System": "Windows",
                    "License": "Included",
                    "Running Mode": "Pool",
                    "Product Family": "WorkSpaces Pools",
                }
            },
            {
                "selectors": {
                    "Bundle": "Graphics.g4dn",
                    "vCPU": "4",
                    "Memory": "16 GB",
                    "rootVolume": "200 GB",
                    "Operating System": "Windows",
                    "License": "Included",
                    "Running Mode": "Pool",
                    "Product Family": "WorkSpaces Pools",
                }
            },
        ]
    }


@pytest.fixture
def always_on_price_index():
    """Price index for an AlwaysOn configuration: lines sum to 50.00 per month."""
    return {
        "regions": {
            US_EAST: {
                "Performance Bundle": {"price": "45.0000000000", "Unit": "Month", "rateCode": "AAA.1"},
                "Root volume": {"price": "5.0000000000", "Unit": "Month", "rateCode": "AAA.2"},
            }
        }
    }


@pytest.fixture
def hourly_price_index():
    """Price index with a monthly fee line and an hourly line."""
    return {
        "regions": {
            US_EAST: {
                "Monthly infrastructure fee": {"price": "9.75", "Unit": "Month", "rateCode": "BBB.1"},
                "Hourly usage": {"price": "0.30", "Unit": "Hour", "rateCode": "BBB.2"},
            }
        }
    }


@pytest.fixture
def fake_catalog_client(core_aggregations, always_on_price_index):
    """Catalog client serving the core aggregation and AlwaysOn price index."""
    mock = Mock()
    mock.get_aggregations = AsyncMock(return_value=core_aggregations)
    mock.get_price_index = AsyncMock(return_value=always_on_price_index)
    return mock


@pytest.fixture
def core_configuration():
    """Performance bundle, Windows, license included, always on, default volumes."""
    return Configuration(
        region="us-east-1",
        bundle_id="performance",
        operating_system=OperatingSystem.WINDOWS,
        license=LicenseType.INCLUDED,
        running_mode=RunningMode.ALWAYS_ON,
    )
