"""Global pytest configuration and shared fixtures for thermod."""

from __future__ import annotations

from typing import Final

import numpy as np
import pytest

from thermod.config import LakeParameters, OxygenLakeParameters
from thermod.forcing import ForcingTable

# -----------------------------------------------------------------------------
# Reference lake (1 km2 surface, 5 m mixed layer, 10 m hypolimnion)
# -----------------------------------------------------------------------------

SURFACE_AREA: Final[float] = 1e10  # cm2
LAKE_GEOMETRY: Final[dict[str, float]] = {
    "epi_volume": SURFACE_AREA * 500.0,
    "hypo_volume": SURFACE_AREA * 1000.0,
    "thermocline_area": SURFACE_AREA * 0.8,
    "surface_area": SURFACE_AREA,
    "thermocline_depth": 5.0,
}

# 200 W m-2 shortwave, warm humid air and a moderate breeze
SUMMER_FORCING: Final[dict[str, float]] = {
    "jsw": 200.0 * 1.728,
    "tair": 20.0,
    "dew": 15.0,
    "wind_speed": 3.0,
}


# -----------------------------------------------------------------------------
# Global markers registration safety (for local pytest runs)
# -----------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used by the test suite."""
    config.addinivalue_line(
        "markers",
        "slow: long-running integration tests",
    )


# -----------------------------------------------------------------------------
# Shared fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def lake_params() -> LakeParameters:
    """Thermal parameters of the reference lake with default physics."""
    return LakeParameters(**LAKE_GEOMETRY)


@pytest.fixture
def oxygen_params() -> OxygenLakeParameters:
    """Oxygen-model parameters of the reference lake."""
    return OxygenLakeParameters(
        **LAKE_GEOMETRY,
        nep_rate=1e-6,
        sed_rate=1e-4,
        sed_area=SURFACE_AREA * 0.8,
    )


@pytest.fixture
def summer_forcing() -> ForcingTable:
    """Constant summer forcing on days 1..30."""
    return ForcingTable.constant(np.arange(1.0, 31.0), **SUMMER_FORCING)
