# src/thermod/preprocessing.py
"""Data preparation for thermod runs.

Turns raw lake descriptions into model inputs:

- a hypsographic table (depth vs. area) and basin dimensions into a
  LakeParameters set (layer volumes, thermocline area, surface area),
- a LakeEnsemblR-style meteorological table into the forcing layout
  (Day, Jsw, Tair, Dew, Uw, vW),
- optional random perturbation of forcing columns for sensitivity runs.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Final

import numpy as np
import pandas as pd
from scipy.integrate import trapezoid

from thermod.config import LakeParameters, OxygenLakeParameters
from thermod.errors import raise_invalid_forcing, raise_invalid_parameters
from thermod.forcing import FRAME_COLUMNS, wind_function

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

# LakeEnsemblR meteo column names
DATETIME_COLUMN: Final[str] = "datetime"
SHORTWAVE_COLUMN: Final[str] = "Shortwave_Radiation_Downwelling_wattPerMeterSquared"
AIR_TEMPERATURE_COLUMN: Final[str] = "Air_Temperature_celsius"
HUMIDITY_COLUMN: Final[str] = "Relative_Humidity_percent"
WIND_COLUMN: Final[str] = "Ten_Meter_Elevation_Wind_Speed_meterPerSecond"

# W m-2 -> model shortwave units per day
SHORTWAVE_SCALE: Final[float] = 2.0e-5 * 3600.0 * 24.0

THERMOCLINE_THICKNESS_CM: Final[float] = 3.0 * 100.0

_M3_TO_CM3: Final[float] = 1e6
_M2_TO_CM2: Final[float] = 1e4

_OXYGEN_ONLY_FIELDS: Final[frozenset[str]] = frozenset(
    OxygenLakeParameters.PARAMETER_NAMES
) - frozenset(LakeParameters.PARAMETER_NAMES)


def thermocline_depth(basin_length: float, basin_width: float) -> float:
    """Empirical thermocline depth (m) from basin fetch (m).

    Args:
        basin_length: Basin length (m).
        basin_width: Basin width (m).

    Returns:
        Thermocline depth in m.
    """
    fetch = max(basin_length, basin_width)
    if fetch <= 0.0:
        raise_invalid_parameters(detail=f"basin fetch must be positive, got {fetch}")
    return 10.0 ** (0.336 * math.log10(fetch) - 0.245)


def configure_from_hypsography(
    depths: Sequence[float] | np.ndarray,
    areas: Sequence[float] | np.ndarray,
    basin_length: float,
    basin_width: float,
    **overrides: Any,
) -> LakeParameters:
    """Derive a parameter set from a hypsographic curve.

    The epilimnion spans the surface down to the thermocline depth rounded to
    the nearest metre, which must be one of the tabulated depths; the
    hypolimnion spans from there to the bottom.

    Args:
        depths: Depths (m), increasing from the surface.
        areas: Horizontal areas (m2) at each depth.
        basin_length: Basin length (m).
        basin_width: Basin width (m).
        **overrides: Parameter fields to override; supplying any oxygen field
            returns OxygenLakeParameters.

    Returns:
        Validated LakeParameters (or OxygenLakeParameters).
    """
    z = np.asarray(depths, dtype=np.float64)
    area = np.asarray(areas, dtype=np.float64)
    if z.ndim != 1 or z.shape != area.shape or z.size < 2:
        raise_invalid_parameters(
            detail="hypsography needs matching 1D depth/area arrays of length >= 2"
        )
    if np.any(np.diff(z) <= 0.0):
        raise_invalid_parameters(detail="hypsography depths must be increasing")

    therm_dep = thermocline_depth(basin_length, basin_width)
    rounded = round(therm_dep)
    matches = np.flatnonzero(z == rounded)
    if matches.size == 0:
        raise_invalid_parameters(
            detail=f"rounded thermocline depth {rounded} m is not a tabulated depth"
        )
    ix = int(matches[0])

    fields: dict[str, Any] = {
        "epi_volume": trapezoid(area[: ix + 1], z[: ix + 1]) * _M3_TO_CM3,
        "hypo_volume": trapezoid(area[ix:], z[ix:]) * _M3_TO_CM3,
        "thermocline_area": float(np.interp(therm_dep, z, area)) * _M2_TO_CM2,
        "thermocline_thickness": THERMOCLINE_THICKNESS_CM,
        "surface_area": float(area.max()) * _M2_TO_CM2,
        "thermocline_depth": float(rounded),
    }
    fields.update(overrides)
    logger.debug(
        "Thermocline at %.2f m (rounded %d m); Ve=%.3e cm3, Vh=%.3e cm3",
        therm_dep,
        rounded,
        fields["epi_volume"],
        fields["hypo_volume"],
    )

    if _OXYGEN_ONLY_FIELDS.intersection(overrides):
        return OxygenLakeParameters(**fields)
    return LakeParameters(**fields)


def prepare_meteo(
    met: pd.DataFrame,
    *,
    start: str | pd.Timestamp | None = None,
    stop: str | pd.Timestamp | None = None,
) -> pd.DataFrame:
    """Convert a LakeEnsemblR meteo table to the thermod forcing layout.

    Args:
        met: Table with a datetime column, shortwave (W m-2), air temperature,
            relative humidity (%) and 10 m wind speed (m/s).
        start: Optional first timestamp to keep (inclusive).
        stop: Optional last timestamp to keep (inclusive).

    Returns:
        DataFrame with columns Day, Jsw, Tair, Dew, Uw, vW; Day counts records
        from 1.
    """
    required = [
        DATETIME_COLUMN,
        SHORTWAVE_COLUMN,
        AIR_TEMPERATURE_COLUMN,
        HUMIDITY_COLUMN,
        WIND_COLUMN,
    ]
    absent = [col for col in required if col not in met.columns]
    if absent:
        raise_invalid_forcing(detail=f"meteo table is missing column(s) {absent}")

    frame = pd.DataFrame(
        {
            DATETIME_COLUMN: pd.to_datetime(met[DATETIME_COLUMN]),
            "Jsw": met[SHORTWAVE_COLUMN].astype(float) * SHORTWAVE_SCALE,
            "Tair": met[AIR_TEMPERATURE_COLUMN].astype(float),
            "Dew": met[AIR_TEMPERATURE_COLUMN].astype(float)
            - (100.0 - met[HUMIDITY_COLUMN].astype(float)) / 5.0,
            "vW": met[WIND_COLUMN].astype(float),
        }
    )
    if start is not None:
        frame = frame[frame[DATETIME_COLUMN] >= pd.Timestamp(start)]
    if stop is not None:
        frame = frame[frame[DATETIME_COLUMN] <= pd.Timestamp(stop)]

    daily = frame.groupby(DATETIME_COLUMN, sort=True).mean().reset_index(drop=True)
    if len(daily) < 2:
        raise_invalid_forcing(
            detail=f"at least 2 records required after filtering, got {len(daily)}"
        )

    daily.insert(0, FRAME_COLUMNS["time"], np.arange(1, len(daily) + 1, dtype=float))
    daily["Uw"] = wind_function(daily["vW"].to_numpy())
    logger.info("Prepared %d forcing records", len(daily))
    return daily[[FRAME_COLUMNS[name] for name in FRAME_COLUMNS]]


def add_noise(
    frame: pd.DataFrame,
    *,
    rng: np.random.Generator | None = None,
    fraction: float = 0.1,
    time_column: str = FRAME_COLUMNS["time"],
) -> pd.DataFrame:
    """Perturb a random subset of values in every non-time column.

    On average `fraction` of the rows of each column receive additive normal
    noise with the column mean as mean and a tenth of the column standard
    deviation as spread.

    Args:
        frame: Forcing table.
        rng: Random generator; a fresh default generator when None.
        fraction: Expected share of perturbed values per column.
        time_column: Column left untouched.

    Returns:
        Perturbed copy of frame.
    """
    gen = rng if rng is not None else np.random.default_rng()
    out = frame.copy()
    for col in out.columns:
        if col == time_column:
            continue
        values = out[col].to_numpy(dtype=np.float64, copy=True)
        corrupt = gen.binomial(1, fraction, size=values.size).astype(bool)
        noise = gen.normal(
            loc=float(np.mean(values)),
            scale=float(np.std(values, ddof=1)) / 10.0,
            size=int(corrupt.sum()),
        )
        values[corrupt] += noise
        out[col] = values
    return out
