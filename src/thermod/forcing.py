# src/thermod/forcing.py
"""Meteorological forcing table and its continuous-time interpolator.

The forcing table holds discrete observations on a strictly increasing time
axis. The interpolator turns each of the five forcing variables into a
continuous function of time by linear interpolation, with flat extrapolation
(boundary value) outside the observed range, so that Runge-Kutta stage times
between or beyond the observations are always answerable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import numpy as np
from scipy.interpolate import interp1d

from thermod.errors import raise_invalid_forcing

if TYPE_CHECKING:
    from collections.abc import Mapping

    import pandas as pd

    from thermod.types import Float64Array

FORCING_VARIABLES: Final[tuple[str, ...]] = ("jsw", "tair", "dew", "uw", "vw")

# Column names of the tab-delimited meteo table.
FRAME_COLUMNS: Final[dict[str, str]] = {
    "time": "Day",
    "jsw": "Jsw",
    "tair": "Tair",
    "dew": "Dew",
    "uw": "Uw",
    "vw": "vW",
}

_MIN_RECORDS: Final[int] = 2

# Wind speed and the wind function enter fractional powers and square roots.
_NONNEGATIVE_VARIABLES: Final[frozenset[str]] = frozenset({"uw", "vw"})


def wind_function(wind_speed: float | np.ndarray) -> float | np.ndarray:
    """Return the evaporation/convection wind function 19 + 0.95 U^2.

    Args:
        wind_speed: Wind speed in m/s.

    Returns:
        Wind function value (same shape as the input).
    """
    return 19.0 + 0.95 * np.square(wind_speed)


@dataclass(frozen=True, slots=True)
class ForcingSample:
    """Forcing values at a single query time.

    Attributes:
        jsw: Shortwave radiation (cal cm-2 d-1).
        tair: Air temperature (deg C).
        dew: Dew-point temperature (deg C).
        uw: Wind function for convection/evaporation.
        vw: Wind speed (m/s).
    """

    jsw: float
    tair: float
    dew: float
    uw: float
    vw: float


@dataclass(frozen=True, slots=True)
class ForcingTable:
    """Discrete forcing observations sharing one time axis."""

    time: Float64Array
    jsw: Float64Array
    tair: Float64Array
    dew: Float64Array
    uw: Float64Array
    vw: Float64Array

    def __post_init__(self) -> None:
        """Validate the time axis, column lengths and wind signs."""
        time = np.asarray(self.time, dtype=np.float64)
        if time.ndim != 1:
            raise_invalid_forcing(detail=f"time axis must be 1D, got {time.shape}")
        if time.size < _MIN_RECORDS:
            raise_invalid_forcing(
                detail=f"at least {_MIN_RECORDS} records required, got {time.size}"
            )
        if not np.all(np.isfinite(time)):
            raise_invalid_forcing(detail="time axis contains non-finite values")
        if np.any(np.diff(time) <= 0.0):
            raise_invalid_forcing(detail="time axis must be strictly increasing")
        object.__setattr__(self, "time", time)

        for name in FORCING_VARIABLES:
            col = np.asarray(getattr(self, name), dtype=np.float64)
            if col.shape != time.shape:
                raise_invalid_forcing(
                    detail=f"column '{name}' has shape {col.shape}, "
                    f"expected {time.shape}"
                )
            if not np.all(np.isfinite(col)):
                raise_invalid_forcing(detail=f"column '{name}' has non-finite values")
            if name in _NONNEGATIVE_VARIABLES and np.any(col < 0.0):
                raise_invalid_forcing(detail=f"column '{name}' has negative values")
            object.__setattr__(self, name, col)

    @property
    def n_records(self) -> int:
        """Number of forcing records."""
        return int(self.time.size)

    @classmethod
    def from_columns(cls, time: object, **columns: object) -> ForcingTable:
        """Build a table from a time axis and the five forcing columns.

        Args:
            time: Time coordinates.
            **columns: Arrays keyed by the names in FORCING_VARIABLES.

        Returns:
            Validated ForcingTable.
        """
        missing = [name for name in FORCING_VARIABLES if name not in columns]
        if missing:
            raise_invalid_forcing(detail=f"missing column(s) {missing}")
        return cls(
            time=np.asarray(time, dtype=np.float64),
            **{
                name: np.asarray(columns[name], dtype=np.float64)
                for name in FORCING_VARIABLES
            },
        )

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        *,
        columns: Mapping[str, str] | None = None,
    ) -> ForcingTable:
        """Build a table from a DataFrame in the meteo table layout.

        Args:
            frame: Table with one row per record.
            columns: Mapping from field name ("time" and FORCING_VARIABLES) to
                frame column; defaults to FRAME_COLUMNS.

        Returns:
            Validated ForcingTable.
        """
        mapping = dict(FRAME_COLUMNS if columns is None else columns)
        absent = [col for col in mapping.values() if col not in frame.columns]
        if absent:
            raise_invalid_forcing(detail=f"frame is missing column(s) {absent}")
        return cls.from_columns(
            frame[mapping["time"]].to_numpy(dtype=np.float64),
            **{
                name: frame[mapping[name]].to_numpy(dtype=np.float64)
                for name in FORCING_VARIABLES
            },
        )

    @classmethod
    def constant(
        cls,
        time: object,
        *,
        jsw: float,
        tair: float,
        dew: float,
        wind_speed: float,
    ) -> ForcingTable:
        """Build a table with constant forcing on the given time axis.

        The wind function and wind speed columns are derived from wind_speed.
        """
        t = np.asarray(time, dtype=np.float64)
        ones = np.ones_like(t)
        return cls(
            time=t,
            jsw=jsw * ones,
            tair=tair * ones,
            dew=dew * ones,
            uw=float(wind_function(wind_speed)) * ones,
            vw=wind_speed * ones,
        )


class ForcingInterpolator:
    """Continuous-time view of a ForcingTable.

    Owns one linear interpolator per forcing variable. Queries outside the
    observed time range return the nearest boundary value exactly.
    """

    def __init__(self, table: ForcingTable) -> None:
        """Build the five interpolators.

        Args:
            table: Validated forcing table.
        """
        self.table = table
        self.t_min = float(table.time[0])
        self.t_max = float(table.time[-1])
        self._funcs = {
            name: interp1d(
                table.time,
                getattr(table, name),
                kind="linear",
                bounds_error=False,
                fill_value=(getattr(table, name)[0], getattr(table, name)[-1]),
                assume_sorted=True,
            )
            for name in FORCING_VARIABLES
        }

    def value(self, name: str, t: float) -> float:
        """Return one interpolated forcing variable at time t.

        Raises:
            KeyError: If name is not a forcing variable.
        """
        return float(self._funcs[name](t))

    def __call__(self, t: float) -> ForcingSample:
        """Return all forcing variables at time t."""
        return ForcingSample(
            jsw=self.value("jsw", t),
            tair=self.value("tair", t),
            dew=self.value("dew", t),
            uw=self.value("uw", t),
            vw=self.value("vw", t),
        )

    def covers(self, times: Float64Array) -> bool:
        """Whether the observed range covers [times[0], times[-1]] without clamping."""
        return bool(self.t_min <= times[0] and times[-1] <= self.t_max)
