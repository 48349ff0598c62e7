# src/thermod/engine.py
"""Run entry points for the two-layer temperature and oxygen models.

Contract:
- Accepts a forcing table (ForcingTable or DataFrame in the meteo layout), a
  parameter vector (or parameter model), an initial state and output times.
- Validates everything before the first integration step; setup errors are
  raised as thermod errors and no diagnostics are written.
- Internally uses ModelCore with state_shape (n_states,) and CoreSolver.
- Returns a (T, 1 + n_states) float64 array with time in the first column.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import numpy as np
import pandas as pd

from thermod.config import SimulationConfig, coerce_parameters
from thermod.core_solver import CoreSolver
from thermod.errors import (
    ErrorCode,
    InvalidForcingError,
    raise_state_shape_error,
)
from thermod.fluxes import TwoLayerFluxes, TwoLayerOxygenFluxes
from thermod.forcing import ForcingInterpolator, ForcingTable
from thermod.model_core import ModelCore, ModelCoreOptions
from thermod.types import (
    OXYGEN_STATE_SIZE,
    THERMAL_STATE_SIZE,
    as_float64_1d,
    as_float64_state,
    ensure_strictly_increasing_times,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from thermod.config import LakeParameters
    from thermod.diagnostics import DiagnosticsSink
    from thermod.types import Float64Array, Float64Array2D

logger = logging.getLogger(__name__)

THERMAL_STATE_NAMES: Final[tuple[str, ...]] = ("te", "th")
OXYGEN_STATE_NAMES: Final[tuple[str, ...]] = ("te", "th", "oe", "oh")

_FORCING_TYPE_MSG: Final[str] = (
    "forcing must be a ForcingTable or pandas DataFrame, got {kind}"
)
_EMPTY_TIMES_MSG: Final[str] = "non-empty 1D array"


def _as_forcing_table(forcing: ForcingTable | pd.DataFrame) -> ForcingTable:
    """Coerce supported forcing inputs to a ForcingTable."""
    if isinstance(forcing, ForcingTable):
        return forcing
    if isinstance(forcing, pd.DataFrame):
        return ForcingTable.from_frame(forcing)
    msg = _FORCING_TYPE_MSG.format(kind=type(forcing).__name__)
    raise InvalidForcingError(msg, code=ErrorCode.INVALID_FORCING)


def _prepare_times(times: object) -> Float64Array:
    """Validate the output time grid."""
    grid = as_float64_1d(times, name="times")
    if grid.size < 1:
        raise_state_shape_error(name="times", expected=_EMPTY_TIMES_MSG, got=grid)
    ensure_strictly_increasing_times(grid, name="times")
    return grid


def _integrate(
    fluxes: TwoLayerFluxes,
    initial_state: Float64Array,
    times: Float64Array,
    state_names: tuple[str, ...],
    config: SimulationConfig,
    *,
    oxygen: bool,
) -> Float64Array2D:
    """Run CoreSolver over times and return the trajectory."""
    core = ModelCore(
        n_states=fluxes.n_states,
        time_grid=times,
        options=ModelCoreOptions(state_names=state_names, store_history=True),
    )
    core.set_initial_state(initial_state)

    if not fluxes.forcing.covers(times):
        logger.info(
            "Forcing covers [%g, %g]; output times [%g, %g] will use boundary "
            "values outside that range",
            fluxes.forcing.t_min,
            fluxes.forcing.t_max,
            times[0],
            times[-1],
        )

    solver = CoreSolver(core)
    logger.debug(
        "Integrating %d output times with method=%s ice=%s",
        core.n_timesteps,
        config.method,
        fluxes.ice,
    )
    solver.run(fluxes, config=config.to_run_config(oxygen=oxygen))
    logger.debug("Finished after %d flux evaluations", solver.n_rhs_evals)

    return np.asarray(core.trajectory(), dtype=np.float64)


def _resolve_config(
    config: SimulationConfig | None,
    *,
    ice: bool | None,
    altitude: float | None = None,
) -> SimulationConfig:
    """Merge explicit keyword switches into a SimulationConfig."""
    cfg = config or SimulationConfig()
    updates: dict[str, object] = {}
    if ice is not None:
        updates["ice"] = ice
    if altitude is not None:
        updates["altitude"] = altitude
    return cfg.model_copy(update=updates) if updates else cfg


def run_model(
    forcing: ForcingTable | pd.DataFrame,
    params: LakeParameters | Sequence[float] | np.ndarray,
    initial_state: Sequence[float] | np.ndarray,
    times: Sequence[float] | np.ndarray,
    *,
    ice: bool | None = None,
    sink: DiagnosticsSink | None = None,
    config: SimulationConfig | None = None,
) -> Float64Array2D:
    """Simulate epilimnion and hypolimnion temperatures.

    Args:
        forcing: Meteorological forcing (columns Day, Jsw, Tair, Dew, Uw, vW).
        params: 19-value parameter vector or LakeParameters.
        initial_state: [Te, Th] at times[0].
        times: Strictly increasing output times (days).
        ice: Enable the ice switch; overrides config.ice when given.
        sink: Receiver of one diagnostic record per flux evaluation.
        config: Run options.

    Returns:
        (T, 3) array with columns time, Te, Th.
    """
    lake = coerce_parameters(params, oxygen=False)
    table = _as_forcing_table(forcing)
    y0 = as_float64_state(initial_state, size=THERMAL_STATE_SIZE)
    grid = _prepare_times(times)
    cfg = _resolve_config(config, ice=ice)

    fluxes = TwoLayerFluxes(lake, ForcingInterpolator(table), ice=cfg.ice, sink=sink)
    return _integrate(fluxes, y0, grid, THERMAL_STATE_NAMES, cfg, oxygen=False)


def run_oxygen_model(
    forcing: ForcingTable | pd.DataFrame,
    params: LakeParameters | Sequence[float] | np.ndarray,
    initial_state: Sequence[float] | np.ndarray,
    times: Sequence[float] | np.ndarray,
    *,
    ice: bool | None = None,
    sink: DiagnosticsSink | None = None,
    config: SimulationConfig | None = None,
    altitude: float | None = None,
) -> Float64Array2D:
    """Simulate layer temperatures and dissolved-oxygen masses.

    Args:
        forcing: Meteorological forcing (columns Day, Jsw, Tair, Dew, Uw, vW).
        params: 23-value parameter vector or OxygenLakeParameters.
        initial_state: [Te, Th, Oe, Oh] at times[0]; oxygen as layer mass.
        times: Strictly increasing output times (days).
        ice: Enable the ice switch; overrides config.ice when given.
        sink: Receiver of one diagnostic record per flux evaluation.
        config: Run options.
        altitude: Lake altitude (m); overrides config.altitude when given.

    Returns:
        (T, 5) array with columns time, Te, Th, Oe, Oh.
    """
    lake = coerce_parameters(params, oxygen=True)
    table = _as_forcing_table(forcing)
    y0 = as_float64_state(initial_state, size=OXYGEN_STATE_SIZE)
    grid = _prepare_times(times)
    cfg = _resolve_config(config, ice=ice, altitude=altitude)

    fluxes = TwoLayerOxygenFluxes(
        lake,  # type: ignore[arg-type]
        ForcingInterpolator(table),
        ice=cfg.ice,
        sink=sink,
        altitude=cfg.altitude,
    )
    return _integrate(fluxes, y0, grid, OXYGEN_STATE_NAMES, cfg, oxygen=True)


def trajectory_frame(
    trajectory: Float64Array2D,
    state_names: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Label a trajectory array as a DataFrame (time column first).

    Args:
        trajectory: Output of run_model or run_oxygen_model.
        state_names: State column names; inferred from the column count.

    Returns:
        DataFrame with columns time and the state names.
    """
    arr = np.asarray(trajectory, dtype=np.float64)
    if state_names is None:
        state_names = (
            OXYGEN_STATE_NAMES if arr.shape[1] == 1 + OXYGEN_STATE_SIZE
            else THERMAL_STATE_NAMES
        )
    return pd.DataFrame(arr, columns=["time", *state_names])
