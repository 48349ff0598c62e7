"""thermod two-layer lake temperature and oxygen model package."""

from __future__ import annotations

from .config import LakeParameters, OxygenLakeParameters, SimulationConfig
from .core_solver import CoreSolver, RunConfig
from .diagnostics import (
    OXYGEN_COLUMNS,
    THERMAL_COLUMNS,
    DiagnosticsSink,
    FileSink,
    MemorySink,
    NullSink,
    read_diagnostics,
)
from .engine import run_model, run_oxygen_model, trajectory_frame
from .errors import (
    ErrorCode,
    InvalidForcingError,
    InvalidParametersError,
    SimulationConfigError,
    StateShapeError,
    ThermodError,
)
from .fluxes import TwoLayerFluxes, TwoLayerOxygenFluxes
from .forcing import ForcingInterpolator, ForcingSample, ForcingTable, wind_function
from .model_core import ModelCore, ModelCoreOptions
from .physics import calc_dens, entrainment
from .preprocessing import (
    add_noise,
    configure_from_hypsography,
    prepare_meteo,
    thermocline_depth,
)

__all__ = [
    "OXYGEN_COLUMNS",
    "THERMAL_COLUMNS",
    "CoreSolver",
    "DiagnosticsSink",
    "ErrorCode",
    "FileSink",
    "ForcingInterpolator",
    "ForcingSample",
    "ForcingTable",
    "InvalidForcingError",
    "InvalidParametersError",
    "LakeParameters",
    "MemorySink",
    "ModelCore",
    "ModelCoreOptions",
    "NullSink",
    "OxygenLakeParameters",
    "RunConfig",
    "SimulationConfig",
    "SimulationConfigError",
    "StateShapeError",
    "ThermodError",
    "TwoLayerFluxes",
    "TwoLayerOxygenFluxes",
    "add_noise",
    "calc_dens",
    "configure_from_hypsography",
    "entrainment",
    "prepare_meteo",
    "read_diagnostics",
    "run_model",
    "run_oxygen_model",
    "thermocline_depth",
    "trajectory_frame",
    "wind_function",
]

__version__ = "0.1.0"
