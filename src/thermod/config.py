# src/thermod/config.py
"""Configuration models for thermod.

This module defines the pydantic models for the fixed-order parameter vector
(19 entries for the thermal model, 23 with oxygen) and for run options, and
translates run options into native thermod RunConfig objects.

Notes:
    - Parameter units follow the classic two-layer formulation: volumes in cm3,
      areas in cm2, thermocline thickness in cm, thermocline depth in m, time
      in days and energy fluxes in cal cm-2 d-1.
    - Parameter models are frozen: a parameter set is immutable for the
      duration of a run.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Final, Literal

import numpy as np
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from thermod.core_solver import RunConfig
from thermod.errors import (
    ErrorCode,
    InvalidParametersError,
    SimulationConfigError,
    raise_invalid_config,
    raise_invalid_parameters,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from thermod.types import Float64Array

MethodName = Literal["euler", "heun", "rk4"]

# Indices of the oxygen masses in the oxygen-model state vector.
OXYGEN_STATE_INDICES: Final[tuple[int, ...]] = (2, 3)


def _load_yaml_mapping(path: str | Path) -> dict[str, Any]:
    """Read a YAML file that must hold a top-level mapping."""
    with Path(path).open(encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if not isinstance(data, dict):
        raise_invalid_config(detail=f"YAML file {path} must contain a mapping")
    return data


class LakeParameters(BaseModel):
    """Physical constants and geometry of the thermal two-layer model."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    PARAMETER_NAMES: ClassVar[tuple[str, ...]] = (
        "epi_volume",
        "hypo_volume",
        "thermocline_area",
        "thermocline_thickness",
        "surface_area",
        "inflow_temperature",
        "inflow_discharge",
        "reflection",
        "longwave_coeff",
        "stefan_boltzmann",
        "emissivity",
        "density",
        "specific_heat",
        "bowen",
        "richardson_a",
        "entrainment_c",
        "gravity",
        "thermocline_depth",
        "calibration",
    )

    epi_volume: float = Field(gt=0.0, description="Epilimnion volume Ve (cm3)")
    hypo_volume: float = Field(gt=0.0, description="Hypolimnion volume Vh (cm3)")
    thermocline_area: float = Field(ge=0.0, description="Thermocline area At (cm2)")
    thermocline_thickness: float = Field(
        default=300.0, gt=0.0, description="Thermocline thickness Ht (cm)"
    )
    surface_area: float = Field(ge=0.0, description="Surface area As (cm2)")
    inflow_temperature: float = Field(default=0.0, description="Tin (deg C)")
    inflow_discharge: float = Field(default=0.0, ge=0.0, description="Q (cm3 d-1)")
    reflection: float = Field(default=0.03, ge=0.0, le=1.0, description="Rl")
    longwave_coeff: float = Field(default=0.6, description="Acoeff, 0.5 - 0.7")
    stefan_boltzmann: float = Field(
        default=11.7e-8, gt=0.0, description="sigma (cal cm-2 d-1 K-4)"
    )
    emissivity: float = Field(default=0.97, ge=0.0, le=1.0, description="eps")
    density: float = Field(default=0.9982, gt=0.0, description="rho (g cm-3)")
    specific_heat: float = Field(default=0.99, gt=0.0, description="cp (cal g-1 K-1)")
    bowen: float = Field(default=0.47, description="Bowen's coefficient c1")
    richardson_a: float = Field(default=7.0, description="Richardson constant a")
    entrainment_c: float = Field(default=9e4, description="Entrainment constant c")
    gravity: float = Field(default=9.81, gt=0.0, description="g (m s-2)")
    thermocline_depth: float = Field(gt=0.0, description="Thermocline depth (m)")
    calibration: float = Field(default=1.0, description="Entrainment multiplier")

    @classmethod
    def from_vector(cls, values: Sequence[float] | np.ndarray) -> LakeParameters:
        """Build parameters from the fixed-order parameter vector.

        Args:
            values: Parameter vector in PARAMETER_NAMES order.

        Returns:
            Validated parameter model.

        Raises:
            InvalidParametersError: If the length or any value is invalid.
        """
        vec = np.asarray(values, dtype=np.float64).ravel()
        expected = len(cls.PARAMETER_NAMES)
        if vec.size != expected:
            raise_invalid_parameters(
                detail=f"{cls.__name__} expects {expected} values, got {vec.size}"
            )
        try:
            return cls(**dict(zip(cls.PARAMETER_NAMES, vec.tolist(), strict=True)))
        except ValidationError as exc:
            msg = f"Invalid parameter vector: {exc}"
            raise InvalidParametersError(
                msg, code=ErrorCode.INVALID_PARAMETERS
            ) from exc

    @classmethod
    def from_yaml(cls, path: str | Path) -> LakeParameters:
        """Load parameters from a YAML mapping of field names to values.

        Raises:
            InvalidParametersError: If the mapping fails validation.
        """
        data = _load_yaml_mapping(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            msg = f"Invalid parameters in {path}: {exc}"
            raise InvalidParametersError(
                msg, code=ErrorCode.INVALID_PARAMETERS
            ) from exc

    def to_vector(self) -> Float64Array:
        """Return the fixed-order parameter vector."""
        return np.asarray(
            [getattr(self, name) for name in self.PARAMETER_NAMES], dtype=np.float64
        )


class OxygenLakeParameters(LakeParameters):
    """Thermal parameters extended with the oxygen budget terms."""

    PARAMETER_NAMES: ClassVar[tuple[str, ...]] = (
        *LakeParameters.PARAMETER_NAMES,
        "nep_rate",
        "sed_rate",
        "sed_area",
        "diffusion_reduction",
    )

    nep_rate: float = Field(description="Net ecosystem production Fnep")
    sed_rate: float = Field(ge=0.0, description="Sediment oxygen demand Fsed")
    sed_area: float = Field(ge=0.0, description="Sediment area Ased (cm2)")
    diffusion_reduction: float = Field(
        default=1.0, gt=0.0, description="Divisor applied to entrainment for O2"
    )


def coerce_parameters(
    params: LakeParameters | Sequence[float] | np.ndarray,
    *,
    oxygen: bool,
) -> LakeParameters:
    """Return a validated parameter model for the requested model variant.

    Args:
        params: Parameter model or fixed-order vector.
        oxygen: Whether the oxygen variant (23 values) is required.

    Returns:
        LakeParameters, or OxygenLakeParameters when oxygen is True.
    """
    target = OxygenLakeParameters if oxygen else LakeParameters
    if isinstance(params, LakeParameters):
        if oxygen and not isinstance(params, OxygenLakeParameters):
            raise_invalid_parameters(
                detail="the oxygen model requires OxygenLakeParameters"
            )
        return params
    return target.from_vector(params)


class SimulationConfig(BaseModel):
    """Run options for a thermod simulation.

    This model mirrors thermod RunConfig fields plus the physics switches,
    with YAML-friendly defaults and validation behavior.
    """

    model_config = ConfigDict(extra="forbid")

    method: MethodName = Field(
        default="rk4",
        description="Time integration method",
    )

    strict: bool = Field(
        default=True,
        description="Raise on non-finite state when check_state is enabled",
    )

    check_state: bool = Field(
        default=False,
        description="Flag non-finite or negative-oxygen states after each step",
    )

    ice: bool = Field(
        default=False,
        description="Enable the ice insulation switch",
    )

    altitude: float = Field(
        default=300.0,
        description="Lake altitude (m) for oxygen saturation",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load run options from a YAML mapping.

        Raises:
            SimulationConfigError: If the mapping fails validation.
        """
        data = _load_yaml_mapping(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            msg = f"Invalid simulation configuration in {path}: {exc}"
            raise SimulationConfigError(msg, code=ErrorCode.INVALID_CONFIG) from exc

    def to_run_config(self, *, oxygen: bool = False) -> RunConfig:
        """Convert this config to a native thermod RunConfig.

        Args:
            oxygen: Whether the oxygen masses should be checked for sign.

        Returns:
            Fully constructed RunConfig instance.
        """
        return RunConfig(
            method=self.method,
            strict=self.strict,
            check_state=self.check_state,
            nonnegative=OXYGEN_STATE_INDICES if oxygen else (),
        )
