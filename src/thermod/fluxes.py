# src/thermod/fluxes.py
"""Flux balance (ODE right-hand side) of the two-box lake model.

TwoLayerFluxes computes d/dt of the epilimnion and hypolimnion temperatures
from surface heat exchange, inflow/outflow and thermocline entrainment.
TwoLayerOxygenFluxes adds the oxygen masses of both layers: atmospheric
exchange, net ecosystem production, sediment oxygen demand and entrainment.

Both objects are callables f(t, y) -> dy/dt suitable for CoreSolver.run. They
own the forcing interpolator of their run and append one diagnostic record per
call to an injected sink; they keep no other state between calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import numpy as np

from thermod.diagnostics import OXYGEN_COLUMNS, THERMAL_COLUMNS, NullSink
from thermod.gas_exchange import (
    oxygen_exchange_velocity,
    oxygen_saturation_concentration,
)
from thermod.physics import (
    Entrainment,
    air_vapor_pressure,
    calc_dens,
    entrainment,
    relative_humidity,
    water_vapor_pressure,
)

if TYPE_CHECKING:
    from thermod.config import LakeParameters, OxygenLakeParameters
    from thermod.diagnostics import DiagnosticsSink
    from thermod.forcing import ForcingInterpolator, ForcingSample
    from thermod.types import FloatArray

# Surface heat flux multiplier while the lake is ice covered.
ICE_INSULATION: Final[float] = 1e-5

# Temperature correction base for biological rates.
THETA: Final[float] = 1.03

# Half-saturation O2 concentration for sediment demand (mg cm-3).
SED_HALF_SATURATION: Final[float] = 0.5 / 1000.0

_KELVIN: Final[float] = 273.0


@dataclass(frozen=True, slots=True)
class ThermalTerms:
    """Named heat-budget terms of one flux evaluation.

    Sign convention: every surface term is stored as its contribution to the
    epilimnion heat budget (losses are negative).
    """

    qin: float
    qout: float
    mix_e: float
    mix_h: float
    sw: float
    lw: float
    water_lw: float
    conv: float
    evap: float
    rh: float
    entrainment: Entrainment
    ice_param: float
    dte: float
    dth: float

    @property
    def surface(self) -> float:
        """Net surface heat flux before the ice factor."""
        return self.sw + self.lw + self.water_lw + self.conv + self.evap


@dataclass(frozen=True, slots=True)
class OxygenTerms:
    """Named oxygen-budget terms of one flux evaluation."""

    atm: float
    nep: float
    sed: float
    oflux_epi: float
    oflux_hypo: float
    doe: float
    doh: float


class TwoLayerFluxes:
    """Heat balance of the epilimnion/hypolimnion system."""

    columns: tuple[str, ...] = THERMAL_COLUMNS
    n_states: int = 2

    def __init__(
        self,
        params: LakeParameters,
        forcing: ForcingInterpolator,
        *,
        ice: bool = False,
        sink: DiagnosticsSink | None = None,
    ) -> None:
        """Bind parameters, forcing and diagnostics sink for one run.

        Args:
            params: Validated lake parameters.
            forcing: Forcing interpolator owned by this run.
            ice: Enable the ice insulation switch.
            sink: Receiver of diagnostic records; records are discarded if None.
        """
        self.params = params
        self.forcing = forcing
        self.ice = bool(ice)
        self.sink: DiagnosticsSink = sink if sink is not None else NullSink()

        p = params
        self._heat_scale = p.surface_area / (p.epi_volume * p.density * p.specific_heat)
        self._q_ve = p.inflow_discharge / p.epi_volume
        self._at_ve = p.thermocline_area / p.epi_volume
        self._at_vh = p.thermocline_area / p.hypo_volume

    def ice_factor(self, te: float, tair: float) -> float:
        """Surface flux multiplier: ICE_INSULATION under ice, else 1.0."""
        if self.ice and te <= 0.0 and tair <= 0.0:
            return ICE_INSULATION
        return 1.0

    def entrainment_at(
        self, forcing: ForcingSample, te: float, th: float
    ) -> Entrainment:
        """Thermocline entrainment for the given layer temperatures."""
        p = self.params
        return entrainment(
            forcing.vw,
            calc_dens(te) / 1000.0,
            calc_dens(th) / 1000.0,
            therm_dep=p.thermocline_depth,
            g=p.gravity,
            rho=p.density,
            a=p.richardson_a,
            c=p.entrainment_c,
            ht=p.thermocline_thickness,
            cal_param=p.calibration,
        )

    def thermal_terms(
        self,
        t: float,
        y: FloatArray,
        forcing: ForcingSample | None = None,
    ) -> ThermalTerms:
        """Evaluate every heat-budget term at time t and state y."""
        p = self.params
        f = forcing if forcing is not None else self.forcing(t)
        te = float(y[0])
        th = float(y[1])

        eair = air_vapor_pressure(f.dew)
        es = water_vapor_pressure(te)
        ent = self.entrainment_at(f, te, th)
        ice_param = self.ice_factor(te, f.tair)

        qin = self._q_ve * p.inflow_temperature
        qout = -self._q_ve * te
        mix_e = ent.dv * self._at_ve * (th - te)
        mix_h = ent.dv * self._at_vh * (te - th)

        sw = f.jsw
        lw = (
            p.stefan_boltzmann
            * (f.tair + _KELVIN) ** 4
            * (p.longwave_coeff + 0.031 * math.sqrt(eair))
            * (1.0 - p.reflection)
        )
        water_lw = -(p.emissivity * p.stefan_boltzmann * (te + _KELVIN) ** 4)
        conv = -(p.bowen * f.uw * (te - f.tair))
        evap = -(f.uw * (es - eair))

        surface = sw + lw + water_lw + conv + evap
        dte = qin + qout + mix_e + self._heat_scale * ice_param * surface

        return ThermalTerms(
            qin=qin,
            qout=qout,
            mix_e=mix_e,
            mix_h=mix_h,
            sw=sw,
            lw=lw,
            water_lw=water_lw,
            conv=conv,
            evap=evap,
            rh=relative_humidity(f.dew, f.tair),
            entrainment=ent,
            ice_param=ice_param,
            dte=dte,
            dth=mix_h,
        )

    @staticmethod
    def _thermal_record(t: float, terms: ThermalTerms) -> tuple[float, ...]:
        return (
            terms.qin,
            terms.qout,
            terms.mix_e,
            terms.mix_h,
            terms.sw,
            terms.lw,
            terms.water_lw,
            terms.conv,
            terms.evap,
            terms.rh,
            terms.entrainment.e,
            terms.entrainment.ri,
            t,
            terms.ice_param,
        )

    def __call__(self, t: float, y: FloatArray) -> FloatArray:
        """Return [dTe/dt, dTh/dt] and append one diagnostic record."""
        terms = self.thermal_terms(t, y)
        self.sink.append(self._thermal_record(t, terms))
        return np.array([terms.dte, terms.dth], dtype=np.float64)


class TwoLayerOxygenFluxes(TwoLayerFluxes):
    """Heat and dissolved-oxygen balance of the two-layer system."""

    columns: tuple[str, ...] = OXYGEN_COLUMNS
    n_states: int = 4

    def __init__(
        self,
        params: OxygenLakeParameters,
        forcing: ForcingInterpolator,
        *,
        ice: bool = False,
        sink: DiagnosticsSink | None = None,
        altitude: float = 300.0,
    ) -> None:
        """Bind parameters, forcing and diagnostics sink for one run.

        Args:
            params: Validated oxygen-model parameters.
            forcing: Forcing interpolator owned by this run.
            ice: Enable the ice insulation switch (heat and gas exchange).
            sink: Receiver of diagnostic records; records are discarded if None.
            altitude: Lake altitude (m) for oxygen saturation.
        """
        super().__init__(params, forcing, ice=ice, sink=sink)
        self.oxygen_params = params
        self.altitude = float(altitude)

    def oxygen_terms(
        self,
        y: FloatArray,
        thermal: ThermalTerms,
        forcing: ForcingSample,
    ) -> OxygenTerms:
        """Evaluate every oxygen-budget term for state y."""
        p = self.oxygen_params
        te = float(y[0])
        th = float(y[1])
        conc_e = float(y[2]) / p.epi_volume
        conc_h = float(y[3]) / p.hypo_volume

        dv_oxy = thermal.entrainment.dv / p.diffusion_reduction

        k_o2 = oxygen_exchange_velocity(forcing.vw, te)
        o2_sat = oxygen_saturation_concentration(te, self.altitude)
        atm = k_o2 * (o2_sat - conc_e) * p.surface_area * thermal.ice_param

        sed = (
            p.sed_rate
            * p.sed_area
            * THETA ** (th - 20.0)
            * (conc_h / (SED_HALF_SATURATION + conc_h))
        )
        nep = THETA ** (te - 20.0) * p.nep_rate * p.epi_volume

        oflux_epi = dv_oxy * p.thermocline_area * (conc_h - conc_e)
        oflux_hypo = dv_oxy * p.thermocline_area * (conc_e - conc_h)

        return OxygenTerms(
            atm=atm,
            nep=nep,
            sed=sed,
            oflux_epi=oflux_epi,
            oflux_hypo=oflux_hypo,
            doe=nep + atm + oflux_epi,
            doh=oflux_hypo - sed,
        )

    def __call__(self, t: float, y: FloatArray) -> FloatArray:
        """Return [dTe/dt, dTh/dt, dOe/dt, dOh/dt] and append one record."""
        f = self.forcing(t)
        thermal = self.thermal_terms(t, y, f)
        oxy = self.oxygen_terms(y, thermal, f)
        self.sink.append(
            (
                *self._thermal_record(t, thermal),
                oxy.atm,
                oxy.nep,
                oxy.sed,
                oxy.oflux_epi,
                oxy.oflux_hypo,
            )
        )
        return np.array(
            [thermal.dte, thermal.dth, oxy.doe, oxy.doh],
            dtype=np.float64,
        )
