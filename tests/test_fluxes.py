# tests/test_fluxes.py
"""Unit tests for the two-layer flux balance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from thermod.config import LakeParameters
from thermod.diagnostics import OXYGEN_COLUMNS, THERMAL_COLUMNS, MemorySink
from thermod.fluxes import ICE_INSULATION, TwoLayerFluxes, TwoLayerOxygenFluxes
from thermod.forcing import ForcingInterpolator, ForcingTable
from thermod.gas_exchange import oxygen_saturation_concentration

if TYPE_CHECKING:
    from thermod.config import OxygenLakeParameters


def _winter_forcing() -> ForcingInterpolator:
    return ForcingInterpolator(
        ForcingTable.constant(
            [0.0, 10.0], jsw=50.0, tair=-5.0, dew=-8.0, wind_speed=2.0
        )
    )


# -----------------------------------------------------------------------------
# Thermal balance
# -----------------------------------------------------------------------------


def test_thermal_call_returns_derivative_and_one_record(
    lake_params: LakeParameters, summer_forcing: ForcingTable
) -> None:
    """Each call returns [dTe, dTh] and appends one full record."""
    sink = MemorySink()
    fluxes = TwoLayerFluxes(lake_params, ForcingInterpolator(summer_forcing), sink=sink)

    dydt = fluxes(3.0, np.array([10.0, 8.0]))

    assert dydt.shape == (2,)
    assert len(sink) == 1
    assert fluxes.columns == THERMAL_COLUMNS
    record = sink.to_frame().iloc[0]
    assert list(sink.to_frame().columns) == list(THERMAL_COLUMNS)
    assert record["t"] == 3.0
    assert record["ice_param"] == 1.0
    assert record["mix_h"] == pytest.approx(dydt[1])


def test_thermal_terms_compose_epilimnion_derivative(
    lake_params: LakeParameters, summer_forcing: ForcingTable
) -> None:
    """dTe is inflow + outflow + mixing + scaled surface flux."""
    fluxes = TwoLayerFluxes(lake_params, ForcingInterpolator(summer_forcing))
    terms = fluxes.thermal_terms(2.0, np.array([10.0, 8.0]))

    p = lake_params
    scale = p.surface_area / (p.epi_volume * p.density * p.specific_heat)
    assert terms.dte == pytest.approx(
        terms.qin + terms.qout + terms.mix_e + scale * terms.surface
    )
    # summer surface exchange heats a cool epilimnion
    assert terms.surface > 0.0
    assert terms.sw == pytest.approx(345.6)
    assert terms.water_lw < 0.0
    # mixing moves heat from the warm layer to the cold one
    assert terms.mix_e < 0.0 < terms.mix_h
    assert not terms.entrainment.inverted


def test_mixing_conserves_heat(
    lake_params: LakeParameters, summer_forcing: ForcingTable
) -> None:
    """Mixing heat lost by the epilimnion equals heat gained below."""
    fluxes = TwoLayerFluxes(lake_params, ForcingInterpolator(summer_forcing))
    terms = fluxes.thermal_terms(2.0, np.array([12.0, 6.0]))
    assert terms.mix_e * lake_params.epi_volume == pytest.approx(
        -terms.mix_h * lake_params.hypo_volume
    )


def test_inflow_outflow_terms(summer_forcing: ForcingTable) -> None:
    """Inflow adds Q/Ve Tin and outflow removes Q/Ve Te."""
    params = LakeParameters(
        epi_volume=1e12,
        hypo_volume=2e12,
        thermocline_area=1e9,
        surface_area=2e9,
        thermocline_depth=4.0,
        inflow_temperature=6.0,
        inflow_discharge=1e10,
    )
    fluxes = TwoLayerFluxes(params, ForcingInterpolator(summer_forcing))
    terms = fluxes.thermal_terms(1.0, np.array([15.0, 10.0]))
    assert terms.qin == pytest.approx(0.01 * 6.0)
    assert terms.qout == pytest.approx(-0.01 * 15.0)


def test_ice_factor_requires_switch_and_freezing(lake_params: LakeParameters) -> None:
    """Ice insulation applies only with ice on, Te <= 0 and Tair <= 0."""
    on = TwoLayerFluxes(lake_params, _winter_forcing(), ice=True)
    off = TwoLayerFluxes(lake_params, _winter_forcing(), ice=False)

    assert on.ice_factor(0.0, -5.0) == ICE_INSULATION
    assert on.ice_factor(0.1, -5.0) == 1.0
    assert on.ice_factor(-0.1, 0.5) == 1.0
    assert off.ice_factor(-1.0, -5.0) == 1.0


def test_ice_scales_surface_flux(lake_params: LakeParameters) -> None:
    """Under ice the surface term is multiplied by the insulation factor."""
    sink = MemorySink()
    fluxes = TwoLayerFluxes(lake_params, _winter_forcing(), ice=True, sink=sink)
    y = np.array([0.0, 4.0])
    terms = fluxes.thermal_terms(1.0, y)

    p = lake_params
    scale = p.surface_area / (p.epi_volume * p.density * p.specific_heat)
    assert terms.ice_param == ICE_INSULATION
    assert terms.dte == pytest.approx(
        terms.qin + terms.qout + terms.mix_e + scale * ICE_INSULATION * terms.surface
    )

    fluxes(1.0, y)
    assert sink.to_frame()["ice_param"].iloc[0] == ICE_INSULATION


def test_winter_inversion_uses_inverted_entrainment(
    lake_params: LakeParameters,
) -> None:
    """A 4 degC epilimnion above 0 degC water is denser and mixes fully."""
    fluxes = TwoLayerFluxes(lake_params, _winter_forcing())
    terms = fluxes.thermal_terms(1.0, np.array([4.0, 0.0]))
    assert terms.entrainment.inverted
    assert terms.entrainment.dv == pytest.approx(100.0 * lake_params.calibration)


# -----------------------------------------------------------------------------
# Oxygen balance
# -----------------------------------------------------------------------------


def test_oxygen_call_record_layout(
    oxygen_params: OxygenLakeParameters, summer_forcing: ForcingTable
) -> None:
    """The oxygen model returns four derivatives and the extended record."""
    sink = MemorySink(columns=OXYGEN_COLUMNS)
    fluxes = TwoLayerOxygenFluxes(
        oxygen_params, ForcingInterpolator(summer_forcing), sink=sink
    )
    p = oxygen_params
    y = np.array([15.0, 8.0, 8e-3 * p.epi_volume, 6e-3 * p.hypo_volume])

    dydt = fluxes(2.0, y)

    assert dydt.shape == (4,)
    assert fluxes.columns == OXYGEN_COLUMNS
    frame = sink.to_frame()
    assert frame.shape == (1, len(OXYGEN_COLUMNS))
    row = frame.iloc[0]
    assert dydt[2] == pytest.approx(row["nep"] + row["atm"] + row["oflux_epi"])
    assert dydt[3] == pytest.approx(row["oflux_hypo"] - row["sed"])
    assert row["oflux_epi"] == pytest.approx(-row["oflux_hypo"])


def test_atmospheric_exchange_vanishes_at_saturation(
    oxygen_params: OxygenLakeParameters, summer_forcing: ForcingTable
) -> None:
    """No air-water flux when the epilimnion is exactly saturated."""
    fluxes = TwoLayerOxygenFluxes(
        oxygen_params, ForcingInterpolator(summer_forcing), altitude=300.0
    )
    te = 15.0
    sat = oxygen_saturation_concentration(te, 300.0)
    y = np.array([te, 8.0, sat * oxygen_params.epi_volume, 0.0])
    thermal = fluxes.thermal_terms(1.0, y)
    terms = fluxes.oxygen_terms(y, thermal, fluxes.forcing(1.0))
    assert terms.atm == pytest.approx(0.0, abs=1e-3)

    undersaturated = y.copy()
    undersaturated[2] *= 0.5
    low = fluxes.oxygen_terms(undersaturated, thermal, fluxes.forcing(1.0))
    assert low.atm > 0.0


def test_sediment_demand_is_michaelis_menten(
    oxygen_params: OxygenLakeParameters, summer_forcing: ForcingTable
) -> None:
    """Sediment demand vanishes without oxygen and saturates when it is high."""
    fluxes = TwoLayerOxygenFluxes(oxygen_params, ForcingInterpolator(summer_forcing))
    p = oxygen_params
    y = np.array([15.0, 20.0, 8e-3 * p.epi_volume, 0.0])
    thermal = fluxes.thermal_terms(1.0, y)
    f = fluxes.forcing(1.0)

    assert fluxes.oxygen_terms(y, thermal, f).sed == 0.0

    y[3] = 1e3 * p.hypo_volume
    high = fluxes.oxygen_terms(y, thermal, f).sed
    assert high == pytest.approx(p.sed_rate * p.sed_area, rel=1e-6)


def test_diffusion_reduction_divides_oxygen_exchange(
    oxygen_params: OxygenLakeParameters, summer_forcing: ForcingTable
) -> None:
    """diffusion_reduction divides the entrainment used for oxygen."""
    reduced = oxygen_params.model_copy(update={"diffusion_reduction": 4.0})
    forcing = ForcingInterpolator(summer_forcing)
    p = oxygen_params
    y = np.array([15.0, 8.0, 8e-3 * p.epi_volume, 2e-3 * p.hypo_volume])

    full = TwoLayerOxygenFluxes(p, forcing)
    quarter = TwoLayerOxygenFluxes(reduced, forcing)
    t_full = full.oxygen_terms(y, full.thermal_terms(1.0, y), forcing(1.0))
    t_quarter = quarter.oxygen_terms(y, quarter.thermal_terms(1.0, y), forcing(1.0))

    assert t_quarter.oflux_epi == pytest.approx(t_full.oflux_epi / 4.0)
