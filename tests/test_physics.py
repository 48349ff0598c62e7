# tests/test_physics.py
"""Unit tests for density, vapour pressure and thermocline entrainment."""

from __future__ import annotations

import math

import numpy as np
import pytest

from thermod.physics import (
    air_vapor_pressure,
    calc_dens,
    entrainment,
    relative_humidity,
    water_vapor_pressure,
)

_ENTRAINMENT_KW = {
    "therm_dep": 5.0,
    "g": 9.81,
    "rho": 0.9982,
    "a": 7.0,
    "c": 9e4,
    "ht": 300.0,
    "cal_param": 1.0,
}


# -----------------------------------------------------------------------------
# Density
# -----------------------------------------------------------------------------


def test_calc_dens_reference_values() -> None:
    """Density peaks near 4 degC and is about 997 kg m-3 at 25 degC."""
    assert calc_dens(4.0) == pytest.approx(999.975, abs=0.01)
    assert calc_dens(25.0) == pytest.approx(997.048, abs=0.01)
    assert calc_dens(0.0) == pytest.approx(999.842594)


def test_calc_dens_vectorised() -> None:
    """calc_dens accepts arrays and keeps the shape."""
    temps = np.array([0.0, 4.0, 10.0, 20.0])
    dens = calc_dens(temps)
    assert dens.shape == temps.shape
    assert np.argmax(dens) == 1


# -----------------------------------------------------------------------------
# Vapour pressure
# -----------------------------------------------------------------------------


def test_vapor_pressure_forms() -> None:
    """Air and water forms share the scale and differ in the denominator."""
    assert air_vapor_pressure(0.0) == pytest.approx(4.596)
    assert water_vapor_pressure(0.0) == pytest.approx(4.596)
    assert air_vapor_pressure(15.0) == pytest.approx(
        4.596 * math.exp(17.27 * 15.0 / 252.3)
    )
    assert water_vapor_pressure(15.0) < air_vapor_pressure(15.0)


def test_relative_humidity_saturated_air() -> None:
    """RH is 100 % when the dew point equals the air temperature."""
    assert relative_humidity(12.0, 12.0) == pytest.approx(100.0)
    assert relative_humidity(5.0, 12.0) < 100.0


# -----------------------------------------------------------------------------
# Entrainment
# -----------------------------------------------------------------------------


def test_entrainment_stable_branch_formula() -> None:
    """Stable stratification reduces entrainment through the Richardson number."""
    u = 3.0
    rho_e, rho_h = 0.99970, 0.99985
    ent = entrainment(u, rho_e, rho_h, **_ENTRAINMENT_KW)

    cd = 0.00052 * u**0.44
    w0 = math.sqrt(1.164 / 1000.0 * cd * u**2 / rho_e)
    ri = (9.81 / 0.9982) * ((rho_h - rho_e) / 10.0) / (w0 / 5.0**2)
    e = 9e4 * w0 / (1.0 + 7.0 * ri) ** 1.5

    assert not ent.inverted
    assert ent.w0 == pytest.approx(w0)
    assert ent.ri == pytest.approx(ri)
    assert ent.e == pytest.approx(e)
    assert ent.dv == pytest.approx(e / 3.0 * 8.64)


def test_entrainment_equal_densities_use_stable_branch() -> None:
    """At equal densities Ri = 0 and the stable law gives E = E0."""
    ent = entrainment(3.0, 0.9990, 0.9990, **_ENTRAINMENT_KW)
    assert not ent.inverted
    assert ent.ri == 0.0
    assert ent.e == pytest.approx(ent.e0)
    assert ent.dv == pytest.approx(ent.e0 / 3.0 * 8.64)


def test_entrainment_inverted_branch() -> None:
    """A denser epilimnion mixes with the fixed inverted velocity."""
    ent = entrainment(3.0, 0.9990 + 1e-7, 0.9990, **_ENTRAINMENT_KW)
    assert ent.inverted
    assert ent.dv == pytest.approx(100.0)

    scaled = entrainment(3.0, 1.0, 0.999, **{**_ENTRAINMENT_KW, "cal_param": 2.5})
    assert scaled.dv == pytest.approx(250.0)


def test_entrainment_calibration_scales_stable_branch() -> None:
    """The calibration multiplier scales dv linearly."""
    base = entrainment(4.0, 0.9990, 0.9995, **_ENTRAINMENT_KW)
    doubled = entrainment(4.0, 0.9990, 0.9995, **{**_ENTRAINMENT_KW, "cal_param": 2.0})
    assert doubled.dv == pytest.approx(2.0 * base.dv)


def test_entrainment_zero_wind() -> None:
    """Without wind there is no shear and no stable-branch entrainment."""
    ent = entrainment(0.0, 0.9990, 0.9995, **_ENTRAINMENT_KW)
    assert ent.w0 == 0.0
    assert math.isinf(ent.ri)
    assert ent.e == 0.0
    assert ent.dv == 0.0
    assert not ent.inverted
