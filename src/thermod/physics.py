# src/thermod/physics.py
"""Water density, vapour pressure and thermocline entrainment.

All functions are pure. calc_dens is vectorised over numpy arrays; the
entrainment helper works on scalars because it carries the regime switch.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

import numpy as np

# Entrainment constants
_CD_COEFF: Final[float] = 0.00052
_CD_EXPONENT: Final[float] = 0.44
_AIR_DENSITY: Final[float] = 1.164 / 1000.0
_INVERTED_ENTRAINMENT: Final[float] = 100.0
_ENTRAINMENT_UNITS: Final[float] = 86400.0 / 10000.0

# Magnus-type vapour pressure (mmHg)
_VP_SCALE: Final[float] = 4.596
_VP_A: Final[float] = 17.27
_VP_B_AIR: Final[float] = 237.3
_VP_B_WATER: Final[float] = 273.3


def calc_dens(wtemp: float | np.ndarray) -> float | np.ndarray:
    """Water density from temperature (Millero & Poisson, 1981).

    Args:
        wtemp: Water temperature(s) in deg C.

    Returns:
        Density in kg m-3 (same shape as the input).
    """
    return (
        999.842594
        + (6.793952e-2 * wtemp)
        - (9.095290e-3 * wtemp**2)
        + (1.001685e-4 * wtemp**3)
        - (1.120083e-6 * wtemp**4)
        + (6.536336e-9 * wtemp**5)
    )


def air_vapor_pressure(temp: float) -> float:
    """Vapour pressure (mmHg) over air at temp, e.g. from the dew point."""
    return _VP_SCALE * math.exp((_VP_A * temp) / (_VP_B_AIR + temp))


def water_vapor_pressure(wtemp: float) -> float:
    """Saturation vapour pressure (mmHg) at the water surface."""
    return _VP_SCALE * math.exp((_VP_A * wtemp) / (_VP_B_WATER + wtemp))


def relative_humidity(dew: float, tair: float) -> float:
    """Relative humidity (%) from dew point and air temperature."""
    return air_vapor_pressure(dew) / air_vapor_pressure(tair) * 100.0


@dataclass(frozen=True, slots=True)
class Entrainment:
    """Result of one thermocline entrainment evaluation.

    Attributes:
        dv: Entrainment (exchange) velocity used in the flux balance.
        e: Stability-reduced entrainment velocity scale E0 / (1 + a Ri)^1.5.
        ri: Bulk Richardson number.
        e0: Neutral-stability entrainment velocity scale.
        w0: Surface shear velocity.
        inverted: True when the inverted (full-mixing) branch was taken.
    """

    dv: float
    e: float
    ri: float
    e0: float
    w0: float
    inverted: bool


def entrainment(
    wind_speed: float,
    rho_e: float,
    rho_h: float,
    *,
    therm_dep: float,
    g: float,
    rho: float,
    a: float,
    c: float,
    ht: float,
    cal_param: float,
) -> Entrainment:
    """Turbulent exchange velocity across the thermocline.

    The epilimnion is treated as statically unstable only when strictly denser
    than the hypolimnion; equal densities use the stable decay law.

    Args:
        wind_speed: Wind speed (m/s).
        rho_e: Epilimnion density (g cm-3).
        rho_h: Hypolimnion density (g cm-3).
        therm_dep: Thermocline depth.
        g: Gravitational acceleration (m s-2).
        rho: Reference density (g cm-3).
        a: Richardson-number constant.
        c: Empirical entrainment constant.
        ht: Thermocline thickness (cm).
        cal_param: Entrainment calibration multiplier.

    Returns:
        Entrainment result.
    """
    cd = _CD_COEFF * wind_speed**_CD_EXPONENT
    shear = _AIR_DENSITY * cd * wind_speed**2
    w0 = math.sqrt(shear / rho_e)
    e0 = c * w0

    buoyancy = (g / rho) * (abs(rho_e - rho_h) / 10.0)
    if w0 > 0.0:
        ri = buoyancy / (w0 / therm_dep**2)
        e = e0 / (1.0 + a * ri) ** 1.5
    else:
        # no shear: no mechanical entrainment
        ri = math.inf
        e = 0.0

    if rho_e > rho_h:
        dv = _INVERTED_ENTRAINMENT * cal_param
        return Entrainment(dv=dv, e=e, ri=ri, e0=e0, w0=w0, inverted=True)

    dv = e / (ht / 100.0) * _ENTRAINMENT_UNITS * cal_param
    return Entrainment(dv=dv, e=e, ri=ri, e0=e0, w0=w0, inverted=False)
