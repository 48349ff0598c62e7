# src/thermod/gas_exchange.py
"""Air-water gas exchange: piston velocities and oxygen saturation.

Piston velocities follow Cole & Caraco (1998) for k600 and are converted to a
specific gas through the Schmidt-number ratio (Jähne et al., 1987). Oxygen
saturation uses the Garcia & Gordon / Benson & Krause fit with a barometric
pressure estimate from altitude when no pressure is supplied.
"""

from __future__ import annotations

import math
from typing import Final

# Schmidt number polynomial coefficients (A, B, C, D): Sc = A + B T + C T^2 + D T^3
SCHMIDT_COEFFICIENTS: Final[dict[str, tuple[float, float, float, float]]] = {
    "He": (368.0, -16.75, 0.374, -0.0036),
    "O2": (1568.0, -86.04, 2.142, -0.0216),
    "CO2": (1742.0, -91.24, 2.208, -0.0219),
    "CH4": (1824.0, -98.12, 2.413, -0.0241),
    "SF6": (3255.0, -217.13, 6.837, -0.0861),
    "N2O": (2105.0, -130.08, 3.486, -0.0365),
    "Ar": (1799.0, -106.96, 2.797, -0.0289),
    "N2": (1615.0, -92.15, 2.349, -0.0240),
}

_UNKNOWN_GAS_MSG: Final[str] = "Unknown gas '{gas}'; expected one of {known}"

_SCHMIDT_EXPONENT: Final[float] = 0.5
_WIND_PROFILE_EXPONENT: Final[float] = 0.15

# Garcia-Benson / barometric constants
_MGL_PER_MLL: Final[float] = 1.42905
_MMHG_PER_MB: Final[float] = 0.750061683
_MMHG_PER_INHG: Final[float] = 25.3970886
_STANDARD_PRESSURE_INHG: Final[float] = 29.92126
_STANDARD_TEMPERATURE_K: Final[float] = 15.0 + 273.15
_GRAVITY: Final[float] = 9.80665
_AIR_MOLAR_MASS: Final[float] = 0.0289644
_GAS_CONSTANT: Final[float] = 8.31447

# m/d -> cm/d and mg/L -> mg/cm3, matching the model's cgs volume units
_M_TO_CM: Final[float] = 100.0
_MGL_TO_MG_CM3: Final[float] = 1.0 / 1000.0


def wind_scale(wnd: float, wnd_z: float = 10.0) -> float:
    """Scale a wind speed measured at height wnd_z (m) to 10 m.

    Args:
        wnd: Wind speed (m/s).
        wnd_z: Measurement height (m).

    Returns:
        Wind speed at 10 m (m/s).
    """
    return wnd * (10.0 / wnd_z) ** _WIND_PROFILE_EXPONENT


def k600_cole(u10: float) -> float:
    """Gas transfer velocity k600 (m/d) from 10 m wind speed (Cole & Caraco)."""
    k600 = 2.07 + 0.215 * u10**1.7  # cm/h
    return k600 * 24.0 / 100.0


def schmidt_number(temperature: float, gas: str = "O2") -> float:
    """Schmidt number of gas in freshwater at temperature (deg C).

    Raises:
        ValueError: If gas is not tabulated.
    """
    try:
        a, b, c, d = SCHMIDT_COEFFICIENTS[gas]
    except KeyError as exc:
        raise ValueError(
            _UNKNOWN_GAS_MSG.format(gas=gas, known=sorted(SCHMIDT_COEFFICIENTS))
        ) from exc
    return a + b * temperature + c * temperature**2 + d * temperature**3


def k600_to_kgas(k600: float, temperature: float, gas: str = "O2") -> float:
    """Convert k600 to the transfer velocity of gas at temperature."""
    sc600 = schmidt_number(temperature, gas) / 600.0
    return k600 * sc600**-_SCHMIDT_EXPONENT


def barometric_pressure(altitude: float) -> float:
    """Standard-atmosphere barometric pressure (mb) at altitude (m)."""
    return (
        (1.0 / _MMHG_PER_MB)
        * _MMHG_PER_INHG
        * _STANDARD_PRESSURE_INHG
        * math.exp(
            (-_GRAVITY * _AIR_MOLAR_MASS * altitude)
            / (_GAS_CONSTANT * _STANDARD_TEMPERATURE_K)
        )
    )


def o2_at_saturation(
    temp: float,
    *,
    baro: float | None = None,
    altitude: float = 0.0,
    salinity: float = 0.0,
) -> float:
    """Dissolved oxygen concentration at saturation (mg/L).

    Args:
        temp: Water temperature (deg C).
        baro: Barometric pressure (mb); estimated from altitude when None.
        altitude: Altitude above sea level (m).
        salinity: Salinity (PSU).

    Returns:
        Saturation concentration in mg/L.
    """
    if baro is None:
        baro = barometric_pressure(altitude)

    # vapour pressure of water; water temperature approximates the boundary
    u = 10.0 ** (8.10765 - 1750.286 / (235.0 + temp))
    press_corr = (baro * _MMHG_PER_MB - u) / (760.0 - u)

    ts = math.log((298.15 - temp) / (273.15 + temp))
    ln_c = (
        2.00907
        + 3.22014 * ts
        + 4.05010 * ts**2
        + 4.94457 * ts**3
        - 2.56847e-1 * ts**4
        + 3.88767 * ts**5
        - salinity
        * (6.24523e-3 + 7.37614e-3 * ts + 1.03410e-2 * ts**2 + 8.17083e-3 * ts**3)
        - 4.88682e-7 * salinity**2
    )
    return math.exp(ln_c) * _MGL_PER_MLL * press_corr


def oxygen_exchange_velocity(wind_speed: float, temperature: float) -> float:
    """O2 piston velocity (cm/d) from 10 m wind speed and water temperature."""
    k600 = k600_cole(wind_scale(wind_speed, wnd_z=10.0))
    return k600_to_kgas(k600, temperature, gas="O2") * _M_TO_CM


def oxygen_saturation_concentration(temperature: float, altitude: float) -> float:
    """O2 saturation concentration in model units (mg cm-3)."""
    return o2_at_saturation(temperature, altitude=altitude) * _MGL_TO_MG_CM3
