"""Shared numeric type aliases and array coercion helpers for thermod."""

from __future__ import annotations

from collections.abc import Callable
from typing import Final, TypeAlias

import numpy as np
from numpy.typing import NDArray

from thermod.errors import raise_state_shape_error

# -----------------------------------------------------------------------------
# Core numeric aliases
# -----------------------------------------------------------------------------

Float64Array: TypeAlias = NDArray[np.float64]

# Shape-intent alias (NumPy typing does not encode shapes; this is semantic).
Float64Array2D: TypeAlias = NDArray[np.float64]

FloatArray: TypeAlias = NDArray[np.floating]

# RHS signature consumed by the integrator: f(t, y) -> dy/dt.
RHSFunction: TypeAlias = Callable[[float, FloatArray], FloatArray]

THERMAL_STATE_SIZE: Final[int] = 2
OXYGEN_STATE_SIZE: Final[int] = 4

_NOT_1D_MSG: Final[str] = "a 1D array"
_NOT_INCREASING_MSG: Final[str] = "strictly increasing values"

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def as_float64_1d(x: object, *, name: str = "array") -> Float64Array:
    """Convert input to contiguous float64 1D array.

    Args:
        x: Input array-like.
        name: Name used in error messages.

    Returns:
        Contiguous float64 1D array.
    """
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim != 1:
        raise_state_shape_error(name=name, expected=_NOT_1D_MSG, got=arr.shape)
    return np.ascontiguousarray(arr)


def as_float64_state(
    x: object,
    *,
    size: int,
    name: str = "initial_state",
) -> Float64Array:
    """Convert input to a float64 state vector of a fixed length.

    Args:
        x: Input state array-like.
        size: Required number of state variables.
        name: Name used in error messages.

    Returns:
        Contiguous float64 1D state array.
    """
    arr = as_float64_1d(x, name=name)
    if arr.size != size:
        raise_state_shape_error(name=name, expected=f"length {size}", got=arr.size)
    return arr


def ensure_strictly_increasing_times(
    times: Float64Array, *, name: str = "times"
) -> None:
    """Validate that a time vector is strictly increasing.

    Args:
        times: 1D float64 time array.
        name: Name used in error messages.
    """
    if times.size <= 1:
        return
    dt = np.diff(np.asarray(times, dtype=np.float64))
    if np.any(dt <= 0.0):
        raise_state_shape_error(name=name, expected=_NOT_INCREASING_MSG, got=times)
