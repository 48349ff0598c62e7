# src/thermod/model_core.py
"""Core class for managing the numerical state of a two-box lake run.

This module provides a lightweight state container and time-grid manager. It
supports:

- Non-uniform time grids via the per-step dt accessor.
- A 1D state vector (layer temperatures, optionally layer oxygen masses).
- Optional full history storage, exported as a (time, state) trajectory.

The core intentionally does not evaluate fluxes; it only manages state, time
and history in a solver-friendly manner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from numpy.typing import DTypeLike


# Error / message constants -------------------------------------------------

_TIMEGRID_1D_ERROR = "time_grid must be a 1D array"
_TIMEGRID_MIN_POINTS_ERROR = "time_grid must contain at least one time point"
_TIMEGRID_MONOTONE_ERROR = "time_grid must be strictly increasing"
_N_STATES_ERROR = "n_states must be positive, got {n}"

_INITIAL_STATE_SHAPE_ERROR = "Initial state shape {actual} mismatch vs. {expected}"
_NEXT_STATE_SHAPE_ERROR = "Next state shape {actual} does not match expected {expected}"
_STATE_NAMES_LENGTH_ERROR = "Got {actual} state_names for {expected} state variables"

_HISTORY_NOT_STORED_ERROR = (
    "Full history is not stored (store_history=False); history is unavailable."
)
_FINAL_TIMESTEP_ERROR = "Simulation has already reached final timestep"
_DT_INDEX_OOB_ERROR = "dt index out of bounds: {idx}"


# Typing helpers ------------------------------------------------------------

FloatArray = npt.NDArray[np.floating[Any]]


@dataclass(slots=True)
class ModelCoreOptions:
    """Optional configuration for ModelCore.

    Attributes:
        state_names: Optional names for each state variable, used when the
            trajectory is exported as a table.
        store_history: Whether to store the full time history.
        dtype: Floating-point dtype for internal arrays.
    """

    state_names: tuple[str, ...] | None = None
    store_history: bool = True
    dtype: DTypeLike = np.float64


class ModelCore:
    """Core state and time manager for the two-box model."""

    def __init__(
        self,
        n_states: int,
        time_grid: np.ndarray,
        *,
        options: ModelCoreOptions | None = None,
    ) -> None:
        """
        Initialize ModelCore.

        Args:
            n_states: Number of state variables (2 thermal, 4 with oxygen).
            time_grid: 1D array of output times, shape (n_timesteps,).
            options: Optional ModelCoreOptions for additional configuration.

        Raises:
            ValueError: if time_grid is invalid or names mismatch n_states.
        """
        opts = options or ModelCoreOptions()

        self.dtype = np.dtype(opts.dtype)

        self.time_grid = np.asarray(time_grid, dtype=self.dtype)
        if self.time_grid.ndim != 1:
            raise ValueError(_TIMEGRID_1D_ERROR)

        self.n_timesteps = int(self.time_grid.size)
        if self.n_timesteps < 1:
            raise ValueError(_TIMEGRID_MIN_POINTS_ERROR)

        if self.n_timesteps > 1:
            dt_arr = np.diff(self.time_grid)
            if np.any(dt_arr <= 0):
                raise ValueError(_TIMEGRID_MONOTONE_ERROR)
            self.dt_grid = np.asarray(dt_arr, dtype=self.dtype)
        else:
            self.dt_grid = np.asarray([], dtype=self.dtype)

        self.n_states = int(n_states)
        if self.n_states < 1:
            raise ValueError(_N_STATES_ERROR.format(n=self.n_states))
        self.state_shape: tuple[int, ...] = (self.n_states,)

        if opts.state_names is None:
            self.state_names = tuple(f"y{i}" for i in range(self.n_states))
        else:
            if len(opts.state_names) != self.n_states:
                raise ValueError(
                    _STATE_NAMES_LENGTH_ERROR.format(
                        actual=len(opts.state_names), expected=self.n_states
                    )
                )
            self.state_names = tuple(opts.state_names)

        self.store_history = bool(opts.store_history)
        self.current_step = 0
        self.current_state = np.zeros(self.state_shape, dtype=self.dtype)

        # Optional full history: (n_timesteps, n_states)
        self.state_array: FloatArray | None
        if self.store_history:
            self.state_array = cast(
                "FloatArray",
                np.zeros((self.n_timesteps, self.n_states), dtype=self.dtype),
            )
        else:
            self.state_array = None

    # ------------------------------------------------------------------
    # Time helpers
    # ------------------------------------------------------------------

    @property
    def current_time(self) -> float:
        """Current simulation time t = time_grid[current_step]."""
        return float(self.time_grid[self.current_step])

    def get_dt(self, step_idx: int) -> float:
        """
        Return dt for the step [t_step_idx, t_step_idx+1].

        Args:
            step_idx: Timestep index in [0, n_timesteps - 1].

        Raises:
            IndexError: if step_idx is out of bounds.

        Returns:
            dt as a float.
        """
        if self.n_timesteps <= 1:
            return 0.0
        if not (0 <= step_idx < self.n_timesteps - 1):
            raise IndexError(_DT_INDEX_OOB_ERROR.format(idx=step_idx))
        return float(self.dt_grid[step_idx])

    # ------------------------------------------------------------------
    # Initialization / accessors
    # ------------------------------------------------------------------

    def validate_state_shape(self, arr: np.ndarray, *, msg: str | None = None) -> None:
        """
        Validate that arr has state_shape.

        Args:
            arr: Array to validate.
            msg: Optional custom error message template.

        Raises:
            ValueError: if arr does not have shape state_shape.
        """
        arr_shape = np.asarray(arr).shape
        if arr_shape != self.state_shape:
            raise ValueError(
                (msg or _NEXT_STATE_SHAPE_ERROR).format(
                    actual=arr_shape, expected=self.state_shape
                )
            )

    def set_initial_state(self, initial_state: np.ndarray) -> None:
        """
        Set the initial state at time_grid[0].

        Args:
            initial_state: Initial state, shape (n_states,).
        """
        initial_state_arr = np.asarray(initial_state, dtype=self.dtype)
        self.validate_state_shape(initial_state_arr, msg=_INITIAL_STATE_SHAPE_ERROR)

        np.copyto(self.current_state, initial_state_arr)

        if self.store_history and self.state_array is not None:
            self.state_array[0] = self.current_state

        self.current_step = 0

    def get_current_state(self) -> np.ndarray:
        """Return the current state, shape (n_states,)."""
        return self.current_state

    def trajectory(self) -> FloatArray:
        """
        Return the stored history as a (T, 1 + n_states) array.

        Column 0 holds the output time; the remaining columns hold the state
        in the order of state_names. The first row is the initial condition.

        Raises:
            RuntimeError: if history is not stored.
        """
        if not self.store_history or self.state_array is None:
            raise RuntimeError(_HISTORY_NOT_STORED_ERROR)
        return np.column_stack((self.time_grid, self.state_array))

    # ------------------------------------------------------------------
    # Stepping / updates
    # ------------------------------------------------------------------

    def _check_can_advance(self) -> None:
        if self.current_step >= self.n_timesteps - 1:
            raise RuntimeError(_FINAL_TIMESTEP_ERROR)

    def advance_timestep(self, next_state: np.ndarray) -> None:
        """
        Store the state at the next output time and advance the timestep.

        Args:
            next_state: State at the next timestep, shape (n_states,).
        """
        next_state_arr = np.asarray(next_state, dtype=self.dtype)
        self.validate_state_shape(next_state_arr)

        self._check_can_advance()

        np.copyto(self.current_state, next_state_arr)

        self.current_step += 1
        if self.store_history and self.state_array is not None:
            self.state_array[self.current_step] = self.current_state
