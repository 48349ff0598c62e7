# src/thermod/core_solver.py
"""Fixed-step explicit Runge-Kutta solver for the two-box lake model.

This solver advances a :class:`thermod.model_core.ModelCore` instance over its
configured time grid. ModelCore.time_grid is treated as *output times*: the
solver takes exactly one step of size dt = t_{i+1} - t_i per output interval,
so non-uniform grids are handled by giving every interval its own dt.

Supported methods (keyword `method=`):
    - "rk4":   Classical 4th-order Runge-Kutta (default). Four RHS evaluations
               per step at t, t+dt/2, t+dt/2, t+dt, weights 1/6, 1/3, 1/3, 1/6.
    - "heun":  Explicit Heun / RK2 (order 2), two RHS evaluations per step.
    - "euler": Explicit Euler (order 1), one RHS evaluation per step.

There is no adaptive step-size control, no error estimation and no implicit
solve. Explicit methods inherit the usual stability limit: a step that is too
large relative to the fastest exchange rate in the RHS can diverge.

Performance hygiene:
    - Stage buffers are preallocated once per solver.
    - Inner loops use in-place NumPy ops and np.copyto.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from thermod.model_core import ModelCore
    from thermod.types import RHSFunction


# =============================================================================
# Errors / messages
# =============================================================================

_RHS_SHAPE_ERROR_MSG = "rhs shape {actual} does not match expected {expected}"
_UNKNOWN_METHOD_ERROR_MSG = "Unknown method: {method}"
_NONFINITE_STATE_MSG = "Non-finite state at t={t}: {state}"
_NEGATIVE_STATE_MSG = "Negative value in state component(s) {idx} at t={t}: {state}"


# =============================================================================
# Type aliases
# =============================================================================

MethodName = Literal["euler", "heun", "rk4"]

_METHODS = frozenset({"euler", "heun", "rk4"})


# =============================================================================
# Configuration dataclasses
# =============================================================================


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Configuration for CoreSolver.run.

    Attributes:
        method: Method name.
        strict: If True, a non-finite state raises FloatingPointError when
            check_state is enabled; otherwise a RuntimeWarning is emitted.
        check_state: Inspect the state after every step and flag (never fix)
            divergence.
        nonnegative: State indices that are expected to stay >= 0; a negative
            value is reported with a RuntimeWarning when check_state is set.
    """

    method: str = "rk4"
    strict: bool = True
    check_state: bool = False
    nonnegative: tuple[int, ...] = ()


@dataclass(slots=True)
class StepIO:
    """Bundle of per-step state for stepping kernels.

    Attributes:
        t: Current time.
        dt: Step size.
        y: Current state array (input).
        out: Output state array (written in-place).
    """

    t: float
    dt: float
    y: NDArray[np.floating]
    out: NDArray[np.floating]


# =============================================================================
# CoreSolver
# =============================================================================


class CoreSolver:
    """Explicit fixed-step solver operating on a ModelCore time/state grid."""

    def __init__(self, core: ModelCore) -> None:
        """Initialize CoreSolver.

        Args:
            core: ModelCore instance to solve.
        """
        self.core = core
        self.dtype = core.dtype
        self.state_shape = core.state_shape

        # Preallocate buffers
        self._k1: NDArray[np.floating] = np.zeros(self.state_shape, dtype=self.dtype)
        self._k2: NDArray[np.floating] = np.zeros_like(self._k1)
        self._k3: NDArray[np.floating] = np.zeros_like(self._k1)
        self._k4: NDArray[np.floating] = np.zeros_like(self._k1)
        self._y_stage: NDArray[np.floating] = np.zeros_like(self._k1)
        self._y_curr: NDArray[np.floating] = np.zeros_like(self._k1)
        self._y_next: NDArray[np.floating] = np.zeros_like(self._k1)

        self.n_rhs_evals = 0

    # ------------------------------------------------------------------
    # RHS evaluation helper (shape + dtype enforcement)
    # ------------------------------------------------------------------

    def _rhs_into(
        self,
        out: NDArray[np.floating],
        rhs_func: RHSFunction,
        t: float,
        y: NDArray[np.floating],
    ) -> None:
        """Evaluate RHS into out with shape enforcement.

        Args:
            out: Output buffer to write into.
            rhs_func: RHS function F(t, y).
            t: Time.
            y: State.

        Raises:
            ValueError: If RHS returns an array with an unexpected shape.
        """
        f = np.asarray(rhs_func(float(t), y), dtype=self.dtype)
        self.n_rhs_evals += 1
        if f.shape != self.state_shape:
            raise ValueError(
                _RHS_SHAPE_ERROR_MSG.format(
                    actual=f.shape,
                    expected=self.state_shape,
                )
            )
        np.copyto(out, f)

    @staticmethod
    def _normalize_method(method: str) -> MethodName:
        """Normalize and validate method string.

        Args:
            method: User-provided method string.

        Raises:
            ValueError: If method is unknown.

        Returns:
            Normalized method literal.
        """
        method_norm = str(method).strip().lower()
        if method_norm not in _METHODS:
            raise ValueError(_UNKNOWN_METHOD_ERROR_MSG.format(method=method))
        return method_norm  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # One-step kernels (write into provided out arrays)
    # ------------------------------------------------------------------

    def _step_euler(self, rhs_func: RHSFunction, step: StepIO) -> None:
        """Explicit Euler step.

        Args:
            rhs_func: RHS function.
            step: Step bundle.
        """
        self._rhs_into(self._k1, rhs_func, step.t, step.y)
        np.multiply(self._k1, step.dt, out=step.out)
        step.out += step.y

    def _step_heun(self, rhs_func: RHSFunction, step: StepIO) -> None:
        """Explicit Heun (RK2) step.

        Args:
            rhs_func: RHS function.
            step: Step bundle.
        """
        self._rhs_into(self._k1, rhs_func, step.t, step.y)

        np.multiply(self._k1, step.dt, out=self._y_stage)
        self._y_stage += step.y

        self._rhs_into(self._k2, rhs_func, step.t + step.dt, self._y_stage)

        np.add(self._k1, self._k2, out=step.out)
        step.out *= 0.5 * step.dt
        step.out += step.y

    def _step_rk4(self, rhs_func: RHSFunction, step: StepIO) -> None:
        """Classical 4th-order Runge-Kutta step.

        Args:
            rhs_func: RHS function.
            step: Step bundle.
        """
        half = 0.5 * step.dt

        self._rhs_into(self._k1, rhs_func, step.t, step.y)

        np.multiply(self._k1, half, out=self._y_stage)
        self._y_stage += step.y
        self._rhs_into(self._k2, rhs_func, step.t + half, self._y_stage)

        np.multiply(self._k2, half, out=self._y_stage)
        self._y_stage += step.y
        self._rhs_into(self._k3, rhs_func, step.t + half, self._y_stage)

        np.multiply(self._k3, step.dt, out=self._y_stage)
        self._y_stage += step.y
        self._rhs_into(self._k4, rhs_func, step.t + step.dt, self._y_stage)

        # out = y + dt/6 * (k1 + 2 k2 + 2 k3 + k4)
        np.add(self._k2, self._k3, out=step.out)
        step.out *= 2.0
        step.out += self._k1
        step.out += self._k4
        step.out *= step.dt / 6.0
        step.out += step.y

    def _attempt_step(
        self,
        rhs_func: RHSFunction,
        *,
        method: MethodName,
        step: StepIO,
    ) -> None:
        """Dispatch to the stepping kernel for method."""
        if method == "rk4":
            self._step_rk4(rhs_func, step)
        elif method == "heun":
            self._step_heun(rhs_func, step)
        else:
            self._step_euler(rhs_func, step)

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    def _check_state(self, cfg: RunConfig, t: float, issued: set[str]) -> None:
        """Flag a diverged state, warning at most once per kind of problem.

        Raises:
            FloatingPointError: If the state is non-finite and cfg.strict is set.
        """
        state = self._y_next
        if not np.all(np.isfinite(state)):
            msg = _NONFINITE_STATE_MSG.format(t=t, state=state.tolist())
            if cfg.strict:
                raise FloatingPointError(msg)
            if "nonfinite" not in issued:
                warnings.warn(msg, RuntimeWarning, stacklevel=3)
                issued.add("nonfinite")
            return

        if cfg.nonnegative and "negative" not in issued:
            idx = [i for i in cfg.nonnegative if state[i] < 0.0]
            if idx:
                warnings.warn(
                    _NEGATIVE_STATE_MSG.format(idx=idx, t=t, state=state.tolist()),
                    RuntimeWarning,
                    stacklevel=3,
                )
                issued.add("negative")

    # ------------------------------------------------------------------
    # Public run loop
    # ------------------------------------------------------------------

    def run(self, rhs_func: RHSFunction, *, config: RunConfig | None = None) -> None:
        """Advance the ModelCore state through its time grid.

        Args:
            rhs_func: Function computing the RHS F(t, y).
            config: Optional run configuration. If None, defaults are used.

        Raises:
            ValueError: If invalid parameters are provided.
        """
        cfg = config or RunConfig()
        method = self._normalize_method(cfg.method)
        issued: set[str] = set()

        for idx in range(self.core.n_timesteps - 1):
            t0 = self.core.current_time
            dt = self.core.get_dt(idx)

            np.copyto(self._y_curr, self.core.get_current_state())
            step = StepIO(t=t0, dt=dt, y=self._y_curr, out=self._y_next)
            self._attempt_step(rhs_func, method=method, step=step)

            if cfg.check_state:
                self._check_state(cfg, t0 + dt, issued)

            self.core.advance_timestep(self._y_next)
