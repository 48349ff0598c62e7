# tests/test_core_solver.py
"""Unit tests for the CoreSolver class.

This module contains tests that verify:
- Classical RK4 reaches fourth-order convergence on a smooth linear problem.
- Stage times and the number of RHS evaluations per step for each method.
- Non-uniform output grids are stepped interval by interval.
- Unknown methods and wrongly shaped RHS outputs are rejected.
- check_state flags (never fixes) non-finite and negative states.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from thermod.core_solver import CoreSolver, RunConfig
from thermod.model_core import ModelCore, ModelCoreOptions

if TYPE_CHECKING:
    from numpy.typing import NDArray

    FloatArray = NDArray[np.floating]


def _make_core(
    *,
    n_states: int,
    time_grid: NDArray[np.floating],
    initial_state: NDArray[np.floating],
) -> ModelCore:
    """Create a ModelCore with history and a given initial state."""
    core = ModelCore(
        n_states=n_states,
        time_grid=np.asarray(time_grid, dtype=float),
        options=ModelCoreOptions(store_history=True),
    )
    core.set_initial_state(np.asarray(initial_state, dtype=float))
    return core


def _decay(t: float, y: FloatArray) -> FloatArray:  # noqa: ARG001
    return -y


def _final_error(method: str, n_steps: int) -> float:
    grid = np.linspace(0.0, 1.0, n_steps + 1)
    core = _make_core(n_states=1, time_grid=grid, initial_state=np.array([1.0]))
    CoreSolver(core).run(_decay, config=RunConfig(method=method))
    return abs(float(core.get_current_state()[0]) - np.exp(-1.0))


# -------------------------------------------------------------------
# Accuracy
# -------------------------------------------------------------------


@pytest.mark.parametrize(("method", "order"), [("euler", 1), ("heun", 2), ("rk4", 4)])
def test_observed_convergence_order(method: str, order: int) -> None:
    """Halving the step reduces the error by about 2**order."""
    coarse = _final_error(method, 10)
    fine = _final_error(method, 20)
    observed = np.log2(coarse / fine)
    assert observed == pytest.approx(order, abs=0.2)


def test_rk4_single_step_matches_taylor_polynomial() -> None:
    """One RK4 step of y' = -y equals the 4th-order Taylor polynomial."""
    h = 0.5
    core = _make_core(
        n_states=1, time_grid=np.array([0.0, h]), initial_state=np.array([2.0])
    )
    CoreSolver(core).run(_decay)
    expected = 2.0 * (1.0 - h + h**2 / 2.0 - h**3 / 6.0 + h**4 / 24.0)
    assert float(core.get_current_state()[0]) == pytest.approx(expected, rel=1e-14)


# -------------------------------------------------------------------
# Plumbing
# -------------------------------------------------------------------


def test_rk4_stage_times_and_eval_count() -> None:
    """RK4 evaluates at t, t+h/2, t+h/2, t+h for each interval."""
    seen: list[float] = []

    def rhs(t: float, y: FloatArray) -> FloatArray:
        seen.append(t)
        return np.zeros_like(y)

    core = _make_core(
        n_states=2,
        time_grid=np.array([1.0, 2.0, 2.5]),
        initial_state=np.array([0.0, 0.0]),
    )
    solver = CoreSolver(core)
    solver.run(rhs)

    assert seen == [1.0, 1.5, 1.5, 2.0, 2.0, 2.25, 2.25, 2.5]
    assert solver.n_rhs_evals == 8


@pytest.mark.parametrize(("method", "evals"), [("euler", 1), ("heun", 2)])
def test_lower_order_eval_counts(method: str, evals: int) -> None:
    """Euler and Heun take one and two evaluations per step."""
    core = _make_core(
        n_states=1, time_grid=np.arange(5.0), initial_state=np.array([1.0])
    )
    solver = CoreSolver(core)
    solver.run(_decay, config=RunConfig(method=method))
    assert solver.n_rhs_evals == 4 * evals


def test_single_time_point_takes_no_step() -> None:
    """A one-point grid leaves the initial state untouched."""
    core = _make_core(n_states=2, time_grid=np.array([3.0]), initial_state=np.ones(2))
    solver = CoreSolver(core)
    solver.run(_decay)
    assert solver.n_rhs_evals == 0
    assert np.allclose(core.trajectory(), [[3.0, 1.0, 1.0]])


def test_unknown_method_rejected() -> None:
    """An unknown method name raises ValueError."""
    core = _make_core(n_states=1, time_grid=np.arange(3.0), initial_state=np.ones(1))
    with pytest.raises(ValueError, match="Unknown method"):
        CoreSolver(core).run(_decay, config=RunConfig(method="rk45"))


def test_method_name_is_normalized() -> None:
    """Method names are case and whitespace insensitive."""
    core = _make_core(n_states=1, time_grid=np.arange(2.0), initial_state=np.ones(1))
    solver = CoreSolver(core)
    solver.run(_decay, config=RunConfig(method=" RK4 "))
    assert solver.n_rhs_evals == 4


def test_rhs_shape_mismatch_rejected() -> None:
    """A RHS returning the wrong shape raises ValueError."""
    core = _make_core(n_states=2, time_grid=np.arange(3.0), initial_state=np.ones(2))

    def bad_rhs(t: float, y: FloatArray) -> FloatArray:  # noqa: ARG001
        return np.zeros(3)

    with pytest.raises(ValueError, match="rhs shape"):
        CoreSolver(core).run(bad_rhs)


# -------------------------------------------------------------------
# State checks
# -------------------------------------------------------------------


def _blow_up(t: float, y: FloatArray) -> FloatArray:  # noqa: ARG001
    return np.full_like(y, np.inf)


def test_check_state_strict_raises_on_nonfinite() -> None:
    """Strict mode raises FloatingPointError on a non-finite state."""
    core = _make_core(n_states=2, time_grid=np.arange(3.0), initial_state=np.ones(2))
    cfg = RunConfig(check_state=True, strict=True)
    with pytest.raises(FloatingPointError, match="Non-finite state"):
        CoreSolver(core).run(_blow_up, config=cfg)


def test_check_state_lenient_warns_and_continues() -> None:
    """Non-strict mode warns once and completes the grid."""
    core = _make_core(n_states=2, time_grid=np.arange(4.0), initial_state=np.ones(2))
    cfg = RunConfig(check_state=True, strict=False)
    with pytest.warns(RuntimeWarning, match="Non-finite state"):
        CoreSolver(core).run(_blow_up, config=cfg)
    assert core.current_step == 3


def test_check_state_flags_negative_components_without_clamping() -> None:
    """Negative values at nonnegative indices warn and are kept as is."""
    core = _make_core(
        n_states=2, time_grid=np.array([0.0, 1.0]), initial_state=np.array([1.0, 0.5])
    )

    def drain(t: float, y: FloatArray) -> FloatArray:  # noqa: ARG001
        return np.array([0.0, -1.0])

    cfg = RunConfig(check_state=True, nonnegative=(1,))
    with pytest.warns(RuntimeWarning, match="Negative value"):
        CoreSolver(core).run(drain, config=cfg)
    assert float(core.get_current_state()[1]) == pytest.approx(-0.5)


def test_check_state_disabled_by_default() -> None:
    """Without check_state, a non-finite state propagates silently."""
    core = _make_core(n_states=1, time_grid=np.arange(2.0), initial_state=np.ones(1))
    CoreSolver(core).run(_blow_up)
    assert not np.isfinite(core.get_current_state()[0])


def test_check_state_reports_nonfinite_after_negative_warning() -> None:
    """A negative-value warning does not hide a later non-finite state."""
    core = _make_core(
        n_states=2, time_grid=np.arange(4.0), initial_state=np.array([1.0, 0.5])
    )

    def drain_then_blow_up(t: float, y: FloatArray) -> FloatArray:
        if t < 1.0:
            return np.array([0.0, -1.0])
        return np.full_like(y, np.inf)

    cfg = RunConfig(method="euler", check_state=True, strict=False, nonnegative=(1,))
    with pytest.warns(RuntimeWarning) as record:
        CoreSolver(core).run(drain_then_blow_up, config=cfg)

    messages = [str(w.message) for w in record]
    assert sum("Negative value" in m for m in messages) == 1
    assert sum("Non-finite state" in m for m in messages) == 1
    assert core.current_step == 3
