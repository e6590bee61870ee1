"""
Tests for the cost and dynamics constraints.
"""

import math
import casadi as ca
import numpy as np
import pytest

from mpc_tracker.indexes import make_indexes
from mpc_tracker.model import cost, constraints, fg_eval
from mpc_tracker.params import Params
from mpc_tracker.polynomial import polyeval, reference_heading


def rollout(state, deltas, speeds, coeffs, params, idx):
    """Decision vector that satisfies the dynamics exactly."""
    N = params.steps_ahead
    vars = np.zeros(idx.n_vars)
    x, y, psi, cte, epsi = state
    for t in range(N):
        vars[idx.x_start + t] = x
        vars[idx.y_start + t] = y
        vars[idx.psi_start + t] = psi
        vars[idx.cte_start + t] = cte
        vars[idx.epsi_start + t] = epsi
        if t == N - 1:
            break
        v, delta = speeds[t], deltas[t]
        vars[idx.v_start + t] = v
        vars[idx.delta_start + t] = delta
        x, y, psi, cte, epsi = (
            x + v * math.cos(psi) * params.dt,
            y + v * math.sin(psi) * params.dt,
            psi - v * delta / params.lf * params.dt,
            polyeval(coeffs, x) - y + v * math.sin(epsi) * params.dt,
            psi - reference_heading(coeffs, x) - v * delta / params.lf * params.dt,
        )
    return vars


def test_zero_vector_on_flat_reference():
    params = Params(steps_ahead=5, dt=0.1, ref_v=1.0)
    idx = make_indexes(5)

    f, g = fg_eval(np.zeros(idx.n_vars), [0.0, 0.0], params, idx, 1.0)

    # only the speed term is active: v_t = 0 against ref_v = 1
    assert f == pytest.approx(4 * params.speed_coeff)
    assert len(g) == idx.n_constraints
    np.testing.assert_allclose(g, 0.0, atol=1e-12)


def test_cost_terms_by_hand():
    params = Params(steps_ahead=3, dt=0.1,
                    cte_coeff=1, epsi_coeff=2, speed_coeff=3, steer_coeff=4,
                    consec_steer_coeff=5, consec_speed_coeff=6, ref_v=1.0)
    idx = make_indexes(3)
    vars = np.zeros(idx.n_vars)
    vars[idx.cte_start:idx.cte_start + 3] = [1.0, 2.0, 3.0]
    vars[idx.epsi_start] = 1.0
    vars[idx.delta_start:idx.delta_start + 2] = [0.1, 0.3]
    vars[idx.v_start:idx.v_start + 2] = [1.0, 2.0]

    # 14 (cte) + 2 (epsi) + 3 (speed) + 0.4 (steer) + 0.2 (consec steer) + 6 (consec speed)
    assert cost(vars, params, idx, 1.0) == pytest.approx(25.6)


def test_cost_uses_the_given_target_speed():
    params = Params(steps_ahead=4, dt=0.1, ref_v=1.0)
    idx = make_indexes(4)
    vars = np.zeros(idx.n_vars)
    vars[idx.v_start:] = 2.0

    assert cost(vars, params, idx, 2.0) == pytest.approx(0.0)
    assert cost(vars, params, idx, 1.0) == pytest.approx(3 * params.speed_coeff)


def test_initial_constraints_are_the_initial_state():
    params = Params(steps_ahead=4, dt=0.1)
    idx = make_indexes(4)
    state = [0.3, -0.2, 0.05, 0.1, -0.04]
    vars = rollout(state, [0.0] * 3, [1.0] * 3, [0.0, 0.0], params, idx)

    g = constraints(vars, [0.0, 0.0], params, idx)

    assert [g[idx.x_start], g[idx.y_start], g[idx.psi_start], g[idx.cte_start], g[idx.epsi_start]] \
        == pytest.approx(state)


def test_rollout_satisfies_dynamics():
    params = Params(steps_ahead=8, dt=0.1)
    idx = make_indexes(8)
    coeffs = [0.2, 0.1, -0.05, 0.01]
    state = [0.0, 0.0, 0.0, 0.2, -math.atan(0.1)]
    deltas = np.linspace(-0.2, 0.2, 7)
    speeds = np.linspace(0.5, 1.5, 7)
    vars = rollout(state, deltas, speeds, coeffs, params, idx)

    g = np.array(constraints(vars, coeffs, params, idx))

    mask = np.ones(idx.n_constraints, dtype=bool)
    mask[[idx.x_start, idx.y_start, idx.psi_start, idx.cte_start, idx.epsi_start]] = False
    np.testing.assert_allclose(g[mask], 0.0, atol=1e-12)


def test_positive_steering_reduces_heading():
    params = Params(steps_ahead=2, dt=0.1)
    idx = make_indexes(2)
    vars = np.zeros(idx.n_vars)
    vars[idx.v_start] = 1.0
    vars[idx.delta_start] = 0.1

    g = constraints(vars, [0.0, 0.0], params, idx)

    # psi1 = 0 while the model predicts psi0 - v * delta / Lf * dt < 0
    expected = 1.0 * 0.1 / params.lf * params.dt
    assert g[idx.psi_start + 1] == pytest.approx(expected)
    assert g[idx.epsi_start + 1] == pytest.approx(expected)


def test_symbolic_and_float_evaluation_agree():
    params = Params(steps_ahead=4, dt=0.1)
    idx = make_indexes(4)
    coeffs = [0.1, -0.3, 0.05]
    x = ca.SX.sym('x', idx.n_vars)

    f, g = fg_eval([x[i] for i in range(idx.n_vars)], coeffs, params, idx, 1.2)
    fun = ca.Function('fg', [x], [f, ca.vertcat(*g)])

    rng = np.random.default_rng(0)
    candidate = rng.uniform(-1.0, 1.0, idx.n_vars)
    f_sym, g_sym = fun(candidate)
    f_num, g_num = fg_eval(candidate, coeffs, params, idx, 1.2)

    assert float(f_sym) == pytest.approx(f_num)
    np.testing.assert_allclose(g_sym.full().flatten(), g_num, atol=1e-12)
