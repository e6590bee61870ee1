'''
Cost and dynamics constraints of the tracking problem.

Everything here is written against the arithmetic shared by Python floats
and CasADi expressions, so the same code gives plain numbers for a
candidate vector and exact derivatives once CasADi traces it with a
symbolic vector.
'''

import math
import casadi as ca
from typing import List, Tuple

from mpc_tracker.indexes import Indexes
from mpc_tracker.params import Params
from mpc_tracker.polynomial import SYMBOLIC_TYPES, polyeval, reference_heading


def _ops(value):
    return ca if isinstance(value, SYMBOLIC_TYPES) else math


def cost(vars, params: Params, indexes: Indexes, ref_v: float):
    N = params.steps_ahead
    total = 0.0

    # The part of the cost based on the reference state.
    for t in range(N):
        total += params.cte_coeff * vars[indexes.cte_start + t] ** 2
        total += params.epsi_coeff * vars[indexes.epsi_start + t] ** 2

    # Minimize the use of actuators.
    for t in range(N - 1):
        total += params.speed_coeff * (vars[indexes.v_start + t] - ref_v) ** 2
        total += params.steer_coeff * vars[indexes.delta_start + t] ** 2

    # Minimize the gap between sequential actuations.
    for t in range(N - 2):
        total += params.consec_steer_coeff * (vars[indexes.delta_start + t + 1] - vars[indexes.delta_start + t]) ** 2
        total += params.consec_speed_coeff * (vars[indexes.v_start + t + 1] - vars[indexes.v_start + t]) ** 2

    return total


def constraints(vars, coeffs, params: Params, indexes: Indexes) -> List:
    '''
    Dynamics residuals, one per state entry (5N in total).

    The t = 0 entries are the initial state itself and get pinned to the
    measurement through the constraint bounds. The rest must be zero.
    '''
    N = params.steps_ahead
    dt = params.dt
    lf = params.lf
    g = [0.0] * indexes.n_constraints

    g[indexes.x_start] = vars[indexes.x_start]
    g[indexes.y_start] = vars[indexes.y_start]
    g[indexes.psi_start] = vars[indexes.psi_start]
    g[indexes.cte_start] = vars[indexes.cte_start]
    g[indexes.epsi_start] = vars[indexes.epsi_start]

    for t in range(1, N):
        # state at t
        x1 = vars[indexes.x_start + t]
        y1 = vars[indexes.y_start + t]
        psi1 = vars[indexes.psi_start + t]
        cte1 = vars[indexes.cte_start + t]
        epsi1 = vars[indexes.epsi_start + t]

        # state and actuation at t - 1
        x0 = vars[indexes.x_start + t - 1]
        y0 = vars[indexes.y_start + t - 1]
        psi0 = vars[indexes.psi_start + t - 1]
        epsi0 = vars[indexes.epsi_start + t - 1]
        v0 = vars[indexes.v_start + t - 1]
        delta0 = vars[indexes.delta_start + t - 1]

        f0 = polyeval(coeffs, x0)
        psides0 = reference_heading(coeffs, x0)
        op = _ops(x0)

        # Positive steering turns clockwise: the yaw terms subtract
        # v * delta / Lf * dt. Lf was tuned with this sign.
        g[indexes.x_start + t] = x1 - (x0 + v0 * op.cos(psi0) * dt)
        g[indexes.y_start + t] = y1 - (y0 + v0 * op.sin(psi0) * dt)
        g[indexes.psi_start + t] = psi1 - (psi0 - v0 * delta0 / lf * dt)
        g[indexes.cte_start + t] = cte1 - (f0 - y0 + v0 * op.sin(epsi0) * dt)
        g[indexes.epsi_start + t] = epsi1 - (psi0 - psides0 - v0 * delta0 / lf * dt)

    return g


def fg_eval(vars, coeffs, params: Params, indexes: Indexes, ref_v: float) -> Tuple[object, List]:
    '''
    Objective and constraint residuals for a candidate decision vector.

    Parameters
    ----------
    vars : sequence | ndarray | SX | MX
        Decision vector of length ``indexes.n_vars``.
    coeffs : sequence
        Reference polynomial, ascending power.
    params : Params
    indexes : Indexes
    ref_v : float
        Target speed for this cycle.

    Returns
    -------
    (cost, constraints)
        Scalar objective and a list of ``indexes.n_constraints`` residuals.
    '''
    return cost(vars, params, indexes, ref_v), constraints(vars, coeffs, params, indexes)
