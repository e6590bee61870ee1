import numpy as np
from typing import Tuple

from mpc_tracker.indexes import Indexes
from mpc_tracker.params import Params

# Stand-in for "no bound" on the non-actuator states
UNBOUNDED = 1.0e19


def variable_bounds(params: Params, indexes: Indexes) -> Tuple[np.ndarray, np.ndarray]:
    '''Box bounds on the decision vector. Only the actuators are limited.'''
    lower = np.empty(indexes.n_vars)
    upper = np.empty(indexes.n_vars)

    lower[:indexes.delta_start] = -UNBOUNDED
    upper[:indexes.delta_start] = UNBOUNDED

    max_steer = np.deg2rad(params.delta_constraint)
    lower[indexes.delta_start:indexes.v_start] = -max_steer
    upper[indexes.delta_start:indexes.v_start] = max_steer

    lower[indexes.v_start:] = 0.0
    upper[indexes.v_start:] = params.speed_upperbound

    return lower, upper


def constraint_bounds(state, indexes: Indexes) -> Tuple[np.ndarray, np.ndarray]:
    '''
    Bounds on the constraint residuals.

    Dynamics residuals are held at zero, the t = 0 entries are pinned to
    the measured state, which is how the current state enters the problem.
    '''
    x, y, psi, cte, epsi = (float(s) for s in state)

    lower = np.zeros(indexes.n_constraints)
    upper = np.zeros(indexes.n_constraints)

    for start, value in ((indexes.x_start, x),
                         (indexes.y_start, y),
                         (indexes.psi_start, psi),
                         (indexes.cte_start, cte),
                         (indexes.epsi_start, epsi)):
        lower[start] = value
        upper[start] = value

    return lower, upper
