import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from mpc_tracker.bounds import constraint_bounds, variable_bounds
from mpc_tracker.indexes import make_indexes
from mpc_tracker.params import Params
from mpc_tracker.solver import NLPSolver

logger = logging.getLogger(__name__)


class ControlStrategy(ABC):
    @abstractmethod
    def compute_steering(self, state, coeffs):
        '''Given current state and reference path, return steering command.'''
        pass


@dataclass
class MPCResult:
    delta: float
    v: float
    predicted_x: np.ndarray
    predicted_y: np.ndarray
    cost: float
    ok: bool
    status: str
    solve_time_ms: float = 0.0

    def as_list(self) -> List[float]:
        '''[delta, v, x_0, y_0, ..., x_{N-1}, y_{N-1}]'''
        result = [self.delta, self.v]
        for x, y in zip(self.predicted_x, self.predicted_y):
            result += [float(x), float(y)]
        return result


class MPC(ControlStrategy):
    '''
    Polynomial-reference tracking MPC on a kinematic bicycle model.

    Parameters
    ----------
    params : Params
        Horizon, step size, cost weights and vehicle constants.

    One solve runs per control cycle. The state is
    ``[x, y, psi, cte, epsi]`` in the vehicle frame and the reference is a
    polynomial in ascending power fitted in the same frame.
    '''

    def __init__(self, params: Params = None):
        # Params rejects ref_v at or above the speed upper bound
        self.params = params if params is not None else Params()
        self.indexes = make_indexes(self.params.steps_ahead)
        self.vars_lowerbound, self.vars_upperbound = variable_bounds(self.params, self.indexes)

        # compiled solvers, one per polynomial size
        self._solvers: Dict[int, NLPSolver] = {}

    def _solver_for(self, n_coeffs: int) -> NLPSolver:
        if n_coeffs not in self._solvers:
            logger.debug(f"[MPC] Building solver for N={self.params.steps_ahead}, {n_coeffs} coefficients")
            self._solvers[n_coeffs] = NLPSolver(self.params, self.indexes, n_coeffs)
        return self._solvers[n_coeffs]

    def solve(self, state, coeffs, ref_v: float = None) -> MPCResult:
        '''
        Solve one cycle and return the first actuation and predicted path.

        The result is returned even when IPOPT does not succeed. Check
        ``result.ok`` / ``result.status`` to decide on a fallback.
        '''
        state = np.asarray(state, dtype=float).flatten()
        if state.size != 5:
            raise ValueError(f"state must be [x, y, psi, cte, epsi], got {state.size} values")
        coeffs = np.asarray(coeffs, dtype=float).flatten()
        if coeffs.size == 0:
            raise ValueError("reference polynomial has no coefficients")
        if ref_v is None:
            ref_v = self.params.ref_v

        idx = self.indexes
        N = self.params.steps_ahead

        # Initial value of the independent variables, the t = 0 state is
        # enforced through the constraint bounds.
        vars = np.zeros(idx.n_vars)
        constraints_lowerbound, constraints_upperbound = constraint_bounds(state, idx)

        tic = time.time()
        solution = self._solver_for(coeffs.size).solve(vars,
                                                       self.vars_lowerbound,
                                                       self.vars_upperbound,
                                                       constraints_lowerbound,
                                                       constraints_upperbound,
                                                       coeffs,
                                                       ref_v)
        latency_ms = (time.time() - tic) * 1000.0

        ok = solution.success
        if ok:
            logger.info("[MPC] COST: %.2f, OK: %d", solution.objective, ok)
        else:
            logger.warning("[MPC] COST: %.2f, OK: %d (%s)", solution.objective, ok, solution.status)

        x = solution.x
        return MPCResult(delta=float(x[idx.delta_start]),
                         v=float(x[idx.v_start]),
                         predicted_x=x[idx.x_start:idx.x_start + N].copy(),
                         predicted_y=x[idx.y_start:idx.y_start + N].copy(),
                         cost=solution.objective,
                         ok=ok,
                         status=solution.status,
                         solve_time_ms=latency_ms)

    def compute_steering(self, state, coeffs) -> Tuple[float, float]:
        '''Return steering (rad) and solver latency in ms.'''
        result = self.solve(state, coeffs)
        return result.delta, result.solve_time_ms
