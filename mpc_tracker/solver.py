import logging
import casadi as ca
import numpy as np
from dataclasses import dataclass

from mpc_tracker.indexes import Indexes
from mpc_tracker.model import fg_eval
from mpc_tracker.params import Params

logger = logging.getLogger(__name__)


@dataclass
class Solution:
    status: str
    success: bool
    objective: float
    x: np.ndarray


class NLPSolver:
    '''
    IPOPT through CasADi for a fixed horizon and polynomial size.

    The objective and constraints are traced once with a symbolic decision
    vector, so IPOPT gets exact derivatives by automatic differentiation.
    The polynomial coefficients and the target speed are solver parameters,
    which lets one compiled solver serve every control cycle.
    '''

    def __init__(self, params: Params, indexes: Indexes, n_coeffs: int):
        if n_coeffs < 1:
            raise ValueError("reference polynomial needs at least one coefficient")
        self.n_vars = indexes.n_vars
        self.n_constraints = indexes.n_constraints
        self.n_coeffs = n_coeffs

        x = ca.SX.sym('x', self.n_vars)
        p = ca.SX.sym('p', n_coeffs + 1)

        vars = [x[i] for i in range(self.n_vars)]
        coeffs = [p[i] for i in range(n_coeffs)]
        ref_v = p[n_coeffs]

        f, g = fg_eval(vars, coeffs, params, indexes, ref_v)

        nlp_prob = {'f': f, 'x': x, 'p': p, 'g': ca.vertcat(*g)}
        opts_setting = {
            'ipopt.print_level': 0,
            'ipopt.sb': 'yes',
            'print_time': 0,
            # bounds the per-cycle latency, IPOPT returns its last iterate
            'ipopt.max_cpu_time': params.max_cpu_time,
            'ipopt.max_wall_time': params.max_cpu_time,
        }
        self.solver = ca.nlpsol('mpc', 'ipopt', nlp_prob, opts_setting)

    def solve(self, x0, lbx, ubx, lbg, ubg, coeffs, ref_v: float) -> Solution:
        coeffs = np.asarray(coeffs, dtype=float).flatten()
        if coeffs.size != self.n_coeffs:
            raise ValueError(f"solver was built for {self.n_coeffs} coefficients, got {coeffs.size}")
        arg_p = np.concatenate([coeffs, [float(ref_v)]])

        try:
            sol = self.solver(x0=x0, p=arg_p, lbx=lbx, ubx=ubx, lbg=lbg, ubg=ubg)
        except RuntimeError as e:
            logger.error(f"[MPC] Solver failed: {e}")
            return Solution(status='RuntimeError',
                            success=False,
                            objective=float('nan'),
                            x=np.asarray(x0, dtype=float).copy())

        stats = self.solver.stats()
        return Solution(status=stats.get('return_status', 'unknown'),
                        success=bool(stats.get('success', False)),
                        objective=float(sol['f']),
                        x=sol['x'].full().flatten())
