from mpc_tracker.params import Params
from mpc_tracker.indexes import Indexes, make_indexes
from mpc_tracker.polynomial import polyfit, polyeval, polyeval_diff, reference_heading
from mpc_tracker.model import fg_eval
from mpc_tracker.controllers.MPC import MPC, MPCResult
