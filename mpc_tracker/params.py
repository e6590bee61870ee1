import numbers
from dataclasses import dataclass

# ==============================
# Vehicle constants
# ==============================
# Length from front axle to CoG [m].
#
# Obtained by driving the vehicle in a circle with a constant steering angle
# and speed on flat terrain, then tuning Lf until the radius traced by the
# kinematic model matched the measured radius.
LF = 0.325

# Steering angle limit [deg]
DELTA_CONSTRAINT = 25.0

# Upper bound on the commanded speed [m/s]
SPEED_UPPERBOUND = 5.0

# IPOPT time budget per solve [s]
MAX_CPU_TIME = 0.5

# ==============================
# MPC parameters (defaults)
# ==============================
STEPS_AHEAD = 20
DT = 0.05
LATENCY = 0.05
REF_V = 1.0

CTE_COEFF = 100
EPSI_COEFF = 100
SPEED_COEFF = 2
STEER_COEFF = 2
CONSEC_SPEED_COEFF = 5
CONSEC_STEER_COEFF = 1000


@dataclass(frozen=True)
class Params:
    '''
    MPC configuration, fixed for the lifetime of a controller.

    Parameters
    ----------
    steps_ahead : int
        Prediction horizon N (number of states per sub-sequence).
    dt : float
        Duration of one horizon step [s].
    cte_coeff, epsi_coeff : float
        Weights on cross-track and heading error.
    speed_coeff, steer_coeff : float
        Weights on speed deviation from ``ref_v`` and on steering magnitude.
    consec_steer_coeff, consec_speed_coeff : float
        Weights on the change between consecutive actuations.
    ref_v : float
        Nominal target speed [m/s]. Must stay below ``speed_upperbound``.
    latency : float
        Actuation latency [s] compensated for before each solve.
    lf : float
        Front axle to CoG distance [m].
    delta_constraint : float
        Steering limit [deg].
    speed_upperbound : float
        Upper bound on the speed actuator [m/s].
    max_cpu_time : float
        Solver time budget [s], applied to both CPU and wall-clock time.
    '''
    steps_ahead: int = STEPS_AHEAD
    dt: float = DT
    cte_coeff: float = CTE_COEFF
    epsi_coeff: float = EPSI_COEFF
    speed_coeff: float = SPEED_COEFF
    steer_coeff: float = STEER_COEFF
    consec_steer_coeff: float = CONSEC_STEER_COEFF
    consec_speed_coeff: float = CONSEC_SPEED_COEFF
    ref_v: float = REF_V
    latency: float = LATENCY
    lf: float = LF
    delta_constraint: float = DELTA_CONSTRAINT
    speed_upperbound: float = SPEED_UPPERBOUND
    max_cpu_time: float = MAX_CPU_TIME

    def __post_init__(self):
        if not isinstance(self.steps_ahead, numbers.Integral) or self.steps_ahead < 2:
            raise ValueError(f"steps_ahead must be an integer >= 2, got {self.steps_ahead}")
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.latency < 0:
            raise ValueError(f"latency must be non-negative, got {self.latency}")
        if self.lf <= 0:
            raise ValueError(f"lf must be positive, got {self.lf}")
        if not self.ref_v < self.speed_upperbound:
            raise ValueError(
                f"ref_v ({self.ref_v}) must be below the speed upper bound ({self.speed_upperbound})")
