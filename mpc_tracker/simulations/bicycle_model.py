'''
Closed-loop simulation of the tracking MPC on a sine course.

    mpc-track-sim --steps 200 --steps-ahead 20 --dt 0.05 --latency 0.05 --plot
'''

import argparse
import logging
import math
import numpy as np
from typing import Dict, List

from mpc_tracker import params as defaults
from mpc_tracker.controllers.MPC import MPC
from mpc_tracker.params import Params
from mpc_tracker.waypoints import prepare

logger = logging.getLogger(__name__)

# ==============================
# Course parameters (defaults)
# ==============================
COURSE_AMPLITUDE = 0.8
COURSE_FREQ = 0.7
WAYPOINT_SPACING = 0.25   # [m]
N_WAYPOINTS = 8           # waypoints handed to the fit each cycle
POLY_ORDER = 3
SIM_STEPS = 200


def course_function(x, amplitude: float = COURSE_AMPLITUDE, freq: float = COURSE_FREQ):
    "Desired y position for a given x (simple sine wave)."
    return amplitude * np.sin(freq * x)


class KinematicBicycle:
    '''
    Plant with the same kinematics as the MPC model. The speed command is
    applied directly and positive steering turns clockwise.
    '''

    def __init__(self, px: float = 0.0, py: float = 0.0, psi: float = 0.0, lf: float = defaults.LF):
        self.px = px
        self.py = py
        self.psi = psi
        self.v = 0.0
        self.delta = 0.0
        self.lf = lf

    def step(self, delta: float, v: float, dt: float) -> None:
        self.delta = delta
        self.v = v
        self.px += v * math.cos(self.psi) * dt
        self.py += v * math.sin(self.psi) * dt
        self.psi -= v * delta / self.lf * dt


def upcoming_waypoints(course_x: np.ndarray, course_y: np.ndarray, px: float, py: float,
                       count: int = N_WAYPOINTS):
    '''Waypoints starting at the one closest to the vehicle.'''
    nearest = int(np.argmin((course_x - px) ** 2 + (course_y - py) ** 2))
    start = min(nearest, len(course_x) - count)
    return course_x[start:start + count], course_y[start:start + count]


def simulate(params: Params,
             steps: int = SIM_STEPS,
             amplitude: float = COURSE_AMPLITUDE,
             freq: float = COURSE_FREQ,
             start_offset: float = 0.0,
             n_waypoints: int = N_WAYPOINTS,
             order: int = POLY_ORDER) -> List[Dict]:
    '''
    Drive the course for ``steps`` control cycles, one cycle per ``params.dt``.

    Returns one record per cycle with the pose after the command was
    applied, the command itself, the cross-track error and solver status.
    '''
    controller = MPC(params)

    course_length = steps * params.dt * params.speed_upperbound + n_waypoints * WAYPOINT_SPACING + 1.0
    course_x = np.arange(-1.0, course_length, WAYPOINT_SPACING)
    course_y = course_function(course_x, amplitude, freq)

    car = KinematicBicycle(px=0.0, py=float(course_function(0.0, amplitude, freq)) + start_offset, lf=params.lf)
    history = []

    for step in range(steps):
        ptsx, ptsy = upcoming_waypoints(course_x, course_y, car.px, car.py, n_waypoints)
        state, coeffs = prepare(ptsx, ptsy, car.px, car.py, car.psi, car.v, car.delta, params, order)

        result = controller.solve(state, coeffs)
        car.step(result.delta, result.v, params.dt)

        history.append({
            'step': step,
            'x': car.px,
            'y': car.py,
            'psi': car.psi,
            'v': result.v,
            'delta': result.delta,
            'cte': car.py - float(course_function(car.px, amplitude, freq)),
            'cost': result.cost,
            'ok': result.ok,
            'status': result.status,
            'latency_ms': result.solve_time_ms,
        })

    return history


def plot_history(history: List[Dict], amplitude: float = COURSE_AMPLITUDE, freq: float = COURSE_FREQ) -> None:
    import matplotlib.pyplot as plt

    xs = np.array([h['x'] for h in history])
    ys = np.array([h['y'] for h in history])
    course_x = np.linspace(min(xs.min(), 0.0), xs.max(), 500)

    fig, (ax_path, ax_cte) = plt.subplots(2, 1, figsize=(10, 7))
    ax_path.plot(course_x, course_function(course_x, amplitude, freq), 'k--', label='reference')
    ax_path.plot(xs, ys, 'b', label='vehicle')
    ax_path.set_xlabel('x [m]')
    ax_path.set_ylabel('y [m]')
    ax_path.axis('equal')
    ax_path.legend()

    ax_cte.plot([h['step'] for h in history], [h['cte'] for h in history], 'r')
    ax_cte.set_xlabel('step')
    ax_cte.set_ylabel('CTE [m]')
    ax_cte.grid(True)

    fig.tight_layout()
    plt.show()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Closed-loop MPC tracking of a sine course")
    parser.add_argument('--steps-ahead', type=int, default=defaults.STEPS_AHEAD,
                        help='prediction horizon N')
    parser.add_argument('--dt', type=float, default=defaults.DT)
    parser.add_argument('--latency', type=float, default=defaults.LATENCY,
                        help='actuation latency compensated before each solve [s]')
    parser.add_argument('--ref-v', type=float, default=defaults.REF_V)
    parser.add_argument('--cte-coeff', type=float, default=defaults.CTE_COEFF)
    parser.add_argument('--epsi-coeff', type=float, default=defaults.EPSI_COEFF)
    parser.add_argument('--speed-coeff', type=float, default=defaults.SPEED_COEFF)
    parser.add_argument('--steer-coeff', type=float, default=defaults.STEER_COEFF)
    parser.add_argument('--consec-speed-coeff', type=float, default=defaults.CONSEC_SPEED_COEFF)
    parser.add_argument('--consec-steer-coeff', type=float, default=defaults.CONSEC_STEER_COEFF)
    parser.add_argument('--steps', type=int, default=SIM_STEPS)
    parser.add_argument('--amplitude', type=float, default=COURSE_AMPLITUDE)
    parser.add_argument('--freq', type=float, default=COURSE_FREQ)
    parser.add_argument('--offset', type=float, default=0.0,
                        help='initial lateral offset from the course [m]')
    parser.add_argument('--debug', action='store_true')
    parser.add_argument('--plot', action='store_true')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        params = Params(steps_ahead=args.steps_ahead,
                        dt=args.dt,
                        latency=args.latency,
                        ref_v=args.ref_v,
                        cte_coeff=args.cte_coeff,
                        epsi_coeff=args.epsi_coeff,
                        speed_coeff=args.speed_coeff,
                        steer_coeff=args.steer_coeff,
                        consec_speed_coeff=args.consec_speed_coeff,
                        consec_steer_coeff=args.consec_steer_coeff)
    except ValueError as e:
        logger.error(f"Invalid MPC parameters: {e}")
        return 2

    history = simulate(params, steps=args.steps, amplitude=args.amplitude, freq=args.freq,
                       start_offset=args.offset)

    for h in history:
        print(f"step {h['step']:3d} | CTE={h['cte']:+.3f} m | steer={np.rad2deg(h['delta']):+.1f}° | v={h['v']:.2f} m/s"
              f" | cost={h['cost']:.2f} | ok={int(h['ok'])} | solver latency={h['latency_ms']:.1f} ms")

    failures = sum(1 for h in history if not h['ok'])
    if failures:
        logger.warning(f"{failures}/{len(history)} solves did not succeed")

    if args.plot:
        plot_history(history, args.amplitude, args.freq)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
