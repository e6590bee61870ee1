'''
Turns global waypoints and a global pose into the vehicle-frame inputs of
the controller.
'''

import math
import numpy as np
from typing import Tuple

from mpc_tracker.params import Params
from mpc_tracker.polynomial import polyeval, polyfit


def to_vehicle_frame(ptsx, ptsy, px: float, py: float, psi: float) -> Tuple[np.ndarray, np.ndarray]:
    '''Shift waypoints to the vehicle position and rotate by -psi.'''
    dx = np.asarray(ptsx, dtype=float) - px
    dy = np.asarray(ptsy, dtype=float) - py
    cos_psi, sin_psi = math.cos(-psi), math.sin(-psi)
    xs = dx * cos_psi - dy * sin_psi
    ys = dx * sin_psi + dy * cos_psi
    return xs, ys


def initial_state(coeffs) -> np.ndarray:
    '''
    Vehicle-frame state at the vehicle origin.

    The vehicle sits at (0, 0) with zero heading, so cte is the fit at
    x = 0 and epsi is minus the reference heading there.
    '''
    cte = polyeval(coeffs, 0.0)
    epsi = -math.atan(coeffs[1]) if len(coeffs) > 1 else 0.0
    return np.array([0.0, 0.0, 0.0, cte, epsi])


def predict_latency(state, v: float, delta: float, latency: float, lf: float) -> np.ndarray:
    '''Propagate the state over the actuation latency with the MPC model.'''
    x, y, psi, cte, epsi = (float(s) for s in state)
    yaw_change = v * delta / lf * latency
    return np.array([
        x + v * math.cos(psi) * latency,
        y + v * math.sin(psi) * latency,
        psi - yaw_change,
        cte + v * math.sin(epsi) * latency,
        epsi - yaw_change,
    ])


def prepare(ptsx, ptsy, px: float, py: float, psi: float, v: float, delta: float,
            params: Params, order: int = 3) -> Tuple[np.ndarray, np.ndarray]:
    '''
    Build (state, coeffs) for one control cycle.

    Parameters
    ----------
    ptsx, ptsy : sequence
        Upcoming waypoints in the global frame.
    px, py, psi : float
        Global vehicle pose.
    v, delta : float
        Current speed and applied steering, used for latency compensation.
    params : Params
        Provides ``latency`` and ``lf``.
    order : int
        Polynomial order of the reference fit.
    '''
    xs, ys = to_vehicle_frame(ptsx, ptsy, px, py, psi)
    coeffs = polyfit(xs, ys, order)
    state = initial_state(coeffs)
    if params.latency > 0:
        state = predict_latency(state, v, delta, params.latency, params.lf)
    return state, coeffs
