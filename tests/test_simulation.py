"""
Tests for the closed-loop simulation and its command line.
"""

import math
import numpy as np
import pytest

from mpc_tracker.params import Params
from mpc_tracker.simulations.bicycle_model import (
    KinematicBicycle,
    course_function,
    main,
    simulate,
    upcoming_waypoints,
)


def test_bicycle_drives_straight():
    car = KinematicBicycle()
    car.step(delta=0.0, v=2.0, dt=0.5)

    assert car.px == pytest.approx(1.0)
    assert car.py == pytest.approx(0.0)
    assert car.psi == pytest.approx(0.0)


def test_positive_steering_turns_clockwise():
    car = KinematicBicycle(lf=0.325)
    car.step(delta=0.1, v=1.0, dt=0.1)

    assert car.psi == pytest.approx(-1.0 * 0.1 / 0.325 * 0.1)


def test_upcoming_waypoints_start_near_vehicle():
    course_x = np.arange(0.0, 10.0, 0.5)
    course_y = course_function(course_x)

    ptsx, ptsy = upcoming_waypoints(course_x, course_y, 3.1, float(course_function(3.1)), count=5)

    assert len(ptsx) == len(ptsy) == 5
    assert ptsx[0] == pytest.approx(3.0)


def test_upcoming_waypoints_near_course_end():
    course_x = np.arange(0.0, 5.0, 0.5)
    course_y = np.zeros_like(course_x)

    ptsx, _ = upcoming_waypoints(course_x, course_y, 4.9, 0.0, count=4)

    assert len(ptsx) == 4
    assert ptsx[-1] == pytest.approx(4.5)


def test_simulate_short_run():
    params = Params(steps_ahead=8, dt=0.1, ref_v=1.0)

    history = simulate(params, steps=3, start_offset=0.1)

    assert len(history) == 3
    max_steer = math.radians(params.delta_constraint)
    for record in history:
        assert abs(record['delta']) <= max_steer + 1e-6
        assert -1e-6 <= record['v'] <= params.speed_upperbound + 1e-6
        assert np.isfinite(record['cte'])
    assert history[-1]['x'] > 0.0


def test_cli_runs(capsys):
    code = main(['--steps', '2', '--steps-ahead', '6', '--dt', '0.1', '--latency', '0.0'])

    assert code == 0
    out = capsys.readouterr().out
    assert out.count('step ') == 2
    assert 'CTE=' in out


def test_cli_rejects_unreachable_target_speed():
    assert main(['--steps', '1', '--ref-v', '10']) == 2
