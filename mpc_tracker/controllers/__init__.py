from mpc_tracker.controllers.MPC import MPC, MPCResult, ControlStrategy
