"""
Reference solutions of the drive-path dynamics.

These are independent of the fixed-step integrator in ``module.py`` and are
used to check it: a closed-form solution for the linear case (no current
limit, no traction limit, no friction) and an adaptive ODE solution from
``scipy.integrate.solve_ivp`` that includes all the saturations.

Closed Form (constant voltage V from rest):
    ω_ss = V / Ke
    τ    = R * J_motor / (Kt * Ke)
    ω(t) = ω_ss * (1 - exp(-t / τ))
    θ(t) = ω_ss * (t - τ * (1 - exp(-t / τ)))
"""

from typing import Dict, Optional

import numpy as np
from scipy.integrate import solve_ivp

from ..physics.gearing import GearedMotor
from ..physics.traction import TractionLimiter
from ..physics.units import GRAVITY
from .module import SwerveModuleConfig


def _effective_wheel_inertia(config: SwerveModuleConfig, normal_load_newtons: float) -> float:
    return normal_load_newtons / GRAVITY * config.wheel_radius_meters ** 2 + config.drive_wheel_inertia


def analytic_drive_response(config: SwerveModuleConfig,
                            voltage: float,
                            times: np.ndarray,
                            normal_load_newtons: Optional[float] = None) -> Dict[str, np.ndarray]:
    """
    Closed-form drive response to a voltage step, ignoring all saturations.

    Args:
        config: Module parameters
        voltage: Constant applied drive voltage [V]
        times: Sample times [s]
        normal_load_newtons: Wheel normal load [N]; defaults to the configured load

    Returns:
        Dictionary with 'motor_velocity' [rad/s] and 'encoder_position' [rad]
        (ungeared) at each sample time, plus the scalar 'time_constant' [s]
    """
    load = config.normal_load_newtons if normal_load_newtons is None else normal_load_newtons
    motor = config.drive_motor
    inertia_at_motor = _effective_wheel_inertia(config, load) * config.drive_gear.ratio ** 2 \
        / config.drive_gear.efficiency

    steady_state = voltage / motor.back_emf_per_rad_per_sec
    time_constant = motor.resistance_ohms * inertia_at_motor / \
        (motor.torque_per_amp * motor.back_emf_per_rad_per_sec)

    times = np.asarray(times, dtype=float)
    decay = np.exp(-times / time_constant)
    return {
        'motor_velocity': steady_state * (1.0 - decay),
        'encoder_position': steady_state * (times - time_constant * (1.0 - decay)),
        'time_constant': time_constant,
    }


def simulate_reference_drive_response(config: SwerveModuleConfig,
                                      voltage: float,
                                      times: np.ndarray,
                                      normal_load_newtons: Optional[float] = None) -> Dict[str, np.ndarray]:
    """
    Adaptive-step solution of the drive path with current and traction limits.

    Friction is omitted: its discontinuity at zero speed does not suit an
    adaptive solver.

    Args:
        config: Module parameters
        voltage: Constant applied drive voltage [V], clamped to the controller range
        times: Increasing sample times starting at 0 [s]
        normal_load_newtons: Wheel normal load [N]; defaults to the configured load

    Returns:
        Dictionary with 'motor_velocity' and 'encoder_position' arrays
    """
    load = config.normal_load_newtons if normal_load_newtons is None else normal_load_newtons
    voltage = float(np.clip(voltage, -config.max_output_voltage, config.max_output_voltage))
    gear = config.drive_gear
    radius = config.wheel_radius_meters
    geared_motor = GearedMotor(config.drive_motor, gear)
    limiter = TractionLimiter(config.traction, load)
    inertia = _effective_wheel_inertia(config, load)

    def wheel_dynamics(t, y):
        wheel_velocity = y[1]
        wheel_torque = geared_motor.compute_output_torque(voltage, wheel_velocity, config.drive_current_limit_amps)
        force = limiter.limit(wheel_torque / radius)
        return [wheel_velocity, force * radius / inertia]

    times = np.asarray(times, dtype=float)
    solution = solve_ivp(wheel_dynamics, (times[0], times[-1]), [0.0, 0.0],
                         t_eval=times, rtol=1e-9, atol=1e-9, max_step=1e-3)
    if not solution.success:
        raise RuntimeError(f"Reference integration failed: {solution.message}")

    return {
        'motor_velocity': gear.input_velocity(solution.y[1]),
        'encoder_position': solution.y[0] / gear.ratio,
    }
