"""
Swerve Module Simulation

This module implements the physics of one swerve module: a drive path that
turns motor voltage into wheel rotation against the module's share of the
robot's mass, and a steer path that turns motor voltage into azimuth
rotation against the steering mechanism's inertia.

Drive Path (per sub-step):
    τ_motor  = Kt * clamp((V - Ke * ω_motor) / R, ±I_limit)
    τ_wheel  = τ_motor / r * η - friction
    F        = clamp(τ_wheel / R_wheel, ±μN)          # traction limit
    J_eff    = (N / g) * R_wheel² + J_wheel            # reflected chassis mass
    ω_wheel += F * R_wheel / J_eff * dt
    θ_wheel += ω_wheel * dt
    θ_enc    = θ_wheel / r                             # ungeared readout

Steer Path (per sub-step):
    τ_s      = R * J_steer * r² / (η * Kt * Ke)          # steer time constant
    ω_target = (V_steer - V_friction) * r / Ke
    ω_steer  = ω_target + (ω_steer - ω_target) * exp(-dt / τ_s)
    θ_rel   += ω_steer * dt                            # unbounded
    θ_abs    = wrap(θ_abs + ω_steer * dt)              # (-π, π]

Integration:
    Drive velocity uses semi-implicit Euler: velocity is updated first and
    the new velocity advances position. The steer time constant is a few
    milliseconds, so steer velocity follows the exact first-order solution
    above (a linear ramp while the current limit holds) and stays stable at
    any sub-step length. Each ``tick(dt)`` is split into ``sub_ticks`` equal
    sub-steps so the drive time constant (tens of milliseconds) is resolved
    at the usual 20 ms control period.

Drive Encoder Convention:
    The drive encoder reports motor-shaft rotation ("ungeared") even though
    the wheel moves at the geared rate, exactly like an integrated motor
    encoder on a real module. Divide by the reduction to get wheel rotation.
"""

import copy
import logging
import threading
import warnings
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..physics.gearing import GearStage, GearedMotor
from ..physics.motor import MotorModel
from ..physics.traction import TractionLimiter, WheelTractionProfile
from ..physics.units import GRAVITY, wrap_angle
from ..interfaces import SwerveModuleIO

logger = logging.getLogger(__name__)

DEFAULT_ROBOT_MASS_KG = 45.0
DEFAULT_NORMAL_LOAD_NEWTONS = DEFAULT_ROBOT_MASS_KG * GRAVITY / 4.0
DEFAULT_SUB_TICKS = 5

_VELOCITY_EPSILON = 1e-9


@dataclass(frozen=True)
class SwerveModuleConfig:
    """
    Construction-time parameters of one swerve module.

    Attributes:
        drive_motor: Drive motor electrical model
        steer_motor: Steer motor electrical model
        drive_gear: Drive gear stage (motor to wheel)
        steer_gear: Steer gear stage (motor to azimuth)
        traction: Wheel tread grip and diameter
        drive_current_limit_amps: Drive current limit [A]; None or 0 disables it
        steer_current_limit_amps: Steer current limit [A]; None or 0 disables it
        drive_friction_voltage: Voltage needed to overcome drive friction [V]
        steer_friction_voltage: Voltage needed to overcome steer friction [V]
        steer_rotational_inertia: Inertia of the azimuth mechanism [kg·m²]
        drive_wheel_inertia: Wheel and gearbox inertia at the wheel axle [kg·m²]
        max_output_voltage: Controller saturation voltage [V]
        normal_load_newtons: Default normal load on the wheel [N]
    """

    drive_motor: MotorModel
    steer_motor: MotorModel
    drive_gear: GearStage
    steer_gear: GearStage
    traction: WheelTractionProfile
    drive_current_limit_amps: Optional[float] = None
    steer_current_limit_amps: Optional[float] = None
    drive_friction_voltage: float = 0.0
    steer_friction_voltage: float = 0.0
    steer_rotational_inertia: float = 0.025
    drive_wheel_inertia: float = 0.0
    max_output_voltage: float = 12.0
    normal_load_newtons: float = DEFAULT_NORMAL_LOAD_NEWTONS

    def __post_init__(self):
        """Validate module parameters."""
        for name in ("drive_current_limit_amps", "steer_current_limit_amps"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.drive_friction_voltage < 0 or self.steer_friction_voltage < 0:
            raise ValueError("Friction voltages must be non-negative")
        if self.drive_friction_voltage >= self.max_output_voltage or \
                self.steer_friction_voltage >= self.max_output_voltage:
            raise ValueError("Friction voltage must be below the maximum output voltage")
        if not self.steer_rotational_inertia > 0:
            raise ValueError(f"Steer rotational inertia must be positive, got {self.steer_rotational_inertia}")
        if self.drive_wheel_inertia < 0:
            raise ValueError(f"Drive wheel inertia must be non-negative, got {self.drive_wheel_inertia}")
        if not self.max_output_voltage > 0:
            raise ValueError(f"Maximum output voltage must be positive, got {self.max_output_voltage}")
        if not self.normal_load_newtons > 0:
            raise ValueError(f"Normal load must be positive, got {self.normal_load_newtons}")

    @property
    def wheel_radius_meters(self) -> float:
        return self.traction.wheel_radius_meters


@dataclass
class ModuleState:
    """Mutable physical state of one module, updated once per sub-step."""

    drive_motor_angular_velocity: float = 0.0   # [rad/s] motor shaft
    drive_encoder_position_ungeared: float = 0.0  # [rad] motor shaft
    drive_wheel_position: float = 0.0           # [rad] wheel
    steer_absolute_position: float = 0.0        # [rad] wrapped
    steer_relative_position: float = 0.0        # [rad] unbounded
    steer_angular_velocity: float = 0.0         # [rad/s] azimuth
    applied_drive_voltage: float = 0.0
    applied_steer_voltage: float = 0.0
    drive_current: float = 0.0
    steer_current: float = 0.0


def _integrate_velocity(velocity: float,
                        driving_torque: float,
                        friction_torque: float,
                        inertia: float,
                        dt: float,
                        torque_limit: Optional[Callable[[float], float]] = None) -> float:
    """
    Advance one rotational degree of freedom by a sub-step.

    Coulomb friction opposes motion, holds the mechanism still while the
    driving torque cannot overcome it, and never reverses the direction of
    travel by itself.

    Args:
        velocity: Present angular velocity [rad/s]
        driving_torque: Torque from the motor at the mechanism [N·m]
        friction_torque: Magnitude of friction torque [N·m]
        inertia: Effective inertia [kg·m²]
        dt: Sub-step duration [s]
        torque_limit: Optional clamp applied to the net torque (the drive
            path's traction limit)

    Returns:
        New angular velocity [rad/s]
    """
    if abs(velocity) > _VELOCITY_EPSILON:
        net_torque = driving_torque - np.copysign(friction_torque, velocity)
    elif abs(driving_torque) <= friction_torque:
        return 0.0
    else:
        net_torque = driving_torque - np.copysign(friction_torque, driving_torque)

    if torque_limit is not None:
        net_torque = torque_limit(net_torque)

    new_velocity = velocity + net_torque / inertia * dt

    # Friction alone stops the mechanism instead of spinning it backwards
    if velocity != 0.0 and np.sign(new_velocity) != np.sign(velocity) \
            and abs(driving_torque) <= friction_torque:
        return 0.0
    return float(new_velocity)


class SwerveModuleSimulation(SwerveModuleIO):
    """
    Physics simulation of one swerve module.

    The controller writes voltages with ``set_drive_output_voltage`` and
    ``set_steer_output_voltage``; the simulation loop calls ``tick``; the
    controller reads encoders between ticks. Drive and steer paths are
    integrated independently.

    Thread Safety:
        ``tick``, ``step`` and the voltage setters hold a per-module lock, so
        a command never lands halfway through an integration step. Reads do
        not lock: state is only mutated inside a tick.

    Attributes:
        config (SwerveModuleConfig): Immutable module parameters
        sub_ticks (int): Integration sub-steps per ``tick`` call
    """

    def __init__(self,
                 config: SwerveModuleConfig,
                 initial_steer_facing: float = 0.0,
                 sub_ticks: int = DEFAULT_SUB_TICKS):
        """
        Args:
            config: Module parameters, validated on construction
            initial_steer_facing: Absolute steer facing at power-on [rad]
            sub_ticks: Integration sub-steps per tick

        Raises:
            ValueError: If ``sub_ticks`` is less than one
        """
        if sub_ticks < 1:
            raise ValueError(f"Sub-ticks per tick must be at least 1, got {sub_ticks}")

        self.config = config
        self.sub_ticks = int(sub_ticks)

        self._drive = GearedMotor(config.drive_motor, config.drive_gear)
        self._steer = GearedMotor(config.steer_motor, config.steer_gear)
        self._traction = TractionLimiter(config.traction, config.normal_load_newtons)

        # Drive friction expressed at the wheel axle
        self._drive_friction_torque = self._drive.output_friction_torque(config.drive_friction_voltage)

        self._state = ModuleState(steer_absolute_position=wrap_angle(initial_steer_facing))
        self._lock = threading.RLock()
        self._slipping = False
        self._warned_coarse_step = False

        self._cached_drive_positions: deque = deque(maxlen=self.sub_ticks)
        self._cached_steer_facings: deque = deque(maxlen=self.sub_ticks)

        logger.debug(f"Swerve module created: drive {config.drive_gear.reduction:.2f}:1, "
                     f"steer {config.steer_gear.reduction:.2f}:1, "
                     f"wheel {config.wheel_radius_meters * 2:.4f}m")

    @property
    def lock(self) -> threading.RLock:
        """Exclusive access to this module's state for the duration of a tick."""
        return self._lock

    def set_drive_output_voltage(self, volts: float) -> None:
        limit = self.config.max_output_voltage
        with self._lock:
            self._state.applied_drive_voltage = float(np.clip(volts, -limit, limit))

    def set_steer_output_voltage(self, volts: float) -> None:
        limit = self.config.max_output_voltage
        with self._lock:
            self._state.applied_steer_voltage = float(np.clip(volts, -limit, limit))

    def drive_time_constant(self, normal_load_newtons: Optional[float] = None) -> float:
        """
        Mechanical time constant of the unloaded drive path [s].

        Mathematical Model:
            τ = R * J_motor / (Kt * Ke),  J_motor = J_eff * r² / η
        """
        motor = self.config.drive_motor
        gear = self.config.drive_gear
        inertia_at_motor = self._drive_inertia(normal_load_newtons) * gear.ratio ** 2 / gear.efficiency
        return motor.resistance_ohms * inertia_at_motor / \
            (motor.torque_per_amp * motor.back_emf_per_rad_per_sec)

    def steer_time_constant(self) -> float:
        """
        Mechanical time constant of the steer path [s].

        Mathematical Model:
            τ = R * J_motor / (Kt * Ke),  J_motor = J_steer * r² / η
        """
        motor = self.config.steer_motor
        gear = self.config.steer_gear
        inertia_at_motor = self.config.steer_rotational_inertia * gear.ratio ** 2 / gear.efficiency
        return motor.resistance_ohms * inertia_at_motor / \
            (motor.torque_per_amp * motor.back_emf_per_rad_per_sec)

    def tick(self, dt: float, normal_load_newtons: Optional[float] = None) -> None:
        """
        Advance the module by one control period.

        Args:
            dt: Period duration [s]
            normal_load_newtons: Normal load snapshot for this period [N];
                defaults to the configured load
        """
        if dt <= 0:
            warnings.warn(f"Ignoring non-positive tick duration {dt}")
            return

        sub_dt = dt / self.sub_ticks
        with self._lock:
            for _ in range(self.sub_ticks):
                self.step(sub_dt, normal_load_newtons)

    def step(self, sub_dt: float, normal_load_newtons: Optional[float] = None) -> None:
        """
        Advance the module by a single integration sub-step.

        Used directly by the drivetrain so all four modules move in lockstep
        at sub-step granularity.
        """
        if sub_dt <= 0:
            warnings.warn(f"Ignoring non-positive sub-step duration {sub_dt}")
            return

        load = self.config.normal_load_newtons if normal_load_newtons is None else normal_load_newtons
        with self._lock:
            if not self._warned_coarse_step and sub_dt > self.drive_time_constant(load):
                warnings.warn(f"Sub-step {sub_dt:.4f}s exceeds drive time constant "
                              f"{self.drive_time_constant(load):.4f}s; increase sub_ticks")
                self._warned_coarse_step = True

            self._step_drive(sub_dt, load)
            self._step_steer(sub_dt)

            self._cached_drive_positions.append(self._state.drive_encoder_position_ungeared)
            self._cached_steer_facings.append(self._state.steer_absolute_position)

    def _drive_inertia(self, normal_load_newtons: Optional[float] = None) -> float:
        load = self.config.normal_load_newtons if normal_load_newtons is None else normal_load_newtons
        radius = self.config.wheel_radius_meters
        return load / GRAVITY * radius ** 2 + self.config.drive_wheel_inertia

    def _step_drive(self, dt: float, normal_load: float) -> None:
        state = self._state
        gear = self.config.drive_gear
        radius = self.config.wheel_radius_meters

        wheel_velocity = gear.output_velocity(state.drive_motor_angular_velocity)
        state.drive_current = self.config.drive_motor.compute_current(
            state.applied_drive_voltage, state.drive_motor_angular_velocity,
            self.config.drive_current_limit_amps)
        wheel_torque = gear.output_torque(state.drive_current * self.config.drive_motor.torque_per_amp)

        self._slipping = self._traction.is_slipping(wheel_torque / radius, normal_load)
        wheel_velocity = _integrate_velocity(
            wheel_velocity,
            wheel_torque,
            self._drive_friction_torque,
            self._drive_inertia(normal_load),
            dt,
            torque_limit=lambda torque: self._traction.limit(torque / radius, normal_load) * radius,
        )

        max_wheel_velocity = self._drive.free_speed
        wheel_velocity = float(np.clip(wheel_velocity, -max_wheel_velocity, max_wheel_velocity))

        state.drive_motor_angular_velocity = gear.input_velocity(wheel_velocity)
        state.drive_wheel_position += wheel_velocity * dt
        state.drive_encoder_position_ungeared = state.drive_wheel_position / gear.ratio

    def _step_steer(self, dt: float) -> None:
        state = self._state
        motor = self.config.steer_motor
        friction_voltage = self.config.steer_friction_voltage

        voltage = state.applied_steer_voltage
        velocity = state.steer_angular_velocity
        state.steer_current = motor.compute_current(
            voltage, self.config.steer_gear.input_velocity(velocity),
            self.config.steer_current_limit_amps)

        # Friction holds the azimuth unless the motor could break it away from rest
        stall_current = motor.compute_current(voltage, 0.0, self.config.steer_current_limit_amps)
        breaks_away = abs(stall_current) * motor.resistance_ohms > friction_voltage
        if abs(velocity) <= _VELOCITY_EPSILON and not breaks_away:
            velocity = 0.0
        else:
            direction = np.sign(velocity) if abs(velocity) > _VELOCITY_EPSILON else np.sign(voltage)
            new_velocity = self._advance_steer_velocity(velocity, voltage, direction * friction_voltage, dt)
            if not breaks_away and np.sign(new_velocity) != direction:
                new_velocity = 0.0
            velocity = new_velocity

        max_velocity = self._steer.free_speed
        velocity = float(np.clip(velocity, -max_velocity, max_velocity))

        state.steer_angular_velocity = velocity
        state.steer_relative_position += velocity * dt
        state.steer_absolute_position = wrap_angle(state.steer_absolute_position + velocity * dt)

    def _advance_steer_velocity(self,
                                velocity: float,
                                voltage: float,
                                friction_voltage: float,
                                dt: float) -> float:
        """
        Steer velocity after ``dt`` at constant applied voltage.

        Below the current limit the response is first order and is advanced
        with its exponential solution. While the limit holds, torque is
        constant and velocity ramps linearly until back-EMF brings the
        current back under the limit; the remainder of the step then follows
        the exponential.

        Args:
            velocity: Azimuth velocity at the start of the step [rad/s]
            voltage: Applied steer voltage [V]
            friction_voltage: Friction as a voltage, signed against motion [V]
            dt: Step duration [s]

        Returns:
            Azimuth velocity at the end of the step [rad/s]
        """
        motor = self.config.steer_motor
        gear = self.config.steer_gear
        time_constant = self.steer_time_constant()
        speed_per_volt = gear.output_velocity(1.0 / motor.back_emf_per_rad_per_sec)

        motor_velocity = gear.input_velocity(velocity)
        current = motor.compute_current(voltage, motor_velocity)
        limited_current = motor.compute_current(voltage, motor_velocity, self.config.steer_current_limit_amps)

        if limited_current != current:
            limited_voltage = limited_current * motor.resistance_ohms
            acceleration = (limited_voltage - friction_voltage) * speed_per_volt / time_constant
            # Speed at which back-EMF brings the current down to the limit
            boundary = (voltage - limited_voltage) * speed_per_volt
            ramp_time = (boundary - velocity) / acceleration if acceleration != 0.0 else np.inf
            if ramp_time < 0 or ramp_time >= dt:
                return float(velocity + acceleration * dt)
            velocity, dt = boundary, dt - ramp_time

        target = (voltage - friction_voltage) * speed_per_volt
        return float(target + (velocity - target) * np.exp(-dt / time_constant))

    def get_steer_absolute_facing(self) -> float:
        return self._state.steer_absolute_position

    def get_steer_relative_position_rad(self) -> float:
        return self._state.steer_relative_position

    def get_drive_encoder_position_rad(self) -> float:
        return self._state.drive_encoder_position_ungeared

    def get_drive_wheel_final_position_rad(self) -> float:
        """Wheel rotation since construction, after the gear reduction [rad]."""
        return self._state.drive_wheel_position

    def get_drive_wheel_final_speed_rad_per_sec(self) -> float:
        return self.config.drive_gear.output_velocity(self._state.drive_motor_angular_velocity)

    def get_drive_motor_velocity_rad_per_sec(self) -> float:
        return self._state.drive_motor_angular_velocity

    def get_steer_angular_velocity_rad_per_sec(self) -> float:
        return self._state.steer_angular_velocity

    def get_drive_current_amps(self) -> float:
        return self._state.drive_current

    def get_steer_current_amps(self) -> float:
        return self._state.steer_current

    def get_applied_voltages(self) -> Tuple[float, float]:
        return self._state.applied_drive_voltage, self._state.applied_steer_voltage

    def is_slipping(self) -> bool:
        """Whether the last sub-step requested more force than the tread could hold."""
        return self._slipping

    def get_ground_velocity(self) -> np.ndarray:
        """
        Velocity of the wheel's contact patch in the robot frame [m/s].

        Returns:
            Array [vx, vy]: wheel surface speed along the steer facing
        """
        speed = self.get_drive_wheel_final_speed_rad_per_sec() * self.config.wheel_radius_meters
        facing = self._state.steer_absolute_position
        return np.array([speed * np.cos(facing), speed * np.sin(facing)])

    def get_cached_drive_encoder_positions(self) -> List[float]:
        """Ungeared drive encoder readings, one per sub-step of the latest tick."""
        return list(self._cached_drive_positions)

    def get_cached_steer_absolute_facings(self) -> List[float]:
        return list(self._cached_steer_facings)

    def get_state(self) -> ModuleState:
        """Snapshot copy of the module state."""
        return copy.copy(self._state)

    def __repr__(self) -> str:
        return (f"SwerveModuleSimulation(facing={np.degrees(self._state.steer_absolute_position):.1f}°, "
                f"wheel_speed={self.get_drive_wheel_final_speed_rad_per_sec():.2f}rad/s)")
