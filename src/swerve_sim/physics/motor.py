"""
Brushed/brushless DC motor response model.

This module implements the steady-state electrical model of a permanent
magnet DC motor, which is how FRC brushless motors (Kraken, Falcon, NEO)
behave from the point of view of the motor controller's voltage output.
Winding inductance is neglected: the electrical time constant is far below
any simulation step used here.

Motor Model:
    V = I * R + Ke * ω
    τ = Kt * I

    where:
    - V: Applied voltage [V]
    - I: Armature current [A]
    - R: Winding resistance [Ω]
    - Ke: Back-EMF constant [V·s/rad]
    - Kt: Torque constant [N·m/A]
    - ω: Shaft angular velocity [rad/s]

Current Limiting:
    Motor controllers enforce a supply/stator current limit. It is modeled
    as a saturation of I to [-I_limit, +I_limit] before the torque
    conversion; hitting the limit is normal operation, not a fault.

Datasheet Derivation:
    R  = V_nominal / I_stall
    Kt = τ_stall / I_stall
    Ke = (V_nominal - R * I_free) / ω_free
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .units import rpm_to_rad_per_sec


def _limit_enabled(current_limit_amps: Optional[float]) -> bool:
    return current_limit_amps is not None and current_limit_amps > 0.0


@dataclass(frozen=True)
class MotorModel:
    """
    Immutable electrical constants of one motor (or a gang of identical
    motors driving the same gearbox).

    Attributes:
        resistance_ohms: Winding resistance R [Ω]
        torque_per_amp: Torque constant Kt [N·m/A]
        back_emf_per_rad_per_sec: Back-EMF constant Ke [V·s/rad]
        free_speed_rad_per_sec: Unloaded speed at nominal voltage [rad/s]
        stall_torque_newton_meters: Torque at zero speed and nominal voltage [N·m]
        nominal_voltage: Voltage the datasheet values refer to [V]
    """

    resistance_ohms: float
    torque_per_amp: float
    back_emf_per_rad_per_sec: float
    free_speed_rad_per_sec: float
    stall_torque_newton_meters: float
    nominal_voltage: float = 12.0

    def __post_init__(self):
        """Validate motor constants."""
        for name in ("resistance_ohms", "torque_per_amp", "back_emf_per_rad_per_sec",
                     "free_speed_rad_per_sec", "stall_torque_newton_meters", "nominal_voltage"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"Motor parameter {name} must be positive, got {value}")

    @classmethod
    def from_datasheet(cls,
                       nominal_voltage: float,
                       stall_torque_newton_meters: float,
                       stall_current_amps: float,
                       free_current_amps: float,
                       free_speed_rpm: float,
                       num_motors: int = 1) -> "MotorModel":
        """
        Build a motor model from published datasheet figures.

        Args:
            nominal_voltage: Voltage the figures were measured at [V]
            stall_torque_newton_meters: Stall torque of one motor [N·m]
            stall_current_amps: Stall current of one motor [A]
            free_current_amps: Free-running current of one motor [A]
            free_speed_rpm: Free speed [rpm]
            num_motors: Number of identical motors geared together

        Returns:
            MotorModel describing the combined motors

        Raises:
            ValueError: If any figure is non-positive
        """
        if num_motors < 1:
            raise ValueError(f"Motor count must be at least 1, got {num_motors}")
        if stall_current_amps <= 0 or free_speed_rpm <= 0:
            raise ValueError("Stall current and free speed must be positive")

        stall_torque = stall_torque_newton_meters * num_motors
        stall_current = stall_current_amps * num_motors
        free_current = free_current_amps * num_motors
        free_speed = rpm_to_rad_per_sec(free_speed_rpm)

        resistance = nominal_voltage / stall_current
        torque_per_amp = stall_torque / stall_current
        back_emf = (nominal_voltage - resistance * free_current) / free_speed

        return cls(
            resistance_ohms=resistance,
            torque_per_amp=torque_per_amp,
            back_emf_per_rad_per_sec=back_emf,
            free_speed_rad_per_sec=free_speed,
            stall_torque_newton_meters=stall_torque,
            nominal_voltage=nominal_voltage,
        )

    def compute_current(self,
                        applied_voltage: float,
                        angular_velocity: float,
                        current_limit_amps: Optional[float] = None) -> float:
        """
        Armature current for the given voltage and shaft speed.

        Args:
            applied_voltage: Voltage across the motor terminals [V]
            angular_velocity: Present shaft angular velocity [rad/s]
            current_limit_amps: Controller current limit [A]; None or 0 disables it

        Returns:
            Current in amps, clamped to the limit when one is configured
        """
        back_emf = angular_velocity * self.back_emf_per_rad_per_sec
        current = (applied_voltage - back_emf) / self.resistance_ohms

        if _limit_enabled(current_limit_amps):
            current = float(np.clip(current, -current_limit_amps, current_limit_amps))

        return current

    def compute_torque(self,
                       applied_voltage: float,
                       angular_velocity: float,
                       current_limit_amps: Optional[float] = None) -> float:
        """
        Instantaneous shaft torque [N·m].

        Mathematical Model:
            I = clamp((V - Ke * ω) / R, -I_limit, +I_limit)
            τ = Kt * I
        """
        current = self.compute_current(applied_voltage, angular_velocity, current_limit_amps)
        return current * self.torque_per_amp

    def get_voltage(self, torque: float, angular_velocity: float) -> float:
        """Voltage needed to produce ``torque`` while spinning at ``angular_velocity``."""
        return torque / self.torque_per_amp * self.resistance_ohms + \
            angular_velocity * self.back_emf_per_rad_per_sec

    def friction_torque(self, friction_voltage: float) -> float:
        """
        Convert a static friction voltage (the kS of a feedforward model)
        into the equivalent opposing shaft torque.
        """
        return abs(self.compute_torque(friction_voltage, 0.0))

    @property
    def stall_current_amps(self) -> float:
        return self.nominal_voltage / self.resistance_ohms

    def __repr__(self) -> str:
        return (f"MotorModel(R={self.resistance_ohms:.4f}Ω, Kt={self.torque_per_amp:.4f}N·m/A, "
                f"Ke={self.back_emf_per_rad_per_sec:.4f}V·s/rad, "
                f"free_speed={self.free_speed_rad_per_sec:.1f}rad/s)")
