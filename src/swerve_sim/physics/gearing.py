"""
Fixed-ratio gear transmission between a motor shaft and an output shaft.

Gear Model:
    ω_out = ω_motor * r
    τ_out = τ_motor / r * η

    where:
    - r: Output revolutions per motor revolution (r < 1 for a reduction)
    - η: Mechanical efficiency in (0, 1], 1.0 for a lossless stage

Swerve vendors publish the reduction instead, i.e. motor turns per output
turn (6.75:1 for an SDS L2 drive). ``GearStage.from_reduction`` converts.
"""

from dataclasses import dataclass
from typing import Optional

from .motor import MotorModel


@dataclass(frozen=True)
class GearStage:
    """Immutable gear stage; ``ratio`` is output revolutions per input revolution."""

    ratio: float
    efficiency: float = 1.0

    def __post_init__(self):
        if not self.ratio > 0:
            raise ValueError(f"Gear ratio must be positive, got {self.ratio}")
        if not 0.0 < self.efficiency <= 1.0:
            raise ValueError(f"Gear efficiency must be in (0, 1], got {self.efficiency}")

    @classmethod
    def from_reduction(cls, reduction: float, efficiency: float = 1.0) -> "GearStage":
        """
        Build a stage from a reduction (motor turns per output turn).

        Raises:
            ValueError: If the reduction is not positive
        """
        if not reduction > 0:
            raise ValueError(f"Gear reduction must be positive, got {reduction}")
        return cls(ratio=1.0 / reduction, efficiency=efficiency)

    @property
    def reduction(self) -> float:
        return 1.0 / self.ratio

    def output_torque(self, motor_torque: float) -> float:
        return motor_torque / self.ratio * self.efficiency

    def output_velocity(self, motor_velocity: float) -> float:
        return motor_velocity * self.ratio

    def input_velocity(self, output_velocity: float) -> float:
        return output_velocity / self.ratio


class GearedMotor:
    """
    A motor model composed with a gear stage.

    Exposes the motor's response directly in output-shaft units, which is
    what the wheel and steering mechanisms see.

    Attributes:
        motor: Motor electrical model
        gear: Gear stage between motor and mechanism
    """

    def __init__(self, motor: MotorModel, gear: GearStage):
        self.motor = motor
        self.gear = gear

    @property
    def free_speed(self) -> float:
        """Output-shaft free speed [rad/s]."""
        return self.gear.output_velocity(self.motor.free_speed_rad_per_sec)

    def compute_output_torque(self,
                              applied_voltage: float,
                              output_velocity: float,
                              current_limit_amps: Optional[float] = None) -> float:
        """
        Compute the output-shaft torque for the present output speed.

        Args:
            applied_voltage: Motor terminal voltage [V]
            output_velocity: Present output-shaft angular velocity [rad/s]
            current_limit_amps: Optional controller current limit [A]

        Returns:
            Output torque [N·m]
        """
        motor_velocity = self.gear.input_velocity(output_velocity)
        motor_torque = self.motor.compute_torque(applied_voltage, motor_velocity, current_limit_amps)
        return self.gear.output_torque(motor_torque)

    def output_friction_torque(self, friction_voltage: float) -> float:
        """Friction voltage expressed as an opposing output-shaft torque."""
        return self.gear.output_torque(self.motor.friction_torque(friction_voltage))

    def __repr__(self) -> str:
        return f"GearedMotor({self.motor!r}, reduction={self.gear.reduction:.3f})"
