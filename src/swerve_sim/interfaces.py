"""
Controller-facing interfaces for swerve modules and gyros.

Robot code is written against these abstract classes. A simulated
implementation and a hardware implementation are chosen when the robot is
constructed; nothing downstream can tell them apart.
"""

from abc import ABC, abstractmethod


class SwerveModuleIO(ABC):
    """Voltage in, encoder readings out. Angles are radians."""

    @abstractmethod
    def set_drive_output_voltage(self, volts: float) -> None:
        ...

    @abstractmethod
    def set_steer_output_voltage(self, volts: float) -> None:
        ...

    @abstractmethod
    def get_steer_absolute_facing(self) -> float:
        """Steer facing wrapped to (-π, π]."""

    def get_steer_facing(self) -> float:
        return self.get_steer_absolute_facing()

    @abstractmethod
    def get_steer_relative_position_rad(self) -> float:
        """Unbounded steer position since construction."""

    @abstractmethod
    def get_drive_encoder_position_rad(self) -> float:
        """Unbounded, ungeared drive encoder position."""


class GyroIO(ABC):

    @abstractmethod
    def get_gyro_rotation(self) -> float:
        """Heading wrapped to (-π, π]."""

    @abstractmethod
    def get_gyro_angular_velocity(self) -> float:
        """Yaw rate [rad/s]."""
