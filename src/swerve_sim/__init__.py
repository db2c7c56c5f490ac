"""
Swerve Sim: Physics Simulation of Swerve Drivetrains

A scientific Python package for running mobile-robot control code against a
simulated four-module swerve drivetrain instead of real hardware.

This package implements:
- DC motor response with current limiting
- Gear transmission and wheel traction (slip) limits
- Per-module drive and steer integration with encoder readouts
- Gyro simulation with configurable noise and impact drift
- Factory presets for SDS MK4-series modules

Control code writes motor voltages and reads encoders and gyro through the
same interfaces it would use against real motor controllers.
"""

from .interfaces import SwerveModuleIO, GyroIO
from .physics import MotorModel, GearStage, GearedMotor, WheelTractionProfile, TractionLimiter, get_motor
from .simulation.module import SwerveModuleSimulation, SwerveModuleConfig
from .simulation.drivetrain import SwerveDriveSimulation, DrivetrainConfig, ModulePosition
from .sensors.gyro import GyroSimulation, GyroParameters, NoiseDistribution
from .factories.module_factory import SwerveModuleFactory, DriveWheelType

__version__ = "1.0.0"
__author__ = "Swerve Sim Team"

__all__ = [
    "SwerveModuleIO",
    "GyroIO",
    "MotorModel",
    "GearStage",
    "GearedMotor",
    "WheelTractionProfile",
    "TractionLimiter",
    "get_motor",
    "SwerveModuleSimulation",
    "SwerveModuleConfig",
    "SwerveDriveSimulation",
    "DrivetrainConfig",
    "ModulePosition",
    "GyroSimulation",
    "GyroParameters",
    "NoiseDistribution",
    "SwerveModuleFactory",
    "DriveWheelType"
]
