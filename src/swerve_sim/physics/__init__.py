"""
Actuation-chain physics for swerve module simulation.

This module contains the motor response model, gear transmission and wheel
traction limiter that each swerve module composes for its drive and steer
paths, plus datasheet presets for common motors.
"""

from .motor import MotorModel
from .gearing import GearStage, GearedMotor
from .traction import WheelTractionProfile, TractionLimiter
from .motors import get_motor, MOTOR_PRESETS
from .units import wrap_angle

__all__ = [
    "MotorModel",
    "GearStage",
    "GearedMotor",
    "WheelTractionProfile",
    "TractionLimiter",
    "get_motor",
    "MOTOR_PRESETS",
    "wrap_angle"
]
