"""
Sensor modules for swerve drive simulation.

This module contains the gyro model with configurable noise distribution,
bias and impact-induced heading drift.
"""

from .gyro import GyroSimulation, GyroParameters, GyroState, NoiseDistribution

__all__ = [
    "GyroSimulation",
    "GyroParameters",
    "GyroState",
    "NoiseDistribution"
]
