"""
Simulation components for swerve drivetrains.

This module contains the single-module physics simulation, the four-module
drivetrain that steps modules and gyro in lockstep, and reference solutions
used to verify the integrator.

Components:
    - SwerveModuleSimulation: Drive and steer paths of one module
    - SwerveDriveSimulation: Module arena, normal-load snapshot, chassis estimate
    - analytic_drive_response / simulate_reference_drive_response: Reference solutions
"""

# Core simulation classes
from .module import SwerveModuleSimulation, SwerveModuleConfig, ModuleState
from .drivetrain import (SwerveDriveSimulation, DrivetrainConfig, ModulePosition,
                         ChassisAngularState, estimate_chassis_state, compute_normal_load_fractions)

# Reference solutions
from .reference import analytic_drive_response, simulate_reference_drive_response

__all__ = [
    # Core classes
    "SwerveModuleSimulation",
    "SwerveDriveSimulation",

    # Configuration and state classes
    "SwerveModuleConfig",
    "ModuleState",
    "DrivetrainConfig",
    "ModulePosition",
    "ChassisAngularState",

    # Utility functions
    "estimate_chassis_state",
    "compute_normal_load_fractions",
    "analytic_drive_response",
    "simulate_reference_drive_response"
]
