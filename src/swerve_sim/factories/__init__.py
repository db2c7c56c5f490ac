"""
Factories for commercial swerve modules.

This module maps SDS module families and gear tiers onto module
configurations and simulation suppliers.
"""

from .module_factory import (
    SwerveModuleFactory,
    DriveWheelType,
    ModuleFamily,
    ModuleParameters,
    Mk4GearRatio,
    Mk4nGearRatio,
    module_parameters,
)

__all__ = [
    "SwerveModuleFactory",
    "DriveWheelType",
    "ModuleFamily",
    "ModuleParameters",
    "Mk4GearRatio",
    "Mk4nGearRatio",
    "module_parameters"
]
