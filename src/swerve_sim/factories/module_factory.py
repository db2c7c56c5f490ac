"""
Factory for commercially available swerve modules.

Module families and gear-ratio tiers are published by Swerve Drive
Specialties (SDS). The factory turns a family name, the robot's choice of
motors, gear tier, current limit and tread into a ready
``SwerveModuleConfig`` or a supplier of fresh ``SwerveModuleSimulation``
instances. It holds no simulation logic.

Supported Families:
    - MK4:  steer 12.8:1
    - MK4i: steer 150/7:1 (the "inverted" layout)
    - MK4n: steer 18.75:1, own drive tiers
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from ..physics.gearing import GearStage
from ..physics.motor import MotorModel
from ..physics.traction import WheelTractionProfile
from ..physics.units import inches_to_meters
from ..simulation.module import (DEFAULT_SUB_TICKS, SwerveModuleConfig,
                                 SwerveModuleSimulation)


class DriveWheelType(Enum):
    """Tread material, valued by its grip coefficient on carpet."""
    RUBBER = 1.25
    TIRE = 1.15

    @property
    def grip_coefficient(self) -> float:
        return self.value


class ModuleFamily(Enum):
    MK4 = "mk4"
    MK4I = "mk4i"
    MK4N = "mk4n"


class Mk4GearRatio(Enum):
    """Drive reductions shared by the MK4 and MK4i."""
    L1 = 8.14
    L2 = 6.75
    L3 = 6.12
    L4 = 5.14


class Mk4nGearRatio(Enum):
    L1 = 7.13
    L2 = 5.9
    L3 = 5.36


MK4_DEFAULT_STEER_RATIO = 12.8
MK4I_DEFAULT_STEER_RATIO = 150.0 / 7.0
MK4N_DEFAULT_STEER_RATIO = 18.75
WHEEL_DIAMETER_METERS = inches_to_meters(4.0)


@dataclass(frozen=True)
class ModuleParameters:
    """
    Published mechanical parameters of one module family at one tier.

    Attributes:
        drive_reduction: Drive motor turns per wheel turn
        steer_reduction: Steer motor turns per azimuth turn
        wheel_diameter_meters: Wheel diameter [m]
        drive_friction_voltage: Voltage to overcome drive friction [V]
        steer_friction_voltage: Voltage to overcome steer friction [V]
        steer_rotational_inertia: Azimuth inertia [kg·m²]
    """

    drive_reduction: float
    steer_reduction: float
    wheel_diameter_meters: float
    drive_friction_voltage: float
    steer_friction_voltage: float
    steer_rotational_inertia: float


_FAMILY_TABLE = {
    # steer reduction, drive friction V, steer friction V, steer inertia
    ModuleFamily.MK4: (MK4_DEFAULT_STEER_RATIO, 0.2, 0.3, 0.03),
    ModuleFamily.MK4I: (MK4I_DEFAULT_STEER_RATIO, 0.2, 1.0, 0.025),
    ModuleFamily.MK4N: (MK4N_DEFAULT_STEER_RATIO, 0.25, 1.0, 0.025),
}


def module_parameters(family: ModuleFamily,
                      tier: Union[Mk4GearRatio, Mk4nGearRatio]) -> ModuleParameters:
    """
    Look up the parameter bundle of a module family at a gear tier.

    Args:
        family: Module family
        tier: Drive gear tier from the family's own table

    Returns:
        Immutable ModuleParameters

    Raises:
        ValueError: If the tier does not belong to the family
    """
    family = ModuleFamily(family)
    expected = Mk4nGearRatio if family == ModuleFamily.MK4N else Mk4GearRatio
    if not isinstance(tier, expected):
        raise ValueError(f"{family.name} requires a {expected.__name__} tier, got {tier!r}")

    steer_reduction, drive_friction, steer_friction, steer_inertia = _FAMILY_TABLE[family]
    return ModuleParameters(
        drive_reduction=tier.value,
        steer_reduction=steer_reduction,
        wheel_diameter_meters=WHEEL_DIAMETER_METERS,
        drive_friction_voltage=drive_friction,
        steer_friction_voltage=steer_friction,
        steer_rotational_inertia=steer_inertia,
    )


class SwerveModuleFactory:
    """
    Builds swerve module simulations for the SDS MK4 series.

    The robot supplies its motors, drive reduction, current limit and tread;
    the family supplies everything else.

    Attributes:
        drive_motor: Drive motor model
        steer_motor: Steer motor model
        drive_gear_ratio: Drive reduction (motor turns per wheel turn)
        drive_current_limit_amps: Drive current limit [A]
        drive_wheel_type: Tread material
    """

    def __init__(self,
                 drive_motor: MotorModel,
                 steer_motor: MotorModel,
                 drive_gear_ratio: Union[float, Mk4GearRatio, Mk4nGearRatio],
                 drive_current_limit_amps: Optional[float],
                 drive_wheel_type: DriveWheelType = DriveWheelType.RUBBER,
                 normal_load_newtons: Optional[float] = None,
                 sub_ticks: int = DEFAULT_SUB_TICKS):
        """
        Args:
            drive_motor: Drive motor model
            steer_motor: Steer motor model
            drive_gear_ratio: Drive reduction, or a tier enum member
            drive_current_limit_amps: Drive current limit [A]; None or 0 for none
            drive_wheel_type: Tread material
            normal_load_newtons: Per-wheel normal load [N]; module default if omitted
            sub_ticks: Integration sub-steps per tick for built modules

        Raises:
            ValueError: If the drive reduction is not positive
        """
        if isinstance(drive_gear_ratio, (Mk4GearRatio, Mk4nGearRatio)):
            drive_gear_ratio = drive_gear_ratio.value
        if not drive_gear_ratio > 0:
            raise ValueError(f"Drive gear ratio must be positive, got {drive_gear_ratio}")

        self.drive_motor = drive_motor
        self.steer_motor = steer_motor
        self.drive_gear_ratio = float(drive_gear_ratio)
        self.drive_current_limit_amps = drive_current_limit_amps
        self.drive_wheel_type = DriveWheelType(drive_wheel_type)
        self.normal_load_newtons = normal_load_newtons
        self.sub_ticks = sub_ticks

    def build_config(self, family: ModuleFamily) -> SwerveModuleConfig:
        """Module configuration for ``family`` with this factory's drivetrain choices."""
        family = ModuleFamily(family)
        steer_reduction, drive_friction, steer_friction, steer_inertia = _FAMILY_TABLE[family]

        optional = {}
        if self.normal_load_newtons is not None:
            optional['normal_load_newtons'] = self.normal_load_newtons

        return SwerveModuleConfig(
            drive_motor=self.drive_motor,
            steer_motor=self.steer_motor,
            drive_gear=GearStage.from_reduction(self.drive_gear_ratio),
            steer_gear=GearStage.from_reduction(steer_reduction),
            traction=WheelTractionProfile(
                grip_coefficient=self.drive_wheel_type.grip_coefficient,
                wheel_diameter_meters=WHEEL_DIAMETER_METERS,
            ),
            drive_current_limit_amps=self.drive_current_limit_amps,
            drive_friction_voltage=drive_friction,
            steer_friction_voltage=steer_friction,
            steer_rotational_inertia=steer_inertia,
            **optional,
        )

    def _supplier(self, family: ModuleFamily) -> Callable[[], SwerveModuleSimulation]:
        config = self.build_config(family)
        return lambda: SwerveModuleSimulation(config, sub_ticks=self.sub_ticks)

    def get_mark4(self) -> Callable[[], SwerveModuleSimulation]:
        """Supplier of SDS MK4 module simulations."""
        return self._supplier(ModuleFamily.MK4)

    def get_mark4i(self) -> Callable[[], SwerveModuleSimulation]:
        """Supplier of SDS MK4i module simulations."""
        return self._supplier(ModuleFamily.MK4I)

    def get_mark4n(self) -> Callable[[], SwerveModuleSimulation]:
        """Supplier of SDS MK4n module simulations."""
        return self._supplier(ModuleFamily.MK4N)
