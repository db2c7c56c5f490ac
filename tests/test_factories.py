import pytest
import dataclasses
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from swerve_sim.factories import (SwerveModuleFactory, DriveWheelType, ModuleFamily, Mk4GearRatio,
                                  Mk4nGearRatio, module_parameters)
from swerve_sim.physics import get_motor
from swerve_sim.simulation import SwerveModuleSimulation


def make_factory(**overrides):
    params = dict(
        drive_motor=get_motor("kraken_x60"),
        steer_motor=get_motor("kraken_x60"),
        drive_gear_ratio=Mk4GearRatio.L2,
        drive_current_limit_amps=60.0,
    )
    params.update(overrides)
    return SwerveModuleFactory(**params)


class TestModuleParameters:
    """Test published module constants"""

    def test_mk4_l2(self):
        params = module_parameters(ModuleFamily.MK4, Mk4GearRatio.L2)

        assert params.drive_reduction == 6.75
        assert params.steer_reduction == 12.8
        assert params.wheel_diameter_meters == pytest.approx(0.1016)
        assert params.drive_friction_voltage == 0.2
        assert params.steer_friction_voltage == 0.3
        assert params.steer_rotational_inertia == 0.03

    def test_mk4i_steer_ratio(self):
        params = module_parameters(ModuleFamily.MK4I, Mk4GearRatio.L3)

        assert params.drive_reduction == 6.12
        assert params.steer_reduction == pytest.approx(150.0 / 7.0)
        assert params.steer_friction_voltage == 1.0

    def test_mk4n_tiers(self):
        params = module_parameters(ModuleFamily.MK4N, Mk4nGearRatio.L3)

        assert params.drive_reduction == 5.36
        assert params.steer_reduction == 18.75
        assert params.drive_friction_voltage == 0.25

    def test_all_tier_values(self):
        assert [tier.value for tier in Mk4GearRatio] == [8.14, 6.75, 6.12, 5.14]
        assert [tier.value for tier in Mk4nGearRatio] == [7.13, 5.9, 5.36]

    def test_family_from_string(self):
        params = module_parameters("mk4i", Mk4GearRatio.L1)
        assert params.drive_reduction == 8.14

    def test_tier_from_wrong_family_rejected(self):
        with pytest.raises(ValueError, match="Mk4nGearRatio"):
            module_parameters(ModuleFamily.MK4N, Mk4GearRatio.L4)
        with pytest.raises(ValueError, match="Mk4GearRatio"):
            module_parameters(ModuleFamily.MK4, Mk4nGearRatio.L1)

    def test_parameters_immutable(self):
        params = module_parameters(ModuleFamily.MK4, Mk4GearRatio.L1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.drive_reduction = 5.0


class TestSwerveModuleFactory:
    """Test module construction from family and drivetrain choices"""

    def test_wheel_grip(self):
        assert DriveWheelType.RUBBER.grip_coefficient == 1.25
        assert DriveWheelType.TIRE.grip_coefficient == 1.15

        config = make_factory(drive_wheel_type=DriveWheelType.TIRE).build_config(ModuleFamily.MK4)
        assert config.traction.grip_coefficient == 1.15

    def test_config_carries_drivetrain_choices(self):
        config = make_factory().build_config(ModuleFamily.MK4I)

        assert config.drive_gear.reduction == pytest.approx(6.75)
        assert config.steer_gear.reduction == pytest.approx(150.0 / 7.0)
        assert config.drive_current_limit_amps == 60.0
        assert config.traction.grip_coefficient == 1.25
        assert config.wheel_radius_meters == pytest.approx(0.0508)
        assert config.steer_rotational_inertia == 0.025

    def test_numeric_gear_ratio(self):
        config = make_factory(drive_gear_ratio=7.0).build_config(ModuleFamily.MK4)
        assert config.drive_gear.reduction == pytest.approx(7.0)

    def test_invalid_gear_ratio_rejected(self):
        with pytest.raises(ValueError):
            make_factory(drive_gear_ratio=0.0)
        with pytest.raises(ValueError):
            make_factory(drive_gear_ratio=-6.75)

    def test_normal_load_override(self):
        config = make_factory(normal_load_newtons=150.0).build_config(ModuleFamily.MK4N)
        assert config.normal_load_newtons == 150.0

    def test_suppliers_build_fresh_modules(self):
        """Test every supplier call returns a distinct module"""
        factory = make_factory(sub_ticks=3)
        for supplier in (factory.get_mark4(), factory.get_mark4i(), factory.get_mark4n()):
            first, second = supplier(), supplier()
            assert isinstance(first, SwerveModuleSimulation)
            assert first is not second
            assert first.sub_ticks == 3

    def test_built_module_drives(self):
        module = make_factory().get_mark4()()
        module.set_drive_output_voltage(6.0)
        for _ in range(10):
            module.tick(0.02)

        assert module.get_drive_encoder_position_rad() > 0.0
        assert module.get_drive_encoder_position_rad() == \
            pytest.approx(module.get_drive_wheel_final_position_rad() * 6.75)

    def test_built_module_steers(self):
        module = make_factory().get_mark4n()()
        module.set_steer_output_voltage(6.0)
        for _ in range(10):
            module.tick(0.02)

        assert module.get_steer_relative_position_rad() > 0.0

    def test_mk4i_steer_comes_to_rest_at_one_sub_tick(self):
        """Test the fast MK4i azimuth settles and stops with a single 20 ms sub-step"""
        module = make_factory(sub_ticks=1).get_mark4i()()
        module.set_steer_output_voltage(6.0)
        for _ in range(20):
            module.tick(0.02)
        assert module.get_steer_angular_velocity_rad_per_sec() > 0.0

        module.set_steer_output_voltage(0.0)
        for _ in range(20):
            module.tick(0.02)
        assert module.get_steer_angular_velocity_rad_per_sec() == 0.0
