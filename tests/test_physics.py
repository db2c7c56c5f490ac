import pytest
import numpy as np
import math
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from swerve_sim.physics import (MotorModel, GearStage, GearedMotor, WheelTractionProfile,
                                TractionLimiter, get_motor, MOTOR_PRESETS, wrap_angle)
from swerve_sim.physics.units import rpm_to_rad_per_sec, inches_to_meters


class TestMotorModel:
    """Test DC motor response with back-EMF and current limiting"""

    def test_datasheet_derivation(self):
        """Test electrical constants are derived from datasheet figures"""
        motor = MotorModel.from_datasheet(12.0, 7.09, 366.0, 2.0, 6000.0)

        resistance = 12.0 / 366.0
        assert motor.resistance_ohms == pytest.approx(resistance)
        assert motor.torque_per_amp == pytest.approx(7.09 / 366.0)
        assert motor.free_speed_rad_per_sec == pytest.approx(6000.0 * 2 * math.pi / 60.0)
        assert motor.back_emf_per_rad_per_sec == pytest.approx(
            (12.0 - resistance * 2.0) / motor.free_speed_rad_per_sec)
        assert motor.stall_torque_newton_meters == pytest.approx(7.09)
        assert motor.stall_current_amps == pytest.approx(366.0)

    def test_multiple_motors_scale(self):
        """Test ganged motors double torque and halve resistance"""
        single = MotorModel.from_datasheet(12.0, 4.69, 257.0, 1.5, 6380.0)
        double = MotorModel.from_datasheet(12.0, 4.69, 257.0, 1.5, 6380.0, num_motors=2)

        assert double.stall_torque_newton_meters == pytest.approx(2 * single.stall_torque_newton_meters)
        assert double.resistance_ohms == pytest.approx(single.resistance_ohms / 2)
        assert double.free_speed_rad_per_sec == pytest.approx(single.free_speed_rad_per_sec)

    def test_stall_torque_at_nominal_voltage(self):
        """Test zero-speed torque at nominal voltage equals stall torque"""
        motor = get_motor("kraken_x60")
        assert motor.compute_torque(12.0, 0.0) == pytest.approx(7.09)
        assert motor.compute_torque(-12.0, 0.0) == pytest.approx(-7.09)

    def test_back_emf_balance(self):
        """Test torque vanishes where back-EMF equals applied voltage"""
        motor = get_motor("falcon500")
        for voltage in [2.0, 6.0, 9.5, -4.0]:
            balance_speed = voltage / motor.back_emf_per_rad_per_sec
            assert motor.compute_torque(voltage, balance_speed) == pytest.approx(0.0, abs=1e-9)

    def test_current_limit_never_exceeded(self):
        """Test current stays within the limit for any voltage and speed"""
        motor = get_motor("kraken_x60")
        limit = 40.0
        speeds = np.linspace(-motor.free_speed_rad_per_sec, motor.free_speed_rad_per_sec, 41)

        for voltage in np.linspace(-12.0, 12.0, 25):
            for speed in speeds:
                current = motor.compute_current(voltage, speed, limit)
                assert abs(current) <= limit + 1e-12

        assert motor.compute_torque(12.0, 0.0, limit) == pytest.approx(limit * motor.torque_per_amp)

    def test_zero_current_limit_disables_limiting(self):
        """Test a zero or missing current limit means unlimited current"""
        motor = get_motor("kraken_x60")
        stall_current = 12.0 / motor.resistance_ohms

        assert motor.compute_current(12.0, 0.0, 0.0) == pytest.approx(stall_current)
        assert motor.compute_current(12.0, 0.0, None) == pytest.approx(stall_current)

    def test_get_voltage_inverts_torque(self):
        """Test voltage for a torque/speed pair round-trips through compute_torque"""
        motor = get_motor("neo")
        voltage = motor.get_voltage(1.2, 150.0)
        assert motor.compute_torque(voltage, 150.0) == pytest.approx(1.2)

    def test_friction_torque_is_positive(self):
        motor = get_motor("neo")
        assert motor.friction_torque(0.2) == pytest.approx(0.2 / motor.resistance_ohms * motor.torque_per_amp)
        assert motor.friction_torque(-0.2) > 0

    def test_invalid_parameters_rejected(self):
        """Test construction rejects non-physical constants"""
        with pytest.raises(ValueError):
            MotorModel(0.0, 0.01, 0.01, 500.0, 4.0)
        with pytest.raises(ValueError):
            MotorModel(0.05, -0.01, 0.01, 500.0, 4.0)
        with pytest.raises(ValueError):
            MotorModel.from_datasheet(12.0, 4.69, 257.0, 1.5, 6380.0, num_motors=0)

    def test_motor_presets(self):
        """Test every preset builds a valid motor"""
        for name in MOTOR_PRESETS:
            motor = get_motor(name)
            assert motor.nominal_voltage == 12.0
            assert motor.back_emf_per_rad_per_sec > 0

        assert get_motor("NEO_VORTEX").free_speed_rad_per_sec == pytest.approx(rpm_to_rad_per_sec(6784.0))

        with pytest.raises(ValueError, match="Unknown motor"):
            get_motor("cim9000")


class TestGearStage:
    """Test gear transmission algebra"""

    def test_from_reduction(self):
        gear = GearStage.from_reduction(6.75)
        assert gear.ratio == pytest.approx(1 / 6.75)
        assert gear.reduction == pytest.approx(6.75)

    def test_torque_and_speed_scaling(self):
        """Test reduction multiplies torque and divides speed"""
        gear = GearStage.from_reduction(6.75)
        assert gear.output_velocity(675.0) == pytest.approx(100.0)
        assert gear.input_velocity(100.0) == pytest.approx(675.0)
        assert gear.output_torque(1.0) == pytest.approx(6.75)

    def test_efficiency_loss(self):
        gear = GearStage.from_reduction(6.75, efficiency=0.9)
        assert gear.output_torque(1.0) == pytest.approx(6.075)
        assert gear.output_velocity(675.0) == pytest.approx(100.0)

    def test_invalid_gear_rejected(self):
        """Test non-positive ratios and bad efficiencies fail at construction"""
        with pytest.raises(ValueError):
            GearStage(0.0)
        with pytest.raises(ValueError):
            GearStage(-0.5)
        with pytest.raises(ValueError):
            GearStage.from_reduction(0.0)
        with pytest.raises(ValueError):
            GearStage(0.2, efficiency=0.0)
        with pytest.raises(ValueError):
            GearStage(0.2, efficiency=1.5)

    def test_geared_motor_output(self):
        """Test composed motor and gear report output-shaft torque"""
        motor = get_motor("kraken_x60")
        geared = GearedMotor(motor, GearStage.from_reduction(6.75))

        assert geared.compute_output_torque(12.0, 0.0) == pytest.approx(7.09 * 6.75)
        assert geared.compute_output_torque(12.0, 0.0, 40.0) == pytest.approx(40.0 * motor.torque_per_amp * 6.75)
        assert geared.free_speed == pytest.approx(motor.free_speed_rad_per_sec / 6.75)

        # Output speed is reflected to the motor before computing back-EMF
        balance = 6.0 / motor.back_emf_per_rad_per_sec / 6.75
        assert geared.compute_output_torque(6.0, balance) == pytest.approx(0.0, abs=1e-9)


class TestTractionLimiter:
    """Test wheel grip limiting"""

    def test_force_clamped_to_grip_limit(self):
        limiter = TractionLimiter(WheelTractionProfile(1.25, 0.1016), normal_load_newtons=100.0)

        assert limiter.max_force() == pytest.approx(125.0)
        assert limiter.limit(500.0) == pytest.approx(125.0)
        assert limiter.limit(-500.0) == pytest.approx(-125.0)
        assert limiter.limit(50.0) == 50.0
        assert limiter.is_slipping(126.0)
        assert not limiter.is_slipping(-124.0)

    def test_normal_load_override(self):
        limiter = TractionLimiter(WheelTractionProfile(1.15, 0.1016), normal_load_newtons=100.0)
        assert limiter.limit(1000.0, normal_load_newtons=200.0) == pytest.approx(230.0)

    def test_zero_grip_disables_limit(self):
        """Test a zero grip coefficient removes the traction limit"""
        limiter = TractionLimiter(WheelTractionProfile(0.0, 0.1016), normal_load_newtons=100.0)
        assert limiter.limit(1e6) == 1e6
        assert limiter.max_force() == float("inf")

    def test_invalid_profile_rejected(self):
        with pytest.raises(ValueError):
            WheelTractionProfile(-0.1, 0.1016)
        with pytest.raises(ValueError):
            WheelTractionProfile(1.2, 0.0)
        with pytest.raises(ValueError):
            TractionLimiter(WheelTractionProfile(1.2, 0.1016), normal_load_newtons=0.0)

    def test_wheel_radius(self):
        profile = WheelTractionProfile(1.25, inches_to_meters(4.0))
        assert profile.wheel_radius_meters == pytest.approx(0.0508)


class TestAngleWrapping:
    """Test canonical angle range (-π, π]"""

    def test_wrap_range(self):
        for angle in np.linspace(-50.0, 50.0, 1001):
            wrapped = wrap_angle(angle)
            assert -math.pi < wrapped <= math.pi
            assert math.cos(wrapped) == pytest.approx(math.cos(angle), abs=1e-9)
            assert math.sin(wrapped) == pytest.approx(math.sin(angle), abs=1e-9)

    def test_boundaries(self):
        assert wrap_angle(math.pi) == pytest.approx(math.pi)
        assert wrap_angle(-math.pi) == pytest.approx(math.pi)
        assert wrap_angle(0.0) == 0.0

    def test_large_accumulated_angle(self):
        angle = 1000 * 2 * math.pi + 0.5
        assert wrap_angle(angle) == pytest.approx(0.5, abs=1e-9)
