#!/usr/bin/env python3
"""
Swerve Drivetrain Simulation Demo

Drives a simulated four-module swerve drivetrain with constant drive and
steer voltages and prints what robot code would read back: encoder
positions, steer facings and the gyro heading.

Run with: swerve-sim --family mk4i --tier L2 --drive-volts 6
"""

import argparse
import logging
import time

import numpy as np

from .factories.module_factory import (DriveWheelType, Mk4GearRatio, Mk4nGearRatio,
                                       ModuleFamily, SwerveModuleFactory)
from .physics.motors import MOTOR_PRESETS, get_motor
from .sensors.gyro import GyroParameters, GyroSimulation, NoiseDistribution
from .simulation.drivetrain import DrivetrainConfig, ModulePosition, SwerveDriveSimulation

logger = logging.getLogger(__name__)


def build_drivetrain(family: str = "mk4i",
                     tier: str = "L2",
                     motor: str = "kraken_x60",
                     wheel: str = "rubber",
                     current_limit: float = 60.0,
                     robot_mass: float = 45.0,
                     gyro_noise: float = 0.0,
                     noise_distribution: str = "gaussian",
                     seed=None) -> SwerveDriveSimulation:
    """Assemble a drivetrain from command-line style options."""
    module_family = ModuleFamily(family.lower())
    tier_table = Mk4nGearRatio if module_family == ModuleFamily.MK4N else Mk4GearRatio
    gear_tier = tier_table[tier.upper()]

    factory = SwerveModuleFactory(
        drive_motor=get_motor(motor),
        steer_motor=get_motor(motor),
        drive_gear_ratio=gear_tier,
        drive_current_limit_amps=current_limit,
        drive_wheel_type=DriveWheelType[wheel.upper()],
    )
    suppliers = {
        ModuleFamily.MK4: factory.get_mark4,
        ModuleFamily.MK4I: factory.get_mark4i,
        ModuleFamily.MK4N: factory.get_mark4n,
    }

    gyro = GyroSimulation(
        GyroParameters(noise_std=gyro_noise, noise_distribution=NoiseDistribution(noise_distribution)),
        seed=seed,
    )
    return SwerveDriveSimulation(
        DrivetrainConfig(robot_mass_kg=robot_mass),
        module_supplier=suppliers[module_family](),
        gyro=gyro,
    )


def run_simulation(drivetrain: SwerveDriveSimulation,
                   drive_volts: float,
                   steer_volts: float,
                   duration: float = 2.0,
                   collision_drift_deg: float = 0.0,
                   real_time: bool = False) -> None:
    """Run the drivetrain with constant commands and print a summary."""
    period = drivetrain.config.period_seconds
    steps = int(round(duration / period))

    print("=== Swerve Drivetrain Simulation ===")
    print(f"Duration: {duration:.2f}s ({steps} periods of {period * 1000:.0f}ms)")
    print(f"Commands: drive {drive_volts:.2f}V, steer {steer_volts:.2f}V")
    print()

    for module in drivetrain.modules.values():
        module.set_drive_output_voltage(drive_volts)
        module.set_steer_output_voltage(steer_volts)

    for step in range(steps):
        start = time.time()
        drivetrain.tick()

        if collision_drift_deg and step == steps // 2:
            drivetrain.gyro.apply_collision_drift(np.radians(collision_drift_deg))
            print(f"[{drivetrain.elapsed_time:.2f}s] Collision: gyro drift {collision_drift_deg:.1f}°")

        if real_time:
            time.sleep(max(0.0, period - (time.time() - start)))

    print(f"{'Module':<12} {'Facing':>9} {'Steer rel':>10} {'Drive enc':>11} {'Wheel':>9} {'Current':>8}")
    for position in ModulePosition:
        module = drivetrain.module(position)
        print(f"{position.name:<12} "
              f"{np.degrees(module.get_steer_absolute_facing()):>8.1f}° "
              f"{module.get_steer_relative_position_rad():>9.2f}r "
              f"{module.get_drive_encoder_position_rad():>10.1f}r "
              f"{module.get_drive_wheel_final_speed_rad_per_sec():>6.1f}r/s "
              f"{module.get_drive_current_amps():>7.1f}A")

    pose = drivetrain.get_actual_pose()
    print()
    print(f"Chassis pose: x={pose[0]:.3f}m, y={pose[1]:.3f}m, "
          f"heading={np.degrees(drivetrain.get_actual_heading()):.2f}°")
    print(f"Gyro: heading={np.degrees(drivetrain.gyro.get_gyro_rotation()):.2f}°, "
          f"rate={np.degrees(drivetrain.gyro.get_gyro_angular_velocity()):.2f}°/s")


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Swerve Drivetrain Simulation Demo')
    parser.add_argument('--family', choices=[f.value for f in ModuleFamily], default='mk4i',
                        help='Module family (default: mk4i)')
    parser.add_argument('--tier', default='L2',
                        help='Drive gear tier, L1-L4 (default: L2)')
    parser.add_argument('--motor', choices=sorted(MOTOR_PRESETS), default='kraken_x60',
                        help='Drive and steer motor (default: kraken_x60)')
    parser.add_argument('--wheel', choices=[w.name.lower() for w in DriveWheelType], default='rubber',
                        help='Drive wheel tread (default: rubber)')
    parser.add_argument('--current-limit', type=float, default=60.0,
                        help='Drive current limit in amps, 0 for none (default: 60)')
    parser.add_argument('--mass', type=float, default=45.0,
                        help='Robot mass in kg (default: 45)')
    parser.add_argument('--drive-volts', type=float, default=6.0,
                        help='Drive voltage for all modules (default: 6)')
    parser.add_argument('--steer-volts', type=float, default=0.0,
                        help='Steer voltage for all modules (default: 0)')
    parser.add_argument('--duration', type=float, default=2.0,
                        help='Simulation duration in seconds (default: 2)')
    parser.add_argument('--gyro-noise', type=float, default=0.0,
                        help='Gyro rate noise standard deviation in rad/s (default: 0)')
    parser.add_argument('--noise-distribution', choices=[d.value for d in NoiseDistribution],
                        default='gaussian', help='Gyro noise distribution (default: gaussian)')
    parser.add_argument('--collision-drift', type=float, default=0.0,
                        help='Gyro drift in degrees injected halfway through (default: 0)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for gyro noise')
    parser.add_argument('--real-time', action='store_true',
                        help='Pace the simulation to wall-clock time')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        drivetrain = build_drivetrain(
            family=args.family,
            tier=args.tier,
            motor=args.motor,
            wheel=args.wheel,
            current_limit=args.current_limit,
            robot_mass=args.mass,
            gyro_noise=args.gyro_noise,
            noise_distribution=args.noise_distribution,
            seed=args.seed,
        )
    except (KeyError, ValueError) as e:
        parser.error(f"Invalid configuration: {e}")

    run_simulation(
        drivetrain,
        drive_volts=args.drive_volts,
        steer_volts=args.steer_volts,
        duration=args.duration,
        collision_drift_deg=args.collision_drift,
        real_time=args.real_time,
    )


if __name__ == "__main__":
    main()
