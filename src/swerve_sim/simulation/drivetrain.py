"""
Four-module swerve drivetrain stepped in lockstep with its gyro.

This module owns four independent swerve module simulations, indexed by
their position on the chassis, and advances them together on one clock.
Each period it takes a single snapshot of how the robot's weight is spread
over the wheels, steps every module sub-step by sub-step, recovers the
chassis motion from the four contact-patch velocities and feeds the yaw
rate to the gyro.

Normal Load Distribution:
    Wheel loads N_i must balance the weight and the moments of the
    center of mass (c_x, c_y):
        Σ N_i = m g,  Σ N_i x_i = m g c_x,  Σ N_i y_i = m g c_y
    Four wheels make this underdetermined; the minimum-norm solution is
    used. For a rectangular layout it reduces to the lever rule.

Chassis Motion Estimate:
    Rigid-body motion gives each contact patch the velocity
        v_i = (v_x - ω y_i, v_y + ω x_i)
    Stacking all modules yields an overdetermined linear system in
    (v_x, v_y, ω), solved by least squares.
"""

import contextlib
import logging
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from ..physics.units import GRAVITY, wrap_angle
from ..sensors.gyro import GyroSimulation
from .module import DEFAULT_ROBOT_MASS_KG, DEFAULT_SUB_TICKS, SwerveModuleSimulation

logger = logging.getLogger(__name__)


class ModulePosition(Enum):
    """Module slots, in the order modules are built."""
    FRONT_LEFT = 0
    FRONT_RIGHT = 1
    BACK_LEFT = 2
    BACK_RIGHT = 3


def _default_translations() -> Dict[ModulePosition, Tuple[float, float]]:
    # 22.75 in square wheelbase; x forward, y left
    half = 0.289
    return {
        ModulePosition.FRONT_LEFT: (half, half),
        ModulePosition.FRONT_RIGHT: (half, -half),
        ModulePosition.BACK_LEFT: (-half, half),
        ModulePosition.BACK_RIGHT: (-half, -half),
    }


def compute_normal_load_fractions(translations: np.ndarray,
                                  center_of_mass: Tuple[float, float]) -> np.ndarray:
    """
    Share of the robot weight carried by each wheel.

    Args:
        translations: Module positions relative to the robot origin (N x 2) [m]
        center_of_mass: Center of mass (x, y) [m]

    Returns:
        Array of N fractions summing to one
    """
    translations = np.asarray(translations, dtype=float)
    balance = np.vstack([np.ones(len(translations)), translations[:, 0], translations[:, 1]])
    target = np.array([1.0, center_of_mass[0], center_of_mass[1]])
    fractions, *_ = np.linalg.lstsq(balance, target, rcond=None)
    return fractions


@dataclass(frozen=True)
class ChassisAngularState:
    """Chassis motion recovered from module states (robot frame)."""
    vx: float
    vy: float
    omega: float


def estimate_chassis_state(translations: np.ndarray, ground_velocities: np.ndarray) -> ChassisAngularState:
    """
    Least-squares rigid-body fit of contact-patch velocities.

    Args:
        translations: Module positions (N x 2) [m]
        ground_velocities: Contact-patch velocities (N x 2) [m/s]

    Returns:
        ChassisAngularState at the robot origin
    """
    translations = np.asarray(translations, dtype=float)
    ground_velocities = np.asarray(ground_velocities, dtype=float)
    count = len(translations)

    system = np.zeros((2 * count, 3))
    system[0::2, 0] = 1.0
    system[0::2, 2] = -translations[:, 1]
    system[1::2, 1] = 1.0
    system[1::2, 2] = translations[:, 0]

    (vx, vy, omega), *_ = np.linalg.lstsq(system, ground_velocities.reshape(-1), rcond=None)
    return ChassisAngularState(vx=float(vx), vy=float(vy), omega=float(omega))


@dataclass
class DrivetrainConfig:
    """Chassis-level parameters."""

    robot_mass_kg: float = DEFAULT_ROBOT_MASS_KG
    module_translations: Dict[ModulePosition, Tuple[float, float]] = field(default_factory=_default_translations)
    center_of_mass: Tuple[float, float] = (0.0, 0.0)
    period_seconds: float = 0.02
    sub_ticks: int = DEFAULT_SUB_TICKS

    def __post_init__(self):
        """Validate chassis parameters."""
        if not self.robot_mass_kg > 0:
            raise ValueError(f"Robot mass must be positive, got {self.robot_mass_kg}")
        if not self.period_seconds > 0:
            raise ValueError(f"Simulation period must be positive, got {self.period_seconds}")
        if self.sub_ticks < 1:
            raise ValueError(f"Sub-ticks per period must be at least 1, got {self.sub_ticks}")
        missing = set(ModulePosition) - set(self.module_translations)
        if missing:
            raise ValueError(f"Missing module translations for {sorted(p.name for p in missing)}")

        points = self.translation_array()
        spread = points - points.mean(axis=0)
        if np.linalg.matrix_rank(spread) < 2:
            raise ValueError("Module translations must not be collinear")

        fractions = compute_normal_load_fractions(points, self.center_of_mass)
        if np.any(fractions <= 0):
            raise ValueError(f"Center of mass {self.center_of_mass} lies outside the wheelbase")

    def translation_array(self) -> np.ndarray:
        return np.array([self.module_translations[position] for position in ModulePosition], dtype=float)


class SwerveDriveSimulation:
    """
    Four swerve modules and a gyro advanced on one clock.

    Modules are created by ``module_supplier`` once per slot, in
    ``ModulePosition`` order, and are never shared between slots.

    Attributes:
        config (DrivetrainConfig): Chassis parameters
        modules (Dict[ModulePosition, SwerveModuleSimulation]): Module arena
        gyro (GyroSimulation): Yaw sensor fed from the chassis estimate
    """

    def __init__(self,
                 config: Optional[DrivetrainConfig] = None,
                 module_supplier: Optional[Callable[[], SwerveModuleSimulation]] = None,
                 gyro: Optional[GyroSimulation] = None):
        """
        Args:
            config: Chassis parameters
            module_supplier: Zero-argument callable building one module
            gyro: Gyro simulation; a noiseless one is created if omitted

        Raises:
            ValueError: If no supplier is given or it returns a shared instance
        """
        if module_supplier is None:
            raise ValueError("A module supplier is required")

        self.config = config or DrivetrainConfig()
        self.gyro = gyro or GyroSimulation()

        self.modules: Dict[ModulePosition, SwerveModuleSimulation] = {}
        for position in ModulePosition:
            module = module_supplier()
            if any(module is existing for existing in self.modules.values()):
                raise ValueError("Module supplier must build a new module for every position")
            self.modules[position] = module

        self._translations = self.config.translation_array()
        self._chassis_state = ChassisAngularState(0.0, 0.0, 0.0)
        self._actual_pose = np.zeros(3)  # x, y, heading in the field frame
        self._elapsed_time = 0.0

        logger.info(f"Swerve drive simulation initialized: mass={self.config.robot_mass_kg:.1f}kg, "
                    f"period={self.config.period_seconds * 1000:.0f}ms x {self.config.sub_ticks} sub-ticks")

    def module(self, position: ModulePosition) -> SwerveModuleSimulation:
        return self.modules[position]

    def set_center_of_mass(self, x: float, y: float) -> None:
        """
        Move the center of mass; takes effect at the next tick.

        Raises:
            ValueError: If the point lies outside the wheelbase
        """
        fractions = compute_normal_load_fractions(self._translations, (x, y))
        if np.any(fractions <= 0):
            raise ValueError(f"Center of mass ({x}, {y}) lies outside the wheelbase")
        self.config.center_of_mass = (x, y)

    def compute_normal_loads(self) -> Dict[ModulePosition, float]:
        """Normal load on each wheel [N] for the current mass distribution."""
        fractions = compute_normal_load_fractions(self._translations, self.config.center_of_mass)
        weight = self.config.robot_mass_kg * GRAVITY
        return {position: float(fraction * weight) for position, fraction in zip(ModulePosition, fractions)}

    def tick(self, dt: Optional[float] = None) -> ChassisAngularState:
        """
        Advance every module and the gyro by one period.

        Args:
            dt: Period duration [s]; defaults to the configured period

        Returns:
            Chassis state after the last sub-step
        """
        dt = self.config.period_seconds if dt is None else dt
        if dt <= 0:
            warnings.warn(f"Ignoring non-positive tick duration {dt}")
            return self._chassis_state

        sub_dt = dt / self.config.sub_ticks
        loads = self.compute_normal_loads()

        with contextlib.ExitStack() as stack:
            for module in self.modules.values():
                stack.enter_context(module.lock)

            for _ in range(self.config.sub_ticks):
                for position, module in self.modules.items():
                    module.step(sub_dt, loads[position])

                self._chassis_state = estimate_chassis_state(
                    self._translations,
                    np.array([module.get_ground_velocity() for module in self.modules.values()]))
                self.gyro.tick(self._chassis_state.omega, sub_dt)
                self._integrate_pose(sub_dt)

        self._elapsed_time += dt
        return self._chassis_state

    def _integrate_pose(self, dt: float) -> None:
        state = self._chassis_state
        heading = self._actual_pose[2] + state.omega * dt
        cos_h, sin_h = np.cos(heading), np.sin(heading)
        self._actual_pose[0] += (cos_h * state.vx - sin_h * state.vy) * dt
        self._actual_pose[1] += (sin_h * state.vx + cos_h * state.vy) * dt
        self._actual_pose[2] = heading

    def get_chassis_state(self) -> ChassisAngularState:
        return self._chassis_state

    def get_actual_heading(self) -> float:
        """True chassis heading, wrapped to (-π, π]."""
        return wrap_angle(self._actual_pose[2])

    def get_actual_pose(self) -> np.ndarray:
        """True chassis pose [x, y, heading_unwrapped] in the field frame."""
        return self._actual_pose.copy()

    @property
    def elapsed_time(self) -> float:
        return self._elapsed_time

    def __repr__(self) -> str:
        return (f"SwerveDriveSimulation(t={self._elapsed_time:.2f}s, "
                f"ω={self._chassis_state.omega:.3f}rad/s, "
                f"gyro={np.degrees(self.gyro.get_gyro_rotation()):.1f}°)")
