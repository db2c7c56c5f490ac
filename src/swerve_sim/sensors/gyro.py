"""
Gyroscope simulation with measurement noise and impact-induced drift.

This module models the yaw axis of a chassis-mounted IMU as seen by robot
code: a wrapped heading and a yaw rate. It integrates the true chassis yaw
rate and adds the error sources that make a real gyro disagree with the
robot's actual heading.

Gyro Measurement Model:
    n_k ~ D(0, σ)                       # per-sample noise
    ω_meas = ω_true + b + n_k           # b: constant bias (drift rate)
    ψ(t+dt) = ψ(t) + ω_meas * dt
    reading = wrap(ψ + ψ_drift)

    where:
    - D: Zero-mean Gaussian or uniform distribution with standard deviation σ
    - ψ_drift: Accumulated heading error from impacts, never decays

Impact Drift:
    A collision jolts the sensor and leaves a permanent heading offset.
    ``apply_collision_drift`` injects one explicitly. Optionally, yaw
    accelerations beyond a threshold are treated as impacts:
        ψ_drift += sign(α) * (|α| - α_threshold) * k_impact * dt

Determinism:
    With σ = 0 no random numbers are drawn, so identical yaw-rate inputs
    reproduce identical heading trajectories bit for bit.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from ..physics.units import wrap_angle
from ..interfaces import GyroIO

logger = logging.getLogger(__name__)


class NoiseDistribution(Enum):
    """Distribution family of gyro rate noise."""
    GAUSSIAN = "gaussian"
    UNIFORM = "uniform"      # U(-√3σ, +√3σ), same standard deviation


@dataclass
class GyroParameters:
    """Gyro error model parameters."""

    noise_std: float = 0.0                 # Rate noise standard deviation [rad/s]
    noise_distribution: NoiseDistribution = NoiseDistribution.GAUSSIAN
    bias_rad_per_sec: float = 0.0          # Constant rate bias [rad/s]
    impact_threshold_rad_per_sec2: Optional[float] = None  # None disables impact detection
    impact_drift_coefficient: float = 0.0  # Heading error per unit excess yaw acceleration [s]
    cache_size: int = 5                    # Readings kept for high-rate odometry

    def __post_init__(self):
        """Validate gyro parameters."""
        if not np.isfinite(self.noise_std) or self.noise_std < 0:
            raise ValueError(f"Gyro noise standard deviation must be non-negative, got {self.noise_std}")
        if not isinstance(self.noise_distribution, NoiseDistribution):
            self.noise_distribution = NoiseDistribution(self.noise_distribution)
        if self.impact_threshold_rad_per_sec2 is not None and self.impact_threshold_rad_per_sec2 <= 0:
            raise ValueError("Impact threshold must be positive")
        if self.impact_drift_coefficient < 0:
            raise ValueError("Impact drift coefficient must be non-negative")
        if self.cache_size < 1:
            raise ValueError(f"Cache size must be at least 1, got {self.cache_size}")


@dataclass
class GyroState:
    heading_estimate: float = 0.0
    angular_velocity_estimate: float = 0.0
    accumulated_drift_offset: float = 0.0


class GyroSimulation(GyroIO):
    """
    Yaw gyro fed by the chassis angular velocity.

    Attributes:
        params (GyroParameters): Error model configuration
        state (GyroState): Heading, rate and drift; mutated only by ``tick``,
            ``apply_collision_drift`` and ``set_rotation``
    """

    def __init__(self,
                 params: Optional[GyroParameters] = None,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        Args:
            params: Error model; defaults to a noiseless, drift-free gyro
            seed: Seed for the noise source (ignored when ``rng`` is given)
            rng: Random generator to draw noise from
        """
        self.params = params or GyroParameters()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.state = GyroState()

        self._last_true_velocity = 0.0
        self._cached_readings: deque = deque(maxlen=self.params.cache_size)

        logger.info(f"Gyro simulation initialized: σ={self.params.noise_std:.4f}rad/s "
                    f"({self.params.noise_distribution.value}), bias={self.params.bias_rad_per_sec:.4f}rad/s")

    def _sample_noise(self) -> float:
        sigma = self.params.noise_std
        if sigma == 0.0:
            return 0.0
        if self.params.noise_distribution == NoiseDistribution.GAUSSIAN:
            return float(self.rng.normal(0.0, sigma))
        half_width = np.sqrt(3.0) * sigma
        return float(self.rng.uniform(-half_width, half_width))

    def tick(self, chassis_angular_velocity: float, dt: float) -> None:
        """
        Integrate one step of chassis yaw rate.

        Args:
            chassis_angular_velocity: True chassis yaw rate [rad/s]
            dt: Step duration [s]; non-positive steps are ignored
        """
        if dt <= 0:
            return

        self._detect_impact(chassis_angular_velocity, dt)

        measured = chassis_angular_velocity + self.params.bias_rad_per_sec + self._sample_noise()
        self.state.heading_estimate += measured * dt
        self.state.angular_velocity_estimate = measured
        self._cached_readings.append(self.get_gyro_rotation())

    def _detect_impact(self, chassis_angular_velocity: float, dt: float) -> None:
        threshold = self.params.impact_threshold_rad_per_sec2
        angular_acceleration = (chassis_angular_velocity - self._last_true_velocity) / dt
        self._last_true_velocity = chassis_angular_velocity

        if threshold is None or abs(angular_acceleration) <= threshold:
            return

        drift = np.copysign(abs(angular_acceleration) - threshold, angular_acceleration) * \
            self.params.impact_drift_coefficient * dt
        if drift != 0.0:
            logger.info(f"Gyro impact detected: α={angular_acceleration:.1f}rad/s², "
                        f"drift {np.degrees(drift):.3f}°")
            self.state.accumulated_drift_offset += float(drift)

    def apply_collision_drift(self, magnitude: float) -> None:
        """
        Add a permanent heading error, as left behind by a collision.

        Args:
            magnitude: Heading offset [rad]; sign gives the direction
        """
        self.state.accumulated_drift_offset += magnitude
        logger.info(f"Collision drift applied: {np.degrees(magnitude):.2f}° "
                    f"(total {np.degrees(self.state.accumulated_drift_offset):.2f}°)")

    def set_rotation(self, rotation: float) -> None:
        """
        Re-zero the gyro so it reads ``rotation`` now.

        The accumulated drift stays on the books; only the integrated
        heading is adjusted.
        """
        self.state.heading_estimate = rotation - self.state.accumulated_drift_offset

    def get_gyro_rotation(self) -> float:
        return wrap_angle(self.state.heading_estimate + self.state.accumulated_drift_offset)

    def get_gyro_angular_velocity(self) -> float:
        return self.state.angular_velocity_estimate

    def get_cached_gyro_readings(self) -> List[float]:
        """Wrapped heading after each of the most recent steps, oldest first."""
        return list(self._cached_readings)

    def get_state(self) -> GyroState:
        return GyroState(**vars(self.state))

    def get_sensor_info(self) -> Dict[str, Any]:
        return {
            'sensor_type': 'gyro',
            'noise_std': self.params.noise_std,
            'noise_distribution': self.params.noise_distribution.value,
            'bias_rad_per_sec': self.params.bias_rad_per_sec,
            'heading_rad': self.get_gyro_rotation(),
            'drift_offset_rad': self.state.accumulated_drift_offset,
        }
