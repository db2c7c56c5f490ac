"""
Wheel traction limit (Coulomb friction at the contact patch).

Traction Model:
    F_max = μ * N
    F_transmitted = clamp(F_requested, -F_max, +F_max)

    where:
    - μ: Grip coefficient of the tread material against the carpet
    - N: Normal load carried by this wheel [N]

Force requested beyond F_max is dropped. That is how wheel slip shows up in
this model: the module accelerates slower than commanded, and nothing is
raised or logged above debug level.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WheelTractionProfile:
    """
    Tread material and size of a drive wheel.

    Attributes:
        grip_coefficient: Coefficient of friction μ; 0 disables the traction limit
        wheel_diameter_meters: Wheel diameter [m]
    """

    grip_coefficient: float
    wheel_diameter_meters: float

    def __post_init__(self):
        if self.grip_coefficient < 0:
            raise ValueError(f"Grip coefficient must be non-negative, got {self.grip_coefficient}")
        if not self.wheel_diameter_meters > 0:
            raise ValueError(f"Wheel diameter must be positive, got {self.wheel_diameter_meters}")

    @property
    def wheel_radius_meters(self) -> float:
        return self.wheel_diameter_meters / 2.0

    @property
    def limits_traction(self) -> bool:
        return self.grip_coefficient > 0


class TractionLimiter:
    """
    Caps the longitudinal force one wheel can put on the ground.

    Attributes:
        profile: Wheel traction profile
        normal_load_newtons: Default normal load on the wheel [N]
    """

    def __init__(self, profile: WheelTractionProfile, normal_load_newtons: float):
        """
        Args:
            profile: Wheel tread and size
            normal_load_newtons: This wheel's share of the robot weight [N]

        Raises:
            ValueError: If the normal load is not positive
        """
        if not normal_load_newtons > 0:
            raise ValueError(f"Normal load must be positive, got {normal_load_newtons}")
        self.profile = profile
        self.normal_load_newtons = normal_load_newtons

    def max_force(self, normal_load_newtons: Optional[float] = None) -> float:
        """Largest force magnitude the wheel can transmit [N]; inf when unlimited."""
        if not self.profile.limits_traction:
            return float("inf")
        load = self.normal_load_newtons if normal_load_newtons is None else normal_load_newtons
        return self.profile.grip_coefficient * load

    def is_slipping(self, requested_force: float, normal_load_newtons: Optional[float] = None) -> bool:
        return abs(requested_force) > self.max_force(normal_load_newtons)

    def limit(self, requested_force: float, normal_load_newtons: Optional[float] = None) -> float:
        """
        Clamp a requested contact-patch force to the grip limit.

        Args:
            requested_force: Force the drivetrain is trying to apply [N]
            normal_load_newtons: Override of the normal load for this step [N]

        Returns:
            Transmitted force [N]
        """
        max_force = self.max_force(normal_load_newtons)
        if abs(requested_force) > max_force:
            logger.debug(f"Wheel slip: requested {requested_force:.1f}N, limit {max_force:.1f}N")
            return float(np.copysign(max_force, requested_force))
        return requested_force
