"""
Unit conversion and angle helpers shared by the physics models.

All simulation quantities are SI: meters, seconds, radians, newtons, volts
and amps. These helpers convert datasheet units (rpm, inches) at the
edges of the package.
"""

import math

TWO_PI = 2.0 * math.pi
GRAVITY = 9.80665  # Standard gravity [m/s²]


def rpm_to_rad_per_sec(rpm: float) -> float:
    """Convert revolutions per minute to radians per second."""
    return rpm * TWO_PI / 60.0


def inches_to_meters(inches: float) -> float:
    return inches * 0.0254


def wrap_angle(angle: float) -> float:
    """
    Wrap an angle to the canonical range (-π, π].

    Args:
        angle: Angle in radians, any magnitude

    Returns:
        Equivalent angle in (-π, π]

    Note:
        math.remainder keeps full precision for large accumulated angles.
    """
    wrapped = math.remainder(angle, TWO_PI)
    if wrapped <= -math.pi:
        wrapped += TWO_PI
    return wrapped
