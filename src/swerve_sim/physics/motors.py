"""
Datasheet presets for motors commonly found on swerve modules.

Figures are the vendor-published values at 12 V (stall torque N·m, stall
current A, free current A, free speed rpm).
"""

from .motor import MotorModel

_NOMINAL_VOLTAGE = 12.0


def kraken_x60(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 7.09, 366.0, 2.0, 6000.0, num_motors)


def kraken_x60_foc(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 9.37, 483.0, 2.0, 5800.0, num_motors)


def falcon500(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 4.69, 257.0, 1.5, 6380.0, num_motors)


def falcon500_foc(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 5.84, 304.0, 1.5, 6080.0, num_motors)


def neo(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 2.6, 105.0, 1.8, 5676.0, num_motors)


def neo_vortex(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 3.6, 211.0, 3.6, 6784.0, num_motors)


def neo550(num_motors: int = 1) -> MotorModel:
    return MotorModel.from_datasheet(_NOMINAL_VOLTAGE, 0.97, 100.0, 1.4, 11000.0, num_motors)


MOTOR_PRESETS = {
    "kraken_x60": kraken_x60,
    "kraken_x60_foc": kraken_x60_foc,
    "falcon500": falcon500,
    "falcon500_foc": falcon500_foc,
    "neo": neo,
    "neo_vortex": neo_vortex,
    "neo550": neo550,
}


def get_motor(name: str, num_motors: int = 1) -> MotorModel:
    """
    Look up a motor preset by name.

    Raises:
        ValueError: If the name is not a known preset
    """
    try:
        preset = MOTOR_PRESETS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown motor '{name}'. Must be one of {sorted(MOTOR_PRESETS)}") from None
    return preset(num_motors)
