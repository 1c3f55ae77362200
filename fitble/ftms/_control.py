"""Fitness Machine Control Point encoding.

Every procedure is a single opcode byte followed by its parameters in
little-endian order. Parameters are raw integers in Fitness Machine Service
units (speed in 0.01 km/h, inclination in 0.1 %, and so on). A value
outside its wire type is rejected before anything is encoded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from struct import pack


class CommandRangeError(ValueError):
    """Raised when a control point parameter does not fit its wire type."""

    def __init__(self, field: str, value: int, minimum: int, maximum: int) -> None:
        super().__init__(f"{field}={value} outside [{minimum}, {maximum}]")
        self.field = field
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


class ControlPointOpcode(IntEnum):
    """Fitness Machine Control Point opcodes."""

    REQUEST_CONTROL = 0x00
    RESET = 0x01
    SET_TARGET_SPEED = 0x02
    SET_TARGET_INCLINATION = 0x03
    SET_TARGET_RESISTANCE_LEVEL = 0x04
    SET_TARGET_POWER = 0x05
    SET_TARGET_HEART_RATE = 0x06
    START_OR_RESUME = 0x07
    STOP_OR_PAUSE = 0x08
    SET_TARGETED_EXPENDED_ENERGY = 0x09
    SET_TARGETED_NUMBER_OF_STEPS = 0x0A
    SET_TARGETED_NUMBER_OF_STRIDES = 0x0B
    SET_TARGETED_DISTANCE = 0x0C
    SET_TARGETED_TRAINING_TIME = 0x0D
    SET_TARGETED_TIME_IN_TWO_HEART_RATE_ZONES = 0x0E
    SET_TARGETED_TIME_IN_THREE_HEART_RATE_ZONES = 0x0F
    SET_TARGETED_TIME_IN_FIVE_HEART_RATE_ZONES = 0x10
    SET_INDOOR_BIKE_SIMULATION_PARAMETERS = 0x11
    SET_WHEEL_CIRCUMFERENCE = 0x12
    SPIN_DOWN_CONTROL = 0x13
    SET_TARGETED_CADENCE = 0x14
    RESPONSE_CODE = 0x80


class ControlPointResult(IntEnum):
    """Result codes carried in a control point response."""

    SUCCESS = 0x01
    OP_CODE_NOT_SUPPORTED = 0x02
    INVALID_PARAMETER = 0x03
    OPERATION_FAILED = 0x04
    CONTROL_NOT_PERMITTED = 0x05


class StopOrPauseControl(IntEnum):
    STOP = 0x01
    PAUSE = 0x02


class SpinDownControl(IntEnum):
    START = 0x01
    IGNORE = 0x02


@dataclass(frozen=True)
class _WireType:
    fmt: str
    minimum: int
    maximum: int


UINT8 = _WireType("B", 0, 0xFF)
UINT16 = _WireType("H", 0, 0xFFFF)
SINT16 = _WireType("h", -0x8000, 0x7FFF)
UINT24 = _WireType("", 0, 0xFFFFFF)


def _check(field: str, value: int, wire: _WireType) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field} must be an int, got {type(value).__name__}")
    if not wire.minimum <= value <= wire.maximum:
        raise CommandRangeError(field, value, wire.minimum, wire.maximum)
    return value


def _encode(opcode: ControlPointOpcode, *params: tuple[str, int, _WireType]) -> bytes:
    """Validate every parameter, then build ``opcode || params``."""
    for field, value, wire in params:
        _check(field, value, wire)

    payload = bytearray(pack("<B", opcode))
    for _, value, wire in params:
        if wire is UINT24:
            payload += value.to_bytes(3, "little")
        else:
            payload += pack(f"<{wire.fmt}", value)
    return bytes(payload)


def request_control() -> bytes:
    return _encode(ControlPointOpcode.REQUEST_CONTROL)


def reset() -> bytes:
    return _encode(ControlPointOpcode.RESET)


def set_target_speed(speed: int) -> bytes:
    """Target speed in 0.01 km/h."""
    return _encode(ControlPointOpcode.SET_TARGET_SPEED, ("speed", speed, UINT16))


def set_target_inclination(inclination: int) -> bytes:
    """Target inclination in 0.1 %."""
    return _encode(
        ControlPointOpcode.SET_TARGET_INCLINATION, ("inclination", inclination, SINT16)
    )


def set_target_resistance_level(level: int) -> bytes:
    """Target resistance level in steps of 0.1."""
    return _encode(ControlPointOpcode.SET_TARGET_RESISTANCE_LEVEL, ("level", level, UINT8))


def set_target_power(power: int) -> bytes:
    """Target power in W."""
    return _encode(ControlPointOpcode.SET_TARGET_POWER, ("power", power, SINT16))


def set_target_heart_rate(heart_rate: int) -> bytes:
    """Target heart rate in bpm."""
    return _encode(ControlPointOpcode.SET_TARGET_HEART_RATE, ("heart_rate", heart_rate, UINT8))


def start_or_resume() -> bytes:
    return _encode(ControlPointOpcode.START_OR_RESUME)


def stop_or_pause(control: int = StopOrPauseControl.STOP) -> bytes:
    return _encode(ControlPointOpcode.STOP_OR_PAUSE, ("control", int(control), UINT8))


def set_targeted_expended_energy(energy: int) -> bytes:
    """Targeted expended energy in kcal."""
    return _encode(ControlPointOpcode.SET_TARGETED_EXPENDED_ENERGY, ("energy", energy, UINT16))


def set_targeted_number_of_steps(steps: int) -> bytes:
    return _encode(ControlPointOpcode.SET_TARGETED_NUMBER_OF_STEPS, ("steps", steps, UINT16))


def set_targeted_number_of_strides(strides: int) -> bytes:
    return _encode(
        ControlPointOpcode.SET_TARGETED_NUMBER_OF_STRIDES, ("strides", strides, UINT16)
    )


def set_targeted_distance(distance: int) -> bytes:
    """Targeted distance in m."""
    return _encode(ControlPointOpcode.SET_TARGETED_DISTANCE, ("distance", distance, UINT24))


def set_targeted_training_time(seconds: int) -> bytes:
    return _encode(ControlPointOpcode.SET_TARGETED_TRAINING_TIME, ("seconds", seconds, UINT16))


def _zone_times(
    opcode: ControlPointOpcode, zones: tuple[str, ...], times: tuple[int, ...]
) -> bytes:
    if len(times) != len(zones):
        raise ValueError(f"expected {len(zones)} zone times, got {len(times)}")
    return _encode(opcode, *((zone, time, UINT16) for zone, time in zip(zones, times)))


def set_targeted_time_in_two_heart_rate_zones(fat_burn: int, fitness: int) -> bytes:
    """Targeted time in s per heart rate zone."""
    return _zone_times(
        ControlPointOpcode.SET_TARGETED_TIME_IN_TWO_HEART_RATE_ZONES,
        ("fat_burn", "fitness"),
        (fat_burn, fitness),
    )


def set_targeted_time_in_three_heart_rate_zones(light: int, moderate: int, hard: int) -> bytes:
    return _zone_times(
        ControlPointOpcode.SET_TARGETED_TIME_IN_THREE_HEART_RATE_ZONES,
        ("light", "moderate", "hard"),
        (light, moderate, hard),
    )


def set_targeted_time_in_five_heart_rate_zones(
    very_light: int, light: int, moderate: int, hard: int, maximum: int
) -> bytes:
    return _zone_times(
        ControlPointOpcode.SET_TARGETED_TIME_IN_FIVE_HEART_RATE_ZONES,
        ("very_light", "light", "moderate", "hard", "maximum"),
        (very_light, light, moderate, hard, maximum),
    )


def set_indoor_bike_simulation_parameters(
    wind_speed: int, grade: int, rolling_resistance: int, wind_resistance: int
) -> bytes:
    """Simulation parameters.

    Args:
        wind_speed: Wind speed in 0.001 m/s
        grade: Grade in 0.01 %
        rolling_resistance: Coefficient of rolling resistance in 0.0001
        wind_resistance: Wind resistance coefficient in 0.01 kg/m
    """
    return _encode(
        ControlPointOpcode.SET_INDOOR_BIKE_SIMULATION_PARAMETERS,
        ("wind_speed", wind_speed, SINT16),
        ("grade", grade, SINT16),
        ("rolling_resistance", rolling_resistance, UINT8),
        ("wind_resistance", wind_resistance, UINT8),
    )


def set_wheel_circumference(circumference: int) -> bytes:
    """Wheel circumference in 0.1 mm."""
    return _encode(
        ControlPointOpcode.SET_WHEEL_CIRCUMFERENCE, ("circumference", circumference, UINT16)
    )


def spin_down_control(control: int = SpinDownControl.START) -> bytes:
    return _encode(ControlPointOpcode.SPIN_DOWN_CONTROL, ("control", int(control), UINT8))


def set_targeted_cadence(cadence: int) -> bytes:
    """Targeted cadence in 0.5 steps/min."""
    return _encode(ControlPointOpcode.SET_TARGETED_CADENCE, ("cadence", cadence, UINT16))


@dataclass(frozen=True)
class ControlPointResponse:
    """Indication sent by the machine in reply to a control point write.

    For a successful spin down start the machine also reports the target speed
    band (0.01 km/h) the user has to reach.
    """

    request_opcode: int
    result: ControlPointResult | int
    spin_down_target_speed_low: int | None = None
    spin_down_target_speed_high: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.result == ControlPointResult.SUCCESS


def encode_control_point_response(
    request_opcode: int,
    result: ControlPointResult,
) -> bytes:
    """Encode an FTMS Control Point response."""
    return pack(
        "<BBB",
        ControlPointOpcode.RESPONSE_CODE,
        request_opcode & 0xFF,
        int(result) & 0xFF,
    )


def decode_control_point_response(data: bytes) -> ControlPointResponse | None:
    """Parse a control point indication; None if it is not a response."""
    if len(data) < 3 or data[0] != ControlPointOpcode.RESPONSE_CODE:
        return None

    request_opcode = data[1]
    try:
        result: ControlPointResult | int = ControlPointResult(data[2])
    except ValueError:
        result = data[2]

    low = high = None
    if (
        request_opcode == ControlPointOpcode.SPIN_DOWN_CONTROL
        and result == ControlPointResult.SUCCESS
        and len(data) >= 7
    ):
        low = int.from_bytes(data[3:5], "little")
        high = int.from_bytes(data[5:7], "little")

    return ControlPointResponse(request_opcode, result, low, high)
