"""Decoders for FTMS machine data notifications.

Every machine data characteristic starts with a little-endian flags field
followed by the fields the flags mark as present, in ascending bit order. Bit 0
is the "More Data" bit and has inverted polarity: when it is clear, the first
field group of the record is present. All other bits are set-means-present.

The layouts below are declarative; ``walk_fields`` is the single engine that
turns flags and bytes into values. A group that does not fit in the remaining
bytes ends the walk, and every field decoded up to that point is kept.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ..hrs._hrs import HEART_RATE_MEASUREMENT_UUID, HeartRateMeasurement, decode_heart_rate
from ._ftms import (
    CROSS_TRAINER_DATA_UUID,
    INDOOR_BIKE_DATA_UUID,
    ROWER_DATA_UUID,
    STAIR_CLIMBER_DATA_UUID,
    STEP_CLIMBER_DATA_UUID,
    TRAINING_STATUS_UUID,
    TREADMILL_DATA_UUID,
    TrainingStatus,
)

# Training Status flags
TRAINING_STATUS_FLAG_STRING = 0x01
TRAINING_STATUS_FLAG_EXTENDED_STRING = 0x02
TRAINING_STATUS_HEADER_LENGTH = 2


@dataclass(frozen=True)
class Converter:
    """Fixed-width little-endian integer reader."""

    size: int
    from_buffer: Callable[[bytes, int], int]


def _make_int_converter(size: int, *, signed: bool = False) -> Converter:
    """Factory for integer converters."""

    def from_buffer(buffer: bytes, pos: int) -> int:
        return int.from_bytes(buffer[pos : pos + size], "little", signed=signed)

    return Converter(size, from_buffer)


U8 = _make_int_converter(1)
U16 = _make_int_converter(2)
S16 = _make_int_converter(2, signed=True)
U24 = _make_int_converter(3)


@dataclass(frozen=True)
class FieldGroup:
    """Fields gated by one flag bit, read back to back."""

    bit: int
    fields: tuple[tuple[str, Converter], ...]
    inverted: bool = False

    @property
    def size(self) -> int:
        return sum(converter.size for _, converter in self.fields)

    def is_present(self, flags: int) -> bool:
        is_set = bool(flags & (1 << self.bit))
        return not is_set if self.inverted else is_set


@dataclass(frozen=True)
class FrameLayout:
    """Flags width plus the field groups of one machine data characteristic."""

    flags_size: int
    groups: tuple[FieldGroup, ...]


def _group(bit: int, *fields: tuple[str, Converter]) -> FieldGroup:
    # Bit 0 is always "More Data", which gates the primary group when clear.
    return FieldGroup(bit, fields, inverted=bit == 0)


_ENERGY = (
    ("total_energy", U16),
    ("energy_per_hour", U16),
    ("energy_per_minute", U8),
)


def walk_fields(layout: FrameLayout, data: bytes) -> dict[str, int]:
    """Decode the fields present in ``data`` according to ``layout``.

    Returns a mapping of field name to raw integer value. Absent or truncated
    fields are simply missing from the result.
    """
    if len(data) < layout.flags_size:
        return {}

    flags = int.from_bytes(data[: layout.flags_size], "little")
    pos = layout.flags_size
    values: dict[str, int] = {}
    for group in layout.groups:
        if not group.is_present(flags):
            continue
        if pos + group.size > len(data):
            break
        for name, converter in group.fields:
            values[name] = converter.from_buffer(data, pos)
            pos += converter.size
    return values


TREADMILL_LAYOUT = FrameLayout(
    2,
    (
        _group(0, ("instantaneous_speed", U16)),
        _group(1, ("average_speed", U16)),
        _group(2, ("total_distance", U24)),
        _group(3, ("inclination", S16), ("ramp_angle", S16)),
        _group(4, ("positive_elevation_gain", U16), ("negative_elevation_gain", U16)),
        _group(5, ("instantaneous_pace", U8)),
        _group(6, ("average_pace", U8)),
        _group(7, *_ENERGY),
        _group(8, ("heart_rate", U8)),
        _group(9, ("metabolic_equivalent", U8)),
        _group(10, ("elapsed_time", U16)),
        _group(11, ("remaining_time", U16)),
        _group(12, ("force_on_belt", S16), ("power_output", S16)),
    ),
)

CROSS_TRAINER_LAYOUT = FrameLayout(
    3,
    (
        _group(0, ("instantaneous_speed", U16)),
        _group(1, ("average_speed", U16)),
        _group(2, ("total_distance", U24)),
        _group(3, ("steps_per_minute", U16), ("average_step_rate", U16)),
        _group(4, ("stride_count", U16)),
        _group(5, ("positive_elevation_gain", U16), ("negative_elevation_gain", U16)),
        _group(6, ("inclination", S16), ("ramp_setting", S16)),
        _group(7, ("resistance_level", S16)),
        _group(8, ("instantaneous_power", S16)),
        _group(9, ("average_power", S16)),
        _group(10, *_ENERGY),
        _group(11, ("heart_rate", U8)),
        _group(12, ("metabolic_equivalent", U8)),
        _group(13, ("elapsed_time", U16)),
        _group(14, ("remaining_time", U16)),
    ),
)

ROWER_LAYOUT = FrameLayout(
    2,
    (
        _group(0, ("stroke_rate", U8), ("stroke_count", U16)),
        _group(1, ("average_stroke_rate", U8)),
        _group(2, ("total_distance", U24)),
        _group(3, ("instantaneous_pace", U16)),
        _group(4, ("average_pace", U16)),
        _group(5, ("instantaneous_power", S16)),
        _group(6, ("average_power", S16)),
        _group(7, ("resistance_level", S16)),
        _group(8, *_ENERGY),
        _group(9, ("heart_rate", U8)),
        _group(10, ("metabolic_equivalent", U8)),
        _group(11, ("elapsed_time", U16)),
        _group(12, ("remaining_time", U16)),
    ),
)

INDOOR_BIKE_LAYOUT = FrameLayout(
    2,
    (
        _group(0, ("instantaneous_speed", U16)),
        _group(1, ("average_speed", U16)),
        _group(2, ("instantaneous_cadence", U16)),
        _group(3, ("average_cadence", U16)),
        _group(4, ("total_distance", U24)),
        _group(5, ("resistance_level", S16)),
        _group(6, ("instantaneous_power", S16)),
        _group(7, ("average_power", S16)),
        _group(8, *_ENERGY),
        _group(9, ("heart_rate", U8)),
        _group(10, ("metabolic_equivalent", U8)),
        _group(11, ("elapsed_time", U16)),
        _group(12, ("remaining_time", U16)),
    ),
)

STEP_CLIMBER_LAYOUT = FrameLayout(
    2,
    (
        _group(0, ("floors", U16), ("step_count", U16)),
        _group(1, ("steps_per_minute", U16)),
        _group(2, ("average_step_rate", U16)),
        _group(3, ("positive_elevation_gain", U16)),
        _group(4, *_ENERGY),
        _group(5, ("heart_rate", U8)),
        _group(6, ("metabolic_equivalent", U8)),
        _group(7, ("elapsed_time", U16)),
        _group(8, ("remaining_time", U16)),
    ),
)

STAIR_CLIMBER_LAYOUT = FrameLayout(
    2,
    (
        _group(0, ("floors", U16)),
        _group(1, ("steps_per_minute", U16)),
        _group(2, ("average_step_rate", U16)),
        _group(3, ("positive_elevation_gain", U16)),
        _group(4, ("stride_count", U16)),
        _group(5, *_ENERGY),
        _group(6, ("heart_rate", U8)),
        _group(7, ("metabolic_equivalent", U8)),
        _group(8, ("elapsed_time", U16)),
        _group(9, ("remaining_time", U16)),
    ),
)


@dataclass(frozen=True)
class TreadmillData:
    """Treadmill Data record; raw values in Fitness Machine Service units.

    Speeds in 0.01 km/h, distance in m, inclination in 0.1 %, ramp angle in
    0.1 degree, elevation gain in 0.1 m, pace in 0.1 km/min, energy in kcal,
    MET in 0.1, times in s, force in N and power in W.
    """

    instantaneous_speed: int | None = None
    average_speed: int | None = None
    total_distance: int | None = None
    inclination: int | None = None
    ramp_angle: int | None = None
    positive_elevation_gain: int | None = None
    negative_elevation_gain: int | None = None
    instantaneous_pace: int | None = None
    average_pace: int | None = None
    total_energy: int | None = None
    energy_per_hour: int | None = None
    energy_per_minute: int | None = None
    heart_rate: int | None = None
    metabolic_equivalent: int | None = None
    elapsed_time: int | None = None
    remaining_time: int | None = None
    force_on_belt: int | None = None
    power_output: int | None = None


@dataclass(frozen=True)
class CrossTrainerData:
    """Cross Trainer Data record."""

    instantaneous_speed: int | None = None
    average_speed: int | None = None
    total_distance: int | None = None
    steps_per_minute: int | None = None
    average_step_rate: int | None = None
    stride_count: int | None = None
    positive_elevation_gain: int | None = None
    negative_elevation_gain: int | None = None
    inclination: int | None = None
    ramp_setting: int | None = None
    resistance_level: int | None = None
    instantaneous_power: int | None = None
    average_power: int | None = None
    total_energy: int | None = None
    energy_per_hour: int | None = None
    energy_per_minute: int | None = None
    heart_rate: int | None = None
    metabolic_equivalent: int | None = None
    elapsed_time: int | None = None
    remaining_time: int | None = None


@dataclass(frozen=True)
class RowerData:
    """Rower Data record; stroke rates in 0.5 strokes/min, pace in s/500 m."""

    stroke_rate: int | None = None
    stroke_count: int | None = None
    average_stroke_rate: int | None = None
    total_distance: int | None = None
    instantaneous_pace: int | None = None
    average_pace: int | None = None
    instantaneous_power: int | None = None
    average_power: int | None = None
    resistance_level: int | None = None
    total_energy: int | None = None
    energy_per_hour: int | None = None
    energy_per_minute: int | None = None
    heart_rate: int | None = None
    metabolic_equivalent: int | None = None
    elapsed_time: int | None = None
    remaining_time: int | None = None


@dataclass(frozen=True)
class IndoorBikeData:
    """Indoor Bike Data record; cadence in 0.5 rpm."""

    instantaneous_speed: int | None = None
    average_speed: int | None = None
    instantaneous_cadence: int | None = None
    average_cadence: int | None = None
    total_distance: int | None = None
    resistance_level: int | None = None
    instantaneous_power: int | None = None
    average_power: int | None = None
    total_energy: int | None = None
    energy_per_hour: int | None = None
    energy_per_minute: int | None = None
    heart_rate: int | None = None
    metabolic_equivalent: int | None = None
    elapsed_time: int | None = None
    remaining_time: int | None = None


@dataclass(frozen=True)
class StepClimberData:
    floors: int | None = None
    step_count: int | None = None
    steps_per_minute: int | None = None
    average_step_rate: int | None = None
    positive_elevation_gain: int | None = None
    total_energy: int | None = None
    energy_per_hour: int | None = None
    energy_per_minute: int | None = None
    heart_rate: int | None = None
    metabolic_equivalent: int | None = None
    elapsed_time: int | None = None
    remaining_time: int | None = None


@dataclass(frozen=True)
class StairClimberData:
    floors: int | None = None
    steps_per_minute: int | None = None
    average_step_rate: int | None = None
    positive_elevation_gain: int | None = None
    stride_count: int | None = None
    total_energy: int | None = None
    energy_per_hour: int | None = None
    energy_per_minute: int | None = None
    heart_rate: int | None = None
    metabolic_equivalent: int | None = None
    elapsed_time: int | None = None
    remaining_time: int | None = None


@dataclass(frozen=True)
class TrainingStatusData:
    """Training status code and optional description."""

    status: TrainingStatus = TrainingStatus.OTHER
    text: str | None = None


@dataclass(frozen=True)
class PendingTrainingStatus:
    """Training status whose text continues in an extended string.

    The transport must read the Training Status characteristic once more,
    bypassing any cache, and pass the result to ``complete_training_status``.
    """

    status: TrainingStatus
    text: str


def decode_treadmill_data(data: bytes) -> TreadmillData:
    return TreadmillData(**walk_fields(TREADMILL_LAYOUT, data))


def decode_cross_trainer_data(data: bytes) -> CrossTrainerData:
    return CrossTrainerData(**walk_fields(CROSS_TRAINER_LAYOUT, data))


def decode_rower_data(data: bytes) -> RowerData:
    return RowerData(**walk_fields(ROWER_LAYOUT, data))


def decode_indoor_bike_data(data: bytes) -> IndoorBikeData:
    return IndoorBikeData(**walk_fields(INDOOR_BIKE_LAYOUT, data))


def decode_step_climber_data(data: bytes) -> StepClimberData:
    return StepClimberData(**walk_fields(STEP_CLIMBER_LAYOUT, data))


def decode_stair_climber_data(data: bytes) -> StairClimberData:
    return StairClimberData(**walk_fields(STAIR_CLIMBER_LAYOUT, data))


def _training_status(code: int) -> TrainingStatus:
    try:
        return TrainingStatus(code)
    except ValueError:
        return TrainingStatus.OTHER


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def decode_training_status(data: bytes) -> TrainingStatusData | PendingTrainingStatus:
    """Decode a Training Status notification.

    Layout: flags (u8), status (u8), then a UTF-8 string when flag bit 0 is set.
    """
    if len(data) < TRAINING_STATUS_HEADER_LENGTH:
        return TrainingStatusData()

    flags = data[0]
    status = _training_status(data[1])
    if not flags & TRAINING_STATUS_FLAG_STRING:
        return TrainingStatusData(status)

    text = _decode_text(data[TRAINING_STATUS_HEADER_LENGTH:])
    if flags & TRAINING_STATUS_FLAG_EXTENDED_STRING:
        return PendingTrainingStatus(status, text)
    return TrainingStatusData(status, text)


def complete_training_status(
    pending: PendingTrainingStatus, extended: bytes | None
) -> TrainingStatusData:
    """Finish a pending training status with the value of the extra read.

    ``extended`` is None when the read failed, which leaves the text empty.
    """
    if extended is None or len(extended) < TRAINING_STATUS_HEADER_LENGTH:
        return TrainingStatusData(pending.status, "")
    text = _decode_text(extended[TRAINING_STATUS_HEADER_LENGTH:])
    return TrainingStatusData(pending.status, text)


class CharacteristicKind(Enum):
    """Notification sources understood by ``decode_notification``."""

    TREADMILL = "treadmill"
    CROSS_TRAINER = "cross_trainer"
    ROWER = "rower"
    INDOOR_BIKE = "indoor_bike"
    STEP_CLIMBER = "step_climber"
    STAIR_CLIMBER = "stair_climber"
    TRAINING_STATUS = "training_status"
    HEART_RATE = "heart_rate"


MachineTelemetryFrame = Union[
    TreadmillData,
    CrossTrainerData,
    RowerData,
    IndoorBikeData,
    StepClimberData,
    StairClimberData,
    TrainingStatusData,
    PendingTrainingStatus,
    HeartRateMeasurement,
]

_DECODERS: dict[CharacteristicKind, Callable[[bytes], Any]] = {
    CharacteristicKind.TREADMILL: decode_treadmill_data,
    CharacteristicKind.CROSS_TRAINER: decode_cross_trainer_data,
    CharacteristicKind.ROWER: decode_rower_data,
    CharacteristicKind.INDOOR_BIKE: decode_indoor_bike_data,
    CharacteristicKind.STEP_CLIMBER: decode_step_climber_data,
    CharacteristicKind.STAIR_CLIMBER: decode_stair_climber_data,
    CharacteristicKind.TRAINING_STATUS: decode_training_status,
    CharacteristicKind.HEART_RATE: decode_heart_rate,
}

CHARACTERISTIC_KINDS = {
    TREADMILL_DATA_UUID: CharacteristicKind.TREADMILL,
    CROSS_TRAINER_DATA_UUID: CharacteristicKind.CROSS_TRAINER,
    ROWER_DATA_UUID: CharacteristicKind.ROWER,
    INDOOR_BIKE_DATA_UUID: CharacteristicKind.INDOOR_BIKE,
    STEP_CLIMBER_DATA_UUID: CharacteristicKind.STEP_CLIMBER,
    STAIR_CLIMBER_DATA_UUID: CharacteristicKind.STAIR_CLIMBER,
    TRAINING_STATUS_UUID: CharacteristicKind.TRAINING_STATUS,
    HEART_RATE_MEASUREMENT_UUID: CharacteristicKind.HEART_RATE,
}


def kind_for_uuid(uuid: str) -> CharacteristicKind | None:
    """Return the notification kind of a characteristic UUID, or None if unknown."""
    return CHARACTERISTIC_KINDS.get(uuid.lower())


def decode_notification(kind: CharacteristicKind, data: bytes) -> MachineTelemetryFrame:
    """Decode a raw notification of the given kind."""
    return _DECODERS[kind](bytes(data))
