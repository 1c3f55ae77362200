"""Decoders for the FTMS capability characteristics read after connecting."""

from __future__ import annotations

from dataclasses import dataclass
from struct import calcsize, unpack_from

from ._ftms import FitnessMachineFeatures, TargetSettingFeatures


@dataclass(frozen=True)
class SupportedRange:
    """Minimum, maximum and increment of a settable target, in wire units."""

    minimum: int
    maximum: int
    increment: int

    def __contains__(self, value: object) -> bool:
        return isinstance(value, int) and self.minimum <= value <= self.maximum


def decode_fitness_machine_feature(
    data: bytes,
) -> tuple[FitnessMachineFeatures, TargetSettingFeatures]:
    """Decode the Fitness Machine Feature characteristic (two u32 bitfields)."""
    if len(data) < 8:
        return FitnessMachineFeatures.NONE, TargetSettingFeatures.NONE
    fitness, target = unpack_from("<II", data)
    # Reserved bits are dropped.
    return (
        FitnessMachineFeatures(fitness & _mask(FitnessMachineFeatures)),
        TargetSettingFeatures(target & _mask(TargetSettingFeatures)),
    )


def _mask(flags: type[FitnessMachineFeatures] | type[TargetSettingFeatures]) -> int:
    mask = 0
    for member in flags:
        mask |= member.value
    return mask


def _decode_range(fmt: str, data: bytes) -> SupportedRange | None:
    if len(data) < calcsize(fmt):
        return None
    return SupportedRange(*unpack_from(fmt, data))


def decode_supported_speed_range(data: bytes) -> SupportedRange | None:
    """Speed range in 0.01 km/h."""
    return _decode_range("<HHH", data)


def decode_supported_inclination_range(data: bytes) -> SupportedRange | None:
    """Inclination range in 0.1 %."""
    return _decode_range("<hhH", data)


def decode_supported_resistance_level_range(data: bytes) -> SupportedRange | None:
    return _decode_range("<hhH", data)


def decode_supported_heart_rate_range(data: bytes) -> SupportedRange | None:
    """Heart rate range in bpm."""
    return _decode_range("<BBB", data)


def decode_supported_power_range(data: bytes) -> SupportedRange | None:
    """Power range in W."""
    return _decode_range("<hhH", data)
