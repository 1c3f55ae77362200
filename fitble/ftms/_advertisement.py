"""Machine type extraction from FTMS advertisement service data."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from struct import pack

from .._uuid import uuid16_of
from ._ftms import FTMS_SERVICE_UUID16, MachineType

# AD type for "Service Data - 16-bit UUID"
AD_TYPE_SERVICE_DATA_16BIT = 0x16

# UUID (2) + flags (1) + machine type (2)
MIN_FTMS_SERVICE_DATA_LENGTH = 5
FLAG_MACHINE_AVAILABLE = 0x01

_ALL_TYPES = int(
    MachineType.TREADMILL
    | MachineType.CROSS_TRAINER
    | MachineType.STEP_CLIMBER
    | MachineType.STAIR_CLIMBER
    | MachineType.ROWER
    | MachineType.INDOOR_BIKE
)


@dataclass(frozen=True)
class AdvertisementSection:
    """One AD structure from an advertisement: type byte plus payload."""

    data_type: int
    data: bytes


def sections_from_service_data(service_data: Mapping[str, bytes]) -> list[AdvertisementSection]:
    """Rebuild 16-bit service data sections from a UUID -> payload mapping.

    BLE stacks usually strip the UUID from service data and key the payload by
    its 128-bit form; the on-air AD layout is restored here so the extractor
    sees the bytes as they were on air.
    """
    sections = []
    for uuid, payload in service_data.items():
        short = uuid16_of(uuid)
        if short is None:
            continue
        sections.append(
            AdvertisementSection(AD_TYPE_SERVICE_DATA_16BIT, pack("<H", short) + bytes(payload))
        )
    return sections


def _machine_type_field(low: int, high: int) -> int:
    """Return the 16-bit machine type field, correcting byte-swapped senders.

    Heuristic, not part of the standard: some machines put the type in the
    second byte with a zero first byte, i.e. big-endian. A conformant device
    only has a zero low byte when it advertises no type at all, so a zero low
    byte is read as the swapped form. The caller masks the result to the
    defined machine type bits, so reserved bits never reach ``MachineType``.
    """
    if low == 0:
        return high
    return (high << 8) | low


def extract_machine_types(sections: Iterable[AdvertisementSection]) -> MachineType:
    """Return the machine types advertised in FTMS service data.

    Anything that is not well-formed FTMS service data yields ``MachineType.NONE``.
    """
    for section in sections:
        if section.data_type != AD_TYPE_SERVICE_DATA_16BIT:
            continue
        data = section.data
        if len(data) < MIN_FTMS_SERVICE_DATA_LENGTH:
            continue
        if int.from_bytes(data[0:2], "little") != FTMS_SERVICE_UUID16:
            continue

        if not data[2] & FLAG_MACHINE_AVAILABLE:
            return MachineType.NONE
        return MachineType(_machine_type_field(data[3], data[4]) & _ALL_TYPES)

    return MachineType.NONE
