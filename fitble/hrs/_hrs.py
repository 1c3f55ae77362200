"""Heart Rate Service measurement decoding."""

from __future__ import annotations

from dataclasses import dataclass

from .._uuid import bt16

HEART_RATE_SERVICE_UUID16 = 0x180D
HEART_RATE_SERVICE_UUID = bt16(HEART_RATE_SERVICE_UUID16)
HEART_RATE_MEASUREMENT_UUID = bt16(0x2A37)

# Heart Rate Measurement flags
FLAG_VALUE_UINT16 = 0x01
FLAG_SENSOR_CONTACT_DETECTED = 0x02
FLAG_SENSOR_CONTACT_SUPPORTED = 0x04
FLAG_ENERGY_EXPENDED = 0x08
FLAG_RR_INTERVALS = 0x10


@dataclass(frozen=True)
class HeartRateMeasurement:
    """Heart Rate Measurement record.

    ``sensor_contact`` is None when the sensor does not report contact.
    ``energy_expended`` is in kJ, RR intervals in units of 1/1024 s.
    """

    heart_rate: int | None = None
    sensor_contact: bool | None = None
    energy_expended: int | None = None
    rr_intervals: tuple[int, ...] = ()


def decode_heart_rate(data: bytes) -> HeartRateMeasurement:
    """Decode a Heart Rate Measurement notification.

    Truncated buffers give the fields that fit; an empty buffer gives an empty
    record.
    """
    if not data:
        return HeartRateMeasurement()

    flags = data[0]
    sensor_contact = None
    if flags & FLAG_SENSOR_CONTACT_SUPPORTED:
        sensor_contact = bool(flags & FLAG_SENSOR_CONTACT_DETECTED)

    size = 2 if flags & FLAG_VALUE_UINT16 else 1
    pos = 1
    if pos + size > len(data):
        return HeartRateMeasurement(sensor_contact=sensor_contact)
    heart_rate = int.from_bytes(data[pos : pos + size], "little")
    pos += size

    energy_expended = None
    if flags & FLAG_ENERGY_EXPENDED:
        if pos + 2 > len(data):
            return HeartRateMeasurement(heart_rate, sensor_contact)
        energy_expended = int.from_bytes(data[pos : pos + 2], "little")
        pos += 2

    rr_intervals: tuple[int, ...] = ()
    if flags & FLAG_RR_INTERVALS:
        rr_intervals = tuple(
            int.from_bytes(data[i : i + 2], "little") for i in range(pos, len(data) - 1, 2)
        )

    return HeartRateMeasurement(heart_rate, sensor_contact, energy_expended, rr_intervals)
