"""Tests for machine type extraction from advertisements."""

import pytest

from fitble.ftms import (
    AD_TYPE_SERVICE_DATA_16BIT,
    AdvertisementSection,
    MachineType,
    bt16,
    extract_machine_types,
    sections_from_service_data,
)


def _service_data(hex_payload):
    return AdvertisementSection(AD_TYPE_SERVICE_DATA_16BIT, bytes.fromhex(hex_payload))


@pytest.mark.unit
def test_byte_swapped_type_field():
    assert extract_machine_types([_service_data("2618010001")]) is MachineType.TREADMILL


@pytest.mark.unit
def test_little_endian_type_field():
    assert extract_machine_types([_service_data("2618012000")]) is MachineType.INDOOR_BIKE


@pytest.mark.unit
def test_multiple_types():
    types = extract_machine_types([_service_data("2618010300")])
    assert types == MachineType.TREADMILL | MachineType.CROSS_TRAINER


@pytest.mark.unit
def test_reserved_bits_dropped():
    assert extract_machine_types([_service_data("261801C100")]) is MachineType.TREADMILL


@pytest.mark.unit
def test_unavailable_machine():
    assert extract_machine_types([_service_data("2618002000")]) is MachineType.NONE


@pytest.mark.unit
@pytest.mark.parametrize(
    "sections",
    [
        [],
        [_service_data("26180120")],
        [_service_data("0D18012000")],
        [AdvertisementSection(0x03, bytes.fromhex("2618012000"))],
    ],
)
def test_unrecognized_advertisement(sections):
    assert extract_machine_types(sections) is MachineType.NONE


@pytest.mark.unit
def test_first_ftms_section_wins():
    sections = [
        _service_data("0D18000000"),
        _service_data("2618011000"),
        _service_data("2618012000"),
    ]
    assert extract_machine_types(sections) is MachineType.ROWER


@pytest.mark.unit
def test_sections_from_service_data():
    sections = sections_from_service_data(
        {
            bt16(0x1826): b"\x01\x20\x00",
            "6e400001-b5a3-f393-e0a9-e50e24dcca9e": b"\xff",
        }
    )
    assert sections == [_service_data("2618012000")]
    assert extract_machine_types(sections) is MachineType.INDOOR_BIKE


@pytest.mark.unit
@pytest.mark.parametrize("uuid", ["zz18", "0000zz18-0000-1000-8000-00805f9b34fb"])
def test_non_hex_service_data_keys_are_skipped(uuid):
    assert sections_from_service_data({uuid: b"\x01\x01\x00"}) == []
