"""Tests for the bleak scanner adapters."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fitble import _scanner
from fitble.ftms import FTMS_SERVICE_UUID, MachineType
from fitble.hrs import HEART_RATE_SERVICE_UUID
from fitble.presence import PresenceMonitor


def _device(address, name=None):
    device = MagicMock()
    device.address = address
    device.name = name
    return device


def _advertisement(rssi, *, local_name=None, service_data=None, service_uuids=None):
    adv = MagicMock()
    adv.rssi = rssi
    adv.local_name = local_name
    adv.service_data = service_data or {}
    adv.service_uuids = service_uuids or []
    return adv


@pytest.fixture
def bleak_scanner():
    scanner = MagicMock()
    scanner.start = AsyncMock()
    scanner.stop = AsyncMock()
    return scanner


@pytest.mark.unit
def test_detection_feeds_presence_monitor(bleak_scanner, clock):
    factory = MagicMock(return_value=bleak_scanner)
    monitor = PresenceMonitor(clock=clock)
    _scanner.PresenceScanner(monitor, scanner_factory=factory)

    detection_callback = factory.call_args.kwargs["detection_callback"]
    assert factory.call_args.kwargs["service_uuids"] == [
        FTMS_SERVICE_UUID,
        HEART_RATE_SERVICE_UUID,
    ]

    detection_callback(
        _device("AA:BB:CC:DD:EE:01"),
        _advertisement(
            -58, local_name="Treadmill T1", service_data={FTMS_SERVICE_UUID: b"\x01\x01\x00"}
        ),
    )

    record = monitor.table.get(0xAABBCCDDEE01)
    assert record.identity.name == "Treadmill T1"
    assert record.machine_types is MachineType.TREADMILL
    assert record.smoothed_rssi == -58.0


@pytest.mark.unit
def test_non_mac_addresses_are_ignored(bleak_scanner, clock):
    factory = MagicMock(return_value=bleak_scanner)
    monitor = PresenceMonitor(clock=clock)
    _scanner.PresenceScanner(monitor, scanner_factory=factory)

    detection_callback = factory.call_args.kwargs["detection_callback"]
    detection_callback(_device("5A1C3E0B-8C44-4F1E-9D4A-2B6F0E7C9A11"), _advertisement(-60))

    assert len(monitor.table) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_scanner_starts_and_stops_monitor(bleak_scanner, clock):
    monitor = PresenceMonitor(clock=clock)
    async with _scanner.PresenceScanner(monitor, scanner_factory=lambda **_: bleak_scanner):
        assert monitor.is_running
        bleak_scanner.start.assert_awaited_once()

    bleak_scanner.stop.assert_awaited_once()
    assert not monitor.is_running


@pytest.fixture
def discovered(monkeypatch):
    devices = {
        "AA:BB:CC:DD:EE:01": (
            _device("AA:BB:CC:DD:EE:01"),
            _advertisement(
                -80, local_name="Bike B2", service_data={FTMS_SERVICE_UUID: b"\x01\x20\x00"}
            ),
        ),
        "AA:BB:CC:DD:EE:02": (
            _device("AA:BB:CC:DD:EE:02", "HRM"),
            _advertisement(-50, service_uuids=[HEART_RATE_SERVICE_UUID]),
        ),
    }
    discover = AsyncMock(return_value=devices)
    monkeypatch.setattr(_scanner.BleakScanner, "discover", discover)
    return discover


@pytest.mark.unit
@pytest.mark.asyncio
async def test_find_all_fitness_devices(discovered):
    devices = await _scanner.find_all_fitness_devices(timeout=1.0)

    assert [device.name for device in devices] == ["HRM", "Bike B2"]
    assert devices[0].heart_rate_sensor
    assert devices[1].machine_types is MachineType.INDOOR_BIKE
    assert discovered.await_args.kwargs["return_adv"] is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_find_fitness_device_by_name(discovered):
    device = await _scanner.find_fitness_device("bike b2", timeout=1.0)
    assert device.address == "AA:BB:CC:DD:EE:01"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_find_fitness_device_not_found(discovered):
    with pytest.raises(TimeoutError):
        await _scanner.find_fitness_device("rower", timeout=1.0)
