"""Shared fixtures and configuration for pytest."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from fitble.presence import DeviceIdentity


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def treadmill_identity():
    return DeviceIdentity.from_mac("AA:BB:CC:DD:EE:01", "Treadmill T1")


@pytest.fixture
def bike_identity():
    return DeviceIdentity.from_mac("AA:BB:CC:DD:EE:02", "Bike B2")


def make_services(*characteristic_uuids: str, service_uuid: str | None = None) -> MagicMock:
    """Build a bleak service collection stand-in exposing the given UUIDs."""
    present = set(characteristic_uuids)
    services = MagicMock()
    services.get_service.side_effect = lambda uuid: object() if uuid == service_uuid else None
    services.get_characteristic.side_effect = lambda uuid: object() if uuid in present else None
    return services


@pytest.fixture
def bleak_client():
    """A BleakClient stand-in with async GATT operations."""
    client = MagicMock()
    client.address = "AA:BB:CC:DD:EE:01"
    client.is_connected = True
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.start_notify = AsyncMock()
    client.stop_notify = AsyncMock()
    client.read_gatt_char = AsyncMock()
    client.write_gatt_char = AsyncMock()
    return client


@pytest.fixture
def services():
    """Factory for service collections: ``services(*char_uuids, service_uuid=...)``."""
    return make_services
