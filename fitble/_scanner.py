from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData

from .ftms import FTMS_SERVICE_UUID, MachineType, extract_machine_types, sections_from_service_data
from .hrs import HEART_RATE_SERVICE_UUID
from .presence import DeviceIdentity, PresenceMonitor

LOGGER = logging.getLogger(__name__)

FITNESS_SERVICE_UUIDS = [FTMS_SERVICE_UUID, HEART_RATE_SERVICE_UUID]


@dataclass(frozen=True)
class FitnessMachineDevice:
    """Metadata for a discovered fitness machine or heart rate sensor."""

    address: str
    name: str | None
    rssi: int
    machine_types: MachineType
    heart_rate_sensor: bool = False


def _identity_of(device: BLEDevice, advertisement: AdvertisementData) -> DeviceIdentity | None:
    """Build an identity from a bleak device, or None if the address is not a MAC."""
    try:
        return DeviceIdentity.from_mac(device.address, advertisement.local_name or device.name)
    except ValueError:
        # CoreBluetooth reports per-host UUIDs instead of hardware addresses.
        LOGGER.debug("Ignoring device with non-MAC address %s", device.address)
        return None


def _describe(device: BLEDevice, advertisement: AdvertisementData) -> FitnessMachineDevice:
    sections = sections_from_service_data(advertisement.service_data)
    service_uuids = {uuid.lower() for uuid in advertisement.service_uuids}
    return FitnessMachineDevice(
        address=device.address,
        name=advertisement.local_name or device.name,
        rssi=advertisement.rssi,
        machine_types=extract_machine_types(sections),
        heart_rate_sensor=HEART_RATE_SERVICE_UUID in service_uuids,
    )


class PresenceScanner:
    """Run a bleak scan and feed every advertisement into a presence monitor."""

    def __init__(
        self,
        monitor: PresenceMonitor,
        *,
        service_uuids: list[str] | None = None,
        scanner_factory: Callable[..., BleakScanner] = BleakScanner,
    ) -> None:
        """Create a scanner.

        Args:
            monitor: Monitor receiving the sightings
            service_uuids: Only report devices advertising one of these services
                (defaults to FTMS and Heart Rate)
            scanner_factory: Callable building the bleak scanner
        """
        self._monitor = monitor
        self._scanner = scanner_factory(
            detection_callback=self._on_detection,
            service_uuids=service_uuids if service_uuids is not None else FITNESS_SERVICE_UUIDS,
        )

    @property
    def monitor(self) -> PresenceMonitor:
        return self._monitor

    async def start(self) -> None:
        await self._monitor.start()
        await self._scanner.start()
        LOGGER.info("Scanning for fitness devices")

    async def stop(self) -> None:
        await self._scanner.stop()
        await self._monitor.stop()

    async def __aenter__(self) -> PresenceScanner:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def _on_detection(self, device: BLEDevice, advertisement: AdvertisementData) -> None:
        identity = _identity_of(device, advertisement)
        if identity is None:
            return
        sections = sections_from_service_data(advertisement.service_data)
        self._monitor.on_advertisement(identity, advertisement.rssi, sections)


async def find_all_fitness_devices(timeout: float = 10.0) -> list[FitnessMachineDevice]:
    """Scan for all FTMS machines and heart rate sensors in range."""
    devices = await BleakScanner.discover(
        timeout=timeout, return_adv=True, service_uuids=FITNESS_SERVICE_UUIDS
    )
    found = [_describe(device, adv_data) for device, adv_data in devices.values()]
    return sorted(found, key=lambda item: item.rssi, reverse=True)


async def find_fitness_device(name_or_address: str, timeout: float = 10.0) -> FitnessMachineDevice:
    """Scan for a fitness device by address or advertised name (case-insensitive)."""
    wanted = name_or_address.strip().lower()
    for found in await find_all_fitness_devices(timeout):
        if found.address.lower() == wanted or (found.name or "").lower() == wanted:
            return found

    raise TimeoutError(f"No fitness device found matching {name_or_address!r}")
