"""fitble - Bluetooth LE fitness machine library.

Tracks advertising FTMS machines and heart rate sensors, decodes their
telemetry notifications and encodes Fitness Machine Control Point commands.
"""

from ._scanner import (
    FitnessMachineDevice,
    PresenceScanner,
    find_all_fitness_devices,
    find_fitness_device,
)
from .client import (
    ControlPointWriteError,
    DeviceConnectionError,
    FitnessMachineClient,
    HeartRateMonitorClient,
)
from .ftms import (
    CharacteristicKind,
    CommandRangeError,
    MachineType,
    decode_notification,
    extract_machine_types,
)
from .presence import (
    DeviceIdentity,
    PresenceConfig,
    PresenceEvent,
    PresenceEventKind,
    PresenceMonitor,
    PresenceRecord,
)

__version__ = "0.1.0"

__all__ = [
    "CharacteristicKind",
    "CommandRangeError",
    "ControlPointWriteError",
    "DeviceConnectionError",
    "DeviceIdentity",
    "FitnessMachineClient",
    "FitnessMachineDevice",
    "HeartRateMonitorClient",
    "MachineType",
    "PresenceConfig",
    "PresenceEvent",
    "PresenceEventKind",
    "PresenceMonitor",
    "PresenceRecord",
    "PresenceScanner",
    "decode_notification",
    "extract_machine_types",
    "find_all_fitness_devices",
    "find_fitness_device",
]
