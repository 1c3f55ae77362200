"""Presence tracking of advertising devices."""

from ._monitor import PresenceCallback, PresenceConfig, PresenceMonitor
from ._statistics import RssiSample, SignalStatistics
from ._table import (
    DeviceIdentity,
    PresenceEvent,
    PresenceEventKind,
    PresenceRecord,
    PresenceTable,
)

__all__ = [
    "DeviceIdentity",
    "PresenceCallback",
    "PresenceConfig",
    "PresenceEvent",
    "PresenceEventKind",
    "PresenceMonitor",
    "PresenceRecord",
    "PresenceTable",
    "RssiSample",
    "SignalStatistics",
]
