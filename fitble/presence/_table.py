from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum

from ..ftms._ftms import MachineType
from ._statistics import DEFAULT_SAMPLE_WINDOW, SignalStatistics

LOGGER = logging.getLogger(__name__)

DEFAULT_LOST_TIMEOUT = 3.0
MAX_ADDRESS = (1 << 48) - 1


@dataclass(frozen=True)
class DeviceIdentity:
    """Hardware address and advertised name of a peripheral."""

    address: int
    name: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.address <= MAX_ADDRESS:
            raise ValueError(f"Bluetooth address out of range: {self.address:#x}")

    @classmethod
    def from_mac(cls, mac: str, name: str | None = None) -> DeviceIdentity:
        """Build an identity from the ``AA:BB:CC:DD:EE:FF`` form."""
        cleaned = mac.replace(":", "").replace("-", "")
        if len(cleaned) != 12:
            raise ValueError(f"Invalid Bluetooth address: {mac!r}")
        return cls(int(cleaned, 16), name or "")

    @property
    def mac(self) -> str:
        """Return the address as colon-separated upper-case hex."""
        raw = f"{self.address:012X}"
        return ":".join(raw[i : i + 2] for i in range(0, 12, 2))


@dataclass(frozen=True)
class PresenceRecord:
    """Snapshot of a visible device and its signal statistics."""

    identity: DeviceIdentity
    last_seen: float
    smoothed_rssi: float | None
    median_rssi: float | None
    machine_types: MachineType | None = None

    @property
    def address(self) -> int:
        return self.identity.address


class PresenceEventKind(Enum):
    """Transitions of a device through the presence table."""

    DISCOVERED = "discovered"
    UPDATED = "updated"
    LOST = "lost"


@dataclass(frozen=True)
class PresenceEvent:
    kind: PresenceEventKind
    record: PresenceRecord


class _Entry:
    """Mutable table slot guarded by its own lock."""

    __slots__ = ("announced", "identity", "lock", "lost", "machine_types", "statistics")

    def __init__(self, identity: DeviceIdentity, window: float) -> None:
        self.identity = identity
        self.lock = threading.Lock()
        self.lost = False
        self.announced = False
        self.machine_types: MachineType | None = None
        self.statistics = SignalStatistics(window)

    def snapshot(self) -> PresenceRecord:
        return PresenceRecord(
            identity=self.identity,
            last_seen=self.statistics.last_seen or 0.0,
            smoothed_rssi=self.statistics.smoothed_rssi,
            median_rssi=self.statistics.median(),
            machine_types=self.machine_types,
        )


class PresenceTable:
    """Table of currently visible devices keyed by hardware address.

    Every entry carries its own lock, so sightings of different addresses never
    contend and a sweep never observes a half-applied update. Structural changes
    rely on the atomicity of ``dict.setdefault`` and ``dict.pop``; there is no
    lock across the whole table.

    ``emit`` is called with each event while the entry lock is still held, which
    keeps the Discovered/Updated/Lost sequence of one device in order for
    whoever consumes it.
    """

    def __init__(
        self,
        *,
        lost_timeout: float = DEFAULT_LOST_TIMEOUT,
        sample_window: float = DEFAULT_SAMPLE_WINDOW,
        emit: Callable[[PresenceEvent], None] | None = None,
    ) -> None:
        self._lost_timeout = lost_timeout
        self._sample_window = sample_window
        self._emit = emit
        self._entries: dict[int, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: object) -> bool:
        return address in self._entries

    def __iter__(self) -> Iterator[PresenceRecord]:
        return iter(self.snapshot())

    @property
    def lost_timeout(self) -> float:
        return self._lost_timeout

    def get(self, address: int) -> PresenceRecord | None:
        """Return a snapshot of one device, or None if it is not visible."""
        entry = self._entries.get(address)
        if entry is None:
            return None
        with entry.lock:
            if entry.lost or not entry.announced:
                return None
            return entry.snapshot()

    def snapshot(self) -> list[PresenceRecord]:
        """Return snapshots of all visible devices."""
        records = []
        for entry in list(self._entries.values()):
            with entry.lock:
                if entry.announced and not entry.lost:
                    records.append(entry.snapshot())
        return records

    def on_sighting(
        self,
        identity: DeviceIdentity,
        rssi: int,
        at: float,
        machine_types: MachineType | None = None,
    ) -> PresenceEvent:
        """Apply one advertisement sighting and return the resulting event."""
        while True:
            entry = self._entries.get(identity.address)
            if entry is None:
                entry = self._entries.setdefault(
                    identity.address, _Entry(identity, self._sample_window)
                )
            with entry.lock:
                if entry.lost:
                    # Removed by a sweep after we fetched it; a re-sighting starts over.
                    continue
                is_new = not entry.announced
                entry.announced = True
                entry.statistics.add_sample(rssi, at)
                if machine_types is not None:
                    entry.machine_types = machine_types
                # Names often arrive later, in a scan response.
                if identity.name and identity.name != entry.identity.name:
                    entry.identity = identity
                kind = PresenceEventKind.DISCOVERED if is_new else PresenceEventKind.UPDATED
                event = PresenceEvent(kind, entry.snapshot())
                if is_new:
                    LOGGER.debug("Discovered %s (%s)", identity.mac, identity.name or "unnamed")
                self._publish(event)
                return event

    def sweep(self, now: float) -> list[PresenceEvent]:
        """Remove devices not seen for longer than the loss timeout."""
        events: list[PresenceEvent] = []
        for address, entry in list(self._entries.items()):
            with entry.lock:
                last_seen = entry.statistics.last_seen
                if entry.lost or last_seen is None or now - last_seen <= self._lost_timeout:
                    continue
                entry.lost = True
                event = PresenceEvent(PresenceEventKind.LOST, entry.snapshot())
                LOGGER.debug("Lost %s after %.1fs", entry.identity.mac, now - last_seen)
                self._publish(event)
                # Removed only after publishing, so a re-discovery cannot overtake the loss.
                if self._entries.get(address) is entry:
                    self._entries.pop(address, None)
                events.append(event)
        return events

    def clear(self) -> None:
        """Forget every device without emitting events."""
        for entry in list(self._entries.values()):
            with entry.lock:
                entry.lost = True
        self._entries.clear()

    def _publish(self, event: PresenceEvent) -> None:
        if self._emit is None:
            return
        try:
            self._emit(event)
        except Exception:
            LOGGER.exception("Presence event delivery failed for %s", event.record.identity.mac)
