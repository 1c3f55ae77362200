from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable

from pydantic import BaseModel, Field, model_validator

from ..ftms._advertisement import AdvertisementSection, extract_machine_types
from ._statistics import DEFAULT_SAMPLE_WINDOW
from ._table import (
    DEFAULT_LOST_TIMEOUT,
    DeviceIdentity,
    PresenceEvent,
    PresenceEventKind,
    PresenceRecord,
    PresenceTable,
)

LOGGER = logging.getLogger(__name__)

PresenceCallback = Callable[[PresenceRecord], Awaitable[None] | None]


class PresenceConfig(BaseModel):
    """Timing configuration for presence tracking."""

    sweep_interval: float = Field(default=1.0, gt=0.0)
    lost_timeout: float = Field(default=DEFAULT_LOST_TIMEOUT, gt=0.0)
    sample_window: float = Field(default=DEFAULT_SAMPLE_WINDOW, gt=0.0)

    @model_validator(mode="after")
    def validate_timing(self) -> PresenceConfig:
        """Ensure a device cannot go missing between two sweeps unnoticed."""
        if self.sweep_interval > self.lost_timeout:
            msg = f"sweep_interval ({self.sweep_interval}) > lost_timeout ({self.lost_timeout})"
            raise ValueError(msg)
        return self


class PresenceMonitor:
    """Track visible devices from advertisement sightings and publish transitions.

    Sightings may be fed from any thread. Events are handed to the monitor's
    event loop in the order the table produced them and delivered there by a
    single dispatcher task, so a slow subscriber never blocks a sighting or the
    loss sweep. Coroutine subscribers run as separate tasks.
    """

    def __init__(
        self,
        config: PresenceConfig | None = None,
        *,
        extract_types: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a monitor.

        Args:
            config: Sweep interval, loss timeout and RSSI window
            extract_types: Read FTMS machine types from advertisement sections
            clock: Time source for sightings without a timestamp and for sweeps
        """
        self._config = config or PresenceConfig()
        self._extract_types = extract_types
        self._clock = clock
        self._table = PresenceTable(
            lost_timeout=self._config.lost_timeout,
            sample_window=self._config.sample_window,
            emit=self._enqueue,
        )
        self._subscribers: dict[PresenceEventKind, list[PresenceCallback]] = {
            kind: [] for kind in PresenceEventKind
        }
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[PresenceEvent] | None = None
        self._sweep_task: asyncio.Task[None] | None = None
        self._dispatch_task: asyncio.Task[None] | None = None
        self._callback_tasks: set[asyncio.Task[None]] = set()
        self._running = False

    @property
    def config(self) -> PresenceConfig:
        return self._config

    @property
    def table(self) -> PresenceTable:
        """Return the underlying presence table."""
        return self._table

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe(self, kind: PresenceEventKind, callback: PresenceCallback) -> Callable[[], None]:
        """Register a callback for one event kind and return an unsubscribe function."""
        self._subscribers[kind].append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers[kind].remove(callback)

        return _unsubscribe

    def on_discovered(self, callback: PresenceCallback) -> Callable[[], None]:
        return self.subscribe(PresenceEventKind.DISCOVERED, callback)

    def on_updated(self, callback: PresenceCallback) -> Callable[[], None]:
        return self.subscribe(PresenceEventKind.UPDATED, callback)

    def on_lost(self, callback: PresenceCallback) -> Callable[[], None]:
        return self.subscribe(PresenceEventKind.LOST, callback)

    async def start(self) -> None:
        """Start the loss sweep and event dispatcher on the running loop."""
        if self._running:
            LOGGER.warning("Presence monitor already running")
            return
        # Devices sighted while stopped were never announced to subscribers.
        self._table.clear()
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._running = True
        self._dispatch_task = self._loop.create_task(self._dispatch_loop())
        self._sweep_task = self._loop.create_task(self._sweep_loop())
        LOGGER.debug(
            "Presence monitor started (sweep %.1fs, timeout %.1fs)",
            self._config.sweep_interval,
            self._config.lost_timeout,
        )

    async def stop(self) -> None:
        """Stop sweeping and delivering; no event is delivered after this returns."""
        if not self._running:
            return
        self._running = False
        for task in (self._sweep_task, self._dispatch_task, *self._callback_tasks):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._sweep_task = None
        self._dispatch_task = None
        self._callback_tasks.clear()
        self._queue = None
        self._table.clear()
        LOGGER.debug("Presence monitor stopped")

    async def __aenter__(self) -> PresenceMonitor:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def on_advertisement(
        self,
        identity: DeviceIdentity,
        rssi: int,
        sections: Iterable[AdvertisementSection] = (),
        at: float | None = None,
    ) -> PresenceEvent:
        """Feed one advertisement sighting; safe to call from any thread."""
        machine_types = extract_machine_types(sections) if self._extract_types else None
        timestamp = self._clock() if at is None else at
        return self._table.on_sighting(identity, rssi, timestamp, machine_types)

    def sweep(self, now: float | None = None) -> list[PresenceEvent]:
        """Run one loss sweep immediately."""
        return self._table.sweep(self._clock() if now is None else now)

    def _enqueue(self, event: PresenceEvent) -> None:
        """Hand an event to the loop; called with the entry lock held."""
        if not self._running or self._loop is None or self._queue is None:
            return
        # call_soon_threadsafe callbacks run in FIFO order, preserving per-device ordering.
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def _sweep_loop(self) -> None:
        """Periodically remove devices that stopped advertising."""
        while True:
            await asyncio.sleep(self._config.sweep_interval)
            self._table.sweep(self._clock())

    async def _dispatch_loop(self) -> None:
        """Deliver queued events to subscribers."""
        assert self._queue is not None
        queue = self._queue
        while True:
            event = await queue.get()
            if not self._running:
                continue
            self._deliver(event)

    def _deliver(self, event: PresenceEvent) -> None:
        for callback in list(self._subscribers[event.kind]):
            try:
                if inspect.iscoroutinefunction(callback):
                    self._schedule_task(callback(event.record), event.kind.value)
                else:
                    callback(event.record)
            except Exception:
                LOGGER.exception("Presence %s callback failed", event.kind.value)

    def _schedule_task(self, coro: Awaitable[None], label: str) -> None:
        """Schedule a coroutine callback and log failures."""
        assert self._loop is not None
        task = self._loop.create_task(coro)  # type: ignore[arg-type]
        self._callback_tasks.add(task)
        task.add_done_callback(lambda t: self._finish_task(t, label))

    def _finish_task(self, task: asyncio.Task[None], label: str) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            LOGGER.error("Presence %s callback failed: %s", label, exc)
