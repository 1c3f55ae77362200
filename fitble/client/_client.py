from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from bleak import BleakClient
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.exc import BleakError

from ..ftms import (
    FITNESS_MACHINE_CONTROL_POINT_UUID,
    FITNESS_MACHINE_FEATURE_UUID,
    FTMS_SERVICE_UUID,
    CharacteristicKind,
    ControlPointResponse,
    FitnessMachineFeatures,
    MachineTelemetryFrame,
    PendingTrainingStatus,
    StopOrPauseControl,
    SupportedRange,
    TargetSettingFeatures,
    complete_training_status,
    decode_control_point_response,
    decode_fitness_machine_feature,
    decode_notification,
    decode_supported_heart_rate_range,
    decode_supported_inclination_range,
    decode_supported_power_range,
    decode_supported_resistance_level_range,
    decode_supported_speed_range,
)
from ..ftms import _control as control
from ..ftms._frames import CHARACTERISTIC_KINDS
from ..ftms._ftms import (
    SUPPORTED_HEART_RATE_RANGE_UUID,
    SUPPORTED_INCLINE_RANGE_UUID,
    SUPPORTED_POWER_RANGE_UUID,
    SUPPORTED_RESISTANCE_LEVEL_RANGE_UUID,
    SUPPORTED_SPEED_RANGE_UUID,
    TRAINING_STATUS_UUID,
)
from ..hrs import HEART_RATE_MEASUREMENT_UUID, HEART_RATE_SERVICE_UUID

LOGGER = logging.getLogger(__name__)

FrameCallback = Callable[[CharacteristicKind, MachineTelemetryFrame], Awaitable[None] | None]

_RANGE_DECODERS: dict[str, tuple[str, Callable[[bytes], SupportedRange | None]]] = {
    SUPPORTED_SPEED_RANGE_UUID: ("speed", decode_supported_speed_range),
    SUPPORTED_INCLINE_RANGE_UUID: ("inclination", decode_supported_inclination_range),
    SUPPORTED_RESISTANCE_LEVEL_RANGE_UUID: (
        "resistance_level",
        decode_supported_resistance_level_range,
    ),
    SUPPORTED_HEART_RATE_RANGE_UUID: ("heart_rate", decode_supported_heart_rate_range),
    SUPPORTED_POWER_RANGE_UUID: ("power", decode_supported_power_range),
}


class DeviceConnectionError(Exception):
    """Raised when a device lacks the services the client needs."""


class ControlPointWriteError(Exception):
    """Raised when a control point procedure cannot be delivered or is not answered."""


class _GattClient:
    """Connection handling and notification dispatch shared by the clients."""

    service_uuid: str

    def __init__(
        self,
        address_or_device: str | BLEDevice,
        *,
        client_factory: Callable[..., BleakClient] = BleakClient,
    ) -> None:
        self._client = client_factory(address_or_device)
        self._callbacks: list[FrameCallback] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._notifying: list[str] = []

    @property
    def address(self) -> str:
        return self._client.address

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    def _has_characteristic(self, uuid: str) -> bool:
        return self._client.services.get_characteristic(uuid) is not None

    async def connect(self) -> None:
        """Connect and check the device exposes the expected service."""
        await self._client.connect()
        if self._client.services.get_service(self.service_uuid) is None:
            await self._client.disconnect()
            raise DeviceConnectionError(
                f"Device {self.address} does not expose service {self.service_uuid}"
            )
        LOGGER.info("Connected to %s", self.address)

    async def disconnect(self) -> None:
        """Stop notifications, cancel pending work and disconnect."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        if self._client.is_connected:
            for uuid in self._notifying:
                try:
                    await self._client.stop_notify(uuid)
                except BleakError as e:
                    LOGGER.debug("stop_notify %s failed: %s", uuid, e)
            await self._client.disconnect()
            LOGGER.info("Disconnected from %s", self.address)
        self._notifying.clear()

    async def __aenter__(self) -> _GattClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    def add_callback(self, callback: FrameCallback) -> Callable[[], None]:
        """Register a callback for decoded frames and return a removal function."""
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    async def _start_notify(self, uuids: Iterable[str]) -> list[CharacteristicKind]:
        kinds = []
        for uuid in uuids:
            if not self._has_characteristic(uuid):
                continue
            kind = CHARACTERISTIC_KINDS[uuid]
            await self._client.start_notify(uuid, functools.partial(self._handle_frame, kind))
            self._notifying.append(uuid)
            kinds.append(kind)
        return kinds

    def _handle_frame(
        self, kind: CharacteristicKind, _: BleakGATTCharacteristic, data: bytearray
    ) -> None:
        frame = decode_notification(kind, data)
        LOGGER.debug("%s frame: %s", kind.value, frame)
        self._deliver(kind, frame)

    def _deliver(self, kind: CharacteristicKind, frame: MachineTelemetryFrame) -> None:
        for callback in list(self._callbacks):
            try:
                if inspect.iscoroutinefunction(callback):
                    self._schedule_task(callback(kind, frame), f"{kind.value} callback")
                else:
                    callback(kind, frame)
            except Exception:
                LOGGER.exception("%s callback failed", kind.value)

    def _schedule_task(self, coro: Awaitable[Any], label: str) -> None:
        """Schedule a coroutine and log failures."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish_task(t, label))

    def _finish_task(self, task: asyncio.Task[Any], label: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            LOGGER.error("%s failed: %s", label, exc)


class FitnessMachineClient(_GattClient):
    """BLE client for FTMS fitness machines.

    On connect the capability characteristics are read once. ``subscribe``
    enables every machine data characteristic the device has and hands decoded
    frames to the registered callbacks. Control point procedures are written
    with response and wait for the machine's indication.
    """

    service_uuid = FTMS_SERVICE_UUID

    def __init__(
        self,
        address_or_device: str | BLEDevice,
        *,
        response_timeout: float = 5.0,
        client_factory: Callable[..., BleakClient] = BleakClient,
    ) -> None:
        """Create a client bound to a BLE device.

        Args:
            address_or_device: BLE address or bleak device
            response_timeout: Seconds to wait for a control point response
            client_factory: Callable building the bleak client
        """
        super().__init__(address_or_device, client_factory=client_factory)
        self.response_timeout = response_timeout
        self._features = FitnessMachineFeatures.NONE
        self._target_features = TargetSettingFeatures.NONE
        self._ranges: dict[str, SupportedRange] = {}
        self._control_lock = asyncio.Lock()
        self._response_future: asyncio.Future[ControlPointResponse] | None = None
        self._pending_opcode: int | None = None

    @property
    def features(self) -> FitnessMachineFeatures:
        return self._features

    @property
    def target_features(self) -> TargetSettingFeatures:
        return self._target_features

    @property
    def ranges(self) -> dict[str, SupportedRange]:
        """Supported target ranges read on connect, keyed by target name."""
        return dict(self._ranges)

    async def connect(self) -> None:
        """Connect, read capabilities and enable control point indications."""
        await super().connect()
        await self._read_capabilities()
        if self._has_characteristic(FITNESS_MACHINE_CONTROL_POINT_UUID):
            await self._client.start_notify(
                FITNESS_MACHINE_CONTROL_POINT_UUID,
                self._handle_control_point,  # type: ignore[arg-type]
            )
            self._notifying.append(FITNESS_MACHINE_CONTROL_POINT_UUID)

    async def _read_capabilities(self) -> None:
        if self._has_characteristic(FITNESS_MACHINE_FEATURE_UUID):
            try:
                raw = await self._client.read_gatt_char(FITNESS_MACHINE_FEATURE_UUID)
                self._features, self._target_features = decode_fitness_machine_feature(bytes(raw))
                LOGGER.info("Features: %s, targets: %s", self._features, self._target_features)
            except BleakError as e:
                LOGGER.warning("Could not read fitness machine features: %s", e)

        for uuid, (name, decoder) in _RANGE_DECODERS.items():
            if not self._has_characteristic(uuid):
                continue
            try:
                supported = decoder(bytes(await self._client.read_gatt_char(uuid)))
            except BleakError as e:
                LOGGER.warning("Could not read supported %s range: %s", name, e)
                continue
            if supported is not None:
                self._ranges[name] = supported
                LOGGER.debug("Supported %s range: %s", name, supported)

    async def subscribe(self, callback: FrameCallback | None = None) -> list[CharacteristicKind]:
        """Enable machine data and training status notifications.

        Returns the kinds of characteristic that were enabled.
        """
        if callback is not None:
            self.add_callback(callback)
        uuids = [
            uuid
            for uuid, kind in CHARACTERISTIC_KINDS.items()
            if kind is not CharacteristicKind.HEART_RATE
        ]
        kinds = await self._start_notify(uuids)
        LOGGER.info("Subscribed to %s", ", ".join(kind.value for kind in kinds) or "nothing")
        return kinds

    def _handle_frame(
        self, kind: CharacteristicKind, _: BleakGATTCharacteristic, data: bytearray
    ) -> None:
        frame = decode_notification(kind, data)
        if isinstance(frame, PendingTrainingStatus):
            self._schedule_task(self._complete_training_status(frame), "training status read")
            return
        LOGGER.debug("%s frame: %s", kind.value, frame)
        self._deliver(kind, frame)

    async def _complete_training_status(self, pending: PendingTrainingStatus) -> None:
        """Read the extended training status string and deliver the full status."""
        raw: bytes | None
        try:
            raw = bytes(await self._client.read_gatt_char(TRAINING_STATUS_UUID, use_cached=False))
        except BleakError as e:
            LOGGER.warning("Extended training status read failed: %s", e)
            raw = None
        self._deliver(CharacteristicKind.TRAINING_STATUS, complete_training_status(pending, raw))

    def _handle_control_point(self, _: BleakGATTCharacteristic, data: bytearray) -> None:
        response = decode_control_point_response(bytes(data))
        if response is None:
            LOGGER.debug("Ignoring control point indication %s", bytes(data).hex())
            return
        future = self._response_future
        if future is None or future.done() or response.request_opcode != self._pending_opcode:
            LOGGER.debug("Unexpected control point response: %s", response)
            return
        future.set_result(response)

    async def write_control_point(self, payload: bytes) -> ControlPointResponse:
        """Write an encoded procedure and wait for its response.

        Raises:
            ControlPointWriteError: If the write fails or no response arrives in time
        """
        async with self._control_lock:
            loop = asyncio.get_running_loop()
            self._response_future = loop.create_future()
            self._pending_opcode = payload[0]
            try:
                await self._client.write_gatt_char(
                    FITNESS_MACHINE_CONTROL_POINT_UUID, payload, response=True
                )
                response = await asyncio.wait_for(
                    self._response_future, timeout=self.response_timeout
                )
            except BleakError as e:
                raise ControlPointWriteError(f"Control point write failed: {e}") from e
            except asyncio.TimeoutError as e:
                raise ControlPointWriteError(
                    f"No control point response for opcode {payload[0]:#04x}"
                ) from e
            finally:
                self._response_future = None
                self._pending_opcode = None

        if not response.succeeded:
            LOGGER.warning("Control point opcode %#04x: %r", payload[0], response.result)
        return response

    async def request_control(self) -> ControlPointResponse:
        return await self.write_control_point(control.request_control())

    async def reset(self) -> ControlPointResponse:
        return await self.write_control_point(control.reset())

    async def start(self) -> ControlPointResponse:
        """Start or resume the workout."""
        return await self.write_control_point(control.start_or_resume())

    async def stop(self) -> ControlPointResponse:
        return await self.write_control_point(control.stop_or_pause(StopOrPauseControl.STOP))

    async def pause(self) -> ControlPointResponse:
        return await self.write_control_point(control.stop_or_pause(StopOrPauseControl.PAUSE))

    async def set_speed(self, kph: float) -> ControlPointResponse:
        """Set the target speed in km/h.

        Args:
            kph: Speed in kilometers per hour
        """
        return await self.write_control_point(control.set_target_speed(round(kph * 100)))

    async def set_incline(self, percent: float) -> ControlPointResponse:
        """Set the target inclination in percent.

        Args:
            percent: Incline percentage
        """
        return await self.write_control_point(control.set_target_inclination(round(percent * 10)))

    async def set_resistance_level(self, level: float) -> ControlPointResponse:
        return await self.write_control_point(
            control.set_target_resistance_level(round(level * 10))
        )

    async def set_power(self, watts: int) -> ControlPointResponse:
        return await self.write_control_point(control.set_target_power(watts))

    async def set_heart_rate(self, bpm: int) -> ControlPointResponse:
        return await self.write_control_point(control.set_target_heart_rate(bpm))


class HeartRateMonitorClient(_GattClient):
    """BLE client for Heart Rate Service sensors."""

    service_uuid = HEART_RATE_SERVICE_UUID

    async def subscribe(self, callback: FrameCallback | None = None) -> list[CharacteristicKind]:
        """Enable heart rate measurement notifications."""
        if callback is not None:
            self.add_callback(callback)
        kinds = await self._start_notify([HEART_RATE_MEASUREMENT_UUID])
        if not kinds:
            raise DeviceConnectionError(f"Device {self.address} has no heart rate measurement")
        return kinds
