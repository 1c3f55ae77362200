"""BLE clients for FTMS fitness machines and heart rate sensors."""

from ._client import (
    ControlPointWriteError,
    DeviceConnectionError,
    FitnessMachineClient,
    FrameCallback,
    HeartRateMonitorClient,
)

__all__ = [
    "ControlPointWriteError",
    "DeviceConnectionError",
    "FitnessMachineClient",
    "FrameCallback",
    "HeartRateMonitorClient",
]
