"""Monitoring commands for the fitble CLI."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys

from ..client import DeviceConnectionError, FitnessMachineClient, HeartRateMonitorClient
from ..ftms import CharacteristicKind, MachineTelemetryFrame

LOGGER = logging.getLogger(__name__)


def _format_frame(kind: CharacteristicKind, frame: MachineTelemetryFrame) -> str:
    """Format a decoded frame, leaving out absent fields."""
    values = {
        field.name: getattr(frame, field.name)
        for field in dataclasses.fields(frame)  # type: ignore[arg-type]
    }
    shown = ", ".join(
        f"{name}={value}" for name, value in values.items() if value not in (None, ())
    )
    return f"[{kind.value}] {shown or '(empty)'}"


def _print_frame(kind: CharacteristicKind, frame: MachineTelemetryFrame) -> None:
    print(_format_frame(kind, frame))


async def monitor(args: argparse.Namespace) -> None:
    """Print live telemetry from a fitness machine or heart rate sensor."""
    print(f"Connecting to {args.address}...\n")

    client: FitnessMachineClient | HeartRateMonitorClient
    if args.heart_rate:
        client = HeartRateMonitorClient(args.address)
    else:
        client = FitnessMachineClient(args.address)
    try:
        await client.connect()
        if isinstance(client, FitnessMachineClient):
            print(f"Features: {client.features!r}")
            print(f"Targets: {client.target_features!r}")
            for name, supported in client.ranges.items():
                print(
                    f"  {name}: {supported.minimum}..{supported.maximum}"
                    f" step {supported.increment}"
                )

        kinds = await client.subscribe(_print_frame)
        if not kinds:
            print("\n✗ Device exposes no telemetry characteristics")
            sys.exit(1)
        print("\nMonitoring (Ctrl+C to stop)...\n")

        if args.duration:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()

    except DeviceConnectionError as e:
        print(f"\n✗ {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\n✗ Unexpected error: {e}")
        LOGGER.error("Monitor error", exc_info=True)
        sys.exit(1)
    finally:
        await client.disconnect()
