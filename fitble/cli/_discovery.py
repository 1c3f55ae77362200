"""Discovery and presence commands for the fitble CLI."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from .._scanner import FitnessMachineDevice, PresenceScanner, find_all_fitness_devices
from ..ftms import MachineType
from ..presence import PresenceConfig, PresenceMonitor, PresenceRecord

LOGGER = logging.getLogger(__name__)


def _machine_types_label(types: MachineType | None) -> str:
    if not types:
        return "-"
    names = [member.name for member in MachineType if member and member in types]
    return ", ".join(name.replace("_", " ").lower() for name in names)


def _print_device(index: int, device: FitnessMachineDevice) -> None:
    kind = _machine_types_label(device.machine_types)
    if device.heart_rate_sensor:
        kind = "heart rate" if kind == "-" else f"{kind}, heart rate"
    print(f"{index}. {device.name or 'Unknown Device'}")
    print(f"   Address: {device.address}")
    print(f"   RSSI: {device.rssi} dBm")
    print(f"   Type: {kind}")
    print()


async def scan_devices(args: argparse.Namespace) -> None:
    """List FTMS machines and heart rate sensors, or watch them come and go."""
    if args.watch:
        await watch_presence(args)
        return

    print(f"Scanning for fitness devices (timeout: {args.timeout}s)...")
    try:
        devices = await find_all_fitness_devices(timeout=args.timeout)
    except Exception as e:
        print(f"\n✗ Error during scan: {e}")
        sys.exit(1)

    if args.name:
        wanted = args.name.lower()
        devices = [device for device in devices if wanted in (device.name or "").lower()]

    if not devices:
        print("\n✗ No fitness devices found")
        sys.exit(1)

    print(f"\n✓ Found {len(devices)} device(s):\n")
    for i, device in enumerate(devices, 1):
        _print_device(i, device)


def _format_record(record: PresenceRecord) -> str:
    smoothed = "n/a" if record.smoothed_rssi is None else f"{record.smoothed_rssi:.1f}"
    median = "n/a" if record.median_rssi is None else f"{record.median_rssi:.1f}"
    name = record.identity.name or "Unknown"
    types = _machine_types_label(record.machine_types)
    return f"{record.identity.mac} {name:<20} rssi {smoothed:>6} (median {median:>6}) {types}"


async def watch_presence(args: argparse.Namespace) -> None:
    """Track devices live and print discovery and loss events."""
    try:
        config = PresenceConfig(
            sweep_interval=args.sweep_interval,
            lost_timeout=args.lost_timeout,
            sample_window=args.sample_window,
        )
    except ValidationError as e:
        print(f"\n✗ Invalid presence settings:\n{e}")
        sys.exit(1)

    monitor = PresenceMonitor(config)
    monitor.on_discovered(lambda record: print(f"+ {_format_record(record)}"))
    monitor.on_lost(lambda record: print(f"- {_format_record(record)}"))
    if args.verbose:
        monitor.on_updated(lambda record: print(f"  {_format_record(record)}"))

    print("Watching for fitness devices (Ctrl+C to stop)...\n")
    async with PresenceScanner(monitor):
        if args.duration:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()

    print(f"\n{len(monitor.table)} device(s) visible at exit")
