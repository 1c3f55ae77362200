from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from ._device import control
from ._discovery import scan_devices
from ._monitor import monitor

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the fitble tool."""
    parser = argparse.ArgumentParser(
        prog="fitble",
        description="Bluetooth LE fitness machine (FTMS) and heart rate sensor tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Discovery
  fitble scan                                  # List FTMS machines and HR sensors
  fitble scan --name kickr                     # Filter by advertised name
  fitble scan --watch                          # Live presence (discovered/lost)
  fitble scan --watch --lost-timeout 5 -v      # Also print RSSI updates

  # Telemetry
  fitble monitor AA:BB:CC:DD:EE:FF             # Machine data and training status
  fitble monitor AA:BB:CC:DD:EE:FF --heart-rate

  # Control
  fitble control AA:BB:CC:DD:EE:FF --start --speed 8.5 --incline 2
  fitble control AA:BB:CC:DD:EE:FF --power 200
  fitble control AA:BB:CC:DD:EE:FF --stop
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan for fitness devices")
    scan_parser.add_argument("--name", help="Only list devices whose name contains this text")
    scan_parser.add_argument(
        "--timeout", type=float, default=10.0, help="Scan timeout in seconds (default: 10.0)"
    )
    scan_parser.add_argument(
        "--watch", action="store_true", help="Track devices continuously and report changes"
    )
    scan_parser.add_argument(
        "--duration", type=float, help="Stop watching after this many seconds"
    )
    scan_parser.add_argument(
        "--sweep-interval", type=float, default=1.0, help="Loss sweep period (default: 1.0)"
    )
    scan_parser.add_argument(
        "--lost-timeout",
        type=float,
        default=3.0,
        help="Seconds without advertisements before a device is lost (default: 3.0)",
    )
    scan_parser.add_argument(
        "--sample-window", type=float, default=2.0, help="RSSI median window (default: 2.0)"
    )
    scan_parser.set_defaults(func=scan_devices)

    monitor_parser = subparsers.add_parser("monitor", help="Print live telemetry")
    monitor_parser.add_argument("address", help="BLE address of the device")
    monitor_parser.add_argument(
        "--heart-rate", action="store_true", help="Treat the device as a heart rate sensor"
    )
    monitor_parser.add_argument(
        "--duration", type=float, help="Stop monitoring after this many seconds"
    )
    monitor_parser.set_defaults(func=monitor)

    control_parser = subparsers.add_parser("control", help="Send control point commands")
    control_parser.add_argument("address", help="BLE address of the fitness machine")
    control_parser.add_argument("--start", action="store_true", help="Start or resume")
    control_parser.add_argument("--stop", action="store_true", help="Stop after other settings")
    control_parser.add_argument("--speed", type=float, help="Target speed in km/h")
    control_parser.add_argument("--incline", type=float, help="Target inclination in percent")
    control_parser.add_argument("--resistance", type=float, help="Target resistance level")
    control_parser.add_argument("--power", type=int, help="Target power in W")
    control_parser.set_defaults(func=control)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the fitble CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(args.func(args))
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(0)
    except Exception as e:
        LOGGER.error("Error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
