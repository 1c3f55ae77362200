"""Control point commands for the fitble CLI."""

from __future__ import annotations

import argparse
import logging
import sys

from ..client import ControlPointWriteError, DeviceConnectionError, FitnessMachineClient
from ..ftms import CommandRangeError, ControlPointResponse

LOGGER = logging.getLogger(__name__)


def _report(action: str, response: ControlPointResponse) -> bool:
    if response.succeeded:
        print(f"✓ {action}")
        return True
    result = getattr(response.result, "name", response.result)
    print(f"✗ {action}: {result}")
    return False


async def control(args: argparse.Namespace) -> None:
    """Take control of a machine and apply the requested settings."""
    client = FitnessMachineClient(args.address)
    try:
        await client.connect()
        ok = _report("Request control", await client.request_control())
        if ok and args.start:
            ok = _report("Start", await client.start())
        if ok and args.speed is not None:
            ok = _report(f"Speed {args.speed} km/h", await client.set_speed(args.speed))
        if ok and args.incline is not None:
            ok = _report(f"Incline {args.incline} %", await client.set_incline(args.incline))
        if ok and args.resistance is not None:
            ok = _report(
                f"Resistance {args.resistance}", await client.set_resistance_level(args.resistance)
            )
        if ok and args.power is not None:
            ok = _report(f"Power {args.power} W", await client.set_power(args.power))
        if ok and args.stop:
            ok = _report("Stop", await client.stop())
        if not ok:
            sys.exit(1)

    except CommandRangeError as e:
        print(f"\n✗ Value out of range: {e}")
        sys.exit(1)
    except (ControlPointWriteError, DeviceConnectionError) as e:
        print(f"\n✗ {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\n✗ Error: {e}")
        LOGGER.error("Control error", exc_info=True)
        sys.exit(1)
    finally:
        await client.disconnect()
