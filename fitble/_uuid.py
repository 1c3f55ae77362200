"""Bluetooth SIG UUID helpers."""

from __future__ import annotations

SIG_BASE_SUFFIX = "-0000-1000-8000-00805f9b34fb"


def bt16(uuid16: int) -> str:
    """Convert a 16-bit SIG UUID to a 128-bit UUID string."""
    return f"0000{uuid16:04x}{SIG_BASE_SUFFIX}"


def uuid16_of(uuid: str) -> int | None:
    """Return the 16-bit short value of a SIG base UUID, or None for anything else."""
    normalized = uuid.lower()
    if len(normalized) == 4:
        short = normalized
    elif (
        len(normalized) == 36
        and normalized.startswith("0000")
        and normalized.endswith(SIG_BASE_SUFFIX)
    ):
        short = normalized[4:8]
    else:
        return None
    try:
        return int(short, 16)
    except ValueError:
        return None
