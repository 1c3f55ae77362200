from __future__ import annotations

from collections import deque
from dataclasses import dataclass

# Smoothing factor for the RSSI moving average (0 < alpha <= 1).
EWMA_ALPHA = 0.3
DEFAULT_SAMPLE_WINDOW = 2.0


@dataclass(frozen=True)
class RssiSample:
    """A single signal strength reading in dBm."""

    rssi: int
    timestamp: float


class SignalStatistics:
    """Rolling RSSI window with EWMA smoothing and a median.

    Samples older than ``window`` seconds relative to the newest sample are
    evicted on every insert. Smoothed and median values are ``None`` until the
    first sample arrives.
    """

    def __init__(self, window: float = DEFAULT_SAMPLE_WINDOW, alpha: float = EWMA_ALPHA) -> None:
        if window <= 0:
            raise ValueError("window must be positive")
        if not 0 < alpha <= 1:
            raise ValueError("alpha must be between 0 and 1")
        self._window = window
        self._alpha = alpha
        self._samples: deque[RssiSample] = deque()
        self.smoothed_rssi: float | None = None
        self.last_seen: float | None = None

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> tuple[RssiSample, ...]:
        """Return the currently retained samples, oldest first."""
        return tuple(self._samples)

    def add_sample(self, rssi: int, at: float) -> None:
        """Record a reading and refresh the smoothed value."""
        self._samples.append(RssiSample(rssi, at))
        cutoff = at - self._window
        # Arrival order may differ from timestamp order, so filter the whole window.
        if any(sample.timestamp < cutoff for sample in self._samples):
            self._samples = deque(s for s in self._samples if s.timestamp >= cutoff)
        self.last_seen = at

        if self.smoothed_rssi is None:
            self.smoothed_rssi = float(rssi)
        else:
            self.smoothed_rssi = self._alpha * rssi + (1 - self._alpha) * self.smoothed_rssi

    def median(self) -> float | None:
        """Return the median of the retained samples, or None when empty."""
        if not self._samples:
            return None
        ordered = sorted(sample.rssi for sample in self._samples)
        middle = len(ordered) // 2
        if len(ordered) % 2:
            return float(ordered[middle])
        return (ordered[middle - 1] + ordered[middle]) / 2.0
