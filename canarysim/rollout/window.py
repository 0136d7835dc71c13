"""Bounded telemetry buffers.

MetricsWindow keeps the most recent samples for one slot in insertion order.
LogBuffer keeps the most recent requests newest-first. Both evict the oldest
record on overflow.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict
from typing import Iterator

import pandas as pd

from canarysim.rollout.deployment import Slot
from canarysim.rollout.telemetry import LogEntry, VersionMetricSample


class MetricsWindow:
    """Sliding FIFO window of VersionMetricSample for one slot.

    Args:
        capacity: Maximum number of samples kept.
    """

    def __init__(self, capacity: int = 30):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._samples: deque[VersionMetricSample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def append(self, sample: VersionMetricSample) -> None:
        self._samples.append(sample)

    def clear(self) -> None:
        self._samples.clear()

    @property
    def samples(self) -> tuple[VersionMetricSample, ...]:
        """Samples oldest-first."""
        return tuple(self._samples)

    def latest(self) -> VersionMetricSample | None:
        return self._samples[-1] if self._samples else None

    def mean_latency(self) -> float:
        """Mean latency in ms. Returns 0.0 if empty."""
        if not self._samples:
            return 0.0
        return sum(s.latency_ms for s in self._samples) / len(self._samples)

    def mean_success_rate(self) -> float:
        """Mean success rate. Returns 0.0 if empty."""
        if not self._samples:
            return 0.0
        return sum(s.success_rate for s in self._samples) / len(self._samples)

    def latency_percentile(self, p: float) -> float:
        """Interpolated latency percentile, p in [0, 1]. Returns 0.0 if empty."""
        vals = sorted(s.latency_ms for s in self._samples)
        if not vals:
            return 0.0
        if p <= 0:
            return vals[0]
        if p >= 1:
            return vals[-1]
        pos = p * (len(vals) - 1)
        lo = int(pos)
        hi = min(lo + 1, len(vals) - 1)
        frac = pos - lo
        return vals[lo] * (1.0 - frac) + vals[hi] * frac

    def to_dataframe(self) -> pd.DataFrame:
        """Samples as a DataFrame indexed by simulated time."""
        frame = pd.DataFrame(
            [asdict(s) for s in self._samples],
            columns=["simulated_time", "latency_ms", "success_rate"],
        )
        return frame.set_index("simulated_time")

    def __iter__(self) -> Iterator[VersionMetricSample]:
        return iter(self._samples)

    def __len__(self) -> int:
        return len(self._samples)


class LogBuffer:
    """Newest-first buffer of simulated requests.

    Args:
        capacity: Maximum number of entries kept.
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def prepend(self, entry: LogEntry) -> None:
        # appendleft on a full deque drops from the right, i.e. the oldest entry
        self._entries.appendleft(entry)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        """Entries newest-first."""
        return tuple(self._entries)

    def count(self, target: Slot | None = None) -> int:
        if target is None:
            return len(self._entries)
        return sum(1 for e in self._entries if e.target is target)

    def error_rate(self, target: Slot | None = None) -> float:
        """Fraction of 5xx responses, optionally for one slot. Returns 0.0 if empty."""
        entries = [e for e in self._entries if target is None or e.target is target]
        if not entries:
            return 0.0
        return sum(1 for e in entries if e.is_error) / len(entries)

    def to_dataframe(self) -> pd.DataFrame:
        """Entries newest-first as a DataFrame."""
        rows = [
            {
                "timestamp": e.timestamp,
                "target": e.target.value,
                "version": e.version,
                "http_status": e.http_status,
                "latency_ms": e.latency_ms,
            }
            for e in self._entries
        ]
        return pd.DataFrame(
            rows, columns=["timestamp", "target", "version", "http_status", "latency_ms"]
        )

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
