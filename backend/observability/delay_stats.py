"""
Delay sample collection and aggregate latency statistics.

Responsibilities:
- Append-only collection of non-negative integer delays (ms)
- Average / nearest-rank percentile / maximum over the collection

Design notes:
- Percentiles use nearest-rank on the sorted samples, NOT interpolation:
    idx = floor(N * q), clamped to N - 1
- Every statistic of an empty collection is 0 (not an error).
- Insertion order never affects results.
"""

from __future__ import annotations

import math

import numpy as np

from constants import P99_QUANTILE


class DelayStats:
    """
    Running collection of per-frame or per-packet delays.

    Owned by exactly one Receiver or Collector instance.
    """

    def __init__(self) -> None:
        self._samples: list[int] = []

    def add(self, delay_ms: int) -> None:
        """Append one delay sample (ms)."""
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        self._samples.append(int(delay_ms))

    def __len__(self) -> int:
        return len(self._samples)

    def is_empty(self) -> bool:
        return not self._samples

    @property
    def samples(self) -> tuple[int, ...]:
        """Read-only view of the samples in insertion order."""
        return tuple(self._samples)

    # -------------------------
    # Aggregates
    # -------------------------

    def average(self) -> float:
        """sum / N, or 0.0 when there are no samples."""
        if not self._samples:
            return 0.0
        return float(np.mean(np.asarray(self._samples, dtype=np.int64)))

    def maximum(self) -> int:
        """Largest sample, or 0 when there are no samples."""
        if not self._samples:
            return 0
        return int(np.max(np.asarray(self._samples, dtype=np.int64)))

    def percentile(self, q: float) -> int:
        """
        Nearest-rank percentile for quantile `q` in [0, 1].

        Sorts ascending and returns the sample at floor(N * q), clamped
        to the last index. Returns 0 when there are no samples.
        """
        if q < 0.0 or q > 1.0:
            raise ValueError(f"q must be within [0, 1], got {q}")
        if not self._samples:
            return 0

        ordered = np.sort(np.asarray(self._samples, dtype=np.int64))
        idx = min(math.floor(len(ordered) * q), len(ordered) - 1)
        return int(ordered[idx])

    def p99(self) -> int:
        return self.percentile(P99_QUANTILE)

    def snapshot(self) -> dict[str, float | int]:
        """
        Lightweight snapshot for logging / reports.
        """
        return {
            "samples": len(self._samples),
            "avg_delay_ms": self.average(),
            "p99_ms": self.p99(),
            "max_ms": self.maximum(),
        }
