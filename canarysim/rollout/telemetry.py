"""Synthetic telemetry: per-version metric samples and request log entries.

Generators are read-only with respect to session state: they take the
values they need as arguments and return new records. Appending the records
to windows and buffers is the controller's job.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime

from canarysim.rollout.config import CANARY_BASELINE, STABLE_BASELINE, TelemetryBaseline
from canarysim.rollout.deployment import Deployment, Slot

MIN_LATENCY_MS = 50.0
MIN_SUCCESS_RATE = 0.9
MAX_SUCCESS_RATE = 1.0

LATENCY_JITTER_MS = 10.0
SUCCESS_JITTER = 0.02

HTTP_OK = 200
HTTP_SERVER_ERROR = 500


@dataclass(frozen=True)
class VersionMetricSample:
    """One metrics tick for one slot."""

    simulated_time: int
    latency_ms: float
    success_rate: float


@dataclass(frozen=True)
class LogEntry:
    """One simulated request."""

    timestamp: datetime
    target: Slot
    version: str
    http_status: int
    latency_ms: int

    @property
    def is_error(self) -> bool:
        return self.http_status >= HTTP_SERVER_ERROR


class MetricsGenerator:
    """Produces latency/success-rate samples around a fixed baseline.

    Latency is baseline +/- 10 ms, floored at 50 ms. Success rate is
    baseline +/- 0.02, clamped to [0.9, 1.0].

    Args:
        baseline_latency_ms: Center of the latency distribution.
        baseline_success_rate: Center of the success-rate distribution.
        seed: Random seed for deterministic behavior.
    """

    def __init__(
        self,
        baseline_latency_ms: float,
        baseline_success_rate: float,
        seed: int | None = None,
    ):
        self.baseline_latency_ms = baseline_latency_ms
        self.baseline_success_rate = baseline_success_rate
        self._rng = random.Random(seed)

    @classmethod
    def for_baseline(cls, baseline: TelemetryBaseline, seed: int | None = None) -> MetricsGenerator:
        return cls(baseline.latency_ms, baseline.success_rate, seed=seed)

    def sample(self, simulated_time: int) -> VersionMetricSample:
        latency = self.baseline_latency_ms + self._rng.uniform(-LATENCY_JITTER_MS, LATENCY_JITTER_MS)
        success = self.baseline_success_rate + self._rng.uniform(-SUCCESS_JITTER, SUCCESS_JITTER)
        return VersionMetricSample(
            simulated_time=simulated_time,
            latency_ms=max(MIN_LATENCY_MS, latency),
            success_rate=max(MIN_SUCCESS_RATE, min(MAX_SUCCESS_RATE, success)),
        )


class RequestLogGenerator:
    """Produces one simulated request routed according to the traffic split.

    Args:
        stable_baseline: Request profile of the stable slot.
        canary_baseline: Request profile of the canary slot.
        seed: Random seed for deterministic behavior.
    """

    def __init__(
        self,
        stable_baseline: TelemetryBaseline = STABLE_BASELINE,
        canary_baseline: TelemetryBaseline = CANARY_BASELINE,
        seed: int | None = None,
    ):
        self._baselines = {Slot.STABLE: stable_baseline, Slot.CANARY: canary_baseline}
        self._rng = random.Random(seed)

    def pick_target(self, traffic_split: int) -> Slot:
        """Route to canary when a uniform [0, 100) draw falls below the split."""
        return Slot.CANARY if self._rng.uniform(0, 100) < traffic_split else Slot.STABLE

    def generate(
        self,
        traffic_split: int,
        stable: Deployment,
        canary: Deployment,
        timestamp: datetime,
    ) -> LogEntry:
        target = self.pick_target(traffic_split)
        baseline = self._baselines[target]

        failed = self._rng.random() < baseline.error_probability
        jitter = self._rng.uniform(-baseline.request_jitter_ms, baseline.request_jitter_ms)
        deployment = canary if target is Slot.CANARY else stable

        return LogEntry(
            timestamp=timestamp,
            target=target,
            version=deployment.version,
            http_status=HTTP_SERVER_ERROR if failed else HTTP_OK,
            latency_ms=max(0, round(baseline.request_latency_ms + jitter)),
        )
