"""Tunable timing, capacity and telemetry parameters for a rollout session."""

from __future__ import annotations

from dataclasses import dataclass

from canarysim.rollout.deployment import step_in_tenths


@dataclass(frozen=True)
class TelemetryBaseline:
    """Per-role telemetry profile.

    Attributes:
        latency_ms: Mean latency of metric samples.
        success_rate: Mean success rate of metric samples.
        request_latency_ms: Mean latency of logged requests.
        request_jitter_ms: Half-width of the uniform request latency jitter.
        error_probability: Chance that a logged request returns 500.
    """

    latency_ms: float
    success_rate: float
    request_latency_ms: float
    request_jitter_ms: float
    error_probability: float


STABLE_BASELINE = TelemetryBaseline(
    latency_ms=100.0,
    success_rate=0.99,
    request_latency_ms=100.0,
    request_jitter_ms=10.0,
    error_probability=0.02,
)

CANARY_BASELINE = TelemetryBaseline(
    latency_ms=120.0,
    success_rate=0.97,
    request_latency_ms=120.0,
    request_jitter_ms=20.0,
    error_probability=0.05,
)


@dataclass(frozen=True)
class RolloutConfig:
    """Configuration for RolloutController and SimulationClock.

    Intervals and delays are in simulation seconds.
    """

    metrics_interval: float = 2.0
    log_interval: float = 0.75
    promote_delay: float = 2.0
    rollback_delay: float = 2.0
    provision_delay: float = 1.5
    metrics_window_size: int = 30
    log_buffer_size: int = 100
    version_step: float = 0.1
    stable_baseline: TelemetryBaseline = STABLE_BASELINE
    canary_baseline: TelemetryBaseline = CANARY_BASELINE

    def __post_init__(self):
        if self.metrics_interval <= 0 or self.log_interval <= 0:
            raise ValueError("Tick intervals must be positive.")
        if min(self.promote_delay, self.rollback_delay, self.provision_delay) < 0:
            raise ValueError("Transition delays must be non-negative.")
        if self.metrics_window_size < 1 or self.log_buffer_size < 1:
            raise ValueError("Window and buffer sizes must be at least 1.")
        step_in_tenths(self.version_step)
