"""Periodic telemetry ticks feeding a RolloutController.

Two independent self-rescheduling ticks run for the life of the session:

- metrics tick (default every 2.0 s): samples both slots at the current
  simulated time and hands them to the controller, which advances the
  simulated-time counter.
- log tick (default every 0.75 s): generates one request when the traffic
  split is above zero.

When the controller's deployments or traffic split change, ``rearm()``
cancels the pending ticks and starts fresh ones a full interval later.
Re-arming never touches simulated time or accumulated telemetry.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from canarysim.core.entity import Entity
from canarysim.core.event import Event
from canarysim.core.temporal import Duration
from canarysim.rollout.controller import RolloutController
from canarysim.rollout.telemetry import MetricsGenerator, RequestLogGenerator

logger = logging.getLogger(__name__)

METRICS_TICK = "_telemetry_metrics_tick"
LOG_TICK = "_telemetry_log_tick"


class SimulationClock(Entity):
    """Drives MetricsGenerator and RequestLogGenerator on fixed intervals.

    Args:
        controller: Controller that receives the generated telemetry.
        name: Clock identifier.
        epoch: Wall-clock instant that corresponds to simulation time zero.
            Log timestamps are ``epoch + now``.
        seed: Random seed for deterministic telemetry.
    """

    def __init__(
        self,
        controller: RolloutController,
        name: str = "telemetry",
        epoch: datetime | None = None,
        seed: int | None = None,
    ):
        super().__init__(name)
        config = controller.config

        self._controller = controller
        self._metrics_interval = Duration.from_seconds(config.metrics_interval)
        self._log_interval = Duration.from_seconds(config.log_interval)
        self._epoch = epoch or datetime.now(UTC)

        # Separate seeds per generator keep the metric stream independent of log traffic
        self._stable_metrics = MetricsGenerator.for_baseline(
            config.stable_baseline, seed=seed
        )
        self._canary_metrics = MetricsGenerator.for_baseline(
            config.canary_baseline, seed=None if seed is None else seed + 1
        )
        self._requests = RequestLogGenerator(
            config.stable_baseline,
            config.canary_baseline,
            seed=None if seed is None else seed + 2,
        )

        self._pending: dict[str, Event] = {}
        self._rearm_count = 0

    @property
    def rearm_count(self) -> int:
        return self._rearm_count

    def start(self) -> list[Event]:
        """Arm both ticks. Returns the first tick events to schedule."""
        return self._arm()

    def rearm(self) -> list[Event]:
        """Cancel pending ticks and arm fresh ones from the current time."""
        for event in self._pending.values():
            event.cancel()
        self._rearm_count += 1
        logger.debug("[%s] Ticks re-armed at %r", self.name, self.now)
        return self._arm()

    def wall_clock(self) -> datetime:
        return self._epoch + timedelta(seconds=self.now.to_seconds())

    def handle_event(self, event: Event) -> list[Event] | None:
        et = event.event_type
        if et == METRICS_TICK:
            self._generate_metrics()
            return [self._schedule(METRICS_TICK, self._metrics_interval)]
        if et == LOG_TICK:
            self._generate_log()
            return [self._schedule(LOG_TICK, self._log_interval)]
        return None

    def _generate_metrics(self) -> None:
        simulated_time = self._controller.simulated_time
        stable_sample = self._stable_metrics.sample(simulated_time)
        canary_sample = self._canary_metrics.sample(simulated_time)
        self._controller.record_metrics(stable_sample, canary_sample)
        logger.debug(
            "[%s] Metrics tick t=%d stable=%.1fms canary=%.1fms",
            self.name,
            simulated_time,
            stable_sample.latency_ms,
            canary_sample.latency_ms,
        )

    def _generate_log(self) -> None:
        split = self._controller.traffic_split
        if split <= 0:
            return
        entry = self._requests.generate(
            split,
            self._controller.stable,
            self._controller.canary,
            timestamp=self.wall_clock(),
        )
        self._controller.record_request(entry)

    def _arm(self) -> list[Event]:
        return [
            self._schedule(METRICS_TICK, self._metrics_interval),
            self._schedule(LOG_TICK, self._log_interval),
        ]

    def _schedule(self, event_type: str, interval: Duration) -> Event:
        event = Event(
            time=self.now + interval,
            event_type=event_type,
            target=self,
            daemon=True,
            context={},
        )
        self._pending[event_type] = event
        return event
