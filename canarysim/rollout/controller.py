"""Rollout state machine: two deployment slots, a traffic split, and the
operator-triggered promote and rollback transitions.

The controller is the single owner of session state. Clock ticks hand it new
telemetry through record_metrics()/record_request(), operators call the
command methods, and delayed transition steps arrive as events. Everything
runs inside one simulation loop, so no two mutations interleave.

Transitions are explicit phases with timer events rather than chained
callbacks:

    IDLE --promote()--> PROMOTING --(promote_delay)--> IDLE
    IDLE --rollback()--> ROLLING_BACK --(rollback_delay)--> PROVISIONING
         --(provision_delay)--> IDLE

While not IDLE, promote(), rollback() and set_traffic_split() are rejected.

Example:
    controller = RolloutController()
    sim = Simulation(entities=[controller])
    result = controller.promote()
    sim.schedule(result.events)
    sim.advance(2.0)
    controller.stable.version  # "v1.1"
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from canarysim.core.entity import Entity
from canarysim.core.event import Event
from canarysim.core.temporal import Duration
from canarysim.rollout.config import RolloutConfig
from canarysim.rollout.deployment import (
    INITIAL_DEPLOYMENTS,
    Deployment,
    DeploymentStatus,
    Slot,
    bump_version,
)
from canarysim.rollout.reference import reference_documents
from canarysim.rollout.telemetry import LogEntry, VersionMetricSample
from canarysim.rollout.window import LogBuffer, MetricsWindow

logger = logging.getLogger(__name__)

MIN_TRAFFIC_SPLIT = 0
MAX_TRAFFIC_SPLIT = 100

REJECTED_IN_PROGRESS = "transition in progress"


class RolloutPhase(str, Enum):
    IDLE = "idle"
    PROMOTING = "promoting"
    ROLLING_BACK = "rolling_back"
    PROVISIONING = "provisioning"  # second phase of a rollback


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an operator command.

    Attributes:
        command: Command name.
        accepted: False if the command was a no-op.
        reason: Why the command was rejected, if it was.
        events: Transition timers the caller must schedule.
    """

    command: str
    accepted: bool
    reason: str | None = None
    events: list[Event] = field(default_factory=list, repr=False, compare=False)


@dataclass(frozen=True)
class RolloutSnapshot:
    """Read-only view of the session for a presentation layer."""

    stable: Deployment
    canary: Deployment
    traffic_split: int
    stable_metrics: tuple[VersionMetricSample, ...]
    canary_metrics: tuple[VersionMetricSample, ...]
    logs: tuple[LogEntry, ...]
    simulated_time: int
    phase: RolloutPhase
    references: Mapping[str, str] = field(default_factory=reference_documents, repr=False)

    @property
    def is_transitioning(self) -> bool:
        return self.phase is not RolloutPhase.IDLE

    def deployment(self, slot: Slot) -> Deployment:
        return self.stable if slot is Slot.STABLE else self.canary

    def metrics(self, slot: Slot) -> tuple[VersionMetricSample, ...]:
        return self.stable_metrics if slot is Slot.STABLE else self.canary_metrics


@dataclass(frozen=True)
class RolloutControllerStats:
    """Statistics tracked by RolloutController."""

    promotions_started: int = 0
    promotions_completed: int = 0
    rollbacks_started: int = 0
    rollbacks_completed: int = 0
    commands_rejected: int = 0
    split_changes: int = 0
    metric_ticks: int = 0
    requests_logged: int = 0


class RolloutController(Entity):
    """Owns both deployment slots, the traffic split and all telemetry.

    Attributes:
        name: Controller identifier.
        stats: Frozen statistics snapshot.
        phase: Current transition phase.
    """

    def __init__(
        self,
        name: str = "rollout",
        config: RolloutConfig | None = None,
        deployments: Mapping[Slot, Deployment] | None = None,
    ):
        """Initialize the controller.

        Args:
            name: Controller identifier.
            config: Timing and capacity settings (default RolloutConfig()).
            deployments: Initial stable and canary records
                (default INITIAL_DEPLOYMENTS).
        """
        super().__init__(name)
        self._config = config or RolloutConfig()

        initial = dict(deployments or INITIAL_DEPLOYMENTS)
        if set(initial) != {Slot.STABLE, Slot.CANARY}:
            raise ValueError("Exactly one stable and one canary deployment are required.")
        self._deployments: dict[Slot, Deployment] = initial

        self._traffic_split = 0
        self._simulated_time = 0
        self._windows = {
            slot: MetricsWindow(self._config.metrics_window_size) for slot in Slot
        }
        self._logs = LogBuffer(self._config.log_buffer_size)
        self.phase = RolloutPhase.IDLE
        self._listeners: list[Callable[[], None]] = []

        self._promotions_started = 0
        self._promotions_completed = 0
        self._rollbacks_started = 0
        self._rollbacks_completed = 0
        self._commands_rejected = 0
        self._split_changes = 0
        self._metric_ticks = 0
        self._requests_logged = 0

        logger.debug(
            "[%s] RolloutController initialized: stable=%s canary=%s",
            name,
            self.stable.version,
            self.canary.version,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def config(self) -> RolloutConfig:
        return self._config

    @property
    def stable(self) -> Deployment:
        return self._deployments[Slot.STABLE]

    @property
    def canary(self) -> Deployment:
        return self._deployments[Slot.CANARY]

    @property
    def traffic_split(self) -> int:
        return self._traffic_split

    @property
    def simulated_time(self) -> int:
        return self._simulated_time

    @property
    def is_transitioning(self) -> bool:
        return self.phase is not RolloutPhase.IDLE

    def window(self, slot: Slot) -> MetricsWindow:
        return self._windows[slot]

    @property
    def logs(self) -> LogBuffer:
        return self._logs

    @property
    def stats(self) -> RolloutControllerStats:
        """Return a frozen snapshot of current statistics."""
        return RolloutControllerStats(
            promotions_started=self._promotions_started,
            promotions_completed=self._promotions_completed,
            rollbacks_started=self._rollbacks_started,
            rollbacks_completed=self._rollbacks_completed,
            commands_rejected=self._commands_rejected,
            split_changes=self._split_changes,
            metric_ticks=self._metric_ticks,
            requests_logged=self._requests_logged,
        )

    def snapshot(self) -> RolloutSnapshot:
        return RolloutSnapshot(
            stable=self.stable,
            canary=self.canary,
            traffic_split=self._traffic_split,
            stable_metrics=self._windows[Slot.STABLE].samples,
            canary_metrics=self._windows[Slot.CANARY].samples,
            logs=self._logs.entries,
            simulated_time=self._simulated_time,
            phase=self.phase,
        )

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run after deployments or the traffic split change."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Operator commands
    # ------------------------------------------------------------------

    def set_traffic_split(self, percent: float) -> CommandResult:
        """Route ``percent`` of requests to canary, clamped to [0, 100]."""
        if self.is_transitioning:
            return self._reject("set_traffic_split")

        # NaN routes nothing to canary; halves round up, so 12.5 routes 13%.
        bounded = MIN_TRAFFIC_SPLIT if math.isnan(percent) else percent
        clamped = math.floor(max(MIN_TRAFFIC_SPLIT, min(MAX_TRAFFIC_SPLIT, bounded)) + 0.5)
        if clamped != percent:
            logger.debug("[%s] Traffic split %r clamped to %d", self.name, percent, clamped)

        self._traffic_split = clamped
        self._split_changes += 1
        logger.info("[%s] Traffic split set to %d%% canary", self.name, clamped)
        self._notify()
        return CommandResult(command="set_traffic_split", accepted=True)

    def promote(self) -> CommandResult:
        """Start promoting canary to stable after ``promote_delay``."""
        if self.is_transitioning:
            return self._reject("promote")

        self.phase = RolloutPhase.PROMOTING
        self._promotions_started += 1
        logger.info("[%s] Promotion of %s started", self.name, self.canary.version)
        return CommandResult(
            command="promote",
            accepted=True,
            events=[self._timer("_rollout_promote_complete", self._config.promote_delay)],
        )

    def rollback(self) -> CommandResult:
        """Start replacing the canary with a fresh one based on stable."""
        if self.is_transitioning:
            return self._reject("rollback")

        self.phase = RolloutPhase.ROLLING_BACK
        self._rollbacks_started += 1
        logger.info("[%s] Rollback of %s started", self.name, self.canary.version)
        return CommandResult(
            command="rollback",
            accepted=True,
            events=[self._timer("_rollout_rollback_reprovision", self._config.rollback_delay)],
        )

    # ------------------------------------------------------------------
    # Telemetry intake
    # ------------------------------------------------------------------

    def record_metrics(
        self, stable_sample: VersionMetricSample, canary_sample: VersionMetricSample
    ) -> None:
        """Append one tick of samples and advance simulated time."""
        self._windows[Slot.STABLE].append(stable_sample)
        self._windows[Slot.CANARY].append(canary_sample)
        self._simulated_time += 1
        self._metric_ticks += 1

    def record_request(self, entry: LogEntry) -> None:
        self._logs.prepend(entry)
        self._requests_logged += 1

    # ------------------------------------------------------------------
    # Transition timers
    # ------------------------------------------------------------------

    def handle_event(self, event: Event) -> list[Event] | None:
        et = event.event_type

        if et == "_rollout_promote_complete":
            return self._complete_promotion()
        if et == "_rollout_rollback_reprovision":
            return self._reprovision_canary()
        if et == "_rollout_rollback_complete":
            return self._complete_rollback()
        return None

    def _complete_promotion(self) -> list[Event]:
        if self.phase is not RolloutPhase.PROMOTING:
            logger.warning("[%s] Ignoring promotion timer in phase %s", self.name, self.phase.value)
            return []

        promoted = self.canary
        next_canary = promoted.with_version(
            bump_version(promoted.version, self._config.version_step)
        ).with_status(DeploymentStatus.RUNNING)
        self._deployments = {Slot.STABLE: promoted, Slot.CANARY: next_canary}
        self._reset_session()

        self.phase = RolloutPhase.IDLE
        self._promotions_completed += 1
        logger.info(
            "[%s] Promotion complete: stable=%s canary=%s",
            self.name,
            self.stable.version,
            self.canary.version,
        )
        self._notify()
        return []

    def _reprovision_canary(self) -> list[Event]:
        if self.phase is not RolloutPhase.ROLLING_BACK:
            logger.warning("[%s] Ignoring rollback timer in phase %s", self.name, self.phase.value)
            return []

        # The replacement canary is derived from stable, not from the abandoned canary.
        fresh_version = bump_version(self.stable.version, self._config.version_step)
        self._deployments[Slot.CANARY] = self.canary.with_version(fresh_version).with_status(
            DeploymentStatus.PROVISIONING
        )
        self._reset_session()

        self.phase = RolloutPhase.PROVISIONING
        logger.info("[%s] Rolled back; provisioning canary %s", self.name, fresh_version)
        self._notify()
        return [self._timer("_rollout_rollback_complete", self._config.provision_delay)]

    def _complete_rollback(self) -> list[Event]:
        if self.phase is not RolloutPhase.PROVISIONING:
            logger.warning(
                "[%s] Ignoring provisioning timer in phase %s", self.name, self.phase.value
            )
            return []

        self._deployments[Slot.CANARY] = self.canary.with_status(DeploymentStatus.RUNNING)
        self.phase = RolloutPhase.IDLE
        self._rollbacks_completed += 1
        logger.info("[%s] Rollback complete: canary %s running", self.name, self.canary.version)
        self._notify()
        return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _timer(self, event_type: str, delay: float) -> Event:
        return Event(
            time=self.now + Duration.from_seconds(delay),
            event_type=event_type,
            target=self,
            context={},
        )

    def _reset_session(self) -> None:
        self._traffic_split = 0
        for window in self._windows.values():
            window.clear()
        self._logs.clear()
        self._simulated_time = 0

    def _reject(self, command: str) -> CommandResult:
        self._commands_rejected += 1
        logger.info(
            "[%s] Rejected %s: %s (%s)", self.name, command, REJECTED_IN_PROGRESS, self.phase.value
        )
        return CommandResult(command=command, accepted=False, reason=REJECTED_IN_PROGRESS)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()
