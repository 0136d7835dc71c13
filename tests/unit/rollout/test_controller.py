"""Unit tests for RolloutController."""

import pytest

from canarysim.core.clock import Clock
from canarysim.core.event import Event
from canarysim.core.temporal import Instant
from canarysim.rollout.config import RolloutConfig
from canarysim.rollout.controller import (
    REJECTED_IN_PROGRESS,
    RolloutController,
    RolloutPhase,
)
from canarysim.rollout.deployment import Deployment, DeploymentStatus, Slot
from canarysim.rollout.telemetry import LogEntry, VersionMetricSample


def make_controller(
    config: RolloutConfig | None = None,
    deployments: dict | None = None,
    time: float = 0.0,
) -> tuple[RolloutController, Clock]:
    clock = Clock(Instant.from_seconds(time))
    controller = RolloutController(name="rollout", config=config, deployments=deployments)
    controller.set_clock(clock)
    return controller, clock


def fire(controller: RolloutController, clock: Clock, event: Event) -> list[Event]:
    """Advance the clock to the event and dispatch it, as the loop would."""
    clock.update(event.time)
    return controller.handle_event(event) or []


def fill_telemetry(controller: RolloutController, ticks: int = 3, requests: int = 3) -> None:
    for t in range(ticks):
        s = VersionMetricSample(simulated_time=t, latency_ms=100.0, success_rate=0.99)
        controller.record_metrics(s, s)
    for i in range(requests):
        controller.record_request(
            LogEntry(timestamp=None, target=Slot.CANARY, version="v1.1", http_status=200, latency_ms=i)
        )


def assert_session_reset(controller: RolloutController) -> None:
    assert controller.traffic_split == 0
    assert len(controller.window(Slot.STABLE)) == 0
    assert len(controller.window(Slot.CANARY)) == 0
    assert len(controller.logs) == 0
    assert controller.simulated_time == 0


class TestCreation:
    def test_defaults(self):
        controller, _ = make_controller()
        assert controller.stable.version == "v1.0"
        assert controller.canary.version == "v1.1"
        assert controller.traffic_split == 0
        assert controller.phase is RolloutPhase.IDLE
        assert not controller.is_transitioning

    def test_requires_both_slots(self):
        with pytest.raises(ValueError):
            RolloutController(deployments={Slot.STABLE: Deployment("v1.0", 1)})


class TestTrafficSplit:
    @pytest.mark.parametrize(
        "requested,effective",
        [
            (20, 20),
            (0, 0),
            (100, 100),
            (-5, 0),
            (150, 100),
            (33.4, 33),
            (99.6, 100),
            (12.5, 13),
            (13.5, 14),
            (0.5, 1),
            (float("nan"), 0),
            (float("inf"), 100),
        ],
    )
    def test_split_is_clamped(self, requested, effective):
        controller, _ = make_controller()
        result = controller.set_traffic_split(requested)
        assert result.accepted
        assert controller.traffic_split == effective

    def test_sequence_of_splits(self):
        controller, _ = make_controller()
        for p in [10, 250, -1, 55, 0, 101]:
            controller.set_traffic_split(p)
            assert controller.traffic_split == max(0, min(100, p))

    def test_split_change_keeps_telemetry(self):
        controller, _ = make_controller()
        fill_telemetry(controller)
        controller.set_traffic_split(40)
        assert controller.simulated_time == 3
        assert len(controller.window(Slot.STABLE)) == 3
        assert len(controller.logs) == 3

    def test_split_rejected_during_transition(self):
        controller, _ = make_controller()
        controller.set_traffic_split(10)
        controller.promote()
        result = controller.set_traffic_split(50)
        assert not result.accepted
        assert result.reason == REJECTED_IN_PROGRESS
        assert controller.traffic_split == 10

    def test_listener_notified(self):
        controller, _ = make_controller()
        calls = []
        controller.add_listener(lambda: calls.append(controller.traffic_split))
        controller.set_traffic_split(25)
        assert calls == [25]


class TestPromote:
    def test_promote_returns_delayed_timer(self):
        controller, _ = make_controller()
        result = controller.promote()
        assert result.accepted
        assert controller.phase is RolloutPhase.PROMOTING
        assert controller.is_transitioning
        [timer] = result.events
        assert timer.time == Instant.from_seconds(2.0)
        assert timer.target is controller

    def test_nothing_changes_before_timer_fires(self):
        controller, _ = make_controller()
        controller.set_traffic_split(20)
        controller.promote()
        assert controller.stable.version == "v1.0"
        assert controller.canary.version == "v1.1"
        assert controller.traffic_split == 20

    def test_promote_completes(self):
        controller, clock = make_controller(
            deployments={
                Slot.STABLE: Deployment("v1.0", 5, cpu_request="250m", memory_request="512Mi"),
                Slot.CANARY: Deployment("v1.1", 2, cpu_request="500m", memory_request="1Gi"),
            }
        )
        controller.set_traffic_split(20)
        fill_telemetry(controller)

        [timer] = controller.promote().events
        assert fire(controller, clock, timer) == []

        assert controller.stable == Deployment("v1.1", 2, cpu_request="500m", memory_request="1Gi")
        assert controller.canary.version == "v1.2"
        assert controller.canary.status is DeploymentStatus.RUNNING
        assert controller.canary.instance_count == 2
        assert controller.phase is RolloutPhase.IDLE
        assert_session_reset(controller)
        assert controller.stats.promotions_completed == 1

    def test_second_transition_rejected_while_promoting(self):
        controller, clock = make_controller()
        [timer] = controller.promote().events

        again = controller.promote()
        rollback = controller.rollback()
        assert not again.accepted and again.events == []
        assert not rollback.accepted and rollback.events == []
        assert controller.stats.commands_rejected == 2

        fire(controller, clock, timer)
        assert controller.stable.version == "v1.1"
        assert controller.canary.version == "v1.2"

    def test_repeated_promotions(self):
        controller, clock = make_controller()
        for expected_stable in ["v1.1", "v1.2", "v1.3"]:
            [timer] = controller.promote().events
            fire(controller, clock, timer)
            assert controller.stable.version == expected_stable
        assert controller.canary.version == "v1.4"


class TestRollback:
    def test_rollback_two_phases(self):
        controller, clock = make_controller()
        controller.set_traffic_split(30)
        fill_telemetry(controller)
        stable_before = controller.stable

        [reprovision] = controller.rollback().events
        assert controller.phase is RolloutPhase.ROLLING_BACK
        assert reprovision.time == Instant.from_seconds(2.0)

        [complete] = fire(controller, clock, reprovision)
        assert controller.phase is RolloutPhase.PROVISIONING
        assert controller.is_transitioning
        assert controller.canary.version == "v1.1"
        assert controller.canary.status is DeploymentStatus.PROVISIONING
        assert controller.stable == stable_before
        assert_session_reset(controller)
        assert complete.time == Instant.from_seconds(3.5)

        fire(controller, clock, complete)
        assert controller.phase is RolloutPhase.IDLE
        assert controller.canary.status is DeploymentStatus.RUNNING
        assert controller.canary.version == "v1.1"
        assert controller.stable == stable_before
        assert controller.stats.rollbacks_completed == 1

    def test_rollback_bumps_from_stable_not_canary(self):
        controller, clock = make_controller(
            deployments={
                Slot.STABLE: Deployment("v2.4", 5),
                Slot.CANARY: Deployment("v2.7", 1),
            }
        )
        [reprovision] = controller.rollback().events
        [complete] = fire(controller, clock, reprovision)
        fire(controller, clock, complete)
        assert controller.canary.version == "v2.5"
        assert controller.stable.version == "v2.4"

    def test_commands_rejected_during_provisioning(self):
        controller, clock = make_controller()
        [reprovision] = controller.rollback().events
        fire(controller, clock, reprovision)

        assert not controller.promote().accepted
        assert not controller.rollback().accepted
        assert not controller.set_traffic_split(10).accepted

    def test_custom_delays(self):
        config = RolloutConfig(rollback_delay=1.0, provision_delay=0.5)
        controller, clock = make_controller(config=config)
        [reprovision] = controller.rollback().events
        [complete] = fire(controller, clock, reprovision)
        assert reprovision.time == Instant.from_seconds(1.0)
        assert complete.time == Instant.from_seconds(1.5)

    def test_listener_notified_on_both_phases(self):
        controller, clock = make_controller()
        phases = []
        controller.add_listener(lambda: phases.append(controller.phase))
        [reprovision] = controller.rollback().events
        [complete] = fire(controller, clock, reprovision)
        fire(controller, clock, complete)
        assert phases == [RolloutPhase.PROVISIONING, RolloutPhase.IDLE]


class TestStaleTimers:
    def test_timer_in_wrong_phase_is_ignored(self):
        controller, clock = make_controller()
        stray = Event(
            time=Instant.from_seconds(1.0),
            event_type="_rollout_promote_complete",
            target=controller,
        )
        assert fire(controller, clock, stray) == []
        assert controller.stable.version == "v1.0"
        assert controller.phase is RolloutPhase.IDLE

    def test_unknown_event_ignored(self):
        controller, clock = make_controller()
        event = Event(time=Instant.Epoch, event_type="unrelated", target=controller)
        assert controller.handle_event(event) is None


class TestTelemetryIntake:
    def test_record_metrics_advances_simulated_time(self):
        controller, _ = make_controller()
        fill_telemetry(controller, ticks=5, requests=0)
        assert controller.simulated_time == 5
        assert controller.stats.metric_ticks == 5

    def test_windows_capped(self):
        controller, _ = make_controller()
        fill_telemetry(controller, ticks=45, requests=130)
        assert len(controller.window(Slot.STABLE)) == 30
        assert len(controller.window(Slot.CANARY)) == 30
        assert len(controller.logs) == 100
        assert controller.logs.entries[0].latency_ms == 129

    def test_snapshot_is_read_only_view(self):
        controller, _ = make_controller()
        fill_telemetry(controller, ticks=2, requests=1)
        controller.set_traffic_split(15)
        snap = controller.snapshot()

        fill_telemetry(controller, ticks=1, requests=1)
        assert len(snap.stable_metrics) == 2
        assert len(snap.logs) == 1
        assert snap.traffic_split == 15
        assert snap.deployment(Slot.CANARY).version == "v1.1"
        assert snap.metrics(Slot.STABLE) == snap.stable_metrics
        assert not snap.is_transitioning
        assert "strategy" in snap.references
