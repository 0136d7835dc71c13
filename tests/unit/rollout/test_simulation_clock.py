"""Unit tests for SimulationClock tick scheduling."""

from datetime import timedelta

from canarysim.core.simulation import Simulation
from canarysim.core.temporal import Instant
from canarysim.rollout.controller import RolloutController
from canarysim.rollout.deployment import Slot
from canarysim.rollout.simulation_clock import LOG_TICK, METRICS_TICK, SimulationClock


def make_clock(epoch, seed: int = 42) -> tuple[Simulation, RolloutController, SimulationClock]:
    controller = RolloutController()
    clock = SimulationClock(controller, epoch=epoch, seed=seed)
    sim = Simulation(entities=[controller, clock])
    sim.schedule(clock.start())
    return sim, controller, clock


class TestTicks:
    def test_start_arms_both_ticks(self, epoch):
        controller = RolloutController()
        clock = SimulationClock(controller, epoch=epoch)
        Simulation(entities=[controller, clock])
        events = clock.start()
        assert {e.event_type for e in events} == {METRICS_TICK, LOG_TICK}
        assert all(e.daemon for e in events)
        times = {e.event_type: e.time for e in events}
        assert times[METRICS_TICK] == Instant.from_seconds(2.0)
        assert times[LOG_TICK] == Instant.from_seconds(0.75)

    def test_metrics_tick_every_two_seconds(self, epoch):
        sim, controller, _ = make_clock(epoch)
        sim.advance(10.0)
        assert controller.simulated_time == 5
        assert len(controller.window(Slot.STABLE)) == 5
        assert len(controller.window(Slot.CANARY)) == 5

    def test_samples_carry_time_current_at_generation(self, epoch):
        sim, controller, _ = make_clock(epoch)
        sim.advance(8.0)
        times = [s.simulated_time for s in controller.window(Slot.STABLE).samples]
        assert times == [0, 1, 2, 3]
        assert [s.simulated_time for s in controller.window(Slot.CANARY).samples] == times

    def test_no_logs_at_zero_split(self, epoch):
        sim, controller, _ = make_clock(epoch)
        sim.advance(30.0)
        assert len(controller.logs) == 0

    def test_logs_every_750ms_when_split_positive(self, epoch):
        sim, controller, _ = make_clock(epoch)
        controller.set_traffic_split(50)
        sim.advance(7.5)
        assert len(controller.logs) == 10

    def test_log_timestamps_follow_simulation_time(self, epoch):
        sim, controller, _ = make_clock(epoch)
        controller.set_traffic_split(100)
        sim.advance(1.5)
        newest, oldest = controller.logs.entries
        assert oldest.timestamp == epoch + timedelta(seconds=0.75)
        assert newest.timestamp == epoch + timedelta(seconds=1.5)
        assert newest.target is Slot.CANARY

    def test_windows_cap_after_many_ticks(self, epoch):
        sim, controller, _ = make_clock(epoch)
        controller.set_traffic_split(10)
        sim.advance(2.0 * 40)
        samples = controller.window(Slot.STABLE).samples
        assert len(samples) == 30
        assert [s.simulated_time for s in samples] == list(range(10, 40))
        assert len(controller.logs) == 100


class TestRearm:
    def test_rearm_cancels_pending_ticks(self, epoch):
        sim, controller, clock = make_clock(epoch)
        sim.advance(1.0)
        sim.schedule(clock.rearm())
        # Old metrics tick at 2.0 is cancelled; the new one fires at 3.0.
        sim.advance(1.5)
        assert controller.simulated_time == 0
        sim.advance(0.5)
        assert controller.simulated_time == 1
        assert clock.rearm_count == 1

    def test_rearm_keeps_simulated_time_and_windows(self, epoch):
        sim, controller, clock = make_clock(epoch)
        sim.advance(6.0)
        sim.schedule(clock.rearm())
        assert controller.simulated_time == 3
        assert len(controller.window(Slot.STABLE)) == 3

    def test_seeded_runs_are_reproducible(self, epoch):
        sim_a, controller_a, _ = make_clock(epoch, seed=9)
        sim_b, controller_b, _ = make_clock(epoch, seed=9)
        for sim, controller in ((sim_a, controller_a), (sim_b, controller_b)):
            controller.set_traffic_split(30)
            sim.advance(20.0)
        assert controller_a.snapshot() == controller_b.snapshot()
