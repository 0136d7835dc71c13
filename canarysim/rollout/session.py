"""Operator-facing facade over a running rollout simulation.

RolloutSession wires a RolloutController and a SimulationClock into one
Simulation and guards every entry point with a single lock, so operator
commands issued from other threads serialize with the tick loop.

Example:
    session = RolloutSession(seed=42)
    session.set_traffic_split(20)
    session.advance(30.0)
    session.promote()
    session.advance(2.0)
    snapshot = session.snapshot()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from datetime import datetime

from canarysim.core.simulation import Simulation
from canarysim.core.temporal import Instant
from canarysim.rollout.config import RolloutConfig
from canarysim.rollout.controller import CommandResult, RolloutController, RolloutSnapshot
from canarysim.rollout.deployment import Deployment, Slot
from canarysim.rollout.simulation_clock import SimulationClock

logger = logging.getLogger(__name__)


class RolloutSession:
    """Long-lived canary rollout session.

    Args:
        config: Timing and capacity settings.
        deployments: Initial stable and canary records.
        epoch: Wall-clock instant for simulation time zero.
        seed: Random seed for deterministic telemetry.
        name: Prefix for the controller and clock names.
    """

    def __init__(
        self,
        config: RolloutConfig | None = None,
        deployments: Mapping[Slot, Deployment] | None = None,
        epoch: datetime | None = None,
        seed: int | None = None,
        name: str = "rollout",
    ):
        self._lock = threading.RLock()
        self._controller = RolloutController(name=name, config=config, deployments=deployments)
        self._clock = SimulationClock(
            self._controller, name=f"{name}.telemetry", epoch=epoch, seed=seed
        )
        self._simulation = Simulation(entities=[self._controller, self._clock])

        self._controller.add_listener(self._on_state_change)
        self._simulation.schedule(self._clock.start())
        logger.info("[%s] Session started", name)

    @property
    def controller(self) -> RolloutController:
        return self._controller

    @property
    def clock(self) -> SimulationClock:
        return self._clock

    @property
    def simulation(self) -> Simulation:
        return self._simulation

    @property
    def now(self) -> Instant:
        with self._lock:
            return self._simulation.now

    def set_traffic_split(self, percent: float) -> CommandResult:
        with self._lock:
            return self._controller.set_traffic_split(percent)

    def promote(self) -> CommandResult:
        with self._lock:
            return self._submit(self._controller.promote())

    def rollback(self) -> CommandResult:
        with self._lock:
            return self._submit(self._controller.rollback())

    def advance(self, seconds: float) -> None:
        """Run the simulation forward by ``seconds`` of simulation time."""
        with self._lock:
            self._simulation.advance(seconds)

    def run_until(self, instant: Instant) -> None:
        with self._lock:
            self._simulation.run_until(instant)

    def snapshot(self) -> RolloutSnapshot:
        with self._lock:
            return self._controller.snapshot()

    def run_realtime(
        self,
        seconds: float,
        speed: float = 1.0,
        step: float = 0.05,
        stop: threading.Event | None = None,
    ) -> None:
        """Advance in lockstep with the wall clock.

        The lock is released between steps so other threads can issue
        commands while this runs.

        Args:
            seconds: Simulation seconds to run.
            speed: Simulation seconds per wall-clock second.
            step: Simulation seconds per step.
            stop: Optional event that ends the run early when set.
        """
        if speed <= 0 or step <= 0:
            raise ValueError("speed and step must be positive.")

        remaining = seconds
        while remaining > 0 and not (stop is not None and stop.is_set()):
            increment = min(step, remaining)
            time.sleep(increment / speed)
            self.advance(increment)
            remaining -= increment

    def _submit(self, result: CommandResult) -> CommandResult:
        if result.accepted:
            self._simulation.schedule(result.events)
        return result

    def _on_state_change(self) -> None:
        self._simulation.schedule(self._clock.rearm())
