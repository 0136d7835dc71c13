"""Base class for simulation actors that respond to events.

Entities receive events via handle_event() and return reactions (new events
to schedule). The Simulation injects its clock so entities can read the
current time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from canarysim.core.clock import Clock
    from canarysim.core.event import Event
    from canarysim.core.temporal import Instant

logger = logging.getLogger(__name__)


class Entity(ABC):
    """Abstract base class for all simulation actors.

    The simulation injects the clock during initialization, so entities
    should not read ``now`` outside a simulation context.

    Attributes:
        name: Identifier for logging and debugging.
    """

    def __init__(self, name: str):
        self.name = name
        self._clock: Clock | None = None

    def set_clock(self, clock: Clock) -> None:
        """Inject the simulation clock. Called automatically during setup."""
        self._clock = clock
        logger.debug("[%s] Clock injected", self.name)

    @property
    def now(self) -> Instant:
        """Current simulation time from the injected clock.

        Raises:
            RuntimeError: If accessed before clock injection.
        """
        if self._clock is None:
            logger.error("[%s] Attempted to access time before clock injection", self.name)
            raise RuntimeError(
                f"Entity {self.name} is not attached to a simulation (Clock is None)."
            )
        return self._clock.now

    @abstractmethod
    def handle_event(self, event: Event) -> list[Event] | Event | None:
        """Process an incoming event and return any resulting events."""
        raise NotImplementedError
