"""Events, the units of work the simulation loop processes.

Each event fires at a specific simulation time and is dispatched to its
target entity's handle_event(). Ordering is (time, insertion order), so
events scheduled for the same instant run in FIFO order.
"""

from __future__ import annotations

import logging
from itertools import count
from typing import TYPE_CHECKING, Any

from canarysim.core.temporal import Instant

if TYPE_CHECKING:
    from canarysim.core.entity import Entity

logger = logging.getLogger(__name__)

_global_event_counter = count()


class Event:
    """A unit of simulation work targeted at an Entity.

    Attributes:
        time: When this event should be processed.
        event_type: Label the target uses to dispatch the event.
        target: Entity that receives the event.
        daemon: True for background events (periodic ticks) that should not
            keep a bounded run alive on their own.
        context: Arbitrary metadata carried with the event.
    """

    __slots__ = ("_cancelled", "_sort_index", "context", "daemon", "event_type", "target", "time")

    def __init__(
        self,
        time: Instant,
        event_type: str,
        target: Entity | None = None,
        *,
        daemon: bool = False,
        context: dict[str, Any] | None = None,
    ):
        if target is None:
            raise ValueError(f"Event '{event_type}' must have a 'target'.")

        self.time = time
        self.event_type = event_type
        self.target = target
        self.daemon = daemon
        self.context = context if context is not None else {}
        self._sort_index = next(_global_event_counter)
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """Whether this event has been cancelled."""
        return self._cancelled

    def cancel(self) -> None:
        """Mark this event as cancelled. The simulation loop skips it on pop.

        Cancelling an already-cancelled or already-processed event is a no-op.
        """
        self._cancelled = True

    def invoke(self) -> list[Event]:
        """Dispatch to the target and normalize the result into a list."""
        result = self.target.handle_event(self)
        if result is None:
            return []
        if isinstance(result, Event):
            return [result]
        return list(result)

    def __lt__(self, other: Event) -> bool:
        if self.time != other.time:
            return self.time < other.time
        return self._sort_index < other._sort_index

    def __repr__(self) -> str:
        target_name = getattr(self.target, "name", None) or type(self.target).__name__
        return f"Event({self.time!r}, {self.event_type!r}, target={target_name})"
