"""The discrete-event loop.

Simulation pops events in (time, insertion order), advances the shared
clock, and schedules whatever the target entity returns. Everything that
mutates model state runs inside this single loop, so two handlers never
interleave.

Unlike a batch run, the loop can be advanced incrementally with
``run_until()`` so that callers outside the loop can issue commands between
steps.
"""

from __future__ import annotations

import logging
from typing import Union

from canarysim.core.clock import Clock
from canarysim.core.entity import Entity
from canarysim.core.event import Event
from canarysim.core.event_heap import EventHeap
from canarysim.core.temporal import Duration, Instant

logger = logging.getLogger(__name__)


class Simulation:
    """Owns the event heap and clock and drives entities forward in time.

    Args:
        start_time: Initial simulation time.
        entities: Entities that receive the simulation clock.
        end_time: Optional hard stop for ``run()``.
        duration: Alternative to end_time, in seconds from start_time.
    """

    def __init__(
        self,
        start_time: Instant = Instant.Epoch,
        entities: list[Entity] | None = None,
        end_time: Instant | None = None,
        duration: float | None = None,
    ):
        if end_time is not None and duration is not None:
            raise ValueError("Specify either end_time or duration, not both.")
        if duration is not None:
            end_time = start_time + Duration.from_seconds(duration)

        self._start_time = start_time
        self._end_time = end_time
        self._clock = Clock(start_time)
        self._event_heap = EventHeap()
        self._primary_pending = 0
        self._events_processed = 0
        self._entities: list[Entity] = []

        for entity in entities or []:
            self.add_entity(entity)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def now(self) -> Instant:
        return self._clock.now

    @property
    def events_processed(self) -> int:
        return self._events_processed

    @property
    def pending_events(self) -> int:
        return self._event_heap.size()

    def add_entity(self, entity: Entity) -> None:
        """Attach an entity to this simulation's clock."""
        entity.set_clock(self._clock)
        self._entities.append(entity)

    def schedule(self, events: Union[Event, list[Event], None]) -> None:
        """Add one or more events to the heap.

        Raises:
            ValueError: If an event is scheduled before the current time.
        """
        if events is None:
            return
        if isinstance(events, Event):
            events = [events]
        for event in events:
            if event.time < self._clock.now:
                raise ValueError(
                    f"Cannot schedule {event!r} before current time {self._clock.now!r}."
                )
            if not event.daemon:
                self._primary_pending += 1
            self._event_heap.push(event)

    def _peek_live(self) -> Event | None:
        """Drop cancelled events off the top of the heap and return the next live one."""
        while self._event_heap.has_events():
            event = self._event_heap.peek()
            if not event.cancelled:
                return event
            self._event_heap.pop()
            if not event.daemon:
                self._primary_pending -= 1
        return None

    def step(self) -> bool:
        """Process the next live event. Returns False if none remain."""
        if self._peek_live() is None:
            return False
        event = self._event_heap.pop()
        if not event.daemon:
            self._primary_pending -= 1

        self._clock.update(event.time)
        self._events_processed += 1
        logger.debug("Processing %r", event)
        self.schedule(event.invoke())
        return True

    def run_until(self, time: Instant) -> None:
        """Process every event at or before ``time``, then park the clock there."""
        if time < self._clock.now:
            raise ValueError(f"Cannot run backwards to {time!r} from {self._clock.now!r}.")

        while True:
            head = self._peek_live()
            if head is None or head.time > time:
                break
            self.step()
        self._clock.update(time)

    def advance(self, seconds: float) -> None:
        """Run the loop forward by ``seconds`` of simulation time."""
        self.run_until(self._clock.now + Duration.from_seconds(seconds))

    def run(self) -> int:
        """Run to end_time, or until only daemon events remain.

        Returns:
            Total number of events processed so far.
        """
        logger.info("Simulation started at %r (end_time=%r)", self._clock.now, self._end_time)
        if self._end_time is not None:
            self.run_until(self._end_time)
        else:
            while self._primary_pending > 0 and self.step():
                pass
        logger.info(
            "Simulation stopped at %r after %d events", self._clock.now, self._events_processed
        )
        return self._events_processed
