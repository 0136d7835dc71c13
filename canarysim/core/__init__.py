"""Core simulation engine components."""

from canarysim.core.clock import Clock
from canarysim.core.entity import Entity
from canarysim.core.event import Event
from canarysim.core.event_heap import EventHeap
from canarysim.core.simulation import Simulation
from canarysim.core.temporal import Duration, Instant

__all__ = [
    "Clock",
    "Duration",
    "Entity",
    "Event",
    "EventHeap",
    "Instant",
    "Simulation",
]
