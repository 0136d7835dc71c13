"""Simulation time types.

Instant is a point on the simulation timeline and Duration is a span between
two instants. Both store integer nanoseconds so that repeated addition of
tick intervals never accumulates floating-point drift.
"""

from __future__ import annotations

from functools import total_ordering
from typing import Union

_NANOS_PER_SECOND = 1_000_000_000


@total_ordering
class Duration:
    """A span of simulation time in nanoseconds."""

    __slots__ = ("nanoseconds",)

    def __init__(self, nanoseconds: int):
        self.nanoseconds = int(nanoseconds)

    @classmethod
    def from_seconds(cls, seconds: float) -> Duration:
        return cls(round(seconds * _NANOS_PER_SECOND))

    def to_seconds(self) -> float:
        return self.nanoseconds / _NANOS_PER_SECOND

    def __add__(self, other: Duration) -> Duration:
        if isinstance(other, Duration):
            return Duration(self.nanoseconds + other.nanoseconds)
        return NotImplemented

    def __eq__(self, other) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.nanoseconds == other.nanoseconds

    def __lt__(self, other: Duration) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.nanoseconds < other.nanoseconds

    def __hash__(self) -> int:
        return hash(("Duration", self.nanoseconds))

    def __repr__(self) -> str:
        return f"Duration({self.to_seconds():g}s)"


@total_ordering
class Instant:
    """A point in simulation time, measured from Instant.Epoch."""

    __slots__ = ("nanoseconds",)

    Epoch: Instant

    def __init__(self, nanoseconds: int):
        self.nanoseconds = int(nanoseconds)

    @classmethod
    def from_seconds(cls, seconds: float) -> Instant:
        return cls(round(seconds * _NANOS_PER_SECOND))

    def to_seconds(self) -> float:
        return self.nanoseconds / _NANOS_PER_SECOND

    def __add__(self, other: Union[Duration, int, float]) -> Instant:
        if isinstance(other, Duration):
            return Instant(self.nanoseconds + other.nanoseconds)
        if isinstance(other, (int, float)):
            return Instant(self.nanoseconds + round(other * _NANOS_PER_SECOND))
        return NotImplemented

    def __sub__(self, other: Union[Instant, Duration]) -> Union[Duration, Instant]:
        if isinstance(other, Instant):
            return Duration(self.nanoseconds - other.nanoseconds)
        if isinstance(other, Duration):
            return Instant(self.nanoseconds - other.nanoseconds)
        return NotImplemented

    def __eq__(self, other) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds == other.nanoseconds

    def __lt__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds < other.nanoseconds

    def __hash__(self) -> int:
        return hash(("Instant", self.nanoseconds))

    def __repr__(self) -> str:
        return f"Instant({self.to_seconds():g}s)"


Instant.Epoch = Instant(0)
