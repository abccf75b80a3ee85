# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# events.py
# -----------------------------------------------------------------------------
# Purpose:
#   Minimal discrete-event primitives: the simulation Clock, the event kinds
#   used by the cafeteria network, Event, and the Future Event List (FEL).
#
# Design notes:
#   - The Clock is a plain object owned by one model and injected into every
#     component that needs "now"; there is no process-wide instance.
#   - Events sharing a timestamp are ordered by insertion sequence so a seeded
#     run always replays identically.
#
# Usage:
#   from cafeteria.events import Clock, Event, EventKind, EventQueue
# -----------------------------------------------------------------------------

from __future__ import annotations
import heapq, itertools, logging
from enum import Enum, auto
from typing import Iterator, List, Optional

from .errors import EmptyEventQueueError

log = logging.getLogger(__name__)


class Clock:
    """Simulation time in seconds; non-decreasing for the lifetime of a run."""
    def __init__(self):
        self._t: float = 0.0

    def now(self) -> float:
        return self._t

    def advance(self, t: float):
        if t < self._t:
            raise ValueError(f"clock cannot move backwards ({t} < {self._t})")
        self._t = t

    def reset(self):
        self._t = 0.0


class EventKind(Enum):
    ARRIVAL = auto()
    MEAL_GRILL_DEP = auto()
    MEAL_VEGAN_DEP = auto()
    MEAL_NORMAL_DEP = auto()
    CASHIER_1_DEP = auto()
    CASHIER_2_DEP = auto()
    SELF_SERVICE_DEP = auto()
    COFFEE_DEP = auto()


class Event:
    """Minimal event object for the Future Event List (FEL)."""
    __slots__ = ("t", "kind", "data", "seq")
    def __init__(self, t: float, kind: EventKind, data: Optional[dict] = None):
        self.t = t; self.kind = kind; self.data = data if data is not None else {}
        self.seq = 0  # assigned by EventQueue.add
    def __lt__(self, other: "Event"):
        return (self.t, self.seq) < (other.t, other.seq)
    def __repr__(self):
        return f"Event(t={self.t:.3f}, kind={self.kind.name}, seq={self.seq})"


class EventQueue:
    """Min-heap of Events keyed on (time, insertion sequence).

    Peeking or popping an empty queue is a scheduling bug and raises
    EmptyEventQueueError; the engine checks ``len()`` before advancing.
    """
    def __init__(self):
        self._heap: List[Event] = []
        self._counter = itertools.count()

    def add(self, ev: Event) -> Event:
        ev.seq = next(self._counter)
        heapq.heappush(self._heap, ev)
        log.debug("scheduled %r", ev)
        return ev

    def peek_time(self) -> float:
        if not self._heap:
            raise EmptyEventQueueError("peek on empty event queue")
        return self._heap[0].t

    def pop(self) -> Event:
        if not self._heap:
            raise EmptyEventQueueError("pop on empty event queue")
        return heapq.heappop(self._heap)

    def clear(self):
        self._heap.clear()
        self._counter = itertools.count()

    def count(self, kind: EventKind) -> int:
        return sum(1 for ev in self._heap if ev.kind is kind)

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[Event]:
        # heap order, not time order
        return iter(list(self._heap))
