# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   ServicePoint: a single-server FIFO station with finite buffer K, an
#   enable switch, and its own busy/wait statistics.
#
# Design notes:
#   - The customer in service stays at the head of the queue until departure,
#     so len(queue) counts waiting + in-service and `reserved` implies a
#     non-empty queue.
#   - Service start is driven from outside (engine C-phase); enqueue never
#     starts service by itself.
#   - Routing must check `enabled` and has_capacity() first; violating that is
#     a contract error, not a rejection.
#
# Usage:
#   from cafeteria.queues import ServicePoint, UNBOUNDED
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, math
from collections import deque
from typing import Deque, Optional

from .distributions import Generator
from .entities import Customer
from .errors import CapacityExceededError, DisabledStationError
from .events import Clock, Event, EventKind, EventQueue

log = logging.getLogger(__name__)

UNBOUNDED = math.inf


class ServicePoint:
    """Single-server FIFO station with buffer limit K.

    Parameters
    ----------
    name : str
        Station name for logging/metrics.
    generator : Generator
        Service-time sampler.
    events : EventQueue
        FEL that receives this station's departure events.
    clock : Clock
        Shared simulation clock.
    departure_kind : EventKind
        Kind scheduled when a service completes.
    capacity : float
        System capacity = in_service + in_queue (default inf).
    enabled : bool
        Disabled stations accept nobody and never start service.
    """
    def __init__(self, name: str, generator: Generator, events: EventQueue, clock: Clock,
                 departure_kind: EventKind, capacity: float = UNBOUNDED, enabled: bool = True):
        if capacity < 0:
            raise ValueError(f"{name}: capacity must be non-negative, got {capacity}")
        self.name = name
        self.generator = generator
        self.events = events
        self.clock = clock
        self.departure_kind = departure_kind
        self.capacity = capacity
        self.enabled = enabled
        self.queue: Deque[Customer] = deque()
        self.reserved: bool = False
        self.busy_time: float = 0.0
        self.total_service_time: float = 0.0
        self.total_wait_time: float = 0.0
        self.started: int = 0
        self.served: int = 0
        self.peak_queue_length: int = 0
        self._busy_since: Optional[float] = None

    def __len__(self) -> int:
        return len(self.queue)

    def __repr__(self):
        return (f"ServicePoint({self.name!r}, len={len(self.queue)}, "
                f"reserved={self.reserved}, enabled={self.enabled})")

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    # Capacity check for admission control
    def has_capacity(self, max_capacity: Optional[float] = None) -> bool:
        bound = self.capacity if max_capacity is None else max_capacity
        if bound == UNBOUNDED:
            return True
        return len(self.queue) < bound

    def can_join(self) -> bool:
        return self.enabled and self.has_capacity()

    def enqueue(self, customer: Customer):
        if not self.enabled:
            raise DisabledStationError(f"cannot add customer {customer.cid} to disabled station {self.name}")
        if not self.has_capacity():
            raise CapacityExceededError(
                f"station {self.name} is full ({len(self.queue)}/{self.capacity}); customer {customer.cid}")
        now = self.clock.now()
        customer.mark_enqueued(self.name, now)
        self.queue.append(customer)
        if len(self.queue) > self.peak_queue_length:
            self.peak_queue_length = len(self.queue)

    def begin_service(self):
        """Start serving the head customer; no-op if disabled, busy, or empty."""
        if not self.enabled or self.reserved or not self.queue:
            return
        now = self.clock.now()
        st = self.generator.sample()
        self.total_service_time += st
        head = self.queue[0]
        self.total_wait_time += head.mark_service_start(self.name, now)
        self.started += 1
        self.reserved = True
        self._busy_since = now
        self.events.add(Event(now + st, self.departure_kind, {"station": self.name, "cid": head.cid}))

    def complete_service(self) -> Customer:
        """Pop the customer whose service just ended and free the server."""
        now = self.clock.now()
        customer = self.queue.popleft()
        self._close_busy(now)
        self.reserved = False
        self.served += 1
        customer.mark_service_end(self.name, now)
        return customer

    def finalize(self):
        """Close out an in-progress busy interval at the current clock time."""
        if self.reserved:
            self._close_busy(self.clock.now())
            self._busy_since = self.clock.now()

    def _close_busy(self, now: float):
        if self._busy_since is not None:
            dt = now - self._busy_since
            if dt > 0:
                self.busy_time += dt
        self._busy_since = None

    def utilization(self, elapsed: float) -> float:
        """Percentage of `elapsed` seconds this server spent serving."""
        return self.busy_time / elapsed * 100.0 if elapsed > 0 else 0.0

    def average_wait(self) -> float:
        return self.total_wait_time / self.started if self.started > 0 else 0.0
