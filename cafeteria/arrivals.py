# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Self-perpetuating exogenous arrival stream: each processed arrival asks
#   for the next one, so only one ARRIVAL sits on the FEL at a time.
#
# Design notes:
#   - Rates are configured in customers/hour; the Env runs in SECONDS, so the
#     mean inter-arrival time is 3600 / rate.
#   - Backpressure lives in the router: it simply stops calling
#     generate_next() while every meal station is full.
#
# Usage:
#   ap = ArrivalProcess(Negexp(interarrival_mean(120)), events, clock)
#   ap.generate_next()
# -----------------------------------------------------------------------------

from __future__ import annotations

from .distributions import Generator
from .errors import ConfigError
from .events import Clock, Event, EventKind, EventQueue


def interarrival_mean(rate_per_hour: float) -> float:
    """Convert customers/hour into mean seconds between arrivals."""
    if rate_per_hour <= 0:
        raise ConfigError(f"arrival rate must be positive, got {rate_per_hour}")
    return 3600.0 / rate_per_hour


class ArrivalProcess:
    def __init__(self, generator: Generator, events: EventQueue, clock: Clock,
                 kind: EventKind = EventKind.ARRIVAL):
        self.generator = generator
        self.events = events
        self.clock = clock
        self.kind = kind
        self.scheduled = 0

    def generate_next(self) -> Event:
        ev = self.events.add(Event(self.clock.now() + self.generator.sample(), self.kind))
        self.scheduled += 1
        return ev
