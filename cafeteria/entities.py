# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definitions for the cafeteria DES: Customer plus the meal and
#   payment enums that drive routing.
#
# Design notes:
#   - Customer attributes are drawn once, at arrival, from the model's RNG.
#   - Ids come from a CustomerSequence owned by the run, so two models never
#     share a counter.
#   - Per-station timestamps are keyed by station name.
#
# Usage:
#   from cafeteria.entities import Customer, CustomerSequence, MealType
# -----------------------------------------------------------------------------

from __future__ import annotations
import itertools, random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional


class MealType(Enum):
    GRILL = "grill"
    VEGAN = "vegan"
    NORMAL = "normal"


class PaymentType(Enum):
    CASHIER = "cashier"
    SELF_SERVICE = "self_service"


DEFAULT_MEAL_MIX = {"grill": 0.3, "vegan": 0.3, "normal": 0.4}


class CustomerSequence:
    """Per-run id source. ids start at 1."""
    def __init__(self):
        self._ids = itertools.count(1)
        self.issued = 0

    def next_id(self) -> int:
        self.issued += 1
        return next(self._ids)

    def reset(self):
        self._ids = itertools.count(1)
        self.issued = 0


@dataclass
class Customer:
    cid: int
    arrival_time: float
    meal_type: MealType = MealType.NORMAL
    payment_type: PaymentType = PaymentType.CASHIER
    wants_coffee: bool = False
    removal_time: Optional[float] = None
    payment_station: Optional[int] = None     # 0 self-service, 1/2 cashier
    queue_entry_times: Dict[str, float] = field(default_factory=dict)   # per-station queue entry timestamps
    service_start_times: Dict[str, float] = field(default_factory=dict)
    service_end_times: Dict[str, float] = field(default_factory=dict)
    wait_times: Dict[str, float] = field(default_factory=dict)          # queue wait per station

    @classmethod
    def draw(cls, cid: int, now: float, rng: random.Random,
             meal_mix: Mapping[str, float] = DEFAULT_MEAL_MIX,
             self_service_prob: float = 0.6, coffee_prob: float = 0.3) -> "Customer":
        """Create a customer arriving at `now` with independently drawn attributes."""
        return cls(
            cid=cid,
            arrival_time=now,
            meal_type=_pick_meal(rng.random(), meal_mix),
            payment_type=PaymentType.SELF_SERVICE if rng.random() < self_service_prob else PaymentType.CASHIER,
            wants_coffee=rng.random() < coffee_prob,
        )

    def mark_enqueued(self, station: str, now: float):
        self.queue_entry_times[station] = now

    def mark_service_start(self, station: str, now: float) -> float:
        """Record service start and return the queue wait at this station."""
        self.service_start_times[station] = now
        wait = max(now - self.queue_entry_times.get(station, now), 0.0)
        self.wait_times[station] = wait
        return wait

    def mark_service_end(self, station: str, now: float):
        self.service_end_times[station] = now

    def remove(self, now: float):
        if self.removal_time is not None:
            raise RuntimeError(f"customer {self.cid} already left at {self.removal_time}")
        self.removal_time = now

    @property
    def has_left(self) -> bool:
        return self.removal_time is not None

    def time_in_system(self) -> Optional[float]:
        if self.removal_time is None:
            return None
        return self.removal_time - self.arrival_time


def _pick_meal(u: float, meal_mix: Mapping[str, float]) -> MealType:
    acc = 0.0
    for mt in MealType:
        acc += meal_mix.get(mt.value, 0.0)
        if u < acc:
            return mt
    # rounding slack in the mix falls through to the last bucket
    return MealType.NORMAL
