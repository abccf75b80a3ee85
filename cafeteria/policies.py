# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Routing decisions for the cafeteria network: which meal station serves a
#   meal type and which cashier takes the next paying customer.
#
# Design notes:
#   - Keep pure functions to ease testing (policy -> decision); the router
#     applies the decision and does the bookkeeping.
#
# Usage:
#   from cafeteria.policies import meal_station_for, pick_cashier
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Optional, Sequence

from .entities import MealType
from .queues import ServicePoint

MEAL_STATIONS = {
    MealType.GRILL: "grill",
    MealType.VEGAN: "vegan",
    MealType.NORMAL: "normal",
}


def meal_station_for(meal_type: MealType) -> str:
    return MEAL_STATIONS[meal_type]


def pick_cashier(cashiers: Sequence[ServicePoint], max_capacity: Optional[float] = None) -> Optional[int]:
    """
    Shortest queue among open cashiers that can still take a customer.
    Ties go to the earliest cashier in the sequence. Returns the position in
    `cashiers`, or None when every cashier is full or closed.
    """
    best = None
    for pos, sp in enumerate(cashiers):
        if not sp.enabled or not sp.has_capacity(max_capacity):
            continue
        if best is None or len(sp) < len(cashiers[best]):
            best = pos
    return best


def all_full(stations: Sequence[ServicePoint], max_capacity: Optional[float] = None) -> bool:
    return all(not sp.has_capacity(max_capacity) for sp in stations)
