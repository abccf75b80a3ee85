# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Build the seven service points of the cafeteria network from config:
#   three meal stations, two cashiers, a self-service till and a coffee bar.
#
# Design notes:
#   - Mean service times are given in SECONDS in YAML, same unit as the Env.
#   - One shared max_queue bounds every station (null -> unbounded).
#   - Self-service and coffee always exist so queue-length reports keep a
#     stable shape; they are simply disabled when switched off.
#
# Usage:
#   from cafeteria.stations import make_stations
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Callable, Dict, Optional

from .distributions import make_service_generator
from .events import Clock, EventKind, EventQueue
from .queues import ServicePoint, UNBOUNDED

# Station name -> (service_times key, departure event kind), in C-phase order.
STATION_LAYOUT = (
    ("grill",        "grill",        EventKind.MEAL_GRILL_DEP),
    ("vegan",        "vegan",        EventKind.MEAL_VEGAN_DEP),
    ("normal",       "normal",       EventKind.MEAL_NORMAL_DEP),
    ("cashier_1",    "cashier",      EventKind.CASHIER_1_DEP),
    ("cashier_2",    "cashier",      EventKind.CASHIER_2_DEP),
    ("self_service", "self_service", EventKind.SELF_SERVICE_DEP),
    ("coffee",       "coffee",       EventKind.COFFEE_DEP),
)

MEAL = ("grill", "vegan", "normal")
CASHIERS = ("cashier_1", "cashier_2")


def max_queue(cfg: dict) -> float:
    cap = cfg.get("capacities", {}).get("max_queue")
    return UNBOUNDED if cap is None else cap


def make_stations(cfg: dict, clock: Clock, events: EventQueue,
                  next_seed: Callable[[], Optional[int]] = lambda: None) -> Dict[str, ServicePoint]:
    """
    Create all stations from config.

    Parameters
    ----------
    cfg : dict
        Validated config with 'service_times', 'stations' and 'capacities'.
    clock, events : Clock, EventQueue
        Shared by every station.
    next_seed : callable
        Seed source; each station's service sampler gets its own stream.

    Returns
    -------
    dict[str, ServicePoint]
        Mapping station name -> ServicePoint, in C-phase scan order.
    """
    times = cfg["service_times"]
    st_cfg = cfg.get("stations", {})
    variability = bool(st_cfg.get("variability", True))
    cv = float(st_cfg.get("variability_cv", 0.1))
    cap = max_queue(cfg)
    enabled = {
        "self_service": bool(st_cfg.get("self_service_enabled", False)),
        "coffee": bool(st_cfg.get("coffee_enabled", False)),
    }

    S: Dict[str, ServicePoint] = {}
    for name, time_key, kind in STATION_LAYOUT:
        S[name] = ServicePoint(
            name,
            make_service_generator(float(times[time_key]), variability, cv, seed=next_seed()),
            events,
            clock,
            kind,
            capacity=cap,
            enabled=enabled.get(name, True),
        )
    return S
