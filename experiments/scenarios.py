"""
experiments/scenarios.py

Holds scenario definitions (decision variables) to sweep during experiments.
Add station toggles, capacities and load levels here.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

SELF_SERVICE = {
    "name": "self_service",
    "overrides": {
        "stations": {"self_service_enabled": True},
    },
}

SELF_SERVICE_COFFEE = {
    "name": "self_service_coffee",
    "overrides": {
        "stations": {"self_service_enabled": True, "coffee_enabled": True},
    },
}

TIGHT_CAPACITY = {
    "name": "tight_capacity",
    "overrides": {
        "capacities": {"max_queue": 3},
        "stations": {"coffee_enabled": True},
    },
}

HIGH_LOAD = {
    "name": "high_load",
    "overrides": {
        "arrivals": {"rate_per_hour": 240},
        "capacities": {"max_queue": 10},
        "stations": {"self_service_enabled": True, "coffee_enabled": True},
    },
}

SCENARIOS = [BASELINE, SELF_SERVICE, SELF_SERVICE_COFFEE, TIGHT_CAPACITY, HIGH_LOAD]
