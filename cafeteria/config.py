# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Load, merge and validate the nested config dict that every other module
#   reads (sim / arrivals / service_times / stations / capacities /
#   customers / experiments).
#
# Design notes:
#   - YAML files only need to contain the keys they change; they are merged
#     recursively over DEFAULT_CFG.
#   - validate_cfg() is the single gate: bad values raise ConfigError before
#     any station or generator is built.
#
# Usage:
#   cfg = load_cfg("config/baseline.yaml")
#   cfg = apply_overrides(cfg, {"capacities": {"max_queue": 3}})
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, math, numbers, os
from typing import Dict, Optional

import yaml

from .errors import ConfigError

DEFAULT_CFG: Dict = {
    "sim": {
        "seed": 42,
        "opening_hours": 3.0,      # horizon = opening_hours * 3600 s
        "delay_ms": 0,             # cosmetic pacing between ticks
    },
    "arrivals": {
        "rate_per_hour": 120.0,
    },
    "service_times": {             # mean seconds per customer
        "grill": 45.0,
        "vegan": 40.0,
        "normal": 30.0,
        "cashier": 20.0,
        "self_service": 12.0,
        "coffee": 10.0,
    },
    "stations": {
        "variability": True,       # Normal(mean, cv*mean) instead of fixed times
        "variability_cv": 0.1,
        "self_service_enabled": False,
        "coffee_enabled": False,
    },
    "capacities": {
        "max_queue": None,         # null / "unlimited" -> unbounded
    },
    "customers": {
        "meal_mix": {"grill": 0.3, "vegan": 0.3, "normal": 0.4},
        "self_service_prob": 0.6,
        "coffee_prob": 0.3,
    },
    "experiments": {
        "replications": 5,
        "confidence_level": 0.95,
        "output_dir": "experiments/output",
    },
}

SERVICE_KEYS = ("grill", "vegan", "normal", "cashier", "self_service", "coffee")


def default_cfg() -> Dict:
    return copy.deepcopy(DEFAULT_CFG)


def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply scenario overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides or {})
    return new


def load_cfg(path: Optional[str] = None) -> Dict:
    """Read a YAML config (if given) over the defaults and validate it."""
    cfg = default_cfg()
    if path is not None:
        if not os.path.exists(path):
            raise ConfigError(f"config file not found: {path}")
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        cfg = apply_overrides(cfg, raw)
    return validate_cfg(cfg)


def _is_number(v) -> bool:
    return isinstance(v, numbers.Real) and not isinstance(v, bool)


def _non_negative(section: str, key: str, v):
    if not _is_number(v) or v < 0 or math.isnan(v):
        raise ConfigError(f"{section}.{key} must be a non-negative number, got {v!r}")


def _probability(section: str, key: str, v):
    if not _is_number(v) or not 0.0 <= v <= 1.0:
        raise ConfigError(f"{section}.{key} must be within [0, 1], got {v!r}")


def validate_cfg(cfg: Dict) -> Dict:
    """
    Check a merged config and normalize max_queue in place.

    Raises
    ------
    ConfigError
        On unknown sections, negative times/capacities, a non-positive
        arrival rate, or probabilities outside [0, 1].
    """
    unknown = set(cfg) - set(DEFAULT_CFG)
    if unknown:
        raise ConfigError(f"unknown config sections: {sorted(unknown)}")

    sim = cfg.get("sim", {})
    _non_negative("sim", "opening_hours", sim.get("opening_hours", 0.0))
    _non_negative("sim", "delay_ms", sim.get("delay_ms", 0))
    seed = sim.get("seed")
    if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool)):
        raise ConfigError(f"sim.seed must be an integer or null, got {seed!r}")

    rate = cfg.get("arrivals", {}).get("rate_per_hour")
    if not _is_number(rate) or rate <= 0:
        raise ConfigError(f"arrivals.rate_per_hour must be positive, got {rate!r}")

    times = cfg.get("service_times", {})
    for key in SERVICE_KEYS:
        if key not in times:
            raise ConfigError(f"service_times.{key} is missing")
        _non_negative("service_times", key, times[key])

    _non_negative("stations", "variability_cv", cfg.get("stations", {}).get("variability_cv", 0.1))

    caps = cfg.setdefault("capacities", {})
    cap = caps.get("max_queue")
    if isinstance(cap, str) and cap.strip().lower() == "unlimited":
        cap = None
    if cap is not None:
        if not isinstance(cap, int) or isinstance(cap, bool) or cap < 0:
            raise ConfigError(f"capacities.max_queue must be a non-negative integer or null, got {cap!r}")
    caps["max_queue"] = cap

    cust = cfg.get("customers", {})
    mix = cust.get("meal_mix", {})
    for key, p in mix.items():
        if key not in ("grill", "vegan", "normal"):
            raise ConfigError(f"customers.meal_mix has unknown meal type {key!r}")
        _probability("customers.meal_mix", key, p)
    if mix and abs(sum(mix.values()) - 1.0) > 1e-6:
        raise ConfigError(f"customers.meal_mix must sum to 1, got {sum(mix.values())}")
    _probability("customers", "self_service_prob", cust.get("self_service_prob", 0.6))
    _probability("customers", "coffee_prob", cust.get("coffee_prob", 0.3))
    return cfg
