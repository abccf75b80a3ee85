# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exception hierarchy for the cafeteria DES.
#
# Design notes:
#   - Config problems are ValueErrors so callers validating user input can
#     catch them generically.
#   - Routing/scheduling errors are contract violations: the model never
#     catches them, they halt the run.
#
# Usage:
#   from cafeteria.errors import ConfigError
# -----------------------------------------------------------------------------

from __future__ import annotations


class CafeteriaError(Exception):
    """Base class for every error raised by the simulator."""


class ConfigError(CafeteriaError, ValueError):
    """Invalid configuration (negative durations, bad rates, bad probabilities)."""


class DisabledStationError(CafeteriaError):
    """A customer was routed to a station that is switched off."""


class CapacityExceededError(CafeteriaError):
    """A customer was routed to a station that is already full."""


class EmptyEventQueueError(CafeteriaError):
    """The future event list was peeked or popped while empty."""


class SchedulingError(CafeteriaError):
    """An event reached the engine with no handler registered for its kind."""
