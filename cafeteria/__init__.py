"""
cafeteria package initializer.

This package contains the discrete-event engine, primitives (clock, events,
service points), generators, routing logic, policies, and metric collection
used by the multi-stage cafeteria flow model.
"""
__all__ = [
    "errors", "events", "distributions", "entities", "queues", "arrivals",
    "engine", "stations", "policies", "network", "metrics", "view",
    "config", "simulation",
]
