# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# distributions.py
# -----------------------------------------------------------------------------
# Purpose:
#   Duration samplers for service and inter-arrival times: fixed, normal and
#   negative-exponential.
#
# Design notes:
#   - Every generator owns its own random.Random so streams can be seeded
#     independently (common random numbers across scenarios, stable tests).
#   - Normal draws below zero are resampled; after MAX_RESAMPLES misses the
#     sample is clamped to 0.0.
#
# Usage:
#   from cafeteria.distributions import Negexp, make_service_generator
#   g = Negexp(30.0, seed=1); g.sample()
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Optional

from .errors import ConfigError

MAX_RESAMPLES = 100


class Generator:
    """Base sampler. Subclasses implement sample() -> non-negative float."""
    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = random.Random(seed)

    def reseed(self, seed: Optional[int]):
        self.seed = seed
        self.rng.seed(seed)

    def sample(self) -> float:  # pragma: no cover - interface only
        raise NotImplementedError


class Fixed(Generator):
    def __init__(self, value: float, seed: Optional[int] = None):
        super().__init__(seed)
        if value < 0:
            raise ConfigError(f"Fixed: time must be non-negative, got {value}")
        self.value = float(value)

    @property
    def mean(self) -> float:
        return self.value

    def sample(self) -> float:
        return self.value

    def __repr__(self):
        return f"Fixed({self.value})"


class Normal(Generator):
    def __init__(self, mean: float, stddev: float, seed: Optional[int] = None):
        super().__init__(seed)
        if mean < 0:
            raise ConfigError(f"Normal: mean must be non-negative, got {mean}")
        if stddev < 0:
            raise ConfigError(f"Normal: stddev must be non-negative, got {stddev}")
        self.mean = float(mean)
        self.stddev = float(stddev)

    def sample(self) -> float:
        for _ in range(MAX_RESAMPLES):
            x = self.rng.gauss(self.mean, self.stddev)
            if x >= 0.0:
                return x
        return 0.0

    def __repr__(self):
        return f"Normal({self.mean}, {self.stddev})"


class Negexp(Generator):
    def __init__(self, mean: float, seed: Optional[int] = None):
        super().__init__(seed)
        if mean <= 0:
            raise ConfigError(f"Negexp: mean must be positive, got {mean}")
        self.mean = float(mean)

    def sample(self) -> float:
        return self.rng.expovariate(1.0 / self.mean)

    def __repr__(self):
        return f"Negexp({self.mean})"


def make_service_generator(mean: float, variability: bool, cv: float = 0.1,
                           seed: Optional[int] = None) -> Generator:
    """
    Service-time sampler for one station.

    With variability on, service times are Normal(mean, cv*mean); otherwise
    every service takes exactly `mean` seconds.
    """
    if variability:
        return Normal(mean, mean * cv, seed=seed)
    return Fixed(mean, seed=seed)
