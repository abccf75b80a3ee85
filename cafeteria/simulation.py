# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   CafeteriaModel: build stations, router, arrivals and metrics for one run,
#   hand them to the Engine, and expose the control surface a front end uses
#   (horizon, pacing delay, start/pause/resume/cancel, statistics).
#
# Design notes:
#   - Every run gets its own Clock, FEL, id sequence and RNG streams, so
#     models are independent and seeded runs are reproducible.
#   - Seeds for each station sampler, the arrival stream and the customer
#     attribute draws are derived from sim.seed in a fixed order.
#
# Usage:
#   from cafeteria.simulation import CafeteriaModel, run_simulation
#   results = run_simulation(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, random
from typing import Dict, Optional

from .arrivals import ArrivalProcess, interarrival_mean
from .config import default_cfg, validate_cfg
from .distributions import Negexp
from .engine import Engine, EngineState
from .entities import CustomerSequence
from .events import Clock, EventQueue
from .metrics import Metrics, SimulationStatistics
from .network import Router
from .stations import make_stations
from .view import SimulationView


class CafeteriaModel:
    def __init__(self, cfg: Optional[Dict] = None, view: Optional[SimulationView] = None):
        cfg = validate_cfg(copy.deepcopy(cfg) if cfg is not None else default_cfg())
        self.cfg = cfg
        self.view = view if view is not None else SimulationView()

        seeds = random.Random(cfg["sim"].get("seed"))
        next_seed = lambda: seeds.randrange(2**32)

        self.clock = Clock()
        self.events = EventQueue()
        self.stations = make_stations(cfg, self.clock, self.events, next_seed)
        self.metrics = Metrics(self.stations, self.clock)
        self.customers = CustomerSequence()
        rate = cfg["arrivals"]["rate_per_hour"]
        self.arrivals = ArrivalProcess(Negexp(interarrival_mean(rate), seed=next_seed()), self.events, self.clock)
        self.router = Router(cfg, self.stations, self.metrics, self.arrivals, self.clock,
                             self.customers, random.Random(next_seed()), self.view)
        self.engine = Engine(
            self.clock, self.events, list(self.stations.values()),
            initialize=self._initialize,
            handlers=self.router.handlers(),
            after_tick=self._after_tick,
            finalize=self._finalize,
        )
        self.engine.set_simulation_horizon(cfg["sim"]["opening_hours"] * 3600.0)
        self.engine.set_delay(cfg["sim"].get("delay_ms", 0))

    # ---- engine hooks --------------------------------------------------------
    def _initialize(self):
        self.customers.reset()
        self.arrivals.generate_next()   # first arrival in the system

    def _after_tick(self):
        self.metrics.record_tick(self.clock.now())
        self.view.queue_lengths_updated(self.queue_lengths())
        self._publish_statistics()

    def _finalize(self):
        self._publish_statistics()
        self.view.simulation_ended(self.clock.now())

    def _publish_statistics(self):
        s = self.metrics.snapshot()
        self.view.statistics_updated(s.throughput, s.average_wait, s.peak_queue_length,
                                     s.current_time, s.customers_rejected)

    # ---- control surface -----------------------------------------------------
    def set_simulation_horizon(self, seconds: float):
        self.engine.set_simulation_horizon(seconds)

    @property
    def simulation_horizon(self) -> float:
        return self.engine.horizon

    def set_pacing_delay(self, ms: int):
        self.engine.set_delay(ms)

    @property
    def pacing_delay(self) -> int:
        return self.engine.get_delay()

    def start(self):
        return self.engine.start()

    def run(self) -> Dict:
        self.engine.run()
        return self.summary()

    def pause(self):
        self.engine.pause()

    def resume(self):
        self.engine.resume()

    def is_paused(self) -> bool:
        return self.engine.is_paused()

    def cancel(self):
        self.engine.cancel()

    def join(self, timeout: Optional[float] = None) -> bool:
        return self.engine.join(timeout)

    @property
    def state(self) -> EngineState:
        return self.engine.state

    # ---- observation -----------------------------------------------------------
    def queue_lengths(self) -> Dict[str, int]:
        return {name: len(sp) for name, sp in self.stations.items()}

    def statistics(self) -> SimulationStatistics:
        return self.metrics.snapshot()

    def summary(self) -> Dict:
        return self.metrics.summary()


def run_simulation(cfg: Dict, view: Optional[SimulationView] = None) -> Dict:
    """Run one replication synchronously and return the metrics summary."""
    model = CafeteriaModel(cfg, view=view)
    return model.run()
