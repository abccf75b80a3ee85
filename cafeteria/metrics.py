# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Collect and summarize KPIs: customers served/rejected, throughput, time in
#   system, peak queue length, per-station utilization and queue waits.
#
# Design notes:
#   - Keep side-effect methods (note_*) for instrumentation from the router.
#   - Counters only ever grow; snapshots are computed from them on demand and
#     never corrected afterwards.
#   - Summaries return JSON-serializable dicts for easy tabulation.
#
# Usage:
#   M = Metrics(stations, clock); M.snapshot(); M.summary()
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Dict, List, Mapping

from .entities import Customer
from .events import Clock
from .queues import ServicePoint


@dataclass(frozen=True)
class SimulationStatistics:
    customers_served: int
    customers_rejected: int
    throughput: float           # customers per simulated hour
    average_wait: float         # mean time in system, seconds
    peak_queue_length: int
    current_time: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


class Metrics:
    def __init__(self, stations: Mapping[str, ServicePoint], clock: Clock):
        self.stations = stations
        self.clock = clock
        self.arrivals = 0
        self.customers_served = 0
        self.total_time_in_system = 0.0
        self.rejections = defaultdict(int)        # stage -> count ('meal' | 'payment')
        self.served_by_payment = defaultdict(int) # 'cashier_1' | 'cashier_2' | 'self_service'
        self.coffee_served = 0
        self.suspensions = 0
        self.time_series: List[Dict[str, float]] = []

    @property
    def customers_rejected(self) -> int:
        return sum(self.rejections.values())

    def note_arrival(self, customer: Customer):
        self.arrivals += 1

    def note_rejected(self, customer: Customer, stage: str):
        self.rejections[stage] += 1

    def note_payment(self, station_name: str):
        self.served_by_payment[station_name] += 1

    def note_coffee(self):
        self.coffee_served += 1

    def note_suspension(self):
        self.suspensions += 1

    def note_exit(self, customer: Customer):
        self.customers_served += 1
        self.total_time_in_system += customer.removal_time - customer.arrival_time

    def in_system(self) -> int:
        return sum(len(sp) for sp in self.stations.values())

    def peak_queue_length(self) -> int:
        return max((sp.peak_queue_length for sp in self.stations.values()), default=0)

    def throughput(self) -> float:
        t = self.clock.now()
        return self.customers_served / (t / 3600.0) if t > 0 else 0.0

    def average_wait(self) -> float:
        if self.customers_served == 0:
            return 0.0
        return self.total_time_in_system / self.customers_served

    def snapshot(self) -> SimulationStatistics:
        return SimulationStatistics(
            customers_served=self.customers_served,
            customers_rejected=self.customers_rejected,
            throughput=self.throughput(),
            average_wait=self.average_wait(),
            peak_queue_length=self.peak_queue_length(),
            current_time=self.clock.now(),
        )

    def record_tick(self, t: float):
        """Capture a cumulative point for queue-length-over-time plots."""
        self.time_series.append({
            "time_minutes": t / 60.0,
            "queue_total": self.in_system(),
            "served_total": self.customers_served,
        })

    def summary(self) -> Dict:
        elapsed = self.clock.now()
        station_utilization: Dict[str, float] = {}
        station_avg_wait: Dict[str, float] = {}
        station_served: Dict[str, int] = {}
        station_peak: Dict[str, int] = {}
        for name, sp in self.stations.items():
            if not sp.enabled:
                continue
            station_utilization[name] = sp.utilization(elapsed)
            station_avg_wait[name] = sp.average_wait()
            station_served[name] = sp.served
            station_peak[name] = sp.peak_queue_length
        out = self.snapshot().as_dict()
        out.update({
            "arrivals": self.arrivals,
            "in_system": self.in_system(),
            "rejected_by_stage": dict(self.rejections),
            "served_by_payment": dict(self.served_by_payment),
            "coffee_served": self.coffee_served,
            "arrival_suspensions": self.suspensions,
            "station_utilization": station_utilization,
            "station_avg_wait": station_avg_wait,
            "station_served": station_served,
            "station_peak_queue": station_peak,
            "time_series": list(self.time_series),
        })
        return out
