"""
experiments/export.py

Single-row CSV summary of one run, in the column layout the dashboard
expects: Customers,Throughput,AvgWait,PeakQueue,Time.
"""

from __future__ import annotations
import csv, os
from dataclasses import fields

from cafeteria.metrics import SimulationStatistics

CSV_HEADER = ["Customers", "Throughput", "AvgWait", "PeakQueue", "Time"]


def summary_row(stats: SimulationStatistics) -> list:
    return [
        stats.customers_served,
        round(stats.throughput, 3),
        round(stats.average_wait, 3),
        stats.peak_queue_length,
        round(stats.current_time, 3),
    ]


def write_summary_csv(stats: SimulationStatistics, path: str) -> str:
    """Write header + one data row to `path` (parent dirs are created)."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        writer.writerow(summary_row(stats))
    return path


def stats_from_summary(res: dict) -> SimulationStatistics:
    """Rebuild the statistics snapshot from a run_simulation() summary dict."""
    return SimulationStatistics(**{f.name: res[f.name] for f in fields(SimulationStatistics)})
