# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# view.py
# -----------------------------------------------------------------------------
# Purpose:
#   Outbound notification surface consumed by a front end (GUI, dashboard,
#   console). The core only promises call order and frequency: customer
#   movements as they happen, queue lengths + statistics after every tick,
#   and one simulation_ended at the end.
#
# Design notes:
#   - SimulationView is a no-op base; front ends override what they draw.
#   - Notifications arrive on the engine thread. A front end with its own
#     event loop wraps itself in QueuedView and calls drain() from that loop.
#
# Usage:
#   bridge = QueuedView(); model = CafeteriaModel(cfg, view=bridge)
#   ... in the UI loop: bridge.drain(my_view)
# -----------------------------------------------------------------------------

from __future__ import annotations
import queue
from typing import Any, Dict, Optional, Tuple

from .entities import MealType, PaymentType


class SimulationView:
    def customer_created(self, meal_type: MealType):
        pass

    def customer_to_payment(self, meal_type: MealType, payment_type: PaymentType, station_index: int):
        pass

    def customer_to_coffee(self, payment_type: PaymentType, station_index: int):
        pass

    def customer_exit_after_coffee(self):
        pass

    def customer_exit_after_payment(self, payment_type: PaymentType, station_index: int):
        pass

    def queue_lengths_updated(self, lengths: Dict[str, int]):
        pass

    def statistics_updated(self, throughput: float, avg_wait: float, peak_queue: int,
                           sim_time: float, rejected: int = 0):
        pass

    def simulation_ended(self, final_time: float):
        pass


class QueuedView(SimulationView):
    """Thread-safe hand-off: records notifications for replay on another thread."""
    def __init__(self, maxsize: int = 0):
        self._q: "queue.Queue[Tuple[str, tuple]]" = queue.Queue(maxsize)
        self.ended = False

    def _put(self, name: str, *args: Any):
        self._q.put((name, args))

    def customer_created(self, meal_type):
        self._put("customer_created", meal_type)

    def customer_to_payment(self, meal_type, payment_type, station_index):
        self._put("customer_to_payment", meal_type, payment_type, station_index)

    def customer_to_coffee(self, payment_type, station_index):
        self._put("customer_to_coffee", payment_type, station_index)

    def customer_exit_after_coffee(self):
        self._put("customer_exit_after_coffee")

    def customer_exit_after_payment(self, payment_type, station_index):
        self._put("customer_exit_after_payment", payment_type, station_index)

    def queue_lengths_updated(self, lengths):
        self._put("queue_lengths_updated", dict(lengths))

    def statistics_updated(self, throughput, avg_wait, peak_queue, sim_time, rejected=0):
        self._put("statistics_updated", throughput, avg_wait, peak_queue, sim_time, rejected)

    def simulation_ended(self, final_time):
        self._put("simulation_ended", final_time)

    def pending(self) -> int:
        return self._q.qsize()

    def drain(self, target: SimulationView, limit: Optional[int] = None) -> int:
        """Replay queued notifications onto `target`; returns how many were delivered."""
        n = 0
        while limit is None or n < limit:
            try:
                name, args = self._q.get_nowait()
            except queue.Empty:
                break
            if name == "simulation_ended":
                self.ended = True
            getattr(target, name)(*args)
            n += 1
        return n
