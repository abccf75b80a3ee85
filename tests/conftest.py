"""Shared fixtures for the cafeteria simulation tests."""

from __future__ import annotations

import pytest

from cafeteria.config import apply_overrides, default_cfg
from cafeteria.entities import Customer, MealType, PaymentType
from cafeteria.simulation import CafeteriaModel
from cafeteria.view import SimulationView


class RecordingView(SimulationView):
    """Collects every notification; optionally checks model invariants each tick."""

    def __init__(self, model: CafeteriaModel | None = None):
        self.model = model
        self.calls: list[tuple] = []
        self.tick_times: list[float] = []
        self.violations: list[str] = []
        self.ended_at: float | None = None

    def customer_created(self, meal_type):
        self.calls.append(("customer_created", meal_type))

    def customer_to_payment(self, meal_type, payment_type, station_index):
        self.calls.append(("customer_to_payment", meal_type, payment_type, station_index))

    def customer_to_coffee(self, payment_type, station_index):
        self.calls.append(("customer_to_coffee", payment_type, station_index))

    def customer_exit_after_coffee(self):
        self.calls.append(("customer_exit_after_coffee",))

    def customer_exit_after_payment(self, payment_type, station_index):
        self.calls.append(("customer_exit_after_payment", payment_type, station_index))

    def queue_lengths_updated(self, lengths):
        self.calls.append(("queue_lengths_updated", dict(lengths)))
        if self.model is None:
            return
        for sp in self.model.stations.values():
            if sp.reserved and len(sp) < 1:
                self.violations.append(f"{sp.name} reserved with empty queue")
            if len(sp) > sp.capacity:
                self.violations.append(f"{sp.name} over capacity: {len(sp)} > {sp.capacity}")

    def statistics_updated(self, throughput, avg_wait, peak_queue, sim_time, rejected=0):
        self.calls.append(("statistics_updated", throughput, avg_wait, peak_queue, sim_time, rejected))
        self.tick_times.append(sim_time)

    def simulation_ended(self, final_time):
        self.calls.append(("simulation_ended", final_time))
        self.ended_at = final_time

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


def make_cfg(**sections) -> dict:
    """default_cfg() with per-section overrides, e.g. make_cfg(capacities={"max_queue": 1})."""
    return apply_overrides(default_cfg(), sections)


def make_customer(model: CafeteriaModel, meal: MealType = MealType.NORMAL,
                  payment: PaymentType = PaymentType.CASHIER, coffee: bool = False) -> Customer:
    c = model.router.new_customer()
    c.meal_type = meal
    c.payment_type = payment
    c.wants_coffee = coffee
    return c


@pytest.fixture
def recording_view():
    return RecordingView()


@pytest.fixture
def tight_model():
    """Capacity 1 everywhere, fixed service times, self-service and coffee off."""
    cfg = make_cfg(
        sim={"seed": 7},
        capacities={"max_queue": 1},
        stations={"variability": False, "self_service_enabled": False, "coffee_enabled": False},
        service_times={"grill": 10, "vegan": 10, "normal": 10, "cashier": 10, "self_service": 10, "coffee": 10},
    )
    return CafeteriaModel(cfg)
