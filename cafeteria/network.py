# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# network.py
# -----------------------------------------------------------------------------
# Purpose:
#   Router and network wiring. Decides where customers go on arrival and
#   after each service completion, applies admission control, and throttles
#   the arrival stream when the meal stations are saturated.
#
# Design notes:
#   - Flow: meal (grill|vegan|normal) -> payment (self-service | cashier 1/2)
#     -> optional coffee -> exit.
#   - A customer who finds its meal station full, or both cashiers full, is
#     rejected and leaves; nobody waits outside a station.
#   - Backpressure: while all three meal stations are full no new arrival is
#     scheduled; the first meal departure that frees a slot restarts it.
#
# Usage:
#   router = Router(cfg, stations, metrics, arrivals, clock, customers, rng, view)
#   engine = Engine(..., handlers=router.handlers())
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, random
from typing import Callable, Dict, Mapping, Optional

from .arrivals import ArrivalProcess
from .entities import DEFAULT_MEAL_MIX, Customer, CustomerSequence, PaymentType
from .events import Clock, Event, EventKind
from .metrics import Metrics
from .policies import all_full, meal_station_for, pick_cashier
from .queues import ServicePoint
from .stations import CASHIERS, MEAL, max_queue
from .view import SimulationView

log = logging.getLogger(__name__)

SELF_SERVICE_INDEX = 0
NO_STATION = -1


class Router:
    def __init__(self, cfg: dict, stations: Mapping[str, ServicePoint], metrics: Metrics,
                 arrivals: ArrivalProcess, clock: Clock, customers: CustomerSequence,
                 rng: random.Random, view: Optional[SimulationView] = None):
        self.cfg = cfg
        self.S = stations
        self.M = metrics
        self.arrivals = arrivals
        self.clock = clock
        self.customers = customers
        self.rng = rng
        self.view = view if view is not None else SimulationView()
        self.cap = max_queue(cfg)
        cust_cfg = cfg.get("customers", {})
        self.meal_mix = cust_cfg.get("meal_mix", DEFAULT_MEAL_MIX)
        self.self_service_prob = cust_cfg.get("self_service_prob", 0.6)
        self.coffee_prob = cust_cfg.get("coffee_prob", 0.3)
        self.arrivals_suspended = False

    def handlers(self) -> Dict[EventKind, Callable[[Event], None]]:
        return {
            EventKind.ARRIVAL: self.on_arrival,
            EventKind.MEAL_GRILL_DEP: self.on_meal_departure,
            EventKind.MEAL_VEGAN_DEP: self.on_meal_departure,
            EventKind.MEAL_NORMAL_DEP: self.on_meal_departure,
            EventKind.CASHIER_1_DEP: self.on_payment_departure,
            EventKind.CASHIER_2_DEP: self.on_payment_departure,
            EventKind.SELF_SERVICE_DEP: self.on_payment_departure,
            EventKind.COFFEE_DEP: self.on_coffee_departure,
        }

    def new_customer(self) -> Customer:
        return Customer.draw(
            self.customers.next_id(), self.clock.now(), self.rng,
            meal_mix=self.meal_mix,
            self_service_prob=self.self_service_prob,
            coffee_prob=self.coffee_prob,
        )

    def meal_stations(self):
        return [self.S[name] for name in MEAL]

    # Incoming arrivals
    def on_arrival(self, ev: Optional[Event] = None) -> Customer:
        customer = self.new_customer()
        self.M.note_arrival(customer)
        target = self.S[meal_station_for(customer.meal_type)]
        if target.has_capacity(self.cap):
            target.enqueue(customer)
            self.view.customer_created(customer.meal_type)
        else:
            # capacity full -> loss; the customer never enters the system
            self.M.note_rejected(customer, "meal")
            log.debug("t=%.3f customer %d rejected at %s (full)", self.clock.now(), customer.cid, target.name)

        meals = self.meal_stations()
        # suspend only while a meal departure is pending to restart the stream
        if all_full(meals, self.cap) and any(len(sp) for sp in meals):
            if not self.arrivals_suspended:
                self.arrivals_suspended = True
                self.M.note_suspension()
                log.info("t=%.3f all meal stations full; arrivals suspended", self.clock.now())
        else:
            self.arrivals.generate_next()
        return customer

    def on_meal_departure(self, ev: Event):
        customer = self.S[ev.data["station"]].complete_service()
        self.route_to_payment(customer)
        if self.arrivals_suspended and not all_full(self.meal_stations(), self.cap):
            self.arrivals_suspended = False
            log.info("t=%.3f meal capacity regained; arrivals resumed", self.clock.now())
            self.arrivals.generate_next()

    def route_to_payment(self, customer: Customer) -> int:
        """
        Send a customer who finished their meal to a payment point.

        Returns 0 for self-service, 1/2 for the cashier used, or NO_STATION
        (-1) if the customer was rejected because both cashiers are full.
        """
        ss = self.S["self_service"]
        if customer.payment_type is PaymentType.SELF_SERVICE and ss.enabled and ss.has_capacity(self.cap):
            ss.enqueue(customer)
            customer.payment_station = SELF_SERVICE_INDEX
            self.view.customer_to_payment(customer.meal_type, customer.payment_type, SELF_SERVICE_INDEX)
            return SELF_SERVICE_INDEX
        return self.redirect_to_cashier(customer)

    def redirect_to_cashier(self, customer: Customer) -> int:
        """Shortest cashier queue with room, ties to cashier 1; -1 if both are full."""
        cashiers = [self.S[name] for name in CASHIERS]
        pos = pick_cashier(cashiers, self.cap)
        if pos is None:
            self.M.note_rejected(customer, "payment")
            log.debug("t=%.3f customer %d rejected at payment (cashiers full)", self.clock.now(), customer.cid)
            return NO_STATION
        cashiers[pos].enqueue(customer)
        index = pos + 1
        customer.payment_station = index
        self.view.customer_to_payment(customer.meal_type, customer.payment_type, index)
        return index

    def on_payment_departure(self, ev: Event):
        name = ev.data["station"]
        customer = self.S[name].complete_service()
        self.M.note_payment(name)
        index = customer.payment_station
        coffee = self.S["coffee"]
        if coffee.enabled and customer.wants_coffee and coffee.has_capacity(self.cap):
            coffee.enqueue(customer)
            self.view.customer_to_coffee(customer.payment_type, index)
        else:
            # coffee closed, not wanted, or full: the customer leaves after paying
            self._exit(customer)
            self.view.customer_exit_after_payment(customer.payment_type, index)

    def on_coffee_departure(self, ev: Event):
        customer = self.S["coffee"].complete_service()
        self.M.note_coffee()
        self._exit(customer)
        self.view.customer_exit_after_coffee()

    def payment_has_capacity(self) -> bool:
        """True if any open payment point or the coffee bar can take a customer."""
        downstream = [self.S[name] for name in CASHIERS + ("self_service", "coffee")]
        return any(sp.enabled and sp.has_capacity(self.cap) for sp in downstream)

    def _exit(self, customer: Customer):
        customer.remove(self.clock.now())
        self.M.note_exit(customer)
        log.debug("t=%.3f customer %d left after %.1fs", self.clock.now(), customer.cid, customer.time_in_system())
