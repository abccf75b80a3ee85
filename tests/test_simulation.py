"""End-to-end runs, engine control and the threaded surface."""

from __future__ import annotations

import time

import pytest

from cafeteria.engine import Engine, EngineState
from cafeteria.errors import EmptyEventQueueError, SchedulingError
from cafeteria.events import Clock, Event, EventKind, EventQueue
from cafeteria.simulation import CafeteriaModel, run_simulation
from cafeteria.view import QueuedView
from conftest import RecordingView, make_cfg


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class TestFullRun:

    def test_invariants_hold_every_tick(self):
        cfg = make_cfg(sim={"seed": 3, "opening_hours": 1.0}, capacities={"max_queue": 3},
                       stations={"self_service_enabled": True, "coffee_enabled": True},
                       arrivals={"rate_per_hour": 240})
        view = RecordingView()
        model = CafeteriaModel(cfg, view=view)
        view.model = model
        model.run()
        assert view.violations == []
        assert view.tick_times == sorted(view.tick_times)
        assert view.ended_at is not None and view.ended_at >= 3600.0
        assert model.state is EngineState.STOPPED

    def test_customers_are_conserved(self):
        cfg = make_cfg(sim={"seed": 11, "opening_hours": 1.0}, capacities={"max_queue": 2},
                       stations={"coffee_enabled": True}, arrivals={"rate_per_hour": 300})
        res = run_simulation(cfg)
        assert res["arrivals"] > 0
        assert res["customers_served"] + res["customers_rejected"] + res["in_system"] == res["arrivals"]
        assert res["customers_rejected"] == sum(res["rejected_by_stage"].values())

    def test_zero_capacity_rejects_everyone(self):
        res = run_simulation(make_cfg(sim={"seed": 5, "opening_hours": 0.25}, capacities={"max_queue": 0}))
        assert res["arrivals"] > 0
        assert res["customers_rejected"] == res["arrivals"]
        assert res["arrival_suspensions"] == 0

    def test_unbounded_queues_reject_nobody(self):
        res = run_simulation(make_cfg(sim={"seed": 5, "opening_hours": 0.5}))
        assert res["customers_rejected"] == 0
        assert res["arrival_suspensions"] == 0

    def test_arrival_rate_sets_interarrival_mean(self):
        model = CafeteriaModel(make_cfg(arrivals={"rate_per_hour": 120}))
        assert model.arrivals.generator.mean == 30.0

    def test_seeded_runs_repeat(self):
        cfg = make_cfg(sim={"seed": 21, "opening_hours": 0.5}, stations={"self_service_enabled": True})
        a, b = run_simulation(cfg), run_simulation(cfg)
        for key in ("arrivals", "customers_served", "customers_rejected", "average_wait", "current_time"):
            assert a[key] == b[key]

    def test_different_seeds_differ(self):
        a = run_simulation(make_cfg(sim={"seed": 1, "opening_hours": 0.5}))
        b = run_simulation(make_cfg(sim={"seed": 2, "opening_hours": 0.5}))
        assert (a["arrivals"], a["average_wait"]) != (b["arrivals"], b["average_wait"])

    def test_summary_shape(self):
        res = run_simulation(make_cfg(sim={"seed": 4, "opening_hours": 0.25},
                                      stations={"self_service_enabled": True}))
        assert set(res["station_utilization"]) == {"grill", "vegan", "normal", "cashier_1",
                                                   "cashier_2", "self_service"}
        assert all(0.0 <= u <= 100.0 for u in res["station_utilization"].values())
        assert res["throughput"] >= 0.0
        assert res["time_series"] and res["time_series"][-1]["time_minutes"] >= 15.0

    def test_disabled_stations_stay_empty(self):
        model = CafeteriaModel(make_cfg(sim={"seed": 8, "opening_hours": 0.5}))
        res = model.run()
        assert model.stations["self_service"].served == 0
        assert model.stations["coffee"].served == 0
        assert "coffee" not in res["station_utilization"]

    def test_view_sees_lifecycle(self):
        view = RecordingView()
        CafeteriaModel(make_cfg(sim={"seed": 2, "opening_hours": 0.25}), view=view).run()
        names = view.names()
        assert "customer_created" in names
        assert "queue_lengths_updated" in names
        assert names[-1] == "simulation_ended"
        assert names.count("simulation_ended") == 1

    def test_statistics_snapshot(self):
        model = CafeteriaModel(make_cfg(sim={"seed": 6, "opening_hours": 0.25}))
        model.run()
        s = model.statistics()
        assert s.current_time == model.clock.now()
        assert s.as_dict()["customers_served"] == s.customers_served


class TestControlSurface:

    def test_horizon_and_delay_setters(self):
        model = CafeteriaModel(make_cfg(sim={"opening_hours": 2.0, "delay_ms": 15}))
        assert model.simulation_horizon == 7200.0
        assert model.pacing_delay == 15
        model.set_simulation_horizon(60.0)
        model.set_pacing_delay(0)
        assert model.simulation_horizon == 60.0
        assert model.pacing_delay == 0

    def test_negative_values_rejected(self):
        model = CafeteriaModel()
        with pytest.raises(ValueError):
            model.set_simulation_horizon(-1)
        with pytest.raises(ValueError):
            model.set_pacing_delay(-5)

    def test_zero_horizon_ends_immediately(self):
        view = RecordingView()
        model = CafeteriaModel(view=view)
        model.set_simulation_horizon(0)
        res = model.run()
        assert model.engine.ticks == 0
        assert res["arrivals"] == 0
        assert view.ended_at == 0.0

    def test_second_start_raises(self):
        model = CafeteriaModel(make_cfg(sim={"opening_hours": 0.1}))
        model.run()
        with pytest.raises(RuntimeError):
            model.start()

    def test_pause_resume_cancel_on_thread(self):
        view = RecordingView()
        model = CafeteriaModel(make_cfg(sim={"seed": 1, "opening_hours": 8.0, "delay_ms": 1}), view=view)
        model.start()
        assert _wait_for(lambda: model.engine.ticks > 0)
        model.pause()
        assert model.is_paused()
        assert _wait_for(lambda: model.state is EngineState.PAUSED)
        frozen = model.engine.ticks
        time.sleep(0.05)
        assert model.engine.ticks == frozen
        model.resume()
        assert not model.is_paused()
        assert _wait_for(lambda: model.engine.ticks > frozen)
        model.cancel()
        assert model.join(5.0)
        assert model.state is EngineState.STOPPED
        assert model.engine.cancelled
        assert model.clock.now() < 8 * 3600.0
        assert view.ended_at == model.clock.now()
        assert model.engine.error is None

    def test_cancel_wakes_a_paused_engine(self):
        model = CafeteriaModel(make_cfg(sim={"seed": 1, "opening_hours": 8.0, "delay_ms": 1}))
        model.start()
        assert _wait_for(lambda: model.engine.ticks > 0)
        model.pause()
        assert _wait_for(lambda: model.state is EngineState.PAUSED)
        model.cancel()
        assert model.join(5.0)
        assert model.state is EngineState.STOPPED

    def test_cancel_interrupts_long_delay(self):
        model = CafeteriaModel(make_cfg(sim={"delay_ms": 60000}))
        model.start()
        time.sleep(0.05)
        started = time.monotonic()
        model.cancel()
        assert model.join(5.0)
        assert time.monotonic() - started < 5.0

    def test_queued_view_snapshots_queue_lengths(self):
        queued = QueuedView()
        lengths = {"grill": 2}
        queued.queue_lengths_updated(lengths)
        lengths["grill"] = 5
        target = RecordingView()
        queued.drain(target)
        assert target.calls == [("queue_lengths_updated", {"grill": 2})]

    def test_queued_view_replays_on_another_thread(self):
        queued = QueuedView()
        model = CafeteriaModel(make_cfg(sim={"seed": 9, "opening_hours": 0.25}), view=queued)
        model.start()
        assert model.join(10.0)
        assert queued.pending() > 0
        target = RecordingView()
        assert queued.drain(target, limit=1) == 1
        queued.drain(target)
        assert queued.pending() == 0
        assert queued.ended
        assert target.names()[-1] == "simulation_ended"


class TestEngineErrors:

    def _engine(self, handlers, initialize):
        clock, events = Clock(), EventQueue()
        engine = Engine(clock, events, [], initialize=lambda: initialize(events), handlers=handlers)
        engine.set_simulation_horizon(100.0)
        return engine

    def test_empty_event_list_is_fatal(self):
        engine = self._engine({}, lambda events: None)
        with pytest.raises(EmptyEventQueueError):
            engine.run()
        assert engine.state is EngineState.STOPPED
        assert isinstance(engine.error, EmptyEventQueueError)

    def test_unknown_event_kind_is_fatal(self):
        engine = self._engine({}, lambda events: events.add(Event(1.0, EventKind.COFFEE_DEP)))
        with pytest.raises(SchedulingError):
            engine.run()

    def test_error_on_thread_is_kept(self):
        engine = self._engine({}, lambda events: None)
        engine.start()
        assert engine.join(5.0)
        assert isinstance(engine.error, EmptyEventQueueError)

    def test_same_time_events_all_dispatched_in_one_tick(self):
        seen = []
        def init(events):
            events.add(Event(5.0, EventKind.ARRIVAL, {"n": 1}))
            events.add(Event(5.0, EventKind.ARRIVAL, {"n": 2}))
            events.add(Event(200.0, EventKind.ARRIVAL, {"n": 3}))
        engine = self._engine({EventKind.ARRIVAL: lambda ev: seen.append((engine.clock.now(), ev.data["n"]))}, init)
        engine.run()
        assert seen[:2] == [(5.0, 1), (5.0, 2)]
        assert engine.ticks == 2
        assert engine.clock.now() == 200.0
