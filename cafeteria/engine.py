# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# engine.py
# -----------------------------------------------------------------------------
# Purpose:
#   Three-phase event loop: advance the clock to the next event (A), run
#   every event due at that instant (B), then let idle stations with waiting
#   customers start service (C).
#
# Design notes:
#   - The engine knows nothing about cafeterias. The model plugs in an
#     initialize hook, a dispatch table keyed by EventKind, an after-tick hook
#     and a finalize hook.
#   - The loop runs on one thread. Other threads only touch the paused and
#     cancelled flags, guarded by a Condition; pause never busy-polls.
#   - Finalization runs on every exit path (horizon, cancel, scheduling bug).
#
# Usage:
#   eng = Engine(clock, events, points, initialize=..., handlers={...})
#   eng.set_simulation_horizon(3600); eng.run()        # or eng.start()
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, threading
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Sequence

from .errors import EmptyEventQueueError, SchedulingError
from .events import Clock, Event, EventKind, EventQueue
from .queues import ServicePoint

log = logging.getLogger(__name__)

Handler = Callable[[Event], None]


class EngineState(Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    PAUSED = "paused"
    FINALIZING = "finalizing"
    STOPPED = "stopped"


def _noop():
    pass


class Engine:
    """Simulation loop driving a set of ServicePoints.

    Attributes
    ----------
    clock : Clock
        Simulation time (seconds).
    events : EventQueue
        Future Event List.
    service_points : list[ServicePoint]
        Stations scanned, in order, during the C-phase.
    error : BaseException | None
        Exception that halted the run, if any.
    """
    def __init__(self, clock: Clock, events: EventQueue, service_points: Sequence[ServicePoint], *,
                 initialize: Callable[[], None], handlers: Mapping[EventKind, Handler],
                 after_tick: Callable[[], None] = _noop, finalize: Callable[[], None] = _noop):
        self.clock = clock
        self.events = events
        self.service_points = list(service_points)
        self._initialize = initialize
        self._handlers: Dict[EventKind, Handler] = dict(handlers)
        self._after_tick = after_tick
        self._finalize = finalize

        self.horizon: float = 0.0
        self.delay_ms: int = 0
        self.state = EngineState.INITIALIZING
        self.ticks = 0
        self.error: Optional[BaseException] = None

        self._cond = threading.Condition()
        self._paused = False
        self._cancelled = False
        self._wake = threading.Event()   # interrupts the pacing sleep on cancel
        self._thread: Optional[threading.Thread] = None
        self._ran = False

    # ---- control surface (callable from any thread) ------------------------
    def set_simulation_horizon(self, seconds: float):
        if seconds < 0:
            raise ValueError(f"simulation horizon must be non-negative, got {seconds}")
        self.horizon = float(seconds)

    def set_delay(self, ms: int):
        if ms < 0:
            raise ValueError(f"delay must be non-negative, got {ms}")
        self.delay_ms = int(ms)

    def get_delay(self) -> int:
        return self.delay_ms

    def pause(self):
        with self._cond:
            self._paused = True

    def resume(self):
        with self._cond:
            self._paused = False
            self._cond.notify_all()

    def is_paused(self) -> bool:
        with self._cond:
            return self._paused

    def cancel(self):
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()
        self._wake.set()

    @property
    def cancelled(self) -> bool:
        with self._cond:
            return self._cancelled

    def start(self) -> threading.Thread:
        """Run the loop on a dedicated daemon thread."""
        self._claim()
        self._thread = threading.Thread(target=self._run_guarded, name="cafeteria-engine", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the engine thread; True once it has stopped."""
        if self._thread is None:
            return self.state is EngineState.STOPPED
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ---- the loop -----------------------------------------------------------
    def run(self):
        """Run the loop synchronously on the calling thread."""
        self._claim()
        self._loop()

    def _claim(self):
        if self._ran:
            raise RuntimeError("engine already started; build a new model for another run")
        self._ran = True

    def _run_guarded(self):
        try:
            self._loop()
        except Exception as exc:
            # already logged in _loop; keep it for the controller thread
            self.error = exc

    def _loop(self):
        self.state = EngineState.INITIALIZING
        self.clock.reset()
        log.info("simulation starting: horizon=%.1fs delay=%dms", self.horizon, self.delay_ms)
        try:
            self._initialize()
            self.state = EngineState.RUNNING
            while self.clock.now() < self.horizon and not self.cancelled:
                if not self._wait_while_paused():
                    break
                self._pace()
                if self.cancelled:
                    break
                if not len(self.events):
                    raise EmptyEventQueueError(f"no events scheduled at t={self.clock.now():.3f}")
                self.clock.advance(self.events.peek_time())
                self._run_b_events()
                self._try_c_events()
                self.ticks += 1
                self._after_tick()
        except Exception as exc:
            self.error = exc
            log.error("simulation halted at t=%.3f: %s", self.clock.now(), exc)
            raise
        finally:
            self.state = EngineState.FINALIZING
            for sp in self.service_points:
                sp.finalize()
            self._finalize()
            self.state = EngineState.STOPPED
            log.info("simulation ended at t=%.3f after %d ticks%s", self.clock.now(), self.ticks,
                     " (cancelled)" if self.cancelled else "")

    def _wait_while_paused(self) -> bool:
        """Block while paused. Returns False if cancelled while waiting."""
        with self._cond:
            while self._paused and not self._cancelled:
                self.state = EngineState.PAUSED
                self._cond.wait()
            self.state = EngineState.RUNNING
            return not self._cancelled

    def _pace(self):
        if self.delay_ms > 0:
            self._wake.wait(self.delay_ms / 1000.0)

    def _run_b_events(self):
        now = self.clock.now()
        while len(self.events) and self.events.peek_time() == now:
            ev = self.events.pop()
            handler = self._handlers.get(ev.kind)
            if handler is None:
                raise SchedulingError(f"no handler for {ev.kind.name}")
            log.debug("t=%.3f dispatch %s", now, ev.kind.name)
            handler(ev)

    def _try_c_events(self):
        for sp in self.service_points:
            if not sp.reserved and sp.queue:
                sp.begin_service()
