"""
Cancellable repeating timer that drives simulation ticks.

**Conceptual**: The only concurrency in the system. One daemon thread wakes up
every interval and calls the tick callback while holding the simulation lock,
so a tick can never interleave with a user action half-way through a ledger
mutation.

**Cancellation guarantees**:
  - stop() is unconditional and idempotent: stopping a stopped (or never
    started) clock is a no-op.
  - Once stop() returns, no further tick fires. The stop flag is re-checked
    under the lock before every tick, and stop() joins the worker thread.
  - stop() may be called from inside a tick callback; the current tick
    finishes and the loop exits without a self-join.

**Caveat**: do not call stop() from another thread while holding the lock
passed in here. The worker may be blocked waiting for that lock, and the
join would never return.
"""

import logging
import threading
from typing import Callable

from poketrade.utils.errors import InvalidInputError, InvalidStateError

logger = logging.getLogger(__name__)


class SimulationClock:
    """
    Repeating timer with a fixed interval.

    **Usage**:
        clock = SimulationClock(1.0, simulation.tick, lock=simulation_lock)
        clock.start()
        ...
        clock.stop()  # safe to call any number of times
    """

    def __init__(
        self,
        interval_seconds: float,
        on_tick: Callable[[], object],
        lock: "threading.RLock | None" = None,
        name: str = "simulation-clock",
    ):
        """
        Args:
            interval_seconds: Delay between ticks (must be positive).
            on_tick: Callback invoked once per tick, under `lock`.
            lock: Lock shared with every other mutator of the simulated state.
                  A private RLock is created if omitted.
            name: Worker thread name (shows up in logs and debuggers).

        Raises:
            InvalidInputError: If interval_seconds is not positive.
        """
        if interval_seconds <= 0:
            raise InvalidInputError(f"interval_seconds must be positive, got {interval_seconds}")

        self._interval = interval_seconds
        self._on_tick = on_tick
        self._lock = lock if lock is not None else threading.RLock()
        self._name = name

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._tick_count = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def tick_count(self) -> int:
        """Number of ticks the timer has completed successfully."""
        return self._tick_count

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def start(self) -> None:
        """
        Start ticking. A no-op if the clock is already running.

        Raises:
            InvalidStateError: If the clock has been stopped. A stopped clock
                               is finished; create a new one instead.
        """
        if self._stop_event.is_set():
            raise InvalidStateError("clock has been stopped and cannot be restarted")
        if self._thread is not None:
            return

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info("simulation clock started (interval=%.3fs)", self._interval)

    def stop(self) -> None:
        """Stop ticking and wait for the worker to exit. Idempotent."""
        already_stopped = self._stop_event.is_set()
        self._stop_event.set()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

        if not already_stopped:
            logger.info("simulation clock stopped after %d ticks", self._tick_count)

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            with self._lock:
                if self._stop_event.is_set():
                    break
                try:
                    self._on_tick()
                except Exception:
                    # A failed tick is skipped and not counted; the feed keeps running.
                    logger.exception("simulation tick failed")
                else:
                    self._tick_count += 1
