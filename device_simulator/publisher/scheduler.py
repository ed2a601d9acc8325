"""Tick scheduler: decouples the periodic timer from the publish cycles.

A dedicated tick thread fires every interval and submits one
PublishCycle.run_once per tick to a thread pool, so a slow send never
delays the next tick. Cycles are not serialized against each other.

Backpressure: at most num_workers cycles are pending (running or
queued). A tick that finds every worker busy is dropped and counted,
never queued behind slower cycles.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Set

from device_simulator.common.config import DEFAULT_NUM_WORKERS
from device_simulator.core.transport.base import DeviceTransport

from .cycle import PublishCycle
from .stats import PublisherStats

logger = logging.getLogger(__name__)


class TickScheduler:
    """Timer + ThreadPool for publish cycles.

    - tick thread → submit() returns immediately
    - worker threads → run_once() blocks on send (in parallel)
    - pool full → the tick is dropped, the timer keeps its phase
    - stop() stops ticking, cancels queued cycles and waits for running ones
    """

    def __init__(
        self,
        cycle: PublishCycle,
        transport: DeviceTransport,
        interval_seconds: float,
        num_workers: int = DEFAULT_NUM_WORKERS,
        stats: Optional[PublisherStats] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._cycle = cycle
        self._transport = transport
        self._interval = interval_seconds
        self._num_workers = num_workers
        self._stats = stats or cycle.stats

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the tick thread. First tick fires one interval from now."""
        if self._thread is not None:
            raise RuntimeError("Scheduler already started")
        self._stop_event.clear()
        self._pool = ThreadPoolExecutor(
            max_workers=self._num_workers,
            thread_name_prefix="publish-cycle",
        )
        self._thread = threading.Thread(
            target=self._tick_loop,
            daemon=True,
            name="tick-scheduler",
        )
        self._thread.start()
        logger.info(
            "[SCHEDULER] Started interval=%.3fs workers=%d",
            self._interval, self._num_workers,
        )

    def stop(self, drain_timeout: float = 10.0) -> int:
        """Stop ticking and drain in-flight cycles.

        Returns:
            Number of cycles still running when drain_timeout expired
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
        if self._pool is None:
            return 0

        # Lo encolado que aún no arrancó se cancela; lo que corre, termina.
        self._pool.shutdown(wait=False, cancel_futures=True)
        with self._lock:
            pending = list(self._pending)

        _, not_done = wait(pending, timeout=drain_timeout)
        self._pool = None

        if not_done:
            self._stats.record_abandoned(len(not_done))
            logger.warning(
                "[SCHEDULER] Drain timeout after %.1fs, %d cycles still in flight",
                drain_timeout, len(not_done),
            )
        logger.info("[SCHEDULER] Stopped. %s", self._stats)
        return len(not_done)

    def _tick_loop(self) -> None:
        next_tick = time.monotonic() + self._interval
        while not self._stop_event.wait(timeout=max(0.0, next_tick - time.monotonic())):
            self._dispatch()
            next_tick += self._interval
            now = time.monotonic()
            if next_tick <= now:
                # Ticks perdidos (proceso detenido, GC...) no se recuperan en ráfaga
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval
                logger.warning("[SCHEDULER] Skipped %d late ticks", missed)

    def _dispatch(self) -> None:
        self._stats.record_tick()
        with self._lock:
            pending = len(self._pending)
        if pending >= self._num_workers:
            self._stats.record_dropped()
            self._stats.record_cycle_done()
            logger.warning(
                "[SCHEDULER] Pool full, dropped tick (pending=%d workers=%d)",
                pending, self._num_workers,
            )
            return

        try:
            future = self._pool.submit(self._cycle.run_once, self._transport)
        except RuntimeError as e:
            # Pool cerrado entre el tick y el submit
            self._stats.record_cycle_done()
            logger.debug("[SCHEDULER] Tick dropped during shutdown: %s", e)
            return

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._on_cycle_done)

    def _on_cycle_done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            self._stats.record_cancelled()
        self._stats.record_cycle_done()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    @property
    def interval_seconds(self) -> float:
        return self._interval
