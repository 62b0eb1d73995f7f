from __future__ import annotations

import logging
import random
import threading
from enum import Enum
from typing import Any, Callable, List, Optional

import schedule

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_SECONDS = 45
DEFAULT_MAX_SECONDS = 120


def random_interval_ms(
    min_seconds: int = DEFAULT_MIN_SECONDS,
    max_seconds: int = DEFAULT_MAX_SECONDS,
    rng: Optional[random.Random] = None,
) -> int:
    """Draw a whole-second delay in ``[min_seconds, max_seconds]``, returned in milliseconds."""

    if min_seconds > max_seconds:
        raise ValueError(f"min_seconds ({min_seconds}) exceeds max_seconds ({max_seconds})")
    source = rng or random
    return source.randint(min_seconds, max_seconds) * 1000


class LoopState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    STOPPED = "stopped"


class PollLoop:
    """Runs ``tick`` on a private scheduler, redrawing the delay after every run.

    Ticks execute on a single worker thread, so they never overlap.
    """

    def __init__(
        self,
        tick: Callable[[], Any],
        min_seconds: int = DEFAULT_MIN_SECONDS,
        max_seconds: int = DEFAULT_MAX_SECONDS,
        rng: Optional[random.Random] = None,
        wake_interval: float = 1.0,
    ):
        if min_seconds > max_seconds:
            raise ValueError(f"min_seconds ({min_seconds}) exceeds max_seconds ({max_seconds})")
        self._tick = tick
        self._min_seconds = min_seconds
        self._max_seconds = max_seconds
        self._rng = rng or random.Random()
        self._wake_interval = wake_interval
        self._scheduler = schedule.Scheduler()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._state = LoopState.STOPPED
        self.ticks_completed = 0
        self.last_result: Any = None
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        """True while a worker thread is alive, including one still finishing a tick after ``stop()``."""

        return self._thread is not None and self._thread.is_alive()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    @property
    def jobs(self) -> List[schedule.Job]:
        return list(self._scheduler.jobs)

    def next_delay_seconds(self) -> int:
        return random_interval_ms(self._min_seconds, self._max_seconds, self._rng) // 1000

    def start(self) -> bool:
        """Start the worker thread.

        Returns False when a worker is still alive, even if it has been asked
        to stop, so a restart never runs next to an unfinished tick.
        """

        with self._lock:
            if self.is_running:
                return False
            self._stop_event.clear()
            self._scheduler.clear()
            self.schedule_next()
            self._state = LoopState.IDLE
            self._thread = threading.Thread(target=self._run, name="poll-loop", daemon=True)
            self._thread.start()
        return True

    def stop(self, timeout: float | None = 5.0) -> bool:
        """Ask the worker to stop and wait up to ``timeout`` seconds.

        Returns True once the worker has exited. On False, a tick is still
        in flight; the loop keeps reporting it until the worker finishes.
        """

        with self._lock:
            thread = self._thread
            self._stop_event.set()
            self._scheduler.clear()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if thread is not None and thread.is_alive():
            LOGGER.warning("Poll loop still finishing a tick, stop pending")
            return False
        with self._lock:
            if self._thread is thread:
                self._thread = None
            self._state = LoopState.STOPPED
        LOGGER.info("Poll loop stopped after %s tick(s)", self.ticks_completed)
        return True

    def run_once(self) -> Any:
        """Run a single tick now. Failures are logged and kept on ``last_error``."""

        self._state = LoopState.PROCESSING
        try:
            self.last_result = self._tick()
            self.last_error = None
            return self.last_result
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Tick failed, remaining messages deferred to the next tick")
            self.last_error = exc
            return None
        finally:
            self.ticks_completed += 1
            self._state = LoopState.STOPPED if self._stop_event.is_set() else LoopState.IDLE

    def schedule_next(self) -> None:
        """Queue the next tick after a freshly drawn delay."""

        delay = self.next_delay_seconds()
        self._scheduler.every(delay).seconds.do(self._scheduled_tick)
        LOGGER.debug("Next tick in %s seconds", delay)

    def run_pending(self) -> None:
        self._scheduler.run_pending()

    def _scheduled_tick(self) -> Any:
        self.run_once()
        if not self._stop_event.is_set():
            self.schedule_next()
        return schedule.CancelJob

    def _run(self) -> None:
        LOGGER.info("Poll loop started (interval %s-%ss)", self._min_seconds, self._max_seconds)
        while not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(self._wake_interval)
        self._scheduler.clear()
