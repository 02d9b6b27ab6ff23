import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Handle(ABC):

    @abstractmethod
    def cancel(self) -> None:
        pass


class Scheduler(ABC):
    """Deferred and repeating callbacks.

    Services take a scheduler instead of creating threads themselves so tests
    can substitute a manual clock.
    """

    @abstractmethod
    def now(self) -> float:
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        pass

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> Handle:
        pass


class _TimerHandle(Handle):

    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class _RepeatingHandle(Handle):

    def __init__(self, interval: float, callback: Callable[[], None], name: str) -> None:
        self._interval = interval
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Error in repeating callback")

    def cancel(self) -> None:
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)


class ThreadingScheduler(Scheduler):

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)

    def call_every(self, interval: float, callback: Callable[[], None]) -> Handle:
        return _RepeatingHandle(interval, callback, name="clipshelf-poll")


class Debouncer:
    """Collapse bursts of ``trigger()`` calls into one delayed callback.

    Each trigger restarts the ``delay`` timer. With ``max_wait`` set, a burst
    that keeps triggering cannot postpone the callback for longer than
    ``max_wait`` seconds after its first trigger.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        callback: Callable[[], None],
        max_wait: Optional[float] = None,
    ) -> None:
        if max_wait is not None and max_wait < delay:
            raise ValueError("max_wait must not be shorter than delay")
        self._scheduler = scheduler
        self._delay = delay
        self._max_wait = max_wait
        self._callback = callback
        self._lock = threading.Lock()
        self._handle: Optional[Handle] = None
        self._first_trigger: Optional[float] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def trigger(self) -> None:
        with self._lock:
            now = self._scheduler.now()
            if self._first_trigger is None:
                self._first_trigger = now

            wait = self._delay
            if self._max_wait is not None:
                remaining = self._first_trigger + self._max_wait - now
                wait = max(0.0, min(wait, remaining))

            if self._handle is not None:
                self._handle.cancel()
            self._generation += 1
            generation = self._generation
            self._handle = self._scheduler.call_later(wait, lambda: self._fire(generation))

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A cancelled timer may still fire if it was already running.
            if generation != self._generation or self._handle is None:
                return
            self._reset()
        self._callback()

    def flush(self) -> bool:
        """Run the pending callback now. Returns False if nothing was pending."""
        with self._lock:
            if self._handle is None:
                return False
            self._handle.cancel()
            self._reset()
        self._callback()
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._reset()

    def _reset(self) -> None:
        self._handle = None
        self._first_trigger = None
        self._generation += 1
