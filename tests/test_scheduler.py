import threading

import pytest

from clipshelf.utils.scheduler import Debouncer, ThreadingScheduler


def test_debouncer_fires_once_after_quiet_period(scheduler):
    calls = []
    debouncer = Debouncer(scheduler, 1.0, lambda: calls.append(scheduler.now()))

    debouncer.trigger()
    scheduler.advance(0.5)
    debouncer.trigger()
    scheduler.advance(0.5)
    debouncer.trigger()
    scheduler.advance(3.0)

    assert calls == [2.0]
    assert not debouncer.pending


def test_debouncer_never_accumulates_timers(scheduler):
    debouncer = Debouncer(scheduler, 1.0, lambda: None)
    for _ in range(100):
        debouncer.trigger()

    assert len(scheduler.pending) == 1


def test_debouncer_max_wait_bounds_delay(scheduler):
    calls = []
    debouncer = Debouncer(scheduler, 1.0, lambda: calls.append(scheduler.now()), max_wait=3.0)

    for _ in range(10):
        debouncer.trigger()
        scheduler.advance(0.5)

    assert calls[0] == 3.0


def test_debouncer_cancel(scheduler):
    calls = []
    debouncer = Debouncer(scheduler, 1.0, lambda: calls.append(1))
    debouncer.trigger()
    debouncer.cancel()
    scheduler.advance(5.0)

    assert calls == []


def test_debouncer_rejects_max_wait_below_delay(scheduler):
    with pytest.raises(ValueError):
        Debouncer(scheduler, 2.0, lambda: None, max_wait=1.0)


def test_threading_scheduler_call_later_and_cancel():
    scheduler = ThreadingScheduler()
    fired = threading.Event()
    cancelled = threading.Event()

    scheduler.call_later(0.01, fired.set)
    scheduler.call_later(0.5, cancelled.set).cancel()

    assert fired.wait(timeout=2.0)
    assert not cancelled.wait(timeout=0.6)


def test_threading_scheduler_call_every():
    scheduler = ThreadingScheduler()
    ticks = []
    enough = threading.Event()

    def tick():
        ticks.append(1)
        if len(ticks) >= 3:
            enough.set()

    handle = scheduler.call_every(0.01, tick)
    try:
        assert enough.wait(timeout=2.0)
    finally:
        handle.cancel()
    count = len(ticks)
    threading.Event().wait(0.05)
    assert len(ticks) == count


def test_debouncer_flush_runs_pending_callback(scheduler):
    calls = []
    debouncer = Debouncer(scheduler, 1.0, lambda: calls.append(1))

    assert debouncer.flush() is False
    debouncer.trigger()
    assert debouncer.flush() is True
    scheduler.advance(5.0)

    assert calls == [1]
