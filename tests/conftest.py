"""Shared pytest fixtures: a manual clock, a fake pasteboard and a fake key source."""

import threading
from typing import Callable, List, Optional

import pytest

from clipshelf.clipboard.base import Pasteboard
from clipshelf.database import MemorySettingsStore
from clipshelf.hotkeys.base import KeyEventHandler, KeyEventSource
from clipshelf.models.hotkey import KeyEvent
from clipshelf.services.history_service import HistoryStore
from clipshelf.services.settings_service import Settings
from clipshelf.utils.scheduler import Handle, Scheduler


class ManualHandle(Handle):

    def __init__(self, scheduler: "ManualScheduler", due: float,
                 callback: Callable[[], None], interval: Optional[float] = None) -> None:
        self.scheduler = scheduler
        self.due = due
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler driven by :meth:`advance` instead of wall-clock time."""

    def __init__(self) -> None:
        self.time = 0.0
        self.handles: List[ManualHandle] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay, callback):
        handle = ManualHandle(self, self.time + delay, callback)
        self.handles.append(handle)
        return handle

    def call_every(self, interval, callback):
        handle = ManualHandle(self, self.time + interval, callback, interval=interval)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.time + seconds
        while True:
            due = [h for h in self.pending if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.time = max(self.time, handle.due)
            if handle.interval is None:
                handle.cancelled = True
            else:
                handle.due += handle.interval
            handle.callback()
        self.time = target


class FakePasteboard(Pasteboard):

    def __init__(self, text: Optional[str] = None) -> None:
        self.count = 0
        self.text = text
        self.writes: List[str] = []

    def copy(self, text: Optional[str]) -> None:
        """Simulate another application changing the clipboard."""
        self.text = text
        self.count += 1

    def change_count(self) -> int:
        return self.count

    def read_text(self) -> Optional[str]:
        return self.text

    def write_text(self, text: str) -> bool:
        self.writes.append(text)
        self.copy(text)
        return True


class FakeKeyEventSource(KeyEventSource):

    def __init__(self, trusted: bool = True) -> None:
        self.handler: Optional[KeyEventHandler] = None
        self.trusted = trusted
        self.start_calls = 0
        self.stop_calls = 0

    def start(self, handler: KeyEventHandler) -> None:
        self.handler = handler
        self.start_calls += 1

    def stop(self) -> None:
        self.handler = None
        self.stop_calls += 1

    def is_trusted(self) -> bool:
        return self.trusted

    def run_until(self, stop_event: threading.Event) -> None:
        return

    def press(self, key_code: int, modifiers: int = 0) -> bool:
        assert self.handler is not None, "source not started"
        return self.handler(KeyEvent(key_code=key_code, modifiers=modifiers))


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def pasteboard() -> FakePasteboard:
    return FakePasteboard()


@pytest.fixture
def key_source() -> FakeKeyEventSource:
    return FakeKeyEventSource()


@pytest.fixture
def store() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def settings(store) -> Settings:
    return Settings(store)


@pytest.fixture
def history(settings) -> HistoryStore:
    written: List[str] = []

    def writer(text: str) -> bool:
        written.append(text)
        return True

    store = HistoryStore(settings, clipboard_writer=writer)
    store.written = written
    return store
