"""Clipboard polling service.

Samples the pasteboard change counter on an interval and records new text
into the :class:`HistoryStore`. The counter means the clipboard content is
only read on ticks where something actually changed.
"""

import logging
import threading
from typing import Optional

from clipshelf.clipboard.base import Pasteboard
from clipshelf.services.history_service import HistoryStore
from clipshelf.utils.scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class ClipboardService:
    """Poll the pasteboard and feed new text into the history."""

    def __init__(
        self,
        pasteboard: Pasteboard,
        history: HistoryStore,
        scheduler: Scheduler,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._pasteboard = pasteboard
        self._history = history
        self._scheduler = scheduler
        self.poll_interval = poll_interval
        self._lock = threading.RLock()
        self._poll_handle: Optional[Handle] = None
        self._last_change_count = self._read_change_count()

        history.bind_clipboard_writer(self.write_clipboard)

    @property
    def is_running(self) -> bool:
        return self._poll_handle is not None

    # ---------------------------------------------------------------------
    # Lifecycle management
    # ---------------------------------------------------------------------
    def start(self) -> None:
        """Start polling.

        Whatever is on the clipboard at this moment is treated as already
        seen; only later changes are recorded.
        """
        with self._lock:
            if self._poll_handle is not None:
                logger.debug("ClipboardService already running")
                return

            self._last_change_count = self._read_change_count()
            logger.info("Starting ClipboardService polling (interval=%ss)", self.poll_interval)
            self._poll_handle = self._scheduler.call_every(self.poll_interval, self.check_for_changes)

    def stop(self) -> None:
        with self._lock:
            handle = self._poll_handle
            self._poll_handle = None

        if handle is not None:
            logger.info("Stopping ClipboardService polling")
            handle.cancel()

    # ---------------------------------------------------------------------
    # Polling
    # ---------------------------------------------------------------------
    def _read_change_count(self) -> int:
        try:
            return self._pasteboard.change_count()
        except Exception as e:
            logger.warning(f"Could not read clipboard change count: {e}")
            return -1

    def check_for_changes(self) -> bool:
        """Run one poll tick. Returns True if a new entry was recorded."""
        with self._lock:
            current = self._read_change_count()
            if current == self._last_change_count:
                return False

            try:
                text = self._pasteboard.read_text()
            except Exception:
                logger.exception("Error reading clipboard text")
                return False
            if text is None:
                return False

            self._last_change_count = current

        entry = self._history.insert(text)
        if entry is not None:
            logger.info("Clipboard copied: %d characters", len(text))
        return entry is not None

    def write_clipboard(self, text: str) -> bool:
        """Put ``text`` on the clipboard without recording it as a new entry."""
        with self._lock:
            ok = self._pasteboard.write_text(text)
            self._last_change_count = self._read_change_count()
        return ok

    # ---------------------------------------------------------------------
    # Context manager helpers
    # ---------------------------------------------------------------------
    def __enter__(self) -> "ClipboardService":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
