"""Bounded, most-recent-first clipboard history.

The store is the single owner of the entry list. Every mutation happens under
one lock and is followed by a notification carrying the new snapshot, which is
how persistence and any presentation layer learn about changes.
"""

import logging
import threading
from typing import Callable, Iterable, Iterator, List, Optional

from clipshelf.models.clipboard_entry import ClipboardEntry
from clipshelf.services.settings_service import Settings

logger = logging.getLogger(__name__)

HistoryListener = Callable[[List[ClipboardEntry]], None]
ClipboardWriter = Callable[[str], bool]


class HistoryStore:

    def __init__(
        self,
        settings: Settings,
        clipboard_writer: Optional[ClipboardWriter] = None,
    ) -> None:
        self._settings = settings
        self._clipboard_writer = clipboard_writer
        self._entries: List[ClipboardEntry] = []
        self._listeners: List[HistoryListener] = []
        self._lock = threading.RLock()

    def bind_clipboard_writer(self, writer: ClipboardWriter) -> None:
        """Set the function used by :meth:`copy_and_consume` to fill the clipboard."""
        self._clipboard_writer = writer

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def entries(self) -> List[ClipboardEntry]:
        with self._lock:
            return list(self._entries)

    @property
    def first(self) -> Optional[ClipboardEntry]:
        with self._lock:
            return self._entries[0] if self._entries else None

    def get(self, entry_id: str) -> Optional[ClipboardEntry]:
        with self._lock:
            for entry in self._entries:
                if entry.id == entry_id:
                    return entry
        return None

    def search(self, query: str) -> List[ClipboardEntry]:
        """Entries whose content contains ``query``, ignoring case."""
        needle = query.casefold()
        with self._lock:
            if not needle:
                return list(self._entries)
            return [e for e in self._entries if needle in e.content.casefold()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[ClipboardEntry]:
        return iter(self.entries)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def insert(self, content: str) -> Optional[ClipboardEntry]:
        """Prepend ``content`` and evict the oldest entries beyond ``maxItems``.

        Returns the new entry, or ``None`` when ``content`` matches the most
        recent entry and nothing changed.
        """
        with self._lock:
            if self._entries and self._entries[0].content == content:
                logger.debug("Skipping duplicate of most recent entry")
                return None

            entry = ClipboardEntry(content=content)
            self._entries.insert(0, entry)
            self._trim(self._settings.max_items)
            snapshot = list(self._entries)

        self._notify(snapshot)
        return entry

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            remaining = [e for e in self._entries if e.id != entry_id]
            if len(remaining) == len(self._entries):
                return False
            self._entries = remaining
            snapshot = list(self._entries)

        self._notify(snapshot)
        return True

    def copy_and_consume(self, entry_id: str) -> bool:
        """Put an entry back on the clipboard and remove it from the history.

        The entry leaves the history on purpose: once it is the live clipboard
        content it no longer needs a history slot.
        """
        entry = self.get(entry_id)
        if entry is None:
            return False
        if self._clipboard_writer is None:
            raise RuntimeError("No clipboard writer bound to the history store")
        # Must run without self._lock held: the writer takes the poller's lock.
        if not self._clipboard_writer(entry.content):
            logger.warning("Could not write entry %s to the clipboard", entry_id)
        return self.delete(entry_id)

    def replace(self, entries: Iterable[ClipboardEntry]) -> List[ClipboardEntry]:
        """Install ``entries`` (most recent first), trimmed to ``maxItems``."""
        with self._lock:
            self._entries = list(entries)
            self._trim(self._settings.max_items)
            snapshot = list(self._entries)

        self._notify(snapshot)
        return snapshot

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries = []

        if count:
            self._notify([])
        return count

    def _trim(self, max_items: int) -> None:
        while len(self._entries) > max_items:
            evicted = self._entries.pop()
            logger.debug("Evicted entry %s", evicted.id)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: List[ClipboardEntry]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("History listener failed")
