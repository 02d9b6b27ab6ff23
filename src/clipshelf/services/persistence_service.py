"""Debounced persistence of the clipboard history.

Mutations of the :class:`HistoryStore` request a save; the request is
debounced so a burst of changes produces a single write. Writes are best
effort: a failure is logged and the next mutation tries again.
"""

import logging
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from clipshelf.models.clipboard_entry import ClipboardEntry, dump_entries, load_entries
from clipshelf.services.history_service import HistoryStore
from clipshelf.services.settings_service import HISTORY_KEY, Settings
from clipshelf.utils.scheduler import Debouncer, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DELAY = 1.0
DEFAULT_SAVE_MAX_WAIT = 5.0


class PersistenceService:

    def __init__(
        self,
        history: HistoryStore,
        settings: Settings,
        scheduler: Scheduler,
        delay: float = DEFAULT_SAVE_DELAY,
        max_wait: Optional[float] = DEFAULT_SAVE_MAX_WAIT,
    ) -> None:
        """Initialise the service.

        Args:
            history: Store whose entries are persisted.
            settings: Settings wrapper owning the ``clipboardHistory`` slot.
            scheduler: Runs the debounce timer.
            delay: Quiet period after the last mutation before writing.
            max_wait: Upper bound on how long a continuous burst of mutations
                may postpone a write. ``None`` disables the bound.
        """
        self._history = history
        self._settings = settings
        self._debouncer = Debouncer(scheduler, delay, self.save, max_wait=max_wait)
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._unsubscribe_settings: Optional[Callable[[], None]] = None

    def attach(self) -> None:
        """Start requesting a save on every history mutation.

        Also adopts histories written by other processes, as reported by
        :meth:`Settings.refresh`.
        """
        if self._unsubscribe is None:
            self._unsubscribe = self._history.subscribe(self._on_change)
        if self._unsubscribe_settings is None:
            self._unsubscribe_settings = self._settings.subscribe(self._on_setting_changed)

    def _on_change(self, _entries: List[ClipboardEntry]) -> None:
        self.request_save()

    def _on_setting_changed(self, key: str, value: Any) -> None:
        if key == HISTORY_KEY and value is not None:
            self.reload(value)

    def request_save(self) -> None:
        self._debouncer.trigger()

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def save(self) -> bool:
        entries = self._history.entries
        try:
            self._settings.history_blob = dump_entries(entries)
        except Exception as e:
            logger.warning(f"Failed to persist clipboard history: {e}")
            return False
        logger.debug("Persisted %d clipboard entries", len(entries))
        return True

    def load(self) -> List[ClipboardEntry]:
        """Restore the history saved by a previous session.

        Missing or unreadable data leaves the store empty. A history that was
        read is trimmed to the current ``maxItems`` and written back at once.
        """
        try:
            blob = self._settings.history_blob
        except Exception as e:
            logger.warning(f"Could not read clipboard history: {e}")
            blob = None

        if blob is None:
            logger.info("No saved clipboard history")
            return self._history.entries

        try:
            entries = load_entries(blob)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable clipboard history: {e.error_count()} error(s)")
            return self._history.entries

        # Replacing the store notifies listeners; the direct save below supersedes it.
        restored = self._history.replace(entries)
        self._debouncer.cancel()
        self.save()
        logger.info("Loaded %d clipboard entries", len(restored))
        return restored

    def reload(self, blob: str) -> bool:
        """Replace the in-memory history with one saved by another process.

        Pending local changes are dropped along with the old list. An
        unreadable blob is ignored and the current history kept.
        """
        try:
            entries = load_entries(blob)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable external history: {e.error_count()} error(s)")
            return False

        restored = self._history.replace(entries)
        self._debouncer.cancel()
        logger.info("Reloaded %d clipboard entries changed elsewhere", len(restored))
        return True

    def flush(self) -> bool:
        """Write immediately if a save is pending."""
        return self._debouncer.flush()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._unsubscribe_settings is not None:
            self._unsubscribe_settings()
            self._unsubscribe_settings = None
        self.flush()
