import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from clipshelf.database.settings_store import SettingsStore
from clipshelf.models.hotkey import DEFAULT_HOTKEY, HotkeyConfig

logger = logging.getLogger(__name__)

HISTORY_KEY = "clipboardHistory"
MAX_ITEMS_KEY = "maxItems"
SHORTCUT_KEY_CODE_KEY = "shortcutKeyCode"
SHORTCUT_MODIFIERS_KEY = "shortcutModifiers"

DEFAULT_MAX_ITEMS = 100

WATCHED_KEYS = (HISTORY_KEY, MAX_ITEMS_KEY, SHORTCUT_KEY_CODE_KEY, SHORTCUT_MODIFIERS_KEY)

SettingsListener = Callable[[str, Any], None]


class Settings:
    """Typed view over a :class:`SettingsStore`.

    Integer slots that are missing or unparsable read as their defaults.
    A zero item limit or modifier mask is treated as unset too; key code 0 is
    a real key (A) and is kept.
    """

    def __init__(self, store: SettingsStore) -> None:
        self.store = store
        self._listeners: List[SettingsListener] = []
        self._lock = threading.Lock()
        # Last value of each watched slot this instance wrote or observed.
        self._seen: Dict[str, Optional[str]] = {key: self._read_raw(key) for key in WATCHED_KEYS}

    def _read_raw(self, key: str) -> Optional[str]:
        raw = self.store.get(key)
        return None if raw is None else str(raw)

    def _get_int(self, key: str, default: int, zero_is_unset: bool = True) -> int:
        raw = self.store.get(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-integer setting %s=%r", key, raw)
            return default
        if value == 0 and zero_is_unset:
            return default
        return value

    def _store(self, key: str, value: Any) -> None:
        self.store.set(key, value)
        with self._lock:
            self._seen[key] = str(value)

    def _set(self, key: str, value: Any) -> None:
        self._store(key, value)
        self._notify(key, value)

    def _notify(self, key: str, value: Any) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key, value)
            except Exception:
                logger.exception("Settings listener failed for %s", key)

    @property
    def max_items(self) -> int:
        value = self._get_int(MAX_ITEMS_KEY, DEFAULT_MAX_ITEMS)
        if value < 1:
            logger.warning("Ignoring invalid maxItems=%d", value)
            return DEFAULT_MAX_ITEMS
        return value

    @max_items.setter
    def max_items(self, value: int) -> None:
        value = int(value)
        if value < 1:
            raise ValueError(f"maxItems must be at least 1, got {value}")
        self._set(MAX_ITEMS_KEY, value)

    @property
    def hotkey(self) -> HotkeyConfig:
        return HotkeyConfig(
            key_code=self._get_int(SHORTCUT_KEY_CODE_KEY, DEFAULT_HOTKEY.key_code, zero_is_unset=False),
            modifiers=self._get_int(SHORTCUT_MODIFIERS_KEY, DEFAULT_HOTKEY.modifiers),
        )

    @hotkey.setter
    def hotkey(self, config: HotkeyConfig) -> None:
        config.validate()
        self._store(SHORTCUT_KEY_CODE_KEY, config.key_code)
        self._set(SHORTCUT_MODIFIERS_KEY, int(config.modifiers))

    @property
    def history_blob(self) -> Optional[str]:
        raw = self.store.get(HISTORY_KEY)
        if raw is None:
            return None
        return raw if isinstance(raw, str) else str(raw)

    @history_blob.setter
    def history_blob(self, blob: str) -> None:
        self._store(HISTORY_KEY, blob)

    def refresh(self) -> List[str]:
        """Pick up slots changed by another process sharing the store.

        Listeners are notified for every watched slot whose stored value
        differs from what this instance last wrote or saw. Returns the keys
        that changed.
        """
        changed = []
        for key in WATCHED_KEYS:
            current = self._read_raw(key)
            with self._lock:
                if self._seen.get(key) == current:
                    continue
                self._seen[key] = current
            changed.append(key)
            logger.debug("Setting %s changed outside this process", key)
            self._notify(key, current)
        return changed

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
