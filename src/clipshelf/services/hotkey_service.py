"""Global hotkey matching and recording.

:class:`HotkeyMatcher` decides whether a key-down event is the configured
shortcut, :class:`HotkeyRecorder` captures a new shortcut from the next
modified key press, and :class:`HotkeyService` wires both to a key event
source and the settings.
"""

import logging
import threading
from typing import Callable, Optional

from clipshelf.hotkeys.base import KeyEventSource
from clipshelf.models.hotkey import HotkeyConfig, KeyEvent, normalize_modifiers
from clipshelf.services.settings_service import (
    SHORTCUT_KEY_CODE_KEY,
    SHORTCUT_MODIFIERS_KEY,
    Settings,
)

logger = logging.getLogger(__name__)


class HotkeyMatcher:

    def __init__(self, config: HotkeyConfig) -> None:
        self.config = config

    def matches(self, event: KeyEvent) -> bool:
        """Exact match on key code and on the set of recognized modifiers.

        Extra flags such as caps lock are ignored, but an extra recognized
        modifier makes the event a different combination. A configuration
        without modifiers never matches.
        """
        config_mods = normalize_modifiers(self.config.modifiers)
        if not config_mods:
            return False
        return event.key_code == self.config.key_code and event.normalized_modifiers == config_mods


class HotkeyRecorder:

    def __init__(self, on_recorded: Optional[Callable[[HotkeyConfig], None]] = None) -> None:
        self._on_recorded = on_recorded
        self._recording = False
        self._lock = threading.Lock()
        self.last_recorded: Optional[HotkeyConfig] = None

    @property
    def is_recording(self) -> bool:
        return self._recording

    def start(self) -> None:
        with self._lock:
            self._recording = True

    def cancel(self) -> None:
        with self._lock:
            self._recording = False

    def handle(self, event: KeyEvent) -> Optional[HotkeyConfig]:
        """Offer a key-down event while recording.

        Returns the new configuration when the event carries at least one
        recognized modifier; a bare key press is ignored and recording goes on.
        """
        with self._lock:
            if not self._recording:
                return None
            if not event.normalized_modifiers:
                return None
            config = HotkeyConfig.from_event(event)
            self._recording = False
            self.last_recorded = config

        if self._on_recorded is not None:
            self._on_recorded(config)
        return config


class HotkeyService:
    """Route key events from a :class:`KeyEventSource` to the matcher or recorder."""

    def __init__(
        self,
        source: KeyEventSource,
        settings: Settings,
        on_trigger: Callable[[], None],
        on_recorded: Optional[Callable[[HotkeyConfig], None]] = None,
    ) -> None:
        self._source = source
        self._settings = settings
        self._on_trigger = on_trigger
        self._on_recorded = on_recorded
        self.matcher = HotkeyMatcher(settings.hotkey)
        self.recorder = HotkeyRecorder(on_recorded=self._store_recorded)
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._running = False

    @property
    def source(self) -> KeyEventSource:
        return self._source

    @property
    def config(self) -> HotkeyConfig:
        return self.matcher.config

    def start(self) -> None:
        if self._running:
            return
        self.reload()
        if self._unsubscribe is None:
            self._unsubscribe = self._settings.subscribe(self._on_settings_changed)
        if not self._source.is_trusted():
            logger.warning(
                "Global key monitoring is not permitted for this process; the %s hotkey "
                "only works while clipshelf is focused until access is granted",
                self.config.display_name,
            )
        self._source.start(self.handle_event)
        self._running = True
        logger.info("Hotkey listener started (%s)", self.config.display_name)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._running:
            self._source.stop()
            self._running = False
            logger.info("Hotkey listener stopped")

    def reload(self) -> None:
        self.matcher = HotkeyMatcher(self._settings.hotkey)
        logger.debug("Hotkey set to %s", self.matcher.config.display_name)

    def _on_settings_changed(self, key: str, _value) -> None:
        if key in (SHORTCUT_KEY_CODE_KEY, SHORTCUT_MODIFIERS_KEY):
            self.reload()

    def _store_recorded(self, config: HotkeyConfig) -> None:
        self._settings.hotkey = config
        logger.info("Recorded new hotkey %s", config.display_name)
        if self._on_recorded is not None:
            self._on_recorded(config)

    def start_recording(self) -> None:
        self.recorder.start()

    def handle_event(self, event: KeyEvent) -> bool:
        """Handle one key-down. Returns True if the event was consumed."""
        if self.recorder.is_recording:
            self.recorder.handle(event)
            return True

        if self.matcher.matches(event):
            try:
                self._on_trigger()
            except Exception:
                logger.exception("Hotkey callback failed")
            return True
        return False
