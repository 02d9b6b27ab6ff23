import logging
from typing import Any, Callable, Optional

from clipshelf.hotkeys.base import KeyEventHandler, KeyEventSource
from clipshelf.models.hotkey import KEY_NAMES, KeyEvent, Modifier

logger = logging.getLogger(__name__)

_MODIFIER_KEYS = (
    ("ctrl", Modifier.PRIMARY),
    ("shift", Modifier.SHIFT),
    ("alt", Modifier.ALT),
    ("windows", Modifier.SECONDARY),
)


def modifiers_from_pressed(is_pressed: Callable[[str], bool]) -> int:
    """Build the modifier mask from a ``keyboard.is_pressed``-style probe.

    Control plays the primary role here, the way command does on macOS.
    """
    mask = 0
    for name, modifier in _MODIFIER_KEYS:
        if is_pressed(name):
            mask |= modifier
    return int(mask)


# keyboard reports layout names; hotkeys are stored as macOS virtual key codes.
_KEY_CODES = {name.lower(): code for code, name in KEY_NAMES.items()}


def key_event_from_name(name: Optional[str], is_pressed: Callable[[str], bool]) -> Optional[KeyEvent]:
    """Translate a ``keyboard`` key-down into a :class:`KeyEvent`.

    Returns ``None`` for keys that have no stored key code.
    """
    key_code = _KEY_CODES.get((name or "").lower())
    if key_code is None:
        return None
    return KeyEvent(key_code=key_code, modifiers=modifiers_from_pressed(is_pressed))


class KeyboardKeyEventSource(KeyEventSource):
    """Global key hook through the ``keyboard`` package (Windows and Linux).

    On Linux the hook needs root or membership of the ``input`` group; without
    it no events arrive and the hotkey stays inert.
    """

    def __init__(self) -> None:
        self._hook: Optional[Callable[..., Any]] = None
        self._trusted = True

    def start(self, handler: KeyEventHandler) -> None:
        import keyboard

        self.stop()

        def on_event(event) -> None:
            if event.event_type != keyboard.KEY_DOWN:
                return
            key_event = key_event_from_name(event.name, keyboard.is_pressed)
            if key_event is not None:
                handler(key_event)

        try:
            self._hook = keyboard.hook(on_event)
            self._trusted = True
        except (ImportError, OSError) as e:
            logger.warning(f"Could not install keyboard hook: {e}")
            self._trusted = False

    def stop(self) -> None:
        if self._hook is None:
            return
        import keyboard

        try:
            keyboard.unhook(self._hook)
        except (KeyError, ValueError):
            pass
        self._hook = None

    def is_trusted(self) -> bool:
        return self._trusted
