import platform
from typing import Type

from clipshelf.hotkeys.base import KeyEventSource


def get_key_event_source_class() -> Type[KeyEventSource]:
    if platform.system() == "Darwin":
        from clipshelf.hotkeys.macos import MacOSKeyEventSource
        return MacOSKeyEventSource

    from clipshelf.hotkeys.keyboard_hook import KeyboardKeyEventSource
    return KeyboardKeyEventSource


def get_key_event_source() -> KeyEventSource:
    return get_key_event_source_class()()
