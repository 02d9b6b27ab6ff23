"""Global key event sources used by the hotkey service."""

from clipshelf.hotkeys.base import KeyEventHandler, KeyEventSource
from clipshelf.hotkeys.factory import get_key_event_source, get_key_event_source_class

__all__ = [
    'KeyEventHandler',
    'KeyEventSource',
    'get_key_event_source',
    'get_key_event_source_class',
]
