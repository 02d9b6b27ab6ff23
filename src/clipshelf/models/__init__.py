from clipshelf.models.clipboard_entry import ClipboardEntry, dump_entries, load_entries
from clipshelf.models.hotkey import (
    DEFAULT_HOTKEY,
    HotkeyConfig,
    InvalidHotkeyError,
    KeyEvent,
    Modifier,
    normalize_modifiers,
)

__all__ = [
    'ClipboardEntry',
    'dump_entries',
    'load_entries',
    'DEFAULT_HOTKEY',
    'HotkeyConfig',
    'InvalidHotkeyError',
    'KeyEvent',
    'Modifier',
    'normalize_modifiers',
]
