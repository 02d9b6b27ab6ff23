from clipshelf.services.clipboard_service import ClipboardService
from clipshelf.services.history_service import HistoryStore
from clipshelf.services.hotkey_service import HotkeyMatcher, HotkeyRecorder, HotkeyService
from clipshelf.services.persistence_service import PersistenceService
from clipshelf.services.settings_service import Settings

__all__ = [
    'ClipboardService',
    'HistoryStore',
    'HotkeyMatcher',
    'HotkeyRecorder',
    'HotkeyService',
    'PersistenceService',
    'Settings',
]
