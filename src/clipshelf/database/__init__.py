"""
Settings store backends for clipshelf.

The Redis backend is imported lazily so a local install without a Redis
server never touches it.
"""

from clipshelf.database.settings_store import (
    DEFAULT_SETTINGS_PATH,
    JsonFileSettingsStore,
    MemorySettingsStore,
    SettingsStore,
)

__all__ = [
    'DEFAULT_SETTINGS_PATH',
    'JsonFileSettingsStore',
    'MemorySettingsStore',
    'SettingsStore',
]
