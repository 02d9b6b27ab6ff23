import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".clipshelf" / "settings.json"


class SettingsStore(ABC):
    """Small durable key-value store holding settings and the history blob."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    def close(self) -> None:
        pass


class MemorySettingsStore(SettingsStore):

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileSettingsStore(SettingsStore):
    """Settings kept as one JSON object on disk.

    Several processes may share the file. Reads pick up the file again when it
    changed on disk, and a write merges the one key being written into the
    current file contents instead of writing back a stale copy. Writes go to a
    temporary file in the same directory which then replaces the original, so
    a crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
        self._lock = threading.RLock()
        self._stamp: Optional[Tuple[int, int, int]] = None
        self._data: Dict[str, Any] = {}
        self._reload_if_changed()

    def _file_stamp(self) -> Optional[Tuple[int, int, int]]:
        # Every write replaces the file, so the inode changes even when the
        # mtime resolution is coarse.
        try:
            st = self.path.stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def _reload_if_changed(self) -> None:
        stamp = self._file_stamp()
        if stamp is not None and stamp == self._stamp:
            return
        self._data = self._read()
        self._stamp = stamp

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read settings from {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.path}: not a JSON object")
            return {}
        return data

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
            self._stamp = self._file_stamp()
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            self._reload_if_changed()
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._reload_if_changed()
            self._data[key] = value
            self._write()

    def delete(self, key: str) -> None:
        with self._lock:
            self._reload_if_changed()
            if key in self._data:
                del self._data[key]
                self._write()
