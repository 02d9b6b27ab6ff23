import hashlib
import logging
import os
import shutil
import subprocess
import threading
from typing import List, Optional

from clipshelf.clipboard.base import Pasteboard

logger = logging.getLogger(__name__)


class LinuxPasteboard(Pasteboard):
    """Clipboard text through ``wl-paste``/``wl-copy`` or ``xclip``.

    Neither tool exposes a change counter, so one is kept here: every call to
    :meth:`change_count` reads the clipboard and bumps the counter when the
    text digest differs from the previous read.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0
        self._digest: Optional[str] = None
        self._text: Optional[str] = None

    @staticmethod
    def _wayland() -> bool:
        return bool(os.environ.get("WAYLAND_DISPLAY")) and shutil.which("wl-paste") is not None

    def _read_command(self) -> Optional[List[str]]:
        if self._wayland():
            return ["wl-paste", "--no-newline", "--type", "text/plain"]
        if shutil.which("xclip"):
            return ["xclip", "-selection", "clipboard", "-t", "UTF8_STRING", "-o"]
        return None

    def _write_command(self) -> Optional[List[str]]:
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-copy"):
            return ["wl-copy"]
        if shutil.which("xclip"):
            return ["xclip", "-selection", "clipboard", "-i"]
        return None

    def _run_command(self, command: List[str], timeout: float) -> Optional[bytes]:
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=timeout,
            )
            return result.stdout
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            return None

    def _fetch(self) -> Optional[str]:
        command = self._read_command()
        if command is None:
            return None
        data = self._run_command(command, timeout=1.5)
        if not data:
            return None
        return data.decode("utf-8", errors="replace")

    def _observe(self, text: Optional[str]) -> None:
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest() if text is not None else None
        if digest != self._digest:
            self._digest = digest
            self._text = text
            self._count += 1

    def change_count(self) -> int:
        text = self._fetch()
        with self._lock:
            self._observe(text)
            return self._count

    def read_text(self) -> Optional[str]:
        with self._lock:
            return self._text

    def write_text(self, text: str) -> bool:
        command = self._write_command()
        if command is None:
            logger.warning("No clipboard tool found (install wl-clipboard or xclip)")
            return False
        try:
            subprocess.run(command, input=text.encode("utf-8"), check=True, timeout=2.0)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.warning(f"Clipboard write error: {e}")
            return False
        with self._lock:
            self._observe(text)
        return True
