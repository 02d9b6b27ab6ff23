import logging
import time
from typing import Optional

import win32clipboard as wc

from clipshelf.clipboard.base import Pasteboard

logger = logging.getLogger(__name__)


class WindowsPasteboard(Pasteboard):

    def change_count(self) -> int:
        return int(wc.GetClipboardSequenceNumber())

    def _open(self) -> bool:
        # Another process may hold the clipboard for a moment.
        for _ in range(3):
            try:
                wc.OpenClipboard()
                return True
            except Exception:
                time.sleep(0.05)
        return False

    def read_text(self) -> Optional[str]:
        if not self._open():
            logger.debug("Clipboard busy, skipping read")
            return None
        try:
            if not wc.IsClipboardFormatAvailable(wc.CF_UNICODETEXT):
                return None
            return wc.GetClipboardData(wc.CF_UNICODETEXT)
        except Exception as e:
            logger.warning(f"Clipboard read error: {e}")
            return None
        finally:
            try:
                wc.CloseClipboard()
            except Exception:
                pass

    def write_text(self, text: str) -> bool:
        if not self._open():
            return False
        try:
            wc.EmptyClipboard()
            wc.SetClipboardText(text, wc.CF_UNICODETEXT)
            return True
        except Exception as e:
            logger.warning(f"Clipboard write error: {e}")
            return False
        finally:
            try:
                wc.CloseClipboard()
            except Exception:
                pass
