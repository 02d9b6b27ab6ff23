import logging
from typing import Optional

try:
    from AppKit import NSPasteboard, NSPasteboardTypeString
    HAS_APPKIT = True
except ImportError:
    HAS_APPKIT = False

from clipshelf.clipboard.base import Pasteboard

logger = logging.getLogger(__name__)


class MacOSPasteboard(Pasteboard):

    def __init__(self) -> None:
        self._pasteboard = NSPasteboard.generalPasteboard() if HAS_APPKIT else None

    def change_count(self) -> int:
        if self._pasteboard is None:
            return 0
        return int(self._pasteboard.changeCount())

    def read_text(self) -> Optional[str]:
        if self._pasteboard is None:
            return None
        try:
            text = self._pasteboard.stringForType_(NSPasteboardTypeString)
        except Exception as e:
            logger.warning(f"NSPasteboard read error: {e}")
            return None
        return str(text) if text is not None else None

    def write_text(self, text: str) -> bool:
        if self._pasteboard is None:
            return False
        try:
            self._pasteboard.clearContents()
            return bool(self._pasteboard.setString_forType_(text, NSPasteboardTypeString))
        except Exception as e:
            logger.warning(f"NSPasteboard write error: {e}")
            return False
