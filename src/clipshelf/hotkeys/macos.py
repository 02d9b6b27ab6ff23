import logging
import threading
from typing import Any, Optional

try:
    from AppKit import NSApplication, NSEvent, NSEventMaskKeyDown
    from PyObjCTools import AppHelper
    HAS_APPKIT = True
except ImportError:
    HAS_APPKIT = False

try:
    from ApplicationServices import AXIsProcessTrusted
    HAS_AX = True
except ImportError:
    HAS_AX = False

from clipshelf.hotkeys.base import KeyEventHandler, KeyEventSource
from clipshelf.models.hotkey import KeyEvent, Modifier

logger = logging.getLogger(__name__)

# NSEventModifierFlags bits.
NS_CAPS_LOCK = 1 << 16
NS_SHIFT = 1 << 17
NS_CONTROL = 1 << 18
NS_OPTION = 1 << 19
NS_COMMAND = 1 << 20

ALPHA_LOCK = 1024

_FLAG_MAP = (
    (NS_COMMAND, Modifier.PRIMARY),
    (NS_SHIFT, Modifier.SHIFT),
    (NS_OPTION, Modifier.ALT),
    (NS_CONTROL, Modifier.SECONDARY),
)


def modifiers_from_ns_flags(flags: int) -> int:
    """Translate ``NSEvent.modifierFlags()`` into the stored modifier mask.

    Caps lock is carried through as the alpha-lock bit; matching ignores it.
    """
    mask = 0
    for ns_flag, modifier in _FLAG_MAP:
        if flags & ns_flag:
            mask |= modifier
    if flags & NS_CAPS_LOCK:
        mask |= ALPHA_LOCK
    return int(mask)


def key_event_from_ns_event(event: Any) -> KeyEvent:
    return KeyEvent(
        key_code=int(event.keyCode()),
        modifiers=modifiers_from_ns_flags(int(event.modifierFlags())),
    )


class MacOSKeyEventSource(KeyEventSource):
    """Key-down monitors registered with ``NSEvent``.

    The local monitor sees events aimed at this process and can swallow them;
    the global monitor sees everything else but only once the process has been
    granted accessibility access.
    """

    def __init__(self) -> None:
        self._local_monitor: Optional[Any] = None
        self._global_monitor: Optional[Any] = None

    def start(self, handler: KeyEventHandler) -> None:
        if not HAS_APPKIT:
            logger.warning("AppKit is not available; global hotkey disabled")
            return
        self.stop()
        NSApplication.sharedApplication()

        def on_local(event):
            if handler(key_event_from_ns_event(event)):
                return None
            return event

        def on_global(event):
            handler(key_event_from_ns_event(event))

        self._local_monitor = NSEvent.addLocalMonitorForEventsMatchingMask_handler_(
            NSEventMaskKeyDown, on_local)
        self._global_monitor = NSEvent.addGlobalMonitorForEventsMatchingMask_handler_(
            NSEventMaskKeyDown, on_global)
        logger.debug("NSEvent key monitors installed")

    def stop(self) -> None:
        if self._local_monitor is not None:
            NSEvent.removeMonitor_(self._local_monitor)
            self._local_monitor = None
        if self._global_monitor is not None:
            NSEvent.removeMonitor_(self._global_monitor)
            self._global_monitor = None

    def is_trusted(self) -> bool:
        if not HAS_AX:
            return HAS_APPKIT
        return bool(AXIsProcessTrusted())

    def run_until(self, stop_event: threading.Event) -> None:
        if not HAS_APPKIT:
            stop_event.wait()
            return

        def watch() -> None:
            stop_event.wait()
            AppHelper.callAfter(AppHelper.stopEventLoop)

        threading.Thread(target=watch, name="clipshelf-eventloop-stop", daemon=True).start()
        NSApplication.sharedApplication()
        AppHelper.runConsoleEventLoop(installInterrupt=True)
