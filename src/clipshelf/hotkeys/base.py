import threading
from abc import ABC, abstractmethod
from typing import Callable

from clipshelf.models.hotkey import KeyEvent

# Returns True when the event was handled and should not reach other
# applications (where the platform allows swallowing it).
KeyEventHandler = Callable[[KeyEvent], bool]


class KeyEventSource(ABC):
    """System-wide stream of key-down events."""

    @abstractmethod
    def start(self, handler: KeyEventHandler) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Remove every listener registered by :meth:`start`."""

    def is_trusted(self) -> bool:
        """Whether the OS currently lets this process observe global key events."""
        return True

    def run_until(self, stop_event: threading.Event) -> None:
        """Block the calling thread, delivering events, until ``stop_event`` is set."""
        stop_event.wait()
