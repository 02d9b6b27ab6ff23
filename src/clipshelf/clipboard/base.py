from abc import ABC, abstractmethod
from typing import Optional


class Pasteboard(ABC):
    """Text access to the system clipboard plus its change counter.

    ``change_count`` must return a value that differs whenever the clipboard
    content changes, so callers can skip reading content on quiet ticks.
    """

    @abstractmethod
    def change_count(self) -> int:
        pass

    @abstractmethod
    def read_text(self) -> Optional[str]:
        pass

    @abstractmethod
    def write_text(self, text: str) -> bool:
        pass
