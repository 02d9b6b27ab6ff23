"""
Platform-specific pasteboard factory.
"""

import platform
from typing import Type

from clipshelf.clipboard.base import Pasteboard


def get_pasteboard_class() -> Type[Pasteboard]:
    """
    Get the Pasteboard implementation for the current platform.

    Raises:
        NotImplementedError: If the current platform is not supported
    """
    system = platform.system()

    if system == "Darwin":
        from clipshelf.clipboard.macos import MacOSPasteboard
        return MacOSPasteboard
    elif system == "Windows":
        from clipshelf.clipboard.windows import WindowsPasteboard
        return WindowsPasteboard
    elif system == "Linux":
        from clipshelf.clipboard.linux import LinuxPasteboard
        return LinuxPasteboard
    else:
        raise NotImplementedError(f"Platform '{system}' is not supported")


def get_pasteboard() -> Pasteboard:
    return get_pasteboard_class()()
