"""
Cross-platform clipboard access.

Each platform module implements the :class:`Pasteboard` interface; use
:func:`get_pasteboard` to obtain the one for the running system.
"""

from clipshelf.clipboard.base import Pasteboard
from clipshelf.clipboard.factory import get_pasteboard, get_pasteboard_class

__all__ = [
    'Pasteboard',
    'get_pasteboard',
    'get_pasteboard_class',
]
