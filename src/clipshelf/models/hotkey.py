"""Hotkey combinations and key events.

Modifier bits use the Carbon values the settings have always been stored with,
so a combination persisted as ``768`` reads back as command + shift.
"""

import enum
from dataclasses import dataclass
from typing import Dict


class Modifier(enum.IntFlag):
    PRIMARY = 256  # command
    SHIFT = 512
    ALT = 2048  # option
    SECONDARY = 4096  # control


ALL_MODIFIERS = Modifier.PRIMARY | Modifier.SHIFT | Modifier.ALT | Modifier.SECONDARY

# macOS virtual key codes for the letter keys.
KEY_NAMES: Dict[int, str] = {
    0: "A", 1: "S", 2: "D", 3: "F", 4: "H", 5: "G", 6: "Z", 7: "X",
    8: "C", 9: "V", 11: "B", 12: "Q", 13: "W", 14: "E", 15: "R",
    16: "Y", 17: "T", 31: "O", 32: "U", 34: "I", 35: "P", 37: "L",
    38: "J", 40: "K", 45: "N", 46: "M",
}

_MODIFIER_SYMBOLS = (
    (Modifier.PRIMARY, "⌘"),
    (Modifier.ALT, "⌥"),
    (Modifier.SHIFT, "⇧"),
    (Modifier.SECONDARY, "⌃"),
)


class InvalidHotkeyError(ValueError):
    pass


def normalize_modifiers(flags: int) -> Modifier:
    """Keep only the four recognized modifier bits of ``flags``."""
    return Modifier(int(flags) & ALL_MODIFIERS)


@dataclass(frozen=True)
class KeyEvent:
    key_code: int
    modifiers: int = 0

    @property
    def normalized_modifiers(self) -> Modifier:
        return normalize_modifiers(self.modifiers)


@dataclass(frozen=True)
class HotkeyConfig:
    key_code: int
    modifiers: int

    @property
    def is_valid(self) -> bool:
        return bool(normalize_modifiers(self.modifiers))

    def validate(self) -> "HotkeyConfig":
        if not self.is_valid:
            raise InvalidHotkeyError(
                "A hotkey must include at least one modifier key (⌘, ⌥, ⇧, ⌃)")
        return self

    @classmethod
    def from_event(cls, event: KeyEvent) -> "HotkeyConfig":
        return cls(key_code=event.key_code, modifiers=int(event.normalized_modifiers))

    @property
    def display_name(self) -> str:
        mods = normalize_modifiers(self.modifiers)
        prefix = "".join(symbol for flag, symbol in _MODIFIER_SYMBOLS if flag in mods)
        key_name = KEY_NAMES.get(self.key_code, f"Key({self.key_code})")
        return f"{prefix}{key_name}"


DEFAULT_HOTKEY = HotkeyConfig(key_code=3, modifiers=int(Modifier.PRIMARY | Modifier.SHIFT))
