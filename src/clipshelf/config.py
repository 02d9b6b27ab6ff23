import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from clipshelf.database.settings_store import DEFAULT_SETTINGS_PATH

STORE_BACKENDS = ("json", "redis", "memory")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class AppConfig:
    store: str = "json"
    settings_path: Path = DEFAULT_SETTINGS_PATH
    poll_interval: float = 2.0
    save_delay: float = 1.0
    save_max_wait: float = 5.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.store not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown settings store {self.store!r}; expected one of {', '.join(STORE_BACKENDS)}")
        if self.save_max_wait < self.save_delay:
            raise ValueError("save_max_wait must not be shorter than save_delay")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "AppConfig":
        load_dotenv(dotenv_path=env_path)

        path_raw = os.getenv("CLIPSHELF_SETTINGS_PATH")
        return cls(
            store=os.getenv("CLIPSHELF_STORE", cls.store).strip().lower(),
            settings_path=Path(path_raw).expanduser() if path_raw else cls.settings_path,
            poll_interval=_float_env("CLIPSHELF_POLL_INTERVAL", cls.poll_interval),
            save_delay=_float_env("CLIPSHELF_SAVE_DELAY", cls.save_delay),
            save_max_wait=_float_env("CLIPSHELF_SAVE_MAX_WAIT", cls.save_max_wait),
            log_level=os.getenv("CLIPSHELF_LOG_LEVEL", cls.log_level).strip().upper(),
        )

    def with_overrides(self, **overrides) -> "AppConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
