import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import redis
from dotenv import load_dotenv

from clipshelf.database.settings_store import SettingsStore

SETTINGS_HASH = "clipshelf:settings"


@dataclass(frozen=True)
class RedisConfig:
    """Connection settings for the Redis-backed settings store."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    hash_key: str = SETTINGS_HASH
    socket_timeout: Optional[float] = 5.0

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "RedisConfig":
        """Read ``REDIS_URI``, falling back to the individual ``REDIS_*`` variables."""
        load_dotenv(dotenv_path=env_path)

        hash_key = os.getenv("CLIPSHELF_REDIS_HASH") or cls.hash_key
        uri = os.getenv("REDIS_URI")
        if uri:
            return cls.from_uri(uri, hash_key=hash_key)

        return cls(
            host=os.getenv("REDIS_HOST") or cls.host,
            port=_int_env("REDIS_PORT", cls.port),
            db=_int_env("REDIS_DB", cls.db),
            password=os.getenv("REDIS_PASSWORD") or None,
            hash_key=hash_key,
        )

    @classmethod
    def from_uri(cls, uri: str, hash_key: str = SETTINGS_HASH) -> "RedisConfig":
        parsed = urlparse(uri)
        if parsed.scheme not in {"redis", "rediss"}:
            raise ValueError(f"Unsupported Redis URI scheme: {parsed.scheme!r}")

        db = parsed.path.lstrip("/")
        return cls(
            host=parsed.hostname or cls.host,
            port=parsed.port or cls.port,
            db=int(db) if db else cls.db,
            password=parsed.password or None,
            hash_key=hash_key,
        )

    def create_client(self) -> redis.Redis:
        return redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            socket_timeout=self.socket_timeout,
            decode_responses=True,
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class RedisSettingsStore(SettingsStore):
    """Settings stored as fields of a single Redis hash.

    Redis hands every value back as a string; typed access is left to
    :class:`clipshelf.services.settings_service.Settings`.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        config: Optional[RedisConfig] = None,
    ) -> None:
        self.config = config or RedisConfig.from_env()
        self.client = client if client is not None else self.config.create_client()
        self.hash_key = self.config.hash_key
        self.client.ping()

    def get(self, key: str) -> Optional[Any]:
        value = self.client.hget(self.hash_key, key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: Any) -> None:
        self.client.hset(self.hash_key, key, str(value))

    def delete(self, key: str) -> None:
        self.client.hdel(self.hash_key, key)

    def close(self) -> None:
        self.client.close()
