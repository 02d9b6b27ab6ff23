from typing import List, Union

import ulid
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ClipboardEntry(BaseModel):
    """Immutable clipboard history entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(ulid.new()))
    content: str


_ENTRY_LIST = TypeAdapter(List[ClipboardEntry])


def dump_entries(entries: List[ClipboardEntry]) -> str:
    return _ENTRY_LIST.dump_json(entries).decode("utf-8")


def load_entries(raw: Union[str, bytes]) -> List[ClipboardEntry]:
    """Parse a serialized entry list.

    Raises ``pydantic.ValidationError`` when ``raw`` is not a JSON array of
    ``{"id": ..., "content": ...}`` objects.
    """
    return _ENTRY_LIST.validate_json(raw)
