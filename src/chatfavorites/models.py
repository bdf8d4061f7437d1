"""Data models for favorites and the extension settings."""

from __future__ import annotations

import time
import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


class StarPosition(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class FavoriteKind(str, Enum):
    MESSAGE = "message"
    CHAT_FILE = "chatfile"


class _CamelModel(BaseModel):
    """Stored under camelCase keys, addressed by snake_case attributes.

    Keys written by other versions are kept and saved back as they were.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FavoriteMessage(_CamelModel):
    id: str = Field(default_factory=_new_id)
    chat_id: str
    message_id: str
    message_text: str
    full_message_text: str
    timestamp: int = Field(default_factory=_now_ms)
    character_name: str = "Unknown"
    user_name: str = "User"
    is_user: bool = False


class FavoriteChatFile(_CamelModel):
    id: str = Field(default_factory=_new_id)
    file_name: str
    last_modified: int = Field(default_factory=_now_ms)
    character_name: str = "Unknown"
    message_count: int = 0
    timestamp: int = Field(default_factory=_now_ms)


class FavoriteMessageDraft(BaseModel):
    """Message data read from the document when the user stars it."""

    message_id: str
    message_text: str
    is_user: bool = False
    user_name: str | None = None


class ChatFileMeta(BaseModel):
    """Chat file data read from the picker when the user stars it."""

    last_modified: int | None = None
    character_name: str | None = None
    message_count: int = 0


class Settings(_CamelModel):
    enabled: bool = True
    favorite_messages: list[FavoriteMessage] = []
    favorite_chat_files: list[FavoriteChatFile] = []
    show_star_on_hover: bool = True
    star_position: StarPosition = StarPosition.RIGHT


def default_settings() -> dict:
    """Return the persisted shape of a fresh settings instance."""
    return Settings().to_storage()
