"""Favorites store backed by the host's keyed settings object."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError

from .config import PREVIEW_LENGTH, SETTINGS_KEY
from .host import HostContext
from .models import (
    ChatFileMeta,
    FavoriteChatFile,
    FavoriteKind,
    FavoriteMessage,
    FavoriteMessageDraft,
    Settings,
    default_settings,
)

logger = logging.getLogger(__name__)

_COLLECTIONS: dict[str, type[BaseModel]] = {
    "favoriteMessages": FavoriteMessage,
    "favoriteChatFiles": FavoriteChatFile,
}


def _load_entries(key: str, raw_entries: list, model: type[BaseModel]) -> tuple[list, list]:
    """Validate saved entries one by one. Returns (entries, unreadable raw entries)."""
    entries, unreadable = [], []
    for index, raw_entry in enumerate(raw_entries):
        if isinstance(raw_entry, dict) and model is FavoriteMessage:
            # Older saves kept only the preview
            if "fullMessageText" not in raw_entry and "messageText" in raw_entry:
                raw_entry["fullMessageText"] = raw_entry["messageText"]
        try:
            entry = model.model_validate(raw_entry)
        except ValidationError as e:
            logger.warning("Keeping unreadable %s entry %d as is: %s", key, index, e)
            unreadable.append(raw_entry)
            continue
        raw_entry.setdefault("id", entry.id)
        entries.append(entry)
    return entries, unreadable


class FavoritesStore:
    """Owns the favorite messages and favorite chat files.

    The Settings instance is the only copy of both collections. Every mutation
    that changes a collection writes the settings back under ``SETTINGS_KEY``
    and asks the host for a debounced save.
    """

    def __init__(self, host: HostContext, settings_key: str = SETTINGS_KEY):
        self.host = host
        self.settings_key = settings_key
        self.settings = self.initialize_settings()

    def initialize_settings(self) -> Settings:
        """Load settings, creating defaults on first run and backfilling new keys.

        Loading never fails. Options with invalid values fall back to their
        defaults. Entries that cannot be read are kept aside untouched and
        written back on save.
        """
        config = self.host.persistence.extension_settings
        raw = config.get(self.settings_key)

        if not isinstance(raw, dict):
            logger.info("Creating default settings")
            raw = default_settings()
            config[self.settings_key] = raw

        defaults = default_settings()
        for key, value in defaults.items():
            if key not in raw:
                raw[key] = value

        for key in defaults.keys() - _COLLECTIONS.keys():
            try:
                Settings.model_validate({key: raw[key]})
            except ValidationError:
                logger.warning("Invalid value %r for %s; using %r", raw[key], key, defaults[key])
                raw[key] = defaults[key]

        entries = {}
        self._unreadable = {}
        for key, model in _COLLECTIONS.items():
            if not isinstance(raw[key], list):
                logger.warning("Invalid %s collection %r; starting empty", key, raw[key])
                raw[key] = []
            entries[key], self._unreadable[key] = _load_entries(key, raw[key], model)

        settings = Settings.model_validate({**raw, **{key: [] for key in _COLLECTIONS}})
        settings.favorite_messages = entries["favoriteMessages"]
        settings.favorite_chat_files = entries["favoriteChatFiles"]
        logger.debug(
            "Settings initialized: %d messages, %d chat files",
            len(settings.favorite_messages),
            len(settings.favorite_chat_files),
        )
        return settings

    def save(self):
        stored = self.settings.to_storage()
        for key, unreadable in self._unreadable.items():
            stored[key].extend(unreadable)
        self.host.persistence.extension_settings[self.settings_key] = stored
        self.host.persistence.save_debounced()
        logger.debug("Settings saved")

    def _t(self, text: str) -> str:
        return self.host.translate(text)

    # -- messages --------------------------------------------------------

    def add_message(self, draft: FavoriteMessageDraft) -> bool:
        """Favorite a message of the current chat. Returns False if already favorited."""
        chat_id = self.host.session.get_current_chat_id()
        if not chat_id:
            logger.warning("No active chat; not favoriting message %s", draft.message_id)
            return False

        if self.is_message_favorited(chat_id, draft.message_id):
            self.host.notifier.info(self._t("Message is already in favorites"))
            return False

        favorite = FavoriteMessage(
            chat_id=chat_id,
            message_id=draft.message_id,
            message_text=draft.message_text[:PREVIEW_LENGTH],
            full_message_text=draft.message_text,
            character_name=self.host.session.get_character_name() or "Unknown",
            user_name=draft.user_name or "User",
            is_user=draft.is_user,
        )
        self.settings.favorite_messages.append(favorite)
        self.save()
        self.host.notifier.success(self._t("Message added to favorites"))
        return True

    def remove_message(self, chat_id: str, message_id: str) -> bool:
        before = len(self.settings.favorite_messages)
        self.settings.favorite_messages = [
            fav
            for fav in self.settings.favorite_messages
            if not (fav.chat_id == chat_id and fav.message_id == message_id)
        ]
        if len(self.settings.favorite_messages) == before:
            return False

        self.save()
        self.host.notifier.success(self._t("Message removed from favorites"))
        return True

    def is_message_favorited(self, chat_id: str | None, message_id: str) -> bool:
        return any(
            fav.chat_id == chat_id and fav.message_id == message_id
            for fav in self.settings.favorite_messages
        )

    # -- chat files ------------------------------------------------------

    def add_chat_file(self, file_name: str, meta: ChatFileMeta | None = None) -> bool:
        """Favorite a chat file. Returns False if already favorited."""
        if self.is_chat_file_favorited(file_name):
            self.host.notifier.info(self._t("Chat file is already in favorites"))
            return False

        meta = meta or ChatFileMeta()
        favorite = FavoriteChatFile(
            file_name=file_name,
            character_name=meta.character_name or "Unknown",
            message_count=meta.message_count,
        )
        if meta.last_modified is not None:
            favorite.last_modified = meta.last_modified

        self.settings.favorite_chat_files.append(favorite)
        self.save()
        self.host.notifier.success(self._t("Chat file added to favorites"))
        return True

    def remove_chat_file(self, file_name: str) -> bool:
        before = len(self.settings.favorite_chat_files)
        self.settings.favorite_chat_files = [
            fav for fav in self.settings.favorite_chat_files if fav.file_name != file_name
        ]
        if len(self.settings.favorite_chat_files) == before:
            return False

        self.save()
        self.host.notifier.success(self._t("Chat file removed from favorites"))
        return True

    def is_chat_file_favorited(self, file_name: str) -> bool:
        return any(fav.file_name == file_name for fav in self.settings.favorite_chat_files)

    # -- by storage id ---------------------------------------------------

    def remove_by_id(self, kind: FavoriteKind | str, favorite_id: str) -> bool:
        """Remove an entry by its opaque id, through the natural-key path."""
        kind = FavoriteKind(kind)
        if kind is FavoriteKind.MESSAGE:
            message = self.get_message(favorite_id)
            if message is None:
                return False
            return self.remove_message(message.chat_id, message.message_id)

        chat_file = self.get_chat_file(favorite_id)
        if chat_file is None:
            return False
        return self.remove_chat_file(chat_file.file_name)

    def get_message(self, favorite_id: str) -> FavoriteMessage | None:
        for fav in self.settings.favorite_messages:
            if fav.id == favorite_id:
                return fav
        return None

    def get_chat_file(self, favorite_id: str) -> FavoriteChatFile | None:
        for fav in self.settings.favorite_chat_files:
            if fav.id == favorite_id:
                return fav
        return None

    def clear(self) -> tuple[int, int]:
        """Remove every favorite. Returns how many messages and chat files were removed."""
        counts = (len(self.settings.favorite_messages), len(self.settings.favorite_chat_files))
        if counts == (0, 0) and not any(self._unreadable.values()):
            return counts
        self.settings.favorite_messages = []
        self.settings.favorite_chat_files = []
        self._unreadable = {key: [] for key in _COLLECTIONS}
        self.save()
        return counts

    # -- listing ---------------------------------------------------------

    def list_messages(
        self,
        limit: int | None = None,
        offset: int = 0,
        keyword: str | None = None,
        chat_id: str | None = None,
    ) -> list[FavoriteMessage]:
        """List favorite messages in insertion order, optionally filtered."""
        messages = self.settings.favorite_messages
        if chat_id is not None:
            messages = [m for m in messages if m.chat_id == chat_id]
        if keyword:
            needle = keyword.lower()
            messages = [
                m
                for m in messages
                if needle in m.full_message_text.lower() or needle in m.character_name.lower()
            ]
        end = None if limit is None else offset + limit
        return list(messages[offset:end])

    def list_chat_files(
        self,
        limit: int | None = None,
        offset: int = 0,
        keyword: str | None = None,
    ) -> list[FavoriteChatFile]:
        files = self.settings.favorite_chat_files
        if keyword:
            needle = keyword.lower()
            files = [
                f
                for f in files
                if needle in f.file_name.lower() or needle in f.character_name.lower()
            ]
        end = None if limit is None else offset + limit
        return list(files[offset:end])

    def get_stats(self) -> dict:
        """Get counts, most favorited characters and the date range."""
        messages = self.settings.favorite_messages
        files = self.settings.favorite_chat_files
        timestamps = [m.timestamp for m in messages] + [f.timestamp for f in files]

        characters = Counter(m.character_name for m in messages)
        characters.update(f.character_name for f in files)

        return {
            "total_messages": len(messages),
            "total_chat_files": len(files),
            "chats_with_favorites": len({m.chat_id for m in messages}),
            "date_range_start": _format_ts(min(timestamps)) if timestamps else None,
            "date_range_end": _format_ts(max(timestamps)) if timestamps else None,
            "top_characters": [
                {"character": name, "count": count}
                for name, count in characters.most_common(10)
            ],
        }


def _format_ts(ts_ms: int | None) -> str | None:
    if ts_ms is None:
        return None
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
