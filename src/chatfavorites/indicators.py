"""Keep star indicators in the document truthful against the favorites store."""

from __future__ import annotations

import logging
import re

from bs4 import Tag

from .config import FAVORITE_COLOR
from .document import ChatDocument, first_child, has_class, last_child, set_classes
from .models import ChatFileMeta, FavoriteMessageDraft, StarPosition
from .storage import FavoritesStore

logger = logging.getLogger(__name__)

MESSAGE_SELECTOR = "#chat .mes"
MESSAGE_BUTTONS_SELECTOR = ".mes_buttons"
MESSAGE_ANCHOR_SELECTOR = ".extraMesButtons"
CHAT_FILE_WRAPPER_SELECTOR = ".select_chat_block_wrapper"
CHAT_FILE_BLOCK_SELECTOR = ".select_chat_block"
CHAT_FILE_ANCHOR_SELECTOR = ".renameChatButton"

INDICATOR_CLASS = "favorite_button"
MESSAGE_INDICATOR_CLASS = "message_favorite_button"
CHAT_FILE_INDICATOR_CLASS = "chat_favorite_button"
HOVER_ONLY_CLASS = "favorite_hover_only"
FAVORITED_CLASS = "favorited"

MESSAGE_TITLES = ("Add to favorites", "Remove from favorites")
CHAT_FILE_TITLES = ("Add chat to favorites", "Remove chat from favorites")


def read_message_draft(message: Tag) -> FavoriteMessageDraft | None:
    """Read a rendered message as it is right now."""
    message_id = message.get("mesid")
    if not message_id:
        return None
    text = message.select_one(".mes_text")
    name = message.select_one(".ch_name")
    return FavoriteMessageDraft(
        message_id=str(message_id),
        message_text=text.get_text().strip() if text is not None else "",
        is_user=has_class(message, "is_user"),
        user_name=(name.get_text().strip() or None) if name is not None else None,
    )


def read_chat_file_name(wrapper: Tag) -> str | None:
    block = wrapper.select_one(CHAT_FILE_BLOCK_SELECTOR)
    if block is None:
        return None
    return block.get("file_name") or None


def read_chat_file_meta(wrapper: Tag) -> ChatFileMeta:
    """Read what the chat picker currently shows about a chat file."""
    name = wrapper.select_one(".select_chat_block_filename")
    count = wrapper.select_one(".chat_messages_num")
    match = re.search(r"\d+", count.get_text()) if count is not None else None
    return ChatFileMeta(
        character_name=(name.get_text().strip() or None) if name is not None else None,
        message_count=int(match.group()) if match else 0,
    )


class IndicatorSynchronizer:
    """Ensure every favoritable item carries exactly one, correct, indicator.

    A pass never caches store contents: membership is read from the store for
    each item, so a pass is safe to repeat at any time.
    """

    def __init__(self, store: FavoritesStore, document: ChatDocument):
        self.store = store
        self.document = document

    def _t(self, text: str) -> str:
        return self.store.host.translate(text)

    def apply_state(self, indicator: Tag, favorited: bool) -> None:
        """Set the visual state of an indicator to match ``favorited``."""
        titles = CHAT_FILE_TITLES if has_class(indicator, CHAT_FILE_INDICATOR_CLASS) else MESSAGE_TITLES
        if favorited:
            set_classes(indicator, add=("fa-solid", FAVORITED_CLASS), remove=("fa-regular",))
            indicator["style"] = f"color: {FAVORITE_COLOR};"
        else:
            set_classes(indicator, add=("fa-regular",), remove=("fa-solid", FAVORITED_CLASS))
            if "style" in indicator.attrs:
                del indicator["style"]

        if self.store.settings.show_star_on_hover:
            set_classes(indicator, add=(HOVER_ONLY_CLASS,))
        else:
            set_classes(indicator, remove=(HOVER_ONLY_CLASS,))

        indicator["title"] = self._t(titles[1] if favorited else titles[0])

    def _new_indicator(self, kind_class: str) -> Tag:
        return self.document.new_element(
            "div", ("mes_button", INDICATOR_CLASS, kind_class, "fa-star")
        )

    def _discard(self, indicators: list[Tag]) -> None:
        for indicator in indicators:
            self.document.remove(indicator)

    # -- messages --------------------------------------------------------

    def sync_message(self, message_id: str) -> None:
        """Targeted pass for one rendered message."""
        for message in self.document.select(MESSAGE_SELECTOR):
            if message.get("mesid") == str(message_id):
                self._sync_message_element(message)
                return
        logger.debug("Message %s is not rendered; nothing to sync", message_id)

    def sync_all_messages(self) -> None:
        for message in self.document.select(MESSAGE_SELECTOR):
            if message.get("mesid"):
                self._sync_message_element(message)

    def _sync_message_element(self, message: Tag) -> None:
        existing = message.select(f".{MESSAGE_INDICATOR_CLASS}")
        buttons = message.select_one(MESSAGE_BUTTONS_SELECTOR)
        anchor = buttons.select_one(MESSAGE_ANCHOR_SELECTOR) if buttons is not None else None

        if not self.store.settings.enabled or anchor is None:
            self._discard(existing)
            return

        indicator = existing[0] if existing else self._new_indicator(MESSAGE_INDICATOR_CLASS)
        self._discard(existing[1:])

        chat_id = self.store.host.session.get_current_chat_id()
        self.apply_state(indicator, self.store.is_message_favorited(chat_id, message["mesid"]))

        left = self.store.settings.star_position == StarPosition.LEFT
        edge = first_child(anchor) if left else last_child(anchor)
        if edge is not indicator:
            self.document.insert(indicator, into=anchor, prepend=left)

    # -- chat files ------------------------------------------------------

    def sync_chat_files(self) -> None:
        for wrapper in self.document.select(CHAT_FILE_WRAPPER_SELECTOR):
            self._sync_chat_file_element(wrapper)

    def _sync_chat_file_element(self, wrapper: Tag) -> None:
        existing = wrapper.select(f".{CHAT_FILE_INDICATOR_CLASS}")
        file_name = read_chat_file_name(wrapper)
        anchor = wrapper.select_one(CHAT_FILE_ANCHOR_SELECTOR)

        if not self.store.settings.enabled or file_name is None or anchor is None:
            self._discard(existing)
            return

        indicator = existing[0] if existing else self._new_indicator(CHAT_FILE_INDICATOR_CLASS)
        self._discard(existing[1:])

        # Displayed metadata is not ours until the file is favorited
        meta = read_chat_file_meta(wrapper)
        indicator["data-character-name"] = meta.character_name or ""
        indicator["data-message-count"] = str(meta.message_count)
        self.apply_state(indicator, self.store.is_chat_file_favorited(file_name))

        left = self.store.settings.star_position == StarPosition.LEFT
        if left:
            if anchor.find_previous_sibling() is not indicator:
                self.document.insert(indicator, before=anchor)
        elif anchor.find_next_sibling() is not indicator:
            self.document.insert(indicator, after=anchor)

    # -- everything ------------------------------------------------------

    def sync_all(self) -> None:
        """Bulk pass over every message and chat file currently in the document."""
        self.sync_all_messages()
        self.sync_chat_files()
