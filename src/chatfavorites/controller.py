"""Apply user clicks to the store and keep every visible indicator consistent."""

from __future__ import annotations

import logging
from typing import Any

from bs4 import Tag

from .browser import empty_placeholder, render_browser
from .document import ChatDocument, set_classes
from .indicators import (
    CHAT_FILE_INDICATOR_CLASS,
    IndicatorSynchronizer,
    MESSAGE_INDICATOR_CLASS,
    read_chat_file_meta,
    read_chat_file_name,
    read_message_draft,
)
from .models import FavoriteKind

logger = logging.getLogger(__name__)


class ReconciliationController:
    """Handles indicator toggles and removals made from the favorites browser."""

    def __init__(self, synchronizer: IndicatorSynchronizer):
        self.synchronizer = synchronizer
        self.store = synchronizer.store

    def attach(self, document: ChatDocument) -> None:
        document.on_click(f".{MESSAGE_INDICATOR_CLASS}", self.toggle_message)
        document.on_click(f".{CHAT_FILE_INDICATOR_CLASS}", self.toggle_chat_file)

    # -- inline indicators -----------------------------------------------

    def toggle_message(self, indicator: Tag) -> bool:
        """Flip a message between favorited and unfavorited. Returns the new state."""
        message = indicator.find_parent(class_="mes")
        draft = read_message_draft(message) if message is not None else None
        if draft is None:
            logger.debug("Clicked indicator is not inside a rendered message")
            return False

        chat_id = self.store.host.session.get_current_chat_id()
        if self.store.is_message_favorited(chat_id, draft.message_id):
            self.store.remove_message(chat_id, draft.message_id)
        else:
            self.store.add_message(draft)

        favorited = self.store.is_message_favorited(chat_id, draft.message_id)
        self.synchronizer.apply_state(indicator, favorited)
        return favorited

    def toggle_chat_file(self, indicator: Tag) -> bool:
        """Flip a chat file between favorited and unfavorited. Returns the new state."""
        wrapper = indicator.find_parent(class_="select_chat_block_wrapper")
        file_name = read_chat_file_name(wrapper) if wrapper is not None else None
        if file_name is None:
            logger.debug("Clicked indicator is not inside a chat file entry")
            return False

        if self.store.is_chat_file_favorited(file_name):
            self.store.remove_chat_file(file_name)
        else:
            self.store.add_chat_file(file_name, read_chat_file_meta(wrapper))

        favorited = self.store.is_chat_file_favorited(file_name)
        self.synchronizer.apply_state(indicator, favorited)
        return favorited

    # -- favorites browser -----------------------------------------------

    async def open_browser(self) -> Any:
        """Show every favorite in the host's dialog until it is dismissed."""
        t = self.store.host.translate
        view = render_browser(self.store.list_messages(), self.store.list_chat_files(), t)
        view.on_click(".favorites_tab", lambda tab: self.switch_tab(view, tab))
        view.on_click(".remove_favorite", lambda button: self.remove_from_browser(view, button))

        popup = self.store.host.popup
        if popup is None:
            logger.warning("Host provides no dialog; cannot show favorites")
            return None
        return await popup.show(view, title=t("Favorites"))

    def remove_from_browser(self, view: ChatDocument, button: Tag) -> bool:
        kind = FavoriteKind(button["data-type"])
        removed = self.store.remove_by_id(kind, button["data-id"])
        if not removed:
            logger.debug("Favorite %s was already gone", button["data-id"])

        item = button.find_parent(class_="favorite_item")
        favorites_list = item.find_parent(class_="favorites_list") if item is not None else None
        if item is not None:
            view.remove(item)
        if favorites_list is not None and favorites_list.select_one(".favorite_item") is None:
            view.append_html(empty_placeholder(kind, self.store.host.translate), into=favorites_list)

        # The same favorite may still be starred in the live document
        self.synchronizer.sync_all()
        return removed

    def switch_tab(self, view: ChatDocument, tab: Tag) -> None:
        name = tab.get("data-tab")
        for other in view.select(".favorites_tab"):
            set_classes(other, remove=("active",))
        for content in view.select(".favorites_tab_content"):
            set_classes(content, remove=("active",))
        set_classes(tab, add=("active",))
        panel = view.select_one(f"#favorites_{name}")
        if panel is not None:
            set_classes(panel, add=("active",))
