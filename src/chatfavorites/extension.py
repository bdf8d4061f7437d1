"""Wire the favorites store, indicators and controller into the host lifecycle."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .config import (
    CHAT_CHANGED_DELAY,
    CHAT_PICKER_DELAY,
    EXTENSION_NAME,
    MESSAGE_RENDER_DELAY,
)
from .controller import ReconciliationController
from .document import ChatDocument, Mutation
from .host import EventSource, EventType, HostContext
from .indicators import CHAT_FILE_WRAPPER_SELECTOR, IndicatorSynchronizer
from .storage import FavoritesStore

logger = logging.getLogger(__name__)

MENU_ENTRY_ID = "favorites_menu_button"


class FavoritesExtension:
    """The extension as the host sees it.

    Synchronization triggered by host notifications is deferred by a short
    delay so the host finishes rendering first. A delay of 0 runs the pass on
    the next loop turn. Delays are a heuristic; repeated or stale passes are
    harmless because every pass is idempotent.
    """

    def __init__(
        self,
        host: HostContext,
        document: ChatDocument,
        events: EventSource,
        message_delay: float = MESSAGE_RENDER_DELAY,
        chat_changed_delay: float = CHAT_CHANGED_DELAY,
        chat_picker_delay: float = CHAT_PICKER_DELAY,
    ):
        self.host = host
        self.document = document
        self.events = events
        self.message_delay = message_delay
        self.chat_changed_delay = chat_changed_delay
        self.chat_picker_delay = chat_picker_delay

        self.store: FavoritesStore | None = None
        self.synchronizer: IndicatorSynchronizer | None = None
        self.controller: ReconciliationController | None = None
        self._disconnect: Callable[[], None] | None = None

    def init(self) -> None:
        logger.info("[%s] Initializing...", EXTENSION_NAME)

        self.store = FavoritesStore(self.host)
        self.synchronizer = IndicatorSynchronizer(self.store, self.document)
        self.controller = ReconciliationController(self.synchronizer)
        self.controller.attach(self.document)

        if self.host.menu is not None:
            self.host.menu.add_entry(
                MENU_ENTRY_ID, self.host.translate("Favorites"), self.open_browser
            )

        self.events.on(EventType.USER_MESSAGE_RENDERED, self._on_message_rendered)
        self.events.on(EventType.CHARACTER_MESSAGE_RENDERED, self._on_message_rendered)
        self.events.on(EventType.CHAT_CHANGED, self._on_chat_changed)
        self._disconnect = self.document.observe(self._on_mutation)

        logger.info("[%s] Initialized successfully", EXTENSION_NAME)

    def shutdown(self) -> None:
        self.events.off(EventType.USER_MESSAGE_RENDERED, self._on_message_rendered)
        self.events.off(EventType.CHARACTER_MESSAGE_RENDERED, self._on_message_rendered)
        self.events.off(EventType.CHAT_CHANGED, self._on_chat_changed)
        if self._disconnect is not None:
            self._disconnect()
            self._disconnect = None

    def open_browser(self):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.controller.open_browser())
        return asyncio.ensure_future(self.controller.open_browser())

    def _later(self, delay: float, callback: Callable[..., None], *args) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Host code outside any loop: there is nothing to defer to
            callback(*args)
            return
        if delay <= 0:
            loop.call_soon(callback, *args)
        else:
            loop.call_later(delay, callback, *args)

    def _on_message_rendered(self, message_id) -> None:
        self._later(self.message_delay, self.synchronizer.sync_message, str(message_id))

    def _on_chat_changed(self, *args) -> None:
        self._later(self.chat_changed_delay, self.synchronizer.sync_all_messages)

    def _on_mutation(self, mutation: Mutation) -> None:
        for node in mutation.added:
            if node.css.match(CHAT_FILE_WRAPPER_SELECTOR) or node.select_one(
                CHAT_FILE_WRAPPER_SELECTOR
            ):
                self._later(self.chat_picker_delay, self.synchronizer.sync_chat_files)
                return
