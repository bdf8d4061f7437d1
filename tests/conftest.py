"""Shared fixtures: in-memory stand-ins for the host application."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import pytest

from chatfavorites.document import ChatDocument
from chatfavorites.host import HostContext, StaticSession
from chatfavorites.indicators import IndicatorSynchronizer
from chatfavorites.storage import FavoritesStore


class RecordingNotifier:
    """Notifier double that keeps every toast for assertions."""

    def __init__(self) -> None:
        self.infos: list[str] = []
        self.successes: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)


class MemoryPersistence:
    """Keyed settings object that counts save requests instead of writing."""

    def __init__(self, extension_settings: dict[str, Any] | None = None) -> None:
        self.extension_settings = extension_settings if extension_settings is not None else {}
        self.saves = 0

    def save_debounced(self) -> None:
        self.saves += 1


class RecordingPopup:
    """Dialog double. ``interact`` runs while the dialog is open."""

    def __init__(self) -> None:
        self.shown: list[ChatDocument] = []
        self.interact: Callable[[ChatDocument], Awaitable[None]] | None = None

    async def show(self, content: ChatDocument, *, title: str = "") -> str:
        self.shown.append(content)
        if self.interact is not None:
            await self.interact(content)
        return "closed"


class RecordingMenu:
    def __init__(self) -> None:
        self.entries: dict[str, tuple[str, Callable[[], Any]]] = {}

    def add_entry(self, entry_id: str, label: str, on_click: Callable[[], Any]) -> None:
        self.entries[entry_id] = (label, on_click)


@pytest.fixture
def session() -> StaticSession:
    return StaticSession(chat_id="Aria - 2024-05-01@12h00m00s", character_name="Aria")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def popup() -> RecordingPopup:
    return RecordingPopup()


@pytest.fixture
def menu() -> RecordingMenu:
    return RecordingMenu()


@pytest.fixture
def host(session, persistence, notifier, popup, menu) -> HostContext:
    return HostContext(
        session=session,
        persistence=persistence,
        notifier=notifier,
        popup=popup,
        menu=menu,
    )


@pytest.fixture
def store(host) -> FavoritesStore:
    return FavoritesStore(host)


@pytest.fixture
def make_synchronizer(store) -> Callable[[str], IndicatorSynchronizer]:
    def _make(html: str) -> IndicatorSynchronizer:
        return IndicatorSynchronizer(store, ChatDocument(html))

    return _make
