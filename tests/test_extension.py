"""Lifecycle tests for :mod:`chatfavorites.extension`."""

from __future__ import annotations

import asyncio

import pytest

from chatfavorites.document import ChatDocument, has_class
from chatfavorites.extension import MENU_ENTRY_ID, FavoritesExtension
from chatfavorites.host import EventSource, EventType
from chatfavorites.models import FavoriteMessageDraft
from tests.markup import chat_file_html, chat_html, chat_picker_html, message_html


@pytest.fixture
def events() -> EventSource:
    return EventSource()


@pytest.fixture
def document() -> ChatDocument:
    return ChatDocument(chat_html() + '<div id="popups"></div>')


@pytest.fixture
def extension(host, document, events) -> FavoritesExtension:
    ext = FavoritesExtension(
        host,
        document,
        events,
        message_delay=0,
        chat_changed_delay=0.01,
        chat_picker_delay=0,
    )
    ext.init()
    return ext


async def settle() -> None:
    await asyncio.sleep(0.05)


def stars(document: ChatDocument):
    return document.select(".favorite_button")


@pytest.mark.asyncio
async def test_message_rendered_event_adds_indicator(extension, document, events) -> None:
    document.append_html(message_html("0"), into=document.select_one("#chat"))

    events.emit(EventType.CHARACTER_MESSAGE_RENDERED, 0)
    assert stars(document) == []
    await settle()

    assert len(stars(document)) == 1


@pytest.mark.asyncio
async def test_duplicate_notifications_are_harmless(extension, document, events) -> None:
    document.append_html(message_html("0", is_user=True), into=document.select_one("#chat"))

    events.emit(EventType.USER_MESSAGE_RENDERED, "0")
    events.emit(EventType.USER_MESSAGE_RENDERED, "0")
    events.emit(EventType.CHAT_CHANGED)
    await settle()

    assert len(stars(document)) == 1


@pytest.mark.asyncio
async def test_chat_changed_syncs_the_rebuilt_chat(extension, document, events, session) -> None:
    extension.store.add_message(FavoriteMessageDraft(message_id="1", message_text="kept"))
    session.chat_id = "Bram - 2024-06-01@09h00m00s"
    document.replace_children(
        document.select_one("#chat"), message_html("0") + message_html("1")
    )

    events.emit(EventType.CHAT_CHANGED, session.chat_id)
    await settle()

    assert len(stars(document)) == 2
    # Same message id, different chat: not a favorite here
    assert all(has_class(star, "fa-regular") for star in stars(document))


@pytest.mark.asyncio
async def test_inserted_chat_picker_gets_indicators(extension, document) -> None:
    document.append_html(
        chat_picker_html(chat_file_html("chat_001.jsonl"), chat_file_html("chat_002.jsonl")),
        into=document.select_one("#popups"),
    )
    await settle()

    assert len(document.select(".chat_favorite_button")) == 2


@pytest.mark.asyncio
async def test_unrelated_mutations_do_not_sync_chat_files(extension, document) -> None:
    picker = chat_picker_html(chat_file_html("chat_001.jsonl"))
    document.soup.select_one("#popups").append(document.parse_fragment(picker)[0])

    document.append_html('<div class="toast">Saved</div>')
    await settle()

    assert document.select(".chat_favorite_button") == []


@pytest.mark.asyncio
async def test_menu_entry_opens_browser(extension, menu, popup) -> None:
    label, on_click = menu.entries[MENU_ENTRY_ID]
    assert label == "Favorites"

    assert await on_click() == "closed"
    assert len(popup.shown) == 1


@pytest.mark.asyncio
async def test_clicks_in_the_live_document_reach_the_store(extension, document, events) -> None:
    document.append_html(message_html("4", "Remember me"), into=document.select_one("#chat"))
    events.emit(EventType.CHARACTER_MESSAGE_RENDERED, "4")
    await settle()

    await document.click(document.select_one(".message_favorite_button"))

    assert extension.store.list_messages()[0].full_message_text == "Remember me"


@pytest.mark.asyncio
async def test_shutdown_stops_reacting(extension, document, events) -> None:
    extension.shutdown()
    document.append_html(message_html("0"), into=document.select_one("#chat"))
    document.append_html(chat_picker_html(chat_file_html("chat_001.jsonl")))

    events.emit(EventType.CHARACTER_MESSAGE_RENDERED, "0")
    await settle()

    assert stars(document) == []


def test_message_rendered_outside_a_loop_syncs_at_once(extension, document, events) -> None:
    document.append_html(message_html("0"), into=document.select_one("#chat"))

    events.emit(EventType.CHARACTER_MESSAGE_RENDERED, 0)

    assert len(stars(document)) == 1


def test_chat_picker_outside_a_loop_syncs_at_once(extension, document) -> None:
    document.append_html(
        chat_picker_html(chat_file_html("chat_001.jsonl")),
        into=document.select_one("#popups"),
    )

    assert len(document.select(".chat_favorite_button")) == 1


def test_menu_entry_outside_a_loop_runs_the_browser(extension, menu, popup) -> None:
    _, on_click = menu.entries[MENU_ENTRY_ID]

    assert on_click() == "closed"
    assert len(popup.shown) == 1
