"""Tests for :mod:`chatfavorites.indicators`."""

from __future__ import annotations

from chatfavorites.document import ChatDocument, classes, first_child, has_class, last_child
from chatfavorites.indicators import (
    IndicatorSynchronizer,
    read_chat_file_meta,
    read_message_draft,
)
from chatfavorites.models import ChatFileMeta, FavoriteMessageDraft, StarPosition
from tests.markup import chat_file_html, chat_html, chat_picker_html, message_html

CHAT_ID = "Aria - 2024-05-01@12h00m00s"


def star(document: ChatDocument, mesid: str):
    return document.select_one(f'.mes[mesid="{mesid}"] .message_favorite_button')


def test_bulk_pass_adds_one_indicator_per_message(make_synchronizer) -> None:
    sync = make_synchronizer(chat_html(message_html("0"), message_html("1"), message_html("2")))

    sync.sync_all_messages()

    assert len(sync.document.select(".message_favorite_button")) == 3
    for message in sync.document.select(".mes"):
        assert len(message.select(".favorite_button")) == 1


def test_bulk_pass_is_idempotent(store, make_synchronizer) -> None:
    store.add_message(FavoriteMessageDraft(message_id="1", message_text="kept"))
    store.add_chat_file("chat_001.jsonl")
    sync = make_synchronizer(
        chat_html(message_html("0"), message_html("1"))
        + chat_picker_html(chat_file_html("chat_001.jsonl"), chat_file_html("chat_002.jsonl"))
    )

    sync.sync_all()
    first = str(sync.document)
    sync.sync_all()

    assert str(sync.document) == first
    assert len(sync.document.select(".favorite_button")) == 4


def test_indicator_state_follows_membership(store, make_synchronizer) -> None:
    store.add_message(FavoriteMessageDraft(message_id="1", message_text="kept"))
    sync = make_synchronizer(chat_html(message_html("0"), message_html("1")))

    sync.sync_all_messages()

    favorited = star(sync.document, "1")
    plain = star(sync.document, "0")
    assert has_class(favorited, "fa-solid") and has_class(favorited, "favorited")
    assert not has_class(favorited, "fa-regular")
    assert favorited["title"] == "Remove from favorites"
    assert "#ffd700" in favorited["style"]
    assert has_class(plain, "fa-regular") and not has_class(plain, "fa-solid")
    assert plain["title"] == "Add to favorites"
    assert "style" not in plain.attrs


def test_resync_reflects_removal_without_duplicating(store, make_synchronizer) -> None:
    store.add_message(FavoriteMessageDraft(message_id="1", message_text="kept"))
    sync = make_synchronizer(chat_html(message_html("1")))
    sync.sync_all_messages()

    store.remove_message(CHAT_ID, "1")
    sync.sync_all_messages()

    assert len(sync.document.select(".message_favorite_button")) == 1
    assert has_class(star(sync.document, "1"), "fa-regular")


def test_targeted_and_bulk_passes_agree(store, make_synchronizer) -> None:
    store.add_message(FavoriteMessageDraft(message_id="2", message_text="kept"))
    html = chat_html(message_html("0"), message_html("1", anchor=False), message_html("2"))
    targeted = make_synchronizer(html)
    bulk = make_synchronizer(html)

    for mesid in ("0", "1", "2"):
        targeted.sync_message(mesid)
    bulk.sync_all_messages()

    assert str(targeted.document) == str(bulk.document)


def test_message_without_anchor_is_skipped(make_synchronizer) -> None:
    sync = make_synchronizer(chat_html(message_html("0", anchor=False), '<div class="mes"></div>'))

    sync.sync_all_messages()
    sync.sync_message("0")
    sync.sync_message("404")

    assert sync.document.select(".favorite_button") == []


def test_star_position(store, make_synchronizer) -> None:
    sync = make_synchronizer(chat_html(message_html("0")))
    anchor = sync.document.select_one(".extraMesButtons")

    sync.sync_all_messages()
    assert last_child(anchor) is star(sync.document, "0")

    store.settings.star_position = StarPosition.LEFT
    sync.sync_all_messages()
    assert first_child(anchor) is star(sync.document, "0")
    assert len(anchor.select(".favorite_button")) == 1


def test_hover_only_class_follows_setting(store, make_synchronizer) -> None:
    sync = make_synchronizer(chat_html(message_html("0")))

    sync.sync_all_messages()
    assert has_class(star(sync.document, "0"), "favorite_hover_only")

    store.settings.show_star_on_hover = False
    sync.sync_all_messages()
    assert not has_class(star(sync.document, "0"), "favorite_hover_only")


def test_disabled_extension_removes_indicators(store, make_synchronizer) -> None:
    sync = make_synchronizer(
        chat_html(message_html("0")) + chat_picker_html(chat_file_html("chat_001.jsonl"))
    )
    sync.sync_all()

    store.settings.enabled = False
    sync.sync_all()

    assert sync.document.select(".favorite_button") == []


def test_chat_file_indicator_follows_rename_button(store, make_synchronizer) -> None:
    store.add_chat_file("chat_001.jsonl", ChatFileMeta(character_name="Aria", message_count=12))
    sync = make_synchronizer(
        chat_picker_html(
            chat_file_html("chat_001.jsonl"),
            chat_file_html("chat_002.jsonl", character="Bram", count="3 messages"),
        )
    )

    sync.sync_chat_files()

    first, second = sync.document.select(".select_chat_block_wrapper")
    first_star = first.select_one(".chat_favorite_button")
    second_star = second.select_one(".chat_favorite_button")
    assert first.select_one(".renameChatButton").find_next_sibling() is first_star
    assert has_class(first_star, "fa-solid")
    assert first_star["title"] == "Remove chat from favorites"
    assert has_class(second_star, "fa-regular")
    assert second_star["title"] == "Add chat to favorites"
    assert second_star["data-character-name"] == "Bram"
    assert second_star["data-message-count"] == "3"


def test_chat_file_left_position(store, make_synchronizer) -> None:
    store.settings.star_position = StarPosition.LEFT
    sync = make_synchronizer(chat_picker_html(chat_file_html("chat_001.jsonl")))

    sync.sync_chat_files()
    sync.sync_chat_files()

    rename = sync.document.select_one(".renameChatButton")
    assert "chat_favorite_button" in classes(rename.find_previous_sibling())
    assert len(sync.document.select(".chat_favorite_button")) == 1


def test_chat_file_without_structure_is_skipped(make_synchronizer) -> None:
    sync = make_synchronizer(
        chat_picker_html(
            chat_file_html(None),
            chat_file_html("chat_003.jsonl", anchor=False),
        )
    )

    sync.sync_chat_files()

    assert sync.document.select(".chat_favorite_button") == []


def test_chat_file_metadata_is_rederived_each_pass(make_synchronizer) -> None:
    sync = make_synchronizer(chat_picker_html(chat_file_html("chat_001.jsonl", count="12")))
    sync.sync_chat_files()

    sync.document.select_one(".chat_messages_num").string = "13"
    sync.sync_chat_files()

    assert sync.document.select_one(".chat_favorite_button")["data-message-count"] == "13"


def test_translated_titles(store) -> None:
    store.host.translate = lambda text: f"<{text}>"
    sync = IndicatorSynchronizer(store, ChatDocument(chat_html(message_html("0"))))

    sync.sync_all_messages()

    assert star(sync.document, "0")["title"] == "<Add to favorites>"


def test_readers() -> None:
    document = ChatDocument(
        chat_html(message_html("7", "  Hi  there ", name="Sam", is_user=True))
        + chat_picker_html(chat_file_html("c.jsonl", character="Aria", count="n/a"))
    )

    draft = read_message_draft(document.select_one(".mes"))
    meta = read_chat_file_meta(document.select_one(".select_chat_block_wrapper"))

    assert draft == FavoriteMessageDraft(
        message_id="7", message_text="Hi  there", is_user=True, user_name="Sam"
    )
    assert meta == ChatFileMeta(character_name="Aria", message_count=0)
