"""Render the favorites browser: favorite messages and chat files, grouped by kind."""

from __future__ import annotations

from datetime import datetime
from html import escape

from .config import PREVIEW_LENGTH
from .document import ChatDocument
from .host import Translator
from .models import FavoriteChatFile, FavoriteKind, FavoriteMessage

EMPTY_MESSAGES = "No favorite messages yet"
EMPTY_CHAT_FILES = "No favorite chat files yet"


def _format_date(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%Y-%m-%d")


def empty_placeholder(kind: FavoriteKind, t: Translator) -> str:
    text = EMPTY_MESSAGES if kind is FavoriteKind.MESSAGE else EMPTY_CHAT_FILES
    return f'<div class="no_favorites">{escape(t(text))}</div>'


def _remove_button(kind: FavoriteKind, favorite_id: str, t: Translator) -> str:
    return (
        f'<button class="remove_favorite" data-type="{kind.value}" '
        f'data-id="{escape(favorite_id)}" title="{escape(t("Remove"))}">'
        '<i class="fa-solid fa-trash"></i></button>'
    )


def _message_item(msg: FavoriteMessage, t: Translator) -> str:
    preview = msg.message_text
    if len(preview) >= PREVIEW_LENGTH:
        preview += "..."
    return (
        f'<div class="favorite_item" data-chat-id="{escape(msg.chat_id)}" '
        f'data-message-id="{escape(msg.message_id)}">'
        '<div class="favorite_header">'
        f"<strong>{escape(msg.character_name)}</strong>"
        f'<span class="favorite_date">{_format_date(msg.timestamp)}</span>'
        f"{_remove_button(FavoriteKind.MESSAGE, msg.id, t)}"
        "</div>"
        f'<div class="favorite_text">{escape(preview)}</div>'
        "</div>"
    )


def _chat_file_item(chat_file: FavoriteChatFile, t: Translator) -> str:
    details = (
        f"{t('Character')}: {chat_file.character_name} | "
        f"{t('Messages')}: {chat_file.message_count}"
    )
    return (
        f'<div class="favorite_item" data-file-name="{escape(chat_file.file_name)}">'
        '<div class="favorite_header">'
        f"<strong>{escape(chat_file.file_name)}</strong>"
        f'<span class="favorite_date">{_format_date(chat_file.timestamp)}</span>'
        f"{_remove_button(FavoriteKind.CHAT_FILE, chat_file.id, t)}"
        "</div>"
        f'<div class="favorite_details">{escape(details)}</div>'
        "</div>"
    )


def render_browser(
    messages: list[FavoriteMessage],
    chat_files: list[FavoriteChatFile],
    t: Translator,
) -> ChatDocument:
    """Build the browser as its own document, ready to hand to the popup."""
    message_items = "".join(_message_item(m, t) for m in messages) or empty_placeholder(
        FavoriteKind.MESSAGE, t
    )
    file_items = "".join(_chat_file_item(f, t) for f in chat_files) or empty_placeholder(
        FavoriteKind.CHAT_FILE, t
    )

    return ChatDocument(
        '<div class="favorites_window">'
        '<div class="favorites_tabs">'
        '<div class="favorites_tab active" data-tab="messages">'
        f'<i class="fa-solid fa-message"></i> {escape(t("Favorite Messages"))}</div>'
        '<div class="favorites_tab" data-tab="chatfiles">'
        f'<i class="fa-solid fa-file"></i> {escape(t("Favorite Chat Files"))}</div>'
        "</div>"
        '<div class="favorites_content">'
        '<div id="favorites_messages" class="favorites_tab_content active" data-kind="message">'
        f'<div class="favorites_list">{message_items}</div></div>'
        '<div id="favorites_chatfiles" class="favorites_tab_content" data-kind="chatfile">'
        f'<div class="favorites_list">{file_items}</div></div>'
        "</div>"
        "</div>"
    )
