"""FastMCP server exposing favorite messages and chat files."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from mcp.server.fastmcp import FastMCP

from .config import SAVE_DEBOUNCE_SECONDS, SETTINGS_PATH
from .host import HostContext, JsonSettingsFile, StaticSession
from .models import FavoriteKind
from .storage import FavoritesStore

# Logging to stderr only — stdout is the MCP JSON-RPC transport
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

mcp = FastMCP(
    "chatfavorites",
    instructions=(
        "Browse the messages and chat files the user marked as favorites. "
        "Use list_favorite_messages to browse or filter favorite messages. "
        "Use get_favorite_message to read one favorite message in full. "
        "Use list_favorite_chat_files to see favorite chat files. "
        "Use get_stats for an overview."
    ),
)

# Singleton store — reused across tool calls
_store: FavoritesStore | None = None
_settings_file: JsonSettingsFile | None = None


def _get_store() -> FavoritesStore:
    global _store, _settings_file
    if _store is None:
        _settings_file = JsonSettingsFile(SETTINGS_PATH, SAVE_DEBOUNCE_SECONDS)
        _store = FavoritesStore(HostContext(session=StaticSession(), persistence=_settings_file))
    return _store


def _format_ts(ts_ms: int | None) -> str:
    if ts_ms is None:
        return "Unknown date"
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _check_data_exists() -> str | None:
    """Return an error message if nothing has been favorited yet."""
    if not SETTINGS_PATH.exists():
        return "No favorites found. Star a message or chat file in the chat app first."
    return None


@mcp.tool()
def list_favorite_messages(
    limit: int = 20,
    offset: int = 0,
    keyword: str | None = None,
    chat_id: str | None = None,
) -> str:
    """Browse favorite messages, oldest first.

    Args:
        limit: Maximum results (default 20)
        offset: Skip this many results (for pagination)
        keyword: Optional keyword matched against message text and character name
        chat_id: Optional chat to restrict results to
    """
    err = _check_data_exists()
    if err:
        return err

    messages = _get_store().list_messages(
        limit=limit, offset=offset, keyword=keyword, chat_id=chat_id
    )
    if not messages:
        if keyword:
            return f"No favorite messages matching '{keyword}'."
        return "No favorite messages found."

    lines = [f"Favorite messages (showing {offset + 1}–{offset + len(messages)}):\n"]
    for i, m in enumerate(messages, offset + 1):
        author = m.user_name if m.is_user else m.character_name
        preview = m.message_text.replace("\n", " ")[:150]
        lines.append(f"{i}. **{author}** in `{m.chat_id}` ({_format_ts(m.timestamp)})")
        lines.append(f"   ID: `{m.id}` | Message #{m.message_id}")
        lines.append(f"   Preview: {preview}")

    if len(messages) == limit:
        lines.append(f"\nMore available — use offset={offset + limit} to see the next page.")

    return "\n".join(lines)


@mcp.tool()
def get_favorite_message(favorite_id: str) -> str:
    """Read a favorite message in full.

    Args:
        favorite_id: The favorite's ID (from list_favorite_messages)
    """
    err = _check_data_exists()
    if err:
        return err

    m = _get_store().get_message(favorite_id)
    if m is None:
        return f"Favorite message not found: {favorite_id}"

    author = m.user_name if m.is_user else m.character_name
    return "\n".join(
        [
            f"# {author}",
            f"Chat: {m.chat_id}",
            f"Character: {m.character_name}",
            f"Favorited: {_format_ts(m.timestamp)}",
            "",
            "---",
            "",
            m.full_message_text,
        ]
    )


@mcp.tool()
def list_favorite_chat_files(limit: int = 20, offset: int = 0, keyword: str | None = None) -> str:
    """Browse favorite chat files.

    Args:
        limit: Maximum results (default 20)
        offset: Skip this many results (for pagination)
        keyword: Optional keyword matched against file name and character name
    """
    err = _check_data_exists()
    if err:
        return err

    files = _get_store().list_chat_files(limit=limit, offset=offset, keyword=keyword)
    if not files:
        return "No favorite chat files found."

    lines = ["Favorite chat files:\n"]
    for i, f in enumerate(files, offset + 1):
        lines.append(f"{i}. **{f.file_name}** ({_format_ts(f.timestamp)})")
        lines.append(f"   ID: `{f.id}` | {f.character_name} | {f.message_count} msgs")
    return "\n".join(lines)


@mcp.tool()
def remove_favorite(kind: str, favorite_id: str) -> str:
    """Remove a favorite.

    Args:
        kind: "message" or "chatfile"
        favorite_id: The favorite's ID
    """
    try:
        favorite_kind = FavoriteKind(kind)
    except ValueError:
        return f"Unknown kind '{kind}'. Use 'message' or 'chatfile'."

    store = _get_store()
    if not store.remove_by_id(favorite_kind, favorite_id):
        return f"Favorite not found: {favorite_id}"
    _settings_file.flush()
    return f"Removed {favorite_kind.value} favorite {favorite_id}."


@mcp.tool()
def get_stats() -> str:
    """Get statistics about favorite messages and chat files."""
    err = _check_data_exists()
    if err:
        return err

    stats = _get_store().get_stats()
    lines = [
        "# Favorites Statistics",
        "",
        f"- **Favorite messages**: {stats['total_messages']:,}",
        f"- **Favorite chat files**: {stats['total_chat_files']:,}",
        f"- **Chats with favorites**: {stats['chats_with_favorites']:,}",
        "",
    ]
    if stats["date_range_start"]:
        lines.append(f"- **Date range**: {stats['date_range_start']} → {stats['date_range_end']}")
        lines.append("")
    if stats["top_characters"]:
        lines.append("## Characters:")
        for c in stats["top_characters"]:
            lines.append(f"- {c['character']}: {c['count']:,} favorites")

    lines.append(f"\n*Data stored in: {SETTINGS_PATH}*")
    return "\n".join(lines)
