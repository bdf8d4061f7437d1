"""CLI interface for chatfavorites."""

from __future__ import annotations

import json
import shutil
import sys
from datetime import datetime

import click

from . import __version__
from .config import SETTINGS_PATH
from .host import HostContext, JsonSettingsFile, StaticSession
from .models import FavoriteKind
from .storage import FavoritesStore


class EchoNotifier:
    def info(self, message: str) -> None:
        click.echo(message)

    def success(self, message: str) -> None:
        click.echo(click.style(message, fg="green"))


def _open_store() -> FavoritesStore:
    settings_file = JsonSettingsFile(SETTINGS_PATH)
    return FavoritesStore(
        HostContext(session=StaticSession(), persistence=settings_file, notifier=EchoNotifier())
    )


def _format_ts(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%Y-%m-%d %H:%M")


@click.group()
@click.version_option(version=__version__, prog_name="chatfavorites")
def cli():
    """chatfavorites — Browse your favorite chat messages and chat files.

    Favorites are starred inside the chat app; this tool reads and edits the
    same settings file, and can serve them to MCP clients.
    """
    pass


@cli.command("list")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in FavoriteKind]),
    default=None,
    help="Only list one kind of favorite",
)
@click.option("--keyword", default=None, help="Filter by text, file or character name")
@click.option("--limit", default=20, show_default=True)
@click.option("--offset", default=0, show_default=True)
def list_cmd(kind: str | None, keyword: str | None, limit: int, offset: int):
    """List favorite messages and chat files."""
    store = _open_store()

    if kind in (None, FavoriteKind.MESSAGE.value):
        messages = store.list_messages(limit=limit, offset=offset, keyword=keyword)
        click.echo(click.style("Favorite messages", bold=True))
        if not messages:
            click.echo("  No favorite messages yet")
        for m in messages:
            preview = m.message_text.replace("\n", " ")[:80]
            click.echo(f"  {m.id}  {_format_ts(m.timestamp)}  {m.character_name}: {preview}")
        click.echo()

    if kind in (None, FavoriteKind.CHAT_FILE.value):
        files = store.list_chat_files(limit=limit, offset=offset, keyword=keyword)
        click.echo(click.style("Favorite chat files", bold=True))
        if not files:
            click.echo("  No favorite chat files yet")
        for f in files:
            click.echo(
                f"  {f.id}  {_format_ts(f.timestamp)}  {f.file_name} "
                f"({f.character_name}, {f.message_count} msgs)"
            )
        click.echo()


@cli.command()
@click.argument("favorite_id")
def show(favorite_id: str):
    """Print a favorite message in full."""
    message = _open_store().get_message(favorite_id)
    if message is None:
        raise click.ClickException(f"Favorite message not found: {favorite_id}")

    author = message.user_name if message.is_user else message.character_name
    click.echo(click.style(author, bold=True) + f"  ({message.chat_id}, #{message.message_id})")
    click.echo(message.full_message_text)


@cli.command()
@click.argument("kind", type=click.Choice([k.value for k in FavoriteKind]))
@click.argument("favorite_id")
def remove(kind: str, favorite_id: str):
    """Remove a favorite by its ID."""
    store = _open_store()
    if not store.remove_by_id(kind, favorite_id):
        raise click.ClickException(f"Favorite not found: {favorite_id}")


@cli.command()
def stats():
    """Show statistics about your favorites."""
    if not SETTINGS_PATH.exists():
        click.echo("No favorites found. Star a message or chat file first.")
        return

    s = _open_store().get_stats()

    click.echo()
    click.echo(click.style("Favorites Statistics", bold=True))
    click.echo(f"  Messages:       {s['total_messages']:,}")
    click.echo(f"  Chat files:     {s['total_chat_files']:,}")
    click.echo(f"  Chats:          {s['chats_with_favorites']:,}")
    if s["date_range_start"]:
        click.echo(f"  Date range:     {s['date_range_start']} → {s['date_range_end']}")
    if s["top_characters"]:
        click.echo("  Characters:")
        for c in s["top_characters"]:
            click.echo(f"    {c['character']}: {c['count']:,}")
    click.echo(f"  Location:       {SETTINGS_PATH}")
    click.echo()


@cli.command()
def serve():
    """Start the MCP server (stdio transport)."""
    if not SETTINGS_PATH.exists():
        click.echo("Warning: no favorites saved yet.", err=True)

    from .server import mcp

    mcp.run(transport="stdio")


@cli.command()
def config():
    """Print the MCP client configuration snippet."""
    chatfavorites_path = shutil.which("chatfavorites")

    if chatfavorites_path:
        server = {"command": chatfavorites_path, "args": ["serve"]}
    else:
        server = {"command": "uvx", "args": ["chat-favorites", "serve"]}

    click.echo()
    click.echo(click.style("Claude Desktop", bold=True))
    click.echo("Add this to your Claude Desktop config file:")
    click.echo()
    click.echo(json.dumps({"mcpServers": {"chatfavorites": server}}, indent=2))
    click.echo()

    if sys.platform == "darwin":
        click.echo(
            "Config file location: "
            "~/Library/Application Support/Claude/claude_desktop_config.json"
        )
    elif sys.platform == "win32":
        click.echo("Config file location: %APPDATA%\\Claude\\claude_desktop_config.json")
    else:
        click.echo("Config file location: ~/.config/Claude/claude_desktop_config.json")
    click.echo()


@cli.command()
@click.confirmation_option(prompt="This will delete all favorites. Are you sure?")
def reset():
    """Delete all saved favorites and start fresh."""
    if not SETTINGS_PATH.exists():
        click.echo("No data to delete.")
        return

    messages, files = _open_store().clear()
    click.echo(f"Deleted {messages} favorite messages and {files} favorite chat files")
