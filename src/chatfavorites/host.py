"""Ports to the host chat application and standalone implementations of them."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

Translator = Callable[[str], str]


def identity_translator(text: str) -> str:
    return text


class SessionContext(Protocol):
    def get_current_chat_id(self) -> str | None: ...

    def get_character_name(self) -> str | None: ...


class SettingsPersistence(Protocol):
    """A process-wide keyed configuration object plus a debounced flush."""

    extension_settings: dict[str, Any]

    def save_debounced(self) -> None: ...


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...


class Popup(Protocol):
    async def show(self, content: Any, *, title: str = "") -> Any: ...


class MenuRegistry(Protocol):
    def add_entry(self, entry_id: str, label: str, on_click: Callable[[], Any]) -> None: ...


class EventType(str, Enum):
    USER_MESSAGE_RENDERED = "user_message_rendered"
    CHARACTER_MESSAGE_RENDERED = "character_message_rendered"
    CHAT_CHANGED = "chat_changed"


class EventSource:
    """Host lifecycle notifications, delivered in arrival order."""

    def __init__(self) -> None:
        self._listeners: dict[EventType, list[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: EventType, callback: Callable[..., Any]) -> None:
        if callback not in self._listeners[event]:
            self._listeners[event].append(callback)

    def off(self, event: EventType, callback: Callable[..., Any]) -> None:
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def emit(self, event: EventType, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)


class Debouncer:
    """Coalesce rapid calls into one call after ``delay`` seconds of quiet.

    Runs on the current asyncio loop. Without a running loop the call happens
    immediately, which is what one-shot tools like the CLI want.
    """

    def __init__(self, delay: float, func: Callable[[], None]):
        self.delay = delay
        self.func = func
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return

        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self.func()

    def flush(self) -> None:
        """Run now, cancelling any pending call."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.func()


class JsonSettingsFile:
    """Host configuration object persisted as one JSON document."""

    def __init__(self, path: Path, debounce_seconds: float = 1.0):
        self.path = path
        self.extension_settings: dict[str, Any] = self._load()
        self.writes = 0
        self._debouncer = Debouncer(debounce_seconds, self._write)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self.path)
            return {}
        return data

    def save_debounced(self) -> None:
        self._debouncer()

    def flush(self) -> None:
        self._debouncer.flush()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Serialize the state as it is now, not as it was when the save was requested
        payload = json.dumps(self.extension_settings, indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        self.writes += 1
        logger.debug("Wrote settings to %s", self.path)


class LoggingNotifier:
    """Notifier for headless use: toasts become log records."""

    def info(self, message: str) -> None:
        logger.info(message)

    def success(self, message: str) -> None:
        logger.info(message)


@dataclass
class StaticSession:
    chat_id: str | None = None
    character_name: str | None = None

    def get_current_chat_id(self) -> str | None:
        return self.chat_id

    def get_character_name(self) -> str | None:
        return self.character_name


@dataclass
class HostContext:
    """Everything the extension consumes from its host."""

    session: SessionContext
    persistence: SettingsPersistence
    notifier: Notifier = field(default_factory=LoggingNotifier)
    popup: Popup | None = None
    menu: MenuRegistry | None = None
    translate: Translator = identity_translator

