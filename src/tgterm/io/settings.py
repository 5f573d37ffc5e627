"""Configuration file I/O for tgterm.

Reads a JSON config at $TGTERM_CONFIG or XDG_CONFIG_HOME/tgterm/config.json:

    {
      "bot_token": "123456:ABC...",
      "chats": [{"title": "Team", "id": 111}],
      "default_chat": 111
    }

$TGTERM_BOT_TOKEN overrides bot_token. "default_chat" is optional; when set,
the client skips room selection.

This module is a STABLE BOUNDARY.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Configuration is missing, malformed, or incomplete."""


@dataclass(frozen=True)
class ConversationEntry:
    """A selectable room. raw_id is kept verbatim and parsed at selection."""

    title: str
    raw_id: str

    def conversation_id(self) -> int:
        """Parse raw_id into a chat id. Raises ValueError if it is not an integer."""
        return int(self.raw_id.strip(), 10)


@dataclass(frozen=True)
class AppConfig:
    bot_token: str
    entries: tuple[ConversationEntry, ...] = ()
    default_chat: int | None = None


def get_config_path() -> Path:
    """Return path to the config file.

    Uses $TGTERM_CONFIG if set, else XDG_CONFIG_HOME (default ~/.config) / tgterm / config.json.
    """
    explicit = os.environ.get("TGTERM_CONFIG")
    if explicit:
        return Path(os.path.expanduser(explicit))
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "tgterm" / "config.json"


def load_raw(path: Path) -> dict:
    """Load config JSON. Missing file is an empty config; corrupt file is an error."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a JSON object")
    return data


def _parse_entries(raw: object, path: Path) -> tuple[ConversationEntry, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError(f"{path}: 'chats' must be a list")
    entries: list[ConversationEntry] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict) or "id" not in item:
            raise ConfigError(f"{path}: chats[{idx}] needs 'title' and 'id'")
        title = str(item.get("title") or item["id"])
        entries.append(ConversationEntry(title=title, raw_id=str(item["id"])))
    return tuple(entries)


def _parse_chat_id(value: object, what: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{what} must be an integer chat id")
    try:
        return int(str(value).strip(), 10)
    except ValueError as e:
        raise ConfigError(f"{what} must be an integer chat id, got {value!r}") from e


def load_config(
    path: Path | None = None,
    *,
    token: str | None = None,
    chat_id: str | None = None,
    strict: bool = True,
) -> AppConfig:
    """Resolve the full application config.

    Precedence for the token: explicit argument, $TGTERM_BOT_TOKEN, file.
    chat_id (from the command line) overrides the file's default_chat.
    strict=False skips the token and conversation checks (for --list-chats).
    """
    path = path or get_config_path()
    data = load_raw(path)

    bot_token = (token or os.environ.get("TGTERM_BOT_TOKEN") or str(data.get("bot_token") or "")).strip()
    if strict and not bot_token:
        raise ConfigError(
            f"no bot token: set bot_token in {path}, $TGTERM_BOT_TOKEN, or pass --token"
        )

    entries = _parse_entries(data.get("chats"), path)

    default_raw = chat_id if chat_id is not None else data.get("default_chat")
    default_chat = None
    if default_raw is not None and default_raw != "":
        default_chat = _parse_chat_id(default_raw, "--chat-id" if chat_id is not None else "default_chat")

    if strict and default_chat is None and not entries:
        raise ConfigError(f"no conversations configured: add 'chats' to {path} or pass --chat-id")

    return AppConfig(bot_token=bot_token, entries=entries, default_chat=default_chat)


def print_entries(entries: tuple[ConversationEntry, ...]) -> None:
    """Print configured conversations, one per line."""
    if not entries:
        print("No conversations configured.")
        return
    width = max(len(entry.title) for entry in entries)
    for entry in entries:
        print(f"  {entry.title:<{width}}  {entry.raw_id}")
