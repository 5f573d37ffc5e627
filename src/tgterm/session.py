"""Session context shared by the poller thread and the TUI.

// [LAW:no-shared-mutable-globals] Built once in cli.main and passed by
// ownership into both execution contexts.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from tgterm.bot_api import BotApi
from tgterm.io.settings import ConversationEntry
from tgterm.pipeline.relay import RelayChannel

logger = logging.getLogger(__name__)


class ActiveConversation:
    """Set-once holder for the selected conversation id.

    Written by the UI loop at the selection transition, read by the relevance
    filter on the poller thread for every arriving event.
    """

    def __init__(self, conversation_id: int | None = None) -> None:
        self._lock = threading.Lock()
        self._value = conversation_id

    def get(self) -> int | None:
        return self._value

    def activate(self, conversation_id: int) -> None:
        """Bind the session to conversation_id. Re-binding to a different id raises."""
        with self._lock:
            if self._value is not None and self._value != conversation_id:
                raise ValueError(
                    f"conversation already active: {self._value} (requested {conversation_id})"
                )
            self._value = conversation_id
        logger.info("active conversation: %s", conversation_id)


@dataclass
class SessionContext:
    bot: BotApi
    entries: tuple[ConversationEntry, ...] = ()
    active: ActiveConversation = field(default_factory=ActiveConversation)
    relay: RelayChannel = field(default_factory=RelayChannel)
    session_name: str = "unnamed-session"
