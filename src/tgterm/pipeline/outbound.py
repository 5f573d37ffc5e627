"""Outbound sender: fire-and-forget sendMessage."""

import logging

from tgterm.bot_api import BotApi, BotApiError

logger = logging.getLogger(__name__)


class OutboundSender:
    def __init__(self, bot: BotApi) -> None:
        self._bot = bot

    def send(self, conversation_id: int, text: str) -> None:
        """Submit text to the conversation. Failures are logged, never raised."""
        try:
            self._bot.send_message(conversation_id, text)
        except BotApiError as e:
            logger.warning("sendMessage to %s failed: %s", conversation_id, e)
