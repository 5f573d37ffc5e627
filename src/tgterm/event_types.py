"""Type-safe records for the inbound update pipeline.

// [LAW:one-source-of-truth] The class IS the type; no event_type string field.
// [LAW:single-enforcer] parse_raw_event is the sole Bot API update validation boundary.

This module is STABLE. Safe for `from` imports everywhere.
"""

from dataclasses import dataclass


# ─── Type alias for JSON-parsed dicts ─────────────────────────────────────────

JsonDict = dict[str, object]


# ─── Value types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RawEvent:
    """One update as delivered by getUpdates, reduced to the fields we read.

    has_message is False for updates that carry no message at all
    (edited messages, callback queries, channel posts, ...).
    """

    update_id: int
    has_message: bool = False
    conversation_id: int | None = None
    sender_first_name: str = ""
    sender_last_name: str = ""
    text: str = ""

    @property
    def sender_name(self) -> str:
        return " ".join(part for part in (self.sender_first_name, self.sender_last_name) if part)


@dataclass(frozen=True)
class InboundUpdate:
    """A raw event that passed the relevance filter, ready for the transcript."""

    conversation_id: int
    sender: str
    text: str


# ─── Parsing ──────────────────────────────────────────────────────────────────


def _as_dict(value: object) -> JsonDict:
    return value if isinstance(value, dict) else {}


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def parse_raw_event(update: JsonDict) -> RawEvent:
    """Convert one getUpdates result entry into a RawEvent.

    Raises ValueError when update_id is missing; everything else degrades
    to defaults so that unknown update kinds are filtered, not fatal.
    """
    update_id = _as_int(update.get("update_id"))
    if update_id is None:
        raise ValueError(f"update without update_id: {update!r}")

    message = update.get("message")
    if not isinstance(message, dict):
        return RawEvent(update_id=update_id)

    chat = _as_dict(message.get("chat"))
    sender = _as_dict(message.get("from"))
    return RawEvent(
        update_id=update_id,
        has_message=True,
        conversation_id=_as_int(chat.get("id")),
        sender_first_name=str(sender.get("first_name", "") or ""),
        sender_last_name=str(sender.get("last_name", "") or ""),
        text=str(message.get("text", "") or ""),
    )
