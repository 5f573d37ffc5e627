"""Relevance filter: which raw events reach the transcript."""

from tgterm.event_types import InboundUpdate, RawEvent


def filter_event(event: RawEvent, active_id: int | None) -> InboundUpdate | None:
    """Return the normalized update if `event` belongs to the active conversation.

    Nothing passes while no conversation is active, so updates that arrive
    before the user picks a room are dropped rather than queued.
    """
    if active_id is None or not event.has_message:
        return None
    if event.conversation_id != active_id:
        return None
    return InboundUpdate(
        conversation_id=active_id,
        sender=event.sender_name,
        text=event.text,
    )
