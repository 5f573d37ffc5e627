"""Interaction state machine - pure dispatch for the chat UI.

// [LAW:dataflow-not-control-flow] dispatch(state, event) -> (state, effects).
// The app executes effects; nothing here touches widgets, threads or the network.

Modes:
    SELECTING  room list owns input; inbound updates are ignored.
    CHATTING   transcript + composer own input.

SELECTING -> CHATTING happens once, on a confirmed room whose id parses.
There is no way back.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from tgterm.event_types import InboundUpdate
from tgterm.io.settings import ConversationEntry


WELCOME_TEXT = "Welcome to the chat room!\nType a message and press Enter to send."
EMPTY_SUBMIT_TEXT = "Don't send empty messages."
SELF_SENDER = "You"
SERVER_SENDER = "Server"


class SessionMode(Enum):
    SELECTING = "selecting"
    CHATTING = "chatting"


@dataclass(frozen=True)
class TranscriptLine:
    """One rendered transcript line. sender is empty for the welcome banner."""

    sender: str
    body: str

    @property
    def prefix(self) -> str:
        return f"{self.sender}: " if self.sender else ""

    @property
    def plain(self) -> str:
        return self.prefix + self.body


@dataclass(frozen=True)
class ChatState:
    mode: SessionMode
    entries: tuple[ConversationEntry, ...] = ()
    active_id: int | None = None
    transcript: tuple[TranscriptLine, ...] = ()
    composer: str = ""


# ─── Events (inputs) ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RoomConfirmed:
    entry: ConversationEntry


@dataclass(frozen=True)
class ComposerChanged:
    text: str


@dataclass(frozen=True)
class ComposerSubmitted:
    pass


@dataclass(frozen=True)
class UpdateDelivered:
    update: InboundUpdate


@dataclass(frozen=True)
class QuitRequested:
    pass


# ─── Effects (outputs) ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ActivateConversation:
    conversation_id: int


@dataclass(frozen=True)
class SendMessage:
    conversation_id: int
    text: str


@dataclass(frozen=True)
class ClearComposer:
    pass


@dataclass(frozen=True)
class ScrollToEnd:
    pass


@dataclass(frozen=True)
class ArmWaiter:
    pass


@dataclass(frozen=True)
class Diagnostic:
    message: str


@dataclass(frozen=True)
class Quit:
    flush_text: str


Event = RoomConfirmed | ComposerChanged | ComposerSubmitted | UpdateDelivered | QuitRequested
Effect = ActivateConversation | SendMessage | ClearComposer | ScrollToEnd | ArmWaiter | Diagnostic | Quit
Result = tuple[ChatState, list[Effect]]


# ─── Construction ─────────────────────────────────────────────────────────────


def _chatting(state: ChatState, conversation_id: int) -> ChatState:
    return replace(
        state,
        mode=SessionMode.CHATTING,
        active_id=conversation_id,
        transcript=(TranscriptLine("", WELCOME_TEXT),),
        composer="",
    )


def initial_state(
    entries: tuple[ConversationEntry, ...] = (),
    preselected: int | None = None,
) -> ChatState:
    """Start in CHATTING when a conversation is pre-bound, else in SELECTING."""
    state = ChatState(mode=SessionMode.SELECTING, entries=tuple(entries))
    if preselected is not None:
        return _chatting(state, preselected)
    return state


def input_target(mode: SessionMode) -> str:
    """Widget id that owns keyboard input in `mode`."""
    return "rooms" if mode is SessionMode.SELECTING else "composer"


# ─── Handlers ─────────────────────────────────────────────────────────────────


def _append(state: ChatState, sender: str, body: str) -> ChatState:
    return replace(state, transcript=state.transcript + (TranscriptLine(sender, body),))


def handle_room_confirmed(state: ChatState, event: RoomConfirmed) -> Result:
    if state.mode is not SessionMode.SELECTING:
        return state, []
    try:
        conversation_id = event.entry.conversation_id()
    except ValueError as e:
        return state, [Diagnostic(f"Error: {event.entry.title!r} has an invalid chat id: {e}")]
    return _chatting(state, conversation_id), [
        ActivateConversation(conversation_id),
        ScrollToEnd(),
    ]


def handle_composer_changed(state: ChatState, event: ComposerChanged) -> Result:
    if state.mode is not SessionMode.CHATTING:
        return state, []
    return replace(state, composer=event.text), []


def handle_composer_submitted(state: ChatState, event: ComposerSubmitted) -> Result:
    if state.mode is not SessionMode.CHATTING or state.active_id is None:
        return state, []
    text = state.composer
    if text == "":
        state = _append(state, SERVER_SENDER, EMPTY_SUBMIT_TEXT)
        return replace(state, composer=""), [ClearComposer(), ScrollToEnd()]
    state = _append(state, SELF_SENDER, text)
    return replace(state, composer=""), [
        ClearComposer(),
        ScrollToEnd(),
        SendMessage(state.active_id, text),
    ]


def handle_update_delivered(state: ChatState, event: UpdateDelivered) -> Result:
    update = event.update
    # Unreachable through the filter outside CHATTING, but the wait must be
    # re-armed either way.
    if state.mode is not SessionMode.CHATTING or update.conversation_id != state.active_id:
        return state, [ArmWaiter()]
    return _append(state, update.sender, update.text), [ScrollToEnd(), ArmWaiter()]


def handle_quit_requested(state: ChatState, event: QuitRequested) -> Result:
    return state, [Quit(state.composer)]


def _noop(state: ChatState, event: object) -> Result:
    return state, []


EVENT_HANDLERS: dict[type, Callable[[ChatState, object], Result]] = {
    RoomConfirmed: handle_room_confirmed,
    ComposerChanged: handle_composer_changed,
    ComposerSubmitted: handle_composer_submitted,
    UpdateDelivered: handle_update_delivered,
    QuitRequested: handle_quit_requested,
}


def dispatch(state: ChatState, event: object) -> Result:
    """Apply one event. Unknown events are a no-op."""
    handler = EVENT_HANDLERS.get(type(event), _noop)
    return handler(state, event)
