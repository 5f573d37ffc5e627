"""Main TUI application using Textual.

// [LAW:locality-or-seam] Thin coordinator. Every decision lives in
//   tui.state_machine; this module turns widget messages into state machine
//   events and executes the effects that come back.

Two producers feed the message pump: terminal input (keys, list selection,
composer edits) and the activity waiter, a thread worker that blocks on the
relay for exactly one update and posts it back. Each delivery re-arms the
waiter, so at most one wait is outstanding at any time.
"""

import logging
import traceback
from collections.abc import Callable
from functools import partial
from typing import Protocol

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.message import Message
from textual.widgets import ContentSwitcher, Footer, Header, Input, ListView
from textual.worker import get_current_worker

import tgterm.tui.state_machine as sm
from tgterm.event_types import InboundUpdate
from tgterm.pipeline.relay import ActivityWaiter, RelayClosed
from tgterm.session import SessionContext
from tgterm.tui.widgets import Composer, RoomItem, RoomList, TranscriptView

logger = logging.getLogger(__name__)


class Sender(Protocol):
    def send(self, conversation_id: int, text: str) -> None: ...


class _RelayDelivery(Message, bubble=False):
    """Thread-safe bridge: activity waiter thread → app message pump."""

    def __init__(self, update: InboundUpdate) -> None:
        self.update = update
        super().__init__()


_VIEW_IDS = {
    sm.SessionMode.SELECTING: "rooms-view",
    sm.SessionMode.CHATTING: "chat-view",
}


class TgTermApp(App[str]):
    """Single-conversation chat client.

    app.run() returns the composer text that was pending at quit.
    """

    CSS_PATH = "styles.tcss"
    TITLE = "tgterm"

    BINDINGS = [
        Binding("escape", "quit_chat", "Quit", priority=True),
        Binding("ctrl+c", "quit_chat", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        session: SessionContext,
        sender: Sender,
        preselected: int | None = None,
    ) -> None:
        super().__init__()
        self._session = session
        self._outbound = sender
        self._waiter = ActivityWaiter(session.relay)
        self._shutting_down = False
        self._chat_state = sm.initial_state(session.entries, preselected)
        if preselected is not None:
            session.active.activate(preselected)

        self.sub_title = f"session: {session.session_name}"

        # Buffered error log, dumped after the TUI exits
        self._error_log: list[str] = []

    # ─── Derived state ─────────────────────────────────────────────────

    @property
    def chat_state(self) -> sm.ChatState:
        return self._chat_state

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def waiter(self) -> ActivityWaiter:
        return self._waiter

    @property
    def error_log(self) -> list[str]:
        return self._error_log

    # ─── Widget accessors ──────────────────────────────────────────────

    def _query_safe(self, selector, expect_type=None):
        try:
            if expect_type is None:
                return self.query_one(selector)
            return self.query_one(selector, expect_type)
        except NoMatches:
            return None

    def _get_transcript(self) -> TranscriptView | None:
        return self._query_safe("#transcript", TranscriptView)

    def _get_composer(self) -> Composer | None:
        return self._query_safe("#composer", Composer)

    def _get_rooms(self) -> RoomList | None:
        return self._query_safe("#rooms", RoomList)

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Header()
        with ContentSwitcher(initial=_VIEW_IDS[self._chat_state.mode], id="modes"):
            with Vertical(id="rooms-view"):
                yield RoomList(self._session.entries, id="rooms")
            with Vertical(id="chat-view"):
                yield TranscriptView(id="transcript")
                yield Composer(id="composer")
        yield Footer()

    def on_mount(self) -> None:
        self._sync_mode()
        self._sync_transcript()
        self._arm_waiter()
        logger.info("TUI started in %s mode", self._chat_state.mode.value)

    def on_unmount(self) -> None:
        self._shutting_down = True
        logger.info("TUI shutting down")

    # ─── Event pipeline ────────────────────────────────────────────────

    def _handle_event(self, event: object) -> None:
        try:
            self._handle_event_inner(event)
        except Exception as e:
            tb = traceback.format_exc()
            self._error_log.append(f"CRASH in dispatch: {e}")
            self._error_log.append(tb)
            logger.exception("uncaught exception handling %s", type(event).__name__)

    def _handle_event_inner(self, event: object) -> None:
        previous = self._chat_state
        self._chat_state, effects = sm.dispatch(previous, event)
        if self._chat_state.mode is not previous.mode:
            self._sync_mode()
        self._sync_transcript()
        for effect in effects:
            self._run_effect(effect)

    def _run_effect(self, effect: object) -> None:
        # [LAW:dataflow-not-control-flow] Effect type selects the executor.
        executor = self._EFFECT_EXECUTORS.get(type(effect))
        if executor is None:
            logger.warning("no executor for effect %r", effect)
            return
        executor(self, effect)

    def _effect_activate(self, effect: sm.ActivateConversation) -> None:
        self._session.active.activate(effect.conversation_id)
        self.sub_title = f"{self._title_for(effect.conversation_id)} ({effect.conversation_id})"

    def _title_for(self, conversation_id: int) -> str:
        for entry in self._session.entries:
            try:
                if entry.conversation_id() == conversation_id:
                    return entry.title
            except ValueError:
                continue
        return str(conversation_id)

    def _effect_send(self, effect: sm.SendMessage) -> None:
        self._outbound.send(effect.conversation_id, effect.text)

    def _effect_clear_composer(self, effect: sm.ClearComposer) -> None:
        composer = self._get_composer()
        if composer is not None:
            with composer.prevent(Input.Changed):
                composer.clear()

    def _effect_scroll_to_end(self, effect: sm.ScrollToEnd) -> None:
        transcript = self._get_transcript()
        if transcript is not None:
            transcript.scroll_end(animate=False)

    def _effect_rearm(self, effect: sm.ArmWaiter) -> None:
        self._arm_waiter()

    def _effect_diagnose(self, effect: sm.Diagnostic) -> None:
        logger.warning("%s", effect.message)
        self.notify(effect.message, severity="error")

    def _effect_quit(self, effect: sm.Quit) -> None:
        self._shutting_down = True
        self.exit(effect.flush_text)

    _EFFECT_EXECUTORS: dict[type, Callable[["TgTermApp", object], None]] = {
        sm.ActivateConversation: _effect_activate,
        sm.SendMessage: _effect_send,
        sm.ClearComposer: _effect_clear_composer,
        sm.ScrollToEnd: _effect_scroll_to_end,
        sm.ArmWaiter: _effect_rearm,
        sm.Diagnostic: _effect_diagnose,
        sm.Quit: _effect_quit,
    }

    # ─── Rendering ─────────────────────────────────────────────────────

    def _sync_mode(self) -> None:
        """Show only the current mode's widgets and hand it the focus."""
        mode = self._chat_state.mode
        switcher = self._query_safe("#modes", ContentSwitcher)
        if switcher is not None:
            switcher.current = _VIEW_IDS[mode]
        rooms = self._get_rooms()
        if rooms is not None:
            rooms.disabled = mode is not sm.SessionMode.SELECTING
        target = self._query_safe("#" + sm.input_target(mode))
        if target is not None:
            target.focus()

    def _sync_transcript(self) -> None:
        """Write transcript lines the view has not shown yet (append-only)."""
        transcript = self._get_transcript()
        if transcript is None:
            return
        for line in self._chat_state.transcript[transcript.rendered_count:]:
            transcript.append_line(line)

    # ─── Activity waiter ───────────────────────────────────────────────

    def _arm_waiter(self) -> None:
        if self._shutting_down or self._waiter.armed:
            return
        wait = self._waiter.arm()
        self.run_worker(
            partial(self._wait_for_activity, wait),
            name="activity-waiter",
            group="activity",
            thread=True,
            exclusive=False,
        )

    def _wait_for_activity(self, wait) -> None:
        """Block for exactly one relay update, then post it to the pump."""
        worker = get_current_worker()
        try:
            update = wait(lambda: self._shutting_down or worker.is_cancelled)
        except RelayClosed:
            return
        self.post_message(_RelayDelivery(update))

    def on__relay_delivery(self, message: _RelayDelivery) -> None:
        self._handle_event(sm.UpdateDelivered(message.update))

    # ─── Input routing ─────────────────────────────────────────────────

    @on(ListView.Selected, "#rooms")
    def _on_room_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if isinstance(item, RoomItem):
            self._handle_event(sm.RoomConfirmed(item.entry))

    @on(Input.Changed, "#composer")
    def _on_composer_changed(self, event: Input.Changed) -> None:
        self._handle_event(sm.ComposerChanged(event.value))

    @on(Input.Submitted, "#composer")
    def _on_composer_submitted(self, event: Input.Submitted) -> None:
        if event.value != self._chat_state.composer:
            self._handle_event(sm.ComposerChanged(event.value))
        self._handle_event(sm.ComposerSubmitted())

    def action_quit_chat(self) -> None:
        composer = self._get_composer()
        if composer is None or self._chat_state.mode is not sm.SessionMode.CHATTING:
            self._handle_event(sm.QuitRequested())
            return
        # Keys routed to the composer before this binding fired may still be
        # queued there; quit once they have been applied.
        composer.call_later(self._quit_with_draft)

    def _quit_with_draft(self) -> None:
        composer = self._get_composer()
        if composer is not None and composer.value != self._chat_state.composer:
            self._handle_event(sm.ComposerChanged(composer.value))
        self._handle_event(sm.QuitRequested())
