"""In-process integration tests for the chat TUI.

Drives TgTermApp through Textual's pilot. No poller runs; updates are pushed
into the relay from a producer thread with feed_relay.
"""

import pytest
from textual import events
from textual.widgets import Input

import tgterm.tui.state_machine as sm
from tgterm.io.settings import ConversationEntry
from tests.harness import (
    RecordingSender,
    feed_relay,
    press_and_settle,
    run_app,
    type_and_submit,
    update,
    wait_until,
)


def _plain(app):
    return [line.plain for line in app.chat_state.transcript]


class TestRoomSelection:
    async def test_starts_in_room_list(self):
        async with run_app() as (pilot, app):
            assert app.chat_state.mode is sm.SessionMode.SELECTING
            assert app.query_one("#modes").current == "rooms-view"
            assert app.focused is app.query_one("#rooms")
            assert app.session.active.get() is None

    async def test_confirm_enters_chat(self):
        """One entry: confirm it and land in the chat view."""
        async with run_app() as (pilot, app):
            await press_and_settle(pilot, "enter")

            assert app.chat_state.mode is sm.SessionMode.CHATTING
            assert app.session.active.get() == 111
            assert app.query_one("#modes").current == "chat-view"
            assert _plain(app) == [sm.WELCOME_TEXT]
            assert app.query_one("#transcript").rendered_count == 1

    async def test_composer_has_focus_after_confirm(self):
        async with run_app() as (pilot, app):
            await press_and_settle(pilot, "enter")
            assert await wait_until(pilot, lambda: app.focused is app.query_one("#composer"))

    async def test_room_list_disabled_after_confirm(self):
        async with run_app() as (pilot, app):
            await press_and_settle(pilot, "enter")
            assert app.query_one("#rooms").disabled

    async def test_second_entry_selected_with_arrows(self):
        entries = (ConversationEntry("Team", "111"), ConversationEntry("Ops", "-100222"))
        async with run_app(entries=entries) as (pilot, app):
            await press_and_settle(pilot, "down", "enter")
            assert app.session.active.get() == -100222
            assert "Ops" in app.sub_title

    async def test_subtitle_uses_entry_title_for_signed_ids(self):
        entries = (ConversationEntry("Plus", "+111"),)
        async with run_app(entries=entries) as (pilot, app):
            await press_and_settle(pilot, "enter")
            assert app.session.active.get() == 111
            assert app.sub_title == "Plus (111)"

    async def test_invalid_id_keeps_selecting(self):
        entries = (ConversationEntry("Broken", "not-a-number"),)
        async with run_app(entries=entries) as (pilot, app):
            await press_and_settle(pilot, "enter")

            assert app.chat_state.mode is sm.SessionMode.SELECTING
            assert app.session.active.get() is None
            assert app.query_one("#modes").current == "rooms-view"
            assert app.error_log == []


class TestPreselected:
    async def test_starts_chatting(self):
        async with run_app(entries=(), preselected=111) as (pilot, app):
            assert app.chat_state.mode is sm.SessionMode.CHATTING
            assert app.session.active.get() == 111
            assert _plain(app) == [sm.WELCOME_TEXT]
            assert await wait_until(pilot, lambda: app.focused is app.query_one("#composer"))


class TestComposer:
    async def test_submit_sends_and_clears(self):
        """Typed text goes out and the composer empties."""
        sender = RecordingSender()
        async with run_app(preselected=111, sender=sender) as (pilot, app):
            await type_and_submit(pilot, "hello")

            assert sender.calls == [(111, "hello")]
            assert _plain(app)[-1] == "You: hello"
            assert app.query_one("#composer").value == ""
            assert app.chat_state.composer == ""

    async def test_empty_submit_shows_notice(self):
        """Enter on an empty composer adds a notice instead of sending."""
        sender = RecordingSender()
        async with run_app(preselected=111, sender=sender) as (pilot, app):
            before = len(app.chat_state.transcript)
            await press_and_settle(pilot, "enter")

            assert sender.calls == []
            assert len(app.chat_state.transcript) == before + 1
            assert _plain(app)[-1] == "Server: Don't send empty messages."

    async def test_typing_tracks_composer_state(self):
        async with run_app(preselected=111) as (pilot, app):
            await press_and_settle(pilot, "a", "b", "c")
            assert app.chat_state.composer == "abc"


class TestInboundDelivery:
    async def test_update_appears_and_waiter_rearms(self):
        """A relayed update is rendered, then the waiter re-arms."""
        async with run_app(preselected=111) as (pilot, app):
            feed_relay(app.session.relay, [update("hi")])

            assert await wait_until(pilot, lambda: _plain(app)[-1:] == ["A B: hi"])
            assert await wait_until(pilot, lambda: app.waiter.armed)
            assert app.waiter.deliveries == 1

    async def test_back_to_back_updates_both_arrive_in_order(self):
        async with run_app(preselected=111) as (pilot, app):
            feed_relay(app.session.relay, [update("one"), update("two")])

            assert await wait_until(pilot, lambda: len(app.chat_state.transcript) == 3)
            assert _plain(app)[1:] == ["A B: one", "A B: two"]
            assert await wait_until(pilot, lambda: app.waiter.deliveries == 2)

    async def test_many_updates_keep_producer_order(self):
        texts = [f"m{i}" for i in range(10)]
        async with run_app(preselected=111) as (pilot, app):
            feed_relay(app.session.relay, [update(t) for t in texts])

            assert await wait_until(pilot, lambda: len(app.chat_state.transcript) == 11)
            assert _plain(app)[1:] == [f"A B: {t}" for t in texts]

    async def test_update_while_selecting_is_consumed_not_rendered(self):
        async with run_app() as (pilot, app):
            feed_relay(app.session.relay, [update("early")])

            assert await wait_until(pilot, lambda: app.waiter.deliveries == 1)
            assert app.chat_state.transcript == ()
            assert await wait_until(pilot, lambda: app.waiter.armed)

    async def test_foreign_conversation_not_rendered(self):
        async with run_app(preselected=111) as (pilot, app):
            feed_relay(app.session.relay, [update("elsewhere", chat_id=222), update("here")])

            assert await wait_until(pilot, lambda: app.waiter.deliveries == 2)
            assert _plain(app)[1:] == ["A B: here"]

    async def test_inbound_and_local_lines_interleave(self):
        sender = RecordingSender()
        async with run_app(preselected=111, sender=sender) as (pilot, app):
            feed_relay(app.session.relay, [update("first")])
            assert await wait_until(pilot, lambda: len(app.chat_state.transcript) == 2)

            await type_and_submit(pilot, "reply")
            feed_relay(app.session.relay, [update("second")])
            assert await wait_until(pilot, lambda: len(app.chat_state.transcript) == 4)

            assert _plain(app)[1:] == ["A B: first", "You: reply", "A B: second"]


class TestQuit:
    async def test_escape_returns_pending_text(self):
        async with run_app(preselected=111) as (pilot, app):
            await press_and_settle(pilot, "d", "r", "a", "f", "t")
            await pilot.press("escape")
            await wait_until(pilot, lambda: app.return_value is not None)

        assert app.return_value == "draft"

    async def test_escape_while_selecting_returns_empty(self):
        async with run_app() as (pilot, app):
            await pilot.press("escape")

        assert app.return_value == ""

    @pytest.mark.parametrize("entries", [(), (ConversationEntry("Team", "111"),)])
    async def test_quit_after_submit_has_nothing_pending(self, entries):
        async with run_app(entries=entries, preselected=111) as (pilot, app):
            await type_and_submit(pilot, "sent")
            await pilot.press("escape")
            await wait_until(pilot, lambda: app.return_value is not None)

        assert app.return_value == ""

    async def test_escape_right_after_typing_keeps_draft(self):
        """Quit must not outrun composer edits that are still queued."""
        async with run_app(preselected=111) as (pilot, app):
            for char in "draft":
                app.post_message(events.Key(char, char))
            app.post_message(events.Key("escape", None))
            await wait_until(pilot, lambda: app.return_value is not None)

        assert app.return_value == "draft"

    async def test_quit_reads_composer_widget(self):
        async with run_app(preselected=111) as (pilot, app):
            with app.query_one("#composer").prevent(Input.Changed):
                app.query_one("#composer").value = "draft"
            app.action_quit_chat()
            await wait_until(pilot, lambda: app.return_value is not None)

        assert app.return_value == "draft"
