"""Custom widgets for the chat interface."""

from rich.style import Style
from rich.text import Text
from textual.widgets import Input, Label, ListItem, ListView, RichLog

from tgterm.io.settings import ConversationEntry
from tgterm.tui.state_machine import TranscriptLine

ROOM_LIST_TITLE = "Select a chatroom"
COMPOSER_PLACEHOLDER = "Send a message..."
COMPOSER_CHAR_LIMIT = 280
# ANSI color 5
SENDER_STYLE = Style(color="magenta")


class RoomItem(ListItem):
    """One selectable conversation: title on top, raw id underneath."""

    def __init__(self, entry: ConversationEntry) -> None:
        super().__init__(
            Label(entry.title, classes="room-title"),
            Label(entry.raw_id, classes="room-id"),
        )
        self.entry = entry


class RoomList(ListView):
    def __init__(self, entries: tuple[ConversationEntry, ...], **kwargs) -> None:
        super().__init__(*(RoomItem(entry) for entry in entries), **kwargs)
        self.border_title = ROOM_LIST_TITLE


class TranscriptView(RichLog):
    """Scrolling, append-only transcript."""

    can_focus = False

    def __init__(self, **kwargs) -> None:
        super().__init__(highlight=False, markup=False, wrap=True, auto_scroll=True, **kwargs)
        self.rendered_count = 0

    def append_line(self, line: TranscriptLine) -> None:
        text = Text()
        if line.prefix:
            text.append(line.prefix, style=SENDER_STYLE)
        text.append(line.body)
        self.write(text)
        self.rendered_count += 1


class Composer(Input):
    def __init__(self, **kwargs) -> None:
        super().__init__(
            placeholder=COMPOSER_PLACEHOLDER,
            max_length=COMPOSER_CHAR_LIMIT,
            **kwargs,
        )
