"""Textual in-process test harness for tgterm.

Re-exports all public API for convenient imports:
    from tests.harness import run_app, press_and_settle, wait_until, ...
"""

from tests.harness.app_runner import run_app
from tests.harness.fakes import FakeTransport, RecordingSender
from tests.harness.builders import raw_message, tg_update, update
from tests.harness.interactions import (
    press_and_settle,
    type_and_submit,
    feed_relay,
    wait_until,
)

__all__ = [
    "FakeTransport",
    "RecordingSender",
    "run_app",
    "press_and_settle",
    "type_and_submit",
    "feed_relay",
    "wait_until",
    "raw_message",
    "tg_update",
    "update",
]
