"""Pytest configuration and shared fixtures for tgterm tests."""

import pytest

from tgterm.bot_api import BotApi
from tgterm.io.settings import ConversationEntry
import tgterm.io.logging_setup
from tests.harness.fakes import RecordingSender, no_network


@pytest.fixture
def fake_sender():
    return RecordingSender()


@pytest.fixture
def offline_bot():
    """A BotApi that fails the test if anything actually calls it."""
    return BotApi("123:test", transport=no_network)


@pytest.fixture
def team_entries():
    return (ConversationEntry(title="Team", raw_id="111"),)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep config and log lookups inside the test's tmp dir."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("TGTERM_LOG_DIR", str(tmp_path / "logs"))
    for name in ("TGTERM_CONFIG", "TGTERM_BOT_TOKEN", "TGTERM_LOG_FILE", "TGTERM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    tgterm.io.logging_setup.reset()
