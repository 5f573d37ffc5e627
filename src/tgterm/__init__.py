"""tgterm: terminal chat client for the Telegram Bot API."""

__version__ = "0.1.0"
