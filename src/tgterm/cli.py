"""CLI entry point for tgterm."""

import argparse
import logging
import sys
from pathlib import Path

import tgterm.io.logging_setup
import tgterm.io.settings
from tgterm.bot_api import BotApi, BotApiError
from tgterm.pipeline.outbound import OutboundSender
from tgterm.pipeline.poller import DEFAULT_POLL_TIMEOUT, InboundPoller, iter_raw_events
from tgterm.session import SessionContext
from tgterm.tui.app import TgTermApp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Terminal chat client for a Telegram bot")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (default: $TGTERM_CONFIG or ~/.config/tgterm/config.json)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Bot token (overrides $TGTERM_BOT_TOKEN and the config file)",
    )
    parser.add_argument(
        "--chat-id",
        type=str,
        default=None,
        help="Open this chat directly instead of showing the room list",
    )
    parser.add_argument(
        "--session",
        type=str,
        default="unnamed-session",
        help="Session name used for the log file (default: unnamed-session)",
    )
    parser.add_argument(
        "--poll-timeout",
        type=int,
        default=DEFAULT_POLL_TIMEOUT,
        help=f"Long-poll wait in seconds (default: {DEFAULT_POLL_TIMEOUT})",
    )
    parser.add_argument(
        "--list-chats",
        action="store_true",
        default=False,
        help="List configured chats and exit.",
    )
    return parser


def _fail(message: str) -> int:
    # Before and after the TUI, errors reach stderr through the console handler.
    logger.error("%s", message)
    return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    log_runtime = tgterm.io.logging_setup.configure(session_name=args.session)
    logger.info(
        "logging configured level=%s file=%s",
        log_runtime.level_name,
        log_runtime.file_path,
    )

    config_path = Path(args.config) if args.config else None

    if args.list_chats:
        try:
            config = tgterm.io.settings.load_config(config_path, strict=False)
        except tgterm.io.settings.ConfigError as e:
            return _fail(str(e))
        tgterm.io.settings.print_entries(config.entries)
        return 0

    # ─── Fatal startup checks: nothing is drawn until these pass ───────────
    try:
        config = tgterm.io.settings.load_config(
            config_path, token=args.token, chat_id=args.chat_id
        )
    except tgterm.io.settings.ConfigError as e:
        return _fail(str(e))

    bot = BotApi(config.bot_token)
    try:
        me = bot.get_me()
    except BotApiError as e:
        return _fail(f"cannot reach the Bot API with this token: {e}")
    logger.info("authorized as @%s", me.get("username", "?"))

    # [LAW:no-shared-mutable-globals] One context, handed to both sides.
    context = SessionContext(bot=bot, entries=config.entries, session_name=args.session)

    poller = InboundPoller(
        iter_raw_events(bot, timeout=args.poll_timeout),
        context.relay,
        context.active.get,
    )
    # Daemon thread: abandoned, not joined, at exit.
    poller.start()

    app = TgTermApp(context, OutboundSender(bot), preselected=config.default_chat)
    try:
        with tgterm.io.logging_setup.tui_owns_terminal():
            pending = app.run()
    finally:
        context.relay.close()
        # Dump buffered errors (TUI is gone, terminal is restored)
        if app.error_log:
            logger.error("Errors during session:")
            for line in app.error_log:
                logger.error("  %s", line)
            logger.error("full log: %s", log_runtime.file_path)

    if pending:
        print(pending)
    return 0


if __name__ == "__main__":
    sys.exit(main())
