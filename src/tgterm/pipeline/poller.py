"""Inbound poller: long-poll loop feeding the relay.

Runs on its own daemon thread for the life of the process. It is never
restarted; once the update sequence ends, inbound delivery for the session
is over.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator

from tgterm.bot_api import BotApi, BotApiError
from tgterm.event_types import RawEvent
from tgterm.pipeline.relay import RelayChannel, RelayClosed
from tgterm.pipeline.relevance import filter_event

logger = logging.getLogger(__name__)

DEFAULT_POLL_TIMEOUT = 60
RETRY_DELAY = 3.0


def iter_raw_events(
    bot: BotApi,
    *,
    offset: int = 0,
    timeout: int = DEFAULT_POLL_TIMEOUT,
    retry_delay: float = RETRY_DELAY,
    should_stop: Callable[[], bool] = lambda: False,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[RawEvent]:
    """Yield raw events forever, advancing the server-side offset as we go.

    Transport and API failures are logged and retried with the same offset
    after retry_delay seconds.
    """
    while not should_stop():
        try:
            batch = bot.get_updates(offset, timeout)
        except BotApiError as e:
            logger.warning("getUpdates failed, retrying in %.0fs: %s", retry_delay, e)
            sleep(retry_delay)
            continue
        for event in batch:
            if event.update_id >= offset:
                offset = event.update_id + 1
            yield event


class InboundPoller:
    """Drains a raw event source through the relevance filter into the relay."""

    def __init__(
        self,
        events: Iterator[RawEvent],
        relay: RelayChannel,
        active_id: Callable[[], int | None],
    ) -> None:
        self._events = events
        self._relay = relay
        self._active_id = active_id
        self._thread: threading.Thread | None = None
        self.delivered = 0

    def run(self) -> None:
        """Consume the source until it ends or the relay closes."""
        try:
            for event in self._events:
                # The active id is read per event; it is unset until selection.
                update = filter_event(event, self._active_id())
                if update is None:
                    continue
                self._relay.put(update)
                self.delivered += 1
        except RelayClosed:
            logger.info("relay closed, poller stopping")
            return
        except Exception:
            # Nothing may cross into the UI context; the session simply stops
            # receiving.
            logger.exception("inbound poller crashed")
            return
        logger.warning("update source ended; no further inbound messages this session")

    def start(self) -> threading.Thread:
        if self._thread is not None:
            raise RuntimeError("poller already started")
        self._thread = threading.Thread(target=self.run, name="inbound-poller", daemon=True)
        self._thread.start()
        return self._thread
