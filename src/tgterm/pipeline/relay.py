"""Single-slot handoff between the poller thread and the UI loop.

// [LAW:single-enforcer] The relay is the only synchronization point between
// the two execution contexts.

A put blocks while the previous update is still unconsumed, which stalls the
poller instead of buffering without bound. Consumption goes through
ActivityWaiter, one update per wait.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable

from tgterm.event_types import InboundUpdate

# How often blocked calls wake to check for shutdown.
POLL_INTERVAL = 0.25


class RelayClosed(Exception):
    """Raised by put/get once the relay has been closed."""


class RelayChannel:
    def __init__(self) -> None:
        self._slot: queue.Queue[InboundUpdate] = queue.Queue(maxsize=1)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    def put(self, update: InboundUpdate) -> None:
        """Hand off one update, blocking until the slot is free."""
        while not self._closed.is_set():
            try:
                self._slot.put(update, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                continue
        raise RelayClosed()

    def get(self, should_stop: Callable[[], bool] | None = None) -> InboundUpdate:
        """Take the next update, blocking until one is available.

        Raises RelayClosed if the relay is closed or should_stop() turns true
        while waiting.
        """
        while not self._closed.is_set():
            if should_stop is not None and should_stop():
                break
            try:
                return self._slot.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
        raise RelayClosed()


class ActivityWaiter:
    """One-shot wait on the relay, re-armed by the consumer after each delivery.

    arm() hands the consumer a blocking callable; armed stays True until that
    callable has produced exactly one update, so at most one wait is ever
    outstanding and no delivery is consumed twice.
    """

    def __init__(self, relay: RelayChannel) -> None:
        self._relay = relay
        self._armed = False
        self._deliveries = 0

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def deliveries(self) -> int:
        return self._deliveries

    def arm(self) -> Callable[[Callable[[], bool] | None], InboundUpdate]:
        if self._armed:
            raise RuntimeError("activity waiter is already armed")
        self._armed = True
        return self._wait

    def _wait(self, should_stop: Callable[[], bool] | None = None) -> InboundUpdate:
        try:
            update = self._relay.get(should_stop)
        finally:
            self._armed = False
        self._deliveries += 1
        return update
