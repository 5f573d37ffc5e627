"""Minimal Telegram Bot API client.

Only the three methods the chat client needs: getMe (credential check at
startup), getUpdates (long-poll feed) and sendMessage (outbound).

This module is a STABLE BOUNDARY.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from collections.abc import Callable

from tgterm.event_types import JsonDict, RawEvent, parse_raw_event

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.telegram.org"
REQUEST_TIMEOUT = 30
# Extra socket slack on top of the server-side long-poll wait.
LONG_POLL_SLACK = 10

Transport = Callable[[urllib.request.Request, float], bytes]


class BotApiError(Exception):
    """Raised for `ok: false` replies and for transport failures."""

    def __init__(self, description: str, error_code: int | None = None) -> None:
        self.description = description
        self.error_code = error_code
        super().__init__(description if error_code is None else f"{error_code}: {description}")


def _urlopen_transport(request: urllib.request.Request, timeout: float) -> bytes:
    with urllib.request.urlopen(request, timeout=timeout) as response:
        return response.read()


class BotApi:
    """Blocking JSON client bound to one bot token."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = API_BASE_URL,
        transport: Transport | None = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._transport = transport or _urlopen_transport

    def _method_url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._token}/{method}"

    def _call(self, method: str, body: JsonDict, *, timeout: float = REQUEST_TIMEOUT) -> object:
        payload = json.dumps(body).encode("utf-8")
        request = urllib.request.Request(
            self._method_url(method),
            data=payload,
            headers={
                "content-type": "application/json",
                "accept": "application/json",
            },
            method="POST",
        )
        try:
            raw = self._transport(request, timeout)
        except urllib.error.HTTPError as e:
            # Bot API error replies come back as 4xx with a JSON body.
            raw = e.read()
            if not raw:
                raise BotApiError(str(e.reason), e.code) from e
        except (urllib.error.URLError, OSError) as e:
            raise BotApiError(f"{method} transport failure: {e}") from e

        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise BotApiError(f"{method} returned a non-JSON body") from e
        if not isinstance(parsed, dict):
            raise BotApiError(f"{method} returned a non-object body")
        if not parsed.get("ok"):
            code = parsed.get("error_code")
            raise BotApiError(
                str(parsed.get("description", "unknown error")),
                code if isinstance(code, int) else None,
            )
        return parsed.get("result")

    def get_me(self) -> JsonDict:
        result = self._call("getMe", {})
        return result if isinstance(result, dict) else {}

    def get_updates(self, offset: int, timeout: int) -> list[RawEvent]:
        """Long-poll for updates with update_id >= offset.

        The server holds the request for up to `timeout` seconds. Fetching
        with a given offset confirms every update below it server-side.
        """
        result = self._call(
            "getUpdates",
            {"offset": offset, "timeout": timeout},
            timeout=timeout + LONG_POLL_SLACK,
        )
        if not isinstance(result, list):
            return []
        events: list[RawEvent] = []
        for entry in result:
            if not isinstance(entry, dict):
                continue
            try:
                events.append(parse_raw_event(entry))
            except ValueError as e:
                logger.warning("skipping malformed update: %s", e)
        return events

    def send_message(self, chat_id: int, text: str) -> JsonDict:
        result = self._call("sendMessage", {"chat_id": chat_id, "text": text})
        return result if isinstance(result, dict) else {}
