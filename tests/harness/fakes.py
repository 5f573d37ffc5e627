"""Stand-ins for the Bot API transport and the outbound sender."""

import json


class RecordingSender:
    """Records outbound sends instead of calling the Bot API."""

    def __init__(self):
        self.calls: list[tuple[int, str]] = []

    def send(self, conversation_id: int, text: str) -> None:
        self.calls.append((conversation_id, text))


class FakeTransport:
    """Transport for BotApi: returns queued replies in order.

    A reply is a dict (JSON-encoded), raw bytes, or an exception to raise.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def __call__(self, request, timeout):
        self.requests.append((request, timeout))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, bytes):
            return reply
        return json.dumps(reply).encode("utf-8")

    def bodies(self):
        return [json.loads(req.data.decode("utf-8")) for req, _ in self.requests]

    def methods(self):
        return [req.full_url.rsplit("/", 1)[-1] for req, _ in self.requests]


def no_network(request, timeout):
    raise AssertionError(f"unexpected Bot API call: {request.full_url}")
