"""Inbound update pipeline: poller → relevance filter → relay → activity waiter."""
