"""
MODULE OVERVIEW:
Turns complete SSE lines into `(event_type, payload)` pairs.

WHAT IS HAPPENING HERE:
This is what the browser EventSource API does under the hood, minus reconnection.
An `event:` line names the event, a `data:` line carries its payload, and a blank
line closes the block and resets the name back to the default `message`.

Every `data:` line is emitted on its own. Strict SSE would join consecutive `data:`
lines of one block with newlines; the chat server never sends multi-line payloads,
and joining would change which frames the client accepts.
"""
from typing import Iterable

from streamchat.client.state import SseEvent
from streamchat.shared.models import EVENT_MESSAGE

EVENT_PREFIX = "event: "
DATA_PREFIX = "data: "


class SseDemultiplexer:
    def __init__(self):
        self.current_event_type = EVENT_MESSAGE

    def feed(self, line: str) -> list[SseEvent]:
        # sse-starlette and other servers frame with CRLF
        if line.endswith("\r"):
            line = line[:-1]

        if line.startswith(EVENT_PREFIX):
            self.current_event_type = line[len(EVENT_PREFIX):].strip()
        elif line.startswith(DATA_PREFIX):
            return [SseEvent(self.current_event_type, line[len(DATA_PREFIX):].strip())]
        elif line == "":
            self.current_event_type = EVENT_MESSAGE
        # comments (`: ping`), `id:`, `retry:` and anything else are ignored
        return []

    def feed_lines(self, lines: Iterable[str]) -> list[SseEvent]:
        events: list[SseEvent] = []
        for line in lines:
            events.extend(self.feed(line))
        return events
