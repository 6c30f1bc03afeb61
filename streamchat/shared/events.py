"""
MODULE OVERVIEW:
SSE frame helpers for the chat event vocabulary.

WHAT IS HAPPENING HERE:
The demo server hands `sse-starlette` plain dicts (`{"event": ..., "data": ...}`) and
lets it do the framing. `format_frame` produces the same frame as raw text, which is
what the client actually sees on the wire and what the tests replay byte by byte.
"""

from pydantic import BaseModel


def make_event(event_type: str, payload: BaseModel) -> dict:
    """Builds the dict `EventSourceResponse` expects for one event."""
    return {
        "event": event_type,
        "data": payload.model_dump_json(exclude_none=True),
    }


def format_frame(event_type: str, payload: BaseModel | str, newline: str = "\n") -> str:
    """Serializes one SSE event block: `event:` line, `data:` line, blank line."""
    data = payload if isinstance(payload, str) else payload.model_dump_json(exclude_none=True)
    return f"event: {event_type}{newline}data: {data}{newline}{newline}"
