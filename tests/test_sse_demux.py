"""Tests for SseDemultiplexer: turning SSE lines into typed events."""

from __future__ import annotations

from streamchat.client.sse_demux import SseDemultiplexer
from streamchat.client.state import SseEvent


def feed_all(lines: list[str]) -> list[SseEvent]:
    return SseDemultiplexer().feed_lines(lines)


class TestEventNames:
    def test_data_without_event_line_is_message(self):
        assert feed_all(["data: {}"]) == [SseEvent("message", "{}")]

    def test_event_line_names_following_data(self):
        events = feed_all(["event: chunk", 'data: {"text": "hi"}'])
        assert events == [SseEvent("chunk", '{"text": "hi"}')]

    def test_event_line_alone_emits_nothing(self):
        demux = SseDemultiplexer()
        assert demux.feed("event: chunk") == []
        assert demux.current_event_type == "chunk"

    def test_blank_line_resets_to_message(self):
        events = feed_all(["event: chunk", "data: 1", "", "data: 2"])
        assert events == [SseEvent("chunk", "1"), SseEvent("message", "2")]

    def test_every_data_line_after_blank_is_message(self):
        events = feed_all(["event: done", "", "data: a", "data: b"])
        assert [e.event_type for e in events] == ["message", "message"]

    def test_event_name_is_trimmed(self):
        assert feed_all(["event:  tool_use  ", "data: x"]) == [SseEvent("tool_use", "x")]


class TestDataLines:
    def test_each_data_line_is_emitted_separately(self):
        """Consecutive data lines are not joined into one payload."""
        events = feed_all(["event: chunk", "data: first", "data: second"])
        assert events == [SseEvent("chunk", "first"), SseEvent("chunk", "second")]

    def test_payload_is_trimmed(self):
        assert feed_all(["data:   {\"a\": 1}  "]) == [SseEvent("message", '{"a": 1}')]

    def test_prefix_without_space_is_ignored(self):
        assert feed_all(["event:chunk", "data:{}"]) == []

    def test_other_fields_and_comments_are_ignored(self):
        assert feed_all([": ping", "id: 7", "retry: 1000", "garbage"]) == []


class TestCrlf:
    def test_crlf_stream_matches_lf_stream(self):
        lf = ["event: chunk", "data: 1", "", "data: 2", ""]
        crlf = [line + "\r" for line in lf]
        assert feed_all(crlf) == feed_all(lf)

    def test_crlf_blank_line_still_resets(self):
        demux = SseDemultiplexer()
        demux.feed("event: chunk\r")
        demux.feed("\r")
        assert demux.current_event_type == "message"


class TestServerFrames:
    def test_format_frame_decodes_to_one_typed_event(self):
        from streamchat.client.line_buffer import LineBuffer
        from streamchat.shared.events import format_frame
        from streamchat.shared.models import DonePayload

        wire = format_frame("done", DonePayload(conversation_id="abc123"), newline="\r\n")
        events = SseDemultiplexer().feed_lines(LineBuffer().push(wire.encode()))
        assert events == [SseEvent("done", '{"conversation_id":"abc123"}')]
