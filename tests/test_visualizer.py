"""Tests for the Rich terminal view and the terminal chart widget."""

from __future__ import annotations

import pytest
from rich.console import Console

from streamchat.client.content import ContentNode
from streamchat.client.renderers import build_chart_config, render_chart
from streamchat.client.state import TurnState
from streamchat.client.visualizer import ChatView, TerminalChart, markup_to_text, render_node
from streamchat.shared.models import ChartData, ChartDataset, ChartSpec


def chart_config(chart_type: str = "bar", values=(1.0, 2.0)) -> dict:
    spec = ChartSpec(
        type=chart_type,
        title="Revenue",
        data=ChartData(labels=["a", "b"], datasets=[ChartDataset(name="r", values=list(values))]),
    )
    return build_chart_config(spec)


def render_to_text(renderable) -> str:
    console = Console(record=True, width=100, color_system=None)
    console.print(renderable)
    return console.export_text()


class TestMarkupToText:
    def test_tags_become_styles(self):
        text = markup_to_text("Hello <strong>world</strong> and <em>you</em>")
        assert text.plain == "Hello world and you"
        styles = {str(span.style) for span in text.spans}
        assert styles == {"bold", "italic"}

    def test_breaks_and_entities(self):
        assert markup_to_text("a<br>&lt;b&gt; &amp; &#039;c&#039;").plain == "a\n<b> & 'c'"

    def test_escaped_tags_stay_literal(self):
        assert markup_to_text("&lt;strong&gt;x&lt;/strong&gt;").plain == "<strong>x</strong>"

    def test_error_paragraph_wrapper_is_dropped(self):
        assert markup_to_text('<p class="error">Chart error: x</p>').plain == "Chart error: x"


class TestTerminalChart:
    def test_bar_h_config_is_accepted(self):
        config = chart_config("bar_h")
        chart = TerminalChart(ContentNode(), config)
        output = render_to_text(chart)
        assert "Revenue" in output
        assert "█" in output

    def test_unsupported_type_raises(self):
        with pytest.raises(ValueError):
            TerminalChart(ContentNode(), chart_config("scatter"))

    def test_mismatched_values_raise(self):
        config = chart_config()
        config["data"]["datasets"][0]["values"] = [1.0]
        with pytest.raises(ValueError):
            TerminalChart(ContentNode(), config)

    def test_failure_surfaces_through_render_chart(self):
        container = ContentNode()
        spec = ChartSpec(type="scatter", data=ChartData(labels=["a"], datasets=[ChartDataset(name="n", values=[1])]))
        node = render_chart(container, spec, TerminalChart)
        assert "Chart error: unsupported chart type" in node.markup
        assert "Chart error" in render_to_text(render_node(node))


class TestRenderNode:
    def _message(self) -> tuple[ContentNode, ContentNode]:
        message = ContentNode(classes=["message", "assistant"])
        content = message.append(ContentNode(classes=["message-content"]))
        content.append(ContentNode(classes=["message-text"], markup="Hi <strong>there</strong>"))
        tool = content.append(ContentNode(classes=["tool-status", "running"], markup="Running search..."))
        content.append(ContentNode(kind="p", classes=["error"], markup="boom &lt;1&gt;"))
        return message, tool

    def test_assistant_message(self):
        message, _ = self._message()
        output = render_to_text(render_node(message))
        assert "assistant" in output
        assert "Hi there" in output
        assert "Running search..." in output
        assert "boom <1>" in output


class TestChatView:
    class _Controller:
        def __init__(self):
            self.container = ContentNode(node_id="chat-messages")
            self.conversation_id = None
            self.state = TurnState.IDLE
            self.stats = {
                "turns_started": 3,
                "turns_failed": 1,
                "events_received": 40,
                "malformed_payloads": 2,
                "bytes_received": 1234,
            }

    def test_view_shows_only_newest_messages(self):
        controller = self._Controller()
        for i in range(4):
            controller.container.append(ContentNode(classes=["message", "user"])).append(
                ContentNode(classes=["message-content"], markup=f"msg{i}")
            )
        view = ChatView(controller, console=Console(record=True, width=80))

        output = render_to_text(view.generate_view())
        assert "msg3" in output and "msg2" in output
        assert "msg0" not in output
        assert "msg0" in render_to_text(view.generate_view(tail=None))

    def test_status_follows_input_lock(self):
        view = ChatView(self._Controller())
        view.on_input_lock_change(True)
        assert "WAITING" in render_to_text(view.generate_view())
        view.on_input_lock_change(False)
        assert "READY" in render_to_text(view.generate_view())

    def test_header_shows_turn_state(self):
        controller = self._Controller()
        view = ChatView(controller)
        assert "Turn: idle" in render_to_text(view.generate_view())
        controller.state = TurnState.STREAMING
        assert "Turn: streaming" in render_to_text(view.generate_view())

    def test_stats_panel(self):
        output = render_to_text(ChatView(self._Controller()).stats_panel())
        assert "Events Received: 40" in output
        assert "Malformed Payloads: 2" in output
