"""
MODULE OVERVIEW:
The Rich terminal front end for the chat client.

WHAT IS HAPPENING HERE:
The turn controller renders into a `ContentNode` tree. This module reads that tree
back and draws it with Rich: user and assistant messages, tool status lines, charts
and inline errors. It also provides `TerminalChart`, the charting widget the client
hands chart configs to.

While a turn streams we run the controller as a background task and refresh a
`Live` view of the newest messages on a timer, the same way a browser repaints
after each DOM mutation.
"""

import asyncio
import html
import re
from typing import Optional

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from streamchat.client.content import ContentNode
from streamchat.client.state import Turn
from streamchat.client.turn_controller import TurnController

_TAG = re.compile(r"(<strong>|</strong>|<em>|</em>|<br>|<p[^>]*>|</p>)")
_TAG_STYLES = {"<strong>": "bold", "<em>": "italic"}


def markup_to_text(markup: str, base_style: str = "") -> Text:
    """Converts the renderer's tiny HTML subset back into styled terminal text."""
    text = Text(style=base_style)
    styles: list[str] = []
    for token in _TAG.split(markup):
        if not token:
            continue
        if token in _TAG_STYLES:
            styles.append(_TAG_STYLES[token])
        elif token in ("</strong>", "</em>"):
            if styles:
                styles.pop()
        elif token == "<br>":
            text.append("\n")
        elif token.startswith("<p") or token == "</p>":
            continue
        else:
            text.append(html.unescape(token), style=" ".join(styles) or None)
    return text


class TerminalChart:
    """
    A minimal horizontal-bar chart widget for the terminal.
    Accepts the same config dict the renderers build for a web charting widget.
    """
    SUPPORTED_TYPES = ("bar", "line", "pie", "percentage")
    BAR_WIDTH = 30

    def __init__(self, node: ContentNode, config: dict):
        chart_type = config.get("type")
        if chart_type not in self.SUPPORTED_TYPES:
            raise ValueError(f"unsupported chart type {chart_type!r}")
        labels = config["data"]["labels"]
        datasets = config["data"]["datasets"]
        for ds in datasets:
            if len(ds["values"]) != len(labels):
                raise ValueError(f"dataset {ds['name']!r} has {len(ds['values'])} values for {len(labels)} labels")

        self.node = node
        self.config = config

    def __rich__(self) -> RenderableType:
        labels = self.config["data"]["labels"]
        datasets = self.config["data"]["datasets"]
        peak = max((abs(v) for ds in datasets for v in ds["values"]), default=0) or 1

        table = Table(title=self.config.get("title"), expand=False, show_header=len(datasets) > 1)
        table.add_column("", style="cyan", no_wrap=True)
        for ds in datasets:
            table.add_column(ds["name"], style="green")
        for i, label in enumerate(labels):
            cells = []
            for ds in datasets:
                value = ds["values"][i]
                cells.append(f"{'█' * max(1, round(abs(value) / peak * self.BAR_WIDTH))} {value:g}")
            table.add_row(label, *cells)
        return Panel(table, title=f"chart:{self.config['type']}", expand=False)


def render_node(node: ContentNode) -> RenderableType:
    if node.has_class("message"):
        role = "user" if node.has_class("user") else "assistant"
        body = Group(*(render_node(child) for child in node.children))
        color = "cyan" if role == "user" else "magenta"
        return Panel(body, title=role, title_align="left", border_style=color)
    if node.has_class("tool-status"):
        style = "yellow" if node.has_class("running") else "green"
        return markup_to_text(node.markup, base_style=style)
    if node.has_class("chart-container"):
        if node.widget is not None:
            return node.widget
        return markup_to_text(node.markup, base_style="red")
    if node.has_class("error"):
        return markup_to_text(node.markup, base_style="bold red")
    parts: list[RenderableType] = []
    if node.markup:
        parts.append(markup_to_text(node.markup))
    parts.extend(render_node(child) for child in node.children)
    return Group(*parts)


class ChatView:
    def __init__(self, controller: TurnController, console: Optional[Console] = None):
        self.controller = controller
        self.console = console or Console()
        self.status = "READY"

    def on_input_lock_change(self, locked: bool) -> None:
        self.status = "WAITING" if locked else "READY"

    def generate_view(self, tail: Optional[int] = 2) -> RenderableType:
        # Following the tail is how the terminal honours scroll-to-end
        messages = self.controller.container.children
        shown = messages[-tail:] if tail else messages

        color = "yellow" if self.status == "WAITING" else "green"
        conv = self.controller.conversation_id or "-"
        header = Text(
            f"Status: {self.status} | Turn: {self.controller.state.value} | Conversation: {conv}",
            style=f"{color} bold",
        )
        return Group(header, *(render_node(m) for m in shown))

    def stats_panel(self) -> Panel:
        stats = self.controller.stats
        return Panel(
            f"Turns: {stats['turns_started']} (failed {stats['turns_failed']})\n"
            f"Events Received: {stats['events_received']}\n"
            f"Malformed Payloads: {stats['malformed_payloads']}\n"
            f"Bytes Received: {stats['bytes_received']}",
            title="Stream Stats",
        )

    async def run_turn(self, message: str) -> Optional[Turn]:
        turn_task = asyncio.create_task(self.controller.submit(message))
        with Live(self.generate_view(), console=self.console, refresh_per_second=8) as live:
            while not turn_task.done():
                live.update(self.generate_view())
                await asyncio.sleep(0.1)
            live.update(self.generate_view())
        return turn_task.result()

    def print_transcript(self) -> None:
        self.console.print(self.generate_view(tail=None))
