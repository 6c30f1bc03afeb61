"""
MODULE OVERVIEW:
Pure rendering helpers: HTML escaping, the minimal markdown transform, chart config
mapping, and the node builders for tool status and charts.

WHAT IS HAPPENING HERE:
Anything that came from the server is escaped before it becomes markup. The markdown
transform escapes first and only then inserts its own tags, otherwise the `<strong>`
it produces would itself be escaped. Only bold, italic and newlines are supported.
"""
import re
from typing import Any, Callable, Optional

from loguru import logger

from streamchat.client.content import ContentNode
from streamchat.shared.config import settings
from streamchat.shared.models import ChartSpec, ToolUsePayload, TOOL_STATUS_RUNNING

ChartFactory = Callable[[ContentNode, dict], Any]

_HTML_ESCAPES = {"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#039;"}
_HTML_RESERVED = re.compile(r"[&<>\"']")
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")
_TOOL_ID_UNSAFE = re.compile(r"[^a-zA-Z0-9]")

# Server chart types the widget has no direct mode for
_BAR_ALIASES = ("bar_h", "grouped_bar")


def escape_html(text: str) -> str:
    return _HTML_RESERVED.sub(lambda m: _HTML_ESCAPES[m.group(0)], text)


def render_markdown(text: str) -> str:
    html = escape_html(text)
    html = _BOLD.sub(r"<strong>\1</strong>", html)
    html = _ITALIC.sub(r"<em>\1</em>", html)
    return html.replace("\n", "<br>")


def error_markup(message: str) -> str:
    """Inline error paragraph. `message` is plain text and gets escaped here."""
    return f'<p class="error">{escape_html(message)}</p>'


# ==========================
# TOOL STATUS
# ==========================
def tool_status_id(tool_name: str) -> str:
    return "tool-" + _TOOL_ID_UNSAFE.sub("-", tool_name)


def render_tool_status(node: ContentNode, payload: ToolUsePayload) -> None:
    if payload.status == TOOL_STATUS_RUNNING:
        node.set_markup(escape_html(f"Running {payload.tool}..."))
        node.remove_class("completed")
        node.add_class("running")
    else:
        node.set_markup(escape_html(f"{payload.tool} done"))
        node.remove_class("running")
        node.add_class("completed")


# ==========================
# CHARTS
# ==========================
def chart_widget_type(chart_type: str) -> str:
    return "bar" if chart_type in _BAR_ALIASES else chart_type


def build_chart_config(
    spec: ChartSpec,
    default_height: Optional[float] = None,
    bar_h_space_ratio: Optional[float] = None,
) -> dict:
    height = spec.height or default_height or settings.DEFAULT_CHART_HEIGHT
    config = {
        "title": spec.title,
        "type": chart_widget_type(spec.type),
        "height": height,
        "data": {
            "labels": list(spec.data.labels),
            "datasets": [{"name": ds.name, "values": list(ds.values)} for ds in spec.data.datasets],
        },
    }
    if spec.type == "bar_h":
        ratio = bar_h_space_ratio if bar_h_space_ratio is not None else settings.BAR_H_SPACE_RATIO
        config["barOptions"] = {"spaceRatio": ratio}
    return config


def render_chart(container: ContentNode, spec: ChartSpec, chart_factory: ChartFactory) -> ContentNode:
    """
    Appends one new chart node to `container` and hands it to the charting widget.
    Charts are never updated in place. If the widget blows up, the node shows the
    error instead of a chart.
    """
    config = build_chart_config(spec)
    node = container.append(ContentNode(classes=["chart-container"]))
    node.style["height"] = f"{config['height']:g}px"

    try:
        node.widget = chart_factory(node, config)
    except Exception as e:
        logger.warning(f"chart render failed type={spec.type} error={e}")
        node.set_markup(error_markup(f"Chart error: {e}"))
    return node
