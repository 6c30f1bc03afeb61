"""
MODULE OVERVIEW:
A deterministic stand-in for the real LLM + tool-execution agent.

WHAT IS HAPPENING HERE:
In the real system the agent calls a model, runs tools and may produce charts.
Here we script it from keywords in the user's message so the client has predictable
traffic to render: every matched keyword "runs" a tool, the `chart` keyword also
yields a chart artifact, and a message containing `fail` raises an agent error.
Like a real agent loop, the number of tool calls per turn is capped; hitting the cap
marks the reply incomplete.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Tuple, Union

from streamchat.shared.models import ChartData, ChartDataset, ChartSpec

TOOL_KEYWORDS = {
    "chart": "render_chart",
    "search": "search_catalog",
    "price": "lookup_prices",
    "review": "fetch_reviews",
}


class AgentError(Exception):
    pass


@dataclass
class ToolRunning:
    tool: str


@dataclass
class ToolCompleted:
    tool: str


AgentEvent = Union[ToolRunning, ToolCompleted, ChartSpec]


@dataclass
class AgentReply:
    text: str
    tools_used: List[str] = field(default_factory=list)
    incomplete: bool = False


def sample_chart() -> ChartSpec:
    return ChartSpec(
        type="bar_h",
        title="Top categories by revenue",
        height=260,
        data=ChartData(
            labels=["Snacks", "Beverages", "Dairy", "Bakery"],
            datasets=[ChartDataset(name="Revenue", values=[420.0, 310.5, 198.0, 120.25])],
        ),
    )


class ScriptedAgent:
    def __init__(self, max_tool_calls: int = 2, tool_delay_s: float = 0.0):
        self.max_tool_calls = max_tool_calls
        self.tool_delay_s = tool_delay_s

    async def chat(self, history: List[dict], message: str) -> Tuple[AgentReply, List[AgentEvent]]:
        lowered = message.lower()
        if "fail" in lowered:
            raise AgentError(f"tool execution failed for <{message.strip()[:40]}>")

        history.append({"role": "user", "content": message})
        wanted = [tool for keyword, tool in TOOL_KEYWORDS.items() if keyword in lowered]
        tools = wanted[: self.max_tool_calls]

        events: List[AgentEvent] = []
        for tool in tools:
            events.append(ToolRunning(tool))
            if self.tool_delay_s:
                await asyncio.sleep(self.tool_delay_s)
            events.append(ToolCompleted(tool))
            if tool == "render_chart":
                events.append(sample_chart())

        user_turns = sum(1 for m in history if m["role"] == "user")
        text = f"You said **{message.strip()}**. This is message *{user_turns}* of our conversation."
        if tools:
            text += f" I used {', '.join(tools)}."

        reply = AgentReply(text=text, tools_used=tools, incomplete=len(wanted) > len(tools))
        history.append({"role": "assistant", "content": reply.text})
        return reply, events
