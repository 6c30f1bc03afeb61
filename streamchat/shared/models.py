"""
MODULE OVERVIEW:
This module defines the strictly typed wire contract shared by the chat client
and the demo server, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
Every SSE event the server emits carries a JSON payload that must conform to one
of the `*Payload` models below. The client validates each `data:` line against
the model for its event name, so a malformed payload surfaces as a single
`ValidationError` instead of a half-rendered message.
This mimics a monorepo setup where frontend and backend share type definitions.
"""
from typing import Optional
from pydantic import BaseModel, Field

# Event names on the wire. Case-sensitive.
EVENT_CHUNK = "chunk"
EVENT_TOOL_USE = "tool_use"
EVENT_CHART_ARTIFACT = "chart_artifact"
EVENT_DONE = "done"
EVENT_ERROR = "error"
# SSE default when no `event:` line precedes a `data:` line
EVENT_MESSAGE = "message"

TOOL_STATUS_RUNNING = "running"
TOOL_STATUS_COMPLETED = "completed"


# WHAT IS HAPPENING HERE:
# Request bodies. `conversation_id` is null on the first turn of a conversation;
# the server mints one and hands it back in the `done` event.
class ChatRequest(BaseModel):
    message: str
    conversation_id: Optional[str] = None


class ResetRequest(BaseModel):
    conversation_id: str


class ChunkPayload(BaseModel):
    text: str


class ToolUsePayload(BaseModel):
    tool: str
    status: str


class ChartDataset(BaseModel):
    name: str
    values: list[float]


class ChartData(BaseModel):
    labels: list[str]
    datasets: list[ChartDataset]


# WHAT IS HAPPENING HERE:
# `type` is the server's chart vocabulary (`bar`, `bar_h`, `grouped_bar`, `line`, ...).
# The renderer maps it onto what the charting widget understands.
class ChartSpec(BaseModel):
    type: str
    title: Optional[str] = None
    height: Optional[float] = None
    data: ChartData


class DonePayload(BaseModel):
    conversation_id: Optional[str] = None
    stop_reason: Optional[str] = None


class ErrorPayload(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    active_sessions: int = Field(default=0, ge=0)
