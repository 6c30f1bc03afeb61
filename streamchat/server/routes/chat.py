"""
MODULE OVERVIEW:
The chat endpoints: one streaming SSE route and one reset route.

WHAT IS HAPPENING HERE:
`POST /api/chat` runs the agent for one user message and replays the outcome as
SSE events in a fixed order: tool status and chart artifacts first, then the reply
text one word per `chunk`, then a `done` event carrying the conversation id the
client must send back next turn. If the agent fails, a single `error` event is
sent instead.
"""
import asyncio
from typing import AsyncIterator

from fastapi import APIRouter, Request
from loguru import logger
from sse_starlette.sse import EventSourceResponse

from streamchat.server.scripted_agent import AgentError, ScriptedAgent, ToolCompleted, ToolRunning
from streamchat.server.sessions import SessionStore
from streamchat.shared.events import make_event
from streamchat.shared.models import (
    EVENT_CHART_ARTIFACT,
    EVENT_CHUNK,
    EVENT_DONE,
    EVENT_ERROR,
    EVENT_TOOL_USE,
    TOOL_STATUS_COMPLETED,
    TOOL_STATUS_RUNNING,
    ChatRequest,
    ChartSpec,
    ChunkPayload,
    DonePayload,
    ErrorPayload,
    ResetRequest,
    ToolUsePayload,
)
from streamchat.shared.route_utils import log_connection

router = APIRouter()


async def chat_event_stream(
    req: ChatRequest,
    sessions: SessionStore,
    agent: ScriptedAgent,
    chunk_delay_s: float = 0.0,
) -> AsyncIterator[dict]:
    conversation_id, history = sessions.get_or_create(req.conversation_id)
    await log_connection("chat:open", conversation_id, {"history_len": len(history)})

    try:
        reply, events = await agent.chat(history, req.message)
    except AgentError as e:
        logger.error(f"conversation_id={conversation_id} event=agent_error error={e}")
        yield make_event(EVENT_ERROR, ErrorPayload(message=str(e)))
        return

    sessions.save_history(conversation_id, history)

    for event in events:
        if isinstance(event, ToolRunning):
            yield make_event(EVENT_TOOL_USE, ToolUsePayload(tool=event.tool, status=TOOL_STATUS_RUNNING))
        elif isinstance(event, ToolCompleted):
            yield make_event(EVENT_TOOL_USE, ToolUsePayload(tool=event.tool, status=TOOL_STATUS_COMPLETED))
        elif isinstance(event, ChartSpec):
            yield make_event(EVENT_CHART_ARTIFACT, event)

    for word in reply.text.split():
        yield make_event(EVENT_CHUNK, ChunkPayload(text=f"{word} "))
        if chunk_delay_s:
            await asyncio.sleep(chunk_delay_s)

    stop_reason = "max_iterations" if reply.incomplete else "end_turn"
    yield make_event(EVENT_DONE, DonePayload(conversation_id=conversation_id, stop_reason=stop_reason))
    await log_connection("chat:close", conversation_id, {"tools": len(reply.tools_used), "stop_reason": stop_reason})


@router.post("/api/chat")
async def chat_endpoint(req: ChatRequest, request: Request):
    state = request.app.state
    return EventSourceResponse(
        chat_event_stream(req, state.sessions, state.agent, state.chunk_delay_s)
    )


@router.post("/api/chat/reset")
async def reset_endpoint(req: ResetRequest, request: Request):
    request.app.state.sessions.delete(req.conversation_id)
    return {"status": "ok"}
