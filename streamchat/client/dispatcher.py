"""
MODULE OVERVIEW:
The per-turn render state machine: `idle -> sending -> streaming -> done | error`.

WHAT IS HAPPENING HERE:
Each typed SSE event is mapped to exactly one render action on the assistant's
message node:
  - `chunk` appends to the accumulated text and re-renders the whole text region.
  - `tool_use` upserts one status node per tool id (never a duplicate).
  - `chart_artifact` appends a new chart node.
  - `done` / `error` end the turn and hand it back to the controller.

The text region is a dedicated child node. Re-rendering it replaces only its own
markup, so tool and chart nodes appended next to it survive every `chunk`.
That full re-render is O(n^2) over a long reply; it is kept deliberately simple.

A payload that fails to parse is logged and skipped. The turn carries on.
"""
import time
from typing import Callable, Optional, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from streamchat.client.content import ContentNode
from streamchat.client.renderers import (
    ChartFactory,
    escape_html,
    render_chart,
    render_markdown,
    render_tool_status,
    tool_status_id,
)
from streamchat.client.state import SseEvent, Turn, TurnState
from streamchat.shared.client_utils import make_turn_stats
from streamchat.shared.models import (
    EVENT_CHART_ARTIFACT,
    EVENT_CHUNK,
    EVENT_DONE,
    EVENT_ERROR,
    EVENT_TOOL_USE,
    ChartSpec,
    ChunkPayload,
    DonePayload,
    ErrorPayload,
    ToolUsePayload,
)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class InvalidTransition(RuntimeError):
    pass


class EventDispatcher:
    def __init__(
        self,
        turn: Turn,
        message_content: ContentNode,
        viewport: ContentNode,
        chart_factory: ChartFactory,
        on_terminal: Optional[Callable[[Turn], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        stats: Optional[dict] = None,
    ):
        self.turn = turn
        self.content = message_content
        self.viewport = viewport
        self.chart_factory = chart_factory
        self.on_terminal = on_terminal
        self.clock = clock
        self.stats = stats if stats is not None else make_turn_stats()

        self.text_region = self.content.append(ContentNode(classes=["message-text"]))
        self.tool_nodes: dict[str, ContentNode] = {}

        self._handlers: dict[str, Callable[[str], None]] = {
            EVENT_CHUNK: self._on_chunk,
            EVENT_TOOL_USE: self._on_tool_use,
            EVENT_CHART_ARTIFACT: self._on_chart_artifact,
            EVENT_DONE: self._on_done,
            EVENT_ERROR: self._on_error,
        }

    # ==========================
    # TRANSITIONS
    # ==========================
    def start_streaming(self) -> None:
        if self.turn.state is not TurnState.SENDING:
            raise InvalidTransition(f"cannot stream from state={self.turn.state.value}")
        self.turn.state = TurnState.STREAMING
        logger.debug(f"turn={self.turn.number} state=streaming")

    def fail_http(self, status_code: int) -> None:
        logger.warning(f"turn={self.turn.number} event=http_error status={status_code}")
        self._append_error(f"Error: {status_code}")
        self._finish(TurnState.ERROR)

    def fail_transport(self, exc: BaseException) -> None:
        if self.turn.state.terminal:
            logger.debug(f"turn={self.turn.number} transport error after terminal event ignored: {exc!r}")
            return
        logger.warning(f"turn={self.turn.number} event=transport_error error={exc!r}")
        self._append_error(f"Error: {str(exc) or type(exc).__name__}")
        self._finish(TurnState.ERROR)

    def finish_stream(self) -> None:
        """The byte stream closed. Without a terminal event that still ends the turn."""
        if self.turn.state is TurnState.STREAMING:
            logger.info(f"turn={self.turn.number} event=stream_end reason=no_terminal_event")
            self._finish(TurnState.DONE)

    # ==========================
    # EVENTS
    # ==========================
    def dispatch(self, event: SseEvent) -> None:
        if self.turn.state is not TurnState.STREAMING:
            logger.debug(f"turn={self.turn.number} event={event.event_type} ignored state={self.turn.state.value}")
            return

        handler = self._handlers.get(event.event_type)
        if handler is None:
            logger.debug(f"turn={self.turn.number} event={event.event_type} unhandled")
            return
        handler(event.raw_payload)

    def _on_chunk(self, raw: str) -> None:
        payload = self._parse(ChunkPayload, raw, EVENT_CHUNK)
        if payload is None:
            return
        self.turn.accumulated_text += payload.text
        self.text_region.set_markup(render_markdown(self.turn.accumulated_text))
        self.viewport.scroll_to_end()

    def _on_tool_use(self, raw: str) -> None:
        payload = self._parse(ToolUsePayload, raw, EVENT_TOOL_USE)
        if payload is None:
            return
        tool_id = tool_status_id(payload.tool)
        node = self.tool_nodes.get(tool_id)
        if node is None:
            node = self.content.append(ContentNode(classes=["tool-status"], node_id=tool_id))
            self.tool_nodes[tool_id] = node
        render_tool_status(node, payload)
        logger.debug(f"turn={self.turn.number} tool={payload.tool} status={payload.status}")
        self.viewport.scroll_to_end()

    def _on_chart_artifact(self, raw: str) -> None:
        spec = self._parse(ChartSpec, raw, EVENT_CHART_ARTIFACT)
        if spec is None:
            return
        render_chart(self.content, spec, self.chart_factory)
        self.viewport.scroll_to_end()

    def _on_done(self, raw: str) -> None:
        payload = self._parse(DonePayload, raw, EVENT_DONE)
        if payload is not None:
            if payload.conversation_id:
                self.turn.conversation_id = payload.conversation_id
            self.turn.stop_reason = payload.stop_reason
        self._finish(TurnState.DONE)

    def _on_error(self, raw: str) -> None:
        try:
            message = ErrorPayload.model_validate_json(raw).message
        except ValidationError:
            logger.error(f"turn={self.turn.number} event=error malformed payload={raw[:80]!r}")
            self.stats["malformed_payloads"] += 1
            message = "Unknown error"
        self._append_error(message)
        self._finish(TurnState.ERROR)

    # ==========================
    # HELPERS
    # ==========================
    def _parse(self, model: Type[PayloadT], raw: str, event_type: str) -> Optional[PayloadT]:
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            self.stats["malformed_payloads"] += 1
            logger.error(
                f"turn={self.turn.number} event={event_type} malformed payload={raw[:80]!r} "
                f"errors={e.error_count()}"
            )
            return None

    def _append_error(self, message: str) -> None:
        self.content.append(ContentNode(kind="p", classes=["error"], markup=escape_html(message)))
        self.viewport.scroll_to_end()

    def _finish(self, state: TurnState) -> None:
        self.turn.state = state
        self.turn.finished_at = self.clock()
        logger.info(
            f"turn={self.turn.number} state={state.value} conversation_id={self.turn.conversation_id} "
            f"chars={len(self.turn.accumulated_text)} tools={len(self.tool_nodes)}"
        )
        if self.on_terminal:
            self.on_terminal(self.turn)
