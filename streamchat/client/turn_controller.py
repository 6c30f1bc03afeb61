"""
MODULE OVERVIEW:
Orchestrates one send/receive cycle of the chat.

WHAT IS HAPPENING HERE:
`submit()` locks the input, echoes the user's message, opens the streaming request
and pumps every body chunk through LineBuffer -> SseDemultiplexer -> EventDispatcher.
Whatever happens (success, HTTP error, dropped connection, garbage payloads) the
`finally` block unlocks the input so the user can always send again.

Everything runs on one event loop. The `is_waiting` check happens before the first
`await`, so a second submission can never sneak in while a turn is in flight.
There is no cancel and no read timeout by default: a stalled stream keeps the
input locked until the server closes it. The chunk loop in `_drive()` is the one
place a cancel hook would go.

`reset()` bumps a generation counter. A turn still streaming from before the
reset is stale: its remaining events are dropped, and its terminal event neither
restores the old conversation id nor touches the input lock of a newer turn.
"""
import time
from typing import Callable, Optional

import httpx
from loguru import logger

from streamchat.client.content import ContentNode
from streamchat.client.dispatcher import EventDispatcher
from streamchat.client.line_buffer import LineBuffer
from streamchat.client.renderers import ChartFactory, escape_html
from streamchat.client.sse_demux import SseDemultiplexer
from streamchat.client.state import Turn, TurnState
from streamchat.client.transport import ChatTransport
from streamchat.shared.client_utils import make_turn_stats, mark_event


class TurnController:
    def __init__(
        self,
        transport: ChatTransport,
        container: ContentNode,
        chart_factory: ChartFactory,
        clock: Callable[[], float] = time.monotonic,
        on_input_lock_change: Optional[Callable[[bool], None]] = None,
    ):
        self.transport = transport
        self.container = container
        self.chart_factory = chart_factory
        self.clock = clock
        self.on_input_lock_change = on_input_lock_change

        self.conversation_id: Optional[str] = None
        self.is_waiting = False
        self.input_locked = False
        self.last_turn: Optional[Turn] = None
        self.stats = make_turn_stats()
        self._turn_count = 0
        self._generation = 0

    @property
    def state(self) -> TurnState:
        """The in-flight turn's state, or IDLE when nothing is in flight."""
        if self.last_turn is None or not self._is_current(self.last_turn):
            return TurnState.IDLE
        if not self.last_turn.state.in_flight:
            return TurnState.IDLE
        return self.last_turn.state

    async def submit(self, message: str) -> Optional[Turn]:
        if self.is_waiting or not message.strip():
            logger.debug(f"submit rejected waiting={self.is_waiting} blank={not message.strip()}")
            return None

        self.is_waiting = True
        self._set_input_locked(True)
        self._turn_count += 1
        self.stats["turns_started"] += 1

        turn = Turn(
            user_message=message,
            conversation_id=self.conversation_id,
            state=TurnState.SENDING,
            started_at=self.clock(),
            number=self._turn_count,
            generation=self._generation,
        )
        self.last_turn = turn

        self._append_message("user").set_markup(escape_html(message))
        self.container.scroll_to_end()
        dispatcher = EventDispatcher(
            turn,
            self._append_message("assistant"),
            self.container,
            self.chart_factory,
            on_terminal=self._on_terminal,
            clock=self.clock,
            stats=self.stats,
        )
        logger.info(f"turn={turn.number} event=send conversation_id={turn.conversation_id} chars={len(message)}")

        try:
            await self._drive(turn, dispatcher)
        except (httpx.HTTPError, OSError) as e:
            dispatcher.fail_transport(e)
        finally:
            if self._is_current(turn):
                self._unlock()
        return turn

    async def _drive(self, turn: Turn, dispatcher: EventDispatcher) -> None:
        async with self.transport.stream_chat(turn.user_message, turn.conversation_id) as response:
            if not response.is_success:
                dispatcher.fail_http(response.status_code)
                return

            dispatcher.start_streaming()
            buffer = LineBuffer()
            demux = SseDemultiplexer()

            async for chunk in response.aiter_bytes():
                if not self._is_current(turn):
                    logger.info(f"turn={turn.number} event=superseded_by_reset")
                    break
                self.stats["bytes_received"] += len(chunk)
                for line in buffer.push(chunk):
                    for event in demux.feed(line):
                        mark_event(self.stats)
                        dispatcher.dispatch(event)
                if turn.state.terminal:
                    break
            buffer.close()

        dispatcher.finish_stream()

    async def reset(self) -> None:
        """
        Starts a fresh conversation. The server is told about the old id first;
        local state is cleared even if that request fails.
        """
        if self.conversation_id:
            try:
                await self.transport.reset(self.conversation_id)
            except (httpx.HTTPError, OSError) as e:
                logger.warning(f"reset request failed conversation_id={self.conversation_id} error={e!r}")

        logger.info(f"conversation reset previous_id={self.conversation_id}")
        self._generation += 1
        self.conversation_id = None
        if self.last_turn is not None:
            self.last_turn.accumulated_text = ""
        self.container.clear()
        self._unlock()

    def _on_terminal(self, turn: Turn) -> None:
        if not self._is_current(turn):
            logger.debug(f"turn={turn.number} terminal after reset ignored conversation_id={turn.conversation_id}")
            return
        if turn.conversation_id:
            self.conversation_id = turn.conversation_id
        if turn.state is TurnState.ERROR:
            self.stats["turns_failed"] += 1
        self._unlock()

    def _is_current(self, turn: Turn) -> bool:
        return turn.generation == self._generation

    def _append_message(self, role: str) -> ContentNode:
        message = self.container.append(ContentNode(classes=["message", role]))
        return message.append(ContentNode(classes=["message-content"]))

    def _unlock(self) -> None:
        self.is_waiting = False
        self._set_input_locked(False)

    def _set_input_locked(self, locked: bool) -> None:
        if self.input_locked == locked:
            return
        self.input_locked = locked
        if self.on_input_lock_change:
            self.on_input_lock_change(locked)
