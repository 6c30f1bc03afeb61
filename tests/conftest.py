"""Shared test fixtures for the streamchat test suite."""

from __future__ import annotations

import asyncio
import json
from typing import Callable, Optional

import httpx
import pytest

from streamchat.client.content import ContentNode
from streamchat.client.transport import ChatTransport
from streamchat.client.turn_controller import TurnController

BASE_URL = "http://chat.test"


# -- Wire helpers ---------------------------------------------------------------


def frame(event: Optional[str], payload, newline: str = "\n") -> str:
    """One SSE block. ``event=None`` leaves the event name at its default."""
    data = payload if isinstance(payload, str) else json.dumps(payload)
    head = f"event: {event}{newline}" if event is not None else ""
    return f"{head}data: {data}{newline}{newline}"


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


class ChunkStream(httpx.AsyncByteStream):
    """Response body that yields pre-split chunks, optionally failing or pausing."""

    def __init__(
        self,
        chunks: list[bytes],
        fail_at: Optional[int] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.chunks = chunks
        self.fail_at = fail_at
        self.gate = gate

    async def __aiter__(self):
        if self.gate is not None:
            await self.gate.wait()
        for i, chunk in enumerate(self.chunks):
            if self.fail_at is not None and i == self.fail_at:
                raise httpx.ReadError("connection reset by peer")
            yield chunk


class FakeClock:
    def __init__(self, start: float = 100.0, step: float = 0.5):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


class ChartRecorder:
    """Stands in for the charting widget; records every config it is handed."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: list[tuple[ContentNode, dict]] = []

    def __call__(self, node: ContentNode, config: dict):
        if self.error is not None:
            raise self.error
        self.calls.append((node, config))
        return {"widget": config["type"]}


# -- Fixtures -------------------------------------------------------------------


@pytest.fixture
def container() -> ContentNode:
    return ContentNode(node_id="chat-messages")


@pytest.fixture
def chart_recorder() -> ChartRecorder:
    return ChartRecorder()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_controller(container, chart_recorder, clock):
    """Builds a TurnController whose HTTP traffic goes to ``handler``."""
    clients: list[httpx.AsyncClient] = []

    def _make(handler: Callable, lock_changes: Optional[list] = None) -> TurnController:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return TurnController(
            ChatTransport(BASE_URL, client=client),
            container,
            chart_factory=chart_recorder,
            clock=clock,
            on_input_lock_change=lock_changes.append if lock_changes is not None else None,
        )

    return _make
