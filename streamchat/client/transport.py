"""
MODULE OVERVIEW:
The HTTP side of the chat client.

WHAT IS HAPPENING HERE:
We use HTTPX `stream()` context manager to keep the body open while the turn
controller reads it chunk by chunk. Nothing here parses SSE; the raw bytes are
handed straight to the line buffer. Two suspension points live here: waiting
for the response headers, and waiting for each body chunk.

There is no reconnect and no `Last-Event-ID`. A dropped stream ends the turn.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from loguru import logger

from streamchat.shared.config import settings
from streamchat.shared.models import ChatRequest, ResetRequest


class ChatTransport:
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        chat_path: Optional[str] = None,
        reset_path: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.CHAT_BASE_URL).rstrip('/')
        self.chat_path = chat_path or settings.CHAT_PATH
        self.reset_path = reset_path or settings.RESET_PATH
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.STREAM_READ_TIMEOUT_S, connect=settings.CONNECT_TIMEOUT_S)
        )

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}{self.chat_path}"

    @property
    def reset_url(self) -> str:
        return f"{self.base_url}{self.reset_path}"

    @asynccontextmanager
    async def stream_chat(self, message: str, conversation_id: Optional[str]) -> AsyncIterator[httpx.Response]:
        body = ChatRequest(message=message, conversation_id=conversation_id)
        async with self.client.stream(
            "POST",
            self.chat_url,
            json=body.model_dump(),
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
        ) as response:
            logger.debug(f"POST {self.chat_url} status={response.status_code} conversation_id={conversation_id}")
            yield response

    async def reset(self, conversation_id: str) -> int:
        """Tells the server to forget a conversation. The response body is not inspected."""
        response = await self.client.post(
            self.reset_url, json=ResetRequest(conversation_id=conversation_id).model_dump()
        )
        logger.info(f"POST {self.reset_url} status={response.status_code} conversation_id={conversation_id}")
        return response.status_code

    async def aclose(self) -> None:
        await self.client.aclose()
