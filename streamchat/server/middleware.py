"""
MODULE OVERVIEW:
FastAPI middleware that times every request to the demo chat server.

WHAT IS HAPPENING HERE:
We add an `X-Process-Time-Ms` header and a log line per request. What the number
means depends on the route:
  - `POST /api/chat` returns an `EventSourceResponse`. `call_next` hands it back
    as soon as the headers are ready, before the agent has produced a single
    event, so the timing is time-to-first-byte. The body keeps streaming after
    this middleware is done, and its length never shows up here.
  - `POST /api/chat/reset` and `GET /healthz` are plain JSON, so the timing is
    the whole request.
The log line says which of the two it measured.
"""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

EVENT_STREAM = "text/event-stream"
QUIET_PATHS = ("/healthz",)


class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.2f}"

        if request.url.path in QUIET_PATHS:
            return response
        streaming = response.headers.get("content-type", "").startswith(EVENT_STREAM)
        measured = "ttfb" if streaming else "total"
        logger.debug(
            f"{request.method} {request.url.path} status={response.status_code} "
            f"{measured}_ms={elapsed_ms:.2f}"
        )
        return response
