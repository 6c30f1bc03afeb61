"""
MODULE OVERVIEW:
The FastAPI application factory for the demo chat server.

WHAT IS HAPPENING HERE:
`create_app()` wires a session store and a scripted agent onto `app.state`, so
routes reach them through the request instead of module globals and tests can
build an app around their own instances. The `lifespan` context manager only logs
startup and shutdown; streams are per-request and need no background tasks.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from streamchat.server.middleware import TimingMiddleware
from streamchat.server.routes import chat
from streamchat.server.scripted_agent import ScriptedAgent
from streamchat.server.sessions import SessionStore
from streamchat.shared.config import settings
from streamchat.shared.models import HealthResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("streamchat demo server starting up...")
    yield
    logger.info(f"Server shutting down with {len(app.state.sessions)} live sessions.")


def create_app(
    agent: Optional[ScriptedAgent] = None,
    sessions: Optional[SessionStore] = None,
    chunk_delay_s: Optional[float] = None,
) -> FastAPI:
    app = FastAPI(
        title="streamchat demo server",
        description="Scripted chat backend speaking the streamchat SSE vocabulary",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.agent = agent or ScriptedAgent()
    app.state.sessions = sessions if sessions is not None else SessionStore()
    app.state.chunk_delay_s = settings.DEMO_CHUNK_DELAY_S if chunk_delay_s is None else chunk_delay_s

    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat.router, tags=["Chat"])

    @app.get("/healthz", tags=["Ops"], response_model=HealthResponse)
    async def health_check():
        return HealthResponse(active_sessions=len(app.state.sessions))

    return app


app = create_app()
