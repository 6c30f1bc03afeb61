"""
MODULE OVERVIEW:
This module provides application-wide configuration using Pydantic Settings.
Where it fits: both the chat client and the demo server read their endpoints,
timeouts and rendering defaults from here.

WHAT IS HAPPENING HERE:
Every tunable lives in one place. The client's endpoint paths, the chart defaults
used by the renderers and the demo server's pacing can all be overridden with
environment variables (or a `.env` file) without touching code.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Chat client
    CHAT_BASE_URL: str = "http://127.0.0.1:8000"
    CHAT_PATH: str = "/api/chat"
    RESET_PATH: str = "/api/chat/reset"
    CONNECT_TIMEOUT_S: float = 10.0
    # None means a stalled stream blocks the turn until the server closes it
    STREAM_READ_TIMEOUT_S: Optional[float] = None

    # Rendering
    DEFAULT_CHART_HEIGHT: int = 300
    BAR_H_SPACE_RATIO: float = 0.3

    # Demo server
    SESSION_TTL_S: float = 2 * 60 * 60
    DEMO_CHUNK_DELAY_S: float = 0.05

    class Config:
        env_file = ".env"
        # Tolerate missing env vars to allow easy out-of-the-box execution
        env_file_encoding = 'utf-8'
        extra = 'ignore'


settings = Settings()
