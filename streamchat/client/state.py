# Per-turn state for the chat client
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"

    @property
    def in_flight(self) -> bool:
        return self in (TurnState.SENDING, TurnState.STREAMING)

    @property
    def terminal(self) -> bool:
        return self in (TurnState.DONE, TurnState.ERROR)


@dataclass
class Turn:
    user_message: str
    conversation_id: Optional[str] = None
    accumulated_text: str = ""
    state: TurnState = TurnState.IDLE
    stop_reason: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    number: int = 0
    generation: int = 0

    @property
    def elapsed_s(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at


@dataclass(frozen=True)
class SseEvent:
    event_type: str
    raw_payload: str
