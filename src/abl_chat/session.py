"""Conversation session state."""

from enum import Enum

from pydantic import BaseModel

from .config import ClientConfig
from .models import Message, Role

SYSTEM_PROMPT = "You are a helpful assistant."

SUPPORTED_MODELS = ("qwen-plus", "qwen-max", "qwen-turbo", "deepseek-r1", "deepseek-v3")


class TurnState(str, Enum):
    """Lifecycle of a single turn."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    BUFFERING = "buffering"
    COMPLETED = "completed"
    FAILED = "failed"


def system_preamble() -> Message:
    return Message(role=Role.SYSTEM, content=SYSTEM_PROMPT)


class SessionState(BaseModel):
    """The single in-process conversation.

    History is replayed in full as the context of every request; it is
    never truncated. The first entry is always the system preamble.
    Not thread-safe: one turn must finish before the next starts.
    """

    model: str
    history: list[Message] = [system_preamble()]
    command_log: list[str] = []
    debug: bool = False
    last_request_id: str | None = None
    single_shot: bool = False
    turn_state: TurnState = TurnState.IDLE

    @classmethod
    def create(cls, config: ClientConfig) -> "SessionState":
        return cls(model=config.model, debug=config.debug, single_shot=config.single_shot)

    def reset(self) -> None:
        """Drop the conversation, keeping the command log."""
        self.history = [system_preamble()]
        self.last_request_id = None

    def switch_model(self, name: str) -> bool:
        """Change the active model if it is in SUPPORTED_MODELS."""
        if name not in SUPPORTED_MODELS:
            return False
        self.model = name
        return True

    def toggle_debug(self) -> bool:
        self.debug = not self.debug
        return self.debug

    def record_command(self, raw: str) -> None:
        self.command_log.append(raw)

    def add_user_message(self, content: str) -> None:
        self.history.append(Message(role=Role.USER, content=content))

    def add_assistant_message(self, content: str) -> None:
        self.history.append(Message(role=Role.ASSISTANT, content=content))

    def snapshot(self) -> dict:
        """JSON-ready view of the session for display."""
        return {
            "model": self.model,
            "debug": self.debug,
            "single_shot": self.single_shot,
            "last_request_id": self.last_request_id,
            "turn_state": self.turn_state.value,
            "history": [m.model_dump(mode="json") for m in self.history],
            "commands": len(self.command_log),
        }
