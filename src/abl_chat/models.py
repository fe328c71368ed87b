"""Domain models for abl-chat."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Author of a conversation message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One entry of the conversation history."""

    role: Role
    content: str


class ChatRequest(BaseModel):
    """Body of the chat-completion POST."""

    model: str
    messages: list[Message]
    stream: bool = True


class Delta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str | None = None


class StreamChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    delta: Delta | None = None
    finish_reason: str | None = None


class Usage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class StreamEvent(BaseModel):
    """A single decoded `data: {...}` record."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    model: str | None = None
    choices: list[StreamChoice] | None = None
    usage: Usage | None = None


class TurnResult(BaseModel):
    """Aggregated assistant reply for one turn."""

    text: str
    request_id: str | None = None
    elapsed: float = 0.0
