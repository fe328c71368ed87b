"""abl-chat: streaming terminal client for Bailian chat completions."""

from .config import ClientConfig
from .decoder import LineKind, classify_line, decode_stream
from .errors import (
    ChatError,
    EmptyReplyError,
    EncodingError,
    MalformedEventError,
    StreamReadError,
    TransportError,
)
from .models import Message, Role, StreamEvent, TurnResult
from .orchestrator import run_turn
from .session import SUPPORTED_MODELS, SessionState, TurnState
from .transport import ChatClient

__all__ = [
    "SUPPORTED_MODELS",
    "ChatClient",
    "ChatError",
    "ClientConfig",
    "EmptyReplyError",
    "EncodingError",
    "LineKind",
    "MalformedEventError",
    "Message",
    "Role",
    "SessionState",
    "StreamEvent",
    "StreamReadError",
    "TransportError",
    "TurnResult",
    "TurnState",
    "classify_line",
    "decode_stream",
    "run_turn",
]
