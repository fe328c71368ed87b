"""Errors raised while running a chat turn."""


class ChatError(Exception):
    """Base class for every failure surfaced to the caller."""


class EncodingError(ChatError):
    """The request body could not be serialized."""


class TransportError(ChatError):
    """Connection failure, timeout or non-2xx response."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StreamReadError(ChatError):
    """I/O failure while reading the response body."""


class MalformedEventError(ChatError):
    """A `data:` record did not carry valid JSON."""


class EmptyReplyError(ChatError):
    """The stream ended without any reply text."""

    def __init__(self, message: str = "no reply content received"):
        super().__init__(message)
