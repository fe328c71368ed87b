"""Decoder for streamed chat-completion responses.

The body is a sequence of newline-terminated records. Only records starting
with ``data: `` matter; each carries either a JSON event or the ``[DONE]``
terminator.
"""

import json
import logging
from collections.abc import Callable, Iterable, Iterator
from enum import Enum

from pydantic import ValidationError

from .errors import EmptyReplyError, MalformedEventError, StreamReadError
from .models import StreamEvent, TurnResult

logger = logging.getLogger(__name__)

DATA_PREFIX = b"data: "
TERMINATOR = b"data: [DONE]\n"
STOP_REASON = "stop"
NULL_PAYLOAD = b"null"


class LineKind(str, Enum):
    """Classification of a raw record, decided before any JSON decoding."""

    SKIP = "skip"
    FRAGMENT = "fragment"
    TERMINATOR = "terminator"
    MALFORMED = "malformed"


def iter_records(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Re-frame arbitrary byte chunks into records ending with ``\\n``.

    A trailing piece without a newline at end of stream is dropped.
    """
    buffer = bytearray()
    try:
        for chunk in chunks:
            start = len(buffer)
            buffer += chunk
            idx = buffer.find(b"\n", start)
            while idx != -1:
                yield bytes(buffer[: idx + 1])
                del buffer[: idx + 1]
                idx = buffer.find(b"\n")
    except OSError as e:
        raise StreamReadError(f"failed to read stream: {e}") from e
    if buffer:
        logger.debug("Dropping %d bytes of unterminated trailing record", len(buffer))


def classify_line(record: bytes) -> LineKind:
    """Tag a record as SKIP, TERMINATOR, MALFORMED or FRAGMENT.

    MALFORMED only catches payloads that cannot be a JSON object or null;
    FRAGMENT records may still fail in parse_event.
    """
    if len(record) < len(DATA_PREFIX) or not record.startswith(DATA_PREFIX):
        return LineKind.SKIP
    if record == TERMINATOR:
        return LineKind.TERMINATOR
    payload = record[len(DATA_PREFIX) :].strip()
    if not payload.startswith(b"{") and payload != NULL_PAYLOAD:
        return LineKind.MALFORMED
    return LineKind.FRAGMENT


def parse_event(record: bytes) -> StreamEvent:
    """Decode the JSON payload of a FRAGMENT record.

    A ``null`` payload decodes to an empty event.

    Raises:
        MalformedEventError: the payload is not a JSON object of the known shape.
    """
    payload = record[len(DATA_PREFIX) :]
    try:
        data = json.loads(payload)
        if data is None:
            return StreamEvent()
        return StreamEvent.model_validate(data)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        raise MalformedEventError(f"failed to parse event JSON: {e}") from e


def decode_stream(
    chunks: Iterable[bytes],
    on_delta: Callable[[str], None] | None = None,
    on_event: Callable[[StreamEvent], None] | None = None,
) -> TurnResult:
    """Aggregate a streamed reply into a single TurnResult.

    Args:
        chunks: Raw response body, in any chunking
        on_delta: Called with each text fragment as soon as it is decoded
        on_event: Called with every parsed event (debug output)

    Returns:
        TurnResult with the concatenated text and the first non-empty id

    Raises:
        MalformedEventError: a record failed to parse; nothing is returned
        StreamReadError: the chunk source failed mid-stream
        EmptyReplyError: no text was accumulated
    """
    parts: list[str] = []
    request_id: str | None = None

    for record in iter_records(chunks):
        kind = classify_line(record)
        if kind is LineKind.SKIP:
            continue
        if kind is LineKind.TERMINATOR:
            break
        if kind is LineKind.MALFORMED:
            raise MalformedEventError(f"event payload is not a JSON object: {record[:80]!r}")

        event = parse_event(record)
        if on_event is not None:
            on_event(event)

        if request_id is None and event.id:
            request_id = event.id

        if not event.choices:
            continue

        # Only the first choice is ever consulted
        choice = event.choices[0]
        content = choice.delta.content if choice.delta else None
        if content:
            parts.append(content)
            if on_delta is not None:
                on_delta(content)

        if choice.finish_reason == STOP_REASON:
            break

    text = "".join(parts)
    if not text:
        raise EmptyReplyError()

    return TurnResult(text=text, request_id=request_id)
