"""Run one conversation turn from user input to stored reply."""

import logging
import time
from collections.abc import Callable

from .decoder import decode_stream
from .errors import ChatError
from .models import StreamEvent, TurnResult
from .renderer import render_debug_info, render_event
from .session import SessionState, TurnState
from .transport import ChatClient

logger = logging.getLogger(__name__)


def _transition(session: SessionState, state: TurnState) -> None:
    logger.debug("Turn state %s -> %s", session.turn_state.value, state.value)
    session.turn_state = state


def run_turn(
    session: SessionState,
    client: ChatClient,
    user_text: str,
    on_delta: Callable[[str], None] | None = None,
    on_reply: Callable[[str], None] | None = None,
    on_debug: Callable[[str], None] | None = None,
) -> TurnResult:
    """Send ``user_text`` with the full history and record the reply.

    The user message is appended before the request and stays in history
    even when the turn fails. The assistant message is appended only on
    success.

    Args:
        session: Conversation to extend
        client: Transport used for the request
        user_text: The user's input
        on_delta: Receives reply fragments as they arrive; None buffers the reply
        on_reply: Receives the complete reply once stored, before any debug report
        on_debug: Receives debug lines when ``session.debug`` is set

    Raises:
        ChatError: any encoding, transport or decoding failure
    """
    start = time.monotonic()
    session.add_user_message(user_text)
    _transition(session, TurnState.SENDING)

    on_event: Callable[[StreamEvent], None] | None = None
    if session.debug and on_debug is not None:

        def on_event(event: StreamEvent) -> None:
            on_debug(render_event(event))

    try:
        with client.stream_chat(session) as chunks:
            _transition(session, TurnState.STREAMING if on_delta else TurnState.BUFFERING)
            result = decode_stream(chunks, on_delta=on_delta, on_event=on_event)
    except ChatError as e:
        _transition(session, TurnState.FAILED)
        logger.info("Turn failed after %.2fs: %s", time.monotonic() - start, e)
        _transition(session, TurnState.IDLE)
        raise

    session.last_request_id = result.request_id
    session.add_assistant_message(result.text)
    result.elapsed = time.monotonic() - start
    _transition(session, TurnState.COMPLETED)

    if on_reply is not None:
        on_reply(result.text)

    if session.debug and on_debug is not None:
        for line in render_debug_info(session, result.elapsed):
            on_debug(line)

    _transition(session, TurnState.IDLE)
    return result
