"""Tests for run_turn."""

import json

import httpx
import pytest
from conftest import event_line

from abl_chat.errors import EmptyReplyError, MalformedEventError, TransportError
from abl_chat.models import Role
from abl_chat.orchestrator import run_turn
from abl_chat.session import TurnState

DONE = b"data: [DONE]\n"


class TestRunTurn:
    """Tests for a full turn against a mocked endpoint."""

    def test_successful_turn(self, session, make_client, stream_response) -> None:
        """Reply is returned and both messages are stored."""
        client = make_client(stream_response(event_line("Hel"), event_line("lo"), DONE))

        result = run_turn(session, client, "hi")

        assert result.text == "Hello"
        assert result.request_id == "r1"
        assert result.elapsed >= 0
        assert [m.role for m in session.history] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
        assert session.history[1].content == "hi"
        assert session.history[2].content == "Hello"
        assert session.last_request_id == "r1"
        assert session.turn_state is TurnState.IDLE

    def test_streams_fragments(self, session, make_client, stream_response) -> None:
        """on_delta receives fragments in arrival order."""
        client = make_client(
            stream_response(event_line("a"), event_line("b"), event_line("c", finish_reason="stop"))
        )
        seen: list[str] = []
        run_turn(session, client, "hi", on_delta=seen.append)
        assert seen == ["a", "b", "c"]

    def test_request_carries_previous_turns(self, session, make_client) -> None:
        """The second request replays the first turn."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, content=event_line(f"reply{len(bodies)}") + DONE)

        client = make_client(handler)
        run_turn(session, client, "first")
        run_turn(session, client, "second")

        contents = [m["content"] for m in bodies[1]["messages"]]
        assert contents[1:] == ["first", "reply1", "second"]
        assert len(session.history) == 5

    def test_transport_failure_leaves_user_message(
        self, session, make_client, stream_response
    ) -> None:
        """A failed turn adds exactly the user message."""
        client = make_client(stream_response(b"server error", status_code=500))
        before = len(session.history)

        with pytest.raises(TransportError) as exc_info:
            run_turn(session, client, "hi")

        assert exc_info.value.status_code == 500
        assert len(session.history) == before + 1
        assert session.history[-1].role == Role.USER
        assert session.turn_state is TurnState.IDLE

    def test_malformed_event_fails_turn(self, session, make_client, stream_response) -> None:
        """Partial replies are not stored when decoding fails."""
        client = make_client(stream_response(event_line("Hel"), b"data: {oops\n"))
        with pytest.raises(MalformedEventError):
            run_turn(session, client, "hi")
        assert session.history[-1].role == Role.USER

    def test_empty_reply_fails_turn(self, session, make_client, stream_response) -> None:
        """A stream without text is an error and nothing is stored."""
        client = make_client(stream_response(b": ping\n", DONE))
        with pytest.raises(EmptyReplyError):
            run_turn(session, client, "hi")
        assert len(session.history) == 2

    def test_failure_keeps_previous_request_id(self, session, make_client, stream_response) -> None:
        """last_request_id only changes on success."""
        run_turn(session, make_client(stream_response(event_line("ok", id="first"), DONE)), "a")
        with pytest.raises(TransportError):
            run_turn(session, make_client(stream_response(b"", status_code=503)), "b")
        assert session.last_request_id == "first"


class TestDebugOutput:
    """Tests for debug telemetry."""

    def test_no_debug_output_by_default(self, session, make_client, stream_response) -> None:
        """Debug callback is silent unless debug mode is on."""
        lines: list[str] = []
        client = make_client(stream_response(event_line("x"), DONE))
        run_turn(session, client, "hi", on_debug=lines.append)
        assert lines == []

    def test_debug_report(self, session, make_client, stream_response) -> None:
        """Debug mode reports events, timing, id and history."""
        session.toggle_debug()
        lines: list[str] = []
        client = make_client(stream_response(event_line("x"), DONE))
        run_turn(session, client, "hi", on_debug=lines.append)

        text = "\n".join(lines)
        assert "[DEBUG] Received chunk" in text
        assert "[DEBUG] Request took:" in text
        assert "[DEBUG] Request ID: r1" in text
        assert "[DEBUG] History messages: 3" in text
        assert '"role": "assistant"' in text

    def test_reply_precedes_debug_report(self, session, make_client, stream_response) -> None:
        """on_reply fires before the post-turn debug lines."""
        session.toggle_debug()
        output: list[str] = []
        client = make_client(stream_response(event_line("x"), DONE))
        run_turn(
            session,
            client,
            "hi",
            on_reply=lambda text: output.append(f"reply:{text}"),
            on_debug=output.append,
        )

        reply_at = output.index("reply:x")
        report_at = next(i for i, line in enumerate(output) if "Request took" in line)
        assert reply_at < report_at
