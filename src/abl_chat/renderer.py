"""Console text for the interactive client."""

import json
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .models import StreamEvent
from .session import SUPPORTED_MODELS, SessionState

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _env() -> Environment:
    return Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=False)


def render_welcome(session: SessionState, history_file: Path) -> str:
    """Render the banner shown when the interactive session starts."""
    template = _env().get_template("welcome.txt.j2")
    return template.render(
        model=session.model,
        debug=str(session.debug).lower(),
        history_file=history_file,
    )


def render_help() -> str:
    template = _env().get_template("help.txt.j2")
    return template.render(models=SUPPORTED_MODELS)


def render_model_info(session: SessionState) -> str:
    return f"Current model: {session.model}\nAvailable models: {', '.join(SUPPORTED_MODELS)}"


def render_command_history(session: SessionState) -> str:
    """Numbered list of every raw input, oldest first."""
    if not session.command_log:
        return "No command history"
    lines = ["Command history:"]
    for i, cmd in enumerate(session.command_log, 1):
        lines.append(f"{i:4d}: {cmd}")
    return "\n".join(lines)


def render_event(event: StreamEvent) -> str:
    return f"\n[DEBUG] Received chunk: {event.model_dump_json(exclude_none=True)}"


def render_debug_info(session: SessionState, elapsed: float) -> list[str]:
    """Lines printed after a turn when debug mode is on."""
    last = json.dumps(session.history[-1].model_dump(mode="json"), ensure_ascii=False)
    return [
        f"\n[DEBUG] Request took: {elapsed:.2f}s",
        f"[DEBUG] Request ID: {session.last_request_id or ''}",
        f"[DEBUG] History messages: {len(session.history)}",
        f"[DEBUG] Last history message: {last}",
    ]

