"""CLI entry point for abl-chat."""

import logging
from pathlib import Path

import typer

from .config import (
    DEFAULT_ENDPOINT,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT,
    ClientConfig,
    default_history_file,
)
from .errors import ChatError
from .orchestrator import run_turn
from .renderer import render_command_history, render_help, render_model_info, render_welcome
from .session import SessionState
from .transport import ChatClient

APP_HELP = """
Chat with a Bailian (DashScope) model from the terminal.

\b
Replies are streamed as they are generated. The whole conversation is sent
with every request; use /reset to start over.

\b
Examples:
  abls                         # interactive mode
  abls -c "hello"              # single command, buffered reply
  abls -c "hello" --stream     # single command, streamed reply
"""

EXIT_COMMANDS = ("exit", "/quit")

app = typer.Typer(add_completion=False, help=APP_HELP)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("abl_chat").setLevel(logging.DEBUG if debug else logging.WARNING)


def handle_command(raw: str, session: SessionState) -> bool:
    """Run a built-in command. Returns False when ``raw`` is a chat message."""
    if raw in EXIT_COMMANDS:
        raise typer.Exit(0)
    if raw == "/reset":
        session.reset()
        typer.echo("Conversation history reset")
        return True
    if raw.startswith("/model"):
        parts = raw.split(" ")
        if len(parts) < 2:
            typer.echo(render_model_info(session))
        elif session.switch_model(parts[1]):
            typer.echo(f"Switched model to: {session.model}")
        else:
            typer.echo("Error: unsupported model")
        return True
    if raw == "/debug":
        debug = session.toggle_debug()
        configure_logging(debug)
        typer.echo(f"Debug mode {str(debug).lower()}")
        return True
    if raw == "/help":
        typer.echo(render_help())
        return True
    if raw == "/history":
        typer.echo(render_command_history(session))
        return True
    return False


def chat_turn(session: SessionState, client: ChatClient, text: str, stream: bool) -> str:
    """Run one turn and print the reply."""
    if stream and not session.single_shot:
        typer.echo(f"AI({session.model}): ", nl=False)

    result = run_turn(
        session,
        client,
        text,
        on_delta=(lambda fragment: typer.echo(fragment, nl=False)) if stream else None,
        on_reply=None if stream else typer.echo,
        on_debug=typer.echo,
    )
    return result.text


def execute_single_command(
    session: SessionState, client: ChatClient, command: str, stream: bool
) -> None:
    command = command.strip()
    if not command:
        raise ChatError("empty command")

    session.record_command(command)
    if handle_command(command, session):
        return

    chat_turn(session, client, command, stream)
    if stream:
        typer.echo()


def start_interactive_session(
    session: SessionState, client: ChatClient, history_file: Path
) -> None:
    typer.echo(render_welcome(session, history_file))

    while True:
        try:
            raw = input("> ")
        except KeyboardInterrupt:
            typer.echo("^C")
            break
        except EOFError:
            typer.echo("exit")
            break

        raw = raw.strip()
        if not raw:
            continue

        session.record_command(raw)
        if handle_command(raw, session):
            continue

        try:
            chat_turn(session, client, raw, stream=True)
        except ChatError as e:
            typer.echo(f"\nError: {e}", err=True)
        typer.echo()


@app.command()
def main(
    key: str | None = typer.Option(
        None, "--key", envvar="ABL_API_KEY", help="API key (or ABL_API_KEY)"
    ),
    model: str = typer.Option(DEFAULT_MODEL, "--model", help="Default model name"),
    api: str = typer.Option(DEFAULT_ENDPOINT, "--api", help="Chat completions endpoint"),
    timeout: int = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Request timeout in seconds"),
    history: Path | None = typer.Option(None, "--history", help="Command history file path"),
    command: str = typer.Option("", "-c", help="Run a single command and exit"),
    stream: bool = typer.Option(False, "--stream", help="Stream the reply in -c mode"),
    debug: bool = typer.Option(False, "--debug", help="Start with debug mode on"),
) -> None:
    if not key:
        typer.echo("Error: an API key is required (--key or ABL_API_KEY)", err=True)
        raise typer.Exit(1)

    config = ClientConfig(
        api_key=key,
        model=model,
        endpoint=api,
        timeout=timeout,
        history_file=history or default_history_file(),
        command=command,
        stream=stream,
        debug=debug,
    )
    configure_logging(config.debug)
    session = SessionState.create(config)

    with ChatClient(config) as client:
        if config.single_shot:
            try:
                execute_single_command(session, client, config.command, config.stream)
            except ChatError as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(1) from e
            return

        start_interactive_session(session, client, config.history_file)


if __name__ == "__main__":
    app()
