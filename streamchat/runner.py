"""
CLI entrypoint for streamchat.
"""
import asyncio
from typing import Optional

import typer
from rich.prompt import Prompt

from streamchat.client.content import ContentNode
from streamchat.client.state import TurnState
from streamchat.client.transport import ChatTransport
from streamchat.client.turn_controller import TurnController
from streamchat.client.visualizer import ChatView, TerminalChart
from streamchat.shared.config import settings
from streamchat.shared.logging_setup import configure_logging

app = typer.Typer(help="streamchat: a streaming SSE chat client")

QUIT_COMMANDS = ("/quit", "/exit")
RESET_COMMAND = "/reset"


def build_view(base_url: str) -> ChatView:
    controller = TurnController(
        ChatTransport(base_url),
        ContentNode(node_id="chat-messages"),
        chart_factory=TerminalChart,
    )
    view = ChatView(controller)
    controller.on_input_lock_change = view.on_input_lock_change
    return view


async def _chat_loop(base_url: str) -> None:
    view = build_view(base_url)
    try:
        while True:
            message = await asyncio.to_thread(Prompt.ask, "[bold cyan]you[/]", console=view.console)
            command = message.strip().lower()
            if command in QUIT_COMMANDS:
                break
            if command == RESET_COMMAND:
                await view.controller.reset()
                view.console.print("[green]Started a new conversation.[/]")
                continue
            await view.run_turn(message)
    finally:
        await view.controller.transport.aclose()
        view.console.print(view.stats_panel())


async def _ask_once(base_url: str, message: str) -> Optional[TurnState]:
    view = build_view(base_url)
    try:
        turn = await view.controller.submit(message)
    finally:
        await view.controller.transport.aclose()
    view.print_transcript()
    return turn.state if turn else None


@app.command()
def server():
    """Start the demo chat server using Uvicorn."""
    import uvicorn
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    typer.echo(f"Starting server on port {settings.PORT}...")
    uvicorn.run("streamchat.server.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


@app.command()
def chat(
    base_url: str = typer.Option(settings.CHAT_BASE_URL, help="Chat server base URL"),
    log_file: str = typer.Option(settings.LOG_FILE or "streamchat.log", help="Where client logs go"),
):
    """Interactive chat. Type /reset for a new conversation, /quit to leave."""
    configure_logging(settings.LOG_LEVEL, log_file)
    try:
        asyncio.run(_chat_loop(base_url))
    except KeyboardInterrupt:
        pass


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message to send"),
    base_url: str = typer.Option(settings.CHAT_BASE_URL, help="Chat server base URL"),
):
    """Send one message and print the rendered reply."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    state = asyncio.run(_ask_once(base_url, message))
    if state is not TurnState.DONE:
        raise typer.Exit(1)


@app.command()
def health(base_url: str = typer.Option(settings.CHAT_BASE_URL, help="Chat server base URL")):
    """Query the server's health endpoint."""
    import httpx
    resp = httpx.get(f"{base_url.rstrip('/')}/healthz")
    typer.echo(resp.json())


if __name__ == "__main__":
    app()
