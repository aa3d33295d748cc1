"""CLI for the roomchat command."""

import asyncio
import sys
from typing import Optional

import typer

from .config import DEFAULT_API_URL, ClientConfig
from .session import ChatSession
from .shell import RoomShell


app = typer.Typer(
    help="Join a roomchat room from the terminal",
    add_completion=False,
)


@app.command()
def join(
    room: str = typer.Argument(..., help="Room to join"),
    name: str = typer.Option("", "--name", "-n", help="Display name (server picks one if empty)"),
    api_url: str = typer.Option(DEFAULT_API_URL, "--api-url", envvar="ROOMCHAT_API_URL", help="Backend HTTP URL"),
    ws_url: Optional[str] = typer.Option(None, "--ws-url", envvar="ROOMCHAT_WS_URL", help="Backend WebSocket URL"),
):
    """
    Join a room and chat with humans and AI participants.

    Examples:
        # Join "demo" as Ann
        roomchat demo --name Ann

        # Use a remote backend
        roomchat demo --api-url https://chat.example.com

    Inside the room, type /help for commands.
    """
    if not sys.stdin.isatty():
        typer.echo("Error: roomchat requires a TTY terminal to run.", err=True)
        raise typer.Exit(code=1)

    config = ClientConfig(api_url=api_url, ws_url=ws_url)
    typer.echo(f"🔗 Joining room {room} via {config.ws_url}")
    shell = RoomShell(ChatSession(config), room_id=room, name=name)
    try:
        asyncio.run(shell.run_async())
    except KeyboardInterrupt:
        typer.echo("\n👋 Disconnected")


if __name__ == "__main__":
    app()
