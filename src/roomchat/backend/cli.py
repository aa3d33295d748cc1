"""CLI for the roomchat-backend command."""

import typer


app = typer.Typer(
    help="Start the mock roomchat backend",
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    port: int = typer.Option(8000, "--port", "-p", help="Port to run the backend on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reply_delay: float = typer.Option(1.0, "--reply-delay", help="Seconds an AI 'thinks' before replying"),
):
    """
    Start the in-memory room backend for local development.

    Examples:
        # Start on default port 8000
        roomchat-backend

        # Start on a custom port with instant AI replies
        roomchat-backend --port 9000 --reply-delay 0
    """
    import uvicorn
    from .service import create_app

    typer.echo("🚀 Starting roomchat mock backend")
    typer.echo(f"   Host: {host}")
    typer.echo(f"   Port: {port}")
    typer.echo(f"   Docs: http://{host if host != '0.0.0.0' else 'localhost'}:{port}/docs")

    app = create_app(reply_delay=reply_delay)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    app()
