"""
chatlateral - Command Line Interface

Runs the relay server and inspects the storage the chat widget persists its
conversation and canned responses to. Built with Typer and Rich.

Usage:
    $ chatlateral --help
    $ chatlateral serve --port 3000
    $ chatlateral history show --namespace default
    $ chatlateral responses set "horário" "Atendemos das 9h às 18h"

Sub-command Groups:
    history   - Persisted conversation log
    responses - Persisted custom responses
"""

from __future__ import annotations

import typer
from rich.panel import Panel

from chatlateral import __version__
from chatlateral.cli.output import configure_logging, console, err_console
from chatlateral.config.settings import settings

# Create main application
app = typer.Typer(
    name="chatlateral",
    help="chatlateral - embeddable chat widget and relay",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
)

# Create sub-command groups
history_app = typer.Typer(
    name="history",
    help="Inspect the persisted conversation log",
    no_args_is_help=True,
)

responses_app = typer.Typer(
    name="responses",
    help="Manage the persisted custom responses",
    no_args_is_help=True,
)

# Register sub-commands
app.add_typer(history_app, name="history")
app.add_typer(responses_app, name="responses")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"chatlateral version {__version__}")
        raise typer.Exit()


def verbose_callback(value: bool) -> None:
    """Set verbose mode."""
    if value:
        configure_logging("DEBUG")


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        callback=verbose_callback,
        help="Enable verbose output.",
    ),
) -> None:
    """
    chatlateral - embeddable chat widget and relay

    Use --help on any subcommand for detailed information.
    """
    ctx.obj = {"verbose": verbose}


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option(
        settings.RELAY_HOST,
        "--host",
        "-h",
        help="Host to bind to.",
    ),
    port: int = typer.Option(
        settings.RELAY_PORT,
        "--port",
        "-p",
        help="Port to bind to.",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development.",
    ),
) -> None:
    """
    Start the relay server.

    Every text message a client sends is broadcast to all connected
    clients, the sender included.
    """
    import uvicorn

    # --verbose already asked for the most detailed level
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    configure_logging("DEBUG" if verbose else settings.LOG_LEVEL)
    console.print(Panel.fit(
        f"Relay listening on [cyan]ws://{host}:{port}/ws[/cyan]",
        title="chatlateral",
    ))
    console.print("Press [bold]Ctrl+C[/bold] to stop")

    uvicorn.run(
        "chatlateral.relay.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


# Expose the apps for use in submodules
__all__ = [
    "app",
    "history_app",
    "responses_app",
    "console",
    "err_console",
    "__version__",
]


def cli() -> None:
    """Entry point for the CLI."""
    app()


# Imported last: the modules register their commands on the groups above
from chatlateral.cli import history, responses  # noqa: E402,F401

if __name__ == "__main__":
    cli()
